"""
Pytest configuration and shared fixtures.
"""
from datetime import datetime, timedelta, timezone

import pytest

from newsmux.core.article import Article, ArticleSource
from newsmux.core.keys import KeyRotationStore
from newsmux.core.location import Locale

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for TTL and freshness tests."""

    def __init__(self, start=NOW):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    def __init__(self):
        self.value = 0.0

    def __call__(self):
        return self.value


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def locale_it():
    return Locale(country="it", language="en")


@pytest.fixture
def make_article():
    """Factory for articles published a given number of hours before NOW."""
    def _make(url, hours_ago=1.0, title=None, source="Reuters", description=None, metadata=None):
        return Article(
            source=ArticleSource(name=source),
            title=title or f"Headline for {url}",
            url=url,
            published_at=NOW - timedelta(hours=hours_ago),
            description=description,
            metadata=dict(metadata or {}),
        )
    return _make


@pytest.fixture
def key_store():
    """Key store reading from an in-memory environment."""
    environ = {
        "GNEWS_API_KEYS": "k1,k2,k3",
        "NEWSAPI_API_KEYS": "newsapi-key-0001",
    }
    return KeyRotationStore(
        services={"gnews": "GNEWS_API_KEYS", "newsapi": "NEWSAPI_API_KEYS", "guardian": "GUARDIAN_API_KEYS"},
        display_names={"gnews": "GNews", "newsapi": "NewsAPI.org", "guardian": "The Guardian"},
        environ=environ,
        clock=FakeMonotonic(),
    )


# =============================================================================
# MARKERS
# =============================================================================

def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no network)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (in-process HTTP server)"
    )
    config.addinivalue_line(
        "markers", "slow: Slow tests"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests based on their module"""
    for item in items:
        if "test_http" in item.nodeid or "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
