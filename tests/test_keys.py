"""
Tests for API key rotation.
"""
import asyncio

import pytest

from newsmux.core.keys import KeyRotationStore, KeySet, KeyStatus, parse_key_list
from newsmux.exceptions import MissingKeyError

from tests.conftest import FakeMonotonic


class TestKeySet:
    """Tests for KeySet"""

    def test_parse_key_list(self):
        assert parse_key_list(" k1, k2 ,,k3 ") == ["k1", "k2", "k3"]
        assert parse_key_list("") == []
        assert parse_key_list(None) == []

    def test_rotation_cycles(self):
        """N rotations return the index to where it started"""
        key_set = KeySet(["a", "b", "c"], "GNews")
        seen = []
        for _ in range(3):
            seen.append(key_set.current_key())
            key_set.rotate()
        assert seen == ["a", "b", "c"]
        assert key_set.current_index == 0

    def test_empty_set(self):
        key_set = KeySet([], "GNews")
        key_set.rotate()
        assert key_set.current_index == 0
        with pytest.raises(MissingKeyError):
            key_set.current_key()

    def test_blank_key(self):
        with pytest.raises(MissingKeyError):
            KeySet(["  "], "GNews").current_key()


class TestKeyStatus:
    """Tests for KeyStatus.display_info"""

    def test_display_info(self):
        assert KeyStatus("gnews", "GNews", 3, 1).display_info == "GNews: 2/3"
        assert KeyStatus("gnews", "GNews", 0, 0).display_info == "GNews: No keys"


class TestKeyRotationStore:
    """Tests for KeyRotationStore"""

    @pytest.mark.asyncio
    async def test_current_key_and_rotate(self, key_store):
        assert await key_store.current_key("gnews") == "k1"
        await key_store.rotate("gnews")
        assert await key_store.current_key("gnews") == "k2"
        await key_store.rotate("gnews")
        await key_store.rotate("gnews")
        assert await key_store.current_key("gnews") == "k1"

    @pytest.mark.asyncio
    async def test_missing_provider_keys(self, key_store):
        with pytest.raises(MissingKeyError):
            await key_store.current_key("guardian")
        # Rotating a provider without keys is a no-op
        await key_store.rotate("guardian")

    @pytest.mark.asyncio
    async def test_fallback_values(self):
        store = KeyRotationStore(
            services={"gnews": "GNEWS_API_KEYS"},
            fallback={"GNEWS_API_KEYS": "fallback1,fallback2"},
            environ={},
        )
        assert await store.available_keys("gnews") == ["fallback1", "fallback2"]

    @pytest.mark.asyncio
    async def test_keys_cached_until_expiry(self):
        environ = {"GNEWS_API_KEYS": "k1"}
        clock = FakeMonotonic()
        store = KeyRotationStore({"gnews": "GNEWS_API_KEYS"}, environ=environ, cache_seconds=300, clock=clock)
        assert await store.available_keys("gnews") == ["k1"]

        environ["GNEWS_API_KEYS"] = "k1,k2"
        clock.value = 299
        assert await store.available_keys("gnews") == ["k1"]
        clock.value = 300
        assert await store.available_keys("gnews") == ["k1", "k2"]

    @pytest.mark.asyncio
    async def test_refresh_cache_reloads(self):
        environ = {"GNEWS_API_KEYS": "k1"}
        store = KeyRotationStore({"gnews": "GNEWS_API_KEYS"}, environ=environ, clock=FakeMonotonic())
        assert await store.current_key("gnews") == "k1"
        environ["GNEWS_API_KEYS"] = "fresh"
        await store.refresh_cache()
        assert await store.current_key("gnews") == "fresh"

    @pytest.mark.asyncio
    async def test_statuses(self, key_store):
        await key_store.rotate("gnews")
        statuses = await key_store.all_statuses()
        assert [s.display_info for s in statuses] == ["GNews: 2/3", "NewsAPI.org: 1/1", "The Guardian: No keys"]

    @pytest.mark.asyncio
    async def test_concurrent_rotation_is_consistent(self, key_store):
        """Concurrent rotations are serialized: 30 rotations on 3 keys end at index 0"""
        await asyncio.gather(*(key_store.rotate("gnews") for _ in range(30)))
        status = await key_store.get_status("gnews")
        assert status.current_index == 0
