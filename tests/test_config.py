"""
Tests for configuration layering and CLI wiring.
"""
from unittest.mock import MagicMock

import pytest
import yaml

from newsmux.cli import build_aggregator, build_personalizer, format_article, parse_args
from newsmux.config import DEFAULT_CONFIG, Config, get_config


class TestConfig:
    """Tests for Config"""

    def test_defaults(self):
        cfg = Config()
        assert cfg.get("cache.ttl_seconds") == 21600
        assert cfg.get("providers.enabled") == ["gnews", "newsdataio", "newsapi", "rss"]
        assert cfg.get("missing.path", "fallback") == "fallback"
        # Defaults are never mutated through an instance
        cfg.config["cache"]["ttl_seconds"] = 1
        assert DEFAULT_CONFIG["cache"]["ttl_seconds"] == 21600

    def test_yaml_file_merges(self, tmp_path):
        path = tmp_path / "newsmux.yaml"
        path.write_text(yaml.safe_dump({"cache": {"max_entries": 10}, "location": {"country": "fr"}}))
        cfg = Config(str(path))
        assert cfg.get("cache.max_entries") == 10
        assert cfg.get("cache.ttl_seconds") == 21600
        assert cfg.get("location.country") == "fr"

    def test_unsupported_file_falls_back(self, tmp_path):
        path = tmp_path / "newsmux.ini"
        path.write_text("[cache]")
        assert Config(str(path)).get("cache.max_entries") == 100

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("NEWSMUX_AGGREGATOR__PROVIDER_TIMEOUT", "2.5")
        monkeypatch.setenv("NEWSMUX_PROVIDERS__ENABLED", '["rss"]')
        monkeypatch.setenv("NEWSMUX_LOCATION__REGIONAL_QUERY", "Europa")
        monkeypatch.setenv("NEWSMUX_CONFIG_PATH", "ignored.yaml")
        cfg = Config()
        assert cfg.get("aggregator.provider_timeout") == 2.5
        assert cfg.get("providers.enabled") == ["rss"]
        assert cfg.get("location.regional_query") == "Europa"
        assert "config_path" not in cfg.config

    def test_section_is_a_copy(self):
        cfg = Config()
        section = cfg.section("http")
        section["max_retries"] = 99
        assert cfg.get("http.max_retries") == 3

    def test_module_level_lookup(self):
        assert get_config("keys.services.gnews") == "GNEWS_API_KEYS"
        assert get_config("keys.services.unknown", "none") == "none"

    def test_save_round_trip(self, tmp_path):
        cfg = Config()
        target = tmp_path / "saved.json"
        assert cfg.save(str(target))
        assert Config(str(target)).get("keys.cache_seconds") == 300
        assert not cfg.save(str(tmp_path / "saved.txt"))


class TestCliWiring:
    """Tests for the CLI builders"""

    def test_parse_args(self):
        args = parse_args(["--category", "sports", "--mode", "location", "--limit", "5", "--json"])
        assert args.category == "sports"
        assert args.mode == "location"
        assert args.limit == 5
        assert args.json

    def test_build_aggregator_from_config(self, tmp_path):
        cfg = Config()
        cfg.config["providers"]["enabled"] = ["gnews", "rss"]
        aggregator = build_aggregator(
            cfg,
            MagicMock(),
            country="it",
            language="en",
            mode="location",
            personalize=True,
            profile_path=str(tmp_path / "p.json"),
        )
        assert list(aggregator.providers) == ["gnews", "rss"]
        assert aggregator.fetch_all_providers is False
        assert aggregator.locale.tag == "it-en"
        assert aggregator.personalizer is not None
        assert aggregator.cache.max_entries == 100

    def test_build_personalizer_weights(self):
        cfg = Config()
        cfg.config["personalization"]["weights"]["category"] = 0.9
        personalizer = build_personalizer(cfg)
        assert personalizer.weights.category == pytest.approx(0.9)
        assert personalizer.profile_path is None

    def test_format_article(self, make_article):
        text = format_article(make_article("https://x.com/1", title="Headline", description="Body text"))
        assert text.splitlines()[0] == "Headline"
        assert "https://x.com/1" in text
        assert "Body text" in text
