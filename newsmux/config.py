"""
Configuration management for newsmux.
"""
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

# Load environment variables (API keys included) from .env file
load_dotenv()

logger = logging.getLogger(__name__)

ENV_PREFIX = "NEWSMUX_"

# Default configuration
DEFAULT_CONFIG = {
    "http": {
        "request_timeout": 30,
        "resource_timeout": 60,
        "max_retries": 3,
        "backoff_factor": 1.0,
        "user_agent": "newsmux/0.1 (+https://github.com/newsmux/newsmux)"
    },
    "keys": {
        "cache_seconds": 300,
        "services": {
            "gnews": "GNEWS_API_KEYS",
            "newsapi": "NEWSAPI_API_KEYS",
            "newsdataio": "NEWSDATAIO_API_KEYS",
            "guardian": "GUARDIAN_API_KEYS",
            "rapidapi": "RAPIDAPI_API_KEYS",
            "mediastack": "MEDIASTACK_API_KEYS"
        },
        "values": {}
    },
    "providers": {
        "enabled": ["gnews", "newsdataio", "newsapi", "rss"],
        "max_attempts": 3,
        "page_size": 10
    },
    "aggregator": {
        "fetch_all_providers": True,
        "default_provider": "gnews",
        "sequential_timeout": 3.0,
        "provider_timeout": None,
        "max_article_age_hours": 24,
        "include_undated": True,
        "personalize": False,
        "show_progress": False
    },
    "cache": {
        "ttl_seconds": 21600,
        "max_entries": 100,
        "max_article_age_days": 7
    },
    "location": {
        "country": None,
        "language": None,
        "regional_query": "Europe"
    },
    "personalization": {
        "weights": {
            "category": 0.4,
            "source": 0.2,
            "freshness": 0.2,
            "novelty": 0.2
        },
        "skip_penalty": 0.5,
        "diverse_fraction": 0.2,
        "freshness_window_days": 7,
        "signals": {
            "read": {"category": 1.0, "source": 0.5},
            "bookmark": {"category": 3.0, "source": 2.0},
            "skip": {"category": -0.2, "source": 0.0},
            "share": {"category": 5.0, "source": 3.0}
        },
        "profile_path": None
    }
}


class Config:
    """
    Configuration manager for newsmux.
    """
    def __init__(self, config_path: Optional[str] = None, env_prefix: str = ENV_PREFIX):
        """
        Initialize the Config.

        Args:
            config_path: Path to a YAML or JSON configuration file
            env_prefix: Prefix for environment variable overrides
        """
        self.config_path = config_path
        self.env_prefix = env_prefix
        self.config = self._load_config()

    def _load_config(self) -> Dict:
        """
        Load configuration from file or use defaults.

        Returns:
            Configuration dictionary
        """
        config = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_path:
            path = Path(self.config_path)
            if path.exists():
                try:
                    user_config = self._read_file(path)
                except (OSError, ValueError, yaml.YAMLError) as e:
                    logger.error(f"Error loading config from {self.config_path}: {e}")
                    logger.warning("Using default configuration")
                else:
                    if isinstance(user_config, dict):
                        self._update_dict(config, user_config)
            else:
                logger.warning(f"Config file {self.config_path} not found, using defaults")

        # Override with environment variables
        self._override_from_env(config, self.env_prefix)

        return config

    @staticmethod
    def _read_file(path: Path) -> Any:
        suffix = path.suffix.lower()
        with open(path, "r", encoding="utf-8") as f:
            if suffix in [".yaml", ".yml"]:
                return yaml.safe_load(f)
            if suffix == ".json":
                return json.load(f)
        raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _update_dict(self, target: Dict, source: Dict) -> None:
        """
        Recursively update a dictionary.

        Args:
            target: Target dictionary to update
            source: Source dictionary with new values
        """
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._update_dict(target[key], value)
            else:
                target[key] = value

    def _override_from_env(self, config: Dict, prefix: str = ENV_PREFIX) -> None:
        """
        Override configuration with environment variables.

        ``NEWSMUX_CACHE__TTL_SECONDS=60`` sets ``cache.ttl_seconds``. Variables
        without a double underscore are ignored, so ``NEWSMUX_CONFIG_PATH``
        never lands in the tree.

        Args:
            config: Configuration dictionary to update
            prefix: Prefix for environment variables
        """
        for key, value in os.environ.items():
            if not key.startswith(prefix) or "__" not in key:
                continue
            parts = key[len(prefix):].lower().split("__")

            # Navigate to the right place in the config
            current = config
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]

            try:
                current[parts[-1]] = json.loads(value)
            except json.JSONDecodeError:
                current[parts[-1]] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Dot-separated key path (e.g., 'cache.ttl_seconds')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        current = self.config
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def section(self, name: str) -> Dict[str, Any]:
        """Return a copy of a top-level section."""
        return copy.deepcopy(self.config.get(name) or {})

    def save(self, path: Optional[str] = None) -> bool:
        """
        Save the current configuration to a file.

        Args:
            path: Path to save the configuration to

        Returns:
            True if successful, False otherwise
        """
        save_path = path or self.config_path
        if not save_path:
            logger.error("No path specified for saving configuration")
            return False

        target = Path(save_path)
        try:
            if target.suffix.lower() in [".yaml", ".yml"]:
                with open(target, "w", encoding="utf-8") as f:
                    yaml.safe_dump(self.config, f, default_flow_style=False)
            elif target.suffix.lower() == ".json":
                with open(target, "w", encoding="utf-8") as f:
                    json.dump(self.config, f, indent=2)
            else:
                raise ValueError(f"Unsupported config file format: {target.suffix}")
            return True
        except (OSError, ValueError) as e:
            logger.error(f"Error saving config to {save_path}: {e}")
            return False


# Global configuration instance
config = Config(os.getenv("NEWSMUX_CONFIG_PATH"))


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value.

    Args:
        key: Dot-separated key path (e.g., 'cache.ttl_seconds')
        default: Default value if key not found

    Returns:
        Configuration value
    """
    return config.get(key, default)
