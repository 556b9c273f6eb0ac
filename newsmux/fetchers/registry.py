"""
Builds provider fetch policies from configuration.
"""
import logging
from typing import Callable, Dict, Iterable, Optional, Type

from newsmux.config import Config
from newsmux.core.article import utcnow
from newsmux.core.keys import KeyRotationStore
from newsmux.fetchers.base import ProviderAdapter
from newsmux.fetchers.policy import ProviderFetchPolicy
from newsmux.fetchers.rest import (
    GNewsAdapter,
    GuardianAdapter,
    MediaStackAdapter,
    NewsAPIAdapter,
    NewsDataIOAdapter,
    RapidAPINewsAdapter,
    RedditAdapter,
)
from newsmux.fetchers.rss import RSSFeedAdapter
from newsmux.utils.http import HttpClient

logger = logging.getLogger(__name__)

ADAPTERS: Dict[str, Type[ProviderAdapter]] = {
    GNewsAdapter.provider_id: GNewsAdapter,
    NewsAPIAdapter.provider_id: NewsAPIAdapter,
    NewsDataIOAdapter.provider_id: NewsDataIOAdapter,
    GuardianAdapter.provider_id: GuardianAdapter,
    RapidAPINewsAdapter.provider_id: RapidAPINewsAdapter,
    MediaStackAdapter.provider_id: MediaStackAdapter,
    RedditAdapter.provider_id: RedditAdapter,
    RSSFeedAdapter.provider_id: RSSFeedAdapter,
}


def build_key_store(config: Config, environ=None, clock: Optional[Callable[[], float]] = None) -> KeyRotationStore:
    """
    Create the key store for every keyed adapter named in keys.services.

    Args:
        config: Loaded configuration
        environ: Credential source, os.environ by default
        clock: Monotonic clock for the credential cache

    Returns:
        KeyRotationStore
    """
    services = config.get("keys.services", {}) or {}
    display_names = {
        provider: adapter.display_name
        for provider, adapter in ADAPTERS.items()
        if provider in services
    }
    kwargs = {}
    if clock is not None:
        kwargs["clock"] = clock
    return KeyRotationStore(
        services=services,
        display_names=display_names,
        fallback=config.get("keys.values", {}) or {},
        environ=environ,
        cache_seconds=config.get("keys.cache_seconds", 300),
        **kwargs
    )


def build_http_client(config: Config) -> HttpClient:
    return HttpClient(
        request_timeout=config.get("http.request_timeout", 30),
        resource_timeout=config.get("http.resource_timeout", 60),
        max_retries=config.get("http.max_retries", 3),
        backoff_factor=config.get("http.backoff_factor", 1.0),
        user_agent=config.get("http.user_agent"),
    )


def build_providers(
    config: Config,
    client: HttpClient,
    keys: KeyRotationStore,
    enabled: Optional[Iterable[str]] = None,
    clock: Callable = utcnow
) -> Dict[str, ProviderFetchPolicy]:
    """
    Instantiate the enabled providers in configured order.

    Args:
        config: Loaded configuration
        client: Shared HTTP client
        keys: Shared key store
        enabled: Provider ids, defaults to providers.enabled
        clock: Clock handed to adapters for undated articles

    Returns:
        Ordered mapping of provider id to fetch policy
    """
    if enabled is None:
        enabled = config.get("providers.enabled", []) or []
    policies: Dict[str, ProviderFetchPolicy] = {}
    for provider_id in enabled:
        adapter_class = ADAPTERS.get(provider_id)
        if adapter_class is None:
            logger.warning(f"Unknown provider '{provider_id}' in configuration, skipping")
            continue
        policies[provider_id] = ProviderFetchPolicy(
            adapter_class(clock=clock),
            client,
            keys,
            max_attempts=config.get("providers.max_attempts", 3),
            page_size=config.get("providers.page_size", 10),
        )
    logger.debug(f"Enabled providers: {', '.join(policies)}")
    return policies
