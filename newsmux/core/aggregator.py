"""
News aggregation for newsmux.

Fans out to the enabled providers, merges what comes back and turns it into
one fresh, de-duplicated, newest-first list. A provider that fails or times
out contributes nothing; only a round where nothing at all came back raises
NoDataError.
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

import async_timeout
from tqdm import tqdm

from newsmux.core.article import Article, utcnow
from newsmux.core.cache import NewsCache, cache_key, search_cache_key
from newsmux.core.categories import NewsCategory
from newsmux.core.keys import KeyRotationStore, KeyStatus
from newsmux.core.location import Locale, location_tiers
from newsmux.core.personalization import PersonalizationService
from newsmux.exceptions import FetchTimeoutError, NewsError, NoDataError
from newsmux.fetchers.policy import ProviderFetchPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

SEQUENTIAL_TIMEOUT = 3.0
MAX_ARTICLE_AGE = timedelta(hours=24)


async def with_timeout(operation: Awaitable[T], seconds: Optional[float], provider: str = "operation") -> T:
    """
    Race an awaitable against a deadline.

    The losing operation is cancelled. A None deadline waits indefinitely
    while staying cancellable by the caller.

    Args:
        operation: The awaitable to run
        seconds: Deadline in seconds, or None
        provider: Name used in the timeout error

    Returns:
        The operation's result

    Raises:
        FetchTimeoutError: If the deadline passes first
    """
    if seconds is None:
        return await operation
    try:
        async with async_timeout.timeout(seconds):
            return await operation
    except asyncio.TimeoutError as e:
        raise FetchTimeoutError(provider, seconds) from e


def deduplicate(articles: Iterable[Article]) -> List[Article]:
    """Drop repeated URLs (case-insensitive), keeping the first occurrence in order."""
    seen = set()
    unique = []
    for article in articles:
        if article.identity in seen:
            continue
        seen.add(article.identity)
        unique.append(article)
    return unique


def filter_by_freshness(
    articles: Iterable[Article],
    max_age: timedelta,
    now: Optional[datetime] = None,
    include_undated: bool = True
) -> List[Article]:
    """
    Keep articles published within max_age of now.

    Args:
        articles: Articles to filter
        max_age: Freshness window
        now: Reference time, defaults to the current UTC time
        include_undated: Whether articles whose date was inferred pass

    Returns:
        Fresh articles in their original order
    """
    now = now or utcnow()
    fresh = []
    for article in articles:
        if article.date_inferred:
            if include_undated:
                fresh.append(article)
            continue
        if now - article.published_at <= max_age:
            fresh.append(article)
    return fresh


def sort_by_published(articles: Iterable[Article]) -> List[Article]:
    """Newest first. Equal timestamps keep their incoming order."""
    return sorted(articles, key=lambda a: a.published_at, reverse=True)


class NewsAggregator:
    """
    Single entry point for fetching the merged news feed.
    """
    def __init__(
        self,
        providers: Dict[str, ProviderFetchPolicy],
        keys: KeyRotationStore,
        cache: NewsCache,
        locale: Locale,
        personalizer: Optional[PersonalizationService] = None,
        fetch_all_providers: bool = True,
        default_provider: Optional[str] = None,
        sequential_timeout: float = SEQUENTIAL_TIMEOUT,
        provider_timeout: Optional[float] = None,
        max_article_age: timedelta = MAX_ARTICLE_AGE,
        include_undated: bool = True,
        personalize: bool = False,
        show_progress: bool = False,
        regional_query: str = "Europe",
        clock: Callable[[], datetime] = utcnow
    ):
        self.providers = providers
        self.keys = keys
        self.cache = cache
        self.locale = locale
        self.personalizer = personalizer
        self.fetch_all_providers = fetch_all_providers
        self.default_provider = default_provider or next(iter(providers), None)
        self.sequential_timeout = sequential_timeout
        self.provider_timeout = provider_timeout
        self.max_article_age = max_article_age
        self.include_undated = include_undated
        self.personalize = personalize
        self.show_progress = show_progress
        self.regional_query = regional_query
        self.clock = clock

    async def fetch_aggregated_news(
        self,
        category: Optional[NewsCategory] = None,
        use_location_based: bool = True,
        page: int = 1,
        locale: Optional[Locale] = None
    ) -> List[Article]:
        """
        Fetch the merged feed for a category.

        Strategy: every provider concurrently when fetch_all_providers is set,
        else the local/regional/global tiers when use_location_based, else
        the default provider alone.

        Args:
            category: Category filter, None for top headlines
            use_location_based: Use location tiers when not fanning out
            page: 1-based page number
            locale: Overrides the configured locale

        Returns:
            Fresh, de-duplicated articles, newest first (personalized when enabled)

        Raises:
            NoDataError: If no provider returned anything
        """
        locale = locale or self.locale
        key = cache_key(category, page, locale)
        cached = await self.cache.get(key)
        if cached is not None:
            return self._rank(cached)

        if self.fetch_all_providers:
            logger.info(f"Fetching {category.value if category else 'top'} news from all providers")
            raw = await self._fan_out(category, locale, page=page)
        elif use_location_based:
            raw = await self._fetch_location_tiers(category, locale, page)
        else:
            raw = await self._fetch_default(category, locale, page)

        articles = self._clean(raw)
        logger.info(f"Aggregated {len(articles)} fresh unique articles from {len(raw)} fetched")
        # An empty result is not cached so the next call asks the providers again
        if articles:
            await self.cache.set(key, articles)
        return self._rank(articles)

    async def search_news(self, query: str, page: int = 1, locale: Optional[Locale] = None) -> List[Article]:
        """
        Search every provider that supports free-text queries.

        Args:
            query: Search terms
            page: 1-based page number
            locale: Overrides the configured locale

        Returns:
            Matching articles, processed like fetch_aggregated_news

        Raises:
            ValueError: If the query is blank
            NoDataError: If no provider returned anything
        """
        query = query.strip()
        if not query:
            raise ValueError("Search query must not be empty")
        locale = locale or self.locale
        key = search_cache_key(query, page, locale)
        cached = await self.cache.get(key)
        if cached is not None:
            return self._rank(cached)

        raw = await self._fan_out(None, locale, query=query, page=page)
        articles = self._clean(raw)
        if articles:
            await self.cache.set(key, articles)
        return self._rank(articles)

    async def fetch_sequential(
        self,
        category: Optional[NewsCategory],
        locale: Locale,
        timeout: Optional[float] = None,
        query: Optional[str] = None,
        page: int = 1
    ) -> List[Article]:
        """
        Try providers one at a time and return the first non-empty result.

        Args:
            category: Category filter
            locale: Country and language scope
            timeout: Per-provider deadline, defaults to sequential_timeout
            query: Free-text search query
            page: 1-based page number

        Returns:
            Articles from the first provider that produced any

        Raises:
            NoDataError: If every provider failed, timed out or came back empty
        """
        timeout = self.sequential_timeout if timeout is None else timeout
        for policy in self._eligible(locale, query):
            try:
                articles = await with_timeout(
                    policy.fetch_articles(category, locale, query=query, page=page),
                    timeout,
                    policy.display_name,
                )
            except NewsError as e:
                logger.warning(f"{policy.display_name} failed for {locale.tag}: {e}")
                continue
            if articles:
                logger.debug(f"{policy.display_name} returned {len(articles)} articles for {locale.tag}")
                return articles
            logger.debug(f"{policy.display_name} returned no articles for {locale.tag}, trying next")
        raise NoDataError(f"No provider returned articles for {locale.tag}")

    async def get_status(self, provider: str) -> KeyStatus:
        return await self.keys.get_status(provider)

    async def all_statuses(self) -> List[KeyStatus]:
        return await self.keys.all_statuses()

    async def refresh_cache(self) -> None:
        """Reload credentials on next use and drop every cached feed."""
        await self.keys.refresh_cache()
        await self.cache.clear_all()

    def _eligible(self, locale: Locale, query: Optional[str] = None) -> List[ProviderFetchPolicy]:
        return [p for p in self.providers.values() if p.supports(locale, query)]

    def _clean(self, articles: List[Article]) -> List[Article]:
        fresh = filter_by_freshness(
            articles,
            self.max_article_age,
            now=self.clock(),
            include_undated=self.include_undated,
        )
        return sort_by_published(deduplicate(fresh))

    def _rank(self, articles: List[Article]) -> List[Article]:
        if self.personalize and self.personalizer is not None:
            return self.personalizer.personalize(articles)
        return articles

    async def _guarded_fetch(
        self,
        policy: ProviderFetchPolicy,
        category: Optional[NewsCategory],
        locale: Locale,
        query: Optional[str],
        page: int
    ) -> List[Article]:
        try:
            articles = await with_timeout(
                policy.fetch_articles(category, locale, query=query, page=page),
                self.provider_timeout,
                policy.display_name,
            )
        except FetchTimeoutError as e:
            logger.warning(str(e))
            return []
        except Exception as e:
            logger.error(f"{policy.display_name} failed: {e}")
            return []
        logger.debug(f"{policy.display_name} contributed {len(articles)} articles")
        return articles

    async def _fan_out(
        self,
        category: Optional[NewsCategory],
        locale: Locale,
        query: Optional[str] = None,
        page: int = 1
    ) -> List[Article]:
        policies = self._eligible(locale, query)
        tasks = [
            asyncio.ensure_future(self._guarded_fetch(policy, category, locale, query, page))
            for policy in policies
        ]
        merged: List[Article] = []
        try:
            completed = asyncio.as_completed(tasks)
            if self.show_progress:
                completed = tqdm(completed, total=len(tasks), desc="Fetching providers")
            for next_done in completed:
                merged.extend(await next_done)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if not merged:
            raise NoDataError("Every provider failed or returned no articles")
        return merged

    async def _fetch_location_tiers(
        self,
        category: Optional[NewsCategory],
        locale: Locale,
        page: int
    ) -> List[Article]:
        collected: List[Article] = []
        for tier_name, tier in zip(self._tier_names(locale), location_tiers(locale, self.regional_query)):
            try:
                articles = await self.fetch_sequential(category, tier, page=page)
            except NoDataError:
                logger.warning(f"No {tier_name} articles for {tier.tag}")
                continue
            logger.debug(f"{len(articles)} {tier_name} articles")
            collected.extend(a.with_metadata(tier=tier_name) for a in articles)

        if not collected:
            raise NoDataError(f"No local, regional or global articles for {locale.tag}")
        return collected

    @staticmethod
    def _tier_names(locale: Locale) -> List[str]:
        if locale.is_european:
            return ["local", "regional", "global"]
        return ["local", "global"]

    async def _fetch_default(
        self,
        category: Optional[NewsCategory],
        locale: Locale,
        page: int
    ) -> List[Article]:
        policy = self.providers.get(self.default_provider) if self.default_provider else None
        if policy is None:
            raise NoDataError("No default provider configured")
        try:
            articles = await with_timeout(
                policy.fetch_articles(category, locale, page=page),
                self.provider_timeout,
                policy.display_name,
            )
        except NewsError as e:
            logger.error(f"{policy.display_name} failed: {e}")
            raise NoDataError(f"{policy.display_name} returned no articles") from e
        if not articles:
            raise NoDataError(f"{policy.display_name} returned no articles")
        return articles
