"""
In-memory article cache for newsmux.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from newsmux.core.article import Article, utcnow
from newsmux.core.categories import NewsCategory
from newsmux.core.location import Locale

logger = logging.getLogger(__name__)

# Cache configuration
MAX_ENTRIES = 100
CACHE_TTL = timedelta(hours=6)
MAX_ARTICLE_AGE = timedelta(days=7)


def cache_key(category: Optional[NewsCategory], page: int, locale: Locale) -> str:
    """Key for a category feed, e.g. ``news_sports_p1_it-en``."""
    name = category.value if category else "all"
    return f"news_{name}_p{page}_{locale.tag}"


def search_cache_key(query: str, page: int, locale: Locale) -> str:
    """Key for a search, e.g. ``search_champions_league_p1_it-en``."""
    sanitized = re.sub(r"[^\w]", "", query.lower().replace(" ", "_"))
    return f"search_{sanitized}_p{page}_{locale.tag}"


@dataclass
class CacheEntry:
    articles: List[Article]
    timestamp: datetime


class NewsCache:
    """
    Key to article-list store with two staleness gates.

    An entry is served only while it is younger than the TTL and still holds
    at least one article published within the max-age window. Both gates
    are checked lazily on read. When full, the entry with the oldest
    insertion time is evicted.
    """
    def __init__(
        self,
        max_entries: int = MAX_ENTRIES,
        ttl: timedelta = CACHE_TTL,
        max_article_age: timedelta = MAX_ARTICLE_AGE,
        clock: Callable[[], datetime] = utcnow
    ):
        self.max_entries = max_entries
        self.ttl = ttl
        self.max_article_age = max_article_age
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[List[Article]]:
        """
        Get fresh cached articles.

        Args:
            key: Cache key

        Returns:
            Articles still inside the max-age window, or None on a miss or
            when the entry is stale
        """
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache miss: {key}")
                return None

            now = self.clock()
            if now - entry.timestamp >= self.ttl:
                del self._entries[key]
                logger.debug(f"Cache expired: {key}")
                return None

            cutoff = now - self.max_article_age
            fresh = [a for a in entry.articles if a.published_at >= cutoff]
            if not fresh and entry.articles:
                del self._entries[key]
                logger.warning(f"Cache entry {key} held only stale articles, evicted")
                return None

            logger.debug(f"Cache hit: {key} - {len(fresh)} fresh articles")
            return fresh

    async def set(self, key: str, articles: List[Article]) -> None:
        async with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._evict_oldest()
            self._entries[key] = CacheEntry(articles=list(articles), timestamp=self.clock())
            logger.debug(f"Cached {len(articles)} articles for: {key}")

    async def clear(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def clear_category(self, category: NewsCategory) -> None:
        """Remove every page and locale cached for a category."""
        prefix = f"news_{category.value}_"
        async with self._lock:
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]
        logger.debug(f"Cleared cache for category: {category.value}")

    async def clear_all(self) -> None:
        async with self._lock:
            self._entries.clear()

    async def clear_expired(self) -> int:
        """
        Drop entries past their TTL.

        Returns:
            Number of entries removed
        """
        async with self._lock:
            now = self.clock()
            expired = [k for k, e in self._entries.items() if now - e.timestamp >= self.ttl]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Removed {len(expired)} expired cache entries")
        return len(expired)

    @property
    def size(self) -> int:
        return len(self._entries)

    def is_cached(self, key: str) -> bool:
        return key in self._entries

    def _evict_oldest(self) -> None:
        # Caller holds self._lock
        if not self._entries:
            return
        oldest_key = min(self._entries, key=lambda k: self._entries[k].timestamp)
        del self._entries[oldest_key]
        logger.debug(f"Evicted oldest cache entry: {oldest_key}")
