"""
Retry-with-rotation policy shared by every provider.
"""
import logging
from typing import List, Optional

from newsmux.core.article import Article
from newsmux.core.categories import NewsCategory
from newsmux.core.keys import KeyRotationStore
from newsmux.core.location import Locale
from newsmux.exceptions import RateLimitExceededError, ServerError
from newsmux.fetchers.base import ProviderAdapter
from newsmux.utils.http import HttpClient
from newsmux.utils.nlp import mask_secret

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


class ProviderFetchPolicy:
    """
    Wraps an adapter with key lookup and rotation.

    A 401, 403 or 429 answer rotates the provider's key and tries again, up
    to max_attempts; every other error propagates immediately.
    """
    def __init__(
        self,
        adapter: ProviderAdapter,
        client: HttpClient,
        keys: KeyRotationStore,
        max_attempts: int = MAX_ATTEMPTS,
        page_size: int = 10
    ):
        self.adapter = adapter
        self.client = client
        self.keys = keys
        self.max_attempts = max_attempts
        self.page_size = page_size

    @property
    def provider_id(self) -> str:
        return self.adapter.provider_id

    @property
    def display_name(self) -> str:
        return self.adapter.display_name

    def supports(self, locale: Locale, query: Optional[str] = None) -> bool:
        return self.adapter.supports(locale, query)

    async def fetch_articles(
        self,
        category: Optional[NewsCategory],
        locale: Locale,
        query: Optional[str] = None,
        page: int = 1
    ) -> List[Article]:
        """
        Fetch one page of articles from the wrapped provider.

        Args:
            category: Category filter
            locale: Country and language scope
            query: Free-text search query
            page: 1-based page number

        Returns:
            Normalized articles

        Raises:
            MissingKeyError: If the provider has no usable key
            RateLimitExceededError: If every attempt hit an auth or rate-limit error
            NetworkError: Any other provider failure, without retry
        """
        for attempt in range(1, self.max_attempts + 1):
            api_key = None
            if self.adapter.requires_key:
                api_key = await self.keys.current_key(self.provider_id)
                logger.debug(
                    f"Fetching from {self.display_name} (attempt {attempt}/{self.max_attempts}, "
                    f"key {mask_secret(api_key)})"
                )
            try:
                return await self.adapter.fetch(
                    self.client,
                    api_key,
                    category,
                    locale,
                    query=query,
                    page=page,
                    page_size=self.page_size,
                )
            except ServerError as e:
                if not (e.is_auth_or_rate_limit and self.adapter.requires_key):
                    raise
                logger.warning(
                    f"{self.display_name} key failed (status: {e.status_code}). "
                    f"Rotating. Attempt {attempt}/{self.max_attempts}"
                )
                await self.keys.rotate(self.provider_id)

        raise RateLimitExceededError(self.display_name, self.max_attempts)
