"""
Base class for news provider adapters.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from newsmux.core.article import Article
from newsmux.core.categories import NewsCategory
from newsmux.core.location import Locale
from newsmux.utils.http import HttpClient


class ProviderAdapter(ABC):
    """
    Converts one external source into normalized Articles.

    Adapters only build requests and parse payloads. Key lookup and rotation
    live in ProviderFetchPolicy so the retry loop exists once.
    """
    provider_id: str = ""
    display_name: str = ""
    requires_key: bool = True
    supports_search: bool = False

    def supports(self, locale: Locale, query: Optional[str] = None) -> bool:
        """Whether this adapter can serve a locale tier or search query."""
        if query is not None and not self.supports_search:
            return False
        return True

    @abstractmethod
    async def fetch(
        self,
        client: HttpClient,
        api_key: Optional[str],
        category: Optional[NewsCategory],
        locale: Locale,
        query: Optional[str] = None,
        page: int = 1,
        page_size: int = 10
    ) -> List[Article]:
        """
        Fetch and normalize one page of articles.

        Args:
            client: HTTP client used for every request
            api_key: Current credential, None for keyless providers
            category: Category filter, None for top headlines
            locale: Country and language scope
            query: Free-text search query
            page: 1-based page number
            page_size: Requested number of articles

        Returns:
            Normalized articles

        Raises:
            NetworkError: Any failure of the provider call
        """
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.provider_id}>"
