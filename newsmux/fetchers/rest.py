"""
REST JSON provider adapters for newsmux.
"""
import logging
from abc import abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from newsmux.core.article import Article, ArticleSource, utcnow
from newsmux.core.categories import NewsCategory
from newsmux.core.location import Locale
from newsmux.fetchers.base import ProviderAdapter
from newsmux.utils.http import HttpClient
from newsmux.utils.nlp import clean_text

logger = logging.getLogger(__name__)

RequestSpec = Tuple[str, Dict[str, Any], Dict[str, str]]


class RestJsonAdapter(ProviderAdapter):
    """
    Generic adapter for a JSON news API.

    Subclasses describe the endpoint, the name of the key parameter and the
    category mapping, and implement build_request and parse_payload. A
    parse_payload that hits a missing or mistyped field raises KeyError,
    TypeError or AttributeError, which the HTTP client reports as a
    DecodingError.
    """
    base_url: str = ""
    key_param: Optional[str] = None
    category_map: Dict[NewsCategory, str] = {}

    def __init__(self, clock: Callable = utcnow):
        self.clock = clock

    def map_category(self, category: Optional[NewsCategory]) -> Optional[str]:
        if category is None:
            return None
        return self.category_map.get(category)

    def auth_params(self, api_key: Optional[str]) -> Dict[str, Any]:
        if self.key_param and api_key:
            return {self.key_param: api_key}
        return {}

    @abstractmethod
    def build_request(
        self,
        api_key: Optional[str],
        category: Optional[NewsCategory],
        locale: Locale,
        query: Optional[str],
        page: int,
        page_size: int
    ) -> RequestSpec:
        """Return the URL, query parameters and headers for one page."""
        pass

    @abstractmethod
    def parse_payload(self, payload: Any) -> List[Article]:
        """Convert a decoded response body into Articles."""
        pass

    def make_article(
        self,
        title: Optional[str],
        url: Optional[str],
        published: Optional[str],
        source_name: Optional[str],
        source_id: Optional[str] = None,
        **kwargs: Any
    ) -> Optional[Article]:
        """Build an Article, or None when the item lacks a title or link."""
        title = (title or "").strip()
        url = (url or "").strip()
        if not title or not url:
            return None
        metadata = dict(kwargs.pop("metadata", None) or {})
        metadata.setdefault("provider", self.provider_id)
        return Article.create(
            source=ArticleSource(name=source_name or self.display_name, id=source_id),
            title=title,
            url=url,
            published=published,
            now=self.clock,
            metadata=metadata,
            **kwargs
        )

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
        url, params, headers = self.build_request(api_key, category, locale, query, page, page_size)
        articles = await client.fetch_json(url, params=params, headers=headers or None, model=self.parse_payload)
        logger.debug(f"{self.display_name} returned {len(articles)} articles")
        return articles


class GNewsAdapter(RestJsonAdapter):
    provider_id = "gnews"
    display_name = "GNews"
    base_url = "https://gnews.io/api/v4"
    key_param = "apikey"
    supports_search = True
    category_map = {
        NewsCategory.GENERAL: "general",
        NewsCategory.WORLD: "world",
        NewsCategory.POLITICS: "nation",
        NewsCategory.BUSINESS: "business",
        NewsCategory.TECHNOLOGY: "technology",
        NewsCategory.ENTERTAINMENT: "entertainment",
        NewsCategory.SPORTS: "sports",
        NewsCategory.SCIENCE: "science",
        NewsCategory.HEALTH: "health",
    }

    def build_request(self, api_key, category, locale, query, page, page_size):
        params = self.auth_params(api_key)
        params.update({"lang": locale.language, "max": page_size})
        if page > 1:
            params["page"] = page
        if locale.country:
            params["country"] = locale.country
        search = query or locale.query
        if search:
            params["q"] = search
            return f"{self.base_url}/search", params, {}
        topic = self.map_category(category)
        if topic:
            params["topic"] = topic
        return f"{self.base_url}/top-headlines", params, {}

    def parse_payload(self, payload):
        articles = []
        for item in payload["articles"]:
            source = item.get("source") or {}
            article = self.make_article(
                title=item.get("title"),
                url=item.get("url"),
                published=item.get("publishedAt"),
                source_name=source.get("name"),
                author=source.get("name"),
                description=item.get("description"),
                image_url=item.get("image"),
                content=item.get("content"),
            )
            if article:
                articles.append(article)
        return articles


class NewsAPIAdapter(RestJsonAdapter):
    provider_id = "newsapi"
    display_name = "NewsAPI.org"
    base_url = "https://newsapi.org/v2"
    key_param = "apiKey"
    supports_search = True
    category_map = {
        NewsCategory.GENERAL: "general",
        NewsCategory.BUSINESS: "business",
        NewsCategory.ENTERTAINMENT: "entertainment",
        NewsCategory.HEALTH: "health",
        NewsCategory.SCIENCE: "science",
        NewsCategory.SPORTS: "sports",
        NewsCategory.TECHNOLOGY: "technology",
    }

    def build_request(self, api_key, category, locale, query, page, page_size):
        params = self.auth_params(api_key)
        params.update({"pageSize": page_size, "page": page})
        search = query or locale.query
        if search:
            params.update({"q": search, "language": locale.language, "sortBy": "publishedAt"})
            return f"{self.base_url}/everything", params, {}
        if locale.country:
            params["country"] = locale.country
        # top-headlines needs at least one filter
        params["category"] = self.map_category(category) or "general"
        return f"{self.base_url}/top-headlines", params, {}

    def parse_payload(self, payload):
        if payload.get("status") not in (None, "ok"):
            raise ValueError(f"NewsAPI status {payload.get('status')}: {payload.get('message')}")
        articles = []
        for item in payload["articles"]:
            # Articles pulled by the publisher are kept as "[Removed]" placeholders
            if item.get("title") == "[Removed]":
                continue
            source = item.get("source") or {}
            article = self.make_article(
                title=item.get("title"),
                url=item.get("url"),
                published=item.get("publishedAt"),
                source_name=source.get("name"),
                source_id=source.get("id"),
                author=item.get("author"),
                description=item.get("description"),
                image_url=item.get("urlToImage"),
                content=item.get("content"),
            )
            if article:
                articles.append(article)
        return articles


class NewsDataIOAdapter(RestJsonAdapter):
    provider_id = "newsdataio"
    display_name = "NewsData.io"
    base_url = "https://newsdata.io/api/1/news"
    key_param = "apikey"
    supports_search = True
    category_map = {
        NewsCategory.GENERAL: "top",
        NewsCategory.POLITICS: "politics",
        NewsCategory.SPORTS: "sports",
        NewsCategory.BUSINESS: "business",
        NewsCategory.TECHNOLOGY: "technology",
        NewsCategory.WORLD: "world",
        NewsCategory.ENTERTAINMENT: "entertainment",
        NewsCategory.CRIME: "crime",
        NewsCategory.LIFESTYLE: "lifestyle",
        NewsCategory.HEALTH: "health",
        NewsCategory.SCIENCE: "science",
    }

    def build_request(self, api_key, category, locale, query, page, page_size):
        params = self.auth_params(api_key)
        params["language"] = locale.language
        if locale.country:
            params["country"] = locale.country
        mapped = self.map_category(category)
        if mapped:
            params["category"] = mapped
        search = query or locale.query
        if search:
            params["q"] = search
        return self.base_url, params, {}

    @staticmethod
    def _paid_field(value: Optional[str]) -> Optional[str]:
        if value and value.upper().startswith("ONLY AVAILABLE IN PAID PLANS"):
            return None
        return value

    def parse_payload(self, payload):
        if payload.get("status") != "success":
            raise ValueError(f"NewsData.io status {payload.get('status')}")
        articles = []
        for item in payload.get("results") or []:
            creators = item.get("creator") or []
            metadata = {}
            if item.get("language"):
                metadata["language"] = str(item["language"])
            if item.get("country"):
                metadata["region"] = ",".join(item["country"])
            article = self.make_article(
                title=item.get("title"),
                url=item.get("link"),
                published=item.get("pubDate"),
                source_name=item.get("source_name") or item.get("source_id"),
                source_id=item.get("source_id"),
                author=", ".join(creators) if creators else None,
                description=clean_text(self._paid_field(item.get("description"))),
                image_url=item.get("image_url"),
                content=self._paid_field(item.get("content")),
                metadata=metadata,
            )
            if article:
                articles.append(article)
        return articles


class GuardianAdapter(RestJsonAdapter):
    provider_id = "guardian"
    display_name = "The Guardian"
    base_url = "https://content.guardianapis.com/search"
    key_param = "api-key"
    supports_search = True
    category_map = {
        NewsCategory.POLITICS: "politics",
        NewsCategory.BUSINESS: "business",
        NewsCategory.TECHNOLOGY: "technology",
        NewsCategory.ENTERTAINMENT: "culture",
        NewsCategory.SPORTS: "sport",
        NewsCategory.SCIENCE: "science",
        NewsCategory.HEALTH: "society",
        NewsCategory.WORLD: "world",
        NewsCategory.LIFESTYLE: "lifeandstyle",
    }

    def build_request(self, api_key, category, locale, query, page, page_size):
        params = self.auth_params(api_key)
        params.update({
            "show-fields": "headline,trailText,thumbnail,bodyText,byline",
            "page-size": page_size,
            "page": page,
        })
        search = query or locale.query
        if search:
            params.update({"q": search, "order-by": "relevance"})
        else:
            params["order-by"] = "newest"
            section = self.map_category(category)
            if section:
                params["section"] = section
        return self.base_url, params, {}

    def parse_payload(self, payload):
        articles = []
        for item in payload["response"]["results"]:
            fields = item.get("fields") or {}
            article = self.make_article(
                title=fields.get("headline") or item.get("webTitle"),
                url=item.get("webUrl"),
                published=item.get("webPublicationDate"),
                source_name=self.display_name,
                source_id="the-guardian",
                author=fields.get("byline"),
                description=clean_text(fields.get("trailText")),
                image_url=fields.get("thumbnail"),
                content=fields.get("bodyText"),
                metadata={"section": item["sectionName"]} if item.get("sectionName") else None,
            )
            if article:
                articles.append(article)
        return articles


class RapidAPINewsAdapter(RestJsonAdapter):
    """
    Real-Time News Data on RapidAPI. Authenticated by headers, not a query
    parameter, and always driven by a search query.
    """
    provider_id = "rapidapi"
    display_name = "RapidAPI News"
    host = "real-time-news-data.p.rapidapi.com"
    base_url = f"https://{host}/search"
    supports_search = True
    category_map = {
        NewsCategory.GENERAL: "news",
        NewsCategory.POLITICS: "politics",
        NewsCategory.SPORTS: "sports",
        NewsCategory.BUSINESS: "business",
        NewsCategory.TECHNOLOGY: "technology",
        NewsCategory.WORLD: "world news",
        NewsCategory.ENTERTAINMENT: "entertainment",
        NewsCategory.CRIME: "crime",
        NewsCategory.LIFESTYLE: "lifestyle",
        NewsCategory.AUTOMOTIVE: "automotive",
        NewsCategory.HEALTH: "health",
        NewsCategory.SCIENCE: "science",
    }

    def build_request(self, api_key, category, locale, query, page, page_size):
        params = {
            "query": query or locale.query or self.map_category(category) or "news",
            "limit": page_size,
            "time_published": "anytime",
            "lang": locale.language.lower(),
        }
        if locale.country:
            params["country"] = locale.country.upper()
        headers = {"X-RapidAPI-Key": api_key or "", "X-RapidAPI-Host": self.host}
        return self.base_url, params, headers

    def parse_payload(self, payload):
        items = payload.get("news")
        if items is None:
            items = payload.get("data")
        articles = []
        for item in items or []:
            article = self.make_article(
                title=item.get("title"),
                url=item.get("link") or item.get("url"),
                published=(
                    item.get("pubDate")
                    or item.get("published_date")
                    or item.get("published_datetime_utc")
                ),
                source_name=item.get("source") or item.get("source_name"),
                author=item.get("author"),
                description=item.get("description") or item.get("snippet"),
                image_url=item.get("image") or item.get("photo_url"),
            )
            if article:
                articles.append(article)
        return articles


class MediaStackAdapter(RestJsonAdapter):
    provider_id = "mediastack"
    display_name = "MediaStack"
    base_url = "http://api.mediastack.com/v1/news"
    key_param = "access_key"
    supports_search = True
    category_map = {
        NewsCategory.GENERAL: "general",
        NewsCategory.BUSINESS: "business",
        NewsCategory.ENTERTAINMENT: "entertainment",
        NewsCategory.HEALTH: "health",
        NewsCategory.SCIENCE: "science",
        NewsCategory.SPORTS: "sports",
        NewsCategory.TECHNOLOGY: "technology",
    }

    def build_request(self, api_key, category, locale, query, page, page_size):
        params = self.auth_params(api_key)
        params.update({"languages": locale.language, "limit": page_size, "sort": "published_desc"})
        if page > 1:
            params["offset"] = (page - 1) * page_size
        if locale.country:
            params["countries"] = locale.country
        search = query or locale.query
        if search:
            params["keywords"] = search
        else:
            params["categories"] = self.map_category(category) or "general"
        return self.base_url, params, {}

    def parse_payload(self, payload):
        if "error" in payload:
            error = payload["error"] or {}
            raise ValueError(f"MediaStack error {error.get('code')}: {error.get('message')}")
        articles = []
        for item in payload["data"]:
            metadata = {}
            for name in ("category", "language", "country"):
                if item.get(name):
                    metadata[name] = str(item[name])
            article = self.make_article(
                title=item.get("title"),
                url=item.get("url"),
                published=item.get("published_at"),
                source_name=item.get("source"),
                author=item.get("author"),
                description=clean_text(item.get("description")),
                image_url=item.get("image"),
                metadata=metadata,
            )
            if article:
                articles.append(article)
        return articles


class RedditAdapter(RestJsonAdapter):
    """
    Hot posts of a category's subreddit. Keyless, and link posts only: a
    self post is kept when it scored at least SELF_POST_MIN_SCORE.
    """
    provider_id = "reddit"
    display_name = "Reddit"
    base_url = "https://www.reddit.com"
    requires_key = False
    SELF_POST_MIN_SCORE = 1000
    default_subreddit = "worldnews"
    category_map = {
        NewsCategory.GENERAL: "news",
        NewsCategory.POLITICS: "politics",
        NewsCategory.BUSINESS: "business",
        NewsCategory.TECHNOLOGY: "technology",
        NewsCategory.ENTERTAINMENT: "entertainment",
        NewsCategory.SPORTS: "sports",
        NewsCategory.SCIENCE: "science",
        NewsCategory.HEALTH: "health",
    }

    def supports(self, locale: Locale, query: Optional[str] = None) -> bool:
        # Subreddit listings cannot be searched or scoped to a region
        return query is None and locale.query is None

    def build_request(self, api_key, category, locale, query, page, page_size):
        subreddit = self.map_category(category) or self.default_subreddit
        return f"{self.base_url}/r/{subreddit}/hot.json", {"limit": page_size, "raw_json": 1}, {}

    @staticmethod
    def _image(post: Dict[str, Any]) -> Optional[str]:
        images = (post.get("preview") or {}).get("images") or []
        if images:
            url = (images[0].get("source") or {}).get("url")
            if url:
                return url.replace("&amp;", "&")
        thumbnail = post.get("thumbnail") or ""
        if thumbnail.startswith("http"):
            return thumbnail
        return None

    def parse_payload(self, payload):
        articles = []
        for child in payload["data"]["children"]:
            post = child["data"]
            score = int(post.get("score") or 0)
            is_self = "self." in (post.get("domain") or "")
            if is_self and score < self.SELF_POST_MIN_SCORE:
                continue
            permalink = post.get("permalink") or ""
            url = f"https://reddit.com{permalink}" if is_self else post.get("url")
            subreddit = post.get("subreddit") or self.default_subreddit
            created = post.get("created_utc") or post.get("created")
            published = datetime.fromtimestamp(float(created), timezone.utc).isoformat() if created else None
            article = self.make_article(
                title=post.get("title"),
                url=url,
                published=published,
                source_name=f"r/{subreddit}",
                source_id=f"reddit-{subreddit}",
                author=f"u/{post['author']}" if post.get("author") else None,
                description=clean_text(post.get("selftext")),
                image_url=self._image(post),
                metadata={
                    "score": str(score),
                    "comments": str(int(post.get("num_comments") or 0)),
                    "subreddit": subreddit,
                    "permalink": permalink,
                },
            )
            if article:
                articles.append(article)
        return articles
