"""
Generic RSS/Atom provider for newsmux.

One adapter serves every feed in the source table, so adding a publisher is a
data change in sources.py.
"""
import asyncio
import logging
import xml.etree.ElementTree as ET
from typing import Callable, Dict, List, Optional

from newsmux.core.article import Article, ArticleSource, utcnow
from newsmux.core.categories import NewsCategory
from newsmux.core.location import Locale
from newsmux.exceptions import DecodingError, NetworkError
from newsmux.fetchers.base import ProviderAdapter
from newsmux.fetchers.sources import SOURCES, FeedList, feeds_for
from newsmux.utils.http import HttpClient
from newsmux.utils.nlp import clean_text

logger = logging.getLogger(__name__)

NS = {
    "atom": "http://www.w3.org/2005/Atom",
    "content": "http://purl.org/rss/1.0/modules/content/",
    "dc": "http://purl.org/dc/elements/1.1/",
    "media": "http://search.yahoo.com/mrss/",
}


def _text(element: Optional[ET.Element]) -> Optional[str]:
    if element is None or element.text is None:
        return None
    value = element.text.strip()
    return value or None


def _image_url(item: ET.Element) -> Optional[str]:
    media = item.find("media:content", NS)
    if media is not None and media.get("url"):
        return media.get("url")
    thumbnail = item.find("media:thumbnail", NS)
    if thumbnail is not None and thumbnail.get("url"):
        return thumbnail.get("url")
    enclosure = item.find("enclosure")
    if enclosure is not None and enclosure.get("url"):
        kind = enclosure.get("type") or "image/"
        if kind.startswith("image/"):
            return enclosure.get("url")
    return None


def _atom_link(entry: ET.Element) -> Optional[str]:
    for link in entry.findall("atom:link", NS):
        if link.get("rel") in (None, "alternate") and link.get("href"):
            return link.get("href")
    return None


def parse_feed(
    xml_text: str,
    source_name: str,
    clock: Callable = utcnow,
    limit: Optional[int] = None
) -> List[Article]:
    """
    Parse an RSS 2.0 or Atom document into Articles.

    Args:
        xml_text: The feed document
        source_name: Publisher name from the source table
        clock: Clock used for items without a usable date
        limit: Maximum number of items to keep

    Returns:
        Articles in feed order; items without a title or link are skipped

    Raises:
        DecodingError: If the document is not well-formed XML
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise DecodingError(f"Invalid feed from {source_name}: {e}", xml_text[:200]) from e

    source = ArticleSource(name=source_name)
    articles = []

    for item in root.iter("item"):
        description = _text(item.find("description"))
        content = _text(item.find("content:encoded", NS))
        fields = {
            "title": clean_text(_text(item.find("title"))),
            "url": _text(item.find("link")),
            "published": _text(item.find("pubDate")) or _text(item.find("dc:date", NS)),
            "author": _text(item.find("author")) or _text(item.find("dc:creator", NS)),
            "description": clean_text(description),
            "content": clean_text(content),
            "image_url": _image_url(item),
        }
        article = _build(source, fields, clock)
        if article:
            articles.append(article)

    for entry in root.iter(f"{{{NS['atom']}}}entry"):
        fields = {
            "title": clean_text(_text(entry.find("atom:title", NS))),
            "url": _atom_link(entry),
            "published": _text(entry.find("atom:published", NS)) or _text(entry.find("atom:updated", NS)),
            "author": _text(entry.find("atom:author/atom:name", NS)),
            "description": clean_text(_text(entry.find("atom:summary", NS))),
            "content": clean_text(_text(entry.find("atom:content", NS))),
            "image_url": _image_url(entry),
        }
        article = _build(source, fields, clock)
        if article:
            articles.append(article)

    if limit is not None:
        articles = articles[:limit]
    return articles


def _build(source: ArticleSource, fields: Dict[str, Optional[str]], clock: Callable) -> Optional[Article]:
    title, url = fields.pop("title"), fields.pop("url")
    if not title or not url:
        return None
    return Article.create(
        source=source,
        title=title,
        url=url,
        published=fields.pop("published"),
        now=clock,
        metadata={"provider": "rss"},
        **fields
    )


class RSSFeedAdapter(ProviderAdapter):
    """
    Fetches every feed listed for a country and category concurrently.

    A failing feed is logged and skipped; the adapter only fails when every
    feed fails.
    """
    provider_id = "rss"
    display_name = "RSS Feeds"
    requires_key = False
    supports_search = False

    def __init__(self, sources: Optional[Dict[str, Dict[NewsCategory, FeedList]]] = None, clock: Callable = utcnow):
        self.sources = SOURCES if sources is None else sources
        self.clock = clock

    def supports(self, locale: Locale, query: Optional[str] = None) -> bool:
        # Regional tiers are query driven and feeds cannot be searched
        if query is not None or locale.query is not None:
            return False
        return bool(feeds_for(locale.country, NewsCategory.GENERAL, self.sources))

    async def _fetch_feed(self, client: HttpClient, name: str, url: str, limit: int) -> List[Article]:
        body = await client.fetch_text(url)
        articles = parse_feed(body, name, clock=self.clock, limit=limit)
        logger.debug(f"{name}: {len(articles)} articles from {url}")
        return articles

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
        feeds = feeds_for(locale.country, category, self.sources)
        if not feeds:
            return []

        results = await asyncio.gather(
            *(self._fetch_feed(client, name, url, page_size) for name, url in feeds),
            return_exceptions=True
        )

        articles: List[Article] = []
        errors: List[NetworkError] = []
        for (name, url), result in zip(feeds, results):
            if isinstance(result, NetworkError):
                logger.warning(f"Feed {name} ({url}) failed: {result}")
                errors.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                articles.extend(result)

        if errors and len(errors) == len(feeds):
            raise errors[0]
        return articles
