"""
Tests for provider adapters: REST request building, payload parsing and RSS/Atom feeds.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import web

from newsmux.core.categories import NewsCategory
from newsmux.core.location import Locale
from newsmux.exceptions import DecodingError, ServerError
from newsmux.fetchers.rest import (
    GNewsAdapter,
    GuardianAdapter,
    MediaStackAdapter,
    NewsAPIAdapter,
    NewsDataIOAdapter,
    RapidAPINewsAdapter,
    RedditAdapter,
    RestJsonAdapter,
)
from newsmux.fetchers.rss import RSSFeedAdapter, parse_feed
from newsmux.fetchers.sources import feeds_for
from newsmux.utils.http import HttpClient

from tests.conftest import NOW
from tests.test_http import serve

RSS_SAMPLE = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>ANSA</title>
    <item>
      <title>Governo, nuova legge di bilancio</title>
      <link>https://www.ansa.it/1</link>
      <description><![CDATA[<p>Il <b>governo</b> approva</p>]]></description>
      <pubDate>Wed, 15 Jan 2025 10:00:00 +0100</pubDate>
      <dc:creator>Redazione</dc:creator>
      <media:content url="https://www.ansa.it/1.jpg" medium="image"/>
    </item>
    <item>
      <title>Senza data</title>
      <link>https://www.ansa.it/2</link>
      <enclosure url="https://www.ansa.it/2.png" type="image/png"/>
    </item>
    <item>
      <title></title>
      <link>https://www.ansa.it/3</link>
    </item>
  </channel>
</rss>
"""

ATOM_SAMPLE = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example</title>
  <entry>
    <title>Atom headline</title>
    <link rel="alternate" href="https://example.com/a"/>
    <published>2025-01-15T09:30:00Z</published>
    <author><name>Jane Roe</name></author>
    <summary>Short summary</summary>
  </entry>
</feed>
"""


@pytest.fixture
def italy():
    return Locale("it", "en")


class TestParseFeed:
    """Tests for parse_feed"""

    def test_rss_items(self):
        articles = parse_feed(RSS_SAMPLE, "ANSA", clock=lambda: NOW)
        assert [a.url for a in articles] == ["https://www.ansa.it/1", "https://www.ansa.it/2"]

        first = articles[0]
        assert first.source.name == "ANSA"
        assert first.description == "Il governo approva"
        assert first.author == "Redazione"
        assert first.image_url == "https://www.ansa.it/1.jpg"
        assert first.published_at.hour == 9
        assert not first.date_inferred

        second = articles[1]
        assert second.image_url == "https://www.ansa.it/2.png"
        assert second.date_inferred
        assert second.published_at == NOW

    def test_atom_entries(self):
        articles = parse_feed(ATOM_SAMPLE, "Example")
        assert len(articles) == 1
        assert articles[0].url == "https://example.com/a"
        assert articles[0].author == "Jane Roe"
        assert articles[0].description == "Short summary"

    def test_limit(self):
        assert len(parse_feed(RSS_SAMPLE, "ANSA", limit=1)) == 1

    def test_malformed_xml(self):
        with pytest.raises(DecodingError):
            parse_feed("<rss><channel>", "Broken")


class TestRSSFeedAdapter:
    """Tests for RSSFeedAdapter"""

    SOURCES = {
        "it": {
            NewsCategory.GENERAL: [("ANSA", "https://feed/1"), ("AGI", "https://feed/2")],
        },
    }

    def test_supports(self, italy):
        adapter = RSSFeedAdapter(sources=self.SOURCES)
        assert adapter.supports(italy)
        assert not adapter.supports(Locale("us", "en"))
        assert not adapter.supports(italy, query="rome")
        assert not adapter.supports(Locale(None, "en", query="Europe"))

    def test_feeds_fall_back_to_general(self):
        assert feeds_for("it", NewsCategory.CRIME, self.SOURCES) == self.SOURCES["it"][NewsCategory.GENERAL]
        assert feeds_for("fr", NewsCategory.GENERAL, self.SOURCES) == []

    @pytest.mark.asyncio
    async def test_one_failing_feed_is_skipped(self, italy):
        client = MagicMock()
        client.fetch_text = AsyncMock(side_effect=[RSS_SAMPLE, ServerError(500)])
        adapter = RSSFeedAdapter(sources=self.SOURCES, clock=lambda: NOW)
        articles = await adapter.fetch(client, None, NewsCategory.GENERAL, italy)
        assert len(articles) == 2

    @pytest.mark.asyncio
    async def test_all_feeds_failing_raises(self, italy):
        client = MagicMock()
        client.fetch_text = AsyncMock(side_effect=ServerError(500))
        adapter = RSSFeedAdapter(sources=self.SOURCES)
        with pytest.raises(ServerError):
            await adapter.fetch(client, None, NewsCategory.GENERAL, italy)


class TestRestAdapters:
    """Tests for REST request building and payload parsing"""

    def test_gnews_request(self, italy):
        url, params, headers = GNewsAdapter().build_request("key", NewsCategory.POLITICS, italy, None, 2, 10)
        assert url.endswith("/top-headlines")
        assert params == {"apikey": "key", "lang": "en", "max": 10, "page": 2, "country": "it", "topic": "nation"}
        assert headers == {}

        url, params, _ = GNewsAdapter().build_request("key", None, Locale(None, "en", query="Europe"), None, 1, 10)
        assert url.endswith("/search")
        assert params["q"] == "Europe"
        assert "country" not in params

    def test_gnews_payload(self):
        payload = {"articles": [
            {"title": "A", "url": "https://x.com/1", "publishedAt": "2025-01-15T10:00:00Z",
             "source": {"name": "Reuters"}, "image": "https://x.com/1.jpg"},
            {"title": "", "url": "https://x.com/2", "publishedAt": "2025-01-15T10:00:00Z"},
        ]}
        articles = GNewsAdapter().parse_payload(payload)
        assert len(articles) == 1
        assert articles[0].source.name == "Reuters"
        assert articles[0].metadata["provider"] == "gnews"

    def test_gnews_payload_missing_field(self):
        with pytest.raises(KeyError):
            GNewsAdapter().parse_payload({"totalArticles": 0})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        [],
        {"articles": [None]},
        {"articles": "unavailable"},
        {"articles": [{"title": "A", "url": "https://x.com/1", "source": "Reuters"}]},
    ])
    async def test_misshapen_payload_is_decoding_error(self, italy, body):
        """A list body, a null item or a string where an object belongs all fail as DecodingError"""
        async def handler(request):
            return web.json_response(body)

        async with serve([("/api/v4/top-headlines", handler)]) as (server, _):
            adapter = GNewsAdapter()
            adapter.base_url = str(server.make_url("/api/v4"))
            async with HttpClient() as client:
                with pytest.raises(DecodingError):
                    await adapter.fetch(client, "key", None, italy)

    def test_newsapi(self, italy):
        url, params, _ = NewsAPIAdapter().build_request("key", None, italy, None, 1, 20)
        assert url.endswith("/top-headlines")
        assert params["apiKey"] == "key"
        assert params["category"] == "general"

        payload = {"status": "ok", "articles": [
            {"title": "[Removed]", "url": "https://removed.com"},
            {"title": "Kept", "url": "https://x.com/1", "publishedAt": "2025-01-15T10:00:00Z",
             "source": {"id": "bbc", "name": "BBC"}},
        ]}
        articles = NewsAPIAdapter().parse_payload(payload)
        assert [a.title for a in articles] == ["Kept"]
        assert articles[0].source.id == "bbc"

        with pytest.raises(ValueError):
            NewsAPIAdapter().parse_payload({"status": "error", "message": "apiKeyInvalid"})

    def test_newsdataio_payload(self):
        payload = {"status": "success", "results": [{
            "title": "Tech news",
            "link": "https://x.com/1",
            "pubDate": "2025-01-15 10:00:00",
            "source_id": "ansa",
            "creator": ["Anna", "Marco"],
            "description": "ONLY AVAILABLE IN PAID PLANS",
            "language": "english",
            "country": ["italy"],
        }]}
        article = NewsDataIOAdapter().parse_payload(payload)[0]
        assert article.author == "Anna, Marco"
        assert article.description is None
        assert article.metadata["region"] == "italy"
        assert article.metadata["language"] == "english"

    def test_guardian(self, italy):
        _, params, _ = GuardianAdapter().build_request("key", NewsCategory.SPORTS, italy, None, 1, 10)
        assert params["api-key"] == "key"
        assert params["section"] == "sport"
        assert params["order-by"] == "newest"

        payload = {"response": {"results": [{
            "webTitle": "Match report",
            "webUrl": "https://theguardian.com/1",
            "webPublicationDate": "2025-01-15T10:00:00Z",
            "sectionName": "Sport",
            "fields": {"trailText": "<p>Late winner</p>", "byline": "Sam Smith"},
        }]}}
        article = GuardianAdapter().parse_payload(payload)[0]
        assert article.description == "Late winner"
        assert article.metadata["section"] == "Sport"

    def test_rapidapi_uses_headers(self, italy):
        url, params, headers = RapidAPINewsAdapter().build_request("key", NewsCategory.WORLD, italy, None, 1, 10)
        assert headers == {"X-RapidAPI-Key": "key", "X-RapidAPI-Host": "real-time-news-data.p.rapidapi.com"}
        assert params["query"] == "world news"
        assert params["country"] == "IT"

        articles = RapidAPINewsAdapter().parse_payload({"data": [
            {"title": "A", "link": "https://x.com/1", "published_datetime_utc": "2025-01-15T10:00:00.000Z",
             "source_name": "Reuters", "photo_url": "https://x.com/1.jpg"},
        ]})
        assert articles[0].image_url == "https://x.com/1.jpg"
        assert not articles[0].date_inferred

    @pytest.mark.asyncio
    async def test_fetch_goes_through_client(self, italy):
        client = MagicMock()
        client.fetch_json = AsyncMock(return_value=[])
        adapter = GNewsAdapter()
        await adapter.fetch(client, "key", None, italy)
        args, kwargs = client.fetch_json.call_args
        assert args[0] == "https://gnews.io/api/v4/top-headlines"
        assert kwargs["params"]["apikey"] == "key"
        assert kwargs["model"] == adapter.parse_payload

    def test_adapter_without_parser_cannot_be_built(self):
        class HalfAdapter(RestJsonAdapter):
            provider_id = "half"

            def build_request(self, api_key, category, locale, query, page, page_size):
                return "https://x.com", {}, {}

        with pytest.raises(TypeError):
            HalfAdapter()

    def test_mediastack(self, italy):
        url, params, _ = MediaStackAdapter().build_request("key", NewsCategory.HEALTH, italy, None, 2, 10)
        assert url == "http://api.mediastack.com/v1/news"
        assert params["access_key"] == "key"
        assert params["categories"] == "health"
        assert params["countries"] == "it"
        assert params["offset"] == 10

        _, params, _ = MediaStackAdapter().build_request("key", None, italy, "rome", 1, 10)
        assert params["keywords"] == "rome"
        assert "categories" not in params

        articles = MediaStackAdapter().parse_payload({"data": [
            {"title": "Vaccine study", "url": "https://x.com/1", "source": "ANSA",
             "published_at": "2025-01-15T10:00:00+00:00", "category": "health", "country": "it",
             "description": "<b>Results</b> published"},
            {"title": None, "url": "https://x.com/2"},
        ]})
        assert len(articles) == 1
        assert articles[0].source.name == "ANSA"
        assert articles[0].description == "Results published"
        assert articles[0].metadata["category"] == "health"
        assert articles[0].metadata["provider"] == "mediastack"

        with pytest.raises(ValueError):
            MediaStackAdapter().parse_payload({"error": {"code": "invalid_access_key", "message": "bad key"}})

    def test_reddit_request(self, italy):
        adapter = RedditAdapter()
        url, params, headers = adapter.build_request(None, NewsCategory.SPORTS, italy, None, 1, 15)
        assert url == "https://www.reddit.com/r/sports/hot.json"
        assert params["limit"] == 15
        assert headers == {}
        url, _, _ = adapter.build_request(None, NewsCategory.CRIME, italy, None, 1, 15)
        assert url.endswith("/r/worldnews/hot.json")

        assert not adapter.requires_key
        assert adapter.supports(italy)
        assert not adapter.supports(italy, "rome")
        assert not adapter.supports(Locale(None, "en", query="Europe"))

    def test_reddit_payload(self):
        payload = {"data": {"children": [
            {"data": {
                "title": "Summit ends without deal",
                "url": "https://reuters.com/summit",
                "domain": "reuters.com",
                "author": "newsbot",
                "subreddit": "worldnews",
                "permalink": "/r/worldnews/comments/abc/summit/",
                "created_utc": 1736935200,
                "score": 523,
                "num_comments": 88,
                "preview": {"images": [{"source": {"url": "https://i.redd.it/a.jpg?w=1&amp;s=x"}}]},
            }},
            {"data": {
                "title": "Discussion thread", "url": "https://reddit.com/r/worldnews/x",
                "domain": "self.worldnews", "permalink": "/r/worldnews/comments/def/", "score": 40,
            }},
            {"data": {
                "title": "Megathread", "url": "https://reddit.com/r/worldnews/y",
                "domain": "self.worldnews", "permalink": "/r/worldnews/comments/ghi/", "score": 5000,
                "thumbnail": "self", "selftext": "Live updates",
            }},
        ]}}
        articles = RedditAdapter().parse_payload(payload)
        assert [a.title for a in articles] == ["Summit ends without deal", "Megathread"]

        link = articles[0]
        assert link.url == "https://reuters.com/summit"
        assert link.author == "u/newsbot"
        assert link.source.name == "r/worldnews"
        assert link.source.id == "reddit-worldnews"
        assert link.image_url == "https://i.redd.it/a.jpg?w=1&s=x"
        assert link.published_at.isoformat() == "2025-01-15T10:00:00+00:00"
        assert link.metadata["score"] == "523"
        assert link.metadata["comments"] == "88"
        assert link.metadata["subreddit"] == "worldnews"

        thread = articles[1]
        assert thread.url == "https://reddit.com/r/worldnews/comments/ghi/"
        assert thread.image_url is None
        assert thread.description == "Live updates"
