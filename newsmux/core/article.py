"""
Article data model for newsmux.
"""
import email.utils
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

# Formats tried after ISO-8601 and RFC-822 with a zone
FALLBACK_DATE_FORMATS = (
    "%a, %d %b %Y %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
)

DATE_INFERRED = "date_inferred"


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def parse_published_at(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a provider publish date into an aware UTC datetime.

    Accepts ISO-8601 with or without fractional seconds and offsets (a trailing
    ``Z`` included), RFC-822 with or without a zone, and ``YYYY-MM-DD HH:MM:SS``.
    Naive values are taken as UTC.

    Args:
        value: Raw date string from the provider

    Returns:
        The parsed datetime, or None if the value is empty or unparseable
    """
    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    parsed = None
    iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        pass

    if parsed is None:
        try:
            parsed = email.utils.parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            parsed = None

    if parsed is None:
        for fmt in FALLBACK_DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class ArticleSource:
    """
    Publisher of an article.
    """
    name: str
    id: Optional[str] = None


@dataclass(frozen=True)
class Article:
    """
    Represents a normalized news article.

    The URL is the identity: two articles whose URLs match case-insensitively
    are the same article regardless of their other fields.
    """
    source: ArticleSource
    title: str
    url: str
    published_at: datetime
    author: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    content: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        if not (self.title or "").strip():
            raise ValueError(f"Article title must not be empty (url: {self.url!r})")
        if not (self.url or "").strip():
            raise ValueError(f"Article url must not be empty (title: {self.title!r})")

    @property
    def identity(self) -> str:
        return self.url.lower()

    @property
    def date_inferred(self) -> bool:
        """True when the provider date was missing or unparseable."""
        return self.metadata.get(DATE_INFERRED) == "true"

    @classmethod
    def create(
        cls,
        source: ArticleSource,
        title: str,
        url: str,
        published: Optional[str],
        now: Optional[Callable[[], datetime]] = None,
        **kwargs: Any
    ) -> "Article":
        """
        Build an article from a raw provider date.

        Unparseable dates fall back to the current time and the article is
        flagged with ``metadata["date_inferred"] = "true"``.

        Args:
            source: Publisher of the article
            title: Headline
            url: Canonical link
            published: Raw date string from the provider
            now: Clock used for the fallback date
            **kwargs: Remaining Article fields

        Returns:
            A new Article
        """
        metadata = dict(kwargs.pop("metadata", None) or {})
        published_at = parse_published_at(published)
        if published_at is None:
            published_at = (now or utcnow)()
            metadata[DATE_INFERRED] = "true"
        return cls(
            source=source,
            title=title,
            url=url,
            published_at=published_at,
            metadata=metadata,
            **kwargs
        )

    def with_metadata(self, **values: str) -> "Article":
        merged = dict(self.metadata)
        merged.update(values)
        return replace(self, metadata=merged)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["published_at"] = self.published_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        source = data.get("source") or {}
        published_at = parse_published_at(data.get("published_at")) or utcnow()
        return cls(
            source=ArticleSource(name=source.get("name", ""), id=source.get("id")),
            title=data["title"],
            url=data["url"],
            published_at=published_at,
            author=data.get("author"),
            description=data.get("description"),
            image_url=data.get("image_url"),
            content=data.get("content"),
            metadata=dict(data.get("metadata") or {}),
        )
