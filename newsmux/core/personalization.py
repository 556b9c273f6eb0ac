"""
Personalized ranking for newsmux.

A profile accumulates category and source affinity from tracking events
(read, bookmark, skip, share). Ranking orders articles by a weighted score
and keeps the bottom slots as a shuffled "diverse" tail so the feed does not
collapse into a filter bubble.
"""
import json
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

from newsmux.core.article import Article, parse_published_at, utcnow
from newsmux.utils.nlp import CategoryClassifier

logger = logging.getLogger(__name__)

FRESHNESS_WINDOW = timedelta(days=7)
SKIP_PENALTY = 0.5
DIVERSE_FRACTION = 0.2

DEFAULT_SIGNALS: Dict[str, Dict[str, float]] = {
    "read": {"category": 1.0, "source": 0.5},
    "bookmark": {"category": 3.0, "source": 2.0},
    "skip": {"category": -0.2, "source": 0.0},
    "share": {"category": 5.0, "source": 3.0},
}


@dataclass
class ScoringWeights:
    category: float = 0.4
    source: float = 0.2
    freshness: float = 0.2
    novelty: float = 0.2


@dataclass
class UserPreferenceProfile:
    """
    Accumulated reading preferences of one user.
    """
    category_scores: Dict[str, float] = field(default_factory=dict)
    source_scores: Dict[str, float] = field(default_factory=dict)
    read_articles: Set[str] = field(default_factory=set)
    bookmarked_articles: Set[str] = field(default_factory=set)
    skipped_articles: Set[str] = field(default_factory=set)
    total_reading_time: float = 0.0
    articles_read: int = 0
    last_updated: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return not self.category_scores

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category_scores": dict(self.category_scores),
            "source_scores": dict(self.source_scores),
            "read_articles": sorted(self.read_articles),
            "bookmarked_articles": sorted(self.bookmarked_articles),
            "skipped_articles": sorted(self.skipped_articles),
            "total_reading_time": self.total_reading_time,
            "articles_read": self.articles_read,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserPreferenceProfile":
        return cls(
            category_scores={k: float(v) for k, v in (data.get("category_scores") or {}).items()},
            source_scores={k: float(v) for k, v in (data.get("source_scores") or {}).items()},
            read_articles=set(data.get("read_articles") or []),
            bookmarked_articles=set(data.get("bookmarked_articles") or []),
            skipped_articles=set(data.get("skipped_articles") or []),
            total_reading_time=float(data.get("total_reading_time", 0.0)),
            articles_read=int(data.get("articles_read", 0)),
            last_updated=parse_published_at(data.get("last_updated")),
        )


def score_article(
    article: Article,
    profile: UserPreferenceProfile,
    classifier: Optional[CategoryClassifier] = None,
    weights: Optional[ScoringWeights] = None,
    now: Optional[datetime] = None,
    freshness_window: timedelta = FRESHNESS_WINDOW,
    skip_penalty: float = SKIP_PENALTY
) -> float:
    """
    Relevance of an article for a profile.

    Score = category affinity * w_category + source affinity * w_source
    + linear freshness decay over the window * w_freshness
    + w_novelty if unread - skip_penalty if skipped, floored at zero.
    Articles without a real publish date get no freshness credit.

    Args:
        article: Article to score
        profile: User preferences
        classifier: Category inference, a default instance when omitted
        weights: Component weights
        now: Reference time for freshness
        freshness_window: Age at which freshness reaches zero
        skip_penalty: Subtracted for previously skipped URLs

    Returns:
        Non-negative score
    """
    classifier = classifier or CategoryClassifier()
    weights = weights or ScoringWeights()
    now = now or utcnow()

    category = classifier.infer(article.title, article.description)
    score = profile.category_scores.get(category, 0.0) * weights.category
    score += profile.source_scores.get(article.source.name, 0.0) * weights.source

    if not article.date_inferred:
        age = (now - article.published_at).total_seconds()
        freshness = max(0.0, 1.0 - age / freshness_window.total_seconds())
        score += min(1.0, freshness) * weights.freshness

    if article.url not in profile.read_articles:
        score += weights.novelty
    if article.url in profile.skipped_articles:
        score -= skip_penalty

    return max(0.0, score)


def rank_articles(
    articles: List[Article],
    profile: UserPreferenceProfile,
    scorer: Optional[Callable[[Article], float]] = None,
    diverse_fraction: float = DIVERSE_FRACTION,
    rng: Optional[random.Random] = None
) -> List[Article]:
    """
    Order articles for a profile.

    An empty profile gets the whole list shuffled. Otherwise the top
    (1 - diverse_fraction) by descending score come first and the rest
    follow in shuffled order.

    Args:
        articles: Articles to rank
        profile: User preferences
        scorer: Score function, score_article against profile by default
        diverse_fraction: Share of slots given to the shuffled tail
        rng: Random source

    Returns:
        Reordered articles
    """
    rng = rng or random.Random()
    if not articles:
        return []
    if profile.is_empty:
        shuffled = list(articles)
        rng.shuffle(shuffled)
        return shuffled

    scorer = scorer or (lambda article: score_article(article, profile))
    ranked = sorted(articles, key=scorer, reverse=True)
    personalized_count = int(len(ranked) * (1.0 - diverse_fraction))
    personalized = ranked[:personalized_count]
    diverse = ranked[personalized_count:]
    rng.shuffle(diverse)
    return personalized + diverse


class PersonalizationService:
    """
    Tracks user behaviour and personalizes article lists.
    """
    def __init__(
        self,
        profile_path: Optional[str] = None,
        weights: Optional[ScoringWeights] = None,
        signals: Optional[Dict[str, Dict[str, float]]] = None,
        skip_penalty: float = SKIP_PENALTY,
        diverse_fraction: float = DIVERSE_FRACTION,
        freshness_window: timedelta = FRESHNESS_WINDOW,
        classifier: Optional[CategoryClassifier] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.profile_path = Path(profile_path) if profile_path else None
        self.weights = weights or ScoringWeights()
        self.signals = signals or DEFAULT_SIGNALS
        self.skip_penalty = skip_penalty
        self.diverse_fraction = diverse_fraction
        self.freshness_window = freshness_window
        self.classifier = classifier or CategoryClassifier()
        self.rng = rng or random.Random()
        self.clock = clock
        self.profile = self._load()

    def _load(self) -> UserPreferenceProfile:
        if self.profile_path is None or not self.profile_path.exists():
            return UserPreferenceProfile()
        try:
            with open(self.profile_path, "r", encoding="utf-8") as f:
                profile = UserPreferenceProfile.from_dict(json.load(f))
        except (OSError, ValueError) as e:
            logger.error(f"Error loading preferences from {self.profile_path}: {e}")
            return UserPreferenceProfile()
        logger.debug(f"Loaded user preferences from {self.profile_path}")
        return profile

    def save(self) -> None:
        self.profile.last_updated = self.clock()
        if self.profile_path is None:
            return
        try:
            self.profile_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.profile_path, "w", encoding="utf-8") as f:
                json.dump(self.profile.to_dict(), f, indent=2)
        except OSError as e:
            logger.error(f"Error saving preferences to {self.profile_path}: {e}")

    def infer_category(self, article: Article) -> str:
        return self.classifier.infer(article.title, article.description)

    def _apply_signal(self, signal: str, article: Article) -> str:
        weights = self.signals.get(signal, {})
        category = self.infer_category(article)
        scores = self.profile.category_scores
        scores[category] = scores.get(category, 0.0) + weights.get("category", 0.0)
        source_delta = weights.get("source", 0.0)
        if source_delta:
            sources = self.profile.source_scores
            sources[article.source.name] = sources.get(article.source.name, 0.0) + source_delta
        return category

    def track_read(self, article: Article, reading_time: float = 0.0) -> None:
        self.profile.read_articles.add(article.url)
        self.profile.total_reading_time += reading_time
        self.profile.articles_read += 1
        category = self._apply_signal("read", article)
        self.save()
        logger.debug(f"Tracked read: {category}, time: {int(reading_time)}s")

    def track_bookmark(self, article: Article) -> None:
        self.profile.bookmarked_articles.add(article.url)
        category = self._apply_signal("bookmark", article)
        self.save()
        logger.debug(f"Tracked bookmark: {category}")

    def track_skip(self, article: Article) -> None:
        self.profile.skipped_articles.add(article.url)
        self._apply_signal("skip", article)
        self.save()

    def track_share(self, article: Article) -> None:
        category = self._apply_signal("share", article)
        self.save()
        logger.debug(f"Tracked share: {category}")

    def score(self, article: Article) -> float:
        return score_article(
            article,
            self.profile,
            classifier=self.classifier,
            weights=self.weights,
            now=self.clock(),
            freshness_window=self.freshness_window,
            skip_penalty=self.skip_penalty,
        )

    def personalize(self, articles: List[Article]) -> List[Article]:
        """Rank articles for the current profile."""
        if self.profile.is_empty:
            logger.debug("No preferences yet, showing diverse content")
        ranked = rank_articles(
            articles,
            self.profile,
            scorer=self.score,
            diverse_fraction=self.diverse_fraction,
            rng=self.rng,
        )
        logger.debug(f"Personalized {len(ranked)} articles")
        return ranked

    def top_interests(self, limit: int = 5) -> List[str]:
        ordered = sorted(self.profile.category_scores.items(), key=lambda item: item[1], reverse=True)
        return [name.capitalize() for name, _ in ordered[:limit]]

    def reading_stats(self) -> Dict[str, float]:
        read = self.profile.articles_read
        total = self.profile.total_reading_time
        return {
            "articles_read": read,
            "total_time": total,
            "average_time": total / read if read else 0.0,
        }

    def reset(self) -> None:
        self.profile = UserPreferenceProfile()
        self.save()
        logger.debug("Reset user preferences")
