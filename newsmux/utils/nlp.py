"""
Text utilities for newsmux.
"""
import re
import warnings
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

DEFAULT_CATEGORY = "general"

# Ordered: on equal match counts the earlier category wins
CATEGORY_KEYWORDS: List[Tuple[str, List[str]]] = [
    ("technology", ["tech", "apple", "google", "ai", "software", "smartphone", "tecnologia"]),
    ("sports", ["sport", "football", "cricket", "calcio", "soccer", "tennis"]),
    ("business", ["business", "market", "stock", "economy", "economia", "finance"]),
    ("health", ["health", "medical", "hospital", "salute"]),
    ("science", ["science", "scientist", "research", "scienza"]),
    ("entertainment", ["entertainment", "movie", "music", "film", "cinema"]),
    ("politics", ["politics", "election", "government", "politica", "parliament"]),
]


class CategoryClassifier:
    """
    Rule-based category inference from an article's title and description.
    """
    def __init__(self, keywords: Optional[List[Tuple[str, List[str]]]] = None):
        self.category_keywords = keywords or CATEGORY_KEYWORDS
        self._patterns: Dict[str, List[re.Pattern]] = {
            category: [self._compile(word) for word in words]
            for category, words in self.category_keywords
        }

    @staticmethod
    def _compile(word: str) -> re.Pattern:
        # Short keywords like "ai" must match a whole word, longer ones a word prefix
        if len(word) <= 2:
            return re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)
        return re.compile(rf"\b{re.escape(word)}\w*", re.IGNORECASE)

    def scores(self, text: str) -> Dict[str, int]:
        return {
            category: sum(len(pattern.findall(text)) for pattern in patterns)
            for category, patterns in self._patterns.items()
        }

    def infer(self, title: str, description: Optional[str] = None) -> str:
        """
        Infer a category name.

        Args:
            title: Article headline
            description: Article description (optional)

        Returns:
            The best matching category, or "general" when nothing matches
        """
        text = f"{title} {description or ''}"
        best_category, best_count = DEFAULT_CATEGORY, 0
        for category, count in self.scores(text).items():
            if count > best_count:
                best_category, best_count = category, count
        return best_category


def clean_text(html: Optional[str]) -> Optional[str]:
    """
    Reduce an HTML fragment to display text.

    Args:
        html: Markup from a feed description or content field

    Returns:
        Text with tags removed, entities decoded and whitespace collapsed,
        or None when nothing is left
    """
    if not html:
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        text = BeautifulSoup(html, "html.parser").get_text(" ")
    text = re.sub(r"\s+", " ", text).strip()
    return text or None


def truncate_words(text: str, max_length: int = 200) -> str:
    """Truncate text at a word boundary, appending an ellipsis."""
    if len(text) <= max_length:
        return text
    cut = text[:max_length].rsplit(" ", 1)[0]
    return cut.rstrip(",;:.") + "..."


def mask_secret(secret: Optional[str]) -> str:
    """Render a credential safely for logs."""
    if not secret:
        return "<empty>"
    if len(secret) <= 8:
        return "****"
    return f"{secret[:4]}...{secret[-4:]}"
