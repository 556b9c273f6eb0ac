"""
News categories, ordered by importance.
"""
from enum import Enum
from typing import Optional, Union


class NewsCategory(str, Enum):
    GENERAL = "general"
    POLITICS = "politics"
    SPORTS = "sports"
    BUSINESS = "business"
    TECHNOLOGY = "technology"
    WORLD = "world"
    ENTERTAINMENT = "entertainment"
    CRIME = "crime"
    LIFESTYLE = "lifestyle"
    AUTOMOTIVE = "automotive"
    HEALTH = "health"
    SCIENCE = "science"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: Union[str, "NewsCategory", None]) -> Optional["NewsCategory"]:
        """
        Convert a user-supplied category name.

        Args:
            value: Category name, member, or None

        Returns:
            The matching category, or None when value is empty

        Raises:
            ValueError: If the name is not a known category
        """
        if value is None or isinstance(value, cls):
            return value
        name = value.strip().lower()
        if not name:
            return None
        return cls(name)
