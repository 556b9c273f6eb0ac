"""
Locale handling and location tiers for newsmux.
"""
import locale
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY = "it"
DEFAULT_LANGUAGE = "en"

EUROPEAN_COUNTRIES = frozenset({
    "at", "be", "bg", "ch", "cy", "cz", "de", "dk", "ee", "es", "fi", "fr",
    "gb", "gr", "hr", "hu", "ie", "is", "it", "lt", "lu", "lv", "mt", "nl",
    "no", "pl", "pt", "ro", "se", "si", "sk",
})


@dataclass(frozen=True)
class Locale:
    """
    Country and language pair used to scope provider requests.

    A locale without a country is the global tier.
    """
    country: Optional[str]
    language: str = DEFAULT_LANGUAGE
    query: Optional[str] = None

    @property
    def is_global(self) -> bool:
        return self.country is None

    @property
    def is_european(self) -> bool:
        return self.country in EUROPEAN_COUNTRIES

    @property
    def tag(self) -> str:
        return f"{self.country or 'global'}-{self.language}"


def detect_locale(country: Optional[str] = None, language: Optional[str] = None) -> Locale:
    """
    Resolve the user's locale from explicit values or the process locale.

    Args:
        country: Explicit two-letter country code
        language: Explicit two-letter language code

    Returns:
        Locale, defaulting to Italy with English content
    """
    if not country or not language:
        name = locale.getlocale()[0] or os.environ.get("LANG", "")
        name = name.split(".")[0]
        if "_" in name:
            detected_language, detected_country = name.split("_", 1)
            if len(detected_country) == 2 and not country:
                country = detected_country
            if len(detected_language) == 2 and not language:
                language = detected_language
    result = Locale(
        country=(country or DEFAULT_COUNTRY).lower(),
        language=(language or DEFAULT_LANGUAGE).lower(),
    )
    logger.debug(f"Using locale {result.tag}")
    return result


def location_tiers(user: Locale, regional_query: str = "Europe") -> List[Locale]:
    """
    Build the local, regional and global tiers for a user locale.

    The regional tier only exists for European countries.

    Args:
        user: The user's locale
        regional_query: Free-text query used for the regional tier

    Returns:
        Tiers in priority order
    """
    tiers = [Locale(country=user.country, language=user.language)]
    if user.is_european:
        tiers.append(Locale(country=None, language=user.language, query=regional_query))
    tiers.append(Locale(country=None, language=DEFAULT_LANGUAGE))
    return tiers
