"""
Command-line interface for newsmux.
"""
import sys
import json
import argparse
import logging
import asyncio
from datetime import datetime, timedelta
from typing import List, Optional

from newsmux.config import Config
from newsmux.core.aggregator import NewsAggregator
from newsmux.core.article import Article
from newsmux.core.cache import NewsCache
from newsmux.core.categories import NewsCategory
from newsmux.core.keys import KeyRotationStore
from newsmux.core.location import detect_locale
from newsmux.core.personalization import PersonalizationService, ScoringWeights
from newsmux.exceptions import NewsError, NoDataError
from newsmux.fetchers.registry import build_http_client, build_key_store, build_providers
from newsmux.utils.http import HttpClient
from newsmux.utils.nlp import truncate_words

logger = logging.getLogger(__name__)

MODES = ("all", "location", "single")


def setup_logging(verbose: bool = False) -> None:
    """Log to a dated file and to stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(f"newsmux_{datetime.now().strftime('%Y%m%d')}.log"),
            logging.StreamHandler()
        ]
    )


def parse_args(argv: Optional[List[str]] = None):
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="newsmux - multi-provider news aggregator")
    parser.add_argument("--category", help="News category (general, sports, technology, ...)")
    parser.add_argument("--query", help="Search all providers that support free-text queries")
    parser.add_argument("--country", help="Two-letter country code, detected from the system locale by default")
    parser.add_argument("--language", help="Two-letter language code")
    parser.add_argument("--mode", choices=MODES, help="all: every provider concurrently; "
                        "location: local, regional and global tiers; single: the default provider")
    parser.add_argument("--page", type=int, default=1, help="Page number")
    parser.add_argument("--personalize", action="store_true", help="Rank articles by the stored reading profile")
    parser.add_argument("--profile", help="Path of the JSON reading profile")
    parser.add_argument("--status", action="store_true", help="Show API key rotation status and exit")
    parser.add_argument("--refresh-cache", action="store_true", help="Reload API keys and drop cached feeds")
    parser.add_argument("--limit", type=int, help="Maximum number of articles to print (0 = no limit)", default=0)
    parser.add_argument("--json", action="store_true", help="Print articles as JSON")
    parser.add_argument("--config", help="Path to a YAML or JSON configuration file")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar while fetching")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def build_personalizer(cfg: Config, profile_path: Optional[str] = None) -> PersonalizationService:
    """
    Create the personalization service from the personalization section.

    Args:
        cfg: Loaded configuration
        profile_path: Overrides personalization.profile_path

    Returns:
        PersonalizationService
    """
    weights = cfg.get("personalization.weights", {}) or {}
    return PersonalizationService(
        profile_path=profile_path or cfg.get("personalization.profile_path"),
        weights=ScoringWeights(**weights),
        signals=cfg.get("personalization.signals"),
        skip_penalty=cfg.get("personalization.skip_penalty", 0.5),
        diverse_fraction=cfg.get("personalization.diverse_fraction", 0.2),
        freshness_window=timedelta(days=cfg.get("personalization.freshness_window_days", 7)),
    )


def build_aggregator(
    cfg: Config,
    client: HttpClient,
    keys: Optional[KeyRotationStore] = None,
    country: Optional[str] = None,
    language: Optional[str] = None,
    mode: Optional[str] = None,
    personalize: Optional[bool] = None,
    profile_path: Optional[str] = None,
    show_progress: Optional[bool] = None
) -> NewsAggregator:
    """
    Wire every component from configuration.

    Explicit arguments override the matching configuration values.

    Args:
        cfg: Loaded configuration
        client: Shared HTTP client
        keys: Key store, built from keys.* when omitted
        country: User country
        language: User language
        mode: One of MODES
        personalize: Rank with the reading profile
        profile_path: Reading profile location
        show_progress: Progress bar during fan-out

    Returns:
        NewsAggregator
    """
    keys = keys or build_key_store(cfg)
    providers = build_providers(cfg, client, keys)
    cache = NewsCache(
        max_entries=cfg.get("cache.max_entries", 100),
        ttl=timedelta(seconds=cfg.get("cache.ttl_seconds", 21600)),
        max_article_age=timedelta(days=cfg.get("cache.max_article_age_days", 7)),
    )
    locale = detect_locale(
        country or cfg.get("location.country"),
        language or cfg.get("location.language"),
    )

    fetch_all = cfg.get("aggregator.fetch_all_providers", True)
    if mode is not None:
        fetch_all = mode == "all"
    if personalize is None:
        personalize = cfg.get("aggregator.personalize", False)
    if show_progress is None:
        show_progress = cfg.get("aggregator.show_progress", False)

    return NewsAggregator(
        providers,
        keys,
        cache,
        locale,
        personalizer=build_personalizer(cfg, profile_path) if personalize else None,
        fetch_all_providers=fetch_all,
        default_provider=cfg.get("aggregator.default_provider"),
        sequential_timeout=cfg.get("aggregator.sequential_timeout", 3.0),
        provider_timeout=cfg.get("aggregator.provider_timeout"),
        max_article_age=timedelta(hours=cfg.get("aggregator.max_article_age_hours", 24)),
        include_undated=cfg.get("aggregator.include_undated", True),
        personalize=personalize,
        show_progress=show_progress,
        regional_query=cfg.get("location.regional_query", "Europe"),
    )


def format_article(article: Article) -> str:
    """Plain-text rendering of one article."""
    lines = [
        article.title,
        f"  {article.source.name} | {article.published_at.strftime('%Y-%m-%d %H:%M')} UTC",
        f"  {article.url}",
    ]
    if article.description:
        lines.append(f"  {truncate_words(article.description)}")
    return "\n".join(lines)


async def async_main(argv: Optional[List[str]] = None) -> int:
    """
    Main async function.

    Returns:
        Process exit code
    """
    args = parse_args(argv)
    setup_logging(args.verbose)

    cfg = Config(args.config) if args.config else Config()
    try:
        category = NewsCategory.parse(args.category)
    except ValueError:
        logger.error(f"Unknown category: {args.category}")
        return 2

    async with build_http_client(cfg) as client:
        aggregator = build_aggregator(
            cfg,
            client,
            country=args.country,
            language=args.language,
            mode=args.mode,
            personalize=True if args.personalize else None,
            profile_path=args.profile,
            show_progress=True if args.progress else None,
        )

        if args.refresh_cache:
            await aggregator.refresh_cache()

        if args.status:
            for status in await aggregator.all_statuses():
                print(status.display_info)
            return 0

        try:
            if args.query:
                articles = await aggregator.search_news(args.query, page=args.page)
            else:
                articles = await aggregator.fetch_aggregated_news(
                    category,
                    use_location_based=args.mode != "single",
                    page=args.page,
                )
        except NoDataError as e:
            logger.error(str(e))
            print(e.user_message, file=sys.stderr)
            return 1
        except NewsError as e:
            logger.error(f"Aggregation failed: {e}")
            print(e.user_message, file=sys.stderr)
            return 1

    if args.limit > 0:
        articles = articles[:args.limit]

    if args.json:
        print(json.dumps([a.to_dict() for a in articles], indent=2, ensure_ascii=False))
    else:
        print("\n\n".join(format_article(a) for a in articles))
    logger.info(f"Printed {len(articles)} articles")
    return 0


def main():
    """
    Entry point for the command-line script.
    """
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        return 1
    except Exception as e:
        logger.exception(f"An error occurred: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
