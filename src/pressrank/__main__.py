"""CLI entry-point: ``python -m pressrank search "query"`` / ``python -m pressrank feed trending``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from pressrank import config
from pressrank.feed import FeedService
from pressrank.models import PageRequest, SearchFilters
from pressrank.recommend import Recommender
from pressrank.search import SearchService
from pressrank.seed import SeedError, apply_dataset, load_dataset
from pressrank.store import ArticleStore, DataStoreUnavailable

logger = logging.getLogger(__name__)

_FEEDS = ["public", "personalized", "trending", "popular", "latest", "following", "stats"]


def _setup_logging() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _emit(payload: Any) -> None:
    """Write *payload* (a model, a list of models or plain data) as JSON to stdout."""
    if isinstance(payload, BaseModel):
        data = payload.model_dump(mode="json")
    elif isinstance(payload, list):
        data = [p.model_dump(mode="json") if isinstance(p, BaseModel) else p for p in payload]
    else:
        data = payload
    json.dump(data, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def _require_user(args: argparse.Namespace) -> int:
    if args.user_id is None:
        logger.error("The %s feed needs --user-id", args.feed)
        sys.exit(2)
    return int(args.user_id)


def _run_feed(args: argparse.Namespace, store: ArticleStore) -> Any:
    feeds = FeedService(store)
    page = PageRequest(page=args.page, page_size=args.limit)
    if args.feed == "public":
        return feeds.public_feed(page)
    if args.feed == "personalized":
        return feeds.personalized_feed(_require_user(args), page)
    if args.feed == "following":
        return feeds.following_feed(_require_user(args), page)
    if args.feed == "trending":
        return feeds.trending_articles(args.limit, window=args.window)
    if args.feed == "stats":
        return feeds.feed_stats()
    if args.feed == "popular":
        return feeds.popular_articles(args.limit)
    return feeds.latest_articles(args.limit, exclude_user_id=args.user_id)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pressrank",
        description="Search, feed and recommendation queries over a publishing database.",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=config.DB_PATH,
        help=f"SQLite database path (default: {config.DB_PATH}).",
    )
    sub = parser.add_subparsers(dest="command")

    # ── seed ───────────────────────────────────────────────────────────
    seed_parser = sub.add_parser("seed", help="Load a YAML dataset into the database.")
    seed_parser.add_argument("path", type=Path, help="YAML file with users/articles/claps/follows.")

    # ── search ─────────────────────────────────────────────────────────
    search_parser = sub.add_parser("search", help="Full-text search.")
    search_parser.add_argument("query")
    search_parser.add_argument("--type", choices=["all", "articles", "users", "tags"], default="all")
    search_parser.add_argument("--tag", help="Restrict articles to a tag (slug or name).")
    search_parser.add_argument("--author-id", type=int)
    search_parser.add_argument("--author", help="Restrict articles to usernames containing this.")
    search_parser.add_argument("--page", type=int, default=1)
    search_parser.add_argument("--page-size", type=int, default=config.DEFAULT_PAGE_SIZE)
    search_parser.add_argument("--user-id", type=int, help="Searching user, for the search log.")

    # ── suggest ────────────────────────────────────────────────────────
    suggest_parser = sub.add_parser("suggest", help="Autocomplete suggestions for a prefix.")
    suggest_parser.add_argument("prefix")
    suggest_parser.add_argument("--limit", type=int, default=5)

    # ── feed ───────────────────────────────────────────────────────────
    feed_parser = sub.add_parser("feed", help="Retrieve a feed.")
    feed_parser.add_argument("feed", choices=_FEEDS)
    feed_parser.add_argument("--user-id", type=int)
    feed_parser.add_argument("--limit", type=int, default=config.DEFAULT_PAGE_SIZE)
    feed_parser.add_argument("--page", type=int, default=1)
    feed_parser.add_argument(
        "--window",
        default=config.TRENDING_WINDOW,
        help=f"Trending window such as '7 days' or '1 month' (default: {config.TRENDING_WINDOW}).",
    )

    # ── interests ──────────────────────────────────────────────────────
    interests_parser = sub.add_parser("interests", help="Show a user's tag interests.")
    interests_parser.add_argument("user_id", type=int)

    # ── analytics ──────────────────────────────────────────────────────
    analytics_parser = sub.add_parser("analytics", help="Search analytics and popular searches.")
    analytics_parser.add_argument("--days", type=int, default=30)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(1)

    _setup_logging()
    try:
        store = ArticleStore(db_path=args.db)

        if args.command == "seed":
            _emit(apply_dataset(store, load_dataset(args.path)))
        elif args.command == "search":
            filters = SearchFilters(
                type=args.type, tag=args.tag, author_id=args.author_id, author=args.author
            )
            page = PageRequest(page=args.page, page_size=args.page_size)
            _emit(SearchService(store).search(args.query, filters, page, user_id=args.user_id))
        elif args.command == "suggest":
            _emit(SearchService(store).get_suggestions(args.prefix, args.limit))
        elif args.command == "feed":
            _emit(_run_feed(args, store))
        elif args.command == "interests":
            _emit(Recommender(store).interests(args.user_id))
        elif args.command == "analytics":
            search = SearchService(store)
            _emit(
                {
                    "popular": [p.model_dump() for p in search.get_popular_searches(days=args.days)],
                    "daily": [s.model_dump() for s in search.get_search_analytics(args.days)],
                }
            )
    except (DataStoreUnavailable, SeedError) as exc:
        logger.error("%s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
