"""Engagement-based ordering: trending (time-decayed), popular and latest."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta

from pressrank.models import Article

logger = logging.getLogger(__name__)

# ── Weights (tuneable) ─────────────────────────────────────────────────────
_W_VIEW = 0.1
_W_CLAP = 0.3
_W_COMMENT = 0.4

_P_VIEW = 1.0
_P_CLAP = 2.0
_P_COMMENT = 3.0

_DEFAULT_WINDOW_DAYS = 7
_UNIT_DAYS: dict[str, int] = {"day": 1, "week": 7, "month": 30, "year": 365}
_TIMEFRAME_RE = re.compile(r"^\s*(\d+)?\s*(day|week|month|year)s?\s*$", re.IGNORECASE)


def parse_timeframe_to_days(timeframe: str | int | None) -> int:
    """Turn ``"N day(s)"``, ``"N week(s)"``, ``"N month(s)"`` or ``"N year(s)"``
    into a day count. A bare unit means one of it; anything else gives 7.
    """
    if isinstance(timeframe, int):
        return timeframe if timeframe > 0 else _DEFAULT_WINDOW_DAYS
    match = _TIMEFRAME_RE.match(timeframe or "")
    if not match:
        logger.warning(
            "Unrecognised timeframe %r; using %d days", timeframe, _DEFAULT_WINDOW_DAYS
        )
        return _DEFAULT_WINDOW_DAYS
    count = int(match.group(1)) if match.group(1) else 1
    if count <= 0:
        return _DEFAULT_WINDOW_DAYS
    return count * _UNIT_DAYS[match.group(2).lower()]


def engagement_score(article: Article) -> float:
    return (
        article.view_count * _W_VIEW
        + article.clap_count * _W_CLAP
        + article.comment_count * _W_COMMENT
    )


def popularity_score(article: Article) -> float:
    """All-time engagement; no recency component."""
    return (
        article.view_count * _P_VIEW
        + article.clap_count * _P_CLAP
        + article.comment_count * _P_COMMENT
    )


def trending_score(article: Article, as_of: datetime, window_days: int) -> float:
    """Engagement damped by age: halved once the article is *window_days* old."""
    if article.published_at is None:
        return 0.0
    age_days = max(0.0, (as_of - article.published_at).total_seconds() / 86400)
    return engagement_score(article) / (1 + age_days / window_days)


def _recency(article: Article) -> float:
    return article.published_at.timestamp() if article.published_at else float("-inf")


def select_trending(
    articles: list[Article],
    as_of: datetime,
    window: str | int,
    limit: int | None = None,
) -> list[tuple[Article, float]]:
    """Score articles published within *window* of *as_of*, best first.

    Older articles are excluded outright, and so are articles with no
    engagement at all.
    """
    days = parse_timeframe_to_days(window)
    cutoff = as_of - timedelta(days=days)

    eligible = [a for a in articles if a.published_at is not None and a.published_at >= cutoff]
    scored = [(a, s) for a, s in rank_by_trending(eligible, as_of, days) if s > 0]

    logger.info(
        "Trending over %d days: %d of %d articles eligible", days, len(scored), len(articles)
    )
    return scored[:limit] if limit is not None else scored


def rank_by_trending(
    articles: list[Article], as_of: datetime, window_days: int
) -> list[tuple[Article, float]]:
    """Order by trending score without any age cutoff."""
    scored = [(a, trending_score(a, as_of, window_days)) for a in articles]
    scored.sort(key=lambda pair: (-pair[1], -_recency(pair[0]), pair[0].id))
    return scored


def rank_popular(articles: list[Article], limit: int | None = None) -> list[tuple[Article, float]]:
    scored = [(article, popularity_score(article)) for article in articles]
    scored.sort(key=lambda pair: (-pair[1], -_recency(pair[0]), pair[0].id))
    return scored[:limit] if limit is not None else scored


def sort_latest(articles: list[Article], limit: int | None = None) -> list[Article]:
    """Strictly chronological, newest first; undated articles are dropped."""
    dated = [a for a in articles if a.published_at is not None]
    dated.sort(key=lambda a: (_recency(a), a.id), reverse=True)
    return dated[:limit] if limit is not None else dated
