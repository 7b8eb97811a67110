"""Derive a user's weighted tag interests from their clap history."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from pressrank import config
from pressrank.models import InterestEntry
from pressrank.store import ArticleStore

logger = logging.getLogger(__name__)


def aggregate_interests(
    rows: Iterable[tuple[str, int]],
    top_n: int | None = None,
) -> list[InterestEntry]:
    """Sum clap counts per tag and order by weight (tag name on ties).

    *rows* holds one ``(tag, claps)`` pair per tag of each clapped article,
    so an article with several tags credits its full clap count to every
    one of them.
    """
    weights: dict[str, float] = defaultdict(float)
    for tag, claps in rows:
        weights[tag] += claps

    profile = [
        InterestEntry(tag=tag, weight=weight)
        for tag, weight in sorted(weights.items(), key=lambda kv: (-kv[1], kv[0]))
        if weight > 0
    ]
    return profile[:top_n] if top_n is not None else profile


def derive_interests(
    store: ArticleStore,
    user_id: int,
    top_n: int | None = config.INTEREST_TOP_N,
) -> list[InterestEntry]:
    """Interest profile for *user_id*; empty when the user never clapped."""
    profile = aggregate_interests(store.clapped_tags(user_id), top_n=top_n)
    logger.info(
        "User %d interests: %s",
        user_id,
        ", ".join(f"{e.tag}={e.weight:g}" for e in profile) or "(none)",
    )
    return profile
