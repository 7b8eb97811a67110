"""Tag-interest recommendations."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from pressrank import config
from pressrank.interests import derive_interests
from pressrank.models import Article, InterestEntry, ensure_utc
from pressrank.store import ArticleStore
from pressrank.trending import parse_timeframe_to_days, trending_score

logger = logging.getLogger(__name__)


def affinity(article: Article, weights: dict[str, float]) -> float:
    """Sum of the user's interest weights over the tags *article* carries."""
    return sum(weights.get(tag, 0.0) for tag in set(article.tags))


class Recommender:
    """Ranks unseen articles by how well their tags match a user's interests."""

    def __init__(
        self,
        store: ArticleStore,
        trending_window: str = config.TRENDING_WINDOW,
        interest_top_n: int | None = config.INTEREST_TOP_N,
    ) -> None:
        self._store = store
        self._window_days = parse_timeframe_to_days(trending_window)
        self._top_n = interest_top_n

    def interests(self, user_id: int) -> list[InterestEntry]:
        return derive_interests(self._store, user_id, top_n=self._top_n)

    def recommend(
        self,
        user_id: int,
        limit: int | None = None,
        as_of: datetime | None = None,
    ) -> list[Article]:
        """Return up to *limit* distinct articles for *user_id*, best match first.

        An empty list means no personalization is available; callers decide
        whether to fall back to other content. A negative *limit* gives nothing.
        """
        profile = self.interests(user_id)
        if not profile:
            logger.info("User %d has no interest profile; nothing to recommend", user_id)
            return []

        now = ensure_utc(as_of) or datetime.now(UTC)
        weights = {entry.tag: entry.weight for entry in profile}
        seen = {clap.article_id for clap in self._store.claps(user_id)}

        candidates: list[tuple[float, float, Article]] = []
        for article in self._store.published_articles():
            if article.author_id == user_id or article.id in seen:
                continue
            match = affinity(article, weights)
            if match <= 0:
                continue
            candidates.append((match, trending_score(article, now, self._window_days), article))

        candidates.sort(
            key=lambda c: (
                -c[0],
                -c[1],
                -c[2].published_at.timestamp() if c[2].published_at else 0.0,
                c[2].id,
            )
        )
        picked = [article for _, _, article in candidates]
        logger.info("Recommended %d articles for user %d", len(picked), user_id)
        return picked[: max(0, limit)] if limit is not None else picked
