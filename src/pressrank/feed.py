"""Feed retrieval: public, personalized, trending, popular, latest, filtered, following."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from pressrank import config
from pressrank.models import (
    Article,
    FeedFilters,
    FeedItem,
    FeedPage,
    FeedStats,
    FeedType,
    PageRequest,
    ensure_utc,
)
from pressrank.recommend import Recommender
from pressrank.store import ArticleStore
from pressrank.trending import (
    parse_timeframe_to_days,
    rank_by_trending,
    rank_popular,
    select_trending,
    sort_latest,
)

logger = logging.getLogger(__name__)


def _clamp_limit(limit: int) -> int:
    return min(max(1, limit), config.MAX_PAGE_SIZE)


def _label(articles: list[Article], feed_type: FeedType) -> list[FeedItem]:
    return [FeedItem(article=a, feed_type=feed_type) for a in articles]


def _paginate(items: list[FeedItem], page: PageRequest) -> FeedPage:
    data = page.slice(items)
    return FeedPage(
        data=data,
        total_count=len(items),
        page=page.page,
        page_size=page.page_size,
        has_more=page.offset + len(data) < len(items),
    )


class FeedService:
    """Stateless feed queries over an :class:`ArticleStore` snapshot."""

    def __init__(
        self,
        store: ArticleStore,
        recommender: Recommender | None = None,
        trending_window: str = config.TRENDING_WINDOW,
    ) -> None:
        self._store = store
        self._recommender = recommender or Recommender(store, trending_window=trending_window)
        self._trending_window = trending_window

    # ── paginated feeds ─────────────────────────────────────────────────

    def public_feed(self, page: PageRequest | None = None) -> FeedPage:
        """Every published article, newest first."""
        page = page or PageRequest()
        articles = sort_latest(self._store.published_articles())
        return _paginate(_label(articles, "public"), page)

    def personalized_feed(
        self,
        user_id: int,
        page: PageRequest | None = None,
        as_of: datetime | None = None,
    ) -> FeedPage:
        """Recommendations first, then the rest of the public feed.

        The backfill skips recommended articles and the user's own, so a user
        without an interest profile gets the public feed minus their own work.
        """
        page = page or PageRequest()
        recommended = self._recommender.recommend(user_id, as_of=as_of)
        listed = {a.id for a in recommended}
        backfill = [
            a
            for a in sort_latest(self._store.published_articles())
            if a.id not in listed and a.author_id != user_id
        ]
        if not recommended:
            logger.info("No recommendations for user %d; serving public feed", user_id)

        items = _label(recommended, "personalized") + _label(backfill, "public")
        return _paginate(items, page)

    def filtered_feed(
        self,
        filters: FeedFilters | None = None,
        page: PageRequest | None = None,
        as_of: datetime | None = None,
    ) -> FeedPage:
        filters = filters or FeedFilters()
        page = page or PageRequest()
        now = ensure_utc(as_of) or datetime.now(UTC)

        date_from = filters.date_from
        window_days = parse_timeframe_to_days(self._trending_window)
        if filters.timeframe:
            window_days = parse_timeframe_to_days(filters.timeframe)
            cutoff = now - timedelta(days=window_days)
            date_from = max(date_from, cutoff) if date_from else cutoff

        articles = self._store.published_articles(
            tag=filters.tag,
            author_id=filters.author_id,
            author=filters.author,
            date_from=date_from,
            date_to=filters.date_to,
            min_reading_time=filters.min_reading_time,
            max_reading_time=filters.max_reading_time,
        )

        if filters.sort == "popular":
            items = [
                FeedItem(article=a, feed_type="filtered", score=s)
                for a, s in rank_popular(articles)
            ]
        elif filters.sort == "trending":
            items = [
                FeedItem(article=a, feed_type="filtered", score=s)
                for a, s in rank_by_trending(articles, now, window_days)
            ]
        elif filters.sort == "oldest":
            items = _label(list(reversed(sort_latest(articles))), "filtered")
        else:
            items = _label(sort_latest(articles), "filtered")

        return _paginate(items, page)

    def following_feed(self, user_id: int, page: PageRequest | None = None) -> FeedPage:
        """Articles from authors *user_id* follows, newest first."""
        page = page or PageRequest()
        followed = self._store.followed_author_ids(user_id)
        articles = sort_latest(self._store.published_articles(author_ids=followed))
        return _paginate(_label(articles, "following"), page)

    # ── top-N lists ─────────────────────────────────────────────────────

    def trending_articles(
        self,
        limit: int = 10,
        window: str | None = None,
        as_of: datetime | None = None,
    ) -> list[FeedItem]:
        """Time-decayed engagement ranking; nothing older than *window* qualifies."""
        now = ensure_utc(as_of) or datetime.now(UTC)
        ranked = select_trending(
            self._store.published_articles(),
            as_of=now,
            window=window or self._trending_window,
            limit=_clamp_limit(limit),
        )
        return [FeedItem(article=a, feed_type="trending", score=s) for a, s in ranked]

    def popular_articles(self, limit: int = 10) -> list[FeedItem]:
        """All-time engagement ranking, no time window."""
        ranked = rank_popular(self._store.published_articles(), limit=_clamp_limit(limit))
        return [FeedItem(article=a, feed_type="popular", score=s) for a, s in ranked]

    def latest_articles(self, limit: int = 10, exclude_user_id: int | None = None) -> list[FeedItem]:
        articles = [
            a
            for a in self._store.published_articles()
            if exclude_user_id is None or a.author_id != exclude_user_id
        ]
        return _label(sort_latest(articles, limit=_clamp_limit(limit)), "latest")

    # ── stats ───────────────────────────────────────────────────────────

    def feed_stats(self, as_of: datetime | None = None, top_tags: int = 10) -> FeedStats:
        """Publishing volume: all time, since UTC midnight and over the last
        seven days, with the week's most used tags."""
        now = ensure_utc(as_of) or datetime.now(UTC)
        day_start = now.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
        return self._store.publication_stats(
            day_start=day_start,
            week_start=now - timedelta(days=7),
            top_tags=_clamp_limit(top_tags),
        )
