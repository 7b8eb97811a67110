"""Full-text search over articles, users and tags, plus suggestions and logging."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from pressrank import config, relevance
from pressrank.models import (
    ArticleSearchPage,
    PageRequest,
    PopularSearch,
    SearchFilters,
    SearchLogStat,
    SearchResponse,
    Suggestion,
    SuggestionType,
    TagHit,
    UserHit,
)
from pressrank.store import ArticleStore
from pressrank.text import tokenize

logger = logging.getLogger(__name__)

_W_USERNAME = 3.0
_W_BIO = 1.0
_W_TAG_PREFIX = 2.0
_W_TAG_SUBSTRING = 1.0


class SearchService:
    """Answers search, suggestion and search-analytics requests."""

    def __init__(
        self,
        store: ArticleStore,
        suggestion_min_length: int = config.SUGGESTION_MIN_LENGTH,
    ) -> None:
        self._store = store
        self._suggestion_min_length = suggestion_min_length

    # ── public ──────────────────────────────────────────────────────────

    def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        page: PageRequest | None = None,
        user_id: int | None = None,
    ) -> SearchResponse:
        """Search every entity type allowed by ``filters.type``.

        A blank query is a browse request, not a search: it always yields an
        empty response with ``total_count == 0``.
        """
        filters = filters or SearchFilters()
        page = page or PageRequest()
        response = SearchResponse(page=page.page, page_size=page.page_size)

        if not tokenize(query):
            return response

        if filters.type in ("all", "articles"):
            articles = self.search_articles(query, filters, page)
            response.articles = articles.data
            response.total_count += articles.total_count
        if filters.type in ("all", "users"):
            users, total = self.search_users(query, page)
            response.users = users
            response.total_count += total
        if filters.type in ("all", "tags"):
            tags, total = self.search_tags(query, page)
            response.tags = tags
            response.total_count += total

        response.total_pages = page.total_pages(response.total_count)
        self.log_search(query, user_id, response.total_count)
        return response

    def search_articles(
        self,
        query: str,
        filters: SearchFilters | None = None,
        page: PageRequest | None = None,
    ) -> ArticleSearchPage:
        filters = filters or SearchFilters()
        page = page or PageRequest()
        if not tokenize(query):
            return ArticleSearchPage(page=page.page, page_size=page.page_size)

        universe = self._store.published_articles(
            tag=filters.tag,
            author_id=filters.author_id,
            author=filters.author,
            date_from=filters.date_from,
            date_to=filters.date_to,
        )
        ranked = relevance.rank(universe, query)
        return ArticleSearchPage(
            data=page.slice(ranked),
            total_count=len(ranked),
            page=page.page,
            page_size=page.page_size,
            total_pages=page.total_pages(len(ranked)),
        )

    def search_users(self, query: str, page: PageRequest | None = None) -> tuple[list[UserHit], int]:
        """Username hits outrank bio-only hits; followers break ties."""
        page = page or PageRequest()
        needle = query.strip().lower()
        if not needle:
            return [], 0

        hits: list[UserHit] = []
        for user in self._store.users():
            if needle in user.username.lower():
                hits.append(UserHit(user=user, relevance_score=_W_USERNAME))
            elif needle in user.bio.lower():
                hits.append(UserHit(user=user, relevance_score=_W_BIO))
        hits.sort(key=lambda h: (-h.relevance_score, -h.user.followers_count, h.user.id))
        return page.slice(hits), len(hits)

    def search_tags(self, query: str, page: PageRequest | None = None) -> tuple[list[TagHit], int]:
        """Prefix hits outrank substring hits; article count breaks ties."""
        page = page or PageRequest()
        needle = query.strip().lower()
        if not needle:
            return [], 0

        hits = [
            TagHit(
                tag=tag,
                relevance_score=_W_TAG_PREFIX if tag.name.startswith(needle) else _W_TAG_SUBSTRING,
            )
            for tag in self._store.tags()
            if needle in tag.name
        ]
        hits.sort(key=lambda h: (-h.relevance_score, -h.tag.article_count, h.tag.name))
        return page.slice(hits), len(hits)

    def get_suggestions(self, prefix: str, limit: int = 5) -> list[Suggestion]:
        """Typed autocomplete suggestions: article titles, then tags, then users.

        Prefixes shorter than the configured minimum give no suggestions.
        """
        limit = min(max(1, limit), config.SUGGESTION_MAX)
        needle = prefix.strip().lower()
        if len(needle) < self._suggestion_min_length:
            return []

        pools: list[tuple[SuggestionType, list[tuple[str, float]]]] = [
            ("article", [(a.title, a.view_count) for a in self._store.published_articles()]),
            ("tag", [(t.name, t.article_count) for t in self._store.tags()]),
            ("user", [(u.username, u.followers_count) for u in self._store.users()]),
        ]

        suggestions: list[Suggestion] = []
        seen: set[tuple[str, str]] = set()
        for kind, pool in pools:
            matches = [(text, pop) for text, pop in pool if needle in text.lower()]
            # prefix hits first, then the most popular
            matches.sort(key=lambda m: (not m[0].lower().startswith(needle), -m[1], m[0]))
            for text, _ in matches[:limit]:
                if (kind, text) not in seen:
                    seen.add((kind, text))
                    suggestions.append(Suggestion(suggestion=text, type=kind))

        return suggestions[:limit]

    def log_search(self, query: str, user_id: int | None = None, result_count: int = 0) -> bool:
        """Record a search for analytics without ever failing the caller.

        Returns whether the entry was stored.
        """
        try:
            self._store.insert_search_log(query.strip(), user_id, result_count)
        except Exception as exc:
            logger.warning("Search logging failed: %s", exc)
            return False
        return True

    def get_popular_searches(self, limit: int = 10, days: int = 30) -> list[PopularSearch]:
        """Most frequent recent queries, or the most used tags if none were logged."""
        limit = min(max(1, limit), 20)
        since = datetime.now(UTC) - timedelta(days=days)
        popular = self._store.top_search_queries(since, limit)
        if popular:
            return popular

        tags = sorted(self._store.tags(), key=lambda t: (-t.article_count, t.name))
        return [PopularSearch(query=t.name, frequency=t.article_count) for t in tags[:limit]]

    def get_search_analytics(self, days: int = 30) -> list[SearchLogStat]:
        """Per-query daily search counts over the last *days* days."""
        days = min(max(1, days), 365)
        since = datetime.now(UTC) - timedelta(days=days)
        return self._store.search_log_stats(since)
