"""Domain models, request objects and response envelopes."""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from pressrank import config

ArticleStatus = Literal["draft", "published", "archived"]
FeedType = Literal[
    "public", "personalized", "trending", "popular", "latest", "filtered", "following"
]
SearchType = Literal["all", "articles", "users", "tags"]
FeedSort = Literal["latest", "oldest", "popular", "trending"]
SuggestionType = Literal["article", "tag", "user"]


def ensure_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# ── Stored entities ────────────────────────────────────────────────────────


class Article(BaseModel):
    id: int
    author_id: int
    author_username: str = ""
    title: str
    subtitle: str = ""
    content: str | dict[str, Any] = ""
    status: ArticleStatus = "draft"
    published_at: datetime | None = None
    view_count: int = Field(default=0, ge=0)
    clap_count: int = Field(default=0, ge=0)
    comment_count: int = Field(default=0, ge=0)
    reading_time: int = 0  # minutes
    tags: list[str] = Field(default_factory=list)

    @field_validator("published_at")
    @classmethod
    def normalize_published_at(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class Tag(BaseModel):
    id: int
    name: str
    slug: str
    article_count: int = 0


class User(BaseModel):
    id: int
    username: str
    bio: str = ""
    followers_count: int = 0
    articles_count: int = 0


class ClapRecord(BaseModel):
    user_id: int
    article_id: int
    count: int = Field(ge=1, le=50)


class InterestEntry(BaseModel):
    tag: str
    weight: float


# ── Request objects ────────────────────────────────────────────────────────


class PageRequest(BaseModel):
    """1-indexed page request; out-of-range values are clamped, never rejected."""

    page: int = 1
    page_size: int = config.DEFAULT_PAGE_SIZE

    @field_validator("page", mode="before")
    @classmethod
    def clamp_page(cls, value: Any) -> int:
        try:
            return max(1, int(value))
        except (TypeError, ValueError):
            return 1

    @field_validator("page_size", mode="before")
    @classmethod
    def clamp_page_size(cls, value: Any) -> int:
        try:
            size = int(value)
        except (TypeError, ValueError):
            return config.DEFAULT_PAGE_SIZE
        return min(max(1, size), config.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def slice(self, items: list[Any]) -> list[Any]:
        return items[self.offset : self.offset + self.page_size]

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.page_size) if total else 0


class SearchFilters(BaseModel):
    type: SearchType = "all"
    tag: str | None = None  # slug or display name
    author_id: int | None = None
    author: str | None = None  # username substring
    date_from: datetime | None = None
    date_to: datetime | None = None

    @field_validator("date_from", "date_to")
    @classmethod
    def normalize_dates(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, value: Any) -> Any:
        return value or "all"


class FeedFilters(BaseModel):
    tag: str | None = None
    author_id: int | None = None
    author: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    timeframe: str | None = None  # e.g. "7 days", "1 month"
    min_reading_time: int | None = None
    max_reading_time: int | None = None
    sort: FeedSort = "latest"

    @field_validator("date_from", "date_to")
    @classmethod
    def normalize_dates(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @field_validator("sort", mode="before")
    @classmethod
    def default_sort(cls, value: Any) -> Any:
        return value or "latest"


# ── Results and envelopes ──────────────────────────────────────────────────


class SearchResult(BaseModel):
    article: Article
    relevance_score: float
    highlights: dict[str, str] = Field(default_factory=dict)


class FeedItem(BaseModel):
    article: Article
    feed_type: FeedType
    score: float | None = None


class UserHit(BaseModel):
    user: User
    relevance_score: float


class TagHit(BaseModel):
    tag: Tag
    relevance_score: float


class Suggestion(BaseModel):
    suggestion: str
    type: SuggestionType


class SearchLogStat(BaseModel):
    query: str
    search_date: str
    search_count: int
    avg_results: float


class PopularSearch(BaseModel):
    query: str
    frequency: int


class TagUsage(BaseModel):
    name: str
    usage_count: int


class FeedStats(BaseModel):
    total_articles: int = 0
    articles_today: int = 0
    articles_this_week: int = 0
    trending_tags: list[TagUsage] = Field(default_factory=list)


class ArticleSearchPage(BaseModel):
    data: list[SearchResult] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = config.DEFAULT_PAGE_SIZE
    total_pages: int = 0


class SearchResponse(BaseModel):
    articles: list[SearchResult] = Field(default_factory=list)
    users: list[UserHit] = Field(default_factory=list)
    tags: list[TagHit] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = config.DEFAULT_PAGE_SIZE
    total_pages: int = 0


class FeedPage(BaseModel):
    data: list[FeedItem] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = config.DEFAULT_PAGE_SIZE
    has_more: bool = False
