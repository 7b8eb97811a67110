"""Load a YAML dataset of users, articles, claps and follows into the store."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from pressrank.models import ArticleStatus, ensure_utc
from pressrank.store import ArticleStore

logger = logging.getLogger(__name__)


class SeedError(Exception):
    """Raised when a seed file cannot be parsed or references unknown rows."""


class SeedUser(BaseModel):
    username: str
    bio: str = ""


class SeedArticle(BaseModel):
    author: str
    title: str
    subtitle: str = ""
    content: str | dict[str, Any] = ""
    status: ArticleStatus = "published"
    published_at: datetime | None = None
    days_ago: float | None = None  # relative alternative to published_at
    view_count: int = Field(default=0, ge=0)
    clap_count: int = Field(default=0, ge=0)
    comment_count: int = Field(default=0, ge=0)
    reading_time: int = 0
    tags: list[str] = Field(default_factory=list)


class SeedClap(BaseModel):
    user: str
    article: str  # article title
    count: int = Field(default=1, ge=1)


class SeedFollow(BaseModel):
    follower: str
    following: str


class SeedDataset(BaseModel):
    users: list[SeedUser] = Field(default_factory=list)
    articles: list[SeedArticle] = Field(default_factory=list)
    claps: list[SeedClap] = Field(default_factory=list)
    follows: list[SeedFollow] = Field(default_factory=list)


def load_dataset(path: Path) -> SeedDataset:
    """Parse and validate a seed file.

    Top-level keys: ``users``, ``articles``, ``claps``, ``follows``. Articles
    name their author by username; claps name articles by title. Give either
    ``published_at`` or ``days_ago`` for published articles.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise SeedError(f"cannot read seed file {path}: {exc}") from exc

    try:
        return SeedDataset.model_validate(raw)
    except ValidationError as exc:
        raise SeedError(f"invalid seed file {path}: {exc}") from exc


def apply_dataset(
    store: ArticleStore,
    dataset: SeedDataset,
    now: datetime | None = None,
) -> dict[str, int]:
    """Write *dataset* into *store*; return row counts per section."""
    now = ensure_utc(now) or datetime.now(UTC)

    user_ids = {u.username: store.add_user(u.username, u.bio) for u in dataset.users}

    def _user(name: str) -> int:
        if name not in user_ids:
            raise SeedError(f"unknown user {name!r}")
        return user_ids[name]

    article_ids: dict[str, int] = {}
    for art in dataset.articles:
        published_at = art.published_at
        if published_at is None and art.days_ago is not None:
            published_at = now - timedelta(days=art.days_ago)
        if art.status == "published" and published_at is None:
            published_at = now
        article_ids[art.title] = store.add_article(
            _user(art.author),
            art.title,
            subtitle=art.subtitle,
            content=art.content,
            status=art.status,
            published_at=published_at,
            view_count=art.view_count,
            clap_count=art.clap_count,
            comment_count=art.comment_count,
            reading_time=art.reading_time,
            tags=art.tags,
        )

    for clap in dataset.claps:
        if clap.article not in article_ids:
            raise SeedError(f"clap references unknown article {clap.article!r}")
        store.add_claps(_user(clap.user), article_ids[clap.article], clap.count)

    for follow in dataset.follows:
        store.follow(_user(follow.follower), _user(follow.following))

    counts = {
        "users": len(user_ids),
        "articles": len(article_ids),
        "claps": len(dataset.claps),
        "follows": len(dataset.follows),
    }
    logger.info("Seeded %s", ", ".join(f"{v} {k}" for k, v in counts.items()))
    return counts
