"""SQLite-backed article index and engagement store."""

from __future__ import annotations

import json
import logging
import sqlite3
from collections import defaultdict
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pressrank.models import (
    Article,
    ClapRecord,
    FeedStats,
    PopularSearch,
    SearchLogStat,
    Tag,
    TagUsage,
    User,
)
from pressrank.text import normalize_tag_name, slugify

logger = logging.getLogger(__name__)

MAX_CLAPS_PER_USER = 50

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    username   TEXT NOT NULL UNIQUE,
    bio        TEXT NOT NULL DEFAULT ''
);
CREATE TABLE IF NOT EXISTS articles (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    author_id     INTEGER NOT NULL REFERENCES users(id),
    title         TEXT NOT NULL,
    subtitle      TEXT NOT NULL DEFAULT '',
    content       TEXT NOT NULL DEFAULT '""',
    status        TEXT NOT NULL DEFAULT 'draft',
    published_at  TEXT,
    view_count    INTEGER NOT NULL DEFAULT 0,
    clap_count    INTEGER NOT NULL DEFAULT 0,
    comment_count INTEGER NOT NULL DEFAULT 0,
    reading_time  INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS tags (
    id    INTEGER PRIMARY KEY AUTOINCREMENT,
    name  TEXT NOT NULL UNIQUE,
    slug  TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS article_tags (
    article_id INTEGER NOT NULL REFERENCES articles(id),
    tag_id     INTEGER NOT NULL REFERENCES tags(id),
    PRIMARY KEY (article_id, tag_id)
);
CREATE TABLE IF NOT EXISTS claps (
    user_id    INTEGER NOT NULL REFERENCES users(id),
    article_id INTEGER NOT NULL REFERENCES articles(id),
    count      INTEGER NOT NULL CHECK (count BETWEEN 1 AND 50),
    PRIMARY KEY (user_id, article_id)
);
CREATE TABLE IF NOT EXISTS follows (
    follower_id  INTEGER NOT NULL REFERENCES users(id),
    following_id INTEGER NOT NULL REFERENCES users(id),
    PRIMARY KEY (follower_id, following_id)
);
CREATE TABLE IF NOT EXISTS search_logs (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    query         TEXT NOT NULL,
    user_id       INTEGER,
    results_count INTEGER NOT NULL DEFAULT 0,
    searched_at   TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_articles_published ON articles (status, published_at);
CREATE INDEX IF NOT EXISTS idx_search_logs_time ON search_logs (searched_at);
"""

# SQLite caps bound parameters per statement.
_IN_CHUNK = 500


class DataStoreUnavailable(Exception):
    """Raised when the underlying database cannot be read or written."""


def _ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ArticleStore:
    """Read-mostly view over articles, tags, users, claps and follows.

    Every call opens its own connection, so one instance can be shared by
    concurrent requests.
    """

    def __init__(self, db_path: Path) -> None:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db_path = db_path
        self._init_db()

    # ── article index ───────────────────────────────────────────────────

    def published_articles(
        self,
        *,
        tag: str | None = None,
        author_id: int | None = None,
        author: str | None = None,
        author_ids: Iterable[int] | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        min_reading_time: int | None = None,
        max_reading_time: int | None = None,
    ) -> list[Article]:
        """Return published articles matching every given filter, newest first.

        ``tag`` accepts a slug or a display name. Unknown tags or authors
        simply match nothing.
        """
        where = ["a.status = 'published'", "a.published_at IS NOT NULL"]
        params: list[Any] = []

        if tag:
            where.append(
                """EXISTS (
                    SELECT 1 FROM article_tags at2
                    JOIN tags t2 ON t2.id = at2.tag_id
                    WHERE at2.article_id = a.id AND t2.slug = ?
                )"""
            )
            params.append(slugify(tag))
        if author_id is not None:
            where.append("a.author_id = ?")
            params.append(author_id)
        if author:
            where.append("u.username LIKE ? ESCAPE '\\'")
            params.append(f"%{_escape_like(author)}%")
        if author_ids is not None:
            ids = sorted(set(author_ids))
            if not ids:
                return []
            where.append(f"a.author_id IN ({', '.join('?' * len(ids))})")
            params.extend(ids)
        if date_from is not None:
            where.append("a.published_at >= ?")
            params.append(_ts(date_from))
        if date_to is not None:
            where.append("a.published_at <= ?")
            params.append(_ts(date_to))
        if min_reading_time is not None:
            where.append("a.reading_time >= ?")
            params.append(min_reading_time)
        if max_reading_time is not None:
            where.append("a.reading_time <= ?")
            params.append(max_reading_time)

        sql = f"""
            SELECT a.*, COALESCE(u.username, '') AS author_username
            FROM articles a
            LEFT JOIN users u ON u.id = a.author_id
            WHERE {' AND '.join(where)}
            ORDER BY a.published_at DESC, a.id DESC
        """
        with self._session() as con:
            rows = con.execute(sql, params).fetchall()
            tags = self._tags_by_article(con, [row["id"] for row in rows])

        articles = [self._row_to_article(row, tags.get(row["id"], [])) for row in rows]
        logger.debug("Loaded %d published articles", len(articles))
        return articles

    def users(self) -> list[User]:
        with self._session() as con:
            rows = con.execute(
                """
                SELECT u.id, u.username, u.bio,
                       (SELECT COUNT(*) FROM follows f
                        WHERE f.following_id = u.id) AS followers_count,
                       (SELECT COUNT(*) FROM articles a
                        WHERE a.author_id = u.id AND a.status = 'published') AS articles_count
                FROM users u
                ORDER BY u.id
                """
            ).fetchall()
        return [User(**dict(row)) for row in rows]

    def tags(self) -> list[Tag]:
        """All tags with their published-article counts."""
        with self._session() as con:
            rows = con.execute(
                """
                SELECT t.id, t.name, t.slug, COUNT(a.id) AS article_count
                FROM tags t
                LEFT JOIN article_tags at ON at.tag_id = t.id
                LEFT JOIN articles a ON a.id = at.article_id AND a.status = 'published'
                GROUP BY t.id
                ORDER BY t.id
                """
            ).fetchall()
        return [Tag(**dict(row)) for row in rows]

    def publication_stats(
        self, day_start: datetime, week_start: datetime, top_tags: int = 10
    ) -> FeedStats:
        """Published-article counts overall, since *day_start* and since
        *week_start*, plus the tags used most since *week_start*."""
        with self._session() as con:
            counts = con.execute(
                """
                SELECT COUNT(*) AS total_articles,
                       COALESCE(SUM(published_at >= ?), 0) AS articles_today,
                       COALESCE(SUM(published_at >= ?), 0) AS articles_this_week
                FROM articles
                WHERE status = 'published' AND published_at IS NOT NULL
                """,
                (_ts(day_start), _ts(week_start)),
            ).fetchone()
            tag_rows = con.execute(
                """
                SELECT t.name, COUNT(*) AS usage_count
                FROM tags t
                JOIN article_tags at ON at.tag_id = t.id
                JOIN articles a ON a.id = at.article_id
                WHERE a.status = 'published' AND a.published_at >= ?
                GROUP BY t.id
                ORDER BY usage_count DESC, t.name ASC
                LIMIT ?
                """,
                (_ts(week_start), top_tags),
            ).fetchall()
        return FeedStats(
            **dict(counts),
            trending_tags=[TagUsage(**dict(row)) for row in tag_rows],
        )

    # ── engagement ──────────────────────────────────────────────────────

    def clapped_tags(self, user_id: int) -> list[tuple[str, int]]:
        """One ``(tag name, clap count)`` row per tag of every clapped article."""
        with self._session() as con:
            rows = con.execute(
                """
                SELECT t.name, c.count
                FROM claps c
                JOIN article_tags at ON at.article_id = c.article_id
                JOIN tags t ON t.id = at.tag_id
                WHERE c.user_id = ?
                """,
                (user_id,),
            ).fetchall()
        return [(row[0], row[1]) for row in rows]

    def claps(self, user_id: int) -> list[ClapRecord]:
        """Every article *user_id* clapped, with their per-article total."""
        with self._session() as con:
            rows = con.execute(
                """
                SELECT user_id, article_id, count FROM claps
                WHERE user_id = ?
                ORDER BY article_id
                """,
                (user_id,),
            ).fetchall()
        return [ClapRecord(**dict(row)) for row in rows]

    def followed_author_ids(self, user_id: int) -> set[int]:
        with self._session() as con:
            rows = con.execute(
                "SELECT following_id FROM follows WHERE follower_id = ?", (user_id,)
            ).fetchall()
        return {row[0] for row in rows}

    # ── search log ──────────────────────────────────────────────────────

    def insert_search_log(
        self,
        query: str,
        user_id: int | None,
        results_count: int,
        searched_at: datetime | None = None,
    ) -> None:
        with self._session() as con:
            con.execute(
                """
                INSERT INTO search_logs (query, user_id, results_count, searched_at)
                VALUES (?, ?, ?, ?)
                """,
                (query, user_id, results_count, _ts(searched_at or datetime.now(UTC))),
            )

    def search_log_stats(self, since: datetime, limit: int = 100) -> list[SearchLogStat]:
        """Per query and calendar day (UTC): number of searches and mean hits."""
        with self._session() as con:
            rows = con.execute(
                """
                SELECT query,
                       substr(searched_at, 1, 10) AS search_date,
                       COUNT(*) AS search_count,
                       AVG(results_count) AS avg_results
                FROM search_logs
                WHERE searched_at >= ?
                GROUP BY query, search_date
                ORDER BY search_count DESC, search_date DESC, query ASC
                LIMIT ?
                """,
                (_ts(since), limit),
            ).fetchall()
        return [SearchLogStat(**dict(row)) for row in rows]

    def top_search_queries(self, since: datetime, limit: int) -> list[PopularSearch]:
        with self._session() as con:
            rows = con.execute(
                """
                SELECT query, COUNT(*) AS frequency
                FROM search_logs
                WHERE searched_at >= ?
                GROUP BY query
                ORDER BY frequency DESC, query ASC
                LIMIT ?
                """,
                (_ts(since), limit),
            ).fetchall()
        return [PopularSearch(**dict(row)) for row in rows]

    # ── writes (seeding, engagement events) ─────────────────────────────

    def add_user(self, username: str, bio: str = "") -> int:
        """Insert a user if the username is new; return its id either way."""
        with self._session() as con:
            con.execute(
                "INSERT OR IGNORE INTO users (username, bio) VALUES (?, ?)",
                (username, bio),
            )
            row = con.execute(
                "SELECT id FROM users WHERE username = ?", (username,)
            ).fetchone()
        return int(row[0])

    def add_article(
        self,
        author_id: int,
        title: str,
        *,
        subtitle: str = "",
        content: str | dict[str, Any] = "",
        status: str = "published",
        published_at: datetime | None = None,
        view_count: int = 0,
        clap_count: int = 0,
        comment_count: int = 0,
        reading_time: int = 0,
        tags: Iterable[str] = (),
    ) -> int:
        with self._session() as con:
            cur = con.execute(
                """
                INSERT INTO articles
                    (author_id, title, subtitle, content, status, published_at,
                     view_count, clap_count, comment_count, reading_time)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    author_id,
                    title,
                    subtitle,
                    json.dumps(content),
                    status,
                    _ts(published_at) if published_at else None,
                    view_count,
                    clap_count,
                    comment_count,
                    reading_time,
                ),
            )
            article_id = int(cur.lastrowid)  # type: ignore[arg-type]
            self._tag_article(con, article_id, tags)
        return article_id

    def add_claps(self, user_id: int, article_id: int, count: int = 1) -> int:
        """Add claps for a user, saturating at 50; return the user's new total.

        The article's ``clap_count`` grows by the claps actually applied.
        """
        if count < 1:
            raise ValueError(f"clap count must be positive, got {count}")
        with self._session() as con:
            row = con.execute(
                "SELECT count FROM claps WHERE user_id = ? AND article_id = ?",
                (user_id, article_id),
            ).fetchone()
            current = row[0] if row else 0
            total = min(current + count, MAX_CLAPS_PER_USER)
            applied = total - current
            if applied:
                con.execute(
                    """
                    INSERT INTO claps (user_id, article_id, count) VALUES (?, ?, ?)
                    ON CONFLICT (user_id, article_id) DO UPDATE SET count = excluded.count
                    """,
                    (user_id, article_id, total),
                )
                con.execute(
                    "UPDATE articles SET clap_count = clap_count + ? WHERE id = ?",
                    (applied, article_id),
                )
        if applied < count:
            logger.debug(
                "Clap cap reached for user %d on article %d (%d of %d applied)",
                user_id, article_id, applied, count,
            )
        return total

    def follow(self, follower_id: int, following_id: int) -> None:
        with self._session() as con:
            con.execute(
                "INSERT OR IGNORE INTO follows (follower_id, following_id) VALUES (?, ?)",
                (follower_id, following_id),
            )

    # ── private ─────────────────────────────────────────────────────────

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection; commit on success, always close.

        Any ``sqlite3.Error`` surfaces as :class:`DataStoreUnavailable`.
        """
        try:
            con = sqlite3.connect(str(self._db_path))
        except sqlite3.Error as exc:
            raise DataStoreUnavailable(f"cannot open {self._db_path}: {exc}") from exc
        con.row_factory = sqlite3.Row
        try:
            con.execute("PRAGMA foreign_keys = ON")
            yield con
            con.commit()
        except sqlite3.Error as exc:
            con.rollback()
            raise DataStoreUnavailable(f"database error on {self._db_path}: {exc}") from exc
        finally:
            con.close()

    def _init_db(self) -> None:
        with self._session() as con:
            con.executescript(_SCHEMA)

    @staticmethod
    def _tag_article(con: sqlite3.Connection, article_id: int, names: Iterable[str]) -> None:
        for raw in names:
            name = normalize_tag_name(raw)
            slug = slugify(name)
            if not slug:
                continue
            # names sharing a slug ("c", "c++") resolve to the first tag stored
            con.execute(
                "INSERT OR IGNORE INTO tags (name, slug) VALUES (?, ?)", (name, slug)
            )
            tag_id = con.execute("SELECT id FROM tags WHERE slug = ?", (slug,)).fetchone()[0]
            con.execute(
                "INSERT OR IGNORE INTO article_tags (article_id, tag_id) VALUES (?, ?)",
                (article_id, tag_id),
            )

    @staticmethod
    def _tags_by_article(con: sqlite3.Connection, ids: list[int]) -> dict[int, list[str]]:
        tags: dict[int, list[str]] = defaultdict(list)
        for start in range(0, len(ids), _IN_CHUNK):
            chunk = ids[start : start + _IN_CHUNK]
            rows = con.execute(
                f"""
                SELECT at.article_id, t.name
                FROM article_tags at
                JOIN tags t ON t.id = at.tag_id
                WHERE at.article_id IN ({', '.join('?' * len(chunk))})
                ORDER BY t.name
                """,
                chunk,
            ).fetchall()
            for row in rows:
                tags[row[0]].append(row[1])
        return tags

    @staticmethod
    def _row_to_article(row: sqlite3.Row, tags: list[str]) -> Article:
        data = dict(row)
        data["content"] = json.loads(data["content"]) if data["content"] else ""
        if data["published_at"]:
            data["published_at"] = datetime.fromisoformat(data["published_at"])
        data["tags"] = tags
        return Article(**data)
