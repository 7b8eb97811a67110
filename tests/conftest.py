"""Shared fixtures: a small publishing dataset in a throwaway SQLite file."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from pressrank.store import ArticleStore

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


@dataclass
class Dataset:
    store: ArticleStore
    alice: int
    bob: int
    reader: int
    clapper: int
    js_intro: int
    react: int
    python: int
    old_js: int
    go: int
    draft: int


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "pressrank.sqlite3"


@pytest.fixture
def store(db_path: Path) -> ArticleStore:
    return ArticleStore(db_path=db_path)


@pytest.fixture
def dataset(store: ArticleStore) -> Dataset:
    alice = store.add_user("alice", "Writes about JavaScript and the web")
    bob = store.add_user("bob", "Data engineer")
    reader = store.add_user("reader")
    clapper = store.add_user("clapper")

    js_intro = store.add_article(
        alice,
        "Introduction to JavaScript Programming",
        subtitle="Learn the basics",
        content={"blocks": [{"text": "JavaScript runs in every browser."}]},
        published_at=days_ago(2),
        view_count=100,
        clap_count=20,
        comment_count=5,
        reading_time=6,
        tags=["JavaScript", "programming"],
    )
    react = store.add_article(
        alice,
        "Building UIs with React",
        subtitle="Components and hooks for JavaScript developers",
        content="State lives in components.",
        published_at=days_ago(3),
        view_count=200,
        clap_count=50,
        comment_count=10,
        reading_time=9,
        tags=["react", "frontend"],
    )
    python = store.add_article(
        bob,
        "Python for Data Science",
        content="Pandas and NumPy make analysis pleasant.",
        published_at=days_ago(10),
        view_count=1000,
        clap_count=300,
        comment_count=40,
        reading_time=12,
        tags=["python", "data"],
    )
    old_js = store.add_article(
        bob,
        "JavaScript Closures Explained",
        content="A closure captures variables from its scope.",
        published_at=days_ago(60),
        view_count=5000,
        clap_count=900,
        comment_count=100,
        reading_time=4,
        tags=["javascript"],
    )
    go = store.add_article(
        bob,
        "Concurrency in Go",
        content="Goroutines and channels.",
        published_at=days_ago(1),
        view_count=10,
        reading_time=5,
        tags=["go", "programming"],
    )
    draft = store.add_article(
        alice,
        "Unpublished JavaScript Draft",
        status="draft",
        tags=["javascript"],
    )

    store.follow(reader, bob)

    return Dataset(
        store=store,
        alice=alice,
        bob=bob,
        reader=reader,
        clapper=clapper,
        js_intro=js_intro,
        react=react,
        python=python,
        old_js=old_js,
        go=go,
        draft=draft,
    )
