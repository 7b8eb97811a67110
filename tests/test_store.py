"""Tests for the SQLite article store."""

from pathlib import Path

import pytest
from conftest import Dataset, days_ago

from pressrank.store import MAX_CLAPS_PER_USER, ArticleStore, DataStoreUnavailable


def _article(store: ArticleStore, article_id: int):
    return next(a for a in store.published_articles() if a.id == article_id)


class TestClaps:
    def test_claps_accumulate_and_bump_count(self, dataset: Dataset) -> None:
        store = dataset.store
        before = _article(store, dataset.go).clap_count

        assert store.add_claps(dataset.clapper, dataset.go, 3) == 3
        assert store.add_claps(dataset.clapper, dataset.go, 4) == 7
        assert _article(store, dataset.go).clap_count == before + 7

    def test_cap_per_user(self, dataset: Dataset) -> None:
        store = dataset.store
        before = _article(store, dataset.go).clap_count

        store.add_claps(dataset.clapper, dataset.go, 45)
        assert store.add_claps(dataset.clapper, dataset.go, 20) == MAX_CLAPS_PER_USER
        assert store.add_claps(dataset.clapper, dataset.go, 1) == MAX_CLAPS_PER_USER
        assert _article(store, dataset.go).clap_count == before + MAX_CLAPS_PER_USER

    @pytest.mark.parametrize("count", [0, -5])
    def test_non_positive_rejected(self, dataset: Dataset, count: int) -> None:
        with pytest.raises(ValueError):
            dataset.store.add_claps(dataset.clapper, dataset.go, count)

    def test_clapped_tags_one_row_per_tag(self, dataset: Dataset) -> None:
        dataset.store.add_claps(dataset.clapper, dataset.react, 10)
        assert sorted(dataset.store.clapped_tags(dataset.clapper)) == [
            ("frontend", 10),
            ("react", 10),
        ]
        claps = dataset.store.claps(dataset.clapper)
        assert [(c.article_id, c.count) for c in claps] == [(dataset.react, 10)]


class TestArticles:
    def test_only_published_with_date(self, dataset: Dataset) -> None:
        undated = dataset.store.add_article(dataset.bob, "No date yet")
        ids = {a.id for a in dataset.store.published_articles()}
        assert dataset.draft not in ids
        assert undated not in ids
        assert len(ids) == 5

    def test_newest_first(self, dataset: Dataset) -> None:
        stamps = [a.published_at for a in dataset.store.published_articles()]
        assert stamps == sorted(stamps, reverse=True)

    def test_tags_are_normalized(self, dataset: Dataset) -> None:
        intro = _article(dataset.store, dataset.js_intro)
        assert intro.tags == ["javascript", "programming"]
        slugs = {t.name: t.slug for t in dataset.store.tags()}
        assert slugs["javascript"] == "javascript"

    def test_multiword_tag_slug(self, dataset: Dataset) -> None:
        article = dataset.store.add_article(
            dataset.bob, "ML notes", published_at=days_ago(1), tags=["  Machine   Learning "]
        )
        assert _article(dataset.store, article).tags == ["machine learning"]
        found = dataset.store.published_articles(tag="machine-learning")
        assert [a.id for a in found] == [article]

    def test_tags_sharing_a_slug_resolve_to_one_row(self, dataset: Dataset) -> None:
        store = dataset.store
        c_tips = store.add_article(dataset.bob, "C tips", published_at=days_ago(1), tags=["C"])
        cpp_tips = store.add_article(
            dataset.bob, "C++ tips", published_at=days_ago(1), tags=["C++", "C#"]
        )

        assert _article(store, c_tips).tags == ["c"]
        assert _article(store, cpp_tips).tags == ["c"]
        tags = [t for t in store.tags() if t.slug == "c"]
        assert len(tags) == 1
        assert tags[0].article_count == 2

    def test_punctuation_only_tags_are_skipped(self, dataset: Dataset) -> None:
        article = dataset.store.add_article(
            dataset.bob, "Symbols", published_at=days_ago(1), tags=["++", "#", "rust"]
        )
        assert _article(dataset.store, article).tags == ["rust"]
        assert "" not in {t.slug for t in dataset.store.tags()}

    @pytest.mark.parametrize("pattern", ["_", "%", "a_i"])
    def test_author_filter_is_literal(self, dataset: Dataset, pattern: str) -> None:
        assert dataset.store.published_articles(author=pattern) == []

    def test_author_filter_matches_substring(self, dataset: Dataset) -> None:
        found = dataset.store.published_articles(author="li")
        assert {a.author_username for a in found} == {"alice"}

    def test_rich_content_round_trips(self, dataset: Dataset) -> None:
        intro = _article(dataset.store, dataset.js_intro)
        assert intro.content == {"blocks": [{"text": "JavaScript runs in every browser."}]}
        assert intro.published_at is not None
        assert intro.published_at.tzinfo is not None

    def test_author_ids_empty_matches_nothing(self, dataset: Dataset) -> None:
        assert dataset.store.published_articles(author_ids=[]) == []

    def test_tag_article_counts(self, dataset: Dataset) -> None:
        counts = {t.name: t.article_count for t in dataset.store.tags()}
        # the draft's javascript tag does not count
        assert counts["javascript"] == 2
        assert counts["programming"] == 2


class TestUsers:
    def test_add_user_is_idempotent(self, store: ArticleStore) -> None:
        first = store.add_user("dora", "hello")
        assert store.add_user("dora") == first
        assert [u.username for u in store.users()] == ["dora"]

    def test_counts(self, dataset: Dataset) -> None:
        users = {u.username: u for u in dataset.store.users()}
        assert users["bob"].followers_count == 1
        assert users["bob"].articles_count == 3
        assert users["alice"].articles_count == 2

    def test_follow_is_idempotent(self, dataset: Dataset) -> None:
        dataset.store.follow(dataset.reader, dataset.bob)
        assert dataset.store.followed_author_ids(dataset.reader) == {dataset.bob}


class TestFailures:
    def test_unopenable_database(self, tmp_path: Path) -> None:
        store = ArticleStore(db_path=tmp_path / "ok.sqlite3")
        store._db_path = tmp_path / "missing-dir" / "x.sqlite3"
        with pytest.raises(DataStoreUnavailable):
            store.published_articles()

    def test_write_rolls_back(self, dataset: Dataset) -> None:
        # unknown user violates the foreign key
        with pytest.raises(DataStoreUnavailable):
            dataset.store.add_article(9999, "Orphan", published_at=days_ago(1))
        assert "Orphan" not in {a.title for a in dataset.store.published_articles()}
