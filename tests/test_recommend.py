"""Tests for tag-interest recommendations."""

from conftest import NOW, Dataset

from pressrank.models import Article
from pressrank.recommend import Recommender, affinity


class TestAffinity:
    def test_sums_matching_tags(self) -> None:
        article = Article(id=1, author_id=1, title="t", tags=["react", "frontend", "css"])
        assert affinity(article, {"react": 10, "css": 2, "go": 50}) == 12

    def test_no_match(self) -> None:
        article = Article(id=1, author_id=1, title="t", tags=["go"])
        assert affinity(article, {"react": 10}) == 0


class TestRecommend:
    def test_no_claps_nothing_recommended(self, dataset: Dataset) -> None:
        assert Recommender(dataset.store).recommend(dataset.reader, limit=10) == []

    def test_excludes_clapped_and_authored(self, dataset: Dataset) -> None:
        store = dataset.store
        store.add_claps(dataset.alice, dataset.old_js, 3)
        picks = Recommender(store).recommend(dataset.alice, limit=10, as_of=NOW)
        ids = {a.id for a in picks}
        assert dataset.old_js not in ids
        assert not any(a.author_id == dataset.alice for a in picks)

    def test_matches_interest_tags(self, dataset: Dataset) -> None:
        store = dataset.store
        store.add_claps(dataset.clapper, dataset.js_intro, 5)
        store.add_claps(dataset.clapper, dataset.react, 10)

        picks = Recommender(store).recommend(dataset.clapper, limit=10, as_of=NOW)
        # javascript and programming interests; react/frontend have nothing unseen
        assert [a.id for a in picks] == [dataset.old_js, dataset.go]

    def test_higher_weight_tags_rank_first(self, dataset: Dataset) -> None:
        store = dataset.store
        patterns = store.add_article(
            dataset.bob,
            "Advanced React Patterns",
            published_at=NOW,
            tags=["react"],
        )
        store.add_claps(dataset.clapper, dataset.react, 40)
        store.add_claps(dataset.clapper, dataset.js_intro, 5)

        picks = Recommender(store).recommend(dataset.clapper, limit=10, as_of=NOW)
        # react (40) beats javascript/programming (5) despite zero engagement
        assert picks[0].id == patterns
        assert {a.id for a in picks[1:]} == {dataset.old_js, dataset.go}

    def test_limit_and_distinct(self, dataset: Dataset) -> None:
        store = dataset.store
        store.add_claps(dataset.clapper, dataset.js_intro, 5)
        picks = Recommender(store).recommend(dataset.clapper, limit=1, as_of=NOW)
        assert len(picks) == 1
        assert len({a.id for a in picks}) == len(picks)

    def test_negative_limit_gives_nothing(self, dataset: Dataset) -> None:
        dataset.store.add_claps(dataset.clapper, dataset.js_intro, 5)
        assert Recommender(dataset.store).recommend(dataset.clapper, limit=-1, as_of=NOW) == []
