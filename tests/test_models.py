"""Tests for request models and validation."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from pressrank import config
from pressrank.models import Article, ClapRecord, FeedFilters, PageRequest, SearchFilters, ensure_utc


class TestPageRequest:
    @pytest.mark.parametrize(
        ("page", "page_size", "expected"),
        [
            (1, 10, (1, 10)),
            (0, 10, (1, 10)),
            (-4, 5, (1, 5)),
            (2, 0, (2, 1)),
            (2, 10_000, (2, config.MAX_PAGE_SIZE)),
            ("3", "7", (3, 7)),
            ("x", None, (1, config.DEFAULT_PAGE_SIZE)),
        ],
    )
    def test_clamping(self, page, page_size, expected: tuple[int, int]) -> None:
        req = PageRequest(page=page, page_size=page_size)
        assert (req.page, req.page_size) == expected

    def test_slice_and_pages(self) -> None:
        req = PageRequest(page=2, page_size=3)
        assert req.offset == 3
        assert req.slice(list(range(8))) == [3, 4, 5]
        assert req.total_pages(8) == 3
        assert req.total_pages(0) == 0

    def test_page_past_the_end(self) -> None:
        assert PageRequest(page=9, page_size=3).slice([1, 2]) == []


class TestFilters:
    def test_blank_type_means_all(self) -> None:
        assert SearchFilters(type="").type == "all"

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SearchFilters(type="comments")

    def test_naive_dates_become_utc(self) -> None:
        filters = FeedFilters(date_from=datetime(2025, 1, 1))
        assert filters.date_from == datetime(2025, 1, 1, tzinfo=UTC)
        assert FeedFilters(sort=None).sort == "latest"


class TestEntities:
    def test_counts_cannot_be_negative(self) -> None:
        with pytest.raises(ValidationError):
            Article(id=1, author_id=1, title="t", view_count=-1)

    @pytest.mark.parametrize("count", [0, 51])
    def test_clap_bounds(self, count: int) -> None:
        with pytest.raises(ValidationError):
            ClapRecord(user_id=1, article_id=1, count=count)

    def test_ensure_utc(self) -> None:
        assert ensure_utc(None) is None
        aware = datetime(2025, 1, 1, tzinfo=UTC)
        assert ensure_utc(aware) is aware
        assert ensure_utc(datetime(2025, 1, 1)).tzinfo is UTC
