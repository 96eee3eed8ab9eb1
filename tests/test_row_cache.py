"""Tests for the sparse row cache and fetch range planning."""

from livetable.core.cache import UNKNOWN_TOTAL, MissingRange, RowCache, plan_missing_range
from livetable.core.fetch import FetchResponse


def _response(offset, rows, total, request_number=1):
    return FetchResponse(
        request_number=request_number,
        offset=offset,
        returned_rows=len(rows),
        total_rows=total,
        rows=rows,
    )


class TestRowCache:
    """Tests for RowCache operations."""

    def test_new_cache_is_empty_and_unknown(self):
        cache = RowCache()
        assert len(cache) == 0
        assert cache.total_rows == UNKNOWN_TOTAL
        assert not cache.is_known
        assert cache.get(1) is None

    def test_merge_places_rows_at_absolute_indices(self):
        cache = RowCache()
        cache.merge(_response(11, ["k", "l", "m"], total=40))

        assert cache.indices() == [11, 12, 13]
        assert cache.get(12) == "l"
        assert cache.total_rows == 40

    def test_merge_overwrites_existing_rows(self):
        """Refetched rows replace the cached ones."""
        cache = RowCache()
        cache.merge(_response(1, ["a", "b"], total=2))
        cache.merge(_response(2, ["B"], total=5))

        assert cache.get(1) == "a"
        assert cache.get(2) == "B"
        assert cache.total_rows == 5

    def test_clear_resets_total(self):
        cache = RowCache()
        cache.merge(_response(1, ["a"], total=1))
        cache.clear()

        assert len(cache) == 0
        assert cache.total_rows == UNKNOWN_TOTAL

    def test_delete_and_shift(self):
        """Deleting index 2 of {1:A,2:B,3:C,4:D} gives {1:A,2:C,3:D}."""
        cache = RowCache()
        cache.merge(_response(1, ["A", "B", "C", "D"], total=4))

        cache.delete_and_shift(2)

        assert cache.indices() == [1, 2, 3]
        assert [cache.get(i) for i in (1, 2, 3)] == ["A", "C", "D"]
        # Total is maintained by the caller
        assert cache.total_rows == 4

    def test_delete_and_shift_keeps_holes(self):
        cache = RowCache()
        cache.merge(_response(1, ["A", "B"], total=10))
        cache.merge(_response(5, ["E", "F"], total=10))

        cache.delete_and_shift(1)

        assert cache.indices() == [1, 4, 5]
        assert cache.get(1) == "B"
        assert cache.get(4) == "E"

    def test_describe_lists_cached_indices(self):
        cache = RowCache()
        cache.merge(_response(3, ["c", "d"], total=10))
        assert cache.describe() == "3 4"


class TestPlanMissingRange:
    """Tests for deciding which rows must be requested."""

    def test_bootstrap_requests_display_window(self):
        """Before any response, the whole display window is requested."""
        missing = plan_missing_range(RowCache(), 21, 10)
        assert missing == MissingRange(21, 30)
        assert missing.offset == 21
        assert missing.limit == 10

    def test_fully_cached_window_needs_no_fetch(self):
        cache = RowCache()
        cache.merge(_response(1, list("abcdefghij"), total=95))
        assert plan_missing_range(cache, 1, 10) is None

    def test_scattered_gaps_collapse_to_bounding_range(self):
        """Cached {1,2,3,7,8}: rows 4 to 6 are requested."""
        cache = RowCache()
        cache.merge(_response(1, ["r1", "r2", "r3"], total=8))
        cache.merge(_response(7, ["r7", "r8"], total=8))

        missing = plan_missing_range(cache, 1, 9)

        assert missing.first == 4
        assert missing.last == 6
        assert missing.limit == 3

    def test_interior_cached_rows_are_refetched_within_bounds(self):
        cache = RowCache()
        cache.merge(_response(1, ["a"], total=100))
        cache.merge(_response(5, ["e"], total=100))

        missing = plan_missing_range(cache, 1, 10)

        assert missing == MissingRange(2, 10)

    def test_rows_past_the_end_are_not_missing(self):
        """A short last page is fully cached once its rows are fetched."""
        cache = RowCache()
        cache.merge(_response(91, ["r91", "r92", "r93", "r94", "r95"], total=95))
        assert plan_missing_range(cache, 91, 10) is None

    def test_empty_result_set_needs_no_fetch(self):
        cache = RowCache()
        cache.merge(_response(1, [], total=0))
        assert plan_missing_range(cache, 1, 10) is None

    def test_null_rows_count_as_cached(self):
        cache = RowCache()
        cache.merge(_response(1, [None, "b"], total=2))

        assert 1 in cache
        assert cache.get(1) is None
        assert plan_missing_range(cache, 1, 2) is None
