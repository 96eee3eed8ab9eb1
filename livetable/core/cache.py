"""Sparse row cache for live tables.

This module provides the client-side store of fetched rows:
- RowCache: index-addressed rows plus the authoritative total row count
- MissingRange: contiguous block of rows that must be requested
- plan_missing_range: decides which rows a display window still needs
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

if TYPE_CHECKING:
    from .fetch import FetchResponse

# totalRows value of a cache that never received a response
UNKNOWN_TOTAL = -1


@dataclass(frozen=True)
class MissingRange:
    """Inclusive range of absolute row indices to request from the server.

    Attributes:
        first: Index of the first row to fetch (1-based)
        last: Index of the last row to fetch (inclusive)
    """

    first: int
    last: int

    @property
    def offset(self) -> int:
        return self.first

    @property
    def limit(self) -> int:
        return max(0, self.last - self.first + 1)


class RowCache:
    """
    Sparse mapping of absolute row index to server-provided row.

    Indices absent from the mapping have not been fetched yet. Rows are
    never modified in place: a refetch replaces the stored row wholesale.

    Attributes:
        total_rows: Row count reported by the last merged response,
            or UNKNOWN_TOTAL (-1) if nothing was merged since the last clear.
    """

    def __init__(self):
        self._rows: Dict[int, Any] = {}
        self.total_rows: int = UNKNOWN_TOTAL

    @property
    def is_known(self) -> bool:
        """True once a response has been merged since the last clear."""
        return self.total_rows != UNKNOWN_TOTAL

    def get(self, index: int) -> Optional[Any]:
        """
        Get the cached row at an absolute index.

        Args:
            index: Absolute 1-based row index

        Returns:
            The cached row, or None if the index has not been fetched.
            Rows can themselves be None (JSON null); use `index in cache`
            to tell them apart.
        """
        return self._rows.get(index)

    def merge(self, response: "FetchResponse") -> None:
        """
        Store a fetched slice and adopt the server's total row count.

        Rows already cached at the same indices are overwritten.

        Args:
            response: Accepted server response
        """
        for i, row in enumerate(response.rows):
            self._rows[response.offset + i] = row
        self.total_rows = response.total_rows

    def clear(self) -> None:
        """Drop every cached row and forget the total row count."""
        self._rows.clear()
        self.total_rows = UNKNOWN_TOTAL

    def delete_and_shift(self, index: int) -> None:
        """
        Remove the row at index and renumber every later row one down.

        The total row count is left to the caller.

        Args:
            index: Absolute index of the deleted row
        """
        shifted: Dict[int, Any] = {}
        for i, row in self._rows.items():
            if i < index:
                shifted[i] = row
            elif i > index:
                shifted[i - 1] = row
        self._rows = shifted

    def indices(self) -> List[int]:
        """Return cached indices in ascending order."""
        return sorted(self._rows)

    def describe(self) -> str:
        """Return the cached indices as a space-separated string."""
        return " ".join(str(i) for i in self.indices())

    def __contains__(self, index: object) -> bool:
        return index in self._rows

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[int]:
        return iter(self.indices())

    def __repr__(self) -> str:
        return f"RowCache(total_rows={self.total_rows}, cached={len(self._rows)})"


def plan_missing_range(
    cache: RowCache, offset: int, limit: int
) -> Optional[MissingRange]:
    """
    Compute the contiguous block of rows a display window still needs.

    Before the first response the whole display window is requested.
    Afterwards, the window (clipped to the known total) is scanned and
    every uncached index is collapsed into one bounding range, since the
    server only answers contiguous offset/limit queries.

    Args:
        cache: Current row cache
        offset: First displayed index (1-based)
        limit: Number of rows to display

    Returns:
        MissingRange to fetch, or None if every displayed row is cached

    Examples:
        >>> cache = RowCache()
        >>> plan_missing_range(cache, 1, 10)
        MissingRange(first=1, last=10)
    """
    if not cache.is_known:
        return MissingRange(offset, offset + limit - 1)

    end = min(offset + limit, cache.total_rows + 1)
    first = -1
    last = -1
    for i in range(offset, end):
        if i not in cache:
            if first == -1:
                first = i
            last = i

    if first == -1:
        return None
    return MissingRange(first, last)
