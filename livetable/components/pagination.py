"""Pagination window for live tables."""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Union

# Marker placed between the first/last page and the visible block
GAP = Ellipsis

PageItem = Union[int, type(Ellipsis)]


@dataclass(frozen=True)
class PageWindow:
    """
    Page links to present for the current position.

    Attributes:
        current_page: 1-based current page
        total_pages: Number of pages (0 for an empty result set)
        pages: Page numbers in display order, with GAP (...) where
            pages are skipped
        has_prev: Whether a previous page exists
        has_next: Whether a next page exists
    """

    current_page: int
    total_pages: int
    pages: List[PageItem] = field(default_factory=list)
    has_prev: bool = False
    has_next: bool = False

    @property
    def page_numbers(self) -> List[int]:
        """Visible page numbers without gap markers."""
        return [p for p in self.pages if p is not GAP]


def compute_page_window(
    total_rows: int,
    limit: int,
    current_offset: int,
    max_pages: Optional[int] = 10,
) -> PageWindow:
    """
    Compute the page links for a position in the result set.

    The visible block holds at most max_pages consecutive pages and is
    anchored on multiples of max_pages, so it only moves when the current
    page leaves it. Page 1 and the last page are always shown, separated
    from the block by a gap marker when pages are skipped.

    Args:
        total_rows: Total row count (<= 0 means no rows)
        limit: Rows per page
        current_offset: Zero-based offset of the first displayed row
        max_pages: Size of the visible block; 0 or None shows every page

    Returns:
        PageWindow for the current page

    Examples:
        >>> compute_page_window(95, 10, 41, 3).pages
        [1, Ellipsis, 4, 5, 6, Ellipsis, 10]
    """
    limit = max(1, limit)
    total_pages = math.ceil(total_rows / limit) if total_rows > 0 else 0
    current_page = max(1, current_offset // limit + 1)

    if total_pages == 0:
        return PageWindow(current_page=current_page, total_pages=0)

    block_size = max_pages if max_pages else total_pages
    anchor = min(current_page, total_pages)
    start = ((anchor - 1) // block_size) * block_size + 1
    end = min(start + block_size - 1, total_pages)

    pages: List[PageItem] = []
    if start > 1:
        pages.append(1)
        if start > 2:
            pages.append(GAP)
    pages.extend(range(start, end + 1))
    if end < total_pages:
        if end + 1 < total_pages:
            pages.append(GAP)
        pages.append(total_pages)

    return PageWindow(
        current_page=current_page,
        total_pages=total_pages,
        pages=pages,
        has_prev=current_page > 1,
        has_next=current_page < total_pages,
    )


def page_of_offset(offset: int, limit: int) -> int:
    """
    Get the page a 1-based offset belongs to.

    Uses floor(offset / limit) + 1, so an offset that is not on a page
    boundary counts towards the page holding most of its rows. With one
    row per page the offset is the page.

    Args:
        offset: Absolute index of the first displayed row (1-based)
        limit: Rows per page

    Returns:
        Page number (>= 1)

    Examples:
        >>> page_of_offset(41, 10), page_of_offset(90, 10), page_of_offset(7, 1)
        (5, 10, 7)
    """
    limit = max(1, limit)
    if limit == 1:
        return max(1, offset)
    return max(1, offset // limit + 1)


def page_offset(page: int, limit: int) -> int:
    """
    Get the 1-based offset of the first row of a page.

    Args:
        page: Page number (values below 1 are treated as 1)
        limit: Rows per page

    Returns:
        Absolute index of the page's first row
    """
    return (max(1, page) - 1) * limit + 1
