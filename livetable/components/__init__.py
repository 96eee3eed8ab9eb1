"""Live table components."""

from .pagination import GAP, PageWindow, compute_page_window, page_of_offset, page_offset
from .table import LiveTable
from .tagcloud import POPULARITY_LEVELS, TagCloud, TagCloudEntry, build_popularity_map

__all__ = [
    "LiveTable",
    "PageWindow",
    "GAP",
    "compute_page_window",
    "page_of_offset",
    "page_offset",
    "TagCloud",
    "TagCloudEntry",
    "POPULARITY_LEVELS",
    "build_popularity_map",
]
