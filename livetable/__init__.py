"""
Live Table - Incrementally loaded, server-paginated tables.

This package provides a controller that requests row ranges on demand,
keeps fetched rows in a sparse cache, and stays consistent when row
requests complete out of order. Filtering, sorting, tag-cloud selection
and permalinks are supported, with a Streamlit bridge for display.
"""

from .components.pagination import PageWindow, compute_page_window
from .components.table import LiveTable
from .components.tagcloud import TagCloud, build_popularity_map
from .core.cache import MissingRange, RowCache, plan_missing_range
from .core.fetch import (
    FetchError,
    FetchRequest,
    FetchResponse,
    HttpRowFetcher,
    LiveTableError,
    MalformedResponseError,
)
from .core.state import RequestSequencer
from .query.filtering import FilterField, FilterState, serialize_filters
from .rendering.bridge import get_live_table, render_live_table, rows_to_frame

__version__ = "0.1.0"

__all__ = [
    # Core
    "RowCache",
    "MissingRange",
    "plan_missing_range",
    "RequestSequencer",
    "FetchRequest",
    "FetchResponse",
    "HttpRowFetcher",
    # Errors
    "LiveTableError",
    "FetchError",
    "MalformedResponseError",
    # Components
    "LiveTable",
    "PageWindow",
    "compute_page_window",
    "TagCloud",
    "build_popularity_map",
    "FilterField",
    "FilterState",
    "serialize_filters",
    # Rendering
    "render_live_table",
    "get_live_table",
    "rows_to_frame",
]
