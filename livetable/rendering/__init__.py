"""Rendering utilities for showing live tables in Streamlit."""

from .bridge import get_live_table, render_live_table, rows_to_frame

__all__ = [
    "render_live_table",
    "get_live_table",
    "rows_to_frame",
]
