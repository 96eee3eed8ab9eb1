"""Bridge between live tables and Streamlit."""

import asyncio
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import polars as pl
import streamlit as st

from ..components.pagination import GAP
from ..components.table import LiveTable
from ..core.fetch import LiveTableError

# Session state key for per-table controllers
# Each table id maps to exactly one LiveTable for the whole session, so the
# row cache and request numbering survive Streamlit reruns
_LIVE_TABLES_KEY = "_livetable_controllers"


def _get_table_store() -> Dict[str, LiveTable]:
    """Get the per-session table store from session state."""
    if _LIVE_TABLES_KEY not in st.session_state:
        st.session_state[_LIVE_TABLES_KEY] = {}
    return st.session_state[_LIVE_TABLES_KEY]


def get_live_table(table_id: str, factory: Callable[[], LiveTable]) -> LiveTable:
    """
    Get the session's controller for a table, creating it on first use.

    Args:
        table_id: Table identifier
        factory: Zero-argument callable building the LiveTable. Called only
            when the session has no controller for table_id yet.

    Returns:
        The session's LiveTable for table_id

    Raises:
        ValueError: If the factory builds a table with a different id
    """
    store = _get_table_store()
    if table_id not in store:
        table = factory()
        if table.table_id != table_id:
            raise ValueError(
                f"Factory built table '{table.table_id}', expected '{table_id}'"
            )
        store[table_id] = table
    return store[table_id]


def clear_live_tables() -> None:
    """
    Drop every stored controller.

    Call this when the data source changes to start from empty caches.
    """
    if _LIVE_TABLES_KEY in st.session_state:
        st.session_state[_LIVE_TABLES_KEY].clear()


def rows_to_frame(rows: Sequence[Any]) -> pl.DataFrame:
    """
    Convert rendered rows to a DataFrame.

    Only mapping rows (decoded JSON objects) are converted; columns are
    the union of all keys, missing values become null.

    Args:
        rows: Displayed elements, typically LiveTable.display

    Returns:
        Polars DataFrame with one row per mapping
    """
    records = [dict(row) for row in rows if isinstance(row, Mapping)]
    if not records:
        return pl.DataFrame()
    return pl.from_dicts(records, infer_schema_length=None)


def render_live_table(table: LiveTable, key: Optional[str] = None) -> None:
    """
    Render a live table in Streamlit.

    This function:
    1. Loads the first page if nothing was fetched yet
    2. Shows the "Results first - last of total" caption
    3. Shows the displayed rows as a dataframe
    4. Shows previous/page/next buttons; a click navigates and reruns

    Fetch errors are shown with st.error and leave the table usable.

    Args:
        table: The table to render
        key: Optional prefix for widget keys (default: derived from table id)
    """
    if key is None:
        key = f"livetable_{table.table_id}"

    try:
        if not table.cache.is_known:
            asyncio.run(table.load())
    except LiveTableError as e:
        st.error(f"Could not load rows: {e}")
        return

    first, last, total = table.limits
    st.caption(f"Results {first} - {last} of {total}")

    frame = rows_to_frame(table.display)
    st.dataframe(frame.to_pandas(), hide_index=True)

    window = table.page_window
    if window.total_pages <= 1:
        return

    target = None
    columns = st.columns(len(window.pages) + 2)

    with columns[0]:
        if st.button("‹", key=f"{key}_prev", disabled=not window.has_prev):
            target = window.current_page - 1

    for column, item in zip(columns[1:-1], window.pages):
        with column:
            if item is GAP:
                st.markdown("…")
                continue
            selected = item == window.current_page
            if st.button(
                str(item),
                key=f"{key}_page_{item}",
                disabled=selected,
                type="primary" if selected else "secondary",
            ):
                target = item

    with columns[-1]:
        if st.button("›", key=f"{key}_next", disabled=not window.has_next):
            target = window.current_page + 1

    if target is not None:
        try:
            asyncio.run(table.goto_page(target))
        except LiveTableError as e:
            st.error(f"Could not load rows: {e}")
            return
        st.rerun()
