"""Permalink state kept in a location fragment.

Several tables can share one fragment. Each table owns one entry and the
entries are joined with "|":

    t=documents&p=3&status=open|t=users&p=1

"t" (table id) and "p" (page number) are reserved; every other parameter
of an entry is a filter value.
"""

from typing import Dict, List, Optional
from urllib.parse import parse_qsl

from .filtering import encode_component

TABLE_SEPARATOR = "|"
TABLE_KEY = "t"
PAGE_KEY = "p"


def _entries(fragment: str) -> List[str]:
    fragment = fragment[1:] if fragment.startswith("#") else fragment
    if not fragment.strip():
        return []
    return fragment.split(TABLE_SEPARATOR)


def _params(entry: str) -> Dict[str, str]:
    return dict(parse_qsl(entry, keep_blank_values=True))


def _table_params(fragment: str, table_id: str) -> Optional[Dict[str, str]]:
    for entry in _entries(fragment):
        params = _params(entry)
        if params.get(TABLE_KEY) == table_id:
            return params
    return None


def page_from_fragment(fragment: str, table_id: str) -> int:
    """
    Get the page stored for a table.

    Args:
        fragment: Location fragment, with or without leading "#"
        table_id: Table identifier

    Returns:
        The stored page if it is a positive integer, otherwise 1
    """
    params = _table_params(fragment, table_id)
    if params is None:
        return 1
    try:
        page = int(params.get(PAGE_KEY, ""))
    except ValueError:
        return 1
    return page if page > 0 else 1


def filters_from_fragment(fragment: str, table_id: str) -> Dict[str, str]:
    """
    Get the filter values stored for a table.

    Args:
        fragment: Location fragment, with or without leading "#"
        table_id: Table identifier

    Returns:
        Mapping of filter name to value; empty if the table has no entry
    """
    params = _table_params(fragment, table_id)
    if params is None:
        return {}
    return {k: v for k, v in params.items() if k not in (TABLE_KEY, PAGE_KEY)}


def update_fragment(
    fragment: str, table_id: str, page: int, filter_query: str = ""
) -> str:
    """
    Store a table's page and filters, keeping other tables' entries.

    Nothing is written while the table is on page 1 with no filters and
    the fragment is empty, so untouched tables leave no trace.

    Args:
        fragment: Current location fragment, with or without leading "#"
        table_id: Table identifier
        page: Current page number
        filter_query: Serialized filters ("&name=value..." or "")

    Returns:
        The new fragment (without leading "#")
    """
    current = fragment[1:] if fragment.startswith("#") else fragment
    if page == 1 and not current.strip() and not filter_query.strip():
        return current

    kept = [
        entry
        for entry in _entries(current)
        if entry and _params(entry).get(TABLE_KEY) != table_id
    ]
    own = f"{TABLE_KEY}={encode_component(table_id)}&{PAGE_KEY}={page}{filter_query}"
    return TABLE_SEPARATOR.join(kept + [own])
