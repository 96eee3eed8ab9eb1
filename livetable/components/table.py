"""Live table controller backed by a paginated JSON endpoint."""

import logging
import math
import uuid
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    MutableSequence,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from ..core.cache import RowCache, plan_missing_range
from ..core.fetch import FetchRequest, FetchResponse, HttpRowFetcher
from ..core.state import RequestSequencer
from ..query.filtering import FilterField, FilterState
from ..query.location import filters_from_fragment, page_from_fragment, update_fragment
from .pagination import PageWindow, compute_page_window, page_of_offset, page_offset
from .tagcloud import TagCloud

logger = logging.getLogger(__name__)

SORT_DIRECTIONS = ("asc", "desc")
DEFAULT_SORT_DIRECTION = "desc"

Fetcher = Callable[..., Awaitable[Any]]
RowHandler = Callable[[Any, int, "LiveTable"], Any]
RowListener = Callable[[Any, "LiveTable"], None]


def _identity_handler(row: Any, index: int, table: "LiveTable") -> Any:
    return row


class LiveTable:
    """
    Incrementally loaded, server-paginated table.

    Rows are requested on demand by offset/limit, kept in a sparse
    RowCache, and rendered one page at a time. Each display change is one
    coroutine: plan the missing rows, await a single fetch, then merge and
    render. Responses to superseded requests are dropped by request number,
    so concurrent navigation always ends on the newest request's data.

    Features:
    - Only rows missing from the cache are requested
    - Filter, sort and tag changes invalidate the cache and return to page 1
    - Local row deletion shifts cached rows instead of refetching
    - Page and filters round-trip through a permalink fragment
    - "row rendered" listeners for behavior attached to rendered rows

    Example:
        table = LiveTable(
            "https://example.org/rows?outputSyntax=json",
            table_id="documents",
            limit=25,
            filters=[FilterField("title"), FilterField("status", kind="select",
                                                      options=("open", "closed"))],
            tag_cloud=TagCloud(),
        )
        await table.load()
        await table.set_filter("status", "open")
        await table.next_page()
    """

    def __init__(
        self,
        url: str,
        table_id: Optional[str] = None,
        fetcher: Optional[Fetcher] = None,
        handler: Optional[RowHandler] = None,
        limit: int = 10,
        max_pages: Optional[int] = 10,
        permalinks: bool = True,
        location_fragment: str = "",
        filters: Optional[Union[FilterState, Sequence[FilterField]]] = None,
        tag_cloud: Optional[TagCloud] = None,
        sort: Optional[str] = None,
        sort_directions: Optional[Dict[str, str]] = None,
        container: Optional[MutableSequence[Any]] = None,
    ):
        """
        Initialize the table. No request is sent until load() is awaited.

        Args:
            url: Base address of the row endpoint
            table_id: Unique identifier of this table, used for permalinks.
                A random id is generated if omitted.
            fetcher: Awaitable callable
                fetcher(url, offset, limit, request_number, filter_query,
                tags, sort, direction) returning a FetchResponse or the
                decoded JSON object. Defaults to an HttpRowFetcher.
            handler: Callable handler(row, index, table) building the
                displayed element for a row. Defaults to the row itself.
            limit: Rows per page (must be positive)
            max_pages: Number of consecutive page links to show; 0 or None
                shows every page
            permalinks: If True, read the initial page and filters from
                location_fragment and rewrite it on every display change
            location_fragment: Initial permalink fragment
            filters: FilterState or list of FilterField controls
            tag_cloud: Optional TagCloud fed from responses carrying
                matchingtags
            sort: Initially selected sort column
            sort_directions: Initial direction per sortable column,
                'asc' or 'desc' (default 'desc')
            container: Mutable sequence receiving rendered elements.
                A new list is used if omitted.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")
        if max_pages is not None and max_pages < 0:
            raise ValueError(f"max_pages must be >= 0, got {max_pages!r}")
        sort_directions = dict(sort_directions or {})
        for column, direction in sort_directions.items():
            if direction not in SORT_DIRECTIONS:
                raise ValueError(
                    f"Sort direction for '{column}' must be one of "
                    f"{list(SORT_DIRECTIONS)}, got '{direction}'"
                )

        self._url = url
        self._table_id = table_id or uuid.uuid4().hex
        self._fetcher = fetcher or HttpRowFetcher()
        self._handler = handler or _identity_handler
        self._limit = limit
        self._max_pages = max_pages
        self._permalinks = permalinks
        self._location_fragment = location_fragment
        self._tag_cloud = tag_cloud
        self._container = container if container is not None else []
        self._row_listeners: List[RowListener] = []

        self._sort = sort
        self._sort_directions = sort_directions
        if sort is not None:
            self._sort_directions.setdefault(sort, DEFAULT_SORT_DIRECTION)

        if filters is not None and not isinstance(filters, FilterState):
            filters = FilterState(filters)
        self._filter_state = filters
        if self._filter_state is not None and permalinks:
            self._filter_state.apply(
                filters_from_fragment(location_fragment, self._table_id)
            )
        self._filters = self._filter_state.serialize() if self._filter_state else ""
        self._tags: List[str] = []

        self._cache = RowCache()
        self._sequencer = RequestSequencer()
        self._in_flight = 0
        self._display_token = 0
        self._limits: Tuple[int, int, int] = (0, 0, 0)

        initial_page = (
            page_from_fragment(location_fragment, self._table_id) if permalinks else 1
        )
        self._last_offset = page_offset(initial_page, limit)

    # ------------------------------------------------------------------
    # State accessors

    @property
    def table_id(self) -> str:
        return self._table_id

    @property
    def url(self) -> str:
        return self._url

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def cache(self) -> RowCache:
        return self._cache

    @property
    def sequencer(self) -> RequestSequencer:
        return self._sequencer

    @property
    def total_rows(self) -> int:
        return self._cache.total_rows

    @property
    def current_offset(self) -> int:
        """1-based index of the first row of the last display request."""
        return self._last_offset

    @property
    def display(self) -> List[Any]:
        """Rendered elements of the current display, in row order."""
        return list(self._container)

    @property
    def limits(self) -> Tuple[int, int, int]:
        """(first, last, total) of the rows shown by the last render."""
        return self._limits

    @property
    def is_loading(self) -> bool:
        """True while at least one row request is in flight."""
        return self._in_flight > 0

    @property
    def location_fragment(self) -> str:
        return self._location_fragment

    @property
    def filter_state(self) -> Optional[FilterState]:
        return self._filter_state

    @property
    def filters(self) -> str:
        """Serialized filters of the current result set."""
        return self._filters

    @property
    def tags(self) -> List[str]:
        return list(self._tags)

    @property
    def tag_cloud(self) -> Optional[TagCloud]:
        return self._tag_cloud

    @property
    def sort(self) -> Optional[str]:
        return self._sort

    @property
    def sort_direction(self) -> Optional[str]:
        if self._sort is None:
            return None
        return self._sort_directions.get(self._sort, DEFAULT_SORT_DIRECTION)

    @property
    def page_window(self) -> PageWindow:
        """Page links for the current position."""
        page = page_of_offset(self._last_offset, self._limit)
        return compute_page_window(
            self._cache.total_rows,
            self._limit,
            (page - 1) * self._limit,
            self._max_pages,
        )

    def add_row_listener(self, listener: RowListener) -> None:
        """
        Register a callback notified after each row is rendered.

        Args:
            listener: Callable listener(element, table)
        """
        self._row_listeners.append(listener)

    def remove_row_listener(self, listener: RowListener) -> None:
        self._row_listeners.remove(listener)

    # ------------------------------------------------------------------
    # Fetching and display

    async def load(self) -> None:
        """Display the initial page (page 1, or the permalink page)."""
        await self.show_rows(self._last_offset, self._limit)

    async def show_rows(self, offset: int, limit: int) -> None:
        """
        Display rows, fetching whatever is missing from the cache.

        Args:
            offset: First row to display (1-based, clamped to >= 1 and,
                once the total is known, to the last page)
            limit: Number of rows to display (clamped to >= 0)

        Raises:
            FetchError: If the row request failed
            MalformedResponseError: If the response could not be parsed
        """
        offset = self._clamp_offset(offset)
        limit = max(0, limit)
        self._last_offset = offset
        self._display_token += 1
        token = self._display_token

        if self._permalinks:
            self._update_location()

        logger.debug(
            "Table '%s': display rows %d to %d", self._table_id, offset, offset + limit
        )

        missing = plan_missing_range(self._cache, offset, limit)
        if missing is None:
            logger.debug("Table '%s': all rows cached", self._table_id)
            self.display_rows(offset, limit)
            return

        logger.debug(
            "Table '%s': fetching rows %d to %d (cached: %s)",
            self._table_id,
            missing.first,
            missing.last,
            self._cache.describe(),
        )
        await self._get_rows(missing.offset, missing.limit, offset, limit, token)

    async def _get_rows(
        self,
        offset: int,
        limit: int,
        display_offset: int,
        display_limit: int,
        token: int,
    ) -> bool:
        """Issue one sequenced request and apply its response if still current."""
        request = FetchRequest(
            offset=offset,
            limit=limit,
            display_offset=display_offset,
            display_limit=display_limit,
            request_number=self._sequencer.issue(),
        )

        self._in_flight += 1
        try:
            response = await self._fetcher(
                self._url,
                request.offset,
                request.limit,
                request.request_number,
                self._filters,
                list(self._tags),
                self._sort,
                self.sort_direction,
            )
            if not isinstance(response, FetchResponse):
                response = FetchResponse.from_json(response)
        finally:
            self._in_flight -= 1

        if not self._sequencer.accept(response.request_number):
            logger.debug(
                "Table '%s': discarding stale response %d (latest request %d)",
                self._table_id,
                response.request_number,
                self._sequencer.latest_issued,
            )
            return False

        if self._tag_cloud is not None and response.matching_tags is not None:
            self._tag_cloud.update(response.tags, response.matching_tags)

        self._cache.merge(response)

        # A newer display request may have been served from the cache meanwhile
        if token != self._display_token:
            return True
        if self._clamp_offset(request.display_offset) != request.display_offset:
            # Requested past the end before the total was known
            await self.show_rows(request.display_offset, request.display_limit)
            return True
        self.display_rows(request.display_offset, request.display_limit)
        return True

    def _clamp_offset(self, offset: int) -> int:
        """Clamp an offset to >= 1 and, once the total is known, into the last page."""
        offset = max(1, offset)
        if self._cache.is_known and offset > max(self._cache.total_rows, 1):
            last_page = max(1, math.ceil(self._cache.total_rows / self._limit))
            offset = page_offset(last_page, self._limit)
        return offset

    def display_rows(self, offset: int, limit: int) -> None:
        """
        Render cached rows into the display container.

        Rows not in the cache are skipped. Listeners are notified once per
        rendered row.

        Args:
            offset: First row to display (1-based)
            limit: Number of rows to display
        """
        total = self._cache.total_rows
        last = min(offset + limit - 1, total)
        first = offset if total > 0 else 0
        self._limits = (first, max(last, 0), max(total, 0))

        self._container.clear()
        if first == 0:
            return

        for index in range(first, last + 1):
            if index not in self._cache:
                continue
            row = self._cache.get(index)
            element = self._handler(row, index, self)
            self._container.append(element)
            for listener in self._row_listeners:
                listener(element, self)

    def clear_cache(self) -> None:
        """Forget every fetched row and the total row count."""
        logger.debug("Table '%s': clearing row cache", self._table_id)
        self._cache.clear()

    def _update_location(self) -> None:
        page = page_of_offset(self._last_offset, self._limit)
        self._location_fragment = update_fragment(
            self._location_fragment, self._table_id, page, self._filters
        )

    # ------------------------------------------------------------------
    # Navigation

    async def goto_page(self, page: int) -> None:
        """Display a page (pages below 1 show page 1)."""
        await self.show_rows(page_offset(page, self._limit), self._limit)

    async def next_page(self) -> bool:
        """Display the next page. Returns False if already on the last page."""
        window = self.page_window
        if not window.has_next:
            return False
        await self.goto_page(window.current_page + 1)
        return True

    async def prev_page(self) -> bool:
        """Display the previous page. Returns False if already on page 1."""
        window = self.page_window
        if not window.has_prev:
            return False
        await self.goto_page(window.current_page - 1)
        return True

    # ------------------------------------------------------------------
    # Result set changes

    async def refresh_filters(self) -> bool:
        """
        Reload from page 1 if the filters changed since the last request.

        Returns:
            True if the filters changed and the table was reloaded
        """
        if self._filter_state is None or not self._filter_state.has_changed(self._filters):
            return False
        self.clear_cache()
        self._filters = self._filter_state.serialize()
        await self.show_rows(1, self._limit)
        return True

    async def set_filter(self, name: str, value: str) -> bool:
        """
        Set a text/select filter and reload if the filters changed.

        Args:
            name: Filter name
            value: New value ("" clears it)

        Returns:
            True if the table was reloaded
        """
        self._require_filters().set_value(name, value)
        return await self.refresh_filters()

    async def set_filter_checked(self, name: str, value: str, checked: bool = True) -> bool:
        """
        Check/uncheck a checkbox or radio filter option and reload if needed.

        Returns:
            True if the table was reloaded
        """
        self._require_filters().set_checked(name, value, checked)
        return await self.refresh_filters()

    def _require_filters(self) -> FilterState:
        if self._filter_state is None:
            raise ValueError(f"Table '{self._table_id}' has no filters")
        return self._filter_state

    async def sort_by(self, column: str) -> None:
        """
        Sort by a column and reload from page 1.

        Selecting the current sort column flips its direction; selecting
        another column keeps that column's own direction.

        Args:
            column: Sort field name
        """
        if column == self._sort:
            current = self._sort_directions.get(column, DEFAULT_SORT_DIRECTION)
            self._sort_directions[column] = "asc" if current == "desc" else "desc"
        else:
            self._sort = column
            self._sort_directions.setdefault(column, DEFAULT_SORT_DIRECTION)
        self.clear_cache()
        await self.show_rows(1, self._limit)

    async def select_tag(self, label: str) -> bool:
        """
        Toggle a tag of the tag cloud and reload from page 1.

        Args:
            label: Tag label

        Returns:
            True if the tag selection changed and the table was reloaded
        """
        if self._tag_cloud is None:
            raise ValueError(f"Table '{self._table_id}' has no tag cloud")
        if not self._tag_cloud.toggle(label):
            return False
        self._tags = self._tag_cloud.selected
        self.clear_cache()
        await self.show_rows(1, self._limit)
        return True

    async def delete_row(self, index: int) -> None:
        """
        Remove a row locally and redisplay without refetching the cache.

        Args:
            index: Absolute index of the deleted row
        """
        self._cache.delete_and_shift(index)

        new_offset = self._last_offset
        if index > self._cache.total_rows - self._limit - 1:
            new_offset -= 1
        new_offset = max(1, new_offset)

        if self._cache.total_rows > 0:
            self._cache.total_rows -= 1

        limit = self._limit
        if self._cache.is_known and self._cache.total_rows < limit:
            limit = self._cache.total_rows
        await self.show_rows(new_offset, limit)

    def __repr__(self) -> str:
        return (
            f"LiveTable(table_id='{self._table_id}', url='{self._url}', "
            f"limit={self._limit}, total_rows={self._cache.total_rows}, "
            f"offset={self._last_offset})"
        )
