"""Row fetch requests, responses and the HTTP transport."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import httpx

from ..query.filtering import encode_component

logger = logging.getLogger(__name__)


class LiveTableError(Exception):
    """Base class for errors scoped to a single fetch/display cycle."""

    pass


class FetchError(LiveTableError):
    """Raised when the row request could not be completed.

    Wraps the underlying transport error (connection failure, timeout,
    non-2xx status). The table's cache is left untouched.
    """

    pass


class MalformedResponseError(LiveTableError):
    """Raised when a row response cannot be parsed.

    This error is raised when:
    1. The body is not valid JSON or not a JSON object
    2. A required key (reqNo, offset, returnedrows, totalrows, rows) is
       missing or not an integer/list
    3. The number of rows does not match returnedrows
    """

    pass


@dataclass(frozen=True)
class FetchRequest:
    """
    One outgoing row request.

    Two ranges are carried because the rows missing from the cache can be
    a subset of the rows to display.

    Attributes:
        offset: First row requested from the server (1-based)
        limit: Number of rows requested from the server
        display_offset: First row to display once the response is merged
        display_limit: Number of rows to display
        request_number: Sequence number echoed back by the server
    """

    offset: int
    limit: int
    display_offset: int
    display_limit: int
    request_number: int


@dataclass
class FetchResponse:
    """
    Parsed server answer to a FetchRequest.

    Attributes:
        request_number: Echoed request number (reqNo)
        offset: Absolute index of rows[0]
        returned_rows: Number of rows in this slice
        total_rows: Total row count of the current result set
        rows: Row objects; rows[i] belongs to index offset + i
        tags: Optional tag cardinalities, [{"tag": ..., "count": ...}]
        matching_tags: Optional mapping of tags matching the current filters
    """

    request_number: int
    offset: int
    returned_rows: int
    total_rows: int
    rows: List[Any] = field(default_factory=list)
    tags: Optional[List[Dict[str, Any]]] = None
    matching_tags: Optional[Dict[str, Any]] = None

    @classmethod
    def from_json(cls, payload: Union[str, bytes, Mapping[str, Any]]) -> "FetchResponse":
        """
        Build a response from the wire JSON shape.

        Args:
            payload: Raw JSON text or an already decoded object of the form
                {reqNo, offset, returnedrows, totalrows, rows, tags?, matchingtags?}

        Returns:
            The parsed FetchResponse

        Raises:
            MalformedResponseError: If the payload does not match the shape
        """
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except ValueError as e:
                raise MalformedResponseError(f"Response is not valid JSON: {e}") from e

        if not isinstance(payload, Mapping):
            raise MalformedResponseError(
                f"Response must be a JSON object, got {type(payload).__name__}"
            )

        rows = payload.get("rows")
        if not isinstance(rows, list):
            raise MalformedResponseError("Response 'rows' must be a list")

        returned_rows = _require_int(payload, "returnedrows")
        if len(rows) != returned_rows:
            raise MalformedResponseError(
                f"Response declares {returned_rows} rows but contains {len(rows)}"
            )

        tags = payload.get("tags")
        if tags is not None and not isinstance(tags, list):
            raise MalformedResponseError("Response 'tags' must be a list")

        matching_tags = payload.get("matchingtags")
        if matching_tags is not None and not isinstance(matching_tags, Mapping):
            raise MalformedResponseError("Response 'matchingtags' must be an object")

        return cls(
            request_number=_require_int(payload, "reqNo"),
            offset=_require_int(payload, "offset"),
            returned_rows=returned_rows,
            total_rows=_require_int(payload, "totalrows"),
            rows=rows,
            tags=tags,
            matching_tags=dict(matching_tags) if matching_tags is not None else None,
        )


def _require_int(payload: Mapping[str, Any], key: str) -> int:
    """Read an integer field, accepting integral floats from JSON numbers."""
    if key not in payload:
        raise MalformedResponseError(f"Response is missing '{key}'")
    value = payload[key]
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedResponseError(
            f"Response '{key}' must be an integer, got {value!r}"
        )
    return value


def build_fetch_url(
    base_url: str,
    offset: int,
    limit: int,
    request_number: int,
    filter_query: str = "",
    tags: Sequence[str] = (),
    sort: Optional[str] = None,
    direction: Optional[str] = None,
) -> str:
    """
    Build the row request URL.

    Shape: base&offset=O&limit=L&reqNo=N[&filters...][&tag=T...]&sort=F&dir=D

    Args:
        base_url: Data endpoint, usually already carrying a query string
        offset: First requested row (1-based)
        limit: Number of requested rows
        request_number: Sequence number the server must echo as reqNo
        filter_query: Serialized filters ("&name=value..." or "")
        tags: Selected tags, one &tag= parameter each
        sort: Sort field, or None when no column is selected
        direction: "asc" or "desc"; ignored without a sort field

    Returns:
        The full request URL
    """
    joiner = "&" if "?" in base_url else "?"
    url = (
        f"{base_url}{joiner}offset={offset}&limit={limit}&reqNo={request_number}"
    )
    if filter_query:
        url += filter_query
    for tag in tags:
        url += "&tag=" + encode_component(tag)
    url += "&sort=" + (encode_component(sort) if sort else "")
    url += "&dir=" + ((direction or "") if sort else "")
    return url


class HttpRowFetcher:
    """
    Fetch collaborator issuing row requests over HTTP with httpx.

    Instances are awaitable callables with the signature the LiveTable
    controller expects. Superseded requests are never cancelled here; the
    controller filters their responses by request number.

    Example:
        async with httpx.AsyncClient() as client:
            table = LiveTable(
                "https://example.org/rows?outputSyntax=json",
                table_id="documents",
                fetcher=HttpRowFetcher(client=client),
            )
            await table.load()
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        """
        Initialize the fetcher.

        Args:
            client: Shared AsyncClient. If None, a short-lived client is
                created for every request.
            timeout: Request timeout in seconds
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self._client = client
        self._timeout = timeout

    async def __call__(
        self,
        base_url: str,
        offset: int,
        limit: int,
        request_number: int,
        filter_query: str = "",
        tags: Sequence[str] = (),
        sort: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> FetchResponse:
        url = build_fetch_url(
            base_url,
            offset,
            limit,
            request_number,
            filter_query=filter_query,
            tags=tags,
            sort=sort,
            direction=direction,
        )

        try:
            if self._client is not None:
                response = await self._client.get(url, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Row request %d failed: %s", request_number, e)
            raise FetchError(f"Row request to {url} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning("Row request %d returned invalid JSON", request_number)
            raise MalformedResponseError(f"Response is not valid JSON: {e}") from e

        return FetchResponse.from_json(payload)

    def __repr__(self) -> str:
        return f"HttpRowFetcher(timeout={self._timeout}, shared_client={self._client is not None})"
