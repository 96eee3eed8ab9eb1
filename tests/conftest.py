"""Pytest configuration and shared fixtures for livetable tests."""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple
from unittest.mock import patch

import pytest


class MockSessionState(dict):
    """Mock Streamlit session_state that behaves like a dict."""
    pass


@pytest.fixture
def mock_streamlit():
    """
    Mock Streamlit's session_state for testing the rendering bridge.

    This fixture patches st.session_state to allow testing without
    running a full Streamlit server.
    """
    mock_session_state = MockSessionState()

    with patch('streamlit.session_state', mock_session_state):
        yield mock_session_state


class FakeRowServer:
    """
    In-memory row endpoint answering with the wire JSON shape.

    Rows are {"id": i, "name": "row_i"} for i in 1..n_rows. Every call is
    recorded in `calls`.
    """

    def __init__(
        self,
        n_rows: int = 95,
        tags: Optional[List[Dict[str, Any]]] = None,
        matching_tags: Optional[Dict[str, Any]] = None,
    ):
        self.rows = [{"id": i, "name": f"row_{i}"} for i in range(1, n_rows + 1)]
        self.tags = tags
        self.matching_tags = matching_tags
        self.calls: List[Dict[str, Any]] = []

    def respond(self, offset: int, limit: int, request_number: int) -> Dict[str, Any]:
        rows = self.rows[offset - 1:offset - 1 + limit]
        payload = {
            "reqNo": request_number,
            "offset": offset,
            "returnedrows": len(rows),
            "totalrows": len(self.rows),
            "rows": rows,
        }
        if self.tags is not None:
            payload["tags"] = self.tags
            payload["matchingtags"] = self.matching_tags or {}
        return payload

    def _record(
        self,
        url: str,
        offset: int,
        limit: int,
        request_number: int,
        filter_query: str,
        tags: Sequence[str],
        sort: Optional[str],
        direction: Optional[str],
    ) -> Dict[str, Any]:
        call = {
            "url": url,
            "offset": offset,
            "limit": limit,
            "reqNo": request_number,
            "filters": filter_query,
            "tags": list(tags),
            "sort": sort,
            "dir": direction,
        }
        self.calls.append(call)
        return call

    async def __call__(
        self,
        url: str,
        offset: int,
        limit: int,
        request_number: int,
        filter_query: str = "",
        tags: Sequence[str] = (),
        sort: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> Dict[str, Any]:
        self._record(url, offset, limit, request_number, filter_query, tags, sort, direction)
        return self.respond(offset, limit, request_number)


class DeferredRowServer(FakeRowServer):
    """
    Row endpoint whose responses are delivered only when released.

    Lets tests deliver responses in any order. Must be called from inside
    a running event loop.
    """

    def __init__(self, n_rows: int = 95):
        super().__init__(n_rows)
        self.pending: List[Tuple[Dict[str, Any], asyncio.Future]] = []

    async def __call__(
        self,
        url: str,
        offset: int,
        limit: int,
        request_number: int,
        filter_query: str = "",
        tags: Sequence[str] = (),
        sort: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> Dict[str, Any]:
        call = self._record(url, offset, limit, request_number, filter_query, tags, sort, direction)
        future = asyncio.get_running_loop().create_future()
        self.pending.append((call, future))
        return await future

    def release(self, position: int) -> None:
        """Deliver the response to the call at `position` (0 = first call)."""
        call, future = self.pending[position]
        future.set_result(self.respond(call["offset"], call["limit"], call["reqNo"]))

    def fail(self, position: int, error: Exception) -> None:
        """Make the call at `position` raise `error`."""
        _, future = self.pending[position]
        future.set_exception(error)


@pytest.fixture
def row_server() -> FakeRowServer:
    """Fake endpoint with 95 rows."""
    return FakeRowServer(n_rows=95)


@pytest.fixture
def tagged_row_server() -> FakeRowServer:
    """Fake endpoint with 30 rows and tag information."""
    return FakeRowServer(
        n_rows=30,
        tags=[
            {"tag": "alpha", "count": 1},
            {"tag": "beta", "count": 1},
            {"tag": "gamma", "count": 1},
            {"tag": "delta", "count": 10},
            {"tag": "epsilon", "count": 10},
            {"tag": "zeta", "count": 10},
        ],
        matching_tags={"alpha": {}, "delta": {}, "zeta": {}},
    )


@pytest.fixture
def deferred_row_server() -> DeferredRowServer:
    """Fake endpoint with 95 rows whose responses are released manually."""
    return DeferredRowServer(n_rows=95)


@pytest.fixture
def empty_row_server() -> FakeRowServer:
    """Fake endpoint with no rows."""
    return FakeRowServer(n_rows=0)


@pytest.fixture
def small_row_server() -> FakeRowServer:
    """Fake endpoint with 5 rows, fewer than one default page."""
    return FakeRowServer(n_rows=5)
