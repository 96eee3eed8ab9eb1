"""Core infrastructure for livetable."""

from .cache import MissingRange, RowCache, plan_missing_range
from .fetch import (
    FetchError,
    FetchRequest,
    FetchResponse,
    HttpRowFetcher,
    LiveTableError,
    MalformedResponseError,
)
from .state import RequestSequencer

__all__ = [
    "RowCache",
    "MissingRange",
    "plan_missing_range",
    "RequestSequencer",
    "FetchRequest",
    "FetchResponse",
    "HttpRowFetcher",
    "LiveTableError",
    "FetchError",
    "MalformedResponseError",
]
