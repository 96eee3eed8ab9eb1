"""Query string codecs for row requests and permalinks."""

from .filtering import (
    FilterField,
    FilterState,
    encode_component,
    serialize_filters,
)
from .location import (
    filters_from_fragment,
    page_from_fragment,
    update_fragment,
)

__all__ = [
    "FilterField",
    "FilterState",
    "encode_component",
    "serialize_filters",
    "filters_from_fragment",
    "page_from_fragment",
    "update_fragment",
]
