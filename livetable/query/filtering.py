"""Filter serialization for row requests.

The serialized filter string is both appended to row requests and used as
the change-detection key: the table only invalidates its cache when the
serialization differs from the previous one.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union
from urllib.parse import quote

# Characters left unescaped by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"

FILTER_KINDS = ("text", "select", "checkbox", "radio")


def encode_component(value: str) -> str:
    """
    Percent-encode a query string component.

    Args:
        value: Raw parameter name or value

    Returns:
        Encoded string, compatible with encodeURIComponent
    """
    return quote(str(value), safe=_URI_COMPONENT_SAFE)


@dataclass
class FilterField:
    """
    One filter control.

    Attributes:
        name: Request parameter name
        value: Current text, selected option, or option value for
            checkbox/radio fields
        kind: 'text', 'select', 'checkbox' or 'radio'
        checked: Whether a checkbox/radio option is checked
        options: Allowed values of a select field
    """

    name: str
    value: str = ""
    kind: str = "text"
    checked: bool = False
    options: Sequence[str] = ()

    def __post_init__(self):
        if self.kind not in FILTER_KINDS:
            raise ValueError(
                f"Unknown filter kind '{self.kind}'. Available kinds: {list(FILTER_KINDS)}"
            )

    @property
    def is_option(self) -> bool:
        """True for checkbox and radio fields."""
        return self.kind in ("checkbox", "radio")

    @property
    def contributes(self) -> bool:
        """True if this field is part of the serialized filter string."""
        if not self.value.strip():
            return False
        return not self.is_option or self.checked


def serialize_filters(
    fields: Union[Sequence[FilterField], Mapping[str, str]],
) -> str:
    """
    Serialize active filters as "&name=value" pairs.

    Blank values and unchecked checkbox/radio options are left out.
    Ordered sequences of fields keep their order; plain mappings are
    serialized by sorted name so equal filter sets give equal strings.

    Args:
        fields: FilterField sequence or mapping of name to value

    Returns:
        Serialized filters, "" when no filter is active

    Examples:
        >>> serialize_filters({"status": "open", "title": "a b"})
        '&status=open&title=a%20b'
    """
    if isinstance(fields, Mapping):
        fields = [FilterField(name, value) for name, value in sorted(fields.items())]

    result = ""
    for filter_field in fields:
        if filter_field.contributes:
            result += (
                "&" + encode_component(filter_field.name)
                + "=" + encode_component(filter_field.value)
            )
    return result


class FilterState:
    """
    Ordered set of filter fields of one table.

    Radio and checkbox groups are modelled as several fields sharing a
    name, one per option. Serialization follows field order.
    """

    def __init__(self, fields: Optional[Iterable[FilterField]] = None):
        self._fields: List[FilterField] = list(fields or [])

    @property
    def fields(self) -> List[FilterField]:
        return list(self._fields)

    def add(self, filter_field: FilterField) -> "FilterState":
        """Append a field. Returns self for method chaining."""
        self._fields.append(filter_field)
        return self

    def _named(self, name: str) -> List[FilterField]:
        named = [f for f in self._fields if f.name == name]
        if not named:
            available = sorted({f.name for f in self._fields})
            raise KeyError(
                f"No filter named '{name}'. Available filters: {available}"
            )
        return named

    def set_value(self, name: str, value: str) -> None:
        """
        Set the value of a text or select filter.

        Args:
            name: Filter name
            value: New value; "" clears the filter

        Raises:
            KeyError: If no such filter exists
            ValueError: If the filter is a checkbox/radio group, or the
                value is not one of a select filter's options
        """
        for filter_field in self._named(name):
            if filter_field.is_option:
                raise ValueError(
                    f"Filter '{name}' is a {filter_field.kind} group, use set_checked()"
                )
            if (
                filter_field.kind == "select"
                and value
                and filter_field.options
                and value not in filter_field.options
            ):
                raise ValueError(
                    f"'{value}' is not an option of filter '{name}'. "
                    f"Options: {list(filter_field.options)}"
                )
            filter_field.value = value

    def set_checked(self, name: str, value: str, checked: bool = True) -> None:
        """
        Check or uncheck one checkbox/radio option.

        Checking a radio option unchecks the other options of its group.

        Args:
            name: Filter name
            value: Option value
            checked: New checked state

        Raises:
            KeyError: If no such filter or option exists
        """
        options = [f for f in self._named(name) if f.is_option]
        target = [f for f in options if f.value.strip() == value.strip()]
        if not target:
            raise KeyError(f"Filter '{name}' has no option '{value}'")
        for filter_field in options:
            if any(filter_field is t for t in target):
                filter_field.checked = checked
            elif checked and filter_field.kind == "radio":
                filter_field.checked = False

    def apply(self, values: Mapping[str, str]) -> None:
        """
        Initialize field values from a name/value mapping.

        Text fields take the mapped value when present. Select fields take
        it only if it is one of their options (otherwise they are cleared).
        Checkbox/radio options are checked iff their value equals the
        mapped value.

        Args:
            values: Mapping of filter name to value, e.g. from a permalink
        """
        for filter_field in self._fields:
            mapped = values.get(filter_field.name)
            if filter_field.is_option:
                filter_field.checked = bool(mapped) and mapped == filter_field.value.strip()
            elif filter_field.kind == "select":
                if mapped and (not filter_field.options or mapped in filter_field.options):
                    filter_field.value = mapped
                else:
                    filter_field.value = ""
            elif mapped:
                filter_field.value = mapped

    def values(self) -> Dict[str, str]:
        """Return the active filters as a name to value mapping."""
        return {f.name: f.value for f in self._fields if f.contributes}

    def serialize(self) -> str:
        """Serialize the active filters in field order."""
        return serialize_filters(self._fields)

    def has_changed(self, previous: str) -> bool:
        """
        Check whether the filters differ from a previous serialization.

        Args:
            previous: Earlier result of serialize()

        Returns:
            True if the serialized filters are different
        """
        return self.serialize() != previous

    def __repr__(self) -> str:
        return f"FilterState(active={self.values()})"
