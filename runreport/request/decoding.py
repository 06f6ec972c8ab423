"""Decode report generation requests from JSON.

Filters carry no explicit type tag on the wire. The decoder resolves the
concrete filter type in two steps, both driven by the field catalogue:

1. the presence of a ``range`` key selects a range filter, its absence a
   value filter, and the catalogue entry must allow that kind;
2. the catalogue entry's value type selects the element type to decode.

Step 2 is a lookup in :data:`FILTER_TYPES`. A catalogue entry that allows a
kind with no registered element type is an internal inconsistency and
raises :class:`FilterDispatchError` rather than a client error.

Usage
-----
>>> request = load_request(b'{"start": 1, "end": 2, "fields": ["run"]}')
>>> request.fields
['run']

"""

from __future__ import annotations

import typing as typ

import msgspec

from .fields import FilterKind, ValueType, field_names, lookup
from .models import RangeFilter, ReportRequest, Sort, ValueFilter
from .validation import ensure_valid

if typ.TYPE_CHECKING:
    from .fields import ReportField
    from .models import Filter

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

Int32 = typ.Annotated[int, msgspec.Meta(ge=_INT32_MIN, le=_INT32_MAX)]
Int64 = typ.Annotated[int, msgspec.Meta(ge=_INT64_MIN, le=_INT64_MAX)]

FILTER_TYPES: typ.Mapping[tuple[FilterKind, ValueType], type] = {
    (FilterKind.VALUE, ValueType.STRING): ValueFilter[str],
    (FilterKind.RANGE, ValueType.INTEGER): RangeFilter[Int32],
    (FilterKind.RANGE, ValueType.LONG): RangeFilter[Int64],
}


class RequestDecodeError(ValueError):
    """Raised when a request body cannot be decoded into a report request."""


class FilterDispatchError(RuntimeError):
    """Raised when the catalogue allows a filter the decoder cannot build.

    This signals a catalogue entry out of step with :data:`FILTER_TYPES`,
    never a bad request.
    """

    def __init__(self, field: ReportField, kind: FilterKind) -> None:
        """Describe the unsupported kind/value type pair."""
        self.field = field
        self.kind = kind
        super().__init__(
            f"Field {field.name} with value type {field.value_type} "
            f"has no decoder for {kind} filters"
        )


class _WireRequest(msgspec.Struct, kw_only=True):
    start: Int64 | None = None
    end: Int64 | None = None
    fields: list[str] | None = None
    sort: list[Sort] | None = None
    filters: list[typ.Any] | None = None


def _kind_of(raw: dict[str, typ.Any]) -> FilterKind:
    return FilterKind.RANGE if "range" in raw else FilterKind.VALUE


def _resolve_field(raw: dict[str, typ.Any]) -> ReportField:
    name = raw.get("fieldName")
    if name is None:
        msg = "Field name must be specified for filters"
        raise RequestDecodeError(msg)
    field = lookup(str(name))
    if field is None:
        msg = (
            f"Invalid field name '{name}'. "
            f"Field name must be one of: [{', '.join(field_names())}]"
        )
        raise RequestDecodeError(msg)
    return field


def decode_filter(raw: object) -> Filter:
    """Decode one raw JSON filter object into its concrete filter type.

    Parameters
    ----------
    raw
        A JSON-decoded filter object.

    Returns
    -------
    Filter
        A ``ValueFilter`` or ``RangeFilter`` typed for the field.

    Raises
    ------
    RequestDecodeError
        If the object is malformed, names an unknown field, uses a filter
        kind the field does not allow, or carries values of the wrong type.
    FilterDispatchError
        If the catalogue allows the kind but no decoder is registered.

    """
    if not isinstance(raw, dict):
        msg = f"Expected a JSON object for a filter but found {type(raw).__name__}"
        raise RequestDecodeError(msg)

    field = _resolve_field(raw)
    kind = _kind_of(raw)
    if not field.allows(kind):
        verb = "range" if kind is FilterKind.RANGE else "values"
        msg = (
            f"Field '{field.name}' cannot be filtered by {verb}. "
            f"It can only be filtered by: [{field.describe_filter_kinds()}]"
        )
        raise RequestDecodeError(msg)

    target = FILTER_TYPES.get((kind, field.value_type))
    if target is None:
        raise FilterDispatchError(field, kind)

    try:
        return msgspec.convert(raw, type=target)
    except msgspec.ValidationError as exc:
        msg = f"Invalid filter on field '{field.name}': {exc}"
        raise RequestDecodeError(msg) from exc


def decode_request(body: bytes | str) -> ReportRequest:
    """Decode a JSON request body without validating it.

    Raises
    ------
    RequestDecodeError
        If the body is empty, is not valid JSON, or has mistyped members.

    """
    if not body or not body.strip():
        msg = "Request body cannot be empty."
        raise RequestDecodeError(msg)

    try:
        wire = msgspec.json.decode(body, type=_WireRequest | None)
    except msgspec.ValidationError as exc:
        msg = f"Request body is invalid: {exc}"
        raise RequestDecodeError(msg) from exc
    except msgspec.DecodeError as exc:
        msg = f"Request body is invalid json: {exc}"
        raise RequestDecodeError(msg) from exc

    if wire is None:
        msg = "Request body cannot be empty."
        raise RequestDecodeError(msg)

    filters = None
    if wire.filters is not None:
        filters = [decode_filter(raw) for raw in wire.filters]

    return ReportRequest(
        start=wire.start,
        end=wire.end,
        fields=wire.fields,
        sort=wire.sort,
        filters=filters,
    )


def load_request(body: bytes | str) -> ReportRequest:
    """Decode and validate a JSON request body.

    Raises
    ------
    RequestDecodeError
        If the body cannot be decoded.
    RequestValidationError
        If the decoded request breaks any validation rule.

    """
    return ensure_valid(decode_request(body))


__all__ = [
    "FILTER_TYPES",
    "FilterDispatchError",
    "RequestDecodeError",
    "decode_filter",
    "decode_request",
    "load_request",
]
