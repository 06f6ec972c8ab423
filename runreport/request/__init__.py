"""Report generation request model, decoding, and validation.

Public API
----------
FIELD_CATALOGUE
    Immutable mapping of reportable field names to their catalogue entries.
ReportRequest
    Decoded, frozen report request.
ValueFilter, RangeFilter, Range
    Filter variants applied per field.
load_request
    Decode and validate a JSON request body in one step.
validate_request
    Return every validation issue in a request.
"""

from runreport.request.decoding import (
    FilterDispatchError,
    RequestDecodeError,
    decode_filter,
    decode_request,
    load_request,
)
from runreport.request.fields import (
    FIELD_CATALOGUE,
    FilterKind,
    ReportField,
    ValueType,
    field_names,
    is_valid_field,
    lookup,
)
from runreport.request.models import (
    Filter,
    Order,
    Range,
    RangeFilter,
    ReportRequest,
    Sort,
    ValueFilter,
)
from runreport.request.validation import (
    RequestValidationError,
    ensure_valid,
    validate_request,
)

__all__ = [
    "FIELD_CATALOGUE",
    "Filter",
    "FilterDispatchError",
    "FilterKind",
    "Order",
    "Range",
    "RangeFilter",
    "ReportField",
    "ReportRequest",
    "RequestDecodeError",
    "RequestValidationError",
    "Sort",
    "ValueFilter",
    "ValueType",
    "decode_filter",
    "decode_request",
    "ensure_valid",
    "field_names",
    "is_valid_field",
    "load_request",
    "lookup",
    "validate_request",
]
