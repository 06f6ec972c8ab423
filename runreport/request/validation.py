"""Validation rules for report generation requests.

Every rule appends to a shared issue list so a client sees all problems
with a request in a single round trip.
"""

from __future__ import annotations

import typing as typ

from .fields import FilterKind, field_names, lookup
from .models import RangeFilter, ValueFilter

if typ.TYPE_CHECKING:
    from .models import Filter, ReportRequest, Sort

ISSUE_SEPARATOR = ", "


class RequestValidationError(ValueError):
    """Raised when a report request fails validation.

    Attributes
    ----------
    issues
        Every violation found, in the order the rules ran.

    """

    def __init__(self, issues: list[str]) -> None:
        """Capture the issues and build the aggregated message."""
        self.issues = tuple(issues)
        message = "Invalid report generation request: " + ISSUE_SEPARATOR.join(issues)
        super().__init__(message)


def validate_request(request: ReportRequest) -> list[str]:
    """Return every validation issue in *request*; empty when valid."""
    issues: list[str] = []
    _validate_window(request, issues)
    _validate_fields(request.fields, issues)
    if request.filters is not None:
        _validate_filters(request.filters, issues)
    if request.sort is not None:
        _validate_sort(request.sort, issues)
    return issues


def ensure_valid(request: ReportRequest) -> ReportRequest:
    """Return *request* unchanged, raising when it has any issue.

    Raises
    ------
    RequestValidationError
        If :func:`validate_request` reports one or more issues.

    """
    issues = validate_request(request)
    if issues:
        raise RequestValidationError(issues)
    return request


def _known_fields() -> str:
    return ", ".join(field_names())


def _validate_window(request: ReportRequest, issues: list[str]) -> None:
    if request.start is None:
        issues.append("'start' must be specified.")
    if request.end is None:
        issues.append("'end' must be specified.")
    if (
        request.start is not None
        and request.end is not None
        and request.start >= request.end
    ):
        issues.append("'start' must be smaller than 'end'.")


def _validate_fields(fields: list[str] | None, issues: list[str]) -> None:
    if not fields:
        issues.append("'fields' must be specified.")
        return
    issues.extend(
        f"Invalid field name '{name}' in fields. "
        f"Field name must be one of: [{_known_fields()}]"
        for name in fields
        if lookup(name) is None
    )


def _validate_filters(filters: list[Filter], issues: list[str]) -> None:
    seen: set[str] = set()
    for item in filters:
        if item.field_name in seen:
            issues.append(f"Field '{item.field_name}' is duplicated in filters.")
            continue
        seen.add(item.field_name)
        _validate_filter(item, issues)


def _validate_filter(item: Filter, issues: list[str]) -> None:
    field = lookup(item.field_name)
    if field is None:
        issues.append(f"Invalid field name '{item.field_name}' in filters.")
        return

    if not field.allows(item.kind):
        verb = "range" if item.kind is FilterKind.RANGE else "values"
        issues.append(
            f"Field '{item.field_name}' cannot be filtered by {verb}. "
            f"It can only be filtered by: [{field.describe_filter_kinds()}]"
        )
        return

    match item:
        case ValueFilter():
            _validate_value_filter(item, issues)
        case RangeFilter():
            _validate_range_filter(item, issues)


def _validate_value_filter(item: ValueFilter[typ.Any], issues: list[str]) -> None:
    if item.whitelist is None and item.blacklist is None:
        issues.append(
            f"Filter on field '{item.field_name}' must specify "
            "a whitelist or a blacklist."
        )
        return
    if item.whitelist is None or item.blacklist is None:
        return

    overlap = list(dict.fromkeys(v for v in item.whitelist if v in item.blacklist))
    if overlap:
        joined = ", ".join(str(value) for value in overlap)
        issues.append(
            f"Whitelist and blacklist of filter on field '{item.field_name}' "
            f"must not overlap, found: [{joined}]"
        )


def _validate_range_filter(item: RangeFilter[typ.Any], issues: list[str]) -> None:
    if item.range is None:
        issues.append(f"Filter on field '{item.field_name}' must specify a range.")
        return

    lower, upper = item.range.min, item.range.max
    if lower is None and upper is None:
        issues.append(
            f"Range of filter on field '{item.field_name}' "
            "must specify a min or a max."
        )
    elif lower is not None and upper is not None and lower >= upper:
        issues.append(
            f"Range of filter on field '{item.field_name}' "
            f"must have min smaller than max, got [{lower}, {upper})."
        )


def _validate_sort(sort: list[Sort], issues: list[str]) -> None:
    if len(sort) > 1:
        issues.append("Currently only one field is supported in sort.")

    for entry in sort:
        field = lookup(entry.field_name)
        if field is None:
            issues.append(f"Invalid field name '{entry.field_name}' in sort.")
        elif not field.sortable:
            issues.append(f"Field '{entry.field_name}' in sort is not sortable.")


__all__ = [
    "ISSUE_SEPARATOR",
    "RequestValidationError",
    "ensure_valid",
    "validate_request",
]
