"""Catalogue of fields that may appear in a program run report.

Each entry records the value type of the field, the filter kinds that may
constrain it, and whether a report can be sorted by it. The table is built
once at import time and never mutated, so lookups need no locking.

Adding a reportable field only requires a new :class:`ReportField` entry;
the filter decoder resolves filter and value types from this table.

Example:
>>> from runreport.request.fields import lookup
>>> lookup("duration").value_type
<ValueType.LONG: 'long'>

"""

from __future__ import annotations

import dataclasses as dc
import enum
import types
import typing as typ


class ValueType(enum.StrEnum):
    """Value types a report field can hold."""

    STRING = "string"
    INTEGER = "integer"
    LONG = "long"


class FilterKind(enum.StrEnum):
    """Filter shapes that may constrain a field."""

    VALUE = "value"
    RANGE = "range"


@dc.dataclass(frozen=True, slots=True)
class ReportField:
    """A reportable field and the operations legal on it.

    Attributes
    ----------
    name
        Field name as used in requests and report rows.
    value_type
        Type of the field's values.
    filter_kinds
        Filter kinds that may be applied to the field. Empty when the field
        cannot be filtered at all.
    sortable
        Whether the report may be sorted by this field.

    """

    name: str
    value_type: ValueType
    filter_kinds: frozenset[FilterKind]
    sortable: bool = True

    def allows(self, kind: FilterKind) -> bool:
        """Return whether *kind* filters may be applied to this field."""
        return kind in self.filter_kinds

    def describe_filter_kinds(self) -> str:
        """Return the allowed filter kinds as a comma separated list."""
        return ",".join(sorted(str(kind) for kind in self.filter_kinds))


_VALUE = frozenset({FilterKind.VALUE})
_RANGE = frozenset({FilterKind.RANGE})


def _string(name: str) -> ReportField:
    return ReportField(name, ValueType.STRING, _VALUE)


def _long(name: str) -> ReportField:
    return ReportField(name, ValueType.LONG, _RANGE)


def _integer(name: str) -> ReportField:
    return ReportField(name, ValueType.INTEGER, _RANGE)


NAMESPACE = "namespace"
DURATION = "duration"

_FIELDS: tuple[ReportField, ...] = (
    _string(NAMESPACE),
    _string("artifact.scope"),
    _string("artifact.name"),
    _string("artifact.version"),
    _string("application.name"),
    _string("application.version"),
    _string("program"),
    _string("type"),
    _string("run"),
    _string("status"),
    _string("user"),
    _string("startMethod"),
    _long("start"),
    _long("running"),
    _long("end"),
    _long(DURATION),
    _integer("numLogWarnings"),
    _integer("numLogErrors"),
    _integer("numRecordsOut"),
    ReportField("runtimeArgs", ValueType.STRING, frozenset(), sortable=False),
)

FIELD_CATALOGUE: typ.Mapping[str, ReportField] = types.MappingProxyType(
    {field.name: field for field in _FIELDS}
)


def is_valid_field(name: str) -> bool:
    """Return whether *name* is a catalogued report field."""
    return name in FIELD_CATALOGUE


def lookup(name: str) -> ReportField | None:
    """Return the catalogue entry for *name*, or ``None`` when unknown."""
    return FIELD_CATALOGUE.get(name)


def field_names() -> tuple[str, ...]:
    """Return every catalogued field name in declaration order."""
    return tuple(FIELD_CATALOGUE)


__all__ = [
    "DURATION",
    "FIELD_CATALOGUE",
    "NAMESPACE",
    "FilterKind",
    "ReportField",
    "ValueType",
    "field_names",
    "is_valid_field",
    "lookup",
]
