"""Typed report generation request structures.

Wire names are camel case (``fieldName``), matching the JSON accepted by
``POST /reports``. Instances are frozen once decoded.
"""

from __future__ import annotations

import enum
import typing as typ

import msgspec

from .fields import FilterKind

T = typ.TypeVar("T")


class Order(enum.StrEnum):
    """Sort direction for a report field."""

    ASCENDING = "ASCENDING"
    DESCENDING = "DESCENDING"


class Sort(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """Field to sort the report by, and the direction.

    Attributes
    ----------
    field_name : str
        Name of a sortable catalogue field.
    order : Order
        Sort direction.

    """

    field_name: str
    order: Order = Order.ASCENDING


class ValueFilter(
    msgspec.Struct, typ.Generic[T], frozen=True, kw_only=True, rename="camel"
):
    """Allow/deny list membership filter over one field.

    Attributes
    ----------
    field_name : str
        Name of the filtered field.
    whitelist : list[T], optional
        Values a row must hold to be included. Empty or absent means any.
    blacklist : list[T], optional
        Values that exclude a row. Empty or absent means none.

    """

    field_name: str
    whitelist: list[T] | None = None
    blacklist: list[T] | None = None

    @property
    def kind(self) -> FilterKind:
        """Return ``FilterKind.VALUE``."""
        return FilterKind.VALUE

    def apply(self, value: T) -> bool:
        """Return whether *value* passes both lists."""
        allowed = not self.whitelist or value in self.whitelist
        return allowed and (not self.blacklist or value not in self.blacklist)


class Range(msgspec.Struct, typ.Generic[T], frozen=True, kw_only=True):
    """Half-open interval ``[min, max)``; an absent bound is unbounded."""

    min: T | None = None
    max: T | None = None


class RangeFilter(
    msgspec.Struct, typ.Generic[T], frozen=True, kw_only=True, rename="camel"
):
    """Filter keeping values inside a half-open range.

    Attributes
    ----------
    field_name : str
        Name of the filtered field.
    range : Range[T], optional
        The allowed interval. Decoding guarantees the key was present; a
        JSON ``null`` leaves it as ``None`` for the validator to report.

    """

    field_name: str
    range: Range[T] | None = None

    @property
    def kind(self) -> FilterKind:
        """Return ``FilterKind.RANGE``."""
        return FilterKind.RANGE

    def apply(self, value: T) -> bool:
        """Return whether ``min <= value < max``."""
        if self.range is None:
            return True
        lower, upper = self.range.min, self.range.max
        return (lower is None or lower <= value) and (upper is None or value < upper)


type Filter = ValueFilter[str] | RangeFilter[int]


class ReportRequest(msgspec.Struct, frozen=True, kw_only=True):
    """A declarative request for a program run report.

    Attributes
    ----------
    start : int, optional
        Inclusive lower bound of the reporting window, epoch seconds.
        Reported runs started at or after ``start``.
    end : int, optional
        Exclusive upper bound of the window, epoch seconds. Reported runs
        reached a terminal status before ``end``.
    fields : list[str], optional
        Catalogue fields projected into each report row, in order.
    sort : list[Sort], optional
        At most one sort entry.
    filters : list[Filter], optional
        Filters every reported run must satisfy, one per field.

    ``start``, ``end`` and ``fields`` are optional at the type level so the
    validator can report every missing key in one pass.

    """

    start: int | None = None
    end: int | None = None
    fields: list[str] | None = None
    sort: list[Sort] | None = None
    filters: list[Filter] | None = None

    def filter_for(self, field_name: str) -> Filter | None:
        """Return the filter on *field_name*, if the request has one."""
        for item in self.filters or ():
            if item.field_name == field_name:
                return item
        return None


__all__ = [
    "Filter",
    "Order",
    "Range",
    "RangeFilter",
    "ReportRequest",
    "Sort",
    "ValueFilter",
]
