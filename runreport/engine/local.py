"""In-process compute engine over local run-meta partitions.

:class:`LocalComputeEngine` reads every partition handed to it, folds the
records into one row per run, and keeps the finished runs inside the request
window that pass every filter. Rows are projected onto the requested
fields, sorted, and written through the job's
:class:`~runreport.jobs.store.JobOutput`.
"""

from __future__ import annotations

import typing as typ

import msgspec

from runreport.engine.runs import read_records, summarize_runs
from runreport.logging import get_logger, log_debug
from runreport.request.models import Order

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from runreport.engine.runs import RunRow
    from runreport.jobs.location import Location
    from runreport.jobs.store import JobOutput
    from runreport.request.models import ReportRequest, Sort

logger = get_logger(__name__)

_ENCODER = msgspec.json.Encoder()


def run_in_window(row: RunRow, start: int, end: int) -> bool:
    """Return whether the run both started and finished in ``[start, end)``.

    Runs without a terminal status never qualify.
    """
    run_start = row.get("start")
    run_end = row.get("end")
    if run_start is None or run_end is None:
        return False
    return start <= run_start and run_end < end


def passes_filters(row: RunRow, request: ReportRequest) -> bool:
    """Return whether *row* satisfies every filter of *request*.

    A run without a value for a filtered field never passes that filter.
    """
    for item in request.filters or ():
        value = row.get(item.field_name)
        if value is None or not item.apply(value):
            return False
    return True


def project(row: RunRow, fields: cabc.Sequence[str]) -> RunRow:
    """Return the requested fields of *row*, in request order."""
    return {name: row[name] for name in fields if row.get(name) is not None}


def sort_rows(rows: list[RunRow], sort: Sort) -> list[RunRow]:
    """Sort *rows* by one field; rows without the field come last."""
    name = sort.field_name
    present = [row for row in rows if row.get(name) is not None]
    absent = [row for row in rows if row.get(name) is None]
    present.sort(key=lambda row: row[name], reverse=sort.order is Order.DESCENDING)
    return present + absent


class LocalComputeEngine:
    """Generate reports synchronously in the calling thread."""

    def generate_report(
        self,
        request: ReportRequest,
        input_paths: cabc.Sequence[Location],
        output: JobOutput,
    ) -> None:
        """Scan *input_paths* and write the report for *request*."""
        start = typ.cast("int", request.start)
        end = typ.cast("int", request.end)
        runs = summarize_runs(
            record for partition in input_paths for record in read_records(partition)
        )
        selected = [
            row
            for row in runs
            if run_in_window(row, start, end) and passes_filters(row, request)
        ]
        if request.sort:
            selected = sort_rows(selected, request.sort[0])
        fields = request.fields or ()
        rows = [_ENCODER.encode(project(row, fields)).decode() for row in selected]
        log_debug(
            logger,
            "Selected %d of %d runs from %d partitions",
            len(rows),
            len(runs),
            len(input_paths),
        )
        output.append_rows(rows)
        output.write_row_count(len(rows))
        output.mark_completed()


__all__ = [
    "LocalComputeEngine",
    "passes_filters",
    "project",
    "run_in_window",
    "sort_rows",
]
