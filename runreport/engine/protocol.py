"""ComputeEngine protocol for the component that builds report rows.

This is the port through which report jobs delegate the heavy work: scan
the selected run-meta partitions, apply the request's filters, project and
sort the qualifying runs, and write the result through a
:class:`~runreport.jobs.store.JobOutput`. Adapters may run in process (see
:mod:`runreport.engine.local`) or hand the work to a cluster.

An engine signals success by writing the rows, the row count, and the
success marker, in that order. Raising any exception fails the job.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from runreport.jobs.location import Location
    from runreport.jobs.store import JobOutput
    from runreport.request.models import ReportRequest


@typ.runtime_checkable
class ComputeEngine(typ.Protocol):
    """Protocol for engines generating report rows from run-meta partitions."""

    def generate_report(
        self,
        request: ReportRequest,
        input_paths: cabc.Sequence[Location],
        output: JobOutput,
    ) -> None:
        """Generate the report for *request* from *input_paths*.

        Parameters
        ----------
        request
            The validated report request.
        input_paths
            Run-meta partitions that survived the job's prefilters. May
            contain partitions with no qualifying runs.
        output
            Write handle for the job's rows, row count, and success marker.

        """
        ...


__all__ = ["ComputeEngine"]
