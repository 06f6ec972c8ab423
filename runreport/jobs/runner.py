"""Execute one report job against the run-meta corpus.

The runner owns the lifecycle of a job once its request has been stored:

1. load the stored request,
2. select candidate partitions, first by namespace directory and then by
   the earliest event time encoded in each partition name,
3. hand the request and partitions to the compute engine,
4. write the failure marker when anything above raises.

The time prefilter keeps partitions whose earliest event precedes the end
of the window. It never drops a partition holding a run that started
inside the window.
"""

from __future__ import annotations

import traceback
import typing as typ

from runreport.common.time import utcnow
from runreport.engine.runs import partition_time
from runreport.jobs.errors import JobAlreadyTerminatedError
from runreport.jobs.observability import JobEventLogger
from runreport.jobs.status import JobStatus
from runreport.logging import get_logger, log_debug, log_warning
from runreport.request.decoding import load_request
from runreport.request.fields import NAMESPACE

if typ.TYPE_CHECKING:
    from runreport.engine.protocol import ComputeEngine
    from runreport.jobs.location import Location
    from runreport.jobs.store import JobStore
    from runreport.request.models import ReportRequest

logger = get_logger(__name__)


def format_failure(exc: BaseException) -> str:
    """Render *exc* for the failure marker: a cause line, then the traceback."""
    trace = "".join(traceback.format_exception(exc))
    return f"{exc!r}\n{trace}"


class JobRunner:
    """Run report jobs stored in a :class:`JobStore`.

    Parameters
    ----------
    store
        Store holding the job directories.
    meta_base
        Location whose child directories hold each namespace's run-meta
        partitions.
    engine
        Compute engine that writes the report rows and success marker.
    event_logger
        Structured lifecycle event emitter.

    """

    def __init__(
        self,
        store: JobStore,
        meta_base: Location,
        engine: ComputeEngine,
        *,
        event_logger: JobEventLogger | None = None,
    ) -> None:
        """Bind the runner to its store, corpus, and engine."""
        self._store = store
        self._meta_base = meta_base
        self._engine = engine
        self._events = event_logger or JobEventLogger()

    @property
    def store(self) -> JobStore:
        """Return the store the runner writes to."""
        return self._store

    def resolve_inputs(self, request: ReportRequest) -> list[Location]:
        """Return the partitions that may hold runs qualifying for *request*."""
        namespace_filter = request.filter_for(NAMESPACE)
        end = typ.cast("int", request.end)
        inputs: list[Location] = []
        for namespace_dir in self._meta_base.list():
            if not namespace_dir.is_directory():
                continue
            if namespace_filter is not None and not namespace_filter.apply(
                namespace_dir.name
            ):
                continue
            for partition in namespace_dir.list():
                earliest = partition_time(partition)
                if earliest is not None and earliest < end:
                    inputs.append(partition)
        return inputs

    def run(self, job_id: str, request: ReportRequest | None = None) -> JobStatus:
        """Run *job_id* to a terminal status and return it.

        Parameters
        ----------
        job_id
            Job whose request is already stored.
        request
            The decoded request, when the caller still holds it. Otherwise it
            is loaded from the store.

        Returns
        -------
        JobStatus
            ``COMPLETED`` or ``FAILED``. If another writer finished the job
            first, the status it recorded.

        Raises
        ------
        Exception
            Whatever prevented the failure marker from being written. The
            job then has no terminal marker.

        """
        started_at = utcnow()
        self._events.log_job_started(job_id=job_id)
        try:
            resolved = request if request is not None else self._load_request(job_id)
            inputs = self.resolve_inputs(resolved)
            log_debug(logger, "Report %s reads %d partitions", job_id, len(inputs))
            self._engine.generate_report(resolved, inputs, self._store.output(job_id))
            if self._store.status(job_id) is JobStatus.RUNNING:
                self._store.mark_completed(job_id)
        except JobAlreadyTerminatedError as exc:
            log_warning(
                logger,
                "Report %s was finished elsewhere with status %s",
                job_id,
                exc.status,
            )
            return exc.status
        except Exception as exc:  # noqa: BLE001
            self._record_failure(job_id, exc)
            self._events.log_job_failed(
                job_id=job_id, error=exc, duration=utcnow() - started_at
            )
            return JobStatus.FAILED
        self._events.log_job_completed(
            job_id=job_id, partitions=len(inputs), duration=utcnow() - started_at
        )
        return JobStatus.COMPLETED

    def _load_request(self, job_id: str) -> ReportRequest:
        stored = self._store.read_request(job_id)
        if stored is None:
            msg = f"Report {job_id} has no stored request"
            raise LookupError(msg)
        return load_request(stored.encode("utf-8"))

    def _record_failure(self, job_id: str, exc: Exception) -> None:
        try:
            self._store.mark_failed(job_id, format_failure(exc))
        except Exception as marker_exc:
            self._events.log_failure_marker_failed(
                job_id=job_id, error=marker_exc, cause=exc
            )
            raise


__all__ = ["JobRunner", "format_failure"]
