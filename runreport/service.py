"""Submission, status, and retrieval of program run reports.

``ReportService`` is the single entry point used by the HTTP resources. It
persists each accepted request before handing the job to a dispatcher, and
answers status and row queries purely from the job store, so any process
sharing the store sees the same jobs.

Usage
-----
>>> service = ReportService(store, dispatcher)
>>> job_id = service.submit(b'{"start": 1, "end": 2, "fields": ["run"]}')
>>> service.get_job_status(job_id).status
<JobStatus.RUNNING: 'RUNNING'>

"""

from __future__ import annotations

import typing as typ

import msgspec

from runreport.config import DEFAULT_MAX_LIMIT
from runreport.jobs.errors import InvalidPaginationError, JobNotCompletedError
from runreport.jobs.ids import job_creation_time
from runreport.jobs.observability import JobEventLogger
from runreport.jobs.runner import format_failure
from runreport.jobs.status import JobStatus
from runreport.request.decoding import load_request

if typ.TYPE_CHECKING:
    from runreport.jobs.dispatch import JobDispatcher
    from runreport.jobs.store import JobStore


class ReportStatusEntry(msgspec.Struct, frozen=True, kw_only=True):
    """Status of one job in a listing."""

    id: str
    created: int
    status: JobStatus


class ReportStatusPage(msgspec.Struct, frozen=True, kw_only=True):
    """One page of job statuses in creation order."""

    offset: int
    limit: int
    total: int
    reports: list[ReportStatusEntry]


class ReportStatusInfo(msgspec.Struct, frozen=True, kw_only=True):
    """Status of a single job and the request it was submitted with.

    Attributes
    ----------
    created : int
        Creation time in epoch seconds, read from the job id.
    status : JobStatus
        Status derived from the job's markers.
    request : Any
        The stored request JSON, decoded but otherwise verbatim. ``None``
        while the request is still being written.

    """

    created: int
    status: JobStatus
    request: typ.Any = None


class ReportRowsPage(msgspec.Struct, frozen=True, kw_only=True):
    """A window of report rows plus the stored total row count."""

    offset: int
    limit: int
    total: int
    details: list[typ.Any]


class ReportService:
    """Submit report jobs and read their status and rows.

    Parameters
    ----------
    store
        Job store shared with the runners.
    dispatcher
        Executor for accepted jobs.
    max_limit
        Largest accepted page size.
    event_logger
        Structured lifecycle event emitter.

    """

    def __init__(
        self,
        store: JobStore,
        dispatcher: JobDispatcher,
        *,
        max_limit: int = DEFAULT_MAX_LIMIT,
        event_logger: JobEventLogger | None = None,
    ) -> None:
        """Bind the service to its store and dispatcher."""
        self._store = store
        self._dispatcher = dispatcher
        self._max_limit = max_limit
        self._events = event_logger or JobEventLogger()

    @property
    def max_limit(self) -> int:
        """Return the largest accepted page size."""
        return self._max_limit

    @property
    def store(self) -> JobStore:
        """Return the job store."""
        return self._store

    def submit(self, body: bytes | str) -> str:
        """Validate *body*, persist it, and dispatch a new job.

        The request is stored verbatim before dispatch, so the job is
        inspectable as ``RUNNING`` as soon as its id is returned.

        Returns
        -------
        str
            The new job id.

        Raises
        ------
        RequestDecodeError
            If the body is not a well-formed request.
        RequestValidationError
            If the request violates the request rules.
        Exception
            Whatever the dispatcher raised. The job is marked failed first.

        """
        request = load_request(body)
        job_id = self._store.allocate_id()
        self._store.create_job_dir(job_id)
        self._store.write_request(job_id, body)
        self._events.log_job_submitted(
            job_id=job_id, dispatcher=self._dispatcher.name
        )
        try:
            self._dispatcher.dispatch(job_id, request)
        except Exception as exc:
            self._events.log_dispatch_failed(
                job_id=job_id, dispatcher=self._dispatcher.name, error=exc
            )
            self._store.mark_failed(job_id, format_failure(exc))
            raise
        return job_id

    def check_pagination(self, offset: int, limit: int) -> None:
        """Reject a negative offset or a limit outside ``(0, max_limit]``.

        Raises
        ------
        InvalidPaginationError
            Naming the offending parameter.

        """
        if offset < 0:
            raise InvalidPaginationError("offset cannot be negative", field="offset")
        if limit <= 0:
            raise InvalidPaginationError(
                "limit must be a positive integer", field="limit"
            )
        if limit > self._max_limit:
            raise InvalidPaginationError(
                f"limit cannot be larger than {self._max_limit}", field="limit"
            )

    def list_job_statuses(self, offset: int, limit: int) -> ReportStatusPage:
        """Return the statuses of jobs ``[offset, offset + limit)``."""
        self.check_pagination(offset, limit)
        page = self._store.list_jobs(offset, limit)
        entries = [
            ReportStatusEntry(
                id=job_id,
                created=job_creation_time(job_id),
                status=self._store.status(job_id),
            )
            for job_id in page.job_ids
        ]
        return ReportStatusPage(
            offset=offset, limit=limit, total=page.total, reports=entries
        )

    def get_job_status(self, job_id: str) -> ReportStatusInfo:
        """Return the status and stored request of *job_id*.

        Raises
        ------
        JobNotFoundError
            If no such job exists.

        """
        status = self._store.status(job_id)
        stored = self._store.read_request(job_id)
        return ReportStatusInfo(
            created=job_creation_time(job_id),
            status=status,
            request=None if stored is None else msgspec.json.decode(stored),
        )

    def get_job_rows(self, job_id: str, offset: int, limit: int) -> ReportRowsPage:
        """Return rows ``[offset, offset + limit)`` of a completed job.

        ``total`` is the stored row count of the whole report.

        Raises
        ------
        InvalidPaginationError
            Before any storage access, for a bad offset or limit.
        JobNotFoundError
            If no such job exists.
        JobNotCompletedError
            If the job is still running or failed.
        ReportOutputMissingError
            If a completed job lacks its row count or row file.

        """
        self.check_pagination(offset, limit)
        status = self._store.status(job_id)
        if status is not JobStatus.COMPLETED:
            raise JobNotCompletedError(job_id, status)
        total = self._store.read_row_count(job_id)
        rows = self._store.read_output_rows(job_id, offset, limit)
        return ReportRowsPage(
            offset=offset,
            limit=limit,
            total=total,
            details=[msgspec.json.decode(row) for row in rows],
        )


__all__ = [
    "ReportRowsPage",
    "ReportService",
    "ReportStatusEntry",
    "ReportStatusInfo",
    "ReportStatusPage",
]
