r"""Durable, marker-based storage for report jobs.

Each job owns one directory under the store's base location::

    {base}/{job_id}/_START                  verbatim request JSON
    {base}/{job_id}/reports/part-00000.json report rows, one JSON per line
    {base}/{job_id}/COUNT                   total number of rows
    {base}/{job_id}/_TERMINAL               outcome claimed by the first finisher
    {base}/{job_id}/_SUCCESS                present once the report completed
    {base}/{job_id}/_FAILURE                present once the job failed

``_START``, ``COUNT``, ``_SUCCESS`` and ``_FAILURE`` are create-once
artifacts. A second write raises :class:`MarkerExistsError` and never
replaces the existing content. Before either terminal marker is written the
writer claims ``_TERMINAL`` with a create-once write, so concurrent writers
agree on a single outcome and at most one terminal marker ever exists.

Usage
-----
>>> store = JobStore(LocalLocation(Path("/var/lib/runreport/reports")))
>>> job_id = store.allocate_id()
>>> store.create_job_dir(job_id)
>>> store.write_request(job_id, b'{"start": 1, ...}')
>>> store.status(job_id)
<JobStatus.RUNNING: 'RUNNING'>

"""

from __future__ import annotations

import dataclasses as dc
import itertools
import typing as typ

from runreport.jobs.errors import (
    JobAlreadyTerminatedError,
    JobNotFoundError,
    MarkerExistsError,
    ReportOutputMissingError,
)
from runreport.jobs.ids import generate_job_id, is_job_id, job_sort_key
from runreport.jobs.status import JobStatus, MarkerState, derive_status
from runreport.logging import get_logger, log_debug, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from runreport.jobs.location import Location

logger = get_logger(__name__)

START_FILE = "_START"
REPORT_DIR = "reports"
ROWS_FILE = "part-00000.json"
ROWS_SUFFIX = ".json"
COUNT_FILE = "COUNT"
SUCCESS_FILE = "_SUCCESS"
FAILURE_FILE = "_FAILURE"
TERMINAL_FILE = "_TERMINAL"


@dc.dataclass(frozen=True, slots=True)
class JobPage:
    """One page of job ids in creation order, plus the total job count."""

    job_ids: tuple[str, ...]
    total: int


@dc.dataclass(frozen=True, slots=True)
class JobOutput:
    """Write handle for the output artifacts of one job.

    Handed to compute engines so they write rows, the row count, and the
    success marker through the store's create-once rules.
    """

    store: JobStore
    job_id: str

    @property
    def location(self) -> Location:
        """Return the directory receiving the report rows."""
        return self.store.output_dir(self.job_id)

    def append_rows(self, rows: cabc.Iterable[str]) -> None:
        """Append encoded rows to the job's report."""
        self.store.append_output_rows(self.job_id, rows)

    def write_row_count(self, count: int) -> None:
        """Persist the total row count."""
        self.store.write_row_count(self.job_id, count)

    def mark_completed(self) -> None:
        """Write the success marker."""
        self.store.mark_completed(self.job_id)


class JobStore:
    """Create, inspect, and read report jobs under a base location.

    Parameters
    ----------
    base
        Location whose child directories are job directories.

    """

    def __init__(self, base: Location) -> None:
        """Bind the store to its base location."""
        self._base = base

    @property
    def base(self) -> Location:
        """Return the base location holding every job directory."""
        return self._base

    def allocate_id(self) -> str:
        """Return a fresh, time-ordered job id."""
        return generate_job_id()

    def job_dir(self, job_id: str) -> Location:
        """Return the directory location for *job_id*."""
        return self._base.append(job_id)

    def exists(self, job_id: str) -> bool:
        """Return whether a job directory exists for *job_id*."""
        return is_job_id(job_id) and self.job_dir(job_id).is_directory()

    def create_job_dir(self, job_id: str) -> Location:
        """Create the directory for *job_id* and return it."""
        job_dir = self.job_dir(job_id)
        job_dir.mkdirs()
        log_debug(logger, "Created report directory %s", job_dir.to_uri())
        return job_dir

    def write_request(self, job_id: str, request_json: bytes | str) -> None:
        """Persist the verbatim request for *job_id*.

        Raises
        ------
        MarkerExistsError
            If a request was already stored for the job.

        """
        self._create_marker(job_id, START_FILE, _as_bytes(request_json))

    def read_request(self, job_id: str) -> str | None:
        """Return the stored request JSON, or ``None`` before it is written."""
        start = self._require_dir(job_id).append(START_FILE)
        if not start.exists():
            return None
        return start.read_bytes().decode("utf-8")

    def write_row_count(self, job_id: str, count: int) -> None:
        """Persist the total row count of the report."""
        self._create_marker(job_id, COUNT_FILE, str(count).encode("utf-8"))

    def read_row_count(self, job_id: str) -> int:
        """Return the stored row count.

        Raises
        ------
        ReportOutputMissingError
            If the count was never written.

        """
        count = self._require_dir(job_id).append(COUNT_FILE)
        if not count.exists():
            raise ReportOutputMissingError(job_id)
        return int(count.read_bytes().decode("utf-8").strip())

    def output_dir(self, job_id: str) -> Location:
        """Return the directory receiving the report rows."""
        return self.job_dir(job_id).append(REPORT_DIR)

    def output(self, job_id: str) -> JobOutput:
        """Return the write handle for the outputs of *job_id*."""
        return JobOutput(store=self, job_id=job_id)

    def append_output_rows(self, job_id: str, rows: cabc.Iterable[str]) -> None:
        """Append encoded rows to the report of a running job.

        Raises
        ------
        JobAlreadyTerminatedError
            If the job already completed or failed; its rows are immutable.

        """
        status = self.status(job_id)
        if status.is_terminal:
            raise JobAlreadyTerminatedError(job_id, status)
        self.output_dir(job_id).append(ROWS_FILE).append_lines(rows)

    def read_output_rows(self, job_id: str, offset: int, limit: int) -> list[str]:
        """Return up to *limit* rows after skipping the first *offset*.

        Raises
        ------
        ReportOutputMissingError
            If the report directory holds no row file.

        """
        rows_file = self._find_rows_file(job_id)
        if rows_file is None:
            raise ReportOutputMissingError(job_id)
        return list(itertools.islice(rows_file.read_lines(), offset, offset + limit))

    def mark_completed(self, job_id: str) -> None:
        """Write the success marker.

        Raises
        ------
        JobAlreadyTerminatedError
            If the job already failed, or another writer is failing it.
        MarkerExistsError
            If the job was already marked completed.

        """
        self._claim_terminal(job_id, JobStatus.COMPLETED, SUCCESS_FILE)
        self._create_marker(job_id, SUCCESS_FILE, b"")

    def mark_failed(self, job_id: str, cause: str) -> None:
        """Write the failure marker holding *cause*.

        Raises
        ------
        JobAlreadyTerminatedError
            If the job already completed, or another writer is completing it.
        MarkerExistsError
            If the job was already marked failed.

        """
        self._claim_terminal(job_id, JobStatus.FAILED, FAILURE_FILE)
        self._create_marker(job_id, FAILURE_FILE, cause.encode("utf-8"))

    def read_failure(self, job_id: str) -> str | None:
        """Return the recorded failure cause, or ``None`` if not failed."""
        failure = self._require_dir(job_id).append(FAILURE_FILE)
        if not failure.exists():
            return None
        return failure.read_bytes().decode("utf-8")

    def markers(self, job_id: str) -> MarkerState:
        """Return which marker artifacts exist for *job_id*."""
        job_dir = self._require_dir(job_id)
        return MarkerState(
            request=job_dir.append(START_FILE).exists(),
            success=job_dir.append(SUCCESS_FILE).exists(),
            failure=job_dir.append(FAILURE_FILE).exists(),
        )

    def status(self, job_id: str) -> JobStatus:
        """Return the status of *job_id*, derived from its markers.

        Raises
        ------
        JobNotFoundError
            If no directory exists for the job.

        """
        return derive_status(self.markers(job_id))

    def list_jobs(self, offset: int, limit: int) -> JobPage:
        """Return the job ids at ``[offset, offset + limit)`` in creation order."""
        job_ids = sorted(
            (
                child.name
                for child in self._base.list()
                if child.is_directory() and is_job_id(child.name)
            ),
            key=job_sort_key,
        )
        page = tuple(itertools.islice(job_ids, offset, offset + limit))
        return JobPage(job_ids=page, total=len(job_ids))

    def _require_dir(self, job_id: str) -> Location:
        if not self.exists(job_id):
            raise JobNotFoundError(job_id)
        return self.job_dir(job_id)

    def _create_marker(self, job_id: str, marker: str, content: bytes) -> None:
        location = self._require_dir(job_id).append(marker)
        if not location.create_new(content):
            raise MarkerExistsError(job_id, marker)

    def _claim_terminal(self, job_id: str, outcome: JobStatus, marker: str) -> None:
        claim = self._require_dir(job_id).append(TERMINAL_FILE)
        if claim.create_new(outcome.value.encode("utf-8")):
            return
        claimed = JobStatus(claim.read_bytes().decode("utf-8").strip())
        if claimed is outcome:
            raise MarkerExistsError(job_id, marker)
        log_warning(
            logger,
            "Refusing to overwrite terminal status %s of report %s",
            claimed,
            job_id,
        )
        raise JobAlreadyTerminatedError(job_id, claimed)

    def _find_rows_file(self, job_id: str) -> Location | None:
        for candidate in self.output_dir(job_id).list():
            if candidate.name.endswith(ROWS_SUFFIX):
                return candidate
        return None


def _as_bytes(content: bytes | str) -> bytes:
    return content.encode("utf-8") if isinstance(content, str) else content


__all__ = [
    "COUNT_FILE",
    "FAILURE_FILE",
    "REPORT_DIR",
    "ROWS_FILE",
    "START_FILE",
    "SUCCESS_FILE",
    "TERMINAL_FILE",
    "JobOutput",
    "JobPage",
    "JobStore",
]
