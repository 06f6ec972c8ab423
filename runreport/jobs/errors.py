"""Errors raised by the report job store and its readers."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from runreport.jobs.status import JobStatus


class JobError(Exception):
    """Base class for report job errors."""


class JobNotFoundError(JobError):
    """Raised when no job directory exists for an id."""

    def __init__(self, job_id: str) -> None:
        """Record the missing job id."""
        self.job_id = job_id
        super().__init__(f"Report with id {job_id} does not exist.")


class MarkerExistsError(JobError):
    """Raised when a create-once artifact is written a second time.

    Attributes
    ----------
    job_id
        Job whose directory already holds the artifact.
    marker
        File name of the artifact.

    """

    def __init__(self, job_id: str, marker: str) -> None:
        """Record which artifact of which job already exists."""
        self.job_id = job_id
        self.marker = marker
        super().__init__(f"Marker {marker} already exists for report {job_id}")


class JobAlreadyTerminatedError(JobError):
    """Raised when a terminal marker is written for a finished job."""

    def __init__(self, job_id: str, status: JobStatus) -> None:
        """Record the job and the terminal status it already holds."""
        self.job_id = job_id
        self.status = status
        super().__init__(f"Report {job_id} has already finished with status {status}")


class JobNotCompletedError(JobError):
    """Raised when report rows are requested before the job completed."""

    def __init__(self, job_id: str, status: JobStatus) -> None:
        """Record the job and its current status."""
        self.job_id = job_id
        self.status = status
        super().__init__(
            f"Report with id {job_id} with status {status} cannot be read."
        )


class ReportOutputMissingError(JobError):
    """Raised when a completed job has no readable output rows."""

    def __init__(self, job_id: str) -> None:
        """Record the inconsistent job id."""
        self.job_id = job_id
        super().__init__(f"No files found for report {job_id}")


class InvalidPaginationError(JobError):
    """Raised for a negative offset or an out-of-range limit.

    Attributes
    ----------
    reason
        Human-readable description of the rejected parameter.
    field
        Name of the rejected query parameter.

    """

    def __init__(self, reason: str, *, field: str) -> None:
        """Record the rejected parameter and why."""
        self.reason = reason
        self.field = field
        super().__init__(f"{field}: {reason}")


__all__ = [
    "InvalidPaginationError",
    "JobAlreadyTerminatedError",
    "JobError",
    "JobNotCompletedError",
    "JobNotFoundError",
    "MarkerExistsError",
    "ReportOutputMissingError",
]
