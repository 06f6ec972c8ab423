"""Report job storage, status, and execution.

Public API
----------
JobStore
    Marker-based durable storage of report jobs.
JobStatus
    Status projected from a job's markers.
JobRunner
    Runs one stored job to a terminal status (``runreport.jobs.runner``).
ThreadJobDispatcher, DramatiqJobDispatcher
    Background executors (``runreport.jobs.dispatch``).
"""

from runreport.jobs.errors import (
    InvalidPaginationError,
    JobAlreadyTerminatedError,
    JobError,
    JobNotCompletedError,
    JobNotFoundError,
    MarkerExistsError,
    ReportOutputMissingError,
)
from runreport.jobs.ids import generate_job_id, is_job_id, job_creation_time
from runreport.jobs.location import LocalLocation, Location
from runreport.jobs.status import JobStatus, MarkerState, derive_status
from runreport.jobs.store import JobOutput, JobPage, JobStore

__all__ = [
    "InvalidPaginationError",
    "JobAlreadyTerminatedError",
    "JobError",
    "JobNotCompletedError",
    "JobNotFoundError",
    "JobOutput",
    "JobPage",
    "JobStatus",
    "JobStore",
    "LocalLocation",
    "Location",
    "MarkerExistsError",
    "MarkerState",
    "ReportOutputMissingError",
    "derive_status",
    "generate_job_id",
    "is_job_id",
    "job_creation_time",
]
