"""Emit structured observability events for the report job lifecycle.

Usage
-----
>>> event_logger = JobEventLogger()
>>> event_logger.log_job_started(job_id="0f9d5a2e-...")

"""

from __future__ import annotations

import enum
import typing as typ

from runreport.logging import get_logger, log_error, log_info

if typ.TYPE_CHECKING:
    import datetime as dt

logger = get_logger(__name__)


class JobEventType(enum.StrEnum):
    """Structured log event types for report jobs."""

    JOB_SUBMITTED = "jobs.report.submitted"
    JOB_STARTED = "jobs.report.started"
    JOB_COMPLETED = "jobs.report.completed"
    JOB_FAILED = "jobs.report.failed"
    FAILURE_MARKER_FAILED = "jobs.report.marker_failed"
    DISPATCH_FAILED = "jobs.report.dispatch_failed"


class JobEventLogger:
    """Emit structured report job events via femtologging."""

    def log_job_submitted(self, *, job_id: str, dispatcher: str) -> None:
        """Log that a job was persisted and handed to *dispatcher*."""
        log_info(
            logger,
            "[%s] job_id=%s dispatcher=%s",
            JobEventType.JOB_SUBMITTED,
            job_id,
            dispatcher,
        )

    def log_job_started(self, *, job_id: str) -> None:
        """Log that a runner picked up the job."""
        log_info(logger, "[%s] job_id=%s", JobEventType.JOB_STARTED, job_id)

    def log_job_completed(
        self, *, job_id: str, partitions: int, duration: dt.timedelta
    ) -> None:
        """Log successful completion of a job.

        Parameters
        ----------
        job_id
            The completed job.
        partitions
            Number of run-meta partitions handed to the compute engine.
        duration
            Elapsed time between start and completion.

        """
        log_info(
            logger,
            "[%s] job_id=%s partitions=%d duration_seconds=%.3f",
            JobEventType.JOB_COMPLETED,
            job_id,
            partitions,
            duration.total_seconds(),
        )

    def log_job_failed(
        self, *, job_id: str, error: BaseException, duration: dt.timedelta
    ) -> None:
        """Log a failed job with error details."""
        log_error(
            logger,
            "[%s] job_id=%s duration_seconds=%.3f error_type=%s error_message=%s",
            JobEventType.JOB_FAILED,
            job_id,
            duration.total_seconds(),
            type(error).__name__,
            str(error),
            exc_info=error,
        )

    def log_dispatch_failed(
        self, *, job_id: str, dispatcher: str, error: BaseException
    ) -> None:
        """Log that a persisted job could not be handed to *dispatcher*."""
        log_error(
            logger,
            "[%s] job_id=%s dispatcher=%s error_type=%s error_message=%s",
            JobEventType.DISPATCH_FAILED,
            job_id,
            dispatcher,
            type(error).__name__,
            str(error),
            exc_info=error,
        )

    def log_failure_marker_failed(
        self, *, job_id: str, error: BaseException, cause: BaseException
    ) -> None:
        """Log that the failure marker of a failed job could not be written.

        The job keeps reporting ``RUNNING`` until an operator intervenes.

        Parameters
        ----------
        job_id
            The job left without a terminal marker.
        error
            Exception raised while writing the marker.
        cause
            The original failure the marker should have recorded.

        """
        log_error(
            logger,
            "[%s] job_id=%s error_type=%s error_message=%s cause_type=%s "
            "cause_message=%s",
            JobEventType.FAILURE_MARKER_FAILED,
            job_id,
            type(error).__name__,
            str(error),
            type(cause).__name__,
            str(cause),
            exc_info=error,
        )


__all__ = ["JobEventLogger", "JobEventType"]
