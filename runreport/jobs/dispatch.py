"""Hand stored report jobs to a background executor.

Submission persists the request before dispatching, so every dispatcher
only needs the job id. Two dispatchers are provided:

``ThreadJobDispatcher``
    Runs jobs in this process, either on one thread per job or on a
    bounded :class:`~concurrent.futures.ThreadPoolExecutor`.
``DramatiqJobDispatcher``
    Sends ``run_report_job`` messages to a Dramatiq broker. Workers rebuild
    the runner from the two base paths and reload the request from the
    job's ``_START`` marker.

Usage
-----
>>> dispatcher = ThreadJobDispatcher(runner, max_workers=4)
>>> dispatcher.dispatch(job_id, request)
>>> dispatcher.shutdown()

"""

from __future__ import annotations

import concurrent.futures as cf
import functools
import threading
import typing as typ
from pathlib import Path

import dramatiq

from runreport.engine.local import LocalComputeEngine
from runreport.jobs._broker import ensure_broker_configured
from runreport.jobs.location import LocalLocation
from runreport.jobs.runner import JobRunner
from runreport.jobs.store import JobStore
from runreport.logging import get_logger, log_debug, log_exception

if typ.TYPE_CHECKING:
    from runreport.jobs.status import JobStatus
    from runreport.request.models import ReportRequest

logger = get_logger(__name__)

REPORT_QUEUE = "reports"


@typ.runtime_checkable
class JobDispatcher(typ.Protocol):
    """Protocol for executors of stored report jobs."""

    @property
    def name(self) -> str:
        """Return a short label used in lifecycle events."""
        ...

    def dispatch(self, job_id: str, request: ReportRequest) -> None:
        """Start running *job_id* without waiting for it."""
        ...

    def shutdown(self, *, wait: bool = True) -> None:
        """Stop accepting jobs, optionally waiting for running ones."""
        ...


def _log_unrecorded_failure(job_id: str, future: cf.Future[JobStatus]) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        log_exception(
            logger, "Report %s ended without a terminal marker", job_id, exc=exc
        )


class ThreadJobDispatcher:
    """Run report jobs on background threads of this process.

    Parameters
    ----------
    runner
        Runner executing each job.
    max_workers
        Size of the worker pool. ``None`` starts a dedicated thread per job.

    """

    def __init__(self, runner: JobRunner, *, max_workers: int | None = None) -> None:
        """Create the dispatcher and, when bounded, its worker pool."""
        self._runner = runner
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []
        self._executor = (
            None
            if max_workers is None
            else cf.ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="runreport-job"
            )
        )

    @property
    def name(self) -> str:
        """Return ``thread``."""
        return "thread"

    def dispatch(self, job_id: str, request: ReportRequest) -> None:
        """Run *job_id* on a pool worker or a fresh thread."""
        if self._executor is not None:
            future = self._executor.submit(self._runner.run, job_id, request)
            future.add_done_callback(
                functools.partial(_log_unrecorded_failure, job_id)
            )
            return
        thread = threading.Thread(
            target=self._runner.run,
            args=(job_id, request),
            name=f"runreport-job-{job_id}",
            daemon=True,
        )
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        thread.start()
        log_debug(logger, "Started thread %s", thread.name)

    def shutdown(self, *, wait: bool = True) -> None:
        """Stop the pool and, when *wait* is true, join every running job."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            return
        if not wait:
            return
        with self._lock:
            threads = list(self._threads)
            self._threads.clear()
        for thread in threads:
            thread.join()


_RUNNER_CACHE: dict[tuple[str, str], JobRunner] = {}
_CACHE_LOCK = threading.Lock()
_ACTOR_LOCK = threading.Lock()
_actor: dramatiq.Actor | None = None


def _get_or_create_runner(report_base: str, meta_base: str) -> JobRunner:
    """Return the cached runner for the two base paths.

    Thread-safe: Dramatiq workers call this concurrently.
    """
    key = (report_base, meta_base)
    with _CACHE_LOCK:
        if key not in _RUNNER_CACHE:
            _RUNNER_CACHE[key] = JobRunner(
                JobStore(LocalLocation(Path(report_base))),
                LocalLocation(Path(meta_base)),
                LocalComputeEngine(),
            )
        return _RUNNER_CACHE[key]


def run_report_job(report_base: str, meta_base: str, job_id: str) -> str:
    """Run one stored report job inside a Dramatiq worker.

    Parameters
    ----------
    report_base
        Filesystem path of the job store base.
    meta_base
        Filesystem path of the run-meta corpus.
    job_id
        The job to run. Its request is read from the store.

    Returns
    -------
    str
        The terminal status of the job.

    """
    ensure_broker_configured()
    runner = _get_or_create_runner(report_base, meta_base)
    return str(runner.run(job_id))


def get_report_actor() -> dramatiq.Actor:
    """Return the ``run_report_job`` actor, declaring it on first use.

    Jobs are never retried; a failed job already carries its failure marker.
    """
    global _actor

    with _ACTOR_LOCK:
        if _actor is None:
            broker = ensure_broker_configured()
            _actor = dramatiq.actor(
                run_report_job,
                broker=broker,
                queue_name=REPORT_QUEUE,
                max_retries=0,
            )
        return _actor


class DramatiqJobDispatcher:
    """Send report jobs to Dramatiq workers.

    Parameters
    ----------
    report_base
        Filesystem path of the job store base, as seen by the workers.
    meta_base
        Filesystem path of the run-meta corpus, as seen by the workers.
    actor
        Actor to send to. Defaults to :func:`get_report_actor`.

    """

    def __init__(
        self,
        report_base: str,
        meta_base: str,
        *,
        actor: dramatiq.Actor | None = None,
    ) -> None:
        """Bind the dispatcher to the worker-visible paths."""
        self._report_base = report_base
        self._meta_base = meta_base
        self._actor = actor

    @property
    def name(self) -> str:
        """Return ``dramatiq``."""
        return "dramatiq"

    @property
    def actor(self) -> dramatiq.Actor:
        """Return the actor messages are sent to."""
        if self._actor is None:
            self._actor = get_report_actor()
        return self._actor

    def dispatch(self, job_id: str, request: ReportRequest) -> None:
        """Enqueue *job_id*; workers reload *request* from the store."""
        del request
        message = self.actor.send(self._report_base, self._meta_base, job_id)
        log_debug(
            logger, "Enqueued report %s as message %s", job_id, message.message_id
        )

    def shutdown(self, *, wait: bool = True) -> None:
        """Do nothing; workers own their lifecycle."""
        del wait


__all__ = [
    "REPORT_QUEUE",
    "DramatiqJobDispatcher",
    "JobDispatcher",
    "ThreadJobDispatcher",
    "get_report_actor",
    "run_report_job",
]
