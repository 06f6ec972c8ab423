"""Unit tests for report job dispatchers and the Dramatiq actor."""

from __future__ import annotations

import typing as typ

import dramatiq
import msgspec
import pytest
from dramatiq.brokers.stub import StubBroker
from dramatiq.message import Message

from runreport.jobs import _broker
from runreport.jobs.dispatch import (
    REPORT_QUEUE,
    DramatiqJobDispatcher,
    JobDispatcher,
    ThreadJobDispatcher,
    run_report_job,
)
from runreport.jobs.status import JobStatus
from runreport.request.decoding import load_request
from tests.helpers.femtologging_capture import capture_femto_logs
from tests.helpers.report_requests import request_body, scenario_payload

if typ.TYPE_CHECKING:
    from runreport.jobs.location import LocalLocation
    from runreport.jobs.runner import JobRunner
    from runreport.jobs.store import JobStore


def _submit(store: JobStore) -> str:
    body = msgspec.json.encode(scenario_payload())
    job_id = store.allocate_id()
    store.create_job_dir(job_id)
    store.write_request(job_id, body)
    return job_id


def _declare_actor(broker: StubBroker) -> dramatiq.Actor:
    return dramatiq.actor(
        run_report_job, broker=broker, queue_name=REPORT_QUEUE, max_retries=0
    )


class TestThreadJobDispatcher:
    """Tests for in-process dispatch."""

    @pytest.mark.parametrize("max_workers", [None, 2])
    def test_runs_jobs_to_completion(
        self, store: JobStore, runner: JobRunner, max_workers: int | None
    ) -> None:
        """Dispatched jobs complete before ``shutdown(wait=True)`` returns."""
        dispatcher = ThreadJobDispatcher(runner, max_workers=max_workers)
        job_ids = [_submit(store) for _ in range(3)]
        request = load_request(msgspec.json.encode(scenario_payload()))

        for job_id in job_ids:
            dispatcher.dispatch(job_id, request)
        dispatcher.shutdown(wait=True)

        assert [store.status(job_id) for job_id in job_ids] == [
            JobStatus.COMPLETED
        ] * 3
        assert all(store.read_row_count(job_id) == 2 for job_id in job_ids)

    def test_pool_logs_unrecorded_failure(
        self,
        store: JobStore,
        runner: JobRunner,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A job whose failure marker cannot be written is logged by the pool."""
        dispatcher = ThreadJobDispatcher(runner, max_workers=1)
        job_id = _submit(store)

        def explode(job: str) -> None:
            del job
            msg = "engine exploded"
            raise RuntimeError(msg)

        def refuse(job: str, cause: str) -> None:
            del job, cause
            msg = "disk full"
            raise OSError(msg)

        monkeypatch.setattr(store, "mark_completed", explode)
        monkeypatch.setattr(store, "mark_failed", refuse)
        request = load_request(request_body())
        with capture_femto_logs("runreport.jobs.dispatch") as capture:
            dispatcher.dispatch(job_id, request)
            dispatcher.shutdown(wait=True)
            capture.wait_for_count(1)

        (record,) = capture.records
        assert record.level == "ERROR"
        assert record.message == f"Report {job_id} ended without a terminal marker"
        assert store.status(job_id) is JobStatus.RUNNING

    def test_satisfies_protocol(self, runner: JobRunner) -> None:
        """The thread dispatcher is a JobDispatcher named ``thread``."""
        dispatcher = ThreadJobDispatcher(runner)
        assert isinstance(dispatcher, JobDispatcher)
        assert dispatcher.name == "thread"


class TestDramatiqJobDispatcher:
    """Tests for dispatch through a Dramatiq broker."""

    def test_enqueues_paths_and_job_id(
        self, store: JobStore, meta_base: LocalLocation, stub_broker: StubBroker
    ) -> None:
        """One message carrying the worker-visible paths is queued per job."""
        actor = _declare_actor(stub_broker)
        dispatcher = DramatiqJobDispatcher(
            str(store.base.path), str(meta_base.path), actor=actor
        )
        job_id = _submit(store)
        request = load_request(msgspec.json.encode(scenario_payload()))

        dispatcher.dispatch(job_id, request)

        queue = stub_broker.queues[REPORT_QUEUE]
        assert queue.qsize() == 1, "expected exactly one queued report job"
        message = Message.decode(queue.get_nowait())
        assert list(message.args) == [str(store.base.path), str(meta_base.path), job_id]
        assert isinstance(dispatcher, JobDispatcher)
        assert dispatcher.name == "dramatiq"

    def test_worker_runs_queued_job(
        self, store: JobStore, meta_base: LocalLocation, stub_broker: StubBroker
    ) -> None:
        """A worker replays the stored request and completes the job."""
        actor = _declare_actor(stub_broker)
        dispatcher = DramatiqJobDispatcher(
            str(store.base.path), str(meta_base.path), actor=actor
        )
        job_id = _submit(store)
        dispatcher.dispatch(job_id, load_request(store.read_request(job_id).encode()))

        worker = dramatiq.Worker(stub_broker, worker_timeout=100)
        worker.start()
        try:
            stub_broker.join(REPORT_QUEUE)
            worker.join()
        finally:
            worker.stop()

        assert store.status(job_id) is JobStatus.COMPLETED
        assert store.read_row_count(job_id) == 2


class TestEnsureBrokerConfigured:
    """Tests for broker selection."""

    def test_returns_configured_broker(self, stub_broker: StubBroker) -> None:
        """An installed broker is returned unchanged."""
        assert _broker.ensure_broker_configured() is stub_broker

    def test_installs_stub_when_allowed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A stub broker is installed when none is configured but stubs are allowed."""
        installed: list[dramatiq.Broker] = []
        monkeypatch.setattr(_broker, "_current_broker", lambda: None)
        monkeypatch.setattr(_broker.dramatiq, "set_broker", installed.append)

        broker = _broker.ensure_broker_configured()

        assert isinstance(broker, StubBroker)
        assert installed == [broker]

    def test_refuses_without_broker(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Outside tests, a missing broker is a configuration error."""
        monkeypatch.setattr(_broker, "_current_broker", lambda: None)
        monkeypatch.setattr(_broker, "stub_broker_allowed", lambda: False)

        with pytest.raises(RuntimeError, match=_broker.ALLOW_STUB_ENV):
            _broker.ensure_broker_configured()

    def test_opt_in_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The opt-in variable allows a stub broker even outside tests."""
        monkeypatch.setattr(_broker, "_is_running_tests", lambda: False)
        monkeypatch.setenv(_broker.ALLOW_STUB_ENV, "1")
        assert _broker.stub_broker_allowed()
        monkeypatch.setenv(_broker.ALLOW_STUB_ENV, "0")
        assert not _broker.stub_broker_allowed()
