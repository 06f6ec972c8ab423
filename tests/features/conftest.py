"""Shared fixtures for report generation feature tests."""

from __future__ import annotations

import typing as typ

import falcon.testing
import pytest

from runreport.api.app import AppDependencies, create_app
from runreport.jobs.dispatch import ThreadJobDispatcher
from runreport.service import ReportService

if typ.TYPE_CHECKING:
    from runreport.jobs.runner import JobRunner
    from runreport.jobs.store import JobStore


@pytest.fixture
def thread_dispatcher(runner: JobRunner) -> typ.Iterator[ThreadJobDispatcher]:
    """Provide a thread dispatcher that is joined after the scenario."""
    dispatcher = ThreadJobDispatcher(runner)
    yield dispatcher
    dispatcher.shutdown(wait=True)


@pytest.fixture
def api_client(
    store: JobStore, thread_dispatcher: ThreadJobDispatcher
) -> falcon.testing.TestClient:
    """Provide a Falcon test client running jobs on background threads."""
    service = ReportService(store, thread_dispatcher)
    return falcon.testing.TestClient(
        create_app(AppDependencies(report_service=service))
    )
