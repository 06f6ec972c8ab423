"""Unit tests for runreport.api.app application factory.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_app.py

"""

from __future__ import annotations

import asyncio
import shutil
import typing as typ

import falcon
import falcon.asgi
import falcon.testing
import pytest

from runreport.api.app import AppDependencies, create_app
from runreport.service import ReportService
from tests.helpers.dispatchers import RecordingDispatcher
from tests.helpers.report_requests import request_body

if typ.TYPE_CHECKING:
    from runreport.jobs.store import JobStore


@pytest.fixture
def health_client() -> falcon.testing.TestClient:
    """Build a test client for probe-only mode."""
    return falcon.testing.TestClient(create_app())


@pytest.fixture
def full_client(store: JobStore) -> falcon.testing.TestClient:
    """Build a test client with a report service."""
    service = ReportService(store, RecordingDispatcher())
    return falcon.testing.TestClient(
        create_app(AppDependencies(report_service=service))
    )


class TestCreateAppHealthOnly:
    """Tests for create_app() without a report service."""

    def test_returns_falcon_app(self) -> None:
        """create_app() returns a Falcon ASGI App."""
        assert isinstance(create_app(), falcon.asgi.App), "expected Falcon ASGI App"

    def test_probes(self, health_client: falcon.testing.TestClient) -> None:
        """Both probes answer without a store to check."""
        health = health_client.simulate_get("/health")
        ready = health_client.simulate_get("/ready")
        assert health.status == falcon.HTTP_200, "expected HTTP 200 from /health"
        assert health.json == {"status": "ok"}
        assert ready.status == falcon.HTTP_200, "expected HTTP 200 from /ready"
        assert ready.json == {"status": "ready"}

    def test_report_routes_not_registered(
        self, health_client: falcon.testing.TestClient
    ) -> None:
        """Without a service the report routes are absent."""
        result = health_client.simulate_get("/reports")
        assert result.status == falcon.HTTP_404, "expected HTTP 404"


class TestCreateAppWithService:
    """Tests for create_app() with a report service."""

    def test_report_routes_registered(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """The listing route answers with an empty first page."""
        result = full_client.simulate_get("/reports")
        assert result.status == falcon.HTTP_200
        assert result.json["total"] == 0

    def test_ready_checks_store_base(
        self, full_client: falcon.testing.TestClient, store: JobStore
    ) -> None:
        """Readiness fails once the store base directory disappears."""
        assert full_client.simulate_get("/ready").status == falcon.HTTP_200
        shutil.rmtree(store.base.path)

        result = full_client.simulate_get("/ready")

        assert result.status == falcon.HTTP_503, "expected HTTP 503 from /ready"
        assert result.json["status"] == "unavailable"
        assert "is not a directory" in result.json["reason"]

    def test_health_ignores_store(
        self, full_client: falcon.testing.TestClient, store: JobStore
    ) -> None:
        """Liveness does not depend on the store."""
        shutil.rmtree(store.base.path)
        assert full_client.simulate_get("/health").status == falcon.HTTP_200


async def test_concurrent_submissions_get_distinct_ids(store: JobStore) -> None:
    """Submissions served concurrently each allocate their own job."""
    service = ReportService(store, RecordingDispatcher())
    app = create_app(AppDependencies(report_service=service))

    async with falcon.testing.ASGIConductor(app) as conductor:
        results = await asyncio.gather(
            *(
                conductor.simulate_post("/reports", body=request_body())
                for _ in range(5)
            )
        )

    job_ids = {result.json["id"] for result in results}
    assert len(job_ids) == 5, "each submission should create a new job"
    assert store.list_jobs(0, 10).total == 5
