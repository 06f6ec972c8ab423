"""Behavioural coverage for report submission, polling, and retrieval.

Usage
-----
Run with pytest::

    pytest tests/features/steps/test_report_generation_steps.py

Jobs run on a real thread dispatcher against the sample run-meta corpus,
so the steps poll the status endpoint until the job finishes.
"""

from __future__ import annotations

import time
import typing as typ

import msgspec
from pytest_bdd import given, parsers, scenario, then, when

from tests.helpers.report_requests import (
    request_body,
    request_payload,
    sample_payload,
    scenario_payload,
)

if typ.TYPE_CHECKING:
    import falcon.testing
    from falcon.testing.client import Result

    from runreport.jobs.store import JobStore

_POLL_INTERVAL = 0.05
_POLL_ATTEMPTS = 200


class ReportContext(typ.TypedDict, total=False):
    """Mutable context shared between steps."""

    client: falcon.testing.TestClient
    store: JobStore
    job_id: str
    status: str
    response: Result


@scenario(
    "../report_generation.feature",
    "Namespace filtered report sorted by duration",
)
def test_sample_report() -> None:
    """Wrapper for pytest-bdd scenario."""


@scenario(
    "../report_generation.feature",
    "Duration filtered report over a wider window",
)
def test_filtered_report() -> None:
    """Wrapper for pytest-bdd scenario."""


@scenario(
    "../report_generation.feature",
    "Report without filters covers every namespace",
)
def test_unfiltered_report() -> None:
    """Wrapper for pytest-bdd scenario."""


@scenario("../report_generation.feature", "Oversized page limits are rejected")
def test_oversized_limit() -> None:
    """Wrapper for pytest-bdd scenario."""


@scenario(
    "../report_generation.feature",
    "Invalid requests are rejected before a job exists",
)
def test_invalid_request() -> None:
    """Wrapper for pytest-bdd scenario."""


@given(
    "a report API over the sample run-meta corpus",
    target_fixture="report_context",
)
def given_report_api(
    api_client: falcon.testing.TestClient, store: JobStore
) -> ReportContext:
    """Provide the API client and its store."""
    return {"client": api_client, "store": store}


def _submit(context: ReportContext, body: bytes) -> None:
    response = context["client"].simulate_post("/reports", body=body)
    context["response"] = response
    if response.status_code == 200:  # noqa: PLR2004
        context["job_id"] = response.json["id"]


@when("I submit a report for namespaces ns1 and ns2 sorted by duration")
def when_submit_sample(report_context: ReportContext) -> None:
    """Submit the namespace filtered request sorted by duration."""
    _submit(report_context, msgspec.json.encode(sample_payload()))


@when("I submit a report for namespaces ns1 and ns2 with duration at least 500")
def when_submit_filtered(report_context: ReportContext) -> None:
    """Submit the namespace and duration filtered request."""
    _submit(report_context, msgspec.json.encode(scenario_payload()))


@when("I submit a report without filters")
def when_submit_unfiltered(report_context: ReportContext) -> None:
    """Submit a request with only a window and fields."""
    _submit(report_context, msgspec.json.encode(request_payload()))


@when("I submit a report whose start is after its end")
def when_submit_invalid(report_context: ReportContext) -> None:
    """Submit a request with an inverted window."""
    _submit(report_context, request_body(start=1520808301, end=1520808000))


@when(parsers.parse("I list reports with limit {limit:d}"))
def when_list_reports(report_context: ReportContext, limit: int) -> None:
    """List report statuses with the given page size."""
    report_context["response"] = report_context["client"].simulate_get(
        "/reports", params={"limit": limit}
    )


@when("I wait for the report to finish")
def when_wait_for_report(report_context: ReportContext) -> None:
    """Poll the status endpoint until the job leaves RUNNING."""
    client = report_context["client"]
    job_id = report_context["job_id"]
    status = "RUNNING"
    for _ in range(_POLL_ATTEMPTS):
        status = client.simulate_get(f"/reports/{job_id}").json["status"]
        if status != "RUNNING":
            break
        time.sleep(_POLL_INTERVAL)
    report_context["status"] = status


@then(parsers.parse("the report status is {status}"))
def then_report_status(report_context: ReportContext, status: str) -> None:
    """Assert the terminal status observed while polling."""
    assert report_context["status"] == status, (
        f"expected {status}, got {report_context['status']}"
    )


@then(parsers.parse("the report has {count:d} rows"))
def then_report_rows(report_context: ReportContext, count: int) -> None:
    """Fetch the rows and assert the reported total."""
    job_id = report_context["job_id"]
    response = report_context["client"].simulate_get(f"/reports/{job_id}/runs")
    report_context["response"] = response
    assert response.status_code == 200  # noqa: PLR2004
    assert response.json["total"] == count
    assert len(response.json["details"]) == count


@then(parsers.parse("every row has namespace and duration {duration:d}"))
def then_rows_projected(report_context: ReportContext, duration: int) -> None:
    """Rows hold only the requested fields in request order."""
    details = report_context["response"].json["details"]
    assert all(list(row) == ["namespace", "duration"] for row in details)
    assert {row["duration"] for row in details} == {duration}


@then(parsers.parse("the response status is {status:d}"))
def then_response_status(report_context: ReportContext, status: int) -> None:
    """Assert the HTTP status of the last response."""
    assert report_context["response"].status_code == status


@then(parsers.parse("the error description mentions {text}"))
def then_error_mentions(report_context: ReportContext, text: str) -> None:
    """Assert the error description contains *text*."""
    assert text in report_context["response"].json["description"]


@then("no report jobs exist")
def then_no_jobs(report_context: ReportContext) -> None:
    """Rejected requests leave the store empty."""
    assert report_context["store"].list_jobs(0, 10).total == 0
