"""Unit tests for marker-derived job status."""

from __future__ import annotations

import itertools

import pytest

from runreport.jobs.status import JobStatus, MarkerState, derive_status


def _expected(*, success: bool, failure: bool) -> JobStatus:
    if success:
        return JobStatus.COMPLETED
    if failure:
        return JobStatus.FAILED
    return JobStatus.RUNNING


@pytest.mark.parametrize(
    ("request_present", "success", "failure"),
    list(itertools.product([False, True], repeat=3)),
)
def test_every_marker_combination(
    request_present: bool,  # noqa: FBT001
    success: bool,  # noqa: FBT001
    failure: bool,  # noqa: FBT001
) -> None:
    """Success wins, then failure; otherwise the job is running."""
    markers = MarkerState(request=request_present, success=success, failure=failure)
    assert derive_status(markers) is _expected(success=success, failure=failure)


def test_terminal_statuses() -> None:
    """Only RUNNING is non-terminal."""
    assert not JobStatus.RUNNING.is_terminal
    assert JobStatus.COMPLETED.is_terminal
    assert JobStatus.FAILED.is_terminal
