"""Report job status derived from marker presence.

A job has no stored status. Its status is a pure projection of three
observable facts about its directory:

=========  =========  =========  ===========  ==================================
request    success    failure    status       reachable through ``JobStore``
=========  =========  =========  ===========  ==================================
no         no         no         RUNNING      yes, between mkdir and request
yes        no         no         RUNNING      yes, job in progress or stuck
yes        yes        no         COMPLETED    yes
yes        no         yes        FAILED       yes
yes        yes        yes        COMPLETED    no, terminal markers are exclusive
no         yes        no         COMPLETED    no, request is written first
no         no         yes        FAILED       no, request is written first
no         yes        yes        COMPLETED    no
=========  =========  =========  ===========  ==================================

The success marker wins whenever it is present.
"""

from __future__ import annotations

import dataclasses as dc
import enum


class JobStatus(enum.StrEnum):
    """Lifecycle states of a report job."""

    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        """Return whether no further transition can happen."""
        return self is not JobStatus.RUNNING


@dc.dataclass(frozen=True, slots=True)
class MarkerState:
    """Presence of each marker artifact in a job directory."""

    request: bool
    success: bool
    failure: bool


def derive_status(markers: MarkerState) -> JobStatus:
    """Project marker presence onto a :class:`JobStatus`."""
    if markers.success:
        return JobStatus.COMPLETED
    if markers.failure:
        return JobStatus.FAILED
    return JobStatus.RUNNING


__all__ = ["JobStatus", "MarkerState", "derive_status"]
