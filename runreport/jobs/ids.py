"""Time-ordered report job identifiers.

Job ids are version 1 UUIDs. The embedded 60-bit timestamp orders jobs by
creation and yields the creation time without a side table.
"""

from __future__ import annotations

import uuid

# 100ns intervals between the UUID epoch (1582-10-15) and the Unix epoch.
_UUID_EPOCH_OFFSET = 0x01B21DD213814000
_TICKS_PER_SECOND = 10_000_000


def generate_job_id() -> str:
    """Return a new time-based job id.

    ``uuid.uuid1`` never repeats a timestamp within one process, so ids
    allocated here are strictly increasing in creation order.
    """
    return str(uuid.uuid1())


def parse_job_id(job_id: str) -> uuid.UUID | None:
    """Return the UUID for *job_id*, or ``None`` if it is not a job id."""
    try:
        parsed = uuid.UUID(job_id)
    except ValueError:
        return None
    if parsed.version != 1:
        return None
    return parsed


def is_job_id(job_id: str) -> bool:
    """Return whether *job_id* is a well-formed time-based id."""
    return parse_job_id(job_id) is not None


def job_timestamp(job_id: str) -> int:
    """Return the creation instant of *job_id* in 100ns Unix ticks.

    Raises
    ------
    ValueError
        If *job_id* is not a version 1 UUID.

    """
    parsed = parse_job_id(job_id)
    if parsed is None:
        msg = f"'{job_id}' is not a time-based job id"
        raise ValueError(msg)
    return parsed.time - _UUID_EPOCH_OFFSET


def job_creation_time(job_id: str) -> int:
    """Return the creation time of *job_id* in epoch seconds."""
    return job_timestamp(job_id) // _TICKS_PER_SECOND


def job_sort_key(job_id: str) -> tuple[int, str]:
    """Sort key ordering job ids by creation, ties broken by id."""
    return (job_timestamp(job_id), job_id)


__all__ = [
    "generate_job_id",
    "is_job_id",
    "job_creation_time",
    "job_sort_key",
    "job_timestamp",
    "parse_job_id",
]
