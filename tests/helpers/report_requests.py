"""Builders for report request bodies used across tests."""

from __future__ import annotations

import typing as typ

import msgspec

# Window holding the first sample run of every namespace. The second run
# of each partition starts inside it but finishes after it.
SAMPLE_WINDOW_START = 1520808000
SAMPLE_WINDOW_END = 1520808301
# Window holding both runs of the first partition of every namespace.
WIDE_WINDOW_END = 1520809201


def request_payload(**overrides: object) -> dict[str, typ.Any]:
    """Return a valid request payload with *overrides* applied.

    Keys set to ``None`` in *overrides* are removed from the payload.
    """
    payload: dict[str, typ.Any] = {
        "start": SAMPLE_WINDOW_START,
        "end": SAMPLE_WINDOW_END,
        "fields": ["namespace", "duration"],
    }
    payload.update(overrides)
    return {key: value for key, value in payload.items() if value is not None}


def request_body(**overrides: object) -> bytes:
    """Return :func:`request_payload` encoded as JSON."""
    return msgspec.json.encode(request_payload(**overrides))


def sample_payload() -> dict[str, typ.Any]:
    """Return the namespace filtered, duration sorted sample request."""
    return request_payload(
        fields=["namespace", "duration"],
        sort=[{"fieldName": "duration", "order": "DESCENDING"}],
        filters=[{"fieldName": "namespace", "whitelist": ["ns1", "ns2"]}],
    )


def scenario_payload() -> dict[str, typ.Any]:
    """Return the namespace and duration filtered request over the wide window."""
    return request_payload(
        end=WIDE_WINDOW_END,
        fields=["namespace", "duration"],
        sort=[{"fieldName": "duration", "order": "DESCENDING"}],
        filters=[
            {"fieldName": "namespace", "whitelist": ["ns1", "ns2"]},
            {"fieldName": "duration", "range": {"min": 500}},
        ],
    )
