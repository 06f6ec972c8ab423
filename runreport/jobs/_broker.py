"""Dramatiq broker selection for the report job actor.

The actor is declared on first use rather than at import time, so the
broker must be settled before then. Outside tests a broker has to be
configured explicitly; local runs may opt into an in-memory
:class:`~dramatiq.brokers.stub.StubBroker` with
``RUNREPORT_ALLOW_STUB_BROKER=1``.
"""

from __future__ import annotations

import os
import sys
import threading

import dramatiq
from dramatiq.brokers.stub import StubBroker

ALLOW_STUB_ENV = "RUNREPORT_ALLOW_STUB_BROKER"
_TRUTHY = frozenset({"1", "true", "yes", "on"})
_TEST_ENV_KEYS = ("PYTEST_CURRENT_TEST", "PYTEST_XDIST_WORKER", "PYTEST_ADDOPTS")

_BROKER_LOCK = threading.Lock()


def _is_running_tests() -> bool:
    """Return whether the process runs under pytest."""
    return "pytest" in sys.modules or any(key in os.environ for key in _TEST_ENV_KEYS)


def stub_broker_allowed() -> bool:
    """Return whether an in-memory broker may stand in for a real one."""
    flag = os.environ.get(ALLOW_STUB_ENV, "").strip().lower()
    return flag in _TRUTHY or _is_running_tests()


def _current_broker() -> dramatiq.Broker | None:
    try:
        return dramatiq.get_broker()
    except (ImportError, LookupError):
        # The default RabbitMQ broker needs pika, which is optional.
        return None


def ensure_broker_configured() -> dramatiq.Broker:
    """Return the global Dramatiq broker, installing a stub when allowed.

    Safe to call from many worker threads.

    Raises
    ------
    RuntimeError
        If no broker is configured and a stub broker is not allowed.

    """
    with _BROKER_LOCK:
        broker = _current_broker()
        if broker is None:
            if not stub_broker_allowed():
                message = (
                    "No Dramatiq broker configured. "
                    f"Set {ALLOW_STUB_ENV}=1 for local runs "
                    "or configure a real broker."
                )
                raise RuntimeError(message)
            broker = StubBroker()
            dramatiq.set_broker(broker)
        return broker


__all__ = ["ALLOW_STUB_ENV", "ensure_broker_configured", "stub_broker_allowed"]
