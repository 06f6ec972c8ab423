"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import dramatiq
import pytest
from dramatiq.brokers.stub import StubBroker

from runreport.engine.local import LocalComputeEngine
from runreport.engine.runs import populate_meta_files
from runreport.jobs.location import LocalLocation
from runreport.jobs.runner import JobRunner
from runreport.jobs.store import JobStore

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def report_base(tmp_path: Path) -> LocalLocation:
    """Return an existing, empty job store base directory."""
    base = LocalLocation(tmp_path / "reports")
    base.mkdirs()
    return base


@pytest.fixture
def meta_base(tmp_path: Path) -> LocalLocation:
    """Return a run-meta directory holding the sample corpus."""
    base = LocalLocation(tmp_path / "runmeta")
    populate_meta_files(base)
    return base


@pytest.fixture
def store(report_base: LocalLocation) -> JobStore:
    """Return a job store over ``report_base``."""
    return JobStore(report_base)


@pytest.fixture
def runner(store: JobStore, meta_base: LocalLocation) -> JobRunner:
    """Return a runner over the sample corpus with the local engine."""
    return JobRunner(store, meta_base, LocalComputeEngine())


@pytest.fixture
def stub_broker() -> typ.Iterator[StubBroker]:
    """Install a fresh stub Dramatiq broker for the test."""
    broker = StubBroker()
    broker.emit_after("process_boot")
    dramatiq.set_broker(broker)
    yield broker
    broker.flush_all()
    broker.close()
