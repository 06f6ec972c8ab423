"""Build a ``ReportService`` from environment configuration.

Usage
-----
Build a service for the API layer::

    from runreport.api.factory import build_report_service

    service = build_report_service()

"""

from __future__ import annotations

from runreport.config import DispatchMode, ReportingConfig
from runreport.engine.local import LocalComputeEngine
from runreport.engine.runs import populate_meta_files
from runreport.jobs.dispatch import (
    DramatiqJobDispatcher,
    JobDispatcher,
    ThreadJobDispatcher,
)
from runreport.jobs.location import LocalLocation
from runreport.jobs.observability import JobEventLogger
from runreport.jobs.runner import JobRunner
from runreport.jobs.store import JobStore
from runreport.logging import get_logger, log_info
from runreport.service import ReportService

__all__ = ["build_dispatcher", "build_report_service"]

logger = get_logger(__name__)


def build_dispatcher(
    config: ReportingConfig, store: JobStore, meta_base: LocalLocation
) -> JobDispatcher:
    """Return the dispatcher selected by ``config.dispatch_mode``."""
    if config.dispatch_mode is DispatchMode.DRAMATIQ:
        return DramatiqJobDispatcher(
            str(config.report_base_path.resolve()),
            str(config.meta_base_path.resolve()),
        )
    runner = JobRunner(store, meta_base, LocalComputeEngine())
    return ThreadJobDispatcher(runner, max_workers=config.max_workers)


def build_report_service(config: ReportingConfig | None = None) -> ReportService:
    """Build a ``ReportService`` over the configured directories.

    Creates both base directories when missing and, when
    ``config.seed_meta`` is set, writes the sample run-meta corpus.

    Parameters
    ----------
    config
        Service configuration. Read from the environment when ``None``.

    Returns
    -------
    ReportService
        Service ready to accept report requests.

    """
    config = config or ReportingConfig.from_env()
    report_base = LocalLocation(config.report_base_path)
    meta_base = LocalLocation(config.meta_base_path)
    report_base.mkdirs()
    meta_base.mkdirs()

    if config.seed_meta:
        created = populate_meta_files(meta_base)
        log_info(
            logger,
            "Seeded %d run-meta partitions under %s",
            len(created),
            meta_base.to_uri(),
        )

    store = JobStore(report_base)
    return ReportService(
        store,
        build_dispatcher(config, store, meta_base),
        max_limit=config.max_limit,
        event_logger=JobEventLogger(),
    )
