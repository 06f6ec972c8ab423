"""Application factory for the report engine's Falcon ASGI application.

Usage
-----
Create a probe-only app::

    app = create_app()

Create the full app::

    from runreport.api.app import AppDependencies, create_app
    from runreport.api.factory import build_report_service

    app = create_app(AppDependencies(report_service=build_report_service()))

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from runreport.api.errors import register_error_handlers
from runreport.api.health.resources import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from runreport.service import ReportService

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    report_service
        Service behind the ``/reports`` routes. When ``None`` only the
        probes are registered.

    """

    report_service: ReportService | None = None


def create_app(dependencies: AppDependencies | None = None) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. Without a report service only
        ``/health`` and ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    app = falcon.asgi.App()  # type: ignore[no-matching-overload]  # Falcon stubs
    service = dependencies.report_service if dependencies is not None else None

    app.add_route("/health", HealthResource())
    app.add_route(
        "/ready", ReadyResource(service.store.base if service is not None else None)
    )

    if service is not None:
        from runreport.api.reports.resources import (
            ReportResource,
            ReportRunsResource,
            ReportsResource,
        )

        app.add_route("/reports", ReportsResource(service))
        app.add_route("/reports/{report_id}", ReportResource(service))
        app.add_route("/reports/{report_id}/runs", ReportRunsResource(service))

    register_error_handlers(app)
    return app
