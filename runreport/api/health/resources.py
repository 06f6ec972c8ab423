"""Liveness and readiness probes.

``/health`` answers as long as the process serves requests. ``/ready``
additionally checks that the job store's base directory is present, since
neither submission nor retrieval can work without it.
"""

from __future__ import annotations

import asyncio
import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from runreport.jobs.location import Location

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe over the job store base directory.

    Parameters
    ----------
    report_base
        Base location of the job store. ``None`` reports ready without a
        check, for an app serving only the probes.

    """

    def __init__(self, report_base: Location | None = None) -> None:
        """Configure the probe with the location it checks."""
        self._report_base = report_base

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests.

        Responds 503 with ``{"status": "unavailable"}`` while the base
        directory is missing.
        """
        if self._report_base is not None and not await asyncio.to_thread(
            self._report_base.is_directory
        ):
            resp.media = {
                "status": "unavailable",
                "reason": f"{self._report_base.to_uri()} is not a directory",
            }
            resp.status = HTTPStatus.SERVICE_UNAVAILABLE
            return
        resp.media = {"status": "ready"}
        resp.status = HTTPStatus.OK
