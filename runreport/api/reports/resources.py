"""Falcon resources for report submission, status, and row retrieval.

Routes
------
``POST /reports``
    Submit a report request; responds ``{"id": ...}``.
``GET /reports``
    Page through job statuses in creation order.
``GET /reports/{report_id}``
    Status, creation time, and stored request of one job.
``GET /reports/{report_id}/runs``
    Page through the rows of a completed job.

Store access is blocking filesystem I/O, so every service call runs in a
worker thread.
"""

from __future__ import annotations

import asyncio
import typing as typ

import falcon
import msgspec

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from runreport.service import ReportService

__all__ = ["ReportResource", "ReportRunsResource", "ReportsResource"]


def _page_params(req: Request, service: ReportService) -> tuple[int, int]:
    """Return ``(offset, limit)`` from the query string.

    ``offset`` defaults to 0 and ``limit`` to the service's maximum. Range
    checks are left to the service.
    """
    offset = req.get_param_as_int("offset", default=0)
    limit = req.get_param_as_int("limit", default=service.max_limit)
    return (typ.cast("int", offset), typ.cast("int", limit))


class ReportsResource:
    """Collection resource: submit jobs and list their statuses."""

    def __init__(self, service: ReportService) -> None:
        """Configure the resource with the report service."""
        self._service = service

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle ``POST /reports``.

        The raw body is handed to the service so the stored request is
        byte-for-byte what the client sent.
        """
        body = await req.stream.read()
        job_id = await asyncio.to_thread(self._service.submit, body)
        resp.media = {"id": job_id}
        resp.status = falcon.HTTP_200

    async def on_get(self, req: Request, resp: Response) -> None:
        """Handle ``GET /reports?offset=&limit=``."""
        offset, limit = _page_params(req, self._service)
        page = await asyncio.to_thread(
            self._service.list_job_statuses, offset, limit
        )
        resp.media = msgspec.to_builtins(page)
        resp.status = falcon.HTTP_200


class ReportResource:
    """Item resource: status of one job."""

    def __init__(self, service: ReportService) -> None:
        """Configure the resource with the report service."""
        self._service = service

    async def on_get(self, _req: Request, resp: Response, *, report_id: str) -> None:
        """Handle ``GET /reports/{report_id}``."""
        info = await asyncio.to_thread(self._service.get_job_status, report_id)
        resp.media = msgspec.to_builtins(info)
        resp.status = falcon.HTTP_200


class ReportRunsResource:
    """Rows of a completed job."""

    def __init__(self, service: ReportService) -> None:
        """Configure the resource with the report service."""
        self._service = service

    async def on_get(self, req: Request, resp: Response, *, report_id: str) -> None:
        """Handle ``GET /reports/{report_id}/runs?offset=&limit=``.

        Parameters
        ----------
        req
            Falcon request carrying the pagination query parameters.
        resp
            Falcon response receiving the rows page.
        report_id
            Job id from the URL path.

        """
        offset, limit = _page_params(req, self._service)
        page = await asyncio.to_thread(
            self._service.get_job_rows, report_id, offset, limit
        )
        resp.media = msgspec.to_builtins(page)
        resp.status = falcon.HTTP_200
