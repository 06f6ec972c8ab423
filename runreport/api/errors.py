"""Falcon error handlers translating report domain errors into HTTP.

=============================  ======  ==========================
Exception                      Status  Title
=============================  ======  ==========================
``RequestDecodeError``         400     ``Invalid input``
``RequestValidationError``     400     ``Invalid input``
``InvalidPaginationError``     400     ``Invalid input``
``JobNotFoundError``           404     ``Report not found``
``JobNotCompletedError``       400     ``Report not ready``
``ReportOutputMissingError``   500     ``Report output missing``
=============================  ======  ==========================

Usage
-----
Register every handler on the Falcon app::

    from runreport.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from runreport.jobs.errors import (
    InvalidPaginationError,
    JobNotCompletedError,
    JobNotFoundError,
    ReportOutputMissingError,
)
from runreport.logging import get_logger, log_exception
from runreport.request.decoding import RequestDecodeError
from runreport.request.validation import RequestValidationError

if typ.TYPE_CHECKING:
    import falcon.asgi
    from falcon.asgi import Request, Response

__all__ = [
    "handle_invalid_pagination",
    "handle_invalid_request",
    "handle_output_missing",
    "handle_report_not_found",
    "handle_report_not_ready",
    "register_error_handlers",
]

logger = get_logger(__name__)


async def handle_invalid_request(
    _req: Request,
    resp: Response,
    ex: RequestDecodeError | RequestValidationError,
    _params: dict[str, typ.Any],
) -> None:
    """Map a malformed or invalid report request to HTTP 400.

    Validation failures also list every issue under ``issues``.
    """
    resp.status = falcon.HTTP_400
    media: dict[str, typ.Any] = {
        "title": "Invalid input",
        "description": str(ex),
    }
    if isinstance(ex, RequestValidationError):
        media["issues"] = list(ex.issues)
    resp.media = media


async def handle_invalid_pagination(
    _req: Request,
    resp: Response,
    ex: InvalidPaginationError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidPaginationError`` to HTTP 400 naming the parameter."""
    resp.status = falcon.HTTP_400
    resp.media = {
        "title": "Invalid input",
        "description": ex.reason,
        "field": ex.field,
    }


async def handle_report_not_found(
    _req: Request,
    resp: Response,
    ex: JobNotFoundError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``JobNotFoundError`` to HTTP 404."""
    resp.status = falcon.HTTP_404
    resp.media = {
        "title": "Report not found",
        "description": str(ex),
    }


async def handle_report_not_ready(
    _req: Request,
    resp: Response,
    ex: JobNotCompletedError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``JobNotCompletedError`` to HTTP 400 carrying the job status."""
    resp.status = falcon.HTTP_400
    resp.media = {
        "title": "Report not ready",
        "description": str(ex),
        "status": str(ex.status),
    }


async def handle_output_missing(
    _req: Request,
    resp: Response,
    ex: ReportOutputMissingError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``ReportOutputMissingError`` to HTTP 500.

    A completed job without its outputs means the store is inconsistent,
    so the error is logged as well as returned.
    """
    log_exception(logger, "Report %s is missing its output", ex.job_id, exc=ex)
    resp.status = falcon.HTTP_500
    resp.media = {
        "title": "Report output missing",
        "description": str(ex),
    }


def register_error_handlers(app: falcon.asgi.App) -> None:
    """Register every report error handler on *app*."""
    app.add_error_handler(RequestDecodeError, handle_invalid_request)
    app.add_error_handler(RequestValidationError, handle_invalid_request)
    app.add_error_handler(InvalidPaginationError, handle_invalid_pagination)
    app.add_error_handler(JobNotFoundError, handle_report_not_found)
    app.add_error_handler(JobNotCompletedError, handle_report_not_ready)
    app.add_error_handler(ReportOutputMissingError, handle_output_missing)
