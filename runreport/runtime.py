"""runreport runtime entrypoint.

Provides the ``runreport.runtime:create_app`` factory served by Granian.
Service settings come from :meth:`runreport.config.ReportingConfig.from_env`;
the server itself reads:

- ``RUNREPORT_HOST``: Bind address (default ``0.0.0.0``)
- ``RUNREPORT_PORT``: Listen port (default ``8080``)
- ``RUNREPORT_LOG_LEVEL``: Log level (default ``INFO``)

Run the service directly with ``python -m runreport.runtime``.
"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

from runreport.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["ServerSettings", "create_app", "main"]

logger = get_logger(__name__)

_PORT_RANGE = range(1, 65536)


def _parse_port(raw: str) -> int:
    """Return *raw* as a TCP port.

    Raises
    ------
    SystemExit
        With status 1 when *raw* is not an integer in 1-65535.

    """
    port = int(raw) if raw.strip().isdigit() else None
    if port is None or port not in _PORT_RANGE:
        log_error(
            logger,
            "Invalid RUNREPORT_PORT value %r: expected an integer in %d-%d",
            raw,
            _PORT_RANGE.start,
            _PORT_RANGE.stop - 1,
        )
        raise SystemExit(1)
    return port


@dc.dataclass(frozen=True, slots=True)
class ServerSettings:
    """Bind address, port, and log level of the HTTP server."""

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> ServerSettings:
        """Read the ``RUNREPORT_HOST``, ``_PORT`` and ``_LOG_LEVEL`` variables.

        Raises
        ------
        SystemExit
            If ``RUNREPORT_PORT`` is set to an invalid port.

        """
        port_raw = os.environ.get("RUNREPORT_PORT")
        return cls(
            host=os.environ.get("RUNREPORT_HOST", "0.0.0.0"),  # noqa: S104
            port=8080 if port_raw is None else _parse_port(port_raw),
            log_level=os.environ.get("RUNREPORT_LOG_LEVEL", "INFO"),
        )


def create_app() -> falcon.asgi.App:
    """Build the full report API from the environment.

    Returns
    -------
    falcon.asgi.App
        Application serving the probes and the ``/reports`` routes.

    """
    from runreport.api.app import AppDependencies
    from runreport.api.app import create_app as _create_api_app
    from runreport.api.factory import build_report_service

    return _create_api_app(AppDependencies(report_service=build_report_service()))


def main() -> None:
    """Configure logging and serve :func:`create_app` with Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    settings = ServerSettings.from_env()
    level, invalid = configure_logging(settings.log_level)
    if invalid:
        log_warning(
            logger,
            "Invalid RUNREPORT_LOG_LEVEL %r, falling back to %s",
            settings.log_level,
            level,
        )
    log_info(
        logger,
        "Starting runreport on %s:%d (log_level=%s)",
        settings.host,
        settings.port,
        level,
    )

    Granian(
        "runreport.runtime:create_app",
        address=settings.host,
        port=settings.port,
        interface=Interfaces.ASGI,
        factory=True,
    ).serve()


if __name__ == "__main__":
    main()
