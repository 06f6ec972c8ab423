"""runreport HTTP API layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application serving report submission, status, and retrieval.

Usage
-----
Create and run the application::

    from runreport.api import create_app

    app = create_app()              # probes only
    app = create_app(dependencies)  # full report API

Public API
----------
create_app
    Application factory registering the probes and, when a report service
    is provided, the ``/reports`` routes.
"""

from runreport.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
