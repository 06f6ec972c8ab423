"""Report submission, status, and retrieval resources.

Usage
-----
Import the resources for route registration::

    from runreport.api.reports.resources import (
        ReportResource,
        ReportRunsResource,
        ReportsResource,
    )
"""
