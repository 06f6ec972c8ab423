"""Compute engines that turn run-meta partitions into report rows."""

from runreport.engine.local import LocalComputeEngine
from runreport.engine.protocol import ComputeEngine
from runreport.engine.runs import (
    RunMetaRecord,
    StartInfo,
    populate_meta_files,
    summarize_runs,
)

__all__ = [
    "ComputeEngine",
    "LocalComputeEngine",
    "RunMetaRecord",
    "StartInfo",
    "populate_meta_files",
    "summarize_runs",
]
