"""Configuration for the report engine service.

Usage
-----
Create a configuration with defaults:

>>> config = ReportingConfig()
>>> config.max_limit
10000

Or load from environment variables:

>>> import os
>>> os.environ["RUNREPORT_DISPATCH_MODE"] = "dramatiq"
>>> ReportingConfig.from_env().dispatch_mode
<DispatchMode.DRAMATIQ: 'dramatiq'>

"""

from __future__ import annotations

import dataclasses as dc
import enum
import os
from pathlib import Path

DEFAULT_MAX_LIMIT = 10000
DEFAULT_REPORT_BASE_PATH = Path("var/reports")
DEFAULT_META_BASE_PATH = Path("var/runmeta")
_TRUTHY = frozenset({"1", "true", "yes", "on"})


class DispatchMode(enum.StrEnum):
    """How submitted report jobs are executed."""

    THREAD = "thread"
    DRAMATIQ = "dramatiq"


@dc.dataclass(frozen=True, slots=True)
class ReportingConfig:
    """Configuration for report submission, execution, and retrieval.

    Attributes
    ----------
    report_base_path
        Directory holding one subdirectory per report job.
    meta_base_path
        Directory holding one subdirectory of run-meta partitions per
        namespace.
    max_limit
        Largest page size accepted by the listing and row endpoints. Also
        the page size used when a request omits ``limit``.
    dispatch_mode
        Executor for submitted jobs.
    max_workers
        Worker pool size for thread dispatch. ``None`` starts one thread
        per job.
    seed_meta
        Write the sample run-meta corpus into ``meta_base_path`` at
        startup.

    """

    report_base_path: Path = DEFAULT_REPORT_BASE_PATH
    meta_base_path: Path = DEFAULT_META_BASE_PATH
    max_limit: int = DEFAULT_MAX_LIMIT
    dispatch_mode: DispatchMode = DispatchMode.THREAD
    max_workers: int | None = None
    seed_meta: bool = False

    @staticmethod
    def _parse_positive_int(env_var: str, default: int | None) -> int | None:
        """Read a positive integer env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @staticmethod
    def _parse_path(env_var: str, default: Path) -> Path:
        raw = os.environ.get(env_var, "").strip()
        return Path(raw) if raw else default

    @staticmethod
    def _parse_dispatch_mode(env_var: str) -> DispatchMode:
        raw = os.environ.get(env_var, "").strip().lower()
        if not raw:
            return DispatchMode.THREAD
        try:
            return DispatchMode(raw)
        except ValueError as exc:
            choices = ", ".join(mode.value for mode in DispatchMode)
            msg = f"{env_var} must be one of {choices}, got: {raw!r}"
            raise ValueError(msg) from exc

    @classmethod
    def from_env(cls) -> ReportingConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``RUNREPORT_REPORT_BASE_PATH``: job store directory.
        - ``RUNREPORT_META_BASE_PATH``: run-meta corpus directory.
        - ``RUNREPORT_MAX_LIMIT``: largest page size. Must be a positive
          integer.
        - ``RUNREPORT_DISPATCH_MODE``: ``thread`` or ``dramatiq``.
        - ``RUNREPORT_MAX_WORKERS``: thread pool size. Must be a positive
          integer; unset means one thread per job.
        - ``RUNREPORT_SEED_META``: truthy to write the sample corpus.

        Raises
        ------
        ValueError
            If a numeric variable is not a positive integer or the dispatch
            mode is unknown.

        """
        max_limit = cls._parse_positive_int("RUNREPORT_MAX_LIMIT", DEFAULT_MAX_LIMIT)
        seed_raw = os.environ.get("RUNREPORT_SEED_META", "").strip().lower()
        return cls(
            report_base_path=cls._parse_path(
                "RUNREPORT_REPORT_BASE_PATH", DEFAULT_REPORT_BASE_PATH
            ),
            meta_base_path=cls._parse_path(
                "RUNREPORT_META_BASE_PATH", DEFAULT_META_BASE_PATH
            ),
            max_limit=max_limit or DEFAULT_MAX_LIMIT,
            dispatch_mode=cls._parse_dispatch_mode("RUNREPORT_DISPATCH_MODE"),
            max_workers=cls._parse_positive_int("RUNREPORT_MAX_WORKERS", None),
            seed_meta=seed_raw in _TRUTHY,
        )


__all__ = ["DEFAULT_MAX_LIMIT", "DispatchMode", "ReportingConfig"]
