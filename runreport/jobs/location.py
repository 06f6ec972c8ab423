r"""Hierarchical storage locations backing the job store.

:class:`Location` is the port through which report jobs touch durable
storage; :class:`LocalLocation` is the filesystem adapter. The protocol is
``runtime_checkable`` so stores can assert their backend in tests.

:meth:`Location.create_new` is the one primitive the job state machine
relies on: it publishes a complete artifact atomically and refuses to
replace an existing one. The local adapter writes content to a private
temporary file and hard-links it into place, so readers observe either no
artifact or the full artifact.

Usage
-----
>>> from pathlib import Path
>>> base = LocalLocation(Path("/var/lib/runreport/reports"))
>>> marker = base.append("0f9d5a2e-...").append("_SUCCESS")
>>> marker.create_new()
True

"""

from __future__ import annotations

import contextlib
import os
import tempfile
import typing as typ
from pathlib import Path

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@typ.runtime_checkable
class Location(typ.Protocol):
    """A file or directory in hierarchical durable storage."""

    @property
    def name(self) -> str:
        """Return the last path segment."""
        ...

    def append(self, child: str) -> Location:
        """Return the location of *child* beneath this one."""
        ...

    def exists(self) -> bool:
        """Return whether anything exists at this location."""
        ...

    def is_directory(self) -> bool:
        """Return whether this location is a directory."""
        ...

    def list(self) -> list[Location]:
        """Return the children of this directory, sorted by name."""
        ...

    def mkdirs(self) -> None:
        """Create this directory and any missing parents."""
        ...

    def create_new(self, content: bytes = b"") -> bool:
        """Atomically create this file with *content*.

        Returns ``False`` without touching storage when the file exists.
        """
        ...

    def read_bytes(self) -> bytes:
        """Return the full content of this file."""
        ...

    def read_lines(self) -> cabc.Iterator[str]:
        """Yield the lines of this file without line terminators."""
        ...

    def append_lines(self, lines: cabc.Iterable[str]) -> None:
        """Append *lines*, each terminated by a newline, to this file."""
        ...

    def to_uri(self) -> str:
        """Return a URI identifying this location."""
        ...


class LocalLocation:
    """Filesystem adapter for the :class:`Location` protocol.

    Parameters
    ----------
    path
        Filesystem path this location addresses.

    """

    __slots__ = ("_path",)

    def __init__(self, path: Path | str) -> None:
        """Bind the location to *path*."""
        self._path = Path(path)

    def __repr__(self) -> str:
        """Return a debugging representation including the path."""
        return f"LocalLocation({str(self._path)!r})"

    def __eq__(self, other: object) -> bool:
        """Compare locations by path."""
        if not isinstance(other, LocalLocation):
            return NotImplemented
        return self._path == other._path

    def __hash__(self) -> int:
        """Hash by path."""
        return hash(self._path)

    @property
    def path(self) -> Path:
        """Return the underlying filesystem path."""
        return self._path

    @property
    def name(self) -> str:
        """Return the last path segment."""
        return self._path.name

    def append(self, child: str) -> LocalLocation:
        """Return the location of *child* beneath this one."""
        return LocalLocation(self._path / child)

    def exists(self) -> bool:
        """Return whether the path exists."""
        return self._path.exists()

    def is_directory(self) -> bool:
        """Return whether the path is a directory."""
        return self._path.is_dir()

    def list(self) -> list[Location]:
        """Return the children of this directory, sorted by name.

        A missing directory lists as empty.
        """
        if not self._path.is_dir():
            return []
        return [LocalLocation(child) for child in sorted(self._path.iterdir())]

    def mkdirs(self) -> None:
        """Create this directory and any missing parents."""
        self._path.mkdir(parents=True, exist_ok=True)

    def create_new(self, content: bytes = b"") -> bool:
        """Atomically publish this file with *content* unless it exists."""
        if self._path.exists():
            return False
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            try:
                os.link(tmp_name, self._path)
            except FileExistsError:
                return False
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
        return True

    def read_bytes(self) -> bytes:
        """Return the full content of this file."""
        return self._path.read_bytes()

    def read_lines(self) -> cabc.Iterator[str]:
        """Yield the lines of this file without line terminators."""
        with self._path.open(encoding="utf-8") as handle:
            for line in handle:
                yield line.rstrip("\n")

    def append_lines(self, lines: cabc.Iterable[str]) -> None:
        """Append *lines* to this file, creating it if needed."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as handle:
            for line in lines:
                handle.write(line)
                handle.write("\n")

    def to_uri(self) -> str:
        """Return a ``file://`` URI for the absolute path."""
        return self._path.resolve().as_uri()


__all__ = ["LocalLocation", "Location"]
