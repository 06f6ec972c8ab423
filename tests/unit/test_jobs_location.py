"""Unit tests for the filesystem location adapter."""

from __future__ import annotations

import threading
import typing as typ

from runreport.jobs.location import LocalLocation, Location

if typ.TYPE_CHECKING:
    from pathlib import Path


class TestCreateNew:
    """Tests for create-once publication."""

    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        """The first call publishes the content."""
        marker = LocalLocation(tmp_path / "job" / "_FAILURE")
        assert marker.create_new(b"boom")
        assert marker.read_bytes() == b"boom"

    def test_second_call_keeps_first_content(self, tmp_path: Path) -> None:
        """An existing file is never replaced."""
        marker = LocalLocation(tmp_path / "COUNT")
        assert marker.create_new(b"5")
        assert not marker.create_new(b"6")
        assert marker.read_bytes() == b"5"

    def test_leaves_no_temporary_files(self, tmp_path: Path) -> None:
        """Temporary files are removed whether or not the link succeeds."""
        marker = LocalLocation(tmp_path / "_SUCCESS")
        marker.create_new()
        marker.create_new()
        assert [p.name for p in tmp_path.iterdir()] == ["_SUCCESS"]

    def test_concurrent_writers_have_one_winner(self, tmp_path: Path) -> None:
        """Exactly one of many racing writers succeeds."""
        marker = LocalLocation(tmp_path / "_START")
        results: list[bool] = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def write(index: int) -> None:
            barrier.wait()
            created = marker.create_new(str(index).encode())
            with lock:
                results.append(created)

        threads = [threading.Thread(target=write, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1, f"expected one winner, got {results}"


def test_listing_and_lines(tmp_path: Path) -> None:
    """Children list sorted; appended lines read back in order."""
    base = LocalLocation(tmp_path)
    assert isinstance(base, Location)
    assert base.append("missing").list() == []

    rows = base.append("reports").append("part-00000.json")
    rows.append_lines(['{"a":1}', '{"a":2}'])
    rows.append_lines(['{"a":3}'])
    base.append("b").mkdirs()

    assert [child.name for child in base.list()] == ["b", "reports"]
    assert list(rows.read_lines()) == ['{"a":1}', '{"a":2}', '{"a":3}']
    assert rows.to_uri().startswith("file://")
