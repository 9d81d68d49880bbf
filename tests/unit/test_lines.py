"""Unit tests for dotenv line sources."""

from __future__ import annotations

import io
import os
from pathlib import Path

import pytest

from typedenv.errors import EnvFileError
from typedenv.io.lines import iterate_lines, iterate_stream_lines


def test_iterate_lines_yields_every_line_without_terminators(tmp_path: Path) -> None:
    """All lines, including blank and comment lines, are produced in order."""

    path = tmp_path / "test.env"
    path.write_text("# header\nA=1\n\nB=2", encoding="utf-8")

    assert list(iterate_lines(path)) == ["# header", "A=1", "", "B=2"]


def test_iterate_lines_rejects_missing_file_eagerly(tmp_path: Path) -> None:
    """A missing file fails at call time, before any iteration."""

    with pytest.raises(EnvFileError, match="File not found"):
        iterate_lines(tmp_path / "missing.env")


def test_iterate_lines_rejects_directory(tmp_path: Path) -> None:
    """A directory is not a usable line source."""

    with pytest.raises(EnvFileError, match="Not a file"):
        iterate_lines(tmp_path)


def test_iterate_lines_rejects_empty_file(tmp_path: Path) -> None:
    """Zero-length files are rejected."""

    path = tmp_path / "empty.env"
    path.write_text("", encoding="utf-8")

    with pytest.raises(EnvFileError, match="File is empty"):
        iterate_lines(path)


@pytest.mark.skipif(
    not hasattr(os, "geteuid") or os.geteuid() == 0,
    reason="permission bits are not enforced for root or on this platform",
)
def test_iterate_lines_rejects_unreadable_file(tmp_path: Path) -> None:
    """Files without read permission are rejected."""

    path = tmp_path / "locked.env"
    path.write_text("A=1\n", encoding="utf-8")
    path.chmod(0o000)
    try:
        with pytest.raises(EnvFileError, match="not readable"):
            iterate_lines(path)
    finally:
        path.chmod(0o600)


def test_env_file_error_is_an_os_error(tmp_path: Path) -> None:
    """Callers catching `OSError` also catch source failures."""

    with pytest.raises(OSError) as exc_info:
        iterate_lines(tmp_path / "missing.env")

    assert isinstance(exc_info.value, EnvFileError)
    assert exc_info.value.stage == "read"
    assert exc_info.value.path == tmp_path / "missing.env"


def test_iterate_stream_lines_closes_stream_when_exhausted() -> None:
    """The stream is released once iteration completes."""

    stream = io.StringIO("A=1\r\nB=2\n")

    assert list(iterate_stream_lines(stream)) == ["A=1", "B=2"]
    assert stream.closed


def test_iterate_stream_lines_closes_stream_when_abandoned() -> None:
    """Closing the generator early also releases the stream."""

    stream = io.StringIO("A=1\nB=2\n")
    lines = iterate_stream_lines(stream)

    assert next(lines) == "A=1"
    lines.close()

    assert stream.closed


def test_iterate_lines_replaces_undecodable_bytes(tmp_path: Path) -> None:
    """Invalid UTF-8 becomes U+FFFD instead of raising during iteration."""

    path = tmp_path / "latin1.env"
    path.write_bytes(b"KEY=\xff\xfe\nNEXT=ok\n")

    assert list(iterate_lines(path)) == ["KEY=\ufffd\ufffd", "NEXT=ok"]
