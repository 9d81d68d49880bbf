"""Line sources for dotenv files and text streams.

Responsibilities:
- Validate that a dotenv path is readable before any line is produced.
- Yield raw lines lazily while holding the file handle only for the scan.
"""

from __future__ import annotations

from collections.abc import Iterator
import os
from pathlib import Path
from typing import TextIO

from ..errors import EnvFileError


def _require_readable_file(path: Path) -> None:
    """Raise `EnvFileError` when a path cannot serve as a dotenv line source."""

    if not path.exists():
        raise EnvFileError(
            path=path,
            detail=f"File not found: `{path}`.",
            hint="Pass the path of an existing .env file.",
        )
    if not path.is_file():
        raise EnvFileError(path=path, detail=f"Not a file: `{path}`.")
    if not os.access(path, os.R_OK):
        raise EnvFileError(
            path=path,
            detail=f"File is not readable: `{path}`.",
            hint="Check the file permissions.",
        )
    if path.stat().st_size == 0:
        raise EnvFileError(path=path, detail=f"File is empty: `{path}`.")


def iterate_stream_lines(stream: TextIO) -> Iterator[str]:
    """Yield lines of an open text stream without line terminators, then close it."""

    with stream:
        for raw_line in stream:
            yield raw_line.rstrip("\r\n")


def iterate_lines(path: str | Path) -> Iterator[str]:
    """Validate `path` eagerly and return a lazy iterator over its lines.

    The file is opened on the first pull and closed when the iterator is
    exhausted, closed, or garbage collected.

    Raises:
        EnvFileError: If the path is missing, not a regular file, unreadable, or empty.
    """

    source = Path(path)
    _require_readable_file(source)
    return _iterate_file_lines(source)


def _iterate_file_lines(path: Path) -> Iterator[str]:
    """Open `path` as UTF-8 text (undecodable bytes become U+FFFD) and iterate it."""

    try:
        stream = path.open("r", encoding="utf-8", errors="replace", newline="")
    except OSError as exc:
        raise EnvFileError(path=path, detail=f"Failed to open `{path}`: {exc}") from exc
    yield from iterate_stream_lines(stream)
