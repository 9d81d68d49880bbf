"""Shared pytest fixtures for the full typedenv test suite."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from tests.fixture_paths import APP_ENV_CONTENT


@pytest.fixture
def write_env(tmp_path: Path) -> Callable[[str], Path]:
    """Provide a helper that writes `.env` content to a fresh temporary file."""

    def _write(content: str, name: str = ".env") -> Path:
        """Write UTF-8 content and return the file path."""

        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def app_env_path(write_env: Callable[[str], Path]) -> Path:
    """Provide the canonical application `.env` file used by binding tests."""

    return write_env(APP_ENV_CONTENT, "app.env")
