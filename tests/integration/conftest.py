"""Integration-test fixtures for CLI invocations."""

from __future__ import annotations

from collections.abc import Iterator

from loguru import logger
import pytest


@pytest.fixture(autouse=True)
def _reset_loguru_handlers(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop handlers bound to CliRunner streams and re-silence the package after each test."""

    monkeypatch.delenv("TYPEDENV_BOOLEAN_PROFILE", raising=False)
    monkeypatch.delenv("TYPEDENV_EMPTY_VALUES", raising=False)
    yield
    logger.remove()
    logger.disable("typedenv")
