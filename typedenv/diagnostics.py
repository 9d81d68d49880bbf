"""Warning sinks for recoverable dotenv parse anomalies.

Responsibilities:
- Define the callable warning channel used by the line parser.
- Provide a collecting sink that callers can escalate into a failure.
- Provide a logging sink backed by the package `loguru` logger.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from loguru import logger

from .errors import ParseWarningsError

WarningSink = Callable[[str], None]


def ignore_warning(message: str) -> None:
    """Drop a warning message."""

    _ = message


def log_warning(message: str) -> None:
    """Forward a warning message to the package logger."""

    logger.warning(message)


@dataclass(slots=True)
class WarningCollector:
    """Callable warning sink that keeps every message in arrival order."""

    messages: list[str] = field(default_factory=list)

    def __call__(self, message: str) -> None:
        """Record one warning message."""

        self.messages.append(message)

    def raise_if_any(self) -> None:
        """Escalate collected warnings into a `ParseWarningsError`."""

        if self.messages:
            raise ParseWarningsError(self.messages)
