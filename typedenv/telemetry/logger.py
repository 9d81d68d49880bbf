"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic stage-level logs for binder runs.
- Route every line through the package `loguru` logger so hosts control sinks.
"""

from __future__ import annotations

from typing import TextIO

from loguru import logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


def format_stage_line(level: str, event: str, stage: str, **context: object) -> str:
    """Render one `[phase]` log line without emitting it."""

    return f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"


class RunLogger:
    """Emit deterministic stage logs for binder activity."""

    def __init__(self, sink: TextIO | None = None) -> None:
        """Attach an optional dedicated sink that receives only run-logger lines."""

        # The package logger is disabled on import; run logs are always opted into.
        logger.enable("typedenv.telemetry")
        self._handler_id: int | None = None
        if sink is not None:
            self._handler_id = logger.add(
                sink,
                format="{message}",
                level="DEBUG",
                colorize=False,
                filter=lambda record: record["extra"].get("run_logger") is True,
            )
        self._logger = logger.bind(run_logger=True)

    def close(self) -> None:
        """Detach the dedicated sink, when one was attached."""

        if self._handler_id is not None:
            logger.remove(self._handler_id)
            self._handler_id = None

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        self._logger.log(level, format_stage_line(level, event, stage, **context))

    def log_stage_start(self, stage: str, **context: object) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage, **context)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type)
