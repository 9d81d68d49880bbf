"""Structure binder that builds typed dataclass trees from dotenv pairs.

Responsibilities:
- Compute the exact set of environment keys a target dataclass needs (no I/O).
- Drive one scan of the pair stream, capturing only required keys.
- Build the target bottom-up, coercing captured strings and applying fallbacks.

Key types:
- `EnvBinder`: staged binder with options and optional run logging.
- `load_env_as`: module-level convenience wrapper around `EnvBinder.load`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import TextIO, TypeVar

from loguru import logger

from .coercion import coerce_value
from .config import BindOptions
from .diagnostics import WarningSink
from .dotenv import iterate_env_pairs, iterate_stream_pairs
from .errors import FieldBindingError, MissingRequiredKeyError, ShapeError
from .keys import derive_key
from .shape import NO_DEFAULT, FieldSpec, describe
from .telemetry.logger import RunLogger

_Target = TypeVar("_Target")
_StageResult = TypeVar("_StageResult")


def collect_keys(
    target: type,
    prefix: str = "",
    visited: frozenset[type] = frozenset(),
    required: set[str] | None = None,
) -> set[str]:
    """Return the environment keys of every leaf field reachable from `target`.

    Nested structure fields contribute a prefix and never a key of their own.

    Raises:
        ShapeError: If a type is not describable or nests itself, directly or transitively.
    """

    keys = required if required is not None else set()
    if target in visited:
        raise ShapeError(
            detail=f"Cyclic dependency: `{target.__qualname__}` is nested inside itself.",
        )
    shape = describe(target)
    for field in shape.fields:
        info = derive_key(field, prefix)
        if field.is_nested:
            collect_keys(field.nested_type, info.nested_prefix, visited | {target}, keys)
        else:
            keys.add(info.key)
    return keys


def capture_values(
    pairs: Iterable[tuple[str, str]],
    required_keys: set[str],
    options: BindOptions,
) -> dict[str, str]:
    """Consume `pairs` once and keep the last value of every required key."""

    captured: dict[str, str] = {}
    for key, value in pairs:
        if key not in required_keys:
            continue
        if options.keeps_value(value):
            captured[key] = value
        else:
            captured.pop(key, None)
    return captured


def _fallback_value(field: FieldSpec, key: str) -> object:
    """Resolve the value of a leaf field whose key was not captured."""

    if field.type_tag is not None and field.type_tag.optional:
        return None
    if field.default is not NO_DEFAULT:
        return field.default
    if field.default_factory is not NO_DEFAULT:
        return field.default_factory()
    raise MissingRequiredKeyError(key)


def build(
    target: type[_Target],
    captured: Mapping[str, str],
    options: BindOptions,
    prefix: str = "",
) -> _Target:
    """Construct `target` from captured values, nested structures first.

    Raises:
        MissingRequiredKeyError: If a key is absent and the field has no fallback.
        FieldBindingError: If a captured value cannot be coerced.
    """

    shape = describe(target)
    arguments: dict[str, object] = {}
    for field in shape.fields:
        info = derive_key(field, prefix)
        if field.is_nested:
            arguments[field.declared_name] = build(
                field.nested_type, captured, options, info.nested_prefix
            )
            continue

        raw_value = captured.get(info.key)
        if raw_value is None:
            arguments[field.declared_name] = _fallback_value(field, info.key)
            continue
        try:
            arguments[field.declared_name] = coerce_value(raw_value, field.type_tag, options)
        except Exception as exc:
            raise FieldBindingError(key=info.key, raw_value=raw_value, cause=exc) from exc

    try:
        return target(**arguments)
    except TypeError as exc:
        raise ShapeError(
            detail=f"Failed to construct `{target.__qualname__}`: {exc}",
        ) from exc


class EnvBinder:
    """Bind dotenv sources onto dataclass targets in named stages.

    Each call runs `shape` (dry traversal), `scan` (single pass over the pairs),
    and `bind` (typed construction). The shape stage completes before any I/O.
    """

    def __init__(
        self,
        options: BindOptions | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize the binder with validated options and an optional run logger."""

        self._options = options if options is not None else BindOptions()
        self._options.validate()
        self._run_logger = run_logger

    @property
    def options(self) -> BindOptions:
        """Return the options applied by this binder."""

        return self._options

    def load(
        self,
        path: str | Path,
        target: type[_Target],
        on_warning: WarningSink | None = None,
    ) -> _Target:
        """Build `target` from the dotenv file at `path`.

        Raises:
            ShapeError: If `target` cannot be described (before the file is touched).
            EnvFileError: If the file is missing, not a file, unreadable, or empty.
            MissingRequiredKeyError: If a required key is absent.
            FieldBindingError: If a captured value cannot be coerced.
        """

        return self._bind(target, lambda: iterate_env_pairs(path, on_warning))

    def load_stream(
        self,
        stream: TextIO,
        target: type[_Target],
        on_warning: WarningSink | None = None,
    ) -> _Target:
        """Build `target` from an open dotenv text stream, closing it afterwards."""

        return self._bind(target, lambda: iterate_stream_pairs(stream, on_warning))

    def bind_mapping(self, mapping: Mapping[str, str], target: type[_Target]) -> _Target:
        """Build `target` from an in-memory mapping such as `os.environ`."""

        return self._bind(target, lambda: mapping.items())

    def _bind(
        self,
        target: type[_Target],
        open_pairs: Callable[[], Iterable[tuple[str, str]]],
    ) -> _Target:
        """Run the shape, scan, and bind stages for one target."""

        required_keys = self._run_stage("shape", lambda: collect_keys(target))
        logger.debug(
            "Collected {count} required key(s) for {target}",
            count=len(required_keys),
            target=target.__qualname__,
        )
        captured = self._run_stage(
            "scan",
            lambda: capture_values(open_pairs(), required_keys, self._options),
        )
        return self._run_stage("bind", lambda: build(target, captured, self._options))

    def _run_stage(self, stage_name: str, action: Callable[[], _StageResult]) -> _StageResult:
        """Run one named stage and emit start/complete/failure events."""

        if self._run_logger is not None:
            self._run_logger.log_stage_start(stage_name)
        try:
            result = action()
        except Exception as exc:
            if self._run_logger is not None:
                self._run_logger.log_stage_failure(stage_name, type(exc).__name__)
            raise
        if self._run_logger is not None:
            self._run_logger.log_stage_complete(stage_name)
        return result


def load_env_as(
    path: str | Path,
    target: type[_Target],
    on_warning: WarningSink | None = None,
    options: BindOptions | None = None,
) -> _Target:
    """Build a `target` dataclass instance from the dotenv file at `path`."""

    return EnvBinder(options=options).load(path, target, on_warning)
