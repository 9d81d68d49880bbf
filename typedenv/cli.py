"""Command-line interface for typedenv.

Responsibilities:
- Expose user-facing commands to inspect and bind dotenv files.
- Convert CLI arguments into `BindOptions` and report failures concisely.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import importlib
from pathlib import Path
import sys
from typing import Annotated

from loguru import logger
import typer

from .binder import EnvBinder
from .cli_rendering import (
    echo_bound_instance,
    echo_env_map,
    echo_warnings,
    exit_with_command_error,
)
from .config import BindOptions, BooleanProfile, ConfigLoader, EmptyValuePolicy, WarningMode
from .diagnostics import WarningCollector, log_warning
from .dotenv import iterate_env_pairs, load_env_map
from .errors import ShapeError
from .telemetry.logger import RunLogger

app = typer.Typer(
    name="typedenv",
    no_args_is_help=True,
    help="Inspect dotenv files and bind them onto dataclasses.",
)


@app.callback()
def configure(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Print debug logs on stderr."),
    ] = False,
) -> None:
    """Configure package logging for the invoked command."""

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING", format="{level}: {message}")
    logger.enable("typedenv")


def _resolve_target(target_ref: str) -> type:
    """Import a `module:Class` reference and return the class."""

    module_name, separator, attribute_path = target_ref.partition(":")
    if not separator or not module_name or not attribute_path:
        raise ShapeError(
            detail=f"Invalid target reference `{target_ref}`.",
            hint="Use the `package.module:ClassName` form.",
        )
    try:
        resolved: object = importlib.import_module(module_name)
    except ImportError as exc:
        raise ShapeError(
            detail=f"Cannot import module `{module_name}`: {exc}",
            hint="Run from a directory where the module is importable.",
        ) from exc
    for attribute in attribute_path.split("."):
        try:
            resolved = getattr(resolved, attribute)
        except AttributeError as exc:
            raise ShapeError(
                detail=f"Module `{module_name}` has no attribute `{attribute_path}`.",
            ) from exc
    if not isinstance(resolved, type):
        raise ShapeError(detail=f"`{target_ref}` does not name a class.")
    return resolved


def _resolve_bind_options(
    strict_booleans: bool | None, empty_as_absent: bool | None
) -> BindOptions:
    """Resolve bind options with CLI flags taking precedence over `TYPEDENV_*` variables."""

    env_options = ConfigLoader.from_env()
    boolean_profile = env_options.boolean_profile
    if strict_booleans is not None:
        boolean_profile = BooleanProfile.STRICT if strict_booleans else BooleanProfile.SOFT
    empty_values = env_options.empty_values
    if empty_as_absent is not None:
        empty_values = EmptyValuePolicy.ABSENT if empty_as_absent else EmptyValuePolicy.PRESENT
    return BindOptions(boolean_profile=boolean_profile, empty_values=empty_values)


@app.command("check")
def check_command(
    path: Annotated[Path, typer.Argument(help="Path to the .env file.")],
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Fail with exit code 1 when any line is malformed."),
    ] = False,
) -> None:
    """Parse a .env file and report malformed lines."""

    collector = WarningCollector()
    try:
        pair_count = sum(1 for _ in iterate_env_pairs(path, collector))
    except Exception as exc:
        exit_with_command_error("check", exc)

    echo_warnings(collector.messages)
    typer.echo(f"Pairs: {pair_count}")
    typer.echo(f"Warnings: {len(collector.messages)}")
    if strict:
        try:
            collector.raise_if_any()
        except Exception as exc:
            exit_with_command_error("check", exc)


@app.command("show")
def show_command(
    path: Annotated[Path, typer.Argument(help="Path to the .env file.")],
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the parsed map as a JSON object."),
    ] = False,
    warnings: Annotated[
        WarningMode,
        typer.Option("--warnings", help="How to treat malformed lines."),
    ] = WarningMode.LOG,
) -> None:
    """Print every parsed pair; the last duplicate key wins."""

    collector = WarningCollector()
    try:
        if warnings is WarningMode.IGNORE:
            values = load_env_map(path)
        elif warnings is WarningMode.LOG:
            values = load_env_map(path, log_warning)
        else:
            values = load_env_map(path, collector)
            collector.raise_if_any()
    except Exception as exc:
        exit_with_command_error("show", exc)

    echo_env_map(values, as_json)


@app.command("get")
def get_command(
    path: Annotated[Path, typer.Argument(help="Path to the .env file.")],
    key: Annotated[str, typer.Argument(help="Key to print.")],
    default: Annotated[
        str | None,
        typer.Option("--default", help="Value to print when the key is missing."),
    ] = None,
) -> None:
    """Print the value of one key."""

    try:
        values = load_env_map(path, log_warning)
    except Exception as exc:
        exit_with_command_error("get", exc)

    if key in values:
        typer.echo(values[key])
        return
    if default is not None:
        typer.echo(default)
        return
    typer.secho(f"get failed: key `{key}` not found in `{path}`.", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.command("bind")
def bind_command(
    path: Annotated[Path, typer.Argument(help="Path to the .env file.")],
    target: Annotated[
        str,
        typer.Argument(help="Dataclass to build, as `package.module:ClassName`."),
    ],
    strict_booleans: Annotated[
        bool | None,
        typer.Option(
            "--strict-booleans/--soft-booleans",
            help="Accept only `true`/`false` (strict) or the soft vocabulary.",
        ),
    ] = None,
    empty_as_absent: Annotated[
        bool | None,
        typer.Option(
            "--empty-as-absent/--empty-as-present",
            help="Treat `KEY=` as missing instead of an empty string.",
        ),
    ] = None,
    show_stages: Annotated[
        bool,
        typer.Option("--show-stages", help="Print stage events on stdout."),
    ] = False,
) -> None:
    """Bind a .env file onto a dataclass and print the result as JSON."""

    run_logger = RunLogger(sink=sys.stdout) if show_stages else None
    try:
        options = _resolve_bind_options(strict_booleans, empty_as_absent)
        target_type = _resolve_target(target)
        binder = EnvBinder(options=options, run_logger=run_logger)
        instance = binder.load(path, target_type, log_warning)
    except Exception as exc:
        exit_with_command_error("bind", exc)
    finally:
        if run_logger is not None:
            run_logger.close()

    echo_bound_instance(instance)


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
