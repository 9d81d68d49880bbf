"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
parse warnings, and pair listings.
"""

from __future__ import annotations

import dataclasses
from datetime import timedelta
from decimal import Decimal
from enum import Enum
import json
from pathlib import PurePath
from typing import Mapping, NoReturn

import typer

from .errors import TypedEnvError


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, TypedEnvError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_warnings(messages: list[str]) -> None:
    """Print collected parse warnings on stderr."""

    for message in messages:
        typer.secho(f"Warning: {message}", fg=typer.colors.YELLOW, err=True)


def echo_env_map(values: Mapping[str, str], as_json: bool) -> None:
    """Print a parsed map as sorted `KEY=value` lines or as a JSON object."""

    if as_json:
        typer.echo(json.dumps(dict(values), ensure_ascii=False, indent=2, sort_keys=True))
        return
    for key in sorted(values):
        typer.echo(f"{key}={values[key]}")


def _json_default(value: object) -> object:
    """Serialize bound scalar values that `json` does not know."""

    if isinstance(value, Enum):
        return value.name
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (Decimal, PurePath)):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def echo_bound_instance(instance: object) -> None:
    """Print a bound dataclass tree as indented JSON."""

    payload = dataclasses.asdict(instance)
    typer.echo(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True, default=_json_default)
    )
