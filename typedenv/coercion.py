"""Scalar coercion of captured strings into declared field types.

Responsibilities:
- Dispatch each `ScalarKind` to exactly one parsing rule.
- Raise `CoercionError` with an actionable message for rejected input.

The dispatch table must cover every `ScalarKind` member; adding a kind means
adding one rule here.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from decimal import Decimal, InvalidOperation
import re
import struct
from urllib.parse import urlsplit

from .config import BindOptions, BooleanProfile
from .errors import CoercionError
from .parsing import parse_soft_boolean, parse_strict_boolean
from .shape import ScalarKind, TypeTag

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
_INTEGER_BOUNDS = {
    ScalarKind.INT8: 8,
    ScalarKind.INT16: 16,
    ScalarKind.INT32: 32,
    ScalarKind.INT64: 64,
}
_ISO_DURATION_PATTERN = re.compile(
    r"""
    (?P<sign>[-+])?P
    (?:(?P<weeks>[-+]?[0-9]+)W)?
    (?:(?P<days>[-+]?[0-9]+)D)?
    (?:T
        (?:(?P<hours>[-+]?[0-9]+)H)?
        (?:(?P<minutes>[-+]?[0-9]+)M)?
        (?:(?P<seconds>[-+]?[0-9]+(?:[.,][0-9]{1,9})?)S)?
    )?
    """,
    re.VERBOSE | re.IGNORECASE,
)
_COMPONENT_DURATION_PATTERN = re.compile(
    r"-?[0-9]+(?:\.[0-9]+)?(?:ms|us|ns|d|h|m|s)(?: [0-9]+(?:\.[0-9]+)?(?:ms|us|ns|d|h|m|s))*"
)
_DURATION_COMPONENT = re.compile(r"([0-9]+(?:\.[0-9]+)?)(ms|us|ns|d|h|m|s)")
_COMPONENT_SECONDS = {
    "d": Decimal(86400),
    "h": Decimal(3600),
    "m": Decimal(60),
    "s": Decimal(1),
    "ms": Decimal("0.001"),
    "us": Decimal("0.000001"),
    "ns": Decimal("0.000000001"),
}
_URI_SCHEME_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9+.-]*")


def _reject_padding(raw: str, label: str) -> None:
    """Reject surrounding whitespace and digit-group underscores Python would accept."""

    if raw != raw.strip() or "_" in raw:
        raise CoercionError(f"`{raw}` is not a valid {label}.")


def _coerce_char(raw: str, tag: TypeTag, options: BindOptions) -> str:
    if len(raw) != 1:
        raise CoercionError(f"Expected exactly one character, got {len(raw)}.")
    return raw


def _coerce_text(raw: str, tag: TypeTag, options: BindOptions) -> str:
    return raw


def _coerce_integer(raw: str, tag: TypeTag, options: BindOptions) -> int:
    """Parse a signed decimal integer and range-check fixed-width kinds."""

    if _INTEGER_PATTERN.fullmatch(raw) is None:
        raise CoercionError(f"`{raw}` is not a valid integer.")
    value = int(raw)
    bits = _INTEGER_BOUNDS.get(tag.kind)
    if bits is not None:
        lower, upper = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        if not lower <= value <= upper:
            raise CoercionError(
                f"`{raw}` is out of range for a {bits}-bit integer ({lower}..{upper})."
            )
    return value


def _coerce_float64(raw: str, tag: TypeTag, options: BindOptions) -> float:
    _reject_padding(raw, "floating point number")
    try:
        return float(raw)
    except ValueError as exc:
        raise CoercionError(f"`{raw}` is not a valid floating point number.") from exc


def _coerce_float32(raw: str, tag: TypeTag, options: BindOptions) -> float:
    """Parse a float and round it to single precision."""

    value = _coerce_float64(raw, tag, options)
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError as exc:
        raise CoercionError(f"`{raw}` is out of range for a single-precision float.") from exc


def _coerce_decimal(raw: str, tag: TypeTag, options: BindOptions) -> Decimal:
    _reject_padding(raw, "decimal number")
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise CoercionError(f"`{raw}` is not a valid decimal number.") from exc
    if not value.is_finite():
        raise CoercionError(f"`{raw}` is not a finite decimal number.")
    return value


def _coerce_boolean(raw: str, tag: TypeTag, options: BindOptions) -> bool:
    """Parse a boolean using the configured vocabulary profile."""

    if options.boolean_profile is BooleanProfile.STRICT:
        parsed = parse_strict_boolean(raw)
        accepted = "`true`/`false`"
    else:
        parsed = parse_soft_boolean(raw)
        accepted = "`true`/`false`, `1`/`0`, `yes`/`no`, `y`/`n`, `on`/`off`"
    if parsed is None:
        raise CoercionError(f"Unsupported boolean value `{raw}`; expected {accepted}.")
    return parsed


def _coerce_path(raw: str, tag: TypeTag, options: BindOptions) -> object:
    if "\x00" in raw:
        raise CoercionError("Path contains a NUL character.")
    return tag.python_type(raw)


def parse_duration(raw: str) -> timedelta:
    """Parse ISO-8601 (`PT1H30M`, `P2DT3H`, `P1W`) or component (`1h 30m`) duration text.

    Calendar units (years, months) are rejected because they have no fixed length.
    """

    iso_match = _ISO_DURATION_PATTERN.fullmatch(raw)
    if iso_match is not None and raw.upper() not in {"P", "-P", "+P", "PT", "-PT", "+PT"}:
        if raw.upper().endswith("T"):
            raise CoercionError(f"`{raw}` is not a valid ISO-8601 duration.")
        parts = iso_match.groupdict()
        seconds = (parts["seconds"] or "0").replace(",", ".")
        duration = timedelta(
            weeks=int(parts["weeks"] or 0),
            days=int(parts["days"] or 0),
            hours=int(parts["hours"] or 0),
            minutes=int(parts["minutes"] or 0),
            seconds=float(Decimal(seconds)),
        )
        return -duration if parts["sign"] == "-" else duration

    if _COMPONENT_DURATION_PATTERN.fullmatch(raw) is not None:
        components = _DURATION_COMPONENT.findall(raw)
        total_seconds = sum(
            (Decimal(amount) * _COMPONENT_SECONDS[unit] for amount, unit in components),
            Decimal(0),
        )
        duration = timedelta(seconds=float(total_seconds))
        return -duration if raw.startswith("-") else duration

    raise CoercionError(
        f"`{raw}` is not a valid duration; use ISO-8601 (`PT1H30M`) or components (`1h 30m`)."
    )


def _coerce_duration(raw: str, tag: TypeTag, options: BindOptions) -> timedelta:
    return parse_duration(raw)


def _coerce_uri(raw: str, tag: TypeTag, options: BindOptions) -> str:
    """Validate URI reference syntax and return the text unchanged."""

    if any(character.isspace() or ord(character) < 0x20 for character in raw):
        raise CoercionError(f"`{raw}` is not a valid URI: whitespace or control characters.")
    try:
        parts = urlsplit(raw)
        _ = parts.port
    except ValueError as exc:
        raise CoercionError(f"`{raw}` is not a valid URI: {exc}") from exc
    if ":" in raw.split("/", 1)[0] and not parts.scheme:
        raise CoercionError(f"`{raw}` is not a valid URI: malformed scheme.")
    if parts.scheme and _URI_SCHEME_PATTERN.fullmatch(parts.scheme) is None:
        raise CoercionError(f"`{raw}` is not a valid URI: malformed scheme.")
    return raw


def _coerce_enum(raw: str, tag: TypeTag, options: BindOptions) -> object:
    """Look up an enum member by exact, case-sensitive name."""

    members = tag.python_type.__members__
    if raw not in members:
        names = ", ".join(members)
        raise CoercionError(
            f"No enum constant `{raw}` in `{tag.python_type.__name__}`; expected one of: {names}."
        )
    return members[raw]


_COERCERS: dict[ScalarKind, Callable[[str, TypeTag, BindOptions], object]] = {
    ScalarKind.CHAR: _coerce_char,
    ScalarKind.TEXT: _coerce_text,
    ScalarKind.INT8: _coerce_integer,
    ScalarKind.INT16: _coerce_integer,
    ScalarKind.INT32: _coerce_integer,
    ScalarKind.INT64: _coerce_integer,
    ScalarKind.INTEGER: _coerce_integer,
    ScalarKind.FLOAT32: _coerce_float32,
    ScalarKind.FLOAT64: _coerce_float64,
    ScalarKind.DECIMAL: _coerce_decimal,
    ScalarKind.BOOLEAN: _coerce_boolean,
    ScalarKind.PATH: _coerce_path,
    ScalarKind.DURATION: _coerce_duration,
    ScalarKind.URI: _coerce_uri,
    ScalarKind.ENUM: _coerce_enum,
}


def supported_kinds() -> frozenset[ScalarKind]:
    """Return the scalar kinds covered by the dispatch table."""

    return frozenset(_COERCERS)


def coerce_value(raw: str, tag: TypeTag, options: BindOptions | None = None) -> object:
    """Coerce one captured string into the scalar kind described by `tag`.

    Raises:
        CoercionError: If `raw` is not valid for the declared kind.
    """

    resolved_options = options if options is not None else BindOptions()
    coercer = _COERCERS.get(tag.kind)
    if coercer is None:
        raise CoercionError(f"No coercion rule for scalar kind `{tag.kind.value}`.")
    return coercer(raw, tag, resolved_options)
