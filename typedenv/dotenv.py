"""Forgiving line parser for the dotenv file grammar.

Responsibilities:
- Turn one raw line into a validated `(key, value)` pair or nothing.
- Report malformed lines through a caller-supplied warning sink and keep going.
- Expose lazy pair iteration and eager map loading over files and streams.

Grammar (one directive per line)::

    # comment
    KEY = VALUE   # trailing comment
    KEY = "quoted \\n value"
    KEY = 'single quoted'

Key types:
- `EnvPair`: immutable parsed key/value pair.
- `LineState`: scanner states of the per-line state machine.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum
from pathlib import Path
from typing import NamedTuple, TextIO

from .diagnostics import WarningSink, ignore_warning
from .io.lines import iterate_lines, iterate_stream_lines

_QUOTE_CHARACTERS = frozenset({'"', "'"})
_ESCAPE_REPLACEMENTS = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


class EnvPair(NamedTuple):
    """One parsed dotenv entry with quoting and escaping already resolved."""

    key: str
    value: str


class LineState(Enum):
    """Scanner states for one dotenv line."""

    KEY = "key"
    AFTER_KEY = "after_key"
    VALUE_START = "value_start"
    VALUE_UNQUOTED = "value_unquoted"
    VALUE_QUOTED = "value_quoted"
    ESCAPED = "escaped"


def is_valid_env_key(key: str) -> bool:
    """Return whether `key` starts with a letter or `_` and holds only word characters."""

    if not key:
        return False
    if not (key[0].isalpha() or key[0] == "_"):
        return False
    return all(character.isalnum() or character == "_" for character in key)


def resolve_escapes(value: str) -> str:
    """Resolve backslash escapes of a closed quoted value.

    Known escapes map to their literal character; unknown ones keep both characters.
    """

    result: list[str] = []
    index = 0
    while index < len(value):
        character = value[index]
        if character == "\\" and index + 1 < len(value):
            escaped = value[index + 1]
            result.append(_ESCAPE_REPLACEMENTS.get(escaped, character + escaped))
            index += 2
            continue
        result.append(character)
        index += 1
    return "".join(result)


def _describe_line(line: str, line_number: int | None) -> str:
    """Render a line reference for warning messages."""

    if line_number is None:
        return f"in line: {line}"
    return f"in line {line_number}: {line}"


def parse_env_line(
    line: str,
    on_warning: WarningSink | None = None,
    line_number: int | None = None,
) -> EnvPair | None:
    """Parse one raw dotenv line.

    Args:
        line: Raw line text without its terminator.
        on_warning: Sink receiving one message per dropped or suspicious line.
        line_number: Optional 1-based line number used in warning messages.

    Returns:
        Parsed pair, or `None` for blank, comment, and malformed lines.
    """

    warn = ignore_warning if on_warning is None else on_warning
    location = _describe_line(line, line_number)
    trimmed = line.strip()
    if not trimmed or trimmed.startswith("#"):
        return None

    state = LineState.KEY
    key: list[str] = []
    value: list[str] = []
    quote_character = ""
    quoted_and_closed = False

    for index, character in enumerate(trimmed):
        if state is LineState.KEY:
            if character == "=":
                state = LineState.VALUE_START
            elif character.isspace():
                state = LineState.AFTER_KEY
            else:
                key.append(character)

        elif state is LineState.AFTER_KEY:
            if character == "=":
                state = LineState.VALUE_START
            elif not character.isspace():
                warn(f"Invalid character '{character}' after key {location}")
                return None

        elif state is LineState.VALUE_START:
            if character.isspace():
                continue
            if character in _QUOTE_CHARACTERS:
                quote_character = character
                state = LineState.VALUE_QUOTED
            elif character == "#":
                break
            else:
                value.append(character)
                state = LineState.VALUE_UNQUOTED

        elif state is LineState.VALUE_UNQUOTED:
            if character == "#":
                break
            value.append(character)

        elif state is LineState.VALUE_QUOTED:
            if character == "\\":
                state = LineState.ESCAPED
            elif character == quote_character:
                quoted_and_closed = True
                trailing = trimmed[index + 1 :].lstrip()
                if trailing and not trailing.startswith("#"):
                    warn(f"Unexpected characters after closing quote {location}")
                break
            else:
                value.append(character)

        else:
            value.append("\\")
            value.append(character)
            state = LineState.VALUE_QUOTED

    if not quoted_and_closed and state in (LineState.VALUE_QUOTED, LineState.ESCAPED):
        warn(f"Unclosed quote {location}")
        return None
    if state in (LineState.KEY, LineState.AFTER_KEY):
        warn(f"Missing '=' after key {location}")
        return None

    key_text = "".join(key).strip()
    if not is_valid_env_key(key_text):
        warn(f"Invalid key '{key_text}' {location}")
        return None

    if quoted_and_closed:
        return EnvPair(key_text, resolve_escapes("".join(value)))
    return EnvPair(key_text, "".join(value).rstrip())


def parse_env_lines(
    lines: Iterable[str], on_warning: WarningSink | None = None
) -> Iterator[EnvPair]:
    """Lazily parse raw lines, skipping blank, comment, and malformed ones."""

    for line_number, line in enumerate(lines, start=1):
        pair = parse_env_line(line, on_warning, line_number)
        if pair is not None:
            yield pair


def iterate_env_pairs(
    path: str | Path, on_warning: WarningSink | None = None
) -> Iterator[EnvPair]:
    """Return a lazy, single-pass iterator over the pairs of a dotenv file.

    Raises:
        EnvFileError: Immediately, when the file cannot be used as a line source.
    """

    return parse_env_lines(iterate_lines(path), on_warning)


def iterate_stream_pairs(
    stream: TextIO, on_warning: WarningSink | None = None
) -> Iterator[EnvPair]:
    """Return a lazy iterator over the pairs of an open text stream."""

    return parse_env_lines(iterate_stream_lines(stream), on_warning)


def load_env_map(path: str | Path, on_warning: WarningSink | None = None) -> dict[str, str]:
    """Load every pair of a dotenv file into a mapping; the last duplicate wins."""

    return dict(iterate_env_pairs(path, on_warning))
