"""Unit tests for the dotenv line parser state machine."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from tests.fixture_paths import MIXED_ENV_CONTENT
from typedenv.diagnostics import WarningCollector
from typedenv.dotenv import (
    EnvPair,
    is_valid_env_key,
    iterate_env_pairs,
    load_env_map,
    parse_env_line,
    parse_env_lines,
    resolve_escapes,
)


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("KEY=value", EnvPair("KEY", "value")),
        ("KEY=value   ", EnvPair("KEY", "value")),
        ("KEY = value", EnvPair("KEY", "value")),
        ("   KEY=value", EnvPair("KEY", "value")),
        ("KEY=  spaced out  ", EnvPair("KEY", "spaced out")),
        ("KEY=999=111", EnvPair("KEY", "999=111")),
        ("KEY=", EnvPair("KEY", "")),
        ("KEY= # only a comment", EnvPair("KEY", "")),
        ("_private1=x", EnvPair("_private1", "x")),
    ],
)
def test_parse_env_line_accepts_unquoted_values(line: str, expected: EnvPair) -> None:
    """Well-formed unquoted lines should yield the key and the trimmed value."""

    collector = WarningCollector()

    assert parse_env_line(line, collector) == expected
    assert collector.messages == []


@pytest.mark.parametrize("line", ["", "   ", "\t", "# comment", "   # indented comment", "#KEY=1"])
def test_blank_and_comment_lines_yield_nothing_without_warnings(line: str) -> None:
    """Blank and comment lines are skipped silently."""

    collector = WarningCollector()

    assert parse_env_line(line, collector) is None
    assert collector.messages == []


def test_hash_inside_quotes_is_kept_and_unquoted_hash_starts_comment() -> None:
    """A `#` only starts a comment outside quotes."""

    assert parse_env_line('KEY="a#b"') == EnvPair("KEY", "a#b")
    assert parse_env_line("KEY=a#b") == EnvPair("KEY", "a")
    assert parse_env_line("KEY=a #b") == EnvPair("KEY", "a")


def test_quoted_values_resolve_escapes() -> None:
    """Known escapes inside quotes become literal characters."""

    assert parse_env_line("KEY='line\\nend'") == EnvPair("KEY", "line\nend")
    assert parse_env_line('KEY="tab\\there"') == EnvPair("KEY", "tab\there")
    assert parse_env_line('KEY="say \\"hi\\""') == EnvPair("KEY", 'say "hi"')
    assert parse_env_line("KEY='it\\'s'") == EnvPair("KEY", "it's")
    assert parse_env_line('KEY="back\\\\slash"') == EnvPair("KEY", "back\\slash")


def test_unknown_escape_passes_through_unchanged() -> None:
    """Unknown escapes keep both the backslash and the escaped character."""

    assert parse_env_line('KEY="C:\\dir\\x"') == EnvPair("KEY", "C:\\dir\\x")


def test_quoted_value_preserves_inner_whitespace_and_other_quote() -> None:
    """Quoted values keep leading/trailing spaces and the non-closing quote character."""

    assert parse_env_line('KEY="  padded  "') == EnvPair("KEY", "  padded  ")
    assert parse_env_line("KEY=\"it's\"") == EnvPair("KEY", "it's")
    assert parse_env_line("KEY=''") == EnvPair("KEY", "")


def test_unquoted_value_keeps_backslashes_and_quotes_literally() -> None:
    """Escapes are only resolved inside closed quotes."""

    assert parse_env_line("KEY=a\\nb") == EnvPair("KEY", "a\\nb")
    assert parse_env_line("KEY=it's") == EnvPair("KEY", "it's")


def test_unterminated_quote_drops_line_with_one_warning() -> None:
    """An unclosed quote yields no pair and exactly one warning."""

    collector = WarningCollector()

    assert parse_env_line('KEY="abc', collector) is None
    assert len(collector.messages) == 1
    assert "Unclosed quote" in collector.messages[0]


def test_trailing_escape_inside_quotes_counts_as_unterminated() -> None:
    """A quote that ends in the escaped state is unterminated."""

    collector = WarningCollector()

    assert parse_env_line('KEY="abc\\"', collector) is None
    assert len(collector.messages) == 1


def test_trailing_garbage_after_closing_quote_warns_but_keeps_value() -> None:
    """Content after the closing quote is ignored with a warning."""

    collector = WarningCollector()

    assert parse_env_line('KEY="abc" garbage', collector) == EnvPair("KEY", "abc")
    assert len(collector.messages) == 1
    assert "after closing quote" in collector.messages[0]


def test_comment_after_closing_quote_does_not_warn() -> None:
    """A trailing comment after a quoted value is legal."""

    collector = WarningCollector()

    assert parse_env_line("KEY='abc'   # note", collector) == EnvPair("KEY", "abc")
    assert collector.messages == []


@pytest.mark.parametrize(
    ("line", "fragment"),
    [
        ("MY KEY=1", "Invalid character 'K' after key"),
        ("1KEY=1", "Invalid key '1KEY'"),
        ("KEY-NAME=1", "Invalid key 'KEY-NAME'"),
        ("=value", "Invalid key ''"),
        ("JUSTAKEY", "Missing '='"),
    ],
)
def test_malformed_lines_are_dropped_with_a_warning(line: str, fragment: str) -> None:
    """Invalid keys and stray characters drop the line and report it."""

    collector = WarningCollector()

    assert parse_env_line(line, collector) is None
    assert len(collector.messages) == 1
    assert fragment in collector.messages[0]


def test_warning_mentions_line_number_when_known() -> None:
    """Line numbers are 1-based and included in warnings."""

    collector = WarningCollector()

    pairs = list(parse_env_lines(["A=1", "", "bad key=2"], collector))

    assert pairs == [EnvPair("A", "1")]
    assert collector.messages == ["Invalid character 'k' after key in line 3: bad key=2"]


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("KEY", True),
        ("_KEY_2", True),
        ("klíč", True),
        ("", False),
        ("2KEY", False),
        ("KEY.NAME", False),
    ],
)
def test_is_valid_env_key(key: str, expected: bool) -> None:
    """Keys start with a letter or underscore and contain only word characters."""

    assert is_valid_env_key(key) is expected


def test_resolve_escapes_keeps_trailing_backslash() -> None:
    """A lone trailing backslash has nothing to escape and is kept."""

    assert resolve_escapes("abc\\") == "abc\\"
    assert resolve_escapes("a\\rb") == "a\rb"


def test_iterate_env_pairs_over_mixed_file(write_env: Callable[..., Path]) -> None:
    """The file iterator yields valid pairs in order and reports dropped lines."""

    path = write_env(MIXED_ENV_CONTENT)
    collector = WarningCollector()

    pairs = list(iterate_env_pairs(path, collector))

    assert pairs == [
        EnvPair("test1", "123"),
        EnvPair("test2", "321"),
        EnvPair("test3", "456"),
        EnvPair("test4", "789"),
        EnvPair("test5", "999=111"),
    ]
    assert len(collector.messages) == 2


def test_iterate_env_pairs_is_lazy_and_single_pass(write_env: Callable[..., Path]) -> None:
    """Pairs are produced on demand and the iterator cannot be restarted."""

    path = write_env("A=1\nB=2\n")
    pairs = iterate_env_pairs(path)

    assert next(pairs) == EnvPair("A", "1")
    assert list(pairs) == [EnvPair("B", "2")]
    assert list(pairs) == []


def test_load_env_map_last_duplicate_wins(write_env: Callable[..., Path]) -> None:
    """Sequential overwrite keeps the last occurrence of a key."""

    path = write_env("KEY=first\nOTHER=x\nKEY=second\n")

    assert load_env_map(path) == {"KEY": "second", "OTHER": "x"}


def test_load_env_map_is_idempotent(write_env: Callable[..., Path]) -> None:
    """Loading an unchanged file twice yields identical mappings."""

    path = write_env("A=1\nB='two'\n# c\n")

    assert load_env_map(path) == load_env_map(path) == {"A": "1", "B": "two"}


def test_crlf_line_endings_are_stripped(write_env: Callable[..., Path]) -> None:
    """Windows line endings do not leak into values."""

    path = write_env("A=1\r\nB=\"2\"\r\n")

    assert load_env_map(path) == {"A": "1", "B": "2"}


def test_invalid_utf8_bytes_do_not_abort_the_scan(tmp_path: Path) -> None:
    """Undecodable bytes are replaced and the remaining pairs still load."""

    path = tmp_path / ".env"
    path.write_bytes(b"# caf\xe9 comment\nA=1\nNAME=caf\xe9\n")
    collector = WarningCollector()

    values = load_env_map(path, collector)

    assert values == {"A": "1", "NAME": "caf\ufffd"}
    assert collector.messages == []
