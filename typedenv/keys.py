"""Environment key derivation for described dataclass fields."""

from __future__ import annotations

from dataclasses import dataclass

from .shape import FieldSpec


@dataclass(frozen=True, slots=True)
class KeyInfo:
    """Derived environment names for one field.

    Attributes:
        key: Fully-qualified environment key of the field.
        nested_prefix: Prefix handed to nested descendants of the field.
    """

    key: str
    nested_prefix: str


def derive_key(field: FieldSpec, prefix: str) -> KeyInfo:
    """Derive the key and descendant prefix of `field` under `prefix`.

    A non-empty override replaces both the key and the descendant prefix. An
    empty override keeps the upper-cased field name as key and passes `prefix`
    through unchanged. Otherwise the upper-cased name is joined to `prefix` with `_`.
    """

    override = field.override_name
    if override:
        return KeyInfo(key=override, nested_prefix=override)

    base = field.declared_name.upper()
    if override is not None:
        return KeyInfo(key=base, nested_prefix=prefix)
    if not prefix:
        return KeyInfo(key=base, nested_prefix=base)
    full_key = f"{prefix}_{base}"
    return KeyInfo(key=full_key, nested_prefix=full_key)
