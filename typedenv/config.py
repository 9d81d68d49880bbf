"""Binding options and their loaders.

Responsibilities:
- Define binder behavior switches as a typed, immutable dataclass.
- Provide an environment-based loader for those switches.

Key types:
- `BooleanProfile`: soft or strict boolean vocabulary.
- `EmptyValuePolicy`: whether an empty captured value counts as present.
- `WarningMode`: how CLI commands treat parse warnings.
- `BindOptions`: validated option set for one binder.
- `ConfigLoader`: static construction helpers for `BindOptions`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import os
from typing import Mapping, TypeVar

from .parsing import normalize_optional_string

_OptionEnum = TypeVar("_OptionEnum", bound=Enum)


class BooleanProfile(str, Enum):
    """Accepted boolean vocabulary."""

    SOFT = "soft"
    STRICT = "strict"


class EmptyValuePolicy(str, Enum):
    """Treatment of keys found with an empty value."""

    PRESENT = "present"
    ABSENT = "absent"


class WarningMode(str, Enum):
    """Treatment of malformed-line warnings in CLI commands."""

    IGNORE = "ignore"
    LOG = "log"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class BindOptions:
    """Options applied while capturing and coercing values.

    Attributes:
        boolean_profile: Soft (`yes`, `on`, `1`, ...) or strict (`true`/`false`) booleans.
        empty_values: Whether `KEY=` binds an empty string or falls back to defaults.
    """

    boolean_profile: BooleanProfile = BooleanProfile.SOFT
    empty_values: EmptyValuePolicy = EmptyValuePolicy.PRESENT

    @classmethod
    def strict(cls) -> BindOptions:
        """Return the strict profile: canonical booleans and empty values treated as absent."""

        return cls(
            boolean_profile=BooleanProfile.STRICT,
            empty_values=EmptyValuePolicy.ABSENT,
        )

    def validate(self) -> None:
        """Validate option values before binding."""

        if not isinstance(self.boolean_profile, BooleanProfile):
            raise ValueError("`boolean_profile` must be a `BooleanProfile` member.")
        if not isinstance(self.empty_values, EmptyValuePolicy):
            raise ValueError("`empty_values` must be an `EmptyValuePolicy` member.")

    def keeps_value(self, value: str) -> bool:
        """Return whether a captured value counts as present under these options."""

        return bool(value) or self.empty_values is EmptyValuePolicy.PRESENT


class ConfigLoader:
    """Factory methods for creating `BindOptions` from external sources."""

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> BindOptions:
        """Create validated options from `TYPEDENV_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env

        boolean_profile = ConfigLoader._optional_env_choice(
            env_map, "TYPEDENV_BOOLEAN_PROFILE", BooleanProfile
        ) or BooleanProfile.SOFT
        empty_values = ConfigLoader._optional_env_choice(
            env_map, "TYPEDENV_EMPTY_VALUES", EmptyValuePolicy
        ) or EmptyValuePolicy.PRESENT

        options = BindOptions(boolean_profile=boolean_profile, empty_values=empty_values)
        options.validate()
        return options

    @staticmethod
    def _optional_env_choice(
        env: Mapping[str, str], key: str, choices: type[_OptionEnum]
    ) -> _OptionEnum | None:
        """Read an optional enum-valued environment variable case-insensitively."""

        if key not in env:
            return None
        raw_value = normalize_optional_string(env.get(key))
        if raw_value is None:
            return None
        try:
            return choices(raw_value.lower())
        except ValueError as exc:
            allowed = ", ".join(member.value for member in choices)
            raise ValueError(
                f"Environment variable `{key}` must be one of: {allowed}."
            ) from exc
