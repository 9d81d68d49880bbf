"""Domain exceptions for dotenv reading, shape description, and binding diagnostics."""

from __future__ import annotations


class TypedEnvError(Exception):
    """Base error carrying a stage label, a detail message, and an optional hint."""

    stage = "typedenv"

    def __init__(self, *, detail: str, hint: str | None = None) -> None:
        """Initialize a stage-scoped typedenv error."""

        super().__init__(detail)
        self.detail = detail
        self.hint = hint


class EnvFileError(TypedEnvError, OSError):
    """Raised when a dotenv source is missing, not a file, unreadable, or empty."""

    stage = "read"

    def __init__(self, *, path: object, detail: str, hint: str | None = None) -> None:
        """Initialize a read error for a specific source path."""

        super().__init__(detail=detail, hint=hint)
        self.path = path


class ShapeError(TypedEnvError):
    """Raised when a target type cannot be described as a bindable structure."""

    stage = "shape"


class UnsupportedTypeError(ShapeError):
    """Raised when a field declares a type outside the supported scalar table."""

    def __init__(self, *, field_name: str, declared_type: object) -> None:
        """Initialize an unsupported-type error for one declared field."""

        super().__init__(
            detail=f"Field `{field_name}` declares unsupported type `{declared_type!r}`.",
            hint="Use a scalar, an Enum, a nested dataclass, or an Optional of those.",
        )
        self.field_name = field_name
        self.declared_type = declared_type


class MissingRequiredKeyError(TypedEnvError):
    """Raised when a required key is absent and the field has no fallback."""

    stage = "bind"

    def __init__(self, key: str) -> None:
        """Initialize a missing-key error naming the exact environment key."""

        super().__init__(
            detail=f"Required key `{key}` was not found.",
            hint="Add the key to the .env file, give the field a default, or make it Optional.",
        )
        self.key = key


class FieldBindingError(TypedEnvError):
    """Raised when a captured string cannot be coerced into its declared type."""

    stage = "bind"

    def __init__(self, *, key: str, raw_value: str, cause: Exception) -> None:
        """Initialize a binding error with key, raw value, and underlying failure."""

        super().__init__(detail=f"Failed to parse key `{key}` with value `{raw_value}`: {cause}")
        self.key = key
        self.raw_value = raw_value
        self.cause = cause


class ParseWarningsError(TypedEnvError):
    """Raised when a caller escalates collected parse warnings into a failure."""

    stage = "parse"

    def __init__(self, warnings: list[str]) -> None:
        """Initialize an escalation error from collected warning messages."""

        count = len(warnings)
        super().__init__(
            detail=f"{count} malformed line(s): " + "; ".join(warnings),
            hint="Fix the reported lines or rerun without warning escalation.",
        )
        self.warnings = list(warnings)


class CoercionError(ValueError):
    """Raised when one raw string does not parse as the requested scalar kind."""
