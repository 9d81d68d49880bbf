"""Explicit shape descriptors for bindable dataclass targets.

Responsibilities:
- Describe a dataclass target once as an ordered list of `FieldSpec` records.
- Map declared Python types onto the closed `ScalarKind` table.
- Carry per-field environment-name overrides as plain descriptor data.

Key types:
- `ScalarKind`: closed set of supported scalar kinds.
- `TypeTag`: resolved scalar kind plus optionality.
- `FieldSpec`: one constructor parameter of a target dataclass.
- `StructShape`: ordered field specs of one target dataclass.
"""

from __future__ import annotations

import dataclasses
from dataclasses import MISSING, dataclass
from datetime import timedelta
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from pathlib import PurePath
import types
import typing
from typing import Any, Annotated, Callable, Union

from .errors import ShapeError, UnsupportedTypeError

ENV_NAME_METADATA_KEY = "typedenv.env_name"


class _NoDefault:
    """Marker type for fields without a declared default."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()


class ScalarKind(Enum):
    """Closed set of scalar kinds a captured string can be coerced into."""

    CHAR = "char"
    TEXT = "text"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    INTEGER = "integer"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    PATH = "path"
    DURATION = "duration"
    URI = "uri"
    ENUM = "enum"


_PLAIN_TYPE_KINDS: dict[type, ScalarKind] = {
    str: ScalarKind.TEXT,
    int: ScalarKind.INTEGER,
    float: ScalarKind.FLOAT64,
    Decimal: ScalarKind.DECIMAL,
    bool: ScalarKind.BOOLEAN,
    timedelta: ScalarKind.DURATION,
}


@dataclass(frozen=True, slots=True)
class TypeTag:
    """Resolved scalar type of one field.

    Attributes:
        kind: Scalar kind used for coercion dispatch.
        optional: Whether the declared type admits `None`.
        python_type: Concrete class for `ENUM` and `PATH` kinds.
    """

    kind: ScalarKind
    optional: bool = False
    python_type: type | None = None


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Descriptor for one constructor parameter of a target dataclass.

    Attributes:
        declared_name: Python field name, used as the constructor keyword.
        override_name: Explicit environment name; `""` resets nesting, `None` means unset.
        type_tag: Scalar type for leaf fields, `None` for nested structures.
        nested_type: Dataclass type for nested structure fields.
        nested_optional: Whether a nested field was declared `Optional`.
        default: Declared default value, or `NO_DEFAULT`.
        default_factory: Declared default factory, or `NO_DEFAULT`.
    """

    declared_name: str
    override_name: str | None
    type_tag: TypeTag | None
    nested_type: type | None = None
    nested_optional: bool = False
    default: Any = NO_DEFAULT
    default_factory: Any = NO_DEFAULT

    @property
    def is_nested(self) -> bool:
        """Return whether this field contributes a prefix instead of a leaf key."""

        return self.nested_type is not None

    @property
    def has_default(self) -> bool:
        """Return whether the dataclass declares a default for this field."""

        return self.default is not NO_DEFAULT or self.default_factory is not NO_DEFAULT

    @property
    def has_type_default_or_is_optional(self) -> bool:
        """Return whether an absent key can be tolerated for this field."""

        optional = self.type_tag is not None and self.type_tag.optional
        return self.has_default or optional


@dataclass(frozen=True, slots=True)
class StructShape:
    """Ordered field descriptors for one dataclass target."""

    target: type
    fields: tuple[FieldSpec, ...]


def env_field(
    name: str | None = None,
    *,
    default: Any = MISSING,
    default_factory: Callable[[], Any] | Any = MISSING,
    **kwargs: Any,
) -> Any:
    """Declare a dataclass field with an optional environment-name override.

    Args:
        name: Full environment name for the field. A non-empty value replaces the
            derived key and becomes the prefix of nested descendants; `""` keeps the
            derived name but stops adding a nesting level.
        default: Default value, as for `dataclasses.field`.
        default_factory: Default factory, as for `dataclasses.field`.
        **kwargs: Remaining `dataclasses.field` arguments.
    """

    metadata = dict(kwargs.pop("metadata", None) or {})
    if name is not None:
        metadata[ENV_NAME_METADATA_KEY] = name
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
        **kwargs,
    )


def _strip_optional(declared: Any) -> tuple[Any, bool]:
    """Split `X | None` and `Optional[X]` into `(X, True)`."""

    origin = typing.get_origin(declared)
    if origin is Union or origin is types.UnionType:
        members = typing.get_args(declared)
        arguments = [argument for argument in members if argument is not type(None)]
        optional = len(arguments) != len(members)
        if len(arguments) == 1:
            return arguments[0], optional
    return declared, False


def _is_dataclass_type(candidate: Any) -> bool:
    """Return whether `candidate` is a dataclass class (not an instance)."""

    return (
        isinstance(candidate, type)
        and typing.get_origin(candidate) is None
        and dataclasses.is_dataclass(candidate)
    )


def _require_kind_base(
    field_name: str, declared: Any, kind: ScalarKind, python_type: type | None
) -> None:
    """Reject annotated ENUM and PATH kinds whose base class cannot build the value."""

    required = {ScalarKind.ENUM: Enum, ScalarKind.PATH: PurePath}.get(kind)
    if required is None:
        return
    if python_type is None or not issubclass(python_type, required):
        raise UnsupportedTypeError(field_name=field_name, declared_type=declared)


def _resolve_type_tag(field_name: str, declared: Any, optional: bool) -> TypeTag:
    """Map one declared (non-nested) type onto a `TypeTag`."""

    if typing.get_origin(declared) is Annotated:
        base, *metadata = typing.get_args(declared)
        kinds = [item for item in metadata if isinstance(item, ScalarKind)]
        base, inner_optional = _strip_optional(base)
        if kinds:
            python_type = base if isinstance(base, type) else None
            _require_kind_base(field_name, declared, kinds[-1], python_type)
            return TypeTag(
                kind=kinds[-1],
                optional=optional or inner_optional,
                python_type=python_type,
            )
        return _resolve_type_tag(field_name, base, optional or inner_optional)

    if typing.get_origin(declared) is not None or not isinstance(declared, type):
        raise UnsupportedTypeError(field_name=field_name, declared_type=declared)
    if issubclass(declared, Enum):
        return TypeTag(kind=ScalarKind.ENUM, optional=optional, python_type=declared)
    if issubclass(declared, PurePath):
        return TypeTag(kind=ScalarKind.PATH, optional=optional, python_type=declared)
    kind = _PLAIN_TYPE_KINDS.get(declared)
    if kind is None:
        raise UnsupportedTypeError(field_name=field_name, declared_type=declared)
    return TypeTag(kind=kind, optional=optional)


def _declared_default(value: Any) -> Any:
    return NO_DEFAULT if value is MISSING else value


def _describe_field(field: dataclasses.Field, declared: Any) -> FieldSpec:
    """Build the descriptor of one dataclass field from its resolved annotation."""

    override = field.metadata.get(ENV_NAME_METADATA_KEY)
    default = _declared_default(field.default)
    default_factory = _declared_default(field.default_factory)
    base, optional = _strip_optional(declared)
    if _is_dataclass_type(base):
        return FieldSpec(
            declared_name=field.name,
            override_name=override,
            type_tag=None,
            nested_type=base,
            nested_optional=optional,
            default=default,
            default_factory=default_factory,
        )
    return FieldSpec(
        declared_name=field.name,
        override_name=override,
        type_tag=_resolve_type_tag(field.name, base, optional),
        default=default,
        default_factory=default_factory,
    )


def describe(target: type) -> StructShape:
    """Describe a dataclass target as an ordered `StructShape`.

    Only fields accepted by the generated `__init__` are described, in
    declaration order. The result is cached per target type.

    Raises:
        ShapeError: If `target` is not a dataclass type or its annotations
            cannot be resolved.
        UnsupportedTypeError: If a field declares a type outside the scalar table.
    """

    if not _is_dataclass_type(target):
        raise ShapeError(
            detail=f"`{target!r}` is not a dataclass type.",
            hint="Decorate the target with `@dataclass` to describe its fields.",
        )
    return _describe_dataclass(target)


@lru_cache(maxsize=None)
def _describe_dataclass(target: type) -> StructShape:
    try:
        hints = typing.get_type_hints(target, include_extras=True)
    except (NameError, TypeError) as exc:
        raise ShapeError(
            detail=f"Cannot resolve annotations of `{target.__qualname__}`: {exc}",
            hint="Define nested dataclasses at module level so their names resolve.",
        ) from exc

    init_vars = sorted(
        name for name, hint in hints.items() if isinstance(hint, dataclasses.InitVar)
    )
    if init_vars:
        raise ShapeError(
            detail=f"`{target.__qualname__}` declares InitVar field(s): {', '.join(init_vars)}.",
            hint="InitVar parameters cannot be bound from a .env file.",
        )

    specs = tuple(
        _describe_field(field, hints[field.name])
        for field in dataclasses.fields(target)
        if field.init
    )
    return StructShape(target=target, fields=specs)
