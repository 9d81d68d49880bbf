"""Annotated aliases for scalar kinds that have no dedicated Python type.

Use them in dataclass annotations, e.g. ``port: Int32 = 5432``.
"""

from __future__ import annotations

from typing import Annotated

from .shape import ScalarKind

Char = Annotated[str, ScalarKind.CHAR]
Int8 = Annotated[int, ScalarKind.INT8]
Int16 = Annotated[int, ScalarKind.INT16]
Int32 = Annotated[int, ScalarKind.INT32]
Int64 = Annotated[int, ScalarKind.INT64]
Float32 = Annotated[float, ScalarKind.FLOAT32]
Uri = Annotated[str, ScalarKind.URI]

__all__ = ["Char", "Float32", "Int16", "Int32", "Int64", "Int8", "Uri"]
