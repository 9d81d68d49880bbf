"""Top-level package for typedenv.

This package parses `.env` files with a forgiving line grammar and binds their
values onto (possibly nested) dataclasses with typed coercion. The main entry
points are `load_env_map` and `load_env_as`.
"""

from loguru import logger

from .binder import EnvBinder, load_env_as
from .config import BindOptions, BooleanProfile, ConfigLoader, EmptyValuePolicy
from .diagnostics import WarningCollector
from .dotenv import EnvPair, iterate_env_pairs, load_env_map
from .errors import (
    EnvFileError,
    FieldBindingError,
    MissingRequiredKeyError,
    ShapeError,
    TypedEnvError,
    UnsupportedTypeError,
)
from .io.lines import iterate_lines
from .shape import env_field

logger.disable("typedenv")

__all__ = [
    "BindOptions",
    "BooleanProfile",
    "ConfigLoader",
    "EmptyValuePolicy",
    "EnvBinder",
    "EnvFileError",
    "EnvPair",
    "FieldBindingError",
    "MissingRequiredKeyError",
    "ShapeError",
    "TypedEnvError",
    "UnsupportedTypeError",
    "WarningCollector",
    "__version__",
    "env_field",
    "iterate_env_pairs",
    "iterate_lines",
    "load_env_as",
    "load_env_map",
]

__version__ = "0.1.0"
