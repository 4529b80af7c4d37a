"""Reflector — lowers reflectable TypeScript functions into a portable IR."""

from .api import (  # noqa: F401
    transform_source,
    lower_constructs,
    lower_function_source,
    dump_ir,
)
from .config import TransformConfig  # noqa: F401
from .ir import IRNode, NodeKind  # noqa: F401
