"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

from enum import Enum

DEFAULT_RUNTIME_MODULE = "functionless"
DEFAULT_NAMESPACE = "functionless"

# Marker properties inspected on resolved types
COMPONENT_STATIC_MARKER = "FunctionlessType"
COMPONENT_INSTANCE_MARKER = "functionlessKind"
REFERENCE_KIND_PROPERTY = "kind"
CALLABLE_BRAND_PROPERTY = "__functionBrand"

REFLECT_FUNCTION_NAME = "reflect"
WHEN_METHOD_NAME = "when"
MAP_METHOD_NAME = "map"

UNDEFINED_TYPE_MARKER = "undefined"

LANGUAGE_TYPESCRIPT = "typescript"
LANGUAGE_TSX = "tsx"

SUPPORTED_LANGUAGES: tuple[str, ...] = (LANGUAGE_TYPESCRIPT, LANGUAGE_TSX)


class ComponentKind(str, Enum):
    """Values carried by the component marker of a reflectable construct."""

    APPSYNC_RESOLVER = "AppsyncResolver"
    STEP_FUNCTION = "StepFunction"
    EXPRESS_STEP_FUNCTION = "ExpressStepFunction"
    EVENT_BUS = "EventBus"
    EVENT_BUS_RULE = "EventBusRule"
    EVENT_BUS_TRANSFORM = "EventBusTransform"


class ReferenceKind(str, Enum):
    """Externally-managed resource kinds that lower to ReferenceExpr."""

    FUNCTION = "Function"
    TABLE = "Table"
    STEP_FUNCTION = "StepFunction"
    EXPRESS_STEP_FUNCTION = "ExpressStepFunction"
    EVENT_BUS = "EventBus"


REFERENCE_KINDS: frozenset[str] = frozenset(k.value for k in ReferenceKind)
COMPONENT_KINDS: frozenset[str] = frozenset(k.value for k in ComponentKind)
