"""Construct Selector — recognizes call/constructor sites holding reflectable functions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from . import constants
from .constants import ComponentKind
from .oracle import SymbolKind, TypeOracle

logger = logging.getLogger(__name__)

_FUNCTION_ARGUMENT_TYPES: frozenset[str] = frozenset(
    {"arrow_function", "function_expression", "function"}
)


class ConstructKind(Enum):
    APPSYNC_RESOLVER = "appsync_resolver"
    STEP_FUNCTION = "step_function"
    REFLECT = "reflect"
    EVENT_BUS_WHEN = "event_bus_when"
    EVENT_BUS_MAP = "event_bus_map"
    EVENT_BUS_RULE = "event_bus_rule"
    EVENT_BUS_TRANSFORM = "event_bus_transform"


@dataclass(frozen=True)
class SelectorMatch:
    """Which argument slots of a matched node are lowered.

    Arguments not listed in ``slots`` pass through unchanged.
    """

    kind: ConstructKind
    node: object
    slots: tuple[int, ...]
    drop_args: int = 0


class ConstructSelector:
    """Tests a node against the fixed, ordered catalogue of reflectable shapes."""

    def __init__(self, oracle: TypeOracle, source: bytes):
        self._oracle = oracle
        self._source = source
        self._RULES = (
            self._match_appsync_resolver,
            self._match_step_function,
            self._match_reflect,
            self._match_event_bus_when,
            self._match_event_bus_map,
            self._match_event_bus_rule,
            self._match_event_bus_transform,
        )

    def _node_text(self, n) -> str:
        return self._source[n.start_byte : n.end_byte].decode("utf-8")

    def match(self, n) -> SelectorMatch | None:
        if n.type not in ("call_expression", "new_expression"):
            return None
        for rule in self._RULES:
            result = rule(n)
            if result is not None:
                logger.info(
                    "Matched %s at %d:%d",
                    result.kind.value,
                    n.start_point[0] + 1,
                    n.start_point[1],
                )
                return result
        return None

    # ── type markers ─────────────────────────────────────────────

    def component_kind(self, n) -> str | None:
        """Component marker value of the type of *n*, if any."""
        type_ = self._oracle.type_at(n)
        if type_ is None:
            return None
        for marker in (constants.COMPONENT_STATIC_MARKER, constants.COMPONENT_INSTANCE_MARKER):
            prop = self._oracle.property_type(type_, marker)
            if prop is not None and prop.literal is not None:
                return prop.literal
        return None

    def _is_component(self, n, *kinds: ComponentKind) -> bool:
        return n is not None and self.component_kind(n) in {k.value for k in kinds}

    def _constructs(self, n, *kinds: ComponentKind) -> bool:
        """A ``new`` whose constructor or constructed value carries one of *kinds*."""
        if n.type != "new_expression":
            return False
        return self._is_component(n.child_by_field_name("constructor"), *kinds) or (
            self._is_component(n, *kinds)
        )

    def _arguments(self, n) -> list:
        args_node = n.child_by_field_name("arguments")
        if args_node is None or args_node.type != "arguments":
            return []
        return [c for c in args_node.children if c.is_named and c.type != "comment"]

    def _method_call(self, n, method_name: str):
        """Receiver node of ``recv.<method_name>(...)``, or None."""
        if n.type != "call_expression":
            return None
        func_node = n.child_by_field_name("function")
        if func_node is None or func_node.type != "member_expression":
            return None
        prop = func_node.child_by_field_name("property")
        if prop is None or self._node_text(prop) != method_name:
            return None
        return func_node.child_by_field_name("object")

    # ── catalogue ────────────────────────────────────────────────

    def _match_appsync_resolver(self, n) -> SelectorMatch | None:
        if not self._constructs(n, ComponentKind.APPSYNC_RESOLVER):
            return None
        args = self._arguments(n)
        if len(args) == 1 and args[0].type in _FUNCTION_ARGUMENT_TYPES:
            return SelectorMatch(ConstructKind.APPSYNC_RESOLVER, n, (0,), drop_args=1)
        return None

    def _match_step_function(self, n) -> SelectorMatch | None:
        if not self._constructs(
            n, ComponentKind.STEP_FUNCTION, ComponentKind.EXPRESS_STEP_FUNCTION
        ):
            return None
        slots = tuple(
            i
            for i, arg in enumerate(self._arguments(n))
            if arg.type in _FUNCTION_ARGUMENT_TYPES
        )
        if not slots:
            return None
        return SelectorMatch(ConstructKind.STEP_FUNCTION, n, slots)

    def _match_reflect(self, n) -> SelectorMatch | None:
        if n.type != "call_expression":
            return None
        type_ = self._oracle.type_at(n.child_by_field_name("function"))
        if (
            type_ is None
            or type_.symbol_kind is not SymbolKind.FUNCTION
            or type_.symbol != constants.REFLECT_FUNCTION_NAME
        ):
            return None
        if not self._arguments(n):
            return None
        return SelectorMatch(ConstructKind.REFLECT, n, (0,))

    def _match_event_bus_when(self, n) -> SelectorMatch | None:
        receiver = self._method_call(n, constants.WHEN_METHOD_NAME)
        if not self._is_component(receiver, ComponentKind.EVENT_BUS):
            return None
        args = self._arguments(n)
        if not args:
            return None
        return SelectorMatch(ConstructKind.EVENT_BUS_WHEN, n, (min(2, len(args) - 1),))

    def _match_event_bus_map(self, n) -> SelectorMatch | None:
        receiver = self._method_call(n, constants.MAP_METHOD_NAME)
        if not self._is_component(receiver, ComponentKind.EVENT_BUS_RULE):
            return None
        if len(self._arguments(n)) != 1:
            return None
        return SelectorMatch(ConstructKind.EVENT_BUS_MAP, n, (0,))

    def _match_event_bus_rule(self, n) -> SelectorMatch | None:
        if not self._constructs(n, ComponentKind.EVENT_BUS_RULE):
            return None
        args = self._arguments(n)
        if not args:
            return None
        return SelectorMatch(ConstructKind.EVENT_BUS_RULE, n, (min(3, len(args) - 1),))

    def _match_event_bus_transform(self, n) -> SelectorMatch | None:
        if not self._constructs(n, ComponentKind.EVENT_BUS_TRANSFORM):
            return None
        if not self._arguments(n):
            return None
        return SelectorMatch(ConstructKind.EVENT_BUS_TRANSFORM, n, (0,))
