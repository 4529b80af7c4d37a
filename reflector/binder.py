"""Call/Constructor Argument Binder — maps supplied arguments onto parameters."""

from __future__ import annotations

import logging
from typing import Callable

from . import constants
from .errors import MultipleSignaturesError
from .ir import IRNode, NodeKind, node
from .oracle import Signature, TypeOracle

logger = logging.getLogger(__name__)

_INVOCATION_CALLEE_FIELD: dict[str, str] = {
    "call_expression": "function",
    "new_expression": "constructor",
}


class ArgumentBinder:
    """Builds ``CallExpr``/``NewExpr`` nodes with one ``Argument`` per parameter."""

    def __init__(
        self,
        oracle: TypeOracle,
        source: bytes,
        lower_expr: Callable[[object], IRNode],
    ):
        self._oracle = oracle
        self._source = source
        self._lower_expr = lower_expr

    def _node_text(self, n) -> str:
        return self._source[n.start_byte : n.end_byte].decode("utf-8")

    def callee(self, invocation):
        return invocation.child_by_field_name(_INVOCATION_CALLEE_FIELD[invocation.type])

    def arguments(self, invocation) -> list:
        args_node = invocation.child_by_field_name("arguments")
        if args_node is None:
            return []
        return [c for c in args_node.children if c.is_named and c.type != "comment"]

    def resolve_signature(self, invocation) -> Signature | None:
        callee = self.callee(invocation)
        callee_type = self._oracle.type_at(callee) if callee is not None else None
        brand = (
            self._oracle.property_type(callee_type, constants.CALLABLE_BRAND_PROPERTY)
            if callee_type is not None
            else None
        )
        if brand is not None:
            signatures = self._oracle.signatures_of(brand)
            if len(signatures) != 1:
                raise MultipleSignaturesError(self._node_text(invocation), len(signatures))
            return signatures[0]
        return self._oracle.resolved_signature(invocation)

    def bind(self, invocation) -> IRNode:
        callee = self.callee(invocation)
        callee_ir = self._lower_expr(callee)
        args = self.arguments(invocation)
        signature = self.resolve_signature(invocation)

        if signature is not None and signature.parameters:
            kind = (
                NodeKind.CALL_EXPR
                if invocation.type == "call_expression"
                else NodeKind.NEW_EXPR
            )
            bound = []
            for i, parameter in enumerate(signature.parameters):
                if parameter.rest:
                    value = node(
                        NodeKind.ARRAY_LITERAL_EXPR,
                        tuple(self._lower_expr(a) for a in args[i:]),
                    )
                elif i < len(args):
                    value = self._lower_expr(args[i])
                else:
                    value = node(NodeKind.UNDEFINED_LITERAL_EXPR)
                bound.append(node(NodeKind.ARGUMENT, value, parameter.name or None))
            logger.debug(
                "Bound %d argument(s) to %d parameter(s) of %s",
                len(args),
                len(signature.parameters),
                self._node_text(callee),
            )
            return node(kind, callee_ir, tuple(bound))

        return node(
            NodeKind.CALL_EXPR,
            callee_ir,
            tuple(node(NodeKind.ARGUMENT, self._lower_expr(a), None) for a in args),
        )
