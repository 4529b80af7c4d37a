"""Reference Resolver — decides whether an expression is a live resource handle."""

from __future__ import annotations

import logging

from . import constants
from .ir import IRNode, NodeKind, node
from .oracle import TypeOracle

logger = logging.getLogger(__name__)


class ReferenceResolver:
    """Lowers expressions typed as externally-managed resources to ReferenceExpr."""

    def __init__(self, oracle: TypeOracle, source: bytes):
        self._oracle = oracle
        self._source = source

    def _node_text(self, n) -> str:
        return self._source[n.start_byte : n.end_byte].decode("utf-8")

    def reference_kind(self, n) -> str | None:
        """The resource kind carried by the type of *n*, if it is referenceable."""
        kind = self._oracle.literal_property(n, constants.REFERENCE_KIND_PROPERTY)
        if kind in constants.REFERENCE_KINDS:
            return kind
        return None

    def resolve(self, n) -> IRNode | None:
        kind = self.reference_kind(n)
        if kind is None:
            return None
        path = self.access_path(n)
        logger.debug("Reference to %s resource: %r", kind, path)
        return node(NodeKind.REFERENCE_EXPR, path, self._node_text(n))

    def access_path(self, n) -> str:
        """Rebuild ``a.b[c]`` style paths; empty string for any other shape."""
        if n.type in ("identifier", "shorthand_property_identifier", "property_identifier", "this"):
            return self._node_text(n)
        if n.type == "member_expression":
            obj = n.child_by_field_name("object")
            prop = n.child_by_field_name("property")
            if obj is None or prop is None:
                return ""
            return f"{self.access_path(obj)}.{self._node_text(prop)}"
        if n.type == "subscript_expression":
            obj = n.child_by_field_name("object")
            index = n.child_by_field_name("index")
            if obj is None or index is None:
                return ""
            return f"{self.access_path(obj)}[{self.access_path(index)}]"
        return ""
