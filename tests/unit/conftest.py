"""Shared helpers for the lowering-engine unit tests."""

from __future__ import annotations

import tree_sitter_language_pack

from reflector.oracle import Parameter, ResolvedType, Signature, SymbolKind, TypeOracle


def parse_ts(source: str):
    """Parse *source* as TypeScript; returns (tree, source_bytes)."""
    parser = tree_sitter_language_pack.get_parser("typescript")
    source_bytes = source.encode("utf-8")
    return parser.parse(source_bytes), source_bytes


def find_first(node, node_type: str):
    """First node of *node_type* in a depth-first walk, or None."""
    if node.type == node_type:
        return node
    for child in node.children:
        found = find_first(child, node_type)
        if found is not None:
            return found
    return None


def find_all(node, node_type: str) -> list:
    found = [node] if node.type == node_type else []
    for child in node.children:
        found.extend(find_all(child, node_type))
    return found


def text_of(node) -> str:
    return node.text.decode("utf-8")


def resource_type(kind: str) -> ResolvedType:
    """An instance type whose ``kind`` property is the literal *kind*."""
    return ResolvedType(kind, symbol=kind, symbol_kind=SymbolKind.INSTANCE)


class FakeOracle(TypeOracle):
    """Table-driven oracle keyed on node source text.

    ``types`` maps expression text to a ResolvedType; ``properties`` maps
    (type text, property name) to a ResolvedType; ``signatures`` maps the
    text of a call/new expression to its resolved Signature; ``declared``
    maps a type's text to its call signatures.
    """

    def __init__(self, types=None, properties=None, signatures=None, declared=None):
        self.types = types or {}
        self.properties = properties or {}
        self.signatures = signatures or {}
        self.declared = declared or {}

    def type_at(self, node):
        if node is None:
            return None
        return self.types.get(text_of(node))

    def property_type(self, type_, name):
        return self.properties.get((type_.text, name))

    def resolved_signature(self, invocation):
        return self.signatures.get(text_of(invocation))

    def signatures_of(self, type_):
        return list(self.declared.get(type_.text, []))

    @classmethod
    def with_resources(cls, **names_to_kinds: str) -> FakeOracle:
        """Oracle where each keyword name is typed as a resource of the given kind."""
        oracle = cls()
        for name, kind in names_to_kinds.items():
            oracle.types[name] = resource_type(kind)
            oracle.properties[(kind, "kind")] = ResolvedType(f'"{kind}"', literal=kind)
        return oracle


def signature(*names: str, rest: str = "") -> Signature:
    params = [Parameter(n) for n in names]
    if rest:
        params.append(Parameter(rest, rest=True))
    return Signature(tuple(params))
