"""Renders IR trees as TypeScript code that reconstructs them at runtime."""

from __future__ import annotations

import json
from typing import Any

from . import constants
from .ir import LITERAL_KINDS, IRNode, NodeKind


def emit_construction(ir: IRNode, namespace: str = constants.DEFAULT_NAMESPACE) -> str:
    """Return ``new <namespace>.<Kind>(...)`` code that rebuilds *ir*."""
    if ir.kind in LITERAL_KINDS:
        return f"new {namespace}.{ir.kind.value}({ir.children[0]})"
    if ir.kind == NodeKind.REFERENCE_EXPR:
        path, original = ir.children
        return f"new {namespace}.{ir.kind.value}({json.dumps(path)}, () => {original})"
    if ir.kind == NodeKind.ERR:
        name, message = ir.children
        error = f"Object.assign(new Error({json.dumps(message)}), {{ name: {json.dumps(name)} }})"
        return f"new {namespace}.{ir.kind.value}({error})"
    args = ", ".join(_emit_child(c, namespace) for c in ir.children)
    return f"new {namespace}.{ir.kind.value}({args})"


def _emit_child(child: Any, namespace: str) -> str:
    if isinstance(child, IRNode):
        return emit_construction(child, namespace)
    if isinstance(child, tuple):
        return "[" + ", ".join(_emit_child(c, namespace) for c in child) + "]"
    if child is None:
        return constants.UNDEFINED_TYPE_MARKER
    return json.dumps(child)
