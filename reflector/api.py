"""Composable API functions for the reflection pipelines.

Each function corresponds to a CLI workflow (default transform, --ir-only,
--json) but is callable programmatically without argparse.
"""

from __future__ import annotations

import logging
from typing import Optional

from tree_sitter import Node

from .boundary import LoweringResult, error_boundary
from .config import TransformConfig
from .declarations import DeclarationTypeOracle
from .ir import NodeKind
from .lowering import FunctionLowerer
from .parser import Parser, TreeSitterParserFactory
from .transform import LoweredConstruct, SourceTransformer, TransformResult
from . import constants

logger = logging.getLogger(__name__)

_FUNCTION_NODE_TYPES: frozenset[str] = frozenset(
    {
        "function_declaration",
        "function_expression",
        "function",
        "arrow_function",
        "generator_function_declaration",
    }
)


def transform_source(
    source: str,
    path: str = "",
    config: TransformConfig | None = None,
) -> TransformResult:
    """Rewrite every reflectable function in *source* into IR construction code.

    Args:
        source: The TypeScript source text.
        path: File path, used for exclusion globs and grammar selection.
        config: Transform options; defaults to ``TransformConfig()``.

    Returns:
        A TransformResult with the rewritten text and the lowered constructs.
    """
    logger.info("Transforming source %s", path or "<source>")
    return SourceTransformer(config=config).transform(source, path)


def lower_constructs(
    source: str,
    path: str = "",
    config: TransformConfig | None = None,
) -> list[LoweredConstruct]:
    """Lower the reflectable functions of *source* without keeping the rewritten text."""
    return transform_source(source, path, config).constructs


def dump_ir(
    source: str,
    path: str = "",
    config: TransformConfig | None = None,
    as_json: bool = False,
) -> str:
    """Lower the reflectable functions of *source* and return a text dump.

    Args:
        source: The TypeScript source text.
        path: File path, used for exclusion globs and grammar selection.
        config: Transform options.
        as_json: Dump each IR tree as indented JSON instead of S-expressions.

    Returns:
        One entry per lowered construct, headed by its kind and position.
    """
    lines = []
    for construct in lower_constructs(source, path, config):
        lines.append(
            f"# {construct.kind.value} slot {construct.slot} "
            f"[{construct.start_byte}:{construct.end_byte}]"
        )
        ir = construct.result.node
        lines.append(ir.to_json(indent=2) if as_json else f"  {ir}")
    return "\n".join(lines)


def _find_function_node(node: Node, name: str) -> Optional[Node]:
    """Recursively walk the AST for a function named *name* (first function if empty).

    Functions bound by ``const name = ...`` carry the declarator's name.
    """
    if node.type in _FUNCTION_NODE_TYPES:
        name_node = node.child_by_field_name("name")
        if name_node is None and node.parent is not None and node.parent.type == "variable_declarator":
            name_node = node.parent.child_by_field_name("name")
        if not name or (name_node is not None and name_node.text.decode("utf-8") == name):
            return node

    return next(
        (
            found
            for child in node.children
            if (found := _find_function_node(child, name)) is not None
        ),
        None,
    )


def lower_function_source(
    source: str,
    function_name: str = "",
    language: str = constants.LANGUAGE_TYPESCRIPT,
    prelude: bool = True,
) -> LoweringResult:
    """Lower one function of *source* directly, bypassing construct selection.

    Args:
        source: The TypeScript source text.
        function_name: Name of the function to lower; the first function
            in the file when empty.
        language: Grammar name ("typescript" or "tsx").
        prelude: Resolve runtime-library names through the bundled prelude.

    Returns:
        The LoweringResult, an Err node on failure.

    Raises:
        ValueError: If no matching function is found.
    """
    logger.info("Lowering function '%s' (%s)", function_name or "<first>", language)
    tree = Parser(TreeSitterParserFactory()).parse(source, language)
    match = _find_function_node(tree.root_node, function_name)
    if match is None:
        raise ValueError(f"Function '{function_name}' not found in source")
    lowerer = FunctionLowerer(DeclarationTypeOracle(tree, prelude=prelude), source.encode("utf-8"))
    return error_boundary(lambda: lowerer.lower_function(match, NodeKind.FUNCTION_DECL))
