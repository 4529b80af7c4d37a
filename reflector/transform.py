"""Source Transformer — rewrites reflectable functions in a file into IR construction code."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from .boundary import LoweringResult, error_boundary
from .config import TransformConfig
from .declarations import DeclarationTypeOracle
from .emit import emit_construction
from .ir import NodeKind
from .lowering import FunctionLowerer
from .oracle import TypeOracle
from .parser import Parser, TreeSitterParserFactory, language_for_path
from .selector import ConstructKind, ConstructSelector

logger = logging.getLogger(__name__)

_NAME_NODE_TYPES: frozenset[str] = frozenset(
    {
        "identifier",
        "type_identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
    }
)

OracleFactory = Callable[[object], TypeOracle]


@dataclass(frozen=True)
class LoweredConstruct:
    """One argument slot that was lowered and replaced."""

    kind: ConstructKind
    slot: int
    start_byte: int
    end_byte: int
    result: LoweringResult


@dataclass(frozen=True)
class TransformResult:
    text: str
    constructs: list[LoweredConstruct] = field(default_factory=list)
    excluded: bool = False
    namespace: str = ""


class SourceTransformer:
    """Walks a parsed file, lowers every selected function slot and splices
    the emitted construction code back into the source text.

    ``oracle_factory`` receives the parsed tree and returns the
    ``TypeOracle`` used for that file; by default a
    ``DeclarationTypeOracle`` is built over the file and the prelude.
    """

    def __init__(
        self,
        oracle_factory: OracleFactory | None = None,
        config: TransformConfig | None = None,
        parser: Parser | None = None,
    ):
        self._config = config or TransformConfig()
        self._oracle_factory = oracle_factory or (
            lambda tree: DeclarationTypeOracle(
                tree, prelude=self._config.prelude, module=self._config.module
            )
        )
        self._parser = parser or Parser(TreeSitterParserFactory())

    def transform(self, source: str, path: str = "") -> TransformResult:
        if self._config.is_excluded(path):
            logger.info("Skipping excluded file %s", path)
            return TransformResult(text=source, excluded=True)

        language = self._config.language or language_for_path(path)
        tree = self._parser.parse(source, language)
        source_bytes = source.encode("utf-8")
        oracle = self._oracle_factory(tree)
        selector = ConstructSelector(oracle, source_bytes)
        lowerer = FunctionLowerer(oracle, source_bytes)
        namespace = self._unique_namespace(tree.root_node)

        edits: list[tuple[int, int, str]] = []
        constructs: list[LoweredConstruct] = []
        self._visit(tree.root_node, selector, lowerer, namespace, edits, constructs, set())

        body = self._splice(source_bytes, edits)
        text = self._prepend_import(body, namespace)
        logger.info(
            "Transformed %s: %d construct(s), %d failed",
            path or "<source>",
            len(constructs),
            sum(1 for c in constructs if not c.result.ok),
        )
        return TransformResult(text=text, constructs=constructs, namespace=namespace)

    # ── walk ─────────────────────────────────────────────────────

    def _visit(self, n, selector, lowerer, namespace, edits, constructs, replaced) -> None:
        if (n.start_byte, n.end_byte, n.type) in replaced:
            return
        match = selector.match(n)
        if match is not None:
            args_node = n.child_by_field_name("arguments")
            args = [c for c in args_node.children if c.is_named and c.type != "comment"]
            for slot in match.slots:
                arg = args[slot]
                result = error_boundary(
                    lambda arg=arg: lowerer.lower_function(
                        arg, NodeKind.FUNCTION_DECL, match.drop_args
                    )
                )
                constructs.append(
                    LoweredConstruct(match.kind, slot, arg.start_byte, arg.end_byte, result)
                )
                edits.append(
                    (arg.start_byte, arg.end_byte, emit_construction(result.node, namespace))
                )
                replaced.add((arg.start_byte, arg.end_byte, arg.type))
        for child in n.children:
            self._visit(child, selector, lowerer, namespace, edits, constructs, replaced)

    # ── output ───────────────────────────────────────────────────

    def _splice(self, source: bytes, edits: list[tuple[int, int, str]]) -> str:
        out = source
        for start, end, replacement in sorted(edits, reverse=True):
            out = out[:start] + replacement.encode("utf-8") + out[end:]
        return out.decode("utf-8")

    def _unique_namespace(self, root) -> str:
        used: set[str] = set()
        stack = [root]
        while stack:
            cur = stack.pop()
            if cur.type in _NAME_NODE_TYPES:
                used.add(cur.text.decode("utf-8"))
            stack.extend(cur.children)
        base = self._config.namespace
        candidate = base
        suffix = 1
        while candidate in used:
            candidate = f"{base}_{suffix}"
            suffix += 1
        return candidate

    def _prepend_import(self, body: str, namespace: str) -> str:
        statement = f'import * as {namespace} from "{self._config.module}";\n'
        if body.startswith("#!"):
            first_line, sep, rest = body.partition("\n")
            return first_line + sep + statement + rest
        return statement + body
