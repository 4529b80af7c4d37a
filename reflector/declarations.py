"""DeclarationTypeOracle — answers type queries from declarations in the source.

A lightweight stand-in for a full type checker: it resolves names through
enclosing scopes, then the file's top level, then a bundled prelude that
declares the runtime library (``prelude.d.ts``). Classes, interfaces, inline
object types, type aliases, functions, variables, parameters and imports are
understood, with generic type arguments substituted into type parameters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib import resources

from . import constants
from .lowering import cook
from .oracle import Parameter, ResolvedType, Signature, SymbolKind, TypeOracle
from .parser import Parser, TreeSitterParserFactory

logger = logging.getLogger(__name__)

PRELUDE_RESOURCE = "prelude.d.ts"

_FUNCTION_SCOPE_TYPES: frozenset[str] = frozenset(
    {
        "function_declaration",
        "function_expression",
        "function",
        "arrow_function",
        "method_definition",
        "generator_function",
        "generator_function_declaration",
    }
)
_BLOCK_SCOPE_TYPES: frozenset[str] = frozenset({"program", "statement_block"})
_WRAPPER_STATEMENT_TYPES: frozenset[str] = frozenset(
    {"export_statement", "ambient_declaration"}
)
_MODULE_TYPES: frozenset[str] = frozenset({"module", "internal_module"})
_CLASS_TYPES: frozenset[str] = frozenset(
    {"class_declaration", "abstract_class_declaration", "class"}
)
_MEMBER_TYPES: frozenset[str] = frozenset(
    {
        "public_field_definition",
        "property_signature",
        "method_definition",
        "method_signature",
        "abstract_method_signature",
    }
)
_METHOD_TYPES: frozenset[str] = frozenset(
    {"method_definition", "method_signature", "abstract_method_signature"}
)
_UNWRAP_EXPRESSION_TYPES: frozenset[str] = frozenset(
    {"parenthesized_expression", "non_null_expression"}
)
_ARRAY_GENERIC_NAMES: frozenset[str] = frozenset({"Array", "ReadonlyArray"})


def _text(node) -> str:
    return node.text.decode("utf-8")


def _has_token(node, token: str) -> bool:
    return any(not c.is_named and c.type == token for c in node.children)


@dataclass
class _TypeDecl:
    """A class, interface or inline object type and its members."""

    name: str
    node: object
    is_class: bool
    type_params: list[str] = field(default_factory=list)
    static_members: dict[str, object] = field(default_factory=dict)
    instance_members: dict[str, object] = field(default_factory=dict)
    call_signatures: list[object] = field(default_factory=list)
    constructor: object = None
    bases: list[object] = field(default_factory=list)


@dataclass(frozen=True)
class _Binding:
    """What a name resolves to: ``kind`` is param/var/function/class/type/alias/import."""

    kind: str
    node: object
    imported_name: str = ""
    module: str = ""


@dataclass(frozen=True)
class _TypeOrigin:
    decl: _TypeDecl
    bindings: tuple[tuple[str, ResolvedType], ...] = ()


@dataclass(frozen=True)
class _ArrayOrigin:
    element: object
    bindings: tuple[tuple[str, ResolvedType], ...] = ()


@dataclass(frozen=True)
class _FunctionOrigin:
    parameters: object
    return_type: object
    bindings: tuple[tuple[str, ResolvedType], ...] = ()


class DeclarationTypeOracle(TypeOracle):
    """Type oracle backed by the declarations visible in a tree-sitter tree."""

    def __init__(
        self,
        tree,
        prelude: bool = True,
        prelude_tree=None,
        module: str = constants.DEFAULT_RUNTIME_MODULE,
    ):
        self.tree = tree
        self.module = module
        self._prelude_root = None
        if prelude:
            self._prelude_root = (prelude_tree or load_prelude_tree()).root_node
        self._resolving: set[tuple[int, int]] = set()

    # ── scope lookup ─────────────────────────────────────────────

    def _lookup(self, name: str, node, namespace: str = "value") -> _Binding | None:
        """Find the declaration *name* refers to as seen from *node*."""
        cur = node.parent
        while cur is not None:
            if cur.type in _FUNCTION_SCOPE_TYPES and namespace == "value":
                binding = self._lookup_parameter(name, cur)
                if binding is not None:
                    return binding
            if cur.type in _BLOCK_SCOPE_TYPES:
                binding = self._lookup_in_statements(name, cur.children, namespace)
                if binding is not None:
                    return binding
            if cur.type == "catch_clause" and namespace == "value":
                param = cur.child_by_field_name("parameter")
                if param is not None and _text(param) == name:
                    return _Binding("untyped", param)
            if cur.type == "for_in_statement" and namespace == "value":
                left = cur.child_by_field_name("left")
                if left is not None and left.type == "identifier" and _text(left) == name:
                    return _Binding("untyped", left)
            cur = cur.parent
        if self._prelude_root is not None:
            return self._lookup_in_statements(name, self._prelude_root.children, namespace)
        return None

    def _lookup_parameter(self, name: str, func) -> _Binding | None:
        single = func.child_by_field_name("parameter")
        if single is not None:
            return _Binding("untyped", single) if _text(single) == name else None
        params = func.child_by_field_name("parameters")
        if params is None:
            return None
        for param in params.children:
            if param.type not in ("required_parameter", "optional_parameter"):
                continue
            pattern = param.child_by_field_name("pattern")
            if pattern is not None and pattern.type == "rest_pattern":
                pattern = next((c for c in pattern.children if c.is_named), None)
            if pattern is not None and _text(pattern) == name:
                return _Binding("param", param)
        return None

    def _lookup_in_statements(self, name: str, statements, namespace: str) -> _Binding | None:
        for stmt in statements:
            binding = self._declared_binding(name, stmt, namespace)
            if binding is not None:
                return binding
        return None

    def _declared_binding(self, name: str, stmt, namespace: str) -> _Binding | None:
        if stmt.type in _WRAPPER_STATEMENT_TYPES:
            return self._lookup_in_statements(
                name, [c for c in stmt.children if c.is_named], namespace
            )
        if stmt.type in _MODULE_TYPES:
            body = stmt.child_by_field_name("body")
            if body is not None:
                return self._lookup_in_statements(name, body.children, namespace)
            return None
        if stmt.type == "import_statement":
            return self._import_binding(name, stmt)
        name_node = stmt.child_by_field_name("name")
        declared = _text(name_node) if name_node is not None else None
        if namespace == "value":
            if stmt.type in ("lexical_declaration", "variable_declaration"):
                for declarator in stmt.children:
                    if declarator.type != "variable_declarator":
                        continue
                    var_name = declarator.child_by_field_name("name")
                    if var_name is not None and _text(var_name) == name:
                        return _Binding("var", declarator)
                return None
            if stmt.type in ("function_declaration", "function_signature") and declared == name:
                return _Binding("function", stmt)
            if stmt.type in _CLASS_TYPES and declared == name:
                return _Binding("class", stmt)
            return None
        if stmt.type in _CLASS_TYPES and declared == name:
            return _Binding("type", stmt)
        if stmt.type == "interface_declaration" and declared == name:
            return _Binding("type", stmt)
        if stmt.type == "type_alias_declaration" and declared == name:
            return _Binding("alias", stmt)
        return None

    def _import_binding(self, name: str, stmt) -> _Binding | None:
        clause = next((c for c in stmt.children if c.type == "import_clause"), None)
        source = stmt.child_by_field_name("source")
        if clause is None or source is None:
            return None
        module = cook(_text(source)[1:-1])
        for child in clause.children:
            if child.type == "identifier" and _text(child) == name:
                return _Binding("import", child, name, module)
            if child.type != "named_imports":
                continue
            for spec in child.children:
                if spec.type != "import_specifier":
                    continue
                imported = spec.child_by_field_name("name")
                alias = spec.child_by_field_name("alias")
                local = alias if alias is not None else imported
                if local is not None and _text(local) == name:
                    return _Binding("import", spec, _text(imported), module)
        return None

    def _is_runtime_module(self, module: str) -> bool:
        return module == self.module or module.startswith(self.module + "/")

    def _resolve_import(self, binding: _Binding, namespace: str) -> _Binding | None:
        if self._prelude_root is None or not self._is_runtime_module(binding.module):
            return None
        return self._lookup_in_statements(
            binding.imported_name, self._prelude_root.children, namespace
        )

    # ── type nodes → resolved types ──────────────────────────────

    def _resolve_type_node(self, tn, bindings: dict[str, ResolvedType]) -> ResolvedType | None:
        if tn is None:
            return None
        if tn.type in (
            "type_annotation",
            "parenthesized_type",
            "opting_type_annotation",
            "readonly_type",
        ):
            inner = next((c for c in tn.children if c.is_named), None)
            return self._resolve_type_node(inner, bindings)
        if tn.type == "predefined_type":
            return ResolvedType(_text(tn), symbol_kind=SymbolKind.PRIMITIVE)
        if tn.type == "literal_type":
            inner = next((c for c in tn.children if c.is_named), None)
            if inner is not None and inner.type == "string":
                return ResolvedType(
                    _text(tn), literal=cook(_text(inner)[1:-1]), symbol_kind=SymbolKind.PRIMITIVE
                )
            return ResolvedType(_text(tn), symbol_kind=SymbolKind.PRIMITIVE)
        if tn.type in ("type_identifier", "nested_type_identifier"):
            name = _text(tn).split(".")[-1]
            if name in bindings:
                return bindings[name]
            return self._named_type(name, tn, [], bindings, _text(tn))
        if tn.type == "generic_type":
            name_node = tn.child_by_field_name("name")
            args_node = tn.child_by_field_name("type_arguments")
            args = [c for c in args_node.children if c.is_named] if args_node else []
            name = _text(name_node).split(".")[-1]
            if name in _ARRAY_GENERIC_NAMES and len(args) == 1:
                return self._array_type(tn, args[0], bindings)
            return self._named_type(name, tn, args, bindings, _text(tn))
        if tn.type == "array_type":
            element = next((c for c in tn.children if c.is_named), None)
            return self._array_type(tn, element, bindings)
        if tn.type == "function_type":
            return ResolvedType(
                _text(tn),
                symbol_kind=SymbolKind.FUNCTION,
                origin=_FunctionOrigin(
                    tn.child_by_field_name("parameters"),
                    tn.child_by_field_name("return_type"),
                    tuple(bindings.items()),
                ),
            )
        if tn.type == "object_type":
            decl = self._build_type_decl("", tn, is_class=False, body=tn)
            return ResolvedType(
                _text(tn),
                symbol_kind=SymbolKind.INSTANCE,
                origin=_TypeOrigin(decl, tuple(bindings.items())),
            )
        return ResolvedType(_text(tn))

    def _array_type(self, tn, element, bindings: dict[str, ResolvedType]) -> ResolvedType:
        return ResolvedType(
            _text(tn),
            symbol_kind=SymbolKind.INSTANCE,
            origin=_ArrayOrigin(element, tuple(bindings.items())),
        )

    def _named_type(self, name, tn, args, bindings, text) -> ResolvedType:
        binding = self._lookup(name, tn, namespace="type")
        if binding is not None and binding.kind == "import":
            binding = self._resolve_import(binding, "type")
        if binding is None:
            return ResolvedType(text)
        if binding.kind == "alias":
            return self._resolve_type_node(binding.node.child_by_field_name("value"), bindings) or (
                ResolvedType(text)
            )
        decl = self._type_decl(binding.node)
        arg_types = [self._resolve_type_node(a, bindings) or ResolvedType(_text(a)) for a in args]
        return ResolvedType(
            text,
            symbol=decl.name,
            symbol_kind=SymbolKind.INSTANCE,
            origin=_TypeOrigin(decl, tuple(zip(decl.type_params, arg_types))),
        )

    def _type_decl(self, node) -> _TypeDecl:
        name_node = node.child_by_field_name("name")
        is_class = node.type in _CLASS_TYPES
        return self._build_type_decl(
            _text(name_node) if name_node is not None else "",
            node,
            is_class=is_class,
            body=node.child_by_field_name("body"),
        )

    def _build_type_decl(self, name: str, node, is_class: bool, body) -> _TypeDecl:
        decl = _TypeDecl(name=name, node=node, is_class=is_class)
        type_params = node.child_by_field_name("type_parameters")
        if type_params is not None:
            for param in type_params.children:
                if param.type == "type_parameter":
                    param_name = param.child_by_field_name("name")
                    decl.type_params.append(_text(param_name))
        for child in node.children:
            if child.type == "class_heritage":
                decl.bases.extend(c for c in child.children if c.type == "extends_clause")
            elif child.type == "extends_type_clause":
                decl.bases.extend(c for c in child.children if c.is_named)
        if body is None:
            return decl
        for member in body.children:
            if member.type == "call_signature":
                decl.call_signatures.append(member)
                continue
            if member.type not in _MEMBER_TYPES:
                continue
            member_name = member.child_by_field_name("name")
            if member_name is None:
                continue
            key = _text(member_name)
            if key == "constructor" and member.type in _METHOD_TYPES:
                decl.constructor = member
            elif _has_token(member, "static"):
                decl.static_members[key] = member
            else:
                decl.instance_members[key] = member
        return decl

    def _base_types(self, decl: _TypeDecl, bindings: dict[str, ResolvedType]) -> list[ResolvedType]:
        """Resolved instance types of the declarations *decl* extends."""
        bases = []
        for base in decl.bases:
            if base.type == "extends_clause":
                value = base.child_by_field_name("value")
                args_node = base.child_by_field_name("type_arguments")
                if value is None:
                    continue
                binding = self._lookup(_text(value).split(".")[-1], value, namespace="type")
                if binding is not None and binding.kind == "import":
                    binding = self._resolve_import(binding, "type")
                if binding is None or binding.kind != "type":
                    continue
                base_decl = self._type_decl(binding.node)
                args = [c for c in args_node.children if c.is_named] if args_node else []
                arg_types = [
                    self._resolve_type_node(a, bindings) or ResolvedType(_text(a)) for a in args
                ]
                bases.append(
                    ResolvedType(
                        _text(value),
                        symbol=base_decl.name,
                        symbol_kind=SymbolKind.INSTANCE,
                        origin=_TypeOrigin(base_decl, tuple(zip(base_decl.type_params, arg_types))),
                    )
                )
            else:
                resolved = self._resolve_type_node(base, bindings)
                if resolved is not None and isinstance(resolved.origin, _TypeOrigin):
                    bases.append(resolved)
        return bases

    def _member_type(self, member, bindings: dict[str, ResolvedType]) -> ResolvedType | None:
        if member.type in _METHOD_TYPES:
            return ResolvedType(
                _text(member),
                symbol=_text(member.child_by_field_name("name")),
                symbol_kind=SymbolKind.FUNCTION,
                origin=_FunctionOrigin(
                    member.child_by_field_name("parameters"),
                    member.child_by_field_name("return_type"),
                    tuple(bindings.items()),
                ),
            )
        type_node = member.child_by_field_name("type")
        if type_node is not None:
            return self._resolve_type_node(type_node, bindings)
        value = member.child_by_field_name("value")
        if value is not None:
            return self.type_at(value)
        return None

    # ── declarations → resolved types ────────────────────────────

    def _binding_type(self, binding: _Binding) -> ResolvedType | None:
        if binding.kind == "param":
            return self._resolve_type_node(binding.node.child_by_field_name("type"), {})
        if binding.kind == "var":
            type_node = binding.node.child_by_field_name("type")
            if type_node is not None:
                return self._resolve_type_node(type_node, {})
            value = binding.node.child_by_field_name("value")
            if value is None:
                return None
            key = (value.start_byte, value.end_byte)
            if key in self._resolving:
                return None
            self._resolving.add(key)
            try:
                return self.type_at(value)
            finally:
                self._resolving.discard(key)
        if binding.kind == "function":
            name_node = binding.node.child_by_field_name("name")
            return ResolvedType(
                f"typeof {_text(name_node)}",
                symbol=_text(name_node),
                symbol_kind=SymbolKind.FUNCTION,
                origin=_FunctionOrigin(
                    binding.node.child_by_field_name("parameters"),
                    binding.node.child_by_field_name("return_type"),
                ),
            )
        if binding.kind == "class":
            decl = self._type_decl(binding.node)
            return ResolvedType(
                f"typeof {decl.name}",
                symbol=decl.name,
                symbol_kind=SymbolKind.CLASS,
                origin=_TypeOrigin(decl),
            )
        if binding.kind == "import":
            resolved = self._resolve_import(binding, "value")
            return self._binding_type(resolved) if resolved is not None else None
        return None

    # ── TypeOracle ───────────────────────────────────────────────

    def type_at(self, node) -> ResolvedType | None:
        if node is None:
            return None
        ntype = node.type
        if ntype in ("identifier", "shorthand_property_identifier"):
            binding = self._lookup(_text(node), node)
            return self._binding_type(binding) if binding is not None else None
        if ntype == "this":
            return self._this_type(node)
        if ntype == "member_expression":
            obj_type = self.type_at(node.child_by_field_name("object"))
            prop = node.child_by_field_name("property")
            if obj_type is None or prop is None:
                return None
            return self.property_type(obj_type, _text(prop))
        if ntype == "subscript_expression":
            obj_type = self.type_at(node.child_by_field_name("object"))
            index = node.child_by_field_name("index")
            if obj_type is None or index is None:
                return None
            if isinstance(obj_type.origin, _ArrayOrigin) and index.type != "string":
                origin = obj_type.origin
                return self._resolve_type_node(origin.element, dict(origin.bindings))
            if index.type != "string":
                return None
            return self.property_type(obj_type, cook(_text(index)[1:-1]))
        if ntype == "new_expression":
            return self._instance_type(node)
        if ntype == "call_expression":
            return self._return_type(node)
        if ntype in _UNWRAP_EXPRESSION_TYPES:
            inner = next((c for c in node.children if c.is_named), None)
            return self.type_at(inner)
        if ntype in ("as_expression", "satisfies_expression"):
            type_node = next((c for c in reversed(node.children) if c.is_named), None)
            return self._resolve_type_node(type_node, {})
        if ntype == "type_assertion":
            # <T>x
            type_args = node.children[0]
            type_node = next((c for c in type_args.children if c.is_named), None)
            return self._resolve_type_node(type_node, {})
        if ntype == "string":
            return ResolvedType("string", literal=cook(_text(node)[1:-1]), symbol_kind=SymbolKind.PRIMITIVE)
        if ntype == "template_string":
            return ResolvedType("string", symbol_kind=SymbolKind.PRIMITIVE)
        if ntype == "number":
            return ResolvedType("number", symbol_kind=SymbolKind.PRIMITIVE)
        if ntype in ("true", "false"):
            return ResolvedType("boolean", symbol_kind=SymbolKind.PRIMITIVE)
        if ntype in ("arrow_function", "function_expression", "function"):
            return ResolvedType(
                _text(node),
                symbol_kind=SymbolKind.FUNCTION,
                origin=_FunctionOrigin(
                    node.child_by_field_name("parameters") or node.child_by_field_name("parameter"),
                    node.child_by_field_name("return_type"),
                ),
            )
        return None

    def _this_type(self, node) -> ResolvedType | None:
        cur = node.parent
        while cur is not None:
            if cur.type in _CLASS_TYPES:
                decl = self._type_decl(cur)
                return ResolvedType(
                    decl.name, symbol=decl.name, symbol_kind=SymbolKind.INSTANCE, origin=_TypeOrigin(decl)
                )
            if cur.type in ("function_declaration", "function_expression", "function"):
                return None
            cur = cur.parent
        return None

    def _instance_type(self, node) -> ResolvedType | None:
        ctor_type = self.type_at(node.child_by_field_name("constructor"))
        if ctor_type is None or ctor_type.symbol_kind is not SymbolKind.CLASS:
            return None
        decl = ctor_type.origin.decl
        args_node = node.child_by_field_name("type_arguments")
        args = [c for c in args_node.children if c.is_named] if args_node else []
        arg_types = [self._resolve_type_node(a, {}) or ResolvedType(_text(a)) for a in args]
        text = decl.name + (_text(args_node) if args_node is not None else "")
        return ResolvedType(
            text,
            symbol=decl.name,
            symbol_kind=SymbolKind.INSTANCE,
            origin=_TypeOrigin(decl, tuple(zip(decl.type_params, arg_types))),
        )

    def _return_type(self, node) -> ResolvedType | None:
        callee_type = self.type_at(node.child_by_field_name("function"))
        if callee_type is None or not isinstance(callee_type.origin, _FunctionOrigin):
            return None
        origin = callee_type.origin
        return self._resolve_type_node(origin.return_type, dict(origin.bindings))

    def property_type(self, type_: ResolvedType, name: str) -> ResolvedType | None:
        origin = type_.origin
        if not isinstance(origin, _TypeOrigin):
            return None
        bindings = dict(origin.bindings)
        if type_.symbol_kind is SymbolKind.CLASS:
            member = origin.decl.static_members.get(name)
            if member is not None:
                return self._member_type(member, bindings)
            for base in self._base_types(origin.decl, bindings):
                static = ResolvedType(
                    f"typeof {base.symbol}",
                    symbol=base.symbol,
                    symbol_kind=SymbolKind.CLASS,
                    origin=base.origin,
                )
                found = self.property_type(static, name)
                if found is not None:
                    return found
            return None
        member = origin.decl.instance_members.get(name)
        if member is not None:
            return self._member_type(member, bindings)
        for base in self._base_types(origin.decl, bindings):
            found = self.property_type(base, name)
            if found is not None:
                return found
        return None

    def resolved_signature(self, invocation) -> Signature | None:
        if invocation.type == "new_expression":
            ctor_type = self.type_at(invocation.child_by_field_name("constructor"))
            if ctor_type is None or ctor_type.symbol_kind is not SymbolKind.CLASS:
                return None
            return self._constructor_signature(ctor_type)
        callee_type = self.type_at(invocation.child_by_field_name("function"))
        if callee_type is None:
            return None
        signatures = self.signatures_of(callee_type)
        return signatures[0] if signatures else None

    def _constructor_signature(self, ctor_type: ResolvedType) -> Signature | None:
        decl = ctor_type.origin.decl
        if decl.constructor is not None:
            return self._signature(decl.constructor.child_by_field_name("parameters"))
        for base in self._base_types(decl, dict(ctor_type.origin.bindings)):
            found = self._constructor_signature(
                ResolvedType(base.text, symbol_kind=SymbolKind.CLASS, origin=base.origin)
            )
            if found is not None:
                return found
        return None

    def signatures_of(self, type_: ResolvedType) -> list[Signature]:
        origin = type_.origin
        if isinstance(origin, _FunctionOrigin):
            return [self._signature(origin.parameters)]
        if isinstance(origin, _TypeOrigin) and type_.symbol_kind is SymbolKind.INSTANCE:
            signatures = [
                self._signature(sig.child_by_field_name("parameters"))
                for sig in origin.decl.call_signatures
            ]
            for base in self._base_types(origin.decl, dict(origin.bindings)):
                signatures.extend(self.signatures_of(base))
            return signatures
        return []

    def _signature(self, params_node) -> Signature:
        if params_node is None:
            return Signature()
        if params_node.type == "identifier":
            return Signature((Parameter(_text(params_node)),), origin=params_node)
        parameters = []
        for param in params_node.children:
            if param.type not in ("required_parameter", "optional_parameter"):
                continue
            pattern = param.child_by_field_name("pattern")
            if pattern is None or pattern.type == "this":
                continue
            if pattern.type == "rest_pattern":
                inner = next((c for c in pattern.children if c.is_named), pattern)
                parameters.append(Parameter(_text(inner), rest=True))
            else:
                parameters.append(Parameter(_text(pattern)))
        return Signature(tuple(parameters), origin=params_node)


def load_prelude_tree():
    """Parse the bundled declarations of the runtime library."""
    source = resources.files(__package__).joinpath(PRELUDE_RESOURCE).read_text(encoding="utf-8")
    logger.debug("Parsing prelude (%d bytes)", len(source))
    return Parser(TreeSitterParserFactory()).parse(source)
