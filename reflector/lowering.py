"""FunctionLowerer — tree-sitter TypeScript function AST → IR tree lowering."""

from __future__ import annotations

import logging
import re
from typing import Callable

from .binder import ArgumentBinder
from .errors import (
    DeclarationOnlyFunctionError,
    UnsupportedConstructError,
    UnsupportedOperatorError,
)
from .ir import IRNode, NodeKind, block, node, string_literal
from .operators import binary_operator, unary_operator
from .oracle import TypeOracle
from .references import ReferenceResolver

logger = logging.getLogger(__name__)

_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])"
)

_SIMPLE_ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
    "\n": "",
    "\r\n": "",
    "\u2028": "",
    "\u2029": "",
}


def _cook_escape(match: re.Match) -> str:
    seq = match.group(1)
    if seq in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[seq]
    if seq.startswith("u{"):
        return chr(int(seq[2:-1], 16))
    if seq[0] in "ux" and len(seq) > 1:
        return chr(int(seq[1:], 16))
    return seq


def cook(raw: str) -> str:
    """Resolve escape sequences in raw string/template text."""
    return _ESCAPE_RE.sub(_cook_escape, raw)


class FunctionLowerer:
    """Lowers function-shaped TypeScript nodes into IR trees.

    Statements and expressions are dispatched through ``_STMT_DISPATCH`` and
    ``_EXPR_DISPATCH``; any node type missing from the tables is outside the
    supported grammar and raises ``UnsupportedConstructError``.
    """

    FUNCTION_NODE_TYPES: frozenset[str] = frozenset(
        {"function_declaration", "function_expression", "function", "arrow_function"}
    )
    GENERATOR_NODE_TYPES: frozenset[str] = frozenset(
        {"generator_function", "generator_function_declaration"}
    )
    PARAMETER_NODE_TYPES: frozenset[str] = frozenset(
        {
            "required_parameter",
            "optional_parameter",
            "identifier",
            "assignment_pattern",
            "rest_pattern",
            "object_pattern",
            "array_pattern",
        }
    )
    COMMENT_TYPES: frozenset[str] = frozenset({"comment"})

    def __init__(self, oracle: TypeOracle, source: bytes):
        self._oracle = oracle
        self._source = source
        self._references = ReferenceResolver(oracle, source)
        self._binder = ArgumentBinder(oracle, source, self.lower_expression)
        self._STMT_DISPATCH: dict[str, Callable[..., IRNode]] = {
            "expression_statement": self._lower_expression_statement,
            "lexical_declaration": self._lower_var_declaration,
            "variable_declaration": self._lower_var_declaration,
            "return_statement": self._lower_return,
            "if_statement": self._lower_if,
            "while_statement": self._lower_while,
            "do_statement": self._lower_do_statement,
            "for_in_statement": self._lower_for_in,
            "break_statement": self._lower_break,
            "continue_statement": self._lower_continue,
            "try_statement": self._lower_try,
            "throw_statement": self._lower_throw,
            "statement_block": self._lower_block,
        }
        self._EXPR_DISPATCH: dict[str, Callable[..., IRNode]] = {
            "identifier": self._lower_identifier,
            "shorthand_property_identifier": self._lower_identifier,
            "this": self._lower_this,
            "undefined": lambda _: node(NodeKind.UNDEFINED_LITERAL_EXPR),
            "null": lambda _: node(NodeKind.NULL_LITERAL_EXPR),
            "number": self._lower_number,
            "string": self._lower_string,
            "true": self._lower_boolean,
            "false": self._lower_boolean,
            "template_string": self._lower_template_string,
            "binary_expression": self._lower_binop,
            "assignment_expression": self._lower_assignment_expr,
            "augmented_assignment_expression": self._lower_augmented_assignment,
            "unary_expression": self._lower_unop,
            "update_expression": self._lower_update_expr,
            "ternary_expression": self._lower_ternary,
            "call_expression": self._lower_call,
            "new_expression": self._lower_new_expression,
            "member_expression": self._lower_attribute,
            "subscript_expression": self._lower_subscript,
            "parenthesized_expression": self._lower_unwrap,
            "as_expression": self._lower_unwrap,
            "satisfies_expression": self._lower_unwrap,
            "non_null_expression": self._lower_unwrap,
            "type_assertion": self._lower_type_assertion,
            "array": self._lower_list_literal,
            "object": self._lower_object_literal,
            "spread_element": self._lower_spread_element,
            "arrow_function": self._lower_nested_function,
            "function_expression": self._lower_nested_function,
            "function": self._lower_nested_function,
        }

    # ── helpers ──────────────────────────────────────────────────

    def _node_text(self, n) -> str:
        return self._source[n.start_byte : n.end_byte].decode("utf-8")

    def _unsupported(self, n, reason: str = "") -> UnsupportedConstructError:
        return UnsupportedConstructError(self._node_text(n), n.type, reason)

    def _named_children(self, n) -> list:
        return [c for c in n.children if c.is_named and c.type not in self.COMMENT_TYPES]

    def _has_token(self, n, token: str) -> bool:
        return any(not c.is_named and c.type == token for c in n.children)

    def _type_string(self, n) -> str | None:
        type_ = self._oracle.type_at(n)
        if type_ is None:
            return None
        return self._oracle.type_to_string(type_)

    # ── entry point ──────────────────────────────────────────────

    def lower_function(
        self, n, kind: NodeKind = NodeKind.FUNCTION_DECL, drop_args: int = 0
    ) -> IRNode:
        """Lower a function, function expression or arrow into FunctionDecl/Expr.

        *drop_args* leading parameters are removed before translation; they
        carry framework-supplied context rather than user parameters.
        """
        if n.type in self.GENERATOR_NODE_TYPES:
            raise self._unsupported(n, "generator functions")
        if n.type not in self.FUNCTION_NODE_TYPES:
            raise DeclarationOnlyFunctionError(self._node_text(n), n.type)
        if self._has_token(n, "async"):
            raise self._unsupported(n, "async functions")
        body_node = n.child_by_field_name("body")
        if body_node is None:
            raise DeclarationOnlyFunctionError(self._node_text(n), n.type)

        params = self._parameter_names(n)[drop_args:]
        logger.debug("Lowering %s with parameters %s", kind.value, params)

        if body_node.type == "statement_block":
            body = self._lower_block(body_node)
        else:
            body = block([node(NodeKind.RETURN_STMT, self.lower_expression(body_node))])

        return node(
            kind,
            tuple(node(NodeKind.PARAMETER_DECL, name) for name in params),
            body,
        )

    def _parameter_names(self, n) -> list[str]:
        single = n.child_by_field_name("parameter")
        if single is not None:
            return [self._node_text(single)]
        params_node = n.child_by_field_name("parameters")
        if params_node is None:
            return []
        if params_node.type == "identifier":
            return [self._node_text(params_node)]
        return [
            self._parameter_name(c)
            for c in params_node.children
            if c.type in self.PARAMETER_NODE_TYPES
        ]

    def _parameter_name(self, param) -> str:
        if param.type in ("required_parameter", "optional_parameter"):
            pattern = param.child_by_field_name("pattern")
            if pattern is None:
                pattern = next(
                    (c for c in param.children if c.type == "identifier"), param
                )
            return self._parameter_name(pattern)
        if param.type == "rest_pattern":
            inner = next((c for c in param.children if c.is_named), None)
            return self._node_text(inner) if inner is not None else self._node_text(param)
        if param.type == "assignment_pattern":
            left = param.child_by_field_name("left")
            return self._node_text(left) if left is not None else self._node_text(param)
        return self._node_text(param)

    # ── dispatchers ──────────────────────────────────────────────

    def lower_statement(self, n) -> IRNode:
        handler = self._STMT_DISPATCH.get(n.type)
        if handler is None:
            raise self._unsupported(n)
        return handler(n)

    def lower_expression(self, n) -> IRNode:
        if n is None:
            return node(NodeKind.UNDEFINED_LITERAL_EXPR)
        handler = self._EXPR_DISPATCH.get(n.type)
        if handler is None:
            raise self._unsupported(n)
        return handler(n)

    def _lower_block(self, n) -> IRNode:
        return block([self.lower_statement(c) for c in self._named_children(n)])

    def _lower_body(self, n) -> IRNode:
        """Loop bodies are always blocks; a bare statement is wrapped in one."""
        if n.type == "statement_block":
            return self._lower_block(n)
        return block([self.lower_statement(n)])

    # ── statements ───────────────────────────────────────────────

    def _lower_expression_statement(self, n) -> IRNode:
        children = self._named_children(n)
        if len(children) != 1:
            raise self._unsupported(n)
        return node(NodeKind.EXPR_STMT, self.lower_expression(children[0]))

    def _lower_var_declaration(self, n) -> IRNode:
        declarators = [c for c in n.children if c.type == "variable_declarator"]
        if len(declarators) != 1:
            raise self._unsupported(n, "exactly one declarator is supported")
        return self._lower_variable_declarator(declarators[0])

    def _lower_variable_declarator(self, n) -> IRNode:
        name_node = n.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            raise self._unsupported(n, "destructuring declarations are not supported")
        value_node = n.child_by_field_name("value")
        if value_node is None:
            return node(NodeKind.VARIABLE_STMT, self._node_text(name_node))
        return node(
            NodeKind.VARIABLE_STMT,
            self._node_text(name_node),
            self.lower_expression(value_node),
        )

    def _lower_return(self, n) -> IRNode:
        children = self._named_children(n)
        if not children:
            return node(NodeKind.RETURN_STMT, node(NodeKind.NULL_LITERAL_EXPR))
        return node(NodeKind.RETURN_STMT, self.lower_expression(children[0]))

    def _lower_if(self, n) -> IRNode:
        cond_node = n.child_by_field_name("condition")
        then_node = n.child_by_field_name("consequence")
        alt_node = n.child_by_field_name("alternative")
        children = [self.lower_expression(cond_node), self.lower_statement(then_node)]
        if alt_node is not None:
            children.append(self._lower_alternative(alt_node))
        return node(NodeKind.IF_STMT, *children)

    def _lower_alternative(self, alt_node) -> IRNode:
        if alt_node.type == "else_clause":
            inner = self._named_children(alt_node)
            if len(inner) != 1:
                raise self._unsupported(alt_node)
            return self.lower_statement(inner[0])
        return self.lower_statement(alt_node)

    def _lower_while(self, n) -> IRNode:
        return node(
            NodeKind.WHILE_STMT,
            self.lower_expression(n.child_by_field_name("condition")),
            self._lower_body(n.child_by_field_name("body")),
        )

    def _lower_do_statement(self, n) -> IRNode:
        return node(
            NodeKind.DO_STMT,
            self._lower_body(n.child_by_field_name("body")),
            self.lower_expression(n.child_by_field_name("condition")),
        )

    def _lower_for_in(self, n) -> IRNode:
        """Lower ``for (const x of xs)`` / ``for (const k in obj)``.

        Only a single declared identifier is accepted as the loop binding.
        """
        if self._has_token(n, "await"):
            raise self._unsupported(n, "for await is not supported")
        operator_node = n.child_by_field_name("operator")
        is_for_of = operator_node is not None and self._node_text(operator_node) == "of"
        kind_node = n.child_by_field_name("kind")
        left = n.child_by_field_name("left")
        if kind_node is None or left is None:
            raise self._unsupported(n, "loop variable must be declared")
        if left.type != "identifier":
            raise self._unsupported(n, "destructuring loop variables are not supported")
        return node(
            NodeKind.FOR_OF_STMT if is_for_of else NodeKind.FOR_IN_STMT,
            node(NodeKind.VARIABLE_STMT, self._node_text(left)),
            self.lower_expression(n.child_by_field_name("right")),
            self._lower_body(n.child_by_field_name("body")),
        )

    def _lower_break(self, n) -> IRNode:
        if n.child_by_field_name("label") is not None:
            raise self._unsupported(n, "labeled statements are not supported")
        return node(NodeKind.BREAK_STMT)

    def _lower_continue(self, n) -> IRNode:
        if n.child_by_field_name("label") is not None:
            raise self._unsupported(n, "labeled statements are not supported")
        return node(NodeKind.CONTINUE_STMT)

    def _lower_try(self, n) -> IRNode:
        body_node = n.child_by_field_name("body")
        handler = n.child_by_field_name("handler")
        finalizer = n.child_by_field_name("finalizer")
        catch_ir = self._lower_catch_clause(handler) if handler is not None else None
        finally_ir = None
        if finalizer is not None:
            finally_ir = self._lower_block(finalizer.child_by_field_name("body"))
        return node(NodeKind.TRY_STMT, self._lower_block(body_node), catch_ir, finally_ir)

    def _lower_catch_clause(self, n) -> IRNode:
        param_node = n.child_by_field_name("parameter")
        variable = None
        if param_node is not None:
            if param_node.type != "identifier":
                raise self._unsupported(n, "destructuring catch bindings are not supported")
            variable = node(NodeKind.VARIABLE_STMT, self._node_text(param_node))
        return node(
            NodeKind.CATCH_CLAUSE,
            variable,
            self._lower_block(n.child_by_field_name("body")),
        )

    def _lower_throw(self, n) -> IRNode:
        children = self._named_children(n)
        if not children:
            raise self._unsupported(n)
        return node(NodeKind.THROW_STMT, self.lower_expression(children[0]))

    # ── identifiers and literals ─────────────────────────────────

    def _lower_identifier(self, n) -> IRNode:
        name = self._node_text(n)
        if name == "undefined":
            return node(NodeKind.UNDEFINED_LITERAL_EXPR)
        if name == "null":
            return node(NodeKind.NULL_LITERAL_EXPR)
        reference = self._references.resolve(n)
        if reference is not None:
            return reference
        return node(NodeKind.IDENTIFIER, name)

    def _lower_this(self, n) -> IRNode:
        return node(NodeKind.IDENTIFIER, self._node_text(n))

    def _lower_number(self, n) -> IRNode:
        return node(NodeKind.NUMBER_LITERAL_EXPR, self._node_text(n))

    def _lower_string(self, n) -> IRNode:
        return node(NodeKind.STRING_LITERAL_EXPR, self._node_text(n))

    def _lower_boolean(self, n) -> IRNode:
        return node(NodeKind.BOOLEAN_LITERAL_EXPR, self._node_text(n))

    def _string_value(self, n) -> str:
        """Cooked contents of a string literal node."""
        return cook(self._node_text(n)[1:-1])

    def _lower_template_string(self, n) -> IRNode:
        """Lower a template into alternating literal segments and substitutions."""
        substitutions = [c for c in n.children if c.type == "template_substitution"]
        if not substitutions:
            return self._lower_string(n)

        parts: list[IRNode] = []
        pos = n.start_byte + 1
        for sub in substitutions:
            segment = self._source[pos : sub.start_byte].decode("utf-8")
            if segment:
                parts.append(string_literal(cook(segment)))
            inner = self._named_children(sub)
            if len(inner) != 1:
                raise self._unsupported(sub)
            parts.append(self.lower_expression(inner[0]))
            pos = sub.end_byte
        tail = self._source[pos : n.end_byte - 1].decode("utf-8")
        if tail:
            parts.append(string_literal(cook(tail)))
        return node(NodeKind.TEMPLATE_EXPR, tuple(parts))

    # ── operators ────────────────────────────────────────────────

    def _lower_binop(self, n) -> IRNode:
        op_node = n.child_by_field_name("operator")
        op_text = self._node_text(op_node)
        op = binary_operator(op_text)
        if op is None:
            raise UnsupportedOperatorError(op_text, self._node_text(n), n.type)
        return node(
            NodeKind.BINARY_EXPR,
            self.lower_expression(n.child_by_field_name("left")),
            op,
            self.lower_expression(n.child_by_field_name("right")),
        )

    def _lower_assignment_expr(self, n) -> IRNode:
        return node(
            NodeKind.BINARY_EXPR,
            self.lower_expression(n.child_by_field_name("left")),
            binary_operator("="),
            self.lower_expression(n.child_by_field_name("right")),
        )

    def _lower_augmented_assignment(self, n) -> IRNode:
        op_node = n.child_by_field_name("operator")
        op_text = self._node_text(op_node) if op_node is not None else n.children[1].type
        raise UnsupportedOperatorError(op_text, self._node_text(n), n.type)

    def _lower_unop(self, n) -> IRNode:
        op_text = self._node_text(n.child_by_field_name("operator"))
        argument = n.child_by_field_name("argument")
        if op_text == "typeof":
            return node(NodeKind.TYPE_OF_EXPR, self.lower_expression(argument))
        op = unary_operator(op_text)
        if op is None:
            raise UnsupportedOperatorError(op_text, self._node_text(n), n.type)
        return node(NodeKind.UNARY_EXPR, op, self.lower_expression(argument))

    def _lower_update_expr(self, n) -> IRNode:
        op_node = n.child_by_field_name("operator")
        op_text = self._node_text(op_node) if op_node is not None else self._node_text(n)
        raise UnsupportedOperatorError(op_text, self._node_text(n), n.type)

    def _lower_ternary(self, n) -> IRNode:
        return node(
            NodeKind.CONDITION_EXPR,
            self.lower_expression(n.child_by_field_name("condition")),
            self.lower_expression(n.child_by_field_name("consequence")),
            self.lower_expression(n.child_by_field_name("alternative")),
        )

    # ── calls ────────────────────────────────────────────────────

    def _lower_call(self, n) -> IRNode:
        args_node = n.child_by_field_name("arguments")
        if args_node is not None and args_node.type == "template_string":
            raise self._unsupported(n, "tagged templates are not supported")
        func_node = n.child_by_field_name("function")
        if func_node is None or func_node.type == "import":
            raise self._unsupported(n)
        return self._binder.bind(n)

    def _lower_new_expression(self, n) -> IRNode:
        return self._binder.bind(n)

    def _lower_nested_function(self, n) -> IRNode:
        return self.lower_function(n, NodeKind.FUNCTION_EXPR)

    # ── property / element access ────────────────────────────────

    def _lower_attribute(self, n) -> IRNode:
        reference = self._references.resolve(n)
        if reference is not None:
            return reference
        obj_node = n.child_by_field_name("object")
        prop_node = n.child_by_field_name("property")
        if obj_node is None or prop_node is None:
            raise self._unsupported(n)
        return node(
            NodeKind.PROP_ACCESS_EXPR,
            self.lower_expression(obj_node),
            self._node_text(prop_node),
            self._type_string(n),
        )

    def _lower_subscript(self, n) -> IRNode:
        reference = self._references.resolve(n)
        if reference is not None:
            return reference
        obj_node = n.child_by_field_name("object")
        idx_node = n.child_by_field_name("index")
        if obj_node is None or idx_node is None:
            raise self._unsupported(n)
        return node(
            NodeKind.ELEMENT_ACCESS_EXPR,
            self.lower_expression(obj_node),
            self.lower_expression(idx_node),
            self._type_string(n),
        )

    # ── transparent wrappers ─────────────────────────────────────

    def _lower_unwrap(self, n) -> IRNode:
        # (x), x as T, x satisfies T, x! → just lower x
        children = self._named_children(n)
        if not children:
            raise self._unsupported(n)
        return self.lower_expression(children[0])

    def _lower_type_assertion(self, n) -> IRNode:
        # <T>x → just lower x
        children = [c for c in self._named_children(n) if c.type != "type_arguments"]
        if not children:
            raise self._unsupported(n)
        return self.lower_expression(children[-1])

    # ── object / array literals ──────────────────────────────────

    def _lower_list_literal(self, n) -> IRNode:
        previous = None
        for c in n.children:
            if c.type in self.COMMENT_TYPES:
                continue
            if c.type == "," and previous in ("[", ","):
                raise self._unsupported(n, "array holes are not supported")
            previous = c.type
        return node(
            NodeKind.ARRAY_LITERAL_EXPR,
            tuple(self.lower_expression(c) for c in self._named_children(n)),
        )

    def _lower_spread_element(self, n) -> IRNode:
        children = self._named_children(n)
        if not children:
            raise self._unsupported(n)
        return node(NodeKind.SPREAD_ELEMENT_EXPR, self.lower_expression(children[0]))

    def _lower_object_literal(self, n) -> IRNode:
        return node(
            NodeKind.OBJECT_LITERAL_EXPR,
            tuple(self._lower_object_member(c) for c in self._named_children(n)),
        )

    def _lower_object_member(self, member) -> IRNode:
        if member.type == "pair":
            return node(
                NodeKind.PROP_ASSIGN_EXPR,
                self._lower_property_name(member.child_by_field_name("key")),
                self.lower_expression(member.child_by_field_name("value")),
            )
        if member.type == "shorthand_property_identifier":
            return node(
                NodeKind.PROP_ASSIGN_EXPR,
                node(NodeKind.IDENTIFIER, self._node_text(member)),
                self._lower_identifier(member),
            )
        if member.type == "spread_element":
            inner = self._named_children(member)
            if not inner:
                raise self._unsupported(member)
            return node(NodeKind.SPREAD_ASSIGN_EXPR, self.lower_expression(inner[0]))
        raise self._unsupported(member)

    def _lower_property_name(self, key) -> IRNode:
        if key.type in ("property_identifier", "identifier"):
            return string_literal(self._node_text(key))
        if key.type == "string":
            return string_literal(self._string_value(key))
        if key.type == "computed_property_name":
            inner = self._named_children(key)
            if len(inner) != 1:
                raise self._unsupported(key)
            return node(
                NodeKind.COMPUTED_PROPERTY_NAME_EXPR, self.lower_expression(inner[0])
            )
        return self.lower_expression(key)
