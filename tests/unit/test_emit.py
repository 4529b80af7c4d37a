"""Tests for emit_construction — IR rendered as TypeScript construction code."""

from __future__ import annotations

from reflector.emit import emit_construction
from reflector.ir import NodeKind, block, node, string_literal


class TestLeaves:
    def test_identifier(self):
        assert emit_construction(node(NodeKind.IDENTIFIER, "x"), "fl") == 'new fl.Identifier("x")'

    def test_literals_are_emitted_raw(self):
        assert emit_construction(node(NodeKind.NUMBER_LITERAL_EXPR, "0x1F"), "fl") == (
            "new fl.NumberLiteralExpr(0x1F)"
        )
        assert emit_construction(node(NodeKind.STRING_LITERAL_EXPR, "'a'"), "fl") == (
            "new fl.StringLiteralExpr('a')"
        )

    def test_synthesized_string_literal(self):
        assert emit_construction(string_literal("key"), "fl") == 'new fl.StringLiteralExpr("key")'

    def test_childless_node(self):
        assert emit_construction(node(NodeKind.NULL_LITERAL_EXPR), "fl") == "new fl.NullLiteralExpr()"


class TestComposite:
    def test_tuples_become_arrays_and_none_undefined(self):
        call = node(
            NodeKind.CALL_EXPR,
            node(NodeKind.IDENTIFIER, "f"),
            (node(NodeKind.ARGUMENT, node(NodeKind.IDENTIFIER, "a"), None),),
        )
        assert emit_construction(call, "fl") == (
            'new fl.CallExpr(new fl.Identifier("f"), '
            '[new fl.Argument(new fl.Identifier("a"), undefined)])'
        )

    def test_function_decl(self):
        fn = node(
            NodeKind.FUNCTION_DECL,
            (),
            block([node(NodeKind.RETURN_STMT, node(NodeKind.NULL_LITERAL_EXPR))]),
        )
        assert emit_construction(fn) == (
            "new functionless.FunctionDecl([], new functionless.BlockStmt("
            "[new functionless.ReturnStmt(new functionless.NullLiteralExpr())]))"
        )


class TestSpecialForms:
    def test_reference_is_a_thunk_over_the_original_expression(self):
        ref = node(NodeKind.REFERENCE_EXPR, "this.table", "this.table")
        assert emit_construction(ref, "fl") == 'new fl.ReferenceExpr("this.table", () => this.table)'

    def test_err_carries_error_name_and_message(self):
        err = node(NodeKind.ERR, "UnsupportedOperatorError", "invalid Operator: %")
        assert emit_construction(err, "fl") == (
            'new fl.Err(Object.assign(new Error("invalid Operator: %"), '
            '{ name: "UnsupportedOperatorError" }))'
        )
