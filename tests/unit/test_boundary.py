"""Tests for the error boundary."""

from __future__ import annotations

import logging

from reflector.boundary import error_boundary, error_node
from reflector.errors import (
    DeclarationOnlyFunctionError,
    MultipleSignaturesError,
    UnsupportedConstructError,
    UnsupportedOperatorError,
)
from reflector.ir import NodeKind, node


def _raise(exc: Exception):
    def fail():
        raise exc

    return fail


class TestErrorNode:
    def test_carries_class_name_and_message(self):
        err = error_node(UnsupportedOperatorError("%", "a % b", "binary_expression"))
        assert err == node(NodeKind.ERR, "UnsupportedOperatorError", "invalid Operator: %")

    def test_unsupported_construct_message(self):
        err = error_node(UnsupportedConstructError("switch (a) {}", "switch_statement"))
        assert err.children[1] == "unhandled node: switch (a) {} switch_statement"

    def test_reason_is_appended(self):
        exc = UnsupportedConstructError("x", "for_in_statement", "loop variable must be declared")
        assert str(exc).endswith("(loop variable must be declared)")

    def test_declaration_only_message_names_source(self):
        exc = DeclarationOnlyFunctionError("handler", "identifier")
        assert "Found handler." in str(exc)


class TestErrorBoundary:
    def test_success_passes_through(self):
        ir = node(NodeKind.BREAK_STMT)
        result = error_boundary(lambda: ir)
        assert result.ok
        assert result.node is ir
        assert result.error is None

    def test_lowering_error_becomes_err_node(self):
        exc = MultipleSignaturesError("fn(a)", 2)
        result = error_boundary(_raise(exc))
        assert not result.ok
        assert result.error is exc
        assert result.node.kind == NodeKind.ERR
        assert result.node.children[0] == "MultipleSignaturesError"

    def test_unexpected_errors_are_contained(self):
        result = error_boundary(_raise(KeyError("missing")))
        assert result.node == node(NodeKind.ERR, "KeyError", "'missing'")

    def test_failure_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="reflector.boundary"):
            error_boundary(_raise(UnsupportedOperatorError("%")))
        assert "invalid Operator: %" in caplog.text
