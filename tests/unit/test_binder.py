"""Tests for ArgumentBinder — arguments matched onto resolved parameters."""

from __future__ import annotations

import pytest

from reflector.binder import ArgumentBinder
from reflector.errors import MultipleSignaturesError
from reflector.ir import NodeKind, node
from reflector.oracle import ResolvedType, SymbolKind
from tests.unit.conftest import FakeOracle, find_first, parse_ts, signature


def _bind(source: str, oracle: FakeOracle, node_type: str = "call_expression"):
    tree, source_bytes = parse_ts(source)
    invocation = find_first(tree.root_node, node_type)
    binder = ArgumentBinder(
        oracle,
        source_bytes,
        lambda n: node(NodeKind.IDENTIFIER, n.text.decode("utf-8")),
    )
    return binder.bind(invocation)


def arg(expr_text: str, name):
    return node(NodeKind.ARGUMENT, node(NodeKind.IDENTIFIER, expr_text), name)


class TestPositionalFallback:
    def test_no_signature_keeps_supplied_arguments(self):
        ir = _bind("f(a, b);", FakeOracle())
        assert ir == node(
            NodeKind.CALL_EXPR,
            node(NodeKind.IDENTIFIER, "f"),
            (arg("a", None), arg("b", None)),
        )

    def test_unresolved_construction_is_call(self):
        ir = _bind("new Widget(a);", FakeOracle(), "new_expression")
        assert ir.kind == NodeKind.CALL_EXPR

    def test_no_arguments(self):
        ir = _bind("new Widget;", FakeOracle(), "new_expression")
        assert ir == node(NodeKind.CALL_EXPR, node(NodeKind.IDENTIFIER, "Widget"), ())


class TestSignatureBinding:
    def test_one_argument_per_parameter(self):
        oracle = FakeOracle(signatures={"f(a, b)": signature("x", "y")})
        ir = _bind("f(a, b);", oracle)
        assert ir.children[1] == (arg("a", "x"), arg("b", "y"))

    def test_missing_arguments_become_undefined(self):
        oracle = FakeOracle(signatures={"f(a)": signature("x", "y")})
        ir = _bind("f(a);", oracle)
        assert ir.children[1][1] == node(
            NodeKind.ARGUMENT, node(NodeKind.UNDEFINED_LITERAL_EXPR), "y"
        )

    def test_rest_parameter_collects_remaining_arguments(self):
        oracle = FakeOracle(signatures={"f(a, b, c)": signature("first", rest="others")})
        ir = _bind("f(a, b, c);", oracle)
        assert ir.children[1] == (
            arg("a", "first"),
            node(
                NodeKind.ARGUMENT,
                node(
                    NodeKind.ARRAY_LITERAL_EXPR,
                    (node(NodeKind.IDENTIFIER, "b"), node(NodeKind.IDENTIFIER, "c")),
                ),
                "others",
            ),
        )

    def test_empty_rest(self):
        oracle = FakeOracle(signatures={"f(a)": signature("first", rest="others")})
        ir = _bind("f(a);", oracle)
        assert ir.children[1][1].children[0] == node(NodeKind.ARRAY_LITERAL_EXPR, ())

    def test_extra_arguments_are_dropped(self):
        oracle = FakeOracle(signatures={"f(a, b)": signature("x")})
        ir = _bind("f(a, b);", oracle)
        assert ir.children[1] == (arg("a", "x"),)

    def test_resolved_construction_is_new(self):
        oracle = FakeOracle(signatures={"new Widget(a)": signature("props")})
        ir = _bind("new Widget(a);", oracle, "new_expression")
        assert ir == node(
            NodeKind.NEW_EXPR,
            node(NodeKind.IDENTIFIER, "Widget"),
            (arg("a", "props"),),
        )


class TestBrandedCallables:
    def _oracle(self, *declared) -> FakeOracle:
        lambda_type = ResolvedType("Function<string, number>", symbol_kind=SymbolKind.INSTANCE)
        brand = ResolvedType("(payload: string) => number", symbol_kind=SymbolKind.FUNCTION)
        return FakeOracle(
            types={"fn": lambda_type},
            properties={("Function<string, number>", "__functionBrand"): brand},
            declared={"(payload: string) => number": list(declared)},
            signatures={"fn(a)": signature("ignored")},
        )

    def test_brand_signature_takes_precedence(self):
        ir = _bind("fn(a);", self._oracle(signature("payload")))
        assert ir.children[1] == (arg("a", "payload"),)

    def test_multiple_brand_signatures_rejected(self):
        oracle = self._oracle(signature("a"), signature("a", "b"))
        with pytest.raises(MultipleSignaturesError, match="multiple signatures"):
            _bind("fn(a);", oracle)

    def test_brand_without_signatures_rejected(self):
        with pytest.raises(MultipleSignaturesError):
            _bind("fn(a);", self._oracle())
