"""Tests for the operator mapper."""

from __future__ import annotations

import pytest

from reflector.operators import binary_operator, unary_operator


class TestBinaryOperators:
    @pytest.mark.parametrize(
        "token, expected",
        [
            ("===", "=="),
            ("==", "=="),
            ("!==", "!="),
            ("!=", "!="),
            ("&&", "&&"),
            ("||", "||"),
            ("in", "in"),
            ("<=", "<="),
            ("=", "="),
        ],
    )
    def test_mapped_tokens(self, token, expected):
        assert binary_operator(token) == expected

    @pytest.mark.parametrize("token", ["%", "*", "/", "??", "instanceof", "**", "|", "<<"])
    def test_unmapped_tokens(self, token):
        assert binary_operator(token) is None


class TestUnaryOperators:
    def test_mapped_tokens(self):
        assert unary_operator("!") == "!"
        assert unary_operator("-") == "-"

    @pytest.mark.parametrize("token", ["~", "+", "void", "delete"])
    def test_unmapped_tokens(self, token):
        assert unary_operator(token) is None
