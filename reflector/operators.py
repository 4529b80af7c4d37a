"""Operator Mapper — source operator tokens to canonical IR operator symbols."""

from __future__ import annotations

BINARY_OPERATORS: dict[str, str] = {
    "=": "=",
    "+": "+",
    "-": "-",
    "&&": "&&",
    "||": "||",
    "!=": "!=",
    "!==": "!=",
    "==": "==",
    "===": "==",
    "<=": "<=",
    "<": "<",
    ">=": ">=",
    ">": ">",
    "in": "in",
}

UNARY_OPERATORS: dict[str, str] = {
    "!": "!",
    "-": "-",
}


def binary_operator(token: str) -> str | None:
    """Return the canonical symbol for a binary token, or None if unmapped."""
    return BINARY_OPERATORS.get(token)


def unary_operator(token: str) -> str | None:
    return UNARY_OPERATORS.get(token)
