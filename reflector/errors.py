"""Lowering failures raised while translating a reflected function."""

from __future__ import annotations


class LoweringError(Exception):
    """Base class for failures raised by the lowering engine."""

    def __init__(self, message: str, source_text: str = "", node_type: str = ""):
        super().__init__(message)
        self.source_text = source_text
        self.node_type = node_type


class UnsupportedConstructError(LoweringError):
    """The node's shape is outside the supported grammar subset."""

    def __init__(self, source_text: str, node_type: str, reason: str = ""):
        message = f"unhandled node: {source_text} {node_type}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, source_text, node_type)


class UnsupportedOperatorError(LoweringError):
    """The operator token has no canonical mapping."""

    def __init__(self, operator: str, source_text: str = "", node_type: str = ""):
        super().__init__(f"invalid Operator: {operator}", source_text, node_type)
        self.operator = operator


class MultipleSignaturesError(LoweringError):
    """A branded callable type declares more than one call signature."""

    def __init__(self, source_text: str = "", count: int = 0):
        super().__init__(
            "Lambda Functions with multiple signatures are not currently supported.",
            source_text,
        )
        self.count = count


class DeclarationOnlyFunctionError(LoweringError):
    """The reflectable slot has no function body to translate."""

    def __init__(self, source_text: str, node_type: str = ""):
        super().__init__(
            "Functionless reflection only supports function parameters with bodies, "
            f"no signature only declarations or references. Found {source_text}.",
            source_text,
            node_type,
        )
