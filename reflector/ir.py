"""IR Design — closed tree of typed nodes produced by lowering."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class NodeKind(str, Enum):
    # Declarations / blocks
    FUNCTION_DECL = "FunctionDecl"
    FUNCTION_EXPR = "FunctionExpr"
    PARAMETER_DECL = "ParameterDecl"
    BLOCK_STMT = "BlockStmt"
    # Statements
    EXPR_STMT = "ExprStmt"
    RETURN_STMT = "ReturnStmt"
    VARIABLE_STMT = "VariableStmt"
    IF_STMT = "IfStmt"
    FOR_OF_STMT = "ForOfStmt"
    FOR_IN_STMT = "ForInStmt"
    WHILE_STMT = "WhileStmt"
    DO_STMT = "DoStmt"
    BREAK_STMT = "BreakStmt"
    CONTINUE_STMT = "ContinueStmt"
    TRY_STMT = "TryStmt"
    CATCH_CLAUSE = "CatchClause"
    THROW_STMT = "ThrowStmt"
    # Expressions
    CONDITION_EXPR = "ConditionExpr"
    BINARY_EXPR = "BinaryExpr"
    UNARY_EXPR = "UnaryExpr"
    CALL_EXPR = "CallExpr"
    NEW_EXPR = "NewExpr"
    ARGUMENT = "Argument"
    PROP_ACCESS_EXPR = "PropAccessExpr"
    ELEMENT_ACCESS_EXPR = "ElementAccessExpr"
    ARRAY_LITERAL_EXPR = "ArrayLiteralExpr"
    OBJECT_LITERAL_EXPR = "ObjectLiteralExpr"
    PROP_ASSIGN_EXPR = "PropAssignExpr"
    SPREAD_ASSIGN_EXPR = "SpreadAssignExpr"
    SPREAD_ELEMENT_EXPR = "SpreadElementExpr"
    COMPUTED_PROPERTY_NAME_EXPR = "ComputedPropertyNameExpr"
    TEMPLATE_EXPR = "TemplateExpr"
    IDENTIFIER = "Identifier"
    REFERENCE_EXPR = "ReferenceExpr"
    TYPE_OF_EXPR = "TypeOfExpr"
    # Literals
    STRING_LITERAL_EXPR = "StringLiteralExpr"
    NUMBER_LITERAL_EXPR = "NumberLiteralExpr"
    BOOLEAN_LITERAL_EXPR = "BooleanLiteralExpr"
    NULL_LITERAL_EXPR = "NullLiteralExpr"
    UNDEFINED_LITERAL_EXPR = "UndefinedLiteralExpr"
    # Escape hatch
    ERR = "Err"


# (min, max) number of children per kind
ARITY: dict[NodeKind, tuple[int, int]] = {
    NodeKind.FUNCTION_DECL: (2, 2),
    NodeKind.FUNCTION_EXPR: (2, 2),
    NodeKind.PARAMETER_DECL: (1, 1),
    NodeKind.BLOCK_STMT: (1, 1),
    NodeKind.EXPR_STMT: (1, 1),
    NodeKind.RETURN_STMT: (1, 1),
    NodeKind.VARIABLE_STMT: (1, 2),
    NodeKind.IF_STMT: (2, 3),
    NodeKind.FOR_OF_STMT: (3, 3),
    NodeKind.FOR_IN_STMT: (3, 3),
    NodeKind.WHILE_STMT: (2, 2),
    NodeKind.DO_STMT: (2, 2),
    NodeKind.BREAK_STMT: (0, 0),
    NodeKind.CONTINUE_STMT: (0, 0),
    NodeKind.TRY_STMT: (3, 3),
    NodeKind.CATCH_CLAUSE: (2, 2),
    NodeKind.THROW_STMT: (1, 1),
    NodeKind.CONDITION_EXPR: (3, 3),
    NodeKind.BINARY_EXPR: (3, 3),
    NodeKind.UNARY_EXPR: (2, 2),
    NodeKind.CALL_EXPR: (2, 2),
    NodeKind.NEW_EXPR: (2, 2),
    NodeKind.ARGUMENT: (2, 2),
    NodeKind.PROP_ACCESS_EXPR: (3, 3),
    NodeKind.ELEMENT_ACCESS_EXPR: (3, 3),
    NodeKind.ARRAY_LITERAL_EXPR: (1, 1),
    NodeKind.OBJECT_LITERAL_EXPR: (1, 1),
    NodeKind.PROP_ASSIGN_EXPR: (2, 2),
    NodeKind.SPREAD_ASSIGN_EXPR: (1, 1),
    NodeKind.SPREAD_ELEMENT_EXPR: (1, 1),
    NodeKind.COMPUTED_PROPERTY_NAME_EXPR: (1, 1),
    NodeKind.TEMPLATE_EXPR: (1, 1),
    NodeKind.IDENTIFIER: (1, 1),
    NodeKind.REFERENCE_EXPR: (2, 2),
    NodeKind.TYPE_OF_EXPR: (1, 1),
    NodeKind.STRING_LITERAL_EXPR: (1, 1),
    NodeKind.NUMBER_LITERAL_EXPR: (1, 1),
    NodeKind.BOOLEAN_LITERAL_EXPR: (1, 1),
    NodeKind.NULL_LITERAL_EXPR: (0, 0),
    NodeKind.UNDEFINED_LITERAL_EXPR: (0, 0),
    NodeKind.ERR: (2, 2),
}

# Kinds whose single child is a raw literal token, emitted verbatim
LITERAL_KINDS: frozenset[NodeKind] = frozenset(
    {
        NodeKind.STRING_LITERAL_EXPR,
        NodeKind.NUMBER_LITERAL_EXPR,
        NodeKind.BOOLEAN_LITERAL_EXPR,
    }
)


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


class IRNode(BaseModel):
    """A single IR node: its kind plus fixed-arity ordered children.

    Children are other ``IRNode``s, strings (names, operators, raw literal
    text), tuples of nodes, or ``None`` for absent optional slots.
    """

    model_config = ConfigDict(frozen=True)

    kind: NodeKind
    children: tuple[Any, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _freeze_children(cls, data: Any) -> Any:
        if isinstance(data, dict) and "children" in data:
            data = {**data, "children": tuple(_freeze(c) for c in data["children"])}
        return data

    @model_validator(mode="after")
    def _check_arity(self) -> IRNode:
        low, high = ARITY[self.kind]
        if not low <= len(self.children) <= high:
            raise ValueError(
                f"{self.kind.value} takes {low}..{high} children, got {len(self.children)}"
            )
        return self

    def walk(self):
        """Yield this node and every descendant node, depth-first."""
        yield self
        for child in self.children:
            for item in child if isinstance(child, tuple) else (child,):
                if isinstance(item, IRNode):
                    yield from item.walk()

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "children": [_child_to_data(c) for c in self.children]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IRNode:
        return cls(
            kind=NodeKind(data["kind"]),
            children=[_child_from_data(c) for c in data["children"]],
        )

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        if not self.children:
            return self.kind.value
        return f"{self.kind.value}({', '.join(_child_str(c) for c in self.children)})"


def _child_to_data(child: Any) -> Any:
    if isinstance(child, IRNode):
        return child.to_dict()
    if isinstance(child, tuple):
        return [_child_to_data(c) for c in child]
    return child


def _child_from_data(child: Any) -> Any:
    if isinstance(child, dict):
        return IRNode.from_dict(child)
    if isinstance(child, list):
        return tuple(_child_from_data(c) for c in child)
    return child


def _child_str(child: Any) -> str:
    if isinstance(child, tuple):
        return "[" + ", ".join(_child_str(c) for c in child) + "]"
    if isinstance(child, str):
        return repr(child)
    return str(child)


def node(kind: NodeKind, *children: Any) -> IRNode:
    return IRNode(kind=kind, children=children)


def string_literal(text: str) -> IRNode:
    """A StringLiteralExpr for a synthesized (not source-provided) string."""
    return node(NodeKind.STRING_LITERAL_EXPR, json.dumps(text))


def block(statements: list[IRNode] | tuple[IRNode, ...]) -> IRNode:
    return node(NodeKind.BLOCK_STMT, tuple(statements))
