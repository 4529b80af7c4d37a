"""Type oracle — the engine's only window onto resolved types and signatures."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SymbolKind(Enum):
    """What a resolved type denotes."""

    FUNCTION = "function"
    CLASS = "class"
    INSTANCE = "instance"
    PRIMITIVE = "primitive"


@dataclass(frozen=True)
class Parameter:
    name: str
    rest: bool = False


@dataclass(frozen=True)
class Signature:
    parameters: tuple[Parameter, ...] = ()
    origin: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class ResolvedType:
    """A resolved type as reported by an oracle.

    ``literal`` is set for string-literal types. ``symbol`` names the
    declaring function or class when there is one; ``origin`` is private
    to the oracle that produced the type.
    """

    text: str
    literal: str | None = None
    symbol: str | None = None
    symbol_kind: SymbolKind | None = None
    origin: Any = field(default=None, compare=False, repr=False)


class TypeOracle(ABC):
    """Answers type queries about nodes of a parsed source unit."""

    @abstractmethod
    def type_at(self, node) -> ResolvedType | None:
        """Resolved type of an expression node, or None if unknown."""
        ...

    @abstractmethod
    def property_type(self, type_: ResolvedType, name: str) -> ResolvedType | None:
        """Type of property *name* on *type_*, or None if it has no such property."""
        ...

    @abstractmethod
    def resolved_signature(self, invocation) -> Signature | None:
        """Signature chosen for a call or construction node."""
        ...

    @abstractmethod
    def signatures_of(self, type_: ResolvedType) -> list[Signature]:
        """Call signatures declared by *type_*."""
        ...

    def type_to_string(self, type_: ResolvedType) -> str:
        return type_.text

    def literal_property(self, node, name: str) -> str | None:
        """String-literal value of property *name* on the type of *node*."""
        type_ = self.type_at(node)
        if type_ is None:
            return None
        prop = self.property_type(type_, name)
        return prop.literal if prop is not None else None
