"""Error Boundary — turns a failed lowering into an ``Err`` IR node."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from .ir import IRNode, NodeKind, node

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoweringResult:
    """Outcome of one guarded lowering: the tree, or an Err node plus its cause."""

    node: IRNode
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def error_node(error: Exception) -> IRNode:
    return node(NodeKind.ERR, type(error).__name__, str(error))


def error_boundary(func: Callable[[], IRNode]) -> LoweringResult:
    try:
        return LoweringResult(node=func())
    except Exception as err:
        logger.warning("Lowering failed: %s: %s", type(err).__name__, err)
        return LoweringResult(node=error_node(err), error=err)
