"""Statement base class and the protocol the renderer executes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Protocol, runtime_checkable

from strata.nodes.base import Node

if TYPE_CHECKING:
    from strata.nodes.structure import StatementBlock
    from strata.runtime.renderer import Renderer


@runtime_checkable
class Statement(Protocol):
    """Anything stored in a StatementBlock that the renderer can run."""

    def execute(self, renderer: Renderer, block: StatementBlock) -> None: ...


@dataclass(frozen=True, slots=True)
class Stmt(Node):
    """Base class for the built-in statements.

    ``hoisted`` statements (imports, macros, set) also run when they sit at
    the top level of a child template, whose other top-level content is
    replaced by its parent's, and at the top level of an imported library,
    whose other content is never rendered.
    """

    hoisted: ClassVar[bool] = False

    def execute(self, renderer: Renderer, block: StatementBlock) -> None:
        raise NotImplementedError

    def __str__(self) -> str:
        return f"{type(self).__name__}(line={self.lineno} col={self.col_offset})"
