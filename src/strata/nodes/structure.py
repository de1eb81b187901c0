"""Template structure nodes for the strata AST."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from strata.nodes.base import Node

if TYPE_CHECKING:
    from strata.statements.macros import MacroStmt
    from strata.template.core import Template as LoadedTemplate


@dataclass(frozen=True, slots=True)
class Wrapper(Node):
    """Body of a statement, up to (and naming) the tag that closed it."""

    body: Sequence[Node]
    end_tag: str | None = None


@dataclass(frozen=True, slots=True)
class StatementBlock(Node):
    """A ``{% tag ... %}`` occurrence holding its parsed statement."""

    name: str
    stmt: Any

    def __str__(self) -> str:
        return str(self.stmt)


@dataclass(frozen=True, slots=True)
class Template(Node):
    """Root node of a parsed template.

    ``parent`` is the loaded template named by ``extends``, if any.
    ``blocks`` indexes every block in this template's own source;
    ``macros`` indexes its top-level macros.
    """

    name: str | None
    body: Sequence[Node]
    parent: LoadedTemplate | None = None
    blocks: Mapping[str, Wrapper] = field(default_factory=dict)
    macros: Mapping[str, MacroStmt] = field(default_factory=dict)
