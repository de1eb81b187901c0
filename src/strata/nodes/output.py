"""Output nodes: literal text, comments and ``{{ }}`` expressions."""

from __future__ import annotations

from dataclasses import dataclass

from strata.nodes.base import Node
from strata.nodes.expressions import Expr


@dataclass(frozen=True, slots=True)
class Data(Node):
    """Raw text between template constructs.

    ``trim_left``/``trim_right`` are set when the neighbouring tag carries a
    ``-`` marker; the renderer strips spaces, tabs and newlines on that side.
    """

    value: str
    trim_left: bool = False
    trim_right: bool = False

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Comment(Node):
    """Template comment: {# ... #}. Never rendered."""

    value: str

    def __str__(self) -> str:
        return f"{{# {self.value.strip()} #}}"


@dataclass(frozen=True, slots=True)
class Output(Node):
    """Output expression: {{ expr }} or {{ expr if condition else alternative }}"""

    expr: Expr
    condition: Expr | None = None
    alternative: Expr | None = None

    def __str__(self) -> str:
        text = str(self.expr)
        if self.condition is not None:
            text += f" if {self.condition}"
            if self.alternative is not None:
                text += f" else {self.alternative}"
        return f"{{{{ {text} }}}}"
