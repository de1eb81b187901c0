"""Expression nodes for the strata AST.

``str(expr)`` gives the template-source form of an expression, which is
what error messages quote.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Literal

from strata.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Expr(Node):
    """Anything the evaluator can turn into a Value."""

    def __str__(self) -> str:
        from strata.nodes.format import format_expr

        return format_expr(self)


@dataclass(frozen=True, slots=True)
class Const(Expr):
    """A literal: ``'text'``, ``42``, ``1.5``, ``true`` or ``none``."""

    value: str | int | float | bool | None


@dataclass(frozen=True, slots=True)
class Name(Expr):
    """A bare identifier, looked up through the scope chain."""

    name: str


@dataclass(frozen=True, slots=True)
class Tuple(Expr):
    items: Sequence[Expr]


@dataclass(frozen=True, slots=True)
class List(Expr):
    items: Sequence[Expr]


@dataclass(frozen=True, slots=True)
class Dict(Expr):
    """``{k: v, ...}``; keys and values are parallel sequences."""

    keys: Sequence[Expr]
    values: Sequence[Expr]


@dataclass(frozen=True, slots=True)
class Getattr(Expr):
    """``obj.attr``. Mappings are tried by key first."""

    obj: Expr
    attr: str


@dataclass(frozen=True, slots=True)
class Getitem(Expr):
    obj: Expr
    key: Expr


@dataclass(frozen=True, slots=True)
class FuncCall(Expr):
    """Call of a macro, a ``self`` block or any Python callable in scope."""

    func: Expr
    args: Sequence[Expr] = ()
    kwargs: Mapping[str, Expr] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Filter(Expr):
    """``value | name(args)``, resolved in the filter registry at render time."""

    value: Expr
    name: str
    args: Sequence[Expr] = ()
    kwargs: Mapping[str, Expr] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Test(Expr):
    """``value is [not] name(args)``, resolved in the test registry."""

    value: Expr
    name: str
    args: Sequence[Expr] = ()
    kwargs: Mapping[str, Expr] = field(default_factory=dict)
    negated: bool = False


@dataclass(frozen=True, slots=True)
class BinOp(Expr):
    """Arithmetic: ``+ - * / // % **``."""

    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class UnaryOp(Expr):
    op: str
    operand: Expr


@dataclass(frozen=True, slots=True)
class Compare(Expr):
    """A comparison chain; ``a < b < c`` holds ops ``('<', '<')``."""

    left: Expr
    ops: Sequence[str]
    comparators: Sequence[Expr]


@dataclass(frozen=True, slots=True)
class BoolOp(Expr):
    """Short-circuit ``and`` / ``or`` over two or more operands."""

    op: Literal["and", "or"]
    values: Sequence[Expr]


@dataclass(frozen=True, slots=True)
class CondExpr(Expr):
    """Inline ``a if cond else b``; a missing else yields Nil."""

    test: Expr
    if_true: Expr
    if_false: Expr | None = None


@dataclass(frozen=True, slots=True)
class Concat(Expr):
    """``a ~ b ~ c``: string concatenation of every operand."""

    nodes: Sequence[Expr]
