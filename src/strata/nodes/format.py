"""Source-form rendering of expression nodes for error messages."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from strata.nodes.expressions import (
    BinOp,
    BoolOp,
    Compare,
    Concat,
    CondExpr,
    Const,
    Dict,
    Expr,
    Filter,
    FuncCall,
    Getattr,
    Getitem,
    List,
    Name,
    Test,
    Tuple,
    UnaryOp,
)

_BINOP_PRECEDENCE = {"+": 7, "-": 7, "*": 8, "/": 8, "//": 8, "%": 8, "**": 10}
_POSTFIX = 11
_ATOM = 12


def _precedence(node: Expr) -> int:
    match node:
        case CondExpr():
            return 1
        case BoolOp(op="or"):
            return 2
        case BoolOp():
            return 3
        case UnaryOp(op="not"):
            return 4
        case Compare():
            return 5
        case Concat():
            return 6
        case BinOp(op=op):
            return _BINOP_PRECEDENCE.get(op, 7)
        case UnaryOp():
            return 9
        case Filter() | Test() | Getattr() | Getitem() | FuncCall():
            return _POSTFIX
        case _:
            return _ATOM


def _wrap(node: Expr, minimum: int) -> str:
    text = format_expr(node)
    return f"({text})" if _precedence(node) < minimum else text


def _call_args(args: Any, kwargs: dict[str, Expr]) -> str:
    parts = [format_expr(arg) for arg in args]
    parts.extend(f"{key}={format_expr(value)}" for key, value in kwargs.items())
    return ", ".join(parts)


def _format_const(node: Const) -> str:
    if isinstance(node.value, str):
        return repr(node.value)
    if node.value is None:
        return "none"
    if isinstance(node.value, bool):
        return "true" if node.value else "false"
    return repr(node.value)


def _format_sequence(items: Any, opener: str, closer: str, *, tuple_: bool = False) -> str:
    inner = ", ".join(format_expr(item) for item in items)
    if tuple_ and len(items) == 1:
        inner += ","
    return f"{opener}{inner}{closer}"


def _format_filter(node: Filter) -> str:
    text = f"{_wrap(node.value, _POSTFIX)} | {node.name}"
    if node.args or node.kwargs:
        text += f"({_call_args(node.args, node.kwargs)})"
    return text


def _format_test(node: Test) -> str:
    keyword = "is not" if node.negated else "is"
    text = f"{_wrap(node.value, _POSTFIX)} {keyword} {node.name}"
    if node.args or node.kwargs:
        text += f"({_call_args(node.args, node.kwargs)})"
    return text


def _format_binop(node: BinOp) -> str:
    prec = _BINOP_PRECEDENCE.get(node.op, 7)
    return f"{_wrap(node.left, prec)} {node.op} {_wrap(node.right, prec + 1)}"


def _format_unary(node: UnaryOp) -> str:
    if node.op == "not":
        return f"not {_wrap(node.operand, 4)}"
    return f"{node.op}{_wrap(node.operand, 9)}"


def _format_compare(node: Compare) -> str:
    parts = [_wrap(node.left, 6)]
    for op, comparator in zip(node.ops, node.comparators, strict=True):
        parts.append(f"{op} {_wrap(comparator, 6)}")
    return " ".join(parts)


def _format_boolop(node: BoolOp) -> str:
    prec = 2 if node.op == "or" else 3
    return f" {node.op} ".join(_wrap(value, prec + 1) for value in node.values)


def _format_condexpr(node: CondExpr) -> str:
    text = f"{_wrap(node.if_true, 2)} if {_wrap(node.test, 2)}"
    if node.if_false is not None:
        text += f" else {format_expr(node.if_false)}"
    return text


_FORMATTERS: dict[type, Callable[[Any], str]] = {
    Const: _format_const,
    Name: lambda node: node.name,
    Tuple: lambda node: _format_sequence(node.items, "(", ")", tuple_=True),
    List: lambda node: _format_sequence(node.items, "[", "]"),
    Dict: lambda node: "{"
    + ", ".join(
        f"{format_expr(key)}: {format_expr(value)}"
        for key, value in zip(node.keys, node.values, strict=True)
    )
    + "}",
    Getattr: lambda node: f"{_wrap(node.obj, _POSTFIX)}.{node.attr}",
    Getitem: lambda node: f"{_wrap(node.obj, _POSTFIX)}[{format_expr(node.key)}]",
    FuncCall: lambda node: f"{_wrap(node.func, _POSTFIX)}({_call_args(node.args, node.kwargs)})",
    Filter: _format_filter,
    Test: _format_test,
    BinOp: _format_binop,
    UnaryOp: _format_unary,
    Compare: _format_compare,
    BoolOp: _format_boolop,
    CondExpr: _format_condexpr,
    Concat: lambda node: " ~ ".join(_wrap(part, 7) for part in node.nodes),
}


def format_expr(node: Expr) -> str:
    """Return ``node`` written back in template expression syntax.

    Example:
        >>> format_expr(Filter(1, 0, Name(1, 0, "title"), "upper"))
        'title | upper'
    """
    formatter = _FORMATTERS.get(type(node))
    if formatter is None:
        return f"<{type(node).__name__}>"
    return formatter(node)
