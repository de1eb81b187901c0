"""Expression evaluation.

``Evaluator.eval`` turns an expression node into a Value. Failures never
escape as exceptions: an undefined name, a failing filter or a division by
zero all come back as an error Value carrying the exception, and the
renderer decides how to report it.
"""

from __future__ import annotations

import operator
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from strata.environment.exceptions import (
    ErrorCode,
    TemplateRuntimeError,
    UndefinedError,
    suggest_name,
)
from strata.environment.filters import LENIENT_FILTERS
from strata.environment.tests import LENIENT_TESTS
from strata.nodes import Expr, Getattr, Getitem, Name
from strata.runtime.value import Value
from strata.template.helpers import UNDEFINED, safe_getattr, safe_getitem
from strata.utils.html import Markup

if TYPE_CHECKING:
    from strata.environment.core import Environment
    from strata.environment.loaders import BaseLoader
    from strata.runtime.config import Config
    from strata.runtime.context import Context

_BINARY_OPS: dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "//": operator.floordiv,
    "%": operator.mod,
    "**": operator.pow,
}

_COMPARE_OPS: dict[str, Callable[[Any, Any], Any]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda a, b: a in b,
    "not in": lambda a, b: a not in b,
}


class Evaluator:
    """Evaluates expressions against an environment's active scope.

    Attributes:
        environment: Supplies the scope chain and the filter/test registries
        config: Controls strict lookup of undefined names
        loader: Loader anchored at the template being rendered
        template_name: Name of that template, for error messages
    """

    __slots__ = ("config", "environment", "loader", "template_name")

    # O(1) dispatch: node type name → handler method name
    _DISPATCH: dict[str, str] = {
        "Const": "_eval_const",
        "Name": "_eval_name",
        "Tuple": "_eval_tuple",
        "List": "_eval_list",
        "Dict": "_eval_dict",
        "Getattr": "_eval_getattr",
        "Getitem": "_eval_getitem",
        "FuncCall": "_eval_funccall",
        "Filter": "_eval_filter",
        "Test": "_eval_test",
        "BinOp": "_eval_binop",
        "UnaryOp": "_eval_unaryop",
        "Compare": "_eval_compare",
        "BoolOp": "_eval_boolop",
        "CondExpr": "_eval_condexpr",
        "Concat": "_eval_concat",
    }

    def __init__(
        self,
        environment: Environment,
        config: Config,
        loader: BaseLoader,
        template_name: str | None = None,
    ):
        self.environment = environment
        self.config = config
        self.loader = loader
        self.template_name = template_name

    @property
    def context(self) -> Context:
        return self.environment.context

    def eval(self, node: Expr) -> Value:
        """Evaluate ``node``; errors are returned as an error Value."""
        try:
            return Value(self.evaluate(node))
        except Exception as exc:
            return Value.from_error(exc)

    def evaluate(self, node: Expr) -> Any:
        """Evaluate ``node`` to a plain Python value, raising on failure."""
        method = self._DISPATCH.get(type(node).__name__)
        if method is None:
            raise TemplateRuntimeError(
                f"Cannot evaluate {type(node).__name__} node",
                template_name=self.template_name,
                lineno=node.lineno,
            )
        return getattr(self, method)(node)

    def _evaluate_lenient(self, node: Expr) -> Any:
        """Like ``evaluate`` but missing names become UNDEFINED."""
        if isinstance(node, Name):
            value, found = self.context.get(node.name)
            return value if found else UNDEFINED
        if isinstance(node, Getattr):
            return safe_getattr(self._evaluate_lenient(node.obj), node.attr)
        if isinstance(node, Getitem):
            return safe_getitem(self._evaluate_lenient(node.obj), self.evaluate(node.key))
        return self.evaluate(node)

    def _eval_const(self, node: Any) -> Any:
        return node.value

    def _eval_name(self, node: Any) -> Any:
        value, found = self.context.get(node.name)
        if found:
            return value
        if self.config.strict_undefined:
            raise UndefinedError(
                node.name,
                template=self.template_name,
                lineno=node.lineno,
                available_names=self.context.names(),
            )
        return UNDEFINED

    def _eval_tuple(self, node: Any) -> tuple[Any, ...]:
        return tuple(self.evaluate(item) for item in node.items)

    def _eval_list(self, node: Any) -> list[Any]:
        return [self.evaluate(item) for item in node.items]

    def _eval_dict(self, node: Any) -> dict[Any, Any]:
        return {
            self.evaluate(key): self.evaluate(value)
            for key, value in zip(node.keys, node.values, strict=True)
        }

    def _eval_getattr(self, node: Any) -> Any:
        return safe_getattr(self.evaluate(node.obj), node.attr)

    def _eval_getitem(self, node: Any) -> Any:
        return safe_getitem(self.evaluate(node.obj), self.evaluate(node.key))

    def _eval_args(self, node: Any) -> tuple[list[Any], dict[str, Any]]:
        args = [self.evaluate(arg) for arg in node.args]
        kwargs = {key: self.evaluate(value) for key, value in node.kwargs.items()}
        return args, kwargs

    def _eval_funccall(self, node: Any) -> Any:
        func = self.evaluate(node.func)
        if not callable(func):
            raise TemplateRuntimeError(
                f"'{node.func}' is not callable (got {type(func).__name__})",
                expression=str(node),
                template_name=self.template_name,
                lineno=node.lineno,
            )
        args, kwargs = self._eval_args(node)
        return func(*args, **kwargs)

    def _eval_filter(self, node: Any) -> Any:
        func = self.environment.filters.get(node.name)
        if func is None:
            match = suggest_name(node.name, self.environment.filters.keys())
            raise TemplateRuntimeError(
                f"Unknown filter '{node.name}'",
                expression=str(node),
                template_name=self.template_name,
                lineno=node.lineno,
                suggestion=f"Did you mean '{match}'?" if match else None,
                code=ErrorCode.FILTER_ERROR,
            )
        if node.name in LENIENT_FILTERS:
            value = self._evaluate_lenient(node.value)
        else:
            value = self.evaluate(node.value)
        args, kwargs = self._eval_args(node)
        return func(value, *args, **kwargs)

    def _eval_test(self, node: Any) -> bool:
        func = self.environment.tests.get(node.name)
        if func is None:
            match = suggest_name(node.name, self.environment.tests.keys())
            raise TemplateRuntimeError(
                f"Unknown test '{node.name}'",
                expression=str(node),
                template_name=self.template_name,
                lineno=node.lineno,
                suggestion=f"Did you mean '{match}'?" if match else None,
                code=ErrorCode.TEST_ERROR,
            )
        if node.name in LENIENT_TESTS:
            value = self._evaluate_lenient(node.value)
        else:
            value = self.evaluate(node.value)
        args, kwargs = self._eval_args(node)
        result = bool(func(value, *args, **kwargs))
        return not result if node.negated else result

    def _eval_binop(self, node: Any) -> Any:
        return _BINARY_OPS[node.op](self.evaluate(node.left), self.evaluate(node.right))

    def _eval_unaryop(self, node: Any) -> Any:
        operand = self.evaluate(node.operand)
        if node.op == "not":
            return not operand
        if node.op == "-":
            return -operand
        return +operand

    def _eval_compare(self, node: Any) -> bool:
        left = self.evaluate(node.left)
        for op, comparator in zip(node.ops, node.comparators, strict=True):
            right = self.evaluate(comparator)
            if not _COMPARE_OPS[op](left, right):
                return False
            left = right
        return True

    def _eval_boolop(self, node: Any) -> Any:
        value: Any = None
        for child in node.values:
            value = self.evaluate(child)
            if node.op == "and" and not value:
                return value
            if node.op == "or" and value:
                return value
        return value

    def _eval_condexpr(self, node: Any) -> Any:
        if self.evaluate(node.test):
            return self.evaluate(node.if_true)
        if node.if_false is None:
            return UNDEFINED
        return self.evaluate(node.if_false)

    def _eval_concat(self, node: Any) -> str:
        parts = [self.evaluate(part) for part in node.nodes]
        if any(isinstance(part, Markup) for part in parts):
            return Markup("").join(part if isinstance(part, Markup) else _to_str(part) for part in parts)
        return "".join(_to_str(part) for part in parts)


def _to_str(value: Any) -> str:
    return str(Value(value))

