"""Control flow: ``{% if %}`` and ``{% for %}``.

``if`` bodies run in the enclosing scope, so a ``set`` inside a branch is
visible after ``endif``. Every ``for`` iteration gets its own scope holding
the loop targets and ``loop``; nothing bound inside the loop leaks out.

Loop metadata (``loop``):
    index, index0, first, last, length, revindex, revindex0,
    previtem, nextitem, depth, parent (the enclosing loop),
    cycle(*values), changed(*values)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from strata.environment.exceptions import TemplateRuntimeError
from strata.nodes import Expr, Stmt, Wrapper
from strata.statements.base import expect_end_tag
from strata.template.loop_context import LoopContext

if TYPE_CHECKING:
    from strata.nodes import StatementBlock
    from strata.parser import Parser
    from strata.runtime.renderer import Renderer


def _eval_condition(renderer: Renderer, expr: Expr) -> bool:
    value = renderer.eval(expr)
    if value.is_error:
        raise TemplateRuntimeError(
            f"Unable to evaluate condition '{expr}'",
            expression=str(expr),
            template_name=renderer.template.name,
            lineno=expr.lineno,
        ) from value.error
    return value.is_true


@dataclass(frozen=True, slots=True)
class IfStmt(Stmt):
    """``if`` / ``elif`` branches, tried in order, then the ``else`` body."""

    branches: tuple[tuple[Expr, Wrapper], ...]
    else_body: Wrapper | None = None

    def execute(self, renderer: Renderer, block: StatementBlock) -> None:
        for test, body in self.branches:
            if _eval_condition(renderer, test):
                renderer.walk(body.body)
                return
        if self.else_body is not None:
            renderer.walk(self.else_body.body)

    def __str__(self) -> str:
        return f"if {self.branches[0][0]}"


@dataclass(frozen=True, slots=True)
class ForStmt(Stmt):
    """``{% for a, b in items if cond %}...{% else %}...{% endfor %}``"""

    targets: tuple[str, ...]
    iter: Expr
    body: Wrapper
    condition: Expr | None = None
    else_body: Wrapper | None = None

    def execute(self, renderer: Renderer, block: StatementBlock) -> None:
        value = renderer.eval(self.iter)
        if value.is_error:
            raise TemplateRuntimeError(
                f"Unable to evaluate '{self.iter}'",
                expression=str(self.iter),
                template_name=renderer.template.name,
                lineno=self.iter.lineno,
            ) from value.error
        try:
            items = [] if value.is_nil else list(value.val)
        except TypeError as exc:
            raise TemplateRuntimeError(
                f"'{self.iter}' is not iterable (got {type(value.val).__name__})",
                expression=str(self.iter),
                template_name=renderer.template.name,
                lineno=self.iter.lineno,
            ) from exc

        if self.condition is not None:
            items = [item for item in items if self._accepts(renderer, item)]

        if not items:
            if self.else_body is not None:
                renderer.execute_body(self.else_body.body)
            return

        parent, _ = renderer.context.get("loop")
        loop = LoopContext(items, parent if isinstance(parent, LoopContext) else None)
        for item in loop:
            sub = renderer.inherit()
            self._bind(sub, item)
            sub.context.set("loop", loop)
            sub.walk(self.body.body)

    def _accepts(self, renderer: Renderer, item: Any) -> bool:
        assert self.condition is not None
        scratch = renderer.inherit()
        self._bind(scratch, item)
        return _eval_condition(scratch, self.condition)

    def _bind(self, renderer: Renderer, item: Any) -> None:
        scope = renderer.context
        if len(self.targets) == 1:
            scope.set(self.targets[0], item)
            return
        try:
            values = tuple(item)
        except TypeError as exc:
            raise TemplateRuntimeError(
                f"Cannot unpack {type(item).__name__} into {', '.join(self.targets)}",
                template_name=renderer.template.name,
                lineno=self.lineno,
            ) from exc
        if len(values) != len(self.targets):
            raise TemplateRuntimeError(
                f"Expected {len(self.targets)} values to unpack, got {len(values)}",
                template_name=renderer.template.name,
                lineno=self.lineno,
            )
        for target, value in zip(self.targets, values, strict=True):
            scope.set(target, value)

    def __str__(self) -> str:
        return f"for {', '.join(self.targets)} in {self.iter}"


def parse_if(parser: Parser, args: Parser) -> IfStmt:
    start = args.current
    branches: list[tuple[Expr, Wrapper]] = []
    test = args.parse_expression()
    while True:
        body, end_args = parser.wrap_until("elif", "else", "endif")
        branches.append((test, body))
        if body.end_tag != "elif":
            break
        test = end_args.parse_expression()
        expect_end_tag(body, end_args)

    else_body = None
    if body.end_tag == "else":
        expect_end_tag(body, end_args)
        else_body, end_args = parser.wrap_until("endif")
    expect_end_tag(body if else_body is None else else_body, end_args)
    return IfStmt(start.lineno, start.col_offset, branches=tuple(branches), else_body=else_body)


def parse_for(parser: Parser, args: Parser) -> ForStmt:
    start = args.current
    targets = args.parse_target()
    args.expect_name("in")
    iterable = args.parse_expression(allow_conditional=False)
    condition = args.parse_expression(allow_conditional=False) if args.skip_name("if") else None

    body, end_args = parser.wrap_until("else", "endfor")
    expect_end_tag(body, end_args)
    else_body = None
    if body.end_tag == "else":
        else_body, end_args = parser.wrap_until("endfor")
        expect_end_tag(else_body, end_args)
    return ForStmt(
        start.lineno,
        start.col_offset,
        targets=targets,
        iter=iterable,
        body=body,
        condition=condition,
        else_body=else_body,
    )
