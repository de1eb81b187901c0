"""``{% set %}``: bind names in the current scope.

    {% set title = page.title | default("Untitled") %}
    {% set first, rest = pair %}
    {% set nav %}<a href="/">Home</a>{% endset %}

Assignments write the local frame only; an enclosing scope's binding of
the same name is shadowed, never changed. The block form captures its
rendered body as safe markup.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from strata._types import TokenType
from strata.environment.exceptions import TemplateRuntimeError
from strata.nodes import Expr, Stmt, Tuple, Wrapper
from strata.statements.base import expect_end_tag
from strata.utils.html import Markup

if TYPE_CHECKING:
    from strata.nodes import StatementBlock
    from strata.parser import Parser
    from strata.runtime.renderer import Renderer


@dataclass(frozen=True, slots=True)
class SetStmt(Stmt):
    """Assignment; exactly one of ``value`` and ``body`` is set."""

    hoisted: ClassVar[bool] = True

    targets: tuple[str, ...]
    value: Expr | None = None
    body: Wrapper | None = None

    def execute(self, renderer: Renderer, block: StatementBlock) -> None:
        if self.body is not None:
            result: Any = Markup(renderer.capture(self.body.body))
        else:
            assert self.value is not None
            value = renderer.eval(self.value)
            if value.is_error:
                raise TemplateRuntimeError(
                    f"Unable to evaluate '{self.value}'",
                    expression=str(self.value),
                    template_name=renderer.template.name,
                    lineno=self.lineno,
                ) from value.error
            result = value.val

        if len(self.targets) == 1:
            renderer.context.set(self.targets[0], result)
            return

        try:
            values = tuple(result)
        except TypeError as exc:
            raise TemplateRuntimeError(
                f"Cannot unpack {type(result).__name__} into {len(self.targets)} names",
                template_name=renderer.template.name,
                lineno=self.lineno,
            ) from exc
        if len(values) != len(self.targets):
            raise TemplateRuntimeError(
                f"Expected {len(self.targets)} values to unpack, got {len(values)}",
                template_name=renderer.template.name,
                lineno=self.lineno,
            )
        for target, item in zip(self.targets, values, strict=True):
            renderer.context.set(target, item)

    def __str__(self) -> str:
        targets = ", ".join(self.targets)
        if self.value is None:
            return f"set {targets}"
        return f"set {targets} = {self.value}"


def parse_set(parser: Parser, args: Parser) -> SetStmt:
    start = args.current
    targets = args.parse_target()
    if args.match(TokenType.ASSIGN):
        args.advance()
        return SetStmt(start.lineno, start.col_offset, targets=targets, value=_parse_value(args))
    if len(targets) != 1:
        raise args.error("Block assignment takes a single name", start)
    body, end_args = parser.wrap_until("endset")
    expect_end_tag(body, end_args)
    return SetStmt(start.lineno, start.col_offset, targets=targets, body=body)


def _parse_value(args: Parser) -> Expr:
    """Right-hand side; ``a, b`` without parentheses is a tuple."""
    first = args.parse_expression()
    if not args.match(TokenType.COMMA):
        return first
    items = [first]
    while args.match(TokenType.COMMA):
        args.advance()
        if args.end():
            break
        items.append(args.parse_expression())
    return Tuple(first.lineno, first.col_offset, items=tuple(items))
