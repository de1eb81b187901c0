"""``{% autoescape [true|false] %}...{% endautoescape %}``"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from strata.environment.exceptions import ErrorCode
from strata.nodes import Const, Stmt, Wrapper
from strata.statements.base import expect_end_tag

if TYPE_CHECKING:
    from strata.nodes import StatementBlock
    from strata.parser import Parser
    from strata.runtime.renderer import Renderer


@dataclass(frozen=True, slots=True)
class AutoescapeStmt(Stmt):
    """Render the body with autoescaping switched on or off.

    The body gets a sub-renderer whose config copy carries the new
    setting; the enclosing scope keeps its own.
    """

    enabled: bool
    body: Wrapper

    def execute(self, renderer: Renderer, block: StatementBlock) -> None:
        sub = renderer.inherit()
        sub.config.autoescape = self.enabled
        sub.walk(self.body.body)

    def __str__(self) -> str:
        return f"autoescape {str(self.enabled).lower()}"


def parse_autoescape(parser: Parser, args: Parser) -> AutoescapeStmt:
    start = args.current
    enabled = True
    if not args.end():
        expr = args.parse_expression()
        if not isinstance(expr, Const) or not isinstance(expr.value, bool):
            raise args.error(
                "'autoescape' takes true or false",
                start,
                code=ErrorCode.INVALID_EXPRESSION,
            )
        enabled = expr.value
    body, end_args = parser.wrap_until("endautoescape")
    expect_end_tag(body, end_args)
    return AutoescapeStmt(start.lineno, start.col_offset, enabled=enabled, body=body)
