"""``{% macro %}`` definitions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from strata._types import TokenType
from strata.environment.exceptions import ErrorCode
from strata.nodes import Expr, Stmt, Wrapper, find_names
from strata.runtime.macro import Macro
from strata.statements.base import expect_end_tag

if TYPE_CHECKING:
    from strata.nodes import StatementBlock
    from strata.parser import Parser
    from strata.runtime.renderer import Renderer


@dataclass(frozen=True, slots=True)
class MacroStmt(Stmt):
    """A macro definition.

    ``catch_varargs`` / ``catch_kwargs`` are set when the body reads
    ``varargs`` / ``kwargs``; only then may a call pass extra arguments.
    """

    hoisted: ClassVar[bool] = True

    name: str
    params: tuple[str, ...]
    defaults: Mapping[str, Expr]
    body: Wrapper
    catch_varargs: bool = False
    catch_kwargs: bool = False

    def execute(self, renderer: Renderer, block: StatementBlock) -> None:
        renderer.context.set(self.name, Macro(self, renderer))

    def __str__(self) -> str:
        params = ", ".join(
            f"{param}={self.defaults[param]}" if param in self.defaults else param
            for param in self.params
        )
        return f"macro {self.name}({params})"


def parse_macro(parser: Parser, args: Parser) -> MacroStmt:
    start = args.current
    name = args.parse_identifier()
    params: list[str] = []
    defaults: dict[str, Expr] = {}
    args.expect(TokenType.LPAREN)
    while not args.match(TokenType.RPAREN):
        param_token = args.current
        param = args.parse_identifier()
        if param in params:
            raise args.error(
                f"Duplicate parameter '{param}' in macro '{name}'",
                param_token,
                code=ErrorCode.DUPLICATE_DEFINITION,
            )
        if args.match(TokenType.ASSIGN):
            args.advance()
            defaults[param] = args.parse_expression()
        elif defaults:
            raise args.error(
                f"Parameter '{param}' without a default follows a parameter with one",
                param_token,
            )
        params.append(param)
        if not args.match(TokenType.RPAREN):
            args.expect(TokenType.COMMA)
    args.expect(TokenType.RPAREN)

    body, end_args = parser.wrap_until("endmacro")
    expect_end_tag(body, end_args, name)

    used = find_names(body.body)
    stmt = MacroStmt(
        start.lineno,
        start.col_offset,
        name=name,
        params=tuple(params),
        defaults=defaults,
        body=body,
        catch_varargs="varargs" in used and "varargs" not in params,
        catch_kwargs="kwargs" in used and "kwargs" not in params,
    )
    if parser.state.depth > 0:
        # Nested macros exist only where their statement runs
        return stmt
    if name in parser.state.macros:
        raise args.error(
            f"Macro '{name}' is defined more than once",
            start,
            code=ErrorCode.DUPLICATE_DEFINITION,
        )
    parser.state.macros[name] = stmt
    return stmt
