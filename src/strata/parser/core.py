"""Parser: token stream → template AST.

Text, comments and ``{{ }}`` outputs are parsed here. Every ``{% tag %}``
is handed to the statement parser registered under ``tag`` in the
environment's statement registry, which receives two parsers:

- ``parser``: the template-level parser, positioned after the tag, used
  to parse a body with ``wrap_until("endtag", ...)``;
- ``args``: a parser over just the tokens inside the tag. The statement
  parser must consume all of them.

Named constructs (blocks, macros) and the ``extends`` parent are recorded
in a ParseState shared by a template's parser and all its sub-parsers.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from strata._types import Token, TokenType
from strata.environment.exceptions import ErrorCode, suggest_name
from strata.lexer import Lexer
from strata.nodes import (
    Comment,
    Data,
    Node,
    Output,
    StatementBlock,
    Template,
    Wrapper,
)
from strata.parser.expressions import ExpressionParsingMixin
from strata.parser.tokens import TokenNavigationMixin

if TYPE_CHECKING:
    from strata.environment.core import Environment
    from strata.environment.loaders import BaseLoader
    from strata.statements.macros import MacroStmt
    from strata.template.core import Template as LoadedTemplate

logger = logging.getLogger(__name__)

StatementParser = Callable[["Parser", "Parser"], Any]

_END_TAG_PREFIXES = ("end", "else", "elif")


@dataclass(slots=True)
class ParseState:
    """Per-template parse state shared with every sub-parser.

    Attributes:
        name: Template name for error messages
        source: Template source for error snippets
        filename: Source path, when the loader knows one
        environment: Environment providing the statement registry
        loader: Loader anchored at this template, used by ``extends``
        chain: Names of the templates currently being loaded through
            ``extends``, used to reject cycles
        depth: Statement nesting depth; only depth-0 macros are exported
        parent: The template loaded by ``extends``
    """

    name: str | None = None
    source: str | None = None
    filename: str | None = None
    environment: Environment | None = None
    loader: BaseLoader | None = None
    chain: tuple[str, ...] = ()
    depth: int = 0
    blocks: dict[str, Wrapper] = field(default_factory=dict)
    macros: dict[str, MacroStmt] = field(default_factory=dict)
    parent: LoadedTemplate | None = None


class Parser(TokenNavigationMixin, ExpressionParsingMixin):
    """Recursive-descent parser for one template.

    Example:
        >>> Parser.from_source("Hello {{ name }}!").parse().body
        (Data(... value='Hello '), Output(... expr=Name(... name='name')), Data(... value='!'))
    """

    __slots__ = ("_pos", "_tokens", "state")

    def __init__(self, tokens: list[Token], state: ParseState | None = None):
        if not tokens or tokens[-1].type != TokenType.EOF:
            last = tokens[-1] if tokens else None
            eof = Token(TokenType.EOF, "", last.lineno if last else 1, last.col_offset if last else 0)
            tokens = [*tokens, eof]
        self._tokens = tokens
        self._pos = 0
        self.state = state if state is not None else ParseState()

    @classmethod
    def from_source(
        cls,
        source: str,
        *,
        name: str | None = None,
        filename: str | None = None,
        environment: Environment | None = None,
        loader: BaseLoader | None = None,
        chain: tuple[str, ...] = (),
    ) -> Parser:
        state = ParseState(
            name=name,
            source=source,
            filename=filename,
            environment=environment,
            loader=loader,
            chain=chain,
        )
        return cls(list(Lexer(source, name).tokenize()), state)

    @property
    def statements(self) -> Mapping[str, StatementParser]:
        if self.state.environment is not None:
            return self.state.environment.statements
        from strata.statements import DEFAULT_STATEMENTS

        return DEFAULT_STATEMENTS

    def sub_parser(self, tokens: list[Token]) -> Parser:
        """Parser over ``tokens`` sharing this template's state."""
        return Parser(tokens, self.state)

    def parse(self) -> Template:
        """Parse the whole token stream into a Template node."""
        body: list[Node] = []
        while not self.end():
            body.append(self.parse_node())
        logger.debug(
            f"Parsed template {self.state.name!r}: {len(body)} top-level nodes, "
            f"{len(self.state.blocks)} blocks, {len(self.state.macros)} macros"
        )
        return Template(
            lineno=1,
            col_offset=0,
            name=self.state.name,
            body=tuple(body),
            parent=self.state.parent,
            blocks=dict(self.state.blocks),
            macros=dict(self.state.macros),
        )

    def parse_node(self) -> Node:
        token = self.current
        if token.type == TokenType.DATA:
            return self._parse_data()
        if token.type == TokenType.COMMENT_BEGIN:
            return self._parse_comment()
        if token.type == TokenType.VARIABLE_BEGIN:
            return self._parse_output()
        if token.type == TokenType.BLOCK_BEGIN:
            return self._parse_statement()
        raise self.error(f"Unexpected '{token.value or token.type.value}'")

    def wrap_until(self, *names: str) -> tuple[Wrapper, Parser]:
        """Parse a statement body up to the first ``{% name %}`` in ``names``.

        Consumes the closing tag. Returns the body and a parser over the
        closing tag's own arguments (``elif`` carries a condition).
        """
        start = self.current
        body: list[Node] = []
        self.state.depth += 1
        try:
            while True:
                if self.end():
                    expected = " or ".join(f"'{{% {name} %}}'" for name in names)
                    raise self.error(
                        f"Unexpected end of template, expected {expected}",
                        start,
                        code=ErrorCode.UNCLOSED_BLOCK,
                    )
                if self.match(TokenType.BLOCK_BEGIN):
                    tag = self.peek()
                    if tag.type == TokenType.NAME and tag.value in names:
                        self.advance()
                        self.advance()
                        args = self._collect_args()
                        wrapper = Wrapper(
                            lineno=start.lineno,
                            col_offset=start.col_offset,
                            body=tuple(body),
                            end_tag=tag.value,
                        )
                        return wrapper, args
                body.append(self.parse_node())
        finally:
            self.state.depth -= 1

    def _parse_data(self) -> Data:
        previous = self.previous()
        token = self.advance()
        following = self.current
        return Data(
            lineno=token.lineno,
            col_offset=token.col_offset,
            value=token.value,
            trim_left=previous is not None and previous.type in _END_TYPES and previous.trims,
            trim_right=following.type in _BEGIN_TYPES and following.trims,
        )

    def _parse_comment(self) -> Comment:
        begin = self.advance()
        text = self.expect(TokenType.COMMENT).value
        self.expect(TokenType.COMMENT_END)
        return Comment(lineno=begin.lineno, col_offset=begin.col_offset, value=text)

    def _parse_output(self) -> Output:
        begin = self.advance()
        if self.match(TokenType.VARIABLE_END):
            raise self.error("Empty expression", code=ErrorCode.INVALID_EXPRESSION)
        expr = self.parse_expression(allow_conditional=False)
        condition = alternative = None
        if self.skip_name("if"):
            condition = self.parse_expression(allow_conditional=False)
            if self.skip_name("else"):
                alternative = self.parse_expression()
        if not self.match(TokenType.VARIABLE_END):
            raise self.error(
                f"Unexpected '{self.current.value}' in output, expected '}}}}'",
                code=ErrorCode.UNEXPECTED_TOKEN,
            )
        self.advance()
        return Output(
            lineno=begin.lineno,
            col_offset=begin.col_offset,
            expr=expr,
            condition=condition,
            alternative=alternative,
        )

    def _parse_statement(self) -> StatementBlock:
        begin = self.advance()
        tag = self.current
        if tag.type != TokenType.NAME:
            raise self.error("Expected a statement name after '{%'", code=ErrorCode.UNKNOWN_STATEMENT)
        self.advance()
        args = self._collect_args()

        registry = self.statements
        parse = registry.get(tag.value)
        if parse is None:
            if tag.value.startswith(_END_TAG_PREFIXES):
                raise self.error(
                    f"Unexpected '{{% {tag.value} %}}' with no matching opening tag",
                    tag,
                    code=ErrorCode.UNEXPECTED_TOKEN,
                )
            match = suggest_name(tag.value, registry.keys())
            raise self.error(
                f"Unknown statement '{tag.value}'",
                tag,
                suggestion=f"Did you mean '{match}'?" if match else None,
                code=ErrorCode.UNKNOWN_STATEMENT,
            )

        stmt = parse(self, args)
        if not args.end():
            raise args.error(
                f"Unexpected '{args.current.value}' in '{tag.value}' statement",
                code=ErrorCode.UNEXPECTED_TOKEN,
            )
        return StatementBlock(
            lineno=begin.lineno,
            col_offset=begin.col_offset,
            name=tag.value,
            stmt=stmt,
        )

    def _collect_args(self) -> Parser:
        """Consume tokens through the next ``%}``; return a parser over them."""
        tokens: list[Token] = []
        while not self.match(TokenType.BLOCK_END):
            if self.end():
                raise self.error("Unclosed statement tag, expected '%}'", code=ErrorCode.UNCLOSED_BLOCK)
            tokens.append(self.advance())
        end = self.advance()
        tokens.append(Token(TokenType.EOF, "", end.lineno, end.col_offset))
        return self.sub_parser(tokens)


_BEGIN_TYPES = frozenset({TokenType.VARIABLE_BEGIN, TokenType.BLOCK_BEGIN, TokenType.COMMENT_BEGIN})
_END_TYPES = frozenset({TokenType.VARIABLE_END, TokenType.BLOCK_END, TokenType.COMMENT_END})


def parse(source: str, name: str | None = None, **kwargs: Any) -> Template:
    """Parse ``source`` into a Template node."""
    return Parser.from_source(source, name=name, **kwargs).parse()
