"""Token navigation for the parser."""

from __future__ import annotations

from typing import TYPE_CHECKING

from strata._types import Token, TokenType
from strata.environment.exceptions import ErrorCode
from strata.parser.errors import ParseError

if TYPE_CHECKING:
    from strata.parser.core import ParseState


class TokenNavigationMixin:
    """Cursor over a token list that always ends with EOF.

    Required Host Attributes:
        - _tokens: list[Token]
        - _pos: int
        - state: ParseState
    """

    __slots__ = ()

    _tokens: list[Token]
    _pos: int
    state: ParseState

    @property
    def current(self) -> Token:
        return self._tokens[self._pos]

    def peek(self, offset: int = 1) -> Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def previous(self) -> Token | None:
        return self._tokens[self._pos - 1] if self._pos > 0 else None

    def advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def end(self) -> bool:
        """True once every token has been consumed."""
        return self._tokens[self._pos].type == TokenType.EOF

    def match(self, type_: TokenType, value: str | None = None) -> bool:
        token = self._tokens[self._pos]
        return token.type == type_ and (value is None or token.value == value)

    def match_name(self, *names: str) -> bool:
        token = self._tokens[self._pos]
        return token.type == TokenType.NAME and token.value in names

    def skip_name(self, name: str) -> bool:
        """Consume the keyword ``name`` if it is next."""
        if self.match_name(name):
            self._pos += 1
            return True
        return False

    def expect(self, type_: TokenType, value: str | None = None) -> Token:
        if not self.match(type_, value):
            wanted = value or type_.value
            found = self.current.value or self.current.type.value
            raise self.error(f"Expected '{wanted}', got '{found}'")
        return self.advance()

    def expect_name(self, value: str | None = None) -> str:
        return self.expect(TokenType.NAME, value).value

    def error(
        self,
        message: str,
        token: Token | None = None,
        *,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ) -> ParseError:
        return ParseError(
            message,
            token or self.current,
            source=self.state.source,
            name=self.state.name,
            filename=self.state.filename,
            suggestion=suggestion,
            code=code,
        )
