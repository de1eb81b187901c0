"""Token types shared by the lexer and parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """Lexical token categories."""

    DATA = "data"
    COMMENT_BEGIN = "comment_begin"
    COMMENT = "comment"
    COMMENT_END = "comment_end"
    VARIABLE_BEGIN = "variable_begin"
    VARIABLE_END = "variable_end"
    BLOCK_BEGIN = "block_begin"
    BLOCK_END = "block_end"

    NAME = "name"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    OPERATOR = "operator"

    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    LBRACE = "{"
    RBRACE = "}"
    COMMA = ","
    COLON = ":"
    DOT = "."
    PIPE = "|"
    ASSIGN = "="

    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    """One lexical token with its source position.

    Delimiter tokens keep their exact text as ``value`` (``"{%-"``,
    ``"-}}"``) so the parser can see whitespace-control markers.
    """

    type: TokenType
    value: str
    lineno: int
    col_offset: int

    @property
    def trims(self) -> bool:
        """True for a delimiter carrying a ``-`` whitespace-control marker."""
        return self.value.startswith("-") or self.value.endswith("-")

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.lineno}:{self.col_offset})"
