"""Template lexer.

Splits template source into a flat token stream: DATA runs between tags,
and for every tag its begin delimiter, the expression tokens inside it,
and its end delimiter.

Delimiters:
    {{ ... }}   output
    {% ... %}   statement
    {# ... #}   comment

A ``-`` right inside a delimiter (``{{-``, ``-%}``) is kept in the
delimiter token's value; the parser turns it into a trim flag on the
neighbouring Data node.

Example:
    >>> [t.type.name for t in tokenize("Hi {{ name }}")]
    ['DATA', 'VARIABLE_BEGIN', 'NAME', 'VARIABLE_END', 'EOF']
"""

from __future__ import annotations

import re
from bisect import bisect_right
from collections.abc import Iterator

from strata._types import Token, TokenType
from strata.environment.exceptions import ErrorCode, TemplateSyntaxError

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"'}


class LexerError(TemplateSyntaxError):
    """Source that cannot be split into tokens."""


class Lexer:
    """Tokenizer for one template source."""

    # Compiled once at class level
    _TAG_START = re.compile(r"\{([{%#])(-?)")
    _WHITESPACE = re.compile(r"\s+")
    _FLOAT = re.compile(r"\d+\.\d+(?:[eE][+-]?\d+)?")
    _INTEGER = re.compile(r"\d+")
    _NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
    _STRING = re.compile(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"", re.DOTALL)
    _ESCAPE = re.compile(r"\\(.)", re.DOTALL)

    # Longest first so "**" wins over "*"
    _OPERATORS = ("**", "//", "==", "!=", "<=", ">=", "<", ">", "+", "-", "*", "/", "%", "~")

    _PUNCTUATION = {
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
        "[": TokenType.LBRACKET,
        "]": TokenType.RBRACKET,
        "{": TokenType.LBRACE,
        "}": TokenType.RBRACE,
        ",": TokenType.COMMA,
        ":": TokenType.COLON,
        ".": TokenType.DOT,
        "|": TokenType.PIPE,
        "=": TokenType.ASSIGN,
    }

    _TAGS = {
        "{": ("}}", TokenType.VARIABLE_BEGIN, TokenType.VARIABLE_END, ErrorCode.UNCLOSED_VARIABLE),
        "%": ("%}", TokenType.BLOCK_BEGIN, TokenType.BLOCK_END, ErrorCode.UNCLOSED_TAG),
    }

    __slots__ = ("_line_starts", "name", "source")

    def __init__(self, source: str, name: str | None = None):
        self.source = source
        self.name = name
        self._line_starts = [0] + [m.end() for m in re.finditer(r"\n", source)]

    def _position(self, pos: int) -> tuple[int, int]:
        line_index = bisect_right(self._line_starts, pos) - 1
        return line_index + 1, pos - self._line_starts[line_index]

    def _token(self, type_: TokenType, value: str, pos: int) -> Token:
        lineno, col = self._position(pos)
        return Token(type_, value, lineno, col)

    def _error(self, message: str, pos: int, code: ErrorCode) -> LexerError:
        lineno, col = self._position(pos)
        return LexerError(
            message,
            lineno=lineno,
            name=self.name,
            source=self.source,
            col_offset=col,
            code=code,
        )

    def tokenize(self) -> Iterator[Token]:
        source = self.source
        pos = 0
        length = len(source)

        while pos < length:
            match = self._TAG_START.search(source, pos)
            if match is None:
                yield self._token(TokenType.DATA, source[pos:], pos)
                break
            if match.start() > pos:
                yield self._token(TokenType.DATA, source[pos : match.start()], pos)

            kind = match.group(1)
            if kind == "#":
                pos = yield from self._lex_comment(match)
            else:
                pos = yield from self._lex_tag(match, kind)

        yield self._token(TokenType.EOF, "", length)

    def _lex_comment(self, match: re.Match[str]) -> Iterator[Token]:
        start = match.start()
        end = self.source.find("#}", match.end())
        if end == -1:
            raise self._error("Unclosed comment", start, ErrorCode.UNCLOSED_COMMENT)

        body = self.source[match.end() : end]
        closer = "#}"
        if body.endswith("-"):
            body = body[:-1]
            closer = "-#}"
        yield self._token(TokenType.COMMENT_BEGIN, match.group(0), start)
        yield self._token(TokenType.COMMENT, body, match.end())
        yield self._token(TokenType.COMMENT_END, closer, end - (len(closer) - 2))
        return end + 2

    def _lex_tag(self, match: re.Match[str], kind: str) -> Iterator[Token]:
        closer, begin_type, end_type, unclosed = self._TAGS[kind]
        source = self.source
        length = len(source)
        yield self._token(begin_type, match.group(0), match.start())

        pos = match.end()
        depth = 0
        while True:
            ws = self._WHITESPACE.match(source, pos)
            if ws:
                pos = ws.end()
            if pos >= length:
                raise self._error(
                    f"Unclosed tag, expected '{closer}'", match.start(), unclosed
                )

            if depth == 0:
                if source.startswith("-" + closer, pos):
                    yield self._token(end_type, "-" + closer, pos)
                    return pos + 3
                if source.startswith(closer, pos):
                    yield self._token(end_type, closer, pos)
                    return pos + 2

            token, pos_after = self._lex_expression_token(pos)
            if token.type in (TokenType.LPAREN, TokenType.LBRACKET, TokenType.LBRACE):
                depth += 1
            elif token.type in (TokenType.RPAREN, TokenType.RBRACKET, TokenType.RBRACE):
                depth = max(0, depth - 1)
            yield token
            pos = pos_after

    def _lex_expression_token(self, pos: int) -> tuple[Token, int]:
        source = self.source

        m = self._STRING.match(source, pos)
        if m:
            body = m.group(0)[1:-1]
            value = self._ESCAPE.sub(lambda e: _ESCAPES.get(e.group(1), "\\" + e.group(1)), body)
            return self._token(TokenType.STRING, value, pos), m.end()
        if source[pos] in "'\"":
            raise self._error("Unterminated string literal", pos, ErrorCode.UNEXPECTED_CHARACTER)

        m = self._FLOAT.match(source, pos)
        if m:
            return self._token(TokenType.FLOAT, m.group(0), pos), m.end()
        m = self._INTEGER.match(source, pos)
        if m:
            return self._token(TokenType.INTEGER, m.group(0), pos), m.end()
        m = self._NAME.match(source, pos)
        if m:
            return self._token(TokenType.NAME, m.group(0), pos), m.end()

        for op in self._OPERATORS:
            if source.startswith(op, pos):
                return self._token(TokenType.OPERATOR, op, pos), pos + len(op)

        char = source[pos]
        punct = self._PUNCTUATION.get(char)
        if punct is not None:
            return self._token(punct, char, pos), pos + 1

        raise self._error(f"Unexpected character {char!r}", pos, ErrorCode.UNEXPECTED_CHARACTER)


def tokenize(source: str, name: str | None = None) -> Iterator[Token]:
    """Tokenize ``source``; convenience wrapper around ``Lexer``."""
    return Lexer(source, name).tokenize()
