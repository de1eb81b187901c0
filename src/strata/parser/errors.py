"""Parser error handling.

ParseError is a TemplateSyntaxError positioned at the offending token.
"""

from __future__ import annotations

from strata._types import Token
from strata.environment.exceptions import ErrorCode, TemplateSyntaxError


class ParseError(TemplateSyntaxError):
    """Syntax error raised while building the AST.

    The formatted message shows the source line with a caret under the
    token, plus a suggestion when one is known.
    """

    def __init__(
        self,
        message: str,
        token: Token,
        source: str | None = None,
        name: str | None = None,
        filename: str | None = None,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ):
        self.token = token
        super().__init__(
            message,
            lineno=token.lineno,
            name=name,
            filename=filename,
            source=source,
            col_offset=token.col_offset,
            code=code or ErrorCode.UNEXPECTED_TOKEN,
            suggestion=suggestion,
        )
