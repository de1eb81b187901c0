"""Parsing helpers shared by the built-in statements."""

from __future__ import annotations

from typing import TYPE_CHECKING

from strata._types import TokenType
from strata.environment.exceptions import ErrorCode

if TYPE_CHECKING:
    from strata.nodes import Wrapper
    from strata.parser import Parser

_CONTEXT_MODIFIERS = (("with", True), ("without", False))


def parse_context_modifier(args: Parser) -> bool | None:
    """Parse an optional ``with context`` / ``without context``.

    Returns True, False, or None when no modifier is present.
    """
    for keyword, value in _CONTEXT_MODIFIERS:
        following = args.peek()
        if args.match_name(keyword) and following.type == TokenType.NAME and following.value == "context":
            args.advance()
            args.advance()
            return value
    return None


def context_modifier_str(with_context: bool | None) -> str:
    if with_context is None:
        return ""
    return " with context" if with_context else " without context"


def expect_end_tag(wrapper: Wrapper, end_args: Parser, name: str | None = None) -> None:
    """Check the arguments of a closing tag.

    A closing tag may repeat the construct's name (``{% endblock title %}``);
    anything else is an error.
    """
    if end_args.end():
        return
    if name is not None and end_args.match_name(name):
        end_args.advance()
        if end_args.end():
            return
    raise end_args.error(
        f"Unexpected '{end_args.current.value}' in '{wrapper.end_tag}'",
        code=ErrorCode.UNEXPECTED_TOKEN,
    )
