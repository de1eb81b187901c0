"""Template parser: tokens → strata AST."""

from strata.parser.core import ParseState, Parser, StatementParser, parse
from strata.parser.errors import ParseError

__all__ = ["ParseError", "ParseState", "Parser", "StatementParser", "parse"]
