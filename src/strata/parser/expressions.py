"""Expression parsing.

Precedence, loosest first:

    a if c else b
    or
    and
    not
    == != < <= > >= in, not in   (chained)
    ~
    + -
    * / // %
    unary - +
    **
    postfix: .attr  [key]  (call)  | filter  is test
"""

from __future__ import annotations

from strata._types import TokenType
from strata.environment.exceptions import ErrorCode
from strata.nodes import (
    BinOp,
    BoolOp,
    Compare,
    Concat,
    CondExpr,
    Const,
    Dict,
    Expr,
    Filter,
    FuncCall,
    Getattr,
    Getitem,
    List,
    Name,
    Test,
    Tuple,
    UnaryOp,
)

_COMPARE_OPS = frozenset({"==", "!=", "<", "<=", ">", ">="})
_ADDITIVE_OPS = frozenset({"+", "-"})
_MULTIPLICATIVE_OPS = frozenset({"*", "/", "//", "%"})
_CONSTANTS = {
    "true": True,
    "True": True,
    "false": False,
    "False": False,
    "none": None,
    "None": None,
}
KEYWORDS = frozenset({"and", "or", "not", "if", "else", "in", "is"})


class ExpressionParsingMixin:
    """Recursive-descent expression parser.

    Required Host Attributes:
        - All from TokenNavigationMixin
    """

    __slots__ = ()

    def parse_expression(self, allow_conditional: bool = True) -> Expr:
        """Parse one expression.

        With ``allow_conditional=False`` a trailing ``if`` is left for the
        caller, as ``{{ x if c else y }}`` and ``{% for %}`` filters need.
        """
        expr = self._parse_or()
        if allow_conditional and self.match_name("if"):
            self.advance()
            test = self._parse_or()
            if_false = self.parse_expression() if self.skip_name("else") else None
            expr = CondExpr(
                expr.lineno, expr.col_offset, test=test, if_true=expr, if_false=if_false
            )
        return expr

    def parse_target(self) -> tuple[str, ...]:
        """Parse assignment targets: ``a``, ``a, b`` or ``(a, b)``."""
        parenthesized = self.match(TokenType.LPAREN)
        if parenthesized:
            self.advance()
        names = [self.parse_identifier()]
        while self.match(TokenType.COMMA):
            self.advance()
            if parenthesized and self.match(TokenType.RPAREN):
                break
            names.append(self.parse_identifier())
        if parenthesized:
            self.expect(TokenType.RPAREN)
        return tuple(names)

    def parse_identifier(self) -> str:
        """Parse a name that can be bound: not a keyword or a constant."""
        token = self.current
        if token.type != TokenType.NAME or token.value in KEYWORDS or token.value in _CONSTANTS:
            raise self.error(
                f"Expected a variable name, got '{token.value}'",
                code=ErrorCode.INVALID_EXPRESSION,
            )
        return self.advance().value

    def _parse_or(self) -> Expr:
        values = [self._parse_and()]
        while self.skip_name("or"):
            values.append(self._parse_and())
        if len(values) == 1:
            return values[0]
        return BoolOp(values[0].lineno, values[0].col_offset, op="or", values=tuple(values))

    def _parse_and(self) -> Expr:
        values = [self._parse_not()]
        while self.skip_name("and"):
            values.append(self._parse_not())
        if len(values) == 1:
            return values[0]
        return BoolOp(values[0].lineno, values[0].col_offset, op="and", values=tuple(values))

    def _parse_not(self) -> Expr:
        if self.match_name("not"):
            token = self.advance()
            return UnaryOp(token.lineno, token.col_offset, op="not", operand=self._parse_not())
        return self._parse_compare()

    def _parse_compare(self) -> Expr:
        left = self._parse_concat()
        ops: list[str] = []
        comparators: list[Expr] = []
        while True:
            token = self.current
            if token.type == TokenType.OPERATOR and token.value in _COMPARE_OPS:
                self.advance()
                ops.append(token.value)
            elif self.match_name("in"):
                self.advance()
                ops.append("in")
            elif self.match_name("not") and self.peek().type == TokenType.NAME and self.peek().value == "in":
                self.advance()
                self.advance()
                ops.append("not in")
            else:
                break
            comparators.append(self._parse_concat())
        if not ops:
            return left
        return Compare(
            left.lineno, left.col_offset, left=left, ops=tuple(ops), comparators=tuple(comparators)
        )

    def _parse_concat(self) -> Expr:
        nodes = [self._parse_additive()]
        while self.match(TokenType.OPERATOR, "~"):
            self.advance()
            nodes.append(self._parse_additive())
        if len(nodes) == 1:
            return nodes[0]
        return Concat(nodes[0].lineno, nodes[0].col_offset, nodes=tuple(nodes))

    def _parse_binary(self, operators: frozenset[str], operand: str) -> Expr:
        parse_operand = getattr(self, operand)
        left = parse_operand()
        while self.current.type == TokenType.OPERATOR and self.current.value in operators:
            op = self.advance().value
            right = parse_operand()
            left = BinOp(left.lineno, left.col_offset, op=op, left=left, right=right)
        return left

    def _parse_additive(self) -> Expr:
        return self._parse_binary(_ADDITIVE_OPS, "_parse_multiplicative")

    def _parse_multiplicative(self) -> Expr:
        return self._parse_binary(_MULTIPLICATIVE_OPS, "_parse_unary")

    def _parse_unary(self) -> Expr:
        token = self.current
        if token.type == TokenType.OPERATOR and token.value in _ADDITIVE_OPS:
            self.advance()
            return UnaryOp(token.lineno, token.col_offset, op=token.value, operand=self._parse_unary())
        return self._parse_power()

    def _parse_power(self) -> Expr:
        base = self._parse_postfix()
        if self.match(TokenType.OPERATOR, "**"):
            self.advance()
            exponent = self._parse_unary()
            return BinOp(base.lineno, base.col_offset, op="**", left=base, right=exponent)
        return base

    def _parse_postfix(self) -> Expr:
        node = self._parse_primary()
        while True:
            token = self.current
            if token.type == TokenType.DOT:
                self.advance()
                attr = self.current
                if attr.type == TokenType.NAME:
                    self.advance()
                    node = Getattr(node.lineno, node.col_offset, obj=node, attr=attr.value)
                elif attr.type == TokenType.INTEGER:
                    self.advance()
                    key = Const(attr.lineno, attr.col_offset, int(attr.value))
                    node = Getitem(node.lineno, node.col_offset, obj=node, key=key)
                else:
                    raise self.error("Expected attribute name after '.'")
            elif token.type == TokenType.LBRACKET:
                self.advance()
                key = self.parse_expression()
                self.expect(TokenType.RBRACKET)
                node = Getitem(node.lineno, node.col_offset, obj=node, key=key)
            elif token.type == TokenType.LPAREN:
                self.advance()
                args, kwargs = self._parse_call_args()
                node = FuncCall(node.lineno, node.col_offset, func=node, args=args, kwargs=kwargs)
            elif token.type == TokenType.PIPE:
                node = self._parse_filter(node)
            elif self.match_name("is"):
                node = self._parse_test(node)
            else:
                return node

    def _parse_filter(self, value: Expr) -> Expr:
        self.advance()  # consume '|'
        if self.current.type != TokenType.NAME:
            raise self.error("Expected filter name after '|'", code=ErrorCode.INVALID_EXPRESSION)
        name = self.advance().value
        args: tuple[Expr, ...] = ()
        kwargs: dict[str, Expr] = {}
        if self.match(TokenType.LPAREN):
            self.advance()
            args, kwargs = self._parse_call_args()
        return Filter(value.lineno, value.col_offset, value=value, name=name, args=args, kwargs=kwargs)

    def _parse_test(self, value: Expr) -> Expr:
        self.advance()  # consume 'is'
        negated = self.skip_name("not")
        if self.current.type != TokenType.NAME:
            raise self.error("Expected test name after 'is'", code=ErrorCode.INVALID_EXPRESSION)
        token = self.advance()
        # 'none', 'true' and 'false' are test names here, not constants
        name = token.value.lower() if token.value in _CONSTANTS else token.value
        args: tuple[Expr, ...] = ()
        kwargs: dict[str, Expr] = {}
        if self.match(TokenType.LPAREN):
            self.advance()
            args, kwargs = self._parse_call_args()
        elif self.current.type in (TokenType.STRING, TokenType.INTEGER, TokenType.FLOAT):
            args = (self._parse_primary(),)
        return Test(
            value.lineno,
            value.col_offset,
            value=value,
            name=name,
            args=args,
            kwargs=kwargs,
            negated=negated,
        )

    def _parse_call_args(self) -> tuple[tuple[Expr, ...], dict[str, Expr]]:
        """Parse arguments up to and including the closing ')'."""
        args: list[Expr] = []
        kwargs: dict[str, Expr] = {}
        while not self.match(TokenType.RPAREN):
            if self.current.type == TokenType.NAME and self.peek().type == TokenType.ASSIGN:
                key = self.advance().value
                self.advance()  # consume '='
                kwargs[key] = self.parse_expression()
            else:
                if kwargs:
                    raise self.error(
                        "Positional argument follows keyword argument",
                        code=ErrorCode.INVALID_EXPRESSION,
                    )
                args.append(self.parse_expression())
            if not self.match(TokenType.COMMA):
                break
            self.advance()
        self.expect(TokenType.RPAREN)
        return tuple(args), kwargs

    def _parse_primary(self) -> Expr:
        token = self.current

        if token.type == TokenType.NAME:
            if token.value in _CONSTANTS:
                self.advance()
                return Const(token.lineno, token.col_offset, _CONSTANTS[token.value])
            if token.value in KEYWORDS:
                raise self.error(
                    f"Unexpected keyword '{token.value}'", code=ErrorCode.INVALID_EXPRESSION
                )
            self.advance()
            return Name(token.lineno, token.col_offset, token.value)

        if token.type == TokenType.STRING:
            self.advance()
            value = token.value
            # Adjacent literals concatenate: "a" "b" -> "ab"
            while self.current.type == TokenType.STRING:
                value += self.advance().value
            return Const(token.lineno, token.col_offset, value)

        if token.type == TokenType.INTEGER:
            self.advance()
            return Const(token.lineno, token.col_offset, int(token.value))

        if token.type == TokenType.FLOAT:
            self.advance()
            return Const(token.lineno, token.col_offset, float(token.value))

        if token.type == TokenType.LPAREN:
            return self._parse_parenthesized()

        if token.type == TokenType.LBRACKET:
            self.advance()
            items = self._parse_items(TokenType.RBRACKET)
            return List(token.lineno, token.col_offset, items=items)

        if token.type == TokenType.LBRACE:
            return self._parse_dict()

        found = token.value or token.type.value
        raise self.error(f"Expected an expression, got '{found}'", code=ErrorCode.INVALID_EXPRESSION)

    def _parse_parenthesized(self) -> Expr:
        start = self.advance()  # consume '('
        if self.match(TokenType.RPAREN):
            self.advance()
            return Tuple(start.lineno, start.col_offset, items=())
        first = self.parse_expression()
        if not self.match(TokenType.COMMA):
            self.expect(TokenType.RPAREN)
            return first
        self.advance()
        items = (first, *self._parse_items(TokenType.RPAREN))
        return Tuple(start.lineno, start.col_offset, items=items)

    def _parse_items(self, closer: TokenType) -> tuple[Expr, ...]:
        """Comma-separated expressions up to and including ``closer``."""
        items: list[Expr] = []
        while not self.match(closer):
            items.append(self.parse_expression())
            if not self.match(TokenType.COMMA):
                break
            self.advance()
        self.expect(closer)
        return tuple(items)

    def _parse_dict(self) -> Expr:
        start = self.advance()  # consume '{'
        keys: list[Expr] = []
        values: list[Expr] = []
        while not self.match(TokenType.RBRACE):
            keys.append(self.parse_expression())
            self.expect(TokenType.COLON)
            values.append(self.parse_expression())
            if not self.match(TokenType.COMMA):
                break
            self.advance()
        self.expect(TokenType.RBRACE)
        return Dict(start.lineno, start.col_offset, keys=tuple(keys), values=tuple(values))
