"""Tests for the lexer and the template parser."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from strata import Environment, ErrorCode, TemplateSyntaxError, TokenType
from strata.lexer import LexerError, tokenize
from strata.nodes import Data, Output, StatementBlock
from strata.parser import ParseError, parse
from strata.statements import IfStmt

from .strategies import arbitrary_template_source, plain_text, strata_comment, strata_variable


class TestLexer:
    """Token stream shape."""

    def test_token_types(self) -> None:
        types = [t.type for t in tokenize("Hi {{ name }}")]
        assert types == [
            TokenType.DATA,
            TokenType.VARIABLE_BEGIN,
            TokenType.NAME,
            TokenType.VARIABLE_END,
            TokenType.EOF,
        ]

    def test_positions(self) -> None:
        tokens = list(tokenize("a\n  {{ x }}"))
        name = next(t for t in tokens if t.type == TokenType.NAME)
        assert (name.lineno, name.col_offset) == (2, 5)

    def test_trim_markers_kept(self) -> None:
        tokens = list(tokenize("{%- if x -%}"))
        assert tokens[0].trims
        assert tokens[-2].trims

    def test_string_escapes(self) -> None:
        token = next(t for t in tokenize(r"{{ 'a\nb' }}") if t.type == TokenType.STRING)
        assert token.value == "a\nb"

    @pytest.mark.parametrize(
        ("source", "code"),
        [
            ("{{ x", ErrorCode.UNCLOSED_VARIABLE),
            ("{% if x", ErrorCode.UNCLOSED_TAG),
            ("{# note", ErrorCode.UNCLOSED_COMMENT),
            ("{{ 'open }}", ErrorCode.UNEXPECTED_CHARACTER),
            ("{{ a $ b }}", ErrorCode.UNEXPECTED_CHARACTER),
        ],
    )
    def test_lexer_errors(self, source: str, code: ErrorCode) -> None:
        with pytest.raises(LexerError) as exc_info:
            list(tokenize(source))
        assert exc_info.value.code == code


class TestWhitespaceControl:
    """``-`` markers trim the neighbouring text."""

    def test_statement_trim(self, env: Environment) -> None:
        template = env.from_string("a  {%- if true -%}  b  {%- endif %}")
        assert template.render() == "ab"

    def test_output_trim(self, env: Environment) -> None:
        assert env.from_string("a {{- 'x' -}} b").render() == "axb"

    def test_comment_trim(self, env: Environment) -> None:
        assert env.from_string("a\n{#- note -#}\nb").render() == "ab"

    def test_no_marker_keeps_whitespace(self, env: Environment) -> None:
        assert env.from_string("a {{ 'x' }} b").render() == "a x b"


class TestParser:
    """AST construction."""

    def test_parse_without_environment(self) -> None:
        root = parse("x{% if a %}y{% endif %}{{ b }}")
        data, block, output = root.body
        assert isinstance(data, Data)
        assert isinstance(block, StatementBlock)
        assert isinstance(block.stmt, IfStmt)
        assert isinstance(output, Output)

    def test_statement_records_position(self) -> None:
        root = parse("line\n  {% if a %}{% endif %}")
        block = root.body[1]
        assert (block.lineno, block.col_offset) == (2, 2)

    def test_unknown_statement_suggestion(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("{% iff x %}{% endif %}")
        error = exc_info.value
        assert error.code == ErrorCode.UNKNOWN_STATEMENT
        assert error.suggestion == "Did you mean 'if'?"

    def test_stray_end_tag(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("{% endif %}")
        assert "no matching opening tag" in exc_info.value.message

    def test_unclosed_block(self, env: Environment) -> None:
        with pytest.raises(ParseError) as exc_info:
            env.from_string("{% for x in y %}body")
        assert exc_info.value.code == ErrorCode.UNCLOSED_BLOCK
        assert "'{% endfor %}'" in exc_info.value.message

    def test_empty_expression(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("{{ }}")
        assert exc_info.value.code == ErrorCode.INVALID_EXPRESSION

    def test_leftover_arguments(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("{% set x = 1 2 %}")
        assert "Unexpected '2' in 'set' statement" in exc_info.value.message

    def test_junk_in_end_tag(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError):
            env.from_string("{% if x %}{% endif x %}")

    def test_keyword_is_not_a_target(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError):
            env.from_string("{% set in = 1 %}")

    def test_error_location(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("ok\nok\n{{ 1 + }}", name="page.html")
        error = exc_info.value
        assert error.lineno == 3
        assert "page.html:3" in str(error)


class TestExpressions:
    """Operators and literals, rendered."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ 1 + 2 * 3 }}", "7"),
            ("{{ (1 + 2) * 3 }}", "9"),
            ("{{ 2 ** 3 }}", "8"),
            ("{{ 7 // 2 }}", "3"),
            ("{{ 7 % 4 }}", "3"),
            ("{{ -3 + 1 }}", "-2"),
            ("{{ 'a' ~ 1 }}", "a1"),
            ("{{ 'a' 'b' }}", "ab"),
            ("{{ not true }}", "False"),
            ("{{ 1 in [1, 2] }}", "True"),
            ("{{ 3 not in [1, 2] }}", "True"),
            ("{{ 1 < 2 < 3 }}", "True"),
            ("{{ none }}", ""),
            ("{{ {'a': 1}['a'] }}", "1"),
            ("{{ (1, 2)[1] }}", "2"),
            ("{{ 0 or 'x' }}", "x"),
            ("{{ 1 and 2 }}", "2"),
            ("{{ 'yes' if 1 > 0 else 'no' }}", "yes"),
            ("{{ ('yes' if false else 'no') | upper }}", "NO"),
            ("{{ 4 is even }}", "True"),
            ("{{ 4 is not odd }}", "True"),
            ("{{ 6 is divisibleby 3 }}", "True"),
            ("{{ none is none }}", "True"),
        ],
    )
    def test_expression(self, env: Environment, source: str, expected: str) -> None:
        assert env.from_string(source).render() == expected

    def test_attribute_and_item(self, env: Environment) -> None:
        template = env.from_string("{{ user.name }}/{{ user['name'] }}/{{ items.0 }}")
        assert template.render(user={"name": "ann"}, items=["first"]) == "ann/ann/first"

    def test_missing_attribute_is_empty(self, env: Environment) -> None:
        assert env.from_string("[{{ user.missing }}]").render(user={}) == "[]"

    def test_function_call_with_kwargs(self, env: Environment) -> None:
        template = env.from_string("{{ fmt('x', end='!') }}")
        assert template.render(fmt=lambda value, end="": value + end) == "x!"

    def test_positional_after_keyword(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError):
            env.from_string("{{ f(a=1, 2) }}")


class TestLexerProperties:
    """Property-based lexer and parser checks."""

    @given(text=plain_text)
    def test_plain_text_round_trips(self, text: str) -> None:
        assert Environment().from_string(text).render() == text

    @given(
        parts=st.lists(
            st.one_of(
                plain_text.map(lambda text: (text, text)),
                strata_variable.map(lambda source: (source, "")),
                strata_comment.map(lambda source: (source, "")),
            ),
            min_size=1,
            max_size=5,
        )
    )
    def test_unbound_outputs_and_comments_render_empty(self, parts: list[tuple[str, str]]) -> None:
        source = "".join(part for part, _ in parts)
        expected = "".join(text for _, text in parts)
        assert Environment().from_string(source).render() == expected

    @given(source=arbitrary_template_source)
    def test_lexer_only_raises_syntax_errors(self, source: str) -> None:
        try:
            tokens = list(tokenize(source))
        except TemplateSyntaxError:
            return
        assert tokens[-1].type == TokenType.EOF
