"""Tests for the tree-walking Renderer, driven by hand-built ASTs."""

from __future__ import annotations

import io
from dataclasses import dataclass

import pytest

from strata import (
    Environment,
    ErrorCode,
    Markup,
    Renderer,
    Template,
    TemplateRuntimeError,
    UndefinedError,
    render,
)
from strata.nodes import Const, Data, Name, Output, StatementBlock, Stmt
from strata.nodes import Template as TemplateNode


def _template(env: Environment, *body, name: str = "test.html") -> Template:
    root = TemplateNode(lineno=1, col_offset=0, name=name, body=tuple(body))
    return Template(env, root, name, None, env.loader)


@dataclass(frozen=True, slots=True)
class Emit(Stmt):
    """Writes a fixed text through the renderer."""

    text: str

    def execute(self, renderer, block):
        renderer.write(self.text, block)

    def __str__(self) -> str:
        return f"emit {self.text}"


@dataclass(frozen=True, slots=True)
class Boom(Stmt):
    """Always fails."""

    def execute(self, renderer, block):
        raise ValueError("boom")

    def __str__(self) -> str:
        return "boom"


class _BrokenStream(io.StringIO):
    def write(self, text: str) -> int:
        raise OSError("disk full")


class TestVisit:
    """Node visiting in source order."""

    def test_render_order(self, env: Environment) -> None:
        """Data, outputs and statements are written in source order."""
        template = _template(
            env,
            Data(1, 0, "A"),
            Output(1, 1, expr=Const(1, 4, "B")),
            StatementBlock(1, 10, name="emit", stmt=Emit(1, 13, text="C")),
        )
        assert render(template) == "ABC"

    def test_data_trim_flags(self, env: Environment) -> None:
        """Trim flags strip spaces, tabs and newlines on their side only."""
        template = _template(
            env,
            Data(1, 0, "  a \n", trim_right=True),
            Data(2, 0, "\t b  ", trim_left=True),
        )
        assert render(template) == "  ab  "

    def test_comment_renders_nothing(self, env: Environment) -> None:
        assert env.from_string("a{# hidden #}b").render() == "ab"

    def test_non_statement_is_ignored(self, env: Environment) -> None:
        """A StatementBlock holding something without execute() is a no-op."""
        template = _template(
            env,
            Data(1, 0, "x"),
            StatementBlock(1, 1, name="odd", stmt=object()),
            Data(1, 2, "y"),
        )
        assert render(template) == "xy"

    def test_data_binds_in_fresh_scope(self, env: Environment) -> None:
        template = _template(env, Output(1, 0, expr=Name(1, 3, "who")))
        assert render(template, {"who": "me"}) == "me"

    def test_render_to_output_stream(self, env: Environment) -> None:
        """With an output stream the text goes there and '' is returned."""
        stream = io.StringIO()
        template = _template(env, Data(1, 0, "streamed"))
        assert render(template, output=stream) == ""
        assert stream.getvalue() == "streamed"


class TestConditionalOutput:
    """``{{ x if cond else y }}``"""

    def test_condition_true(self, env: Environment) -> None:
        assert env.from_string("{{ 'yes' if flag }}").render(flag=True) == "yes"

    def test_condition_false_without_alternative(self, env: Environment) -> None:
        assert env.from_string("[{{ 'yes' if flag }}]").render(flag=False) == "[]"

    def test_condition_false_with_alternative(self, env: Environment) -> None:
        assert env.from_string("{{ 'yes' if flag else 'no' }}").render(flag=False) == "no"

    def test_condition_error_names_line(self, env: Environment) -> None:
        """A failing condition is reported with its line."""
        template = _template(
            env,
            Output(3, 0, expr=Const(3, 3, "x"), condition=Name(3, 10, "missing")),
        )
        with pytest.raises(TemplateRuntimeError) as exc_info:
            render(template)
        error = exc_info.value
        assert "Unable to render condition at line 3" in error.message
        assert isinstance(error.__cause__, UndefinedError)
        assert error.lineno == 3

    def test_expression_error_names_line(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.from_string("line one\n{{ nope }}").render()
        assert "Unable to render expression at line 2" in exc_info.value.message
        assert "Undefined variable 'nope'" in exc_info.value.message


class TestEscaping:
    """Autoescape applies to unsafe strings only."""

    def test_escape_unsafe_string(self, env_autoescape: Environment) -> None:
        template = env_autoescape.from_string("{{ html }}")
        assert template.render(html="<b>") == "&lt;b&gt;"

    def test_markup_passes_through(self, env_autoescape: Environment) -> None:
        template = env_autoescape.from_string("{{ html }}")
        assert template.render(html=Markup("<b>")) == "<b>"

    def test_numbers_not_escaped(self, env_autoescape: Environment) -> None:
        assert env_autoescape.from_string("{{ 1 < 2 }}").render() == "True"

    def test_no_escape_when_disabled(self, env: Environment) -> None:
        assert env.from_string("{{ html }}").render(html="<b>") == "<b>"

    def test_safe_filter(self, env_autoescape: Environment) -> None:
        assert env_autoescape.from_string("{{ '<i>' | safe }}").render() == "<i>"


class TestErrors:
    """Statement and output failures become positioned runtime errors."""

    def test_statement_error_is_wrapped(self, env: Environment) -> None:
        template = _template(
            env,
            Data(1, 0, "ok"),
            StatementBlock(2, 0, name="boom", stmt=Boom(2, 3)),
        )
        with pytest.raises(TemplateRuntimeError) as exc_info:
            render(template)
        error = exc_info.value
        assert error.message == "Unable to execute statement at line 2: boom: boom"
        assert isinstance(error.__cause__, ValueError)
        assert error.template_name == "test.html"

    def test_write_failure(self, env: Environment) -> None:
        """Sink failures are reported as output errors."""
        template = _template(env, Data(1, 0, "text"))
        with pytest.raises(TemplateRuntimeError) as exc_info:
            render(template, output=_BrokenStream())
        assert exc_info.value.code == ErrorCode.OUTPUT_ERROR
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_nested_statement_errors_chain(self, env: Environment) -> None:
        """Each enclosing statement adds its own level to the chain."""
        template = env.from_string("{% if true %}{% for x in 5 %}{% endfor %}{% endif %}")
        with pytest.raises(TemplateRuntimeError) as exc_info:
            template.render()
        outer = exc_info.value
        assert outer.message.startswith("Unable to execute statement at line 1: if true")
        inner = outer.__cause__
        assert isinstance(inner, TemplateRuntimeError)
        assert "for x in 5" in inner.message
        assert "'5' is not iterable" in outer.message
        assert isinstance(outer.root_cause, TypeError)

    def test_error_carries_source_snippet(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.from_string("a\n{{ missing }}\nc").render()
        snippet = exc_info.value.source_snippet
        assert snippet is not None
        assert snippet.error_line == 2


class TestSubRenderers:
    """inherit() and derive() scoping."""

    def _renderer(self, env: Environment) -> Renderer:
        template = _template(env, Data(1, 0, ""))
        return Renderer(env.scoped(env.globals.inherit()), io.StringIO(), env.config, env.loader, template)

    def test_inherit_gets_child_scope(self, env: Environment) -> None:
        renderer = self._renderer(env)
        sub = renderer.inherit()
        sub.context.set("x", 1)
        assert sub.context.parent is renderer.context
        assert renderer.context.get("x") == (None, False)

    def test_inherit_clones_config(self, env: Environment) -> None:
        """A sub-renderer's config changes never reach its creator."""
        renderer = self._renderer(env)
        sub = renderer.inherit()
        sub.config.autoescape = True
        assert renderer.config.autoescape is False
        assert env.config.autoescape is False

    def test_inherit_shares_output(self, env: Environment) -> None:
        renderer = self._renderer(env)
        assert renderer.inherit().output is renderer.output

    def test_derive_switches_template(self, env_with_loader: Environment) -> None:
        renderer = self._renderer(env_with_loader)
        other = env_with_loader.get_template("partial.html")
        sub = renderer.derive(other)
        assert sub.template is other
        assert sub.leaf is other
        assert sub.loader.origin == "partial.html"
        assert sub.context.parent is renderer.context

    def test_within_keeps_scope_and_leaf(self, env_with_loader: Environment) -> None:
        """A renderer bound to an ancestor walks its nodes in the same scope."""
        child = env_with_loader.get_template("child.html")
        renderer = Renderer(
            env_with_loader.scoped(env_with_loader.globals.inherit()),
            io.StringIO(),
            env_with_loader.config,
            child.loader,
            child,
        )
        base = child.parent
        sub = renderer.within(base)
        assert sub.template is base
        assert sub.loader.origin == "base.html"
        assert sub.leaf is child
        assert sub.context is renderer.context
        assert renderer.within(child) is renderer

    def test_capture_does_not_write(self, env: Environment) -> None:
        renderer = self._renderer(env)
        text = renderer.capture([Data(1, 0, "captured")])
        assert text == "captured"
        assert renderer.output.getvalue() == ""


class TestRenderEntryPoint:
    """render() and Template.render()."""

    def test_globals_visible(self) -> None:
        env = Environment(globals={"site": "strata"})
        assert env.from_string("{{ site }}").render() == "strata"

    def test_data_shadows_globals(self) -> None:
        env = Environment(globals={"site": "strata"})
        assert env.from_string("{{ site }}").render(site="other") == "other"

    def test_render_does_not_mutate_globals(self) -> None:
        env = Environment(globals={"site": "strata"})
        env.from_string("{% set site = 'changed' %}{{ site }}").render()
        assert env.globals.get("site") == ("strata", True)

    def test_dict_and_kwargs(self, env: Environment) -> None:
        template = env.from_string("{{ a }}{{ b }}")
        assert template.render({"a": 1}, b=2) == "12"

    def test_too_many_positional(self, env: Environment) -> None:
        with pytest.raises(TypeError):
            env.from_string("x").render({"a": 1}, {"b": 2})

    def test_render_to(self, env: Environment) -> None:
        stream = io.StringIO()
        env.from_string("Hi {{ name }}").render_to(stream, name="there")
        assert stream.getvalue() == "Hi there"
