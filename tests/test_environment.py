"""Tests for Environment: templates, cache, globals and strict mode."""

from __future__ import annotations

import gc

import pytest

from strata import (
    DictLoader,
    Environment,
    TemplateNotFoundError,
    TemplateRuntimeError,
    UndefinedError,
)

from .conftest import error_chain


class TestTemplates:
    """from_string, get_template and render."""

    def test_from_string(self, env: Environment) -> None:
        template = env.from_string("Hello {{ name }}", name="greeting")
        assert template.name == "greeting"
        assert template.render(name="x") == "Hello x"

    def test_get_template(self, env_with_loader: Environment) -> None:
        template = env_with_loader.get_template("partial.html")
        assert template.name == "partial.html"
        assert template.loader.origin == "partial.html"

    def test_get_template_missing(self, env_with_loader: Environment) -> None:
        with pytest.raises(TemplateNotFoundError):
            env_with_loader.get_template("missing.html")

    def test_get_template_without_loader(self, env: Environment) -> None:
        with pytest.raises(TemplateNotFoundError):
            env.get_template("any.html")

    def test_render_shortcut(self, env_with_loader: Environment) -> None:
        assert env_with_loader.render("partial.html", message="m") == "<p>m</p>"

    def test_list_templates(self, env_with_loader: Environment) -> None:
        assert "forms.html" in env_with_loader.list_templates()

    def test_template_keeps_environment_alive_weakly(self) -> None:
        env = Environment()
        template = env.from_string("x")
        del env
        gc.collect()
        with pytest.raises(RuntimeError):
            template.render()

    def test_repr(self, env: Environment) -> None:
        assert "autoescape=False" in repr(env)
        assert repr(env.from_string("x", name="t")) == "<Template t>"


class TestCache:
    """The bounded template cache."""

    def test_get_template_is_cached(self, env_with_loader: Environment) -> None:
        first = env_with_loader.get_template("partial.html")
        assert env_with_loader.get_template("partial.html") is first

    def test_clear_cache(self, env_with_loader: Environment) -> None:
        first = env_with_loader.get_template("partial.html")
        env_with_loader.clear_cache()
        assert env_with_loader.get_template("partial.html") is not first

    def test_least_recently_used_evicted(self) -> None:
        env = Environment(loader=DictLoader({"a": "A", "b": "B", "c": "C"}), cache_size=2)
        a = env.get_template("a")
        env.get_template("b")
        env.get_template("a")
        env.get_template("c")
        assert env.cached_template("b") is None
        assert env.cached_template("a") is a

    def test_cache_disabled(self) -> None:
        env = Environment(loader=DictLoader({"a": "A"}), cache_size=0)
        assert env.get_template("a") is not env.get_template("a")

    def test_from_string_not_cached(self, env: Environment) -> None:
        env.from_string("x", name="inline")
        assert env.cached_template("inline") is None


class TestGlobals:
    def test_globals_in_every_render(self) -> None:
        env = Environment(globals={"site": "strata"})
        assert env.from_string("{{ site }}").render() == "strata"

    def test_globals_in_included_template(self) -> None:
        env = Environment(loader=DictLoader({"p.html": "{{ site }}"}), globals={"site": "g"})
        assert env.from_string("{% include 'p.html' %}").render() == "g"

    def test_callable_global(self) -> None:
        env = Environment(globals={"double": lambda x: x * 2})
        assert env.from_string("{{ double(4) }}").render() == "8"


class TestStrictMode:
    """Undefined names are errors unless strict_undefined is off."""

    def test_undefined_raises(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.from_string("{{ usr }}").render(user="x")
        undefined = next(e for e in error_chain(exc_info.value) if isinstance(e, UndefinedError))
        assert undefined.name == "usr"
        assert undefined.suggestion == "user"

    def test_default_filter(self, env: Environment) -> None:
        assert env.from_string("{{ missing | default('fallback') }}").render() == "fallback"

    def test_lenient_mode(self) -> None:
        env = Environment(strict_undefined=False)
        assert env.from_string("[{{ missing }}]").render() == "[]"

    def test_lenient_mode_iterates_empty(self) -> None:
        env = Environment(strict_undefined=False)
        template = env.from_string("{% for x in missing %}{{ x }}{% else %}none{% endfor %}")
        assert template.render() == "none"


class TestFiltersAndTests:
    """A sample of the default filters and tests through templates."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ 'hello' | upper }}", "HELLO"),
            ("{{ 'Hello' | lower }}", "hello"),
            ("{{ '  x  ' | trim }}", "x"),
            ("{{ [3, 1, 2] | sort | join(',') }}", "1,2,3"),
            ("{{ [1, 2, 3] | length }}", "3"),
            ("{{ [1, 2, 3] | first }}{{ [1, 2, 3] | last }}", "13"),
            ("{{ 'a-b' | replace('-', '+') }}", "a+b"),
            ("{{ [1, 2, 3] | sum }}", "6"),
            ("{{ '3' | int + 1 }}", "4"),
            ("{{ none | default('d') }}", "d"),
            ("{{ '<b>' | escape }}", "&lt;b&gt;"),
        ],
    )
    def test_filter(self, env: Environment, source: str, expected: str) -> None:
        assert env.from_string(source).render() == expected

    def test_unknown_filter(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.from_string("{{ 'x' | uper }}").render()
        filter_error = exc_info.value.__cause__
        assert isinstance(filter_error, TemplateRuntimeError)
        assert filter_error.suggestion == "Did you mean 'upper'?"

    def test_unknown_test(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError):
            env.from_string("{{ 1 is evn }}").render()
