"""Tests for template loaders and name resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from strata import (
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    FunctionLoader,
    NullLoader,
    TemplateNotFoundError,
)


class TestDictLoader:
    def test_get_source(self) -> None:
        assert DictLoader({"a.html": "A"}).get_source("a.html") == ("A", None)

    def test_missing_suggests_close_name(self) -> None:
        loader = DictLoader({"index.html": "", "about.html": ""})
        with pytest.raises(TemplateNotFoundError) as exc_info:
            loader.get_source("indx.html")
        assert "Did you mean 'index.html'?" in str(exc_info.value)
        assert exc_info.value.name == "indx.html"

    def test_list_templates(self) -> None:
        assert DictLoader({"b": "", "a": ""}).list_templates() == ["a", "b"]


class TestFileSystemLoader:
    def test_load_file(self, tmp_path: Path) -> None:
        (tmp_path / "hello.html").write_text("Hello {{ name }}")
        env = Environment(loader=FileSystemLoader(tmp_path))
        template = env.get_template("hello.html")
        assert template.render(name="fs") == "Hello fs"
        assert template.filename == str(tmp_path / "hello.html")

    def test_search_path_order(self, tmp_path: Path) -> None:
        custom, default = tmp_path / "custom", tmp_path / "default"
        custom.mkdir()
        default.mkdir()
        (custom / "nav.html").write_text("custom")
        (default / "nav.html").write_text("default")
        (default / "footer.html").write_text("footer")
        loader = FileSystemLoader([custom, default])
        assert loader.get_source("nav.html")[0] == "custom"
        assert loader.get_source("footer.html")[0] == "footer"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(TemplateNotFoundError):
            FileSystemLoader(tmp_path).get_source("nope.html")

    def test_list_templates(self, tmp_path: Path) -> None:
        (tmp_path / "pages").mkdir()
        (tmp_path / "pages" / "a.html").write_text("")
        (tmp_path / "b.txt").write_text("")
        (tmp_path / "skip.py").write_text("")
        assert FileSystemLoader(tmp_path).list_templates() == ["b.txt", "pages/a.html"]

    def test_relative_import_on_disk(self, tmp_path: Path) -> None:
        pages = tmp_path / "pages"
        pages.mkdir()
        (pages / "macros.html").write_text("{% macro hi() %}pages{% endmacro %}")
        (pages / "post.html").write_text('{% from "macros.html" import hi %}{{ hi() }}')
        env = Environment(loader=FileSystemLoader(tmp_path))
        assert env.render("pages/post.html") == "pages"


class TestChoiceAndFunctionLoaders:
    def test_choice_first_match_wins(self) -> None:
        loader = ChoiceLoader(
            [DictLoader({"nav.html": "custom"}), DictLoader({"nav.html": "default", "f.html": "f"})]
        )
        assert loader.get_source("nav.html")[0] == "custom"
        assert loader.get_source("f.html")[0] == "f"
        assert loader.list_templates() == ["f.html", "nav.html"]

    def test_choice_not_found(self) -> None:
        with pytest.raises(TemplateNotFoundError):
            ChoiceLoader([DictLoader({})]).get_source("x")

    def test_function_loader(self) -> None:
        sources = {"a.html": "A", "b.html": ("B", "/virtual/b.html")}
        loader = FunctionLoader(sources.get)
        assert loader.get_source("a.html") == ("A", None)
        assert loader.get_source("b.html") == ("B", "/virtual/b.html")
        with pytest.raises(TemplateNotFoundError):
            loader.get_source("c.html")

    def test_null_loader(self) -> None:
        loader = NullLoader()
        assert not loader.exists("a.html")
        with pytest.raises(TemplateNotFoundError):
            loader.inherit("a.html")


class TestResolution:
    """resolve() and inherit() anchoring."""

    @pytest.fixture
    def loader(self) -> DictLoader:
        return DictLoader(
            {
                "macros.html": "",
                "shared.html": "",
                "pages/macros.html": "",
                "pages/post.html": "",
            }
        )

    def test_unanchored_resolves_from_root(self, loader: DictLoader) -> None:
        assert loader.origin is None
        assert loader.resolve("macros.html") == "macros.html"

    def test_inherit_sets_origin(self, loader: DictLoader) -> None:
        anchored = loader.inherit("pages/post.html")
        assert anchored.origin == "pages/post.html"
        assert loader.origin is None

    def test_sibling_preferred(self, loader: DictLoader) -> None:
        anchored = loader.inherit("pages/post.html")
        assert anchored.resolve("macros.html") == "pages/macros.html"

    def test_root_fallback(self, loader: DictLoader) -> None:
        anchored = loader.inherit("pages/post.html")
        assert anchored.resolve("shared.html") == "shared.html"

    def test_leading_slash(self, loader: DictLoader) -> None:
        anchored = loader.inherit("pages/post.html")
        assert anchored.resolve("/macros.html") == "macros.html"

    def test_escaping_root_rejected(self, loader: DictLoader) -> None:
        with pytest.raises(TemplateNotFoundError):
            loader.resolve("../outside.html")

    def test_inherit_missing_names_origin(self, loader: DictLoader) -> None:
        anchored = loader.inherit("pages/post.html")
        with pytest.raises(TemplateNotFoundError) as exc_info:
            anchored.inherit("nope.html")
        assert "from 'pages/post.html'" in str(exc_info.value)

    def test_load_requires_anchor(self, loader: DictLoader) -> None:
        with pytest.raises(TemplateNotFoundError):
            loader.load()
        assert loader.inherit("shared.html").load() == ("", None)

    def test_repr_shows_anchor(self, loader: DictLoader) -> None:
        assert repr(loader.inherit("shared.html")) == "<DictLoader at 'shared.html'>"
