"""Tests for the dict_loader example."""


class TestDictLoaderApp:
    """Verify the dict_loader example renders correctly."""

    def test_output_contains_expected_content(self, example_app) -> None:
        assert "<h1>In-Memory Templates</h1>" in example_app.output
        assert "No filesystem required" in example_app.output

    def test_title_uses_super(self, example_app) -> None:
        assert "<title>DictLoader Demo | Demo</title>" in example_app.output

    def test_nav_links_from_imported_macro(self, example_app) -> None:
        assert '<a href="/">Home</a>' in example_app.output
        assert '<a href="/about">About</a>' in example_app.output

    def test_autoescape_applies_to_data(self, example_app) -> None:
        result = example_app.template.render(
            title="t", nav_items=[], heading="<script>", message=""
        )
        assert "<h1>&lt;script&gt;</h1>" in result
