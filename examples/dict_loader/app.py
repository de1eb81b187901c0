"""DictLoader -- in-memory templates without a filesystem.

Templates come from a dictionary. The page extends a layout and pulls its
navigation links from a macro library.
Use case: tests, generated templates, single-file apps.

Run:
    python app.py
"""

from strata import DictLoader, Environment

templates = {
    "base.html": """\
<!DOCTYPE html>
<html>
<head><title>{% block title %}{{ title }}{% endblock %}</title></head>
<body>
    <nav>
    {%- for item in nav_items %}
        {{ nav.link(item.url, item.label) }}
    {%- endfor %}
    </nav>
    <main>{% block content %}{% endblock %}</main>
</body>
</html>
""",
    "nav.html": """\
{% macro link(url, label) %}<a href="{{ url }}">{{ label }}</a>{% endmacro %}
""",
    "page.html": """\
{% extends "base.html" %}
{% import "nav.html" as nav %}
{% block title %}{{ super() }} | Demo{% endblock %}
{% block content %}
    <h1>{{ heading }}</h1>
    <p>{{ message }}</p>
{% endblock %}
""",
}

env = Environment(loader=DictLoader(templates), autoescape=True)
template = env.get_template("page.html")

output = template.render(
    title="DictLoader Demo",
    nav_items=[
        {"url": "/", "label": "Home"},
        {"url": "/about", "label": "About"},
    ],
    heading="In-Memory Templates",
    message="No filesystem required. Templates loaded from a dict.",
)


def main() -> None:
    print(output)


if __name__ == "__main__":
    main()
