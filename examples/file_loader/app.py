"""File-based templates -- the most common real-world pattern.

Loads templates from disk with FileSystemLoader and combines inheritance
(extends/block/super), includes, and macro imports. Pages live in
``pages/``; names they use resolve next to them first, then from the
template root (``/partials/...`` is always root-relative).

Run:
    python app.py
"""

from pathlib import Path

from strata import Environment, FileSystemLoader

templates_dir = Path(__file__).parent / "templates"
env = Environment(loader=FileSystemLoader(str(templates_dir)))

nav_items = [
    {"url": "/", "label": "Home"},
    {"url": "/about", "label": "About"},
]

home_template = env.get_template("pages/home.html")
about_template = env.get_template("pages/about.html")

home_output = home_template.render(
    site_name="My Site",
    nav_items=nav_items,
    title="Welcome",
    message="This is a strata-powered site with template inheritance.",
)

about_output = about_template.render(
    site_name="My Site",
    nav_items=nav_items,
    title="About Us",
    description="Macros, imports and blocks, rendered by a tree-walking interpreter.",
)


def main() -> None:
    print("=== Home Page ===")
    print(home_output)
    print()
    print("=== About Page ===")
    print(about_output)


if __name__ == "__main__":
    main()
