"""Custom statements, filters and tests -- extending an Environment.

Registers ``{% repeat n %}...{% endrepeat %}`` as a new statement, swaps
the built-in ``title`` filter for a stricter one, and adds an ``even``-style
test. Registries refuse accidental overwrites: ``add_*`` fails for
existing names, ``replace`` fails for missing ones.

Run:
    python app.py
"""

from __future__ import annotations

from dataclasses import dataclass

from strata import DictLoader, Environment, TemplateRuntimeError
from strata.nodes import Expr, Stmt, Wrapper
from strata.statements.base import expect_end_tag


@dataclass(frozen=True, slots=True)
class RepeatStmt(Stmt):
    """Render the body ``count`` times, each pass in its own scope."""

    count: Expr
    body: Wrapper

    def execute(self, renderer, block) -> None:
        value = renderer.eval(self.count)
        if value.is_error:
            raise TemplateRuntimeError(
                f"Unable to evaluate '{self.count}'",
                template_name=renderer.template.name,
                lineno=self.count.lineno,
            ) from value.error
        for _ in range(int(value.val)):
            renderer.execute_wrapper(self.body)

    def __str__(self) -> str:
        return f"repeat {self.count}"


def parse_repeat(parser, args):
    start = args.current
    count = args.parse_expression()
    body, end_args = parser.wrap_until("endrepeat")
    expect_end_tag(body, end_args)
    return RepeatStmt(start.lineno, start.col_offset, count=count, body=body)


def shout_title(value: str) -> str:
    return value.title() + "!"


env = Environment(
    loader=DictLoader({
        "stars.html": "{% repeat n %}*{% endrepeat %}",
        "page.html": (
            "{{ heading | title }} "
            "{% if n is multiple_of(3) %}{% include 'stars.html' %}{% else %}-{% endif %}"
        ),
    })
)
env.add_statement("repeat", parse_repeat)
env.filters.replace("title", shout_title)
env.add_test("multiple_of", lambda value, n: value % n == 0)

stars_output = env.get_template("stars.html").render(n=3)
page_output = env.get_template("page.html").render(heading="custom statements", n=6)


def main() -> None:
    print(stars_output)
    print(page_output)


if __name__ == "__main__":
    main()
