"""``{% include %}``: render another template in place.

    {% include "partials/nav.html" %}
    {% include sidebar_name ignore missing %}
    {% include "footer.html" without context %}

The included template sees the including scope unless ``without context``
is given, in which case it sees only the globals. Nesting is capped by
``max_include_depth``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from strata.environment.exceptions import TemplateImportError, TemplateNotFoundError
from strata.nodes import Expr, Stmt
from strata.render_context import get_render_context, use_render_context
from strata.statements.base import context_modifier_str, parse_context_modifier
from strata.statements.imports import resolve_template, template_renderer

if TYPE_CHECKING:
    from strata.nodes import StatementBlock
    from strata.parser import Parser
    from strata.runtime.renderer import Renderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IncludeStmt(Stmt):
    template: Expr
    ignore_missing: bool = False
    with_context: bool | None = None

    def execute(self, renderer: Renderer, block: StatementBlock) -> None:
        try:
            template = resolve_template(renderer, self.template)
        except TemplateImportError as exc:
            if self.ignore_missing and isinstance(exc.__cause__, TemplateNotFoundError):
                logger.debug(f"Skipping missing include {self.template}")
                return
            raise

        sub = template_renderer(renderer, template, self.with_context)
        render_ctx = get_render_context()
        if render_ctx is None:
            sub.execute()
            return
        included = render_ctx.enter_include(
            template.name,
            filename=template.filename,
            source=template.source,
        )
        with use_render_context(included):
            sub.execute()

    def __str__(self) -> str:
        missing = " ignore missing" if self.ignore_missing else ""
        return f"include {self.template}{missing}{context_modifier_str(self.with_context)}"


def parse_include(parser: Parser, args: Parser) -> IncludeStmt:
    start = args.current
    template = args.parse_expression()
    ignore_missing = False
    if args.skip_name("ignore"):
        args.expect_name("missing")
        ignore_missing = True
    return IncludeStmt(
        start.lineno,
        start.col_offset,
        template=template,
        ignore_missing=ignore_missing,
        with_context=parse_context_modifier(args),
    )
