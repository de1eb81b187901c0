"""Template inheritance: ``{% extends %}`` and ``{% block %}``.

``extends`` is resolved while parsing: the parent template is loaded
through the child's loader and linked as the parent of the child's AST.
At render time the renderer starts from the root-most ancestor, and every
``block`` renders the most derived definition of its name.

Example:
    base.html:  <title>{% block title %}Site{% endblock %}</title>
    page.html:  {% extends "base.html" %}
                {% block title %}Page | {{ super() }}{% endblock %}

    page.html renders as ``<title>Page | Site</title>``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from strata.environment.exceptions import ErrorCode, TemplateError, TemplateNotFoundError
from strata.nodes import Const, Stmt, Wrapper
from strata.parser.errors import ParseError
from strata.runtime.blocks import render_block
from strata.statements.base import expect_end_tag

if TYPE_CHECKING:
    from strata.nodes import StatementBlock
    from strata.parser import Parser
    from strata.runtime.renderer import Renderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExtendsStmt(Stmt):
    """``{% extends "base.html" %}``; linked at parse time, inert at render."""

    template: str

    def execute(self, renderer: Renderer, block: StatementBlock) -> None:
        return None

    def __str__(self) -> str:
        return f"extends {self.template!r}"


@dataclass(frozen=True, slots=True)
class BlockStmt(Stmt):
    """``{% block name %}...{% endblock %}``"""

    name: str
    body: Wrapper

    def execute(self, renderer: Renderer, block: StatementBlock) -> None:
        chain = renderer.leaf.block_chain(self.name) or [(renderer.template, self.body)]
        render_block(renderer, self.name, chain)

    def __str__(self) -> str:
        return f"block {self.name}"


def parse_extends(parser: Parser, args: Parser) -> ExtendsStmt:
    start = args.current
    expr = args.parse_expression()
    if not isinstance(expr, Const) or not isinstance(expr.value, str):
        raise args.error(
            "'extends' takes a template name as a string literal",
            start,
            code=ErrorCode.INVALID_EXPRESSION,
        )
    state = parser.state
    if state.parent is not None:
        raise args.error("Template extends more than one parent", start)
    if state.environment is None or state.loader is None:
        raise args.error(f"Cannot extend '{expr.value}': no environment loader available", start)

    name = expr.value
    try:
        loader = state.loader.inherit(name)
    except TemplateNotFoundError as exc:
        raise args.error(
            f"Parent template '{name}' not found",
            start,
            code=ErrorCode.TEMPLATE_NOT_FOUND,
        ) from exc
    if loader.origin in state.chain:
        cycle = " → ".join((*state.chain, str(loader.origin)))
        raise args.error(
            f"Circular extends: {cycle}",
            start,
            code=ErrorCode.CIRCULAR_EXTENDS,
        )

    from strata.template.core import load_template

    environment = state.environment
    try:
        parent = load_template(name, environment.config, loader, environment, chain=state.chain)
    except TemplateError as exc:
        if isinstance(exc, ParseError) and exc.code == ErrorCode.CIRCULAR_EXTENDS:
            raise
        raise args.error(f"Unable to load parent template '{name}'", start) from exc
    state.parent = parent
    logger.debug(f"Template {state.name!r} extends {parent.name!r}")
    return ExtendsStmt(start.lineno, start.col_offset, template=name)


def parse_block(parser: Parser, args: Parser) -> BlockStmt:
    start = args.current
    name = args.parse_identifier()
    body, end_args = parser.wrap_until("endblock")
    expect_end_tag(body, end_args, name)
    if name in parser.state.blocks:
        raise args.error(
            f"Block '{name}' is defined more than once",
            start,
            code=ErrorCode.DUPLICATE_DEFINITION,
        )
    parser.state.blocks[name] = body
    return BlockStmt(start.lineno, start.col_offset, name=name, body=body)
