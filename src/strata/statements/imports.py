"""Import statements: ``{% import %}`` and ``{% from ... import %}``.

Both statements work in two phases:

1. **Resolve**: evaluate the filename, anchor a loader at it and load the
   library template. Loading parses the library; it never renders it.
2. **Bind**: run the library's top-level imports and assignments in its
   own scope, wrap its top-level macros into ``Macro`` closures and bind
   them in the current scope. ``import`` binds one name holding a mapping
   of every macro; ``from`` binds each requested macro directly.

Scope of the closures:
    - default and ``with context``: the macros see the importing scope
      (and each other)
    - ``without context``: the macros see only the globals (and each other)

A failing phase leaves the scope untouched: every requested name is
checked before anything is bound.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from strata._types import TokenType
from strata.environment.exceptions import (
    ErrorCode,
    TemplateError,
    TemplateImportError,
    TemplateNotFoundError,
    suggest_name,
)
from strata.nodes import Expr, Stmt
from strata.runtime.macro import Macro
from strata.statements.base import context_modifier_str, parse_context_modifier
from strata.template.core import load_template

if TYPE_CHECKING:
    from strata.nodes import StatementBlock
    from strata.parser import Parser
    from strata.runtime.renderer import Renderer
    from strata.statements.macros import MacroStmt
    from strata.template.core import Template

logger = logging.getLogger(__name__)

# Libraries whose top-level statements are running, outermost first
_importing: ContextVar[tuple[str, ...]] = ContextVar("strata_importing", default=())


def resolve_template(renderer: Renderer, expr: Expr) -> Template:
    """Evaluate ``expr`` to a name and load that template.

    The name is resolved relative to the template being rendered.

    Raises:
        TemplateImportError: If the name cannot be evaluated, resolved or loaded
    """
    value = renderer.eval(expr)
    if value.is_error:
        raise TemplateImportError(
            f"Unable to evaluate filename '{expr}'",
            expression=str(expr),
            template_name=renderer.template.name,
            lineno=expr.lineno,
        ) from value.error
    filename = str(value)

    try:
        loader = renderer.loader.inherit(filename)
    except TemplateNotFoundError as exc:
        raise TemplateImportError(
            f"Failed to inherit loader from '{filename}' ({renderer.loader!r})",
            filename=filename,
            template_name=renderer.template.name,
            lineno=expr.lineno,
        ) from exc

    try:
        return load_template(filename, renderer.config, loader, renderer.environment)
    except TemplateError as exc:
        raise TemplateImportError(
            f"Unable to load template '{filename}'",
            filename=filename,
            template_name=renderer.template.name,
            lineno=expr.lineno,
        ) from exc


def template_renderer(renderer: Renderer, template: Template, with_context: bool | None) -> Renderer:
    """Renderer for ``template`` whose scope continues from ``renderer`` or the globals."""
    if with_context is False:
        from strata.runtime.renderer import Renderer

        environment = renderer.environment
        return Renderer(
            environment.scoped(environment.globals.inherit()),
            renderer.output,
            renderer.config,
            template.loader,
            template,
        )
    return renderer.derive(template)


def bind_macros(library: Renderer, macros: Mapping[str, MacroStmt]) -> dict[str, Macro]:
    """Wrap every macro in ``macros`` as a closure over ``library``'s scope.

    Each macro is also bound inside that scope, so macros of one library can
    call each other.
    """
    bound = {name: Macro(node, library) for name, node in macros.items()}
    for name, macro in bound.items():
        library.context.set(name, macro)
    return bound


def load_library(
    renderer: Renderer,
    template: Template,
    with_context: bool | None,
    lineno: int,
) -> dict[str, Macro]:
    """Prepare ``template`` as a macro library and return its bound macros.

    The library's own top-level imports and assignments run first, in the
    library's scope, so its macros can use them. Nothing is rendered.

    Raises:
        TemplateImportError: If the library imports itself, directly or
            through other libraries
    """
    importing = _importing.get()
    if template.name is not None and template.name in importing:
        cycle = " → ".join((*importing, template.name))
        raise TemplateImportError(
            f"Circular import: {cycle}",
            filename=template.name,
            template_name=renderer.template.name,
            lineno=lineno,
            code=ErrorCode.CIRCULAR_IMPORT,
        )
    library = template_renderer(renderer, template, with_context)
    token = _importing.set((*importing, template.name) if template.name else importing)
    try:
        library.run_hoisted()
    finally:
        _importing.reset(token)
    return bind_macros(library, template.macros)


@dataclass(frozen=True, slots=True)
class ImportStmt(Stmt):
    """``{% import "forms.html" as forms %}``"""

    hoisted: ClassVar[bool] = True

    filename: Expr
    alias: str
    with_context: bool | None = None

    def execute(self, renderer: Renderer, block: StatementBlock) -> None:
        template = resolve_template(renderer, self.filename)
        macros = load_library(renderer, template, self.with_context, self.lineno)
        renderer.context.set(self.alias, macros)
        logger.debug(
            f"Imported {len(macros)} macro(s) from {template.name!r} as {self.alias!r}"
        )

    def __str__(self) -> str:
        return f"import {self.filename} as {self.alias}{context_modifier_str(self.with_context)}"


@dataclass(frozen=True, slots=True)
class FromImportStmt(Stmt):
    """``{% from "forms.html" import input, label as lbl %}``

    ``names`` holds ``(macro name, bound name)`` pairs in source order.
    """

    hoisted: ClassVar[bool] = True

    filename: Expr
    names: tuple[tuple[str, str], ...]
    with_context: bool | None = None

    def execute(self, renderer: Renderer, block: StatementBlock) -> None:
        template = resolve_template(renderer, self.filename)
        available = template.macros
        for name, _ in self.names:
            if name not in available:
                match = suggest_name(name, available.keys())
                raise TemplateImportError(
                    f"Unable to import macro '{name}' from '{template.name}'",
                    filename=template.name,
                    template_name=renderer.template.name,
                    lineno=self.lineno,
                    suggestion=f"Did you mean '{match}'?" if match else None,
                )

        macros = load_library(renderer, template, self.with_context, self.lineno)
        for name, alias in self.names:
            renderer.context.set(alias, macros[name])
        logger.debug(
            f"Imported {', '.join(alias for _, alias in self.names)} from {template.name!r}"
        )

    def __str__(self) -> str:
        names = ", ".join(name if name == alias else f"{name} as {alias}" for name, alias in self.names)
        return f"from {self.filename} import {names}{context_modifier_str(self.with_context)}"


def parse_import(parser: Parser, args: Parser) -> ImportStmt:
    start = args.current
    filename = args.parse_expression()
    args.expect_name("as")
    alias = args.parse_identifier()
    return ImportStmt(
        start.lineno,
        start.col_offset,
        filename=filename,
        alias=alias,
        with_context=parse_context_modifier(args),
    )


def parse_from(parser: Parser, args: Parser) -> FromImportStmt:
    start = args.current
    filename = args.parse_expression()
    args.expect_name("import")
    names: list[tuple[str, str]] = []
    while True:
        name = args.parse_identifier()
        alias = args.parse_identifier() if args.skip_name("as") else name
        names.append((name, alias))
        if not args.match(TokenType.COMMA):
            break
        args.advance()
    return FromImportStmt(
        start.lineno,
        start.col_offset,
        filename=filename,
        names=tuple(names),
        with_context=parse_context_modifier(args),
    )
