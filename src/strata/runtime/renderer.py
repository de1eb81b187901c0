"""Tree-walking renderer.

A Renderer visits the nodes of a parsed template in source order and
writes text to an output sink. Statements run through the ``Statement``
protocol with the renderer as argument. Scoping is structural: every
lexical scope (block, loop iteration, macro call, import, include) gets a
sub-renderer from ``inherit()``, whose context is a child frame of its
creator's and whose config is an independent copy.

Example:
    >>> env = Environment()
    >>> template = env.from_string("Hello {{ name }}!")
    >>> render(template, {"name": "World"})
    'Hello World!'

Error reporting:
Every failure is raised as a ``TemplateRuntimeError`` naming the line and
the node that failed, chained to the exception that caused it. Statement
failures are wrapped again by each enclosing statement, so the message
reads from the outermost construct down to the failing expression.
"""

from __future__ import annotations

import io
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, TextIO

from strata.environment.exceptions import (
    ErrorCode,
    TemplateRuntimeError,
    build_source_snippet,
    describe_error,
)
from strata.nodes import Comment, Data, Node, Output, Statement, StatementBlock, Wrapper, walk
from strata.render_context import get_render_context, render_context
from strata.runtime.blocks import TemplateSelf
from strata.runtime.context import Context
from strata.runtime.evaluator import Evaluator
from strata.runtime.value import Value

if TYPE_CHECKING:
    from strata.environment.core import Environment
    from strata.environment.loaders import BaseLoader
    from strata.nodes import Expr
    from strata.runtime.config import Config
    from strata.template.core import Template

_TRIM_CHARS = " \t\n"


class Renderer:
    """Visitor that renders a template's AST into ``output``.

    Attributes:
        environment: Registries plus the active scope (``environment.context``)
        output: Text sink shared by a renderer and its sub-renderers
        config: This scope's configuration
        loader: Loader anchored at ``template``
        template: The Template whose nodes this renderer walks; errors
            name it and relative names resolve next to it
        leaf: Most derived template of the extends chain, where block
            lookups start
    """

    __slots__ = ("config", "environment", "leaf", "loader", "output", "template")

    # O(1) dispatch: node type name → handler method name
    _DISPATCH: dict[str, str] = {
        "Comment": "_visit_comment",
        "Data": "_visit_data",
        "Output": "_visit_output",
        "StatementBlock": "_visit_statement_block",
    }

    def __init__(
        self,
        environment: Environment,
        output: TextIO,
        config: Config,
        loader: BaseLoader,
        template: Template,
    ):
        self.environment = environment
        self.output = output
        self.config = config.inherit()
        self.loader = loader
        self.template = template
        self.leaf = template
        self.environment.context.set("self", TemplateSelf(self))

    @property
    def context(self) -> Context:
        return self.environment.context

    def _copy(self, environment: Environment) -> Renderer:
        sub = object.__new__(Renderer)
        sub.environment = environment
        sub.output = self.output
        sub.config = self.config.inherit()
        sub.loader = self.loader
        sub.template = self.template
        sub.leaf = self.leaf
        return sub

    def inherit(self) -> Renderer:
        """Sub-renderer for a nested scope.

        Shares output, templates, loader and registries; gets a
        cloned config and a child frame of this renderer's context.
        """
        return self._copy(self.environment.scoped(self.context.inherit()))

    def derive(self, template: Template) -> Renderer:
        """Sub-renderer over another template's AST and loader.

        The scope chain continues from this renderer, so macros bound
        through it see the same variables this renderer sees.
        """
        sub = self.inherit()
        sub.template = template
        sub.loader = template.loader
        sub.leaf = template
        sub.context.set("self", TemplateSelf(sub))
        return sub

    def within(self, template: Template) -> Renderer:
        """Renderer sharing this one's scope and output that walks ``template``.

        Used for the templates of an extends chain: their nodes report
        errors under their own name and resolve relative names against
        their own location, while blocks still resolve from ``leaf``.
        """
        if template is self.template:
            return self
        sub = self._copy(self.environment)
        sub.template = template
        sub.loader = template.loader
        return sub

    def visit(self, node: Node) -> Renderer | None:
        """Render one node.

        Returns the renderer to walk the node's children with, or None
        when the node is fully handled (or produces nothing).
        """
        method = self._DISPATCH.get(type(node).__name__)
        if method is None:
            return self
        return getattr(self, method)(node)

    def execute(self) -> None:
        """Render the template, starting from its root-most ancestor.

        Child templates contribute their blocks, and their top-level
        imports, macros and assignments run first so those names are
        visible inside the blocks. Each template's nodes are walked by a
        renderer bound to that template.
        """
        *children, root = self.template.ancestry()
        for child in reversed(children):
            self.within(child).run_hoisted()
        walk(self.within(root), root.root)

    def execute_wrapper(self, wrapper: Wrapper) -> None:
        """Walk a statement body in a new sub-scope."""
        walk(self.inherit(), wrapper)

    def execute_body(self, nodes: Iterable[Node]) -> None:
        """Walk ``nodes`` in a new sub-scope."""
        sub = self.inherit()
        for node in nodes:
            walk(sub, node)

    def walk(self, nodes: Iterable[Node]) -> None:
        """Walk ``nodes`` in this renderer's own scope."""
        for node in nodes:
            walk(self, node)

    def evaluator(self) -> Evaluator:
        return Evaluator(self.environment, self.config, self.loader, self.template.name)

    def eval(self, expr: Expr) -> Value:
        return self.evaluator().eval(expr)

    def capture(self, nodes: Iterable[Node]) -> str:
        """Render ``nodes`` in a sub-scope into a string instead of the output."""
        buffer = io.StringIO()
        sub = self.inherit()
        sub.output = buffer
        sub.walk(nodes)
        return buffer.getvalue()

    def write(self, text: str, node: Node) -> None:
        try:
            self.output.write(text)
        except (OSError, ValueError) as exc:
            raise self.error(
                f"Unable to write output at line {node.lineno}",
                node,
                exc,
                code=ErrorCode.OUTPUT_ERROR,
            ) from exc

    def error(
        self,
        message: str,
        node: Node | Expr | None = None,
        cause: BaseException | None = None,
        *,
        error_class: type[TemplateRuntimeError] = TemplateRuntimeError,
        code: ErrorCode | None = None,
        **kwargs: Any,
    ) -> TemplateRuntimeError:
        """Build a positioned runtime error; ``raise ... from cause`` it."""
        if cause is not None:
            message = f"{message}: {describe_error(cause)}"
        lineno = node.lineno if node is not None else None
        source = self.template.source
        render_ctx = get_render_context()
        return error_class(
            message,
            expression=str(node) if node is not None else None,
            template_name=self.template.name,
            lineno=lineno,
            source_snippet=build_source_snippet(source, lineno) if source and lineno else None,
            template_stack=render_ctx.template_stack.copy() if render_ctx else None,
            code=code,
            **kwargs,
        )

    def run_hoisted(self) -> None:
        """Run the top-level statements of ``template`` marked ``hoisted``.

        These are the definitions (imports, macros, assignments) other
        templates rely on; nothing they do writes output.
        """
        for child in self.template.root.body:
            if isinstance(child, StatementBlock) and getattr(child.stmt, "hoisted", False):
                self.visit(child)

    def _track_line(self, node: Node) -> None:
        render_ctx = get_render_context()
        if render_ctx is not None:
            render_ctx.template_name = self.template.name
            render_ctx.line = node.lineno

    def _visit_comment(self, node: Comment) -> None:
        return None

    def _visit_data(self, node: Data) -> None:
        text = node.value
        if node.trim_left:
            text = text.lstrip(_TRIM_CHARS)
        if node.trim_right:
            text = text.rstrip(_TRIM_CHARS)
        if text:
            self.write(text, node)
        return None

    def _visit_output(self, node: Output) -> None:
        self._track_line(node)
        if node.condition is not None:
            condition = self.eval(node.condition)
            if condition.is_error:
                raise self.error(
                    f"Unable to render condition at line {node.lineno}",
                    node.condition,
                    condition.error,
                ) from condition.error
            if not condition.is_true:
                if node.alternative is None:
                    return None
                self._write_value(node, node.alternative)
                return None
        self._write_value(node, node.expr)
        return None

    def _write_value(self, node: Output, expr: Expr) -> None:
        value = self.eval(expr)
        if value.is_error:
            raise self.error(
                f"Unable to render expression at line {node.lineno}",
                expr,
                value.error,
            ) from value.error
        if self.config.autoescape and value.is_string and not value.safe:
            self.write(value.escaped(), node)
        else:
            self.write(str(value), node)

    def _visit_statement_block(self, node: StatementBlock) -> None:
        stmt = node.stmt
        if not isinstance(stmt, Statement):
            return None
        self._track_line(node)
        try:
            stmt.execute(self, node)
        except Exception as exc:
            raise self.error(
                f"Unable to execute statement at line {node.lineno}: {stmt}",
                node,
                exc,
            ) from exc
        return None

    def __repr__(self) -> str:
        return f"<Renderer {self.template.name!r} depth={self.context.depth()}>"


def render(
    template: Template,
    data: Context | Mapping[str, Any] | None = None,
    output: TextIO | None = None,
) -> str:
    """Render ``template`` with ``data`` bound in a fresh scope.

    The scope is a child of the environment's globals. When ``output`` is
    given the text is written there and an empty string is returned.

    Raises:
        TemplateRuntimeError: If any node fails to render
    """
    environment = template.environment
    scope = environment.globals.inherit()
    if data is not None:
        scope.update(data)
    sink = output if output is not None else io.StringIO()
    with render_context(
        template_name=template.name,
        filename=template.filename,
        source=template.source,
        max_include_depth=template.config.max_include_depth,
    ):
        Renderer(
            environment.scoped(scope),
            sink,
            template.config,
            template.loader,
            template,
        ).execute()
    if output is not None:
        return ""
    return sink.getvalue()
