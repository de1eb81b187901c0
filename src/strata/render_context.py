"""Per-render bookkeeping kept out of the template's scope chain.

Which template is rendering, the line last visited, and the chain of
includes that led here are needed only for error messages. Keeping them in
a ContextVar instead of in template variables leaves every name free for
templates to bind, and gives each thread its own copy, so two renders of
one Template never see each other's state.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace

DEFAULT_MAX_INCLUDE_DEPTH = 50


@dataclass(slots=True)
class RenderContext:
    """Where a render currently is.

    Attributes:
        template_name: Template being rendered
        filename: Its file on disk, when loaded from one
        source: Its source text, for error snippets
        line: Line of the node most recently visited
        include_depth: How many includes deep this render is
        max_include_depth: Limit on include_depth
        template_stack: ``(template, line)`` of every include leading here,
            outermost first
    """

    template_name: str | None = None
    filename: str | None = None
    source: str | None = None
    line: int = 0
    include_depth: int = 0
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH
    template_stack: list[tuple[str, int]] = field(default_factory=list)

    @property
    def location(self) -> tuple[str, int] | None:
        if self.template_name is None or self.line <= 0:
            return None
        return self.template_name, self.line

    def enter_include(
        self,
        template_name: str | None,
        *,
        filename: str | None = None,
        source: str | None = None,
    ) -> RenderContext:
        """State for rendering ``template_name`` one include level deeper.

        The current location is pushed onto the template stack; this
        context is left untouched.

        Raises:
            TemplateRuntimeError: If the include would exceed max_include_depth
        """
        if self.include_depth >= self.max_include_depth:
            from strata.environment.exceptions import ErrorCode, TemplateRuntimeError

            raise TemplateRuntimeError(
                f"Including '{template_name}' would nest more than "
                f"{self.max_include_depth} includes deep",
                template_name=self.template_name,
                lineno=self.line or None,
                template_stack=list(self.template_stack),
                suggestion="A template probably includes itself, directly or through another one",
                code=ErrorCode.INCLUDE_DEPTH,
            )
        stack = list(self.template_stack)
        if self.location is not None:
            stack.append(self.location)
        return replace(
            self,
            template_name=template_name or self.template_name,
            filename=filename,
            source=source,
            line=0,
            include_depth=self.include_depth + 1,
            template_stack=stack,
        )


_current: ContextVar[RenderContext | None] = ContextVar("strata_render_context", default=None)


def get_render_context() -> RenderContext | None:
    """The active RenderContext, or None outside a render."""
    return _current.get()


@contextmanager
def use_render_context(ctx: RenderContext) -> Iterator[RenderContext]:
    """Make ``ctx`` current for the body of the with block."""
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)


def render_context(
    template_name: str | None = None,
    filename: str | None = None,
    source: str | None = None,
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
) -> AbstractContextManager[RenderContext]:
    """Start the bookkeeping for a top-level render.

    Example:
        with render_context(template_name="page.html") as ctx:
            renderer.execute()
    """
    return use_render_context(
        RenderContext(
            template_name=template_name,
            filename=filename,
            source=source,
            max_include_depth=max_include_depth,
        )
    )
