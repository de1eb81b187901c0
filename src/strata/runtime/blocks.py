"""Block rendering: override chains, ``super()`` and ``self.<block>()``."""

from __future__ import annotations

import io
from collections.abc import Sequence
from typing import TYPE_CHECKING, TextIO

from strata.environment.exceptions import TemplateRuntimeError
from strata.utils.html import Markup

if TYPE_CHECKING:
    from strata.nodes import Wrapper
    from strata.runtime.renderer import Renderer
    from strata.template.core import Template

    BlockChain = Sequence[tuple[Template, Wrapper]]


def render_block(
    renderer: Renderer,
    name: str,
    chain: BlockChain,
    output: TextIO | None = None,
) -> None:
    """Render the first definition in ``chain`` in a sub-scope.

    The body is walked as part of the template that defines it. Inside it,
    ``super()`` renders the next definition of the chain, that is the one
    the current definition overrides.
    """
    template, wrapper = chain[0]
    sub = renderer.within(template).inherit()
    if output is not None:
        sub.output = output
    sub.context.set("super", _Super(renderer, name, chain[1:]))
    sub.walk(wrapper.body)


def render_block_to_markup(renderer: Renderer, name: str, chain: BlockChain) -> Markup:
    buffer = io.StringIO()
    render_block(renderer, name, chain, buffer)
    return Markup(buffer.getvalue())


class _Super:
    """``super()`` inside a block body."""

    __slots__ = ("_chain", "_name", "_renderer")

    def __init__(self, renderer: Renderer, name: str, chain: BlockChain):
        self._renderer = renderer
        self._name = name
        self._chain = chain

    def __call__(self) -> Markup:
        if not self._chain:
            raise TemplateRuntimeError(
                f"Block '{self._name}' has no parent definition to call with super()",
                template_name=self._renderer.template.name,
            )
        return render_block_to_markup(self._renderer, self._name, self._chain)

    def __repr__(self) -> str:
        return f"<super of block {self._name!r}>"


class TemplateSelf:
    """The ``self`` variable: renders any block of the template by name.

    ``{{ self.title() }}`` renders block ``title`` again, including any
    override from a child template.
    """

    __slots__ = ("_renderer",)

    def __init__(self, renderer: Renderer):
        self._renderer = renderer

    def __getattr__(self, name: str) -> _BlockCall:
        if name.startswith("_"):
            raise AttributeError(name)
        chain = self._renderer.leaf.block_chain(name)
        if not chain:
            raise AttributeError(f"Template has no block named '{name}'")
        return _BlockCall(self._renderer, name, chain)

    def __repr__(self) -> str:
        return f"<TemplateSelf {self._renderer.template.name!r}>"


class _BlockCall:
    __slots__ = ("_chain", "_name", "_renderer")

    def __init__(self, renderer: Renderer, name: str, chain: BlockChain):
        self._renderer = renderer
        self._name = name
        self._chain = chain

    def __call__(self) -> Markup:
        return render_block_to_markup(self._renderer, self._name, self._chain)
