"""Template — a parsed template ready for rendering.

A Template pairs the AST produced by the parser with the loader anchored at
its source, so relative names inside it (imports, includes) resolve
against its own location. Rendering walks the AST with a ``Renderer``.

Thread-Safety:
Templates are immutable after construction. Each ``render()`` call builds
its own scope chain, renderer tree and output buffer, so one Template may
be rendered from many threads at once.

Memory Safety:
Uses ``weakref.ref(environment)`` to break the cycle
``Template → (weak) → Environment → template cache → Template``.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, TextIO

from strata.environment.exceptions import TemplateNotFoundError

if TYPE_CHECKING:
    from strata.environment.core import Environment
    from strata.environment.loaders import BaseLoader
    from strata.nodes import Template as TemplateNode
    from strata.nodes import Wrapper
    from strata.runtime.config import Config
    from strata.statements.macros import MacroStmt

logger = logging.getLogger(__name__)


class Template:
    """Parsed template ready for rendering.

    Attributes:
        root: Template AST node (its ``parent`` links the extends chain)
        name: Name the template was loaded under, None for inline source
        filename: Source file path, when the loader knows one
        loader: Loader anchored at this template
        source: Template source, for runtime error snippets
        config: Settings the template was loaded under

    Example:
            >>> env = Environment()
            >>> greeting = env.from_string("Hello, {{ name | upper }}!")
            >>> greeting.render(name="World")
            'Hello, WORLD!'
            >>> greeting.render({"name": "World"})
            'Hello, WORLD!'
    """

    __slots__ = ("_env_ref", "config", "filename", "loader", "name", "root", "source")

    def __init__(
        self,
        environment: Environment,
        root: TemplateNode,
        name: str | None,
        filename: str | None,
        loader: BaseLoader,
        source: str | None = None,
        *,
        config: Config | None = None,
    ):
        # The environment caches templates; a strong ref here would be a cycle
        self._env_ref: weakref.ref[Environment] = weakref.ref(environment.base)
        self.root = root
        self.name = name
        self.filename = filename
        self.loader = loader
        self.source = source
        self.config = config if config is not None else environment.config

    @property
    def environment(self) -> Environment:
        """The owning Environment.

        Raises:
            RuntimeError: If the Environment no longer exists
        """
        env = self._env_ref()
        if env is None:
            raise RuntimeError(
                f"Environment has been garbage collected (template: {self.name or 'unknown'})"
            )
        return env

    @property
    def parent(self) -> Template | None:
        """The template this one extends, if any."""
        return self.root.parent

    @property
    def macros(self) -> Mapping[str, MacroStmt]:
        """Top-level macro definitions of this template, by name."""
        return self.root.macros

    @property
    def blocks(self) -> list[str]:
        """Names of every block available to this template, parents included."""
        names: dict[str, None] = {}
        for template in self.ancestry():
            names.update(dict.fromkeys(template.root.blocks))
        return list(names)

    def ancestry(self) -> list[Template]:
        """This template followed by each template it extends, root-most last."""
        chain: list[Template] = []
        template: Template | None = self
        while template is not None:
            chain.append(template)
            template = template.parent
        return chain

    def block_chain(self, name: str) -> list[tuple[Template, Wrapper]]:
        """Definitions of block ``name``, most derived first, with their templates."""
        return [
            (template, template.root.blocks[name])
            for template in self.ancestry()
            if name in template.root.blocks
        ]

    def render(self, *args: Any, **kwargs: Any) -> str:
        """Render with variables from an optional mapping and keyword arguments.

        Keyword arguments win over mapping entries of the same name.

        Raises:
            TemplateRuntimeError: If rendering fails
        """
        from strata.runtime.renderer import render

        return render(self, _collect_data(args, kwargs))

    def render_to(self, stream: TextIO, *args: Any, **kwargs: Any) -> None:
        """Render into ``stream`` instead of returning a string."""
        from strata.runtime.renderer import render

        render(self, _collect_data(args, kwargs), stream)

    def __repr__(self) -> str:
        return f"<Template {self.name or '(inline)'}>"


def _collect_data(args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if args:
        if len(args) == 1 and isinstance(args[0], Mapping):
            data.update(args[0])
        else:
            raise TypeError(
                f"render() takes at most 1 positional argument (a dict), got {len(args)}"
            )
    data.update(kwargs)
    return data


def load_template(
    name: str,
    config: Config,
    loader: BaseLoader,
    environment: Environment,
    *,
    chain: tuple[str, ...] = (),
) -> Template:
    """Load and parse the template ``loader`` is anchored at.

    ``loader`` must come from ``inherit()``; its ``origin`` is the resolved
    template name and the cache key. ``chain`` lists the templates whose
    ``extends`` led here, so a cycle is reported instead of recursing.

    Raises:
        TemplateNotFoundError: If the loader cannot supply the source
        TemplateSyntaxError: If the source does not parse
    """
    from strata.parser import Parser

    origin = loader.origin
    if origin is None:
        raise TemplateNotFoundError(f"Template '{name}' has no resolved origin", name=name)

    cached = environment.cached_template(origin)
    if cached is not None:
        return cached

    source, filename = loader.load()
    logger.debug(f"Loading template {origin!r} (requested as {name!r})")
    root = Parser.from_source(
        source,
        name=origin,
        filename=filename,
        environment=environment,
        loader=loader,
        chain=(*chain, origin),
    ).parse()
    template = Template(environment, root, origin, filename, loader, source, config=config)
    environment.cache_template(origin, template)
    return template
