"""Environment — registries, configuration and the active scope.

The Environment is the central configuration object. It holds:

- the filter, test and statement registries
- the ``Config`` templates render under
- the globals, as the root ``Context`` of every render
- the loader and a bounded cache of loaded templates

During a render each sub-renderer works on a *scoped* Environment: a
shallow copy sharing everything above but bound to its own ``context``
frame. ``environment.context`` is therefore always the innermost scope of
whoever holds it.

Thread-Safety:
Registries are copy-on-write and the template cache is guarded by a lock,
so concurrent renders are safe. Registering filters, tests or statements
while renders are in flight is not supported; ``seal()`` makes that
precondition explicit.

Example:
    >>> env = Environment(loader=DictLoader({"hi.html": "Hi {{ name }}"}))
    >>> env.render("hi.html", name="there")
    'Hi there'
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from strata.environment.filters import DEFAULT_FILTERS
from strata.environment.loaders import BaseLoader, NullLoader
from strata.environment.registry import Registry
from strata.environment.tests import DEFAULT_TESTS
from strata.runtime.config import Config
from strata.runtime.context import Context

if TYPE_CHECKING:
    from strata.parser.core import StatementParser
    from strata.template.core import Template

logger = logging.getLogger(__name__)


class Environment:
    """Central configuration and template management hub.

    Args:
        loader: Template source provider; ``NullLoader`` when omitted
        autoescape: HTML-escape unsafe ``{{ }}`` output
        strict_undefined: Missing names are errors instead of empty values
        max_include_depth: Nesting limit for ``{% include %}``
        globals: Variables visible in every template
        cache_size: Maximum number of loaded templates kept; 0 disables

    Attributes:
        config: Render settings; sub-scopes get their own copy
        filters: Filter registry (``{{ x | name }}``)
        tests: Test registry (``{% if x is name %}``)
        statements: Statement-parser registry (``{% name ... %}``)
        globals: Root scope of every render
        context: Active scope of this (possibly scoped) Environment
    """

    def __init__(
        self,
        loader: BaseLoader | None = None,
        *,
        autoescape: bool = False,
        strict_undefined: bool = True,
        max_include_depth: int = 50,
        globals: Mapping[str, Any] | None = None,
        cache_size: int = 400,
    ):
        from strata.statements import DEFAULT_STATEMENTS

        self.loader: BaseLoader = loader if loader is not None else NullLoader()
        self.config = Config(
            autoescape=autoescape,
            strict_undefined=strict_undefined,
            max_include_depth=max_include_depth,
        )
        self.filters: Registry[Callable[..., Any]] = Registry("filter", DEFAULT_FILTERS)
        self.tests: Registry[Callable[..., bool]] = Registry("test", DEFAULT_TESTS)
        self.statements: Registry[StatementParser] = Registry("statement", DEFAULT_STATEMENTS)
        self.globals = Context(globals)
        self.context = self.globals
        self.cache_size = cache_size
        self._cache: dict[str, Template] = {}
        self._cache_lock = threading.Lock()
        self._base: Environment = self

    @property
    def base(self) -> Environment:
        """The Environment this one was scoped from (itself if unscoped)."""
        return self._base

    def scoped(self, context: Context) -> Environment:
        """Return a sibling bound to ``context``, sharing everything else."""
        env = copy.copy(self)
        env.context = context
        return env

    # Templates

    def from_string(self, source: str, name: str | None = None) -> Template:
        """Parse ``source`` into a Template; the result is not cached.

        Names imported or included from it resolve from the loader's root.

        Raises:
            TemplateSyntaxError: If the source does not parse
        """
        from strata.parser import Parser
        from strata.template.core import Template

        root = Parser.from_source(
            source,
            name=name,
            environment=self,
            loader=self.loader,
        ).parse()
        return Template(self, root, name, None, self.loader, source)

    def get_template(self, name: str) -> Template:
        """Load a template by name through the loader (cached).

        Raises:
            TemplateNotFoundError: If the template does not exist
            TemplateSyntaxError: If the template does not parse
        """
        from strata.template.core import load_template

        loader = self.loader.inherit(name)
        return load_template(name, self.config, loader, self)

    def render(self, name: str, *args: Any, **kwargs: Any) -> str:
        """Load template ``name`` and render it."""
        return self.get_template(name).render(*args, **kwargs)

    def list_templates(self) -> list[str]:
        return self.loader.list_templates()

    # Template cache

    def cached_template(self, origin: str) -> Template | None:
        with self._cache_lock:
            template = self._cache.pop(origin, None)
            if template is not None:
                self._cache[origin] = template
            return template

    def cache_template(self, origin: str, template: Template) -> None:
        if self.cache_size <= 0:
            return
        with self._cache_lock:
            self._cache.pop(origin, None)
            self._cache[origin] = template
            while len(self._cache) > self.cache_size:
                evicted = next(iter(self._cache))
                del self._cache[evicted]
                logger.debug(f"Evicted template {evicted!r} from cache")

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()

    # Registries

    def add_filter(self, name: str, func: Callable[..., Any]) -> None:
        """Register a new filter.

        Raises:
            RegistryError: If a filter with that name already exists
        """
        self.filters.register(name, func)

    def add_test(self, name: str, func: Callable[..., bool]) -> None:
        self.tests.register(name, func)

    def add_statement(self, name: str, parse: StatementParser) -> None:
        """Register a parser for ``{% name ... %}``.

        The parser receives the template parser and a parser over the tag's
        own tokens, and returns the statement to store in the AST.
        """
        self.statements.register(name, parse)

    def update(self, other: Environment) -> Environment:
        """Merge ``other``'s filters, tests and statements into this one.

        Last write wins; returns self.
        """
        self.filters.update(other.filters)
        self.tests.update(other.tests)
        self.statements.update(other.statements)
        return self

    def seal(self) -> None:
        """Freeze all registries; later mutations raise ``RegistryError``."""
        self.filters.seal()
        self.tests.seal()
        self.statements.seal()

    def __repr__(self) -> str:
        return (
            f"<Environment loader={self.loader!r} autoescape={self.config.autoescape} "
            f"filters={len(self.filters)} tests={len(self.tests)} "
            f"statements={len(self.statements)}>"
        )
