"""Template loaders.

Loaders provide template source to the Environment. ``get_source(name)``
takes a root-relative name and returns ``(source, filename)``.

Every loader can also be *anchored* at a template: ``loader.inherit(name)``
returns a copy whose ``origin`` is the resolved name, and names resolved
through that copy are relative to the origin's directory. The renderer
derives such a loader for each imported, included or extended template,
so ``{% import "macros.html" as m %}`` inside ``pages/post.html`` finds
``pages/macros.html`` first.

Resolution rules (``resolve``):
    - ``/x.html`` is root-relative, whatever the origin
    - ``x.html`` is tried next to the origin first, then at the root
    - names that climb above the root (``../../x``) are not found

Loaders here: ``FileSystemLoader`` (directories on disk), ``DictLoader``
(a mapping of name to source), ``ChoiceLoader`` (first of several that has
the name), ``FunctionLoader`` (a callable) and ``NullLoader`` (nothing).

A custom loader subclasses ``BaseLoader`` and implements ``get_source``,
raising ``TemplateNotFoundError`` for unknown names; override ``exists``
when the store can answer it without reading the source:
    ```python
    class PackageDataLoader(BaseLoader):
        __slots__ = ("_package",)

        def get_source(self, name: str) -> tuple[str, str | None]:
            resource = importlib.resources.files(self._package) / name
            if not resource.is_file():
                raise TemplateNotFoundError(f"No template {name!r} in {self._package}", name=name)
            return resource.read_text(), str(resource)
    ```

Loaders are not mutated after construction (``inherit`` copies), so one
loader can serve concurrent renders.

"""

from __future__ import annotations

import copy
import logging
import posixpath
from collections.abc import Callable, Mapping
from pathlib import Path

from strata.environment.exceptions import TemplateNotFoundError, suggest_name

logger = logging.getLogger(__name__)


class BaseLoader:
    """Name resolution and anchoring shared by all loaders.

    Subclasses implement ``get_source``; ``exists`` and ``list_templates``
    may be overridden when the backing store can answer them cheaply.
    """

    __slots__ = ("_origin",)

    def __init__(self) -> None:
        self._origin: str | None = None

    @property
    def origin(self) -> str | None:
        """Resolved name of the template this loader is anchored at."""
        return self._origin

    def get_source(self, name: str) -> tuple[str, str | None]:
        raise NotImplementedError

    def exists(self, name: str) -> bool:
        try:
            self.get_source(name)
        except TemplateNotFoundError:
            return False
        return True

    def list_templates(self) -> list[str]:
        return []

    def resolve(self, name: str) -> str:
        """Turn a name as written in a template into a root-relative name.

        Raises:
            TemplateNotFoundError: If the name escapes the loader's root
        """
        if name.startswith("/"):
            resolved = posixpath.normpath(name.lstrip("/"))
        else:
            resolved = posixpath.normpath(name)
            if self._origin is not None:
                directory = posixpath.dirname(self._origin)
                if directory:
                    candidate = posixpath.normpath(posixpath.join(directory, name))
                    if not candidate.startswith("..") and self.exists(candidate):
                        return candidate
        if resolved.startswith("..") or resolved in ("", "."):
            raise TemplateNotFoundError(
                f"Template name '{name}' escapes the template root", name=name
            )
        return resolved

    def inherit(self, name: str) -> BaseLoader:
        """Return a copy of this loader anchored at the template ``name``.

        Raises:
            TemplateNotFoundError: If ``name`` does not resolve to a template
        """
        resolved = self.resolve(name)
        if not self.exists(resolved):
            raise self._not_found(name, resolved)
        derived = copy.copy(self)
        derived._origin = resolved
        logger.debug(f"Anchored {type(self).__name__} at {resolved!r} (requested {name!r})")
        return derived

    def load(self) -> tuple[str, str | None]:
        """Source of the template this loader is anchored at."""
        if self._origin is None:
            raise TemplateNotFoundError("Loader is not anchored at a template")
        return self.get_source(self._origin)

    def _not_found(self, name: str, resolved: str) -> TemplateNotFoundError:
        message = f"Template '{name}' not found"
        if resolved != name:
            message += f" (resolved to '{resolved}')"
        if self._origin is not None:
            message += f" from '{self._origin}'"
        return TemplateNotFoundError(message, name=name)

    def __repr__(self) -> str:
        anchor = f" at {self._origin!r}" if self._origin is not None else ""
        return f"<{type(self).__name__}{anchor}>"


class NullLoader(BaseLoader):
    """Loader of an Environment created without one; finds nothing."""

    __slots__ = ()

    def get_source(self, name: str) -> tuple[str, str | None]:
        raise TemplateNotFoundError(
            f"Template '{name}' not found: no loader configured", name=name
        )

    def exists(self, name: str) -> bool:
        return False


class FileSystemLoader(BaseLoader):
    """Templates stored as files under one or more directories.

    Names are paths relative to a directory. With several directories the
    first one holding the file wins, which gives theme overrides:

        ```python
        loader = FileSystemLoader(["themes/custom/", "themes/default/"])
        ```

    ``get_source`` returns the file's path as the filename, so errors and
    ``Template.filename`` point at the file on disk. ``list_templates``
    only reports files with one of ``extensions``.
    """

    __slots__ = ("_encoding", "_extensions", "_paths")

    def __init__(
        self,
        paths: str | Path | list[str | Path],
        encoding: str = "utf-8",
        extensions: tuple[str, ...] = (".html", ".xml", ".txt"),
    ):
        super().__init__()
        roots = [paths] if isinstance(paths, (str, Path)) else paths
        self._paths = [Path(root) for root in roots]
        self._encoding = encoding
        self._extensions = extensions

    def _find(self, name: str) -> Path | None:
        return next((root / name for root in self._paths if (root / name).is_file()), None)

    def exists(self, name: str) -> bool:
        return self._find(name) is not None

    def get_source(self, name: str) -> tuple[str, str]:
        path = self._find(name)
        if path is None:
            searched = ", ".join(str(root) for root in self._paths)
            raise TemplateNotFoundError(f"Template '{name}' not found in: {searched}", name=name)
        logger.debug(f"Loading template {name!r} from {path}")
        return path.read_text(self._encoding), str(path)

    def list_templates(self) -> list[str]:
        found = {
            path.relative_to(root).as_posix()
            for root in self._paths
            if root.is_dir()
            for path in root.rglob("*")
            if path.suffix in self._extensions and path.is_file()
        }
        return sorted(found)


class DictLoader(BaseLoader):
    """Templates held in a ``{name: source}`` mapping; the filename is None.

    Example:
        >>> loader = DictLoader({
        ...     "base.html": "<html>{% block content %}{% endblock %}</html>",
        ...     "page.html": "{% extends 'base.html' %}{% block content %}Hi{% endblock %}",
        ... })
        >>> Environment(loader=loader).get_template("page.html").render()
        '<html>Hi</html>'
    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: Mapping[str, str]):
        super().__init__()
        self._mapping = mapping

    def exists(self, name: str) -> bool:
        return name in self._mapping

    def get_source(self, name: str) -> tuple[str, None]:
        try:
            return self._mapping[name], None
        except KeyError:
            message = f"Template '{name}' not found"
            match = suggest_name(name, self._mapping)
            if match:
                message += f". Did you mean '{match}'?"
            raise TemplateNotFoundError(message, name=name) from None

    def list_templates(self) -> list[str]:
        return sorted(self._mapping)


class ChoiceLoader(BaseLoader):
    """Delegate to the first of several loaders that has the template.

    Example:
        >>> site = DictLoader({"nav.html": "<nav>Site</nav>"})
        >>> theme = DictLoader({"nav.html": "<nav>Theme</nav>", "footer.html": "<footer/>"})
        >>> env = Environment(loader=ChoiceLoader([site, theme]))
        >>> env.get_template("nav.html").render()
        '<nav>Site</nav>'
    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: list[BaseLoader]):
        super().__init__()
        self._loaders = loaders

    def exists(self, name: str) -> bool:
        return any(loader.exists(name) for loader in self._loaders)

    def get_source(self, name: str) -> tuple[str, str | None]:
        for loader in self._loaders:
            if loader.exists(name):
                return loader.get_source(name)
        raise TemplateNotFoundError(
            f"Template '{name}' not found by any of {len(self._loaders)} loaders",
            name=name,
        )

    def list_templates(self) -> list[str]:
        return sorted({name for loader in self._loaders for name in loader.list_templates()})


class FunctionLoader(BaseLoader):
    """Wrap a callable as a loader.

    The callable receives a template name and returns the source string,
    a ``(source, filename)`` tuple, or ``None`` when it has no such
    template.

    Example:
            >>> loader = FunctionLoader(lambda name: {"a.html": "A"}.get(name))
            >>> loader.get_source("a.html")
            ('A', None)
    """

    __slots__ = ("_load_func",)

    def __init__(self, load_func: Callable[[str], str | tuple[str, str | None] | None]):
        super().__init__()
        self._load_func = load_func

    def get_source(self, name: str) -> tuple[str, str | None]:
        result = self._load_func(name)
        if result is None:
            raise TemplateNotFoundError(f"Template '{name}' not found", name=name)
        if isinstance(result, str):
            return result, None
        return result
