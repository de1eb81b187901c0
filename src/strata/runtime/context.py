"""Lexical scope chain for template variables.

A Context is one frame of name → value bindings plus an optional parent
frame. Lookups walk outward through the parents; writes always land in the
local frame, so a nested scope shadows a name without touching the
ancestor that also binds it.

Example:
    >>> root = Context({"x": 1})
    >>> child = root.inherit()
    >>> child.set("x", 2)
    >>> child.get("x"), root.get("x")
    ((2, True), (1, True))
    >>> child.get("missing")
    (None, False)

Frames are owned by the scope that created them. A child keeps its parent
alive, which is what lets a macro closure outlive the render step that
defined it.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any


class Context:
    """One frame of the scope chain."""

    __slots__ = ("_data", "_parent")

    def __init__(self, data: Mapping[str, Any] | None = None, parent: Context | None = None):
        self._data: dict[str, Any] = dict(data) if data else {}
        self._parent = parent

    @property
    def parent(self) -> Context | None:
        return self._parent

    @property
    def data(self) -> Mapping[str, Any]:
        """Read-only view of the local frame."""
        return MappingProxyType(self._data)

    def has(self, name: str) -> bool:
        """True if ``name`` is bound in this frame or any ancestor."""
        frame: Context | None = self
        while frame is not None:
            if name in frame._data:
                return True
            frame = frame._parent
        return False

    def get(self, name: str) -> tuple[Any, bool]:
        """Return ``(value, True)`` from the nearest binding, else ``(None, False)``."""
        frame: Context | None = self
        while frame is not None:
            data = frame._data
            if name in data:
                return data[name], True
            frame = frame._parent
        return None, False

    def set(self, name: str, value: Any) -> None:
        """Bind ``name`` in the local frame only."""
        self._data[name] = value

    def inherit(self) -> Context:
        """Return a new empty frame whose parent is this one."""
        return Context(parent=self)

    def update(self, other: Context | Mapping[str, Any]) -> Context:
        """Copy ``other``'s local bindings into this frame.

        Only the local frame of a Context is copied, never its ancestors.
        Later entries overwrite earlier ones. Returns ``self``.
        """
        source = other._data if isinstance(other, Context) else other
        for name, value in source.items():
            self._data[name] = value
        return self

    def lookup(self, name: str, default: Any = None) -> Any:
        value, found = self.get(name)
        return value if found else default

    def local_names(self) -> frozenset[str]:
        return frozenset(self._data)

    def names(self) -> frozenset[str]:
        """Every name visible from this frame."""
        seen: set[str] = set()
        frame: Context | None = self
        while frame is not None:
            seen.update(frame._data)
            frame = frame._parent
        return frozenset(seen)

    def depth(self) -> int:
        """Number of frames in the chain, this one included."""
        count = 0
        frame: Context | None = self
        while frame is not None:
            count += 1
            frame = frame._parent
        return count

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __getitem__(self, name: str) -> Any:
        value, found = self.get(name)
        if not found:
            raise KeyError(name)
        return value

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.names()))

    def __repr__(self) -> str:
        return f"<Context {sorted(self._data)} depth={self.depth()}>"
