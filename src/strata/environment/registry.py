"""Name → capability registries for filters, tests and statement parsers.

Registries are read like dicts but written only through explicit methods:
``register`` refuses to overwrite, ``replace`` refuses to create, and
``update`` merges unconditionally.

All mutations use copy-on-write, so a lookup running during a merge sees
either the old table or the new one, never a half-applied merge. Mutating
a registry while templates render is still unsupported; ``seal()`` makes
that precondition explicit.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TypeVar

from strata.environment.exceptions import ErrorCode, RegistryError

T = TypeVar("T")


class Registry(Mapping[str, T]):
    """Dict-like, copy-on-write table of named capabilities.

    Example:
        >>> filters = Registry("filter", {"upper": str.upper})
        >>> filters.register("upper", str.lower)
        RegistryError: filter 'upper' is already registered
        >>> filters.replace("upper", str.lower)
        >>> filters["upper"]("ABC")
        'abc'
    """

    __slots__ = ("_entries", "_kind", "_sealed")

    def __init__(self, kind: str, entries: Mapping[str, T] | None = None):
        self._kind = kind
        self._entries: dict[str, T] = dict(entries) if entries else {}
        self._sealed = False

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def sealed(self) -> bool:
        return self._sealed

    def exists(self, name: str) -> bool:
        return name in self._entries

    def register(self, name: str, entry: T) -> None:
        """Add ``name``; fails if it is already registered."""
        self._check_writable(name)
        if name in self._entries:
            raise RegistryError(
                f"{self._kind} '{name}' is already registered",
                kind=self._kind,
                name=name,
                code=ErrorCode.ALREADY_REGISTERED,
            )
        new = self._entries.copy()
        new[name] = entry
        self._entries = new

    def replace(self, name: str, entry: T) -> None:
        """Swap the entry for an existing ``name``; fails if it is absent."""
        self._check_writable(name)
        if name not in self._entries:
            raise RegistryError(
                f"{self._kind} '{name}' does not exist (therefore cannot be replaced)",
                kind=self._kind,
                name=name,
                code=ErrorCode.NOT_REGISTERED,
            )
        new = self._entries.copy()
        new[name] = entry
        self._entries = new

    def update(self, other: Mapping[str, T]) -> Registry[T]:
        """Merge ``other`` into this registry, last write wins. Returns ``self``."""
        self._check_writable(next(iter(other), ""))
        new = self._entries.copy()
        new.update(other)
        self._entries = new
        return self

    def seal(self) -> None:
        """Refuse every further mutation."""
        self._sealed = True

    def copy(self) -> dict[str, T]:
        return self._entries.copy()

    def _check_writable(self, name: str) -> None:
        if self._sealed:
            raise RegistryError(
                f"{self._kind} registry is sealed; cannot modify '{name}'",
                kind=self._kind,
                name=name,
                code=ErrorCode.REGISTRY_SEALED,
            )

    def __getitem__(self, name: str) -> T:
        return self._entries[name]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        state = " sealed" if self._sealed else ""
        return f"<Registry {self._kind} ({len(self._entries)} entries){state}>"
