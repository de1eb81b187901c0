"""The ``loop`` variable bound inside ``{% for %}`` bodies."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

_NOT_SEEN: tuple[Any, ...] = (object(),)


class LoopContext:
    """Position of a ``for`` loop over an already materialized sequence.

    Iterating a LoopContext yields the items and advances its position, so
    the metadata read inside the body always describes the current item:

        ``index`` / ``index0``        position, 1- and 0-based
        ``revindex`` / ``revindex0``  distance to the end, 1- and 0-based
        ``first`` / ``last``          at either end
        ``length``                    number of items
        ``previtem`` / ``nextitem``   neighbors, None past either end
        ``parent`` / ``depth``        enclosing loop and nesting level

    Example:
        ```jinja
        {% for row in rows %}
            <tr class="{{ loop.cycle('odd', 'even') }}">{{ loop.index }}/{{ loop.length }}</tr>
        {% endfor %}
        ```
    """

    __slots__ = ("_last_changed", "_parent", "_seq", "index0")

    def __init__(self, items: Sequence[Any], parent: LoopContext | None = None) -> None:
        self._seq = items
        self._parent = parent
        self._last_changed = _NOT_SEEN
        self.index0 = 0

    def __iter__(self) -> Iterator[Any]:
        for position, item in enumerate(self._seq):
            self.index0 = position
            yield item

    def _at(self, offset: int) -> Any:
        position = self.index0 + offset
        if 0 <= position < len(self._seq):
            return self._seq[position]
        return None

    @property
    def length(self) -> int:
        return len(self._seq)

    @property
    def index(self) -> int:
        return self.index0 + 1

    @property
    def revindex0(self) -> int:
        return self.length - self.index

    @property
    def revindex(self) -> int:
        return self.revindex0 + 1

    @property
    def first(self) -> bool:
        return self.index0 == 0

    @property
    def last(self) -> bool:
        return self.revindex0 == 0

    @property
    def previtem(self) -> Any:
        return self._at(-1)

    @property
    def nextitem(self) -> Any:
        return self._at(1)

    @property
    def parent(self) -> LoopContext | None:
        return self._parent

    @property
    def depth(self) -> int:
        depth, loop = 1, self._parent
        while loop is not None:
            depth, loop = depth + 1, loop._parent
        return depth

    def cycle(self, *values: Any) -> Any:
        """Pick from ``values`` round-robin by position; None when empty."""
        return values[self.index0 % len(values)] if values else None

    def changed(self, *values: Any) -> bool:
        """True on the first call and whenever ``values`` differ from the last call."""
        if values == self._last_changed:
            return False
        self._last_changed = values
        return True

    def __repr__(self) -> str:
        return f"<LoopContext {self.index}/{self.length}>"
