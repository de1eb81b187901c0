"""HTML escaping and safe strings.

``Markup`` marks a string as already escaped. Autoescaping leaves Markup
alone and escapes everything else exactly once.

Example:
    >>> html_escape("<b>")
    Markup('&lt;b&gt;')
    >>> html_escape(Markup("<b>"))
    Markup('<b>')
    >>> Markup("<p>") + "<x>"
    Markup('<p>&lt;x&gt;')

"""

from __future__ import annotations

from typing import Any, SupportsIndex

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&#34;",
        "'": "&#39;",
    }
)


class Markup(str):
    """A string that is safe to insert into HTML without escaping.

    Concatenation with a plain ``str`` escapes the plain operand, so a
    safe value never becomes unsafe by accident.
    """

    __slots__ = ()

    def __new__(cls, value: Any = "") -> Markup:
        if hasattr(value, "__html__") and not isinstance(value, str):
            value = value.__html__()
        return super().__new__(cls, value)

    def __html__(self) -> Markup:
        return self

    def __add__(self, other: str) -> Markup:
        if isinstance(other, str):
            return Markup(str.__add__(self, html_escape(other)))
        return NotImplemented

    def __radd__(self, other: str) -> Markup:
        if isinstance(other, str):
            return Markup(str.__add__(html_escape(other), self))
        return NotImplemented

    def __mul__(self, count: SupportsIndex) -> Markup:
        return Markup(str.__mul__(self, count))

    def __repr__(self) -> str:
        return f"Markup({str.__repr__(self)})"

    def join(self, iterable: Any) -> Markup:
        return Markup(str.join(self, (html_escape(item) for item in iterable)))

    @classmethod
    def escape(cls, value: Any) -> Markup:
        """Escape ``value`` unless it is already safe."""
        return html_escape(value)

    def unescape(self) -> str:
        """Reverse the five entity replacements made by escaping."""
        return (
            str(self)
            .replace("&#39;", "'")
            .replace("&#34;", '"')
            .replace("&gt;", ">")
            .replace("&lt;", "<")
            .replace("&amp;", "&")
        )


def html_escape(value: Any) -> Markup:
    """Escape ``value`` for HTML and return it as Markup.

    Values that are already safe (Markup, or anything with ``__html__``)
    pass through unchanged.
    """
    if isinstance(value, Markup):
        return value
    if hasattr(value, "__html__"):
        return Markup(value.__html__())
    return Markup(str.translate(str(value), _ESCAPE_TABLE))


def is_safe(value: Any) -> bool:
    """Return True if ``value`` is marked safe for HTML output."""
    return isinstance(value, Markup) or hasattr(value, "__html__")
