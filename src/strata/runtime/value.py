"""Tagged results of expression evaluation.

A Value is what the evaluator hands back to the renderer: either a plain
Python object (strings, numbers, booleans, sequences, callables...) or an
error carrying the exception that stopped evaluation. Nil covers ``None``
and the ``UNDEFINED`` sentinel. A string is safe when it is ``Markup``.
"""

from __future__ import annotations

from typing import Any

from strata.template.helpers import _Undefined
from strata.utils.html import Markup, html_escape


class Value:
    """Result of evaluating one expression.

    Example:
        >>> Value("<b>").escaped()
        Markup('&lt;b&gt;')
        >>> Value(Markup("<b>")).safe
        True
        >>> Value.from_error(ZeroDivisionError("division by zero")).is_error
        True
    """

    __slots__ = ("error", "val")

    def __init__(self, val: Any = None, error: BaseException | None = None) -> None:
        self.val = val
        self.error = error

    @classmethod
    def from_error(cls, error: BaseException) -> Value:
        return cls(None, error)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_nil(self) -> bool:
        return self.val is None or isinstance(self.val, _Undefined)

    @property
    def is_true(self) -> bool:
        """Template truthiness: errors and Nil are false, otherwise ``bool(val)``."""
        if self.error is not None:
            return False
        return bool(self.val)

    @property
    def is_string(self) -> bool:
        return isinstance(self.val, str)

    @property
    def is_number(self) -> bool:
        return isinstance(self.val, (int, float)) and not isinstance(self.val, bool)

    @property
    def is_bool(self) -> bool:
        return isinstance(self.val, bool)

    @property
    def safe(self) -> bool:
        return isinstance(self.val, Markup)

    def escaped(self) -> Markup:
        """HTML-escaped form of the value; safe values are returned as-is."""
        if isinstance(self.val, Markup):
            return self.val
        return html_escape(str(self))

    def __str__(self) -> str:
        if self.error is not None:
            return str(self.error)
        if self.is_nil:
            return ""
        if isinstance(self.val, bool):
            return "True" if self.val else "False"
        return str(self.val)

    def __repr__(self) -> str:
        if self.error is not None:
            return f"Value(error={self.error!r})"
        return f"Value({self.val!r})"
