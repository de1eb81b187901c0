"""Runtime helpers shared by the evaluator, filters and tests.

Thread-Safety:
All functions are stateless and safe for concurrent use.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class _Undefined:
    """Sentinel for a lookup that found nothing.

    Renders as the empty string, is falsy and iterates as empty, so a
    missing attribute never breaks output. The ``defined`` test tells it
    apart from real values, including ``None``.
    """

    __slots__ = ()

    def __str__(self) -> str:
        return ""

    def __repr__(self) -> str:
        return "Undefined"

    def __bool__(self) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    def __iter__(self) -> Any:
        return iter(())

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _Undefined)

    def __hash__(self) -> int:
        return hash(_Undefined)

    def __html__(self) -> str:
        return ""


UNDEFINED = _Undefined()


def is_undefined(value: Any) -> bool:
    return isinstance(value, _Undefined)


def safe_getattr(obj: Any, name: str) -> Any:
    """Get attribute with mapping fallback.

    Resolution order:
    - Mappings: subscript first (user data), getattr fallback (methods).
      Keys like ``items`` resolve to user data, not the dict method.
    - Objects: getattr first, subscript fallback.

    Returns ``UNDEFINED`` when nothing is found, including when ``obj``
    itself is None or undefined.
    """
    if obj is None or isinstance(obj, _Undefined):
        return UNDEFINED
    if isinstance(obj, Mapping):
        try:
            return obj[name]
        except KeyError:
            try:
                return getattr(obj, name)
            except AttributeError:
                return UNDEFINED
    try:
        return getattr(obj, name)
    except AttributeError:
        try:
            return obj[name]
        except (KeyError, IndexError, TypeError):
            return UNDEFINED


def safe_getitem(obj: Any, key: Any) -> Any:
    """Subscript with attribute fallback for string keys.

    Returns ``UNDEFINED`` for missing keys and out-of-range indexes.
    """
    if obj is None or isinstance(obj, _Undefined):
        return UNDEFINED
    try:
        return obj[key]
    except (KeyError, IndexError):
        return UNDEFINED
    except TypeError:
        if isinstance(key, str):
            try:
                return getattr(obj, key)
            except AttributeError:
                return UNDEFINED
        raise
