"""Predicates usable after ``is``: ``{% if n is odd %}``, ``{{ x is not none }}``.

A test takes the operand as its first argument and any arguments written
after the name, ``value is divisibleby(3)`` or ``value is divisibleby 3``.
Its result is coerced to bool; ``is not`` negates it.

``defined`` and ``undefined`` see their operand through a lenient lookup,
so ``{% if missing is defined %}`` works under strict undefined.

Register more with ``env.add_test``:
    >>> env.add_test("prime", lambda n: n > 1 and all(n % d for d in range(2, n)))
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from typing import Any

from strata.template.helpers import _Undefined
from strata.utils.html import is_safe


def _is_undefined(value: Any) -> bool:
    return isinstance(value, _Undefined)


def _is_defined(value: Any) -> bool:
    """Anything bound counts as defined, ``None`` included."""
    return not isinstance(value, _Undefined)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_iterable(value: Any) -> bool:
    try:
        iter(value)
    except TypeError:
        return False
    return True


def _has_case(method: str) -> Callable[[Any], bool]:
    def test(value: Any) -> bool:
        return getattr(str(value), method)()

    test.__name__ = f"_is_{method[2:]}"
    return test


def _comparison(op: Callable[[Any, Any], Any]) -> Callable[[Any, Any], bool]:
    def test(value: Any, other: Any) -> bool:
        return bool(op(value, other))

    test.__name__ = f"_test_{op.__name__}"
    return test


_eq = _comparison(operator.eq)
_gt = _comparison(operator.gt)
_lt = _comparison(operator.lt)

DEFAULT_TESTS: dict[str, Callable[..., bool]] = {
    # binding
    "defined": _is_defined,
    "undefined": _is_undefined,
    "none": lambda value: value is None,
    "true": lambda value: value is True,
    "false": lambda value: value is False,
    # types
    "string": lambda value: isinstance(value, str),
    "number": _is_number,
    "mapping": lambda value: isinstance(value, Mapping),
    "sequence": lambda value: isinstance(value, (list, tuple, str)),
    "iterable": _is_iterable,
    "callable": callable,
    "safe": is_safe,
    # numbers
    "odd": lambda value: value % 2 == 1,
    "even": lambda value: value % 2 == 0,
    "divisibleby": lambda value, num: value % num == 0,
    # comparisons
    "eq": _eq,
    "equalto": _eq,
    "ne": _comparison(operator.ne),
    "lt": _lt,
    "lessthan": _lt,
    "le": _comparison(operator.le),
    "gt": _gt,
    "greaterthan": _gt,
    "ge": _comparison(operator.ge),
    "in": lambda value, container: value in container,
    "sameas": operator.is_,
    # strings
    "lower": _has_case("islower"),
    "upper": _has_case("isupper"),
}

# Tests that receive their operand through a lenient lookup
LENIENT_TESTS = frozenset({"defined", "undefined"})
