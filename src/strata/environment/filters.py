"""Built-in filters for strata templates.

Filters transform a value: `{{ value | filter }}` or
`{{ value | filter(arg, key=arg) }}`. A filter is any callable taking
the value as its first argument.

Categories:
**Strings**: `upper`, `lower`, `title`, `capitalize`, `trim`/`strip`,
    `replace`, `truncate`, `center`, `indent`, `wordcount`, `string`
**HTML**: `escape`/`e`, `safe`, `forceescape`
**Sequences**: `length`/`count`, `first`, `last`, `join`, `list`, `sort`,
    `reverse`, `unique`, `sum`, `min`, `max`, `batch`
**Numbers**: `int`, `float`, `abs`, `round`
**Fallbacks**: `default`/`d`

`default` receives its operand through a lenient lookup, so
`{{ missing | default('n/a') }}` works with strict undefined on.

Custom Filters:
    >>> env.add_filter('shout', lambda s: str(s).upper() + '!')
    >>> env.from_string("{{ 'hi' | shout }}").render()
    'HI!'

"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from typing import Any

from strata.template.helpers import _Undefined, safe_getattr
from strata.utils.html import Markup, html_escape


def _filter_default(value: Any, default_value: Any = "", boolean: bool = False) -> Any:
    """Return ``default_value`` if value is undefined or None (or falsy with boolean=True)."""
    if isinstance(value, _Undefined) or value is None:
        return default_value
    if boolean and not value:
        return default_value
    return value


def _filter_upper(value: Any) -> str:
    return str(value).upper()


def _filter_lower(value: Any) -> str:
    return str(value).lower()


def _filter_title(value: Any) -> str:
    return str(value).title()


def _filter_capitalize(value: Any) -> str:
    return str(value).capitalize()


def _filter_trim(value: Any, chars: str | None = None) -> str:
    return str(value).strip(chars)


def _filter_replace(value: Any, old: str, new: str, count: int | None = None) -> str:
    if count is None:
        return str(value).replace(old, new)
    return str(value).replace(old, new, count)


def _filter_truncate(value: Any, length: int = 255, end: str = "...", killwords: bool = False) -> str:
    text = str(value)
    if len(text) <= length:
        return text
    cut = text[: max(0, length - len(end))]
    if not killwords and " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut + end


def _filter_center(value: Any, width: int = 80) -> str:
    return str(value).center(width)


def _filter_indent(value: Any, width: int = 4, first: bool = False) -> str:
    prefix = " " * width
    lines = str(value).splitlines(keepends=True)
    return "".join(
        line if (i == 0 and not first) or not line.strip() else prefix + line
        for i, line in enumerate(lines)
    )


def _filter_wordcount(value: Any) -> int:
    return len(str(value).split())


def _filter_string(value: Any) -> str:
    if isinstance(value, Markup):
        return value
    return str(value)


def _filter_escape(value: Any) -> Markup:
    return html_escape(value)


def _filter_forceescape(value: Any) -> Markup:
    return html_escape(str(value))


def _filter_safe(value: Any) -> Markup:
    return Markup(value)


def _filter_length(value: Any) -> int:
    if isinstance(value, _Undefined) or value is None:
        return 0
    return len(value)


def _filter_first(value: Iterable[Any]) -> Any:
    for item in value:
        return item
    return None


def _filter_last(value: Any) -> Any:
    items = list(value)
    return items[-1] if items else None


def _filter_join(value: Iterable[Any], separator: str = "", attribute: str | None = None) -> str:
    items = list(value)
    if attribute is not None:
        items = [safe_getattr(item, attribute) for item in items]
    if isinstance(separator, Markup) or any(isinstance(item, Markup) for item in items):
        return Markup(html_escape(separator).join(items))
    return separator.join(str(item) for item in items)


def _filter_list(value: Any) -> list[Any]:
    return list(value)


def _sort_key(attribute: str | None, case_sensitive: bool) -> Callable[[Any], Any]:
    def key(item: Any) -> Any:
        if attribute is not None:
            item = safe_getattr(item, attribute)
        if not case_sensitive and isinstance(item, str):
            return item.lower()
        return item

    return key


def _filter_sort(
    value: Iterable[Any],
    reverse: bool = False,
    case_sensitive: bool = False,
    attribute: str | None = None,
) -> list[Any]:
    return sorted(value, key=_sort_key(attribute, case_sensitive), reverse=reverse)


def _filter_reverse(value: Any) -> Any:
    if isinstance(value, str):
        return value[::-1]
    return list(reversed(list(value)))


def _filter_unique(value: Iterable[Any], attribute: str | None = None) -> list[Any]:
    seen: set[Any] = set()
    result = []
    for item in value:
        key = safe_getattr(item, attribute) if attribute is not None else item
        if key not in seen:
            seen.add(key)
            result.append(item)
    return result


def _filter_sum(value: Iterable[Any], attribute: str | None = None, start: Any = 0) -> Any:
    if attribute is not None:
        value = (safe_getattr(item, attribute) for item in value)
    return sum(value, start)


def _filter_min(value: Iterable[Any], attribute: str | None = None) -> Any:
    return min(value, key=_sort_key(attribute, False))


def _filter_max(value: Iterable[Any], attribute: str | None = None) -> Any:
    return max(value, key=_sort_key(attribute, False))


def _filter_batch(value: Iterable[Any], linecount: int, fill_with: Any = None) -> list[list[Any]]:
    items = list(value)
    batches = [items[i : i + linecount] for i in range(0, len(items), linecount)]
    if fill_with is not None and batches and len(batches[-1]) < linecount:
        batches[-1].extend([fill_with] * (linecount - len(batches[-1])))
    return batches


def _filter_int(value: Any, default: int = 0, base: int = 10) -> int:
    try:
        if isinstance(value, str):
            return int(value, base)
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return default


def _filter_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _filter_abs(value: Any) -> Any:
    return abs(value)


def _filter_round(value: Any, precision: int = 0, method: str = "common") -> float:
    if method == "common":
        return round(value, precision)
    factor = 10**precision
    if method == "ceil":
        return math.ceil(value * factor) / factor
    if method == "floor":
        return math.floor(value * factor) / factor
    raise ValueError(f"round method must be 'common', 'ceil' or 'floor', got {method!r}")


DEFAULT_FILTERS: dict[str, Callable[..., Any]] = {
    "abs": _filter_abs,
    "batch": _filter_batch,
    "capitalize": _filter_capitalize,
    "center": _filter_center,
    "count": _filter_length,
    "d": _filter_default,
    "default": _filter_default,
    "e": _filter_escape,
    "escape": _filter_escape,
    "first": _filter_first,
    "float": _filter_float,
    "forceescape": _filter_forceescape,
    "indent": _filter_indent,
    "int": _filter_int,
    "join": _filter_join,
    "last": _filter_last,
    "length": _filter_length,
    "list": _filter_list,
    "lower": _filter_lower,
    "max": _filter_max,
    "min": _filter_min,
    "replace": _filter_replace,
    "reverse": _filter_reverse,
    "round": _filter_round,
    "safe": _filter_safe,
    "sort": _filter_sort,
    "string": _filter_string,
    "strip": _filter_trim,
    "sum": _filter_sum,
    "title": _filter_title,
    "trim": _filter_trim,
    "truncate": _filter_truncate,
    "unique": _filter_unique,
    "upper": _filter_upper,
    "wordcount": _filter_wordcount,
}

# Filters that receive their operand through a lenient lookup
LENIENT_FILTERS = frozenset({"default", "d"})
