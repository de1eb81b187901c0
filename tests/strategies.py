"""Shared hypothesis strategies for strata property-based testing.

Provides reusable strategies at three levels:

- **Lexer**: Template fragments with valid delimiter patterns
- **Scopes**: Variable names, values and sequences of scope operations
- **Filters**: Filter names and chains drawn from the built-in registry

Individual test modules compose them into property-specific strategies.
"""

from __future__ import annotations

from hypothesis import strategies as st

# ---------------------------------------------------------------------------
# Lexer strategies
# ---------------------------------------------------------------------------

# Plain text that does NOT contain delimiters (no { or })
plain_text = st.text(
    alphabet=st.characters(
        blacklist_categories=("Cs",),  # no surrogates
        blacklist_characters="{}\x00",
    ),
    min_size=1,
    max_size=200,
)

_RESERVED = frozenset(
    {"and", "or", "not", "if", "else", "in", "is", "true", "false", "none", "self"}
)
_identifier = st.from_regex(r"[a-z_][a-z0-9_]{0,12}", fullmatch=True).filter(
    lambda name: name not in _RESERVED
)
strata_variable = _identifier.map(lambda name: f"{{{{ {name} | default('') }}}}")

_comment_body = st.from_regex(r"[a-zA-Z0-9_ ]{0,30}", fullmatch=True)
strata_comment = _comment_body.map(lambda body: f"{{# {body} #}}")

# Plain text interleaved with outputs and comments
template_fragment = st.lists(
    st.one_of(plain_text, strata_variable, strata_comment),
    min_size=1,
    max_size=5,
).map("".join)

arbitrary_template_source = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",)),
    min_size=0,
    max_size=300,
)

# ---------------------------------------------------------------------------
# Scope strategies
# ---------------------------------------------------------------------------

# Identifiers safe to bind (no keywords, no constants)
safe_identifier = st.sampled_from(
    [
        "x",
        "y",
        "z",
        "a",
        "b",
        "val",
        "item",
        "count",
        "name",
        "data",
        "foo",
        "bar",
        "total",
    ]
)

scalar_value = st.one_of(
    st.integers(min_value=-10_000, max_value=10_000),
    st.text(max_size=20),
    st.booleans(),
    st.none(),
)

bindings = st.dictionaries(safe_identifier, scalar_value, max_size=8)

# A scope chain described as the bindings of each frame, outermost first
frame_stack = st.lists(bindings, min_size=1, max_size=6)

safe_integer = st.integers(min_value=-10_000, max_value=10_000)

# ---------------------------------------------------------------------------
# Filter strategies
# ---------------------------------------------------------------------------

string_safe_filters = st.sampled_from(
    [
        "upper",
        "lower",
        "trim",
        "title",
        "capitalize",
        "string",
    ]
)

string_filter_chain = st.lists(
    string_safe_filters,
    min_size=1,
    max_size=4,
).map(" | ".join)
