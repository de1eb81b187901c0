"""Tree traversal for the strata AST.

Two traversals live here:

- ``walk`` drives a visitor over the *structural* tree (template bodies and
  statement bodies). The visitor decides, node by node, whether and with
  which visitor the children are walked. The renderer is such a visitor.
- ``iter_child_nodes`` yields every child of any node, expressions
  included, for analyses such as finding the names a macro body uses.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import fields
from typing import Protocol

from strata.nodes.base import Node
from strata.nodes.expressions import Name

# Structural children walked by ``walk``
CONTAINER_ATTRS = ("body",)

# Fields that point outside the node's own subtree
_SKIP_FIELDS = frozenset({"parent", "blocks", "macros"})


class Visitor(Protocol):
    """Returns the visitor for the node's children, or None to skip them."""

    def visit(self, node: Node) -> Visitor | None: ...


def walk(visitor: Visitor, node: Node) -> None:
    """Visit ``node`` then, unless told to stop, its structural children.

    Children are walked in source order with whatever visitor ``visit``
    returned for the parent, so a visitor can hand a subtree to a scoped
    copy of itself. Exceptions propagate unchanged.
    """
    child_visitor = visitor.visit(node)
    if child_visitor is None:
        return
    for attr in CONTAINER_ATTRS:
        children = getattr(node, attr, None)
        if children:
            for child in children:
                walk(child_visitor, child)


def _nodes_in(value: object) -> Iterator[Node]:
    if isinstance(value, Node):
        yield value
    elif isinstance(value, Mapping):
        for item in value.values():
            yield from _nodes_in(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _nodes_in(item)


def iter_child_nodes(node: Node) -> Iterator[Node]:
    """Yield every direct child node of ``node``, expressions included."""
    for f in fields(node):
        if f.name in _SKIP_FIELDS:
            continue
        yield from _nodes_in(getattr(node, f.name))


def iter_nodes(nodes: Iterable[Node]) -> Iterator[Node]:
    """Depth-first iteration over ``nodes`` and all their descendants."""
    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(iter_child_nodes(node))))


def find_names(nodes: Iterable[Node]) -> frozenset[str]:
    """Names read anywhere under ``nodes``."""
    return frozenset(node.name for node in iter_nodes(nodes) if isinstance(node, Name))
