"""strata AST nodes.

Immutable, slotted dataclasses. Every node carries ``lineno`` and
``col_offset``; expressions render back to source form with ``str()``.
"""

from strata.nodes.base import Node
from strata.nodes.expressions import (
    BinOp,
    BoolOp,
    Compare,
    Concat,
    CondExpr,
    Const,
    Dict,
    Expr,
    Filter,
    FuncCall,
    Getattr,
    Getitem,
    List,
    Name,
    Test,
    Tuple,
    UnaryOp,
)
from strata.nodes.output import Comment, Data, Output
from strata.nodes.statements import Statement, Stmt
from strata.nodes.structure import StatementBlock, Template, Wrapper
from strata.nodes.visitor import Visitor, find_names, iter_child_nodes, iter_nodes, walk

__all__ = [
    "BinOp",
    "BoolOp",
    "Comment",
    "Compare",
    "Concat",
    "CondExpr",
    "Const",
    "Data",
    "Dict",
    "Expr",
    "Filter",
    "FuncCall",
    "Getattr",
    "Getitem",
    "List",
    "Name",
    "Node",
    "Output",
    "Statement",
    "StatementBlock",
    "Stmt",
    "Template",
    "Test",
    "Tuple",
    "UnaryOp",
    "Visitor",
    "Wrapper",
    "find_names",
    "iter_child_nodes",
    "iter_nodes",
    "walk",
]
