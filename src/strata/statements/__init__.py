"""Built-in statements.

Each ``{% tag %}`` is parsed by the function registered under ``tag`` in
an Environment's statement registry, which starts as a copy of
``DEFAULT_STATEMENTS``. The function returns a statement object; the
renderer later calls its ``execute(renderer, block)``.

Custom Statements:
    ```python
    @dataclass(frozen=True, slots=True)
    class NowStmt(Stmt):
        def execute(self, renderer, block):
            renderer.write(datetime.now().isoformat(), block)

    env.add_statement("now", lambda parser, args: NowStmt(args.current.lineno, 0))
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from strata.statements.autoescape import AutoescapeStmt, parse_autoescape
from strata.statements.control_flow import ForStmt, IfStmt, parse_for, parse_if
from strata.statements.imports import FromImportStmt, ImportStmt, parse_from, parse_import
from strata.statements.include import IncludeStmt, parse_include
from strata.statements.inheritance import BlockStmt, ExtendsStmt, parse_block, parse_extends
from strata.statements.macros import MacroStmt, parse_macro
from strata.statements.variables import SetStmt, parse_set

if TYPE_CHECKING:
    from strata.parser.core import StatementParser

DEFAULT_STATEMENTS: dict[str, StatementParser] = {
    "autoescape": parse_autoescape,
    "block": parse_block,
    "extends": parse_extends,
    "for": parse_for,
    "from": parse_from,
    "if": parse_if,
    "import": parse_import,
    "include": parse_include,
    "macro": parse_macro,
    "set": parse_set,
}

__all__ = [
    "DEFAULT_STATEMENTS",
    "AutoescapeStmt",
    "BlockStmt",
    "ExtendsStmt",
    "ForStmt",
    "FromImportStmt",
    "IfStmt",
    "ImportStmt",
    "IncludeStmt",
    "MacroStmt",
    "SetStmt",
]
