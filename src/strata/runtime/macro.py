"""Macro closures.

A ``Macro`` pairs a macro definition with the renderer that was active
where it was bound. Calling it renders the body in a child scope of that
renderer, so the body sees the variables of the place the macro was
defined (or imported into), never the caller's.
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING, Any

from strata.environment.exceptions import ErrorCode, TemplateRuntimeError, describe_error
from strata.utils.html import Markup

if TYPE_CHECKING:
    from strata.runtime.renderer import Renderer
    from strata.statements.macros import MacroStmt


class Macro:
    """A callable macro bound to its defining scope.

    Arguments bind positionally, then by keyword, then from defaults
    (evaluated in the macro's own scope, so a default may refer to an
    earlier parameter). Parameters left unbound are None.

    Extra positional arguments are collected in ``varargs`` and unknown
    keyword arguments in ``kwargs`` when the body refers to those names;
    otherwise they are errors.
    """

    __slots__ = ("node", "renderer")

    def __init__(self, node: MacroStmt, renderer: Renderer):
        self.node = node
        self.renderer = renderer

    @property
    def name(self) -> str:
        return self.node.name

    def __call__(self, *args: Any, **kwargs: Any) -> Markup:
        node = self.node
        params = node.params
        if len(args) > len(params) and not node.catch_varargs:
            raise self._argument_error(
                f"takes {len(params)} positional argument(s) but {len(args)} were given"
            )

        sub = self.renderer.inherit()
        scope = sub.context
        for param, value in zip(params, args, strict=False):
            scope.set(param, value)

        extra_kwargs: dict[str, Any] = {}
        for key, value in kwargs.items():
            if key in params:
                if params.index(key) < len(args):
                    raise self._argument_error(f"got multiple values for argument '{key}'")
                scope.set(key, value)
            elif node.catch_kwargs:
                extra_kwargs[key] = value
            else:
                raise self._argument_error(f"got an unexpected keyword argument '{key}'")

        for param in params[len(args) :]:
            if param in kwargs:
                continue
            default = node.defaults.get(param)
            if default is None:
                scope.set(param, None)
                continue
            value = sub.eval(default)
            if value.is_error:
                raise self._argument_error(
                    f"default for argument '{param}' failed: {value.error}"
                ) from value.error
            scope.set(param, value.val)

        if node.catch_varargs:
            scope.set("varargs", tuple(args[len(params) :]))
        if node.catch_kwargs:
            scope.set("kwargs", extra_kwargs)

        buffer = io.StringIO()
        sub.output = buffer
        try:
            sub.walk(node.body.body)
        except TemplateRuntimeError as exc:
            where = f"line {exc.lineno}"
            if exc.template_name:
                where = f"{exc.template_name}:{exc.lineno}"
            raise TemplateRuntimeError(
                f"Macro '{node.name}' failed at {where}: {describe_error(exc.root_cause)}",
                template_name=self.renderer.template.name,
                lineno=exc.lineno,
            ) from exc
        return Markup(buffer.getvalue())

    def _argument_error(self, detail: str) -> TemplateRuntimeError:
        return TemplateRuntimeError(
            f"Macro '{self.node.name}' {detail}",
            template_name=self.renderer.template.name,
            lineno=self.node.lineno,
            code=ErrorCode.MACRO_ARGUMENTS,
        )

    def __repr__(self) -> str:
        return f"<Macro {self.node.name}({', '.join(self.node.params)})>"
