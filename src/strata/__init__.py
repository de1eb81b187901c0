"""strata — a tree-walking template engine in the Jinja family.

Quickstart:
    >>> from strata import Environment
    >>> env = Environment()
    >>> template = env.from_string("Hello, {{ name }}!")
    >>> template.render(name="World")
    'Hello, World!'

File-based templates:
    >>> from strata import Environment, FileSystemLoader
    >>> env = Environment(loader=FileSystemLoader("templates/"))
    >>> env.get_template("index.html").render(page=page)

Architecture:
Template Source → Lexer → Parser → strata AST → Renderer → text

Pipeline stages:
1. **Lexer**: Tokenizes template source into a token stream
2. **Parser**: Builds an immutable AST; each ``{% tag %}`` is parsed by the
   statement parser registered for ``tag``
3. **Renderer**: Walks the AST, evaluating expressions against a scope
   chain and running statements, writing text to an output sink

Scoping:
Every lexical scope (block, loop iteration, macro call, import, include)
renders through a sub-renderer with its own ``Context`` frame. Lookups
walk outward through the frames; assignments only ever touch the local
frame.

Macros and imports:
    >>> env = Environment(loader=DictLoader({
    ...     "forms.html": "{% macro input(name) %}<input name='{{ name }}'>{% endmacro %}",
    ... }))
    >>> env.from_string('{% from "forms.html" import input %}{{ input("q") }}').render()
    "<input name='q'>"

Strict Mode (default):
Undefined variables raise ``UndefinedError`` instead of silently rendering
as an empty string. Use ``| default(fallback)`` for optional variables.

"""

from strata._types import Token, TokenType
from strata.environment import (
    BaseLoader,
    ChoiceLoader,
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    FunctionLoader,
    NullLoader,
    Registry,
    RegistryError,
    SourceSnippet,
    TemplateError,
    TemplateImportError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
    build_source_snippet,
)
from strata.render_context import RenderContext, get_render_context, render_context
from strata.runtime import Config, Context, Macro, Renderer, Value, render
from strata.template import LoopContext, Template, load_template
from strata.utils.html import Markup, html_escape

__version__ = "0.1.0"

__all__ = [
    "BaseLoader",
    "ChoiceLoader",
    "Config",
    "Context",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "FunctionLoader",
    "LoopContext",
    "Macro",
    "Markup",
    "NullLoader",
    "Registry",
    "RegistryError",
    "RenderContext",
    "Renderer",
    "SourceSnippet",
    "Template",
    "TemplateError",
    "TemplateImportError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "Token",
    "TokenType",
    "UndefinedError",
    "Value",
    "__version__",
    "build_source_snippet",
    "get_render_context",
    "html_escape",
    "load_template",
    "render",
    "render_context",
]
