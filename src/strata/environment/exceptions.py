"""Exceptions for the strata template engine.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError     # Loader could not resolve a template name
├── TemplateSyntaxError       # Lex/parse-time error
├── TemplateRuntimeError      # Render-time error with position
│   └── TemplateImportError   # import/from/include could not load a template
├── UndefinedError            # Strict lookup of a missing name
└── RegistryError             # Conflicting filter/test/statement registration

Render-time errors are wrapped at the point they are detected. Each
wrapper names the line and the construct that failed and chains the
original exception through ``__cause__``, so the full path from the
outermost statement down to the failing expression is preserved:

    ```
    Runtime Error: Unable to execute statement at line 4: ForStmt(line=4 col=3):
        Unable to render expression at line 5: user.name: Undefined variable 'usr'
      Location: users.html:4
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from enum import Enum
from typing import Any

from strata.environment import terminal


class ErrorCode(Enum):
    """Searchable error codes.

    Format: S-{CATEGORY}-{NUMBER}
    Categories: LEX (lexer), PAR (parser), RUN (runtime), TPL (template
    loading), REG (registries)
    """

    # Lexer errors (S-LEX-xxx)
    UNCLOSED_TAG = "S-LEX-001"
    UNCLOSED_COMMENT = "S-LEX-002"
    UNCLOSED_VARIABLE = "S-LEX-003"
    UNEXPECTED_CHARACTER = "S-LEX-004"

    # Parser errors (S-PAR-xxx)
    UNEXPECTED_TOKEN = "S-PAR-001"
    UNCLOSED_BLOCK = "S-PAR-002"
    INVALID_EXPRESSION = "S-PAR-003"
    UNKNOWN_STATEMENT = "S-PAR-004"
    DUPLICATE_DEFINITION = "S-PAR-005"
    CIRCULAR_EXTENDS = "S-PAR-006"

    # Runtime errors (S-RUN-xxx)
    UNDEFINED_VARIABLE = "S-RUN-001"
    FILTER_ERROR = "S-RUN-002"
    TEST_ERROR = "S-RUN-003"
    INCLUDE_DEPTH = "S-RUN-004"
    RUNTIME_ERROR = "S-RUN-005"
    IMPORT_ERROR = "S-RUN-006"
    MACRO_ARGUMENTS = "S-RUN-007"
    OUTPUT_ERROR = "S-RUN-008"
    CIRCULAR_IMPORT = "S-RUN-009"

    # Template loading errors (S-TPL-xxx)
    TEMPLATE_NOT_FOUND = "S-TPL-001"
    SYNTAX_ERROR = "S-TPL-002"

    # Registry errors (S-REG-xxx)
    ALREADY_REGISTERED = "S-REG-001"
    NOT_REGISTERED = "S-REG-002"
    REGISTRY_SEALED = "S-REG-003"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'lexer', 'parser', 'template')."""
        prefix = self.value.split("-")[1]
        return {
            "LEX": "lexer",
            "PAR": "parser",
            "RUN": "runtime",
            "TPL": "template",
            "REG": "registry",
        }.get(prefix, "unknown")


def format_template_stack(stack: list[tuple[str, int]] | None) -> str:
    """The chain of includes that led to an error, outermost first.

    Example:
        >>> print(format_template_stack([("base.html", 42), ("nav.html", 12)]))
        Template stack:
          • base.html:42
          • nav.html:12
    """
    if not stack:
        return ""
    entries = (f"  • {terminal.location(f'{name}:{line}')}" for name, line in stack)
    return "\n".join([terminal.dim_text("Template stack:"), *entries])


def suggest_name(name: str, candidates: Any) -> str | None:
    """Closest match for ``name`` among ``candidates``, if any is close enough."""
    if not candidates:
        return None
    matches = get_close_matches(name, list(candidates), n=1, cutoff=0.6)
    return matches[0] if matches else None


def _position(name: str | None, lineno: int | None, col_offset: int | None = None) -> str:
    text = name or "<template>"
    if lineno:
        text += f":{lineno}"
        if col_offset is not None:
            text += f":{col_offset}"
    return text


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """A window of numbered source lines around ``error_line``.

    ``column``, when known, puts a caret under the offending character.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        rule = terminal.dim_text("   |")
        rows = [rule]
        rows.extend(
            terminal.format_source_line(lineno, text, is_error=lineno == self.error_line)
            for lineno, text in self.lines
        )
        if self.column is not None:
            rows.append(f"{rule} {' ' * self.column}^")
        rows.append(rule)
        return "\n".join(rows)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
    column: int | None = None,
) -> SourceSnippet:
    """Cut ``context_lines`` lines either side of the 1-based ``error_line`` out of ``source``."""
    numbered = list(enumerate(source.splitlines(), start=1))
    first = max(error_line - context_lines, 1)
    last = error_line + context_lines
    window = tuple((lineno, text) for lineno, text in numbered if first <= lineno <= last)
    return SourceSnippet(lines=window, error_line=error_line, column=column)


class TemplateError(Exception):
    """Root of every error strata raises; ``code`` is a searchable ErrorCode."""

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """The message without ANSI styling, prefixed with the error code."""
        text = terminal.strip_colors(str(self))
        if self.code is not None and not text.startswith(self.code.value):
            text = f"{self.code.value}: {text}"
        return text


class TemplateNotFoundError(TemplateError):
    """A loader has no template under the requested name.

    Example:
        >>> env.get_template("missing.html")
        TemplateNotFoundError: Template 'missing.html' not found in: templates/
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND

    def __init__(self, message: str, *, name: str | None = None):
        self.name = name
        super().__init__(message)


class TemplateSyntaxError(TemplateError):
    """The lexer or parser rejected the template source.

    With ``source`` and ``lineno`` the message quotes the offending line,
    plus a caret when ``col_offset`` is known.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
        *,
        code: ErrorCode | None = None,
        suggestion: str | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.filename = filename
        self.source = source
        self.col_offset = col_offset
        self.suggestion = suggestion
        if code is not None:
            self.code = code
        super().__init__(self._render())

    def _render(self) -> str:
        where = _position(self.filename or self.name, self.lineno, self.col_offset)
        out = [f"Syntax Error: {self.message}", f"  --> {where}"]
        if self.source and self.lineno and self.lineno <= len(self.source.splitlines()):
            snippet = build_source_snippet(
                self.source, self.lineno, context_lines=0, column=self.col_offset
            )
            out.append(snippet.format())
        if self.suggestion:
            out.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(out)


class TemplateRuntimeError(TemplateError):
    """A failure while rendering, tied to the construct that failed.

    Rendered as:
        ```
        Runtime Error: Unable to render expression at line 15: post.title: ...
          Location: article.html:15
           |
        > 15 | <h1>{{ post.title }}</h1>
           |
          Expression: post.title
        ```

    ``message`` is the bare description (what wrapping errors embed);
    ``str(error)`` is the full report above.
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        template_name: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
        source_snippet: SourceSnippet | None = None,
        template_stack: list[tuple[str, int]] | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.expression = expression
        self.template_name = template_name
        self.lineno = lineno
        self.suggestion = suggestion
        self.source_snippet = source_snippet
        self.template_stack = list(template_stack or ())
        if code is not None:
            self.code = code
        super().__init__(self._render())

    def _render(self) -> str:
        out = [f"Runtime Error: {self.message}"]
        if self.template_name or self.lineno:
            out.append(f"  Location: {terminal.location(_position(self.template_name, self.lineno))}")
        if self.source_snippet is not None:
            out.append(self.source_snippet.format())
        if self.template_stack:
            out.extend(["", format_template_stack(self.template_stack)])
        if self.expression:
            out.append(f"  Expression: {self.expression}")
        if self.suggestion:
            out.append(f"\n  {terminal.hint('Suggestion:')} {self.suggestion}")
        return "\n".join(out)

    @property
    def root_cause(self) -> BaseException:
        """The innermost exception in the ``__cause__`` chain."""
        error: BaseException = self
        while error.__cause__ is not None:
            error = error.__cause__
        return error


class TemplateImportError(TemplateRuntimeError):
    """An import, from-import or include could not obtain its template.

    Raised when the filename expression fails, when the loader cannot be
    derived for the target, when the target fails to load or parse, or
    when a requested macro is missing from the library.
    """

    code: ErrorCode | None = ErrorCode.IMPORT_ERROR

    def __init__(self, message: str, *, filename: str | None = None, **kwargs: Any):
        self.filename = filename
        super().__init__(message, **kwargs)


class UndefinedError(TemplateError):
    """A strict lookup found no binding for ``name``.

    ``available_names`` (everything visible at the failing lookup) feeds the
    "Did you mean" hint.

    Example:
        >>> Environment().from_string("{{ usr }}").render(user="x")
        UndefinedError: Undefined variable 'usr'. Did you mean 'user'?
    """

    code: ErrorCode | None = ErrorCode.UNDEFINED_VARIABLE

    def __init__(
        self,
        name: str,
        template: str | None = None,
        lineno: int | None = None,
        available_names: frozenset[str] | None = None,
    ):
        self.name = name
        self.template = template
        self.lineno = lineno
        self._available_names = available_names
        super().__init__(self._render())

    @property
    def suggestion(self) -> str | None:
        return suggest_name(self.name, self._available_names)

    def _render(self) -> str:
        text = f"Undefined variable '{self.name}'"
        if self.template or self.lineno:
            text += f" in {terminal.location(_position(self.template, self.lineno))}"
        if self.suggestion:
            text += f". Did you mean '{terminal.suggestion(self.suggestion)}'?"
        fallback = f"{{{{ {self.name} | default('') }}}}"
        return f"{text}\n  {terminal.hint('Hint:')} Write {fallback} if the variable is optional"


class RegistryError(TemplateError):
    """A filter, test or statement registration conflicts with the registry.

    ``register`` refuses names that already exist, ``replace`` refuses names
    that do not, and a sealed registry refuses every mutation.
    """

    code: ErrorCode | None = ErrorCode.ALREADY_REGISTERED

    def __init__(self, message: str, *, kind: str, name: str, code: ErrorCode | None = None):
        self.kind = kind
        self.name = name
        if code is not None:
            self.code = code
        super().__init__(message)


def describe_error(error: BaseException) -> str:
    """One-line description of ``error`` for use inside a wrapping message."""
    if isinstance(error, (TemplateRuntimeError, TemplateSyntaxError)):
        return error.message
    if isinstance(error, UndefinedError):
        message = f"Undefined variable '{error.name}'"
        if error.suggestion:
            message += f" (did you mean '{error.suggestion}'?)"
        return message
    text = terminal.strip_colors(str(error)).split("\n", 1)[0]
    return text or type(error).__name__
