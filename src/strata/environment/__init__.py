"""Environment, registries, loaders and exceptions."""

from strata.environment.core import Environment
from strata.environment.exceptions import (
    ErrorCode,
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
from strata.environment.filters import DEFAULT_FILTERS
from strata.environment.loaders import (
    BaseLoader,
    ChoiceLoader,
    DictLoader,
    FileSystemLoader,
    FunctionLoader,
    NullLoader,
)
from strata.environment.registry import Registry
from strata.environment.tests import DEFAULT_TESTS

__all__ = [
    "DEFAULT_FILTERS",
    "DEFAULT_TESTS",
    "BaseLoader",
    "ChoiceLoader",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "FunctionLoader",
    "NullLoader",
    "Registry",
    "RegistryError",
    "SourceSnippet",
    "TemplateError",
    "TemplateImportError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "UndefinedError",
    "build_source_snippet",
]
