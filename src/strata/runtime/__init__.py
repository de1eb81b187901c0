"""Render-time interpreter: scopes, values, evaluation and the renderer."""

from strata.runtime.config import Config
from strata.runtime.context import Context
from strata.runtime.macro import Macro
from strata.runtime.renderer import Renderer, render
from strata.runtime.value import Value

__all__ = ["Config", "Context", "Macro", "Renderer", "Value", "render"]
