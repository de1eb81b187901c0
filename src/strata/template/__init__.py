"""Templates ready for rendering, plus the helpers their rendering uses."""

from strata.template.core import Template, load_template
from strata.template.loop_context import LoopContext

__all__ = ["LoopContext", "Template", "load_template"]
