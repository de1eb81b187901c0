"""Shared pytest configuration for strata examples.

Each example directory holds an ``app.py`` that builds an Environment and
renders at import time, plus a ``test_<name>.py`` that checks the result.
``example_app`` executes the sibling ``app.py`` in a fresh module, so no
Environment or template cache is shared between tests.
"""

import importlib.util
import sys
from pathlib import Path
from types import ModuleType

import pytest


@pytest.fixture
def example_dir(request: pytest.FixtureRequest) -> Path:
    """Directory of the example whose test is running."""
    return Path(request.path).parent


@pytest.fixture
def example_app(example_dir: Path) -> ModuleType:
    """Execute the example's app.py and return it as a module."""
    app_path = example_dir / "app.py"
    spec = importlib.util.spec_from_file_location(f"example_{example_dir.name}", app_path)
    assert spec is not None
    assert spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module
