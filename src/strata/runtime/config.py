"""Render configuration shared by a renderer and cloned for its sub-scopes."""

from __future__ import annotations

import copy
from dataclasses import dataclass


@dataclass(slots=True)
class Config:
    """Settings that control rendering.

    Attributes:
        autoescape: HTML-escape unsafe strings written by ``{{ }}``
        strict_undefined: Missing names are errors instead of empty values
        max_include_depth: Nesting limit for ``{% include %}``

    ``inherit()`` returns an independent copy, so a nested scope can flip
    ``autoescape`` for its body without affecting the enclosing scope.
    """

    autoescape: bool = False
    strict_undefined: bool = True
    max_include_depth: int = 50

    def inherit(self) -> Config:
        return copy.deepcopy(self)
