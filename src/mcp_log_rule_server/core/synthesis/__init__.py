"""Pattern synthesis: anchor detection, generalization and rule building."""

from __future__ import annotations

from .anchor import ANCHOR_KEYWORDS, find_anchor
from .builder import TRAILING_WILDCARD, synthesize, synthesize_with_anchor
from .generalize import (
    DATE_WILDCARD,
    NUMBER_WILDCARD,
    TIME_WILDCARD,
    escape_literal,
    generalize,
)

__all__ = [
    "ANCHOR_KEYWORDS",
    "DATE_WILDCARD",
    "NUMBER_WILDCARD",
    "TIME_WILDCARD",
    "TRAILING_WILDCARD",
    "escape_literal",
    "find_anchor",
    "generalize",
    "synthesize",
    "synthesize_with_anchor",
]
