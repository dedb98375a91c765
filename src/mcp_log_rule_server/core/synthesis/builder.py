"""Build a reusable rule source from one sample log line."""

from __future__ import annotations

from ..models import Anchor
from .anchor import find_anchor
from .generalize import escape_literal, generalize

TRAILING_WILDCARD = ".*"


def synthesize_with_anchor(line: str) -> tuple[str, Anchor | None]:
    """Return the synthesized pattern source and the anchor it was built on."""
    anchor = find_anchor(line)
    if anchor is None:
        return generalize(escape_literal(line)) + TRAILING_WILDCARD, None

    prefix = line[: anchor.start]
    token = anchor.text(line)
    # The anchor is the stable part of the rule: escaped, never generalized.
    source = generalize(escape_literal(prefix)) + escape_literal(token) + TRAILING_WILDCARD
    return source, anchor


def synthesize(line: str) -> str:
    """Synthesize a regular-expression source that matches lines like ``line``.

    Never raises. Whether the result compiles is checked when it is added to a
    rule set.
    """
    source, _ = synthesize_with_anchor(line)
    return source
