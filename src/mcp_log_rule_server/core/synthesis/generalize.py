"""Escaping and generalization of volatile log text."""

from __future__ import annotations

import re

DATE_WILDCARD = r"\d{4}-\d{2}-\d{2}"
TIME_WILDCARD = r"\d{2}:\d{2}:\d{2}"
NUMBER_WILDCARD = r"\d+"

# Regex metacharacters only; whitespace and '-' stay readable for editing.
_META_CHARS = frozenset("\\.^$*+?()[]{}|")

# One alternation so text produced by an earlier rewrite is never rescanned
# (the "4" in \d{4} must not turn into \d+). Hyphens may arrive escaped when
# callers used re.escape.
_VOLATILE_RE = re.compile(
    r"(?P<date>[0-9]{4}\\?-[0-9]{2}\\?-[0-9]{2})"
    r"|(?P<time>[0-9]{2}:[0-9]{2}:[0-9]{2})"
    r"|(?P<number>\b[0-9]+\b)",
    re.ASCII,
)


def escape_literal(text: str) -> str:
    """Escape regex metacharacters so ``text`` matches itself literally."""
    return "".join("\\" + ch if ch in _META_CHARS else ch for ch in text)


def _replace(m: re.Match[str]) -> str:
    if m.group("date") is not None:
        return DATE_WILDCARD
    if m.group("time") is not None:
        return TIME_WILDCARD
    return NUMBER_WILDCARD


def generalize(pattern: str) -> str:
    """Rewrite dates, clock times and bare integers into wildcards.

    Priority is date, then time, then any remaining whole-word digit run.
    ``pattern`` is expected to be escaped already.
    """
    return _VOLATILE_RE.sub(_replace, pattern)
