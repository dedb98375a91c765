"""Anchor detection for sample log lines."""

from __future__ import annotations

import re

from ..models import Anchor, AnchorKind

# Longer words first so FAILURE/FAILED are tried before FAIL.
ANCHOR_KEYWORDS: tuple[str, ...] = (
    "EXCEPTION",
    "CRITICAL",
    "FAILURE",
    "WARNING",
    "FAILED",
    "SEVERE",
    "ALERT",
    "DEBUG",
    "EMERG",
    "ERROR",
    "FATAL",
    "PANIC",
    "TRACE",
    "FAIL",
    "INFO",
    "WARN",
)

_KEYWORD_RE = re.compile(
    r"(?<![A-Za-z0-9_])(?:" + "|".join(ANCHOR_KEYWORDS) + r")(?![A-Za-z0-9_])",
    re.IGNORECASE,
)
_BRACKETED_RE = re.compile(r"\[[A-Za-z][A-Za-z0-9_]+\]")


def find_anchor(line: str) -> Anchor | None:
    """Return the earliest keyword or bracketed token in ``line``.

    Both classes are searched over the whole line. The match with the smaller
    start offset wins; on a tie the keyword wins.
    """
    keyword = _KEYWORD_RE.search(line)
    bracketed = _BRACKETED_RE.search(line)

    if keyword is not None and (bracketed is None or keyword.start() <= bracketed.start()):
        return Anchor(start=keyword.start(), end=keyword.end(), kind=AnchorKind.KEYWORD)
    if bracketed is not None:
        return Anchor(
            start=bracketed.start(),
            end=bracketed.end(),
            kind=AnchorKind.BRACKETED_TOKEN,
        )
    return None
