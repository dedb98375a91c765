"""Core data models for rule synthesis and live matching."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class AnchorKind(str, Enum):
    """Kind of structural token a synthesized rule is anchored on."""

    KEYWORD = "keyword"
    BRACKETED_TOKEN = "bracketed_token"


@dataclass(frozen=True, slots=True)
class Anchor:
    """Half-open character range [start, end) into a sample line."""

    start: int
    end: int
    kind: AnchorKind

    def text(self, line: str) -> str:
        return line[self.start : self.end]


@dataclass(frozen=True, slots=True)
class PatternSpec:
    """Named regular-expression source, as edited by the operator."""

    name: str
    source: str


@dataclass(frozen=True, slots=True)
class CompiledRule:
    """Compiled form of a PatternSpec."""

    name: str
    matcher: re.Pattern[str] = field(compare=False)

    def matches(self, line: str) -> bool:
        return self.matcher.search(line) is not None


@dataclass(frozen=True, slots=True)
class CompileDiagnostic:
    """Why a pattern was left out of the compiled rule set."""

    index: int
    name: str
    source: str
    error: str


@dataclass(frozen=True, slots=True)
class MatchEvent:
    """A live line that matched one rule (one event per matching rule)."""

    line: str
    rule_name: str
