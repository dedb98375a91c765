"""Rule sets and their compiled snapshots.

A RuleSet owns the ordered pattern list for one log file. Every mutation
recompiles the whole list and publishes a new immutable snapshot, so readers
always see a complete rule list.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from .models import CompileDiagnostic, CompiledRule, PatternSpec

logger = logging.getLogger(__name__)


class InvalidPatternError(ValueError):
    """Raised when an operator explicitly asks to use a pattern that does not compile."""


def compile_pattern(source: str) -> re.Pattern[str]:
    """Compile ``source``, raising InvalidPatternError with the regex error message."""
    try:
        return re.compile(source)
    except re.error as e:
        raise InvalidPatternError(f"Invalid pattern {source!r}: {e}") from e


def compile_rules(
    specs: Iterable[PatternSpec],
) -> tuple[tuple[CompiledRule, ...], tuple[CompileDiagnostic, ...]]:
    """Compile specs in order, dropping (and reporting) the ones that fail."""
    compiled: list[CompiledRule] = []
    diagnostics: list[CompileDiagnostic] = []
    for index, spec in enumerate(specs):
        try:
            matcher = re.compile(spec.source)
        except re.error as e:
            logger.warning("Dropping rule %r: %s", spec.name, e)
            diagnostics.append(
                CompileDiagnostic(index=index, name=spec.name, source=spec.source, error=str(e))
            )
            continue
        compiled.append(CompiledRule(name=spec.name, matcher=matcher))
    return tuple(compiled), tuple(diagnostics)


def preview_matches(source: str, lines: Iterable[str]) -> list[str]:
    """Return the lines that ``source`` matches, in input order."""
    matcher = compile_pattern(source)
    return [line for line in lines if matcher.search(line) is not None]


@dataclass(frozen=True, slots=True)
class RuleSnapshot:
    """Patterns together with their compiled form, published as one value."""

    patterns: tuple[PatternSpec, ...]
    compiled: tuple[CompiledRule, ...]
    diagnostics: tuple[CompileDiagnostic, ...]


class RuleSet:
    """Ordered, named patterns for one log file."""

    def __init__(self, file_path: str | Path, patterns: Sequence[PatternSpec] = ()) -> None:
        self.file_path = Path(file_path)
        self._lock = threading.Lock()
        self._snapshot = RuleSnapshot(patterns=(), compiled=(), diagnostics=())
        self._publish(tuple(patterns))

    def __len__(self) -> int:
        return len(self._snapshot.patterns)

    @property
    def snapshot(self) -> RuleSnapshot:
        return self._snapshot

    @property
    def patterns(self) -> tuple[PatternSpec, ...]:
        return self._snapshot.patterns

    @property
    def compiled(self) -> tuple[CompiledRule, ...]:
        """Current compiled snapshot (never partially updated)."""
        return self._snapshot.compiled

    @property
    def diagnostics(self) -> tuple[CompileDiagnostic, ...]:
        """Patterns dropped by the last compilation and why."""
        return self._snapshot.diagnostics

    def _publish(self, patterns: tuple[PatternSpec, ...]) -> None:
        compiled, diagnostics = compile_rules(patterns)
        self._snapshot = RuleSnapshot(patterns=patterns, compiled=compiled, diagnostics=diagnostics)

    def add(self, spec: PatternSpec) -> None:
        """Append a pattern. Names must be non-empty and unique."""
        if not spec.name.strip():
            raise ValueError("pattern name must not be empty")
        if not spec.source:
            raise ValueError("pattern source must not be empty")
        with self._lock:
            if any(p.name == spec.name for p in self.patterns):
                raise ValueError(f"A pattern named {spec.name!r} already exists")
            self._publish(self.patterns + (spec,))

    def remove(self, index: int) -> PatternSpec:
        """Remove the pattern at ``index`` and return it."""
        with self._lock:
            patterns = self.patterns
            if index < 0 or index >= len(patterns):
                raise ValueError(
                    f"pattern index {index} out of range (0..{len(patterns) - 1})"
                )
            removed = patterns[index]
            self._publish(patterns[:index] + patterns[index + 1 :])
        return removed
