"""Evaluate live lines against the active rule set."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from .config import DEFAULT_LIVE_CAPACITY
from .models import CompiledRule, MatchEvent
from .rules import RuleSet


class MatchPipeline:
    """Keeps the most recent live lines and the match events they produced.

    Every matching rule yields its own event; evaluation never stops at the
    first match. ``max_matches=None`` keeps all events.
    """

    def __init__(
        self,
        rules: RuleSet,
        *,
        live_capacity: int = DEFAULT_LIVE_CAPACITY,
        max_matches: int | None = None,
    ) -> None:
        if live_capacity < 1:
            raise ValueError("live_capacity must be >= 1")
        if max_matches is not None and max_matches < 1:
            raise ValueError("max_matches must be >= 1")
        self.rules = rules
        self.live_lines: deque[str] = deque(maxlen=live_capacity)
        self.matches: deque[MatchEvent] = deque(maxlen=max_matches)
        self.lines_seen = 0
        self.matches_seen = 0

    @staticmethod
    def _evaluate(line: str, compiled: tuple[CompiledRule, ...]) -> list[MatchEvent]:
        return [
            MatchEvent(line=line, rule_name=rule.name) for rule in compiled if rule.matches(line)
        ]

    def process(self, lines: Iterable[str]) -> list[MatchEvent]:
        """Record a batch of lines and return the events they produced."""
        # One snapshot per batch.
        compiled = self.rules.compiled
        events: list[MatchEvent] = []
        for line in lines:
            self.live_lines.append(line)
            self.lines_seen += 1
            events.extend(self._evaluate(line, compiled))
        self.matches.extend(events)
        self.matches_seen += len(events)
        return events

    def feed(self, line: str) -> list[MatchEvent]:
        return self.process((line,))

    def recent_lines(self, limit: int | None = None) -> list[str]:
        """Most recent live lines first."""
        return _newest_first(self.live_lines, limit)

    def recent_matches(self, limit: int | None = None) -> list[MatchEvent]:
        """Most recent match events first."""
        return _newest_first(self.matches, limit)


def _newest_first(items: deque, limit: int | None) -> list:
    if limit is not None and limit < 0:
        raise ValueError("limit must be >= 0")
    out = []
    for item in reversed(items):
        if limit is not None and len(out) >= limit:
            break
        out.append(item)
    return out
