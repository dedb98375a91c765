"""Monitoring session: one log file, its rule set, and an optional live tail."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .config import MonitorConfig, resolve_monitor_config
from .models import CompileDiagnostic, MatchEvent, PatternSpec
from .pipeline import MatchPipeline
from .profile import ProfileStore, WatchProfile
from .rules import RuleSet
from .synthesis import synthesize
from .tail import TailSource

logger = logging.getLogger(__name__)

DEFAULT_LIVE_WINDOW = 50
DEFAULT_MATCH_WINDOW = 20


@dataclass(frozen=True, slots=True)
class MonitorSnapshot:
    """Display windows of a session, most recent first."""

    log_path: str
    running: bool
    live_lines: list[str]
    matches: list[MatchEvent]
    lines_seen: int
    match_count: int
    diagnostics: tuple[CompileDiagnostic, ...]


class MonitorSession:
    """Owns the rule set for one log file and, while started, its tail."""

    def __init__(
        self,
        log_path: str | Path,
        *,
        profile: WatchProfile | None = None,
        store: ProfileStore | None = None,
        config: MonitorConfig | None = None,
    ) -> None:
        self.log_path = Path(log_path)
        self.config = config or resolve_monitor_config()
        self.store = store
        self.profile_name = profile.name if profile is not None else self.log_path.stem
        self.rules = profile.to_rule_set() if profile is not None else RuleSet(self.log_path)
        self.pipeline = MatchPipeline(
            self.rules,
            live_capacity=self.config.live_capacity,
            max_matches=self.config.max_matches,
        )
        self._tail: TailSource | None = None

    @classmethod
    def for_log(
        cls,
        log_path: str | Path,
        *,
        store: ProfileStore | None = None,
        config: MonitorConfig | None = None,
    ) -> MonitorSession:
        """Build a session, reusing a saved profile bound to ``log_path`` when present."""
        profile = store.find_for_log(log_path) if store is not None else None
        return cls(log_path, profile=profile, store=store, config=config)

    @property
    def running(self) -> bool:
        return self._tail is not None and not self._tail.ended

    # Rules

    def synthesize(self, line: str) -> str:
        return synthesize(line)

    def to_profile(self) -> WatchProfile:
        return WatchProfile.from_rule_set(self.profile_name, self.rules)

    def _persist(self) -> None:
        if self.store is not None:
            self.store.save(self.to_profile())

    def add_pattern(self, name: str, source: str) -> PatternSpec:
        spec = PatternSpec(name=name.strip(), source=source)
        self.rules.add(spec)
        self._persist()
        logger.info("Added pattern %r to %s", spec.name, self.log_path)
        return spec

    def delete_pattern(self, index: int) -> PatternSpec:
        removed = self.rules.remove(index)
        self._persist()
        logger.info("Deleted pattern %r from %s", removed.name, self.log_path)
        return removed

    # Live tail

    def start(self, *, from_end: bool = True) -> None:
        """Start tailing the log file; requires a running event loop."""
        if self.running:
            return
        self._tail = TailSource(
            self.log_path,
            from_end=from_end,
            poll_interval=self.config.poll_interval,
            encoding=self.config.encoding,
            decode_errors=self.config.decode_errors,
            reopen_grace=self.config.reopen_grace,
        )
        self._tail.start()
        logger.info("Monitoring %s", self.log_path)

    def poll(self) -> list[MatchEvent]:
        """Feed lines delivered so far to the pipeline without waiting."""
        if self._tail is None:
            return []
        lines = self._tail.drain()
        if not lines:
            return []
        return self.pipeline.process(lines)

    async def stop(self) -> None:
        if self._tail is None:
            return
        tail, self._tail = self._tail, None
        # Keep what was already delivered.
        self.pipeline.process(tail.drain())
        await tail.aclose()
        logger.info("Stopped monitoring %s", self.log_path)

    def snapshot(
        self,
        *,
        live_limit: int | None = DEFAULT_LIVE_WINDOW,
        match_limit: int | None = DEFAULT_MATCH_WINDOW,
    ) -> MonitorSnapshot:
        return MonitorSnapshot(
            log_path=str(self.log_path),
            running=self.running,
            live_lines=self.pipeline.recent_lines(live_limit),
            matches=self.pipeline.recent_matches(match_limit),
            lines_seen=self.pipeline.lines_seen,
            match_count=self.pipeline.matches_seen,
            diagnostics=self.rules.diagnostics,
        )

    async def __aenter__(self) -> MonitorSession:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
