"""Monitor session registry and the monitor MCP tool implementations.

The registry keeps one session per log file for rule editing, but at most one
of them tails its file. Starting the monitor on another file stops the current
tail first.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from mcp_log_rule_server.core.config import MonitorConfig, resolve_monitor_config
from mcp_log_rule_server.core.models import CompileDiagnostic, MatchEvent
from mcp_log_rule_server.core.profile import ProfileStore
from mcp_log_rule_server.core.session import MonitorSession

logger = logging.getLogger(__name__)

HARD_WINDOW = 1000


class MonitorRegistry:
    def __init__(self, store: ProfileStore, config: MonitorConfig) -> None:
        self.store = store
        self.config = config
        self.sessions: dict[Path, MonitorSession] = {}
        # The session start_monitor last started.
        self.session: MonitorSession | None = None

    @classmethod
    def from_env(cls) -> MonitorRegistry:
        config = resolve_monitor_config()
        return cls(ProfileStore(config.profile_dir), config)

    def session_for(self, log_path: str) -> MonitorSession:
        """Session holding the rules of ``log_path``; never starts or stops a tail."""
        key = Path(log_path).resolve()
        session = self.sessions.get(key)
        if session is None:
            session = MonitorSession.for_log(log_path, store=self.store, config=self.config)
            self.sessions[key] = session
        return session

    async def activate(self, log_path: str) -> MonitorSession:
        session = self.session_for(log_path)
        current = self.session
        if current is not None and current is not session:
            logger.info("Switching monitor from %s to %s", current.log_path, session.log_path)
            await current.stop()
        self.session = session
        return session

    def active(self) -> MonitorSession:
        if self.session is None:
            raise ValueError("No monitor session. Call start_monitor first.")
        return self.session

    async def close(self) -> None:
        for session in self.sessions.values():
            await session.stop()
        self.sessions.clear()
        self.session = None


def _window(limit: int | None, default: int) -> int:
    if limit is None:
        return default
    if limit <= 0:
        raise ValueError("limit must be > 0")
    return min(limit, HARD_WINDOW)


def event_to_dict(event: MatchEvent) -> dict[str, Any]:
    return {"rule": event.rule_name, "line": event.line}


def diagnostic_to_dict(diag: CompileDiagnostic) -> dict[str, Any]:
    return {"index": diag.index, "name": diag.name, "source": diag.source, "error": diag.error}


async def start_monitor_impl(
    registry: MonitorRegistry,
    *,
    log_path: str,
    from_start: bool = False,
) -> dict[str, Any]:
    """Implementation for the `start_monitor` MCP tool."""
    if not Path(log_path).is_file():
        raise FileNotFoundError(f"Log file not found: {log_path}")
    session = await registry.activate(log_path)
    session.start(from_end=not from_start)
    return {
        "log_path": str(session.log_path),
        "profile": session.profile_name,
        "running": session.running,
        "rules": len(session.rules.compiled),
        "diagnostics": [diagnostic_to_dict(d) for d in session.rules.diagnostics],
    }


def poll_monitor_impl(
    registry: MonitorRegistry,
    *,
    live_limit: int | None = None,
    match_limit: int | None = None,
) -> dict[str, Any]:
    """Implementation for the `poll_monitor` MCP tool.

    Drains delivered lines without waiting and returns the display windows.
    """
    session = registry.active()
    new_events = session.poll()
    snap = session.snapshot(
        live_limit=_window(live_limit, 50),
        match_limit=_window(match_limit, 20),
    )
    return {
        "log_path": snap.log_path,
        "running": snap.running,
        "lines_seen": snap.lines_seen,
        "match_count": snap.match_count,
        "new_matches": [event_to_dict(e) for e in new_events],
        "live_lines": snap.live_lines,
        "matches": [event_to_dict(e) for e in snap.matches],
        "diagnostics": [diagnostic_to_dict(d) for d in snap.diagnostics],
    }


async def stop_monitor_impl(registry: MonitorRegistry) -> dict[str, Any]:
    """Implementation for the `stop_monitor` MCP tool."""
    session = registry.active()
    await session.stop()
    return {
        "log_path": str(session.log_path),
        "running": session.running,
        "lines_seen": session.pipeline.lines_seen,
        "match_count": session.pipeline.matches_seen,
    }
