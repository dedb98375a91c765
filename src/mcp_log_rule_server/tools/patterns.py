"""MCP tool implementations for building and managing rules.

Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from typing import Any

from mcp_log_rule_server.core.session import MonitorSession
from mcp_log_rule_server.core.synthesis import synthesize_with_anchor
from mcp_log_rule_server.core.trainer import DEFAULT_RECENT_LINES, load_recent_lines, try_pattern
from mcp_log_rule_server.tools.monitor import MonitorRegistry, diagnostic_to_dict

DEFAULT_LIMIT = 200
HARD_LIMIT = DEFAULT_RECENT_LINES


def _resolve_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    return min(limit, HARD_LIMIT)


def synthesize_pattern_impl(*, line: str) -> dict[str, Any]:
    """Implementation for the `synthesize_pattern` MCP tool."""
    source, anchor = synthesize_with_anchor(line)
    out: dict[str, Any] = {"pattern": source, "anchor": None}
    if anchor is not None:
        out["anchor"] = {
            "text": anchor.text(line),
            "kind": anchor.kind.value,
            "start": anchor.start,
            "end": anchor.end,
        }
    return out


async def recent_lines_impl(*, log_path: str, limit: int | None = None) -> dict[str, Any]:
    """Implementation for the `recent_lines` MCP tool."""
    lines = await load_recent_lines(log_path, limit=_resolve_limit(limit))
    return {"count": len(lines), "lines": lines}


async def preview_pattern_impl(
    *,
    pattern: str,
    log_path: str,
    limit: int | None = None,
) -> dict[str, Any]:
    """Implementation for the `test_pattern` MCP tool.

    Matches against the last 1000 lines of the file and returns up to ``limit``.
    """
    matched = await try_pattern(pattern, log_path)
    return {"count": len(matched), "matches": matched[: _resolve_limit(limit)]}


def _patterns_payload(session: MonitorSession) -> dict[str, Any]:
    return {
        "log_path": str(session.log_path),
        "profile": session.profile_name,
        "patterns": [
            {"index": i, "name": p.name, "source": p.source}
            for i, p in enumerate(session.rules.patterns)
        ],
        "diagnostics": [diagnostic_to_dict(d) for d in session.rules.diagnostics],
    }


async def add_pattern_impl(
    registry: MonitorRegistry,
    *,
    log_path: str,
    name: str,
    pattern: str,
) -> dict[str, Any]:
    """Implementation for the `add_pattern` MCP tool."""
    session = registry.session_for(log_path)
    session.add_pattern(name, pattern)
    return _patterns_payload(session)


async def list_patterns_impl(registry: MonitorRegistry, *, log_path: str) -> dict[str, Any]:
    """Implementation for the `list_patterns` MCP tool."""
    return _patterns_payload(registry.session_for(log_path))


async def delete_pattern_impl(
    registry: MonitorRegistry,
    *,
    log_path: str,
    index: int,
) -> dict[str, Any]:
    """Implementation for the `delete_pattern` MCP tool."""
    session = registry.session_for(log_path)
    session.delete_pattern(index)
    return _patterns_payload(session)
