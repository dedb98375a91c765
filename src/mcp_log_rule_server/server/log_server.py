"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: synthesize, test and manage rules; start/poll/stop the live monitor
- Resources: addressable data blobs (profiles, log tails, keyword list)
- Prompts: reusable conversation templates that clients can invoke

Run locally (stdio):
    python -m mcp_log_rule_server.server.log_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_log_rule_server.prompts.registry import register_prompts
from mcp_log_rule_server.resources.registry import register_resources
from mcp_log_rule_server.tools.monitor import (
    MonitorRegistry,
    poll_monitor_impl,
    start_monitor_impl,
    stop_monitor_impl,
)
from mcp_log_rule_server.tools.patterns import (
    add_pattern_impl,
    delete_pattern_impl,
    list_patterns_impl,
    preview_pattern_impl,
    recent_lines_impl,
    synthesize_pattern_impl,
)

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv("LOG_RULES_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("log-rules", json_response=True)
registry = MonitorRegistry.from_env()

register_resources(mcp, registry.store)
register_prompts(mcp)


@mcp.tool()
def synthesize_pattern(line: str) -> dict[str, Any]:
    """Turn a sample log line into a reusable regular expression.

    The pattern keeps the first severity keyword (ERROR, WARN, ...) or bracketed
    token ([SEVERE], [MY_TYPE]) verbatim, replaces dates, clock times and numbers
    before it with wildcards, and ends with ``.*``.

    Returns
    -------
    dict:
        {"pattern": str, "anchor": {"text", "kind", "start", "end"} | None}
    """
    return synthesize_pattern_impl(line=line)


@mcp.tool()
async def test_pattern(pattern: str, log_path: str, limit: int | None = None) -> dict[str, Any]:
    """Return the lines among the last 1000 of ``log_path`` that ``pattern`` matches.

    Fails with the regex error message when the pattern does not compile.
    """
    return await preview_pattern_impl(pattern=pattern, log_path=log_path, limit=limit)


@mcp.tool()
async def recent_lines(log_path: str, limit: int | None = None) -> dict[str, Any]:
    """Return the last lines of a log file (default 200, at most 1000)."""
    return await recent_lines_impl(log_path=log_path, limit=limit)


@mcp.tool()
async def add_pattern(log_path: str, name: str, pattern: str) -> dict[str, Any]:
    """Add a named rule to the rule set of ``log_path`` and save its profile.

    Rules that do not compile are kept in the profile but reported under
    ``diagnostics`` and skipped while matching.
    """
    return await add_pattern_impl(registry, log_path=log_path, name=name, pattern=pattern)


@mcp.tool()
async def list_patterns(log_path: str) -> dict[str, Any]:
    """List the rules for ``log_path`` with their indexes and compile diagnostics."""
    return await list_patterns_impl(registry, log_path=log_path)


@mcp.tool()
async def delete_pattern(log_path: str, index: int) -> dict[str, Any]:
    """Delete the rule at ``index`` (see list_patterns) and save the profile."""
    return await delete_pattern_impl(registry, log_path=log_path, index=index)


@mcp.tool()
async def start_monitor(log_path: str, from_start: bool = False) -> dict[str, Any]:
    """Start tailing ``log_path``. Only lines appended afterwards are evaluated
    unless ``from_start`` is true. Starting another file stops the current one."""
    return await start_monitor_impl(registry, log_path=log_path, from_start=from_start)


@mcp.tool()
async def poll_monitor(
    live_limit: int | None = None,
    match_limit: int | None = None,
) -> dict[str, Any]:
    """Evaluate lines delivered since the last poll and return recent lines and matches,
    most recent first."""
    return poll_monitor_impl(registry, live_limit=live_limit, match_limit=match_limit)


@mcp.tool()
async def stop_monitor() -> dict[str, Any]:
    """Stop the live monitor."""
    return await stop_monitor_impl(registry)


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
