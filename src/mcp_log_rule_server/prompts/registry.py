"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def build_rule_from_line(log_path: str, line: str, name: str = "") -> list[dict[str, Any]]:
        """Build a prompt that turns one log line into a saved detection rule."""
        name_hint = f"Use the rule name {name!r}." if name else "Pick a short, descriptive rule name."
        return [
            {
                "role": "system",
                "content": (
                    "You help an operator write regular-expression detection rules for log files. "
                    "Prefer rules that match a whole category of lines, not one occurrence. "
                    "Do not invent log lines; use tool output as evidence."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Create a rule from this sample line:\n"
                    f"{line}\n\n"
                    "Workflow:\n"
                    "- Call synthesize_pattern with the line.\n"
                    f"- Call test_pattern with the result on {log_path}. If it matches nothing "
                    "or clearly too much, edit the pattern and test again.\n"
                    f"- Call add_pattern on {log_path}. {name_hint}\n"
                    "- Report the final pattern, its anchor, and how many recent lines it matched.\n"
                ),
            },
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Recent lines of the file, for context:"},
                    {"type": "resource", "uri": f"log://{log_path}"},
                ],
            },
        ]

    @mcp.prompt()
    def review_live_matches(log_path: str) -> list[dict[str, Any]]:
        """Build a prompt that summarizes what the live monitor has caught."""
        return [
            {
                "role": "system",
                "content": (
                    "You are an on-call assistant. Summarize live rule matches concisely and "
                    "point out rules that never match or were dropped as invalid."
                ),
            },
            {
                "role": "user",
                "content": (
                    f"Call start_monitor on {log_path} if it is not running, then poll_monitor. "
                    "Return:\n"
                    "1) Matches per rule\n"
                    "2) Up to 5 quoted matched lines\n"
                    "3) Dropped rules (from diagnostics) and why\n"
                ),
            },
        ]
