"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_log_rule_server.core.profile import ProfileStore, WatchProfile
from mcp_log_rule_server.core.synthesis import ANCHOR_KEYWORDS
from mcp_log_rule_server.core.trainer import load_recent_lines

ALLOWED_FILE_SUFFIXES = {".log", ".txt"}
BASE_DIR_ENV = "LOG_RULES_BASE_DIR"


def _base_dir() -> Path:
    """Return the resolved base directory for log resources."""
    raw = os.getenv(BASE_DIR_ENV, os.getcwd())
    return Path(raw).resolve()


def _safe_resolve(path: str) -> Path:
    """Resolve a path under the configured base directory."""
    base = _base_dir()
    p = Path(path).expanduser()
    if not p.is_absolute():
        p = base / p
    p = p.resolve()
    if base not in p.parents and p != base:
        raise ValueError("Path escapes base dir")
    return p


def _allowed_suffix(path: Path) -> str:
    """Return the effective suffix for allowlist checks."""
    suffix = path.suffix.lower()
    if suffix == ".gz":
        suffix = path.with_suffix("").suffix.lower()
    return suffix


def resolve_log_resource(path: str) -> Path:
    """Resolve and validate a log resource path."""
    resolved = _safe_resolve(path)
    if not resolved.is_file():
        raise FileNotFoundError(f"File not found: {resolved}")
    if _allowed_suffix(resolved) not in ALLOWED_FILE_SUFFIXES:
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        raise ValueError(f"File type not allowed. Allowed: {allowed}.")
    return resolved


def register_resources(mcp: FastMCP, store: ProfileStore) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://log-rules/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        return (
            "Resources:\n"
            "- app://log-rules/help\n"
            "- app://log-rules/config/anchor-keywords\n"
            "- app://log-rules/schemas/watch-profile\n"
            "- app://log-rules/examples/sample-log\n"
            "- app://log-rules/profiles\n"
            "- profile://{name}\n"
            f"- log://{{path}} (last 1000 lines; restricted to {BASE_DIR_ENV}; allowed: {allowed}, .gz)\n"
            f"\nBase directory: {_base_dir()}\n"
            f"Profile directory: {store.directory}\n"
        )

    @mcp.resource("app://log-rules/examples/sample-log")
    def sample_log() -> str:
        """Return a tiny sample log for demos and tests."""
        return (
            "[2024-02-16] INFO [1201] service started\n"
            "[2024-02-16] ERROR [1234] Connection Failed\n"
            "2024-02-16 10:15:02 [SEVERE] worker 7 crashed\n"
            "job 42 finished in 350 ms\n"
        )

    @mcp.resource("app://log-rules/config/anchor-keywords")
    def anchor_keywords() -> list[str]:
        """Return the severity keywords a synthesized rule can anchor on."""
        return sorted(ANCHOR_KEYWORDS)

    @mcp.resource("app://log-rules/schemas/watch-profile")
    def watch_profile_schema() -> dict[str, Any]:
        """Return the JSON schema for saved watch profiles."""
        return WatchProfile.model_json_schema(by_alias=True)

    @mcp.resource("app://log-rules/profiles")
    def list_profiles() -> list[str]:
        """Return the names of saved profiles."""
        return store.names()

    @mcp.resource("profile://{name}")
    def read_profile(name: str) -> dict[str, Any]:
        """Return a saved profile as JSON."""
        return store.load(name).model_dump(by_alias=True)

    @mcp.resource("log://{path}")
    async def tail_log(path: str) -> str:
        """Return the last 1000 lines of a log file."""
        p = resolve_log_resource(path)
        lines = await load_recent_lines(p)
        return "\n".join(lines) + ("\n" if lines else "")
