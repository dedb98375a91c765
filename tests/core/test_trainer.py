from __future__ import annotations

import gzip
from pathlib import Path

import pytest

from mcp_log_rule_server.core.rules import InvalidPatternError
from mcp_log_rule_server.core.synthesis import synthesize
from mcp_log_rule_server.core.trainer import load_recent_lines, try_pattern


@pytest.mark.asyncio
async def test_load_recent_lines_keeps_tail(tmp_path: Path) -> None:
    path = tmp_path / "app.log"
    path.write_text("".join(f"line {i}\n" for i in range(1200)), encoding="utf-8")

    lines = await load_recent_lines(path)

    assert len(lines) == 1000
    assert lines[0] == "line 200"
    assert lines[-1] == "line 1199"


@pytest.mark.asyncio
async def test_load_recent_lines_gzip(tmp_path: Path) -> None:
    path = tmp_path / "app.log.gz"
    with gzip.open(path, "wt", encoding="utf-8") as f:
        f.write("a\nb\nc\n")

    assert await load_recent_lines(path, limit=2) == ["b", "c"]


@pytest.mark.asyncio
async def test_load_recent_lines_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        await load_recent_lines(tmp_path / "missing.log")


@pytest.mark.asyncio
async def test_try_pattern_with_synthesized_rule(tmp_path: Path, write_log) -> None:
    path = tmp_path / "app.log"
    write_log(path)

    matched = await try_pattern(synthesize("[2024-02-16] ERROR [1234] Connection Failed"), path)

    assert matched == [
        "[2024-02-16] ERROR [1234] Connection Failed",
        "[2024-02-17] ERROR [88] Disk full",
    ]


@pytest.mark.asyncio
async def test_try_pattern_invalid(tmp_path: Path, write_log) -> None:
    path = tmp_path / "app.log"
    write_log(path)

    with pytest.raises(InvalidPatternError):
        await try_pattern("(", path)
