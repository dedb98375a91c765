from __future__ import annotations

from pathlib import Path

import pytest

from mcp_log_rule_server.core.config import MonitorConfig
from mcp_log_rule_server.core.profile import ProfileStore
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
)


@pytest.fixture
def registry(tmp_path: Path) -> MonitorRegistry:
    return MonitorRegistry(ProfileStore(tmp_path / "profiles"), MonitorConfig(poll_interval=0.01))


@pytest.mark.asyncio
async def test_start_poll_stop(
    tmp_path: Path, registry: MonitorRegistry, write_log, append_lines, eventually
) -> None:
    log = tmp_path / "app.log"
    write_log(log)
    await add_pattern_impl(registry, log_path=str(log), name="errors", pattern=r"\bERROR\b")

    started = await start_monitor_impl(registry, log_path=str(log))
    assert started["running"] is True
    assert started["rules"] == 1

    append_lines(log, ["[2024-03-01] ERROR [1] boom", "[2024-03-01] INFO [2] fine"])
    seen: list[dict] = []

    def collect() -> bool:
        out = poll_monitor_impl(registry)
        seen.extend(out["new_matches"])
        return out["lines_seen"] >= 2

    await eventually(collect)

    out = poll_monitor_impl(registry, live_limit=1)
    assert out["live_lines"] == ["[2024-03-01] INFO [2] fine"]
    assert out["matches"] == [{"rule": "errors", "line": "[2024-03-01] ERROR [1] boom"}]
    assert seen == out["matches"]

    stopped = await stop_monitor_impl(registry)
    assert stopped["running"] is False
    assert stopped["match_count"] == 1
    await registry.close()


@pytest.mark.asyncio
async def test_start_monitor_from_start(
    tmp_path: Path, registry: MonitorRegistry, write_log, eventually
) -> None:
    log = tmp_path / "app.log"
    write_log(log)
    await add_pattern_impl(registry, log_path=str(log), name="errors", pattern="ERROR")

    await start_monitor_impl(registry, log_path=str(log), from_start=True)
    await eventually(lambda: poll_monitor_impl(registry)["lines_seen"] >= 5)

    assert poll_monitor_impl(registry)["match_count"] == 2
    await registry.close()


@pytest.mark.asyncio
async def test_switching_files_stops_previous_session(
    tmp_path: Path, registry: MonitorRegistry
) -> None:
    first = tmp_path / "a.log"
    second = tmp_path / "b.log"
    first.write_text("", encoding="utf-8")
    second.write_text("", encoding="utf-8")

    await start_monitor_impl(registry, log_path=str(first))
    old = registry.active()
    await start_monitor_impl(registry, log_path=str(second))

    assert not old.running
    assert registry.active().log_path == second
    await registry.close()


@pytest.mark.asyncio
async def test_rule_tools_on_other_file_keep_monitor_running(
    tmp_path: Path, registry: MonitorRegistry, append_lines, eventually
) -> None:
    watched = tmp_path / "a.log"
    other = tmp_path / "b.log"
    watched.write_text("", encoding="utf-8")
    other.write_text("", encoding="utf-8")
    await add_pattern_impl(registry, log_path=str(watched), name="errors", pattern="ERROR")
    await start_monitor_impl(registry, log_path=str(watched))

    listed = await list_patterns_impl(registry, log_path=str(other))
    await add_pattern_impl(registry, log_path=str(other), name="warn", pattern="WARN")
    await delete_pattern_impl(registry, log_path=str(other), index=0)

    assert listed["patterns"] == []
    assert registry.active().log_path == watched
    assert registry.active().running

    append_lines(watched, ["ERROR still watched"])
    await eventually(lambda: poll_monitor_impl(registry)["match_count"] == 1)
    await registry.close()


@pytest.mark.asyncio
async def test_start_monitor_keeps_rules_added_before_start(
    tmp_path: Path, registry: MonitorRegistry
) -> None:
    log = tmp_path / "app.log"
    log.write_text("", encoding="utf-8")
    await add_pattern_impl(registry, log_path=str(log), name="errors", pattern="ERROR")

    started = await start_monitor_impl(registry, log_path=str(log))

    assert started["rules"] == 1
    assert registry.active() is registry.session_for(str(log))
    await registry.close()


@pytest.mark.asyncio
async def test_start_monitor_missing_file(tmp_path: Path, registry: MonitorRegistry) -> None:
    with pytest.raises(FileNotFoundError):
        await start_monitor_impl(registry, log_path=str(tmp_path / "missing.log"))


def test_poll_without_session(registry: MonitorRegistry) -> None:
    with pytest.raises(ValueError, match="start_monitor"):
        poll_monitor_impl(registry)


@pytest.mark.asyncio
async def test_poll_invalid_limit(tmp_path: Path, registry: MonitorRegistry) -> None:
    log = tmp_path / "app.log"
    log.write_text("", encoding="utf-8")
    await start_monitor_impl(registry, log_path=str(log))

    with pytest.raises(ValueError, match="limit"):
        poll_monitor_impl(registry, live_limit=0)
    await registry.close()
