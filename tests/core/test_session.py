from __future__ import annotations

import json
from pathlib import Path

import pytest

from mcp_log_rule_server.core.config import MonitorConfig
from mcp_log_rule_server.core.profile import PatternEntry, ProfileStore, WatchProfile
from mcp_log_rule_server.core.session import MonitorSession

FAST = MonitorConfig(poll_interval=0.01)


def test_add_pattern_persists_profile(tmp_path: Path) -> None:
    log = tmp_path / "app.log"
    log.write_text("", encoding="utf-8")
    store = ProfileStore(tmp_path / "profiles")
    session = MonitorSession(log, store=store, config=FAST)

    source = session.synthesize("[2024-02-16] ERROR [1234] Connection Failed")
    session.add_pattern("errors", source)

    saved = json.loads((tmp_path / "profiles" / "app.json").read_text(encoding="utf-8"))
    assert saved["filePath"] == str(log)
    assert saved["patterns"] == [{"name": "errors", "source": source}]

    session.delete_pattern(0)
    saved = json.loads((tmp_path / "profiles" / "app.json").read_text(encoding="utf-8"))
    assert saved["patterns"] == []


def test_for_log_reuses_saved_profile(tmp_path: Path) -> None:
    log = tmp_path / "app.log"
    store = ProfileStore(tmp_path / "profiles")
    store.save(
        WatchProfile(
            name="web",
            file_path=str(log),
            patterns=[PatternEntry(name="errors", source="ERROR")],
        )
    )

    session = MonitorSession.for_log(log, store=store, config=FAST)

    assert session.profile_name == "web"
    assert [p.name for p in session.rules.patterns] == ["errors"]


def test_poll_without_start_is_empty(tmp_path: Path) -> None:
    session = MonitorSession(tmp_path / "app.log", config=FAST)
    assert session.poll() == []
    assert not session.running


@pytest.mark.asyncio
async def test_live_monitoring_matches_new_lines(
    tmp_path: Path, write_log, append_lines, eventually
) -> None:
    log = tmp_path / "app.log"
    write_log(log)
    session = MonitorSession(log, config=FAST)
    session.add_pattern("errors", session.synthesize("[2024-02-16] ERROR [1234] Connection Failed"))
    session.add_pattern("disk", r"Disk full")
    session.add_pattern("broken", r"[oops")

    events = []
    async with session:
        append_lines(
            log,
            [
                "[2024-03-01] ERROR [9999] Disk full",
                "[2024-03-01] INFO [1] all good",
                "[2024-03-02] ERROR [7] timeout",
            ],
        )

        def collect() -> bool:
            events.extend(session.poll())
            return session.pipeline.lines_seen >= 3

        await eventually(collect)

    assert [(e.rule_name, e.line) for e in events] == [
        ("errors", "[2024-03-01] ERROR [9999] Disk full"),
        ("disk", "[2024-03-01] ERROR [9999] Disk full"),
        ("errors", "[2024-03-02] ERROR [7] timeout"),
    ]
    snap = session.snapshot()
    assert not snap.running
    assert snap.live_lines[0] == "[2024-03-02] ERROR [7] timeout"
    assert snap.match_count == 3
    assert [d.name for d in snap.diagnostics] == ["broken"]


@pytest.mark.asyncio
async def test_rules_added_while_running_apply_to_later_lines(
    tmp_path: Path, append_lines, eventually
) -> None:
    log = tmp_path / "app.log"
    log.write_text("", encoding="utf-8")
    session = MonitorSession(log, config=FAST)

    async with session:
        append_lines(log, ["WARN first"])
        await eventually(lambda: bool(session.poll()) or session.pipeline.lines_seen >= 1)

        session.add_pattern("warn", "WARN")
        append_lines(log, ["WARN second"])
        events = []

        def collect() -> bool:
            events.extend(session.poll())
            return bool(events)

        await eventually(collect)

    assert [e.line for e in events] == ["WARN second"]
