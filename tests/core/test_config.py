from __future__ import annotations

from pathlib import Path

import pytest

from mcp_log_rule_server.core.config import resolve_monitor_config


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "LOG_RULES_POLL_INTERVAL",
        "LOG_RULES_LIVE_CAPACITY",
        "LOG_RULES_MAX_MATCHES",
        "LOG_RULES_PROFILE_DIR",
    ):
        monkeypatch.delenv(name, raising=False)

    cfg = resolve_monitor_config()

    assert cfg.poll_interval == 0.1
    assert cfg.live_capacity == 1000
    assert cfg.max_matches is None
    assert cfg.profile_dir == Path("profiles")


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOG_RULES_POLL_INTERVAL", "0.5")
    monkeypatch.setenv("LOG_RULES_LIVE_CAPACITY", "20")
    monkeypatch.setenv("LOG_RULES_MAX_MATCHES", "7")
    monkeypatch.setenv("LOG_RULES_PROFILE_DIR", str(tmp_path))

    cfg = resolve_monitor_config()

    assert cfg.poll_interval == 0.5
    assert cfg.live_capacity == 20
    assert cfg.max_matches == 7
    assert cfg.profile_dir == tmp_path


def test_explicit_arguments_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_RULES_LIVE_CAPACITY", "20")

    assert resolve_monitor_config(live_capacity=5).live_capacity == 5


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("LOG_RULES_LIVE_CAPACITY", "0"),
        ("LOG_RULES_LIVE_CAPACITY", "many"),
        ("LOG_RULES_MAX_MATCHES", "-1"),
        ("LOG_RULES_POLL_INTERVAL", "0"),
        ("LOG_RULES_POLL_INTERVAL", "soon"),
    ],
)
def test_invalid_env_raises(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        resolve_monitor_config()
