from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest


@pytest.fixture
def write_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text(
            "\n".join(
                [
                    "[2024-02-16] INFO [1201] service started",
                    "[2024-02-16] ERROR [1234] Connection Failed",
                    "2024-02-16 10:15:02 [SEVERE] worker 7 crashed",
                    "[2024-02-17] ERROR [88] Disk full",
                    "job 42 finished in 350 ms",
                ]
            )
            + "\n",
            encoding="utf-8",
        )

    return _write


@pytest.fixture
def append_lines() -> Callable[[Path, list[str]], None]:
    def _append(path: Path, lines: list[str]) -> None:
        with path.open("a", encoding="utf-8") as f:
            f.write("".join(line + "\n" for line in lines))

    return _append


@pytest.fixture
def eventually() -> Callable[[Callable[[], bool]], Awaitable[None]]:
    """Await until ``predicate`` holds, polling the event loop (fails after a timeout)."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.01)

    return _wait
