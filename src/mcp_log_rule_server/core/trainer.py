"""Helpers for picking sample lines and trying patterns against a file."""

from __future__ import annotations

import gzip
from collections import deque
from contextlib import asynccontextmanager
from pathlib import Path

import aiofiles
from aiofiles.threadpool import wrap

from .rules import preview_matches

DEFAULT_RECENT_LINES = 1000


@asynccontextmanager
async def _open_text(path: Path, *, encoding: str, decode_errors: str):
    """Open a log file for async text reading (plain or gzip)."""
    if path.suffix.lower() == ".gz":
        f = gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors)
        af = wrap(f)
        try:
            yield af
        finally:
            await af.close()
    else:
        async with aiofiles.open(path, encoding=encoding, errors=decode_errors) as f:
            yield f


async def load_recent_lines(
    log_path: str | Path,
    *,
    limit: int = DEFAULT_RECENT_LINES,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> list[str]:
    """Return the last ``limit`` lines of a file, oldest first."""
    path = Path(log_path)
    if not path.is_file():
        raise FileNotFoundError(f"Log file not found: {path}")
    if limit < 1:
        raise ValueError("limit must be >= 1")

    tail: deque[str] = deque(maxlen=limit)
    async with _open_text(path, encoding=encoding, decode_errors=decode_errors) as f:
        async for line in f:
            tail.append(line.rstrip("\r\n"))
    return list(tail)


async def try_pattern(
    source: str,
    log_path: str | Path,
    *,
    limit: int = DEFAULT_RECENT_LINES,
) -> list[str]:
    """Return the recent lines of ``log_path`` that ``source`` matches."""
    lines = await load_recent_lines(log_path, limit=limit)
    return preview_matches(source, lines)
