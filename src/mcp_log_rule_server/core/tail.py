"""Follow a growing log file.

``FileFollower`` reads whatever was appended since the last call and copes with
truncation and rotation. ``follow`` wraps it as an async iterator and
``TailSource`` runs it as a background task feeding a queue that the consumer
drains without waiting.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
import weakref
from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles
import aiofiles.os

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024
_HEAD_SIZE = 64
_END = object()


class FileFollower:
    """Incremental reader for one path.

    ``read_available`` never waits for new content. Once the file is gone for
    longer than ``reopen_grace`` seconds, or cannot be read at all, the follower
    is ``ended`` and returns no more lines.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        offset: int = 0,
        encoding: str = "utf-8",
        decode_errors: str = "replace",
        reopen_grace: float = 2.0,
        chunk_size: int = _CHUNK_SIZE,
    ) -> None:
        if offset < 0:
            raise ValueError("offset must be >= 0")
        self.path = Path(path)
        self.encoding = encoding
        self.decode_errors = decode_errors
        self.reopen_grace = reopen_grace
        self.chunk_size = chunk_size
        self._offset = offset
        self._file = None
        self._ident: tuple[int, int] | None = None
        self._pending = b""
        # First bytes of the file and the last consumed byte, used to notice
        # a file rewritten in place past the current offset.
        self._head = b""
        self._last_byte = b""
        self._missing_since: float | None = None
        self.ended = False

    @property
    def offset(self) -> int:
        """Bytes consumed from the current file, including a held partial line."""
        return self._offset

    def _decode(self, raw: bytes) -> str:
        return raw.decode(self.encoding, errors=self.decode_errors).rstrip("\r")

    def _split(self, chunk: bytes) -> list[str]:
        data = self._pending + chunk
        *complete, self._pending = data.split(b"\n")
        return [self._decode(raw) for raw in complete]

    def _end(self, reason: str) -> None:
        logger.warning("Stopped tailing %s: %s", self.path, reason)
        self.ended = True

    def _file_missing(self) -> None:
        now = time.monotonic()
        if self._missing_since is None:
            self._missing_since = now
        elif now - self._missing_since >= self.reopen_grace:
            self._end("file no longer exists")

    async def _open(self) -> bool:
        try:
            f = await aiofiles.open(self.path, "rb")
        except FileNotFoundError:
            self._file_missing()
            return False
        except OSError as e:
            self._end(str(e))
            return False

        st = os.fstat(f.fileno())
        if self._offset > st.st_size:
            self._offset = 0
        await f.seek(0)
        self._head = await f.read(min(_HEAD_SIZE, self._offset))
        if self._offset:
            await f.seek(self._offset - 1)
            self._last_byte = await f.read(1)
        await f.seek(self._offset)
        self._file = f
        self._ident = (st.st_dev, st.st_ino)
        self._missing_since = None
        return True

    async def _close_file(self) -> None:
        if self._file is not None:
            f, self._file = self._file, None
            await f.close()

    async def _drain(self) -> list[str]:
        lines: list[str] = []
        while True:
            try:
                chunk = await self._file.read(self.chunk_size)
            except OSError as e:
                await self._close_file()
                self._end(str(e))
                return lines
            if not chunk:
                return lines
            if len(self._head) < _HEAD_SIZE:
                self._head = (self._head + chunk)[:_HEAD_SIZE]
            self._last_byte = chunk[-1:]
            self._offset += len(chunk)
            lines.extend(self._split(chunk))

    async def _check_replaced(self) -> list[str] | None:
        """Detect rotation or removal of the path.

        Returns the lines to emit before switching files, or None when the
        current file is still the right one.
        """
        try:
            st = await aiofiles.os.stat(self.path)
        except FileNotFoundError:
            self._file_missing()
            if self.ended:
                await self._close_file()
            return None
        except OSError as e:
            await self._close_file()
            self._end(str(e))
            return None
        self._missing_since = None

        if (st.st_dev, st.st_ino) != self._ident:
            logger.info("Detected rotation of %s; reopening", self.path)
            flushed = [self._decode(self._pending)] if self._pending else []
            self._pending = b""
            self._offset = 0
            await self._close_file()
            return flushed

        return None

    async def _rewritten(self) -> bool:
        """True when the open file shrank below the offset or its consumed bytes changed."""
        if self._offset == 0:
            return False
        f = self._file
        try:
            if os.fstat(f.fileno()).st_size < self._offset:
                return True
            await f.seek(0)
            head = await f.read(len(self._head))
            await f.seek(self._offset - 1)
            last = await f.read(1)
        except OSError as e:
            await self._close_file()
            self._end(str(e))
            return False
        return head != self._head or last != self._last_byte

    async def _restart(self) -> None:
        logger.info("Detected truncation of %s; reading from start", self.path)
        self._pending = b""
        self._offset = 0
        self._head = b""
        self._last_byte = b""
        await self._file.seek(0)

    async def read_available(self) -> list[str]:
        """Return complete lines appended since the previous call."""
        if self.ended:
            return []
        if self._file is None and not await self._open():
            return []

        if await self._rewritten():
            await self._restart()
        elif self.ended:
            return []

        lines = await self._drain()
        if lines or self.ended:
            return lines

        switched = await self._check_replaced()
        if switched is None:
            return lines
        if self._file is None and not await self._open():
            return switched
        return switched + await self._drain()

    async def aclose(self) -> None:
        await self._close_file()
        self.ended = True


def end_offset(path: str | Path) -> int:
    """Current size of ``path``, or 0 when it does not exist yet."""
    try:
        return Path(path).stat().st_size
    except FileNotFoundError:
        return 0


async def follow(
    path: str | Path,
    *,
    from_end: bool = True,
    poll_interval: float = 0.1,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
    reopen_grace: float = 2.0,
) -> AsyncIterator[str]:
    """Yield lines appended to ``path`` until the file becomes unreadable.

    Closing the iterator (``aclose``) releases the file handle.
    """
    follower = FileFollower(
        path,
        offset=end_offset(path) if from_end else 0,
        encoding=encoding,
        decode_errors=decode_errors,
        reopen_grace=reopen_grace,
    )
    try:
        while not follower.ended:
            lines = await follower.read_available()
            for line in lines:
                yield line
            if not lines:
                await asyncio.sleep(poll_interval)
    finally:
        await follower.aclose()


async def _pump(
    owner: weakref.ReferenceType[TailSource],
    follower: FileFollower,
    queue: asyncio.Queue,
    poll_interval: float,
) -> None:
    # Holds only a weak reference to the TailSource, so dropping the consumer
    # side ends the loop on the next turn.
    try:
        while not follower.ended and owner() is not None:
            lines = await follower.read_available()
            for line in lines:
                queue.put_nowait(line)
            if not lines:
                await asyncio.sleep(poll_interval)
    except Exception:
        logger.exception("Tail of %s failed", follower.path)
    finally:
        await follower.aclose()
        queue.put_nowait(_END)


class TailSource:
    """Background tail of one file with a non-blocking consumer side.

    Lines appended after ``start()`` are queued in file order. ``drain()``
    returns whatever is queued right now and never waits.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        from_end: bool = True,
        poll_interval: float = 0.1,
        encoding: str = "utf-8",
        decode_errors: str = "replace",
        reopen_grace: float = 2.0,
    ) -> None:
        self.path = Path(path)
        self.from_end = from_end
        self.poll_interval = poll_interval
        self.encoding = encoding
        self.decode_errors = decode_errors
        self.reopen_grace = reopen_grace
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: asyncio.Task | None = None
        self._ended = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def ended(self) -> bool:
        """True once the tail stopped and every queued line was drained."""
        return self._ended

    def start(self) -> None:
        """Start tailing; must be called from a running event loop."""
        if self._task is not None:
            raise RuntimeError("TailSource already started")
        # Fix the start offset now so lines appended right after start() are kept.
        follower = FileFollower(
            self.path,
            offset=end_offset(self.path) if self.from_end else 0,
            encoding=self.encoding,
            decode_errors=self.decode_errors,
            reopen_grace=self.reopen_grace,
        )
        self._task = asyncio.create_task(
            _pump(weakref.ref(self), follower, self._queue, self.poll_interval)
        )
        logger.debug("Started tail of %s at offset %s", self.path, follower.offset)

    def drain(self, max_lines: int | None = None) -> list[str]:
        """Return queued lines without waiting."""
        out: list[str] = []
        while max_lines is None or len(out) < max_lines:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            if item is _END:
                self._ended = True
                break
            out.append(item)
        return out

    async def aclose(self) -> None:
        """Stop the background task and release the file."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        self._ended = True

    async def __aenter__(self) -> TailSource:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
