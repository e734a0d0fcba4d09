"""Raw byte transport over the engine pipes."""

import os
import select
from typing import NamedTuple

from loguru import logger

from ucipipe.engine.launcher import EngineHandle
from ucipipe.errors import EngineIOError

DEFAULT_CHUNK_SIZE = 1024


class ReadResult(NamedTuple):
    """Outcome of a single read from the engine."""

    data: bytes
    at_eof: bool


def send(handle: EngineHandle, text: str) -> None:
    """Send one line to the engine.

    A trailing newline is appended if ``text`` lacks one. Short writes are
    continued until every byte has been written.

    Raises:
        EngineTerminated: If the engine process has already ended.
        EngineIOError: If the write fails.
    """
    handle.ensure_alive()

    if not text.endswith("\n"):
        text += "\n"
    logger.trace(f"UCI send: {text.rstrip()}")

    data = memoryview(text.encode("utf-8"))
    fd = handle.writer_fd
    while data:
        try:
            written = os.write(fd, data)
        except OSError as e:
            raise EngineIOError.from_os_error("writing to", e) from e
        data = data[written:]


def receive_chunk(
    handle: EngineHandle,
    max_bytes: int = DEFAULT_CHUNK_SIZE,
    timeout: float | None = None,
) -> ReadResult:
    """Read up to ``max_bytes`` from the engine.

    Args:
        handle: The engine to read from.
        max_bytes: Maximum number of bytes to read.
        timeout: Seconds to wait for the pipe to become readable. ``None``
            performs a plain blocking read that only returns once data or
            end-of-stream arrives.

    Returns:
        The bytes read; ``at_eof`` is set when the engine closed its output.
        An empty, non-EOF result means nothing became readable in time.

    Raises:
        EngineTerminated: If the pipes have already been released.
        EngineIOError: If the read fails.
    """
    handle.ensure_open()
    fd = handle.reader_fd

    try:
        if timeout is not None:
            readable, _, _ = select.select([fd], [], [], max(timeout, 0.0))
            if not readable:
                return ReadResult(b"", False)
        data = os.read(fd, max_bytes)
    except OSError as e:
        raise EngineIOError.from_os_error("reading from", e) from e

    return ReadResult(data, not data)
