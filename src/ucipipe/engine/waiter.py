"""Deadline-bounded waiting for engine responses."""

import time

from loguru import logger

from ucipipe.engine.framer import decode_line
from ucipipe.engine.launcher import EngineHandle, EngineState, kill
from ucipipe.engine.transport import DEFAULT_CHUNK_SIZE, receive_chunk, send
from ucipipe.errors import EngineTimeout

DEFAULT_TIMEOUT = 1.0
DEFAULT_POLL_INTERVAL = 0.01


def wait_for(
    handle: EngineHandle,
    expected: str,
    timeout: float = DEFAULT_TIMEOUT,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> str:
    """Wait for a message from the engine that starts with ``expected``.

    A message matches if its raw bytes begin with ``expected`` (exact,
    case-sensitive). Expecting "id name" matches "id name Stockfish 16" but
    not "id author ...". Messages that do not match are passed to the
    handle's subscribers and then dropped.

    End-of-stream does not end the wait; whether the engine is gone is the
    watcher's business. If no match is seen before the deadline the engine
    is killed. The exception is a handle that had already terminated when
    the wait began: its remaining output is drained, and if no line matches
    the pipes are released and ``EngineTerminated`` is raised at once.

    Args:
        handle: The engine to read from.
        expected: Prefix of the message to wait for.
        timeout: Seconds before giving up.
        poll_interval: Backoff after a read that hit end-of-stream.
        chunk_size: Maximum bytes per read.

    Returns:
        The full matching message, without its terminator.

    Raises:
        EngineTimeout: If no matching message arrived in time.
        EngineTerminated: If the handle's pipes were already released, or the
            engine had exited before the wait and left no matching line.
        EngineIOError: If reading fails.
        MessageTooLong: If the engine sends an oversized unterminated line.
    """
    handle.ensure_open()
    exited_before_wait = handle.state is EngineState.TERMINATED
    prefix = expected.encode("utf-8")
    deadline = time.monotonic() + timeout

    while True:
        remaining = deadline - time.monotonic()
        if remaining < 0:
            logger.warning(f"Timeout waiting for '{expected}' from engine {handle.pid}, killing it")
            kill(handle)
            raise EngineTimeout(expected, timeout)

        line = handle.buffer.pop_raw()
        if line is not None:
            message = decode_line(line)
            logger.trace(f"UCI recv: {message}")
            if line.startswith(prefix):
                return message
            handle.publish(message)
            continue

        data, at_eof = receive_chunk(handle, chunk_size, timeout=remaining)
        if data:
            handle.buffer.append(data)
        elif at_eof:
            if exited_before_wait:
                logger.debug(f"Engine {handle.pid} exited without sending '{expected}'")
                handle.ensure_alive()
            time.sleep(min(poll_interval, max(remaining, 0.0)))


def request(
    handle: EngineHandle,
    command: str,
    expected: str,
    timeout: float = DEFAULT_TIMEOUT,
    **kwargs,
) -> str:
    """Send ``command`` and wait for the response starting with ``expected``."""
    send(handle, command)
    return wait_for(handle, expected, timeout, **kwargs)
