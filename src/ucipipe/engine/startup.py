"""Engine start-up: spawn the process and confirm it speaks UCI."""

from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from ucipipe.engine.launcher import EngineHandle, MessageCallback, kill, spawn
from ucipipe.engine.waiter import DEFAULT_TIMEOUT, request
from ucipipe.errors import EngineIOError, EngineTerminated, LaunchFailed
from ucipipe.utils.config import EngineConfig

UCI_COMMAND = "uci"
UCI_ACK = "uciok"


def handshake(handle: EngineHandle, timeout: float = DEFAULT_TIMEOUT, **kwargs) -> str:
    """Send ``uci`` and wait for ``uciok``.

    Lines the engine sends before the acknowledgement (``id``, ``option``)
    reach the handle's subscribers.
    """
    ack = request(handle, UCI_COMMAND, UCI_ACK, timeout, **kwargs)
    logger.debug(f"UCI engine {handle.pid} initialized")
    return ack


def launch(
    path: str | Path,
    args: Sequence[str] = (),
    *,
    timeout: float | None = None,
    config: EngineConfig | None = None,
    subscriber: MessageCallback | None = None,
) -> EngineHandle:
    """Start an engine and perform the UCI handshake.

    Args:
        path: Path to the engine executable.
        args: Arguments passed after the program name.
        timeout: Handshake timeout in seconds (``config.handshake_timeout``
            when omitted).
        config: Tunables for buffering, polling, and kill behaviour.
        subscriber: Optional callback receiving the lines sent before ``uciok``.

    Returns:
        A RUNNING handle whose engine acknowledged the handshake.

    Raises:
        LaunchFailed: If the process could not be started, ``uci`` could not
            be written, or the engine exited before acknowledging it.
        EngineTimeout: If ``uciok`` did not arrive in time.
    """
    config = config or EngineConfig()
    if timeout is None:
        timeout = config.handshake_timeout

    handle = spawn(
        path,
        args,
        max_buffer_size=config.max_buffer_size,
        kill_grace=config.kill_grace,
    )
    if subscriber is not None:
        handle.subscribe(subscriber)

    try:
        handshake(
            handle,
            timeout,
            poll_interval=config.poll_interval,
            chunk_size=config.read_chunk_size,
        )
    except (EngineIOError, EngineTerminated) as e:
        kill(handle)
        raise LaunchFailed(f"UCI handshake with engine '{path}' failed: {e}") from e
    except BaseException:
        kill(handle)
        raise
    return handle
