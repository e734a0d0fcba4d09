"""UCI Engine wrapper for communicating with external engine processes.

This module provides a long-lived, object-style interface on top of the
handle functions in :mod:`ucipipe.engine`. The engine is started once and
kept running so repeated requests do not pay its start-up cost.
"""

import threading
from collections.abc import Callable, Sequence
from pathlib import Path

from loguru import logger

from ucipipe.engine.launcher import EngineHandle, EngineState, MessageCallback, kill
from ucipipe.engine.startup import launch
from ucipipe.engine.transport import send
from ucipipe.engine.waiter import wait_for
from ucipipe.errors import AlreadyInitialized, NotInitialized, UCIEngineError
from ucipipe.utils.config import EngineConfig


class UCIEngine:
    """UCI protocol wrapper for an engine subprocess.

    Example:
        engine = UCIEngine("/usr/bin/stockfish")
        engine.start()
        engine.is_ready()
        engine.close()

    Or as a context manager, which starts the engine:
        with UCIEngine("/usr/bin/stockfish") as engine:
            engine.request("go depth 10", "bestmove", timeout=30)
    """

    def __init__(
        self,
        binary_path: str | Path,
        args: Sequence[str] = (),
        *,
        timeout: float | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        """Initialize the UCI engine.

        Args:
            binary_path: Path to the UCI engine executable.
            args: Command line arguments for the engine.
            timeout: Default timeout in seconds for UCI responses.
            config: Engine tunables; ``config.handshake_timeout`` is used
                when ``timeout`` is omitted.
        """
        self.binary_path = Path(binary_path)
        self.args = list(args)
        self.config = config or EngineConfig()
        self.timeout = self.config.handshake_timeout if timeout is None else timeout

        self.engine_name: str | None = None
        self.author: str | None = None
        self.advertised_options: list[str] = []

        self._handle: EngineHandle | None = None
        self._lock = threading.Lock()
        self._subscribers: list[MessageCallback] = []
        self._termination_callbacks: list[Callable[["UCIEngine"], None]] = []

    @classmethod
    def from_config(cls, config: EngineConfig) -> "UCIEngine":
        """Build an engine wrapper from a config that names the executable."""
        if not config.path:
            msg = "Engine config has no path"
            raise ValueError(msg)
        return cls(config.path, config.args, config=config)

    def start(self) -> None:
        """Start the engine process and perform the UCI handshake.

        Raises:
            AlreadyInitialized: If the engine was already started.
            LaunchFailed: If the process could not be started.
            EngineTimeout: If the engine did not acknowledge ``uci`` in time.
        """
        if self._handle is not None:
            raise AlreadyInitialized("UCI engine already initialized")

        handle = launch(
            self.binary_path,
            self.args,
            timeout=self.timeout,
            config=self.config,
            subscriber=self._dispatch,
        )
        handle.add_termination_callback(self._handle_terminated)
        self._handle = handle
        logger.info(f"Engine initialized: {self.name} (PID {handle.pid})")

    def _dispatch(self, message: str) -> None:
        if message.startswith("id name "):
            self.engine_name = message[len("id name ") :].strip()
        elif message.startswith("id author "):
            self.author = message[len("id author ") :].strip()
        elif message.startswith("option "):
            self.advertised_options.append(message)

        for callback in list(self._subscribers):
            callback(message)

    def _handle_terminated(self, handle: EngineHandle) -> None:
        if handle.returncode not in (0, None):
            logger.warning(f"Engine process {handle.pid} exited with code {handle.returncode}")
        for callback in list(self._termination_callbacks):
            callback(self)

    def _require_handle(self) -> EngineHandle:
        if self._handle is None:
            raise NotInitialized("UCI engine not initialized")
        return self._handle

    @property
    def handle(self) -> EngineHandle:
        """The underlying engine handle."""
        return self._require_handle()

    @property
    def state(self) -> EngineState:
        if self._handle is None:
            return EngineState.NOT_STARTED
        return self._handle.state

    @property
    def name(self) -> str:
        """Return the engine name."""
        return self.engine_name or f"UCI({self.binary_path.name})"

    def subscribe(self, callback: MessageCallback) -> Callable[[], None]:
        """Receive engine lines that no wait consumed (``info``, ``id`` ...).

        May be called before :meth:`start` to observe the handshake output.

        Returns:
            A function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def on_terminated(self, callback: Callable[["UCIEngine"], None]) -> None:
        """Register a callback run once when the engine process ends."""
        if self._handle is None:
            self._termination_callbacks.append(callback)
        else:
            self._handle.add_termination_callback(lambda _handle: callback(self))

    def send(self, command: str) -> None:
        """Send a command to the engine."""
        send(self._require_handle(), command)

    def wait_for(self, expected: str, timeout: float | None = None) -> str:
        """Wait for a message starting with ``expected``.

        Args:
            expected: The response prefix to wait for.
            timeout: Seconds before the engine is killed (default timeout if None).

        Returns:
            The full matching line.
        """
        return wait_for(
            self._require_handle(),
            expected,
            self.timeout if timeout is None else timeout,
            poll_interval=self.config.poll_interval,
            chunk_size=self.config.read_chunk_size,
        )

    def _request(self, command: str, expected: str, timeout: float | None) -> str:
        # Caller holds self._lock
        self.send(command)
        return self.wait_for(expected, timeout)

    def request(self, command: str, expected: str, timeout: float | None = None) -> str:
        """Send ``command`` and return the first response starting with ``expected``."""
        with self._lock:
            return self._request(command, expected, timeout)

    def is_ready(self, timeout: float | None = None) -> bool:
        """Check that the engine is responsive.

        Returns:
            True once ``readyok`` arrives.

        Raises:
            EngineTimeout: If it does not; the engine has then been killed.
        """
        self.request("isready", "readyok", timeout)
        return True

    def new_game(self, timeout: float | None = None) -> None:
        """Tell the engine a new game starts and wait until it is ready."""
        with self._lock:
            self.send("ucinewgame")
            self._request("isready", "readyok", timeout)

    def close(self) -> None:
        """Ask the engine to quit, killing it if it does not exit in time."""
        handle = self._handle
        if handle is None or handle.released:
            return

        if handle.is_running:
            try:
                send(handle, "quit")
            except UCIEngineError as e:
                logger.debug(f"Could not send quit to engine {handle.pid}: {e}")
            else:
                if handle.wait_terminated(self.config.quit_grace):
                    logger.debug(f"Engine {handle.pid} terminated gracefully")
                else:
                    logger.warning(f"Engine {handle.pid} ignored quit, killing it")
        kill(handle)

    def __enter__(self) -> "UCIEngine":
        """Context manager entry."""
        if self._handle is None:
            self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()

    def __del__(self) -> None:
        """Destructor - ensure process is cleaned up."""
        if getattr(self, "_handle", None) is not None:
            kill(self._handle)
