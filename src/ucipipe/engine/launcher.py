"""Engine process lifecycle: spawning, termination watching, and killing.

An :class:`EngineHandle` owns one engine subprocess together with the two
pipes connecting it to us and the receive buffer for its output. Handles
share no state, so several engines can be driven side by side.

Process exit is observed by a per-handle watcher thread blocked in
``Popen.wait()``. The watcher only publishes the transition (state field,
event, callbacks); the pipes are released by the owning thread, either when
an operation finds the handle terminated or through :func:`kill` /
:meth:`EngineHandle.close`.
"""

import subprocess
import threading
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path

from loguru import logger

from ucipipe.engine.framer import DEFAULT_MAX_BUFFER_SIZE, MessageBuffer
from ucipipe.errors import EngineTerminated, LaunchFailed

DEFAULT_KILL_GRACE = 1.0

TerminationCallback = Callable[["EngineHandle"], None]
MessageCallback = Callable[[str], None]


class EngineState(Enum):
    """Lifecycle of an engine process."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    TERMINATED = "terminated"


class EngineHandle:
    """A running engine subprocess and its communication channels.

    Handles are created by :func:`spawn` (or :func:`ucipipe.engine.launch`),
    not directly. A handle must be driven by a single owner at a time.
    """

    def __init__(
        self,
        process: subprocess.Popen,
        *,
        max_buffer_size: int | None = DEFAULT_MAX_BUFFER_SIZE,
        kill_grace: float = DEFAULT_KILL_GRACE,
    ) -> None:
        if process.stdin is None or process.stdout is None:
            raise LaunchFailed("Engine process was started without pipes")

        self.process = process
        self.buffer = MessageBuffer(max_buffer_size)
        self.kill_grace = kill_grace

        self._reader = process.stdout
        self._writer = process.stdin
        self._state = EngineState.NOT_STARTED
        self._lock = threading.Lock()
        self._terminated = threading.Event()
        self._released = False
        self._termination_callbacks: list[TerminationCallback] = []
        self._subscribers: list[MessageCallback] = []
        self._watcher: threading.Thread | None = None

    def _start_watcher(self) -> None:
        self._state = EngineState.RUNNING
        self._watcher = threading.Thread(
            target=self._watch,
            name=f"engine-watcher-{self.pid}",
            daemon=True,
        )
        self._watcher.start()

    def _watch(self) -> None:
        returncode = self.process.wait()
        if self._mark_terminated():
            logger.debug(f"Engine process {self.pid} exited with code {returncode}")

    def _mark_terminated(self) -> bool:
        """Transition to TERMINATED. Returns False if already terminated."""
        with self._lock:
            if self._state is EngineState.TERMINATED:
                return False
            self._state = EngineState.TERMINATED
            callbacks = list(self._termination_callbacks)

        for callback in callbacks:
            try:
                callback(self)
            except Exception:
                logger.exception(f"Termination callback failed for engine {self.pid}")
        # Set after the callbacks so waiters observe their effects
        self._terminated.set()
        return True

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is EngineState.RUNNING

    @property
    def released(self) -> bool:
        """Whether the pipes have been closed."""
        return self._released

    @property
    def returncode(self) -> int | None:
        return self.process.returncode

    @property
    def reader_fd(self) -> int:
        return self._reader.fileno()

    @property
    def writer_fd(self) -> int:
        return self._writer.fileno()

    def add_termination_callback(self, callback: TerminationCallback) -> None:
        """Register a callback invoked once when the handle becomes TERMINATED.

        The callback runs on whichever thread performs the transition (the
        watcher thread for a process exit, the caller's thread for a kill).
        If the handle is already terminated the callback runs immediately.
        """
        with self._lock:
            if self._state is not EngineState.TERMINATED:
                self._termination_callbacks.append(callback)
                return
        callback(self)

    def wait_terminated(self, timeout: float | None = None) -> bool:
        """Block until the handle is TERMINATED. Returns False on timeout."""
        return self._terminated.wait(timeout)

    def subscribe(self, callback: MessageCallback) -> Callable[[], None]:
        """Receive every message that a wait discards as non-matching.

        Returns:
            A function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, message: str) -> None:
        """Deliver an unmatched message to all subscribers."""
        for callback in list(self._subscribers):
            callback(message)

    def ensure_alive(self) -> None:
        """Raise if the engine has terminated, releasing its pipes.

        Raises:
            EngineTerminated: If the process has exited or was killed.
        """
        if self._state is EngineState.TERMINATED:
            self.release()
            raise EngineTerminated(
                f"Engine process {self.pid} terminated (code {self.returncode})",
                self.returncode,
            )

    def ensure_open(self) -> None:
        """Raise if the pipes have already been released.

        Unlike :meth:`ensure_alive`, output the engine wrote before exiting
        can still be read from a terminated handle until it is released.
        """
        if self._released:
            raise EngineTerminated(
                f"Engine process {self.pid} channels are closed",
                self.returncode,
            )

    def release(self) -> None:
        """Close both pipes. Safe to call more than once."""
        with self._lock:
            if self._released:
                return
            self._released = True

        for channel in (self._writer, self._reader):
            try:
                channel.close()
            except OSError as e:
                logger.debug(f"Ignoring error closing pipe of engine {self.pid}: {e}")

    def close(self) -> None:
        """Kill the engine if it is still running and release its pipes."""
        kill(self)

    def __enter__(self) -> "EngineHandle":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"EngineHandle(pid={self.pid}, state={self._state.value})"


def spawn(
    path: str | Path,
    args: Sequence[str] = (),
    *,
    cwd: str | Path | None = None,
    env: dict[str, str] | None = None,
    max_buffer_size: int | None = DEFAULT_MAX_BUFFER_SIZE,
    kill_grace: float = DEFAULT_KILL_GRACE,
) -> EngineHandle:
    """Start an engine process connected through two pipes.

    The child's stdin is the write end we keep, its stdout the read end. The
    engine's stderr is inherited.

    Args:
        path: Path to the engine executable.
        args: Arguments passed after the program name.
        cwd: Working directory for the engine.
        env: Environment for the engine (inherits ours if None).
        max_buffer_size: Limit for an unterminated output line.
        kill_grace: Seconds to wait for the process to be reaped after a kill.

    Returns:
        A RUNNING handle.

    Raises:
        LaunchFailed: If the pipes or the process cannot be created, or the
            engine program cannot be executed.
    """
    cmd = [str(path), *map(str, args)]
    logger.debug(f"Starting UCI engine: {' '.join(cmd)}")

    try:
        # subprocess reports exec failures in the child back to the parent
        process = subprocess.Popen(
            cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            bufsize=0,
            cwd=cwd,
            env=env,
        )
    except (OSError, ValueError, subprocess.SubprocessError) as e:
        raise LaunchFailed(f"Failed to start engine '{path}': {e}") from e

    handle = EngineHandle(process, max_buffer_size=max_buffer_size, kill_grace=kill_grace)
    handle._start_watcher()
    logger.debug(f"Engine process started: PID {handle.pid}")
    return handle


def kill(handle: EngineHandle) -> None:
    """Forcibly terminate the engine and release its pipes.

    Killing an already terminated handle only makes sure its pipes are closed.
    """
    if handle.process.poll() is None:
        logger.debug(f"Killing engine process {handle.pid}")
        try:
            handle.process.kill()
        except ProcessLookupError:
            pass
        try:
            handle.process.wait(timeout=handle.kill_grace)
        except subprocess.TimeoutExpired:
            logger.warning(f"Engine process {handle.pid} not reaped {handle.kill_grace}s after SIGKILL")

    handle._mark_terminated()
    handle.release()
