"""Error taxonomy for engine communication.

Every failure raised by this package derives from :class:`UCIEngineError` and
carries an :class:`ErrorKind`, so callers can branch either on the exception
type or on ``err.kind``.

Recoverable errors (``TIMEOUT``, ``IO``, ``TERMINATED``) mean the handle should
be discarded and a fresh engine launched. ``ALREADY_INITIALIZED`` and
``NOT_INITIALIZED`` indicate misuse by the caller and should not be retried.
"""

from enum import Enum


class ErrorKind(Enum):
    """Failure categories for engine operations."""

    LAUNCH_FAILED = "launch_failed"
    ALREADY_INITIALIZED = "already_initialized"
    NOT_INITIALIZED = "not_initialized"
    IO = "io"
    TIMEOUT = "timeout"
    TERMINATED = "terminated"
    INVALID_OPTION = "invalid_option"
    MESSAGE_TOO_LONG = "message_too_long"

    @property
    def recoverable(self) -> bool:
        """Whether relaunching the engine is a sensible reaction."""
        return self in (ErrorKind.IO, ErrorKind.TIMEOUT, ErrorKind.TERMINATED)


class UCIEngineError(Exception):
    """Raised when UCI communication fails."""

    kind: ErrorKind = ErrorKind.IO


class LaunchFailed(UCIEngineError):
    """Raised when pipes, the child process, or the exec of the engine fail."""

    kind = ErrorKind.LAUNCH_FAILED


class AlreadyInitialized(UCIEngineError):
    """Raised when an engine wrapper is started twice."""

    kind = ErrorKind.ALREADY_INITIALIZED


class NotInitialized(UCIEngineError):
    """Raised when an engine wrapper is used before it was started."""

    kind = ErrorKind.NOT_INITIALIZED


class EngineIOError(UCIEngineError):
    """Raised when reading from or writing to the engine pipes fails.

    Attributes:
        errno: The OS error code of the underlying failure, if any.
    """

    kind = ErrorKind.IO

    def __init__(self, message: str, errno: int | None = None) -> None:
        super().__init__(message)
        self.errno = errno

    @classmethod
    def from_os_error(cls, action: str, exc: OSError) -> "EngineIOError":
        """Wrap an ``OSError`` raised while performing ``action``."""
        return cls(f"Error {action} engine process: {exc.strerror or exc} (errno {exc.errno})", exc.errno)


class EngineTimeout(UCIEngineError, TimeoutError):
    """Raised when an expected message does not arrive before the deadline.

    The engine process has always been killed by the time this is raised.
    """

    kind = ErrorKind.TIMEOUT

    def __init__(self, expected: str, timeout: float) -> None:
        super().__init__(f"Timeout waiting for '{expected}' after {timeout:.3f}s")
        self.expected = expected
        self.timeout = timeout


class EngineTerminated(UCIEngineError):
    """Raised when an operation targets an engine whose process has ended."""

    kind = ErrorKind.TERMINATED

    def __init__(self, message: str = "Engine process terminated", returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class InvalidOption(UCIEngineError, ValueError):
    """Raised when an option descriptor violates its invariants."""

    kind = ErrorKind.INVALID_OPTION


class MessageTooLong(UCIEngineError):
    """Raised when an unterminated line grows past the receive buffer limit."""

    kind = ErrorKind.MESSAGE_TOO_LONG

    def __init__(self, size: int, max_size: int) -> None:
        super().__init__(f"Unterminated message of {size} bytes exceeds limit of {max_size} bytes")
        self.size = size
        self.max_size = max_size
