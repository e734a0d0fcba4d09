"""Newline framing of the engine output stream.

Bytes arrive from the engine in arbitrary chunks. :class:`MessageBuffer`
accumulates them and hands out one complete line at a time, keeping any
trailing partial line until its terminator arrives. A line is only complete
once its ``\\n`` has been received; text after the last terminator is never
returned, even if the engine exits.
"""

from ucipipe.errors import MessageTooLong

TERMINATOR = b"\n"
DEFAULT_MAX_BUFFER_SIZE = 1 << 20


class MessageBuffer:
    """Receive buffer holding engine output that has not been framed yet.

    Args:
        max_size: Maximum number of bytes an unterminated line may occupy.
            ``None`` disables the limit.
    """

    def __init__(self, max_size: int | None = DEFAULT_MAX_BUFFER_SIZE) -> None:
        self._data = bytearray()
        self.max_size = max_size

    def __len__(self) -> int:
        return len(self._data)

    def append(self, data: bytes) -> None:
        """Append received bytes to the tail of the buffer.

        Raises:
            MessageTooLong: If the trailing unterminated part exceeds ``max_size``.
        """
        if not data:
            return
        self._data += data
        if self.max_size is None or len(self._data) <= self.max_size:
            return
        partial = len(self._data) - (self._data.rfind(TERMINATOR) + 1)
        if partial > self.max_size:
            raise MessageTooLong(partial, self.max_size)

    def has_message(self) -> bool:
        return TERMINATOR in self._data

    def pop_raw(self) -> bytes | None:
        """Remove and return the first complete line as bytes, without its terminator."""
        index = self._data.find(TERMINATOR)
        if index == -1:
            return None
        line = bytes(self._data[:index])
        del self._data[: index + 1]
        return line

    def pop_message(self) -> str | None:
        """Remove and return the first complete line as text.

        Returns:
            The decoded line, or None if no terminator has been received yet.
        """
        line = self.pop_raw()
        if line is None:
            return None
        return decode_line(line)

    def clear(self) -> None:
        self._data.clear()

    def __repr__(self) -> str:
        return f"MessageBuffer(size={len(self._data)}, max_size={self.max_size})"


def decode_line(line: bytes) -> str:
    """Decode a raw line, replacing bytes that are not valid UTF-8."""
    return line.decode("utf-8", errors="replace")


def append(buffer: MessageBuffer, data: bytes) -> None:
    """Append ``data`` to ``buffer``."""
    buffer.append(data)


def pop_message(buffer: MessageBuffer) -> str | None:
    """Pop the next complete message from ``buffer``, if any."""
    return buffer.pop_message()
