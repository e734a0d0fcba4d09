"""Logging configuration utilities."""

import sys
from pathlib import Path

from loguru import logger

PLAIN_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def _is_protocol_record(record) -> bool:
    return record["message"].startswith(("UCI send:", "UCI recv:"))


def setup_logging(
    level: str = "INFO",
    log_file: str | Path | None = None,
    protocol_log: str | Path | None = None,
    rotation: str = "10 MB",
    retention: str = "1 week",
) -> None:
    """Configure loguru for the application.

    Args:
        level: Minimum log level to display.
        log_file: Optional path to a log file.
        protocol_log: Optional path to a file receiving every line sent to
            and received from engines, regardless of ``level``.
        rotation: When to rotate the log files.
        retention: How long to keep old log files.
    """
    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<green>{time:HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan> | "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    for path, sink_level, sink_filter in (
        (log_file, level, None),
        (protocol_log, "TRACE", _is_protocol_record),
    ):
        if not path:
            continue
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            level=sink_level,
            format=PLAIN_FORMAT,
            filter=sink_filter,
            rotation=rotation,
            retention=retention,
            compression="gz",
        )

    logger.debug(f"Logging configured at level: {level}")
