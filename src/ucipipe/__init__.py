"""ucipipe: drive UCI engine subprocesses over pipes.

- Low-level, handle-based API: `from ucipipe.engine import launch, send, wait_for, kill`
- Long-lived wrapper: `from ucipipe import UCIEngine`
- Utilities: `from ucipipe.utils import setup_logging, load_engine_config`
"""

__version__ = "0.1.0"

# Re-export common entry points for convenience
from ucipipe.engine import EngineHandle, EngineState, UCIEngine, kill, launch, send, wait_for
from ucipipe.errors import (
    AlreadyInitialized,
    EngineIOError,
    EngineTerminated,
    EngineTimeout,
    ErrorKind,
    InvalidOption,
    LaunchFailed,
    MessageTooLong,
    NotInitialized,
    UCIEngineError,
)
from ucipipe.options import Option, OptionType
from ucipipe.utils import EngineConfig, setup_logging

__all__ = [
    "AlreadyInitialized",
    "EngineConfig",
    "EngineHandle",
    "EngineIOError",
    "EngineState",
    "EngineTerminated",
    "EngineTimeout",
    "ErrorKind",
    "InvalidOption",
    "LaunchFailed",
    "MessageTooLong",
    "NotInitialized",
    "Option",
    "OptionType",
    "UCIEngine",
    "UCIEngineError",
    "__version__",
    "kill",
    "launch",
    "send",
    "setup_logging",
    "wait_for",
]
