"""Driving external UCI engine processes over pipes."""

from ucipipe.engine.framer import MessageBuffer, append, pop_message
from ucipipe.engine.launcher import EngineHandle, EngineState, kill, spawn
from ucipipe.engine.startup import handshake, launch
from ucipipe.engine.transport import ReadResult, receive_chunk, send
from ucipipe.engine.uci_engine import UCIEngine
from ucipipe.engine.waiter import request, wait_for

__all__ = [
    "EngineHandle",
    "EngineState",
    "MessageBuffer",
    "ReadResult",
    "UCIEngine",
    "append",
    "handshake",
    "kill",
    "launch",
    "pop_message",
    "receive_chunk",
    "request",
    "send",
    "spawn",
    "wait_for",
]
