"""Pytest configuration and shared fixtures.

Engines under test are small Python scripts run with the current interpreter.
"""

import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

# Answers the handshake and a few commands; anything else is ignored.
FAKE_ENGINE = """
import sys
import time

out = sys.stdout
for line in sys.stdin:
    cmd = line.rstrip("\\n")
    if cmd == "uci":
        out.write("id name Fake\\n")
        out.write("id author Tester\\n")
        out.write("option name Hash type spin default 16 min 1 max 1024\\n")
        out.flush()
        time.sleep(0.01)
        out.write("uciok\\n")
    elif cmd == "isready":
        out.write("readyok\\n")
    elif cmd.startswith("go"):
        out.write("info depth 1\\ninfo depth 2\\nbestmove e2e4\\n")
    elif cmd.startswith("echo "):
        out.write("got " + cmd[5:] + "\\n")
    elif cmd == "quit":
        break
    out.flush()
"""

# Never writes anything and never exits on its own.
SILENT_ENGINE = """
import time

time.sleep(60)
"""

EngineFactory = Callable[[str], tuple[str, list[str]]]


@pytest.fixture
def make_engine(tmp_path: Path) -> EngineFactory:
    """Write an engine script and return the (path, args) used to launch it."""
    counter = 0

    def factory(source: str) -> tuple[str, list[str]]:
        nonlocal counter
        counter += 1
        script = tmp_path / f"engine_{counter}.py"
        script.write_text(textwrap.dedent(source))
        return sys.executable, ["-u", str(script)]

    return factory


@pytest.fixture
def fake_engine(make_engine: EngineFactory) -> tuple[str, list[str]]:
    """A well-behaved engine."""
    return make_engine(FAKE_ENGINE)


@pytest.fixture
def silent_engine(make_engine: EngineFactory) -> tuple[str, list[str]]:
    """An engine that never answers."""
    return make_engine(SILENT_ENGINE)


CHUNKED_ENGINE = """
import sys
import time

sys.stdin.readline()
for chunk in {chunks!r}:
    sys.stdout.buffer.write(chunk)
    sys.stdout.buffer.flush()
    time.sleep({delay})
time.sleep(60)
"""


@pytest.fixture
def make_chunked_engine(make_engine: EngineFactory) -> Callable[..., tuple[str, list[str]]]:
    """An engine that, after its first command, writes the given chunks one by one."""

    def factory(chunks: list[bytes], delay: float = 0.005) -> tuple[str, list[str]]:
        return make_engine(CHUNKED_ENGINE.format(chunks=chunks, delay=delay))

    return factory
