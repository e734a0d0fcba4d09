"""Tests for engine process lifecycle."""

import signal
from pathlib import Path

import pytest

from ucipipe.engine import EngineState, kill, send, spawn, wait_for
from ucipipe.errors import EngineTerminated, ErrorKind, LaunchFailed


class TestSpawn:
    """Tests for starting engine processes."""

    def test_spawn_returns_running_handle(self, fake_engine) -> None:
        """Test that a spawned engine is RUNNING with open pipes."""
        path, args = fake_engine
        with spawn(path, args) as handle:
            assert handle.state is EngineState.RUNNING
            assert handle.is_running
            assert handle.pid > 0
            assert not handle.released
            assert len(handle.buffer) == 0

    def test_missing_executable_raises_launch_failed(self, tmp_path: Path) -> None:
        """Test that a nonexistent program is reported as LaunchFailed."""
        with pytest.raises(LaunchFailed) as exc_info:
            spawn(tmp_path / "no-such-engine")

        assert exc_info.value.kind is ErrorKind.LAUNCH_FAILED
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_non_executable_file_raises_launch_failed(self, tmp_path: Path) -> None:
        """Test that an exec failure in the child reaches the caller."""
        engine = tmp_path / "engine.txt"
        engine.write_text("not a program\n")
        engine.chmod(0o644)

        with pytest.raises(LaunchFailed):
            spawn(engine)


class TestKill:
    """Tests for forced termination."""

    def test_kill_terminates_and_releases(self, silent_engine) -> None:
        """Test that kill ends the process and closes the pipes."""
        path, args = silent_engine
        handle = spawn(path, args)

        kill(handle)

        assert handle.state is EngineState.TERMINATED
        assert handle.released
        assert handle.returncode == -signal.SIGKILL

    def test_kill_is_idempotent(self, silent_engine) -> None:
        """Test that killing a terminated handle is a no-op."""
        path, args = silent_engine
        handle = spawn(path, args)

        kill(handle)
        kill(handle)

        assert handle.state is EngineState.TERMINATED

    def test_operations_after_kill_raise_terminated(self, silent_engine) -> None:
        """Test that a killed handle rejects further use."""
        path, args = silent_engine
        handle = spawn(path, args)
        kill(handle)

        with pytest.raises(EngineTerminated):
            send(handle, "isready")
        with pytest.raises(EngineTerminated):
            wait_for(handle, "readyok", timeout=0.1)


class TestWatcher:
    """Tests for asynchronous termination notification."""

    def test_exit_is_observed(self, fake_engine) -> None:
        """Test that a process exiting on its own transitions the handle."""
        path, args = fake_engine
        handle = spawn(path, args)
        calls = []
        handle.add_termination_callback(calls.append)

        send(handle, "quit")

        assert handle.wait_terminated(timeout=5.0)
        assert handle.state is EngineState.TERMINATED
        assert handle.returncode == 0
        assert calls == [handle]
        handle.close()

    def test_next_operation_raises_after_exit(self, fake_engine) -> None:
        """Test that termination surfaces on the next send."""
        path, args = fake_engine
        handle = spawn(path, args)
        send(handle, "quit")
        assert handle.wait_terminated(timeout=5.0)

        with pytest.raises(EngineTerminated) as exc_info:
            send(handle, "isready")

        assert exc_info.value.returncode == 0
        assert handle.released

    def test_callback_runs_once_for_kill(self, silent_engine) -> None:
        """Test that a kill and the watcher do not both report termination."""
        path, args = silent_engine
        handle = spawn(path, args)
        calls = []
        handle.add_termination_callback(calls.append)

        kill(handle)
        handle._watcher.join(timeout=5.0)

        assert calls == [handle]

    def test_callback_added_after_termination_runs_immediately(self, silent_engine) -> None:
        path, args = silent_engine
        handle = spawn(path, args)
        kill(handle)

        calls = []
        handle.add_termination_callback(calls.append)
        assert calls == [handle]

    def test_handles_are_independent(self, fake_engine) -> None:
        """Test that two engines can be driven side by side."""
        path, args = fake_engine
        with spawn(path, args) as first, spawn(path, args) as second:
            send(first, "echo one")
            send(second, "echo two")

            assert wait_for(second, "got", timeout=5.0) == "got two"
            assert wait_for(first, "got", timeout=5.0) == "got one"

            kill(first)
            assert second.is_running
            send(second, "isready")
            assert wait_for(second, "readyok", timeout=5.0) == "readyok"
