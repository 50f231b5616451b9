"""Unit tests for the process handoff adapters."""

from __future__ import annotations

import os
import signal
from pathlib import Path

import pytest

from db_launcher.adapters.outbound import supervised_handoff
from db_launcher.adapters.outbound import (
    ExecHandoff,
    SupervisedHandoff,
    exit_status,
    resolve_signals,
)
from db_launcher.domain.entities.service_command import ServiceCommand
from db_launcher.ports.outbound import HandoffError


class RecordingExecve:
    """Stands in for os.execve."""

    def __init__(self, error: OSError | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, list[str], dict]] = []

    def __call__(self, path: str, argv: list[str], env: dict) -> None:
        self.calls.append((path, argv, env))
        if self.error is not None:
            raise self.error


class TestExecHandoff:
    """Tests for ExecHandoff."""

    def test_replaces_image_with_service_argv(self) -> None:
        execve = RecordingExecve()
        command = ServiceCommand.create("/usr/local/bin/cozo-bin", "/data/cozo.db")

        ExecHandoff(execve=execve).hand_off(command, {"HOME": "/root"})

        assert execve.calls == [
            (
                "/usr/local/bin/cozo-bin",
                ["/usr/local/bin/cozo-bin", "server", "-e", "sqlite", "-p", "/data/cozo.db"],
                {"HOME": "/root"},
            )
        ]

    def test_missing_binary(self) -> None:
        execve = RecordingExecve(FileNotFoundError(2, "No such file or directory"))
        command = ServiceCommand.create("/nope/cozo-bin", "/data/cozo.db")

        with pytest.raises(HandoffError) as exc_info:
            ExecHandoff(execve=execve).hand_off(command, {})
        assert exc_info.value.exit_code == 127

    def test_not_executable(self) -> None:
        execve = RecordingExecve(PermissionError(13, "Permission denied"))
        command = ServiceCommand.create("/data/cozo-bin", "/data/cozo.db")

        with pytest.raises(HandoffError, match="Permission denied") as exc_info:
            ExecHandoff(execve=execve).hand_off(command, {})
        assert exc_info.value.exit_code == 126

    def test_mode(self) -> None:
        assert ExecHandoff().mode == "exec"


class TestSupervisedHandoff:
    """Tests for SupervisedHandoff."""

    def test_returns_child_exit_code(self, stub_service: Path, temp_dir: Path) -> None:
        record = temp_dir / "record"
        command = ServiceCommand.create(stub_service, temp_dir / "test.db")
        env = {**os.environ, "STUB_RECORD": str(record), "STUB_EXIT_CODE": "7"}

        status = SupervisedHandoff().hand_off(command, env)

        assert status == 7
        assert Path(f"{record}.args").read_text().split() == [
            "server", "-e", "sqlite", "-p", str(temp_dir / "test.db"),
        ]
        # The child is a different process in this mode.
        assert int(Path(f"{record}.pid").read_text()) != os.getpid()

    def test_restores_signal_handlers(self, stub_service: Path, temp_dir: Path) -> None:
        before = signal.getsignal(signal.SIGTERM)
        command = ServiceCommand.create(stub_service, temp_dir / "test.db")
        env = {**os.environ, "STUB_RECORD": str(temp_dir / "record")}

        SupervisedHandoff().hand_off(command, env)

        assert signal.getsignal(signal.SIGTERM) == before

    def test_signal_during_spawn_reaches_child(
        self, monkeypatch: pytest.MonkeyPatch, script_factory, temp_dir: Path
    ) -> None:
        """A signal received while the child is being spawned is relayed to it."""
        service = script_factory("service-sleep", "#!/bin/sh\nexec sleep 30\n")
        real_popen = supervised_handoff.subprocess.Popen

        def popen_after_signal(*args, **kwargs):
            os.kill(os.getpid(), signal.SIGUSR1)
            return real_popen(*args, **kwargs)

        monkeypatch.setattr(supervised_handoff.subprocess, "Popen", popen_after_signal)
        command = ServiceCommand.create(service, temp_dir / "test.db")

        status = SupervisedHandoff(forward_signals=("SIGUSR1",)).hand_off(command, dict(os.environ))

        assert status == 128 + signal.SIGUSR1

    def test_missing_binary(self, temp_dir: Path) -> None:
        command = ServiceCommand.create(temp_dir / "missing-bin", temp_dir / "test.db")

        with pytest.raises(HandoffError) as exc_info:
            SupervisedHandoff().hand_off(command, {})
        assert exc_info.value.exit_code == 127

    def test_not_executable(self, temp_dir: Path) -> None:
        binary = temp_dir / "plain-file"
        binary.write_text("#!/bin/sh\nexit 0\n")
        command = ServiceCommand.create(binary, temp_dir / "test.db")

        with pytest.raises(HandoffError) as exc_info:
            SupervisedHandoff().hand_off(command, {})
        assert exc_info.value.exit_code == 126

    def test_mode(self) -> None:
        assert SupervisedHandoff().mode == "supervise"


class TestExitStatus:
    """Tests for exit status conversion."""

    def test_normal_exit(self) -> None:
        assert exit_status(0) == 0
        assert exit_status(3) == 3

    def test_killed_by_signal(self) -> None:
        assert exit_status(-signal.SIGTERM) == 143
        assert exit_status(-signal.SIGKILL) == 137

    def test_resolve_signals(self) -> None:
        assert resolve_signals(["SIGTERM", "sigint"]) == [signal.SIGTERM, signal.SIGINT]

    def test_resolve_signals_skips_unknown(self) -> None:
        assert resolve_signals(["SIGTERM", "SIGNOPE"]) == [signal.SIGTERM]
