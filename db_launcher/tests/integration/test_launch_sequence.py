"""Integration tests for the full startup sequence.

The launcher runs as a real subprocess so the exec handoff can replace it.
"""

from __future__ import annotations

import shutil
import signal
import sqlite3
import subprocess
import sys
import time
from pathlib import Path

import pytest

from db_launcher.domain.entities.storage_file import StorageFile, StorageFileState


def run_launcher(binary: Path, env: dict[str, str], *args: str) -> subprocess.Popen:
    return subprocess.Popen(
        [sys.executable, "-m", "db_launcher", *args, str(binary)],
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )


def integrity(path: Path) -> str:
    conn = sqlite3.connect(path)
    try:
        return conn.execute("PRAGMA integrity_check").fetchone()[0]
    finally:
        conn.close()


def wait_for(path: Path, timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while not path.exists() or not path.read_text().strip():
        if time.monotonic() > deadline:
            raise AssertionError(f"{path} was not written within {timeout}s")
        time.sleep(0.05)


@pytest.mark.integration
class TestLaunchSequence:
    """End-to-end startup scenarios."""

    @pytest.fixture
    def env(self, launcher_env: dict[str, str], stub_helper: Path, storage_path: Path) -> dict[str, str]:
        return {
            **launcher_env,
            "DB_LAUNCHER_HELPER__COMMAND": str(stub_helper),
            "DB_LAUNCHER_STORAGE__PATH": str(storage_path),
            "STUB_EXIT_CODE": "7",
        }

    def test_absent_storage_created_then_exec(
        self, env: dict[str, str], stub_service: Path, storage_path: Path, temp_dir: Path
    ) -> None:
        """The file is created valid and the service replaces the launcher."""
        proc = run_launcher(stub_service, env)
        stdout, stderr = proc.communicate(timeout=30)

        assert proc.returncode == 7, stderr
        assert storage_path.stat().st_size > 0
        assert StorageFile.probe(storage_path).state == StorageFileState.VALID
        assert integrity(storage_path) == "ok"

        # Same PID: the service took over the launcher's process in place.
        assert int((temp_dir / "record.pid").read_text()) == proc.pid
        assert (temp_dir / "record.args").read_text().split() == [
            "server", "-e", "sqlite", "-p", str(storage_path),
        ]
        assert "handoff_exec" in stderr

    def test_existing_storage_unchanged(
        self, env: dict[str, str], stub_service: Path, storage_path: Path, temp_dir: Path
    ) -> None:
        storage_path.parent.mkdir(parents=True)
        conn = sqlite3.connect(storage_path)
        conn.execute("CREATE TABLE kv (k TEXT PRIMARY KEY, v TEXT)")
        conn.execute("INSERT INTO kv VALUES ('a', '1')")
        conn.commit()
        conn.close()
        content = storage_path.read_bytes()
        mtime = storage_path.stat().st_mtime_ns

        proc = run_launcher(stub_service, env)
        _, stderr = proc.communicate(timeout=30)

        assert proc.returncode == 7, stderr
        assert storage_path.read_bytes() == content
        assert storage_path.stat().st_mtime_ns == mtime
        assert int((temp_dir / "record.pid").read_text()) == proc.pid

    def test_repeated_runs_equal_one(
        self, env: dict[str, str], stub_service: Path, storage_path: Path
    ) -> None:
        first = run_launcher(stub_service, env)
        first.communicate(timeout=30)
        content = storage_path.read_bytes()
        mtime = storage_path.stat().st_mtime_ns

        second = run_launcher(stub_service, env)
        second.communicate(timeout=30)

        assert first.returncode == second.returncode == 7
        assert storage_path.read_bytes() == content
        assert storage_path.stat().st_mtime_ns == mtime

    def test_missing_helper_never_starts_service(
        self, env: dict[str, str], stub_service: Path, storage_path: Path, temp_dir: Path
    ) -> None:
        env["DB_LAUNCHER_HELPER__COMMAND"] = "no-such-sqlite3-helper"

        proc = run_launcher(stub_service, env)
        _, stderr = proc.communicate(timeout=30)

        assert proc.returncode == 127
        assert not (temp_dir / "record.pid").exists()
        assert not storage_path.exists()
        assert "step_failed" in stderr

    def test_missing_service_binary(
        self, env: dict[str, str], storage_path: Path, temp_dir: Path
    ) -> None:
        proc = run_launcher(temp_dir / "no-such-service", env)
        _, stderr = proc.communicate(timeout=30)

        assert proc.returncode == 127
        # Storage is bootstrapped before the handoff is attempted.
        assert StorageFile.probe(storage_path).state == StorageFileState.VALID

    def test_supervised_forwards_sigterm(
        self, env: dict[str, str], script_factory, temp_dir: Path
    ) -> None:
        service = script_factory(
            "service-long",
            "#!/bin/sh\n"
            "trap 'echo term > \"$STUB_RECORD.signal\"; exit 143' TERM\n"
            'echo "$$" > "$STUB_RECORD.pid"\n'
            "while :; do sleep 0.1; done\n",
        )

        proc = run_launcher(service, env, "--handoff-mode", "supervise")
        wait_for(temp_dir / "record.pid")
        # Let the launcher finish installing its handlers.
        time.sleep(0.5)
        assert int((temp_dir / "record.pid").read_text()) != proc.pid

        proc.send_signal(signal.SIGTERM)
        _, stderr = proc.communicate(timeout=30)

        assert proc.returncode == 143, stderr
        assert (temp_dir / "record.signal").read_text().strip() == "term"
        assert "signal_forwarded" in stderr

    @pytest.mark.requires_sqlite3_cli
    @pytest.mark.skipif(shutil.which("sqlite3") is None, reason="sqlite3 shell not installed")
    def test_real_sqlite3_helper(
        self, env: dict[str, str], stub_service: Path, storage_path: Path
    ) -> None:
        env.pop("DB_LAUNCHER_HELPER__COMMAND")

        proc = run_launcher(stub_service, env)
        _, stderr = proc.communicate(timeout=30)

        assert proc.returncode == 7, stderr
        assert storage_path.stat().st_size > 0
        assert integrity(storage_path) == "ok"
