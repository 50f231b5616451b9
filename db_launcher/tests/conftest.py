"""Pytest configuration and fixtures for db_launcher tests."""

from __future__ import annotations

import os
import stat
import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

import db_launcher
from db_launcher.domain.value_objects import SQLITE_HEADER_MAGIC
from db_launcher.infrastructure.config import Config, HelperConfig, StorageConfig
from db_launcher.infrastructure.metrics import MetricsRegistry


SRC_DIR = Path(db_launcher.__file__).resolve().parents[1]

# Minimal page-sized SQLite image: valid header magic, zero padding.
FAKE_DATABASE = SQLITE_HEADER_MAGIC + b"\x00" * (4096 - len(SQLITE_HEADER_MAGIC))


def write_script(path: Path, body: str) -> Path:
    """Write an executable script."""
    path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_database() -> bytes:
    """Bytes of a storage file that probes valid."""
    return FAKE_DATABASE


@pytest.fixture
def script_factory(temp_dir: Path):
    """Create executable scripts in the temporary directory."""

    def create(name: str, body: str) -> Path:
        return write_script(temp_dir / name, body)

    return create


@pytest.fixture
def storage_path(temp_dir: Path) -> Path:
    """Storage file path whose parent does not exist yet."""
    return temp_dir / "data" / "test.db"


@pytest.fixture
def stub_helper(temp_dir: Path) -> Path:
    """sqlite3 stand-in built on Python's sqlite3 module.

    Usage matches the real shell: ``stub <file> <statement>``.
    """
    return write_script(
        temp_dir / "sqlite3-stub",
        f"#!{sys.executable}\n"
        "import sqlite3\n"
        "import sys\n"
        "conn = sqlite3.connect(sys.argv[1], isolation_level=None)\n"
        "conn.execute(sys.argv[2])\n"
        "conn.close()\n",
    )


@pytest.fixture
def failing_helper(temp_dir: Path) -> Path:
    """Helper that reports an error and exits 3."""
    return write_script(
        temp_dir / "sqlite3-broken",
        "#!/bin/sh\n"
        "echo 'Error: unable to open database file' >&2\n"
        "exit 3\n",
    )


@pytest.fixture
def stub_service(temp_dir: Path) -> Path:
    """Service binary stand-in.

    Records its PID and arguments next to ``$STUB_RECORD`` and exits with
    ``$STUB_EXIT_CODE``.
    """
    return write_script(
        temp_dir / "service-stub",
        "#!/bin/sh\n"
        'echo "$$" > "$STUB_RECORD.pid"\n'
        "printf '%s\\n' \"$@\" > \"$STUB_RECORD.args\"\n"
        'exit "${STUB_EXIT_CODE:-0}"\n',
    )


@pytest.fixture
def test_config(storage_path: Path, stub_helper: Path) -> Config:
    """Provide a test configuration using the stub helper."""
    return Config(
        storage=StorageConfig(path=storage_path),
        helper=HelperConfig(command=str(stub_helper)),
    )


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry."""
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def launcher_env(temp_dir: Path) -> dict[str, str]:
    """Environment for running the launcher as a subprocess."""
    env = {
        key: value for key, value in os.environ.items() if not key.upper().startswith("DB_LAUNCHER_")
    }
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))
    env["STUB_RECORD"] = str(temp_dir / "record")
    return env


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "requires_sqlite3_cli: Needs the sqlite3 shell")
