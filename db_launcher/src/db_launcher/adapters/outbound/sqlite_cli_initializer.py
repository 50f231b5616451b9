"""SQLite command-line storage initializer.

This adapter implements the StorageInitializerPort protocol by running the
``sqlite3`` shell against the target file with a statement that forces the
database header to be written (``VACUUM;`` by default).
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from db_launcher.infrastructure.logging import get_logger
from db_launcher.ports.outbound import HelperToolMissingError, StorageInitError


logger = get_logger(__name__)


class SqliteCliInitializer:
    """Creates empty SQLite databases with the sqlite3 shell.

    Example:
        initializer = SqliteCliInitializer()
        if initializer.is_available():
            initializer.initialize(Path("/data/cozo.db"))
    """

    def __init__(self, command: str = "sqlite3", statement: str = "VACUUM;") -> None:
        """Initialize the adapter.

        Args:
            command: Executable name (looked up on PATH) or path.
            statement: SQL run against the new file.
        """
        self._command = command
        self._statement = statement

    @property
    def command(self) -> str:
        return self._command

    def resolve(self) -> str | None:
        """Return the absolute path of the helper, or None if not found."""
        return shutil.which(self._command)

    def is_available(self) -> bool:
        return self.resolve() is not None

    def initialize(self, path: Path) -> None:
        """Run the helper against path.

        Args:
            path: Database file to create.

        Raises:
            HelperToolMissingError: If the helper is not installed.
            StorageInitError: If the helper exits non-zero or cannot run.
        """
        executable = self.resolve()
        if executable is None:
            raise HelperToolMissingError(f"Storage helper '{self._command}' is not installed")

        argv = [executable, str(path), self._statement]
        logger.debug("storage_helper_run", argv=argv)
        try:
            result = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise StorageInitError(f"Cannot run storage helper '{self._command}': {e}") from e

        if result.returncode != 0:
            diagnostic = (result.stderr or result.stdout).strip()
            raise StorageInitError(
                f"Storage helper '{self._command}' failed for {path}: {diagnostic}",
                # Negative codes mean the helper was killed by a signal.
                exit_code=result.returncode if result.returncode > 0 else 1,
            )
