"""Storage file bootstrapper.

Ensures a structurally valid storage file exists before the service binary
is started. The service does not create a usable file itself when pointed
at a missing path, so an empty database is materialized with the storage
engine's helper tool.

Guarantees:
    - A valid existing file is never opened for writing (bytes and mtime
      are preserved).
    - The path is never observed zero-byte or half-written: the helper
      writes a temporary sibling which is renamed into place only once it
      probes valid.
    - Helper availability is checked before any filesystem mutation.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path

from db_launcher.domain.entities.storage_file import (
    BootstrapAction,
    BootstrapReport,
    StorageFile,
    StorageFileState,
)
from db_launcher.infrastructure.logging import get_logger
from db_launcher.ports.outbound import (
    HelperToolMissingError,
    StorageCorruptError,
    StorageInitError,
    StorageInitializerPort,
)


logger = get_logger(__name__)


class StorageBootstrapper:
    """Creates the storage file when it is missing.

    Attributes:
        initializer: Helper tool adapter.
        create_parent_dirs: Create missing parent directories.
        initialize_missing: Create the file when absent; when False, a
            missing file is left for the service to handle.
    """

    def __init__(
        self,
        initializer: StorageInitializerPort,
        create_parent_dirs: bool = True,
        initialize_missing: bool = True,
    ) -> None:
        self.initializer = initializer
        self.create_parent_dirs = create_parent_dirs
        self.initialize_missing = initialize_missing

    def ensure(self, path: Path) -> BootstrapReport:
        """Make sure a valid storage file exists at path.

        Args:
            path: Storage file path.

        Returns:
            Report of what was done.

        Raises:
            StorageCorruptError: If path holds something that is not a database.
            HelperToolMissingError: If creation is needed and the helper is missing.
            StorageInitError: If path cannot be inspected or creation fails.
        """
        path = Path(path)
        snapshot = self._probe(path)
        logger.debug("storage_probed", path=str(path), state=snapshot.state.value)

        if snapshot.state == StorageFileState.VALID:
            logger.info("storage_unchanged", path=str(path), size_bytes=snapshot.size_bytes)
            return BootstrapReport(
                path=path,
                state_before=snapshot.state,
                action=BootstrapAction.UNCHANGED,
                size_bytes=snapshot.size_bytes,
            )

        if snapshot.state == StorageFileState.INVALID:
            raise StorageCorruptError(f"{path} exists but is not a database file")

        if not self.initialize_missing:
            logger.warning("storage_initialization_disabled", path=str(path), state=snapshot.state.value)
            return BootstrapReport(path=path, state_before=snapshot.state, action=BootstrapAction.SKIPPED)

        if not self.initializer.is_available():
            raise HelperToolMissingError(f"Storage helper '{self.initializer.command}' is not installed")

        self._prepare_parent(path.parent)
        created = self._create(path)

        logger.info(
            "storage_initialized",
            path=str(path),
            state_before=snapshot.state.value,
            size_bytes=created.size_bytes,
        )
        return BootstrapReport(
            path=path,
            state_before=snapshot.state,
            action=BootstrapAction.CREATED,
            size_bytes=created.size_bytes,
        )

    def _probe(self, path: Path) -> StorageFile:
        try:
            return StorageFile.probe(path)
        except OSError as e:
            raise StorageInitError(f"Cannot inspect storage file {path}: {e}") from e

    def _prepare_parent(self, parent: Path) -> None:
        if parent.is_dir():
            return
        if not self.create_parent_dirs:
            raise StorageInitError(f"Storage directory {parent} does not exist")
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageInitError(f"Cannot create storage directory {parent}: {e}") from e

    def _create(self, path: Path) -> StorageFile:
        """Build the file beside path, then rename it into place."""
        tmp = path.with_name(f".{path.name}.init-{uuid.uuid4().hex[:8]}")
        try:
            self.initializer.initialize(tmp)

            created = self._probe(tmp)
            if created.state != StorageFileState.VALID:
                raise StorageInitError(
                    f"Helper '{self.initializer.command}' left {created.state.value} file for {path}"
                )

            try:
                os.replace(tmp, path)
            except OSError as e:
                raise StorageInitError(f"Cannot move new storage file into {path}: {e}") from e
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

        return self._probe(path)
