"""Storage file entity."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from db_launcher.domain.value_objects.identifiers import (
    SQLITE_HEADER_MAGIC,
    SQLITE_HEADER_SIZE,
)


class StorageFileState(Enum):
    """Probed state of a storage file."""
    ABSENT = "absent"
    EMPTY = "empty"  # Zero bytes
    VALID = "valid"
    INVALID = "invalid"


class BootstrapAction(Enum):
    """What the bootstrapper did to the storage file."""
    CREATED = "created"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StorageFile:
    """Snapshot of a storage file on disk."""
    path: Path
    state: StorageFileState
    size_bytes: int = 0
    mtime_ns: int | None = None

    @classmethod
    def probe(cls, path: Path) -> StorageFile:
        """Inspect path without modifying it.

        Only the header is read, so probing a large database is cheap.

        Args:
            path: Storage file path.

        Returns:
            Snapshot with the detected state.

        Raises:
            OSError: If path cannot be inspected (permission, not a directory).
        """
        try:
            stat = path.stat()
        except FileNotFoundError:
            return cls(path=path, state=StorageFileState.ABSENT)

        if not path.is_file():
            return cls(path=path, state=StorageFileState.INVALID, mtime_ns=stat.st_mtime_ns)
        if stat.st_size == 0:
            return cls(path=path, state=StorageFileState.EMPTY, mtime_ns=stat.st_mtime_ns)

        with open(path, "rb") as f:
            header = f.read(len(SQLITE_HEADER_MAGIC))

        valid = stat.st_size >= SQLITE_HEADER_SIZE and header == SQLITE_HEADER_MAGIC
        return cls(
            path=path,
            state=StorageFileState.VALID if valid else StorageFileState.INVALID,
            size_bytes=stat.st_size,
            mtime_ns=stat.st_mtime_ns,
        )

    @property
    def exists(self) -> bool:
        return self.state != StorageFileState.ABSENT

    def needs_initialization(self) -> bool:
        """Check if the file must be created before the service starts.

        Returns:
            True if absent or zero bytes.
        """
        return self.state in (StorageFileState.ABSENT, StorageFileState.EMPTY)


@dataclass(frozen=True)
class BootstrapReport:
    """Outcome of bootstrapping one storage file."""
    path: Path
    state_before: StorageFileState
    action: BootstrapAction
    size_bytes: int = 0
