"""Outbound ports - External dependency interfaces for the launcher.

Outbound ports define the interfaces for the external tools the launcher
drives: the storage engine's helper tool, the operating system's process
handoff, and the container image builder.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Mapping, Protocol

from db_launcher.domain.entities.service_command import ServiceCommand


# =============================================================================
# Errors
# =============================================================================

# Shell conventions for command-not-found and not-executable.
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126


class LauncherError(Exception):
    """Base error for every fatal launcher failure.

    Attributes:
        exit_code: Process exit status reported when this error aborts startup.
    """

    exit_code: int = 1

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class HelperToolMissingError(LauncherError):
    """Raised when the storage helper tool is not installed."""

    exit_code = EXIT_NOT_FOUND


class StorageInitError(LauncherError):
    """Raised when the storage file cannot be created."""

    pass


class StorageCorruptError(LauncherError):
    """Raised when an existing storage file is not a database."""

    pass


class HandoffError(LauncherError):
    """Raised when the service binary cannot be launched."""

    exit_code = EXIT_NOT_EXECUTABLE


class ImageBuildError(LauncherError):
    """Raised when the image build fails."""

    def __init__(self, message: str, exit_code: int | None = None, output: str = "") -> None:
        super().__init__(message, exit_code)
        self.output = output


class RecipeError(LauncherError):
    """Raised when an image recipe is malformed."""

    pass


# =============================================================================
# Storage Initializer Port
# =============================================================================


class StorageInitializerPort(Protocol):
    """Protocol for the storage engine's file-creation helper.

    The helper is only used to materialize a well-formed empty database
    file; it never touches an existing one.
    """

    @property
    @abstractmethod
    def command(self) -> str:
        """Return the helper command name, for diagnostics."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if the helper can be executed."""
        ...

    @abstractmethod
    def initialize(self, path: Path) -> None:
        """Create an empty database file at path.

        Args:
            path: File to create. Its parent directory exists.

        Raises:
            HelperToolMissingError: If the helper cannot be found.
            StorageInitError: If the helper fails.
        """
        ...


# =============================================================================
# Process Handoff Port
# =============================================================================


class ProcessHandoffPort(Protocol):
    """Protocol for transferring the process to the service binary."""

    @property
    @abstractmethod
    def mode(self) -> str:
        """Return the handoff mode name (exec or supervise)."""
        ...

    @abstractmethod
    def hand_off(self, command: ServiceCommand, env: Mapping[str, str]) -> int:
        """Run the service binary.

        An in-place handoff never returns on success. A supervising handoff
        returns the service's exit status.

        Args:
            command: Service command to run.
            env: Environment for the service.

        Returns:
            Service exit status.

        Raises:
            HandoffError: If the binary cannot be launched.
        """
        ...


# =============================================================================
# Image Builder Port
# =============================================================================


class ImageBuilderPort(Protocol):
    """Protocol for building a container image from Dockerfile text."""

    @abstractmethod
    def build(self, dockerfile: str, context_dir: Path, tag: str) -> str:
        """Build an image.

        Args:
            dockerfile: Rendered Dockerfile.
            context_dir: Build context directory.
            tag: Image tag.

        Returns:
            Builder output.

        Raises:
            ImageBuildError: If the build fails.
        """
        ...


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Errors
    "EXIT_NOT_FOUND",
    "EXIT_NOT_EXECUTABLE",
    "LauncherError",
    "HelperToolMissingError",
    "StorageInitError",
    "StorageCorruptError",
    "HandoffError",
    "ImageBuildError",
    "RecipeError",
    # Ports
    "StorageInitializerPort",
    "ProcessHandoffPort",
    "ImageBuilderPort",
]
