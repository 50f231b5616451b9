"""In-place process handoff.

Replaces the launcher's process image with the service binary via
``execve``. The service keeps the launcher's PID, receives the signals the
container runtime sends to PID 1 directly, and its exit status becomes the
container's exit status. On success ``hand_off`` never returns.
"""

from __future__ import annotations

import os
import sys
from typing import Callable, Mapping

from db_launcher.domain.entities.service_command import ServiceCommand
from db_launcher.infrastructure.logging import get_logger
from db_launcher.ports.outbound import EXIT_NOT_EXECUTABLE, EXIT_NOT_FOUND, HandoffError


logger = get_logger(__name__)


class ExecHandoff:
    """Process handoff by image replacement."""

    def __init__(self, execve: Callable[[str, list[str], Mapping[str, str]], None] = os.execve) -> None:
        """Initialize the handoff.

        Args:
            execve: Image replacement primitive; swapped out in tests.
        """
        self._execve = execve

    @property
    def mode(self) -> str:
        return "exec"

    def hand_off(self, command: ServiceCommand, env: Mapping[str, str]) -> int:
        """Replace this process with the service binary.

        Raises:
            HandoffError: If the binary is missing or cannot be executed.
        """
        binary = str(command.binary)
        logger.info("handoff_exec", argv=command.argv, pid=os.getpid())

        # Buffered output is lost once the image is replaced.
        sys.stdout.flush()
        sys.stderr.flush()

        try:
            self._execve(binary, command.argv, dict(env))
        except FileNotFoundError as e:
            raise HandoffError(f"Service binary {binary} not found", exit_code=EXIT_NOT_FOUND) from e
        except OSError as e:
            raise HandoffError(
                f"Cannot execute service binary {binary}: {e.strerror or e}",
                exit_code=EXIT_NOT_EXECUTABLE,
            ) from e

        # Only reachable with a stubbed execve.
        return 0
