"""Supervised process handoff.

Fallback for platforms or runtimes where image replacement is not wanted:
the service binary runs as the launcher's only child, termination signals
received by the launcher are forwarded to it, and the launcher exits with
the child's status. Externally this preserves the exec contract: signals
reach the service and the exit status is the service's.
"""

from __future__ import annotations

import signal
import subprocess
from typing import Mapping

from db_launcher.domain.entities.service_command import ServiceCommand
from db_launcher.infrastructure.logging import get_logger
from db_launcher.ports.outbound import EXIT_NOT_EXECUTABLE, EXIT_NOT_FOUND, HandoffError


logger = get_logger(__name__)

DEFAULT_FORWARD_SIGNALS = ("SIGTERM", "SIGINT", "SIGHUP", "SIGQUIT")


def exit_status(returncode: int) -> int:
    """Convert a Popen return code to a shell-style exit status.

    A child killed by signal N reports 128 + N.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


def resolve_signals(names: list[str] | tuple[str, ...]) -> list[signal.Signals]:
    """Map signal names to signals, ignoring ones this platform lacks."""
    resolved = []
    for name in names:
        sig = getattr(signal.Signals, name.upper(), None)
        if sig is None:
            logger.warning("signal_unsupported", signal=name)
            continue
        resolved.append(sig)
    return resolved


class SupervisedHandoff:
    """Process handoff by spawning and supervising a single child."""

    def __init__(self, forward_signals: list[str] | tuple[str, ...] = DEFAULT_FORWARD_SIGNALS) -> None:
        """Initialize the handoff.

        Args:
            forward_signals: Names of signals relayed to the child.
        """
        self._signals = resolve_signals(forward_signals)

    @property
    def mode(self) -> str:
        return "supervise"

    def hand_off(self, command: ServiceCommand, env: Mapping[str, str]) -> int:
        """Run the service and wait for it.

        Returns:
            The service's exit status.

        Raises:
            HandoffError: If the binary is missing or cannot be executed.
        """
        binary = str(command.binary)
        child: subprocess.Popen | None = None
        pending: list[int] = []
        forwarded: list[int] = []

        def forward(signum: int, frame: object) -> None:
            # Signals received before the child exists are replayed once it does.
            if child is None:
                pending.append(signum)
                return
            if child.poll() is None:
                child.send_signal(signum)
                forwarded.append(signum)

        previous = {sig: signal.signal(sig, forward) for sig in self._signals}
        try:
            try:
                child = subprocess.Popen(command.argv, env=dict(env))
            except FileNotFoundError as e:
                raise HandoffError(f"Service binary {binary} not found", exit_code=EXIT_NOT_FOUND) from e
            except OSError as e:
                raise HandoffError(
                    f"Cannot execute service binary {binary}: {e.strerror or e}",
                    exit_code=EXIT_NOT_EXECUTABLE,
                ) from e

            while pending:
                forward(pending.pop(0), None)
            logger.info("handoff_supervise", argv=command.argv, child_pid=child.pid)
            returncode = child.wait()
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

        for signum in forwarded:
            logger.info("signal_forwarded", signal=signal.Signals(signum).name, child_pid=child.pid)
        status = exit_status(returncode)
        logger.info("service_exited", child_pid=child.pid, exit_code=status)
        return status
