"""Launcher - startup sequence of the database service container.

Runs a two-step fail-fast chain:

    1. bootstrap_storage  ensure the storage file exists and is valid
    2. hand_off           replace this process with the service binary

Usage:
    from db_launcher.application import Launcher

    launcher = Launcher.from_config(get_config())
    report = launcher.run("/usr/local/bin/cozo-bin")
    sys.exit(report.exit_code)  # only reached on failure or in supervise mode
"""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Callable, Mapping

from db_launcher.adapters.outbound.exec_handoff import ExecHandoff
from db_launcher.adapters.outbound.sqlite_cli_initializer import SqliteCliInitializer
from db_launcher.adapters.outbound.supervised_handoff import SupervisedHandoff
from db_launcher.domain.entities.service_command import ServiceCommand
from db_launcher.domain.entities.step import ChainReport, StepResult, StepStatus
from db_launcher.domain.services.step_chain import StepChain
from db_launcher.domain.services.storage_bootstrapper import StorageBootstrapper
from db_launcher.domain.value_objects.identifiers import requires_storage_file
from db_launcher.infrastructure.config import Config
from db_launcher.infrastructure.logging import get_logger
from db_launcher.infrastructure.metrics import MetricsRegistry, get_metrics
from db_launcher.infrastructure.tracing import flush_tracing, trace_span
from db_launcher.ports.outbound import ProcessHandoffPort


logger = get_logger(__name__)

BOOTSTRAP_STEP = "bootstrap_storage"
HANDOFF_STEP = "hand_off"


class Launcher:
    """Orchestrates storage bootstrap and service handoff."""

    def __init__(
        self,
        config: Config,
        bootstrapper: StorageBootstrapper,
        handoff: ProcessHandoffPort,
        metrics: MetricsRegistry | None = None,
        env: Mapping[str, str] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the launcher.

        Args:
            config: Launcher configuration.
            bootstrapper: Storage file bootstrapper.
            handoff: Process handoff strategy.
            metrics: Metrics registry (global one by default).
            env: Environment passed to the service (os.environ by default).
            clock: Monotonic clock for the bootstrap duration.
        """
        self.config = config
        self.bootstrapper = bootstrapper
        self.handoff = handoff
        self.metrics = metrics or get_metrics()
        self._env = env
        self._clock = clock
        self._started_at = clock()

    @classmethod
    def from_config(cls, config: Config, metrics: MetricsRegistry | None = None) -> Launcher:
        """Wire the default adapters from configuration."""
        initializer = SqliteCliInitializer(
            command=config.helper.command,
            statement=config.helper.statement,
        )
        bootstrapper = StorageBootstrapper(
            initializer,
            create_parent_dirs=config.storage.create_parent_dirs,
            initialize_missing=config.storage.initialize_missing,
        )
        if config.handoff.mode == "supervise":
            handoff: ProcessHandoffPort = SupervisedHandoff(config.handoff.forward_signals)
        else:
            handoff = ExecHandoff()
        return cls(config, bootstrapper, handoff, metrics=metrics)

    def command_for(self, binary: str | Path, extra_args: list[str] | tuple[str, ...] = ()) -> ServiceCommand:
        """Build the service command for binary."""
        service = self.config.service
        return ServiceCommand.create(
            binary=binary,
            storage_path=self.config.storage.path,
            engine=service.engine,
            mode=service.mode,
            extra_args=[*service.extra_args, *extra_args],
        )

    def build_chain(self, command: ServiceCommand) -> tuple[StepChain, dict[str, int]]:
        """Build the startup chain for command.

        Returns:
            The chain and a mapping receiving the service exit status
            under ``"status"`` once the handoff returns.
        """
        outcome: dict[str, int] = {}

        def bootstrap_storage() -> StepResult:
            if not requires_storage_file(command.engine):
                return StepResult.skipped(BOOTSTRAP_STEP, f"engine {command.engine} has no storage file")
            with trace_span("launcher.bootstrap_storage", {"storage.path": str(command.storage_path)}):
                try:
                    report = self.bootstrapper.ensure(command.storage_path)
                except Exception:
                    self.metrics.storage_initializations_total.labels(status="failed").inc()
                    raise
            self.metrics.storage_initializations_total.labels(status=report.action.value).inc()
            return StepResult.succeeded(BOOTSTRAP_STEP, report.action.value)

        def hand_off() -> StepResult:
            self._before_handoff()
            outcome["status"] = self.handoff.hand_off(command, self.env)
            return StepResult.succeeded(HANDOFF_STEP, f"service exited with {outcome['status']}")

        chain = StepChain(on_result=self._record)
        chain.add(BOOTSTRAP_STEP, bootstrap_storage)
        chain.add(HANDOFF_STEP, hand_off)
        return chain, outcome

    @property
    def env(self) -> Mapping[str, str]:
        return os.environ if self._env is None else self._env

    def run(self, binary: str | Path, extra_args: list[str] | tuple[str, ...] = ()) -> ChainReport:
        """Run the startup sequence.

        With the exec handoff this only returns when a step fails.

        Returns:
            Report whose exit_code is the failing step's code, or the
            service's exit status after a supervised run.
        """
        command = self.command_for(binary, extra_args)
        chain, outcome = self.build_chain(command)
        report = chain.run()
        if report.ok and "status" in outcome:
            report.exit_code = outcome["status"]
        return report

    def _record(self, result: StepResult) -> None:
        self.metrics.steps_total.labels(step=result.name, status=result.status.value).inc()
        if result.status == StepStatus.FAILED:
            logger.error(
                "step_failed",
                step=result.name,
                error=result.detail,
                error_type=type(result.error).__name__,
                exit_code=result.exit_code,
            )
        else:
            logger.debug("step_finished", step=result.name, status=result.status.value, detail=result.detail)

    def _before_handoff(self) -> None:
        """Publish observability data; nothing survives an exec."""
        self.metrics.bootstrap_duration_seconds.observe(self._clock() - self._started_at)
        self.metrics.service_handoffs_total.labels(mode=self.handoff.mode).inc()
        # The handoff step itself cannot be counted after exec, so count it now.
        self.metrics.steps_total.labels(step=HANDOFF_STEP, status="started").inc()

        textfile = self.config.observability.metrics_textfile
        if textfile is not None:
            try:
                self.metrics.write(textfile)
            except OSError as e:
                logger.warning("metrics_write_failed", path=str(textfile), error=str(e))
        flush_tracing()
