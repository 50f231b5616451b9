"""Fail-fast step chain.

Startup is an ordered list of fallible steps. The first failure stops the
chain; later steps never run. There are no retries and no timeouts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from db_launcher.domain.entities.step import ChainReport, StepResult, StepStatus
from db_launcher.ports.outbound import LauncherError


StepFn = Callable[[], StepResult]


@dataclass(frozen=True)
class Step:
    """Named step."""
    name: str
    fn: StepFn


class StepChain:
    """Runs steps in order, short-circuiting on the first failure.

    Example:
        chain = StepChain()
        chain.add("bootstrap_storage", bootstrap)
        chain.add("hand_off", hand_off)
        report = chain.run()
    """

    def __init__(self, on_result: Callable[[StepResult], None] | None = None) -> None:
        """Initialize step chain.

        Args:
            on_result: Called with each result as soon as it is known.
        """
        self._steps: list[Step] = []
        self._on_result = on_result

    def add(self, name: str, fn: StepFn) -> StepChain:
        """Append a step.

        Args:
            name: Step name, unique within the chain.
            fn: Callable returning a StepResult or raising LauncherError.

        Returns:
            The chain, for chaining calls.
        """
        if any(step.name == name for step in self._steps):
            raise ValueError(f"Duplicate step name: {name}")
        self._steps.append(Step(name, fn))
        return self

    def __len__(self) -> int:
        return len(self._steps)

    def run(self) -> ChainReport:
        """Run every step until one fails.

        Only LauncherError is converted into a failed result; anything else
        is a bug and propagates.

        Returns:
            Report of the steps that ran.
        """
        report = ChainReport()
        for step in self._steps:
            try:
                result = step.fn()
            except LauncherError as e:
                result = StepResult.failed(step.name, e, e.exit_code)

            report.results.append(result)
            if self._on_result is not None:
                self._on_result(result)

            if result.status == StepStatus.FAILED:
                report.exit_code = result.exit_code
                break
        return report
