"""Startup step entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class StepStatus(Enum):
    """Outcome of a startup step."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StepResult:
    """Result of running one step."""
    name: str
    status: StepStatus
    detail: str = ""
    exit_code: int = 0
    error: Exception | None = None

    @classmethod
    def succeeded(cls, name: str, detail: str = "") -> StepResult:
        return cls(name=name, status=StepStatus.SUCCEEDED, detail=detail)

    @classmethod
    def skipped(cls, name: str, detail: str = "") -> StepResult:
        return cls(name=name, status=StepStatus.SKIPPED, detail=detail)

    @classmethod
    def failed(cls, name: str, error: Exception, exit_code: int = 1) -> StepResult:
        return cls(
            name=name,
            status=StepStatus.FAILED,
            detail=str(error),
            exit_code=exit_code or 1,
            error=error,
        )

    @property
    def ok(self) -> bool:
        return self.status != StepStatus.FAILED


@dataclass
class ChainReport:
    """Ordered results of a step chain."""
    results: list[StepResult] = field(default_factory=list)
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failed_step(self) -> StepResult | None:
        for result in self.results:
            if not result.ok:
                return result
        return None

    def step_names(self) -> list[str]:
        return [r.name for r in self.results]
