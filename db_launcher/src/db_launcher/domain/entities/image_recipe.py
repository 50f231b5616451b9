"""Container image recipe entities."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum


class InstructionKind(Enum):
    """Dockerfile instruction keyword."""
    RUN = "RUN"
    COPY = "COPY"
    WORKDIR = "WORKDIR"
    ENV = "ENV"
    CMD = "CMD"


@dataclass(frozen=True)
class Instruction:
    """Single build instruction."""
    kind: InstructionKind
    args: str
    from_stage: str | None = None  # COPY --from=<stage>

    def render(self) -> str:
        if self.from_stage:
            return f"{self.kind.value} --from={self.from_stage} {self.args}"
        return f"{self.kind.value} {self.args}"


@dataclass
class BuildStage:
    """One stage of a multi-stage build."""
    name: str
    base_image: str
    instructions: list[Instruction] = field(default_factory=list)

    def run(self, command: str) -> BuildStage:
        self.instructions.append(Instruction(InstructionKind.RUN, command))
        return self

    def copy(self, src: str, dest: str, from_stage: str | None = None) -> BuildStage:
        self.instructions.append(Instruction(InstructionKind.COPY, f"{src} {dest}", from_stage))
        return self

    def workdir(self, path: str) -> BuildStage:
        self.instructions.append(Instruction(InstructionKind.WORKDIR, path))
        return self

    def cmd(self, argv: list[str]) -> BuildStage:
        self.instructions.append(Instruction(InstructionKind.CMD, json.dumps(argv)))
        return self

    @property
    def copied_from(self) -> list[str]:
        """Names of stages this stage copies artifacts from."""
        return [i.from_stage for i in self.instructions if i.from_stage]

    @property
    def startup_command(self) -> list[str] | None:
        """Argument vector of the last CMD, if any."""
        for instruction in reversed(self.instructions):
            if instruction.kind == InstructionKind.CMD:
                return json.loads(instruction.args)
        return None

    def render(self) -> str:
        lines = [f"FROM {self.base_image} AS {self.name}"]
        lines.extend(i.render() for i in self.instructions)
        return "\n".join(lines)


@dataclass
class ImageRecipe:
    """Multi-stage image recipe; the last stage is the shipped image."""
    stages: list[BuildStage] = field(default_factory=list)

    @property
    def runtime_stage(self) -> BuildStage:
        return self.stages[-1]

    def stage(self, name: str) -> BuildStage | None:
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    def render(self) -> str:
        """Render the recipe as Dockerfile text."""
        return "\n\n".join(stage.render() for stage in self.stages) + "\n"
