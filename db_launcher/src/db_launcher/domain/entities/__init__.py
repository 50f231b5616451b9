"""Domain entities."""

from db_launcher.domain.entities.storage_file import (
    StorageFile,
    StorageFileState,
    BootstrapAction,
    BootstrapReport,
)
from db_launcher.domain.entities.service_command import ServiceCommand
from db_launcher.domain.entities.step import StepStatus, StepResult, ChainReport
from db_launcher.domain.entities.image_recipe import (
    InstructionKind,
    Instruction,
    BuildStage,
    ImageRecipe,
)

__all__ = [
    "StorageFile",
    "StorageFileState",
    "BootstrapAction",
    "BootstrapReport",
    "ServiceCommand",
    "StepStatus",
    "StepResult",
    "ChainReport",
    "InstructionKind",
    "Instruction",
    "BuildStage",
    "ImageRecipe",
]
