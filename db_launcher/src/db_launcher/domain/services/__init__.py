"""Domain services."""

from db_launcher.domain.services.step_chain import Step, StepChain
from db_launcher.domain.services.storage_bootstrapper import StorageBootstrapper

__all__ = [
    "Step",
    "StepChain",
    "StorageBootstrapper",
]
