"""Application layer - startup sequence and image assembly."""

from db_launcher.application.launcher import Launcher, BOOTSTRAP_STEP, HANDOFF_STEP
from db_launcher.application.image_pipeline import (
    BUILDER_STAGE,
    RUNTIME_STAGE,
    ImageAssembler,
    build_recipe,
    render_dockerfile,
    validate_recipe,
)

__all__ = [
    "Launcher",
    "BOOTSTRAP_STEP",
    "HANDOFF_STEP",
    "ImageAssembler",
    "BUILDER_STAGE",
    "RUNTIME_STAGE",
    "build_recipe",
    "render_dockerfile",
    "validate_recipe",
]
