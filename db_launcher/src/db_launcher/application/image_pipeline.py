"""Image assembly pipeline.

Builds the two-stage recipe for the service image:

    builder   toolchain image; compiles the service binary in release mode
              with the configured cargo features
    runtime   minimal base; runtime packages, the launcher, the compiled
              binary copied from ``builder``, startup command
              ``[launcher, binary]``

The runtime stage depends on the builder stage through ``COPY --from``, so
a failed compile fails the build before any runtime image is produced.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from db_launcher.domain.entities.image_recipe import BuildStage, ImageRecipe
from db_launcher.infrastructure.config import ImageConfig
from db_launcher.infrastructure.logging import get_logger
from db_launcher.ports.outbound import ImageBuilderPort, RecipeError


logger = get_logger(__name__)

BUILDER_STAGE = "builder"
RUNTIME_STAGE = "runtime"

LAUNCHER_BUILD_DIR = "/usr/src/db-launcher"
# Paths under the launcher project root needed by `pip install`.
LAUNCHER_PROJECT_FILES = ("pyproject.toml", "db_launcher/src")


def build_recipe(config: ImageConfig) -> ImageRecipe:
    """Build the image recipe from configuration."""
    features = " ".join(f"-F {feature}" for feature in config.cargo_features)
    cargo = f"cargo build --release -p {config.cargo_package}"
    if features:
        cargo = f"{cargo} {features}"

    builder = (
        BuildStage(BUILDER_STAGE, config.builder_image)
        .run(f"mkdir -p {config.source_dir}")
        .copy(".", config.source_dir)
        .workdir(config.source_dir)
        .run(cargo)
    )

    artifact = f"{config.source_dir}/target/release/{config.cargo_package}"

    runtime = BuildStage(RUNTIME_STAGE, config.runtime_image)
    if config.runtime_packages:
        packages = " ".join(config.runtime_packages)
        runtime.run(
            "apt-get update"
            f" && apt-get -y install --no-install-recommends {packages}"
            " && rm -rf /var/lib/apt/lists/*"
        )
    project = PurePosixPath(config.launcher_source)
    for relative in LAUNCHER_PROJECT_FILES:
        runtime.copy(str(project / relative), f"{LAUNCHER_BUILD_DIR}/{relative}")
    (
        runtime
        .run(f"pip install --no-cache-dir {LAUNCHER_BUILD_DIR} && rm -rf {LAUNCHER_BUILD_DIR}")
        .copy(artifact, config.binary_path, from_stage=BUILDER_STAGE)
        .run(f"chmod +x {config.binary_path} {config.launcher_path} && mkdir -p {config.storage_dir}")
        .cmd([config.launcher_path, config.binary_path])
    )
    return ImageRecipe(stages=[builder, runtime])


def validate_recipe(recipe: ImageRecipe) -> None:
    """Check the stage ordering contract.

    Raises:
        RecipeError: If stages are missing or duplicated, a stage copies
            from a stage not defined before it, or the shipped stage has
            no startup command.
    """
    if len(recipe.stages) < 2:
        raise RecipeError("Recipe needs a build stage and a runtime stage")

    seen: set[str] = set()
    for stage in recipe.stages:
        if stage.name in seen:
            raise RecipeError(f"Duplicate stage name: {stage.name}")
        for source in stage.copied_from:
            if source not in seen:
                raise RecipeError(f"Stage {stage.name} copies from undefined stage {source}")
        seen.add(stage.name)

    command = recipe.runtime_stage.startup_command
    if not command:
        raise RecipeError(f"Stage {recipe.runtime_stage.name} has no startup command")


def render_dockerfile(config: ImageConfig) -> str:
    """Build, validate and render the recipe."""
    recipe = build_recipe(config)
    validate_recipe(recipe)
    return recipe.render()


class ImageAssembler:
    """Renders the recipe and hands it to an image builder."""

    def __init__(self, builder: ImageBuilderPort, config: ImageConfig | None = None) -> None:
        self.builder = builder
        self.config = config or ImageConfig()

    @property
    def recipe(self) -> ImageRecipe:
        recipe = build_recipe(self.config)
        validate_recipe(recipe)
        return recipe

    def assemble(self, context_dir: Path, tag: str) -> str:
        """Build the image.

        Args:
            context_dir: Build context (service source tree containing the
                launcher project at ``config.launcher_source``).
            tag: Image tag.

        Returns:
            Builder output.

        Raises:
            RecipeError: If the recipe is malformed.
            ImageBuildError: If the build fails.
        """
        recipe = self.recipe
        dockerfile = recipe.render()
        logger.info("image_assembly", tag=tag, context=str(context_dir), stages=len(recipe.stages))
        return self.builder.build(dockerfile, Path(context_dir), tag)
