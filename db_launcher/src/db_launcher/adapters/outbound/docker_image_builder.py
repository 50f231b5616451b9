"""Docker CLI image builder.

Implements the ImageBuilderPort protocol with ``docker build``. The
Dockerfile is piped on stdin so the build context needs no Dockerfile of
its own. Docker runs stages in dependency order and fails the whole build
when any stage fails, so a broken compile never yields a runtime image.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from db_launcher.infrastructure.logging import get_logger
from db_launcher.ports.outbound import EXIT_NOT_FOUND, ImageBuildError


logger = get_logger(__name__)


class DockerImageBuilder:
    """Builds images with the docker command-line client."""

    def __init__(self, docker: str = "docker", extra_args: list[str] | None = None) -> None:
        """Initialize the builder.

        Args:
            docker: Docker client executable.
            extra_args: Additional ``docker build`` flags (e.g. ``--pull``).
        """
        self._docker = docker
        self._extra_args = list(extra_args or [])

    def command(self, context_dir: Path, tag: str) -> list[str]:
        """Build the docker argument vector."""
        return [self._docker, "build", "--file", "-", "--tag", tag, *self._extra_args, str(context_dir)]

    def build(self, dockerfile: str, context_dir: Path, tag: str) -> str:
        """Build an image.

        Returns:
            Combined builder output.

        Raises:
            ImageBuildError: If docker is missing or the build fails.
        """
        if shutil.which(self._docker) is None:
            raise ImageBuildError(f"Image builder '{self._docker}' is not installed", exit_code=EXIT_NOT_FOUND)
        if not Path(context_dir).is_dir():
            raise ImageBuildError(f"Build context {context_dir} is not a directory")

        argv = self.command(context_dir, tag)
        logger.info("image_build_started", argv=argv, tag=tag)
        result = subprocess.run(
            argv,
            input=dockerfile,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            logger.error("image_build_failed", tag=tag, exit_code=result.returncode)
            raise ImageBuildError(
                f"docker build failed for {tag} with exit code {result.returncode}",
                exit_code=result.returncode,
                output=result.stdout,
            )
        logger.info("image_build_finished", tag=tag)
        return result.stdout
