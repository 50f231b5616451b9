"""Command-line adapters.

``db-launcher`` is the container's startup command::

    db-launcher [options] /usr/local/bin/cozo-bin [-- extra service args]

``db-launcher-image`` renders or builds the service image::

    db-launcher-image render [--output Dockerfile]
    db-launcher-image build CONTEXT --tag cozo:latest
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pydantic import ValidationError

from db_launcher.adapters.outbound.docker_image_builder import DockerImageBuilder
from db_launcher.application.image_pipeline import ImageAssembler, render_dockerfile
from db_launcher.application.launcher import Launcher
from db_launcher.infrastructure.config import Config, get_config
from db_launcher.infrastructure.logging import get_logger, setup_logging
from db_launcher.infrastructure.metrics import setup_metrics
from db_launcher.infrastructure.tracing import setup_tracing
from db_launcher.ports.outbound import LauncherError

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]
EXIT_USAGE = 2


def split_passthrough(argv: list[str]) -> tuple[list[str], list[str]]:
    """Split argv at the first ``--`` into launcher and service arguments."""
    if "--" in argv:
        index = argv.index("--")
        return argv[:index], argv[index + 1:]
    return argv, []


def build_launch_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="db-launcher",
        description="Ensure the storage file exists, then hand the process to the database service",
    )
    parser.add_argument("binary", type=Path, help="Path of the service binary to hand off to")
    parser.add_argument("--storage-path", type=Path, default=None, help="Storage file path")
    parser.add_argument("--engine", default=None, help="Storage engine identifier passed as -e")
    parser.add_argument(
        "--handoff-mode",
        choices=["exec", "supervise"],
        default=None,
        help="Replace this process (exec) or run the service as a supervised child",
    )
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=None)
    parser.add_argument("--log-format", choices=["json", "console"], default=None)
    return parser


def load_config(parser: argparse.ArgumentParser) -> Config:
    try:
        return get_config()
    except ValidationError as e:
        parser.exit(1, f"{parser.prog}: invalid configuration: {e}\n")


def setup_observability(config: Config) -> None:
    obs = config.observability
    setup_logging(obs.log_level, obs.log_format)
    if obs.otel_endpoint:
        setup_tracing(service_name=obs.otel_service_name, otlp_endpoint=obs.otel_endpoint)


def launch_main(argv: list[str] | None = None) -> int:
    """Run the launcher.

    With the exec handoff this only returns on failure.

    Returns:
        Process exit status.
    """
    own_args, service_args = split_passthrough(list(sys.argv[1:] if argv is None else argv))
    parser = build_launch_parser()
    args = parser.parse_args(own_args)

    config = load_config(parser).with_overrides(
        storage={"path": args.storage_path},
        service={"engine": args.engine},
        handoff={"mode": args.handoff_mode},
        observability={"log_level": args.log_level, "log_format": args.log_format},
    )
    setup_observability(config)
    logger = get_logger(__name__)

    launcher = Launcher.from_config(config, metrics=setup_metrics())
    try:
        report = launcher.run(args.binary, service_args)
    except ValueError as e:
        logger.error("invalid_service_command", error=str(e))
        return EXIT_USAGE
    return report.exit_code


def build_image_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="db-launcher-image",
        description="Render or build the two-stage database service image",
    )
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=None)
    sub = parser.add_subparsers(dest="action", required=True)

    render = sub.add_parser("render", help="Print the Dockerfile")
    render.add_argument("--output", type=Path, default=None, help="Write to a file instead of stdout")

    build = sub.add_parser("build", help="Build the image with docker")
    build.add_argument("context", type=Path, help="Build context (service source tree)")
    build.add_argument("--tag", required=True, help="Image tag")
    build.add_argument("--docker", default="docker", help="Docker client executable")
    build.add_argument("--pull", action="store_true", help="Always pull base images")
    return parser


def image_main(argv: list[str] | None = None) -> int:
    """Render or build the image.

    Returns:
        Process exit status.
    """
    parser = build_image_parser()
    args = parser.parse_args(argv)

    config = load_config(parser).with_overrides(observability={"log_level": args.log_level})
    setup_observability(config)
    logger = get_logger(__name__)

    try:
        if args.action == "render":
            dockerfile = render_dockerfile(config.image)
            if args.output is None:
                sys.stdout.write(dockerfile)
            else:
                args.output.write_text(dockerfile)
                logger.info("dockerfile_written", path=str(args.output))
            return 0

        builder = DockerImageBuilder(args.docker, ["--pull"] if args.pull else None)
        output = ImageAssembler(builder, config.image).assemble(args.context, args.tag)
        sys.stdout.write(output)
        return 0
    except LauncherError as e:
        logger.error("image_failed", action=args.action, error=str(e), exit_code=e.exit_code)
        output = getattr(e, "output", "")
        if output:
            sys.stderr.write(output)
        return e.exit_code
