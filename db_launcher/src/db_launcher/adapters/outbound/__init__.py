"""Outbound adapters - Implementations of outbound port interfaces.

Provides the sqlite3 helper, the two process handoff strategies and the
docker image builder.
"""

from db_launcher.adapters.outbound.sqlite_cli_initializer import SqliteCliInitializer
from db_launcher.adapters.outbound.exec_handoff import ExecHandoff
from db_launcher.adapters.outbound.supervised_handoff import (
    SupervisedHandoff,
    exit_status,
    resolve_signals,
)
from db_launcher.adapters.outbound.docker_image_builder import DockerImageBuilder

__all__ = [
    # Storage
    "SqliteCliInitializer",
    # Handoff
    "ExecHandoff",
    "SupervisedHandoff",
    "exit_status",
    "resolve_signals",
    # Images
    "DockerImageBuilder",
]
