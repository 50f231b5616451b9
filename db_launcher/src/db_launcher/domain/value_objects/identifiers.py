"""Launcher value objects."""

from typing import NewType

# Type-safe identifiers
EngineId = NewType('EngineId', str)
StepName = NewType('StepName', str)
ImageTag = NewType('ImageTag', str)

# Engines whose storage is a single file that must exist before startup.
FILE_BACKED_ENGINES = frozenset({"sqlite"})

# Every well-formed SQLite database starts with this 16-byte string.
SQLITE_HEADER_MAGIC = b"SQLite format 3\x00"
SQLITE_HEADER_SIZE = 100


def create_engine_id(name: str) -> EngineId:
    """Create an engine ID.

    Args:
        name: Engine name as understood by the service binary.

    Returns:
        Engine ID.
    """
    engine = name.strip().lower()
    if not engine:
        raise ValueError("Engine id must not be empty")
    return EngineId(engine)


def create_image_tag(name: str, version: str = "latest") -> ImageTag:
    """Create an image tag.

    Args:
        name: Image repository name.
        version: Image version.

    Returns:
        Image tag.
    """
    return ImageTag(f"{name}:{version}")


def requires_storage_file(engine: EngineId) -> bool:
    """Check whether an engine needs a pre-created storage file."""
    return engine in FILE_BACKED_ENGINES
