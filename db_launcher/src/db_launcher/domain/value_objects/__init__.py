"""Domain value objects."""

from db_launcher.domain.value_objects.identifiers import (
    EngineId,
    StepName,
    ImageTag,
    FILE_BACKED_ENGINES,
    SQLITE_HEADER_MAGIC,
    SQLITE_HEADER_SIZE,
    create_engine_id,
    create_image_tag,
    requires_storage_file,
)

__all__ = [
    "EngineId",
    "StepName",
    "ImageTag",
    "FILE_BACKED_ENGINES",
    "SQLITE_HEADER_MAGIC",
    "SQLITE_HEADER_SIZE",
    "create_engine_id",
    "create_image_tag",
    "requires_storage_file",
]
