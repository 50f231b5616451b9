"""Service command entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from db_launcher.domain.value_objects.identifiers import EngineId, create_engine_id


@dataclass(frozen=True)
class ServiceCommand:
    """Invocation of the service binary.

    Renders as ``<binary> <mode> -e <engine> -p <storage_path> [extra...]``.
    """
    binary: Path
    storage_path: Path
    engine: EngineId = EngineId("sqlite")
    mode: str = "server"
    extra_args: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def create(
        cls,
        binary: str | Path,
        storage_path: str | Path,
        engine: str = "sqlite",
        mode: str = "server",
        extra_args: list[str] | tuple[str, ...] = (),
    ) -> ServiceCommand:
        """Create a validated service command.

        Raises:
            ValueError: If the binary path or mode is empty.
        """
        if not str(binary).strip():
            raise ValueError("Service binary path must not be empty")
        if not mode.strip():
            raise ValueError("Service mode must not be empty")
        return cls(
            binary=Path(binary),
            storage_path=Path(storage_path),
            engine=create_engine_id(engine),
            mode=mode,
            extra_args=tuple(extra_args),
        )

    @property
    def argv(self) -> list[str]:
        """Full argument vector, argv[0] being the binary."""
        return [
            str(self.binary),
            self.mode,
            "-e",
            self.engine,
            "-p",
            str(self.storage_path),
            *self.extra_args,
        ]

    def __str__(self) -> str:
        return " ".join(self.argv)
