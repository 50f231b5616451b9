"""Configuration management for the database service launcher."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageConfig(BaseModel):
    """Storage file configuration."""

    path: Path = Field(default=Path("/usr/share/cozo/cozo.db"), description="Storage file path")
    create_parent_dirs: bool = Field(default=True, description="Create missing parent directories")
    initialize_missing: bool = Field(
        default=True,
        description="Create an empty database when the file is missing (the service does not)",
    )


class ServiceConfig(BaseModel):
    """Service binary invocation."""

    mode: str = Field(default="server", min_length=1, description="Transport mode selector")
    engine: str = Field(default="sqlite", min_length=1, description="Storage engine identifier")
    extra_args: list[str] = Field(default_factory=list, description="Arguments appended to the command")


class HelperConfig(BaseModel):
    """Storage engine helper tool."""

    command: str = Field(default="sqlite3", min_length=1, description="Helper executable name or path")
    statement: str = Field(default="VACUUM;", min_length=1, description="Statement that materializes the file")


class HandoffConfig(BaseModel):
    """Process handoff configuration."""

    mode: Literal["exec", "supervise"] = Field(default="exec", description="Handoff strategy")
    forward_signals: list[str] = Field(
        default_factory=lambda: ["SIGTERM", "SIGINT", "SIGHUP", "SIGQUIT"],
        description="Signals forwarded to the child in supervise mode",
    )


class ImageConfig(BaseModel):
    """Container image recipe configuration."""

    builder_image: str = Field(default="rust:1.69-slim-bullseye", description="Toolchain base image")
    runtime_image: str = Field(default="python:3.11-slim-bullseye", description="Runtime base image")
    source_dir: str = Field(default="/usr/src/cozo", description="Source directory in the builder")
    cargo_package: str = Field(default="cozo-bin", description="Cargo package to compile")
    cargo_features: list[str] = Field(
        default_factory=lambda: ["compact", "storage-sqlite"], description="Cargo features to enable"
    )
    runtime_packages: list[str] = Field(
        default_factory=lambda: ["ca-certificates", "sqlite3"], description="Runtime apt packages"
    )
    binary_path: str = Field(default="/usr/local/bin/cozo-bin", description="Installed service binary")
    launcher_path: str = Field(default="/usr/local/bin/db-launcher", description="Installed launcher")
    launcher_source: str = Field(
        default=".", description="Launcher project root (holds pyproject.toml) in the build context"
    )
    storage_dir: str = Field(default="/usr/share/cozo", description="Storage directory in the image")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")
    otel_endpoint: str | None = Field(default=None)
    otel_service_name: str = Field(default="db_launcher")
    metrics_textfile: Path | None = Field(default=None, description="Prometheus textfile output")


class Config(BaseSettings):
    """Main configuration for the launcher."""

    model_config = SettingsConfigDict(
        env_prefix="DB_LAUNCHER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    helper: HelperConfig = Field(default_factory=HelperConfig)
    handoff: HandoffConfig = Field(default_factory=HandoffConfig)
    image: ImageConfig = Field(default_factory=ImageConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    def with_overrides(self, **sections: dict) -> Config:
        """Return a copy with the given section fields replaced.

        Example:
            config.with_overrides(storage={"path": Path("/tmp/x.db")})
        """
        update = {}
        for name, fields in sections.items():
            fields = {key: value for key, value in fields.items() if value is not None}
            if fields:
                update[name] = getattr(self, name).model_copy(update=fields)
        return self.model_copy(update=update)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
