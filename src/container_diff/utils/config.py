"""Configuration file support for container-diff."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from container_diff.models.options import OutputFormat, RetrievalMode
from container_diff.utils.errors import ConfigurationError


class ResolverConfig(BaseModel):
    """Image resolution configuration."""

    work_dir: str | None = Field(default=None, description="Parent directory for snapshots")
    retrieval: RetrievalMode = Field(default=RetrievalMode.CLI, description="Docker daemon access mode")


class RegistryConfig(BaseModel):
    """Remote registry configuration."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    max_retries: int = Field(default=3, description="Transport-level connection retries")
    insecure_registries: list[str] = Field(
        default_factory=list,
        description="Registries reached over plain HTTP",
    )


class FilesystemConfig(BaseModel):
    """Filesystem analyzer configuration."""

    case_sensitive: bool = Field(default=True, description="Compare paths case-sensitively")
    compute_digests: bool = Field(default=True, description="Hash regular file contents")


class EngineConfig(BaseModel):
    """Analyzer engine configuration."""

    max_workers: int = Field(default=4, ge=1, description="Analyzers run in parallel")


class OutputConfig(BaseModel):
    """Output configuration."""

    default_format: OutputFormat = Field(default=OutputFormat.TEXT, description="Default output format")
    color: bool = Field(default=True, description="Enable color output")


class ContainerDiffConfig(BaseModel):
    """Main configuration for container-diff."""

    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    filesystem: FilesystemConfig = Field(default_factory=FilesystemConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


def get_config_paths() -> list[Path]:
    """Get possible configuration file paths.

    Returns:
        List of paths to check for configuration files
    """
    paths = []

    # Current directory
    paths.append(Path.cwd() / ".container-diff.yaml")
    paths.append(Path.cwd() / ".container-diff.yml")

    # Home directory
    home = Path.home()
    paths.append(home / ".container-diff.yaml")
    paths.append(home / ".container-diff" / "config.yaml")

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        paths.append(Path(xdg_config) / "container-diff" / "config.yaml")
    else:
        paths.append(home / ".config" / "container-diff" / "config.yaml")

    return paths


def load_config(config_path: Path | str | None = None) -> ContainerDiffConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file. If None, searches default locations.

    Returns:
        Loaded configuration

    Raises:
        ConfigurationError: If an explicit file is missing or any file is invalid
    """
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            return _load_config_file(path)
        raise ConfigurationError(f"Config file not found: {config_path}")

    for path in get_config_paths():
        if path.exists():
            return _load_config_file(path)

    return ContainerDiffConfig()


def _load_config_file(path: Path) -> ContainerDiffConfig:
    """Load configuration from a specific file."""
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {e}")

    if data is None:
        return ContainerDiffConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    try:
        return ContainerDiffConfig.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first["loc"])
        raise ConfigurationError(f"Invalid config value for {key}: {first['msg']}", config_key=key)


# Global config instance
_config: ContainerDiffConfig | None = None


def get_config() -> ContainerDiffConfig:
    """Get the global configuration instance.

    Loads from file on first call.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: ContainerDiffConfig | None) -> None:
    """Set the global configuration instance; None forces a reload."""
    global _config
    _config = config
