"""Image sources: local daemon, remote registries and archives."""

from container_diff.registry.base import (
    ArchiveFormatError,
    ImageSource,
    RegistryAuth,
    RegistryAuthError,
    RegistryError,
    RegistryNotFoundError,
)
from container_diff.registry.archive import ArchiveSource
from container_diff.registry.docker import DockerSource
from container_diff.registry.oci import OCIRegistry

__all__ = [
    "ArchiveFormatError",
    "ImageSource",
    "RegistryAuth",
    "RegistryAuthError",
    "RegistryError",
    "RegistryNotFoundError",
    "ArchiveSource",
    "DockerSource",
    "OCIRegistry",
]
