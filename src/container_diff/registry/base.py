"""Image source protocol and shared helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from container_diff.models.image import ImageLayout, LayerCommand


class RegistryAuth(BaseModel):
    """Authentication credentials for a container registry."""

    model_config = {"frozen": True}

    username: str | None = Field(default=None, description="Registry username")
    password: str | None = Field(default=None, description="Registry password or token")
    token: str | None = Field(default=None, description="Bearer token")

    @classmethod
    def from_env(cls) -> "RegistryAuth | None":
        """Create auth from environment variables.

        Looks for REGISTRY_USERNAME and REGISTRY_PASSWORD,
        or REGISTRY_TOKEN for token auth.
        """
        username = os.environ.get("REGISTRY_USERNAME")
        password = os.environ.get("REGISTRY_PASSWORD")
        token = os.environ.get("REGISTRY_TOKEN")

        if token:
            return cls(token=token)
        if username and password:
            return cls(username=username, password=password)
        return None


class RegistryError(Exception):
    """Base exception for image source operations."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class RegistryAuthError(RegistryError):
    """Authentication failed."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, code="AUTH_ERROR")


class RegistryNotFoundError(RegistryError):
    """Image, manifest or blob not found."""

    def __init__(self, reference: str) -> None:
        super().__init__(f"Image not found: {reference}", code="NOT_FOUND")
        self.reference = reference


class ArchiveFormatError(RegistryError):
    """An image archive is unreadable or malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="BAD_ARCHIVE")


@runtime_checkable
class ImageSource(Protocol):
    """Protocol for things that can fetch an image's layers.

    A source downloads or copies the layer tarballs of one image into a
    destination directory and reads the image's build history. It does not
    flatten the layers; the resolver does that.

    Example:
        class MySource:
            def fetch(self, reference: str, dest: Path) -> ImageLayout:
                layer = dest / "000.tar"
                ...
                return ImageLayout(layers=[layer], history=[])
    """

    def fetch(self, reference: str, dest: Path) -> ImageLayout:
        """Fetch the layers and history of an image.

        Args:
            reference: Image reference understood by this source
            dest: Existing directory to write layer tarballs into

        Returns:
            The fetched layer paths (lowest first) and build history

        Raises:
            RegistryNotFoundError: If the image does not exist
            RegistryAuthError: If authentication fails
            RegistryError: For other errors
        """
        ...


def build_history(config: dict[str, Any], layer_sizes: list[int]) -> list[LayerCommand]:
    """Build the layer command list from an image config blob.

    Non-empty history entries are paired, in order, with the sizes of the
    image's layers; empty entries (ENV, LABEL, CMD...) have size zero.

    Args:
        config: Parsed image config JSON
        layer_sizes: Size of each layer blob, lowest first

    Returns:
        Layer commands, oldest first
    """
    commands: list[LayerCommand] = []
    sizes = iter(layer_sizes)
    for item in config.get("history") or []:
        empty = bool(item.get("empty_layer", False))
        size = 0 if empty else next(sizes, 0)
        commands.append(
            LayerCommand(
                command=(item.get("created_by") or "").strip(),
                size=size,
                empty_layer=empty,
            )
        )
    return commands


def parse_reference(reference: str) -> dict[str, str | None]:
    """Parse an image reference into components."""
    result: dict[str, str | None] = {
        "registry": None,
        "repository": None,
        "tag": None,
        "digest": None,
    }

    # Handle digest
    if "@" in reference:
        ref_part, digest = reference.rsplit("@", 1)
        result["digest"] = digest
        reference = ref_part

    # Handle tag
    if ":" in reference:
        parts = reference.rsplit(":", 1)
        if "/" not in parts[1] and not parts[1].isdigit():
            reference = parts[0]
            result["tag"] = parts[1]

    # Handle registry and repository
    parts = reference.split("/")
    if len(parts) == 1:
        result["repository"] = parts[0]
    elif len(parts) == 2:
        if "." in parts[0] or ":" in parts[0] or parts[0] == "localhost":
            result["registry"] = parts[0]
            result["repository"] = parts[1]
        else:
            result["repository"] = reference
    else:
        if "." in parts[0] or ":" in parts[0] or parts[0] == "localhost":
            result["registry"] = parts[0]
            result["repository"] = "/".join(parts[1:])
        else:
            result["repository"] = reference

    return result
