"""Image-related data models."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class ReferenceKind(str, Enum):
    """How an image reference is to be retrieved."""

    LOCAL_ID = "local_id"
    REMOTE_URL = "remote_url"
    ARCHIVE = "archive"


class ImageReference(BaseModel):
    """A validated image reference."""

    model_config = {"frozen": True}

    raw: str = Field(description="Reference exactly as given by the user")
    kind: ReferenceKind = Field(description="Local image ID, remote URL or archive path")

    def __str__(self) -> str:
        return self.raw


class LayerCommand(BaseModel):
    """The build instruction that produced one image layer."""

    model_config = {"frozen": True}

    command: str = Field(description="Command that created this layer")
    size: int = Field(default=0, description="Layer size in bytes")
    empty_layer: bool = Field(default=False, description="Whether the instruction added no files")


class ImageLayout(BaseModel):
    """Layer blobs and history fetched by an image source, before flattening."""

    model_config = {"frozen": True}

    layers: list[Path] = Field(default_factory=list, description="Layer tarballs, lowest first")
    history: list[LayerCommand] = Field(default_factory=list, description="Build history, oldest first")


class Snapshot(BaseModel):
    """A flattened, on-disk filesystem of one image.

    The snapshot's ``work_dir`` is owned by the resolver that produced it
    and is removed on release unless the caller retains it.
    """

    model_config = {"frozen": True}

    reference: ImageReference = Field(description="Reference the snapshot was resolved from")
    root: Path = Field(description="Root of the flattened filesystem")
    history: list[LayerCommand] = Field(default_factory=list, description="Build history, oldest first")
    work_dir: Path = Field(description="Private temporary directory holding the snapshot")

    @property
    def image(self) -> str:
        """The reference string, as reported in results."""
        return self.reference.raw
