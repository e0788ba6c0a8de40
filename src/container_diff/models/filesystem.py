"""Filesystem tree data models."""

from pydantic import BaseModel, Field


class DirectoryEntry(BaseModel):
    """A path in a flattened image filesystem."""

    model_config = {"frozen": True}

    path: str = Field(description="Normalized absolute path inside the image")
    size: int = Field(default=0, description="File size, or total size beneath a directory")
    is_dir: bool = Field(default=False, description="Whether the entry is a directory")
    digest: str | None = Field(default=None, description="sha256 of regular file contents")
    link_target: str | None = Field(default=None, description="Target of a symbolic link")

    @property
    def identity(self) -> tuple:
        """Content identity used when diffing.

        A directory is identified by being a directory; its aggregate size
        changes whenever anything beneath it does and is not compared.
        """
        if self.is_dir:
            return (True,)
        return (False, self.link_target, self.size, self.digest)


class EntryChange(BaseModel):
    """A path present in both images with different content."""

    model_config = {"frozen": True}

    path: str = Field(description="Path present in both images")
    before: DirectoryEntry = Field(description="Entry in the first image")
    after: DirectoryEntry = Field(description="Entry in the second image")
