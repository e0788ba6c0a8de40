"""Package inventory data models."""

from pydantic import BaseModel, Field


class PackageRecord(BaseModel):
    """A single installed version of a package."""

    model_config = {"frozen": True}

    name: str = Field(description="Package name as recorded by the package manager")
    version: str = Field(description="Installed version")
    size: int | None = Field(default=None, description="Installed size in bytes, if known")
    location: str | None = Field(default=None, description="Where the package was found in the image")

    @property
    def key(self) -> tuple[str, str]:
        """Identity of the record within one ecosystem."""
        return (self.name, self.version)

    def same_metadata(self, other: "PackageRecord") -> bool:
        """Compare the recorded metadata that counts as a change."""
        return self.size == other.size


class PackageChange(BaseModel):
    """The same package version recorded differently in two images."""

    model_config = {"frozen": True}

    name: str = Field(description="Package name")
    version: str = Field(description="Version present in both images")
    before: PackageRecord = Field(description="Record in the first image")
    after: PackageRecord = Field(description="Record in the second image")

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.version)


# name -> version -> record
PackageMap = dict[str, dict[str, PackageRecord]]
