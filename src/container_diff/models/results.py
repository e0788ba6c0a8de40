"""Analyzer result models for single-image and two-image runs."""

from typing import Any

from pydantic import BaseModel, Field

from container_diff.models.filesystem import DirectoryEntry, EntryChange
from container_diff.models.image import LayerCommand
from container_diff.models.packages import PackageChange, PackageMap, PackageRecord


class AnalyzeResult(BaseModel):
    """Inventory of one image produced by one analyzer."""

    model_config = {"frozen": True}

    image: str = Field(description="Image reference")
    analyzer: str = Field(description="Name of the analyzer that produced this result")


class PackageAnalyzeResult(AnalyzeResult):
    """Installed packages of one ecosystem."""

    analysis: PackageMap = Field(default_factory=dict, description="name -> version -> record")

    @property
    def package_count(self) -> int:
        return sum(len(versions) for versions in self.analysis.values())


class FileAnalyzeResult(AnalyzeResult):
    """Every path of the flattened filesystem, sorted."""

    analysis: list[DirectoryEntry] = Field(default_factory=list, description="Sorted entries")


class HistoryAnalyzeResult(AnalyzeResult):
    """Build history, oldest instruction first."""

    analysis: list[LayerCommand] = Field(default_factory=list, description="Layer commands")


class DiffResult(BaseModel):
    """Comparison of two images by one analyzer.

    Subclasses declare typed ``added``, ``removed`` and ``changed``
    partitions; the three are disjoint under the analyzer's identity key.
    """

    model_config = {"frozen": True}

    analyzer: str = Field(description="Name of the analyzer that produced this result")
    image1: str = Field(description="First image reference")
    image2: str = Field(description="Second image reference")

    @property
    def is_empty(self) -> bool:
        """Check if the two images are identical for this analyzer."""
        return not (self.added or self.removed or self.changed)  # type: ignore[attr-defined]

    def partition_keys(self) -> dict[str, set[Any]]:
        """Identity keys of each partition, for disjointness checks."""
        return {
            "added": {self._key(item) for item in self.added},  # type: ignore[attr-defined]
            "removed": {self._key(item) for item in self.removed},  # type: ignore[attr-defined]
            "changed": {self._key(item) for item in self.changed},  # type: ignore[attr-defined]
        }

    @staticmethod
    def _key(item: Any) -> Any:
        raise NotImplementedError


class PackageDiffResult(DiffResult):
    """Package drift keyed by name and version."""

    added: list[PackageRecord] = Field(default_factory=list, description="Only in image2")
    removed: list[PackageRecord] = Field(default_factory=list, description="Only in image1")
    changed: list[PackageChange] = Field(default_factory=list, description="Same version, different metadata")

    @staticmethod
    def _key(item: Any) -> Any:
        return item.key


class FileDiffResult(DiffResult):
    """Filesystem differences keyed by path."""

    added: list[DirectoryEntry] = Field(default_factory=list, description="Only in image2")
    removed: list[DirectoryEntry] = Field(default_factory=list, description="Only in image1")
    changed: list[EntryChange] = Field(default_factory=list, description="Same path, different content")

    @staticmethod
    def _key(item: Any) -> Any:
        return item.path


class HistoryDiffResult(DiffResult):
    """History divergence keyed by command; ``changed`` is always empty."""

    added: list[LayerCommand] = Field(default_factory=list, description="Commands after divergence in image2")
    removed: list[LayerCommand] = Field(default_factory=list, description="Commands after divergence in image1")
    changed: list[LayerCommand] = Field(default_factory=list, description="Unused")

    @staticmethod
    def _key(item: Any) -> Any:
        return item.command
