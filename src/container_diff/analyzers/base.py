"""Base analyzer protocol."""

from typing import Protocol, runtime_checkable

from container_diff.models.image import Snapshot
from container_diff.models.results import AnalyzeResult, DiffResult


@runtime_checkable
class Analyzer(Protocol):
    """Protocol for snapshot analyzers.

    An analyzer inventories one category of an image (an ecosystem's
    packages, the filesystem tree, the build history) and compares that
    inventory between two images. Analyzers only read snapshots and
    return fresh results, so several can run at once.

    To implement a custom analyzer:
    1. Create a class that implements this protocol
    2. Register it with AnalyzerRegistry

    Example:
        class LicenseAnalyzer:
            @property
            def name(self) -> str:
                return "license"

            @property
            def description(self) -> str:
                return "Lists license files"

            def analyze(self, snapshot: Snapshot) -> AnalyzeResult:
                ...

            def diff(self, snapshot1: Snapshot, snapshot2: Snapshot) -> DiffResult:
                ...
    """

    @property
    def name(self) -> str:
        """Unique name for this analyzer."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description of what this analyzer reports."""
        ...

    def analyze(self, snapshot: Snapshot) -> AnalyzeResult:
        """Inventory a single snapshot.

        Args:
            snapshot: Snapshot to read

        Returns:
            The analyzer's inventory of the image

        Raises:
            AnalysisError: If the snapshot cannot be read
        """
        ...

    def diff(self, snapshot1: Snapshot, snapshot2: Snapshot) -> DiffResult:
        """Compare two snapshots.

        Args:
            snapshot1: First (older) snapshot
            snapshot2: Second (newer) snapshot

        Returns:
            Added, removed and changed items

        Raises:
            AnalysisError: If either snapshot cannot be read
        """
        ...
