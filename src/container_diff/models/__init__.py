"""Data models for container-diff.

This module contains all Pydantic models used throughout container-diff
for type-safe data handling and serialization.
"""

from container_diff.models.common import ErrorInfo
from container_diff.models.filesystem import DirectoryEntry, EntryChange
from container_diff.models.image import (
    ImageLayout,
    ImageReference,
    LayerCommand,
    ReferenceKind,
    Snapshot,
)
from container_diff.models.options import OutputFormat, RetrievalMode, RunOptions
from container_diff.models.packages import PackageChange, PackageMap, PackageRecord
from container_diff.models.report import AnalysisReport, AnalyzerFailure, RunMode
from container_diff.models.results import (
    AnalyzeResult,
    DiffResult,
    FileAnalyzeResult,
    FileDiffResult,
    HistoryAnalyzeResult,
    HistoryDiffResult,
    PackageAnalyzeResult,
    PackageDiffResult,
)

__all__ = [
    # Common
    "ErrorInfo",
    # Image
    "ImageLayout",
    "ImageReference",
    "LayerCommand",
    "ReferenceKind",
    "Snapshot",
    # Packages
    "PackageChange",
    "PackageMap",
    "PackageRecord",
    # Filesystem
    "DirectoryEntry",
    "EntryChange",
    # Results
    "AnalyzeResult",
    "DiffResult",
    "FileAnalyzeResult",
    "FileDiffResult",
    "HistoryAnalyzeResult",
    "HistoryDiffResult",
    "PackageAnalyzeResult",
    "PackageDiffResult",
    # Report
    "AnalysisReport",
    "AnalyzerFailure",
    "RunMode",
    # Options
    "OutputFormat",
    "RetrievalMode",
    "RunOptions",
]
