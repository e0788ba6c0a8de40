"""Shared parser protocol and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from container_diff.models.packages import PackageMap, PackageRecord
from container_diff.utils.logging import get_logger

logger = get_logger("parsers")


@runtime_checkable
class PackageParser(Protocol):
    """Protocol for package database parsers.

    A parser is the only component that knows where an ecosystem keeps its
    metadata inside an image and how that metadata is laid out.
    """

    @property
    def ecosystem(self) -> str:
        """Short ecosystem name used in log messages."""
        ...

    def parse(self, root: Path) -> PackageMap:
        """Read every installed package below ``root``.

        Args:
            root: Root of a flattened image filesystem

        Returns:
            Mapping of package name to version to record

        Raises:
            AnalysisError: If the package database exists but cannot be read
        """
        ...


def add_package(packages: PackageMap, record: PackageRecord) -> bool:
    """Add a record unless the same name and version is already known.

    Callers feed records in path order, so the first location wins.

    Returns:
        True if the record was added
    """
    versions = packages.setdefault(record.name, {})
    if record.version in versions:
        logger.debug(
            f"Ignoring duplicate {record.name}@{record.version} at {record.location}; "
            f"keeping {versions[record.version].location}"
        )
        return False
    versions[record.version] = record
    return True


def dir_size(path: Path, exclude: tuple[str, ...] = ()) -> int:
    """Total size of regular files beneath a directory.

    Symlinks are not followed. Directories named in ``exclude`` are skipped
    at any depth.
    """
    total = 0
    for dirpath, dirnames, filenames in os.walk(path):
        if exclude:
            dirnames[:] = [d for d in dirnames if d not in exclude]
        for filename in filenames:
            file_path = os.path.join(dirpath, filename)
            if os.path.islink(file_path):
                continue
            try:
                total += os.path.getsize(file_path)
            except OSError:
                continue
    return total


def image_path(root: Path, path: Path | str) -> str:
    """Express a host path below ``root`` as an absolute path inside the image."""
    rel = Path(path).relative_to(root).as_posix()
    return "/" + rel if rel != "." else "/"
