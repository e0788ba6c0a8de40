"""Filesystem tree analyzer."""

from __future__ import annotations

import os
import posixpath
from pathlib import Path

from container_diff.models.filesystem import DirectoryEntry, EntryChange
from container_diff.models.image import Snapshot
from container_diff.models.results import FileAnalyzeResult, FileDiffResult
from container_diff.utils.errors import AnalysisError
from container_diff.utils.hashing import hash_file
from container_diff.utils.logging import get_logger

logger = get_logger("analyzers.filesystem")


def normalize_path(path: str, case_sensitive: bool = True) -> str:
    """Normalize an image path for comparison.

    The result is absolute, uses single ``/`` separators and has no ``.``
    segments or trailing slash. With ``case_sensitive`` off it is also
    case-folded.
    """
    normalized = posixpath.normpath("/" + path.lstrip("/"))
    return normalized if case_sensitive else normalized.casefold()


class FileAnalyzer:
    """Lists and compares every path of a flattened filesystem.

    Symbolic links are recorded with their target and never followed.
    Regular files are hashed with SHA-256 unless ``compute_digests`` is
    off, in which case only sizes are compared.

    Example:
        analyzer = FileAnalyzer()
        result = analyzer.diff(snapshot1, snapshot2)
        for change in result.changed:
            print(change.path)
    """

    def __init__(self, case_sensitive: bool = True, compute_digests: bool = True) -> None:
        """Initialize the analyzer.

        Args:
            case_sensitive: Compare paths case-sensitively
            compute_digests: Hash regular file contents
        """
        self._case_sensitive = case_sensitive
        self._compute_digests = compute_digests

    @property
    def name(self) -> str:
        return "file"

    @property
    def description(self) -> str:
        return "Files and directories of the image filesystem"

    def walk(self, root: Path) -> list[DirectoryEntry]:
        """Collect an entry for every path below ``root``.

        Args:
            root: Root of a flattened image filesystem

        Returns:
            Entries sorted by path; the root itself is not included

        Raises:
            AnalysisError: If the root cannot be listed
        """
        if not root.is_dir():
            raise AnalysisError(f"Snapshot root {root} is not a directory", analyzer=self.name)

        entries: list[DirectoryEntry] = []
        try:
            self._scan(root, "", entries)
        except OSError as e:
            raise AnalysisError(f"Failed to walk {root}: {e}", analyzer=self.name)
        return sorted(entries, key=lambda entry: entry.path)

    def _scan(self, directory: Path | str, prefix: str, entries: list[DirectoryEntry]) -> int:
        """Record the children of ``directory`` and return their total size."""
        total = 0
        with os.scandir(directory) as it:
            children = sorted(it, key=lambda child: child.name)

        for child in children:
            path = f"{prefix}/{child.name}"

            if child.is_symlink():
                size = child.stat(follow_symlinks=False).st_size
                entries.append(DirectoryEntry(path=path, size=size, link_target=os.readlink(child.path)))
            elif child.is_dir(follow_symlinks=False):
                size = self._scan(child.path, path, entries)
                entries.append(DirectoryEntry(path=path, size=size, is_dir=True))
            else:
                size = child.stat(follow_symlinks=False).st_size if child.is_file(follow_symlinks=False) else 0
                entries.append(DirectoryEntry(path=path, size=size, digest=self._digest(child)))

            total += size
        return total

    def _digest(self, child: os.DirEntry) -> str | None:
        if not self._compute_digests or not child.is_file(follow_symlinks=False):
            return None
        try:
            return hash_file(child.path)
        except OSError as e:
            logger.warning(f"Unable to hash {child.path}: {e}")
            return None

    def index(self, entries: list[DirectoryEntry]) -> dict[str, DirectoryEntry]:
        """Key entries by normalized path; the first of colliding paths wins."""
        indexed: dict[str, DirectoryEntry] = {}
        for entry in entries:
            indexed.setdefault(normalize_path(entry.path, self._case_sensitive), entry)
        return indexed

    def analyze(self, snapshot: Snapshot) -> FileAnalyzeResult:
        return FileAnalyzeResult(
            image=snapshot.image,
            analyzer=self.name,
            analysis=self.walk(snapshot.root),
        )

    def diff(self, snapshot1: Snapshot, snapshot2: Snapshot) -> FileDiffResult:
        entries1 = self.index(self.walk(snapshot1.root))
        entries2 = self.index(self.walk(snapshot2.root))

        added: list[DirectoryEntry] = []
        removed: list[DirectoryEntry] = []
        changed: list[EntryChange] = []

        for key in sorted(set(entries1) | set(entries2)):
            before = entries1.get(key)
            after = entries2.get(key)
            if after is None:
                removed.append(before)
            elif before is None:
                added.append(after)
            elif before.identity != after.identity:
                changed.append(EntryChange(path=after.path, before=before, after=after))

        return FileDiffResult(
            analyzer=self.name,
            image1=snapshot1.image,
            image2=snapshot2.image,
            added=added,
            removed=removed,
            changed=changed,
        )
