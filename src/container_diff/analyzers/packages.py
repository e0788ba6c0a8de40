"""Package-manager analyzer."""

from __future__ import annotations

import re
from typing import Any

from container_diff.analyzers.parsers.base import PackageParser
from container_diff.models.image import Snapshot
from container_diff.models.packages import PackageChange, PackageMap, PackageRecord
from container_diff.models.results import PackageAnalyzeResult, PackageDiffResult
from container_diff.utils.errors import AnalysisError
from container_diff.utils.logging import get_logger_with_context

_DIGITS_RE = re.compile(r"(\d+)")


def version_key(version: str) -> tuple[Any, ...]:
    """Natural sort key: digit runs compare numerically.

    ``1.10`` sorts after ``1.9`` and ``2.0~rc1`` after ``2.0``.
    """
    key: list[tuple[int, Any]] = []
    for chunk in _DIGITS_RE.split(version):
        if not chunk:
            continue
        if chunk.isdigit():
            key.append((0, int(chunk)))
        else:
            key.append((1, chunk))
    return tuple(key)


def sort_packages(packages: PackageMap) -> PackageMap:
    """Order a package map by name, then naturally by version."""
    return {
        name: {v: packages[name][v] for v in sorted(packages[name], key=version_key)}
        for name in sorted(packages)
    }


def diff_packages(
    packages1: PackageMap,
    packages2: PackageMap,
) -> tuple[list[PackageRecord], list[PackageRecord], list[PackageChange]]:
    """Compare two package maps version by version.

    Args:
        packages1: Packages of the first image
        packages2: Packages of the second image

    Returns:
        (added, removed, changed), each sorted by name then version
    """
    added: list[PackageRecord] = []
    removed: list[PackageRecord] = []
    changed: list[PackageChange] = []

    for name in sorted(set(packages1) | set(packages2)):
        versions1 = packages1.get(name, {})
        versions2 = packages2.get(name, {})

        for version in sorted(set(versions1) | set(versions2), key=version_key):
            before = versions1.get(version)
            after = versions2.get(version)
            if after is None:
                removed.append(before)
            elif before is None:
                added.append(after)
            elif not before.same_metadata(after):
                changed.append(PackageChange(name=name, version=version, before=before, after=after))

    return added, removed, changed


class PackageAnalyzer:
    """Inventories and compares one package ecosystem.

    The analyzer is the same for every ecosystem; the parser decides which
    files to read.

    Example:
        analyzer = PackageAnalyzer("pip", PythonParser())
        result = analyzer.analyze(snapshot)
        print(result.package_count)
    """

    def __init__(self, name: str, parser: PackageParser, description: str | None = None) -> None:
        self._name = name
        self._parser = parser
        self._description = description or f"Installed {name} packages"

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    def packages(self, snapshot: Snapshot) -> PackageMap:
        """Parse and sort the packages of one snapshot."""
        log = get_logger_with_context("analyzers.packages", analyzer=self._name, image=snapshot.image)
        try:
            packages = self._parser.parse(snapshot.root)
        except AnalysisError:
            raise
        except OSError as e:
            raise AnalysisError(f"Failed to read {self._name} packages: {e}", analyzer=self._name)

        log.debug(f"Found {sum(len(v) for v in packages.values())} package version(s)")
        return sort_packages(packages)

    def analyze(self, snapshot: Snapshot) -> PackageAnalyzeResult:
        return PackageAnalyzeResult(
            image=snapshot.image,
            analyzer=self._name,
            analysis=self.packages(snapshot),
        )

    def diff(self, snapshot1: Snapshot, snapshot2: Snapshot) -> PackageDiffResult:
        added, removed, changed = diff_packages(self.packages(snapshot1), self.packages(snapshot2))
        return PackageDiffResult(
            analyzer=self._name,
            image1=snapshot1.image,
            image2=snapshot2.image,
            added=added,
            removed=removed,
            changed=changed,
        )
