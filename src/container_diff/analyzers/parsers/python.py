"""Parser for installed Python distributions."""

from __future__ import annotations

import csv
import os
import re
from email.parser import HeaderParser
from pathlib import Path

from container_diff.analyzers.parsers.base import add_package, image_path
from container_diff.models.packages import PackageMap, PackageRecord
from container_diff.utils.logging import get_logger

logger = get_logger("parsers.python")

SITE_DIRS = ("site-packages", "dist-packages")

_CANONICAL_RE = re.compile(r"[-_.]+")


def canonicalize_name(name: str) -> str:
    """Normalize a distribution name (PEP 503)."""
    return _CANONICAL_RE.sub("-", name).lower()


def record_size(record: Path) -> int | None:
    """Sum the file sizes listed in a RECORD file.

    Returns:
        Total size, or None if the file is missing or lists no sizes
    """
    if not record.is_file():
        return None

    total = 0
    found = False
    try:
        with open(record, newline="", encoding="utf-8", errors="replace") as f:
            for row in csv.reader(f):
                if len(row) < 3 or not row[2]:
                    continue
                try:
                    total += int(row[2])
                except ValueError:
                    continue
                found = True
    except (OSError, csv.Error) as e:
        logger.warning(f"Unable to read {record}: {e}")
        return None

    return total if found else None


class PythonParser:
    """Reads ``dist-info`` and ``egg-info`` metadata from site directories."""

    @property
    def ecosystem(self) -> str:
        return "pip"

    def parse(self, root: Path) -> PackageMap:
        packages: PackageMap = {}

        for metadata, record in self._find_metadata(root):
            headers = self._read_headers(metadata)
            if headers is None:
                logger.warning(f"Skipping unreadable {image_path(root, metadata)}")
                continue

            name = headers.get("Name")
            version = headers.get("Version")
            if not name or not version:
                continue

            location = metadata.parent if metadata.name in ("METADATA", "PKG-INFO") else metadata
            add_package(
                packages,
                PackageRecord(
                    name=canonicalize_name(name),
                    version=version.strip(),
                    size=record_size(record) if record else None,
                    location=image_path(root, location),
                ),
            )

        return packages

    @staticmethod
    def _read_headers(path: Path) -> dict[str, str] | None:
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                message = HeaderParser().parse(f)
        except OSError:
            return None
        return {key: str(value) for key, value in message.items()}

    @staticmethod
    def _find_metadata(root: Path) -> list[tuple[Path, Path | None]]:
        """Locate (metadata file, RECORD file) pairs in every site directory."""
        found: list[tuple[Path, Path | None]] = []

        for dirpath, dirnames, _ in os.walk(root):
            if os.path.basename(dirpath) not in SITE_DIRS:
                continue
            # Distributions sit directly in the site directory
            dirnames[:] = []

            for entry in sorted(Path(dirpath).iterdir()):
                if entry.name.endswith(".dist-info") and entry.is_dir():
                    metadata = entry / "METADATA"
                    if metadata.is_file():
                        found.append((metadata, entry / "RECORD"))
                elif entry.name.endswith(".egg-info"):
                    if entry.is_dir():
                        pkg_info = entry / "PKG-INFO"
                        if pkg_info.is_file():
                            found.append((pkg_info, None))
                    elif entry.is_file():
                        found.append((entry, None))

        return sorted(found, key=lambda pair: pair[0].as_posix())
