"""Parser for the Debian package database."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from container_diff.analyzers.parsers.base import add_package, image_path
from container_diff.models.packages import PackageMap, PackageRecord
from container_diff.utils.errors import AnalysisError
from container_diff.utils.logging import get_logger

logger = get_logger("parsers.dpkg")

STATUS_FILE = Path("var/lib/dpkg/status")
# Distroless images ship one stanza file per package instead of a status file
STATUS_DIR = Path("var/lib/dpkg/status.d")


def parse_stanzas(text: str) -> Iterator[dict[str, str]]:
    """Split a control file into field dictionaries.

    Stanzas are separated by blank lines. Lines starting with whitespace
    continue the previous field.
    """
    fields: dict[str, str] = {}
    key: str | None = None

    for line in text.splitlines():
        if not line.strip():
            if fields:
                yield fields
            fields = {}
            key = None
            continue

        if line[0] in " \t":
            if key is not None:
                fields[key] += "\n" + line.strip()
            continue

        name, sep, value = line.partition(":")
        if not sep:
            continue
        key = name.strip()
        fields[key] = value.strip()

    if fields:
        yield fields


def is_installed(stanza: dict[str, str]) -> bool:
    """Check the Status field; stanzas without one count as installed."""
    status = stanza.get("Status")
    if status is None:
        return True
    words = status.split()
    return bool(words) and words[-1] == "installed"


def installed_size(stanza: dict[str, str]) -> int | None:
    """Installed-Size is recorded in KiB; return bytes."""
    value = stanza.get("Installed-Size")
    if value is None:
        return None
    try:
        return int(value) * 1024
    except ValueError:
        return None


class DpkgParser:
    """Reads installed packages from ``/var/lib/dpkg``."""

    @property
    def ecosystem(self) -> str:
        return "apt"

    def parse(self, root: Path) -> PackageMap:
        packages: PackageMap = {}

        for path in self._database_files(root):
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                raise AnalysisError(f"Unable to read dpkg database {path}: {e}", analyzer="apt")

            location = image_path(root, path)
            for stanza in parse_stanzas(text):
                name = stanza.get("Package")
                version = stanza.get("Version")
                if not name or not version or not is_installed(stanza):
                    continue
                add_package(
                    packages,
                    PackageRecord(
                        name=name,
                        version=version,
                        size=installed_size(stanza),
                        location=location,
                    ),
                )

        return packages

    @staticmethod
    def _database_files(root: Path) -> list[Path]:
        files: list[Path] = []
        status = root / STATUS_FILE
        if status.exists():
            files.append(status)

        status_dir = root / STATUS_DIR
        if status_dir.is_dir():
            files.extend(sorted(p for p in status_dir.iterdir() if p.is_file()))

        if not files:
            logger.debug(f"No dpkg database found under {root}")
        return files
