"""Parser for installed Node.js packages."""

from __future__ import annotations

import json
import os
from pathlib import Path

from container_diff.analyzers.parsers.base import add_package, dir_size, image_path
from container_diff.models.packages import PackageMap, PackageRecord
from container_diff.utils.logging import get_logger

logger = get_logger("parsers.npm")

NODE_MODULES = "node_modules"


def is_package_dir(path: Path) -> bool:
    """Check whether a directory is an installed package.

    Installed packages live at ``node_modules/<name>`` or, for scoped
    packages, ``node_modules/@scope/<name>``.
    """
    parent = path.parent
    if parent.name == NODE_MODULES:
        return True
    return parent.name.startswith("@") and parent.parent.name == NODE_MODULES


class NpmParser:
    """Finds ``package.json`` manifests of installed packages at any depth."""

    @property
    def ecosystem(self) -> str:
        return "node"

    def parse(self, root: Path) -> PackageMap:
        packages: PackageMap = {}

        for manifest in self._find_manifests(root):
            package_dir = manifest.parent
            try:
                data = json.loads(manifest.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.warning(f"Skipping unreadable {image_path(root, manifest)}: {e}")
                continue

            if not isinstance(data, dict):
                logger.warning(f"Skipping {image_path(root, manifest)}: not a JSON object")
                continue

            name = data.get("name")
            version = data.get("version")
            if not isinstance(name, str) or not isinstance(version, str):
                continue

            add_package(
                packages,
                PackageRecord(
                    name=name,
                    version=version,
                    size=dir_size(package_dir, exclude=(NODE_MODULES,)),
                    location=image_path(root, package_dir),
                ),
            )

        return packages

    @staticmethod
    def _find_manifests(root: Path) -> list[Path]:
        manifests: list[Path] = []
        for dirpath, _, filenames in os.walk(root):
            if "package.json" not in filenames:
                continue
            directory = Path(dirpath)
            if is_package_dir(directory):
                manifests.append(directory / "package.json")
        # Sorted so that the first of several identical installs is stable
        return sorted(manifests, key=lambda p: p.as_posix())
