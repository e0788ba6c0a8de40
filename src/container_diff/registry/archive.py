"""Image source for `docker save` archives on local disk."""

from __future__ import annotations

import json
import shutil
import tarfile
from pathlib import Path
from typing import Any

from container_diff.models.image import ImageLayout
from container_diff.registry.base import ArchiveFormatError, RegistryNotFoundError, build_history
from container_diff.utils.logging import get_logger

logger = get_logger("registry.archive")


class ArchiveSource:
    """Reads images from tarballs written by ``docker save``.

    The archive must contain a ``manifest.json`` naming the config blob
    and the layer tarballs. Layers may be plain or gzip-compressed.

    Example:
        source = ArchiveSource()
        layout = source.fetch("images/app.tar", Path("/tmp/work"))
        print(len(layout.layers))
    """

    def fetch(self, reference: str, dest: Path) -> ImageLayout:
        """Copy the layers of an archived image into ``dest``.

        Args:
            reference: Path to the archive
            dest: Existing directory to write layer tarballs into

        Returns:
            Layer paths and build history

        Raises:
            RegistryNotFoundError: If the archive does not exist
            ArchiveFormatError: If the archive is not a readable image
        """
        path = Path(reference)
        if not path.is_file():
            raise RegistryNotFoundError(reference)
        return read_docker_archive(path, dest)


def read_docker_archive(archive: Path, dest: Path) -> ImageLayout:
    """Unpack the manifest, config and layers of a ``docker save`` tarball.

    Only the first image of a multi-image archive is read.

    Args:
        archive: Path to the tarball
        dest: Existing directory to write layer tarballs into

    Returns:
        Layer paths (lowest first) and build history
    """
    try:
        with tarfile.open(archive, "r:*") as tar:
            manifest = _read_json(tar, "manifest.json")
            if not isinstance(manifest, list) or not manifest:
                raise ArchiveFormatError(f"{archive}: manifest.json lists no images")

            entry = manifest[0]
            config = _read_json(tar, entry.get("Config", ""))
            layer_names = entry.get("Layers") or []

            layers: list[Path] = []
            sizes: list[int] = []
            for index, name in enumerate(layer_names):
                target = dest / f"{index:03d}.tar"
                sizes.append(_copy_member(tar, name, target))
                layers.append(target)
    except tarfile.TarError as e:
        raise ArchiveFormatError(f"{archive}: not a readable tar archive: {e}")
    except OSError as e:
        raise ArchiveFormatError(f"{archive}: {e}")

    logger.debug(f"Read {len(layers)} layer(s) from {archive}")
    return ImageLayout(layers=layers, history=build_history(config, sizes))


def _read_json(tar: tarfile.TarFile, name: str) -> Any:
    """Read and parse a JSON member of an archive."""
    member = _get_member(tar, name)
    extracted = tar.extractfile(member)
    if extracted is None:
        raise ArchiveFormatError(f"Archive member {name} is not a regular file")
    try:
        return json.loads(extracted.read())
    except json.JSONDecodeError as e:
        raise ArchiveFormatError(f"Archive member {name} is not valid JSON: {e}")


def _copy_member(tar: tarfile.TarFile, name: str, target: Path) -> int:
    """Stream one archive member to ``target`` and return its size."""
    member = _get_member(tar, name)
    extracted = tar.extractfile(member)
    if extracted is None:
        raise ArchiveFormatError(f"Layer {name} is not a regular file")
    with open(target, "wb") as f:
        shutil.copyfileobj(extracted, f)
    return target.stat().st_size


def _get_member(tar: tarfile.TarFile, name: str) -> tarfile.TarInfo:
    """Look up a member, tolerating a leading ``./``."""
    for candidate in (name, f"./{name}", name.removeprefix("./")):
        try:
            return tar.getmember(candidate)
        except KeyError:
            continue
    raise ArchiveFormatError(f"Archive is missing {name}")
