"""Flattening of image layer tarballs into a single root filesystem."""

from __future__ import annotations

import os
import posixpath
import shutil
import tarfile
from pathlib import Path

from container_diff.utils.logging import get_logger

logger = get_logger("layers")

WHITEOUT_PREFIX = ".wh."
OPAQUE_MARKER = ".wh..wh..opq"


def flatten_layers(layers: list[Path], root: Path) -> None:
    """Apply layer tarballs in order to produce the image's final filesystem.

    Later layers override earlier ones path by path. Whiteout markers
    (``.wh.<name>``) delete the named path from lower layers and opaque
    markers (``.wh..wh..opq``) hide everything a lower layer put in their
    directory. Marker files never appear in the result.

    Args:
        layers: Layer tarballs, lowest first
        root: Directory to build the filesystem in (created if missing)
    """
    root.mkdir(parents=True, exist_ok=True)
    for index, layer in enumerate(layers):
        logger.debug(f"Applying layer {index} ({layer.name})")
        apply_layer(layer, root)


def apply_layer(layer: Path, root: Path) -> None:
    """Apply one layer tarball on top of ``root``.

    Whiteouts are processed before any of the layer's own files are
    written, so they only ever remove content from lower layers.
    """
    with tarfile.open(layer, "r:*") as tar:
        members: list[tarfile.TarInfo] = []
        for member in tar.getmembers():
            rel = normalize_member_name(member.name)
            if rel is None:
                logger.warning(f"Skipping member outside the image root: {member.name}")
                continue
            if not rel:
                continue

            parent, _, base = rel.rpartition("/")
            if base == OPAQUE_MARKER:
                _clear_directory(root, parent)
            elif base.startswith(WHITEOUT_PREFIX):
                _remove_path(root, posixpath.join(parent, base[len(WHITEOUT_PREFIX):]))
            else:
                members.append(member)

        for member in members:
            _extract_member(tar, member, root)


def normalize_member_name(name: str) -> str | None:
    """Normalize a tar member name to a root-relative POSIX path.

    Returns:
        The relative path ("" for the root itself), or None if the name
        escapes the root
    """
    rel = posixpath.normpath("/" + name.lstrip("/")).lstrip("/")
    if rel in ("", "."):
        return ""
    # normpath of an absolute path cannot climb above "/", so check the raw name
    if ".." in name.split("/"):
        resolved = posixpath.normpath(name.lstrip("/"))
        if resolved == ".." or resolved.startswith("../"):
            return None
    return rel


def _within(root: Path, path: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def _safe_parent(root: Path, rel: str) -> Path | None:
    """Resolve the parent directory of ``rel``, refusing anything outside root."""
    real_root = root.resolve()
    parent = (root / rel).parent.resolve()
    if not _within(real_root, parent):
        return None
    return parent


def _delete(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _remove_path(root: Path, rel: str) -> None:
    parent = _safe_parent(root, rel)
    if parent is None:
        logger.warning(f"Ignoring whiteout outside the image root: {rel}")
        return
    target = parent / posixpath.basename(rel)
    if os.path.lexists(target):
        logger.debug(f"Whiteout removes /{rel}")
        _delete(target)


def _clear_directory(root: Path, rel: str) -> None:
    if not rel:
        directory = root
    else:
        parent = _safe_parent(root, rel)
        if parent is None:
            logger.warning(f"Ignoring opaque marker outside the image root: {rel}")
            return
        directory = parent / posixpath.basename(rel)

    if directory.is_dir() and not directory.is_symlink():
        logger.debug(f"Opaque whiteout clears /{rel}")
        for child in directory.iterdir():
            _delete(child)


def _extract_member(tar: tarfile.TarFile, member: tarfile.TarInfo, root: Path) -> None:
    if member.isdev():
        # Device nodes and FIFOs need privileges and carry no content
        return

    rel = normalize_member_name(member.name)
    if not rel:
        return

    parent = _safe_parent(root, rel)
    if parent is None:
        logger.warning(f"Skipping {member.name}: parent resolves outside the image root")
        return

    target = parent / posixpath.basename(rel)
    if os.path.lexists(target):
        existing_dir = target.is_dir() and not target.is_symlink()
        if not (existing_dir and member.isdir()):
            _delete(target)

    try:
        tar.extract(member, path=root, set_attrs=False, filter="tar")
    except tarfile.FilterError as e:
        logger.warning(f"Skipping {member.name}: {e}")
