"""Shared test fixtures for container-diff tests."""

import io
import json
import logging
import tarfile
from pathlib import Path
from typing import Callable

import pytest

from container_diff.models.image import ImageReference, LayerCommand, ReferenceKind, Snapshot
from container_diff.utils.config import ContainerDiffConfig, set_config

# None marks a directory
FileTree = dict[str, "bytes | str | None"]


def build_layer(files: FileTree, symlinks: dict[str, str] | None = None) -> bytes:
    """Build an uncompressed layer tarball in memory."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
                continue
            data = content.encode() if isinstance(content, str) else content
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))

        for name, target in (symlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tar.addfile(info)
    return buffer.getvalue()


def write_archive(path: Path, layers: list[bytes], history: list[dict] | None = None) -> Path:
    """Write a ``docker save`` style tarball holding the given layers."""
    if history is None:
        history = [{"created_by": f"/bin/sh -c #(nop) ADD layer{i}"} for i in range(len(layers))]

    config = {
        "architecture": "amd64",
        "os": "linux",
        "history": history,
        "rootfs": {"type": "layers", "diff_ids": []},
    }
    manifest = [
        {
            "Config": "config.json",
            "RepoTags": None,
            "Layers": [f"layer{i}/layer.tar" for i in range(len(layers))],
        }
    ]

    def add(tar: tarfile.TarFile, name: str, data: bytes) -> None:
        info = tarfile.TarInfo(name)
        info.size = len(data)
        tar.addfile(info, io.BytesIO(data))

    with tarfile.open(path, "w") as tar:
        add(tar, "manifest.json", json.dumps(manifest).encode())
        add(tar, "config.json", json.dumps(config).encode())
        for i, layer in enumerate(layers):
            add(tar, f"layer{i}/layer.tar", layer)
    return path


def populate(root: Path, files: FileTree, symlinks: dict[str, str] | None = None) -> None:
    """Create files and directories below ``root``."""
    root.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        path = root / name
        if content is None:
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        data = content.encode() if isinstance(content, str) else content
        path.write_bytes(data)

    for name, target in (symlinks or {}).items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.symlink_to(target)


@pytest.fixture(autouse=True)
def isolated_config():
    """Use default configuration regardless of files on the host."""
    set_config(ContainerDiffConfig())
    yield
    set_config(None)
    logging.getLogger("container_diff").handlers = []


@pytest.fixture
def layer_factory() -> Callable[..., bytes]:
    """Build layer tarballs from {path: content} mappings."""
    return build_layer


@pytest.fixture
def archive_factory(tmp_path: Path) -> Callable[..., Path]:
    """Write docker save tarballs into tmp_path."""

    def factory(name: str, layers: list[bytes], history: list[dict] | None = None) -> Path:
        return write_archive(tmp_path / name, layers, history)

    return factory


@pytest.fixture
def snapshot_factory(tmp_path: Path) -> Callable[..., Snapshot]:
    """Create snapshots directly on disk, without layers."""

    def factory(
        name: str,
        files: FileTree | None = None,
        symlinks: dict[str, str] | None = None,
        history: list[LayerCommand] | None = None,
    ) -> Snapshot:
        work_dir = tmp_path / f"snapshot-{name.replace('/', '_').replace(':', '_')}"
        root = work_dir / "rootfs"
        populate(root, files or {}, symlinks)
        return Snapshot(
            reference=ImageReference(raw=name, kind=ReferenceKind.REMOTE_URL),
            root=root,
            history=history or [],
            work_dir=work_dir,
        )

    return factory


@pytest.fixture
def make_tree() -> Callable[..., None]:
    """Create files and directories below a given root."""
    return populate
