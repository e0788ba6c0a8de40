"""Unit tests for ImageResolver."""

import pytest

from container_diff.core.resolver import SNAPSHOT_PREFIX, ImageResolver
from container_diff.models.image import ImageLayout, ImageReference, ReferenceKind
from container_diff.models.options import RetrievalMode
from container_diff.registry.base import RegistryAuthError
from container_diff.registry.docker import DockerSource
from container_diff.utils.config import ContainerDiffConfig, ResolverConfig
from container_diff.utils.errors import ArgumentError, ExtractError, ImageNotFoundError, TransportError


class FailingSource:
    """Image source that always raises the given error."""

    def __init__(self, error):
        self.error = error

    def fetch(self, reference, dest):
        raise self.error


class BadLayerSource:
    """Image source returning a layer that is not a tarball."""

    def fetch(self, reference, dest):
        layer = dest / "000.tar"
        layer.write_bytes(b"garbage")
        return ImageLayout(layers=[layer], history=[])


@pytest.fixture
def work_dir(tmp_path):
    return tmp_path / "work"


class TestImageResolver:
    """Tests for ImageResolver."""

    def test_resolve_archive(self, work_dir, archive_factory, layer_factory):
        """Test an archive resolves to a flattened snapshot."""
        archive = archive_factory(
            "image.tar",
            [
                layer_factory({"etc/a.conf": "a", "etc/b.conf": "b"}),
                layer_factory({"etc/.wh.b.conf": "", "etc/c.conf": "c"}),
            ],
        )
        resolver = ImageResolver(work_dir=work_dir)

        snapshot = resolver.resolve(str(archive))

        assert snapshot.image == str(archive)
        assert snapshot.reference.kind == ReferenceKind.ARCHIVE
        assert sorted(p.name for p in (snapshot.root / "etc").iterdir()) == ["a.conf", "c.conf"]
        assert len(snapshot.history) == 2
        assert snapshot.work_dir.parent == work_dir
        assert snapshot.work_dir.name.startswith(SNAPSHOT_PREFIX)
        # Layer blobs are not kept once flattened
        assert [p.name for p in snapshot.work_dir.iterdir()] == ["rootfs"]

    def test_release(self, work_dir, archive_factory, layer_factory):
        """Test release removes the snapshot and is idempotent."""
        archive = archive_factory("image.tar", [layer_factory({"x": "1"})])
        resolver = ImageResolver(work_dir=work_dir)
        snapshot = resolver.resolve(str(archive))

        resolver.release(snapshot)
        assert not snapshot.work_dir.exists()

        resolver.release(snapshot)

    def test_invalid_reference(self, work_dir):
        """Test unclassifiable strings raise ArgumentError."""
        with pytest.raises(ArgumentError):
            ImageResolver(work_dir=work_dir).resolve("not an image")

    def test_missing_archive(self, work_dir, tmp_path):
        """Test a missing archive raises ImageNotFoundError and leaves nothing behind."""
        reference = ImageReference(raw=str(tmp_path / "missing.tar"), kind=ReferenceKind.ARCHIVE)

        with pytest.raises(ImageNotFoundError):
            ImageResolver(work_dir=work_dir).resolve(reference)

        assert list(work_dir.iterdir()) == []

    def test_corrupt_archive(self, work_dir, tmp_path):
        """Test an unreadable archive raises ExtractError."""
        archive = tmp_path / "broken.tar"
        archive.write_bytes(b"not a tar")

        with pytest.raises(ExtractError):
            ImageResolver(work_dir=work_dir).resolve(str(archive))

        assert list(work_dir.iterdir()) == []

    def test_bad_layer(self, work_dir):
        """Test a layer that cannot be unpacked raises ExtractError and cleans up."""
        resolver = ImageResolver(sources={ReferenceKind.REMOTE_URL: BadLayerSource()}, work_dir=work_dir)

        with pytest.raises(ExtractError):
            resolver.resolve("registry.example/team/app:1.0")

        assert list(work_dir.iterdir()) == []

    def test_transport_error(self, work_dir):
        """Test registry failures map to TransportError."""
        resolver = ImageResolver(
            sources={ReferenceKind.REMOTE_URL: FailingSource(RegistryAuthError())},
            work_dir=work_dir,
        )

        with pytest.raises(TransportError) as exc_info:
            resolver.resolve("registry.example/team/app:1.0")

        assert exc_info.value.reference == "registry.example/team/app:1.0"
        assert list(work_dir.iterdir()) == []

    def test_from_config(self, tmp_path):
        """Test configuration selects work_dir and retrieval mode."""
        config = ContainerDiffConfig(
            resolver=ResolverConfig(work_dir=str(tmp_path / "snapshots"), retrieval=RetrievalMode.ENGINE)
        )

        resolver = ImageResolver.from_config(config)

        docker_source = resolver._sources[ReferenceKind.LOCAL_ID]
        assert isinstance(docker_source, DockerSource)
        assert docker_source.retrieval == RetrievalMode.ENGINE
        assert resolver._work_dir == tmp_path / "snapshots"

    def test_from_config_retrieval_override(self):
        """Test an explicit retrieval mode overrides configuration."""
        resolver = ImageResolver.from_config(ContainerDiffConfig(), retrieval=RetrievalMode.ENGINE)

        assert resolver._sources[ReferenceKind.LOCAL_ID].retrieval == RetrievalMode.ENGINE
