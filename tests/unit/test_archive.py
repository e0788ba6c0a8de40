"""Unit tests for docker save archive reading."""

import pytest

from container_diff.registry.archive import ArchiveSource, read_docker_archive
from container_diff.registry.base import ArchiveFormatError, RegistryNotFoundError, build_history, parse_reference


class TestReadDockerArchive:
    """Tests for read_docker_archive."""

    def test_layers_and_history(self, tmp_path, archive_factory, layer_factory):
        """Test layers are copied out and paired with history entries."""
        archive = archive_factory(
            "image.tar",
            [layer_factory({"a.txt": "a"}), layer_factory({"b.txt": "bbbb"})],
            history=[
                {"created_by": "/bin/sh -c #(nop) ADD file:123 in / "},
                {"created_by": "/bin/sh -c #(nop)  ENV PATH=/usr/bin", "empty_layer": True},
                {"created_by": "/bin/sh -c echo bbbb > /b.txt"},
            ],
        )
        dest = tmp_path / "layers"
        dest.mkdir()

        layout = read_docker_archive(archive, dest)

        assert [p.name for p in layout.layers] == ["000.tar", "001.tar"]
        assert all(p.is_file() for p in layout.layers)
        assert [c.command for c in layout.history] == [
            "/bin/sh -c #(nop) ADD file:123 in /",
            "/bin/sh -c #(nop)  ENV PATH=/usr/bin",
            "/bin/sh -c echo bbbb > /b.txt",
        ]
        assert layout.history[0].size == layout.layers[0].stat().st_size
        assert layout.history[1].size == 0
        assert layout.history[1].empty_layer is True
        assert layout.history[2].size == layout.layers[1].stat().st_size

    def test_not_a_tar(self, tmp_path):
        """Test a garbage file raises ArchiveFormatError."""
        archive = tmp_path / "broken.tar"
        archive.write_bytes(b"this is not a tarball")

        with pytest.raises(ArchiveFormatError):
            read_docker_archive(archive, tmp_path)

    def test_missing_manifest(self, tmp_path, layer_factory):
        """Test a tarball without manifest.json is rejected."""
        archive = tmp_path / "plain.tar"
        archive.write_bytes(layer_factory({"etc/hostname": "x"}))

        with pytest.raises(ArchiveFormatError, match="manifest.json"):
            read_docker_archive(archive, tmp_path)


class TestArchiveSource:
    """Tests for ArchiveSource."""

    def test_missing_file(self, tmp_path):
        """Test a missing archive raises RegistryNotFoundError."""
        with pytest.raises(RegistryNotFoundError):
            ArchiveSource().fetch(str(tmp_path / "missing.tar"), tmp_path)

    def test_fetch(self, tmp_path, archive_factory, layer_factory):
        """Test fetch reads an existing archive."""
        archive = archive_factory("image.tar", [layer_factory({"x": "1"})])
        dest = tmp_path / "dest"
        dest.mkdir()

        layout = ArchiveSource().fetch(str(archive), dest)

        assert len(layout.layers) == 1
        assert len(layout.history) == 1


class TestBuildHistory:
    """Tests for build_history."""

    def test_missing_history(self):
        """Test configs without history give an empty list."""
        assert build_history({}, [10, 20]) == []

    def test_more_entries_than_layers(self):
        """Test non-empty entries beyond the known layers get size zero."""
        history = build_history({"history": [{"created_by": "a"}, {"created_by": "b"}]}, [5])
        assert [c.size for c in history] == [5, 0]


class TestParseReference:
    """Tests for parse_reference."""

    def test_simple_name(self):
        """Test a bare repository name."""
        parsed = parse_reference("busybox")
        assert parsed["registry"] is None
        assert parsed["repository"] == "busybox"
        assert parsed["tag"] is None

    def test_registry_and_tag(self):
        """Test registry host, nested repository and tag."""
        parsed = parse_reference("gcr.io/google-appengine/python:latest")
        assert parsed["registry"] == "gcr.io"
        assert parsed["repository"] == "google-appengine/python"
        assert parsed["tag"] == "latest"

    def test_registry_with_port(self):
        """Test a registry host with a port is not mistaken for a tag."""
        parsed = parse_reference("localhost:5000/app")
        assert parsed["registry"] == "localhost:5000"
        assert parsed["repository"] == "app"
        assert parsed["tag"] is None

    def test_digest(self):
        """Test digest references."""
        digest = "sha256:" + "a" * 64
        parsed = parse_reference(f"library/nginx@{digest}")
        assert parsed["digest"] == digest
        assert parsed["repository"] == "library/nginx"
