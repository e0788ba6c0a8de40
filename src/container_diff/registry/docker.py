"""Image source for the local Docker daemon."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

from container_diff.models.image import ImageLayout
from container_diff.models.options import RetrievalMode
from container_diff.registry.archive import read_docker_archive
from container_diff.registry.base import RegistryError, RegistryNotFoundError
from container_diff.utils.logging import get_logger

logger = get_logger("registry.docker")


class DockerSource:
    """Reads images from the local Docker daemon.

    The image is exported with ``docker save`` and then read like any
    other archive. In ``engine`` mode the export goes through the Docker
    SDK; in ``cli`` mode it shells out to the ``docker`` binary, which
    avoids API version mismatches between client and daemon.

    Example:
        source = DockerSource(RetrievalMode.ENGINE)
        layout = source.fetch("3f2a9c1d7e8b", Path("/tmp/work"))
    """

    def __init__(self, retrieval: RetrievalMode = RetrievalMode.CLI, docker_binary: str = "docker") -> None:
        """Initialize the Docker source.

        Args:
            retrieval: Whether to use the Docker SDK or the docker CLI
            docker_binary: docker executable used in CLI mode
        """
        self._retrieval = retrieval
        self._docker_binary = docker_binary
        self._client: Any = None

    @property
    def retrieval(self) -> RetrievalMode:
        return self._retrieval

    @property
    def client(self) -> Any:
        """Get the Docker client, creating it if necessary."""
        if self._client is None:
            import docker

            try:
                self._client = docker.from_env()
            except docker.errors.DockerException as e:
                raise RegistryError(
                    f"Failed to connect to Docker daemon: {e}",
                    code="CONNECTION_ERROR",
                )
        return self._client

    def fetch(self, reference: str, dest: Path) -> ImageLayout:
        """Export an image from the daemon and read its layers.

        Args:
            reference: Local image ID or name
            dest: Existing directory to write layer tarballs into

        Returns:
            Layer paths and build history

        Raises:
            RegistryNotFoundError: If the daemon does not know the image
            RegistryError: For other errors
        """
        export = dest / "image.tar"
        if self._retrieval == RetrievalMode.ENGINE:
            self._save_with_engine(reference, export)
        else:
            self._save_with_cli(reference, export)

        try:
            return read_docker_archive(export, dest)
        finally:
            export.unlink(missing_ok=True)

    def _save_with_engine(self, reference: str, export: Path) -> None:
        import docker

        try:
            image = self.client.images.get(reference)
        except docker.errors.ImageNotFound:
            raise RegistryNotFoundError(reference)
        except docker.errors.APIError as e:
            raise RegistryError(f"Failed to inspect image {reference}: {e}")

        logger.debug(f"Exporting {reference} through the Docker Engine API")
        try:
            with open(export, "wb") as f:
                for chunk in image.save(named=False):
                    f.write(chunk)
        except docker.errors.APIError as e:
            raise RegistryError(f"Failed to export image {reference}: {e}")

    def _save_with_cli(self, reference: str, export: Path) -> None:
        cmd = [self._docker_binary, "save", "-o", str(export), reference]
        logger.debug(f"Running {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            raise RegistryError(
                f"'{self._docker_binary}' executable not found; install Docker or use the engine mode",
                code="MISSING_DEPENDENCY",
            )

        if result.returncode != 0:
            stderr = result.stderr.strip()
            lowered = stderr.lower()
            if "no such image" in lowered or "not found" in lowered:
                raise RegistryNotFoundError(reference)
            raise RegistryError(f"docker save failed for {reference}: {stderr}")
