"""ImageResolver: turns image references into flattened snapshots."""

from __future__ import annotations

import shutil
import tarfile
import tempfile
from pathlib import Path

from container_diff.core.layers import flatten_layers
from container_diff.models.image import ImageLayout, ImageReference, ReferenceKind, Snapshot
from container_diff.models.options import RetrievalMode
from container_diff.registry.archive import ArchiveSource
from container_diff.registry.base import (
    ArchiveFormatError,
    ImageSource,
    RegistryError,
    RegistryNotFoundError,
)
from container_diff.registry.docker import DockerSource
from container_diff.registry.oci import OCIRegistry
from container_diff.utils.config import ContainerDiffConfig
from container_diff.utils.errors import (
    ExtractError,
    ImageNotFoundError,
    TransportError,
    classify_reference,
)
from container_diff.utils.logging import get_logger, get_logger_with_context

logger = get_logger("resolver")

SNAPSHOT_PREFIX = "container-diff-"


class ImageResolver:
    """Resolves image references to on-disk filesystem snapshots.

    Local image IDs are exported from the Docker daemon, remote URLs are
    pulled from their registry and archives are read from disk. Whatever
    the source, the layers are flattened into one root directory inside a
    private temporary directory owned by the returned snapshot.

    Example:
        resolver = ImageResolver.from_config(get_config())
        snapshot = resolver.resolve("gcr.io/google-appengine/python:latest")
        try:
            print(snapshot.root)
        finally:
            resolver.release(snapshot)
    """

    def __init__(
        self,
        sources: dict[ReferenceKind, ImageSource] | None = None,
        work_dir: Path | str | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            sources: Image source per reference kind; defaults are used for
                any kind not given
            work_dir: Parent directory for snapshots (system temp dir if None)
        """
        defaults: dict[ReferenceKind, ImageSource] = {
            ReferenceKind.ARCHIVE: ArchiveSource(),
            ReferenceKind.LOCAL_ID: DockerSource(),
            ReferenceKind.REMOTE_URL: OCIRegistry(),
        }
        defaults.update(sources or {})
        self._sources = defaults
        self._work_dir = Path(work_dir) if work_dir else None

    @classmethod
    def from_config(
        cls,
        config: ContainerDiffConfig,
        retrieval: RetrievalMode | None = None,
    ) -> "ImageResolver":
        """Build a resolver from configuration.

        Args:
            config: Loaded configuration
            retrieval: Overrides the configured Docker retrieval mode
        """
        sources: dict[ReferenceKind, ImageSource] = {
            ReferenceKind.ARCHIVE: ArchiveSource(),
            ReferenceKind.LOCAL_ID: DockerSource(retrieval or config.resolver.retrieval),
            ReferenceKind.REMOTE_URL: OCIRegistry(
                timeout=config.registry.timeout,
                max_retries=config.registry.max_retries,
                insecure_registries=config.registry.insecure_registries,
            ),
        }
        return cls(sources=sources, work_dir=config.resolver.work_dir)

    def resolve(self, reference: ImageReference | str) -> Snapshot:
        """Fetch and flatten an image.

        Args:
            reference: A classified reference, or a raw string to classify

        Returns:
            Snapshot whose root holds the image's final filesystem

        Raises:
            ArgumentError: If a raw reference cannot be classified
            ImageNotFoundError: If the image does not exist
            TransportError: If fetching the image failed
            ExtractError: If the image could not be unpacked
        """
        if isinstance(reference, str):
            reference = classify_reference(reference)

        log = get_logger_with_context("resolver", image=reference.raw)
        source = self._sources[reference.kind]

        if self._work_dir is not None:
            self._work_dir.mkdir(parents=True, exist_ok=True)
        work_dir = Path(tempfile.mkdtemp(prefix=SNAPSHOT_PREFIX, dir=self._work_dir))
        root = work_dir / "rootfs"

        completed = False
        try:
            with tempfile.TemporaryDirectory(prefix="layers-", dir=work_dir) as layer_dir:
                log.info(f"Retrieving {reference.kind.value} image")
                layout = self._fetch(source, reference, Path(layer_dir))

                log.info(f"Flattening {len(layout.layers)} layer(s)")
                try:
                    flatten_layers(layout.layers, root)
                except (tarfile.TarError, OSError, KeyError) as e:
                    raise ExtractError(f"Failed to unpack {reference.raw}: {e}", reference=reference.raw)

            snapshot = Snapshot(
                reference=reference,
                root=root,
                history=layout.history,
                work_dir=work_dir,
            )
            completed = True
            return snapshot
        finally:
            if not completed:
                shutil.rmtree(work_dir, ignore_errors=True)

    @staticmethod
    def _fetch(source: ImageSource, reference: ImageReference, dest: Path) -> ImageLayout:
        try:
            return source.fetch(reference.raw, dest)
        except RegistryNotFoundError:
            raise ImageNotFoundError(reference.raw)
        except ArchiveFormatError as e:
            raise ExtractError(str(e), reference=reference.raw)
        except RegistryError as e:
            raise TransportError(f"Failed to retrieve {reference.raw}: {e}", reference=reference.raw)

    def release(self, snapshot: Snapshot) -> None:
        """Delete a snapshot's private directory.

        Releasing an already released snapshot does nothing. Removal
        failures are logged rather than raised so that cleanup of one
        snapshot never prevents cleanup of another.
        """
        if not snapshot.work_dir.exists():
            return
        logger.info(f"Removing image filesystem directory {snapshot.work_dir} from system")
        try:
            shutil.rmtree(snapshot.work_dir)
        except OSError as e:
            logger.error(f"Unable to remove {snapshot.work_dir}: {e}")
