"""Error handling utilities for container-diff."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from container_diff.models.common import ErrorInfo
from container_diff.models.image import ImageReference, ReferenceKind

ARCHIVE_SUFFIXES = (".tar", ".tar.gz", ".tgz")

_IMAGE_ID_RE = re.compile(r"^(sha256:)?([a-f0-9]{12}|[a-f0-9]{64})$")
_IMAGE_URL_RE = re.compile(r"^.+/.+(:.+)?$")
_IMAGE_DIGEST_RE = re.compile(r"^.+@sha256:[a-f0-9]{64}$")


class ContainerDiffError(Exception):
    """Base exception for container-diff."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR", details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_error_info(self) -> ErrorInfo:
        """Convert to ErrorInfo model."""
        return ErrorInfo(code=self.code, message=self.message, details=self.details)


class ArgumentError(ContainerDiffError):
    """Wrong number or type of image arguments."""

    def __init__(self, message: str, argument: str | None = None):
        details = {"argument": argument} if argument else {}
        super().__init__(message, code="ARGUMENT_ERROR", details=details)


class UnknownAnalyzerError(ContainerDiffError):
    """One or more requested analyzer names are not registered."""

    def __init__(self, unknown: list[str], known: list[str]):
        super().__init__(
            f"Unknown analyzer(s): {', '.join(unknown)}. Valid analyzers: {', '.join(known)}",
            code="UNKNOWN_ANALYZER",
            details={"unknown": unknown, "known": known},
        )
        self.unknown = unknown
        self.known = known


class ResolutionError(ContainerDiffError):
    """An image reference could not be turned into a snapshot."""

    def __init__(self, message: str, reference: str | None = None, code: str = "RESOLUTION_ERROR"):
        details = {"reference": reference} if reference else {}
        super().__init__(message, code=code, details=details)
        self.reference = reference


class ImageNotFoundError(ResolutionError):
    """Image was not found."""

    def __init__(self, reference: str):
        super().__init__(f"Image not found: {reference}", reference=reference, code="IMAGE_NOT_FOUND")


class TransportError(ResolutionError):
    """Fetching the image from the daemon or registry failed."""

    def __init__(self, message: str, reference: str | None = None):
        super().__init__(message, reference=reference, code="TRANSPORT_ERROR")


class ExtractError(ResolutionError):
    """Unpacking or flattening the image layers failed."""

    def __init__(self, message: str, reference: str | None = None):
        super().__init__(message, reference=reference, code="EXTRACT_ERROR")


class ResolutionFailure(ContainerDiffError):
    """One or more images of a run failed to resolve.

    Carries every per-image error so that a two-image run reports both
    sides instead of whichever failed last.
    """

    def __init__(self, errors: list[ResolutionError], retained: list[Path] | None = None):
        lines = [f"{e.reference or '?'}: {e.message}" for e in errors]
        super().__init__(
            "Failed to resolve image(s): " + "; ".join(lines),
            code="RESOLUTION_FAILURE",
            details={"errors": [e.to_error_info().model_dump() for e in errors]},
        )
        self.errors = errors
        self.retained = retained or []


class AnalysisError(ContainerDiffError):
    """An analyzer failed to parse or walk a snapshot."""

    def __init__(self, message: str, analyzer: str | None = None):
        details = {"analyzer": analyzer} if analyzer else {}
        super().__init__(message, code="ANALYSIS_ERROR", details=details)


class ConfigurationError(ContainerDiffError):
    """Configuration error."""

    def __init__(self, message: str, config_key: str | None = None):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, code="CONFIG_ERROR", details=details)


def is_archive(reference: str) -> bool:
    """Check whether a reference names an existing image archive on disk."""
    if not reference.endswith(ARCHIVE_SUFFIXES):
        return False
    return Path(reference).is_file()


def is_image_id(reference: str) -> bool:
    """Check whether a reference looks like a local image ID."""
    return _IMAGE_ID_RE.match(reference) is not None


def is_image_url(reference: str) -> bool:
    """Check whether a reference looks like a remote image URL."""
    return bool(_IMAGE_URL_RE.match(reference) or _IMAGE_DIGEST_RE.match(reference))


def classify_reference(reference: str) -> ImageReference:
    """Validate an image reference string and determine its kind.

    Archives are checked first so that a relative path such as
    ``images/app.tar`` is not mistaken for a registry URL.

    Args:
        reference: Image reference to classify

    Returns:
        The typed ImageReference

    Raises:
        ArgumentError: If the reference is none of ID, URL or archive
    """
    if not reference:
        raise ArgumentError("Image reference cannot be empty", argument=reference)

    if reference.startswith("-"):
        raise ArgumentError("Image reference cannot start with '-'", argument=reference)

    if is_archive(reference):
        return ImageReference(raw=reference, kind=ReferenceKind.ARCHIVE)
    if is_image_id(reference):
        return ImageReference(raw=reference, kind=ReferenceKind.LOCAL_ID)
    if is_image_url(reference):
        return ImageReference(raw=reference, kind=ReferenceKind.REMOTE_URL)

    raise ArgumentError(
        f"Argument {reference} is not an image ID, URL, or tar",
        argument=reference,
    )


def classify_references(references: list[str], expected: int) -> list[ImageReference]:
    """Check the reference count, then classify each reference.

    All invalid references are reported together.

    Raises:
        ArgumentError: On a wrong count or any invalid reference
    """
    if len(references) != expected:
        noun = "image" if expected == 1 else "images"
        raise ArgumentError(
            f"Expected {expected} {noun} as arguments, got {len(references)}"
        )

    classified: list[ImageReference] = []
    problems: list[str] = []
    for reference in references:
        try:
            classified.append(classify_reference(reference))
        except ArgumentError as e:
            problems.append(e.message)

    if problems:
        raise ArgumentError("\n".join(problems))
    return classified

