"""Content hashing utilities."""

import hashlib
from pathlib import Path


def parse_digest(digest: str) -> tuple[str, str]:
    """Split an ``algorithm:hex`` content digest.

    A bare hex string is taken to be sha256.

    Returns:
        (algorithm, hex digest)
    """
    algorithm, sep, value = digest.partition(":")
    if not sep:
        return "sha256", digest
    return algorithm, value


def hash_file(path: Path | str, algorithm: str = "sha256", chunk_size: int = 65536) -> str:
    """Compute hash of a file without loading it whole.

    Args:
        path: Path to the file
        algorithm: Hash algorithm to use
        chunk_size: Size of chunks to read

    Returns:
        Hex digest of the file hash
    """
    hasher = hashlib.new(algorithm)
    with open(path, "rb") as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)
    return hasher.hexdigest()
