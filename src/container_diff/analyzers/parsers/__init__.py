"""Package database parsers, one per ecosystem."""

from container_diff.analyzers.parsers.base import PackageParser, add_package, dir_size
from container_diff.analyzers.parsers.dpkg import DpkgParser
from container_diff.analyzers.parsers.npm import NpmParser
from container_diff.analyzers.parsers.python import PythonParser, canonicalize_name

__all__ = [
    "PackageParser",
    "add_package",
    "dir_size",
    "DpkgParser",
    "NpmParser",
    "PythonParser",
    "canonicalize_name",
]
