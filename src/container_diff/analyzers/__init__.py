"""Analyzers that inventory and compare image snapshots."""

from container_diff.analyzers.base import Analyzer
from container_diff.analyzers.filesystem import FileAnalyzer, normalize_path
from container_diff.analyzers.history import HistoryAnalyzer
from container_diff.analyzers.packages import PackageAnalyzer, diff_packages, version_key
from container_diff.analyzers.parsers import DpkgParser, NpmParser, PythonParser
from container_diff.analyzers.registry import AnalyzerRegistry, get_default_registry
from container_diff.utils.config import ContainerDiffConfig, get_config

__all__ = [
    "Analyzer",
    "AnalyzerRegistry",
    "get_default_registry",
    "FileAnalyzer",
    "HistoryAnalyzer",
    "PackageAnalyzer",
    "diff_packages",
    "normalize_path",
    "version_key",
    "default_analyzers",
    "register_default_analyzers",
]


def default_analyzers(config: ContainerDiffConfig | None = None) -> list[Analyzer]:
    """Build the built-in analyzers from configuration."""
    if config is None:
        config = get_config()

    return [
        PackageAnalyzer("apt", DpkgParser(), "Debian packages installed with apt/dpkg"),
        FileAnalyzer(
            case_sensitive=config.filesystem.case_sensitive,
            compute_digests=config.filesystem.compute_digests,
        ),
        HistoryAnalyzer(),
        PackageAnalyzer("node", NpmParser(), "Node.js packages installed under node_modules"),
        PackageAnalyzer("pip", PythonParser(), "Python distributions in site-packages"),
    ]


def register_default_analyzers(
    registry: AnalyzerRegistry | None = None,
    config: ContainerDiffConfig | None = None,
) -> AnalyzerRegistry:
    """Register all default analyzers with a registry.

    Args:
        registry: Optional registry to use. If None, uses the default registry.
        config: Configuration for the filesystem analyzer

    Returns:
        The registry with analyzers registered
    """
    if registry is None:
        registry = get_default_registry()

    for analyzer in default_analyzers(config):
        if analyzer.name not in registry:
            registry.register(analyzer)

    return registry
