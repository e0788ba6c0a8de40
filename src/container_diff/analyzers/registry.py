"""Analyzer registry for managing and validating analyzers."""

from typing import Iterator

from container_diff.analyzers.base import Analyzer
from container_diff.utils.errors import UnknownAnalyzerError


class AnalyzerRegistry:
    """Registry of analyzers, keyed by name.

    Requested analyzer names are validated here before any image is
    fetched, so a typo fails fast.

    Example:
        registry = AnalyzerRegistry()
        registry.register(HistoryAnalyzer())

        for analyzer in registry.validate_names(["history"]):
            print(analyzer.description)
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._analyzers: dict[str, Analyzer] = {}

    def register(self, analyzer: Analyzer) -> None:
        """Register an analyzer.

        Args:
            analyzer: The analyzer to register

        Raises:
            ValueError: If an analyzer with the same name is already registered
        """
        if analyzer.name in self._analyzers:
            raise ValueError(f"Analyzer '{analyzer.name}' is already registered")
        self._analyzers[analyzer.name] = analyzer

    def unregister(self, name: str) -> None:
        """Unregister an analyzer by name.

        Raises:
            KeyError: If no analyzer with that name is registered
        """
        if name not in self._analyzers:
            raise KeyError(f"No analyzer named '{name}' is registered")
        del self._analyzers[name]

    def get(self, name: str) -> Analyzer | None:
        """Get an analyzer by name, or None if not found."""
        return self._analyzers.get(name)

    def __getitem__(self, name: str) -> Analyzer:
        if name not in self._analyzers:
            raise KeyError(f"No analyzer named '{name}' is registered")
        return self._analyzers[name]

    def __contains__(self, name: str) -> bool:
        return name in self._analyzers

    def __iter__(self) -> Iterator[Analyzer]:
        return iter(self._analyzers.values())

    def __len__(self) -> int:
        return len(self._analyzers)

    @property
    def names(self) -> list[str]:
        """Get names of all registered analyzers, sorted."""
        return sorted(self._analyzers.keys())

    def validate_names(self, requested: list[str] | None) -> list[Analyzer]:
        """Resolve requested names to analyzers.

        An empty request selects every registered analyzer. Duplicate
        names collapse to one analyzer.

        Args:
            requested: Analyzer names, in any order

        Returns:
            The selected analyzers, ordered by name

        Raises:
            UnknownAnalyzerError: If any name is not registered
        """
        if not requested:
            return [self._analyzers[name] for name in self.names]

        unique = sorted(set(requested))
        unknown = [name for name in unique if name not in self._analyzers]
        if unknown:
            raise UnknownAnalyzerError(unknown, self.names)
        return [self._analyzers[name] for name in unique]

    def clear(self) -> None:
        """Remove all registered analyzers."""
        self._analyzers.clear()


# Global default registry
_default_registry: AnalyzerRegistry | None = None


def get_default_registry() -> AnalyzerRegistry:
    """Get the default global analyzer registry.

    The registry is created on first use with the built-in analyzers
    (apt, file, history, node, pip) registered.

    Returns:
        The default AnalyzerRegistry instance
    """
    global _default_registry
    if _default_registry is None:
        from container_diff.analyzers import register_default_analyzers

        _default_registry = register_default_analyzers(AnalyzerRegistry())
    return _default_registry
