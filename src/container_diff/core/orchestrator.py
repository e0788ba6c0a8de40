"""Orchestrator: validates, resolves, analyzes and cleans up one run."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from pydantic import BaseModel, Field

from container_diff.analyzers import AnalyzerRegistry, register_default_analyzers
from container_diff.core.engine import AnalysisEngine
from container_diff.core.report import build_report
from container_diff.core.resolver import ImageResolver
from container_diff.models.image import ImageReference, Snapshot
from container_diff.models.options import RunOptions
from container_diff.models.report import AnalysisReport, RunMode
from container_diff.utils.config import ContainerDiffConfig, get_config
from container_diff.utils.errors import (
    ResolutionError,
    ResolutionFailure,
    classify_references,
)
from container_diff.utils.logging import get_logger

logger = get_logger("orchestrator")


class RunOutcome(BaseModel):
    """Report of a run plus any snapshot roots kept on disk."""

    report: AnalysisReport = Field(description="Aggregated analyzer report")
    retained: list[Path] = Field(default_factory=list, description="Roots of retained snapshots")


class Orchestrator:
    """Runs the analyze and diff workflows.

    Arguments and analyzer names are validated before anything is fetched.
    Images are resolved in parallel, analyzed by the engine, and their
    snapshots released afterwards unless ``persist`` is set in the options.

    Example:
        orchestrator = Orchestrator(RunOptions(analyzers=["apt", "file"]))
        outcome = orchestrator.diff("library/debian:11", "library/debian:12")
        for name, result in outcome.report.ordered():
            print(name, result.is_empty)
    """

    def __init__(
        self,
        options: RunOptions,
        resolver: ImageResolver | None = None,
        registry: AnalyzerRegistry | None = None,
        engine: AnalysisEngine | None = None,
        config: ContainerDiffConfig | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            options: Selections for this run
            resolver: Image resolver (built from configuration if None)
            registry: Analyzer registry (the built-in analyzers, configured
                from ``config``, if None)
            engine: Analysis engine (built from configuration if None)
            config: Configuration (the global configuration if None)
        """
        if config is None:
            config = get_config()
        self._options = options
        self._resolver = resolver or ImageResolver.from_config(config, options.retrieval)
        if registry is None:
            registry = register_default_analyzers(AnalyzerRegistry(), config)
        self._registry = registry
        self._engine = engine or AnalysisEngine.from_config(config)

    @property
    def options(self) -> RunOptions:
        return self._options

    def analyze(self, image: str) -> RunOutcome:
        """Inventory one image.

        Args:
            image: Image ID, URL or archive path

        Returns:
            RunOutcome with one result or failure per selected analyzer

        Raises:
            ArgumentError: If the reference is invalid
            UnknownAnalyzerError: If an analyzer name is not registered
            ResolutionFailure: If the image could not be resolved
        """
        references = classify_references([image], 1)
        analyzers = self._registry.validate_names(self._options.analyzers)
        snapshots = self._resolve_all(references)

        retained: list[Path] = []
        try:
            outcome = self._engine.run_single(snapshots[0], analyzers)
            report = build_report(RunMode.ANALYZE, [image], [a.name for a in analyzers], outcome)
        finally:
            retained = self._finish(snapshots)

        return RunOutcome(report=report, retained=retained)

    def diff(self, image1: str, image2: str) -> RunOutcome:
        """Compare two images.

        Args:
            image1: First image ID, URL or archive path
            image2: Second image ID, URL or archive path

        Returns:
            RunOutcome with one diff result or failure per selected analyzer

        Raises:
            ArgumentError: If either reference is invalid
            UnknownAnalyzerError: If an analyzer name is not registered
            ResolutionFailure: If either image could not be resolved
        """
        references = classify_references([image1, image2], 2)
        analyzers = self._registry.validate_names(self._options.analyzers)
        snapshots = self._resolve_all(references)

        retained: list[Path] = []
        try:
            outcome = self._engine.run_diff(snapshots[0], snapshots[1], analyzers)
            report = build_report(RunMode.DIFF, [image1, image2], [a.name for a in analyzers], outcome)
        finally:
            retained = self._finish(snapshots)

        return RunOutcome(report=report, retained=retained)

    def _resolve_all(self, references: list[ImageReference]) -> list[Snapshot]:
        """Resolve every reference on its own task and collect all errors.

        Raises:
            ResolutionFailure: If any reference failed; successful snapshots
                are released (or retained) first
        """
        snapshots: list[Snapshot] = []
        errors: list[ResolutionError] = []

        with ThreadPoolExecutor(max_workers=len(references), thread_name_prefix="resolver") as executor:
            futures = [executor.submit(self._resolver.resolve, reference) for reference in references]

            for reference, future in zip(references, futures):
                try:
                    snapshots.append(future.result())
                except ResolutionError as e:
                    logger.error(f"Failed to resolve {reference.raw}: {e.message}")
                    errors.append(e)
                except Exception as e:
                    logger.error(f"Failed to resolve {reference.raw}: {e}", exc_info=True)
                    errors.append(ResolutionError(str(e), reference=reference.raw))

        if errors:
            retained = self._finish(snapshots)
            raise ResolutionFailure(errors, retained)
        return snapshots

    def _finish(self, snapshots: list[Snapshot]) -> list[Path]:
        """Release snapshots, or keep them when persistence was requested.

        Returns:
            Roots of the retained snapshots
        """
        if self._options.persist:
            for snapshot in snapshots:
                logger.info(f"Image {snapshot.image} filesystem retained at {snapshot.root}")
            return [snapshot.root for snapshot in snapshots]

        for snapshot in snapshots:
            self._resolver.release(snapshot)
        return []
