"""AnalysisEngine: runs analyzers against snapshots concurrently."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable

from pydantic import BaseModel, Field

from container_diff.analyzers.base import Analyzer
from container_diff.models.common import ErrorInfo
from container_diff.models.image import Snapshot
from container_diff.models.results import AnalyzeResult, DiffResult
from container_diff.utils.config import ContainerDiffConfig
from container_diff.utils.errors import ContainerDiffError
from container_diff.utils.logging import get_logger

logger = get_logger("engine")


class EngineOutcome(BaseModel):
    """Per-analyzer results and failures of one engine run."""

    results: dict[str, AnalyzeResult | DiffResult] = Field(
        default_factory=dict,
        description="Result per analyzer that succeeded",
    )
    failures: dict[str, ErrorInfo] = Field(
        default_factory=dict,
        description="Error per analyzer that failed",
    )


class AnalysisEngine:
    """Runs a set of analyzers over one or two snapshots.

    Analyzers only read snapshots, so they run in parallel on a thread
    pool. A failing analyzer is recorded in the outcome's failures and
    does not affect the others.

    Example:
        engine = AnalysisEngine(max_workers=4)
        outcome = engine.run_diff(snapshot1, snapshot2, registry.validate_names([]))
        for name, error in outcome.failures.items():
            print(f"{name}: {error}")
    """

    def __init__(self, max_workers: int = 4) -> None:
        """Initialize the engine.

        Args:
            max_workers: Maximum number of analyzers running at once
        """
        self._max_workers = max(1, max_workers)

    @classmethod
    def from_config(cls, config: ContainerDiffConfig) -> "AnalysisEngine":
        return cls(max_workers=config.engine.max_workers)

    def run_single(self, snapshot: Snapshot, analyzers: list[Analyzer]) -> EngineOutcome:
        """Inventory one snapshot with every analyzer.

        Args:
            snapshot: Snapshot to analyze
            analyzers: Analyzers to run

        Returns:
            EngineOutcome keyed by analyzer name
        """
        return self._run(analyzers, lambda analyzer: analyzer.analyze(snapshot))

    def run_diff(self, snapshot1: Snapshot, snapshot2: Snapshot, analyzers: list[Analyzer]) -> EngineOutcome:
        """Compare two snapshots with every analyzer.

        Args:
            snapshot1: First snapshot
            snapshot2: Second snapshot
            analyzers: Analyzers to run

        Returns:
            EngineOutcome keyed by analyzer name
        """
        return self._run(analyzers, lambda analyzer: analyzer.diff(snapshot1, snapshot2))

    def _run(
        self,
        analyzers: list[Analyzer],
        task: Callable[[Analyzer], AnalyzeResult | DiffResult],
    ) -> EngineOutcome:
        results: dict[str, AnalyzeResult | DiffResult] = {}
        failures: dict[str, ErrorInfo] = {}
        if not analyzers:
            return EngineOutcome()

        workers = min(self._max_workers, len(analyzers))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="analyzer") as executor:
            future_to_name = {executor.submit(task, analyzer): analyzer.name for analyzer in analyzers}

            for future in as_completed(future_to_name):
                name = future_to_name[future]
                try:
                    results[name] = future.result()
                    logger.debug(f"Analyzer {name} finished")
                except ContainerDiffError as e:
                    logger.warning(f"Analyzer {name} failed: {e.message}")
                    failures[name] = e.to_error_info()
                except Exception as e:
                    logger.warning(f"Analyzer {name} failed unexpectedly: {e}", exc_info=True)
                    failures[name] = ErrorInfo(
                        code="ANALYSIS_ERROR",
                        message=f"{type(e).__name__}: {e}",
                        details={"analyzer": name},
                    )

        return EngineOutcome(results=results, failures=failures)
