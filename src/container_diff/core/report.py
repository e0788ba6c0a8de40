"""Aggregation of engine outcomes into reports."""

from __future__ import annotations

from container_diff.core.engine import EngineOutcome
from container_diff.models.common import ErrorInfo
from container_diff.models.report import AnalysisReport, AnalyzerFailure, RunMode
from container_diff.utils.logging import get_logger

logger = get_logger("report")


def build_report(
    mode: RunMode,
    images: list[str],
    requested: list[str],
    outcome: EngineOutcome,
) -> AnalysisReport:
    """Build a report accounting for exactly the requested analyzers.

    Every requested name appears once, either as a result or as a failure.
    A requested analyzer that produced neither is recorded as a failure
    with code ``ANALYZER_MISSING``. Results and failures are sorted by
    analyzer name.

    Args:
        mode: Whether this was an analyze or diff run
        images: Image references, in argument order
        requested: Names of the analyzers that were run
        outcome: Engine outcome

    Returns:
        The aggregated report
    """
    results = []
    failures = []

    for name in sorted(set(requested)):
        if name in outcome.results:
            results.append(outcome.results[name])
        elif name in outcome.failures:
            failures.append(AnalyzerFailure(analyzer=name, error=outcome.failures[name]))
        else:
            failures.append(
                AnalyzerFailure(
                    analyzer=name,
                    error=ErrorInfo(
                        code="ANALYZER_MISSING",
                        message=f"Analyzer {name} produced no result",
                        details={"analyzer": name},
                    ),
                )
            )

    extra = (set(outcome.results) | set(outcome.failures)) - set(requested)
    if extra:
        logger.debug(f"Dropping output of analyzers that were not requested: {', '.join(sorted(extra))}")

    return AnalysisReport(mode=mode, images=images, results=results, failures=failures)
