"""Core functionality for container-diff."""

from container_diff.core.engine import AnalysisEngine, EngineOutcome
from container_diff.core.layers import flatten_layers
from container_diff.core.orchestrator import Orchestrator, RunOutcome
from container_diff.core.report import build_report
from container_diff.core.resolver import ImageResolver

__all__ = [
    "AnalysisEngine",
    "EngineOutcome",
    "ImageResolver",
    "Orchestrator",
    "RunOutcome",
    "build_report",
    "flatten_layers",
]
