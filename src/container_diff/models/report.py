"""Aggregated report models handed to renderers."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, SerializeAsAny

from container_diff.models.common import ErrorInfo
from container_diff.models.results import AnalyzeResult, DiffResult


class RunMode(str, Enum):
    """Which workflow produced a report."""

    ANALYZE = "analyze"
    DIFF = "diff"


class AnalyzerFailure(BaseModel):
    """An analyzer that produced no result."""

    model_config = {"frozen": True}

    analyzer: str = Field(description="Analyzer name")
    error: ErrorInfo = Field(description="Why it failed")


class AnalysisReport(BaseModel):
    """Results of one run, ordered alphabetically by analyzer name."""

    model_config = {"frozen": True}

    mode: RunMode = Field(description="analyze or diff")
    images: list[str] = Field(description="Image references, in argument order")
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Report generation timestamp",
    )
    results: list[SerializeAsAny[AnalyzeResult] | SerializeAsAny[DiffResult]] = Field(
        default_factory=list,
        description="Successful results, sorted by analyzer",
    )
    failures: list[AnalyzerFailure] = Field(
        default_factory=list,
        description="Failed analyzers, sorted by analyzer",
    )

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def analyzer_names(self) -> list[str]:
        """Every analyzer accounted for, succeeded or failed."""
        names = [r.analyzer for r in self.results] + [f.analyzer for f in self.failures]
        return sorted(names)

    def ordered(self) -> list[tuple[str, AnalyzeResult | DiffResult]]:
        """(name, result) pairs in alphabetical order, for text rendering."""
        return [(r.analyzer, r) for r in sorted(self.results, key=lambda r: r.analyzer)]

    def structured(self) -> list[dict[str, Any]]:
        """One JSON-ready object per analyzer, in alphabetical order."""
        return [result.model_dump(mode="json") for _, result in self.ordered()]

    def get(self, analyzer: str) -> AnalyzeResult | DiffResult | None:
        for result in self.results:
            if result.analyzer == analyzer:
                return result
        return None
