"""Run options passed explicitly into the orchestrator."""

from enum import Enum

from pydantic import BaseModel, Field


class RetrievalMode(str, Enum):
    """How local images are read from the Docker daemon."""

    CLI = "cli"
    ENGINE = "engine"


class OutputFormat(str, Enum):
    """Supported output formats."""

    JSON = "json"
    TEXT = "text"


class RunOptions(BaseModel):
    """Selections for one analyze or diff run."""

    model_config = {"frozen": True}

    analyzers: list[str] = Field(
        default_factory=list,
        description="Analyzer names to run; empty means all registered analyzers",
    )
    output_format: OutputFormat = Field(default=OutputFormat.TEXT, description="Output format")
    persist: bool = Field(default=False, description="Keep extracted snapshots after the run")
    retrieval: RetrievalMode = Field(default=RetrievalMode.CLI, description="Docker daemon access mode")
