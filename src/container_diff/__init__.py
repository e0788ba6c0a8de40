"""container-diff: analyze and compare container images.

container-diff inventories one image, or compares two, across several
categories:

- **apt**: Debian packages from the dpkg database
- **node**: Node.js packages installed under node_modules
- **pip**: Python distributions in site-packages and dist-packages
- **file**: Every path of the flattened filesystem
- **history**: The instructions the image was built from

Images can be local Docker image IDs, registry URLs or ``docker save``
tarballs.

Usage:
    # Library API
    from container_diff import Orchestrator, RunOptions

    orchestrator = Orchestrator(RunOptions(analyzers=["apt", "pip"]))
    outcome = orchestrator.diff("library/python:3.11-slim", "library/python:3.12-slim")
    for name, result in outcome.report.ordered():
        print(name, result.added)

CLI:
    container-diff analyze <image> [--apt] [--node] [--pip] [--file] [--history]
    container-diff diff <image1> <image2> [--json] [--save]
"""

__version__ = "0.1.0"

# Core classes
from container_diff.core.engine import AnalysisEngine, EngineOutcome
from container_diff.core.orchestrator import Orchestrator, RunOutcome
from container_diff.core.report import build_report
from container_diff.core.resolver import ImageResolver

# Models (commonly used)
from container_diff.models.image import ImageReference, LayerCommand, Snapshot
from container_diff.models.options import OutputFormat, RetrievalMode, RunOptions
from container_diff.models.report import AnalysisReport, AnalyzerFailure, RunMode
from container_diff.models.results import AnalyzeResult, DiffResult

# Analyzers
from container_diff.analyzers.base import Analyzer
from container_diff.analyzers.registry import AnalyzerRegistry, get_default_registry

# Renderers
from container_diff.renderers.base import Renderer, RenderContext

__all__ = [
    # Version
    "__version__",
    # Core
    "AnalysisEngine",
    "EngineOutcome",
    "ImageResolver",
    "Orchestrator",
    "RunOutcome",
    "build_report",
    # Models
    "ImageReference",
    "LayerCommand",
    "Snapshot",
    "OutputFormat",
    "RetrievalMode",
    "RunOptions",
    "AnalysisReport",
    "AnalyzerFailure",
    "RunMode",
    "AnalyzeResult",
    "DiffResult",
    # Analyzers
    "Analyzer",
    "AnalyzerRegistry",
    "get_default_registry",
    # Renderers
    "Renderer",
    "RenderContext",
]
