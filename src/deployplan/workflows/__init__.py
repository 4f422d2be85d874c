"""Workflow orchestration."""

from deployplan.workflows.analyze import (
    AnalyzeApps,
    DetectApps,
    DetectLayout,
    ResolveDeployOrder,
    analysis_graph,
    run_analysis,
)
from deployplan.workflows.state import AnalysisState, ProgressCallback, Severity

__all__ = [
    # Graph and nodes
    "analysis_graph",
    "AnalyzeApps",
    "DetectApps",
    "DetectLayout",
    "ResolveDeployOrder",
    "run_analysis",
    # State
    "AnalysisState",
    "ProgressCallback",
    "Severity",
]
