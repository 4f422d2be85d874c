"""Repository analysis and deployment planning."""

import asyncio
from pathlib import Path

from deployplan.models import DeploymentPlan
from deployplan.workflows.analyze import run_analysis


def analyze_repository(path: str | Path) -> DeploymentPlan:
    """Analyze a checked-out repository and return its deployment plan.

    Raises:
        AnalyzeError: If the path is missing or not a directory.
    """
    return asyncio.run(run_analysis(Path(path)))


__all__ = ["DeploymentPlan", "analyze_repository", "run_analysis"]
