"""State for the analysis workflow."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from deployplan.models import AppDependency, AppPlan, DeploymentPlan, DetectedApp, MonorepoInfo


class Severity(StrEnum):
    """Severity levels for progress messages."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


ProgressCallback = Callable[[Severity, str], None]


def _noop_progress(severity: Severity, message: str) -> None:
    """Default no-op progress callback."""


@dataclass
class AnalysisState:
    """Shared state for the analysis workflow."""

    path: Path

    # CLI provides a Rich-based implementation
    on_progress: ProgressCallback = _noop_progress

    monorepo: MonorepoInfo | None = None
    apps: list[DetectedApp] = field(default_factory=list)
    app_plans: list[AppPlan] = field(default_factory=list)
    app_dependencies: list[AppDependency] = field(default_factory=list)

    # Set by the final node
    plan: DeploymentPlan | None = None
