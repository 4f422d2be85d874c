"""Repository detectors."""

from deployplan.detectors.app_graph import AppDependencyDetector
from deployplan.detectors.apps import AppDetector
from deployplan.detectors.ci import CIConfigDetector
from deployplan.detectors.compose import DockerComposeAnalyzer
from deployplan.detectors.dependencies import DependencyAnalyzer
from deployplan.detectors.dockerfile import DockerfileAnalyzer
from deployplan.detectors.env_file import parse_env_file
from deployplan.detectors.health import HealthCheckDetector
from deployplan.detectors.monorepo import MonorepoDetector
from deployplan.detectors.ports import PortDetector

__all__ = [
    "AppDependencyDetector",
    "AppDetector",
    "CIConfigDetector",
    "DependencyAnalyzer",
    "DockerComposeAnalyzer",
    "DockerfileAnalyzer",
    "HealthCheckDetector",
    "MonorepoDetector",
    "PortDetector",
    "parse_env_file",
]
