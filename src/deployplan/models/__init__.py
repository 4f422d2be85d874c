"""Pydantic models for deployplan."""

from deployplan.models.analysis import (
    AppDependency,
    AppType,
    BuildPack,
    CIConfig,
    DependencyAnalysisResult,
    DetectedApp,
    DetectedDatabase,
    DetectedEnvVariable,
    DetectedHealthCheck,
    DetectedPersistentVolume,
    DetectedPort,
    DetectedService,
    EnvCategory,
    MonorepoInfo,
    MonorepoType,
)
from deployplan.models.docker import (
    ComposeInfo,
    ComposeService,
    DockerfileInfo,
    DockerHealthcheck,
)
from deployplan.models.plan import AppPlan, DeploymentPlan

__all__ = [
    "AppDependency",
    "AppPlan",
    "AppType",
    "BuildPack",
    "CIConfig",
    "ComposeInfo",
    "ComposeService",
    "DependencyAnalysisResult",
    "DeploymentPlan",
    "DetectedApp",
    "DetectedDatabase",
    "DetectedEnvVariable",
    "DetectedHealthCheck",
    "DetectedPersistentVolume",
    "DetectedPort",
    "DetectedService",
    "DockerHealthcheck",
    "DockerfileInfo",
    "EnvCategory",
    "MonorepoInfo",
    "MonorepoType",
]
