"""Pydantic models for the final deployment plan."""

from pydantic import BaseModel, Field

from deployplan.models.analysis import (
    AppDependency,
    CIConfig,
    DetectedApp,
    DetectedDatabase,
    DetectedEnvVariable,
    DetectedHealthCheck,
    DetectedPersistentVolume,
    DetectedPort,
    DetectedService,
    MonorepoInfo,
)
from deployplan.models.docker import ComposeInfo, DockerfileInfo


class AppPlan(BaseModel):
    """Everything detected for a single app."""

    app: DetectedApp
    databases: list[DetectedDatabase] = Field(default_factory=list)
    services: list[DetectedService] = Field(default_factory=list)
    env_variables: list[DetectedEnvVariable] = Field(default_factory=list)
    persistent_volumes: list[DetectedPersistentVolume] = Field(default_factory=list)
    health_check: DetectedHealthCheck | None = None
    port: DetectedPort | None = None
    ci_config: CIConfig | None = None
    dockerfile: DockerfileInfo | None = None
    compose: ComposeInfo | None = None


class DeploymentPlan(BaseModel):
    """Combined, deploy-ordered result of a repository analysis."""

    repository: str
    monorepo: MonorepoInfo
    apps: list[AppPlan] = Field(default_factory=list)
    app_dependencies: list[AppDependency] = Field(default_factory=list)
    databases: list[DetectedDatabase] = Field(default_factory=list)
