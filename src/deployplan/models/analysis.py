"""Pydantic models for repository analysis results."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class MonorepoType(StrEnum):
    """Workspace managers recognised at the repository root."""

    TURBOREPO = "turborepo"
    NX = "nx"
    LERNA = "lerna"
    PNPM = "pnpm"
    RUSH = "rush"
    NPM_WORKSPACES = "npm-workspaces"
    SIMPLE = "simple"
    NONE = "none"


class BuildPack(StrEnum):
    """Build/runtime strategy chosen for an app."""

    NIXPACKS = "nixpacks"
    STATIC = "static"
    DOCKERFILE = "dockerfile"
    DOCKER_COMPOSE = "docker-compose"


class AppType(StrEnum):
    FRONTEND = "frontend"
    BACKEND = "backend"
    FULLSTACK = "fullstack"
    UNKNOWN = "unknown"


class EnvCategory(StrEnum):
    DATABASE = "database"
    CACHE = "cache"
    STORAGE = "storage"
    EMAIL = "email"
    SECRETS = "secrets"
    NETWORK = "network"
    GENERAL = "general"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class MonorepoInfo(_Frozen):
    """Layout of the repository root."""

    is_monorepo: bool
    type: MonorepoType
    workspace_paths: list[str] = Field(default_factory=list)
    detected_via: str | None = None

    @classmethod
    def not_monorepo(cls) -> "MonorepoInfo":
        return cls(is_monorepo=False, type=MonorepoType.NONE, workspace_paths=[])


class DetectedApp(_Frozen):
    """A deployable unit found in the repository."""

    name: str
    path: str  # relative to repo root, "." for the root itself
    framework: str
    build_pack: BuildPack
    default_port: int
    build_command: str | None = None
    publish_directory: str | None = None
    type: AppType = AppType.BACKEND
    detected_via: str


class AppDependency(_Frozen):
    """Inter-app edges and the resolved deploy rank for one app."""

    app_name: str
    depends_on: list[str] = Field(default_factory=list)
    internal_urls: dict[str, str] = Field(default_factory=dict)  # env var -> app name
    deploy_order: int
    detected_via: list[str] = Field(default_factory=list)


class DetectedDatabase(_Frozen):
    """A standalone database the app needs."""

    type: str
    name: str
    env_var_name: str
    consumers: list[str] = Field(default_factory=list)
    detected_via: str


class DetectedService(_Frozen):
    """An external service (storage, search, broker, email) the app needs."""

    type: str
    name: str
    description: str
    env_var_name: str
    required_env_vars: list[str] = Field(default_factory=list)
    consumers: list[str] = Field(default_factory=list)
    detected_via: str


class DetectedEnvVariable(_Frozen):
    key: str
    default_value: str | None = None
    is_required: bool = True
    category: EnvCategory = EnvCategory.GENERAL
    for_app: str
    detected_via: str


class DetectedPersistentVolume(_Frozen):
    """Durable storage for a file-based database."""

    name: str
    mount_path: str
    reason: str
    for_app: str
    env_var_name: str
    env_var_value: str
    detected_via: str


class DetectedHealthCheck(_Frozen):
    path: str
    method: str = "GET"
    interval_seconds: int | None = None
    timeout_seconds: int | None = None
    detected_via: str


class DetectedPort(_Frozen):
    port: int
    detected_via: str


class CIConfig(_Frozen):
    """Commands and runtime versions recovered from CI or package scripts."""

    install_command: str | None = None
    build_command: str | None = None
    test_command: str | None = None
    start_command: str | None = None
    node_version: str | None = None
    python_version: str | None = None
    go_version: str | None = None
    detected_from: str


class DependencyAnalysisResult(_Frozen):
    """Output of the per-app dependency analysis."""

    databases: list[DetectedDatabase] = Field(default_factory=list)
    services: list[DetectedService] = Field(default_factory=list)
    env_variables: list[DetectedEnvVariable] = Field(default_factory=list)
    persistent_volumes: list[DetectedPersistentVolume] = Field(default_factory=list)
