"""Pydantic models for Dockerfile and Compose metadata."""

from pydantic import BaseModel, ConfigDict, Field


class DockerHealthcheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    test: list[str] = Field(default_factory=list)
    interval_seconds: int | None = None
    timeout_seconds: int | None = None
    disabled: bool = False


class DockerfileInfo(BaseModel):
    """Structural facts extracted from a Dockerfile. No inference."""

    model_config = ConfigDict(frozen=True)

    path: str
    base_image: str | None = None  # image of the final stage
    stages: list[str] = Field(default_factory=list)  # every FROM image, in order
    env: dict[str, str] = Field(default_factory=dict)
    args: dict[str, str | None] = Field(default_factory=dict)
    exposed_ports: list[int] = Field(default_factory=list)
    workdir: str | None = None
    entrypoint: str | None = None
    cmd: str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    healthcheck: DockerHealthcheck | None = None


class ComposeService(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    image: str | None = None
    build_context: str | None = None
    ports: list[str] = Field(default_factory=list)
    environment: dict[str, str | None] = Field(default_factory=dict)
    healthcheck: DockerHealthcheck | None = None
    depends_on: list[str] = Field(default_factory=list)


class ComposeInfo(BaseModel):
    """Structural facts extracted from a Compose file."""

    model_config = ConfigDict(frozen=True)

    file: str
    services: list[ComposeService] = Field(default_factory=list)
    volumes: list[str] = Field(default_factory=list)
