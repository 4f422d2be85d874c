"""Structural Compose file extraction."""

import logging
from pathlib import Path
from typing import Any

from deployplan.detectors.dockerfile import parse_duration
from deployplan.manifests.files import read_yaml_mapping
from deployplan.models.docker import ComposeInfo, ComposeService, DockerHealthcheck
from deployplan.rules.frameworks import COMPOSE_FILES

logger = logging.getLogger(__name__)


def find_compose_file(app_dir: Path) -> Path | None:
    for name in COMPOSE_FILES:
        candidate = app_dir / name
        if candidate.is_file():
            return candidate
    return None


def _environment(value: Any) -> dict[str, str | None]:
    if isinstance(value, dict):
        return {str(k): None if v is None else str(v) for k, v in value.items()}
    env: dict[str, str | None] = {}
    if isinstance(value, list):
        for item in value:
            key, sep, val = str(item).partition("=")
            env[key] = val if sep else None
    return env


def _ports(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    ports = []
    for item in value:
        if isinstance(item, dict):
            target = item.get("target")
            published = item.get("published")
            if target is None:
                continue
            ports.append(f"{published}:{target}" if published is not None else str(target))
        else:
            ports.append(str(item))
    return ports


def _depends_on(value: Any) -> list[str]:
    if isinstance(value, dict):
        return [str(k) for k in value]
    if isinstance(value, list):
        return [str(v) for v in value]
    return []


def _healthcheck(value: Any) -> DockerHealthcheck | None:
    if not isinstance(value, dict):
        return None
    test = value.get("test")
    if isinstance(test, str):
        test = ["CMD-SHELL", test]
    elif isinstance(test, list):
        test = [str(t) for t in test]
    else:
        test = []
    disabled = bool(value.get("disable")) or test == ["NONE"]
    return DockerHealthcheck(
        test=test,
        interval_seconds=parse_duration(value.get("interval")),
        timeout_seconds=parse_duration(value.get("timeout")),
        disabled=disabled,
    )


def _build_context(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and value.get("context") is not None:
        return str(value["context"])
    return None


def parse_compose(data: dict[str, Any], file: str) -> ComposeInfo:
    services = []
    raw_services = data.get("services")
    if isinstance(raw_services, dict):
        for name, spec in raw_services.items():
            if not isinstance(spec, dict):
                spec = {}
            image = spec.get("image")
            services.append(
                ComposeService(
                    name=str(name),
                    image=str(image) if image is not None else None,
                    build_context=_build_context(spec.get("build")),
                    ports=_ports(spec.get("ports")),
                    environment=_environment(spec.get("environment")),
                    healthcheck=_healthcheck(spec.get("healthcheck")),
                    depends_on=_depends_on(spec.get("depends_on")),
                )
            )

    volumes = data.get("volumes")
    return ComposeInfo(
        file=file,
        services=services,
        volumes=[str(v) for v in volumes] if isinstance(volumes, dict) else [],
    )


class DockerComposeAnalyzer:
    """Read an app's Compose file, if any."""

    def analyze(self, app_dir: Path) -> ComposeInfo | None:
        path = find_compose_file(app_dir)
        if path is None:
            return None
        data = read_yaml_mapping(path)
        if data is None:
            return None
        info = parse_compose(data, path.name)
        logger.debug("Compose file %s: %d services", path, len(info.services))
        return info
