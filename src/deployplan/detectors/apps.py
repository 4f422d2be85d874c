"""Framework classification of workspace directories."""

import logging
import os
import re
from pathlib import Path

from deployplan.detectors.compose import find_compose_file
from deployplan.manifests.files import read_text, sorted_glob
from deployplan.manifests.readers import read_dependencies
from deployplan.models.analysis import AppType, BuildPack, DetectedApp, MonorepoInfo
from deployplan.rules.frameworks import (
    COMPOSE_DEFAULT_PORT,
    DOCKERFILE_DEFAULT_PORT,
    FRAMEWORK_RULES,
    FrameworkRule,
    MatchMode,
)

logger = logging.getLogger(__name__)

_EXPOSE = re.compile(r"EXPOSE\s+(\d+)")


def expand_workspace_pattern(repo: Path, pattern: str) -> list[Path]:
    """Directories matched by one workspace path, sorted."""
    pattern = pattern.rstrip("/")
    if not pattern or pattern.startswith("!"):
        return []
    if "*" in pattern:
        return sorted_glob(repo, pattern, dirs_only=True)
    candidate = repo / pattern
    return [candidate] if candidate.is_dir() else []


def relative_app_path(app_dir: Path, repo: Path) -> str:
    if app_dir.resolve() == repo.resolve():
        return "."
    return os.path.relpath(app_dir, repo).replace(os.sep, "/")


def dockerfile_port(dockerfile: Path) -> int:
    content = read_text(dockerfile)
    if content:
        match = _EXPOSE.search(content)
        if match and 0 < int(match.group(1)) <= 65535:
            return int(match.group(1))
    return DOCKERFILE_DEFAULT_PORT


class AppDetector:
    """Run the ordered framework rules against directories."""

    def __init__(self, rules: tuple[FrameworkRule, ...] = FRAMEWORK_RULES) -> None:
        self.rules = rules

    def detect_from_monorepo(self, repo: Path, monorepo: MonorepoInfo) -> list[DetectedApp]:
        """Detect apps in workspace enumeration order, each directory at most once."""
        apps: list[DetectedApp] = []
        seen: set[Path] = set()
        for pattern in monorepo.workspace_paths:
            for directory in expand_workspace_pattern(repo, pattern):
                key = directory.resolve()
                if key in seen:
                    continue
                seen.add(key)
                app = self.detect_directory(directory, repo)
                if app is not None:
                    apps.append(app)
        return apps

    def detect_single_app(self, repo: Path) -> list[DetectedApp]:
        app = self.detect_directory(repo, repo)
        return [app] if app is not None else []

    def detect(self, repo: Path, monorepo: MonorepoInfo) -> list[DetectedApp]:
        """Monorepo detection first; a workspace with no recognisable apps is scanned as a single app."""
        if monorepo.is_monorepo:
            apps = self.detect_from_monorepo(repo, monorepo)
            if apps:
                return apps
            logger.info("No apps found in workspace paths, trying repository root")
        return self.detect_single_app(repo)

    def detect_directory(self, app_dir: Path, repo: Path) -> DetectedApp | None:
        path = relative_app_path(app_dir, repo)
        name = app_dir.resolve().name

        for rule in self.rules:
            via = self._match(app_dir, rule)
            if via is None:
                continue
            logger.debug("%s: %s via %s", path, rule.framework, via)
            return DetectedApp(
                name=name,
                path=path,
                framework=rule.framework,
                build_pack=rule.build_pack,
                default_port=rule.default_port,
                build_command=rule.build_command,
                publish_directory=rule.publish_directory,
                type=rule.type,
                detected_via=via,
            )

        dockerfile = app_dir / "Dockerfile"
        if dockerfile.is_file():
            return DetectedApp(
                name=name,
                path=path,
                framework="dockerfile",
                build_pack=BuildPack.DOCKERFILE,
                default_port=dockerfile_port(dockerfile),
                type=AppType.UNKNOWN,
                detected_via="Dockerfile",
            )

        compose = find_compose_file(app_dir)
        if compose is not None:
            return DetectedApp(
                name=name,
                path=path,
                framework="docker-compose",
                build_pack=BuildPack.DOCKER_COMPOSE,
                default_port=COMPOSE_DEFAULT_PORT,
                type=AppType.UNKNOWN,
                detected_via=compose.name,
            )

        return None

    def _match(self, app_dir: Path, rule: FrameworkRule) -> str | None:
        """Provenance string when the rule matches, else None."""
        manifest = rule.manifest
        use_alt = False
        if not (app_dir / manifest.value).is_file():
            if rule.alt_manifest is None or not (app_dir / rule.alt_manifest.value).is_file():
                return None
            manifest = rule.alt_manifest
            use_alt = True

        if not rule.deps:
            return manifest.value

        deps = read_dependencies(app_dir, manifest)
        if deps is None:
            return None

        if any(excluded in deps for excluded in rule.exclude_deps):
            return None

        if rule.match_mode is MatchMode.ALL:
            if all(dep in deps for dep in rule.deps):
                return f"{manifest.value}:{'+'.join(rule.deps)}"
            return None

        for dep in rule.deps:
            if dep in deps:
                return f"{manifest.value}:{dep}"

        pattern = rule.alt_pattern if use_alt and rule.alt_pattern else rule.pattern
        if pattern is not None:
            content = read_text(app_dir / manifest.value)
            if content and pattern.search(content):
                return f"{manifest.value}:/{pattern.pattern}/"
        return None
