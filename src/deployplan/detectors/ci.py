"""Build, test and runtime configuration from CI files or package scripts."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from deployplan.manifests.files import read_json_object, read_yaml_mapping, sorted_glob
from deployplan.models.analysis import CIConfig
from deployplan.rules.ci import (
    BUILD_PREFIXES,
    INSTALL_PREFIXES,
    LOCKFILES,
    START_PREFIXES,
    TEST_PREFIXES,
)
from deployplan.settings import get_settings

logger = logging.getLogger(__name__)

_VERSION = re.compile(r"(\d+)(?:\.\d+)*")
_IMAGE_VERSION = re.compile(r":(\d+(?:\.\d+)?)")

_PREFIXES: dict[str, tuple[str, ...]] = {
    "install": INSTALL_PREFIXES,
    "build": BUILD_PREFIXES,
    "test": TEST_PREFIXES,
    "start": START_PREFIXES,
}


def normalize_version(version: Any) -> str | None:
    """``^18.0.0`` -> ``18.0.0``, ``>=20`` -> ``20``, ``lts/*`` -> None."""
    if version is None:
        return None
    match = _VERSION.search(str(version))
    return match.group(0) if match else None


def image_version(image: Any, runtime: str) -> str | None:
    if not isinstance(image, str) or runtime not in image.lower():
        return None
    match = _IMAGE_VERSION.search(image)
    return match.group(1) if match else None


def classify(command: str) -> list[str]:
    """Every command class whose prefix list matches. A line can be several."""
    return [kind for kind, prefixes in _PREFIXES.items() if command.startswith(prefixes)]


@dataclass
class _Commands:
    """First command seen per class."""

    found: dict[str, str] = field(default_factory=dict)

    def add(self, command: Any, kinds: tuple[str, ...] = ("install", "build", "test", "start")) -> None:
        if not isinstance(command, str):
            return
        command = command.strip()
        if not command:
            return
        for kind in classify(command):
            if kind in kinds:
                self.found.setdefault(kind, command)

    def get(self, kind: str) -> str | None:
        return self.found.get(kind)

    def any_of(self, *kinds: str) -> bool:
        return any(kind in self.found for kind in kinds)


def _run_lines(run: Any) -> list[str]:
    if isinstance(run, list):
        return [str(r) for r in run]
    if isinstance(run, str):
        return run.splitlines()
    return []


class CIConfigDetector:
    """Look at CI systems in priority order, then package.json scripts."""

    def detect(self, repo: Path, app_dir: Path | None = None) -> CIConfig | None:
        app_dir = app_dir or repo
        for source in (
            lambda: self._github_actions(repo),
            lambda: self._gitlab(repo),
            lambda: self._circleci(repo),
            lambda: self._package_json(app_dir),
        ):
            config = source()
            if config is not None:
                logger.debug("CI config from %s", config.detected_from)
                return config
        return None

    def _yaml(self, path: Path) -> dict[str, Any] | None:
        return read_yaml_mapping(path, get_settings().ci_max_bytes)

    def _github_actions(self, repo: Path) -> CIConfig | None:
        workflows = repo / ".github" / "workflows"
        if not workflows.is_dir():
            return None

        commands = _Commands()
        versions: dict[str, Any] = {}

        files = sorted(sorted_glob(workflows, "*.yml") + sorted_glob(workflows, "*.yaml"))
        for path in files:
            workflow = self._yaml(path)
            jobs = workflow.get("jobs") if workflow else None
            if not isinstance(jobs, dict):
                continue
            for job in jobs.values():
                steps = job.get("steps") if isinstance(job, dict) else None
                if not isinstance(steps, list):
                    continue
                for step in steps:
                    if not isinstance(step, dict):
                        continue
                    uses = step.get("uses")
                    with_ = step.get("with") if isinstance(step.get("with"), dict) else {}
                    if isinstance(uses, str):
                        for runtime in ("node", "python", "go"):
                            key = f"{runtime}-version"
                            if f"setup-{runtime}" in uses and with_.get(key) is not None:
                                versions[runtime] = with_[key]
                    for line in _run_lines(step.get("run")):
                        commands.add(line)

        if not (commands.any_of("install", "build", "test") or "node" in versions or "python" in versions):
            return None

        return CIConfig(
            install_command=commands.get("install"),
            build_command=commands.get("build"),
            test_command=commands.get("test"),
            start_command=commands.get("start"),
            node_version=normalize_version(versions.get("node")),
            python_version=normalize_version(versions.get("python")),
            go_version=normalize_version(versions.get("go")),
            detected_from="GitHub Actions",
        )

    def _gitlab(self, repo: Path) -> CIConfig | None:
        config = self._yaml(repo / ".gitlab-ci.yml")
        if config is None:
            return None

        commands = _Commands()
        for job in config.values():
            if not isinstance(job, dict) or "script" not in job:
                continue
            for section in ("before_script", "script"):
                value = job.get(section)
                for line in value if isinstance(value, list) else [value]:
                    commands.add(line, ("install", "build", "test"))

        if not commands.any_of("install", "build", "test"):
            return None

        return CIConfig(
            install_command=commands.get("install"),
            build_command=commands.get("build"),
            test_command=commands.get("test"),
            node_version=image_version(config.get("image"), "node"),
            detected_from="GitLab CI",
        )

    def _circleci(self, repo: Path) -> CIConfig | None:
        config = self._yaml(repo / ".circleci" / "config.yml")
        if config is None:
            return None

        commands = _Commands()
        jobs = config.get("jobs")
        for job in jobs.values() if isinstance(jobs, dict) else ():
            steps = job.get("steps") if isinstance(job, dict) else None
            for step in steps if isinstance(steps, list) else ():
                run = step.get("run") if isinstance(step, dict) else None
                if isinstance(run, dict):
                    run = run.get("command")
                commands.add(run, ("install", "build", "test"))

        if not commands.any_of("install", "build", "test"):
            return None

        return CIConfig(
            install_command=commands.get("install"),
            build_command=commands.get("build"),
            test_command=commands.get("test"),
            detected_from="CircleCI",
        )

    def _package_json(self, app_dir: Path) -> CIConfig | None:
        pkg = read_json_object(app_dir / "package.json", get_settings().ci_max_bytes)
        if pkg is None:
            return None

        scripts = pkg.get("scripts") if isinstance(pkg.get("scripts"), dict) else {}
        engines = pkg.get("engines") if isinstance(pkg.get("engines"), dict) else {}

        manager = next((pm for lockfile, pm in LOCKFILES if (app_dir / lockfile).exists()), "npm")
        run_build = {"pnpm": "pnpm run build", "yarn": "yarn build"}.get(manager, "npm run build")
        run_test = {"pnpm": "pnpm test", "yarn": "yarn test"}.get(manager, "npm test")
        run_start = {"pnpm": "pnpm start", "yarn": "yarn start"}.get(manager, "npm start")

        return CIConfig(
            install_command="npm ci" if manager == "npm" else f"{manager} install",
            build_command=run_build if "build" in scripts else None,
            test_command=run_test if "test" in scripts else None,
            start_command=run_start if "start" in scripts else None,
            node_version=normalize_version(engines.get("node")),
            detected_from="package.json",
        )
