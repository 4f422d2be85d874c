"""Repository layout detection: single app or multi-app workspace."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from deployplan.manifests.files import read_json_object, read_yaml_mapping
from deployplan.models.analysis import MonorepoInfo, MonorepoType
from deployplan.settings import get_settings

logger = logging.getLogger(__name__)

# Files that make a subdirectory look like an app in a marker-less monorepo
APP_MARKERS: tuple[str, ...] = (
    "package.json",
    "requirements.txt",
    "pyproject.toml",
    "go.mod",
    "Cargo.toml",
    "composer.json",
    "Gemfile",
    "mix.exs",
    "pom.xml",
    "build.gradle",
    "Dockerfile",
    "nixpacks.toml",
    "nixpacks.json",
    "Procfile",
)

IGNORED_DIRS = frozenset({
    ".git",
    ".github",
    ".gitlab",
    ".vscode",
    ".idea",
    "node_modules",
    "vendor",
    "__pycache__",
    ".cache",
    "dist",
    "build",
    "out",
    "target",
    "docs",
    "documentation",
    "assets",
    "public",
    "static",
    "scripts",
    "tools",
    "config",
    "configs",
    ".devcontainer",
})

MIN_HEURISTIC_APPS = 2


def _string_paths(values: Any) -> list[str]:
    if not isinstance(values, list):
        return []
    return [v for v in values if isinstance(v, str) and v]


def parse_workspaces(workspaces: Any) -> list[str]:
    """Workspace globs from a package.json ``workspaces`` value.

    Accepts a single string, a list, or the ``{"packages": [...]}`` object form.
    """
    if isinstance(workspaces, str):
        return [workspaces] if workspaces else []
    if isinstance(workspaces, dict):
        return _string_paths(workspaces.get("packages"))
    return _string_paths(workspaces)


class MonorepoDetector:
    """Decide whether a repository root hosts several deployable apps."""

    def __init__(self) -> None:
        self._max_bytes = get_settings().workspace_config_max_bytes
        self._markers: tuple[tuple[str, Callable[[Path], MonorepoInfo]], ...] = (
            ("turbo.json", self._turborepo),
            ("nx.json", self._nx),
            ("lerna.json", self._lerna),
            ("pnpm-workspace.yaml", self._pnpm),
            ("rush.json", self._rush),
        )

    def detect(self, repo: Path) -> MonorepoInfo:
        for marker, parse in self._markers:
            if not (repo / marker).exists():
                continue
            info = parse(repo)
            if info.is_monorepo:
                logger.debug("Monorepo detected via %s: %s", info.detected_via, info.type)
                return info

        paths = self._package_workspaces(repo)
        if paths:
            return MonorepoInfo(
                is_monorepo=True,
                type=MonorepoType.NPM_WORKSPACES,
                workspace_paths=paths,
                detected_via="package.json:workspaces",
            )

        return self._heuristic(repo)

    def _json(self, path: Path) -> dict[str, Any] | None:
        return read_json_object(path, self._max_bytes)

    def _yaml(self, path: Path) -> dict[str, Any] | None:
        return read_yaml_mapping(path, self._max_bytes)

    def _package_workspaces(self, repo: Path) -> list[str]:
        pkg = self._json(repo / "package.json")
        if pkg is None or "workspaces" not in pkg:
            return []
        return parse_workspaces(pkg["workspaces"])

    def _pnpm_packages(self, repo: Path) -> list[str]:
        config = self._yaml(repo / "pnpm-workspace.yaml")
        if config is None:
            return []
        return _string_paths(config.get("packages"))

    @staticmethod
    def _common_dirs(repo: Path, candidates: tuple[str, ...]) -> list[str]:
        return [f"{name}/*" for name in candidates if (repo / name).is_dir()]

    def _turborepo(self, repo: Path) -> MonorepoInfo:
        # turbo.json only defines the pipeline; workspaces live elsewhere
        if (repo / "pnpm-workspace.yaml").exists():
            paths = self._pnpm_packages(repo)
            if not paths:
                return MonorepoInfo.not_monorepo()
            return MonorepoInfo(
                is_monorepo=True,
                type=MonorepoType.TURBOREPO,
                workspace_paths=paths,
                detected_via="turbo.json+pnpm-workspace.yaml",
            )

        paths = self._package_workspaces(repo)
        if paths:
            return MonorepoInfo(
                is_monorepo=True,
                type=MonorepoType.TURBOREPO,
                workspace_paths=paths,
                detected_via="turbo.json+package.json:workspaces",
            )

        paths = self._common_dirs(repo, ("apps", "packages"))
        return MonorepoInfo(
            is_monorepo=bool(paths),
            type=MonorepoType.TURBOREPO,
            workspace_paths=paths or ["apps/*", "packages/*"],
            detected_via="turbo.json+conventional-dirs",
        )

    def _nx(self, repo: Path) -> MonorepoInfo:
        config = self._json(repo / "nx.json")
        projects = config.get("projects") if config else None

        paths: list[str] = []
        if isinstance(projects, list):
            paths = _string_paths(projects)
        elif isinstance(projects, dict):
            for project in projects.values():
                if isinstance(project, str):
                    paths.append(project)
                elif isinstance(project, dict) and isinstance(project.get("root"), str):
                    paths.append(project["root"])
        if paths:
            return MonorepoInfo(
                is_monorepo=True, type=MonorepoType.NX, workspace_paths=paths, detected_via="nx.json"
            )

        # Nx < 15 kept projects in workspace.json
        workspace = self._json(repo / "workspace.json")
        legacy = workspace.get("projects") if workspace else None
        if isinstance(legacy, dict):
            for name, project in legacy.items():
                if isinstance(project, str):
                    paths.append(project)
                elif isinstance(project, dict) and isinstance(project.get("root"), str):
                    paths.append(project["root"])
                else:
                    paths.append(str(name))
        if paths:
            return MonorepoInfo(
                is_monorepo=True,
                type=MonorepoType.NX,
                workspace_paths=paths,
                detected_via="nx.json+workspace.json",
            )

        paths = self._common_dirs(repo, ("apps", "libs", "packages"))
        return MonorepoInfo(
            is_monorepo=bool(paths),
            type=MonorepoType.NX,
            workspace_paths=paths or ["apps/*", "libs/*"],
            detected_via="nx.json+conventional-dirs",
        )

    def _lerna(self, repo: Path) -> MonorepoInfo:
        config = self._json(repo / "lerna.json")
        if config is None:
            return MonorepoInfo.not_monorepo()

        if config.get("useWorkspaces"):
            paths = self._package_workspaces(repo)
            if paths:
                return MonorepoInfo(
                    is_monorepo=True,
                    type=MonorepoType.LERNA,
                    workspace_paths=paths,
                    detected_via="lerna.json+package.json:workspaces",
                )

        paths = _string_paths(config.get("packages", ["packages/*"]))
        return MonorepoInfo(
            is_monorepo=True,
            type=MonorepoType.LERNA,
            workspace_paths=paths or ["packages/*"],
            detected_via="lerna.json",
        )

    def _pnpm(self, repo: Path) -> MonorepoInfo:
        paths = self._pnpm_packages(repo)
        if not paths:
            return MonorepoInfo.not_monorepo()
        return MonorepoInfo(
            is_monorepo=True,
            type=MonorepoType.PNPM,
            workspace_paths=paths,
            detected_via="pnpm-workspace.yaml",
        )

    def _rush(self, repo: Path) -> MonorepoInfo:
        config = self._json(repo / "rush.json")
        projects = config.get("projects") if config else None
        if not isinstance(projects, list):
            return MonorepoInfo.not_monorepo()

        paths = [
            p["projectFolder"]
            for p in projects
            if isinstance(p, dict) and isinstance(p.get("projectFolder"), str)
        ]
        if not paths:
            return MonorepoInfo.not_monorepo()
        return MonorepoInfo(
            is_monorepo=True, type=MonorepoType.RUSH, workspace_paths=paths, detected_via="rush.json"
        )

    def _heuristic(self, repo: Path) -> MonorepoInfo:
        """Treat two or more app-looking top-level directories as a simple monorepo."""
        try:
            entries = sorted(repo.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.debug("Cannot list %s: %s", repo, e)
            return MonorepoInfo.not_monorepo()

        app_dirs = []
        for entry in entries:
            if entry.name.startswith(".") or entry.name in IGNORED_DIRS or not entry.is_dir():
                continue
            if any((entry / marker).exists() for marker in APP_MARKERS):
                app_dirs.append(entry.name)

        if len(app_dirs) < MIN_HEURISTIC_APPS:
            return MonorepoInfo.not_monorepo()

        return MonorepoInfo(
            is_monorepo=True,
            type=MonorepoType.SIMPLE,
            workspace_paths=app_dirs,
            detected_via="heuristic:app-directories",
        )
