"""Inter-app dependencies inside a monorepo and the resulting deploy order.

Edges come from three places: workspace references in ``package.json``,
import statements naming another app, and example env values that mention
another app's name. A frontend with no explicit link gets an inferred
``API_URL`` edge when exactly one backend exists.

The deploy order is a depth-first postorder over the edges. Cycles are not
reported; visited marking guarantees termination and each app still gets
exactly one rank.
"""

import logging
import re
from pathlib import Path

from deployplan.detectors.env_file import EnvEntry, parse_env_file
from deployplan.manifests.files import iter_source_files, read_json_object, read_text
from deployplan.manifests.readers import ManifestKind, read_dependencies
from deployplan.models.analysis import AppDependency, AppType, DetectedApp
from deployplan.rules.dependencies import ENV_EXAMPLE_FILES
from deployplan.settings import get_settings

logger = logging.getLogger(__name__)

_IMPORT_LANGUAGE: dict[str, str] = {
    **dict.fromkeys((".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"), "js"),
    ".py": "python",
    ".go": "go",
}
IMPORT_SUFFIXES = tuple(_IMPORT_LANGUAGE)
API_ENV_HINTS = ("API_URL", "API_BASE", "BACKEND_URL", "API_HOST", "SERVER_URL")
DEFAULT_API_ENV = "API_URL"


def _strip_scope(name: str) -> str:
    if name.startswith("@") and "/" in name:
        return name.split("/", 1)[1]
    return name


def _import_patterns(name: str) -> dict[str, re.Pattern[str]]:
    """One pattern per source language, keyed like ``_IMPORT_LANGUAGE`` values."""
    escaped = re.escape(name)
    python_name = re.escape(name.replace("-", "_"))
    return {
        # import x from '@scope/name' / require('name/sub')
        "js": re.compile(
            rf"""(?:\bfrom\s+|\brequire\(\s*|\bimport\(\s*|\bimport\s+)['"](?:@[\w.\-]+/)?{escaped}(?:/[^'"]*)?['"]"""
        ),
        "python": re.compile(rf"^\s*(?:from|import)\s+{python_name}\b", re.MULTILINE),
        # Go module paths end in the app directory name
        "go": re.compile(rf'"[A-Za-z0-9][^"\s]*/{escaped}"'),
    }


def _mentions(value: str, name: str) -> bool:
    return re.search(rf"(?<![A-Za-z0-9]){re.escape(name)}(?![A-Za-z0-9])", value) is not None


def deploy_order(adjacency: list[list[int]]) -> list[int]:
    """Node indices in depth-first postorder, rooted at every node in index order.

    A node is marked visited when pushed, so a cycle is cut where it closes
    and the result is still a permutation of all nodes.
    """
    visited = [False] * len(adjacency)
    order: list[int] = []
    for root in range(len(adjacency)):
        if visited[root]:
            continue
        visited[root] = True
        stack = [(root, iter(adjacency[root]))]
        while stack:
            node, children = stack[-1]
            for child in children:
                if not visited[child]:
                    visited[child] = True
                    stack.append((child, iter(adjacency[child])))
                    break
            else:
                stack.pop()
                order.append(node)
    return order


class _Edges:
    def __init__(self) -> None:
        self.depends_on: list[str] = []
        self.internal_urls: dict[str, str] = {}
        self.detected_via: list[str] = []

    def add(self, target: str, via: str) -> None:
        if target not in self.depends_on:
            self.depends_on.append(target)
        if via not in self.detected_via:
            self.detected_via.append(via)


class AppDependencyDetector:
    """Resolve which apps need which, then rank them for deployment."""

    def analyze(self, repo: Path, apps: list[DetectedApp]) -> list[AppDependency]:
        seen: dict[str, str] = {}
        for app in apps:
            if app.name in seen:
                logger.warning(
                    "Apps %s and %s share the name %r; edges between them are merged",
                    seen[app.name],
                    app.path,
                    app.name,
                )
            else:
                seen[app.name] = app.path

        package_names = self._package_names(repo, apps)
        edges = {app.name: self._edges(repo, app, apps, package_names) for app in apps}

        index = {app.name: i for i, app in enumerate(apps)}
        adjacency = [
            sorted({index[dep] for dep in edges[app.name].depends_on if dep in index})
            for app in apps
        ]
        order = deploy_order(adjacency)

        result = []
        for rank, i in enumerate(order):
            app = apps[i]
            e = edges[app.name]
            result.append(
                AppDependency(
                    app_name=app.name,
                    depends_on=e.depends_on,
                    internal_urls=e.internal_urls,
                    deploy_order=rank,
                    detected_via=e.detected_via,
                )
            )
        logger.debug("Deploy order: %s", [d.app_name for d in result])
        return result

    @staticmethod
    def _package_names(repo: Path, apps: list[DetectedApp]) -> dict[str, str]:
        """package.json name, scope-stripped name and directory name -> app name."""
        names: dict[str, str] = {}
        for app in apps:
            names.setdefault(app.name, app.name)
        for app in apps:
            pkg = read_json_object(repo / app.path / "package.json")
            declared = pkg.get("name") if pkg else None
            if isinstance(declared, str) and declared:
                names.setdefault(declared, app.name)
                names.setdefault(_strip_scope(declared), app.name)
        return names

    def _edges(
        self,
        repo: Path,
        app: DetectedApp,
        apps: list[DetectedApp],
        package_names: dict[str, str],
    ) -> _Edges:
        app_dir = repo / app.path
        others = [o for o in apps if o.name != app.name]
        edges = _Edges()

        for dep in read_dependencies(app_dir, ManifestKind.PACKAGE_JSON) or []:
            target = package_names.get(dep) or package_names.get(_strip_scope(dep))
            if target is not None and target != app.name:
                edges.add(target, f"package.json:{dep}")

        self._scan_imports(app_dir, others, edges)

        env_entries = self._env_entries(app_dir)
        for entry in env_entries:
            if not entry.value:
                continue
            for other in others:
                if _mentions(entry.value, other.name):
                    edges.internal_urls.setdefault(entry.key, other.name)
                    edges.add(other.name, f"env:{entry.key}")
                    break

        if not edges.internal_urls:
            self._infer_api_url(app, others, env_entries, edges)

        return edges

    def _scan_imports(self, app_dir: Path, others: list[DetectedApp], edges: _Edges) -> None:
        if not others:
            return
        patterns = {other.name: _import_patterns(other.name) for other in others}
        limit = get_settings().import_scan_max_files
        for path in iter_source_files(app_dir, IMPORT_SUFFIXES, limit):
            language = _IMPORT_LANGUAGE.get(path.suffix)
            content = read_text(path)
            if language is None or content is None:
                continue
            rel = path.relative_to(app_dir).as_posix()
            for other in others:
                if patterns[other.name][language].search(content):
                    edges.add(other.name, f"import:{rel}")

    @staticmethod
    def _env_entries(app_dir: Path) -> list[EnvEntry]:
        for name in ENV_EXAMPLE_FILES:
            content = read_text(app_dir / name)
            if content is not None:
                return parse_env_file(content)
        return []

    @staticmethod
    def _infer_api_url(
        app: DetectedApp,
        others: list[DetectedApp],
        env_entries: list[EnvEntry],
        edges: _Edges,
    ) -> None:
        api_keys = [e.key for e in env_entries if any(hint in e.key.upper() for hint in API_ENV_HINTS)]
        if app.type != AppType.FRONTEND and not api_keys:
            return

        backends = [o for o in others if o.type == AppType.BACKEND]
        if len(backends) != 1:
            # Zero or several candidates: ambiguous, infer nothing
            return

        key = api_keys[0] if api_keys else DEFAULT_API_ENV
        edges.internal_urls[key] = backends[0].name
        edges.add(backends[0].name, f"inferred:{key}")
