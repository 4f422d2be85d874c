"""Health-check endpoint detection."""

import logging
import re
from pathlib import Path

from deployplan.detectors.ports import PortDetector
from deployplan.manifests.files import iter_source_files, read_text
from deployplan.models.analysis import DetectedApp, DetectedHealthCheck
from deployplan.models.docker import ComposeInfo, DockerfileInfo, DockerHealthcheck
from deployplan.settings import get_settings

logger = logging.getLogger(__name__)

HEALTH_PATHS = frozenset({
    "/health",
    "/healthz",
    "/api/health",
    "/health/live",
    "/ready",
    "/readyz",
    "/ping",
    "/status",
    "/_health",
    "/livez",
    "/up",
})

_URL_PATH = re.compile(r"https?://[^/\s\"']+(/[^\s\"'|;&)]*)")

SOURCE_SUFFIXES: dict[str, tuple[str, ...]] = {
    "node": (".js", ".ts", ".mjs", ".mts", ".cjs"),
    "python": (".py",),
    "go": (".go",),
    "rust": (".rs",),
    "ruby": (".rb",),
    "php": (".php",),
    "elixir": (".ex", ".exs"),
    "java": (".java", ".kt"),
}

ROUTE_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "node": (
        re.compile(r"""\.(?:get|all|route|head)\(\s*['"`](/[^'"`]*)['"`]"""),
        re.compile(r"""@(?:Get|Controller)\(\s*['"]([^'"]*)['"]"""),
    ),
    "python": (
        re.compile(r"""@\w+\.(?:get|route|api_route|head)\(\s*['"](/[^'"]*)['"]"""),
        re.compile(r"""\b(?:re_)?path\(\s*r?['"]\^?([^'"$]*)\$?['"]"""),
    ),
    "go": (re.compile(r"""\.(?:GET|Get|HandleFunc|Handle|HEAD)\(\s*"(/[^"]*)\""""),),
    "rust": (
        re.compile(r"""\.route\(\s*"(/[^"]*)\""""),
        re.compile(r"""#\[get\(\s*"(/[^"]*)"\s*\)\]"""),
    ),
    "ruby": (re.compile(r"""\bget\s+['"]([^'"]+)['"]"""),),
    "php": (re.compile(r"""Route::(?:get|any)\(\s*['"]([^'"]+)['"]"""),),
    "elixir": (re.compile(r"""\bget\s+"(/[^"]*)\""""),),
    "java": (
        re.compile(r"""@(?:Get|Request)Mapping\(\s*(?:(?:value|path)\s*=\s*)?\{?\s*"(/[^"]*)\""""),
    ),
}

# Framework conventions where the file location is the route
WELL_KNOWN_FILES: tuple[tuple[str, str], ...] = (
    ("app/api/health/route.ts", "/api/health"),
    ("app/api/health/route.js", "/api/health"),
    ("src/app/api/health/route.ts", "/api/health"),
    ("src/app/api/health/route.js", "/api/health"),
    ("pages/api/health.ts", "/api/health"),
    ("pages/api/health.js", "/api/health"),
    ("src/pages/api/health.ts", "/api/health"),
    ("src/pages/api/health.js", "/api/health"),
    ("server/api/health.ts", "/api/health"),
    ("server/api/health.get.ts", "/api/health"),
    ("src/routes/health/+server.ts", "/health"),
    ("src/routes/api/health/+server.ts", "/api/health"),
    ("app/routes/health.tsx", "/health"),
    ("app/routes/healthcheck.tsx", "/healthcheck"),
    ("public/health", "/health"),
    ("public/healthz", "/healthz"),
    ("static/health", "/health"),
)


def normalize_route(route: str) -> str:
    route = route.strip()
    if not route.startswith("/"):
        route = "/" + route
    if len(route) > 1:
        route = route.rstrip("/")
    return route


def url_path(command: str) -> str | None:
    """Path component of the first http(s) URL in a probe command."""
    match = _URL_PATH.search(command)
    if not match:
        return None
    return match.group(1).split("?", 1)[0] or "/"


def _from_docker_healthcheck(check: DockerHealthcheck | None, via: str) -> DetectedHealthCheck | None:
    if check is None or check.disabled:
        return None
    path = url_path(" ".join(check.test))
    if path is None:
        return None
    return DetectedHealthCheck(
        path=path,
        interval_seconds=check.interval_seconds,
        timeout_seconds=check.timeout_seconds,
        detected_via=via,
    )


class HealthCheckDetector:
    """First hit wins: Dockerfile, Compose, source routes, well-known files."""

    def detect(
        self,
        app_dir: Path,
        app: DetectedApp,
        dockerfile: DockerfileInfo | None = None,
        compose: ComposeInfo | None = None,
    ) -> DetectedHealthCheck | None:
        if dockerfile is not None:
            found = _from_docker_healthcheck(dockerfile.healthcheck, "Dockerfile:HEALTHCHECK")
            if found is not None:
                return found

        if compose is not None:
            for service in compose.services:
                found = _from_docker_healthcheck(
                    service.healthcheck, f"{compose.file}:{service.name}.healthcheck"
                )
                if found is not None:
                    return found

        found = self._scan_routes(app_dir, app)
        if found is not None:
            return found

        for relative, route in WELL_KNOWN_FILES:
            if (app_dir / relative).is_file():
                return DetectedHealthCheck(path=route, detected_via=f"file:{relative}")

        return None

    def _scan_routes(self, app_dir: Path, app: DetectedApp) -> DetectedHealthCheck | None:
        language = PortDetector.language_for(app_dir, app)
        if language in ROUTE_PATTERNS:
            languages = [language]
        else:
            languages = list(ROUTE_PATTERNS)

        suffixes = tuple(s for lang in languages for s in SOURCE_SUFFIXES[lang])
        patterns = tuple(p for lang in languages for p in ROUTE_PATTERNS[lang])
        limit = get_settings().route_scan_max_files

        for path in iter_source_files(app_dir, suffixes, limit):
            content = read_text(path)
            if content is None:
                continue
            for pattern in patterns:
                for match in pattern.finditer(content):
                    route = normalize_route(match.group(1))
                    if route in HEALTH_PATHS:
                        rel = path.relative_to(app_dir).as_posix()
                        logger.debug("Health route %s found in %s", route, rel)
                        return DetectedHealthCheck(path=route, detected_via=f"route:{rel}")
        return None
