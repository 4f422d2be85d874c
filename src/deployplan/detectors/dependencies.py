"""Per-app databases, external services, environment variables and SQLite volumes."""

import logging
import re
from pathlib import Path

from deployplan.detectors.dockerfile import DockerfileAnalyzer
from deployplan.detectors.env_file import parse_env_file
from deployplan.manifests.files import glob_many, read_text
from deployplan.manifests.readers import ManifestKind, read_dependencies
from deployplan.models.analysis import (
    DependencyAnalysisResult,
    DetectedApp,
    DetectedDatabase,
    DetectedEnvVariable,
    DetectedPersistentVolume,
    DetectedService,
)
from deployplan.models.docker import DockerfileInfo
from deployplan.rules.dependencies import (
    DATABASE_RULES,
    DOCKERFILE_IGNORED_ENV,
    ENV_EXAMPLE_FILES,
    PRISMA_SCHEMAS,
    SERVICE_RULES,
    SOURCE_IGNORED_ENV,
    SQLITE_CONVENTIONS,
    SQLITE_DEFAULT,
    SQLITE_PACKAGES,
    SQLITE_VOLUME_NAME,
    PackageManager,
    categorize_env_var,
)

logger = logging.getLogger(__name__)

PRISMA_CLIENT = "@prisma/client"

_ENV_NAME = r"([A-Z_][A-Z0-9_]*)"
_PRISMA_SQLITE = re.compile(r'provider\s*=\s*"sqlite"', re.IGNORECASE)
_UPPER_NAME = re.compile(r"^[A-Z_][A-Z0-9_]*$")


class _SourceScan:
    """Env-var access idioms for one language and where to look for them."""

    def __init__(self, label: str, globs: tuple[str, ...], *patterns: str) -> None:
        self.label = label
        self.globs = globs
        self.patterns = tuple(re.compile(p) for p in patterns)


SOURCE_SCANS: tuple[_SourceScan, ...] = (
    _SourceScan(
        "python",
        ("*.py", "src/*.py", "app/*.py", "bot/*.py", "config/*.py"),
        rf"""os\.(?:getenv|environ\.get)\s*\(\s*["']{_ENV_NAME}["']""",
        rf"""os\.environ\s*\[\s*["']{_ENV_NAME}["']""",
    ),
    _SourceScan(
        "javascript",
        tuple(
            f"{d}*.{ext}"
            for d in ("", "src/")
            for ext in ("js", "ts", "mjs", "mts")
        )
        + ("config/*.js", "config/*.ts"),
        rf"process\.env\.{_ENV_NAME}",
        rf"""process\.env\[\s*["']{_ENV_NAME}["']\s*\]""",
    ),
    _SourceScan(
        "go",
        ("*.go", "cmd/*.go", "internal/config/*.go"),
        rf'os\.Getenv\s*\(\s*"{_ENV_NAME}"',
    ),
    _SourceScan(
        "ruby",
        ("*.rb", "config/*.rb", "lib/*.rb"),
        rf"""ENV\[\s*["']{_ENV_NAME}["']\s*\]""",
        rf"""ENV\.fetch\(\s*["']{_ENV_NAME}["']""",
    ),
)


def extract_dependencies(app_dir: Path) -> dict[PackageManager, list[str]]:
    """Dependency names per package manager, in precedence order."""
    found: dict[PackageManager, list[str]] = {}

    npm = read_dependencies(app_dir, ManifestKind.PACKAGE_JSON)
    if npm is not None:
        found[PackageManager.NPM] = npm

    pip: list[str] | None = None
    for kind in (ManifestKind.REQUIREMENTS_TXT, ManifestKind.PYPROJECT_TOML):
        names = read_dependencies(app_dir, kind)
        if names is not None:
            pip = (pip or []) + [n.lower() for n in names]
    if pip is not None:
        found[PackageManager.PIP] = pip

    for manager, kind in (
        (PackageManager.COMPOSER, ManifestKind.COMPOSER_JSON),
        (PackageManager.GEM, ManifestKind.GEMFILE),
        (PackageManager.GO, ManifestKind.GO_MOD),
        (PackageManager.CARGO, ManifestKind.CARGO_TOML),
    ):
        names = read_dependencies(app_dir, kind)
        if names is not None:
            found[manager] = names

    return found


def _first_match(deps: list[str], candidates: tuple[str, ...]) -> str | None:
    for candidate in candidates:
        if candidate in deps:
            return candidate
    return None


class DependencyAnalyzer:
    """Work out what infrastructure and configuration an app needs."""

    def __init__(self, dockerfiles: DockerfileAnalyzer | None = None) -> None:
        self.dockerfiles = dockerfiles or DockerfileAnalyzer()

    def analyze(
        self,
        app_dir: Path,
        app: DetectedApp,
        dockerfile: DockerfileInfo | None = None,
    ) -> DependencyAnalysisResult:
        deps = extract_dependencies(app_dir)
        prisma_sqlite = self.detect_prisma_sqlite(app_dir)

        return DependencyAnalysisResult(
            databases=self.detect_databases(deps, app, prisma_sqlite),
            services=self.detect_services(deps, app),
            env_variables=self.detect_env_variables(app_dir, app, dockerfile),
            persistent_volumes=self.detect_sqlite_volumes(deps, app, prisma_sqlite),
        )

    def detect_databases(
        self,
        deps: dict[PackageManager, list[str]],
        app: DetectedApp,
        prisma_sqlite: bool = False,
    ) -> list[DetectedDatabase]:
        """At most one database per type; the first package manager with a hit wins."""
        detected = []
        for rule in DATABASE_RULES:
            for manager, names in deps.items():
                candidates = rule.packages.get(manager)
                if not candidates:
                    continue
                if prisma_sqlite:
                    candidates = tuple(c for c in candidates if c != PRISMA_CLIENT)
                match = _first_match(names, candidates)
                if match is None:
                    continue
                detected.append(
                    DetectedDatabase(
                        type=rule.type,
                        name=rule.type,
                        env_var_name=rule.env_var_name,
                        consumers=[app.name],
                        detected_via=f"{manager}:{match}",
                    )
                )
                break
        return detected

    def detect_services(
        self,
        deps: dict[PackageManager, list[str]],
        app: DetectedApp,
    ) -> list[DetectedService]:
        detected = []
        for rule in SERVICE_RULES:
            for manager, names in deps.items():
                match = _first_match(names, rule.packages.get(manager, ()))
                if match is None:
                    continue
                detected.append(
                    DetectedService(
                        type=rule.type,
                        name=rule.type,
                        description=rule.description,
                        env_var_name=rule.required_env_vars[0],
                        required_env_vars=list(rule.required_env_vars),
                        consumers=[app.name],
                        detected_via=f"{manager}:{match}",
                    )
                )
                break
        return detected

    def detect_env_variables(
        self,
        app_dir: Path,
        app: DetectedApp,
        dockerfile: DockerfileInfo | None = None,
    ) -> list[DetectedEnvVariable]:
        """Example env file, else source references, else Dockerfile ENV/ARG names."""
        for name in ENV_EXAMPLE_FILES:
            content = read_text(app_dir / name)
            if content is None:
                continue
            return [
                DetectedEnvVariable(
                    key=entry.key,
                    default_value=entry.value,
                    is_required=entry.is_required,
                    category=categorize_env_var(entry.key),
                    for_app=app.name,
                    detected_via=name,
                )
                for entry in parse_env_file(content)
            ]

        from_source = self._env_from_source(app_dir, app)
        if from_source:
            return from_source

        return self._env_from_dockerfile(app_dir, app, dockerfile)

    def _env_from_source(self, app_dir: Path, app: DetectedApp) -> list[DetectedEnvVariable]:
        keys: dict[str, str] = {}
        for scan in SOURCE_SCANS:
            for path in glob_many(app_dir, scan.globs):
                content = read_text(path)
                if content is None:
                    continue
                for pattern in scan.patterns:
                    for key in pattern.findall(content):
                        if key not in SOURCE_IGNORED_ENV:
                            keys.setdefault(key, f"source:{path.relative_to(app_dir).as_posix()}")

        return [
            DetectedEnvVariable(
                key=key,
                category=categorize_env_var(key),
                for_app=app.name,
                detected_via=via,
            )
            for key, via in keys.items()
        ]

    def _env_from_dockerfile(
        self,
        app_dir: Path,
        app: DetectedApp,
        dockerfile: DockerfileInfo | None,
    ) -> list[DetectedEnvVariable]:
        info = dockerfile or self.dockerfiles.analyze(app_dir)
        if info is None:
            return []

        keys: dict[str, str] = {}
        for key in info.env:
            keys.setdefault(key, "Dockerfile:ENV")
        for key in info.args:
            keys.setdefault(key, "Dockerfile:ARG")

        return [
            DetectedEnvVariable(
                key=key,
                category=categorize_env_var(key),
                for_app=app.name,
                detected_via=via,
            )
            for key, via in keys.items()
            if _UPPER_NAME.match(key) and key not in DOCKERFILE_IGNORED_ENV
        ]

    def detect_sqlite_volumes(
        self,
        deps: dict[PackageManager, list[str]],
        app: DetectedApp,
        prisma_sqlite: bool = False,
    ) -> list[DetectedPersistentVolume]:
        """SQLite needs a durable volume rather than a database service."""
        for manager, names in deps.items():
            match = _first_match(names, SQLITE_PACKAGES.get(manager, ()))
            if match is None:
                continue
            convention = SQLITE_CONVENTIONS.get(app.framework, SQLITE_DEFAULT)
            return [self._volume(app, convention, match, f"{manager}:{match}")]

        if prisma_sqlite:
            return [self._volume(app, SQLITE_DEFAULT, "prisma:sqlite", "prisma:sqlite")]
        return []

    @staticmethod
    def _volume(app, convention, signal: str, via: str) -> DetectedPersistentVolume:
        return DetectedPersistentVolume(
            name=SQLITE_VOLUME_NAME,
            mount_path=convention.mount_path,
            reason=f"SQLite database detected ({signal})",
            for_app=app.name,
            env_var_name=convention.env_var_name,
            env_var_value=convention.env_var_value,
            detected_via=via,
        )

    @staticmethod
    def detect_prisma_sqlite(app_dir: Path) -> bool:
        for location in PRISMA_SCHEMAS:
            content = read_text(app_dir / location)
            if content and _PRISMA_SQLITE.search(content):
                return True
        return False
