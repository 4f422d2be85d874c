"""Listening-port detection from source code, package scripts and Procfiles."""

import logging
import re
from pathlib import Path

from deployplan.manifests.files import glob_many, read_json_object, read_text
from deployplan.models.analysis import DetectedApp, DetectedPort

logger = logging.getLogger(__name__)

LANGUAGE_BY_FRAMEWORK: dict[str, str] = {
    **dict.fromkeys(
        (
            "nestjs",
            "nextjs",
            "nuxt",
            "remix",
            "astro",
            "sveltekit",
            "vite-react",
            "vite-vue",
            "vite-svelte",
            "create-react-app",
            "fastify",
            "hono",
            "express",
        ),
        "node",
    ),
    **dict.fromkeys(("django", "fastapi", "flask"), "python"),
    **dict.fromkeys(("go-fiber", "go-gin", "go-echo", "go"), "go"),
    **dict.fromkeys(("rust-axum", "rust-actix", "rust"), "rust"),
    **dict.fromkeys(("rails", "sinatra"), "ruby"),
    **dict.fromkeys(("laravel", "symfony"), "php"),
    "phoenix": "elixir",
    "spring-boot": "java",
}

# Used when the framework does not reveal the language
LANGUAGE_BY_MANIFEST: tuple[tuple[str, str], ...] = (
    ("package.json", "node"),
    ("requirements.txt", "python"),
    ("pyproject.toml", "python"),
    ("go.mod", "go"),
    ("Cargo.toml", "rust"),
    ("Gemfile", "ruby"),
    ("composer.json", "php"),
    ("mix.exs", "elixir"),
    ("pom.xml", "java"),
    ("build.gradle", "java"),
)

CANDIDATE_FILES: dict[str, tuple[str, ...]] = {
    "node": (
        "server.js",
        "index.js",
        "app.js",
        "main.js",
        "src/index.ts",
        "src/server.ts",
        "src/main.ts",
        "src/app.ts",
        "src/index.js",
        "src/server.js",
        "src/main.js",
        "src/app.js",
    ),
    "python": (
        "main.py",
        "app.py",
        "server.py",
        "run.py",
        "wsgi.py",
        "asgi.py",
        "src/main.py",
        "app/main.py",
        "gunicorn.conf.py",
    ),
    "go": ("main.go", "cmd/main.go", "cmd/*/main.go"),
    "rust": ("src/main.rs",),
    "ruby": ("config.ru", "app.rb", "config/puma.rb"),
    "elixir": ("config/*.exs",),
    "java": (
        "src/main/resources/application.properties",
        "src/main/resources/application.yml",
        "src/main/resources/application.yaml",
    ),
}

_PORT = r"(\d{2,5})"

LISTEN_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "node": (
        re.compile(rf"\.listen\(\s*{_PORT}\b"),
        re.compile(rf"""PORT\s*(?:\|\||\?\?)\s*['"]?{_PORT}"""),
        re.compile(rf"\bport\s*:\s*{_PORT}\b"),
    ),
    "python": (
        re.compile(rf"""os\.(?:getenv|environ\.get)\(\s*["']PORT["']\s*,\s*["']?{_PORT}"""),
        re.compile(rf"\bport\s*=\s*{_PORT}\b"),
        re.compile(rf"""\bbind\s*=\s*["'][^"':]*:{_PORT}["']"""),
    ),
    "go": (
        re.compile(rf'ListenAndServe\(\s*"[^":]*:{_PORT}"'),
        re.compile(rf'\.(?:Run|Listen|Start)\(\s*"[^":]*:{_PORT}"'),
    ),
    "rust": (
        re.compile(rf'bind\(\s*"[^"]*:{_PORT}"'),
        re.compile(rf"SocketAddr::from\(\(\[[^\]]*\],\s*{_PORT}\)\)"),
    ),
    "ruby": (
        re.compile(rf"""ENV\.fetch\(\s*["']PORT["']\s*\)\s*\{{\s*{_PORT}\s*\}}"""),
        re.compile(rf"set\s+:port,\s*{_PORT}\b"),
        re.compile(rf"^\s*port\s+{_PORT}\b", re.MULTILINE),
    ),
    "elixir": (re.compile(rf"\bport:\s*{_PORT}\b"),),
    "java": (
        re.compile(rf"server\.port\s*[=:]\s*{_PORT}\b"),
        re.compile(rf"^\s+port:\s*{_PORT}\b", re.MULTILINE),
    ),
}

SCRIPT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"--port[= ]{_PORT}\b"),
    re.compile(rf"(?:^|\s)-p\s+{_PORT}\b"),
    re.compile(rf"\bPORT={_PORT}\b"),
)

_PORT_PLACEHOLDER = re.compile(r"\$\{?PORT\}?")
PLACEHOLDER_DEFAULTS = {"node": 3000, "python": 8000}
PACKAGE_SCRIPTS = ("start", "dev", "serve")


def _valid(port: int) -> bool:
    return 0 < port <= 65535


class PortDetector:
    """Find the port an app listens on, if it says so anywhere."""

    def detect(self, app_dir: Path, app: DetectedApp) -> DetectedPort | None:
        language = self.language_for(app_dir, app)

        if language is not None:
            found = self._scan_sources(app_dir, language)
            if found is not None:
                return found

        return self._scan_scripts(app_dir, language)

    @staticmethod
    def language_for(app_dir: Path, app: DetectedApp) -> str | None:
        language = LANGUAGE_BY_FRAMEWORK.get(app.framework)
        if language is not None:
            return language
        for manifest, guess in LANGUAGE_BY_MANIFEST:
            if (app_dir / manifest).is_file():
                return guess
        return None

    def _scan_sources(self, app_dir: Path, language: str) -> DetectedPort | None:
        patterns = LISTEN_PATTERNS.get(language, ())
        for path in glob_many(app_dir, CANDIDATE_FILES.get(language, ())):
            content = read_text(path)
            if content is None:
                continue
            for pattern in patterns:
                for match in pattern.finditer(content):
                    port = int(match.group(1))
                    if _valid(port):
                        rel = path.relative_to(app_dir).as_posix()
                        logger.debug("Port %d found in %s", port, rel)
                        return DetectedPort(port=port, detected_via=f"source:{rel}")
        return None

    def _scan_scripts(self, app_dir: Path, language: str | None) -> DetectedPort | None:
        commands: list[tuple[str, str]] = []

        pkg = read_json_object(app_dir / "package.json")
        scripts = pkg.get("scripts") if pkg else None
        if isinstance(scripts, dict):
            for name in PACKAGE_SCRIPTS:
                if isinstance(scripts.get(name), str):
                    commands.append((f"package.json:scripts.{name}", scripts[name]))

        procfile = read_text(app_dir / "Procfile")
        if procfile:
            for line in procfile.splitlines():
                if line.strip().startswith("web:"):
                    commands.append(("Procfile:web", line.split(":", 1)[1]))

        placeholder_via = None
        for via, command in commands:
            for pattern in SCRIPT_PATTERNS:
                match = pattern.search(command)
                if match and _valid(int(match.group(1))):
                    return DetectedPort(port=int(match.group(1)), detected_via=via)
            if placeholder_via is None and _PORT_PLACEHOLDER.search(command):
                placeholder_via = via

        if placeholder_via is not None and language in PLACEHOLDER_DEFAULTS:
            return DetectedPort(
                port=PLACEHOLDER_DEFAULTS[language], detected_via=f"{placeholder_via}:$PORT"
            )
        return None
