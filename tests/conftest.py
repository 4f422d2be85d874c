"""Shared test fixtures: throwaway repositories and detected apps."""

import json
import os
from collections.abc import Callable
from pathlib import Path

import pytest

from deployplan.models import AppType, BuildPack, DetectedApp
from deployplan.settings import get_settings
from deployplan.workflows.state import AnalysisState, Severity

WriteFiles = Callable[[Path, dict[str, str]], Path]


def package_json(name: str | None = None, **sections) -> str:
    """Render a package.json. Sections are passed as keyword arguments."""
    data = {"name": name} if name else {}
    data.update(sections)
    return json.dumps(data)


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Each test starts from default settings."""
    for key in list(os.environ):
        if key.startswith("DEPLOYPLAN_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def write_files() -> WriteFiles:
    """Write a mapping of relative path -> content under a root directory."""

    def _write(root: Path, files: dict[str, str]) -> Path:
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _write


@pytest.fixture
def make_app() -> Callable[..., DetectedApp]:
    """Build a DetectedApp with sensible defaults."""

    def _make(
        name: str,
        framework: str = "express",
        type: AppType = AppType.BACKEND,
        path: str | None = None,
        default_port: int = 3000,
    ) -> DetectedApp:
        return DetectedApp(
            name=name,
            path=path if path is not None else f"apps/{name}",
            framework=framework,
            build_pack=BuildPack.NIXPACKS,
            default_port=default_port,
            type=type,
            detected_via="test",
        )

    return _make


@pytest.fixture
def turbo_repo(tmp_path: Path, write_files: WriteFiles) -> Path:
    """Turborepo with an Express API and a Next.js web app that depends on it."""
    return write_files(
        tmp_path / "shop",
        {
            "turbo.json": json.dumps({"pipeline": {"build": {}}}),
            "package.json": package_json("shop", workspaces=["apps/*"]),
            "apps/api/package.json": package_json(
                "@shop/api",
                dependencies={"express": "^4.18.0", "pg": "^8.11.0"},
                scripts={"start": "node server.js"},
            ),
            "apps/api/server.js": "const app = require('express')();\n"
            "app.get('/health', (req, res) => res.send('ok'));\n"
            "app.listen(4000);\n",
            "apps/api/.env.example": "DATABASE_URL=postgres://localhost:5432/shop\nJWT_SECRET=\n",
            "apps/web/package.json": package_json(
                "@shop/web",
                dependencies={"next": "14.0.0", "react": "18.2.0", "@shop/api": "workspace:*"},
                scripts={"build": "next build", "start": "next start"},
            ),
            "apps/web/.env.example": "NEXT_PUBLIC_API_URL=http://api:4000\n",
        },
    )


@pytest.fixture
def progress_messages() -> list[tuple[Severity, str]]:
    """Collected (severity, message) pairs from a tracking progress callback."""
    return []


@pytest.fixture
def analysis_state(tmp_path: Path, progress_messages) -> AnalysisState:
    """Analysis state rooted at an empty directory, recording progress."""

    def track_progress(severity: Severity, message: str) -> None:
        progress_messages.append((severity, message))

    return AnalysisState(path=tmp_path, on_progress=track_progress)
