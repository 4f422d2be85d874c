"""Tests for AppDetector framework classification."""

import pytest

from conftest import package_json
from deployplan.detectors.apps import (
    AppDetector,
    dockerfile_port,
    expand_workspace_pattern,
    relative_app_path,
)
from deployplan.models import AppType, BuildPack, MonorepoInfo, MonorepoType
from deployplan.settings import get_settings


@pytest.fixture
def detector() -> AppDetector:
    return AppDetector()


class TestRulePrecedence:
    """The first matching rule wins."""

    def test_nextjs_beats_vite_react(self, tmp_path, write_files, detector):
        """Next.js is chosen over a Vite React setup in the same manifest."""
        write_files(
            tmp_path,
            {"package.json": package_json(dependencies={"next": "14", "react": "18"}, devDependencies={"vite": "5"})},
        )

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "nextjs"
        assert app.type == AppType.FULLSTACK
        assert app.detected_via == "package.json:next"

    def test_nestjs_beats_express(self, tmp_path, write_files, detector):
        """NestJS wins over the Express it depends on."""
        write_files(
            tmp_path,
            {"package.json": package_json(dependencies={"@nestjs/core": "10", "express": "4"})},
        )

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "nestjs"
        assert app.default_port == 3000

    def test_vite_react_requires_both(self, tmp_path, write_files, detector):
        """Vite React needs both packages and builds to a static dist."""
        write_files(
            tmp_path,
            {"package.json": package_json(dependencies={"react": "18"}, devDependencies={"vite": "5"})},
        )

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "vite-react"
        assert app.build_pack == BuildPack.STATIC
        assert app.default_port == 80
        assert app.publish_directory == "dist"
        assert app.build_command == "npm run build"
        assert app.detected_via == "package.json:vite+react"

    def test_vite_alone_is_not_an_app(self, tmp_path, write_files, detector):
        """Vite without a UI library matches no rule."""
        write_files(tmp_path, {"package.json": package_json(devDependencies={"vite": "5"})})

        assert detector.detect_directory(tmp_path, tmp_path) is None

    def test_create_react_app(self, tmp_path, write_files, detector):
        """react-scripts publishes from build/."""
        write_files(tmp_path, {"package.json": package_json(dependencies={"react-scripts": "5"})})

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "create-react-app"
        assert app.publish_directory == "build"


class TestLanguages:
    def test_django_requirements(self, tmp_path, write_files, detector):
        """Django is found in requirements.txt with original casing in provenance."""
        write_files(tmp_path, {"requirements.txt": "Django==4.2\ngunicorn\n"})

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "django"
        assert app.default_port == 8000
        assert app.detected_via == "requirements.txt:Django"

    def test_fastapi_from_pyproject(self, tmp_path, write_files, detector):
        """FastAPI is read from PEP 621 dependencies."""
        write_files(
            tmp_path,
            {"pyproject.toml": '[project]\nname = "svc"\ndependencies = ["fastapi>=0.110", "uvicorn"]\n'},
        )

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "fastapi"
        assert app.detected_via == "pyproject.toml:fastapi"

    def test_flask(self, tmp_path, write_files, detector):
        """Flask listens on 5000 by default."""
        write_files(tmp_path, {"requirements.txt": "flask>=3\n"})

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "flask"
        assert app.default_port == 5000

    def test_go_gin(self, tmp_path, write_files, detector):
        """A gin require block selects go-gin."""
        write_files(
            tmp_path,
            {"go.mod": "module svc\n\nrequire (\n\tgithub.com/gin-gonic/gin v1.9.1\n)\n"},
        )

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "go-gin"
        assert app.default_port == 8080

    def test_plain_go(self, tmp_path, write_files, detector):
        """A bare go.mod is a generic Go app."""
        write_files(tmp_path, {"go.mod": "module svc\n\ngo 1.22\n"})

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "go"
        assert app.detected_via == "go.mod"

    def test_rails(self, tmp_path, write_files, detector):
        """A rails gem selects Rails."""
        write_files(tmp_path, {"Gemfile": "source 'https://rubygems.org'\ngem 'rails', '~> 7.1'\n"})

        assert detector.detect_directory(tmp_path, tmp_path).framework == "rails"

    def test_rust_axum(self, tmp_path, write_files, detector):
        """An axum dependency in Cargo.toml selects rust-axum."""
        write_files(tmp_path, {"Cargo.toml": '[package]\nname = "svc"\n\n[dependencies]\naxum = "0.7"\n'})

        assert detector.detect_directory(tmp_path, tmp_path).framework == "rust-axum"

    def test_laravel(self, tmp_path, write_files, detector):
        """laravel/framework in composer.json selects Laravel."""
        write_files(tmp_path, {"composer.json": '{"require": {"laravel/framework": "^11.0"}}'})

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "laravel"
        assert app.default_port == 8000

    def test_phoenix(self, tmp_path, write_files, detector):
        """A phoenix dep in mix.exs selects Phoenix on port 4000."""
        write_files(tmp_path, {"mix.exs": 'defp deps do\n  [{:phoenix, "~> 1.7"}]\nend\n'})

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "phoenix"
        assert app.default_port == 4000

    def test_spring_boot_gradle(self, tmp_path, write_files, detector):
        """The Spring Boot Gradle plugin selects spring-boot."""
        write_files(
            tmp_path,
            {"build.gradle": "plugins {\n  id 'org.springframework.boot' version '3.2.0'\n}\n"},
        )

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "spring-boot"
        assert app.default_port == 8080


class TestContainerFallbacks:
    def test_dockerfile_expose(self, tmp_path, write_files, detector):
        """A lone Dockerfile takes its port from EXPOSE."""
        write_files(tmp_path, {"Dockerfile": "FROM alpine\nEXPOSE 9000\n"})

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "dockerfile"
        assert app.build_pack == BuildPack.DOCKERFILE
        assert app.default_port == 9000
        assert app.type == AppType.UNKNOWN

    def test_dockerfile_without_expose(self, tmp_path, write_files):
        """No EXPOSE falls back to port 3000."""
        write_files(tmp_path, {"Dockerfile": "FROM alpine\n"})

        assert dockerfile_port(tmp_path / "Dockerfile") == 3000

    def test_compose(self, tmp_path, write_files, detector):
        """A compose file is a docker-compose app on port 80."""
        write_files(tmp_path, {"compose.yaml": "services:\n  web:\n    image: nginx\n"})

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "docker-compose"
        assert app.build_pack == BuildPack.DOCKER_COMPOSE
        assert app.default_port == 80
        assert app.detected_via == "compose.yaml"

    def test_framework_beats_dockerfile(self, tmp_path, write_files, detector):
        """Framework rules are tried before container fallbacks."""
        write_files(
            tmp_path,
            {"Dockerfile": "FROM node\nEXPOSE 8080\n", "package.json": package_json(dependencies={"express": "4"})},
        )

        assert detector.detect_directory(tmp_path, tmp_path).framework == "express"

    def test_oversized_manifest_falls_through_to_dockerfile(self, tmp_path, write_files, detector):
        """A package.json over the manifest ceiling is treated as absent."""
        limit = get_settings().manifest_max_bytes
        write_files(
            tmp_path,
            {
                "package.json": package_json(dependencies={"next": "14"}, description="x" * (limit + 1024)),
                "Dockerfile": "FROM node\nEXPOSE 4000\n",
            },
        )

        app = detector.detect_directory(tmp_path, tmp_path)

        assert app.framework == "dockerfile"
        assert app.default_port == 4000

    def test_unrecognised_directory(self, tmp_path, write_files, detector):
        """A directory with no signals is not an app."""
        write_files(tmp_path, {"README.md": "hello"})

        assert detector.detect_directory(tmp_path, tmp_path) is None


class TestWorkspaceExpansion:
    def test_glob_and_literal(self, tmp_path, write_files):
        """Globs list sorted directories; literals, misses and negations are handled."""
        write_files(tmp_path, {"apps/b/x": "", "apps/a/x": "", "apps/file.txt": "", "tools/cli/x": ""})

        assert [p.name for p in expand_workspace_pattern(tmp_path, "apps/*")] == ["a", "b"]
        assert expand_workspace_pattern(tmp_path, "tools/cli/") == [tmp_path / "tools/cli"]
        assert expand_workspace_pattern(tmp_path, "missing") == []
        assert expand_workspace_pattern(tmp_path, "!apps/a") == []

    def test_relative_path(self, tmp_path):
        """App paths are POSIX and relative to the repository root."""
        assert relative_app_path(tmp_path, tmp_path) == "."
        assert relative_app_path(tmp_path / "apps" / "api", tmp_path) == "apps/api"


class TestDetect:
    def test_monorepo_order_and_paths(self, turbo_repo, detector):
        """Monorepo apps come back sorted by path."""
        monorepo = MonorepoInfo(
            is_monorepo=True, type=MonorepoType.TURBOREPO, workspace_paths=["apps/*"]
        )

        apps = detector.detect(turbo_repo, monorepo)

        assert [(a.name, a.path, a.framework) for a in apps] == [
            ("api", "apps/api", "express"),
            ("web", "apps/web", "nextjs"),
        ]

    def test_overlapping_patterns_detect_once(self, turbo_repo, detector):
        """A directory matched by two patterns is detected once."""
        monorepo = MonorepoInfo(
            is_monorepo=True,
            type=MonorepoType.TURBOREPO,
            workspace_paths=["apps/*", "apps/api"],
        )

        apps = detector.detect(turbo_repo, monorepo)

        assert [a.name for a in apps] == ["api", "web"]

    def test_single_app_uses_directory_name(self, tmp_path, write_files, detector):
        """A single app is named after the repository directory."""
        repo = write_files(tmp_path / "billing", {"requirements.txt": "fastapi\n"})

        apps = detector.detect(repo, MonorepoInfo.not_monorepo())

        assert len(apps) == 1
        assert apps[0].name == "billing"
        assert apps[0].path == "."

    def test_empty_workspace_falls_back_to_root(self, tmp_path, write_files, detector):
        """A monorepo with no apps in its workspaces is scanned at the root."""
        write_files(tmp_path, {"package.json": package_json(dependencies={"hono": "4"}), "apps/docs/x": ""})
        monorepo = MonorepoInfo(is_monorepo=True, type=MonorepoType.NPM_WORKSPACES, workspace_paths=["apps/*"])

        apps = detector.detect(tmp_path, monorepo)

        assert [a.framework for a in apps] == ["hono"]
        assert apps[0].path == "."

    def test_nothing_found(self, tmp_path, detector):
        """An empty repository yields no apps."""
        assert detector.detect(tmp_path, MonorepoInfo.not_monorepo()) == []
