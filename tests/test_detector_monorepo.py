"""Tests for MonorepoDetector."""

import json

import pytest

from conftest import package_json
from deployplan.detectors.monorepo import MonorepoDetector, parse_workspaces
from deployplan.models import MonorepoType


@pytest.fixture
def detector() -> MonorepoDetector:
    return MonorepoDetector()


class TestParseWorkspaces:
    """package.json workspaces come in three shapes."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("apps/*", ["apps/*"]),
            (["apps/*", "packages/*"], ["apps/*", "packages/*"]),
            ({"packages": ["services/*"], "nohoist": ["**/x"]}, ["services/*"]),
            ({"nohoist": ["**/x"]}, []),
            ([], []),
            (42, []),
        ],
    )
    def test_shapes(self, value, expected):
        """Strings, lists and packages objects all parse; anything else is empty."""
        assert parse_workspaces(value) == expected


class TestTurborepo:
    def test_package_json_workspaces(self, tmp_path, write_files, detector):
        """turbo.json with an explicit workspaces array reports exactly that array."""
        write_files(
            tmp_path,
            {
                "turbo.json": "{}",
                "package.json": package_json("root", workspaces=["apps/*", "packages/*"]),
            },
        )

        info = detector.detect(tmp_path)

        assert info.is_monorepo
        assert info.type == MonorepoType.TURBOREPO
        assert info.workspace_paths == ["apps/*", "packages/*"]

    def test_prefers_pnpm_workspace(self, tmp_path, write_files, detector):
        """Turborepo on pnpm reads pnpm-workspace.yaml before package.json."""
        write_files(
            tmp_path,
            {
                "turbo.json": "{}",
                "pnpm-workspace.yaml": "packages:\n  - 'apps/*'\n",
                "package.json": package_json("root", workspaces=["other/*"]),
            },
        )

        info = detector.detect(tmp_path)

        assert info.type == MonorepoType.TURBOREPO
        assert info.workspace_paths == ["apps/*"]
        assert info.detected_via == "turbo.json+pnpm-workspace.yaml"

    def test_conventional_directories(self, tmp_path, write_files, detector):
        """Turborepo without workspaces uses the apps/ convention."""
        write_files(tmp_path, {"turbo.json": "{}", "apps/web/package.json": "{}"})

        info = detector.detect(tmp_path)

        assert info.type == MonorepoType.TURBOREPO
        assert info.workspace_paths == ["apps/*"]

    def test_no_workspaces_falls_through(self, tmp_path, write_files, detector):
        """A bare turbo.json with nothing to point at is not a monorepo."""
        write_files(tmp_path, {"turbo.json": "{}", "package.json": "{}"})

        info = detector.detect(tmp_path)

        assert not info.is_monorepo
        assert info.type == MonorepoType.NONE


class TestNx:
    def test_projects_mapping(self, tmp_path, write_files, detector):
        """Nx project mappings yield roots; invalid entries are skipped."""
        write_files(
            tmp_path,
            {
                "nx.json": json.dumps(
                    {"projects": {"api": "apps/api", "web": {"root": "apps/web"}, "bad": 3}}
                ),
            },
        )

        info = detector.detect(tmp_path)

        assert info.type == MonorepoType.NX
        assert info.workspace_paths == ["apps/api", "apps/web"]

    def test_projects_list(self, tmp_path, write_files, detector):
        """An Nx project list is used as given."""
        write_files(tmp_path, {"nx.json": json.dumps({"projects": ["apps/api"]})})

        assert detector.detect(tmp_path).workspace_paths == ["apps/api"]

    def test_legacy_workspace_json(self, tmp_path, write_files, detector):
        """Older Nx layouts read workspace.json."""
        write_files(
            tmp_path,
            {
                "nx.json": "{}",
                "workspace.json": json.dumps({"projects": {"api": {"root": "apps/api"}, "lib": "libs/lib"}}),
            },
        )

        info = detector.detect(tmp_path)

        assert info.workspace_paths == ["apps/api", "libs/lib"]
        assert info.detected_via == "nx.json+workspace.json"

    def test_conventional_directories(self, tmp_path, write_files, detector):
        """Nx without projects uses the apps/ and libs/ conventions."""
        write_files(tmp_path, {"nx.json": "{}", "libs/ui/package.json": "{}", "apps/a/package.json": "{}"})

        assert detector.detect(tmp_path).workspace_paths == ["apps/*", "libs/*"]


class TestOtherMarkers:
    def test_lerna_default_packages(self, tmp_path, write_files, detector):
        """Lerna defaults to packages/*."""
        write_files(tmp_path, {"lerna.json": json.dumps({"version": "1.0.0"})})

        info = detector.detect(tmp_path)

        assert info.type == MonorepoType.LERNA
        assert info.workspace_paths == ["packages/*"]

    def test_lerna_use_workspaces(self, tmp_path, write_files, detector):
        """useWorkspaces defers to package.json workspaces."""
        write_files(
            tmp_path,
            {
                "lerna.json": json.dumps({"useWorkspaces": True, "packages": ["ignored/*"]}),
                "package.json": package_json("root", workspaces={"packages": ["modules/*"]}),
            },
        )

        assert detector.detect(tmp_path).workspace_paths == ["modules/*"]

    def test_pnpm(self, tmp_path, write_files, detector):
        """pnpm workspace globs are kept verbatim, negations included."""
        write_files(tmp_path, {"pnpm-workspace.yaml": "packages:\n  - apps/*\n  - '!apps/legacy'\n"})

        info = detector.detect(tmp_path)

        assert info.type == MonorepoType.PNPM
        assert info.workspace_paths == ["apps/*", "!apps/legacy"]

    def test_pnpm_empty_packages_is_not_monorepo(self, tmp_path, write_files, detector):
        """An empty pnpm packages list falls through."""
        write_files(tmp_path, {"pnpm-workspace.yaml": "packages: []\n"})

        assert not detector.detect(tmp_path).is_monorepo

    def test_rush(self, tmp_path, write_files, detector):
        """Rush projects contribute their project folders."""
        write_files(
            tmp_path,
            {
                "rush.json": json.dumps(
                    {"projects": [{"packageName": "api", "projectFolder": "apps/api"}, {"packageName": "x"}]}
                )
            },
        )

        info = detector.detect(tmp_path)

        assert info.type == MonorepoType.RUSH
        assert info.workspace_paths == ["apps/api"]

    def test_malformed_marker_is_skipped(self, tmp_path, write_files, detector):
        """A broken rush.json does not stop the npm workspaces fallback."""
        write_files(
            tmp_path,
            {"rush.json": "{broken", "package.json": package_json("root", workspaces=["svc/*"])},
        )

        info = detector.detect(tmp_path)

        assert info.type == MonorepoType.NPM_WORKSPACES
        assert info.workspace_paths == ["svc/*"]


class TestHeuristic:
    def test_two_app_directories(self, tmp_path, write_files, detector):
        """Two top-level app directories make a simple monorepo."""
        write_files(
            tmp_path,
            {
                "frontend/package.json": "{}",
                "backend/requirements.txt": "flask\n",
                "docs/package.json": "{}",
                ".hidden/package.json": "{}",
                "notes/README.md": "",
            },
        )

        info = detector.detect(tmp_path)

        assert info.is_monorepo
        assert info.type == MonorepoType.SIMPLE
        assert info.workspace_paths == ["backend", "frontend"]

    def test_single_app_directory_is_not_monorepo(self, tmp_path, write_files, detector):
        """One app directory is not enough."""
        write_files(tmp_path, {"server/go.mod": "module x\n", "package.json": "{}"})

        info = detector.detect(tmp_path)

        assert not info.is_monorepo
        assert info.workspace_paths == []

    def test_empty_workspaces_uses_heuristic(self, tmp_path, write_files, detector):
        """Empty workspaces fall through to the directory heuristic."""
        write_files(
            tmp_path,
            {
                "package.json": package_json("root", workspaces=[]),
                "a/Dockerfile": "FROM alpine\n",
                "b/Procfile": "web: ./run\n",
            },
        )

        info = detector.detect(tmp_path)

        assert info.type == MonorepoType.SIMPLE
        assert info.workspace_paths == ["a", "b"]
