"""Dependency-name extraction, one reader per manifest kind.

A reader returns the list of declared dependency names, or None when the
manifest is missing or cannot be parsed.
"""

import re
from enum import StrEnum
from pathlib import Path
from typing import Any

from deployplan.manifests.files import read_json_object, read_text, read_toml

_REQUIREMENT_NAME = re.compile(r"^([A-Za-z0-9_.\-]+)")
_PEP508_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._\-]*)")
_GO_REQUIRE_BLOCK = re.compile(r"^require\s*\((.*?)^\)", re.MULTILINE | re.DOTALL)
_GO_REQUIRE_LINE = re.compile(r"^require\s+([^\s(]\S*)\s+\S+", re.MULTILINE)
_GEM = re.compile(r"""^\s*gem\s+['"]([^'"]+)['"]""", re.MULTILINE)
_MIX_DEP = re.compile(r"\{\s*:([a-z0-9_]+)\s*,")
_POM_ARTIFACT = re.compile(r"<artifactId>\s*([^<\s]+)\s*</artifactId>")
_GRADLE_COORD = re.compile(r"""['"]([\w.\-]+):([\w.\-]+)(?::[^'"]*)?['"]""")
_GRADLE_PLUGIN = re.compile(r"""id\s*\(?\s*['"]([\w.\-]+)['"]""")


class ManifestKind(StrEnum):
    """Supported manifest files, valued by their filename."""

    PACKAGE_JSON = "package.json"
    REQUIREMENTS_TXT = "requirements.txt"
    PYPROJECT_TOML = "pyproject.toml"
    GO_MOD = "go.mod"
    GEMFILE = "Gemfile"
    CARGO_TOML = "Cargo.toml"
    COMPOSER_JSON = "composer.json"
    MIX_EXS = "mix.exs"
    POM_XML = "pom.xml"
    BUILD_GRADLE = "build.gradle"


def _keys(section: Any) -> list[str]:
    return [str(k) for k in section] if isinstance(section, dict) else []


class ManifestReader:
    """Base reader. Subclasses implement parse() over the raw file."""

    kind: ManifestKind

    def read(self, app_dir: Path) -> list[str] | None:
        return self.parse(app_dir / self.kind.value)

    def parse(self, path: Path) -> list[str] | None:
        raise NotImplementedError


class PackageJsonReader(ManifestReader):
    kind = ManifestKind.PACKAGE_JSON

    def parse(self, path: Path) -> list[str] | None:
        data = read_json_object(path)
        if data is None:
            return None
        names: list[str] = []
        for section in ("dependencies", "devDependencies", "peerDependencies"):
            for name in _keys(data.get(section)):
                if name not in names:
                    names.append(name)
        return names


class RequirementsReader(ManifestReader):
    kind = ManifestKind.REQUIREMENTS_TXT

    def parse(self, path: Path) -> list[str] | None:
        text = read_text(path)
        if text is None:
            return None
        names = []
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith(("#", "-")):
                continue
            match = _REQUIREMENT_NAME.match(line)
            if match:
                names.append(match.group(1))
        return names


class PyprojectReader(ManifestReader):
    kind = ManifestKind.PYPROJECT_TOML

    def parse(self, path: Path) -> list[str] | None:
        data = read_toml(path)
        if data is None:
            return None
        names: list[str] = []

        project = data.get("project")
        if isinstance(project, dict):
            for spec in project.get("dependencies") or []:
                match = _PEP508_NAME.match(str(spec))
                if match:
                    names.append(match.group(1).lower())

        poetry = data.get("tool", {}).get("poetry") if isinstance(data.get("tool"), dict) else None
        if isinstance(poetry, dict):
            for name in _keys(poetry.get("dependencies")):
                if name.lower() != "python":
                    names.append(name.lower())

        return list(dict.fromkeys(names))


class GoModReader(ManifestReader):
    kind = ManifestKind.GO_MOD

    def parse(self, path: Path) -> list[str] | None:
        text = read_text(path)
        if text is None:
            return None
        names: list[str] = []
        for block in _GO_REQUIRE_BLOCK.findall(text):
            for line in block.splitlines():
                parts = line.split("//", 1)[0].split()
                if len(parts) >= 2:
                    names.append(parts[0])
        names.extend(_GO_REQUIRE_LINE.findall(text))
        return list(dict.fromkeys(names))


class GemfileReader(ManifestReader):
    kind = ManifestKind.GEMFILE

    def parse(self, path: Path) -> list[str] | None:
        text = read_text(path)
        if text is None:
            return None
        return list(dict.fromkeys(_GEM.findall(text)))


class CargoReader(ManifestReader):
    kind = ManifestKind.CARGO_TOML

    def parse(self, path: Path) -> list[str] | None:
        data = read_toml(path)
        if data is None:
            return None
        names = _keys(data.get("dependencies")) + _keys(data.get("dev-dependencies"))
        return list(dict.fromkeys(names))


class ComposerReader(ManifestReader):
    kind = ManifestKind.COMPOSER_JSON

    def parse(self, path: Path) -> list[str] | None:
        data = read_json_object(path)
        if data is None:
            return None
        names = _keys(data.get("require")) + _keys(data.get("require-dev"))
        return list(dict.fromkeys(names))


class MixReader(ManifestReader):
    kind = ManifestKind.MIX_EXS

    def parse(self, path: Path) -> list[str] | None:
        text = read_text(path)
        if text is None:
            return None
        return list(dict.fromkeys(f":{name}" for name in _MIX_DEP.findall(text)))


class PomReader(ManifestReader):
    kind = ManifestKind.POM_XML

    def parse(self, path: Path) -> list[str] | None:
        text = read_text(path)
        if text is None:
            return None
        return list(dict.fromkeys(_POM_ARTIFACT.findall(text)))


class GradleReader(ManifestReader):
    kind = ManifestKind.BUILD_GRADLE

    def parse(self, path: Path) -> list[str] | None:
        text = read_text(path)
        if text is None:
            return None
        names: list[str] = []
        for group, artifact in _GRADLE_COORD.findall(text):
            names.append(f"{group}:{artifact}")
            names.append(group)
        names.extend(_GRADLE_PLUGIN.findall(text))
        return list(dict.fromkeys(names))


READERS: dict[ManifestKind, ManifestReader] = {
    reader.kind: reader
    for reader in (
        PackageJsonReader(),
        RequirementsReader(),
        PyprojectReader(),
        GoModReader(),
        GemfileReader(),
        CargoReader(),
        ComposerReader(),
        MixReader(),
        PomReader(),
        GradleReader(),
    )
}


def read_dependencies(app_dir: Path, kind: ManifestKind) -> list[str] | None:
    """Declared dependency names of one manifest in app_dir."""
    return READERS[kind].read(app_dir)


def parse_manifest(path: Path) -> list[str] | None:
    """Parse a manifest at an explicit path, choosing the reader by filename."""
    try:
        kind = ManifestKind(path.name)
    except ValueError:
        return None
    return READERS[kind].parse(path)
