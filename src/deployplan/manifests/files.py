"""Bounded, read-only file access.

Every read goes through a size gate. Unreadable, oversized or malformed files
come back as None so callers can treat them as absent.
"""

import glob
import json
import logging
import os
import tomllib
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import yaml

from deployplan.settings import get_settings

logger = logging.getLogger(__name__)

# Directories never descended into while scanning source files
SKIP_DIRS = frozenset({
    ".git",
    ".svn",
    ".hg",
    "node_modules",
    "vendor",
    ".venv",
    "venv",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".tox",
    "dist",
    "build",
    "out",
    "target",
    ".next",
    ".nuxt",
    ".output",
    ".svelte-kit",
    "coverage",
    ".turbo",
    ".cache",
})


def read_text(path: Path, max_bytes: int | None = None) -> str | None:
    """Read a text file if it exists and is within the size ceiling."""
    limit = max_bytes if max_bytes is not None else get_settings().manifest_max_bytes
    try:
        if not path.is_file():
            return None
        size = path.stat().st_size
        if size > limit:
            logger.debug("Skipping %s: %d bytes exceeds %d", path, size, limit)
            return None
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug("Skipping unreadable %s: %s", path, e)
        return None


def read_json(path: Path, max_bytes: int | None = None) -> Any | None:
    text = read_text(path, max_bytes)
    if text is None:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug("Malformed JSON in %s: %s", path, e)
        return None


def read_yaml(path: Path, max_bytes: int | None = None) -> Any | None:
    text = read_text(path, max_bytes)
    if text is None:
        return None
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.debug("Malformed YAML in %s: %s", path, e)
        return None


def read_toml(path: Path, max_bytes: int | None = None) -> dict[str, Any] | None:
    text = read_text(path, max_bytes)
    if text is None:
        return None
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        logger.debug("Malformed TOML in %s: %s", path, e)
        return None


def read_json_object(path: Path, max_bytes: int | None = None) -> dict[str, Any] | None:
    """Read a JSON file whose top level must be an object."""
    data = read_json(path, max_bytes)
    return data if isinstance(data, dict) else None


def read_yaml_mapping(path: Path, max_bytes: int | None = None) -> dict[str, Any] | None:
    """Read a YAML file whose top level must be a mapping."""
    data = read_yaml(path, max_bytes)
    return data if isinstance(data, dict) else None


def sorted_glob(base: Path, pattern: str, dirs_only: bool = False) -> list[Path]:
    """Expand a glob relative to base, sorted so results never depend on listing order."""
    matches = glob.glob(os.path.join(glob.escape(str(base)), pattern))
    paths = [Path(m) for m in sorted(matches)]
    if dirs_only:
        return [p for p in paths if p.is_dir()]
    return [p for p in paths if p.is_file()]


def glob_many(base: Path, patterns: Iterable[str]) -> list[Path]:
    """Expand several glob patterns in order, dropping duplicates."""
    seen: set[Path] = set()
    found: list[Path] = []
    for pattern in patterns:
        for path in sorted_glob(base, pattern):
            if path not in seen:
                seen.add(path)
                found.append(path)
    return found


def iter_source_files(
    root: Path,
    suffixes: Iterable[str],
    max_files: int,
) -> Iterator[Path]:
    """Walk root in sorted order yielding at most max_files files with a matching suffix."""
    wanted = tuple(suffixes)
    count = 0
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames if d not in SKIP_DIRS and not d.startswith(".")
        )
        for filename in sorted(filenames):
            if not filename.endswith(wanted):
                continue
            yield Path(dirpath) / filename
            count += 1
            if count >= max_files:
                return
