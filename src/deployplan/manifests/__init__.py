"""Manifest discovery and parsing."""

from deployplan.manifests.files import (
    SKIP_DIRS,
    iter_source_files,
    read_json,
    read_json_object,
    read_text,
    read_toml,
    read_yaml,
    read_yaml_mapping,
    sorted_glob,
)
from deployplan.manifests.readers import ManifestKind, parse_manifest, read_dependencies

__all__ = [
    "SKIP_DIRS",
    "ManifestKind",
    "iter_source_files",
    "parse_manifest",
    "read_dependencies",
    "read_json",
    "read_json_object",
    "read_text",
    "read_toml",
    "read_yaml",
    "read_yaml_mapping",
    "sorted_glob",
]
