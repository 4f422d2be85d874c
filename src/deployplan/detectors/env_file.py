"""Parser for ``.env.example``-style files."""

import re
from dataclasses import dataclass

_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")
_PLACEHOLDER_PREFIXES = ("your", "replace")
_PLACEHOLDER_WORDS = frozenset({"changeme", "change_me", "xxx", "todo"})
_TOKEN_SEPARATORS = re.compile(r"[_\-]")


@dataclass(frozen=True)
class EnvEntry:
    key: str
    value: str | None
    is_required: bool


def is_placeholder(value: str) -> bool:
    """True when the value is clearly meant to be filled in by the user."""
    lowered = value.strip().lower()
    if not lowered:
        return True
    if lowered.startswith(_PLACEHOLDER_PREFIXES):
        return True
    if lowered.startswith("<") and lowered.endswith(">"):
        return True
    if lowered in _PLACEHOLDER_WORDS:
        return True
    # "xxx-xxx", "todo_later": a whole separated token, never a substring
    return any(token in _PLACEHOLDER_WORDS for token in _TOKEN_SEPARATORS.split(lowered))


def _unquote(raw: str) -> str:
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("'", '"'):
        return raw[1:-1]
    # Unquoted values end at an inline comment
    comment = raw.find(" #")
    if comment != -1:
        raw = raw[:comment]
    return raw.strip()


def parse_env_file(content: str) -> list[EnvEntry]:
    """Entries in file order. A key repeated later overrides the earlier value."""
    entries: dict[str, EnvEntry] = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()

        key, sep, raw_value = line.partition("=")
        key = key.strip()
        if not sep or not _KEY.match(key):
            continue

        value = _unquote(raw_value)
        entries[key] = EnvEntry(
            key=key,
            value=value or None,
            is_required=is_placeholder(value),
        )
    return list(entries.values())
