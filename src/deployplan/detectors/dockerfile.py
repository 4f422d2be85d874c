"""Structural Dockerfile extraction."""

import json
import logging
import re
import shlex
from pathlib import Path

from deployplan.manifests.files import read_text
from deployplan.models.docker import DockerfileInfo, DockerHealthcheck

logger = logging.getLogger(__name__)

DOCKERFILE = "Dockerfile"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(value: str | int | float | None) -> int | None:
    """Seconds in a Docker duration such as ``30s``, ``1m30s`` or a bare number."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return int(value)
    text = value.strip()
    if text.isdigit():
        return int(text)
    parts = _DURATION_PART.findall(text)
    if not parts or "".join(n + u for n, u in parts) != text:
        return None
    return int(sum(float(n) * _DURATION_UNITS[u] for n, u in parts))


def _logical_lines(content: str) -> list[str]:
    """Join backslash continuations and drop comments and blank lines."""
    lines: list[str] = []
    buffer = ""
    for raw in content.splitlines():
        stripped = raw.strip()
        if not buffer and (not stripped or stripped.startswith("#")):
            continue
        if buffer and stripped.startswith("#"):
            continue
        if stripped.endswith("\\"):
            buffer += stripped[:-1].rstrip() + " "
            continue
        lines.append((buffer + stripped).strip())
        buffer = ""
    if buffer.strip():
        lines.append(buffer.strip())
    return lines


def _split(args: str) -> list[str]:
    try:
        return shlex.split(args)
    except ValueError:
        return args.split()


def _pairs(args: str) -> dict[str, str]:
    """KEY=value pairs, or the legacy ``KEY value`` single-pair form."""
    tokens = _split(args)
    if not tokens:
        return {}
    if "=" not in tokens[0]:
        key, _, rest = args.strip().partition(" ")
        return {key: rest.strip().strip("\"'")}
    pairs = {}
    for token in tokens:
        key, sep, value = token.partition("=")
        if sep:
            pairs[key] = value
    return pairs


def _command(args: str) -> str:
    """Render shell or exec form as a single command string."""
    text = args.strip()
    if text.startswith("["):
        try:
            parts = json.loads(text)
        except json.JSONDecodeError:
            return text
        if isinstance(parts, list):
            return " ".join(str(p) for p in parts)
    return text


def _healthcheck(args: str) -> DockerHealthcheck:
    if args.strip().upper() == "NONE":
        return DockerHealthcheck(disabled=True)

    options: dict[str, str] = {}
    rest = args.strip()
    while rest.startswith("--"):
        option, _, rest = rest.partition(" ")
        name, _, value = option[2:].partition("=")
        options[name] = value
        rest = rest.strip()

    keyword, _, command = rest.partition(" ")
    command = command.strip()
    if keyword.upper() != "CMD":
        command = rest
    if command.startswith("["):
        try:
            test = ["CMD", *(str(p) for p in json.loads(command))]
        except json.JSONDecodeError:
            test = ["CMD-SHELL", command]
    else:
        test = ["CMD-SHELL", command]

    return DockerHealthcheck(
        test=test,
        interval_seconds=parse_duration(options.get("interval")),
        timeout_seconds=parse_duration(options.get("timeout")),
    )


def _from_image(args: str) -> str | None:
    tokens = [t for t in args.split() if not t.startswith("--")]
    return tokens[0] if tokens else None


def _exposed(args: str) -> list[int]:
    ports = []
    for token in args.split():
        number = token.split("/", 1)[0]
        if number.isdigit() and 0 < int(number) <= 65535:
            ports.append(int(number))
    return ports


def parse_dockerfile(content: str, path: str = DOCKERFILE) -> DockerfileInfo:
    """Extract instructions from Dockerfile text. Unknown instructions are ignored."""
    stages: list[str] = []
    env: dict[str, str] = {}
    args: dict[str, str | None] = {}
    labels: dict[str, str] = {}
    ports: list[int] = []
    workdir = entrypoint = cmd = None
    healthcheck = None

    for line in _logical_lines(content):
        instruction, _, rest = line.partition(" ")
        instruction = instruction.upper()
        rest = rest.strip()

        match instruction:
            case "FROM":
                image = _from_image(rest)
                if image:
                    stages.append(image)
            case "ENV":
                env.update(_pairs(rest))
            case "ARG":
                name, sep, default = rest.partition("=")
                if name.strip():
                    args[name.strip()] = default.strip().strip("\"'") if sep else None
            case "LABEL":
                labels.update(_pairs(rest))
            case "EXPOSE":
                ports.extend(p for p in _exposed(rest) if p not in ports)
            case "WORKDIR":
                workdir = rest
            case "ENTRYPOINT":
                entrypoint = _command(rest)
            case "CMD":
                cmd = _command(rest)
            case "HEALTHCHECK":
                healthcheck = _healthcheck(rest)

    return DockerfileInfo(
        path=path,
        base_image=stages[-1] if stages else None,
        stages=stages,
        env=env,
        args=args,
        exposed_ports=ports,
        workdir=workdir,
        entrypoint=entrypoint,
        cmd=cmd,
        labels=labels,
        healthcheck=healthcheck,
    )


class DockerfileAnalyzer:
    """Read an app's Dockerfile, if any."""

    def analyze(self, app_dir: Path) -> DockerfileInfo | None:
        content = read_text(app_dir / DOCKERFILE)
        if content is None:
            return None
        info = parse_dockerfile(content)
        logger.debug("Dockerfile in %s: base=%s ports=%s", app_dir, info.base_image, info.exposed_ports)
        return info
