"""Write deployment plan artifacts to the .deployplan directory."""

from pathlib import Path

import aiofiles
from jinja2 import Template

from deployplan.exceptions import ArtifactError
from deployplan.models import DeploymentPlan
from deployplan.settings import get_settings

PLAN_TEMPLATE = Template("""\
# Deployment Plan: {{ plan.repository }}

{% if plan.monorepo.is_monorepo -%}
Monorepo ({{ plan.monorepo.type }}), workspaces: {{ plan.monorepo.workspace_paths | join(', ') }}
{%- else -%}
Single-app repository
{%- endif %}

## Deploy Order
{% for dep in plan.app_dependencies %}
{{ dep.deploy_order + 1 }}. **{{ dep.app_name }}**{% if dep.depends_on %} (after {{ dep.depends_on | join(', ') }}){% endif %}
{%- endfor %}
{% if plan.databases %}
## Databases
{% for db in plan.databases %}
- {{ db.type }} via `{{ db.env_var_name }}`, used by {{ db.consumers | join(', ') }} ({{ db.detected_via }})
{%- endfor %}
{% endif %}
{% for item in plan.apps %}
## {{ item.app.name }}

- Path: `{{ item.app.path }}`
- Framework: {{ item.app.framework }} ({{ item.app.type }}, {{ item.app.build_pack }})
- Port: {{ item.port.port if item.port else item.app.default_port }}
{%- if item.health_check %}
- Health check: `{{ item.health_check.method }} {{ item.health_check.path }}` ({{ item.health_check.detected_via }})
{%- endif %}
{%- if item.ci_config %}
- CI ({{ item.ci_config.detected_from }}):
{%- if item.ci_config.install_command %} install `{{ item.ci_config.install_command }}`{% endif %}
{%- if item.ci_config.build_command %} build `{{ item.ci_config.build_command }}`{% endif %}
{%- if item.ci_config.start_command %} start `{{ item.ci_config.start_command }}`{% endif %}
{%- endif %}
{%- for svc in item.services %}
- Service: {{ svc.description }} ({{ svc.required_env_vars | join(', ') }})
{%- endfor %}
{%- for vol in item.persistent_volumes %}
- Volume `{{ vol.name }}` at `{{ vol.mount_path }}`: {{ vol.reason }}
{%- endfor %}
{% if item.env_variables %}
| Variable | Category | Required | Default |
|---|---|---|---|
{% for var in item.env_variables -%}
| `{{ var.key }}` | {{ var.category }} | {{ 'yes' if var.is_required else 'no' }} | {{ var.default_value or '' }} |
{% endfor %}
{%- endif %}
{%- endfor %}
""")


def get_artifact_path(project_dir: Path, filename: str) -> Path:
    """Get path to an artifact file in the output directory."""
    settings = get_settings()
    return project_dir / settings.output_dir / filename


def render_markdown(plan: DeploymentPlan) -> str:
    return PLAN_TEMPLATE.render(plan=plan)


async def _write(path: Path, content: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "w") as f:
            await f.write(content)
    except OSError as e:
        raise ArtifactError(f"Failed to write {path}: {e}") from e
    return path


async def write_plan_json(project_dir: Path, plan: DeploymentPlan) -> Path:
    """Write plan.json artifact.

    Raises:
        ArtifactError: If the file cannot be written.
    """
    path = get_artifact_path(project_dir, get_settings().plan_json_file)
    return await _write(path, plan.model_dump_json(indent=2))


async def write_plan_markdown(project_dir: Path, plan: DeploymentPlan) -> Path:
    """Write plan.md artifact.

    Raises:
        ArtifactError: If the file cannot be written.
    """
    path = get_artifact_path(project_dir, get_settings().plan_markdown_file)
    return await _write(path, render_markdown(plan))


async def write_plan(project_dir: Path, plan: DeploymentPlan) -> list[Path]:
    """Write both plan artifacts, returning their paths."""
    return [
        await write_plan_json(project_dir, plan),
        await write_plan_markdown(project_dir, plan),
    ]


async def read_plan(project_dir: Path) -> DeploymentPlan:
    """Load a previously written plan.json.

    Raises:
        FileNotFoundError: If plan.json doesn't exist.
    """
    path = get_artifact_path(project_dir, get_settings().plan_json_file)
    async with aiofiles.open(path) as f:
        return DeploymentPlan.model_validate_json(await f.read())
