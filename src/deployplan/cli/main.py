"""Command-line interface for deployplan."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from deployplan.activities import analysis
from deployplan.artifacts import write_plan
from deployplan.exceptions import DeployplanError
from deployplan.models import DeploymentPlan
from deployplan.workflows.analyze import run_analysis
from deployplan.workflows.state import Severity


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)


app = typer.Typer(
    name="deployplan",
    help="Detect apps, dependencies and deploy order in a repository.",
)


def _validate_project_path(path: Path) -> Path:
    if not path.exists():
        raise typer.BadParameter(f"Path does not exist: {path}")
    if not path.is_dir():
        raise typer.BadParameter(f"Path is not a directory: {path}")
    return path.resolve()


def _make_progress_callback(console: Console):
    """Create a Rich-based progress callback."""
    severity_styles = {
        Severity.INFO: ("blue", ""),
        Severity.SUCCESS: ("green", "✓"),
        Severity.WARNING: ("yellow", "!"),
        Severity.ERROR: ("red", "✗"),
    }

    def callback(severity: Severity, message: str) -> None:
        color, icon = severity_styles[severity]
        if icon:
            console.print(f"  [{color}]{icon}[/{color}] {message}")
        else:
            console.print(f"  [{color}]•[/{color}] {message}")

    return callback


def _plan_table(plan: DeploymentPlan) -> Table:
    table = Table(title="Deployment plan", show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("App", style="bold")
    table.add_column("Path")
    table.add_column("Framework")
    table.add_column("Port", justify="right")
    table.add_column("Depends on")
    table.add_column("Databases / services")
    table.add_column("Health")

    deps = {d.app_name: d for d in plan.app_dependencies}
    for item in plan.apps:
        dep = deps.get(item.app.name)
        port = item.port.port if item.port else item.app.default_port
        needs = [d.type for d in item.databases] + [s.type for s in item.services]
        needs += [f"volume:{v.mount_path}" for v in item.persistent_volumes]
        table.add_row(
            str(dep.deploy_order + 1) if dep else "-",
            item.app.name,
            item.app.path,
            f"{item.app.framework} ({item.app.type})",
            str(port),
            ", ".join(dep.depends_on) if dep else "",
            ", ".join(needs),
            item.health_check.path if item.health_check else "",
        )
    return table


def _env_table(plan: DeploymentPlan) -> Table:
    table = Table(title="Environment variables")
    table.add_column("App", style="bold")
    table.add_column("Key")
    table.add_column("Category")
    table.add_column("Required")
    table.add_column("Default")
    for item in plan.apps:
        for var in item.env_variables:
            table.add_row(
                item.app.name,
                var.key,
                var.category,
                "yes" if var.is_required else "no",
                var.default_value or "",
            )
    return table


@app.command()
def analyze(
    project_path: Annotated[
        Path,
        typer.Argument(help="Path to the repository to analyze. Defaults to current directory."),
    ] = Path("."),
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the plan as JSON instead of tables."),
    ] = False,
    write: Annotated[
        bool,
        typer.Option("--write", help="Write plan.json and plan.md to the output directory."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Analyze a repository and print its deployment plan."""
    _setup_logging(verbose)
    project_path = _validate_project_path(project_path)
    console = Console(stderr=json_output)

    if not json_output:
        console.print(f"\n[bold]deployplan[/bold] - analyzing {project_path.name}\n")

    async def _run() -> DeploymentPlan:
        on_progress = _make_progress_callback(console)
        plan = await run_analysis(project_path, on_progress=on_progress)
        if write:
            for path in await write_plan(project_path, plan):
                on_progress(Severity.SUCCESS, f"Wrote {path}")
        return plan

    try:
        plan = asyncio.run(_run())
    except DeployplanError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        sys.exit(130)

    if json_output:
        typer.echo(plan.model_dump_json(indent=2))
        return

    console.print()
    console.print(_plan_table(plan))
    if any(item.env_variables for item in plan.apps):
        console.print(_env_table(plan))


@app.command()
def apps(
    project_path: Annotated[
        Path,
        typer.Argument(help="Path to the repository. Defaults to current directory."),
    ] = Path("."),
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Show the repository layout and detected apps without deeper analysis."""
    _setup_logging(verbose)
    project_path = _validate_project_path(project_path)
    console = Console()

    async def _run():
        monorepo = await analysis.detect_layout(project_path)
        return monorepo, await analysis.detect_apps(project_path, monorepo)

    monorepo, detected = asyncio.run(_run())

    if monorepo.is_monorepo:
        console.print(
            f"[bold]Monorepo[/bold] ({monorepo.type}): {', '.join(monorepo.workspace_paths)}"
        )
    else:
        console.print("[bold]Single-app repository[/bold]")

    if not detected:
        console.print("[yellow]No deployable apps detected[/yellow]")
        raise typer.Exit(code=1)

    table = Table()
    table.add_column("App", style="bold")
    table.add_column("Path")
    table.add_column("Framework")
    table.add_column("Type")
    table.add_column("Build pack")
    table.add_column("Default port", justify="right")
    table.add_column("Detected via")
    for found in detected:
        table.add_row(
            found.name,
            found.path,
            found.framework,
            found.type,
            found.build_pack,
            str(found.default_port),
            found.detected_via,
        )
    console.print(table)


if __name__ == "__main__":
    app()
