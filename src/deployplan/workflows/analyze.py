"""Analysis workflow using Pydantic Graph."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic_graph import BaseNode, End, Graph, GraphRunContext

from deployplan.activities import analysis
from deployplan.exceptions import AnalyzeError
from deployplan.models import DeploymentPlan
from deployplan.workflows.state import AnalysisState, ProgressCallback, Severity, _noop_progress

Ctx = GraphRunContext[AnalysisState, None]


@dataclass
class DetectLayout(BaseNode[AnalysisState]):
    """Decide between single app and monorepo."""

    async def run(self, ctx: Ctx) -> DetectApps:
        progress = ctx.state.on_progress
        progress(Severity.INFO, "Detecting repository layout...")
        monorepo = await analysis.detect_layout(ctx.state.path)
        ctx.state.monorepo = monorepo

        if monorepo.is_monorepo:
            paths = ", ".join(monorepo.workspace_paths)
            progress(Severity.SUCCESS, f"Monorepo detected ({monorepo.type}): {paths}")
        else:
            progress(Severity.SUCCESS, "Single-app repository")
        return DetectApps()


@dataclass
class DetectApps(BaseNode[AnalysisState]):
    """Classify every workspace directory."""

    async def run(self, ctx: Ctx) -> AnalyzeApps | ResolveDeployOrder:
        progress = ctx.state.on_progress
        apps = await analysis.detect_apps(ctx.state.path, ctx.state.monorepo)
        ctx.state.apps = apps

        if not apps:
            progress(Severity.WARNING, "No deployable apps detected")
            return ResolveDeployOrder()

        for app in apps:
            progress(Severity.SUCCESS, f"Found {app.name} at {app.path} ({app.framework})")
        return AnalyzeApps()


@dataclass
class AnalyzeApps(BaseNode[AnalysisState]):
    """Run per-app detectors concurrently."""

    async def run(self, ctx: Ctx) -> ResolveDeployOrder:
        progress = ctx.state.on_progress
        progress(Severity.INFO, f"Analyzing {len(ctx.state.apps)} app(s)...")
        ctx.state.app_plans = await analysis.analyze_apps(ctx.state.path, ctx.state.apps)

        for plan in ctx.state.app_plans:
            found = [d.type for d in plan.databases] + [s.type for s in plan.services]
            if found:
                progress(Severity.INFO, f"  {plan.app.name} needs {', '.join(found)}")
        return ResolveDeployOrder()


@dataclass
class ResolveDeployOrder(BaseNode[AnalysisState]):
    """Link apps together and assemble the ordered plan."""

    async def run(self, ctx: Ctx) -> End[DeploymentPlan]:
        progress = ctx.state.on_progress
        state = ctx.state

        state.app_dependencies = await analysis.resolve_deploy_order(state.path, state.apps)
        plan = analysis.build_plan(state.path, state.monorepo, state.app_plans, state.app_dependencies)
        state.plan = plan

        if plan.app_dependencies:
            order = " -> ".join(d.app_name for d in plan.app_dependencies)
            progress(Severity.SUCCESS, f"Deploy order: {order}")
        return End(plan)


analysis_graph = Graph(
    nodes=[DetectLayout, DetectApps, AnalyzeApps, ResolveDeployOrder],
    state_type=AnalysisState,
    run_end_type=DeploymentPlan,
)


async def run_analysis(
    path: Path,
    on_progress: ProgressCallback = _noop_progress,
) -> DeploymentPlan:
    """Analyze a repository and return its deployment plan.

    Raises:
        AnalyzeError: If the path does not exist or is not a directory.
    """
    path = Path(path)
    if not path.exists():
        raise AnalyzeError(f"Repository path does not exist: {path}")
    if not path.is_dir():
        raise AnalyzeError(f"Repository path is not a directory: {path}")

    state = AnalysisState(path=path, on_progress=on_progress)
    await analysis_graph.run(DetectLayout(), state=state)
    return state.plan
