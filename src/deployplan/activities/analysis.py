"""Repository analysis activities.

Each detector runs in a worker thread. A detector that raises is logged and
contributes its empty result, so one bad file never sinks the whole plan.
"""

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from deployplan.detectors import (
    AppDependencyDetector,
    AppDetector,
    CIConfigDetector,
    DependencyAnalyzer,
    DockerComposeAnalyzer,
    DockerfileAnalyzer,
    HealthCheckDetector,
    MonorepoDetector,
    PortDetector,
)
from deployplan.models import (
    AppDependency,
    AppPlan,
    DependencyAnalysisResult,
    DeploymentPlan,
    DetectedApp,
    DetectedDatabase,
    MonorepoInfo,
)
from deployplan.settings import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _run_detector(label: str, default: T, func: Callable[..., T], *args: Any) -> T:
    """Run a blocking detector off the event loop, falling back to default on failure."""
    try:
        return await asyncio.to_thread(func, *args)
    except Exception as e:
        logger.warning("  [%s] failed: %s", label, e)
        return default


async def detect_layout(repo: Path) -> MonorepoInfo:
    return await _run_detector("monorepo", MonorepoInfo.not_monorepo(), MonorepoDetector().detect, repo)


async def detect_apps(repo: Path, monorepo: MonorepoInfo) -> list[DetectedApp]:
    return await _run_detector("apps", [], AppDetector().detect, repo, monorepo)


async def analyze_app(repo: Path, app: DetectedApp) -> AppPlan:
    """Run every per-app detector and collect the results."""
    app_dir = repo / app.path
    name = app.name

    dockerfile, compose = await asyncio.gather(
        _run_detector(f"{name}:dockerfile", None, DockerfileAnalyzer().analyze, app_dir),
        _run_detector(f"{name}:compose", None, DockerComposeAnalyzer().analyze, app_dir),
    )

    dependencies, port, health_check, ci_config = await asyncio.gather(
        _run_detector(
            f"{name}:dependencies",
            DependencyAnalysisResult(),
            DependencyAnalyzer().analyze,
            app_dir,
            app,
            dockerfile,
        ),
        _run_detector(f"{name}:port", None, PortDetector().detect, app_dir, app),
        _run_detector(
            f"{name}:health", None, HealthCheckDetector().detect, app_dir, app, dockerfile, compose
        ),
        _run_detector(f"{name}:ci", None, CIConfigDetector().detect, repo, app_dir),
    )

    return AppPlan(
        app=app,
        databases=dependencies.databases,
        services=dependencies.services,
        env_variables=dependencies.env_variables,
        persistent_volumes=dependencies.persistent_volumes,
        health_check=health_check,
        port=port,
        ci_config=ci_config,
        dockerfile=dockerfile,
        compose=compose,
    )


async def analyze_apps(repo: Path, apps: list[DetectedApp]) -> list[AppPlan]:
    """Analyze apps concurrently, bounded by the worker pool size. Order follows apps."""
    workers = get_settings().max_workers or os.cpu_count() or 1
    semaphore = asyncio.Semaphore(workers)

    async def bounded(app: DetectedApp) -> AppPlan:
        async with semaphore:
            logger.info("Analyzing %s (%s)", app.name, app.framework)
            return await analyze_app(repo, app)

    return list(await asyncio.gather(*(bounded(app) for app in apps)))


async def resolve_deploy_order(repo: Path, apps: list[DetectedApp]) -> list[AppDependency]:
    fallback = [AppDependency(app_name=app.name, deploy_order=i) for i, app in enumerate(apps)]
    return await _run_detector("app-dependencies", fallback, AppDependencyDetector().analyze, repo, apps)


def merge_databases(app_plans: list[AppPlan]) -> list[DetectedDatabase]:
    """One database per type across all apps, consumers unioned in first-seen order."""
    merged: dict[str, DetectedDatabase] = {}
    for plan in app_plans:
        for database in plan.databases:
            existing = merged.get(database.type)
            if existing is None:
                merged[database.type] = database
                continue
            consumers = existing.consumers + [
                c for c in database.consumers if c not in existing.consumers
            ]
            merged[database.type] = existing.model_copy(update={"consumers": consumers})
    return list(merged.values())


def build_plan(
    repo: Path,
    monorepo: MonorepoInfo,
    app_plans: list[AppPlan],
    app_dependencies: list[AppDependency],
) -> DeploymentPlan:
    """Assemble the final plan with apps in deploy order."""
    rank = {dep.app_name: dep.deploy_order for dep in app_dependencies}
    ordered = sorted(app_plans, key=lambda p: rank.get(p.app.name, len(rank)))
    return DeploymentPlan(
        repository=repo.resolve().name,
        monorepo=monorepo,
        apps=ordered,
        app_dependencies=app_dependencies,
        databases=merge_databases(ordered),
    )
