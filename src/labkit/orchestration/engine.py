"""Run-level orchestration: cleanup, concurrent preparation, commit, rebuild."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path

import structlog

from labkit.components.packager import ComponentPackager
from labkit.components.tools import ContainerTool, PackageTool, ToolInvocationError, ToolRunner
from labkit.config.layout import CoreLayout
from labkit.config.settings import Settings, get_settings
from labkit.core.errors import RebuildFailure
from labkit.core.naming import UniqueNamer
from labkit.logging import bind_context
from labkit.orchestration.barrier import TaskTracker, barrier_future, track
from labkit.orchestration.preparer import ExperimentPreparer
from labkit.orchestration.results import RunResult
from labkit.plugins.descriptor import (
    DEFAULT_DESCRIPTOR_FILENAME,
    ComponentRole,
    discover_plugins,
)
from labkit.registries.cleanup import CleanupResetter
from labkit.registries.services import DEFAULT_MANAGED_LABEL
from labkit.registries.writer import SharedArtifactWriter

logger = structlog.get_logger()


class Orchestrator:
    """Prepares every experiment under a directory and links them into the core."""

    def __init__(
        self,
        layout: CoreLayout,
        package_tool: PackageTool,
        container_tool: ContainerTool,
        *,
        descriptor_filename: str = DEFAULT_DESCRIPTOR_FILENAME,
        namer: UniqueNamer | None = None,
        marker: str = DEFAULT_MANAGED_LABEL,
    ) -> None:
        self.layout = layout
        self.package_tool = package_tool
        self.descriptor_filename = descriptor_filename
        self.tasks = TaskTracker()
        self.namer = namer or UniqueNamer()
        self.cleanup = CleanupResetter(layout, package_tool, marker)
        self.preparer = ExperimentPreparer(
            layout,
            ComponentPackager(package_tool, self.namer),
            container_tool,
            self.namer,
            tasks=self.tasks,
            marker=marker,
        )
        self.writer = SharedArtifactWriter(layout, marker)

    @classmethod
    def from_settings(cls, core_dir: str | Path, settings: Settings) -> "Orchestrator":
        runner = ToolRunner(timeout=settings.tool_timeout)
        namer = UniqueNamer(
            {
                ComponentRole.CONTROLLER: settings.controller_prefix,
                ComponentRole.WEBPAGE: settings.webpage_prefix,
                ComponentRole.WORKER: settings.worker_prefix,
            }
        )
        return cls(
            CoreLayout.from_settings(core_dir, settings),
            PackageTool(settings.package_tool, runner),
            ContainerTool(settings.container_tool, runner),
            descriptor_filename=settings.descriptor_filename,
            namer=namer,
            marker=settings.managed_label,
        )

    async def run(self, plugins_root: str | Path) -> RunResult:
        log = bind_context(experiments_dir=str(plugins_root))
        start = time.monotonic()

        log.info("cleaning_old_experiments")
        self.cleanup.reset()

        plugins = discover_plugins(plugins_root, self.descriptor_filename)
        result = RunResult()
        barrier, converged = barrier_future(len(plugins))
        for index, (plugin_dir, descriptor) in enumerate(plugins):
            task = self.tasks.spawn(self.preparer.prepare(plugin_dir, descriptor))
            track(task, barrier, lambda exp, index=index: result.absorb(index, exp))
        await converged

        self.writer.commit(result)
        await self._rebuild_core()

        result.duration_seconds = time.monotonic() - start
        log.info(
            "prepped_successfully",
            experiments=len(result.experiments),
            duration=round(result.duration_seconds, 2),
        )
        return result

    async def _rebuild_core(self) -> None:
        logger.info("rebuilding_core")
        barrier, rebuilt = barrier_future(2)
        for component_dir, staging in (
            (self.layout.api_dir, self.layout.api_staging),
            (self.layout.frontend_dir, self.layout.frontend_staging),
        ):
            task = self.tasks.spawn(self._rebuild(component_dir, staging))
            track(task, barrier, lambda _: None)
        await rebuilt

    async def _rebuild(self, component_dir: Path, staging: Path) -> None:
        details = {"component": str(component_dir)}
        artifacts = sorted(p for p in staging.glob("*") if p.is_file())
        try:
            if artifacts:
                await self.package_tool.install(component_dir, artifacts)
        except ToolInvocationError as e:
            raise RebuildFailure(f"Failed to install packages: {e}", details) from e
        try:
            await self.package_tool.build(component_dir)
        except ToolInvocationError as e:
            raise RebuildFailure(f"Failed to build core component: {e}", details) from e
        logger.info("core_component_rebuilt", component=str(component_dir), installed=len(artifacts))


async def _prepare(orchestrator: Orchestrator, plugins_root: Path) -> RunResult:
    try:
        return await orchestrator.run(plugins_root)
    finally:
        if orchestrator.tasks.pending:
            logger.info("waiting_for_inflight_tasks", pending=orchestrator.tasks.pending)
        await orchestrator.tasks.drain()


def prepare(
    plugins_root: str | Path,
    core_dir: str | Path,
    settings: Settings | None = None,
) -> RunResult:
    """Prepare all experiments under ``plugins_root`` into the core at ``core_dir``.

    Raises the first failure of the run as a ``LabkitError``. Components
    still building when a sibling fails are allowed to finish first.
    """
    settings = settings or get_settings()
    orchestrator = Orchestrator.from_settings(core_dir, settings)
    return asyncio.run(_prepare(orchestrator, Path(plugins_root)))
