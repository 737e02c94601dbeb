"""Preparation of a single experiment: controllers, web page and worker image."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import structlog

from labkit.components.packager import ComponentPackager, PackagedComponent
from labkit.components.tools import ContainerTool, ToolInvocationError
from labkit.config.layout import CoreLayout
from labkit.core.errors import BuildFailure, LabkitError, PreparationFailure
from labkit.core.naming import UniqueNamer
from labkit.orchestration.barrier import TaskTracker, barrier_future, track
from labkit.orchestration.results import ExperimentResult
from labkit.plugins.descriptor import (
    ComponentRole,
    ComponentSpec,
    ControllerSpec,
    PluginDescriptor,
)
from labkit.registries.controllers import ControllerEntry
from labkit.registries.modules import WebModuleEntry
from labkit.registries.services import DEFAULT_MANAGED_LABEL, ServiceRegistryEntry

logger = structlog.get_logger()


class ExperimentPreparer:
    """Packs every component of one experiment concurrently.

    The controllers, the web page and the worker image are fanned out at
    once and joined through one barrier; the first failure is reported
    with the experiment's identity attached.
    """

    def __init__(
        self,
        layout: CoreLayout,
        packager: ComponentPackager,
        container_tool: ContainerTool,
        namer: UniqueNamer,
        tasks: TaskTracker | None = None,
        marker: str = DEFAULT_MANAGED_LABEL,
    ) -> None:
        self.layout = layout
        self.packager = packager
        self.container_tool = container_tool
        self.namer = namer
        self.tasks = tasks or TaskTracker()
        self.marker = marker

    async def prepare(self, plugin_dir: Path, descriptor: PluginDescriptor) -> ExperimentResult:
        plugin_dir = Path(plugin_dir)
        log = logger.bind(experiment=descriptor.short_name)
        log.info("experiment_prep_started", plugin_dir=str(plugin_dir))

        specs = descriptor.component_specs(plugin_dir)
        controllers: Dict[int, ControllerEntry] = {}
        web_modules: List[WebModuleEntry] = []
        services: List[ServiceRegistryEntry] = []

        barrier, done = barrier_future(len(specs))
        controller_specs = iter(descriptor.controllers)
        for slot, spec in enumerate(specs):
            if spec.role is ComponentRole.CONTROLLER:
                controller = next(controller_specs)
                task = self.tasks.spawn(self._prepare_controller(spec, controller))
                track(task, barrier, lambda entry, slot=slot: controllers.__setitem__(slot, entry))
            elif spec.role is ComponentRole.WEBPAGE:
                task = self.tasks.spawn(self._prepare_web_page(spec, descriptor))
                track(task, barrier, web_modules.append)
            else:
                task = self.tasks.spawn(self._prepare_worker(spec, descriptor))
                track(task, barrier, services.append)

        try:
            await done
        except LabkitError as e:
            log.error("experiment_prep_failed", error=e.message)
            raise e.tag(experiment=descriptor.short_name, plugin_dir=str(plugin_dir))
        except Exception as e:
            log.error("experiment_prep_failed", error=str(e))
            raise PreparationFailure(
                f"Failed to prep experiment: {e}",
                {"experiment": descriptor.short_name, "plugin_dir": str(plugin_dir)},
            ) from e

        log.info("experiment_prep_finished", controllers=len(controllers))
        return ExperimentResult(
            short_name=descriptor.short_name,
            controllers=[controllers[slot] for slot in sorted(controllers)],
            web_module=web_modules[0],
            service=services[0],
        )

    async def _prepare_controller(
        self, spec: ComponentSpec, controller: ControllerSpec
    ) -> ControllerEntry:
        logger.info("api_controller_started", mount_path=controller.mount_path)
        packed: PackagedComponent = await self.packager.package(
            spec.source_dir, self.layout.api_staging, role=ComponentRole.CONTROLLER
        )
        logger.info("api_controller_loaded", mount_path=controller.mount_path, module=packed.name)
        return ControllerEntry(name=packed.name, mount_path=controller.mount_path)

    async def _prepare_web_page(
        self, spec: ComponentSpec, descriptor: PluginDescriptor
    ) -> WebModuleEntry:
        logger.info("web_page_started", experiment=descriptor.short_name)
        packed = await self.packager.package(
            spec.source_dir, self.layout.frontend_staging, role=ComponentRole.WEBPAGE
        )
        logger.info("web_page_loaded", experiment=descriptor.short_name, module=packed.name)
        return WebModuleEntry(
            module=packed.name,
            full_name=descriptor.display_name,
            short_name=descriptor.short_name,
            logo=descriptor.logo,
            tagline=descriptor.tagline,
            duration=descriptor.duration,
        )

    async def _prepare_worker(
        self, spec: ComponentSpec, descriptor: PluginDescriptor
    ) -> ServiceRegistryEntry:
        name = self.namer.for_role(ComponentRole.WORKER)
        logger.info("worker_build_started", experiment=descriptor.short_name, image=name)
        try:
            await self.container_tool.build_image(spec.source_dir, name)
        except ToolInvocationError as e:
            raise BuildFailure(
                f"Failed to build worker: {e}", {"component": str(spec.source_dir)}
            ) from e
        logger.info("worker_built", experiment=descriptor.short_name, image=name)
        base: Dict[str, Any] = dict(descriptor.worker.service)
        return ServiceRegistryEntry.from_worker(name, base, self.marker)
