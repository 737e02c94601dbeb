"""Commit of prepared experiments into the core's shared registries."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from labkit.config.layout import CoreLayout
from labkit.registries.controllers import save_controller_manifest
from labkit.registries.modules import load_module_list, save_module_list
from labkit.registries.services import DEFAULT_MANAGED_LABEL, ServiceRegistry

if TYPE_CHECKING:
    from labkit.orchestration.results import RunResult

logger = structlog.get_logger()


class SharedArtifactWriter:
    """Writes controllers, web modules and worker services from one run.

    The three documents are written in that order; the first failure
    aborts the rest and earlier writes are kept.
    """

    def __init__(self, layout: CoreLayout, marker: str = DEFAULT_MANAGED_LABEL) -> None:
        self.layout = layout
        self.marker = marker

    def commit(self, result: RunResult) -> None:
        logger.info("linking_components")

        save_controller_manifest(self.layout.controllers_manifest, result.controllers)

        modules = load_module_list(self.layout.module_list)
        for entry in result.web_modules:
            modules.add(entry)
        save_module_list(self.layout.module_list, modules)

        registry = ServiceRegistry.load(self.layout.service_registry, self.marker)
        for service in result.services:
            registry.merge(service)
        registry.save(self.layout.service_registry)

        logger.info(
            "components_linked",
            controllers=len(result.controllers),
            web_modules=len(result.web_modules),
            services=len(result.services),
        )
