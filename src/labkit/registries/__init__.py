"""Shared registry documents of the core application."""

from labkit.registries.cleanup import CleanupReport, CleanupResetter
from labkit.registries.controllers import (
    ControllerEntry,
    load_controller_manifest,
    save_controller_manifest,
)
from labkit.registries.modules import ModuleList, WebModuleEntry, load_module_list, save_module_list
from labkit.registries.services import ServiceRegistry, ServiceRegistryEntry, is_managed
from labkit.registries.writer import SharedArtifactWriter

__all__ = [
    "CleanupReport",
    "CleanupResetter",
    "ControllerEntry",
    "ModuleList",
    "ServiceRegistry",
    "ServiceRegistryEntry",
    "SharedArtifactWriter",
    "WebModuleEntry",
    "is_managed",
    "load_controller_manifest",
    "load_module_list",
    "save_controller_manifest",
    "save_module_list",
]
