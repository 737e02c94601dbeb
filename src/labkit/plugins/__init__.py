"""Experiment plugin descriptors."""

from labkit.plugins.descriptor import (
    ComponentRole,
    ComponentSpec,
    ControllerSpec,
    PluginDescriptor,
    WebPageSpec,
    WorkerSpec,
    discover_plugins,
    load_descriptor,
)

__all__ = [
    "ComponentRole",
    "ComponentSpec",
    "ControllerSpec",
    "PluginDescriptor",
    "WebPageSpec",
    "WorkerSpec",
    "discover_plugins",
    "load_descriptor",
]
