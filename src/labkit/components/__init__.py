"""Component packaging and external tool wrappers."""

from labkit.components.packager import ComponentPackager, PackagedComponent
from labkit.components.tools import ContainerTool, PackageTool, ToolInvocationError, ToolRunner

__all__ = [
    "ComponentPackager",
    "ContainerTool",
    "PackageTool",
    "PackagedComponent",
    "ToolInvocationError",
    "ToolRunner",
]
