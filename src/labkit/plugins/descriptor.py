"""
Experiment descriptor loading.

Each experiment directory carries a ``config.yaml`` such as::

    shortName: stroop
    experimentName: Stroop Task
    logo: stroop.png
    tagline: Name the ink colour
    duration: 5 minutes
    apiControllers:
      - location: api controllers
        mountPath: stroop
    webPage:
      location: web page
    worker:
      location: worker
      service:
        environment:
          QUEUE: stroop

Only the keys needed to prepare the experiment are checked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import structlog
import yaml

from labkit.core.errors import DescriptorLoadFailure

logger = structlog.get_logger()

DEFAULT_DESCRIPTOR_FILENAME = "config.yaml"


class ComponentRole(str, Enum):
    """Kind of packageable unit an experiment contributes."""

    CONTROLLER = "controller"
    WEBPAGE = "webpage"
    WORKER = "worker"


@dataclass(frozen=True)
class ControllerSpec:
    location: str
    mount_path: str


@dataclass(frozen=True)
class WebPageSpec:
    location: str


@dataclass(frozen=True)
class WorkerSpec:
    location: str
    service: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ComponentSpec:
    """One packageable unit: a source directory plus its role."""

    source_dir: Path
    role: ComponentRole


@dataclass(frozen=True)
class PluginDescriptor:
    """Parsed configuration for one experiment directory."""

    short_name: str
    display_name: str
    logo: str
    tagline: str
    duration: str
    controllers: tuple[ControllerSpec, ...]
    web_page: WebPageSpec
    worker: WorkerSpec

    def component_specs(self, plugin_dir: Path) -> list[ComponentSpec]:
        """All packageable units of this experiment, controllers first."""
        specs = [
            ComponentSpec(plugin_dir / c.location, ComponentRole.CONTROLLER)
            for c in self.controllers
        ]
        specs.append(ComponentSpec(plugin_dir / self.web_page.location, ComponentRole.WEBPAGE))
        specs.append(ComponentSpec(plugin_dir / self.worker.location, ComponentRole.WORKER))
        return specs

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PluginDescriptor":
        controllers = tuple(
            ControllerSpec(location=str(c["location"]), mount_path=str(c["mountPath"]))
            for c in data.get("apiControllers") or []
        )
        worker = data["worker"]
        service = worker.get("service") or {}
        if not isinstance(service, dict):
            raise ValueError(f"worker service must be a mapping, got {type(service).__name__}")
        return cls(
            short_name=str(data["shortName"]),
            display_name=str(data.get("experimentName") or data["shortName"]),
            logo=str(data.get("logo") or ""),
            tagline=str(data.get("tagline") or ""),
            duration=str(data.get("duration") or ""),
            controllers=controllers,
            web_page=WebPageSpec(location=str(data["webPage"]["location"])),
            worker=WorkerSpec(
                location=str(worker["location"]),
                service=dict(service),
            ),
        )


def load_descriptor(
    plugin_dir: str | Path,
    filename: str = DEFAULT_DESCRIPTOR_FILENAME,
) -> PluginDescriptor:
    """
    Load the descriptor of one experiment directory.

    Raises:
        DescriptorLoadFailure: If the file is missing, is not valid YAML,
            lacks a key needed to prepare the experiment, or holds a value
            of the wrong shape
    """
    path = Path(plugin_dir) / filename
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise DescriptorLoadFailure(
            f"Failed to load config file: {e}", {"plugin_dir": str(plugin_dir)}
        ) from e

    if not isinstance(data, dict):
        raise DescriptorLoadFailure(
            "Config file is not a mapping", {"plugin_dir": str(plugin_dir)}
        )

    try:
        return PluginDescriptor.from_dict(data)
    except KeyError as e:
        raise DescriptorLoadFailure(
            f"Config file is missing required field {e}", {"plugin_dir": str(plugin_dir)}
        ) from e
    except (AttributeError, TypeError, ValueError) as e:
        raise DescriptorLoadFailure(
            f"Config file is invalid: {e}", {"plugin_dir": str(plugin_dir)}
        ) from e


def discover_plugins(
    root: str | Path,
    filename: str = DEFAULT_DESCRIPTOR_FILENAME,
) -> list[tuple[Path, PluginDescriptor]]:
    """Load every immediate subdirectory of ``root`` in sorted order.

    A single malformed descriptor aborts discovery.
    """
    root = Path(root)
    try:
        entries = sorted(root.iterdir())
    except OSError as e:
        raise DescriptorLoadFailure(
            f"Failed to list experiments directory: {e}", {"experiments_dir": str(root)}
        ) from e

    plugins = []
    for entry in entries:
        if not entry.is_dir():
            continue
        logger.info("experiment_discovered", plugin_dir=str(entry))
        plugins.append((entry, load_descriptor(entry, filename)))
    return plugins
