"""
Worker service registry (``docker-compose.dev.yml``).

Services created by labkit carry a marker label (``isLabkitWorker: true``
by default) so cleanup can remove them without touching services defined
by hand in the same file.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from labkit.core.errors import RegistryReadFailure, RegistryWriteFailure
from labkit.registries.atomic import write_text_atomic

DEFAULT_MANAGED_LABEL = "isLabkitWorker"


def is_managed(definition: Any, marker: str = DEFAULT_MANAGED_LABEL) -> bool:
    """Whether a compose service definition carries the marker label."""
    if not isinstance(definition, dict):
        return False
    labels = definition.get("labels")
    if isinstance(labels, dict):
        return labels.get(marker) in (True, "true", "True")
    if isinstance(labels, list):
        return f"{marker}=true" in labels
    return False


@dataclass(frozen=True)
class ServiceRegistryEntry:
    name: str
    definition: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_worker(
        cls,
        name: str,
        base_service: dict[str, Any],
        marker: str = DEFAULT_MANAGED_LABEL,
    ) -> "ServiceRegistryEntry":
        """Worker service definition plus its image and the marker label."""
        definition = copy.deepcopy(base_service)
        definition["image"] = name
        labels = definition.get("labels")
        if isinstance(labels, list):
            definition["labels"] = [*labels, f"{marker}=true"]
        else:
            definition["labels"] = {**(labels or {}), marker: True}
        return cls(name=name, definition=definition)


class ServiceRegistry:
    """In-memory view of the compose document."""

    def __init__(self, document: dict[str, Any], marker: str = DEFAULT_MANAGED_LABEL) -> None:
        self.document = document
        self.marker = marker
        if self.document.get("services") is None:
            self.document["services"] = {}

    @property
    def services(self) -> dict[str, Any]:
        return self.document["services"]

    @classmethod
    def load(cls, path: Path, marker: str = DEFAULT_MANAGED_LABEL) -> "ServiceRegistry":
        try:
            with open(path) as f:
                document = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise RegistryReadFailure(
                f"Failed to load main docker compose file: {e}", {"path": str(path)}
            ) from e
        if document is None:
            document = {}
        if not isinstance(document, dict) or not isinstance(
            document.get("services") or {}, dict
        ):
            raise RegistryReadFailure(
                "Docker compose file has no services mapping", {"path": str(path)}
            )
        return cls(document, marker)

    def managed_names(self) -> list[str]:
        return [name for name, spec in self.services.items() if is_managed(spec, self.marker)]

    def remove_managed(self) -> list[str]:
        removed = self.managed_names()
        for name in removed:
            del self.services[name]
        return removed

    def merge(self, entry: ServiceRegistryEntry) -> None:
        self.services[entry.name] = copy.deepcopy(entry.definition)

    def render(self) -> str:
        return yaml.safe_dump(self.document, default_flow_style=False, sort_keys=False)

    def save(self, path: Path) -> None:
        try:
            write_text_atomic(path, self.render())
        except (OSError, yaml.YAMLError) as e:
            raise RegistryWriteFailure(
                f"Failed to write new compose file: {e}", {"path": str(path)}
            ) from e
