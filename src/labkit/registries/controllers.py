"""API controller manifest (``api/src/controllers.json``)."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from labkit.core.errors import RegistryReadFailure, RegistryWriteFailure
from labkit.registries.atomic import write_text_atomic


@dataclass(frozen=True)
class ControllerEntry:
    name: str
    mount_path: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "mountPath": self.mount_path}


def load_controller_manifest(path: Path) -> list[ControllerEntry]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return [ControllerEntry(name=str(c["name"]), mount_path=str(c["mountPath"])) for c in data]
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise RegistryReadFailure(
            f"Failed to read api controllers list: {e}", {"path": str(path)}
        ) from e


def save_controller_manifest(path: Path, entries: list[ControllerEntry]) -> None:
    payload = json.dumps([entry.to_dict() for entry in entries], indent=2)
    try:
        write_text_atomic(path, payload + "\n")
    except OSError as e:
        raise RegistryWriteFailure(
            f"Failed to write api controllers list: {e}", {"path": str(path)}
        ) from e
