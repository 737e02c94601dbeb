"""
Component packaging.

Turns one component source directory into a uniquely named package
artifact in a staging directory. The component's ``package.json`` is
renamed for the duration of the pack and restored afterwards.

A failure after the manifest is rewritten leaves it rewritten; the
``package.json.bak`` next to it holds the original and the next
``labkit clean`` does not touch it.
"""

from __future__ import annotations

import asyncio
import json
import shutil
from dataclasses import dataclass
from pathlib import Path

import structlog

from labkit.components.tools import PackageTool, ToolInvocationError
from labkit.core.errors import (
    BuildFailure,
    ManifestFailure,
    PackageFailure,
    RelocationFailure,
    RestoreFailure,
    SetupFailure,
)
from labkit.core.naming import UniqueNamer
from labkit.plugins.descriptor import ComponentRole

logger = structlog.get_logger()

MANIFEST_NAME = "package.json"
BACKUP_NAME = "package.json.bak"


@dataclass(frozen=True)
class PackagedComponent:
    """A packed component staged for installation."""

    name: str
    artifact: Path


def _rename_manifest(manifest: Path, name: str) -> None:
    data = json.loads(manifest.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{manifest} does not contain a JSON object")
    data["name"] = name
    manifest.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def _restore_manifest(manifest: Path, backup: Path) -> None:
    manifest.unlink()
    backup.rename(manifest)


class ComponentPackager:
    """Packs component directories under unique names."""

    def __init__(self, package_tool: PackageTool, namer: UniqueNamer) -> None:
        self.package_tool = package_tool
        self.namer = namer

    async def package(
        self,
        source_dir: Path,
        staging_dir: Path,
        role: ComponentRole = ComponentRole.CONTROLLER,
    ) -> PackagedComponent:
        source_dir = Path(source_dir)
        staging_dir = Path(staging_dir)
        details = {"component": str(source_dir), "staging_dir": str(staging_dir)}
        manifest = source_dir / MANIFEST_NAME
        backup = source_dir / BACKUP_NAME

        try:
            await asyncio.to_thread(shutil.copyfile, manifest, backup)
        except OSError as e:
            raise SetupFailure(f"Failed to back up {MANIFEST_NAME}: {e}", details) from e

        name = self.namer.for_role(role)
        log = logger.bind(component=str(source_dir), name=name)

        try:
            await asyncio.to_thread(_rename_manifest, manifest, name)
        except (OSError, ValueError) as e:
            log.warning("manifest_left_modified", backup=str(backup))
            raise ManifestFailure(f"Failed to rewrite {MANIFEST_NAME}: {e}", details) from e

        try:
            await self.package_tool.build(source_dir)
        except ToolInvocationError as e:
            log.warning("manifest_left_modified", backup=str(backup))
            raise BuildFailure(f"Failed to run build: {e}", details) from e

        try:
            artifact_name = await self.package_tool.pack(source_dir)
        except ToolInvocationError as e:
            log.warning("manifest_left_modified", backup=str(backup))
            raise PackageFailure(f"Failed to run pack: {e}", details) from e

        packed = source_dir / artifact_name
        staged = staging_dir / artifact_name
        try:
            await asyncio.to_thread(shutil.move, str(packed), str(staged))
        except OSError as e:
            log.warning("manifest_left_modified", backup=str(backup))
            raise RelocationFailure(
                f"Failed to move packaged file ({packed} => {staged}): {e}", details
            ) from e

        try:
            await asyncio.to_thread(_restore_manifest, manifest, backup)
        except OSError as e:
            raise RestoreFailure(f"Failed to restore {MANIFEST_NAME} backup: {e}", details) from e

        log.info("component_packaged", artifact=str(staged))
        return PackagedComponent(name=name, artifact=staged)
