"""Resolved paths of the core application being assembled."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from labkit.config.settings import Settings


@dataclass(frozen=True)
class CoreLayout:
    core_dir: Path
    api_dir: Path
    frontend_dir: Path
    controllers_manifest: Path
    module_list: Path
    service_registry: Path
    api_staging: Path
    frontend_staging: Path

    @classmethod
    def from_settings(cls, core_dir: str | Path, settings: Settings) -> "CoreLayout":
        core = Path(core_dir)
        api_dir = core / settings.api_dir
        frontend_dir = core / settings.frontend_dir
        return cls(
            core_dir=core,
            api_dir=api_dir,
            frontend_dir=frontend_dir,
            controllers_manifest=core / settings.controllers_manifest,
            module_list=core / settings.module_list,
            service_registry=core / settings.service_registry,
            api_staging=api_dir / settings.staging_dirname,
            frontend_staging=frontend_dir / settings.staging_dirname,
        )

    @property
    def staging_dirs(self) -> tuple[Path, Path]:
        return (self.api_staging, self.frontend_staging)
