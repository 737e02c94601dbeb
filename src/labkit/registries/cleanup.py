"""
Reset of previously linked experiments.

Runs before any packaging starts. Uninstalls and deletions are best
effort: failures are logged and skipped. A registry document that cannot
be read, or written back, aborts the reset because later steps need a
known baseline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from labkit.components.tools import PackageTool, ToolInvocationError
from labkit.config.layout import CoreLayout
from labkit.registries.controllers import load_controller_manifest, save_controller_manifest
from labkit.registries.modules import ModuleList, load_module_list, save_module_list
from labkit.registries.services import DEFAULT_MANAGED_LABEL, ServiceRegistry

logger = structlog.get_logger()


@dataclass
class CleanupReport:
    """What a reset removed, and which best-effort steps failed."""

    controllers: list[str] = field(default_factory=list)
    web_modules: list[str] = field(default_factory=list)
    staged_files: list[Path] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


class CleanupResetter:
    """Strips linked experiments from the core and empties the staging directories."""

    def __init__(
        self,
        layout: CoreLayout,
        package_tool: PackageTool,
        marker: str = DEFAULT_MANAGED_LABEL,
    ) -> None:
        self.layout = layout
        self.package_tool = package_tool
        self.marker = marker

    def reset(self) -> CleanupReport:
        report = CleanupReport()
        self._reset_controllers(report)
        self._reset_web_modules(report)
        self._clear_staging(report)
        self._reset_services(report)
        logger.info(
            "cleanup_finished",
            controllers=len(report.controllers),
            web_modules=len(report.web_modules),
            staged_files=len(report.staged_files),
            services=len(report.services),
            skipped=len(report.skipped),
        )
        return report

    def _uninstall(self, cwd: Path, name: str, report: CleanupReport) -> bool:
        try:
            self.package_tool.uninstall(cwd, name)
            return True
        except ToolInvocationError as e:
            # npm exits 0 when uninstalling a package that is not installed
            logger.warning("uninstall_failed", module=name, cwd=str(cwd), error=str(e))
            report.skipped.append(f"uninstall {name}: {e}")
            return False

    def _reset_controllers(self, report: CleanupReport) -> None:
        path = self.layout.controllers_manifest
        for entry in load_controller_manifest(path):
            logger.info("cleaning_api_controller", mount_path=entry.mount_path, module=entry.name)
            if self._uninstall(self.layout.api_dir, entry.name, report):
                report.controllers.append(entry.name)
        save_controller_manifest(path, [])

    def _reset_web_modules(self, report: CleanupReport) -> None:
        path = self.layout.module_list
        current = load_module_list(path)
        for name in current.module_names:
            logger.info("cleaning_web_page", module=name)
            if self._uninstall(self.layout.frontend_dir, name, report):
                report.web_modules.append(name)
        save_module_list(path, ModuleList(preamble=current.preamble, trailer=current.trailer))

    def _clear_staging(self, report: CleanupReport) -> None:
        logger.info("cleaning_temporary_files")
        for staging in self.layout.staging_dirs:
            try:
                staging.mkdir(parents=True, exist_ok=True)
                candidates = sorted(staging.iterdir())
            except OSError as e:
                logger.warning("staging_dir_unavailable", path=str(staging), error=str(e))
                report.skipped.append(f"list {staging}: {e}")
                continue
            for candidate in candidates:
                if not candidate.is_file():
                    continue
                try:
                    candidate.unlink()
                    report.staged_files.append(candidate)
                except OSError as e:
                    logger.warning("staged_file_not_removed", path=str(candidate), error=str(e))
                    report.skipped.append(f"remove {candidate}: {e}")

    def _reset_services(self, report: CleanupReport) -> None:
        logger.info("cleaning_workers")
        path = self.layout.service_registry
        registry = ServiceRegistry.load(path, self.marker)
        report.services.extend(registry.remove_managed())
        registry.save(path)
