"""
CLI commands for preparing experiments and resetting the core.
"""

from pathlib import Path
from typing import Optional

from labkit.cli.ux import console, error, header, print_table, success, warning
from labkit.components.tools import PackageTool, ToolRunner
from labkit.config import CoreLayout, Settings, get_settings
from labkit.core.errors import LabkitError, format_error_message, main_with_error_handling
from labkit.orchestration import RunResult, prepare
from labkit.registries import CleanupReport, CleanupResetter


def print_prep_summary(result: RunResult) -> None:
    """Print the experiments linked by a run."""
    rows = []
    for index in sorted(result.experiments):
        experiment = result.experiments[index]
        rows.append(
            [
                experiment.short_name,
                ", ".join(f"{c.mount_path} ({c.name})" for c in experiment.controllers) or "-",
                experiment.web_module.module,
                experiment.service.name,
            ]
        )
    if rows:
        print_table("Linked experiments", ["Experiment", "Controllers", "Web page", "Worker"], rows)
    else:
        warning("No experiments found")

    duration = f" in {result.duration_seconds:.1f}s" if result.duration_seconds > 0 else ""
    success(f"Prepped {len(rows)} experiment(s), {result.total_components} components{duration}")


def print_cleanup_summary(report: CleanupReport) -> None:
    """Print what a reset removed."""
    console.print(
        f"  [muted]•[/muted] {len(report.controllers)} API controllers, "
        f"{len(report.web_modules)} web pages, {len(report.services)} workers, "
        f"{len(report.staged_files)} staged files removed"
    )
    for skipped in report.skipped:
        warning(f"Skipped: {skipped}")


@main_with_error_handling()
def prep_command(
    experiments_dir: str,
    core_dir: str,
    settings: Optional[Settings] = None,
) -> int:
    """
    Prepare every experiment under experiments_dir and rebuild the core.

    Returns:
        Exit code (0 for success)
    """
    header(f"Prepping experiments from {experiments_dir}")
    try:
        result = prepare(Path(experiments_dir), Path(core_dir), settings=settings)
    except LabkitError as e:
        error(format_error_message(e))
        raise
    print_prep_summary(result)
    return 0


@main_with_error_handling()
def clean_command(core_dir: str, settings: Optional[Settings] = None) -> int:
    """
    Remove all linked experiments from the core.

    Returns:
        Exit code (0 for success)
    """
    settings = settings or get_settings()
    layout = CoreLayout.from_settings(core_dir, settings)
    package_tool = PackageTool(settings.package_tool, ToolRunner(timeout=settings.tool_timeout))
    header(f"Cleaning {core_dir}")
    try:
        report = CleanupResetter(layout, package_tool, settings.managed_label).reset()
    except LabkitError as e:
        error(format_error_message(e))
        raise
    print_cleanup_summary(report)
    success("Core reset to baseline")
    return 0
