"""
Unified error handling for labkit.

Every failure raised while preparing experiments is a ``LabkitError``
subclass carrying an exit code and a ``details`` mapping. The preparer
tags errors with the experiment they came from, so a single message
identifies the failing plugin, the component, and the underlying cause.

Exit Codes:
- 0: Success
- 10: Descriptor error (malformed experiment config)
- 11: Tool error (build, pack, image build or rebuild failed)
- 12: Registry error (shared registry unreadable or unwritable)
- 13: Filesystem error (manifest backup, rewrite, move or restore failed)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    DESCRIPTOR_ERROR = 10
    TOOL_ERROR = 11
    REGISTRY_ERROR = 12
    FILESYSTEM_ERROR = 13
    UNKNOWN_ERROR = 127


class LabkitError(Exception):
    """Base exception for labkit errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def tag(self, **details: Any) -> "LabkitError":
        """Attach identifying context, keeping values already present."""
        for key, value in details.items():
            self.details.setdefault(key, value)
        return self

    def __str__(self) -> str:
        return format_error_message(self)


class PackagingError(LabkitError):
    """Raised by the component packager."""

    exit_code = ExitCode.FILESYSTEM_ERROR


class SetupFailure(PackagingError):
    """The component manifest could not be backed up."""


class ManifestFailure(PackagingError):
    """The component manifest could not be parsed or rewritten."""


class BuildFailure(PackagingError):
    """The external build step (or the worker image build) failed."""

    exit_code = ExitCode.TOOL_ERROR


class PackageFailure(PackagingError):
    """The external pack step failed."""

    exit_code = ExitCode.TOOL_ERROR


class RelocationFailure(PackagingError):
    """The packed artifact could not be moved into the staging directory."""


class RestoreFailure(PackagingError):
    """The original component manifest could not be put back."""


class DescriptorLoadFailure(LabkitError):
    """An experiment descriptor is missing or malformed."""

    exit_code = ExitCode.DESCRIPTOR_ERROR


class RegistryReadFailure(LabkitError):
    """A shared registry document could not be read or parsed."""

    exit_code = ExitCode.REGISTRY_ERROR


class RegistryWriteFailure(LabkitError):
    """A shared registry document could not be written."""

    exit_code = ExitCode.REGISTRY_ERROR


class RebuildFailure(LabkitError):
    """Installing into or rebuilding a core component failed."""

    exit_code = ExitCode.TOOL_ERROR


class PreparationFailure(LabkitError):
    """Unexpected error while preparing an experiment."""

    show_traceback = True


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI main functions that provides unified error handling.

    Catches exceptions and converts them to appropriate exit codes with
    consistent error reporting.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - LabkitError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except LabkitError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=int(e.exit_code),
                        **{k: str(v) for k, v in e.details.items()},
                    )
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130  # Standard exit code for SIGINT
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=int(ExitCode.UNKNOWN_ERROR),
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: LabkitError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
