"""Core modules for labkit - errors and naming."""

from labkit.core.errors import (
    BuildFailure,
    DescriptorLoadFailure,
    ExitCode,
    LabkitError,
    ManifestFailure,
    PackageFailure,
    PackagingError,
    PreparationFailure,
    RebuildFailure,
    RegistryReadFailure,
    RegistryWriteFailure,
    RelocationFailure,
    RestoreFailure,
    SetupFailure,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "LabkitError",
    "PackagingError",
    "SetupFailure",
    "ManifestFailure",
    "BuildFailure",
    "PackageFailure",
    "RelocationFailure",
    "RestoreFailure",
    "DescriptorLoadFailure",
    "RegistryReadFailure",
    "RegistryWriteFailure",
    "RebuildFailure",
    "PreparationFailure",
    "main_with_error_handling",
    "format_error_message",
]
