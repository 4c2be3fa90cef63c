"""
Patchrebase - Carry a kernel patch set forward to the next upstream release.

This package provides tools for:
- Discovering the next upstream release tag after the newest local patch set
- Probing each patch against the new release (clean, fuzzy or failed)
- Regenerating patches that only applied with fuzzy matching
- Reporting the outcome to CI as key=value outputs
"""

__version__ = "1.0.0"

from patchrebase.config import RebaseConfig
from patchrebase.models import (
    ApplicationResult,
    MigrationReport,
    PatchFile,
    PatchSet,
    PatchStatus,
    RegeneratedPatch,
    UpdateMode,
    VersionTag,
)

__all__ = [
    "__version__",
    "RebaseConfig",
    "ApplicationResult",
    "MigrationReport",
    "PatchFile",
    "PatchSet",
    "PatchStatus",
    "RegeneratedPatch",
    "UpdateMode",
    "VersionTag",
]
