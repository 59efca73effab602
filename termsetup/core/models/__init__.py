"""
Domain models — Pydantic types for a setup run.

All models are re-exported here for convenient access:

    from termsetup.core.models import SetupStep, StepResult, BackupRecord
"""

from termsetup.core.models.ledger import (
    BackupManifest,
    BackupRecord,
    ConfigTarget,
    InstalledPackageRecord,
    MutationEntry,
    MutationKind,
    PackageKind,
    PathKind,
)
from termsetup.core.models.step import RunResult, SetupStep, StepResult, StepSeverity

__all__ = [
    # ledger.py
    "BackupManifest",
    "BackupRecord",
    "ConfigTarget",
    "InstalledPackageRecord",
    "MutationEntry",
    "MutationKind",
    "PackageKind",
    "PathKind",
    # step.py
    "RunResult",
    "SetupStep",
    "StepResult",
    "StepSeverity",
]
