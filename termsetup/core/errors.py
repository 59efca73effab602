"""
Error taxonomy for a setup run.

    PreflightFailure  — fatal, raised before anything is mutated
    StepFailure       — a step could not reach its goal; triggers the
                        rollback decision
    NetworkWarning    — non-fatal, logged and the run continues
    BackupIOFailure   — a backup or restore copy failed; logged, the
                        originating step still proceeds
    ConfigError       — setup.yml is unreadable or invalid
"""

from __future__ import annotations


class SetupError(Exception):
    """Base class for every error raised by termsetup."""


class PreflightFailure(SetupError):
    """The machine cannot run the setup (wrong OS, no disk space)."""


class StepFailure(SetupError):
    """A setup step failed.

    ``exit_code`` is propagated as the process exit code when the
    failure is not recovered.
    """

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code or 1


class NetworkWarning(SetupError):
    """A network-dependent operation failed but the run can continue."""


class BackupIOFailure(SetupError):
    """Copying into or out of the backup area failed."""


class ConfigError(SetupError):
    """Raised when setup configuration is invalid or unreadable."""
