"""
Step and StepResult models — the sequencer's execution contract.

A SetupStep is registered once at program start and never changes
during a run. Its action returns a StepResult; failures are captured
in the result (or raised as StepFailure, which the sequencer converts).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Literal

from pydantic import BaseModel, Field

from termsetup.core.models.ledger import ConfigTarget

if TYPE_CHECKING:
    from termsetup.core.context import RunContext


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StepSeverity(str, Enum):
    """Whether a failed step halts the run."""

    FATAL = "fatal"
    ADVISORY = "advisory"


@dataclass(frozen=True)
class SetupStep:
    """One unit of setup work.

    Attributes:
        name: Stable identifier (used by ``--only`` / ``--skip``).
        action: Called with the RunContext; returns a StepResult.
        description: One-line human description.
        backup_targets: Paths tracked (backed up or recorded as created)
            right before the action runs, in order.
        severity: FATAL halts the run on failure, ADVISORY only warns.
        is_satisfied: Sentinel check; when it returns True the step is
            skipped without touching anything.
    """

    name: str
    action: Callable[[RunContext], StepResult]
    description: str = ""
    backup_targets: tuple[ConfigTarget, ...] = ()
    severity: StepSeverity = StepSeverity.FATAL
    is_satisfied: Callable[[RunContext], bool] | None = None

    @property
    def fatal(self) -> bool:
        return self.severity == StepSeverity.FATAL


class StepResult(BaseModel):
    """Outcome of one step."""

    step: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    exit_code: int = 0

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, step: str, output: str = "", **kwargs: Any) -> StepResult:
        """Create a success result."""
        return cls(step=step, status="ok", output=output, **kwargs)

    @classmethod
    def skip(cls, step: str, reason: str = "", **kwargs: Any) -> StepResult:
        """Create a skip result."""
        return cls(step=step, status="skipped", output=reason, **kwargs)

    @classmethod
    def failure(
        cls,
        step: str,
        error: str,
        exit_code: int = 1,
        **kwargs: Any,
    ) -> StepResult:
        """Create a failure result."""
        return cls(
            step=step,
            status="failed",
            error=error,
            exit_code=exit_code or 1,
            **kwargs,
        )


class RunResult(BaseModel):
    """Result of a whole setup run."""

    status: Literal["ok", "failed", "preflight_failed"] = "ok"
    exit_code: int = 0
    step_results: list[StepResult] = Field(default_factory=list)
    failed_step: str | None = None
    error: str | None = None

    rollback_offered: bool = False
    rolled_back: bool = False
    rollback_errors: list[str] = Field(default_factory=list)

    backup_dir: str | None = None
    log_file: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.step_results if r.ok)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.step_results if r.status == "skipped")

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["succeeded"] = self.succeeded
        data["skipped"] = self.skipped
        return data
