"""
Step Sequencer — the central orchestration loop.

Flow:
    preflight → step 1..k (in registration order) → success report
                     ↘ fatal failure → rollback decision → report

Per step:
    sentinel satisfied?  → skipped, nothing touched
    track backup targets → backups / created entries recorded
    run action           → StepResult (SetupError / OSError captured)

Any other exception is a bug: it propagates once the temp dir is gone.

A failed FATAL step halts the run at once and goes to the single
failure handler.  A failed ADVISORY step is reported and the run
continues.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable, Sequence

from termsetup.core.context import RunContext
from termsetup.core.engine.rollback import rollback
from termsetup.core.errors import PreflightFailure, SetupError, StepFailure
from termsetup.core.models.step import RunResult, SetupStep, StepResult
from termsetup.core.services.preflight import run_preflight

logger = logging.getLogger(__name__)

ROLLBACK_PROMPT = "Setup failed. Would you like to rollback changes?"


class StepSequencer:
    """Runs a fixed, ordered list of setup steps against a RunContext.

    Args:
        steps: Steps in execution order.
        preflight: Preflight callable; raises PreflightFailure to abort.
    """

    def __init__(
        self,
        steps: Sequence[SetupStep],
        preflight: Callable[[RunContext], None] = run_preflight,
    ):
        self._steps = tuple(steps)
        self._preflight = preflight

    @property
    def steps(self) -> tuple[SetupStep, ...]:
        return self._steps

    def run(self, ctx: RunContext, rollback_choice: bool | None = None) -> RunResult:
        """Execute the run.

        Args:
            ctx: The run context (owned by this run).
            rollback_choice: Pre-answered rollback decision; None asks
                ``ctx.confirm`` at failure time.

        Returns:
            RunResult describing every step and the rollback decision.
        """
        report = ctx.report
        result = RunResult(log_file=str(ctx.log_file))

        report.info(f"Setup started at {datetime.now():%Y-%m-%d %H:%M:%S}")
        report.info(f"Installation log: {ctx.log_file}")
        report.info(f"Backup directory: {ctx.backup_dir}")

        try:
            try:
                self._preflight(ctx)
            except PreflightFailure as e:
                report.error(str(e))
                result.status = "preflight_failed"
                result.exit_code = 1
                result.error = str(e)
                return result

            for step in self._steps:
                step_result = self._run_step(step, ctx)
                result.step_results.append(step_result)

                if not step_result.failed:
                    continue

                if not step.fatal:
                    report.warning(
                        f"{step.name} failed, continuing anyway: {step_result.error}"
                    )
                    continue

                self._handle_failure(ctx, step, step_result, result, rollback_choice)
                return result

            report.success("Setup completed successfully!")
            report.info(f"Backup directory: {self._backup_location(ctx)}")
            report.info(f"Installation log: {ctx.log_file}")
            result.backup_dir = _dir_str(ctx)
            return result
        finally:
            ctx.cleanup()

    # ── Internals ───────────────────────────────────────────────

    def _run_step(self, step: SetupStep, ctx: RunContext) -> StepResult:
        start = time.monotonic()

        if step.is_satisfied is not None and step.is_satisfied(ctx):
            ctx.report.info(f"{step.description or step.name}: already done, skipping")
            return StepResult.skip(step.name, reason="already satisfied")

        ctx.report.info(f"{step.description or step.name}...")
        for target in step.backup_targets:
            ctx.track(target)

        try:
            step_result = step.action(ctx)
        except StepFailure as e:
            step_result = StepResult.failure(step.name, str(e), exit_code=e.exit_code)
        except SetupError as e:
            step_result = StepResult.failure(step.name, str(e))
        except OSError as e:
            logger.debug("Step %s raised", step.name, exc_info=True)
            step_result = StepResult.failure(step.name, f"{type(e).__name__}: {e}")

        step_result.duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "%s %s → %s (%dms)",
            "✓" if step_result.ok else "✗" if step_result.failed else "⊘",
            step.name,
            step_result.status,
            step_result.duration_ms,
        )
        return step_result

    def _handle_failure(
        self,
        ctx: RunContext,
        step: SetupStep,
        step_result: StepResult,
        result: RunResult,
        rollback_choice: bool | None,
    ) -> None:
        """The single failure handler: report, offer rollback, point at backups."""
        report = ctx.report
        report.error(
            f"Step '{step.name}' failed with exit code {step_result.exit_code}: "
            f"{step_result.error}"
        )

        result.status = "failed"
        result.exit_code = step_result.exit_code or 1
        result.failed_step = step.name
        result.error = step_result.error
        result.rollback_offered = True

        if rollback_choice is None:
            do_rollback = ctx.confirm(ROLLBACK_PROMPT)
        else:
            do_rollback = rollback_choice

        if do_rollback:
            outcome = rollback(
                ctx.mutation_log,
                ctx.ledger,
                report,
                installed_packages=ctx.installed_packages,
                homebrew=ctx.homebrew,
            )
            result.rolled_back = True
            result.rollback_errors = outcome.errors
        else:
            report.info("Rollback skipped. Manual cleanup may be required.")

        report.info(f"Backup directory: {self._backup_location(ctx)}")
        report.info(f"Installation log: {ctx.log_file}")
        result.backup_dir = _dir_str(ctx)

    @staticmethod
    def _backup_location(ctx: RunContext) -> str:
        if ctx.ledger.directory is None:
            return "(nothing needed backing up)"
        return str(ctx.ledger.directory)


def _dir_str(ctx: RunContext) -> str | None:
    return str(ctx.ledger.directory) if ctx.ledger.directory else None
