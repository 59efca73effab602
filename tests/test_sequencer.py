"""
Tests for the step sequencer — ordering, severities, failure handling.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from termsetup.core.engine.sequencer import ROLLBACK_PROMPT, StepSequencer
from termsetup.core.errors import BackupIOFailure, PreflightFailure, StepFailure
from termsetup.core.models.ledger import ConfigTarget
from termsetup.core.models.step import SetupStep, StepResult, StepSeverity


def _no_preflight(ctx) -> None:
    pass


def _ok(name: str, calls: list[str]):
    def action(ctx) -> StepResult:
        calls.append(name)
        return StepResult.success(name)
    return action


def _write(name: str, target: ConfigTarget, content: str, calls: list[str]):
    def action(ctx) -> StepResult:
        calls.append(name)
        path = ctx.path(target)
        ctx.ensure_dir(path.parent)
        path.write_text(content)
        return StepResult.success(name)
    return action


def _raise(exit_code: int = 1):
    def action(ctx) -> StepResult:
        raise StepFailure("it broke", exit_code=exit_code)
    return action


class TestOrdering:
    """Tests for step execution order and results."""

    def test_runs_in_registration_order(self, make_ctx):
        calls: list[str] = []
        steps = [SetupStep(name=n, action=_ok(n, calls)) for n in ("a", "b", "c")]
        result = StepSequencer(steps, preflight=_no_preflight).run(make_ctx())
        assert calls == ["a", "b", "c"]
        assert result.ok
        assert result.exit_code == 0
        assert result.succeeded == 3

    def test_sentinel_skips_without_tracking(self, make_ctx, home: Path):
        (home / ".zshrc").write_text("mine")
        calls: list[str] = []
        step = SetupStep(
            name="shell",
            action=_ok("shell", calls),
            backup_targets=(ConfigTarget.SHELL_RC,),
            is_satisfied=lambda ctx: True,
        )
        ctx = make_ctx()
        result = StepSequencer([step], preflight=_no_preflight).run(ctx)
        assert calls == []
        assert result.step_results[0].status == "skipped"
        assert ctx.ledger.directory is None
        assert ctx.mutation_log == []

    def test_backup_targets_tracked_before_action(self, make_ctx, home: Path):
        (home / ".zshrc").write_text("mine")
        seen: list[bool] = []

        def action(ctx) -> StepResult:
            seen.append(ctx.ledger.has("zshrc.backup"))
            return StepResult.success("shell")

        step = SetupStep(name="shell", action=action, backup_targets=(ConfigTarget.SHELL_RC,))
        StepSequencer([step], preflight=_no_preflight).run(make_ctx())
        assert seen == [True]


class TestFailures:
    """Tests for fatal and advisory failures."""

    def test_advisory_failure_continues(self, make_ctx, console):
        calls: list[str] = []
        steps = [
            SetupStep(
                name="update",
                action=lambda ctx: StepResult.failure("update", "offline"),
                severity=StepSeverity.ADVISORY,
            ),
            SetupStep(name="next", action=_ok("next", calls)),
        ]
        result = StepSequencer(steps, preflight=_no_preflight).run(make_ctx())
        assert calls == ["next"]
        assert result.ok
        assert result.rollback_offered is False
        assert any("update failed, continuing anyway" in line for line in console)

    def test_fatal_failure_halts(self, make_ctx):
        calls: list[str] = []
        steps = [
            SetupStep(name="a", action=_ok("a", calls)),
            SetupStep(name="b", action=_raise(exit_code=3)),
            SetupStep(name="c", action=_ok("c", calls)),
        ]
        result = StepSequencer(steps, preflight=_no_preflight).run(make_ctx())
        assert calls == ["a"]
        assert result.status == "failed"
        assert result.failed_step == "b"
        assert result.exit_code == 3
        assert result.rollback_offered is True

    def test_oserror_becomes_failure(self, make_ctx):
        def action(ctx):
            raise PermissionError("read-only")

        result = StepSequencer(
            [SetupStep(name="a", action=action)], preflight=_no_preflight
        ).run(make_ctx())
        assert result.failed_step == "a"
        assert "read-only" in result.error
        assert result.exit_code == 1

    def test_setup_error_becomes_failure(self, make_ctx, home: Path):
        calls: list[str] = []

        def action(ctx):
            raise BackupIOFailure("backup area unwritable")

        steps = [
            SetupStep(
                name="shell",
                action=_write("shell", ConfigTarget.SHELL_RC, "new", calls),
                backup_targets=(ConfigTarget.SHELL_RC,),
            ),
            SetupStep(name="a", action=action),
            SetupStep(name="b", action=_ok("b", calls)),
        ]
        result = StepSequencer(steps, preflight=_no_preflight).run(
            make_ctx(), rollback_choice=True
        )
        assert calls == ["shell"]
        assert result.failed_step == "a"
        assert "backup area unwritable" in result.error
        assert result.exit_code == 1
        assert result.rollback_offered is True
        assert result.rolled_back is True
        assert not (home / ".zshrc").exists()

    def test_programming_error_propagates_after_cleanup(self, make_ctx):
        ctx = make_ctx()
        created: list[Path] = []

        def action(c) -> StepResult:
            created.append(c.work_dir())
            raise ValueError("bug")

        with pytest.raises(ValueError, match="bug"):
            StepSequencer([SetupStep(name="a", action=action)], preflight=_no_preflight).run(ctx)
        assert created and not created[0].exists()

    def test_declined_rollback_leaves_changes(self, make_ctx, home: Path, console):
        calls: list[str] = []
        steps = [
            SetupStep(
                name="shell",
                action=_write("shell", ConfigTarget.SHELL_RC, "new", calls),
                backup_targets=(ConfigTarget.SHELL_RC,),
            ),
            SetupStep(name="boom", action=_raise()),
        ]
        result = StepSequencer(steps, preflight=_no_preflight).run(
            make_ctx(), rollback_choice=False
        )
        assert (home / ".zshrc").read_text() == "new"
        assert result.rolled_back is False
        assert "[INFO] Rollback skipped. Manual cleanup may be required." in console

    def test_confirm_asked_when_no_choice_given(self, make_ctx, home: Path):
        prompts: list[str] = []

        def confirm(prompt: str) -> bool:
            prompts.append(prompt)
            return True

        steps = [
            SetupStep(
                name="shell",
                action=_write("shell", ConfigTarget.SHELL_RC, "new", []),
                backup_targets=(ConfigTarget.SHELL_RC,),
            ),
            SetupStep(name="boom", action=_raise()),
        ]
        result = StepSequencer(steps, preflight=_no_preflight).run(make_ctx(confirm=confirm))
        assert prompts == [ROLLBACK_PROMPT]
        assert result.rolled_back is True
        assert not (home / ".zshrc").exists()

    def test_error_report_carries_exit_code(self, make_ctx, console):
        StepSequencer(
            [SetupStep(name="b", action=_raise(exit_code=7))], preflight=_no_preflight
        ).run(make_ctx(), rollback_choice=False)
        assert any(
            line.startswith("[ERROR] Step 'b' failed with exit code 7") for line in console
        )


class TestPreflight:
    """Tests for preflight handling."""

    def test_preflight_failure_stops_before_steps(self, make_ctx):
        calls: list[str] = []

        def preflight(ctx) -> None:
            raise PreflightFailure("not macOS")

        result = StepSequencer(
            [SetupStep(name="a", action=_ok("a", calls))], preflight=preflight
        ).run(make_ctx())
        assert calls == []
        assert result.status == "preflight_failed"
        assert result.exit_code == 1
        assert result.rollback_offered is False


class TestCleanup:
    """Tests for temporary directory cleanup."""

    def test_work_dir_removed_after_failure(self, make_ctx):
        ctx = make_ctx()
        created: list[Path] = []

        def action(c) -> StepResult:
            created.append(c.work_dir())
            raise StepFailure("nope")

        StepSequencer([SetupStep(name="a", action=action)], preflight=_no_preflight).run(
            ctx, rollback_choice=False
        )
        assert created and not created[0].exists()
