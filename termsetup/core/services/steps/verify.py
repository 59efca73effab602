"""
verify-installation — post-install checks.

Each check reports ✓ or ✗.  The step fails when any check fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from termsetup.core.context import RunContext
from termsetup.core.models.ledger import ConfigTarget
from termsetup.core.models.step import StepResult
from termsetup.core.services.files import is_executable
from termsetup.core.services.steps.shell import shell_configured

KITTY_APP = Path("/Applications/kitty.app")


@dataclass(frozen=True)
class Check:
    passed: str
    failed: str
    probe: Callable[[RunContext], bool]


def _fastfetch_runs(ctx: RunContext) -> bool:
    binary = ctx.which("fastfetch")
    if not binary:
        return False
    return bool(ctx.runner([binary, "--version"], timeout=30)["ok"])


def _plugin(name: str) -> Callable[[RunContext], bool]:
    def probe(ctx: RunContext) -> bool:
        return (ctx.path(ConfigTarget.SHELL_FRAMEWORK) / "custom" / "plugins" / name).is_dir()
    return probe


def build_checks(ctx: RunContext) -> list[Check]:
    checks = [
        Check(
            "Oh-My-Zsh installed",
            "Oh-My-Zsh not found",
            lambda c: c.path(ConfigTarget.SHELL_FRAMEWORK).is_dir(),
        ),
    ]
    for plugin in ctx.config.plugins:
        checks.append(
            Check(
                f"{plugin.name} plugin installed",
                f"{plugin.name} plugin missing",
                _plugin(plugin.name),
            )
        )
    checks += [
        Check(
            "fastfetch command available",
            "fastfetch command not found",
            lambda c: c.which("fastfetch") is not None,
        ),
        Check(
            "fastfetch configuration exists",
            "fastfetch configuration missing",
            lambda c: (c.path(ConfigTarget.INFO_TOOL_CONFIG) / "config.jsonc").is_file(),
        ),
        Check(
            "Kitty terminal installed",
            "Kitty terminal not found",
            lambda c: KITTY_APP.is_dir() or c.which("kitty") is not None,
        ),
        Check(
            "Kitty configuration exists",
            "Kitty configuration missing",
            lambda c: (c.path(ConfigTarget.TERMINAL_CONFIG) / "kitty.conf").is_file(),
        ),
        Check("Shell configuration updated", "Shell configuration missing", shell_configured),
        Check(
            "Terminal functions script created",
            "Terminal functions script missing",
            lambda c: is_executable(c.path(ConfigTarget.TERMINAL_FUNCTIONS)),
        ),
        Check("fastfetch executes successfully", "fastfetch execution failed", _fastfetch_runs),
    ]
    return checks


def verify_installation(ctx: RunContext) -> StepResult:
    ctx.report.info("Running comprehensive tests...")
    checks = build_checks(ctx)

    failed: list[str] = []
    for check in checks:
        if check.probe(ctx):
            ctx.report.success(f"✓ {check.passed}")
        else:
            ctx.report.error(f"✗ {check.failed}")
            failed.append(check.failed)

    passed = len(checks) - len(failed)
    ctx.report.info(f"Tests completed: {passed}/{len(checks)} passed")

    if failed:
        ctx.report.warning("Some tests failed. Check the details above.")
        return StepResult.failure(
            "verify-installation",
            f"{len(failed)} verification check(s) failed: {', '.join(failed)}",
            metadata={"failed": failed},
        )

    ctx.report.success("All tests passed!")
    return StepResult.success("verify-installation", output=f"{passed}/{len(checks)}")
