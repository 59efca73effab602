"""
Homebrew steps — install Homebrew itself, update it, install packages.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from termsetup.adapters.download import download
from termsetup.core.context import RunContext
from termsetup.core.errors import StepFailure
from termsetup.core.models.ledger import ConfigTarget
from termsetup.core.models.step import StepResult
from termsetup.core.reliability.retry import retry_command
from termsetup.core.services.files import append_block

logger = logging.getLogger(__name__)


def run_installer_script(
    ctx: RunContext,
    url: str,
    script_name: str,
    interpreter: list[str],
    env: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Download an installer script into the work dir and run it once."""
    script = ctx.work_dir() / script_name
    fetched = download(
        url,
        script,
        connect_timeout=ctx.config.connect_timeout,
        runner=ctx.runner,
    )
    if not fetched["ok"]:
        ctx.report.error(f"Failed to download {script_name}: {fetched.get('error', 'unknown')}")
        return fetched
    return ctx.runner([*interpreter, str(script)], env_overrides=env, timeout=1800)


def shellenv_line(brew_bin: Path) -> str:
    return f'eval "$({brew_bin} shellenv)"'


# ── install-homebrew ────────────────────────────────────────────


def homebrew_installed(ctx: RunContext) -> bool:
    return ctx.homebrew.available()


def install_homebrew(ctx: RunContext) -> StepResult:
    """Install Homebrew and put its shellenv in ~/.zprofile."""
    retry = ctx.config.retry
    retry_command(
        "Homebrew",
        lambda: run_installer_script(
            ctx,
            ctx.config.homebrew_install_url,
            "install_homebrew.sh",
            ["/bin/bash"],
            env={"NONINTERACTIVE": "1"},
        ),
        ctx.report,
        attempts=retry.attempts,
        delay=retry.delay_seconds,
        sleep=ctx.sleep,
    )

    brew_bin = ctx.homebrew.installed_prefix_binary()
    if brew_bin is not None:
        profile = ctx.path(ConfigTarget.SHELL_PROFILE)
        line = shellenv_line(brew_bin)
        if append_block(ctx, profile, line, line):
            ctx.report.info(f"Added Homebrew to PATH in {profile}")

    if not ctx.homebrew.available():
        raise StepFailure("Homebrew installation verification failed")

    ctx.report.success("Homebrew installed successfully")
    return StepResult.success("install-homebrew", output=str(brew_bin or ""))


# ── update-homebrew (advisory) ──────────────────────────────────


def update_homebrew(ctx: RunContext) -> StepResult:
    result = ctx.homebrew.update()
    if not result["ok"]:
        return StepResult.failure(
            "update-homebrew",
            f"Homebrew update failed: {result.get('error', 'unknown')}",
            exit_code=int(result.get("returncode") or 1),
        )
    ctx.report.success("Homebrew updated")
    return StepResult.success("update-homebrew")


# ── install-packages ────────────────────────────────────────────


def packages_installed(ctx: RunContext) -> bool:
    return all(ctx.homebrew.is_installed(p.name, p.kind) for p in ctx.config.packages)


def install_packages(ctx: RunContext) -> StepResult:
    """Install every configured package that is not already installed."""
    retry = ctx.config.retry
    installed: list[str] = []

    for spec in ctx.config.packages:
        if ctx.homebrew.is_installed(spec.name, spec.kind):
            ctx.report.info(f"{spec.name} is already installed")
            continue

        retry_command(
            spec.name,
            lambda spec=spec: ctx.homebrew.install(spec.name, spec.kind),
            ctx.report,
            attempts=retry.attempts,
            delay=retry.delay_seconds,
            sleep=ctx.sleep,
        )
        ctx.record_package(spec.name, spec.kind)
        installed.append(spec.name)
        ctx.report.success(f"{spec.name} installed successfully")

    ctx.report.success("All packages installed successfully")
    return StepResult.success(
        "install-packages",
        output=", ".join(installed),
        metadata={"installed": installed},
    )

