"""
Shell steps — Oh-My-Zsh, its plugins, terminal helper functions, .zshrc.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

from termsetup.adapters.download import git_clone
from termsetup.core.context import RunContext
from termsetup.core.errors import NetworkWarning, StepFailure
from termsetup.core.models.ledger import ConfigTarget
from termsetup.core.models.step import StepResult
from termsetup.core.reliability.retry import retry_command
from termsetup.core.services.files import append_block, contains, has_content, is_executable, write_file
from termsetup.core.services.steps.homebrew import run_installer_script
from termsetup.data import load_template

logger = logging.getLogger(__name__)

SHELL_MARKER = "# Fastfetch + Kitty Terminal Setup (HyDE-style)"
FUNCTIONS_TEMPLATE = "terminal-functions.sh"


# ── install-oh-my-zsh ───────────────────────────────────────────


def oh_my_zsh_installed(ctx: RunContext) -> bool:
    return ctx.path(ConfigTarget.SHELL_FRAMEWORK).is_dir()


def install_oh_my_zsh(ctx: RunContext) -> StepResult:
    """Run the Oh-My-Zsh installer unattended.

    An existing .zshrc is kept.  When there is none the installer writes
    its own template, so the step tracks .zshrc before it runs.
    """
    framework = ctx.path(ConfigTarget.SHELL_FRAMEWORK)

    def _attempt():
        # the sentinel guarantees the directory did not exist before this step
        if framework.exists():
            shutil.rmtree(framework)
        return run_installer_script(
            ctx,
            ctx.config.oh_my_zsh_install_url,
            "install_omz.sh",
            ["sh"],
            env={
                "RUNZSH": "no",
                "CHSH": "no",
                "KEEP_ZSHRC": "yes",
                "ZSH": str(framework),
            },
        )

    retry = ctx.config.retry
    retry_command(
        "Oh-My-Zsh",
        _attempt,
        ctx.report,
        attempts=retry.attempts,
        delay=retry.delay_seconds,
        sleep=ctx.sleep,
    )

    if not oh_my_zsh_installed(ctx):
        raise StepFailure("Oh-My-Zsh installation failed")

    ctx.report.success("Oh-My-Zsh installed successfully")
    return StepResult.success("install-oh-my-zsh")


# ── install-zsh-plugins ─────────────────────────────────────────


def _plugins_dir(ctx: RunContext) -> Path:
    return ctx.path(ConfigTarget.SHELL_FRAMEWORK) / "custom" / "plugins"


def plugins_installed(ctx: RunContext) -> bool:
    plugins_dir = _plugins_dir(ctx)
    return all((plugins_dir / p.name).is_dir() for p in ctx.config.plugins)


def install_plugins(ctx: RunContext) -> StepResult:
    """Clone every missing plugin.  A failed clone is only a warning."""
    plugins_dir = _plugins_dir(ctx)
    ctx.ensure_dir(plugins_dir)

    cloned: list[str] = []
    failed: list[str] = []
    for plugin in ctx.config.plugins:
        dest = plugins_dir / plugin.name
        if dest.is_dir():
            ctx.report.info(f"{plugin.name} already installed")
            continue

        ctx.report.info(f"Installing {plugin.name}...")
        ctx.track_path(dest)
        result = git_clone(plugin.url, dest, runner=ctx.runner)
        if result["ok"]:
            cloned.append(plugin.name)
            continue

        warning = NetworkWarning(
            f"Failed to install {plugin.name}: {result.get('error', 'unknown')}"
        )
        ctx.report.warning(str(warning))
        failed.append(plugin.name)

    ctx.report.success("Oh-My-Zsh plugins installation completed")
    return StepResult.success(
        "install-zsh-plugins",
        output=", ".join(cloned),
        metadata={"cloned": cloned, "failed": failed},
    )


# ── install-terminal-functions ──────────────────────────────────


def terminal_functions_installed(ctx: RunContext) -> bool:
    path = ctx.path(ConfigTarget.TERMINAL_FUNCTIONS)
    return has_content(path, load_template(FUNCTIONS_TEMPLATE)) and is_executable(path)


def install_terminal_functions(ctx: RunContext) -> StepResult:
    path = ctx.path(ConfigTarget.TERMINAL_FUNCTIONS)
    write_file(ctx, path, load_template(FUNCTIONS_TEMPLATE), mode=0o755)
    ctx.report.success("Terminal helper functions created")
    return StepResult.success("install-terminal-functions", output=str(path))


# ── configure-shell ─────────────────────────────────────────────


def shell_configured(ctx: RunContext) -> bool:
    return contains(ctx.path(ConfigTarget.SHELL_RC), SHELL_MARKER)


def render_shell_block(now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime("%a %b %d %H:%M:%S %Y")
    return load_template("zshrc-block.zsh").replace("@GENERATED_AT@", stamp)


def configure_shell(ctx: RunContext) -> StepResult:
    """Append the marker block to ~/.zshrc (once)."""
    rc = ctx.path(ConfigTarget.SHELL_RC)
    if not append_block(ctx, rc, SHELL_MARKER, render_shell_block()):
        ctx.report.warning("Configuration already exists in .zshrc, skipping shell configuration")
        return StepResult.skip("configure-shell", reason="marker block present")

    ctx.report.success("Shell configuration updated")
    return StepResult.success("configure-shell", output=str(rc))
