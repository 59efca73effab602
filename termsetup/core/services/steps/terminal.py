"""
Terminal steps — Kitty configuration and the fastfetch configuration.
"""

from __future__ import annotations

from termsetup.core.context import RunContext
from termsetup.core.models.ledger import ConfigTarget
from termsetup.core.models.step import StepResult
from termsetup.core.services.files import has_content, write_file
from termsetup.data import load_template

KITTY_FILES = ("hyde.conf", "kitty.conf", "theme.conf")
FASTFETCH_FILE = "config.jsonc"


def terminal_configured(ctx: RunContext) -> bool:
    kitty_dir = ctx.path(ConfigTarget.TERMINAL_CONFIG)
    return all(has_content(kitty_dir / name, load_template(name)) for name in KITTY_FILES)


def configure_terminal(ctx: RunContext) -> StepResult:
    """Write hyde.conf, kitty.conf and theme.conf into ~/.config/kitty."""
    kitty_dir = ctx.path(ConfigTarget.TERMINAL_CONFIG)
    written = [
        name
        for name in KITTY_FILES
        if write_file(ctx, kitty_dir / name, load_template(name))
    ]
    ctx.report.success("Kitty configuration created with HyDE-style theme")
    return StepResult.success("configure-terminal", metadata={"written": written})


def fastfetch_configured(ctx: RunContext) -> bool:
    path = ctx.path(ConfigTarget.INFO_TOOL_CONFIG) / FASTFETCH_FILE
    return has_content(path, load_template(FASTFETCH_FILE))


def configure_fastfetch(ctx: RunContext) -> StepResult:
    path = ctx.path(ConfigTarget.INFO_TOOL_CONFIG) / FASTFETCH_FILE
    write_file(ctx, path, load_template(FASTFETCH_FILE))
    ctx.report.success("Fastfetch configuration created")
    return StepResult.success("configure-fastfetch", output=str(path))
