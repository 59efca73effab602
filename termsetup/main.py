"""
termsetup — CLI entrypoint.

Usage:
    python -m termsetup.main --help
    python -m termsetup.main run
    python -m termsetup.main restore --yes
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from termsetup import __version__
from termsetup.core.observability.logging_config import (
    DEBUG_LOG_ENV,
    DEBUG_LOG_LEVEL_ENV,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="termsetup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to setup.yml (default: auto-detect).",
)
@click.option(
    "--home",
    "home",
    type=click.Path(file_okay=False),
    envvar="TERMSETUP_HOME",
    default=None,
    help="Home directory to set up (default: your home).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    home: str | None,
) -> None:
    """termsetup — Kitty + fastfetch + Oh-My-Zsh setup with rollback."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["home"] = Path(home).expanduser() if home else Path.home()

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(DEBUG_LOG_ENV),
        log_file_level=os.environ.get(DEBUG_LOG_LEVEL_ENV),
        quiet_third_party=not debug,
    )


def _load_config(ctx: click.Context):
    """Load setup.yml or exit 1 with the error."""
    from termsetup.core.config.loader import load_config
    from termsetup.core.errors import ConfigError

    try:
        return load_config(ctx.obj.get("config_path"), home=ctx.obj["home"])
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


# ── run ─────────────────────────────────────────────────────────


@cli.command()
@click.option("--only", "only", multiple=True, help="Run only this step (repeatable).")
@click.option("--skip", "skip", multiple=True, help="Skip this step (repeatable).")
@click.option(
    "--rollback/--no-rollback",
    "rollback_choice",
    default=None,
    help="Answer the rollback question in advance.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(
    ctx: click.Context,
    only: tuple[str, ...],
    skip: tuple[str, ...],
    rollback_choice: bool | None,
    as_json: bool,
) -> None:
    """Run the setup.

    Examples:

        termsetup run

        termsetup run --only configure-shell --only verify-installation

        termsetup run --skip update-homebrew --no-rollback
    """
    from termsetup.core.context import RunContext
    from termsetup.core.engine.report import InstallationReport
    from termsetup.core.engine.sequencer import StepSequencer
    from termsetup.core.errors import ConfigError
    from termsetup.core.services.steps import select_steps

    config = _load_config(ctx)
    home: Path = ctx.obj["home"]

    try:
        steps = select_steps(only=only, skip=skip)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(2)

    if as_json:
        # stdout carries the JSON document only; no prompt in this mode
        report = InstallationReport(
            home / config.log_file,
            echo=lambda line: click.echo(line, err=True),
        )
        if rollback_choice is None:
            rollback_choice = False
    else:
        report = InstallationReport(home / config.log_file)

    run_ctx = RunContext.create(home, config, report=report)
    result = StepSequencer(steps).run(run_ctx, rollback_choice=rollback_choice)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if not ctx.obj.get("quiet"):
        click.echo()
        for step_result in result.step_results:
            if step_result.ok:
                click.secho(f"   ✓ {step_result.step}", fg="green", nl=False)
                click.echo(f" ({step_result.duration_ms}ms)")
            elif step_result.failed:
                click.secho(f"   ✗ {step_result.step}", fg="red", nl=False)
                click.echo(f" ({step_result.duration_ms}ms)")
                if step_result.error:
                    for line in step_result.error.split("\n")[:5]:
                        click.echo(f"     │ {line}")
            else:
                click.secho(f"   ⊘ {step_result.step} ", fg="yellow", nl=False)
                click.echo(f"({step_result.output})")

        click.echo()
        status_color = {"ok": "green", "failed": "red"}.get(result.status, "red")
        click.secho(
            f"   Result: {result.succeeded}/{len(steps)} succeeded, "
            f"{result.skipped} skipped",
            fg=status_color,
            bold=True,
        )
        click.echo()

    if result.exit_code:
        sys.exit(result.exit_code)


# ── steps ───────────────────────────────────────────────────────


@cli.command("steps")
def list_steps() -> None:
    """List the setup steps in execution order."""
    from termsetup.core.services.steps import DEFAULT_STEPS

    click.secho("\n📋 Setup steps", fg="cyan", bold=True)
    for i, step in enumerate(DEFAULT_STEPS, 1):
        severity = "" if step.fatal else " (advisory)"
        click.echo(f"   {i:2d}. {step.name}{severity}")
        if step.description:
            click.echo(f"       {step.description}")
    click.echo()


# ── backups / restore ───────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def backups(ctx: click.Context, as_json: bool) -> None:
    """List backup directories, newest first."""
    from termsetup.core.use_cases.backups import list_backups

    config = _load_config(ctx)
    areas = list_backups(ctx.obj["home"], config.backup_prefix)

    if as_json:
        click.echo(json.dumps([a.to_dict() for a in areas], indent=2))
        return

    if not areas:
        click.secho("No backups found.", fg="yellow")
        return

    click.secho(f"\n💾 Backups ({len(areas)})", fg="cyan", bold=True)
    for area in areas:
        click.secho(f"   {area.path}", bold=True)
        if area.error or area.manifest is None:
            click.secho(f"     ⚠️  {area.error or 'manifest unreadable'}", fg="yellow")
            continue
        for record in area.manifest.records:
            click.echo(f"     • {record.label}  → {record.original_path}")
    click.echo()


@cli.command()
@click.argument(
    "backup_dir",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def restore(ctx: click.Context, backup_dir: Path | None, yes: bool) -> None:
    """Restore the files saved in a backup directory (default: the newest)."""
    from termsetup.core.engine.ledger import list_backup_dirs
    from termsetup.core.use_cases.backups import restore_backup

    config = _load_config(ctx)
    home: Path = ctx.obj["home"]

    if backup_dir is None:
        candidates = list_backup_dirs(home, config.backup_prefix)
        if not candidates:
            click.secho(f"❌ No backup directories found in {home}", fg="red")
            sys.exit(1)
        backup_dir = candidates[0]

    if not yes:
        click.confirm(f"Restore files from {backup_dir}?", default=False, abort=True)

    result = restore_backup(home, config.backup_prefix, backup_dir)

    for path in result.restored:
        click.secho(f"   ✓ {path}", fg="green")
    for err in result.errors:
        click.secho(f"   ✗ {err}", fg="red")

    if not result.ok:
        sys.exit(1)
    click.secho(f"✅ Restored {len(result.restored)} item(s)", fg="green", bold=True)


# ── log ─────────────────────────────────────────────────────────


@cli.command()
@click.option("-n", "lines", default=50, show_default=True, help="Number of lines.")
@click.pass_context
def log(ctx: click.Context, lines: int) -> None:
    """Show the end of the installation log."""
    from termsetup.core.engine.report import tail_log

    config = _load_config(ctx)
    path = ctx.obj["home"] / config.log_file
    content = tail_log(path, lines)
    if not content:
        click.secho(f"No installation log at {path}", fg="yellow")
        return
    for line in content:
        click.echo(line)


if __name__ == "__main__":
    cli()
