"""
Tests for RunContext mutation tracking.
"""

from __future__ import annotations

from pathlib import Path

from termsetup.core.engine.rollback import rollback
from termsetup.core.errors import BackupIOFailure
from termsetup.core.models.ledger import ConfigTarget, MutationKind


class TestTrack:
    """Tests for RunContext.track / track_path."""

    def test_existing_path_backed_up_once(self, make_ctx, home: Path):
        (home / ".zshrc").write_text("x")
        ctx = make_ctx()
        ctx.track(ConfigTarget.SHELL_RC)
        ctx.track(ConfigTarget.SHELL_RC)
        assert [e.kind for e in ctx.mutation_log] == [MutationKind.MODIFIED]
        assert len(ctx.ledger.records) == 1

    def test_missing_path_recorded_as_created(self, make_ctx, home: Path):
        ctx = make_ctx()
        ctx.track(ConfigTarget.SHELL_PROFILE)
        entry = ctx.mutation_log[0]
        assert entry.is_created
        assert entry.path == str(home / ".zprofile")
        assert ctx.ledger.directory is None

    def test_backup_failure_is_a_warning(self, make_ctx, home: Path, console, monkeypatch):
        (home / ".zshrc").write_text("x")
        ctx = make_ctx()

        def _boom(path, label):
            raise BackupIOFailure("disk full")

        monkeypatch.setattr(ctx.ledger, "backup", _boom)
        ctx.track(ConfigTarget.SHELL_RC)
        assert [(e.kind, e.identifier) for e in ctx.mutation_log] == [
            (MutationKind.MODIFIED, "zshrc.backup")
        ]
        assert any("disk full" in line for line in console)

    def test_unbacked_path_reported_by_rollback(self, make_ctx, home: Path, monkeypatch):
        rc = home / ".zshrc"
        rc.write_text("x")
        ctx = make_ctx()

        def _boom(path, label):
            raise BackupIOFailure("disk full")

        monkeypatch.setattr(ctx.ledger, "backup", _boom)
        ctx.track(ConfigTarget.SHELL_RC)
        rc.write_text("changed")

        outcome = rollback(ctx.mutation_log, ctx.ledger, ctx.report)
        assert outcome.restored == []
        assert any("No backup found for zshrc.backup" in err for err in outcome.errors)
        assert rc.read_text() == "changed"

    def test_unlabelled_existing_path_ignored(self, make_ctx, home: Path):
        (home / "thing").mkdir()
        ctx = make_ctx()
        ctx.track_path(home / "thing")
        assert ctx.mutation_log == []


class TestEnsureDir:
    """Tests for RunContext.ensure_dir."""

    def test_records_outermost_only(self, make_ctx, home: Path):
        ctx = make_ctx()
        ctx.ensure_dir(home / ".local" / "bin")
        assert (home / ".local" / "bin").is_dir()
        assert [e.path for e in ctx.mutation_log] == [str(home / ".local")]

    def test_existing_dir_not_recorded(self, make_ctx, home: Path):
        (home / ".local").mkdir()
        ctx = make_ctx()
        ctx.ensure_dir(home / ".local" / "bin")
        assert [e.path for e in ctx.mutation_log] == [str(home / ".local" / "bin")]


class TestWorkDir:
    """Tests for the temporary work directory."""

    def test_lazy_and_cleaned(self, make_ctx):
        ctx = make_ctx()
        work = ctx.work_dir()
        assert work.is_dir()
        assert ctx.work_dir() == work
        ctx.cleanup()
        assert not work.exists()
