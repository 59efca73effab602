"""
Shared test fixtures and configuration.

Nothing here touches the real home directory, spawns a process or
opens a socket: commands go to ``FakeRunner``, binaries are looked up
through ``FakeWhich`` and every path lives under ``tmp_path``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from termsetup.core.context import RunContext
from termsetup.core.engine.report import InstallationReport
from termsetup.core.models.setup_config import RetryPolicy, SetupConfig

OK: dict[str, Any] = {"ok": True, "returncode": 0, "stdout": "", "stderr": ""}

# what the Oh-My-Zsh installer writes when there is no .zshrc
OMZ_ZSHRC_TEMPLATE = 'export ZSH="$HOME/.oh-my-zsh"\nsource $ZSH/oh-my-zsh.sh\n'


def fail(returncode: int = 1, error: str = "boom") -> dict[str, Any]:
    return {"ok": False, "returncode": returncode, "error": error, "stdout": "", "stderr": ""}


class FakeRunner:
    """Records every command and answers from registered handlers.

    Handlers are matched on the command's basename followed by its
    leading arguments.  Unmatched commands succeed.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self._handlers: list[tuple[tuple[str, ...], Any]] = []

    def on(self, prefix: tuple[str, ...], result: dict | Callable[..., dict]) -> None:
        self._handlers.insert(0, (prefix, result))

    def __call__(self, cmd: list[str], **kwargs: Any) -> dict[str, Any]:
        cmd = list(cmd)
        self.calls.append(cmd)
        key = [Path(cmd[0]).name, *cmd[1:]]
        for prefix, result in self._handlers:
            if tuple(key[: len(prefix)]) == prefix:
                return result(cmd, **kwargs) if callable(result) else dict(result)
        return dict(OK)

    def commands(self, name: str) -> list[list[str]]:
        return [c for c in self.calls if Path(c[0]).name == name]


class FakeWhich:
    """``shutil.which`` over a fixed set of binaries."""

    def __init__(self, *names: str) -> None:
        self.binaries = {n: f"/fake/bin/{n}" for n in names}

    def __call__(self, name: str) -> str | None:
        return self.binaries.get(name)


class FakeWorld:
    """A runner that behaves like curl, git, sh and a stateful brew."""

    def __init__(self, runner: FakeRunner) -> None:
        self.installed: set[str] = set()
        runner.on(("curl",), self._curl)
        runner.on(("git", "clone"), self._clone)
        runner.on(("sh",), self._omz)
        runner.on(("brew",), self._brew)

    @staticmethod
    def _curl(cmd: list[str], **_: Any) -> dict:
        dest = Path(cmd[cmd.index("-o") + 1])
        dest.write_text("#!/bin/sh\n")
        return dict(OK)

    @staticmethod
    def _clone(cmd: list[str], **_: Any) -> dict:
        (Path(cmd[-1]) / ".git").mkdir(parents=True)
        return dict(OK)

    @staticmethod
    def _omz(cmd: list[str], env_overrides: dict | None = None, **_: Any) -> dict:
        framework = Path(env_overrides["ZSH"])
        framework.mkdir(parents=True)
        (framework / "oh-my-zsh.sh").write_text("# omz\n")
        # like the real installer, KEEP_ZSHRC only protects an existing file
        zshrc = framework.parent / ".zshrc"
        if not zshrc.exists():
            zshrc.write_text(OMZ_ZSHRC_TEMPLATE)
        return dict(OK)

    def _brew(self, cmd: list[str], **_: Any) -> dict:
        action, name = cmd[1], cmd[-1]
        if action == "list":
            return dict(OK) if name in self.installed else fail()
        if action == "install":
            self.installed.add(name)
        elif action == "uninstall":
            self.installed.discard(name)
        return dict(OK)


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """An empty, isolated home directory."""
    h = tmp_path / "home"
    h.mkdir()
    return h


@pytest.fixture
def config() -> SetupConfig:
    """Config with every host-dependent check disabled."""
    return SetupConfig(
        required_os="",
        network_probe_host="",
        min_free_mb=0,
        retry=RetryPolicy(attempts=3, delay_seconds=5),
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def which() -> FakeWhich:
    return FakeWhich("brew", "fastfetch", "kitty", "git", "curl")


@pytest.fixture
def console() -> list[str]:
    """Lines the installation report echoed to the terminal."""
    return []


@pytest.fixture
def make_ctx(home, config, runner, which, console):
    """Factory for a RunContext wired to the fakes."""

    def _make(rollback_answer: bool = False, **overrides: Any) -> RunContext:
        report = InstallationReport(home / config.log_file, echo=console.append, color=False)
        ctx = RunContext.create(
            home,
            overrides.pop("config", config),
            runner=overrides.pop("runner", runner),
            which=overrides.pop("which", which),
            report=report,
            sleep=overrides.pop("sleep", lambda _s: None),
            confirm=overrides.pop("confirm", lambda _prompt: rollback_answer),
            **overrides,
        )
        return ctx

    return _make


@pytest.fixture
def world(runner: FakeRunner) -> FakeWorld:
    return FakeWorld(runner)
