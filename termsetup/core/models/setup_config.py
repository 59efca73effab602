"""
SetupConfig — the validated contents of setup.yml.

Every field has a default matching the stock macOS setup, so an
absent setup.yml yields a fully usable configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from termsetup.core.models.ledger import PackageKind


class PackageSpec(BaseModel):
    """A Homebrew package to install."""

    name: str
    kind: PackageKind = PackageKind.FORMULA


class PluginSpec(BaseModel):
    """An Oh-My-Zsh plugin cloned from a git URL."""

    name: str
    url: str


class RetryPolicy(BaseModel):
    """Bounded retry for network-dependent installers (no backoff)."""

    attempts: int = 3
    delay_seconds: float = 5.0

    @field_validator("attempts")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("retry.attempts must be at least 1")
        return v

    @field_validator("delay_seconds")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("retry.delay_seconds must not be negative")
        return v


def _default_packages() -> list[PackageSpec]:
    return [
        PackageSpec(name="fastfetch", kind=PackageKind.FORMULA),
        PackageSpec(name="kitty", kind=PackageKind.CASK),
        PackageSpec(name="font-caskaydia-cove-nerd-font", kind=PackageKind.CASK),
    ]


def _default_plugins() -> list[PluginSpec]:
    return [
        PluginSpec(
            name="zsh-autosuggestions",
            url="https://github.com/zsh-users/zsh-autosuggestions",
        ),
        PluginSpec(
            name="zsh-syntax-highlighting",
            url="https://github.com/zsh-users/zsh-syntax-highlighting",
        ),
    ]


class SetupConfig(BaseModel):
    """Root setup configuration."""

    # Persisted state, relative to the home directory
    backup_prefix: str = ".fastfetch-setup-backup-"
    log_file: str = ".fastfetch-setup.log"

    # Preflight
    required_os: str = "Darwin"       # "" disables the check
    min_free_mb: int = 500
    network_probe_host: str = "github.com"
    connect_timeout: int = 10

    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    homebrew_install_url: str = (
        "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
    )
    oh_my_zsh_install_url: str = (
        "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
    )

    packages: list[PackageSpec] = Field(default_factory=_default_packages)
    plugins: list[PluginSpec] = Field(default_factory=_default_plugins)

    @field_validator("backup_prefix", "log_file")
    @classmethod
    def _relative(cls, v: str) -> str:
        if not v or v.startswith("/"):
            raise ValueError("must be a non-empty path relative to the home directory")
        return v
