"""
Step registry — the fixed, ordered list of setup steps.

Steps are registered once here and never change during a run.
``select_steps`` narrows the list without reordering it.
"""

from __future__ import annotations

from typing import Iterable

from termsetup.core.errors import ConfigError
from termsetup.core.models.ledger import ConfigTarget
from termsetup.core.models.step import SetupStep, StepSeverity
from termsetup.core.services.steps.homebrew import (
    homebrew_installed,
    install_homebrew,
    install_packages,
    packages_installed,
    update_homebrew,
)
from termsetup.core.services.steps.shell import (
    configure_shell,
    install_oh_my_zsh,
    install_plugins,
    install_terminal_functions,
    oh_my_zsh_installed,
    plugins_installed,
    shell_configured,
    terminal_functions_installed,
)
from termsetup.core.services.steps.terminal import (
    configure_fastfetch,
    configure_terminal,
    fastfetch_configured,
    terminal_configured,
)
from termsetup.core.services.steps.verify import verify_installation

DEFAULT_STEPS: tuple[SetupStep, ...] = (
    SetupStep(
        name="install-homebrew",
        description="Installing Homebrew",
        action=install_homebrew,
        backup_targets=(ConfigTarget.SHELL_PROFILE,),
        is_satisfied=homebrew_installed,
    ),
    SetupStep(
        name="install-oh-my-zsh",
        description="Setting up Oh-My-Zsh",
        action=install_oh_my_zsh,
        backup_targets=(ConfigTarget.SHELL_FRAMEWORK, ConfigTarget.SHELL_RC),
        is_satisfied=oh_my_zsh_installed,
    ),
    SetupStep(
        name="install-zsh-plugins",
        description="Installing Oh-My-Zsh plugins",
        action=install_plugins,
        is_satisfied=plugins_installed,
    ),
    SetupStep(
        name="update-homebrew",
        description="Updating Homebrew",
        action=update_homebrew,
        severity=StepSeverity.ADVISORY,
    ),
    SetupStep(
        name="install-packages",
        description="Installing required packages",
        action=install_packages,
        is_satisfied=packages_installed,
    ),
    SetupStep(
        name="configure-terminal",
        description="Configuring Kitty terminal",
        action=configure_terminal,
        backup_targets=(ConfigTarget.TERMINAL_CONFIG,),
        is_satisfied=terminal_configured,
    ),
    SetupStep(
        name="configure-fastfetch",
        description="Configuring fastfetch",
        action=configure_fastfetch,
        backup_targets=(ConfigTarget.INFO_TOOL_CONFIG,),
        is_satisfied=fastfetch_configured,
    ),
    SetupStep(
        name="install-terminal-functions",
        description="Creating terminal helper functions",
        action=install_terminal_functions,
        backup_targets=(ConfigTarget.TERMINAL_FUNCTIONS,),
        is_satisfied=terminal_functions_installed,
    ),
    SetupStep(
        name="configure-shell",
        description="Configuring shell startup",
        action=configure_shell,
        backup_targets=(ConfigTarget.SHELL_RC,),
        is_satisfied=shell_configured,
    ),
    SetupStep(
        name="verify-installation",
        description="Verifying installation",
        action=verify_installation,
    ),
)


def step_names(steps: Iterable[SetupStep] = DEFAULT_STEPS) -> list[str]:
    return [s.name for s in steps]


def select_steps(
    only: Iterable[str] = (),
    skip: Iterable[str] = (),
    steps: tuple[SetupStep, ...] = DEFAULT_STEPS,
) -> list[SetupStep]:
    """Filter ``steps`` by name, keeping registration order.

    Raises:
        ConfigError: If a name does not match any registered step.
    """
    only, skip = set(only), set(skip)
    known = set(step_names(steps))
    unknown = (only | skip) - known
    if unknown:
        raise ConfigError(
            f"Unknown step(s): {', '.join(sorted(unknown))}. "
            f"Valid: {', '.join(step_names(steps))}"
        )

    return [
        s for s in steps
        if (not only or s.name in only) and s.name not in skip
    ]
