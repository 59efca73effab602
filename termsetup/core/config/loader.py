"""
Configuration loader — reads setup.yml into a SetupConfig.

Lookup order:
    explicit path (--config)  >  TERMSETUP_CONFIG env var
    >  ~/.config/termsetup/setup.yml  >  built-in defaults
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from termsetup.core.errors import ConfigError
from termsetup.core.models.setup_config import SetupConfig

logger = logging.getLogger(__name__)

# Default config location, relative to the home directory
SETUP_CONFIG_FILE = ".config/termsetup/setup.yml"
CONFIG_ENV_VAR = "TERMSETUP_CONFIG"


def find_config_file(home: Path) -> Path | None:
    """Locate setup.yml via the env var or the default location.

    Returns:
        Path to the config file, or None when neither exists.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()

    candidate = home / SETUP_CONFIG_FILE
    if candidate.is_file():
        return candidate
    return None


def load_config(path: Path | None = None, home: Path | None = None) -> SetupConfig:
    """Load and validate setup configuration.

    Args:
        path: Explicit path to setup.yml. If None, searches the default
            locations and falls back to built-in defaults.
        home: Home directory used for the default location.

    Returns:
        Validated SetupConfig.

    Raises:
        ConfigError: If an explicit/env file is missing or invalid.
    """
    if path is None:
        path = find_config_file(home or Path.home())
        if path is None:
            logger.debug("No setup.yml found — using defaults")
            return SetupConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading setup config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return SetupConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "setup" key or be flat
    setup_data = data.get("setup", data)

    try:
        config = SetupConfig.model_validate(setup_data)
    except Exception as e:
        raise ConfigError(f"Invalid setup configuration: {e}") from e

    logger.info(
        "Loaded setup config: %d packages, %d plugins",
        len(config.packages),
        len(config.plugins),
    )
    return config
