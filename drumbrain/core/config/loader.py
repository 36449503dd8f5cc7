"""
Configuration loader — reads drumbrain.yml into a SetupConfig.

Every key is optional: with no file at all the defaults describe a
stock Raspberry Pi OS image driven by user ``pi``. The file is found
via ``--config``, then ``DRUMBRAIN_CONFIG``, then by walking up from
the current directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from drumbrain.core.models.config import SetupConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "drumbrain.yml"
CONFIG_ENV = "DRUMBRAIN_CONFIG"


class ConfigError(Exception):
    """Raised when drumbrain.yml is unreadable or invalid."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Locate drumbrain.yml.

    ``DRUMBRAIN_CONFIG`` wins when set. Otherwise search from
    ``start_dir`` (default: cwd) upwards.

    Returns:
        Path to the config file, or None if not found.
    """
    from_env = os.environ.get(CONFIG_ENV)
    if from_env:
        return Path(from_env)

    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> SetupConfig:
    """Load and validate setup configuration.

    Args:
        path: Explicit path to drumbrain.yml. If None, it is searched for;
            when nothing is found the defaults are returned.

    Raises:
        ConfigError: If an explicit or discovered file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        logger.debug("No %s found, using defaults", CONFIG_FILE)
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
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "drumbrain" key or be flat
    if "drumbrain" in data:
        data = data["drumbrain"] or {}

    try:
        config = SetupConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded setup config for user '%s' from %s", config.user, path)
    return config
