"""
Configuration loader — reads the user's config.yml into Settings.

Lookup order:
    --config  >  DEVINSTALL_CONFIG env var  >  ~/.config/devinstall/config.yml

When none of these exists the built-in defaults are used. A file that
exists but cannot be read or validated raises ConfigError.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from devinstall.core.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_CONFIG = "DEVINSTALL_CONFIG"
CONFIG_FILE = "config.yml"


class ToolVersions(BaseModel):
    """Pinned versions for tools installed from vendor downloads."""

    jq: str = "1.8.1"
    pandoc: str = "3.8.3"
    gitego_go: str = "1.24.0"
    gitego_min_go: str = "1.24"


class Settings(BaseModel):
    """User-tunable behaviour of the installers and the CLI."""

    default_timeout: int | None = None
    timeouts: dict[str, int] = Field(default_factory=dict)
    download_dir: str = "/tmp"
    versions: ToolVersions = Field(default_factory=ToolVersions)
    assume_yes: bool = False

    def timeout_for(self, tool: str) -> int | None:
        """Per-tool timeout override, else the default timeout."""
        return self.timeouts.get(tool, self.default_timeout)


def default_config_path() -> Path:
    return Path.home() / ".config" / "devinstall" / CONFIG_FILE


def find_settings_file(path: Path | None = None) -> Path | None:
    """Resolve which config file applies, if any.

    An explicit path (from ``--config`` or ``DEVINSTALL_CONFIG``) is
    returned even when it does not exist, so loading it reports the
    mistake instead of silently using defaults.
    """
    if path is not None:
        return path
    env_path = os.environ.get(ENV_CONFIG)
    if env_path:
        return Path(env_path).expanduser()
    candidate = default_config_path()
    return candidate if candidate.is_file() else None


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit config path. If None, the lookup order applies.

    Returns:
        Validated Settings (defaults when no config file is found).

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    path = find_settings_file(path)
    if path is None:
        logger.debug("No config file found, using defaults")
        return Settings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    logger.info("Loaded settings from %s", path)
    return settings
