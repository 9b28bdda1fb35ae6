"""Configuration — user settings loaded from YAML."""

from devinstall.core.config.loader import Settings, ToolVersions, load_settings

__all__ = ["Settings", "ToolVersions", "load_settings"]
