"""Observability — logging setup."""

from devinstall.core.observability.logging_config import resolve_level, setup_logging

__all__ = ["resolve_level", "setup_logging"]
