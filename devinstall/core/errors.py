"""
Exception hierarchy.

Expected failures (missing prerequisites, failed commands, failed
verification) are reported through result models, never raised.
Only the conditions below escape to the entry point, which turns
them into a stderr message and exit code 1.
"""

from __future__ import annotations


class DevInstallError(Exception):
    """Base class for all devinstall errors."""


class ShellError(DevInstallError):
    """Raised when a subprocess cannot be spawned at all."""

    def __init__(self, command: str, reason: str):
        super().__init__(f"Unable to run '{command}': {reason}")
        self.command = command
        self.reason = reason


class ConfigError(DevInstallError):
    """Raised when the settings file is invalid or unreadable."""
