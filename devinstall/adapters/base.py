"""
Adapter base — the contract between installers and package managers.

Every package manager (Homebrew, APT, Snap, Chocolatey, winget,
DNF/YUM) is wrapped by one adapter implementing this interface.
Installers only talk to package managers through it, never by
building manager command lines themselves.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from devinstall.adapters.shell.command import ShellRunner
from devinstall.core.errors import ShellError
from devinstall.core.models.result import CommandResult, InstallResult, PackageInfo

logger = logging.getLogger(__name__)


class PackageManager(ABC):
    """Abstract base class for all package-manager adapters.

    Adapters shell out to the manager's CLI and parse its text output.
    They NEVER raise: mutating operations return an InstallResult,
    queries return False / None / [] when the manager is missing or
    the output cannot be parsed.

    To create a new adapter:
        1. Subclass PackageManager
        2. Implement name, display_name, executable and the operations
        3. Register it in the AdapterRegistry
    """

    def __init__(self, shell: ShellRunner | None = None):
        self.shell = shell or ShellRunner()

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g. 'brew', 'apt', 'choco')."""

    @property
    def display_name(self) -> str:
        """Human-readable manager name used in failure messages."""
        return self.name

    @property
    def executable(self) -> str:
        """Command checked by is_available()."""
        return self.name

    def is_available(self) -> bool:
        """Whether the manager's CLI is on PATH. Fast, never raises."""
        return self.shell.command_exists(self.executable)

    @abstractmethod
    def get_version(self) -> str | None:
        """Version of the manager itself, or None."""

    @abstractmethod
    def install(self, package: str, **options: Any) -> InstallResult:
        """Install a package."""

    @abstractmethod
    def uninstall(self, package: str) -> InstallResult:
        """Remove a package."""

    @abstractmethod
    def is_package_installed(self, package: str) -> bool:
        """Whether the manager reports the package as installed."""

    @abstractmethod
    def get_package_version(self, package: str) -> str | None:
        """Installed version of a package, or None."""

    @abstractmethod
    def upgrade(self, package: str | None = None) -> InstallResult:
        """Upgrade one package, or everything when package is None."""

    @abstractmethod
    def search(self, query: str) -> list[PackageInfo]:
        """Search the manager's index."""

    @abstractmethod
    def list_installed(self) -> list[PackageInfo]:
        """All packages the manager has installed."""

    # ── Helpers ─────────────────────────────────────────────────

    def _exec(self, command: str, timeout: int | None = None) -> CommandResult:
        """Run a command, converting spawn failures into a failed result."""
        try:
            return self.shell.run(command, timeout=timeout)
        except ShellError as e:
            logger.error("%s: %s", self.name, e)
            return CommandResult(command=command, exit_code=127, stderr=str(e))

    def _mutate(self, command: str, timeout: int | None = None) -> InstallResult:
        """Run a state-changing command if the manager is present."""
        if not self.is_available():
            return InstallResult.unavailable(self.display_name)
        logger.info("%s: %s", self.name, command)
        return InstallResult.from_command(self._exec(command, timeout=timeout))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
