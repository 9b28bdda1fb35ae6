"""
Chocolatey adapter — community packages on Windows.

choco is frequently installed in the current session before PATH is
refreshed, so the adapter falls back to the well-known install
location when ``choco`` is not on PATH.
"""

from __future__ import annotations

import ntpath
import os
from pathlib import Path
from typing import Any

from devinstall.adapters.base import PackageManager
from devinstall.adapters.shell.command import ShellRunner
from devinstall.core.models.result import InstallResult, PackageInfo

CHOCO_INSTALL_DIR = "C:\\ProgramData\\chocolatey"
CHOCO_BIN_DIR = ntpath.join(CHOCO_INSTALL_DIR, "bin")
CHOCO_KNOWN_PATH = ntpath.join(CHOCO_BIN_DIR, "choco.exe")

_SKIP_MARKERS = ("packages found", "packages installed", "Chocolatey v")


def parse_package_rows(text: str) -> list[PackageInfo]:
    """Parse ``name version`` rows from ``choco list`` / ``choco search``.

    Banner and summary lines are skipped.
    """
    packages: list[PackageInfo] = []
    for line in text.splitlines():
        if not line.strip() or any(marker in line for marker in _SKIP_MARKERS):
            continue
        parts = line.split()
        if len(parts) >= 2 and "=" not in parts[0]:
            packages.append(PackageInfo(name=parts[0], version=parts[1]))
    return packages


def find_package_version(text: str, package: str) -> str | None:
    """Version of ``package`` (case-insensitive) in ``choco list`` output."""
    for row in parse_package_rows(text):
        if row.name.lower() == package.lower():
            return row.version or None
    return None


def parse_outdated_output(text: str) -> list[PackageInfo]:
    """Parse ``choco outdated`` pipe rows: name|current|available|pinned.

    The available version goes into ``summary``.
    """
    packages: list[PackageInfo] = []
    for line in text.splitlines():
        if "|" not in line:
            continue
        parts = [p.strip() for p in line.split("|")]
        # the legend row ("Output is package name | ...") has spaces in its first field
        if len(parts) >= 3 and " " not in parts[0]:
            packages.append(PackageInfo(name=parts[0], version=parts[1], summary=parts[2]))
    return packages


class ChocoAdapter(PackageManager):
    """Chocolatey package manager."""

    def __init__(self, shell: ShellRunner | None = None, known_path: str = CHOCO_KNOWN_PATH):
        super().__init__(shell)
        self.known_path = known_path

    @property
    def name(self) -> str:
        return "choco"

    @property
    def display_name(self) -> str:
        return "Chocolatey"

    def executable_path(self) -> str | None:
        """``choco`` when on PATH, the known install path, or None."""
        if self.shell.command_exists("choco"):
            return "choco"
        if Path(self.known_path).is_file():
            return self.known_path
        return None

    def is_available(self) -> bool:
        return self.executable_path() is not None

    def _choco(self, args: str) -> str:
        return f'"{self.executable_path()}" {args}'

    def add_bin_to_path(self) -> bool:
        """Prepend the Chocolatey bin dir to this process's PATH.

        Returns:
            True if PATH was changed, False if it was already present.
        """
        current = os.environ.get("PATH", "")
        entries = current.split(";")
        if any(entry.lower() == CHOCO_BIN_DIR.lower() for entry in entries):
            return False
        os.environ["PATH"] = f"{CHOCO_BIN_DIR};{current}" if current else CHOCO_BIN_DIR
        self.shell.add_path(CHOCO_BIN_DIR)
        return True

    def command_binary_path(self, command: str) -> str | None:
        """Path of a shim Chocolatey created for ``command``, if present."""
        candidate = ntpath.join(CHOCO_BIN_DIR, f"{command}.exe")
        return candidate if Path(candidate).is_file() else None

    def get_version(self) -> str | None:
        if not self.is_available():
            return None
        result = self._exec(self._choco("--version"))
        return (result.stdout.strip() or None) if result.ok else None

    def install(self, package: str, **options: Any) -> InstallResult:
        """Install a package.

        Options:
            force (bool): Reinstall even when present.
            version (str): Pin an exact version.
            params (str): ``--package-parameters`` value.
            timeout (int): Seconds before the command is killed.
        """
        if not self.is_available():
            return InstallResult.unavailable(self.display_name)
        command = self._choco(f"install {package} -y")
        if options.get("force"):
            command += " --force"
        if options.get("version"):
            command += f" --version={options['version']}"
        if options.get("params"):
            command += f' --package-parameters "{options["params"]}"'
        return self._mutate(command, timeout=options.get("timeout"))

    def uninstall(self, package: str) -> InstallResult:
        if not self.is_available():
            return InstallResult.unavailable(self.display_name)
        return self._mutate(self._choco(f"uninstall {package} -y"))

    def is_package_installed(self, package: str) -> bool:
        return self.get_package_version(package) is not None

    def get_package_version(self, package: str) -> str | None:
        if not self.is_available():
            return None
        result = self._exec(self._choco(f"list --local-only --exact {package}"))
        if not result.ok:
            return None
        return find_package_version(result.stdout, package)

    def upgrade(self, package: str | None = None) -> InstallResult:
        if not self.is_available():
            return InstallResult.unavailable(self.display_name)
        return self._mutate(self._choco(f"upgrade {package or 'all'} -y"))

    def info(self, package: str) -> str | None:
        if not self.is_available():
            return None
        result = self._exec(self._choco(f"info {package}"))
        return result.stdout if result.ok else None

    def search(self, query: str) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec(self._choco(f'search "{query}"'))
        return parse_package_rows(result.stdout) if result.ok else []

    def list_installed(self) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec(self._choco("list --local-only"))
        return parse_package_rows(result.stdout) if result.ok else []

    def list_outdated(self) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec(self._choco("outdated"))
        return parse_outdated_output(result.stdout) if result.ok else []

    def pin(self, package: str) -> InstallResult:
        if not self.is_available():
            return InstallResult.unavailable(self.display_name)
        return self._mutate(self._choco(f'pin add -n="{package}"'))

    def unpin(self, package: str) -> InstallResult:
        if not self.is_available():
            return InstallResult.unavailable(self.display_name)
        return self._mutate(self._choco(f'pin remove -n="{package}"'))
