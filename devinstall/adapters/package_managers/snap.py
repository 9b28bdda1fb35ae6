"""
Snap adapter — snapd packages on Ubuntu and Raspberry Pi OS.
"""

from __future__ import annotations

from typing import Any

from devinstall.adapters.base import PackageManager
from devinstall.core.models.result import InstallResult, PackageInfo


def _table_rows(text: str) -> list[list[str]]:
    """Whitespace-split rows of a snap table, without the header row."""
    lines = [line for line in text.splitlines() if line.strip()]
    return [line.split() for line in lines[1:]]


def parse_list_output(text: str) -> list[PackageInfo]:
    """Parse ``snap list``: Name  Version  Rev  Tracking  Publisher  Notes."""
    packages: list[PackageInfo] = []
    for parts in _table_rows(text):
        packages.append(PackageInfo(
            name=parts[0],
            version=parts[1] if len(parts) > 1 else "",
            id=parts[2] if len(parts) > 2 else "",
            summary=parts[3] if len(parts) > 3 else "",
        ))
    return packages


def parse_find_output(text: str) -> list[PackageInfo]:
    """Parse ``snap find``: Name  Version  Publisher  Notes  Summary."""
    packages: list[PackageInfo] = []
    for parts in _table_rows(text):
        packages.append(PackageInfo(
            name=parts[0],
            version=parts[1] if len(parts) > 1 else "",
            id=parts[2] if len(parts) > 2 else "",
            summary=" ".join(parts[4:]),
        ))
    return packages


class SnapAdapter(PackageManager):
    """Snap package manager."""

    @property
    def name(self) -> str:
        return "snap"

    def get_version(self) -> str | None:
        if not self.is_available():
            return None
        result = self._exec("snap version")
        if not result.ok:
            return None
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) >= 2 and parts[0] == "snap":
                return parts[1]
        return None

    def install(self, package: str, **options: Any) -> InstallResult:
        """Install a snap.

        Options:
            classic (bool): Use classic confinement.
            channel (str): Track/risk to follow, e.g. ``latest/edge``.
            timeout (int): Seconds before the command is killed.
        """
        command = f"sudo snap install {package}"
        if options.get("classic"):
            command += " --classic"
        if options.get("channel"):
            command += f" --channel={options['channel']}"
        return self._mutate(command, timeout=options.get("timeout"))

    def uninstall(self, package: str, purge: bool = False) -> InstallResult:
        command = f"sudo snap remove {package}"
        if purge:
            command += " --purge"
        return self._mutate(command)

    def is_package_installed(self, package: str) -> bool:
        if not self.is_available():
            return False
        return self._exec(f"snap list {package} 2>/dev/null").ok

    def get_package_version(self, package: str) -> str | None:
        if not self.is_available():
            return None
        result = self._exec(f"snap list {package} 2>/dev/null")
        if not result.ok:
            return None
        rows = parse_list_output(result.stdout)
        return (rows[0].version or None) if rows else None

    def upgrade(self, package: str | None = None) -> InstallResult:
        return self._mutate(f"sudo snap refresh {package}" if package else "sudo snap refresh")

    def info(self, package: str) -> str | None:
        if not self.is_available():
            return None
        result = self._exec(f"snap info {package}")
        return result.stdout if result.ok else None

    def search(self, query: str) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec(f'snap find "{query}"')
        return parse_find_output(result.stdout) if result.ok else []

    def list_installed(self) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec("snap list")
        return parse_list_output(result.stdout) if result.ok else []
