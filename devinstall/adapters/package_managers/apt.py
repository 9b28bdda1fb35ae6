"""
APT adapter — apt-get / dpkg / apt-cache on Debian-family systems.
"""

from __future__ import annotations

import re
from typing import Any

from devinstall.adapters.base import PackageManager
from devinstall.core.models.result import InstallResult, PackageInfo

_SEARCH_ROW_RE = re.compile(r"^(\S+)\s+-\s+(.*)$")

_NONINTERACTIVE = "DEBIAN_FRONTEND=noninteractive "


def parse_dpkg_list(text: str, package: str) -> str | None:
    """Version of ``package`` from ``dpkg -l`` output, or None.

    Only rows whose status is ``ii`` (desired=install, status=installed)
    count. Columns: status, name, version, arch, description.
    """
    for line in text.splitlines():
        if not line.startswith("ii"):
            continue
        parts = line.split()
        if len(parts) < 3:
            continue
        # dpkg may report "name:arch"
        if parts[1].split(":", 1)[0] == package:
            return parts[2]
    return None


def parse_search_output(text: str) -> list[PackageInfo]:
    """Parse ``apt-cache search`` rows of the form ``name - summary``."""
    packages: list[PackageInfo] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        match = _SEARCH_ROW_RE.match(line)
        if match:
            packages.append(PackageInfo(name=match.group(1), summary=match.group(2).strip()))
        else:
            packages.append(PackageInfo(name=line.split()[0]))
    return packages


def parse_selections(text: str) -> list[PackageInfo]:
    """Parse ``dpkg --get-selections`` output, skipping deinstalled rows."""
    packages: list[PackageInfo] = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 2 or parts[1] == "deinstall":
            continue
        packages.append(PackageInfo(name=parts[0]))
    return packages


class AptAdapter(PackageManager):
    """APT package manager (Ubuntu, Debian, Raspberry Pi OS, WSL)."""

    @property
    def name(self) -> str:
        return "apt"

    @property
    def display_name(self) -> str:
        return "apt-get"

    @property
    def executable(self) -> str:
        return "apt-get"

    def get_version(self) -> str | None:
        if not self.is_available():
            return None
        result = self._exec("apt-get --version")
        if not result.ok:
            return None
        match = re.search(r"apt\s+(\d+\.\d+(?:\.\d+)?)", result.stdout)
        return match.group(1) if match else None

    def install(self, package: str, **options: Any) -> InstallResult:
        """Install a package.

        Options:
            auto_confirm (bool): Pass ``-y`` (default: True).
            noninteractive (bool): Set DEBIAN_FRONTEND=noninteractive.
            timeout (int): Seconds before the command is killed.
        """
        prefix = _NONINTERACTIVE if options.get("noninteractive") else ""
        confirm = " -y" if options.get("auto_confirm", True) else ""
        return self._mutate(
            f"sudo {prefix}apt-get install{confirm} {package}",
            timeout=options.get("timeout"),
        )

    def uninstall(self, package: str, purge: bool = False) -> InstallResult:
        verb = "purge" if purge else "remove"
        return self._mutate(f"sudo apt-get {verb} -y {package}")

    def update(self, noninteractive: bool = False) -> InstallResult:
        """Refresh package lists."""
        if noninteractive:
            return self._mutate(f"sudo {_NONINTERACTIVE}apt-get update -y")
        return self._mutate("sudo apt-get update")

    def upgrade(self, package: str | None = None) -> InstallResult:
        if package:
            return self._mutate(f"sudo apt-get install -y --only-upgrade {package}")
        return self._mutate("sudo apt-get upgrade -y")

    def is_package_installed(self, package: str) -> bool:
        return self.get_package_version(package) is not None

    def get_package_version(self, package: str) -> str | None:
        result = self._exec(f"dpkg -l {package} 2>/dev/null")
        if not result.ok:
            return None
        return parse_dpkg_list(result.stdout, package)

    def add_repository(self, repo: str) -> InstallResult:
        """Add an APT repository (PPA or deb line)."""
        if not self.shell.command_exists("add-apt-repository"):
            helper = self._exec("sudo apt-get install -y software-properties-common")
            if not helper.ok:
                return InstallResult(
                    success=False,
                    output="add-apt-repository is not available and could not be installed",
                )
        return InstallResult.from_command(self._exec(f'sudo add-apt-repository -y "{repo}"'))

    def add_key(self, key_url: str, keyring_path: str | None = None) -> InstallResult:
        """Import a repository signing key, into a keyring when given."""
        if keyring_path:
            command = f'curl -fsSL "{key_url}" | sudo gpg --dearmor -o "{keyring_path}"'
        else:
            command = f'curl -fsSL "{key_url}" | sudo apt-key add -'
        return InstallResult.from_command(self._exec(command))

    def info(self, package: str) -> str | None:
        result = self._exec(f"apt-cache show {package}")
        return result.stdout if result.ok else None

    def search(self, query: str) -> list[PackageInfo]:
        result = self._exec(f'apt-cache search "{query}"')
        return parse_search_output(result.stdout) if result.ok else []

    def list_installed(self) -> list[PackageInfo]:
        result = self._exec("dpkg --get-selections")
        return parse_selections(result.stdout) if result.ok else []

    def clean(self) -> InstallResult:
        return InstallResult.from_command(
            self._exec("sudo apt-get clean && sudo apt-get autoremove -y")
        )
