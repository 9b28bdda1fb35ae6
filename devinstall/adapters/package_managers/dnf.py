"""
DNF/YUM adapter — RPM packages on Amazon Linux, RHEL and Fedora.

Amazon Linux 2023, RHEL 8+ and Fedora ship dnf; Amazon Linux 2 and
older RHEL ship yum. Both accept the same subcommands used here, so
one adapter drives either binary.
"""

from __future__ import annotations

import re
from typing import Any

from devinstall.adapters.base import PackageManager
from devinstall.adapters.shell.command import ShellRunner
from devinstall.core.models.result import InstallResult, PackageInfo

_SEARCH_ROW_RE = re.compile(r"^(\S+?)(?:\.\w+)?\s+:\s+(.*)$")


def parse_search_output(text: str) -> list[PackageInfo]:
    """Parse ``dnf search`` rows of the form ``name.arch : summary``."""
    packages: list[PackageInfo] = []
    for line in text.splitlines():
        match = _SEARCH_ROW_RE.match(line.strip())
        if match:
            packages.append(PackageInfo(name=match.group(1), summary=match.group(2).strip()))
    return packages


def parse_list_output(text: str) -> list[PackageInfo]:
    """Parse ``dnf list installed`` rows: ``name.arch  version  repo``."""
    packages: list[PackageInfo] = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 2 or "." not in parts[0] or line.startswith(("Installed", "Last metadata")):
            continue
        name = parts[0].rsplit(".", 1)[0]
        packages.append(PackageInfo(name=name, version=parts[1]))
    return packages


class DnfAdapter(PackageManager):
    """DNF or YUM, whichever the host provides.

    Args:
        shell: Shell runner.
        binary: ``"dnf"`` or ``"yum"``. Detected from PATH when None.
    """

    def __init__(self, shell: ShellRunner | None = None, binary: str | None = None):
        super().__init__(shell)
        self._binary = binary

    @property
    def name(self) -> str:
        return "dnf"

    @property
    def binary(self) -> str:
        if self._binary:
            return self._binary
        return "dnf" if self.shell.command_exists("dnf") else "yum"

    @property
    def display_name(self) -> str:
        return self.binary

    @property
    def executable(self) -> str:
        return self.binary

    def get_version(self) -> str | None:
        if not self.is_available():
            return None
        result = self._exec(f"{self.binary} --version")
        if not result.ok:
            return None
        match = re.search(r"(\d+\.\d+(?:\.\d+)?)", result.stdout)
        return match.group(1) if match else None

    def install(self, package: str, **options: Any) -> InstallResult:
        return self._mutate(
            f"sudo {self.binary} install -y {package}",
            timeout=options.get("timeout"),
        )

    def group_install(self, group: str, timeout: int | None = None) -> InstallResult:
        """Install a package group such as "Development Tools"."""
        return self._mutate(f'sudo {self.binary} groupinstall -y "{group}"', timeout=timeout)

    def uninstall(self, package: str) -> InstallResult:
        return self._mutate(f"sudo {self.binary} remove -y {package}")

    def is_package_installed(self, package: str) -> bool:
        return self._exec(f"rpm -q {package}").ok

    def get_package_version(self, package: str) -> str | None:
        result = self._exec(f"rpm -q --qf '%{{VERSION}}' {package}")
        if not result.ok:
            return None
        return result.stdout.strip() or None

    def upgrade(self, package: str | None = None) -> InstallResult:
        target = f" {package}" if package else ""
        return self._mutate(f"sudo {self.binary} upgrade -y{target}")

    def search(self, query: str) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec(f"{self.binary} search {query}")
        return parse_search_output(result.stdout) if result.ok else []

    def list_installed(self) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec(f"{self.binary} list installed")
        return parse_list_output(result.stdout) if result.ok else []
