"""
Homebrew adapter — formulae and casks on macOS.
"""

from __future__ import annotations

import re
from typing import Any

from devinstall.adapters.base import PackageManager
from devinstall.core.models.result import InstallResult, PackageInfo

_VERSION_RE = re.compile(r"Homebrew\s+(\d+\.\d+\.?\d*)")


def parse_version_output(text: str) -> str | None:
    """Extract the version from ``brew --version`` output."""
    match = _VERSION_RE.search(text)
    return match.group(1) if match else None


def parse_search_output(text: str) -> list[PackageInfo]:
    """Parse ``brew search`` output into formula and cask rows.

    Output is split into ``==> Formulae`` and ``==> Casks`` sections,
    each a whitespace-separated list of names. Output without section
    headers is treated as formulae.
    """
    packages: list[PackageInfo] = []
    kind = "formula"
    for line in text.splitlines():
        if not line.strip():
            continue
        if "==> Formulae" in line:
            kind = "formula"
            continue
        if "==> Casks" in line:
            kind = "cask"
            continue
        if line.startswith("==>"):
            continue
        for name in line.split():
            packages.append(PackageInfo(name=name, kind=kind))
    return packages


def parse_list_output(text: str, kind: str = "formula") -> list[PackageInfo]:
    """Parse ``brew list --formula|--cask`` output (one name per line)."""
    return [
        PackageInfo(name=line.strip(), kind=kind)
        for line in text.splitlines()
        if line.strip()
    ]


class BrewAdapter(PackageManager):
    """Homebrew package manager."""

    @property
    def name(self) -> str:
        return "brew"

    @property
    def display_name(self) -> str:
        return "Homebrew"

    def get_version(self) -> str | None:
        if not self.is_available():
            return None
        result = self._exec("brew --version")
        return parse_version_output(result.stdout) if result.ok else None

    def install(self, package: str, **options: Any) -> InstallResult:
        if options.get("cask"):
            return self.install_cask(package, timeout=options.get("timeout"))
        return self._mutate(f"brew install {package}", timeout=options.get("timeout"))

    def install_cask(self, cask: str, timeout: int | None = None) -> InstallResult:
        return self._mutate(f"brew install --cask {cask}", timeout=timeout)

    def uninstall(self, package: str) -> InstallResult:
        return self._mutate(f"brew uninstall {package}")

    def uninstall_cask(self, cask: str) -> InstallResult:
        return self._mutate(f"brew uninstall --cask {cask}")

    def is_package_installed(self, package: str) -> bool:
        if not self.is_available():
            return False
        return self._exec(f"brew list --formula {package}").ok

    def is_cask_installed(self, cask: str) -> bool:
        if not self.is_available():
            return False
        return self._exec(f"brew list --cask {cask}").ok

    def get_package_version(self, package: str) -> str | None:
        if not self.is_available():
            return None
        result = self._exec(f"brew list --versions {package}")
        if not result.ok:
            return None
        # "jq 1.7.1 1.8.1" -> newest is last
        parts = result.stdout.split()
        return parts[-1] if len(parts) >= 2 else None

    def update(self) -> InstallResult:
        return self._mutate("brew update")

    def upgrade(self, package: str | None = None) -> InstallResult:
        return self._mutate(f"brew upgrade {package}" if package else "brew upgrade")

    def tap(self, repository: str) -> InstallResult:
        return self._mutate(f"brew tap {repository}")

    def info(self, package: str) -> str | None:
        if not self.is_available():
            return None
        result = self._exec(f"brew info {package}")
        return result.stdout if result.ok else None

    def search(self, query: str) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec(f"brew search {query}")
        return parse_search_output(result.stdout) if result.ok else []

    def list_installed(self) -> list[PackageInfo]:
        return self.list_formulas() + self.list_casks()

    def list_formulas(self) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec("brew list --formula")
        return parse_list_output(result.stdout, "formula") if result.ok else []

    def list_casks(self) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec("brew list --cask")
        return parse_list_output(result.stdout, "cask") if result.ok else []
