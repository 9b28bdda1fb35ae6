"""
winget adapter — Windows Package Manager.

winget prints fixed-width tables: a header row, a ``----`` separator,
then data rows whose columns are separated by two or more spaces.
"""

from __future__ import annotations

import re
from typing import Any

from devinstall.adapters.base import PackageManager
from devinstall.core.models.result import InstallResult, PackageInfo

_COLUMN_SPLIT = re.compile(r"\s{2,}")
_AGREEMENTS = "--accept-package-agreements --accept-source-agreements"


def _data_rows(text: str) -> list[list[str]]:
    """Column lists for every row after the ``---`` separator."""
    rows: list[list[str]] = []
    started = False
    for line in text.splitlines():
        if not line.strip():
            continue
        if "---" in line:
            started = True
            continue
        if not started:
            continue
        rows.append([part.strip() for part in _COLUMN_SPLIT.split(line.strip()) if part.strip()])
    return rows


def parse_table_output(text: str) -> list[PackageInfo]:
    """Parse ``winget search`` / ``winget list``: Name  Id  Version  ..."""
    packages: list[PackageInfo] = []
    for parts in _data_rows(text):
        if len(parts) >= 2:
            packages.append(PackageInfo(
                name=parts[0],
                id=parts[1],
                version=parts[2] if len(parts) > 2 else "",
            ))
    return packages


def parse_upgrade_output(text: str) -> list[PackageInfo]:
    """Parse ``winget upgrade``: Name  Id  Version  Available  Source.

    The available version goes into ``summary``.
    """
    packages: list[PackageInfo] = []
    for parts in _data_rows(text):
        if any("upgrades available" in p or "winget upgrade" in p for p in parts):
            continue
        if len(parts) >= 4:
            packages.append(PackageInfo(
                name=parts[0], id=parts[1], version=parts[2], summary=parts[3],
            ))
    return packages


def find_package_version(text: str, package: str) -> str | None:
    """Version column of the row mentioning ``package``, or None."""
    for line in text.splitlines():
        if package not in line:
            continue
        parts = _COLUMN_SPLIT.split(line.strip())
        if len(parts) >= 3:
            return parts[2].strip()
    return None


class WingetAdapter(PackageManager):
    """Windows Package Manager."""

    @property
    def name(self) -> str:
        return "winget"

    def get_version(self) -> str | None:
        if not self.is_available():
            return None
        result = self._exec("winget --version")
        if not result.ok:
            return None
        return result.stdout.strip().lstrip("v") or None

    def install(self, package: str, **options: Any) -> InstallResult:
        """Install a package by id.

        Options:
            silent (bool): Pass ``--silent`` (default: True).
            version (str): Exact version to install.
            source (str): Source name, e.g. ``winget`` or ``msstore``.
            timeout (int): Seconds before the command is killed.
        """
        command = f'winget install "{package}" {_AGREEMENTS}'
        if options.get("silent", True):
            command += " --silent"
        if options.get("version"):
            command += f' --version "{options["version"]}"'
        if options.get("source"):
            command += f" --source {options['source']}"
        return self._mutate(command, timeout=options.get("timeout"))

    def uninstall(self, package: str, silent: bool = True) -> InstallResult:
        command = f'winget uninstall "{package}"'
        if silent:
            command += " --silent"
        return self._mutate(command)

    def is_package_installed(self, package: str) -> bool:
        if not self.is_available():
            return False
        by_id = self._exec(f'winget list --exact --id "{package}"')
        if by_id.ok and package in by_id.stdout:
            return True
        by_name = self._exec(f'winget list --exact --name "{package}"')
        return by_name.ok and package in by_name.stdout

    def get_package_version(self, package: str) -> str | None:
        if not self.is_available():
            return None
        result = self._exec(f'winget list --exact --id "{package}"')
        if not result.ok:
            return None
        return find_package_version(result.stdout, package)

    def upgrade(self, package: str | None = None) -> InstallResult:
        if package:
            return self._mutate(f'winget upgrade "{package}" {_AGREEMENTS} --silent')
        return self._mutate(f"winget upgrade --all {_AGREEMENTS}")

    def info(self, package: str) -> str | None:
        if not self.is_available():
            return None
        result = self._exec(f'winget show "{package}"')
        return result.stdout if result.ok else None

    def search(self, query: str) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec(f'winget search "{query}"')
        return parse_table_output(result.stdout) if result.ok else []

    def list_installed(self) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec("winget list")
        return parse_table_output(result.stdout) if result.ok else []

    def list_upgradable(self) -> list[PackageInfo]:
        if not self.is_available():
            return []
        result = self._exec("winget upgrade")
        return parse_upgrade_output(result.stdout) if result.ok else []

    def update_sources(self) -> InstallResult:
        return self._mutate("winget source update")
