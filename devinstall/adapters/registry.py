"""
Adapter registry — central lookup for package-manager adapters.

Installers never construct adapters themselves; they ask the registry
for one by name. Tests register MockPackageManager instances under the
real names to observe every call.
"""

from __future__ import annotations

import logging
from typing import Any

from devinstall.adapters.base import PackageManager
from devinstall.adapters.package_managers import (
    AptAdapter,
    BrewAdapter,
    ChocoAdapter,
    DnfAdapter,
    SnapAdapter,
    WingetAdapter,
)
from devinstall.adapters.shell.command import ShellRunner
from devinstall.core.models.platform import PlatformDescriptor

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Registry of package-manager adapters, keyed by adapter name."""

    def __init__(self) -> None:
        self._adapters: dict[str, PackageManager] = {}

    def register(self, adapter: PackageManager) -> None:
        """Register an adapter under its ``name``."""
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def unregister(self, name: str) -> None:
        """Remove an adapter from the registry."""
        self._adapters.pop(name, None)

    def get(self, name: str) -> PackageManager | None:
        """Look up an adapter by name."""
        return self._adapters.get(name)

    def __getitem__(self, name: str) -> PackageManager:
        adapter = self._adapters.get(name)
        if adapter is None:
            raise KeyError(f"No adapter registered for '{name}'")
        return adapter

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def list_adapters(self) -> list[str]:
        """List all registered adapter names."""
        return list(self._adapters.keys())

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Availability and version of every registered adapter."""
        status = {}
        for name, adapter in self._adapters.items():
            available = adapter.is_available()
            status[name] = {
                "name": name,
                "display_name": adapter.display_name,
                "available": available,
                "version": adapter.get_version() if available else None,
                "type": adapter.__class__.__name__,
            }
        return status


def default_registry(
    shell: ShellRunner | None = None,
    platform: PlatformDescriptor | None = None,
) -> AdapterRegistry:
    """Registry holding one real adapter per supported package manager.

    The DNF adapter drives ``yum`` instead of ``dnf`` when the detected
    platform says so.
    """
    shell = shell or ShellRunner()
    rpm_binary = None
    if platform is not None and platform.package_manager in ("dnf", "yum"):
        rpm_binary = platform.package_manager

    registry = AdapterRegistry()
    for adapter in (
        BrewAdapter(shell),
        AptAdapter(shell),
        SnapAdapter(shell),
        ChocoAdapter(shell),
        WingetAdapter(shell),
        DnfAdapter(shell, binary=rpm_binary),
    ):
        registry.register(adapter)
    return registry
