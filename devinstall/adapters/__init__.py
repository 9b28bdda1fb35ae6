"""Adapters — shell execution and package-manager wrappers."""

from devinstall.adapters.base import PackageManager
from devinstall.adapters.registry import AdapterRegistry, default_registry

__all__ = ["AdapterRegistry", "PackageManager", "default_registry"]
