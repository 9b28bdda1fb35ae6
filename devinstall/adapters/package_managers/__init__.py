"""Package-manager adapters, one per external CLI."""

from devinstall.adapters.package_managers.apt import AptAdapter
from devinstall.adapters.package_managers.brew import BrewAdapter
from devinstall.adapters.package_managers.choco import ChocoAdapter
from devinstall.adapters.package_managers.dnf import DnfAdapter
from devinstall.adapters.package_managers.snap import SnapAdapter
from devinstall.adapters.package_managers.winget import WingetAdapter

__all__ = [
    "AptAdapter",
    "BrewAdapter",
    "ChocoAdapter",
    "DnfAdapter",
    "SnapAdapter",
    "WingetAdapter",
]
