"""
Installer catalog — every tool ``dev install`` knows about.

Each tool lives in its own module and exposes a module-level
``INSTALLER``. This package maps catalog names to those instances and
orders dependencies ahead of the tool that needs them::

    from devinstall.core.services.installers import get_installer
    get_installer("jq").install()
"""

from __future__ import annotations

import logging

from devinstall.core.services.installers.base import (  # noqa: F401
    Dependency,
    InstallContext,
    Installer,
    run_standalone,
)
from devinstall.core.services.installers.build_essential import INSTALLER as _build_essential
from devinstall.core.services.installers.chocolatey import INSTALLER as _chocolatey
from devinstall.core.services.installers.file import INSTALLER as _file
from devinstall.core.services.installers.gitego import INSTALLER as _gitego
from devinstall.core.services.installers.go import INSTALLER as _go
from devinstall.core.services.installers.jq import INSTALLER as _jq
from devinstall.core.services.installers.pandoc import INSTALLER as _pandoc
from devinstall.core.services.installers.pngyu import INSTALLER as _pngyu
from devinstall.core.services.installers.yq import INSTALLER as _yq

logger = logging.getLogger(__name__)

INSTALLERS: dict[str, Installer] = {
    installer.name: installer
    for installer in (
        _build_essential,
        _chocolatey,
        _file,
        _gitego,
        _go,
        _jq,
        _pandoc,
        _pngyu,
        _yq,
    )
}


def get_installer(name: str) -> Installer | None:
    """Installer registered under ``name`` (case-insensitive), or None."""
    return INSTALLERS.get(name.strip().lower())


def available_installers() -> list[str]:
    return sorted(INSTALLERS)


def resolve_dependencies(name: str, ctx: InstallContext | None = None) -> list[Installer]:
    """Installers that must run before ``name``, in run order.

    Walks ``depends_on`` depth-first, lowest priority first. A dependency
    is skipped when it is restricted to other platforms, not eligible
    here, already installed, already collected or part of a cycle. The
    target itself is never in the result.
    """
    ctx = ctx or InstallContext()
    platform = ctx.get_platform()
    ordered: list[Installer] = []
    visited: set[str] = {name}

    def _collect(installer: Installer) -> None:
        for dep in sorted(installer.depends_on, key=lambda d: d.priority):
            if dep.name in visited:
                continue
            visited.add(dep.name)

            if not dep.applies_to(platform):
                continue
            dependency = INSTALLERS.get(dep.name)
            if dependency is None:
                logger.warning("%s depends on unknown installer %r", installer.name, dep.name)
                continue
            if not dependency.is_eligible(ctx):
                logger.info("Skipping %s: not eligible on %s", dep.name, platform.name)
                continue
            if dependency.is_installed(ctx):
                logger.debug("Skipping %s: already installed", dep.name)
                continue

            _collect(dependency)
            ordered.append(dependency)

    target = INSTALLERS.get(name)
    if target is not None:
        _collect(target)
    return ordered
