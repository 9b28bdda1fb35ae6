"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from devinstall.adapters.mock import MockPackageManager, MockShell
from devinstall.adapters.registry import AdapterRegistry
from devinstall.core.config.loader import Settings
from devinstall.core.models.platform import PlatformDescriptor
from devinstall.core.services.installers import InstallContext

MANAGER_NAMES = ("brew", "apt", "snap", "choco", "winget", "dnf")


class EchoRecorder:
    """Stands in for click.echo and keeps what was printed."""

    def __init__(self):
        self.out: list[str] = []
        self.err: list[str] = []

    def __call__(self, message="", err=False):
        (self.err if err else self.out).append(str(message))

    @property
    def text(self) -> str:
        return "\n".join(self.out + self.err)


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """setup_logging() replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def make_ctx(tmp_path: Path):
    """Factory for an InstallContext wired to mocks.

    Every package manager is a MockPackageManager sharing one MockShell;
    ``unavailable`` lists managers that report themselves missing.
    """

    def _make(
        platform: str = "ubuntu",
        arch: str = "x86_64",
        commands=(),
        unavailable=(),
        installed=(),
        package_manager: str | None = None,
        env: dict | None = None,
        settings: Settings | None = None,
        link_commands: bool = True,
    ) -> InstallContext:
        shell = MockShell(commands)
        registry = AdapterRegistry()
        for name in MANAGER_NAMES:
            registry.register(MockPackageManager(
                adapter_name=name,
                available=name not in unavailable,
                installed=installed,
                shell=shell,
                link_commands=link_commands,
            ))
        return InstallContext(
            platform=PlatformDescriptor(
                type=platform, architecture=arch, package_manager=package_manager,
            ),
            shell=shell,
            settings=settings or Settings(),
            registry=registry,
            echo=EchoRecorder(),
            env=env if env is not None else {},
            home=tmp_path / "home",
        )

    return _make
