"""
Installer base — the platform-dispatch framework every tool installer uses.

An installer maps each supported PlatformType to one platform step.
``install()`` detects the platform, looks the step up and runs it. A
platform without a step is not an error: the user is told the tool is
not available there and an ``unsupported`` outcome is returned.

Every platform step follows the same shape:
    1. Idempotency check   → AlreadyInstalled
    2. Prerequisites       → Failed(prerequisite)
    3. Install             → Failed(command)
    4. Verify              → Verified | Failed(verification)

Expected failures come back as InstallOutcome values. Only ShellError
(a process that could not be spawned) and other DevInstallError
subclasses escape, to be reported by the CLI or run_standalone().
"""

from __future__ import annotations

import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

import click

from devinstall.adapters.base import PackageManager
from devinstall.adapters.registry import AdapterRegistry, default_registry
from devinstall.adapters.shell.command import ShellRunner
from devinstall.core.config.loader import Settings, load_settings
from devinstall.core.errors import DevInstallError
from devinstall.core.models.platform import PlatformDescriptor, PlatformType
from devinstall.core.models.result import (
    CommandResult,
    FailureKind,
    InstallOutcome,
)
from devinstall.core.observability.logging_config import resolve_level, setup_logging
from devinstall.core.services.platform_detection import detect, is_desktop_available

logger = logging.getLogger(__name__)

PlatformStep = Callable[["InstallContext"], InstallOutcome]

# How to get a missing package manager, keyed by adapter name
_MANAGER_HINTS: dict[str, str] = {
    "brew": "Install Homebrew first: https://brew.sh",
    "choco": "Run: dev install chocolatey",
    "winget": "Install App Installer from the Microsoft Store to get winget.",
    "snap": "Run: sudo apt-get install -y snapd",
}


@dataclass(frozen=True)
class Dependency:
    """Another installer that must run first.

    Args:
        name: Catalog name of the installer depended on.
        platforms: Platforms the dependency applies to. None means all.
        priority: Lower runs first among siblings.
    """

    name: str
    platforms: frozenset[PlatformType] | None = None
    priority: int = 0

    def applies_to(self, platform: PlatformDescriptor) -> bool:
        return self.platforms is None or platform.kind in self.platforms


@dataclass
class InstallContext:
    """Everything an installer needs: platform, shell, adapters, settings.

    ``platform`` is detected and ``registry`` built on first use when
    not supplied. ``echo`` receives user-facing progress lines and is
    called as ``echo(message, err=False)``.
    """

    platform: PlatformDescriptor | None = None
    shell: ShellRunner = field(default_factory=ShellRunner)
    settings: Settings = field(default_factory=Settings)
    registry: AdapterRegistry | None = None
    echo: Callable[..., Any] = click.echo
    env: Mapping[str, str] | None = None
    home: Path | None = None

    def get_platform(self) -> PlatformDescriptor:
        if self.platform is None:
            self.platform = detect(env=self.env)
        return self.platform

    def adapters(self) -> AdapterRegistry:
        if self.registry is None:
            self.registry = default_registry(self.shell, self.get_platform())
        return self.registry

    def adapter(self, name: str) -> PackageManager:
        """Registered adapter by name; KeyError if none."""
        return self.adapters()[name]

    @property
    def home_dir(self) -> Path:
        return self.home or Path.home()

    def desktop_available(self) -> bool:
        return is_desktop_available(self.get_platform(), env=self.env)


class Installer(ABC):
    """Base class for one tool's installer.

    Subclasses set ``name``, ``display_name`` and usually ``command``,
    then implement ``dispatch_table()``.
    """

    name: str = ""
    display_name: str = ""
    command: str | None = None
    depends_on: tuple[Dependency, ...] = ()
    requires_desktop: bool = False

    @abstractmethod
    def dispatch_table(self) -> dict[PlatformType, PlatformStep]:
        """Map each supported platform to its install step."""

    # ── Dispatch ────────────────────────────────────────────────

    def install(self, ctx: InstallContext | None = None) -> InstallOutcome:
        """Install the tool on the current platform.

        Returns:
            InstallOutcome. Unsupported platforms yield ``unsupported``.

        Raises:
            DevInstallError: Only for conditions outside the outcome model,
                such as a process that could not be spawned.
        """
        ctx = ctx or InstallContext()
        platform = ctx.get_platform()
        step = self.dispatch_table().get(platform.kind) if platform.kind else None

        if step is None:
            message = self.unsupported_message(platform)
            logger.info("No %s installer for %s", self.name, platform.name)
            ctx.echo(message)
            return InstallOutcome.unsupported(self.name, message, platform=platform.name)

        logger.info("Dispatching %s install for %s", self.name, platform.name)
        outcome = step(ctx)
        if not outcome.platform:
            outcome = outcome.model_copy(update={"platform": platform.name})
        return outcome

    def is_eligible(self, ctx: InstallContext | None = None) -> bool:
        """Whether this installer can run on the current host."""
        ctx = ctx or InstallContext()
        platform = ctx.get_platform()
        if platform.kind not in self.dispatch_table():
            return False
        if self.requires_desktop and not ctx.desktop_available():
            return False
        return True

    def is_installed(self, ctx: InstallContext | None = None) -> bool:
        """Whether the tool is already present. Defaults to a PATH lookup."""
        ctx = ctx or InstallContext()
        return bool(self.command) and ctx.shell.command_exists(self.command)

    def unsupported_message(self, platform: PlatformDescriptor) -> str:
        return f"{self.display_name} is not available for {platform.name}."

    # ── Step helpers ────────────────────────────────────────────

    def run(self, ctx: InstallContext, command: str, timeout: int | None = None) -> CommandResult:
        """Run a shell command with this tool's configured timeout."""
        if timeout is None:
            timeout = ctx.settings.timeout_for(self.name)
        return ctx.shell.run(command, timeout=timeout)

    def has_command(self, ctx: InstallContext, command: str | None = None) -> bool:
        command = command or self.command
        return bool(command) and ctx.shell.command_exists(command)

    def already_installed(self, ctx: InstallContext, message: str | None = None) -> InstallOutcome:
        message = message or f"{self.display_name} is already installed, skipping..."
        ctx.echo(message)
        return InstallOutcome.already_installed(self.name, message)

    def succeeded(self, ctx: InstallContext, message: str | None = None, *notes: str) -> InstallOutcome:
        message = message or f"{self.display_name} installed successfully."
        ctx.echo(message)
        for note in notes:
            ctx.echo(note)
        return InstallOutcome.verified(self.name, message)

    def failed(
        self,
        ctx: InstallContext,
        kind: FailureKind,
        message: str,
        *details: str,
    ) -> InstallOutcome:
        """Report a failure on stderr and build the FAILED outcome."""
        logger.info("%s failed (%s): %s", self.name, kind.value, message)
        ctx.echo(message, err=True)
        for line in details:
            ctx.echo(line, err=True)
        return InstallOutcome.failed(
            self.name, kind, message, metadata={"details": list(details)},
        )

    def command_failed(self, ctx: InstallContext, message: str, output: str) -> InstallOutcome:
        """Failed(command), with the tool's captured output shown verbatim."""
        details = (output.rstrip(),) if output.strip() else ()
        return self.failed(ctx, FailureKind.COMMAND, message, *details)

    def missing_manager(self, ctx: InstallContext, adapter: PackageManager) -> InstallOutcome:
        hint = _MANAGER_HINTS.get(adapter.name, f"Install {adapter.display_name} and re-run.")
        return self.failed(
            ctx,
            FailureKind.PREREQUISITE,
            f"{adapter.display_name} is not installed. Please install {adapter.display_name} first.",
            hint,
        )

    def verify_command(
        self,
        ctx: InstallContext,
        command: str | None = None,
        *,
        guidance: tuple[str, ...] = (),
        message: str | None = None,
        notes: tuple[str, ...] = (),
    ) -> InstallOutcome:
        """Verified if ``command`` is now on PATH, else Failed(verification)."""
        command = command or self.command or self.name
        if ctx.shell.command_exists(command):
            return self.succeeded(ctx, message, *notes)
        return self.failed(
            ctx,
            FailureKind.VERIFICATION,
            f"Installation may have failed: {command} command not found after install.",
            *(guidance or (
                "The install location may not be in your PATH yet.",
                "Open a new terminal, or reload your shell profile, and try again.",
            )),
        )

    def install_package(
        self,
        ctx: InstallContext,
        manager: str,
        package: str | None = None,
        *,
        refresh: bool = False,
        verify_package: bool = False,
        notes: tuple[str, ...] = (),
        **options: Any,
    ) -> InstallOutcome:
        """The common manager-driven step.

        Checks the command, then the manager, optionally refreshes the
        package index, installs ``package`` and verifies either the
        command or (``verify_package``) the package.
        """
        package = package or self.name
        if self.has_command(ctx):
            return self.already_installed(ctx)

        adapter = ctx.adapter(manager)
        if not adapter.is_available():
            return self.missing_manager(ctx, adapter)

        if refresh:
            ctx.echo("Updating package lists...")
            if not adapter.update().success:
                logger.warning("%s: package index update failed", adapter.name)
                ctx.echo("Warning: Failed to update package lists. Continuing with installation...")

        ctx.echo(f"Installing {self.display_name} via {adapter.display_name}...")
        result = adapter.install(package, timeout=ctx.settings.timeout_for(self.name), **options)
        if not result.success:
            return self.command_failed(
                ctx, f"Failed to install {self.display_name} via {adapter.display_name}.", result.output,
            )

        if verify_package:
            if adapter.is_package_installed(package):
                return self.succeeded(ctx, None, *notes)
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                f"Installation may have failed: {package} package not found after install.",
            )
        return self.verify_command(ctx, notes=notes)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


# ── Standalone execution ────────────────────────────────────────


def run_standalone(installer: Installer) -> None:
    """Entry point for ``python -m devinstall.core.services.installers.<tool>``.

    Exits 1 when an exception escapes the installer, 0 otherwise.
    """
    setup_logging(level=resolve_level())
    try:
        ctx = InstallContext(settings=load_settings())
        ctx.shell.default_timeout = ctx.settings.default_timeout
        installer.install(ctx)
    except DevInstallError as e:
        click.secho(str(e), fg="red", err=True)
        sys.exit(1)
