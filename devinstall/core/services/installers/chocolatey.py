"""
Chocolatey — the Windows package manager most other Windows installers use.

Bootstrapped from the official ``install.ps1`` through PowerShell on
both native Windows and Git Bash. Not available anywhere else.
"""

from __future__ import annotations

from devinstall.adapters.package_managers.choco import CHOCO_KNOWN_PATH
from devinstall.core.models.platform import PlatformDescriptor, PlatformType
from devinstall.core.models.result import FailureKind, InstallOutcome
from devinstall.core.services.installers.base import (
    InstallContext,
    Installer,
    PlatformStep,
    run_standalone,
)

CHOCOLATEY_INSTALL_URL = "https://community.chocolatey.org/install.ps1"

BOOTSTRAP_SCRIPT = (
    "Set-ExecutionPolicy Bypass -Scope Process -Force; "
    "[System.Net.ServicePointManager]::SecurityProtocol = "
    "[System.Net.ServicePointManager]::SecurityProtocol -bor 3072; "
    f"iex ((New-Object System.Net.WebClient).DownloadString('{CHOCOLATEY_INSTALL_URL}'))"
)

_POWERSHELLS = ("powershell.exe", "powershell", "pwsh")

# Names used in the "not available" message
_PLATFORM_LABELS = {
    PlatformType.MACOS: "macOS",
    PlatformType.UBUNTU: "Ubuntu/Debian",
    PlatformType.DEBIAN: "Ubuntu/Debian",
    PlatformType.WSL: "WSL",
    PlatformType.RASPBIAN: "Raspberry Pi OS",
    PlatformType.AMAZON_LINUX: "Amazon Linux",
    PlatformType.RHEL: "Amazon Linux",
    PlatformType.FEDORA: "Amazon Linux",
}


class ChocolateyInstaller(Installer):
    name = "chocolatey"
    display_name = "Chocolatey"
    command = "choco"

    def dispatch_table(self) -> dict[PlatformType, PlatformStep]:
        return {
            PlatformType.WINDOWS: self.install_windows,
            PlatformType.GITBASH: self.install_gitbash,
        }

    def unsupported_message(self, platform: PlatformDescriptor) -> str:
        label = _PLATFORM_LABELS.get(platform.kind, platform.name) if platform.kind else platform.name
        return f"Chocolatey is not available for {label}."

    def is_installed(self, ctx: InstallContext | None = None) -> bool:
        ctx = ctx or InstallContext()
        return self.has_command(ctx)

    def _already(self, ctx: InstallContext) -> InstallOutcome:
        result = self.run(ctx, "choco --version")
        version = result.stdout.strip() if result.ok else ""
        if version:
            return self.already_installed(ctx, f"Chocolatey {version} is already installed, skipping...")
        return self.already_installed(ctx)

    def _bootstrap(self, ctx: InstallContext, causes: tuple[str, ...], manual: tuple[str, ...]) -> InstallOutcome | None:
        result = self.run(
            ctx, f'powershell.exe -NoProfile -ExecutionPolicy Bypass -Command "{BOOTSTRAP_SCRIPT}"',
        )
        if not result.ok:
            details = ["Common causes:", *causes, *manual]
            if result.stderr.strip():
                details += ["Error details:", result.stderr.rstrip()]
            return self.failed(ctx, FailureKind.COMMAND, "Failed to install Chocolatey.", *details)

        check = self.run(ctx, f"powershell.exe -NoProfile -Command \"Test-Path '{CHOCO_KNOWN_PATH}'\"")
        if not (check.ok and check.stdout.strip().lower() == "true"):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: Chocolatey was not found after install.",
                "Please try installing manually from an Administrator PowerShell.",
            )
        ctx.adapter("choco").add_bin_to_path()
        return None

    def install_windows(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self._already(ctx)

        if not any(self.has_command(ctx, shell) for shell in _POWERSHELLS):
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "PowerShell is required to install Chocolatey but was not found.",
                "PowerShell should be pre-installed on Windows 10 and later.",
            )

        ctx.echo("Installing Chocolatey via PowerShell...")
        ctx.echo("This requires Administrator privileges. If this script is not running")
        ctx.echo("as Administrator, the installation may fail.")
        problem = self._bootstrap(
            ctx,
            (
                "  1. Not running as Administrator",
                "  2. Network/firewall blocking the download",
                "  3. PowerShell execution policy restrictions",
            ),
            ("To install manually, open an Administrator PowerShell and run:", f"  {BOOTSTRAP_SCRIPT}"),
        )
        if problem:
            return problem
        return self.succeeded(
            ctx,
            None,
            "IMPORTANT: Close and reopen your terminal for PATH changes to take effect.",
            "Verify the installation by running:",
            "  choco --version",
            "Install your first package with:",
            "  choco install notepadplusplus -y",
        )

    def install_gitbash(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self._already(ctx)

        ctx.echo("Installing Chocolatey on the Windows host via PowerShell...")
        ctx.echo("This requires Administrator privileges. If Git Bash is not running")
        ctx.echo("as Administrator, the installation may fail.")
        problem = self._bootstrap(
            ctx,
            (
                "  1. Git Bash not running as Administrator",
                "  2. Network/firewall blocking the download",
                "  3. PowerShell execution policy restrictions",
            ),
            (
                "To install manually:",
                "  1. Close Git Bash",
                "  2. Open an Administrator PowerShell window",
                "  3. Run the Chocolatey installation command",
                "  4. Close and reopen Git Bash",
            ),
        )
        if problem:
            return problem
        return self.succeeded(
            ctx,
            None,
            "IMPORTANT: Close and reopen Git Bash for PATH changes to take effect.",
            "If choco is not found after reopening, add Chocolatey to your PATH:",
            "  echo 'export PATH=\"$PATH:/c/ProgramData/chocolatey/bin\"' >> ~/.bashrc",
            "  source ~/.bashrc",
            "Verify the installation by running:",
            "  choco --version",
        )


INSTALLER = ChocolateyInstaller()

if __name__ == "__main__":
    run_standalone(INSTALLER)
