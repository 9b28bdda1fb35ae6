"""
jq — command-line JSON processor.

Installed from the native package manager everywhere except Git Bash,
which gets the official Windows binary from GitHub releases.
"""

from __future__ import annotations

from devinstall.core.models.platform import PlatformType
from devinstall.core.models.result import FailureKind, InstallOutcome
from devinstall.core.services.installers.base import (
    InstallContext,
    Installer,
    PlatformStep,
    run_standalone,
)

_RELEASE_URL = "https://github.com/jqlang/jq/releases/download/jq-{version}/jq-windows-amd64.exe"
_GITBASH_TARGET = "/usr/local/bin/jq.exe"


class JqInstaller(Installer):
    name = "jq"
    display_name = "jq"
    command = "jq"

    def dispatch_table(self) -> dict[PlatformType, PlatformStep]:
        return {
            PlatformType.MACOS: self.install_macos,
            PlatformType.UBUNTU: self.install_ubuntu,
            PlatformType.DEBIAN: self.install_ubuntu,
            PlatformType.WSL: self.install_ubuntu,
            PlatformType.RASPBIAN: self.install_ubuntu,
            PlatformType.AMAZON_LINUX: self.install_amazon_linux,
            PlatformType.FEDORA: self.install_amazon_linux,
            PlatformType.RHEL: self.install_amazon_linux,
            PlatformType.WINDOWS: self.install_windows,
            PlatformType.GITBASH: self.install_gitbash,
        }

    def is_installed(self, ctx: InstallContext | None = None) -> bool:
        ctx = ctx or InstallContext()
        kind = ctx.get_platform().kind
        if kind == PlatformType.MACOS:
            return ctx.adapter("brew").is_package_installed("jq")
        if kind == PlatformType.WINDOWS:
            return ctx.adapter("choco").is_package_installed("jq")
        return self.has_command(ctx)

    def install_macos(self, ctx: InstallContext) -> InstallOutcome:
        return self.install_package(ctx, "brew")

    def install_ubuntu(self, ctx: InstallContext) -> InstallOutcome:
        return self.install_package(ctx, "apt", refresh=True)

    def install_amazon_linux(self, ctx: InstallContext) -> InstallOutcome:
        return self.install_package(ctx, "dnf")

    def install_windows(self, ctx: InstallContext) -> InstallOutcome:
        choco = ctx.adapter("choco")
        if not choco.is_available():
            return self.missing_manager(ctx, choco)
        if choco.is_package_installed("jq"):
            return self.already_installed(ctx, "jq is already installed via Chocolatey, skipping...")
        if self.has_command(ctx):
            return self.already_installed(ctx)

        ctx.echo("Installing jq via Chocolatey...")
        result = choco.install("jq", timeout=ctx.settings.timeout_for(self.name))
        if not result.success:
            return self.command_failed(ctx, "Failed to install jq via Chocolatey.", result.output)

        if not choco.is_package_installed("jq"):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: jq package not found after install.",
            )
        return self.succeeded(
            ctx,
            "jq installed successfully via Chocolatey.",
            "Note: You may need to open a new terminal window for the PATH update to take effect.",
        )

    def install_gitbash(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self.already_installed(ctx)

        ctx.echo("Creating /usr/local/bin directory if needed...")
        mkdir = self.run(ctx, "mkdir -p /usr/local/bin")
        if not mkdir.ok:
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "Failed to create /usr/local/bin directory.",
                "Try running Git Bash as Administrator.",
            )

        url = _RELEASE_URL.format(version=ctx.settings.versions.jq)
        ctx.echo("Downloading jq from GitHub releases...")
        download = self.run(ctx, f'curl -L -o {_GITBASH_TARGET} "{url}"')
        if not download.ok:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to download jq binary.",
                download.error_output.rstrip(),
                "If you encounter SSL certificate errors, try running:",
                f'  curl -k -L -o {_GITBASH_TARGET} "{url}"',
            )

        return self.verify_command(ctx, guidance=(
            "The /usr/local/bin directory may not be in your PATH. Add it manually:",
            "  echo 'export PATH=\"/usr/local/bin:$PATH\"' >> ~/.bashrc && source ~/.bashrc",
        ))


INSTALLER = JqInstaller()

if __name__ == "__main__":
    run_standalone(INSTALLER)
