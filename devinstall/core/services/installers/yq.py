"""
yq — YAML/JSON/XML processor.

This is always Mike Farah's Go yq (github.com/mikefarah/yq), never the
Python ``yq`` wrapper around jq that pip and some apt repositories ship.
Homebrew, Snap and Chocolatey all package the Go yq under the name
``yq``; elsewhere the release binary is downloaded directly.
"""

from __future__ import annotations

import re

from devinstall.core.models.platform import PlatformType
from devinstall.core.models.result import FailureKind, InstallOutcome
from devinstall.core.services.installers.base import (
    Dependency,
    InstallContext,
    Installer,
    PlatformStep,
    run_standalone,
)
from devinstall.core.services.installers.steps import select_asset, unsupported_arch_message

_RELEASE_BASE = "https://github.com/mikefarah/yq/releases/latest/download"

# Release assets by normalized architecture
LINUX_ASSETS = {
    "amd64": f"{_RELEASE_BASE}/yq_linux_amd64",
    "arm64": f"{_RELEASE_BASE}/yq_linux_arm64",
}
RASPBIAN_ASSETS = {
    "arm64": f"{_RELEASE_BASE}/yq_linux_arm64",
    "arm": f"{_RELEASE_BASE}/yq_linux_arm",
}
WINDOWS_ASSET = f"{_RELEASE_BASE}/yq_windows_amd64.exe"

_VERSION_RE = re.compile(r"version\s+(v?[\d.]+)")

_LOCAL_BIN_GUIDANCE = (
    "/usr/local/bin may not be in your PATH. Add it:",
    "echo 'export PATH=\"/usr/local/bin:$PATH\"' >> ~/.bashrc && source ~/.bashrc",
)


def parse_yq_version(text: str) -> str | None:
    """``yq (https://github.com/mikefarah/yq/) version v4.50.1`` -> ``v4.50.1``."""
    match = _VERSION_RE.search(text or "")
    return match.group(1) if match else None


class YqInstaller(Installer):
    name = "yq"
    display_name = "yq"
    command = "yq"
    depends_on = (
        Dependency("chocolatey", frozenset({PlatformType.WINDOWS}), priority=1),
    )

    def dispatch_table(self) -> dict[PlatformType, PlatformStep]:
        return {
            PlatformType.MACOS: self.install_macos,
            PlatformType.UBUNTU: self.install_ubuntu,
            PlatformType.DEBIAN: self.install_ubuntu,
            PlatformType.WSL: self.install_wsl,
            PlatformType.RASPBIAN: self.install_raspbian,
            PlatformType.AMAZON_LINUX: self.install_amazon_linux,
            PlatformType.RHEL: self.install_amazon_linux,
            PlatformType.FEDORA: self.install_amazon_linux,
            PlatformType.WINDOWS: self.install_windows,
            PlatformType.GITBASH: self.install_gitbash,
        }

    def get_version(self, ctx: InstallContext) -> str | None:
        if not self.has_command(ctx):
            return None
        result = self.run(ctx, "yq --version")
        return parse_yq_version(result.stdout) if result.ok else None

    def _already(self, ctx: InstallContext) -> InstallOutcome:
        version = self.get_version(ctx)
        return self.already_installed(ctx, f"yq is already installed (version {version}), skipping...")

    def _verify(self, ctx: InstallContext, guidance: tuple[str, ...], via: str = "") -> InstallOutcome:
        if self.has_command(ctx):
            version = self.get_version(ctx)
            return self.succeeded(ctx, f"yq installed successfully{via} (version {version}).")
        return self.failed(
            ctx, FailureKind.VERIFICATION, "Installation completed but yq command not found.", *guidance,
        )

    def _download_linux(self, ctx: InstallContext, url: str) -> InstallOutcome:
        result = self.run(
            ctx,
            f'sudo curl -L -o /usr/local/bin/yq "{url}" && sudo chmod +x /usr/local/bin/yq',
        )
        if not result.ok:
            return self.command_failed(ctx, "Failed to download yq binary.", result.error_output)
        return self._verify(ctx, _LOCAL_BIN_GUIDANCE)

    def install_macos(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self._already(ctx)
        brew = ctx.adapter("brew")
        if not brew.is_available():
            return self.missing_manager(ctx, brew)

        ctx.echo("Installing yq via Homebrew...")
        result = brew.install("yq")
        if not result.success:
            return self.command_failed(ctx, "Failed to install yq via Homebrew.", result.output)
        return self._verify(ctx, (
            "You may need to restart your terminal or add Homebrew to your PATH.",
            'Run: eval "$(/opt/homebrew/bin/brew shellenv)"',
        ))

    def install_ubuntu(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self._already(ctx)

        snap = ctx.adapter("snap")
        if not snap.is_available():
            ctx.echo("Snap is not available. Installing snapd...")
            apt = ctx.adapter("apt")
            update = apt.update(noninteractive=True)
            result = apt.install("snapd", noninteractive=True) if update.success else update
            if not result.success:
                return self.failed(
                    ctx,
                    FailureKind.COMMAND,
                    "Failed to install snapd.",
                    result.output.rstrip(),
                    "You may need to reboot after installing snapd, then try again.",
                )
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "snapd installed. You may need to reboot and run this installer again.",
            )

        ctx.echo("Installing yq via Snap...")
        result = snap.install("yq")
        if not result.success:
            return self.command_failed(ctx, "Failed to install yq via Snap.", result.output)
        return self._verify(ctx, (
            "Snap binaries may not be in your PATH. Add Snap's bin directory:",
            "echo 'export PATH=\"/snap/bin:$PATH\"' >> ~/.bashrc && source ~/.bashrc",
        ))

    def install_wsl(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self._already(ctx)
        ctx.echo("Installing yq via direct binary download (recommended for WSL)...")
        return self._download_linux(ctx, LINUX_ASSETS["amd64"])

    def install_raspbian(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self._already(ctx)

        arch = ctx.get_platform().architecture
        url = select_asset(RASPBIAN_ASSETS, arch)
        if url is None:
            return self.failed(
                ctx,
                FailureKind.UNSUPPORTED_ARCHITECTURE,
                unsupported_arch_message(arch, RASPBIAN_ASSETS),
            )
        ctx.echo(f"Detected architecture: {arch}")

        snap = ctx.adapter("snap")
        if url == RASPBIAN_ASSETS["arm64"] and snap.is_available():
            ctx.echo("Installing yq via Snap...")
            if snap.install("yq").success and self.has_command(ctx):
                return self._verify(ctx, (), via=" via Snap")
            ctx.echo("Snap installation failed, falling back to direct binary download...")

        ctx.echo("Installing yq via direct binary download...")
        return self._download_linux(ctx, url)

    def install_amazon_linux(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self._already(ctx)

        arch = ctx.get_platform().architecture
        url = select_asset(LINUX_ASSETS, arch)
        if url is None:
            return self.failed(
                ctx,
                FailureKind.UNSUPPORTED_ARCHITECTURE,
                unsupported_arch_message(arch, LINUX_ASSETS),
            )
        ctx.echo(f"Detected architecture: {arch}")
        ctx.echo("Downloading yq from GitHub releases...")
        return self._download_linux(ctx, url)

    def install_windows(self, ctx: InstallContext) -> InstallOutcome:
        choco = ctx.adapter("choco")
        if not choco.is_available():
            return self.missing_manager(ctx, choco)
        if choco.is_package_installed("yq"):
            version = choco.get_package_version("yq")
            return self.already_installed(
                ctx, f"yq is already installed via Chocolatey (version {version}), skipping...",
            )
        if self.has_command(ctx):
            return self._already(ctx)

        ctx.echo("Installing yq via Chocolatey...")
        result = choco.install("yq", timeout=ctx.settings.timeout_for(self.name))
        if not result.success:
            return self.command_failed(ctx, "Failed to install yq via Chocolatey.", result.output)
        if not choco.is_package_installed("yq"):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation completed but could not verify yq package.",
                "Try opening a new terminal window and run: yq --version",
            )
        return self.succeeded(
            ctx,
            "yq installed successfully via Chocolatey.",
            "Note: You may need to open a new terminal window for the PATH update to take effect.",
        )

    def install_gitbash(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self._already(ctx)

        ctx.echo("Creating /usr/local/bin directory if needed...")
        if not self.run(ctx, "mkdir -p /usr/local/bin").ok:
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "Failed to create /usr/local/bin directory.",
                "Try running Git Bash as Administrator.",
            )

        ctx.echo("Downloading yq from GitHub releases...")
        download = self.run(ctx, f'curl -L -o /usr/local/bin/yq.exe "{WINDOWS_ASSET}"')
        if not download.ok:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to download yq binary.",
                download.error_output.rstrip(),
                "If you encounter SSL certificate errors, try running:",
                f'  curl -k -L -o /usr/local/bin/yq.exe "{WINDOWS_ASSET}"',
            )
        return self._verify(ctx, (
            "The /usr/local/bin directory may not be in your PATH. Add it manually:",
            "  echo 'export PATH=\"/usr/local/bin:$PATH\"' >> ~/.bashrc && source ~/.bashrc",
        ))


INSTALLER = YqInstaller()

if __name__ == "__main__":
    run_standalone(INSTALLER)
