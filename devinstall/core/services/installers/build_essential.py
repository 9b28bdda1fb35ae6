"""
build-essential — C/C++ compiler toolchain and make.

The equivalent differs per platform: Xcode Command Line Tools on
macOS, the ``build-essential`` metapackage on Debian derivatives, the
"Development Tools" group on RPM distributions and the Visual Studio
2022 Build Tools with the C++ workload on Windows.
"""

from __future__ import annotations

from devinstall.core.models.platform import PlatformDescriptor, PlatformType
from devinstall.core.models.result import FailureKind, InstallOutcome
from devinstall.core.services.installers.base import (
    InstallContext,
    Installer,
    PlatformStep,
    run_standalone,
)

# softwareupdate only lists the CLT while this placeholder exists
CLT_PLACEHOLDER = "/tmp/.com.apple.dt.CommandLineTools.installondemand.in-progress"
CLT_DOWNLOAD_URL = "https://developer.apple.com/download/all/?q=command%20line%20tools"

XCODE_TIMEOUT = 900
VCTOOLS_TIMEOUT = 1200

VS_BUILD_TOOLS = "visualstudio2022buildtools"
VS_CPP_WORKLOAD = "visualstudio2022-workload-vctools"

_GITBASH_GUIDANCE = (
    "To install build tools for Git Bash, you have two options:",
    "Option 1: Use Visual Studio Build Tools (recommended for Windows development)",
    "  Run this installer on Windows (not Git Bash): dev install build-essential",
    "Option 2: Install MSYS2/MinGW toolchain manually",
    "  1. Download MSYS2 from https://www.msys2.org/",
    "  2. Open MSYS2 MINGW64 terminal and run:",
    "     pacman -Syu --noconfirm",
    "     pacman -S --noconfirm --needed mingw-w64-x86_64-toolchain",
    "  3. Add to your ~/.bashrc:",
    '     export PATH="/c/msys64/mingw64/bin:$PATH"',
)


class BuildEssentialInstaller(Installer):
    name = "build-essential"
    display_name = "build-essential"
    command = "gcc"

    def dispatch_table(self) -> dict[PlatformType, PlatformStep]:
        return {
            PlatformType.MACOS: self.install_macos,
            PlatformType.UBUNTU: self.install_ubuntu,
            PlatformType.DEBIAN: self.install_ubuntu,
            PlatformType.WSL: self.install_ubuntu,
            PlatformType.RASPBIAN: self.install_raspbian,
            PlatformType.AMAZON_LINUX: self.install_amazon_linux,
            PlatformType.RHEL: self.install_amazon_linux,
            PlatformType.FEDORA: self.install_amazon_linux,
            PlatformType.WINDOWS: self.install_windows,
        }

    def unsupported_message(self, platform: PlatformDescriptor) -> str:
        message = f"Build essential tools are not available for {platform.name}."
        if platform.kind == PlatformType.GITBASH:
            return "\n".join((message, *_GITBASH_GUIDANCE))
        return message

    def is_installed(self, ctx: InstallContext | None = None) -> bool:
        ctx = ctx or InstallContext()
        kind = ctx.get_platform().kind
        if kind == PlatformType.MACOS:
            return self.xcode_clt_installed(ctx)
        if kind == PlatformType.WINDOWS:
            choco = ctx.adapter("choco")
            return choco.is_package_installed(VS_BUILD_TOOLS) and choco.is_package_installed(VS_CPP_WORKLOAD)
        return self.toolchain_on_path(ctx)

    def toolchain_on_path(self, ctx: InstallContext) -> bool:
        return self.has_command(ctx, "gcc") and self.has_command(ctx, "make")

    def xcode_clt_installed(self, ctx: InstallContext) -> bool:
        return self.run(ctx, "xcode-select -p").ok

    def _verify_toolchain(self, ctx: InstallContext, message: str | None = None) -> InstallOutcome:
        if not self.toolchain_on_path(ctx):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation completed but gcc or make not found in PATH.",
            )
        return self.succeeded(ctx, message)

    # ── macOS ───────────────────────────────────────────────────

    def install_macos(self, ctx: InstallContext) -> InstallOutcome:
        if self.xcode_clt_installed(ctx):
            return self.already_installed(ctx, "Xcode Command Line Tools are already installed, skipping...")

        ctx.echo("Installing Xcode Command Line Tools...")
        ctx.echo("Note: This may take 5-15 minutes depending on your internet connection.")
        if not self.run(ctx, f"touch {CLT_PLACEHOLDER}").ok:
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "Failed to create placeholder file for Xcode CLI tools installation.",
            )

        listing = self.run(
            ctx,
            'softwareupdate -l 2>/dev/null | grep -o ".*Command Line Tools.*" | tail -n 1'
            ' | sed "s/^[[:space:]]*//" | sed "s/^Label: //"',
        )
        label = listing.stdout.strip() if listing.ok else ""
        if not label:
            self.run(ctx, f"rm -f {CLT_PLACEHOLDER}")
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "Could not find Command Line Tools package.",
                f"Try downloading directly from {CLT_DOWNLOAD_URL}",
            )
        ctx.echo(f"Found package: {label}")

        result = self.run(
            ctx,
            f'softwareupdate -i "{label}" --verbose',
            timeout=ctx.settings.timeouts.get(self.name, XCODE_TIMEOUT),
        )
        self.run(ctx, f"rm -f {CLT_PLACEHOLDER}")
        if not result.ok:
            return self.command_failed(ctx, "Installation of Xcode Command Line Tools failed.", result.error_output)

        if not self.xcode_clt_installed(ctx):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation completed but Xcode Command Line Tools not found.",
                "Please try again or install manually with: xcode-select --install",
            )
        return self.succeeded(ctx, "Xcode Command Line Tools installed successfully.")

    # ── Linux ───────────────────────────────────────────────────

    def install_ubuntu(self, ctx: InstallContext, *notes: str) -> InstallOutcome:
        apt = ctx.adapter("apt")
        if self.toolchain_on_path(ctx) and apt.is_package_installed("build-essential"):
            return self.already_installed(ctx)
        if not apt.is_available():
            return self.missing_manager(ctx, apt)

        ctx.echo("Installing build-essential via APT...")
        for note in notes:
            ctx.echo(note)
        ctx.echo("Updating package lists...")
        update = apt.update(noninteractive=True)
        if not update.success:
            return self.command_failed(ctx, "Failed to update package lists.", update.output)

        ctx.echo("Installing build-essential package...")
        result = apt.install(
            "build-essential", noninteractive=True, timeout=ctx.settings.timeout_for(self.name),
        )
        if not result.success:
            return self.command_failed(ctx, "Failed to install build-essential.", result.output)
        return self._verify_toolchain(ctx)

    def install_raspbian(self, ctx: InstallContext) -> InstallOutcome:
        return self.install_ubuntu(ctx, "Note: Installation may take 5-10 minutes on Raspberry Pi.")

    def install_amazon_linux(self, ctx: InstallContext) -> InstallOutcome:
        if self.toolchain_on_path(ctx):
            return self.already_installed(ctx, "Development Tools appear to be already installed, skipping...")

        rpm = ctx.adapter("dnf")
        if not rpm.is_available():
            return self.missing_manager(ctx, rpm)

        ctx.echo("Installing Development Tools...")
        ctx.echo(f"Using {rpm.display_name} package manager...")
        result = rpm.group_install("Development Tools", timeout=ctx.settings.timeout_for(self.name))
        if not result.success:
            return self.command_failed(ctx, "Failed to install Development Tools.", result.output)
        return self._verify_toolchain(ctx, "Development Tools installed successfully.")

    # ── Windows ─────────────────────────────────────────────────

    def install_windows(self, ctx: InstallContext) -> InstallOutcome:
        choco = ctx.adapter("choco")
        if not choco.is_available():
            return self.missing_manager(ctx, choco)

        have_build_tools = choco.is_package_installed(VS_BUILD_TOOLS)
        have_workload = choco.is_package_installed(VS_CPP_WORKLOAD)
        if have_build_tools and have_workload:
            return self.already_installed(ctx, "Visual Studio Build Tools are already installed, skipping...")

        ctx.echo("Installing Visual Studio Build Tools...")
        ctx.echo("Note: This may take 10-20 minutes and requires approximately 5-8 GB of disk space.")
        timeout = ctx.settings.timeouts.get(self.name, VCTOOLS_TIMEOUT)
        if not have_build_tools:
            ctx.echo("Installing Visual Studio 2022 Build Tools...")
            result = choco.install(VS_BUILD_TOOLS, timeout=timeout)
            if not result.success:
                return self.command_failed(ctx, "Failed to install Visual Studio Build Tools.", result.output)
        if not have_workload:
            ctx.echo("Installing C++ build tools workload...")
            result = choco.install(VS_CPP_WORKLOAD, params="--includeRecommended", timeout=timeout)
            if not result.success:
                return self.command_failed(ctx, "Failed to install C++ workload.", result.output)

        if not (choco.is_package_installed(VS_BUILD_TOOLS) and choco.is_package_installed(VS_CPP_WORKLOAD)):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: Visual Studio Build Tools packages not found after install.",
            )
        return self.succeeded(
            ctx,
            "Visual Studio Build Tools installed successfully.",
            'Note: Use "Developer Command Prompt for VS 2022" or "Developer PowerShell for VS 2022"'
            " to access the build tools.",
        )


INSTALLER = BuildEssentialInstaller()

if __name__ == "__main__":
    run_standalone(INSTALLER)
