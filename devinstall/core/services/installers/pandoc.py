"""
Pandoc — universal document converter.

RPM platforms have no current pandoc package, so they get the static
release tarball from GitHub, unpacked over /usr/local.
"""

from __future__ import annotations

import posixpath
import re

from devinstall.core.models.platform import PlatformType
from devinstall.core.models.result import FailureKind, InstallOutcome
from devinstall.core.services.installers.base import (
    InstallContext,
    Installer,
    PlatformStep,
    run_standalone,
)
from devinstall.core.services.installers.steps import select_asset, unsupported_arch_message

_RELEASE_BASE = "https://github.com/jgm/pandoc/releases/download"
_VERSION_RE = re.compile(r"pandoc\s+(\S+)")

_LATEX_HINTS = {
    PlatformType.MACOS: "Install BasicTeX with: brew install --cask basictex",
    PlatformType.AMAZON_LINUX: "sudo dnf install -y texlive texlive-latex texlive-xetex",
    PlatformType.WINDOWS: "choco install miktex -y",
}
_APT_LATEX_HINT = "sudo apt-get install -y texlive texlive-latex-extra"


def release_assets(version: str) -> dict[str, str]:
    """Linux tarball names by normalized architecture."""
    return {
        "amd64": f"pandoc-{version}-linux-amd64.tar.gz",
        "arm64": f"pandoc-{version}-linux-arm64.tar.gz",
    }


def release_url(version: str, asset: str) -> str:
    return f"{_RELEASE_BASE}/{version}/{asset}"


class PandocInstaller(Installer):
    name = "pandoc"
    display_name = "Pandoc"
    command = "pandoc"

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

    def get_version(self, ctx: InstallContext) -> str | None:
        if not self.has_command(ctx):
            return None
        result = self.run(ctx, "pandoc --version")
        if not result.ok:
            return None
        match = _VERSION_RE.search(result.stdout)
        return match.group(1) if match else None

    def _already(self, ctx: InstallContext) -> InstallOutcome | None:
        ctx.echo("Checking if Pandoc is already installed...")
        if not self.has_command(ctx):
            return None
        version = self.get_version(ctx)
        label = f"Pandoc {version}" if version else "Pandoc"
        return self.already_installed(ctx, f"{label} is already installed, skipping installation.")

    def _verified(self, ctx: InstallContext, *notes: str) -> InstallOutcome:
        if not self.has_command(ctx):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: pandoc command not found after install.",
                "Ensure /usr/local/bin is in your PATH:",
                "  echo 'export PATH=\"/usr/local/bin:$PATH\"' >> ~/.bashrc && source ~/.bashrc",
            )
        version = self.get_version(ctx)
        label = f"Pandoc {version}" if version else "Pandoc"
        return self.succeeded(ctx, f"{label} installed successfully.", *notes)

    def install_macos(self, ctx: InstallContext) -> InstallOutcome:
        already = self._already(ctx)
        if already:
            return already

        brew = ctx.adapter("brew")
        if not brew.is_available():
            return self.missing_manager(ctx, brew)
        if brew.is_package_installed("pandoc"):
            return self.already_installed(
                ctx, "Pandoc is already installed via Homebrew, skipping installation.",
            )

        ctx.echo("Installing Pandoc via Homebrew...")
        ctx.echo("This may take a moment as dependencies are installed...")
        result = brew.install("pandoc")
        if not result.success:
            return self.command_failed(ctx, "Failed to install Pandoc via Homebrew.", result.output)
        return self._verified(ctx, "NOTE: For PDF output, you need a LaTeX distribution.", _LATEX_HINTS[PlatformType.MACOS])

    def install_ubuntu(self, ctx: InstallContext) -> InstallOutcome:
        already = self._already(ctx)
        if already:
            return already

        apt = ctx.adapter("apt")
        if not apt.is_available():
            return self.missing_manager(ctx, apt)

        ctx.echo("Updating package lists...")
        if not apt.update().success:
            ctx.echo("Warning: Failed to update package lists. Continuing with installation...")

        ctx.echo("Installing Pandoc via APT...")
        result = apt.install("pandoc", timeout=ctx.settings.timeout_for(self.name))
        if not result.success:
            return self.command_failed(ctx, "Failed to install Pandoc via APT.", result.output)
        return self._verified(
            ctx,
            "NOTE: Repository versions may be older than the latest release.",
            f"For PDF output, install LaTeX: {_APT_LATEX_HINT}",
        )

    def install_amazon_linux(self, ctx: InstallContext) -> InstallOutcome:
        already = self._already(ctx)
        if already:
            return already

        version = ctx.settings.versions.pandoc
        assets = release_assets(version)
        arch = ctx.get_platform().architecture
        ctx.echo(f"Architecture: {arch}")
        asset = select_asset(assets, arch)
        if asset is None:
            return self.failed(
                ctx, FailureKind.UNSUPPORTED_ARCHITECTURE, unsupported_arch_message(arch, assets),
            )

        url = release_url(version, asset)
        tarball = posixpath.join(ctx.settings.download_dir, asset)
        ctx.echo("Downloading Pandoc from GitHub releases...")
        download = self.run(ctx, f'curl -L -o {tarball} "{url}"')
        if not download.ok:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to download Pandoc.",
                download.error_output.rstrip(),
                f'Try downloading manually: curl -L -o {tarball} "{url}"',
            )

        ctx.echo("Extracting Pandoc to /usr/local...")
        extract = self.run(ctx, f"sudo tar xvzf {tarball} --strip-components 1 -C /usr/local")
        if not extract.ok:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to extract Pandoc.",
                extract.error_output.rstrip(),
                "Ensure you have sudo privileges and /usr/local has enough space.",
            )

        ctx.echo("Cleaning up temporary files...")
        self.run(ctx, f"rm -f {tarball}")
        return self._verified(
            ctx,
            "Installation location: /usr/local/bin/pandoc",
            f"For PDF output, install LaTeX: {_LATEX_HINTS[PlatformType.AMAZON_LINUX]}",
        )

    def install_windows(self, ctx: InstallContext) -> InstallOutcome:
        ctx.echo("Checking if Pandoc is already installed...")
        choco = ctx.adapter("choco")
        if choco.is_package_installed("pandoc"):
            return self.already_installed(
                ctx, "Pandoc is already installed via Chocolatey, skipping installation.",
            )
        if self.has_command(ctx):
            return self.already_installed(ctx)
        if not choco.is_available():
            return self.missing_manager(ctx, choco)

        ctx.echo("Installing Pandoc via Chocolatey...")
        result = choco.install("pandoc", timeout=ctx.settings.timeout_for(self.name))
        if not result.success:
            return self.command_failed(ctx, "Failed to install Pandoc via Chocolatey.", result.output)
        if not choco.is_package_installed("pandoc"):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: pandoc package not found after install.",
            )
        return self.succeeded(
            ctx,
            "Pandoc installed successfully via Chocolatey.",
            "IMPORTANT: Open a new terminal window to refresh your PATH.",
            f"For PDF output, install MiKTeX: {_LATEX_HINTS[PlatformType.WINDOWS]}",
        )

    def install_gitbash(self, ctx: InstallContext) -> InstallOutcome:
        already = self._already(ctx)
        if already:
            return already

        choco = ctx.adapter("choco")
        if not choco.is_available():
            version = ctx.settings.versions.pandoc
            msi = release_url(version, f"pandoc-{version}-windows-x86_64.msi")
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "Pandoc is not installed and Chocolatey is not available.",
                "Option 1: install Chocolatey (dev install chocolatey), then: choco install pandoc -y",
                f"Option 2: download the MSI installer: {msi}",
                "After installation, restart Git Bash to pick up PATH changes.",
            )

        if choco.is_package_installed("pandoc"):
            return self.already_installed(
                ctx, "Pandoc is already installed via Chocolatey. Close and reopen Git Bash to refresh your PATH.",
            )

        ctx.echo("Chocolatey detected. Installing Pandoc via Chocolatey...")
        result = choco.install("pandoc", timeout=ctx.settings.timeout_for(self.name))
        if not result.success:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to install Pandoc via Chocolatey.",
                result.output.rstrip(),
                "Try running from an Administrator PowerShell: choco install pandoc -y",
            )
        if not choco.is_package_installed("pandoc"):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: pandoc package not found after install.",
            )
        return self.succeeded(
            ctx,
            "Pandoc installed successfully via Chocolatey.",
            "IMPORTANT: Close and reopen Git Bash to refresh your PATH.",
        )


INSTALLER = PandocInstaller()

if __name__ == "__main__":
    run_standalone(INSTALLER)
