"""
file — identify file types by content (libmagic).

macOS ships ``file`` with the OS, so there is nothing to install there.
Git Bash gets the ezwinports build plus its compiled magic database.
"""

from __future__ import annotations

import posixpath

from devinstall.core.models.platform import PlatformType
from devinstall.core.models.result import FailureKind, InstallOutcome
from devinstall.core.services.installers.base import (
    InstallContext,
    Installer,
    PlatformStep,
    run_standalone,
)
from devinstall.core.services.installers.steps import append_to_profile, shell_config_line

EZWINPORTS_URL = "https://sourceforge.net/projects/ezwinports/files/file-5.41-w32-bin.zip/download"
MAGIC_FILE = "/usr/local/share/misc/magic.mgc"


class FileInstaller(Installer):
    name = "file"
    display_name = "file"
    command = "file"

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

    def install_macos(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self.already_installed(ctx, "file is already installed (system-provided), skipping...")
        return self.failed(
            ctx,
            FailureKind.PREREQUISITE,
            "The file command was not found. This is unexpected on macOS.",
            "The file command should be pre-installed as part of macOS.",
            "If you need to install it manually, you can use Homebrew:",
            "  brew install file-formula",
            'The Homebrew package is named "file-formula" because macOS already includes',
            "a system file command. It is keg-only and must be run via its full path:",
            "  $(brew --prefix)/opt/file-formula/bin/file",
        )

    def install_ubuntu(self, ctx: InstallContext) -> InstallOutcome:
        return self.install_package(ctx, "apt", refresh=True)

    def install_amazon_linux(self, ctx: InstallContext) -> InstallOutcome:
        return self.install_package(ctx, "dnf")

    def install_windows(self, ctx: InstallContext) -> InstallOutcome:
        choco = ctx.adapter("choco")
        if not choco.is_available():
            return self.missing_manager(ctx, choco)
        if choco.is_package_installed("file"):
            return self.already_installed(ctx, "file is already installed via Chocolatey, skipping...")
        if self.has_command(ctx):
            return self.already_installed(ctx)

        ctx.echo("Installing file via Chocolatey...")
        result = choco.install("file", timeout=ctx.settings.timeout_for(self.name))
        if not result.success:
            return self.command_failed(ctx, "Failed to install file via Chocolatey.", result.output)
        if not choco.is_package_installed("file"):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: file package not found after install.",
            )
        return self.succeeded(
            ctx,
            "file installed successfully via Chocolatey.",
            "Note: You may need to open a new terminal window for the PATH update to take effect.",
        )

    def install_gitbash(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self.already_installed(ctx)

        if not self.has_command(ctx, "curl"):
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "curl is not available. Please ensure Git for Windows is installed correctly.",
            )
        if not self.has_command(ctx, "unzip"):
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "unzip is not available.",
                "Please download file manually from https://sourceforge.net/projects/ezwinports/files/",
                "and place file.exe in /usr/local/bin",
            )

        for directory in ("/usr/local/bin", posixpath.dirname(MAGIC_FILE)):
            ctx.echo(f"Creating {directory} directory if needed...")
            if not self.run(ctx, f"mkdir -p {directory}").ok:
                return self.failed(
                    ctx,
                    FailureKind.PREREQUISITE,
                    f"Failed to create {directory} directory.",
                    "Try running Git Bash as Administrator.",
                )

        archive = posixpath.join(ctx.settings.download_dir, "file.zip")
        extract_dir = posixpath.join(ctx.settings.download_dir, "file-extract")
        ctx.echo("Downloading file from ezwinports...")
        download = self.run(
            ctx,
            f'curl -L -o {archive} "{EZWINPORTS_URL}"'
            f" && unzip -o {archive} -d {extract_dir}"
            f" && cp {extract_dir}/bin/file.exe /usr/local/bin/"
            f" && cp {extract_dir}/bin/*.dll /usr/local/bin/"
            f" && cp {extract_dir}/share/misc/magic.mgc {posixpath.dirname(MAGIC_FILE)}/"
            f" && rm -rf {archive} {extract_dir}",
        )
        if not download.ok:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to download or extract file binary.",
                download.error_output.rstrip(),
                "If you encounter SSL certificate errors, try running:",
                f'  curl -k -L -o {archive} "{EZWINPORTS_URL}"',
            )

        ctx.echo("Configuring MAGIC environment variable...")
        magic_line = shell_config_line(env_var=("MAGIC", MAGIC_FILE))
        try:
            append_to_profile(ctx.home_dir / ".bashrc", magic_line, marker="export MAGIC=")
        except OSError as e:
            ctx.echo(f"Warning: Failed to add MAGIC environment variable to ~/.bashrc: {e}")
            ctx.echo("You may need to manually add this line to your ~/.bashrc:")
            ctx.echo(f"  {magic_line}")

        if not self.run(ctx, "test -f /usr/local/bin/file.exe").ok:
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: file.exe not found after install.",
            )
        return self.succeeded(
            ctx,
            None,
            'Note: Run "source ~/.bashrc" or open a new terminal for the MAGIC',
            "environment variable to take effect.",
        )


INSTALLER = FileInstaller()

if __name__ == "__main__":
    run_standalone(INSTALLER)
