"""
Pngyu — PNG compression front end for pngquant.

The GUI only exists for older macOS and native Windows. Every other
platform, and macOS 15 or later, gets the pngquant CLI that Pngyu
wraps. RPM platforms without a pngquant package build it from source.
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
from devinstall.core.services.platform_detection import get_macos_major_version

PNGYU_APP = "/Applications/Pngyu.app"
PNGQUANT_WINDOWS_URL = "https://pngquant.org/pngquant-windows.zip"
PNGQUANT_REPO = "https://github.com/kornelski/pngquant.git"
RUSTUP_COMMAND = 'curl --proto "=https" --tlsv1.2 -sSf https://sh.rustup.rs | sh -s -- -y'

# First macOS release Pngyu no longer runs on
SEQUOIA = 15

_USAGE = (
    "Usage examples:",
    "  pngquant --quality=80-90 image.png",
    "  pngquant --quality=80-90 --output compressed.png image.png",
)
_BATCH_USAGE = (
    "For batch compression:",
    '  find . -name "*.png" -exec pngquant --quality=80-90 --force --ext .png {} \\;',
)


class PngyuInstaller(Installer):
    name = "pngyu"
    display_name = "Pngyu"
    command = "pngquant"
    requires_desktop = True

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

    def is_installed(self, ctx: InstallContext | None = None) -> bool:
        ctx = ctx or InstallContext()
        kind = ctx.get_platform().kind
        if kind == PlatformType.MACOS:
            brew = ctx.adapter("brew")
            return (
                brew.is_cask_installed("pngyu")
                or brew.is_package_installed("pngquant")
                or self.app_installed(ctx)
            )
        if kind == PlatformType.WINDOWS:
            return ctx.adapter("choco").is_package_installed("pngyu")
        return self.has_command(ctx)

    def app_installed(self, ctx: InstallContext) -> bool:
        return self.run(ctx, f'test -d "{PNGYU_APP}"').ok

    def pngquant_version(self, ctx: InstallContext, binary: str = "pngquant") -> str | None:
        if binary == "pngquant" and not self.has_command(ctx):
            return None
        result = self.run(ctx, f"{binary} --version")
        if not result.ok or not result.stdout.strip():
            return None
        return result.stdout.strip().split()[0]

    def _pngquant_already(self, ctx: InstallContext) -> InstallOutcome | None:
        version = self.pngquant_version(ctx)
        if version:
            return self.already_installed(ctx, f"pngquant {version} is already installed, skipping...")
        return None

    def _pngquant_verified(
        self,
        ctx: InstallContext,
        *notes: str,
        via: str = "",
        guidance: tuple[str, ...] = (),
    ) -> InstallOutcome:
        version = self.pngquant_version(ctx)
        if not version:
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: pngquant command not found after install.",
                *guidance,
            )
        return self.succeeded(ctx, f"pngquant {version} installed successfully{via}.", *notes)

    # ── macOS ───────────────────────────────────────────────────

    def install_macos(self, ctx: InstallContext) -> InstallOutcome:
        brew = ctx.adapter("brew")
        if not brew.is_available():
            return self.missing_manager(ctx, brew)

        major = get_macos_major_version(ctx.shell)
        ctx.echo(f"Detected macOS version: {major or 'unknown'}")
        if major is not None and major >= SEQUOIA:
            ctx.echo("NOTE: Pngyu is not compatible with macOS 15 (Sequoia) and later.")
            ctx.echo("Installing pngquant CLI tool instead...")
            return self.install_pngquant_brew(ctx)

        ctx.echo("Checking if Pngyu is already installed...")
        if self.app_installed(ctx):
            return self.already_installed(ctx, "Pngyu is already installed, skipping...")
        if brew.is_cask_installed("pngyu"):
            return self.already_installed(ctx, "Pngyu is already installed via Homebrew, skipping...")
        # an earlier run may have fallen back to pngquant
        if brew.is_package_installed("pngquant"):
            return self.already_installed(ctx, "pngquant is already installed via Homebrew, skipping...")

        ctx.echo("Installing Pngyu via Homebrew Cask...")
        result = brew.install_cask("pngyu")
        if not result.success:
            if "discontinued" in result.output or "unavailable" in result.output:
                ctx.echo("NOTE: Pngyu has been discontinued in Homebrew.")
                ctx.echo("Installing pngquant CLI tool as the alternative...")
                return self.install_pngquant_brew(ctx)
            return self.command_failed(ctx, "Failed to install Pngyu via Homebrew Cask.", result.output)

        if not self.app_installed(ctx):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: Pngyu.app not found in /Applications.",
                "If you encounter Gatekeeper issues, try:",
                f"  xattr -d com.apple.quarantine {PNGYU_APP}",
            )
        return self.succeeded(
            ctx,
            "Pngyu installed successfully.",
            "You can find Pngyu in your Applications folder.",
            "NOTE: On Apple Silicon Macs, Pngyu runs through Rosetta 2.",
            "For better performance, consider using pngquant CLI:",
            "  brew install pngquant",
        )

    def install_pngquant_brew(self, ctx: InstallContext) -> InstallOutcome:
        already = self._pngquant_already(ctx)
        if already:
            return already
        brew = ctx.adapter("brew")
        if brew.is_package_installed("pngquant"):
            return self.already_installed(ctx, "pngquant is already installed via Homebrew, skipping...")

        ctx.echo("Installing pngquant via Homebrew...")
        result = brew.install("pngquant")
        if not result.success:
            return self.command_failed(ctx, "Failed to install pngquant via Homebrew.", result.output)
        return self._pngquant_verified(ctx, *_USAGE, *_BATCH_USAGE)

    # ── Linux ───────────────────────────────────────────────────

    def _install_pngquant_apt(self, ctx: InstallContext, *notes: str) -> InstallOutcome:
        already = self._pngquant_already(ctx)
        if already:
            return already

        apt = ctx.adapter("apt")
        if not apt.is_available():
            return self.missing_manager(ctx, apt)
        ctx.echo("Updating package lists...")
        if not apt.update().success:
            ctx.echo("Warning: Failed to update package lists. Continuing with installation...")

        ctx.echo("Installing pngquant via APT...")
        result = apt.install("pngquant", timeout=ctx.settings.timeout_for(self.name))
        if not result.success:
            return self.command_failed(ctx, "Failed to install pngquant via APT.", result.output)
        return self._pngquant_verified(ctx, *_USAGE, *notes)

    def install_ubuntu(self, ctx: InstallContext) -> InstallOutcome:
        ctx.echo("NOTE: Pngyu GUI is not available for Linux.")
        ctx.echo("Installing pngquant CLI tool instead...")
        return self._install_pngquant_apt(ctx, *_BATCH_USAGE)

    def install_wsl(self, ctx: InstallContext) -> InstallOutcome:
        ctx.echo("Detected Ubuntu running in WSL (Windows Subsystem for Linux).")
        ctx.echo("Installing pngquant CLI tool instead...")
        return self._install_pngquant_apt(
            ctx,
            "WSL TIPS:",
            "  - Access Windows files through /mnt/c/, /mnt/d/, etc.",
            "  - Example: pngquant --quality=80-90 /mnt/c/Users/You/Pictures/image.png",
            "  - For better I/O performance, copy files to Linux filesystem first.",
        )

    def install_raspbian(self, ctx: InstallContext) -> InstallOutcome:
        ctx.echo("NOTE: Pngyu GUI is not available for Raspberry Pi OS.")
        ctx.echo("Installing pngquant CLI tool instead...")
        return self._install_pngquant_apt(
            ctx,
            "RASPBERRY PI TIP:",
            "  For faster compression on Raspberry Pi, use higher speed settings:",
            "  pngquant --speed 10 --quality=80-90 image.png",
        )

    def install_amazon_linux(self, ctx: InstallContext) -> InstallOutcome:
        ctx.echo(f"NOTE: Pngyu GUI is not available for {ctx.get_platform().name}.")
        ctx.echo("Installing pngquant CLI tool instead...")
        already = self._pngquant_already(ctx)
        if already:
            return already

        rpm = ctx.adapter("dnf")
        if not rpm.is_available():
            return self.missing_manager(ctx, rpm)

        if rpm.display_name == "yum":
            ctx.echo("Attempting to install pngquant via EPEL...")
            if self.run(ctx, "sudo amazon-linux-extras install epel -y").ok:
                if rpm.install("pngquant").success and self.pngquant_version(ctx):
                    return self._pngquant_verified(ctx, *_USAGE, *_BATCH_USAGE, via=" via EPEL")
            ctx.echo("EPEL installation failed. Falling back to source compilation...")
        return self.install_from_source(ctx)

    def install_from_source(self, ctx: InstallContext) -> InstallOutcome:
        """Build pngquant with cargo and copy it to /usr/local/bin."""
        ctx.echo("Installing pngquant from source...")
        ctx.echo("This may take several minutes...")
        rpm = ctx.adapter("dnf")
        timeout = ctx.settings.timeout_for(self.name)

        ctx.echo("Installing build dependencies...")
        deps = rpm.group_install("Development Tools", timeout=timeout)
        if deps.success:
            deps = rpm.install("libpng-devel cmake git", timeout=timeout)
        if not deps.success:
            return self.command_failed(ctx, "Failed to install build dependencies.", deps.output)

        cargo_bin = ctx.home_dir / ".cargo" / "bin"
        if not self.has_command(ctx, "cargo"):
            ctx.echo("Installing Rust toolchain...")
            rust = self.run(ctx, RUSTUP_COMMAND)
            if not rust.ok:
                return self.command_failed(ctx, "Failed to install Rust toolchain.", rust.error_output)
            ctx.shell.add_path(str(cargo_bin))

        build_dir = posixpath.join(ctx.settings.download_dir, "pngquant")
        ctx.echo("Cloning pngquant repository...")
        clone = self.run(ctx, f"rm -rf {build_dir} && git clone --recursive {PNGQUANT_REPO} {build_dir}")
        if not clone.ok:
            return self.command_failed(ctx, "Failed to clone pngquant repository.", clone.error_output)

        ctx.echo("Building pngquant (this may take a few minutes)...")
        build = self.run(ctx, f"cd {build_dir} && {cargo_bin / 'cargo'} build --release")
        if not build.ok:
            return self.command_failed(ctx, "Failed to build pngquant.", build.error_output)

        ctx.echo("Installing pngquant to /usr/local/bin...")
        copy = self.run(ctx, f"sudo cp {build_dir}/target/release/pngquant /usr/local/bin/")
        if not copy.ok:
            return self.command_failed(ctx, "Failed to install pngquant binary.", copy.error_output)

        ctx.echo("Cleaning up build files...")
        self.run(ctx, f"rm -rf {build_dir}")
        return self._pngquant_verified(
            ctx,
            *_USAGE,
            *_BATCH_USAGE,
            guidance=(
                "Ensure /usr/local/bin is in your PATH:",
                "  echo 'export PATH=\"/usr/local/bin:$PATH\"' >> ~/.bashrc && source ~/.bashrc",
            ),
        )

    # ── Windows ─────────────────────────────────────────────────

    def install_windows(self, ctx: InstallContext) -> InstallOutcome:
        choco = ctx.adapter("choco")
        if not choco.is_available():
            return self.missing_manager(ctx, choco)
        if choco.is_package_installed("pngyu"):
            return self.already_installed(ctx, "Pngyu is already installed via Chocolatey, skipping...")

        ctx.echo("Installing Pngyu via Chocolatey...")
        result = choco.install("pngyu", timeout=ctx.settings.timeout_for(self.name))
        if not result.success:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to install Pngyu via Chocolatey.",
                result.output.rstrip(),
                "As an alternative, you can install pngquant CLI:",
                "  choco install pngquant -y",
            )
        if not choco.is_package_installed("pngyu"):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: Pngyu package not found after install.",
            )
        return self.succeeded(
            ctx,
            "Pngyu installed successfully.",
            "You can find Pngyu in your Start menu.",
            "For command-line usage, also install pngquant:",
            "  choco install pngquant -y",
        )

    def install_gitbash(self, ctx: InstallContext) -> InstallOutcome:
        ctx.echo("NOTE: Pngyu GUI requires a native Windows environment.")
        ctx.echo("Installing pngquant CLI tool instead...")
        already = self._pngquant_already(ctx)
        if already:
            return already

        ctx.echo("Creating ~/bin directory...")
        if not self.run(ctx, "mkdir -p ~/bin").ok:
            return self.failed(ctx, FailureKind.PREREQUISITE, "Failed to create ~/bin directory.")

        archive = posixpath.join(ctx.settings.download_dir, "pngquant.zip")
        extract_dir = posixpath.join(ctx.settings.download_dir, "pngquant-extract")
        ctx.echo("Downloading pngquant from pngquant.org...")
        download = self.run(ctx, f'curl -L -o {archive} "{PNGQUANT_WINDOWS_URL}"')
        if not download.ok:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to download pngquant.",
                download.error_output.rstrip(),
                "If you encounter certificate errors, try:",
                f'  curl -L -k -o {archive} "{PNGQUANT_WINDOWS_URL}"',
            )

        ctx.echo("Extracting pngquant...")
        extract = self.run(
            ctx,
            f"unzip -q {archive} -d {extract_dir} 2>/dev/null"
            f" || powershell -command \"Expand-Archive -Path '{archive}' -DestinationPath '{extract_dir}'\"",
        )
        if not extract.ok:
            return self.command_failed(ctx, "Failed to extract pngquant archive.", extract.error_output)

        ctx.echo("Installing pngquant to ~/bin...")
        move = self.run(ctx, f"mv {extract_dir}/pngquant.exe ~/bin/")
        if not move.ok:
            return self.command_failed(ctx, "Failed to install pngquant binary.", move.error_output)
        self.run(ctx, f"rm -rf {archive} {extract_dir}")

        user_bin = ctx.home_dir / "bin"
        path_line = shell_config_line(path_entry="$HOME/bin")
        try:
            if append_to_profile(ctx.home_dir / ".bashrc", path_line):
                ctx.echo("Added ~/bin to PATH in ~/.bashrc")
        except OSError as e:
            ctx.echo(f"Warning: Failed to add ~/bin to PATH in ~/.bashrc: {e}")
            ctx.echo("You may need to manually add this line to your ~/.bashrc:")
            ctx.echo(f"  {path_line}")
        ctx.shell.add_path(str(user_bin))

        version = self.pngquant_version(ctx, binary="~/bin/pngquant.exe")
        if not version:
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: pngquant verification failed.",
                "Try running:",
                "  source ~/.bashrc",
                "  pngquant --version",
            )
        return self.succeeded(
            ctx,
            f"pngquant {version} installed successfully.",
            "Restart Git Bash or run: source ~/.bashrc",
            *_USAGE,
            "GIT BASH TIP:",
            "  For Windows paths, use: MSYS_NO_PATHCONV=1 pngquant /c/Users/Me/image.png",
        )


INSTALLER = PngyuInstaller()

if __name__ == "__main__":
    run_standalone(INSTALLER)
