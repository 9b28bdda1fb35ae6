"""
Go — the Go programming language toolchain.

macOS and Windows use their package managers. Every Linux platform
installs the official tarball from go.dev into /usr/local/go, since
distro packages lag far behind upstream releases.
"""

from __future__ import annotations

import posixpath
import re
from typing import Callable

from devinstall.core.models.platform import PlatformType
from devinstall.core.models.result import FailureKind, InstallOutcome
from devinstall.core.services.installers.base import (
    InstallContext,
    Installer,
    PlatformStep,
    run_standalone,
)
from devinstall.core.services.installers.steps import (
    append_to_profile,
    select_asset,
    unsupported_arch_message,
)

GO_VERSION_URL = "https://go.dev/VERSION?m=text"
GO_DOWNLOAD_BASE_URL = "https://go.dev/dl"
GO_INSTALL_DIR = "/usr/local/go"
GO_BIN_DIR = f"{GO_INSTALL_DIR}/bin"
GITBASH_GO_EXE = "/c/Program Files/Go/bin/go.exe"

# go.dev tarball suffixes by normalized architecture
LINUX_ARCHES = {
    "amd64": "linux-amd64",
    "arm64": "linux-arm64",
}
RASPBIAN_ARCHES = {
    "arm64": "linux-arm64",
    "arm": "linux-armv6l",
}

PROFILE_BLOCK = (
    "\n# Go programming language\n"
    f"export PATH=$PATH:{GO_BIN_DIR}\n"
    "export PATH=$PATH:$HOME/go/bin"
)

_GO_VERSION_RE = re.compile(r"go version go([\d.]+)")


def parse_go_version(text: str) -> str | None:
    """``go version go1.24.2 linux/amd64`` -> ``1.24.2``."""
    match = _GO_VERSION_RE.search(text or "")
    return match.group(1) if match else None


class GoInstaller(Installer):
    name = "go"
    display_name = "Go"
    command = "go"

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
        if kind == PlatformType.MACOS and ctx.adapter("brew").is_package_installed("go"):
            return True
        if kind == PlatformType.WINDOWS and ctx.adapter("choco").is_package_installed("golang"):
            return True
        return self.has_command(ctx)

    def get_version(self, ctx: InstallContext) -> str | None:
        """Installed Go version from PATH, else from /usr/local/go."""
        if self.has_command(ctx):
            result = self.run(ctx, "go version")
            if result.ok and parse_go_version(result.stdout):
                return parse_go_version(result.stdout)
        result = self.run(ctx, f"{GO_BIN_DIR}/go version 2>/dev/null")
        return parse_go_version(result.stdout) if result.ok else None

    def fetch_latest_version(self, ctx: InstallContext) -> str | None:
        """Latest release tag, e.g. ``go1.25.3``."""
        result = self.run(ctx, f"curl -sL '{GO_VERSION_URL}' | head -n1")
        if not result.ok:
            return None
        lines = result.stdout.strip().splitlines()
        return lines[0].strip() if lines and lines[0].startswith("go") else None

    def _already(self, ctx: InstallContext) -> InstallOutcome | None:
        ctx.echo("Checking if Go is already installed...")
        version = self.get_version(ctx)
        if version:
            return self.already_installed(ctx, f"Go {version} is already installed, skipping installation.")
        return None

    # ── Official tarball ────────────────────────────────────────

    def install_tarball(
        self,
        ctx: InstallContext,
        version: str,
        go_arch: str,
        profile: str,
    ) -> InstallOutcome | None:
        """Download and extract ``<version>.<go_arch>.tar.gz`` into /usr/local.

        ``version`` is a release tag such as ``go1.24.0``. The Go bin
        directories are added to ``~/<profile>`` once. Returns a failure
        outcome, or None when the toolchain is in place.
        """
        url = f"{GO_DOWNLOAD_BASE_URL}/{version}.{go_arch}.tar.gz"
        tarball = posixpath.join(ctx.settings.download_dir, "go.tar.gz")

        ctx.echo(f"Downloading Go {version} for {go_arch}...")
        ctx.echo(f"URL: {url}")
        download = self.run(ctx, f'wget -q "{url}" -O {tarball}')
        if not download.ok:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to download Go.",
                f"URL: {url}",
                f"Error: {download.error_output.rstrip()}",
                "Please check your internet connection and try again.",
            )

        ctx.echo("Extracting Go to /usr/local...")
        extract = self.run(ctx, f"sudo tar -C /usr/local -xzf {tarball}")
        if not extract.ok:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to extract Go tarball.",
                f"Error: {extract.error_output.rstrip()}",
                "Ensure you have sudo privileges and /usr/local is writable.",
            )
        self.run(ctx, f"rm -f {tarball}")

        profile_path = ctx.home_dir / profile
        ctx.echo(f"Configuring Go environment in ~/{profile}...")
        try:
            if not append_to_profile(profile_path, PROFILE_BLOCK, marker=GO_BIN_DIR):
                ctx.echo("Go PATH already configured in profile, skipping...")
        except OSError as e:
            ctx.echo(f"Warning: Failed to update ~/{profile}: {e}")
            ctx.echo(f"You may need to manually add these lines to your ~/{profile}:")
            for line in PROFILE_BLOCK.strip().splitlines():
                ctx.echo(f"  {line}")
        ctx.shell.add_path(GO_BIN_DIR)
        return None

    def _linux_flow(
        self,
        ctx: InstallContext,
        arches: dict[str, str],
        profile: str,
        prepare: Callable[[InstallContext], InstallOutcome | None],
        notes: tuple[str, ...],
    ) -> InstallOutcome:
        already = self._already(ctx)
        if already:
            return already

        arch = ctx.get_platform().architecture
        go_arch = select_asset(arches, arch)
        if go_arch is None:
            return self.failed(
                ctx, FailureKind.UNSUPPORTED_ARCHITECTURE, unsupported_arch_message(arch, arches),
            )

        problem = prepare(ctx)
        if problem:
            return problem

        ctx.echo("Fetching latest Go version...")
        version = self.fetch_latest_version(ctx)
        if not version:
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "Could not determine the latest Go version.",
                "Please check your internet connection and try again.",
            )
        ctx.echo(f"Latest version: {version}")

        problem = self.install_tarball(ctx, version, go_arch, profile)
        if problem:
            return problem
        return self.verify_tarball(ctx, profile, notes)

    def verify_tarball(self, ctx: InstallContext, profile: str, notes: tuple[str, ...] = ()) -> InstallOutcome:
        result = self.run(ctx, f"{GO_BIN_DIR}/go version")
        installed = parse_go_version(result.stdout) if result.ok else None
        if not installed:
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation appeared to complete but Go was not found.",
                f"Log out and log back in, or run: source ~/{profile}",
                f"Verify installation: {GO_BIN_DIR}/go version",
            )
        return self.succeeded(
            ctx,
            f"Go {installed} installed successfully.",
            f"IMPORTANT: To use Go in your current terminal session run: source ~/{profile}",
            *notes,
        )

    def prepare_apt(self, ctx: InstallContext) -> InstallOutcome | None:
        """Remove distro Go packages and make sure wget and curl exist."""
        apt = ctx.adapter("apt")
        ctx.echo("Removing any existing Go installations...")
        apt.uninstall("golang-go golang")
        self.run(ctx, f"sudo rm -rf {GO_INSTALL_DIR} 2>/dev/null || true")

        ctx.echo("Installing required utilities (wget, curl)...")
        if not apt.update(noninteractive=True).success:
            ctx.echo("Warning: apt-get update had issues, continuing...")
        result = apt.install("wget curl", noninteractive=True)
        if not result.success:
            return self.command_failed(ctx, "Failed to install required utilities.", result.output)
        return None

    def prepare_rpm(self, ctx: InstallContext) -> InstallOutcome | None:
        rpm = ctx.adapter("dnf")
        if not rpm.is_available():
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "Neither dnf nor yum package manager found.",
                "This installer supports Amazon Linux 2023 (dnf) and Amazon Linux 2 (yum).",
            )
        ctx.echo(f"Detected package manager: {rpm.display_name}")
        ctx.echo("Removing any existing Go installations...")
        self.run(ctx, f"sudo rm -rf {GO_INSTALL_DIR} 2>/dev/null || true")
        rpm.uninstall("golang")

        ctx.echo("Installing required utilities (wget, curl, tar)...")
        if not rpm.install("wget curl tar").success:
            ctx.echo("Warning: Could not install utilities, they may already exist.")
        return None

    # ── Platform steps ──────────────────────────────────────────

    def install_macos(self, ctx: InstallContext) -> InstallOutcome:
        already = self._already(ctx)
        if already:
            return already

        brew = ctx.adapter("brew")
        if not brew.is_available():
            return self.missing_manager(ctx, brew)
        if brew.is_package_installed("go"):
            return self.already_installed(
                ctx,
                "Go is already installed via Homebrew, skipping installation.",
            )

        ctx.echo("Installing Go via Homebrew...")
        result = brew.install("go")
        if not result.success:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to install Go via Homebrew.",
                result.output.rstrip(),
                "Run 'brew update && brew cleanup' and retry, or: brew reinstall go",
            )

        version = self.get_version(ctx)
        if not version:
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Go was installed but may not be in your current PATH.",
                "Please restart your terminal or run: source ~/.zprofile",
                "Then verify with: go version",
            )
        return self.succeeded(
            ctx,
            f"Go {version} installed successfully.",
            'To use Go tools installed via "go install", add this to ~/.zprofile:',
            '  export PATH="$PATH:$HOME/go/bin"',
        )

    def install_ubuntu(self, ctx: InstallContext) -> InstallOutcome:
        return self._linux_flow(ctx, LINUX_ARCHES, ".profile", self.prepare_apt, ())

    def install_wsl(self, ctx: InstallContext) -> InstallOutcome:
        return self._linux_flow(ctx, LINUX_ARCHES, ".bashrc", self.prepare_apt, (
            "For best performance, keep your Go code on the Linux filesystem (e.g. ~/projects).",
            "Go binaries installed in WSL are Linux executables and cannot run directly from Windows.",
        ))

    def install_raspbian(self, ctx: InstallContext) -> InstallOutcome:
        return self._linux_flow(ctx, RASPBIAN_ARCHES, ".profile", self.prepare_apt, (
            "NOTE: Compilation may be slower on Raspberry Pi due to limited CPU and RAM.",
        ))

    def install_amazon_linux(self, ctx: InstallContext) -> InstallOutcome:
        return self._linux_flow(ctx, LINUX_ARCHES, ".bashrc", self.prepare_rpm, ())

    def install_windows(self, ctx: InstallContext) -> InstallOutcome:
        already = self._already(ctx)
        if already:
            return already

        choco = ctx.adapter("choco")
        if not choco.is_available():
            return self.missing_manager(ctx, choco)
        if choco.is_package_installed("golang"):
            return self.already_installed(
                ctx, "Go is already installed via Chocolatey, skipping installation.",
            )

        ctx.echo("Installing Go via Chocolatey...")
        ctx.echo("This may take a few minutes...")
        result = choco.install("golang", timeout=ctx.settings.timeout_for(self.name))
        if not result.success:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to install Go via Chocolatey.",
                result.output.rstrip(),
                "Ensure you are running as Administrator, or try: choco install golang -y --force",
            )
        if not choco.is_package_installed("golang"):
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                "Installation may have failed: golang package not found after install.",
            )
        return self.succeeded(
            ctx,
            "Go installed successfully.",
            "IMPORTANT: Close and reopen your terminal for PATH changes to take effect.",
            "Then verify with: go version",
        )

    def install_gitbash(self, ctx: InstallContext) -> InstallOutcome:
        already = self._already(ctx)
        if already:
            return already

        ctx.echo("Installing Go on the Windows host via Chocolatey...")
        result = self.run(ctx, 'powershell.exe -NoProfile -Command "choco install golang -y"')
        if not result.ok:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to install Go.",
                result.output.rstrip(),
                "Ensure Chocolatey is installed on Windows and run Git Bash as Administrator.",
            )

        if not self.run(ctx, f'test -f "{GITBASH_GO_EXE}"').ok:
            return self.failed(
                ctx,
                FailureKind.VERIFICATION,
                f"Installation may have failed: {GITBASH_GO_EXE} not found after install.",
            )
        return self.succeeded(
            ctx,
            "Go installed successfully.",
            "IMPORTANT: Close and reopen Git Bash for PATH changes to take effect.",
            "If go is still not found, add it to your Git Bash PATH:",
            "  echo 'export PATH=\"$PATH:/c/Program Files/Go/bin\"' >> ~/.bashrc",
        )


INSTALLER = GoInstaller()

if __name__ == "__main__":
    run_standalone(INSTALLER)
