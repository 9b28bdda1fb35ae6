"""
gitego — Git identity manager and credential helper.

gitego is distributed only as Go source, so every platform installs it
with ``go install``. This is the only channel used: the unrelated
packages that share the name in other ecosystems are never touched.
A Go toolchain at or above the minimum version is installed first
when missing, then libsecret (for PAT storage) and the git credential
helper are set up. Failures in those two extras are warnings only.
"""

from __future__ import annotations

from devinstall.core.models.platform import PlatformType
from devinstall.core.models.result import FailureKind, InstallOutcome
from devinstall.core.services.installers.base import (
    Dependency,
    InstallContext,
    Installer,
    PlatformStep,
    run_standalone,
)
from devinstall.core.services.installers.go import (
    GO_INSTALL_DIR,
    LINUX_ARCHES,
    RASPBIAN_ARCHES,
)
from devinstall.core.services.installers.go import INSTALLER as GO
from devinstall.core.services.installers.steps import (
    parse_version,
    select_asset,
    unsupported_arch_message,
    version_at_least,
)

GITEGO_PACKAGE = "github.com/bgreenwell/gitego@latest"

_NEXT_STEPS = (
    "Next steps:",
    '  gitego add personal --name "Your Name" --email "you@example.com"',
    "  gitego use personal",
)
_LINUX_PATH_HINT = (
    "Add the Go bin directories to your PATH:",
    "  echo 'export PATH=\"$PATH:/usr/local/go/bin:$HOME/go/bin\"' >> ~/.bashrc && source ~/.bashrc",
)


class GitegoInstaller(Installer):
    name = "gitego"
    display_name = "gitego"
    command = "gitego"
    depends_on = (Dependency("go", priority=1),)

    def dispatch_table(self) -> dict[PlatformType, PlatformStep]:
        return {
            PlatformType.MACOS: self.install_macos,
            PlatformType.UBUNTU: self.install_ubuntu,
            PlatformType.DEBIAN: self.install_ubuntu,
            PlatformType.WSL: self.install_wsl,
            PlatformType.RASPBIAN: self.install_raspbian,
            PlatformType.AMAZON_LINUX: self.install_amazon_linux,
            PlatformType.FEDORA: self.install_amazon_linux,
            PlatformType.RHEL: self.install_amazon_linux,
            PlatformType.WINDOWS: self.install_windows,
            PlatformType.GITBASH: self.install_gitbash,
        }

    # ── Go toolchain ────────────────────────────────────────────

    def go_status(self, ctx: InstallContext) -> tuple[bool, str | None, bool]:
        """(installed, major.minor version, meets the minimum version)."""
        if not ctx.shell.command_exists("go"):
            return False, None, False
        result = self.run(ctx, "go version")
        parts = parse_version(result.stdout) if result.ok else None
        if not parts or len(parts) < 2:
            return True, None, False
        version = f"{parts[0]}.{parts[1]}"
        return True, version, version_at_least(version, ctx.settings.versions.gitego_min_go)

    def _install_official_go(
        self,
        ctx: InstallContext,
        arches: dict[str, str],
    ) -> InstallOutcome | None:
        """Put the pinned Go release in /usr/local/go unless a new enough one exists."""
        installed, _, meets = self.go_status(ctx)
        if installed and meets:
            return None

        arch = ctx.get_platform().architecture
        go_arch = select_asset(arches, arch)
        if go_arch is None:
            return self.failed(
                ctx, FailureKind.UNSUPPORTED_ARCHITECTURE, unsupported_arch_message(arch, arches),
            )

        ctx.echo(f"Installing Go for {go_arch} from official source...")
        self.run(ctx, f"sudo rm -rf {GO_INSTALL_DIR}")
        problem = GO.install_tarball(ctx, f"go{ctx.settings.versions.gitego_go}", go_arch, ".bashrc")
        if problem:
            return problem

        installed, _, _ = self.go_status(ctx)
        if not installed:
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "Go installation completed, but go command not found.",
                "Please add Go to your PATH and run this installer again.",
            )
        ctx.echo("Go installed successfully.")
        return None

    # ── Shared steps ────────────────────────────────────────────

    def _require_git(self, ctx: InstallContext) -> InstallOutcome | None:
        if ctx.shell.command_exists("git"):
            return None
        return self.failed(
            ctx,
            FailureKind.PREREQUISITE,
            "Git is not installed. Please install Git first.",
            "Run: dev install git",
        )

    def _go_install(self, ctx: InstallContext, *troubleshooting: str) -> InstallOutcome | None:
        ctx.echo("Installing gitego via go install...")
        result = self.run(ctx, f"go install {GITEGO_PACKAGE}")
        if not result.ok:
            return self.failed(
                ctx,
                FailureKind.COMMAND,
                "Failed to install gitego via go install.",
                result.output.rstrip(),
                *troubleshooting,
            )
        ctx.shell.add_path(str(ctx.home_dir / "go" / "bin"))
        return None

    def _install_libsecret(self, ctx: InstallContext) -> None:
        ctx.echo("Installing libsecret for secure credential storage...")
        kind = ctx.get_platform().kind
        if kind in (PlatformType.AMAZON_LINUX, PlatformType.RHEL, PlatformType.FEDORA):
            if not ctx.adapter("dnf").install("libsecret").success:
                ctx.echo("Note: libsecret installation failed. This is expected on headless servers.")
                ctx.echo("gitego will still work for identity switching, but PAT storage may need other configuration.")
            return
        if not ctx.adapter("apt").install("libsecret-1-0").success:
            ctx.echo("Warning: Failed to install libsecret. PAT storage may not work.")
            ctx.echo("You can install it manually: sudo apt-get install -y libsecret-1-0")

    def configure_credential_helper(self, ctx: InstallContext) -> bool:
        """Make gitego git's only credential helper. Warns on failure."""
        ctx.echo("Configuring Git to use gitego as credential helper...")
        cleared = self.run(ctx, 'git config --global credential.helper ""')
        if cleared.ok:
            added = self.run(ctx, 'git config --global --add credential.helper "!gitego credential"')
            if added.ok:
                return True
            output = added.output
        else:
            output = f"Failed to clear credential helper: {cleared.stderr}"
        ctx.echo("Warning: Failed to configure Git credential helper.")
        ctx.echo(output.rstrip())
        ctx.echo("You can configure it manually:")
        ctx.echo('  git config --global credential.helper ""')
        ctx.echo('  git config --global --add credential.helper "!gitego credential"')
        return False

    def _verify(self, ctx: InstallContext, guidance: tuple[str, ...], *notes: str) -> InstallOutcome:
        if self.has_command(ctx) and self.run(ctx, "gitego --version").ok:
            return self.succeeded(ctx, None, *notes, *_NEXT_STEPS)
        return self.failed(
            ctx,
            FailureKind.VERIFICATION,
            "Installation may have succeeded, but gitego command not found in PATH.",
            *guidance,
        )

    def _linux_flow(self, ctx: InstallContext, arches: dict[str, str], *troubleshooting: str) -> InstallOutcome:
        if self.has_command(ctx):
            return self.already_installed(ctx)
        problem = (
            self._require_git(ctx)
            or self._install_official_go(ctx, arches)
            or self._go_install(ctx, *troubleshooting)
        )
        if problem:
            return problem
        self._install_libsecret(ctx)
        self.configure_credential_helper(ctx)
        return self._verify(ctx, _LINUX_PATH_HINT)

    # ── Platform steps ──────────────────────────────────────────

    def install_macos(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self.already_installed(ctx)

        brew = ctx.adapter("brew")
        if not brew.is_available():
            return self.missing_manager(ctx, brew)

        installed, version, meets = self.go_status(ctx)
        if not installed:
            ctx.echo("Go is not installed. Installing Go via Homebrew...")
            result = brew.install("go")
            if not result.success:
                return self.command_failed(ctx, "Failed to install Go via Homebrew.", result.output)
            ctx.echo("Go installed successfully.")
            installed, version, meets = self.go_status(ctx)

        if not meets:
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                f"Go version {version or 'unknown'} is installed, but gitego requires "
                f"Go {ctx.settings.versions.gitego_min_go} or later.",
                "Please upgrade Go: brew upgrade go",
            )

        zsh_hint = "  echo 'export PATH=\"$PATH:$HOME/go/bin\"' >> ~/.zshrc && source ~/.zshrc"
        problem = self._go_install(ctx, "Troubleshooting: Ensure ~/go/bin is in your PATH:", zsh_hint)
        if problem:
            return problem
        self.configure_credential_helper(ctx)
        return self._verify(ctx, ("Add ~/go/bin to your PATH:", zsh_hint))

    def install_ubuntu(self, ctx: InstallContext) -> InstallOutcome:
        return self._linux_flow(ctx, LINUX_ARCHES)

    def install_wsl(self, ctx: InstallContext) -> InstallOutcome:
        outcome = self._linux_flow(ctx, LINUX_ARCHES)
        if outcome.changed:
            ctx.echo("WSL Note: For secure PAT storage, you may need to configure pass:")
            ctx.echo("  sudo apt-get install -y pass gnupg")
            ctx.echo("  gpg --gen-key")
            ctx.echo('  pass init "your-gpg-key-id"')
        return outcome

    def install_raspbian(self, ctx: InstallContext) -> InstallOutcome:
        return self._linux_flow(
            ctx,
            RASPBIAN_ARCHES,
            "If you see out-of-memory errors, try increasing swap space:",
            "  sudo fallocate -l 2G /swapfile && sudo chmod 600 /swapfile",
            "  sudo mkswap /swapfile && sudo swapon /swapfile",
        )

    def install_amazon_linux(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self.already_installed(ctx)
        problem = self._require_git(ctx)
        if problem:
            return problem

        installed, _, meets = self.go_status(ctx)
        if not (installed and meets) and not ctx.shell.command_exists("wget"):
            ctx.echo("Installing wget...")
            result = ctx.adapter("dnf").install("wget")
            if not result.success:
                return self.command_failed(ctx, "Failed to install wget.", result.output)
        return self._linux_flow(ctx, LINUX_ARCHES)

    def install_windows(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self.already_installed(ctx)
        problem = self._require_git(ctx)
        if problem:
            return problem

        choco = ctx.adapter("choco")
        winget = ctx.adapter("winget")
        if not choco.is_available() and not winget.is_available():
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "Neither winget nor Chocolatey is installed.",
                "Please install Chocolatey first: dev install chocolatey",
            )

        installed, _, meets = self.go_status(ctx)
        if not (installed and meets):
            ctx.echo("Installing Go...")
            if choco.is_available():
                result = choco.install("golang", timeout=ctx.settings.timeout_for("go"))
            else:
                result = winget.install("GoLang.Go")
            if not result.success:
                return self.command_failed(ctx, "Failed to install Go.", result.output)
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "Go installed successfully, but it is not on PATH in this session.",
                "Close and reopen your terminal, then run this installer again to complete gitego installation.",
            )

        problem = self._go_install(
            ctx,
            "Troubleshooting: Ensure the Go bin directory is in your PATH.",
            "The Go bin directory is typically at: %USERPROFILE%\\go\\bin",
        )
        if problem:
            return problem
        self.configure_credential_helper(ctx)
        return self._verify(
            ctx,
            ("Close and reopen your terminal, then verify with: gitego --version",),
            "Note: Close and reopen your terminal for PATH changes to take effect.",
        )

    def install_gitbash(self, ctx: InstallContext) -> InstallOutcome:
        if self.has_command(ctx):
            return self.already_installed(ctx)

        installed, version, meets = self.go_status(ctx)
        if not installed:
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                "Go is not installed. Please install Go on Windows first.",
                "From an Administrator PowerShell, run: choco install golang -y",
                "Or with winget: winget install --id GoLang.Go --silent",
                "Then restart Git Bash and run this installer again.",
            )
        if not meets:
            return self.failed(
                ctx,
                FailureKind.PREREQUISITE,
                f"Go version {version} is installed, but gitego requires "
                f"Go {ctx.settings.versions.gitego_min_go} or later.",
                "Please upgrade Go and try again.",
            )

        bash_hint = "  echo 'export PATH=\"$PATH:$HOME/go/bin\"' >> ~/.bashrc && source ~/.bashrc"
        problem = self._go_install(ctx, "Troubleshooting: Ensure ~/go/bin is in your PATH:", bash_hint)
        if problem:
            return problem
        self.configure_credential_helper(ctx)
        return self._verify(ctx, ("Add ~/go/bin to your PATH:", bash_hint))


INSTALLER = GitegoInstaller()

if __name__ == "__main__":
    run_standalone(INSTALLER)
