"""
Tests for CLI commands — install, platform, managers, and global options.
"""

import json
from pathlib import Path

from click.testing import CliRunner

from devinstall.core.config.loader import Settings
from devinstall.core.errors import ShellError
from devinstall.main import cli


def _invoke(ctx, args, **kwargs):
    return CliRunner().invoke(cli, args, obj={"install_context": ctx}, **kwargs)


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "install developer tools" in result.output
        for command in ("install", "platform", "managers"):
            assert command in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_bad_config_path(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(tmp_path / "nope.yml"), "install", "jq"])
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_invalid_config(self, tmp_path: Path):
        config = tmp_path / "config.yml"
        config.write_text("default_timeout: soon\n")
        result = CliRunner().invoke(cli, ["-c", str(config), "platform"])
        assert result.exit_code == 1
        assert "Invalid settings" in result.output


class TestInstallArguments:
    def test_no_name(self, make_ctx):
        result = _invoke(make_ctx(), ["install"])
        assert result.exit_code == 1
        assert "Error: No package specified." in result.output

    def test_unknown_name(self, make_ctx):
        result = _invoke(make_ctx(), ["install", "nope"])
        assert result.exit_code == 1
        assert 'Error: Unknown package "nope".' in result.output

    def test_list(self, make_ctx):
        result = _invoke(make_ctx(platform="ubuntu"), ["install", "--list"])
        assert result.exit_code == 0
        assert "Available install scripts:" in result.output
        assert "  jq\n" in result.output
        assert "  chocolatey (not available on this platform)" in result.output
        # no desktop session in the test context
        assert "  pngyu (not available on this platform)" in result.output

    def test_name_is_case_insensitive(self, make_ctx):
        result = _invoke(make_ctx(commands=["jq"]), ["install", "JQ"])
        assert result.exit_code == 0
        assert "jq is already installed." in result.output


class TestInstallFlow:
    def test_already_installed(self, make_ctx):
        ctx = make_ctx(commands=["jq"])
        result = _invoke(ctx, ["install", "jq"])
        assert result.exit_code == 0
        assert "Checking jq..." in result.output
        assert "jq is already installed." in result.output
        assert "Proceed with installation?" not in result.output

    def test_not_available(self, make_ctx):
        result = _invoke(make_ctx(platform="ubuntu"), ["install", "chocolatey"])
        assert result.exit_code == 0
        assert "Chocolatey is not available for this platform." in result.output

    def test_dry_run_changes_nothing(self, make_ctx):
        ctx = make_ctx(platform="ubuntu")
        result = _invoke(ctx, ["install", "gitego", "--dry-run"])
        assert result.exit_code == 0
        assert "The following will be installed:" in result.output
        assert "  - Go\n  - gitego" in result.output
        assert "[Dry run mode - no changes will be made]" in result.output
        assert ctx.shell.call_count == 0
        assert ctx.adapter("apt").calls("install") == []

    def test_single_item_plan(self, make_ctx):
        result = _invoke(make_ctx(), ["install", "jq", "--dry-run"])
        assert "Preparing to install: jq" in result.output

    def test_force_installs(self, make_ctx):
        ctx = make_ctx(platform="ubuntu")
        result = _invoke(ctx, ["install", "jq", "-y"])
        assert result.exit_code == 0
        assert "Installing jq..." in result.output
        assert ctx.adapter("apt").calls("install")[0].args == ("jq",)
        assert "Installation summary:" not in result.output

    def test_confirm_accept(self, make_ctx):
        ctx = make_ctx(platform="ubuntu")
        result = _invoke(ctx, ["install", "jq"], input="y\n")
        assert result.exit_code == 0
        assert "Proceed with installation?" in result.output
        assert len(ctx.adapter("apt").calls("install")) == 1

    def test_confirm_decline(self, make_ctx):
        ctx = make_ctx(platform="ubuntu")
        result = _invoke(ctx, ["install", "jq"], input="n\n")
        assert result.exit_code == 0
        assert "Installation cancelled." in result.output
        assert ctx.adapter("apt").calls("install") == []

    def test_assume_yes_setting(self, make_ctx):
        ctx = make_ctx(platform="ubuntu", settings=Settings(assume_yes=True))
        result = _invoke(ctx, ["install", "jq"])
        assert result.exit_code == 0
        assert "Proceed with installation?" not in result.output
        assert len(ctx.adapter("apt").calls("install")) == 1

    def test_failure_summary(self, make_ctx):
        ctx = make_ctx(platform="ubuntu")
        ctx.adapter("apt").set_failure("jq", "E: Unable to locate package jq")
        result = _invoke(ctx, ["install", "jq", "--force"])
        # reported failures are not a CLI error
        assert result.exit_code == 0
        assert "Failed to install jq." in result.output
        assert "Installation summary:" in result.output
        assert "  Successful: 0" in result.output
        assert "  Failed: 1" in result.output

    def test_dependencies_run_first(self, make_ctx):
        ctx = make_ctx(platform="windows", commands=["powershell.exe"])
        ctx.shell.set_response("Test-Path", stdout="True")
        result = _invoke(ctx, ["install", "yq", "-y"])
        assert result.exit_code == 0
        assert result.output.index("Installing Chocolatey...") < result.output.index("Installing yq...")
        assert ctx.adapter("choco").calls("install")[0].args == ("yq",)
        assert "  Successful: 2" in result.output

    def test_stop_after_failed_dependency(self, make_ctx):
        # No PowerShell, so bootstrapping Chocolatey fails
        ctx = make_ctx(platform="windows")
        result = _invoke(ctx, ["install", "yq"], input="y\nn\n")
        assert result.exit_code == 0
        assert "Failed to install Chocolatey." in result.output
        assert "Continue with remaining installations?" in result.output
        assert "Installation cancelled." in result.output
        assert ctx.adapter("choco").calls("install") == []
        assert "  Failed: 1" in result.output

    def test_continue_after_failed_dependency(self, make_ctx):
        ctx = make_ctx(platform="windows")
        result = _invoke(ctx, ["install", "yq"], input="y\ny\n")
        assert result.exit_code == 0
        assert ctx.adapter("choco").calls("install")[0].args == ("yq",)
        assert "  Successful: 1" in result.output
        assert "  Failed: 1" in result.output

    def test_spawn_failure_exits_1(self, make_ctx, monkeypatch):
        ctx = make_ctx(platform="gitbash")

        def _raise(command, **kwargs):
            raise ShellError(command, "No such file or directory")

        monkeypatch.setattr(ctx.shell, "run", _raise)
        result = _invoke(ctx, ["install", "jq", "-y"])
        assert result.exit_code == 1
        assert "Unable to run 'mkdir -p /usr/local/bin'" in result.output

    def test_verbose_mentions_resolution(self, make_ctx):
        result = _invoke(make_ctx(), ["-v", "install", "gitego", "--dry-run"])
        assert "Resolving dependencies for gitego..." in result.output


class TestPlatformCommand:
    def test_json(self, make_ctx):
        ctx = make_ctx(platform="raspbian", arch="aarch64", package_manager="apt")
        result = _invoke(ctx, ["platform", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["type"] == "raspbian"
        assert data["architecture"] == "aarch64"
        assert data["package_manager"] == "apt"
        assert data["desktop"] is False

    def test_text(self, make_ctx):
        result = _invoke(make_ctx(platform="macos", arch="arm64"), ["platform"])
        assert result.exit_code == 0
        assert "macos" in result.output
        assert "Architecture:    arm64" in result.output
        assert "Desktop session: yes" in result.output


class TestManagersCommand:
    def test_json(self, make_ctx):
        ctx = make_ctx(unavailable=["winget"])
        result = _invoke(ctx, ["managers", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert set(data) == {"brew", "apt", "snap", "choco", "winget", "dnf"}
        assert data["apt"]["available"] is True
        assert data["apt"]["version"] == "0.0.0-mock"
        assert data["winget"]["available"] is False
        assert data["winget"]["version"] is None

    def test_text(self, make_ctx):
        result = _invoke(make_ctx(unavailable=["brew"]), ["managers"])
        assert result.exit_code == 0
        assert "✓ apt 0.0.0-mock" in result.output
        assert "✗ brew" in result.output
