"""
Tests for the adapter contract, registry, and mock adapters.
"""

import pytest

from devinstall.adapters.mock import MockPackageManager, MockShell
from devinstall.adapters.package_managers import (
    AptAdapter,
    BrewAdapter,
    ChocoAdapter,
    DnfAdapter,
    SnapAdapter,
    WingetAdapter,
)
from devinstall.adapters.registry import AdapterRegistry, default_registry
from devinstall.core.errors import ShellError
from devinstall.core.models.platform import PlatformDescriptor

# ── Base helpers ─────────────────────────────────────────────────────


class _ExplodingShell(MockShell):
    def run(self, command, **kwargs):
        raise ShellError(command, "Permission denied")


class TestPackageManagerBase:
    def test_spawn_failure_becomes_exit_127(self):
        apt = AptAdapter(_ExplodingShell(["apt-get"]))
        result = apt.install("jq")
        assert not result.success
        assert "Unable to run 'sudo apt-get install -y jq'" in result.output

    def test_queries_never_raise(self):
        apt = AptAdapter(_ExplodingShell(["apt-get"]))
        assert apt.is_package_installed("jq") is False
        assert apt.get_package_version("jq") is None
        assert apt.search("jq") == []

    def test_unavailable_manager_runs_nothing(self):
        shell = MockShell()
        brew = BrewAdapter(shell)
        result = brew.install("jq")
        assert not result.success
        assert result.output == "Homebrew is not installed"
        assert shell.call_count == 0

    def test_repr(self):
        assert repr(SnapAdapter(MockShell())) == "<SnapAdapter name='snap'>"


# ── Mock Shell ───────────────────────────────────────────────────────


class TestMockShell:
    def test_default_success(self):
        shell = MockShell()
        result = shell.run("anything")
        assert result.ok
        assert result.stdout == ""
        assert shell.call_log == ["anything"]

    def test_default_exit_code(self):
        assert MockShell(default_exit_code=1).run("x").exit_code == 1

    def test_latest_response_wins(self):
        shell = MockShell()
        shell.set_response("go version", stdout="go version go1.22.0")
        shell.set_response("go version", stdout="go version go1.24.0")
        assert shell.run("go version").stdout == "go version go1.24.0"

    def test_substring_match(self):
        shell = MockShell()
        shell.set_response("apt-get install", exit_code=100, stderr="E: locked")
        result = shell.run("sudo apt-get install -y jq")
        assert result.exit_code == 100
        assert result.error_output == "E: locked"

    def test_provides(self):
        shell = MockShell()
        shell.set_response("make install", provides=["tool"])
        assert shell.which("tool") is None
        shell.run("cd src && make install")
        assert shell.which("tool") == "/usr/local/bin/tool"

    def test_failed_command_provides_nothing(self):
        shell = MockShell()
        shell.set_response("make install", exit_code=2, provides=["tool"])
        shell.run("make install")
        assert not shell.command_exists("tool")

    def test_after(self):
        shell = MockShell()
        shell.set_response("tool --version", stdout="1.0", after="make install")
        assert shell.run("tool --version").stdout == ""
        shell.run("make install")
        assert shell.run("tool --version").stdout == "1.0"

    def test_which_is_not_logged(self):
        shell = MockShell(["git"])
        assert shell.command_exists("git")
        assert shell.call_count == 0

    def test_reset(self):
        shell = MockShell()
        shell.set_response("x", exit_code=3)
        shell.run("x")
        shell.reset()
        assert shell.call_count == 0
        assert shell.run("x").ok


# ── Mock Package Manager ─────────────────────────────────────────────


class TestMockPackageManager:
    def test_records_calls(self):
        mock = MockPackageManager("apt")
        mock.install("jq", noninteractive=True)
        mock.update()
        assert mock.call_count == 2
        assert mock.calls("install")[0].args == ("jq",)
        assert mock.calls("install")[0].options == {"noninteractive": True}

    def test_install_links_command(self):
        shell = MockShell()
        mock = MockPackageManager("brew", shell=shell)
        mock.install("jq")
        assert shell.command_exists("jq")
        assert mock.is_package_installed("jq")

    def test_provides_mapping(self):
        shell = MockShell()
        mock = MockPackageManager("apt", shell=shell, provides={"golang-go": ["go", "gofmt"]})
        mock.install("golang-go")
        assert shell.command_exists("go")
        assert shell.command_exists("gofmt")
        assert not shell.command_exists("golang-go")

    def test_link_commands_off(self):
        shell = MockShell()
        mock = MockPackageManager("apt", shell=shell, link_commands=False)
        assert mock.install("jq").success
        assert not shell.command_exists("jq")

    def test_set_failure(self):
        mock = MockPackageManager("choco")
        mock.set_failure("jq", "Access denied")
        result = mock.install("jq")
        assert not result.success
        assert result.output == "Access denied"
        assert not mock.is_package_installed("jq")

    def test_unavailable(self):
        mock = MockPackageManager("winget", available=False)
        assert not mock.is_available()
        assert mock.get_version() is None
        assert mock.install("x").output == "winget is not installed"

    def test_cask_and_group(self):
        mock = MockPackageManager("brew")
        mock.install_cask("pngyu")
        mock.group_install("Development Tools")
        options = [call.options for call in mock.calls("install")]
        assert options == [{"cask": True}, {"group": True}]

    def test_reset(self):
        mock = MockPackageManager("apt")
        mock.set_failure("jq")
        mock.install("jq")
        mock.reset()
        assert mock.call_count == 0
        assert mock.install("jq").success

    def test_preinstalled(self):
        mock = MockPackageManager("choco", installed=["golang"])
        assert mock.get_package_version("golang") == "1.0.0"
        assert [p.name for p in mock.search("go")] == ["golang"]


# ── Registry ─────────────────────────────────────────────────────────


class TestAdapterRegistry:
    def test_register_and_get(self):
        registry = AdapterRegistry()
        mock = MockPackageManager("apt")
        registry.register(mock)
        assert registry.get("apt") is mock
        assert registry["apt"] is mock
        assert "apt" in registry
        assert registry.get("brew") is None

    def test_missing_raises_key_error(self):
        registry = AdapterRegistry()
        with pytest.raises(KeyError, match="brew"):
            registry["brew"]

    def test_overwrite(self):
        registry = AdapterRegistry()
        registry.register(MockPackageManager("apt"))
        replacement = MockPackageManager("apt", available=False)
        registry.register(replacement)
        assert registry["apt"] is replacement
        assert registry.list_adapters() == ["apt"]

    def test_unregister(self):
        registry = AdapterRegistry()
        registry.register(MockPackageManager("apt"))
        registry.unregister("apt")
        registry.unregister("apt")
        assert registry.list_adapters() == []

    def test_status(self):
        registry = AdapterRegistry()
        registry.register(MockPackageManager("apt"))
        registry.register(MockPackageManager("brew", available=False))
        status = registry.adapter_status()
        assert status["apt"] == {
            "name": "apt",
            "display_name": "apt",
            "available": True,
            "version": "0.0.0-mock",
            "type": "MockPackageManager",
        }
        assert status["brew"]["available"] is False
        assert status["brew"]["version"] is None

    def test_default_registry(self):
        registry = default_registry(MockShell())
        assert registry.list_adapters() == ["brew", "apt", "snap", "choco", "winget", "dnf"]
        types = {name: type(registry[name]) for name in registry.list_adapters()}
        assert types == {
            "brew": BrewAdapter,
            "apt": AptAdapter,
            "snap": SnapAdapter,
            "choco": ChocoAdapter,
            "winget": WingetAdapter,
            "dnf": DnfAdapter,
        }

    def test_default_registry_uses_yum_platform(self):
        platform = PlatformDescriptor(type="amazon_linux", package_manager="yum")
        registry = default_registry(MockShell(["dnf"]), platform)
        assert registry["dnf"].binary == "yum"
        assert registry["dnf"].display_name == "yum"
