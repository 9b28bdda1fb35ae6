"""
Mock adapters — test doubles for the shell and package managers.

MockShell records every command and answers lookups from an in-memory
set of "present" commands. MockPackageManager records every operation
and keeps an in-memory package set. Installing through the mock can
make commands appear on the mock shell, so installers' verification
steps pass (or fail) exactly as configured.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from devinstall.adapters.base import PackageManager
from devinstall.adapters.shell.command import ShellRunner
from devinstall.core.models.result import CommandResult, InstallResult, PackageInfo


@dataclass
class _ScriptedResponse:
    pattern: str
    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""
    provides: list[str] = field(default_factory=list)
    after: str | None = None


class MockShell(ShellRunner):
    """Shell runner that never spawns a process.

    Args:
        commands: Executables that ``which()`` reports as present.
        default_exit_code: Exit code for commands with no scripted response.
    """

    def __init__(self, commands: Iterable[str] = (), default_exit_code: int = 0):
        super().__init__()
        self.present: set[str] = set(commands)
        self.default_exit_code = default_exit_code
        self._responses: list[_ScriptedResponse] = []
        self._call_log: list[str] = []

    @property
    def call_log(self) -> list[str]:
        """Every command string run so far, in order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def set_response(
        self,
        pattern: str,
        exit_code: int = 0,
        stdout: str = "",
        stderr: str = "",
        provides: Iterable[str] = (),
        after: str | None = None,
    ) -> None:
        """Script the result of any command containing ``pattern``.

        ``provides`` lists executables that become present once a
        matching command succeeds. With ``after``, the response only
        applies once a command containing that text has been run.
        Later registrations win.
        """
        self._responses.insert(0, _ScriptedResponse(
            pattern=pattern,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            provides=list(provides),
            after=after,
        ))

    def ran(self, pattern: str) -> bool:
        """Whether any command containing ``pattern`` was run."""
        return any(pattern in command for command in self._call_log)

    def run(
        self,
        command: str,
        *,
        timeout: int | None = None,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        earlier = list(self._call_log)
        self._call_log.append(command)
        for response in self._responses:
            if response.after and not any(response.after in c for c in earlier):
                continue
            if response.pattern in command:
                if response.exit_code == 0:
                    self.present.update(response.provides)
                return CommandResult(
                    command=command,
                    exit_code=response.exit_code,
                    stdout=response.stdout,
                    stderr=response.stderr,
                )
        return CommandResult(command=command, exit_code=self.default_exit_code)

    def which(self, executable: str) -> str | None:
        if executable in self.present:
            return f"/usr/local/bin/{executable}"
        return None

    def reset(self) -> None:
        """Clear call log and scripted responses."""
        self._call_log.clear()
        self._responses.clear()


@dataclass
class MockCall:
    operation: str
    args: tuple[Any, ...] = ()
    options: dict[str, Any] = field(default_factory=dict)


class MockPackageManager(PackageManager):
    """Universal mock package manager for testing.

    Args:
        adapter_name: Registry name to impersonate (``"apt"``, ``"brew"``...).
        available: What ``is_available()`` reports.
        installed: Packages present from the start.
        shell: Shell whose ``present`` set successful installs extend.
        provides: Package name -> executables it puts on PATH. Packages
            not listed provide an executable of the same name.
        link_commands: When False, installs succeed without making any
            executable appear (simulates a stale PATH).
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        installed: Iterable[str] = (),
        shell: MockShell | None = None,
        provides: dict[str, list[str]] | None = None,
        link_commands: bool = True,
    ):
        super().__init__(shell or MockShell())
        self._name = adapter_name
        self._available = available
        self._packages: dict[str, str] = {name: "1.0.0" for name in installed}
        self._provides = provides or {}
        self._link_commands = link_commands
        self._failures: dict[str, str] = {}
        self._call_log: list[MockCall] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[MockCall]:
        """Every operation this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of operations received."""
        return len(self._call_log)

    def calls(self, operation: str) -> list[MockCall]:
        """Recorded calls of one operation, e.g. ``calls("install")``."""
        return [call for call in self._call_log if call.operation == operation]

    def set_failure(self, package: str, output: str = "Mock failure") -> None:
        """Make installs of ``package`` fail with ``output``."""
        self._failures[package] = output

    def reset(self) -> None:
        """Clear call log and configured failures."""
        self._call_log.clear()
        self._failures.clear()

    def _record(self, operation: str, *args: Any, **options: Any) -> None:
        self._call_log.append(MockCall(operation, args, options))

    def is_available(self) -> bool:
        return self._available

    def get_version(self) -> str | None:
        self._record("get_version")
        return "0.0.0-mock" if self._available else None

    def install(self, package: str, **options: Any) -> InstallResult:
        self._record("install", package, **options)
        if not self._available:
            return InstallResult.unavailable(self._name)
        if package in self._failures:
            return InstallResult(success=False, output=self._failures[package])
        self._packages[package] = "1.0.0"
        if self._link_commands and isinstance(self.shell, MockShell):
            self.shell.present.update(self._provides.get(package, [package]))
        return InstallResult(success=True, output=f"[mock] installed {package}")

    def install_cask(self, cask: str) -> InstallResult:
        return self.install(cask, cask=True)

    def group_install(self, group: str, timeout: int | None = None) -> InstallResult:
        return self.install(group, group=True)

    def uninstall(self, package: str) -> InstallResult:
        self._record("uninstall", package)
        self._packages.pop(package, None)
        return InstallResult(success=True, output=f"[mock] removed {package}")

    def update(self, noninteractive: bool = False) -> InstallResult:
        self._record("update")
        return InstallResult(success=True)

    def is_package_installed(self, package: str) -> bool:
        self._record("is_package_installed", package)
        return package in self._packages

    def is_cask_installed(self, cask: str) -> bool:
        return self.is_package_installed(cask)

    def get_package_version(self, package: str) -> str | None:
        self._record("get_package_version", package)
        return self._packages.get(package)

    def upgrade(self, package: str | None = None) -> InstallResult:
        self._record("upgrade", package)
        return InstallResult(success=True)

    def search(self, query: str) -> list[PackageInfo]:
        self._record("search", query)
        return [PackageInfo(name=name) for name in self._packages if query in name]

    def list_installed(self) -> list[PackageInfo]:
        self._record("list_installed")
        return [PackageInfo(name=n, version=v) for n, v in self._packages.items()]

    def add_bin_to_path(self) -> bool:
        self._record("add_bin_to_path")
        return False
