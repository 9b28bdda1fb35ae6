"""
Result models — the execution contract.

CommandResult is what the shell hands back for every invocation.
InstallResult is what every mutating adapter operation returns.
InstallOutcome is what every installer returns. None of these
layers raise for expected failures; callers inspect the result.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CommandResult(BaseModel):
    """Captured result of one shell invocation."""

    model_config = ConfigDict(frozen=True)

    command: str = ""
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        """Whether the command exited with status 0."""
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """stdout, or stderr when stdout is empty."""
        return self.stdout or self.stderr

    @property
    def error_output(self) -> str:
        """stderr, or stdout when stderr is empty."""
        return self.stderr or self.stdout


class InstallResult(BaseModel):
    """Result of an adapter operation (install, uninstall, upgrade, ...)."""

    success: bool
    output: str = ""

    @classmethod
    def from_command(cls, result: CommandResult) -> InstallResult:
        return cls(success=result.ok, output=result.output)

    @classmethod
    def unavailable(cls, manager: str) -> InstallResult:
        """Failure result for a package manager that is not installed."""
        return cls(success=False, output=f"{manager} is not installed")


class PackageInfo(BaseModel):
    """One row parsed from a package manager's search or list output."""

    name: str
    version: str = ""
    id: str = ""
    summary: str = ""
    kind: str = ""   # brew: "formula" | "cask"


class InstallState(str, Enum):
    """States an installer passes through in one invocation."""

    NOT_CHECKED = "not_checked"
    ALREADY_INSTALLED = "already_installed"
    INSTALLING = "installing"
    VERIFIED = "verified"
    FAILED = "failed"
    UNSUPPORTED = "unsupported"


class FailureKind(str, Enum):
    """Why an installer ended in the FAILED state."""

    PREREQUISITE = "prerequisite"
    COMMAND = "command"
    VERIFICATION = "verification"
    UNSUPPORTED_ARCHITECTURE = "unsupported_architecture"


class InstallOutcome(BaseModel):
    """Terminal result of one installer run.

    Built through the classmethods below, never by hand, so the
    state and failure kind always agree.
    """

    tool: str
    state: InstallState
    message: str = ""
    failure: FailureKind | None = None
    platform: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True for every terminal state that is not FAILED."""
        return self.state != InstallState.FAILED

    @property
    def changed(self) -> bool:
        """Whether this run actually installed something."""
        return self.state == InstallState.VERIFIED

    @classmethod
    def already_installed(cls, tool: str, message: str = "", **kwargs: Any) -> InstallOutcome:
        return cls(tool=tool, state=InstallState.ALREADY_INSTALLED, message=message, **kwargs)

    @classmethod
    def verified(cls, tool: str, message: str = "", **kwargs: Any) -> InstallOutcome:
        return cls(tool=tool, state=InstallState.VERIFIED, message=message, **kwargs)

    @classmethod
    def failed(
        cls,
        tool: str,
        kind: FailureKind,
        message: str = "",
        **kwargs: Any,
    ) -> InstallOutcome:
        return cls(tool=tool, state=InstallState.FAILED, failure=kind, message=message, **kwargs)

    @classmethod
    def unsupported(cls, tool: str, message: str = "", **kwargs: Any) -> InstallOutcome:
        return cls(tool=tool, state=InstallState.UNSUPPORTED, message=message, **kwargs)
