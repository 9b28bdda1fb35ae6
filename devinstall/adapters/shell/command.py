"""
Shell executor — run commands and capture their output.

This is the most fundamental adapter: every package manager and
installer goes through it. It never raises on a non-zero exit;
callers inspect the CommandResult. A command that exceeds its
timeout is killed and reported as failed. Only a failure to spawn
the process at all raises ShellError.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time

from devinstall.core.errors import ShellError
from devinstall.core.models.result import CommandResult

logger = logging.getLogger(__name__)

# Exit code reported for commands killed on timeout (matches coreutils `timeout`)
TIMEOUT_EXIT_CODE = 124


def _as_text(data: str | bytes | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class ShellRunner:
    """Run shell command strings and look up executables on PATH.

    Args:
        default_timeout: Seconds before a command is killed, used when
            ``run()`` is not given one. None means no limit.
        extra_paths: Directories searched before PATH, both for
            lookups and for the commands this runner spawns.
    """

    def __init__(
        self,
        default_timeout: int | None = None,
        extra_paths: list[str] | None = None,
    ):
        self.default_timeout = default_timeout
        self.extra_paths: list[str] = list(extra_paths or [])

    def add_path(self, directory: str) -> None:
        """Make a freshly installed bin directory visible to this run."""
        if directory not in self.extra_paths:
            self.extra_paths.append(directory)
            logger.debug("Added %s to search path", directory)

    def search_path(self) -> str:
        """The PATH value used for lookups and child processes."""
        base = os.environ.get("PATH", "")
        if not self.extra_paths:
            return base
        return os.pathsep.join([*self.extra_paths, base])

    def run(
        self,
        command: str,
        *,
        timeout: int | None = None,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Execute a command string through the shell.

        Args:
            command: The command line, interpreted by the shell.
            timeout: Seconds before the command is killed.
            cwd: Working directory.
            env: Extra environment variables merged over os.environ.

        Returns:
            CommandResult with exit code and captured output.

        Raises:
            ShellError: If the process could not be spawned.
        """
        effective_timeout = timeout if timeout is not None else self.default_timeout

        child_env = os.environ.copy()
        child_env["PATH"] = self.search_path()
        if env:
            child_env.update(env)

        logger.debug("Executing: %s (timeout=%s)", command, effective_timeout)
        start = time.monotonic()

        try:
            proc = subprocess.run(
                command,
                shell=True,
                cwd=cwd,
                env=child_env,
                capture_output=True,
                text=True,
                timeout=effective_timeout,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning("Command timed out after %ss: %s", effective_timeout, command)
            return CommandResult(
                command=command,
                exit_code=TIMEOUT_EXIT_CODE,
                stdout=_as_text(e.stdout),
                stderr=_as_text(e.stderr) or f"Command timed out after {effective_timeout}s",
                timed_out=True,
            )
        except OSError as e:
            raise ShellError(command, str(e)) from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug("Exit %d in %dms: %s", proc.returncode, elapsed_ms, command)

        return CommandResult(
            command=command,
            exit_code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )

    def which(self, executable: str) -> str | None:
        """Full path of an executable on the search path, or None."""
        return shutil.which(executable, path=self.search_path())

    def command_exists(self, executable: str) -> bool:
        return self.which(executable) is not None


_default_runner = ShellRunner()


def run(
    command: str,
    *,
    timeout: int | None = None,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run a command with the process-wide default runner."""
    return _default_runner.run(command, timeout=timeout, cwd=cwd, env=env)


def which(executable: str) -> str | None:
    return _default_runner.which(executable)


def command_exists(executable: str) -> bool:
    return _default_runner.command_exists(executable)
