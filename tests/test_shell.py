"""
Tests for the shell executor.

These spawn real /bin/sh processes, so they stick to POSIX builtins.
"""

import os
import stat
import subprocess
from pathlib import Path

import pytest

from devinstall.adapters.shell import command
from devinstall.adapters.shell.command import TIMEOUT_EXIT_CODE, ShellRunner
from devinstall.core.errors import ShellError


def _make_executable(directory: Path, name: str) -> Path:
    path = directory / name
    path.write_text("#!/bin/sh\necho from-extra-path\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


class TestRun:
    def test_captures_stdout(self):
        result = ShellRunner().run("echo hello")
        assert result.ok
        assert result.exit_code == 0
        assert result.stdout == "hello\n"
        assert result.command == "echo hello"

    def test_nonzero_exit_is_not_raised(self):
        result = ShellRunner().run("echo oops >&2; exit 3")
        assert not result.ok
        assert result.exit_code == 3
        assert result.stderr == "oops\n"
        assert result.error_output == "oops\n"

    def test_timeout_kills_command(self):
        result = ShellRunner().run("sleep 5", timeout=1)
        assert result.timed_out
        assert result.exit_code == TIMEOUT_EXIT_CODE
        assert not result.ok

    def test_default_timeout_applies(self):
        result = ShellRunner(default_timeout=1).run("sleep 5")
        assert result.timed_out

    def test_explicit_timeout_overrides_default(self, monkeypatch):
        seen = {}
        real_run = subprocess.run

        def _spy(*args, **kwargs):
            seen["timeout"] = kwargs.get("timeout")
            return real_run(*args, **kwargs)

        monkeypatch.setattr(subprocess, "run", _spy)
        ShellRunner(default_timeout=30).run("true", timeout=5)
        assert seen["timeout"] == 5

    def test_env_and_cwd(self, tmp_path: Path):
        result = ShellRunner().run('echo "$GREETING"; pwd', env={"GREETING": "hi"}, cwd=str(tmp_path))
        lines = result.stdout.splitlines()
        assert lines[0] == "hi"
        assert Path(lines[1]).resolve() == tmp_path.resolve()

    def test_spawn_failure_raises(self, tmp_path: Path):
        with pytest.raises(ShellError) as exc:
            ShellRunner().run("echo never", cwd=str(tmp_path / "missing"))
        assert exc.value.command == "echo never"
        assert str(exc.value).startswith("Unable to run 'echo never'")

    def test_module_level_run(self):
        assert command.run("echo module").stdout == "module\n"


class TestSearchPath:
    def test_add_path_is_searched_first(self, tmp_path: Path):
        _make_executable(tmp_path, "devinstall-sample")
        runner = ShellRunner()
        assert runner.which("devinstall-sample") is None

        runner.add_path(str(tmp_path))
        assert runner.which("devinstall-sample") == str(tmp_path / "devinstall-sample")
        assert runner.command_exists("devinstall-sample")
        assert runner.search_path().split(os.pathsep)[0] == str(tmp_path)

    def test_add_path_is_idempotent(self, tmp_path: Path):
        runner = ShellRunner()
        runner.add_path(str(tmp_path))
        runner.add_path(str(tmp_path))
        assert runner.extra_paths == [str(tmp_path)]

    def test_children_see_extra_path(self, tmp_path: Path):
        _make_executable(tmp_path, "devinstall-sample")
        runner = ShellRunner(extra_paths=[str(tmp_path)])
        assert runner.run("devinstall-sample").stdout == "from-extra-path\n"

    def test_search_path_without_extras(self, monkeypatch):
        monkeypatch.setenv("PATH", "/usr/bin")
        assert ShellRunner().search_path() == "/usr/bin"

    def test_missing_command(self):
        assert not ShellRunner().command_exists("devinstall-no-such-command")
