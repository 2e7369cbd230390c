"""Tests for the operating system shell runner."""

from __future__ import annotations

import os
import subprocess

import pytest

from sqshell.errors import ShellError
from sqshell.shell import (
    COMMAND_PLACEHOLDER,
    DEFAULT_SHELL_COMMAND,
    ShellRunner,
    parse_shell_command,
)

needs_sh = pytest.mark.skipif(os.name == "nt", reason="needs /bin/sh")


class TestShellCommand:
    def test_parse(self):
        assert parse_shell_command("/bin/bash,-c,?") == ("/bin/bash", "-c", "?")

    def test_default_has_placeholder(self):
        assert COMMAND_PLACEHOLDER in DEFAULT_SHELL_COMMAND

    def test_argv(self):
        runner = ShellRunner(("/bin/bash", "-c", "?"))
        assert runner.argv("ls -l") == ["/bin/bash", "-c", "ls -l"]


class TestShellRunner:
    @needs_sh
    def test_run_captures_stdout(self):
        assert ShellRunner().run("echo hello; echo oops >&2") == "hello\n"

    @needs_sh
    def test_run_ignores_exit_status(self):
        assert ShellRunner().run("exit 3") == ""

    @needs_sh
    def test_pipe_returns_status(self):
        assert ShellRunner().pipe("cat >/dev/null; exit 2", "text") == 2

    def test_missing_shell(self):
        runner = ShellRunner(("/no/such/shell/anywhere", "-c", "?"))
        with pytest.raises(ShellError):
            runner.run("echo hi")

    def test_run_uses_subprocess(self, monkeypatch):
        calls = []

        def fake_run(argv, **kwargs):
            calls.append((argv, kwargs))
            return subprocess.CompletedProcess(argv, 0, stdout="out\n")

        monkeypatch.setattr(subprocess, "run", fake_run)
        assert ShellRunner(("sh", "-c", "?")).run("date") == "out\n"
        argv, kwargs = calls[0]
        assert argv == ["sh", "-c", "date"]
        assert kwargs["stdout"] == subprocess.PIPE
        assert kwargs["stderr"] == subprocess.DEVNULL
