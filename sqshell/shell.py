"""
Runs commands through the operating system shell, for backtick expansion and
for piping command output.
"""

import logging
import os
import subprocess
from typing import Self, Sequence

from sqshell.errors import ShellError

logger = logging.getLogger(__name__)

# "?" in a shell command is replaced by the command to run.
COMMAND_PLACEHOLDER = "?"

if os.name == "nt":
    DEFAULT_SHELL_COMMAND: tuple[str, ...] = ("cmd.exe", "/c", COMMAND_PLACEHOLDER)
else:
    DEFAULT_SHELL_COMMAND = ("/bin/sh", "-c", COMMAND_PLACEHOLDER)


def parse_shell_command(spec: str) -> tuple[str, ...]:
    """
    Parse a comma-separated shell command specification, such as
    "/bin/bash,-c,?".
    """
    return tuple(spec.split(","))


class ShellRunner:
    """
    Runs a command line with the configured shell.
    """

    def __init__(self: Self, command: Sequence[str] = DEFAULT_SHELL_COMMAND) -> None:
        """
        :param command: the shell invocation. Any "?" element is replaced by
            the command line being run.
        """
        self.command = tuple(command)

    def argv(self: Self, command_line: str) -> list[str]:
        return [
            command_line if arg == COMMAND_PLACEHOLDER else arg
            for arg in self.command
        ]

    def run(self: Self, command_line: str) -> str:
        """
        Run a command and return what it wrote to standard output. Standard
        error is discarded. This call blocks until the command finishes; both
        pipes are drained, so a chatty command can't deadlock.

        :param command_line: the command to hand to the shell

        :returns: the captured standard output

        :raises: ShellError if the command could not be started
        """
        argv = self.argv(command_line)
        logger.debug("Running %s", argv)
        try:
            result = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                check=False,
                text=True,
            )
        except OSError as e:
            # pylint: disable=raise-missing-from
            raise ShellError(str(e))

        logger.debug("%s exited with status %d", argv, result.returncode)
        return result.stdout

    def pipe(self: Self, command_line: str, text: str) -> int:
        """
        Run a command, feeding it `text` on standard input. Its output goes
        wherever ours goes.

        :returns: the exit status of the command

        :raises: ShellError if the command could not be started
        """
        argv = self.argv(command_line)
        logger.debug("Piping to %s", argv)
        try:
            result = subprocess.run(argv, input=text, text=True, check=False)
        except OSError as e:
            # pylint: disable=raise-missing-from
            raise ShellError(str(e))

        return result.returncode
