"""
Exception classes shared by the sqshell parsing code and the command loop.
"""

from typing import Self


class SQLShellException(Exception):
    """
    Base class for exceptions thrown by the SQL shell. Also thrown explicitly
    for certain errors in the SQL shell.
    """


class AbortError(SQLShellException):
    """
    Thrown to force an abort with a non-zero exit code.
    """


class UnknownAnalyzerError(SQLShellException):
    """
    Thrown when an analyzer is requested by a name that isn't registered.
    """


class ShellError(SQLShellException):
    """
    Thrown when an external shell command cannot be started.
    """


class CommandLineSyntaxError(SQLShellException):
    """
    Thrown by the command line tokenizer when a line cannot be parsed. The
    exception carries the offending position and the complete line, so the
    problem can be pointed out to the user.
    """

    def __init__(self: Self, message: str, position: int, line: str) -> None:
        """
        Initialize a CommandLineSyntaxError.

        :param message: what went wrong
        :param position: the character offset in `line` of the problem
        :param line: the full line being tokenized
        """
        super().__init__(message)
        self.message = message
        self.position = position
        self.line = line

    def format(self: Self) -> str:
        """
        Format the error with the source line and a caret under the
        offending position.
        """
        pad = " " * max(0, min(self.position, len(self.line)))
        return f"{self.message}\n  {self.line}\n  {pad}^"
