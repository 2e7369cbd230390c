"""
Token types produced by the command line tokenizer. Tokens are immutable.
Every token remembers the line it came from and the offset at which it
started, but those two fields don't take part in equality, so tests (and
callers) can compare tokens structurally.
"""

from dataclasses import dataclass, field
from typing import Self


@dataclass(frozen=True)
class Token:
    """
    Base class for all command line tokens.
    """

    line: str = field(default="", compare=False, repr=False, kw_only=True)
    position: int = field(default=-1, compare=False, kw_only=True)


@dataclass(frozen=True)
class WordToken(Token):
    """
    A plain word, after quote removal and expansion.
    """

    text: str

    def __str__(self: Self) -> str:
        return self.text


@dataclass(frozen=True)
class RedirectOutToken(Token):
    """
    [n]>file or [n]>>file
    """

    fd: int
    filename: str
    append: bool = False

    def __str__(self: Self) -> str:
        op = ">>" if self.append else ">"
        return f"{self.fd}{op}{self.filename}"


@dataclass(frozen=True)
class FdDupToken(Token):
    """
    [n]>&m, sending file descriptor `from_fd` to wherever `to_fd` goes.
    """

    from_fd: int
    to_fd: int

    def __str__(self: Self) -> str:
        return f"{self.from_fd}>&{self.to_fd}"


@dataclass(frozen=True)
class PipeToken(Token):
    """
    Everything following a '|', left exactly as typed for the shell to deal
    with.
    """

    command: str

    def __str__(self: Self) -> str:
        return self.command


@dataclass(frozen=True)
class SessionRedirectToken(Token):
    """
    >+[id] or >>+[id], sending output to another session. A session_id of
    None means "the current session".
    """

    session_id: int | None = None
    append: bool = False

    def __str__(self: Self) -> str:
        op = ">>" if self.append else ">"
        target = "" if self.session_id is None else str(self.session_id)
        return f"{op}+{target}"


@dataclass(frozen=True)
class TerminatorToken(Token):
    """
    The statement terminator character, seen outside of any quotes.
    """

    char: str = ";"

    def __str__(self: Self) -> str:
        return self.char
