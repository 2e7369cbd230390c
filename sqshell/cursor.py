"""
A position-tracking cursor over an immutable string. Both the command line
tokenizer and the SQL keyword tokenizer walk their input with it.
"""

from typing import Self

WHITESPACE = " \t\n\r"
QUOTES = "'\""


def is_whitespace(ch: str | None) -> bool:
    """
    Returns True if `ch` is a whitespace character. EOF (None) is not.
    """
    return ch is not None and ch.isspace()


def is_quote(ch: str | None) -> bool:
    """
    Returns True if `ch` is a single or double quote.
    """
    return ch is not None and ch in QUOTES


def is_name_char(ch: str | None) -> bool:
    """
    Returns True if `ch` can be part of a keyword or unquoted identifier
    (a letter, a digit or an underscore).
    """
    return ch is not None and (ch.isalnum() or ch == "_")


class LexCursor:
    """
    A cursor over a line of text. The position is a plain integer, so saving
    and restoring it (see mark() and reset()) is all the backtracking the
    tokenizers need. EOF is reported as None.
    """

    def __init__(self: Self, text: str, idx: int = 0) -> None:
        self.text = text
        self.length = len(text)
        self.idx = max(0, min(idx, self.length))

    def at_end(self: Self) -> bool:
        """
        Returns True if all of the input has been consumed.
        """
        return self.idx >= self.length

    def has_at_least(self: Self, count: int) -> bool:
        """
        Returns True if at least `count` characters remain, counting the
        current one.
        """
        return self.length - self.idx >= count

    def peek(self: Self, ahead: int = 0) -> str | None:
        """
        Look at the character `ahead` positions past the current one, without
        moving. Returns None past the end of the input.
        """
        pos = self.idx + ahead
        if 0 <= pos < self.length:
            return self.text[pos]
        return None

    def next(self: Self) -> str | None:
        """
        Consume and return the current character, or None at the end of the
        input. Never advances past the end.
        """
        if self.idx >= self.length:
            return None
        ch = self.text[self.idx]
        self.idx += 1
        return ch

    def unget(self: Self, count: int = 1) -> None:
        """
        Step back `count` characters.
        """
        self.idx = max(0, self.idx - count)

    def skip_whitespace(self: Self) -> None:
        while self.idx < self.length and self.text[self.idx].isspace():
            self.idx += 1

    def skip_until(self: Self, stop: str) -> None:
        """
        Advance until the current character is `stop` or the input ends.
        """
        pos = self.text.find(stop, self.idx)
        self.idx = self.length if pos < 0 else pos

    def remainder(self: Self) -> str:
        """
        Consume and return everything that is left.
        """
        rest = self.text[self.idx :]
        self.idx = self.length
        return rest

    def mark(self: Self) -> int:
        return self.idx

    def reset(self: Self, position: int) -> None:
        self.idx = max(0, min(position, self.length))

    def clone(self: Self) -> "LexCursor":
        """
        Returns an independent cursor at the same position. Advancing the
        clone never moves this cursor.
        """
        return LexCursor(self.text, self.idx)

    def __str__(self: Self) -> str:
        return f"{self.text[:self.idx]}^{self.text[self.idx:]}"
