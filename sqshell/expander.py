"""
Variable expansion for the command line tokenizer. An expander maps a
variable name to its value; the tokenizer asks it to expand the text of each
unquoted or double-quoted fragment of a word.
"""

import os
from string import Template
from typing import Any, Mapping, Self

from sqshell.cursor import WHITESPACE

NEWLINE = "\n"
CARRIAGE_RETURN = "\r"
TAB = "\t"


class StringExpander:
    """
    Base class for expanders. Subclasses implement expand(), which returns
    the value of a variable, or None if the variable isn't defined.
    """

    def expand(self: Self, name: str) -> str | None:
        """
        Look up a single variable.

        :param name: the variable name, without the leading "$"
        """
        raise NotImplementedError

    def expand_text(self: Self, text: str) -> str:
        """
        Expand all "$name" and "${name}" references in `text`. References to
        undefined variables are left intact, and "$$" becomes a literal "$".
        Expanded values are not expanded again.
        """
        if "$" not in text:
            return text
        return Template(text).safe_substitute(_ExpanderDict(self))


class _ExpanderDict(dict):
    """
    Adapts an expander to the mapping interface Template wants. A KeyError
    for an undefined variable is what makes safe_substitute() leave the
    reference alone.
    """

    def __init__(self: Self, expander: StringExpander) -> None:
        super().__init__()
        self._expander = expander

    def __getitem__(self: Self, key: Any) -> Any:
        value = self._expander.expand(key)
        if value is None:
            raise KeyError(key)
        return value


class EnvironmentExpander(StringExpander):
    """
    Expands variables from the process environment.
    """

    def expand(self: Self, name: str) -> str | None:
        return os.environ.get(name)


class MapExpander(StringExpander):
    """
    Expands variables from a dictionary. The dictionary is used live, so
    changes to it are seen by later expansions.
    """

    def __init__(self: Self, variables: Mapping[str, Any] | None = None) -> None:
        self.variables: dict[str, Any] = dict(variables or {})

    def expand(self: Self, name: str) -> str | None:
        value = self.variables.get(name)
        return None if value is None else str(value)


class ChainExpander(StringExpander):
    """
    Tries several expanders in order. The first one that knows the variable
    wins.
    """

    def __init__(self: Self, *expanders: StringExpander) -> None:
        self.expanders = expanders

    def expand(self: Self, name: str) -> str | None:
        for expander in self.expanders:
            if (value := expander.expand(name)) is not None:
                return value
        return None


ENVIRONMENT_EXPANDER = EnvironmentExpander()


def to_field_separator(sep: str) -> str:
    """
    Convert a user-supplied field separator into the set of characters it
    stands for. Recognizes \\n, \\r, \\t and \\s (all whitespace). Any other
    escaped character stands for itself, and a trailing backslash is kept.

    :param sep: the separator, possibly containing escape sequences

    :returns: the expanded separator characters
    """
    chars: list[str] = []
    idx = 0
    while idx < len(sep):
        ch = sep[idx]
        idx += 1
        if ch != "\\":
            chars.append(ch)
            continue

        if idx >= len(sep):
            chars.append("\\")
            continue

        ch = sep[idx]
        idx += 1
        match ch:
            case "n":
                chars.append(NEWLINE)
            case "r":
                chars.append(CARRIAGE_RETURN)
            case "t":
                chars.append(TAB)
            case "s":
                chars.append(WHITESPACE)
            case _:
                chars.append(ch)

    return "".join(chars)


def from_field_separator(field_separator: str) -> str:
    """
    The reverse of to_field_separator(): render a set of separator characters
    in its escaped, printable form. A separator made up of exactly the
    whitespace characters is rendered as "\\s".
    """
    if field_separator and set(field_separator) == set(WHITESPACE):
        return "\\s"

    escapes = {NEWLINE: "\\n", CARRIAGE_RETURN: "\\r", TAB: "\\t"}
    return "".join(escapes.get(ch, ch) for ch in field_separator)
