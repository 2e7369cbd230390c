"""
The command line tokenizer. This breaks a line of input into shell-like
tokens, doing quote removal, escape processing, variable expansion and
backtick command substitution along the way, and recognizing output
redirections, pipes and the statement terminator as distinct tokens.

The rules follow Bash as closely as is practical. For example, in

    \\echo hello `echo "how are you"`

the output of the backtick command is split on the field separator, so the
tokens are "\\echo", "hello", "how", "are" and "you", not "how are you" as a
single word.

One known difference: variable values are expanded before a backtick command
is handed to the shell, so a variable whose value itself contains "$HOME"
will see $HOME expanded by the shell.
"""

import logging
import re
import string
from collections import deque
from typing import Callable, Iterator, Self

from sqshell.cursor import WHITESPACE, LexCursor, is_whitespace
from sqshell.errors import CommandLineSyntaxError, ShellError
from sqshell.expander import ENVIRONMENT_EXPANDER, StringExpander
from sqshell.shell import ShellRunner
from sqshell.tokens import (
    FdDupToken,
    PipeToken,
    RedirectOutToken,
    SessionRedirectToken,
    TerminatorToken,
    Token,
    WordToken,
)

logger = logging.getLogger(__name__)

# Characters that always end an unquoted word.
OPERATOR_CHARS = "'\"|<>&"
ESCAPE = "\\"
BACKTICK = "`"
DIGITS = string.digits


class CommandLineTokenizer:
    """
    Pulls tokens, one at a time, from a single command line. A tokenizer is
    good for one line; create a new one for the next.
    """

    # pylint: disable=too-many-instance-attributes,too-many-arguments

    def __init__(
        self: Self,
        line: str,
        *,
        terminator: str | None = None,
        expander: StringExpander | None = ENVIRONMENT_EXPANDER,
        expand_backticks: bool = True,
        field_separator: str = WHITESPACE,
        shell_runner: ShellRunner | None = None,
        retain_double_quotes: bool = False,
        retain_initial_escape: bool = True,
    ) -> None:
        """
        Initialize a tokenizer.

        :param line: the line to tokenize
        :param terminator: the statement terminator character, returned as a
            TerminatorToken when seen outside of quotes, or None to disable
        :param expander: expands $variables, or None for no expansion
        :param expand_backticks: whether `command` runs the command. If not,
            backticks are ordinary characters.
        :param field_separator: the characters on which backtick output is
            split into words (like $IFS)
        :param shell_runner: runs backtick commands. Defaults to /bin/sh.
        :param retain_double_quotes: keep the double quotes around
            double-quoted text (used when the quotes mark a SQL quoted
            identifier). Never applied to redirection filenames.
        :param retain_initial_escape: keep a leading backslash on the very
            first word, so that "\\echo" stays "\\echo"
        """
        if terminator is not None and len(terminator) != 1:
            raise ValueError(f'Terminator must be one character, not "{terminator}"')

        self.line = line
        self.terminator = terminator
        self.expander = expander
        self.expand_backticks = expand_backticks
        self.field_separator = field_separator
        self.shell_runner = shell_runner or ShellRunner()
        self.retain_double_quotes = retain_double_quotes
        self.retain_initial_escape = retain_initial_escape

        self._cursor = LexCursor(line)
        self._pending: deque[Token] = deque()
        self._token_count = 0

    def __iter__(self: Self) -> Iterator[Token]:
        while (token := self.next()) is not None:
            yield token

    def __str__(self: Self) -> str:
        return str(self._cursor)

    def next(self: Self) -> Token | None:
        """
        Returns the next token on the line, or None at the end of the line.

        :raises: CommandLineSyntaxError if the line is malformed
        """
        if self._pending:
            self._token_count += 1
            return self._pending.popleft()

        cursor = self._cursor
        cursor.skip_whitespace()
        if cursor.at_end():
            return None

        ch = cursor.peek()
        token: Token | None
        # Output redirection can look like any of:
        #   >  >>  n>  n>>  n>&m  >+n  >>+n
        if ch == ">" or (ch in DIGITS and cursor.peek(1) == ">"):
            token = self._parse_output_redirection()
        elif ch == "|":
            token = self._parse_pipe()
        elif self._is_terminator(ch):
            token = TerminatorToken(char=ch, line=self.line, position=cursor.idx)
            cursor.next()
        elif self.expand_backticks and ch == BACKTICK:
            token = self._parse_backtick()
            # A command producing no output, like `echo foo >/dev/null`,
            # is treated as though it was never there.
            if token is None:
                return self.next()
        else:
            token = self._parse_word(self.retain_double_quotes)

        self._token_count += 1
        return token

    def _error(self: Self, message: str, position: int) -> CommandLineSyntaxError:
        return CommandLineSyntaxError(message, position, self.line)

    def _is_terminator(self: Self, ch: str | None) -> bool:
        return self.terminator is not None and ch == self.terminator

    def _is_word_char(self: Self, ch: str | None) -> bool:
        return not (
            ch is None
            or is_whitespace(ch)
            or self._is_terminator(ch)
            or ch in OPERATOR_CHARS
            or (self.expand_backticks and ch == BACKTICK)
        )

    def _parse_pipe(self: Self) -> PipeToken:
        cursor = self._cursor
        start = cursor.mark()
        cursor.next()  # the '|'
        cursor.skip_whitespace()
        if cursor.at_end():
            raise self._error("Expected a command following '|'", cursor.idx)

        return PipeToken(command=cursor.remainder(), line=self.line, position=start)

    def _parse_output_redirection(self: Self) -> Token:
        cursor = self._cursor
        start = cursor.mark()
        fd = 1
        append = False

        # Our caller has made sure a '>' follows a leading digit.
        if cursor.peek() in DIGITS:
            fd = int(cursor.next())

        cursor.next()  # the '>'

        if cursor.peek() == ">":
            cursor.next()
            append = True
        elif cursor.peek() == "&":
            cursor.next()
            return FdDupToken(
                from_fd=fd,
                to_fd=self._parse_descriptor_number(),
                line=self.line,
                position=start,
            )

        # >+ and >>+ redirect to a session rather than a file.
        if cursor.peek() == "+":
            cursor.next()
            session_id = None
            if cursor.peek() is not None and cursor.peek() in DIGITS:
                session_id = self._parse_descriptor_number()
            return SessionRedirectToken(
                session_id=session_id, append=append, line=self.line, position=start
            )

        # The filename gets normal expansion, so let next() parse it, but
        # never with the double quotes retained.
        saved_retain = self.retain_double_quotes
        try:
            self.retain_double_quotes = False
            filename = self.next()
        finally:
            self.retain_double_quotes = saved_retain

        if not isinstance(filename, WordToken):
            raise self._error(
                "Expected a target filename following redirection", cursor.idx
            )

        return RedirectOutToken(
            fd=fd,
            filename=filename.text,
            append=append,
            line=self.line,
            position=start,
        )

    def _parse_descriptor_number(self: Self) -> int:
        cursor = self._cursor
        start = cursor.idx
        cursor.skip_whitespace()

        digits: list[str] = []
        while cursor.peek() is not None and cursor.peek() in DIGITS:
            digits.append(cursor.next())

        if not digits:
            raise self._error(
                "Expected a number following file descriptor duplication token '>&'",
                start,
            )
        return int("".join(digits))

    def _parse_word(self: Self, retain_double_quotes: bool) -> WordToken:
        """
        Consume a word. Something like this' is a '"single"\\ word is all
        one word; each piece is expanded (or not) according to its quoting.
        """
        cursor = self._cursor
        start = cursor.mark()
        parts: list[str] = []

        while not cursor.at_end():
            ch = cursor.peek()
            if (
                ch == ESCAPE
                and self.retain_initial_escape
                and self._token_count == 0
                and cursor.idx == start
            ):
                # Shell commands start with a backslash. Ordinary escape
                # processing would turn "\echo" into "echo".
                parts.append(cursor.next())
            elif ch == "'":
                self._single_quoted(parts)
            elif ch == '"':
                self._double_quoted(parts, retain_double_quotes)
            elif self._is_word_char(ch):
                self._consume_and_expand(parts, self._is_word_char)
            else:
                break

        if cursor.idx == start:
            raise self._error(f"Unexpected '{cursor.peek()}'", start)

        return WordToken(text="".join(parts), line=self.line, position=start)

    def _single_quoted(self: Self, parts: list[str]) -> None:
        cursor = self._cursor
        start = cursor.idx
        cursor.next()  # opening quote

        end = self.line.find("'", cursor.idx)
        if end < 0:
            raise self._error("Closing single quote not found", start)

        parts.append(self.line[cursor.idx : end])
        cursor.reset(end + 1)

    def _double_quoted(self: Self, parts: list[str], retain_double_quotes: bool) -> None:
        cursor = self._cursor
        start = cursor.idx
        cursor.next()  # opening quote

        if retain_double_quotes:
            parts.append('"')

        self._consume_and_expand(parts, lambda c: c != '"')
        if cursor.at_end():
            raise self._error("Closing double quote not found", start)

        if retain_double_quotes:
            parts.append('"')

        cursor.next()  # closing quote

    def _escape(self: Self) -> str:
        cursor = self._cursor
        if not cursor.has_at_least(2):
            raise self._error("Expected character following '\\'", cursor.idx + 1)
        cursor.next()  # the backslash
        return cursor.next()

    def _consume_and_expand(
        self: Self, parts: list[str], accept: Callable[[str | None], bool]
    ) -> None:
        """
        Consume characters while `accept` likes them, handling escapes, then
        expand variables in what was consumed.
        """
        cursor = self._cursor
        chunk: list[str] = []
        while not cursor.at_end():
            ch = cursor.peek()
            if ch == ESCAPE:
                escaped = self._escape()
                # "$$" is how an escaped dollar survives expansion.
                if escaped == "$" and self.expander is not None:
                    escaped = "$$"
                chunk.append(escaped)
            elif accept(ch):
                chunk.append(cursor.next())
            else:
                break

        text = "".join(chunk)
        if self.expander is not None:
            text = self.expander.expand_text(text)
        parts.append(text)

    def _parse_backtick(self: Self) -> Token | None:
        cursor = self._cursor
        start = cursor.mark()
        cursor.next()  # opening backtick
        cursor.skip_whitespace()

        # Rebuild the command, expanding variables but keeping the user's
        # quoting so the shell sees it.
        command: list[str] = []
        done = False
        while not done and not cursor.at_end():
            ch = cursor.peek()
            match ch:
                case "'":
                    command.append("'")
                    self._single_quoted(command)
                    command.append("'")
                case "\\":
                    command.append(self._escape())
                case '"':
                    self._double_quoted(command, True)
                case "`":
                    cursor.next()
                    done = True
                case _ if is_whitespace(ch) or not self._is_word_char(ch):
                    command.append(cursor.next())
                case _:
                    self._consume_and_expand(command, self._is_word_char)

        if not done:
            raise self._error("Missing closing back-tick (`)", start)

        command_line = "".join(command)
        logger.debug("Expanding backtick command: %s", command_line)
        try:
            output = self.shell_runner.run(command_line)
        except ShellError as e:
            raise self._error(f"Failed to execute: {command_line}: {e}", start) from e

        self._pending.extend(
            WordToken(text=field, line=self.line, position=start)
            for field in split_fields(output, self.field_separator)
        )
        return self._pending.popleft() if self._pending else None


def split_fields(output: str, field_separator: str) -> list[str]:
    """
    Split command output into words on any of the field separator
    characters. Empty words are dropped, and trailing newlines are removed
    from the last word.
    """
    if field_separator:
        pieces = re.split(f"[{re.escape(field_separator)}]", output)
    else:
        pieces = [output]

    fields = [p for p in pieces if p != ""]
    if fields:
        fields[-1] = fields[-1].rstrip("\r\n")
    return [f for f in fields if f != ""]


def tokenize(line: str, **options) -> list[Token]:
    """
    Tokenize an entire line. Accepts the same keyword options as
    CommandLineTokenizer.

    :raises: CommandLineSyntaxError if the line is malformed
    """
    return list(CommandLineTokenizer(line, **options))
