"""
A lightweight SQL tokenizer used by the terminator analyzers. It doesn't
understand SQL; it just walks the text returning keywords (upper-cased) and
single punctuation characters, while stepping over whitespace, comments,
string literals and quoted identifiers so that nothing inside them is ever
mistaken for a keyword or a terminator.
"""

from typing import Callable, Iterator, Self

from sqshell.cursor import LexCursor, is_name_char, is_quote

# Placeholders returned in place of things whose contents don't matter.
STRING_LITERAL_TOKEN = "'<string>'"
QUOTED_IDENTIFIER_TOKEN = '"<identifier>"'
VARIABLE_TOKEN = "$<variable>"

# A dialect hook gets a look at the input before the generic word rule. It
# either consumes a lexeme and returns the token for it, or returns None and
# leaves the cursor alone.
LexemeHook = Callable[[LexCursor], str | None]


def skip_quoted_string(cursor: LexCursor) -> None:
    """
    Skip a quoted string or identifier, with the cursor sitting on the
    opening quote. A doubled quote ('' or "") is an escaped quote. An
    unterminated string runs to the end of the input.
    """
    quote = cursor.next()
    while not cursor.at_end():
        if cursor.next() == quote:
            if cursor.peek() == quote:
                cursor.next()
            else:
                return


def skip_name(cursor: LexCursor) -> None:
    while is_name_char(cursor.peek()):
        cursor.next()


class KeywordTokenizer:
    """
    Iterates over the keywords and punctuation of a chunk of SQL.
    """

    def __init__(
        self: Self,
        sql: str,
        terminator: str,
        upper: bool = True,
        hook: LexemeHook | None = None,
    ) -> None:
        """
        :param sql: the SQL text to tokenize
        :param terminator: the terminator character. It is always returned as
            a token of its own, whatever character it is.
        :param upper: return keywords upper-cased
        :param hook: optional dialect hook for vendor-specific lexemes
        """
        self.sql = sql
        self.terminator = terminator
        self.upper = upper
        self.hook = hook
        self._cursor = LexCursor(sql)
        self._pushed: list[str] = []

    def __iter__(self: Self) -> Iterator[str]:
        while (token := self.next()) is not None:
            yield token

    def next(self: Self) -> str | None:
        """
        Returns the next token, or None at the end of the input.
        """
        if self._pushed:
            return self._pushed.pop()

        self._skip()
        cursor = self._cursor
        if cursor.at_end():
            return None

        ch = cursor.peek()
        if ch == self.terminator:
            cursor.next()
            return ch

        if is_quote(ch):
            skip_quoted_string(cursor)
            return STRING_LITERAL_TOKEN if ch == "'" else QUOTED_IDENTIFIER_TOKEN

        if self.hook is not None:
            # Hooks see a copy. Only a recognized lexeme moves the cursor.
            lookahead = cursor.clone()
            if (token := self.hook(lookahead)) is not None:
                cursor.reset(lookahead.idx)
                return token

        if is_name_char(ch):
            start = cursor.mark()
            while is_name_char(cursor.peek()) and cursor.peek() != self.terminator:
                cursor.next()
            word = self.sql[start : cursor.idx]
            return word.upper() if self.upper else word

        return cursor.next()

    def unget(self: Self, token: str | None) -> None:
        """
        Push a token back, to be returned by the next call to next(). Tokens
        pushed back come out in reverse order.
        """
        if token is not None:
            self._pushed.append(token)

    def peek(self: Self) -> str | None:
        token = self.next()
        self.unget(token)
        return token

    def skip(self: Self, *expected: str) -> bool:
        """
        Consume the upcoming tokens if, and only if, they match `expected`
        (case-blind). If they don't, nothing is consumed.
        """
        consumed: list[str] = []
        for want in expected:
            token = self.next()
            if token is None or token.upper() != want.upper():
                self.unget(token)
                for t in reversed(consumed):
                    self.unget(t)
                return False
            consumed.append(token)

        return True

    def _skip(self: Self) -> None:
        """
        Skip whitespace and comments. Stops at the terminator, even if it
        looks like the start of a comment.
        """
        cursor = self._cursor
        while not cursor.at_end():
            ch = cursor.peek()
            if ch == self.terminator:
                return

            if ch.isspace():
                cursor.next()
            elif ch == "-" and cursor.peek(1) == "-":
                cursor.skip_until("\n")
            elif ch == "/" and cursor.peek(1) == "*":
                end = self.sql.find("*/", cursor.idx + 2)
                cursor.reset(len(self.sql) if end < 0 else end + 2)
            else:
                return
