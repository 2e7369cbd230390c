"""
The analyzer interface, plus the two trivial analyzers.
"""

from typing import Self

from sqshell.keywords import KeywordTokenizer


class SQLAnalyzer:
    """
    An analyzer decides whether a batch of SQL is complete. There are
    different implementations for different database vendors, since some
    dialects allow the terminator inside procedural blocks.

    Analyzers never raise. Anything they can't make sense of is simply "not
    terminated yet".
    """

    name: str = ""

    def get_name(self: Self) -> str:
        return self.name

    def is_terminated(self: Self, batch: str, terminator: str) -> bool:
        """
        Determine whether `batch` is terminated by `terminator`.

        :param batch: the SQL collected so far
        :param terminator: the terminator character, usually ";"

        :returns: True if the batch is ready to run
        """
        raise NotImplementedError

    def __repr__(self: Self) -> str:
        return f"{type(self).__name__}()"


def ends_with_terminator(tokenizer: KeywordTokenizer) -> bool:
    """
    Consume every token and report whether the last one was the terminator.
    """
    last = None
    for token in tokenizer:
        last = token
    return last == tokenizer.terminator


class ANSIAnalyzer(SQLAnalyzer):
    """
    A generic analyzer for ANSI SQL, and the default when nothing better is
    known. It only makes sure that the terminator isn't inside a string, a
    quoted identifier or a comment, and that nothing but whitespace follows
    it.
    """

    name = "ANSI SQL"

    def is_terminated(self: Self, batch: str, terminator: str) -> bool:
        return ends_with_terminator(KeywordTokenizer(batch, terminator))


class NullAnalyzer(SQLAnalyzer):
    """
    Never considers a batch terminated. With this analyzer, batches are sent
    only when the user explicitly asks (\\go).
    """

    name = "None"

    def is_terminated(self: Self, batch: str, terminator: str) -> bool:
        return False
