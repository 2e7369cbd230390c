"""
Analyzer for Oracle PL/SQL.
"""

import logging
from typing import Self

from sqshell.analyzers.base import SQLAnalyzer, ends_with_terminator
from sqshell.keywords import KeywordTokenizer

logger = logging.getLogger(__name__)

PLSQL_KEYWORDS = ("END", "DECLARE", "EXCEPTION")
PLSQL_OBJECTS = ("TYPE", "TRIGGER", "CONTEXT", "FUNCTION", "PACKAGE", "PROCEDURE")


class PLSQLAnalyzer(SQLAnalyzer):
    """
    A very simplistic look at PL/SQL. Plain SQL is terminated by a trailing
    ";", as usual. Once the batch looks like PL/SQL, though, semicolons are
    part of the code, so the batch is only terminated by a doubled ";" or by
    a ";" on a line of its own.
    """

    name = "PL/SQL"

    def is_terminated(self: Self, batch: str, terminator: str) -> bool:
        if terminator != ";":
            return ends_with_terminator(KeywordTokenizer(batch, terminator))

        tokenizer = KeywordTokenizer(batch, terminator)
        is_plsql = False
        trailing_terminators = 0
        for token in tokenizer:
            if token == terminator:
                trailing_terminators += 1
            else:
                trailing_terminators = 0

            if not is_plsql:
                match token:
                    case "BEGIN":
                        is_plsql = tokenizer.peek() not in ("TRAN", "TRANSACTION")
                    case "CREATE":
                        is_plsql = self._is_create_object(tokenizer)
                    case t if t in PLSQL_KEYWORDS:
                        is_plsql = True

        if trailing_terminators == 0:
            return False

        if not is_plsql or trailing_terminators > 1:
            return True

        logger.debug("PL/SQL batch: looking for a terminator on its own line")
        return terminator_on_own_line(batch, terminator)

    def _is_create_object(self: Self, tokenizer: KeywordTokenizer) -> bool:
        """
        Called after CREATE. Checks for CREATE [OR REPLACE] <plsql object>.
        """
        tokenizer.skip("OR", "REPLACE")
        return tokenizer.peek() in PLSQL_OBJECTS


def terminator_on_own_line(batch: str, terminator: str) -> bool:
    """
    Returns True if only whitespace separates the last terminator in the
    batch from the preceding newline.
    """
    idx = batch.rfind(terminator) - 1
    while idx >= 0:
        ch = batch[idx]
        if ch == "\n":
            return True
        if not ch.isspace():
            return False
        idx -= 1

    return False
