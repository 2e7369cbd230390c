"""
Analyzer for Sybase and Microsoft Transact-SQL.
"""

import logging
from typing import Self

from sqshell.analyzers.base import SQLAnalyzer
from sqshell.cursor import LexCursor
from sqshell.keywords import (
    QUOTED_IDENTIFIER_TOKEN,
    VARIABLE_TOKEN,
    KeywordTokenizer,
    skip_name,
)

logger = logging.getLogger(__name__)

NOT_A_BLOCK = ("TRAN", "TRANSACTION", "DISTRIBUTED")


def tsql_lexeme(cursor: LexCursor) -> str | None:
    """
    Recognize [bracketed names] and @variables.
    """
    match cursor.peek():
        case "[":
            cursor.next()
            cursor.skip_until("]")
            cursor.next()
            return QUOTED_IDENTIFIER_TOKEN
        case "@":
            cursor.next()
            skip_name(cursor)
            return VARIABLE_TOKEN
        case _:
            return None


class TSQLAnalyzer(SQLAnalyzer):
    """
    Unlike PL/SQL, it is nearly impossible to tell when the body of a T-SQL
    procedure or trigger is complete, so this only checks that the batch
    ends with the terminator. Pick a terminator that isn't part of the
    language (such as the traditional "go") when writing procedures.
    """

    name = "Transact-SQL"

    def is_terminated(self: Self, batch: str, terminator: str) -> bool:
        tokenizer = KeywordTokenizer(batch, terminator, hook=tsql_lexeme)

        depth = 0
        last = None
        for token in tokenizer:
            if token == "BEGIN":
                if tokenizer.peek() not in NOT_A_BLOCK:
                    depth += 1
            elif token == "END":
                depth -= 1
            last = token

        logger.debug("T-SQL batch ends at block depth %d", depth)
        return last == terminator
