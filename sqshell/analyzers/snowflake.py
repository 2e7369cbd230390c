"""
Analyzer for Snowflake, including Snowflake Scripting blocks.

Before Snowflake Scripting, a ";" ended a statement unless it was inside a
string literal, a quoted identifier, a $$ here document $$ or a comment.
Scripting added blocks of statements that are themselves terminated, so a
";" inside a block must not end the batch. Naively matching BEGIN and END
doesn't work (variables, literals and transaction control use the same
words), so blocks are only looked for in the two places they can appear:

1. An anonymous block, which can only be the first statement of a batch:

       DECLARE
           x int := 10;
       BEGIN
           ...
       END;

2. The body of a stored procedure:

       CREATE PROCEDURE foo()
       ...
       LANGUAGE SQL
       ...
       AS
       BEGIN
           ...
       END;

Within a block, nested constructs are tracked on a stack, and the block is
complete when the stack empties.
"""

import logging
from enum import Enum, auto
from typing import Callable, Self

from sqshell.analyzers.base import SQLAnalyzer
from sqshell.cursor import LexCursor
from sqshell.keywords import (
    STRING_LITERAL_TOKEN,
    VARIABLE_TOKEN,
    KeywordTokenizer,
    skip_name,
)

logger = logging.getLogger(__name__)

HERE_DOCUMENT_DELIMITER = "$$"


class BlockType(Enum):
    """
    The kinds of construct that can be open inside a block.
    """

    CASE = auto()
    IF = auto()
    DO = auto()
    LOOP = auto()
    REPEAT = auto()
    BLOCK = auto()


def snowflake_lexeme(cursor: LexCursor) -> str | None:
    """
    Recognize $variables and $$ here documents $$. An unterminated here
    document runs to the end of the input.
    """
    if cursor.peek() != "$":
        return None

    cursor.next()
    if cursor.peek() == "$":
        cursor.next()
        end = cursor.text.find(HERE_DOCUMENT_DELIMITER, cursor.idx)
        cursor.reset(cursor.length if end < 0 else end + len(HERE_DOCUMENT_DELIMITER))
        return STRING_LITERAL_TOKEN

    skip_name(cursor)
    return VARIABLE_TOKEN


def skip_paren_expression(tokenizer: KeywordTokenizer) -> bool:
    """
    Skip a parenthesized expression, nested parentheses and all. If the next
    token isn't "(", nothing is consumed and False is returned. False is also
    returned if the input ends before the closing ")".
    """
    if not tokenizer.skip("("):
        return False

    depth = 1
    for token in tokenizer:
        if token == "(":
            depth += 1
        elif token == ")":
            depth -= 1
            if depth == 0:
                return True

    return False


def is_followed_by(tokenizer: KeywordTokenizer, *choices: str) -> bool:
    """
    If the next token is one of `choices`, consume it and return True.
    """
    if tokenizer.peek() in choices:
        tokenizer.next()
        return True
    return False


def is_begin_block(tokenizer: KeywordTokenizer) -> bool:
    """
    Called after BEGIN, to rule out BEGIN [WORK | TRANSACTION] [NAME <name>].
    """
    return tokenizer.peek() not in ("TRANSACTION", "WORK", "NAME")


def is_case_when(tokenizer: KeywordTokenizer) -> bool:
    # CASE [ (expression) ] WHEN
    skip_paren_expression(tokenizer)
    return is_followed_by(tokenizer, "WHEN")


def is_end_case(tokenizer: KeywordTokenizer) -> bool:
    # END [CASE]
    is_followed_by(tokenizer, "CASE")
    return True


def is_end_block(tokenizer: KeywordTokenizer) -> bool:
    # A bare END. END IF, END CASE, END FOR and END LOOP close other things.
    return tokenizer.peek() not in ("IF", "CASE", "FOR", "LOOP")


def is_end_if(tokenizer: KeywordTokenizer) -> bool:
    return is_followed_by(tokenizer, "IF")


def is_end_repeat(tokenizer: KeywordTokenizer) -> bool:
    return is_followed_by(tokenizer, "REPEAT")


def is_end_do(tokenizer: KeywordTokenizer) -> bool:
    # FOR ... DO ... END FOR, WHILE ... DO ... END WHILE
    return is_followed_by(tokenizer, "FOR", "WHILE")


def is_end_loop(tokenizer: KeywordTokenizer) -> bool:
    # [FOR ... | WHILE ...] LOOP ... END LOOP
    return is_followed_by(tokenizer, "LOOP")


# Called after END, with the innermost open construct on top of the stack.
# Each returns True (having consumed the closing keyword) if the END closes
# that construct.
CLOSERS: dict[BlockType, Callable[[KeywordTokenizer], bool]] = {
    BlockType.CASE: is_end_case,
    BlockType.IF: is_end_if,
    BlockType.REPEAT: is_end_repeat,
    BlockType.BLOCK: is_end_block,
    BlockType.DO: is_end_do,
    BlockType.LOOP: is_end_loop,
}


class SnowflakeAnalyzer(SQLAnalyzer):
    """
    Terminator analysis that understands Snowflake Scripting blocks.
    """

    name = "Snowflake"

    def is_terminated(self: Self, batch: str, terminator: str) -> bool:
        tokenizer = KeywordTokenizer(batch, terminator, hook=snowflake_lexeme)

        # Anonymous block
        if tokenizer.peek() in ("DECLARE", "BEGIN"):
            if not self.seek_end_of_block(tokenizer):
                logger.debug("Batch is inside an unterminated block")
                return False

        for token in tokenizer:
            if token == terminator:
                return True

            if token == "CREATE" and not self.skip_create(tokenizer):
                logger.debug("Batch is inside an unterminated procedure body")
                return False

        return False

    def skip_create(self: Self, tokenizer: KeywordTokenizer) -> bool:
        """
        Called just after CREATE. Skips over the procedure header and, if the
        body is a Snowflake Scripting block, the body too.

        :returns: False if the input ended inside a procedure body
        """
        # CREATE [ OR REPLACE ] [ SECURE ] FUNCTION
        # CREATE [ OR REPLACE ] [ TEMP | TEMPORARY ] FUNCTION
        # CREATE [ OR REPLACE ] PROCEDURE
        tokenizer.skip("OR", "REPLACE")
        tokenizer.skip("SECURE")
        if not tokenizer.skip("TEMP"):
            tokenizer.skip("TEMPORARY")

        # Functions can't contain naked blocks, so only procedures matter.
        if not tokenizer.skip("PROCEDURE"):
            return True

        # Look for the AS that introduces the body, watching out for EXECUTE
        # AS and for the LANGUAGE.
        is_language_sql = True
        found_as = False
        token = tokenizer.next()
        while not found_as and token is not None:
            match token:
                case "EXECUTE":
                    # EXECUTE AS {CALLER | OWNER}
                    if tokenizer.skip("AS"):
                        tokenizer.next()
                case "LANGUAGE":
                    is_language_sql = tokenizer.next() == "SQL"
                case "AS":
                    found_as = True
                    continue
            token = tokenizer.next()

        if not (found_as and is_language_sql):
            return True

        if tokenizer.peek() in ("DECLARE", "BEGIN"):
            return self.seek_end_of_block(tokenizer)

        return True

    def seek_end_of_block(self: Self, tokenizer: KeywordTokenizer) -> bool:
        """
        Consume a block, tracking the constructs opened inside it.

        :returns: True if the block was closed, or if it turned out not to be
            a block at all. False if the input ended inside it.
        """
        # pylint: disable=too-many-branches
        stack: list[BlockType] = []

        for token in tokenizer:
            match token:
                case "CREATE":
                    if not self.skip_create(tokenizer):
                        return False
                # CASE WHEN ... END [CASE]
                case "CASE":
                    if is_case_when(tokenizer):
                        stack.append(BlockType.CASE)
                # BEGIN ... END
                case "BEGIN":
                    if is_begin_block(tokenizer):
                        stack.append(BlockType.BLOCK)
                # IF (...) ... END IF
                case "IF":
                    if skip_paren_expression(tokenizer):
                        stack.append(BlockType.IF)
                # FOR ... DO ... END FOR, WHILE ... DO ... END WHILE
                case "DO":
                    stack.append(BlockType.DO)
                # [FOR ... | WHILE ...] LOOP ... END LOOP
                case "LOOP":
                    stack.append(BlockType.LOOP)
                # REPEAT ... UNTIL (...) END REPEAT
                case "REPEAT":
                    stack.append(BlockType.REPEAT)
                case "END":
                    if stack:
                        if CLOSERS[stack[-1]](tokenizer):
                            stack.pop()
                        if not stack:
                            return True
                # DECLARE must be followed by a BEGIN. Until it is, we're
                # still in the declarations.
                case "DECLARE":
                    if not self.seek_begin(tokenizer):
                        return False
                case _ if not stack and token == tokenizer.terminator:
                    # Nothing was opened (BEGIN TRANSACTION, say), so this
                    # is an ordinary terminator.
                    tokenizer.unget(token)
                    return True

        return not stack

    def seek_begin(self: Self, tokenizer: KeywordTokenizer) -> bool:
        """
        Skip forward to the BEGIN that starts the block body, leaving it to
        be read next.

        :returns: False if the input ended first
        """
        for token in tokenizer:
            if token == "BEGIN" and is_begin_block(tokenizer):
                tokenizer.unget(token)
                return True
        return False
