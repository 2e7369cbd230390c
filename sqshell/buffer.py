"""
The SQL batch buffer. Lines of SQL accumulate here until the analyzer says
the batch is terminated (or the user says \\go).
"""

from collections import deque
from typing import Self

DEFAULT_HISTORY_SIZE = 50


class Buffer:
    """
    An append-only buffer of SQL lines, plus a bounded history of the
    batches that have been completed.
    """

    def __init__(self: Self, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self._lines: list[str] = []
        self.history: deque[str] = deque(maxlen=history_size)

    def __len__(self: Self) -> int:
        return len(self._lines)

    @property
    def text(self: Self) -> str:
        """
        The batch so far. Newlines are preserved, since "--" comments and
        some analyzers depend on them.
        """
        return "\n".join(self._lines)

    def is_empty(self: Self) -> bool:
        return len(self._lines) == 0

    def append(self: Self, line: str) -> None:
        self._lines.append(line)

    def clear(self: Self) -> None:
        self._lines.clear()

    def finish(self: Self) -> str:
        """
        Complete the current batch: return its text, save it in the history,
        and start a new, empty batch.
        """
        batch = self.text
        if batch.strip() != "":
            self.history.append(batch)
        self.clear()
        return batch

    def numbered(self: Self) -> list[str]:
        """
        The current batch, one line per entry, prefixed with line numbers.
        """
        return [f"{i:>3}> {line}" for i, line in enumerate(self._lines, start=1)]
