"""Shared test fixtures and helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from sqshell.expander import MapExpander
from sqshell.tokenizer import tokenize
from sqshell.tokens import Token, WordToken

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def variables() -> MapExpander:
    """Return an expander with a few variables defined."""
    return MapExpander({"x": "this is $x", "a": "hello", "b": "world"})


@pytest.fixture
def lex(variables):
    """Return a helper that tokenizes a line, expanding from `variables`."""

    def _lex(line: str, **options) -> list[Token]:
        options.setdefault("expander", variables)
        return tokenize(line, **options)

    return _lex


def words(*texts: str) -> list[Token]:
    """Build the WordTokens a plain line is expected to produce."""
    return [WordToken(text=t) for t in texts]


def load_queries(filename: str) -> list[tuple[str, str]]:
    """
    Load analyzer test cases. Each case is introduced by a line starting
    with @positive, @negative or @negativePositive; lines starting with "#"
    are comments. Returns (kind, query) pairs with trailing whitespace
    removed from each query.
    """
    queries: list[tuple[str, str]] = []
    kind = "positive"
    lines: list[str] = []

    def flush() -> None:
        text = "\n".join(lines).rstrip()
        if text:
            queries.append((kind, text))
        lines.clear()

    for line in (DATA_DIR / filename).read_text(encoding="utf-8").splitlines():
        if line.startswith("#"):
            continue
        if line.startswith("@"):
            flush()
            kind = line[1:].strip()
            assert kind in ("positive", "negative", "negativePositive"), kind
        else:
            lines.append(line)

    flush()
    return queries
