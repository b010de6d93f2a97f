"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from tagtree.ast import Template
from tagtree.errors import Diagnostic
from tagtree.lexer import tokenize
from tagtree.parser import parse
from tagtree.tokens import Span, Token, TokenType


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns tokens (excluding EOF)."""

    def _lex(source: str) -> list[Token]:
        tokens = tokenize(source)
        # Strip trailing EOF for convenience
        return [t for t in tokens if t.type != TokenType.EOF]

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns (Template, diagnostics)."""

    def _parse(source: str, filename: str = "test.tt") -> tuple[Template, list[Diagnostic]]:
        return parse(source, filename)

    return _parse


@pytest.fixture
def parse_ok():
    """Return a helper that parses source and asserts there were no diagnostics."""

    def _parse(source: str) -> Template:
        template, diagnostics = parse(source, "test.tt")
        assert diagnostics == [], f"unexpected diagnostics: {diagnostics}"
        return template

    return _parse


def assert_types(tokens: list[Token], expected: list[TokenType]) -> None:
    """Assert that the token types match the expected list."""
    actual = [t.type for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_values(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token values match the expected list."""
    actual = [t.value for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def span_text(source: str, span: Span) -> str:
    """Return the source text a span covers."""
    return source[span.start.offset : span.end.offset]


def run(source: str, start: int = 0, stop: int | None = None) -> tuple[Token, ...]:
    """Tokenize source and return tokens[start:stop] as a token-run."""
    tokens = [t for t in tokenize(source) if t.type != TokenType.EOF]
    return tuple(tokens[start:stop])
