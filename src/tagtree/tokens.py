"""Token types, source positions and spans."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    # Content
    IDENT = auto()  # letter or _ followed by letters, digits, _
    STRING = auto()  # "...", value is the resolved content
    NUMBER = auto()  # digit followed by digits, letters, _ and .
    PUNCT = auto()  # any other single printable character

    # Delimiters (always balanced)
    LBRACE = auto()  # {
    RBRACE = auto()  # }
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    LBRACKET = auto()  # [
    RBRACKET = auto()  # ]

    EOF = auto()


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Span:
    """Source range from start to end position.

    A span whose start line is 0 is the call-site sentinel: it stands for
    "no concrete source position" and is the identity element of join().
    """

    start: Position
    end: Position

    @classmethod
    def call_site(cls) -> Span:
        return CALL_SITE

    @property
    def is_call_site(self) -> bool:
        return self.start.line == 0

    def join(self, other: Span) -> Span:
        """Return the smallest span enclosing both self and other."""
        if self.is_call_site:
            return other
        if other.is_call_site:
            return self
        start = self.start if self.start.offset <= other.start.offset else other.start
        end = self.end if self.end.offset >= other.end.offset else other.end
        return Span(start, end)

    def contains(self, other: Span) -> bool:
        if other.is_call_site:
            return True
        if self.is_call_site:
            return False
        return self.start.offset <= other.start.offset and other.end.offset <= self.end.offset


CALL_SITE = Span(Position(0, 0, 0), Position(0, 0, 0))


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexer token with resolved value and original source text."""

    type: TokenType
    value: str
    raw: str
    span: Span


# A token-run is an ordered, immutable sequence of tokens
TokenRun = tuple[Token, ...]

OPENERS: dict[TokenType, TokenType] = {
    TokenType.LBRACE: TokenType.RBRACE,
    TokenType.LPAREN: TokenType.RPAREN,
    TokenType.LBRACKET: TokenType.RBRACKET,
}
CLOSERS: frozenset[TokenType] = frozenset(OPENERS.values())

DELIMITERS: dict[str, TokenType] = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
}


def is_ident_start(ch: str) -> bool:
    """Return True if ch can start an identifier."""
    return ch.isalpha() or ch == "_"


def is_ident_char(ch: str) -> bool:
    """Return True if ch can continue an identifier."""
    return ch.isalnum() or ch == "_"


def is_hex_digit(ch: str) -> bool:
    """Return True if ch is a hexadecimal digit."""
    return ch in "0123456789abcdefABCDEF"
