"""Template lexer — converts source text into a flat token stream."""

from __future__ import annotations

from tagtree.errors import LexError
from tagtree.tokens import (
    CLOSERS,
    DELIMITERS,
    OPENERS,
    Position,
    Span,
    Token,
    TokenType,
    is_hex_digit,
    is_ident_char,
    is_ident_start,
)

_SIMPLE_ESCAPES = {"\\": "\\", '"': '"', "'": "'", "n": "\n", "t": "\t", "r": "\r", "0": "\0"}


class Lexer:
    """Tokenize template source text into a stream of Token objects.

    Whitespace and ``//`` comments separate tokens and are dropped. Delimiters
    are checked for balance, so consumers can take any bracketed group whole.
    """

    def __init__(self, source: str, filename: str = "input.tt") -> None:
        self._source = source
        self._filename = filename
        self._pos = 0
        self._line = 1
        self._col = 1
        self._tokens: list[Token] = []
        self._open: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Tokenize the full source and return the token list."""
        while self._pos < len(self._source):
            self._lex_one()

        if self._open:
            tok = self._open[-1]
            raise self._error(f"unclosed delimiter '{tok.raw}'", tok.span.start)

        self._emit(TokenType.EOF, "", "")
        return self._tokens

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _current_pos(self) -> Position:
        return Position(self._line, self._col, self._pos)

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return ch

    def _emit(self, tt: TokenType, value: str, raw: str, start: Position | None = None) -> Token:
        end = self._current_pos()
        if start is None:
            start = end
        tok = Token(tt, value, raw, Span(start, end))
        self._tokens.append(tok)
        return tok

    def _error(self, message: str, pos: Position | None = None) -> LexError:
        if pos is None:
            pos = self._current_pos()
        return LexError(message, pos, self._source)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _lex_one(self) -> None:
        ch = self._peek()

        if ch == "\0":
            raise self._error("NUL character in source")

        if ch.isspace():
            self._advance()
            return

        if ch == "/" and self._peek(1) == "/":
            while self._pos < len(self._source) and self._peek() != "\n":
                self._advance()
            return

        if ch in DELIMITERS:
            self._lex_delimiter(ch)
            return

        if ch == '"':
            self._lex_string()
            return

        if is_ident_start(ch):
            self._lex_ident()
            return

        if ch.isdigit():
            self._lex_number()
            return

        start = self._current_pos()
        self._advance()
        self._emit(TokenType.PUNCT, ch, ch, start)

    def _lex_delimiter(self, ch: str) -> None:
        start = self._current_pos()
        tt = DELIMITERS[ch]
        self._advance()

        if tt in CLOSERS:
            if not self._open:
                raise self._error(f"unexpected closing delimiter '{ch}'", start)
            opener = self._open[-1]
            if OPENERS[opener.type] != tt:
                raise self._error(
                    f"mismatched closing delimiter '{ch}' for '{opener.raw}' "
                    f"at {opener.span.start.line}:{opener.span.start.column}",
                    start,
                )
            self._open.pop()
            self._emit(tt, ch, ch, start)
            return

        self._open.append(self._emit(tt, ch, ch, start))

    def _lex_ident(self) -> None:
        start = self._current_pos()
        chars = []
        while self._pos < len(self._source) and is_ident_char(self._peek()):
            chars.append(self._advance())
        text = "".join(chars)
        self._emit(TokenType.IDENT, text, text, start)

    def _lex_number(self) -> None:
        start = self._current_pos()
        chars = []
        while self._pos < len(self._source):
            ch = self._peek()
            # 1.5 is one number, but 1..2 is a number followed by punctuation
            if ch == "." and not self._peek(1).isdigit():
                break
            if not (is_ident_char(ch) or ch == "."):
                break
            chars.append(self._advance())
        text = "".join(chars)
        self._emit(TokenType.NUMBER, text, text, start)

    # ------------------------------------------------------------------
    # Strings
    # ------------------------------------------------------------------

    def _lex_string(self) -> None:
        start = self._current_pos()
        self._advance()  # consume opening quote
        value: list[str] = []

        while True:
            if self._pos >= len(self._source):
                raise self._error("unterminated string literal", start)
            ch = self._peek()
            if ch == '"':
                self._advance()
                break
            if ch == "\\":
                value.append(self._lex_string_escape())
                continue
            if ch == "\0":
                raise self._error("NUL character in source")
            value.append(self._advance())

        raw = self._source[start.offset : self._pos]
        self._emit(TokenType.STRING, "".join(value), raw, start)

    def _lex_string_escape(self) -> str:
        start = self._current_pos()
        self._advance()  # consume backslash

        if self._pos >= len(self._source):
            raise self._error("unexpected end of input in string escape", start)

        ch = self._peek()

        if ch in _SIMPLE_ESCAPES:
            self._advance()
            return _SIMPLE_ESCAPES[ch]

        if ch == "u":
            self._advance()
            return self._lex_unicode_escape(start)

        raise self._error(f"invalid string escape sequence '\\{ch}'", start)

    def _lex_unicode_escape(self, start: Position) -> str:
        """Read ``{XXXX}`` (1 to 6 hex digits) after ``\\u``."""
        if self._peek() != "{":
            raise self._error("expected '{' after '\\u'", start)
        self._advance()
        digits = []
        while self._pos < len(self._source) and self._peek() != "}":
            ch = self._peek()
            if not is_hex_digit(ch):
                raise self._error(f"invalid hex digit '{ch}' in escape sequence", start)
            digits.append(self._advance())
        if self._pos >= len(self._source):
            raise self._error("unterminated unicode escape", start)
        self._advance()  # consume }
        if not 1 <= len(digits) <= 6:
            raise self._error(f"expected 1 to 6 hex digits in unicode escape, got {len(digits)}", start)
        hex_str = "".join(digits)
        codepoint = int(hex_str, 16)
        if codepoint > 0x10FFFF:
            raise self._error(f"Unicode codepoint U+{hex_str} is out of range", start)
        if 0xD800 <= codepoint <= 0xDFFF:
            raise self._error(f"Unicode codepoint U+{hex_str} is a surrogate", start)
        return chr(codepoint)


def tokenize(source: str, filename: str = "input.tt") -> list[Token]:
    """Convenience function: tokenize source text and return token list."""
    return Lexer(source, filename).tokenize()
