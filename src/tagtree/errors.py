"""Lexer errors and parser diagnostics with formatted source context."""

from __future__ import annotations

from dataclasses import dataclass

from tagtree.tokens import Position, Span


def _snippet(message: str, line: int, col: int, underline_len: int, source: str, filename: str) -> str:
    lines = source.splitlines(keepends=True)
    line_idx = line - 1

    # Build the source line (strip trailing newline for display)
    if 0 <= line_idx < len(lines):
        source_line = lines[line_idx].rstrip("\n").rstrip("\r")
    else:
        source_line = ""

    pad = " " * (col - 1)
    carets = "^" * underline_len

    line_num = str(line)
    gutter_width = len(line_num) + 1

    blank_gutter = " " * gutter_width + "|"
    line_gutter = f"{line_num:>{gutter_width - 1}} |"

    return (
        f"error: {message}\n"
        f"{' ' * gutter_width}--> {filename}:{line}:{col}\n"
        f"{blank_gutter}\n"
        f"{line_gutter} {source_line}\n"
        f"{blank_gutter} {pad}{carets}"
    )


def _line_length(source: str, line: int) -> int:
    lines = source.splitlines()
    if 0 <= line - 1 < len(lines):
        return len(lines[line - 1])
    return 0


class LexError(Exception):
    """Raised on the first lexing error, with position and source context."""

    def __init__(self, message: str, position: Position, source: str) -> None:
        self.message = message
        self.position = position
        self.source = source
        super().__init__(self.format())

    def format(self, filename: str = "input.tt") -> str:
        col = self.position.column
        # At least 1 char, but stay within the line
        underline_len = max(1, min(2, _line_length(self.source, self.position.line) - col + 1))
        return _snippet(self.message, self.position.line, col, underline_len, self.source, filename)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """One recoverable parse failure, anchored at the span of a ParseError node."""

    message: str
    span: Span

    def format(self, source: str, filename: str = "input.tt") -> str:
        if self.span.is_call_site:
            return f"error: {self.message}\n  --> {filename}"

        col = self.span.start.column
        # Underline the full span when on one line, otherwise to end of line
        if self.span.end.line == self.span.start.line:
            underline_len = max(1, self.span.end.column - col)
        else:
            underline_len = max(1, _line_length(source, self.span.start.line) - col + 1)
        return _snippet(self.message, self.span.start.line, col, underline_len, source, filename)


class TemplateError(Exception):
    """Raised by parse_template() when a template produced one or more diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic], source: str, filename: str = "input.tt") -> None:
        self.diagnostics = diagnostics
        self.source = source
        self.filename = filename
        super().__init__(self.format())

    def format(self) -> str:
        return "\n\n".join(d.format(self.source, self.filename) for d in self.diagnostics)
