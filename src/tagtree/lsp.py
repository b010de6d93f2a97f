"""Minimal LSP server for tagtree templates — diagnostics only."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from tagtree import __version__
from tagtree.errors import LexError
from tagtree.parser import parse
from tagtree.tokens import Position as SourcePosition
from tagtree.tokens import Span

server = LanguageServer(
    "tagtree-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full
)


def _position(pos: SourcePosition) -> Position:
    return Position(line=pos.line - 1, character=pos.column - 1)


def _range(span: Span) -> Range:
    """Convert a 1-based span to a 0-based LSP range; call-site spans map to 0:0."""
    if span.is_call_site:
        origin = Position(line=0, character=0)
        return Range(start=origin, end=origin)
    return Range(start=_position(span.start), end=_position(span.end))


def _lex_error_span(exc: LexError) -> Span:
    """One-character span at the lexer's failure point."""
    pos = exc.position
    end = SourcePosition(pos.line, pos.column + 1, pos.offset + 1)
    return Span(pos, end)


def _error(message: str, span: Span) -> Diagnostic:
    return Diagnostic(
        range=_range(span),
        message=message,
        severity=DiagnosticSeverity.Error,
        source="tagtree",
    )


def _validate(ls: LanguageServer, uri: str) -> None:
    """Parse the document and publish one diagnostic per error site."""
    doc = ls.workspace.get_text_document(uri)
    filename = uri.rsplit("/", 1)[-1]

    try:
        _, found = parse(doc.source, filename)
    except LexError as exc:
        diagnostics = [_error(exc.message, _lex_error_span(exc))]
    else:
        diagnostics = [_error(d.message, d.span) for d in found]

    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    """Console-script entry point: serve over stdio."""
    server.start_io()
