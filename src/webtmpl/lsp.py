"""Minimal LSP server for webtmpl templates — diagnostics only."""

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

from webtmpl.codegen import check_expressions
from webtmpl.errors import TemplateSyntaxError

server = LanguageServer("webtmpl-lsp", "0.1.0", text_document_sync_kind=TextDocumentSyncKind.Full)


def collect_diagnostics(source: str, filename: str) -> list[Diagnostic]:
    """Check every interpolation marker in source; at most one error is reported."""
    try:
        check_expressions(source, filename)
    except TemplateSyntaxError as exc:
        line = exc.position.line - 1
        col = exc.position.column - 1
        return [
            Diagnostic(
                range=Range(
                    start=Position(line=line, character=col),
                    end=Position(line=line, character=col + 2),
                ),
                message=exc.message,
                severity=DiagnosticSeverity.Error,
                source="webtmpl",
            )
        ]
    return []


def _validate(ls: LanguageServer, uri: str) -> None:
    doc = ls.workspace.get_text_document(uri)
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=collect_diagnostics(doc.source, filename))
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
