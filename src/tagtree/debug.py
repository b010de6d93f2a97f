"""--debug AST dump to stderr."""

from __future__ import annotations

import sys
from typing import TextIO

from tagtree.ast import (
    AttrEmpty,
    AttrEvent,
    AttrNormal,
    AttrOptional,
    AttrType,
    Block,
    Builder,
    ClassAttr,
    Element,
    EventAttr,
    IdAttr,
    Let,
    Literal,
    Match,
    NamedAttr,
    ParseError,
    Patrial,
    Special,
    Splice,
    Symbol,
    Template,
    ValueAttr,
    Void,
)
from tagtree.spans import name_to_string
from tagtree.tokens import Span, TokenRun


def dump_ast(template: Template, *, file: TextIO | None = None) -> None:
    """Print a human-readable AST tree with node spans to *file* (default: stderr)."""
    if file is None:
        file = sys.stderr
    file.write(f"Template {_span(template.span)}\n")
    for markup in template.markups:
        _dump_node(markup, 1, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _span(span: Span | None) -> str:
    if span is None:
        return "@-"
    if span.is_call_site:
        return "@call-site"
    return f"@{span.start.line}:{span.start.column}-{span.end.line}:{span.end.column}"


def _tokens(run: TokenRun) -> str:
    return " ".join(tok.raw for tok in run)


def _dump_node(node: object, depth: int, f: TextIO) -> None:
    pad = _indent(depth)

    if isinstance(node, ParseError):
        f.write(f"{pad}ParseError {_span(node.span)}\n")
    elif isinstance(node, Literal):
        f.write(f"{pad}Literal({node.content!r}) {_span(node.span)}\n")
    elif isinstance(node, Symbol):
        f.write(f"{pad}Symbol {name_to_string(node.symbol)} {_span(node.span)}\n")
    elif isinstance(node, Splice):
        f.write(f"{pad}Splice ({_tokens(node.expr)}) {_span(node.span)}\n")
    elif isinstance(node, Block):
        f.write(f"{pad}Block {_span(node.span)}\n")
        for child in node.markups:
            _dump_node(child, depth + 1, f)
    elif isinstance(node, Void):
        f.write(f"{pad}Void {_span(node.span)}\n")
    elif isinstance(node, Element):
        f.write(f"{pad}Element {name_to_string(node.name)} {_span(node.span)}\n")
        for attr in node.attrs:
            _dump_attr(attr, depth + 1, f)
        _dump_node(node.body, depth + 1, f)
    elif isinstance(node, Let):
        f.write(f"{pad}Let {_tokens(node.tokens)} {_span(node.span)}\n")
    elif isinstance(node, Special):
        f.write(f"{pad}Special {_span(node.span)}\n")
        for seg in node.segments:
            f.write(f"{_indent(depth + 1)}@{_tokens(seg.head)} {_span(seg.span)}\n")
            _dump_node(seg.body, depth + 2, f)
    elif isinstance(node, Match):
        f.write(f"{pad}Match {_tokens(node.head)} {_span(node.span)}\n")
        for arm in node.arms:
            f.write(f"{_indent(depth + 1)}Arm {_tokens(arm.head)} =>\n")
            _dump_node(arm.body, depth + 2, f)
    elif isinstance(node, Patrial):
        f.write(f"{pad}Patrial {_tokens(node.body)} {_span(node.span)}\n")
    elif isinstance(node, Builder):
        f.write(f"{pad}Builder {_tokens(node.tokens)} {_span(node.span)}\n")


def _dump_attr(attr: object, depth: int, f: TextIO) -> None:
    pad = _indent(depth)

    if isinstance(attr, ClassAttr):
        cond = f"[{_tokens(attr.toggler.cond)}]" if attr.toggler is not None else ""
        f.write(f"{pad}Class{cond} {_span(attr.span)}\n")
        _dump_node(attr.name, depth + 1, f)
    elif isinstance(attr, IdAttr):
        f.write(f"{pad}Id {_span(attr.span)}\n")
        _dump_node(attr.name, depth + 1, f)
    elif isinstance(attr, NamedAttr | ValueAttr):
        kind = "Named" if isinstance(attr, NamedAttr) else "Value"
        f.write(f"{pad}{kind} {name_to_string(attr.name)} {_span(attr.span)}\n")
        _dump_attr_type(attr.attr_type, depth + 1, f)
    elif isinstance(attr, EventAttr):
        f.write(f"{pad}Event {name_to_string(attr.name)}({_tokens(attr.ty)}) {_span(attr.span)}\n")
    else:
        _dump_node(attr, depth, f)


def _dump_attr_type(attr_type: AttrType, depth: int, f: TextIO) -> None:
    pad = _indent(depth)

    if isinstance(attr_type, AttrNormal):
        f.write(f"{pad}Normal\n")
        _dump_node(attr_type.value, depth + 1, f)
    elif isinstance(attr_type, AttrEvent):
        f.write(f"{pad}EventType({_tokens(attr_type.ty)}) {_span(attr_type.span)}\n")
    elif isinstance(attr_type, AttrOptional):
        f.write(f"{pad}Optional[{_tokens(attr_type.toggler.cond)}] {_span(attr_type.span)}\n")
    elif isinstance(attr_type, AttrEmpty):
        cond = f"[{_tokens(attr_type.toggler.cond)}]" if attr_type.toggler is not None else ""
        f.write(f"{pad}Empty{cond} {_span(attr_type.span)}\n")
