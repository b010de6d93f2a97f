"""AST node types for parsed templates.

Leaf nodes that have no children to derive a span from store it as a
``span`` field; every other node computes ``span`` on access from its
children. Either way ``node.span`` is the source range to attach a
diagnostic to.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from tagtree.spans import join_all, span_tokens
from tagtree.tokens import Span, TokenRun

# ----------------------------------------------------------------------
# Leaves
# ----------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParseError:
    """Placeholder inserted where a fragment failed to parse."""

    span: Span


@dataclass(frozen=True, slots=True)
class Literal:
    """Literal text."""

    content: str
    span: Span


@dataclass(frozen=True, slots=True)
class Symbol:
    """Bare token markup: a class or id name, or a character reference like ``&nbsp;``."""

    symbol: TokenRun

    @property
    def span(self) -> Span:
        return span_tokens(self.symbol)


@dataclass(frozen=True, slots=True)
class Splice:
    """Embedded host expression; outer_span includes the parentheses."""

    expr: TokenRun
    outer_span: Span

    @property
    def span(self) -> Span:
        return self.outer_span


# ----------------------------------------------------------------------
# Blocks and control flow
# ----------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Block:
    """Brace-delimited sequence of markups.

    The span is whatever the parser recorded for the braces, not the join of
    the children: the braces themselves are not child nodes.
    """

    markups: tuple[Markup, ...]
    outer_span: Span

    @property
    def span(self) -> Span:
        return self.outer_span


@dataclass(frozen=True, slots=True)
class Void:
    """Self-closing element body (the trailing ``;``)."""

    semi_span: Span

    @property
    def span(self) -> Span:
        return self.semi_span


@dataclass(frozen=True, slots=True)
class Let:
    """Local binding; tokens run from ``let`` through the closing ``;``."""

    at_span: Span
    tokens: TokenRun

    @property
    def span(self) -> Span:
        return self.at_span.join(span_tokens(self.tokens))


@dataclass(frozen=True, slots=True)
class SpecialSegment:
    """One branch of an ``@if``/``@else``/``@for``/``@while`` chain."""

    at_span: Span
    head: TokenRun
    body: Block

    @property
    def span(self) -> Span:
        return self.at_span.join(self.body.span)


@dataclass(frozen=True, slots=True)
class Special:
    segments: tuple[SpecialSegment, ...]

    @property
    def span(self) -> Span:
        return join_all(seg.span for seg in self.segments)


@dataclass(frozen=True, slots=True)
class MatchArm:
    """Pattern tokens (without ``=>``) and the arm body."""

    head: TokenRun
    body: Block


@dataclass(frozen=True, slots=True)
class Match:
    """``@match`` construct; arms_span covers the braces around the arms."""

    at_span: Span
    head: TokenRun
    arms: tuple[MatchArm, ...]
    arms_span: Span

    @property
    def span(self) -> Span:
        return self.at_span.join(self.arms_span)


@dataclass(frozen=True, slots=True)
class Patrial:
    """Partial markup forwarded as-is to the generated code."""

    body: TokenRun

    @property
    def span(self) -> Span:
        return span_tokens(self.body)


@dataclass(frozen=True, slots=True)
class Builder:
    """Fragment emitted through the builder path."""

    tokens: TokenRun

    @property
    def span(self) -> Span:
        return span_tokens(self.tokens)


# ----------------------------------------------------------------------
# Attributes
# ----------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Toggler:
    """Boolean condition gating an attribute; cond_span includes the brackets."""

    cond: TokenRun
    cond_span: Span

    @property
    def span(self) -> Span:
        return self.cond_span


@dataclass(frozen=True, slots=True)
class AttrNormal:
    value: Markup

    @property
    def span(self) -> Span | None:
        return self.value.span


@dataclass(frozen=True, slots=True)
class AttrEvent:
    ty: TokenRun

    @property
    def span(self) -> Span | None:
        return span_tokens(self.ty)


@dataclass(frozen=True, slots=True)
class AttrOptional:
    toggler: Toggler

    @property
    def span(self) -> Span | None:
        return self.toggler.span


@dataclass(frozen=True, slots=True)
class AttrEmpty:
    """Bare attribute; without a toggler it has no span beyond its name."""

    toggler: Toggler | None = None

    @property
    def span(self) -> Span | None:
        if self.toggler is None:
            return None
        return self.toggler.span


def _name_span(name: TokenRun, attr_type: AttrType) -> Span:
    name_span = span_tokens(name)
    type_span = attr_type.span
    if type_span is None:
        return name_span
    return name_span.join(type_span)


@dataclass(frozen=True, slots=True)
class ClassAttr:
    """``.name`` or ``.name[cond]``."""

    dot_span: Span
    name: Markup
    toggler: Toggler | None = None

    @property
    def span(self) -> Span:
        span = self.dot_span.join(self.name.span)
        if self.toggler is not None:
            span = span.join(self.toggler.cond_span)
        return span


@dataclass(frozen=True, slots=True)
class IdAttr:
    """``#name``."""

    hash_span: Span
    name: Markup

    @property
    def span(self) -> Span:
        return self.hash_span.join(self.name.span)


@dataclass(frozen=True, slots=True)
class NamedAttr:
    """``name``, ``name=value``, ``name[cond]``, ``name=[cond]`` or ``name=@(ty)``."""

    name: TokenRun
    attr_type: AttrType

    @property
    def span(self) -> Span:
        return _name_span(self.name, self.attr_type)


@dataclass(frozen=True, slots=True)
class EventAttr:
    """``@name(ty)``."""

    name: TokenRun
    ty: TokenRun

    @property
    def span(self) -> Span:
        return span_tokens(self.name).join(span_tokens(self.ty))


@dataclass(frozen=True, slots=True)
class ValueAttr:
    """``:name=value``, a property binding rather than a markup attribute."""

    name: TokenRun
    attr_type: AttrType

    @property
    def span(self) -> Span:
        return _name_span(self.name, self.attr_type)


# ----------------------------------------------------------------------
# Elements and the root
# ----------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Element:
    name: TokenRun
    attrs: tuple[Attr | ParseError, ...]
    body: ElementBody | ParseError

    @property
    def span(self) -> Span:
        return span_tokens(self.name).join(self.body.span)


@dataclass(frozen=True, slots=True)
class Template:
    """Root node: the top-level markups of one template source."""

    markups: tuple[Markup, ...]
    span: Span


Markup = (
    ParseError
    | Block
    | Literal
    | Symbol
    | Splice
    | Element
    | Let
    | Special
    | Match
    | Patrial
    | Builder
)
ElementBody = Void | Block
Attr = ClassAttr | IdAttr | NamedAttr | EventAttr | ValueAttr
AttrType = AttrNormal | AttrEvent | AttrOptional | AttrEmpty


# ----------------------------------------------------------------------
# Traversal
# ----------------------------------------------------------------------


def walk(node: object) -> Iterator[object]:
    """Yield node and every descendant node, depth-first in source order."""
    yield node
    if isinstance(node, Template | Block):
        for child in node.markups:
            yield from walk(child)
    elif isinstance(node, Element):
        for attr in node.attrs:
            yield from walk(attr)
        yield from walk(node.body)
    elif isinstance(node, Special):
        for seg in node.segments:
            yield from walk(seg)
    elif isinstance(node, SpecialSegment):
        yield from walk(node.body)
    elif isinstance(node, Match):
        for arm in node.arms:
            yield from walk(arm)
    elif isinstance(node, MatchArm):
        yield from walk(node.body)
    elif isinstance(node, ClassAttr):
        yield from walk(node.name)
        if node.toggler is not None:
            yield node.toggler
    elif isinstance(node, IdAttr):
        yield from walk(node.name)
    elif isinstance(node, NamedAttr | ValueAttr):
        yield from walk(node.attr_type)
    elif isinstance(node, AttrNormal):
        yield from walk(node.value)
    elif isinstance(node, AttrOptional):
        yield node.toggler
    elif isinstance(node, AttrEmpty) and node.toggler is not None:
        yield node.toggler


def parse_errors(node: object) -> list[ParseError]:
    """Return every ParseError placeholder under node, in source order."""
    return [n for n in walk(node) if isinstance(n, ParseError)]
