"""Span algebra over token-runs.

Every function here is total: when there is no source information to work
with, the result degrades to the call-site sentinel instead of failing.
"""

from __future__ import annotations

from collections.abc import Iterable

from tagtree.tokens import CALL_SITE, Span, Token


def span_tokens(tokens: Iterable[Token]) -> Span:
    """Span of a contiguous token-run: its first and last tokens joined."""
    return join_all(tok.span for tok in tokens)


def join(a: Span, b: Span) -> Span:
    """Smallest span enclosing both a and b."""
    return a.join(b)


def join_all(spans: Iterable[Span]) -> Span:
    """Join a source-ordered sequence of spans.

    Only the first and last elements are consulted, since a sequence in source
    order is bounded by its endpoints. An empty sequence yields the call-site
    sentinel.
    """
    it = iter(spans)
    first = next(it, None)
    if first is None:
        return CALL_SITE
    last = first
    for last in it:
        pass
    return first.join(last)


def name_to_string(name: Iterable[Token]) -> str:
    """Render a tag or attribute name token-run back into flat text."""
    return "".join(tok.raw for tok in name)
