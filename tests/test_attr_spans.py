"""Span computation for attributes, attribute types and togglers."""

from __future__ import annotations

import pytest

from tagtree.ast import (
    AttrEmpty,
    AttrEvent,
    AttrNormal,
    AttrOptional,
    ClassAttr,
    EventAttr,
    IdAttr,
    Literal,
    NamedAttr,
    Symbol,
    Toggler,
    ValueAttr,
)
from tagtree.spans import span_tokens

from tests.conftest import run, span_text


def _toggler(tokens) -> Toggler:
    """Build a Toggler from a '[' ... ']' token slice."""
    return Toggler(tokens[1:-1], tokens[0].span.join(tokens[-1].span))


class TestToggler:
    def test_span_is_captured_cond_span(self):
        source = "[ user.admin ]"
        toggler = _toggler(run(source))
        assert span_text(source, toggler.span) == source
        assert toggler.span != span_tokens(toggler.cond)


class TestAttrType:
    def test_empty_without_toggler_has_no_span(self):
        assert AttrEmpty().span is None
        assert AttrEmpty(None).span is None

    def test_empty_with_toggler(self):
        source = "[on]"
        toggler = _toggler(run(source))
        assert AttrEmpty(toggler).span == toggler.span

    def test_optional(self):
        toggler = _toggler(run("[v]"))
        assert AttrOptional(toggler).span == toggler.span

    def test_normal(self):
        tok = run('"x"')[0]
        assert AttrNormal(Literal(tok.value, tok.span)).span == tok.span

    def test_event(self):
        source = "Msg::Click"
        assert span_text(source, AttrEvent(run(source)).span) == source

    @pytest.mark.parametrize(
        "attr_type",
        [
            AttrNormal(Literal("x", run('"x"')[0].span)),
            AttrEvent(run("T")),
            AttrOptional(_toggler(run("[c]"))),
            AttrEmpty(_toggler(run("[c]"))),
        ],
    )
    def test_every_other_variant_has_a_span(self, attr_type):
        assert attr_type.span is not None


class TestNamedAttr:
    def test_bare_falls_back_to_name(self):
        source = "aria-hidden"
        name = run(source)
        attr = NamedAttr(name, AttrEmpty())
        assert attr.span == span_tokens(name)
        assert span_text(source, attr.span) == source

    def test_with_value(self):
        source = 'href = "/home"'
        tokens = run(source)
        attr = NamedAttr(tokens[:1], AttrNormal(Literal(tokens[2].value, tokens[2].span)))
        assert span_text(source, attr.span) == source

    def test_with_toggler(self):
        source = "checked[done]"
        tokens = run(source)
        attr = NamedAttr(tokens[:1], AttrEmpty(_toggler(tokens[1:])))
        assert span_text(source, attr.span) == source

    def test_optional_value(self):
        source = "title=[maybe]"
        tokens = run(source)
        attr = NamedAttr(tokens[:1], AttrOptional(_toggler(tokens[2:])))
        assert span_text(source, attr.span) == source


class TestValueAttr:
    def test_same_fallback_as_named(self):
        name = run("disabled")
        assert ValueAttr(name, AttrEmpty()).span == span_tokens(name)

    def test_with_event_type(self):
        source = "value=@(Handler)"
        tokens = run(source)
        attr = ValueAttr(tokens[:1], AttrEvent(tokens[4:5]))
        assert span_text(source, attr.span) == "value=@(Handler"


class TestEventAttr:
    def test_joins_name_and_type(self):
        source = "@click(Msg::Click)"
        tokens = run(source)
        attr = EventAttr(tokens[1:2], tokens[3:-1])
        assert span_text(source, attr.span) == "click(Msg::Click"


class TestClassAttr:
    def test_without_toggler(self):
        source = ".foo"
        tokens = run(source)
        attr = ClassAttr(tokens[0].span, Symbol(tokens[1:]))
        assert span_text(source, attr.span) == ".foo"

    def test_toggler_extends_span(self):
        source = ".foo[cond]"
        tokens = run(source)
        plain = ClassAttr(tokens[0].span, Symbol(tokens[1:2]))
        toggled = ClassAttr(tokens[0].span, Symbol(tokens[1:2]), _toggler(tokens[2:]))

        assert span_text(source, toggled.span) == ".foo[cond]"
        assert toggled.span.start == tokens[0].span.start
        assert toggled.span.end == tokens[-1].span.end
        assert toggled.span.contains(plain.span)
        assert toggled.span != plain.span

    def test_string_name(self):
        source = '."btn primary"'
        tokens = run(source)
        attr = ClassAttr(tokens[0].span, Literal(tokens[1].value, tokens[1].span))
        assert span_text(source, attr.span) == source


class TestIdAttr:
    def test_joins_hash_and_name(self):
        source = "#main-nav"
        tokens = run(source)
        attr = IdAttr(tokens[0].span, Symbol(tokens[1:]))
        assert span_text(source, attr.span) == source
