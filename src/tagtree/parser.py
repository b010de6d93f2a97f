"""Template parser — converts a token stream into an AST.

Grammar failures never abort the parse. Each one is recorded as a
Diagnostic and a ParseError node covering just the offending tokens is put
in place of the malformed fragment, so one pass reports every error.
"""

from __future__ import annotations

import logging

from tagtree.ast import (
    Attr,
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
    Markup,
    Match,
    MatchArm,
    NamedAttr,
    ParseError,
    Patrial,
    Special,
    SpecialSegment,
    Splice,
    Symbol,
    Template,
    Toggler,
    ValueAttr,
    Void,
)
from tagtree.errors import Diagnostic
from tagtree.lexer import tokenize
from tagtree.spans import name_to_string, span_tokens
from tagtree.tokens import CLOSERS, OPENERS, Span, Token, TokenRun, TokenType

log = logging.getLogger(__name__)


class Parser:
    """Recursive descent parser for template token streams."""

    def __init__(self, tokens: list[Token], source: str, filename: str) -> None:
        self._tokens = tokens
        self._source = source
        self._filename = filename
        self._pos = 0
        self.diagnostics: list[Diagnostic] = []

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token:
        idx = self._pos + offset
        if idx < len(self._tokens):
            return self._tokens[idx]
        return self._tokens[-1]  # EOF

    def _at(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _at_punct(self, *chars: str, offset: int = 0) -> bool:
        tok = self._peek(offset)
        return tok.type == TokenType.PUNCT and tok.value in chars

    def _at_eof(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _at_keyword(self, word: str, offset: int = 0) -> bool:
        tok = self._peek(offset)
        return tok.type == TokenType.IDENT and tok.value == word

    def _at_fat_arrow(self) -> bool:
        return (
            self._at_punct("=")
            and self._at_punct(">", offset=1)
            and _touching(self._peek(), self._peek(1))
        )

    def _at_end_of_attrs(self) -> bool:
        return self._at(TokenType.LBRACE, TokenType.RBRACE, TokenType.EOF) or self._at_punct(";")

    def _touching(self) -> bool:
        """True if the next token directly follows the previous one."""
        if self._pos == 0:
            return False
        return _touching(self._tokens[self._pos - 1], self._peek())

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.type != TokenType.EOF:
            self._pos += 1
        return tok

    def _take_tree(self) -> list[Token]:
        """Consume one token, or a whole delimited group including its delimiters."""
        first = self._advance()
        tokens = [first]
        if first.type not in OPENERS:
            return tokens
        depth = 1
        while depth and not self._at_eof():
            tok = self._advance()
            tokens.append(tok)
            if tok.type in OPENERS:
                depth += 1
            elif tok.type in CLOSERS:
                depth -= 1
        return tokens

    def _take_group(self) -> tuple[TokenRun, Span]:
        """Consume a delimited group; return its inner tokens and outer span."""
        tokens = self._take_tree()
        outer = span_tokens(tokens)
        if tokens[-1].type in CLOSERS and len(tokens) > 1:
            return tuple(tokens[1:-1]), outer
        return tuple(tokens[1:]), outer

    def _take_until_punct(self, *chars: str, stop: tuple[TokenType, ...] = ()) -> list[Token]:
        """Consume token trees up to (not including) any punctuation in chars at this level.

        Also stops before a closing brace, end of input and any token type in stop.
        """
        tokens: list[Token] = []
        while not self._at(TokenType.RBRACE, TokenType.EOF, *stop) and not self._at_punct(*chars):
            tokens.extend(self._take_tree())
        return tokens

    # ------------------------------------------------------------------
    # Error recovery
    # ------------------------------------------------------------------

    def _fail(self, message: str, span: Span) -> ParseError:
        log.debug(
            "%s:%d:%d: recovering from parse error: %s",
            self._filename,
            span.start.line,
            span.start.column,
            message,
        )
        self.diagnostics.append(Diagnostic(message, span))
        return ParseError(span)

    def _error_block(self, message: str, span: Span) -> Block:
        """A block holding only a ParseError, for constructs missing their body."""
        err = self._fail(message, span)
        return Block((err,), err.span)

    # ------------------------------------------------------------------
    # Markup
    # ------------------------------------------------------------------

    def parse(self) -> Template:
        markups: list[Markup] = []
        start = self._peek().span.start

        while not self._at_eof():
            markups.append(self._parse_markup())

        end = self._peek().span.end
        return Template(tuple(markups), Span(start, end))

    def _parse_markups(self) -> list[Markup]:
        markups: list[Markup] = []
        while not self._at(TokenType.RBRACE, TokenType.EOF):
            markups.append(self._parse_markup())
        return markups

    def _parse_markup(self) -> Markup:
        tok = self._peek()

        if tok.type in (TokenType.STRING, TokenType.NUMBER):
            self._advance()
            return Literal(tok.value, tok.span)

        if tok.type == TokenType.LPAREN:
            expr, outer_span = self._take_group()
            return Splice(expr, outer_span)

        if tok.type == TokenType.LBRACE:
            return self._parse_block()

        if tok.type == TokenType.IDENT:
            return self._parse_element()

        if self._at_punct("@"):
            return self._parse_control()

        if self._at_punct("&"):
            return self._parse_symbol()

        tokens = self._take_tree()
        return self._fail(f"unexpected '{name_to_string(tokens)}' in markup", span_tokens(tokens))

    def _parse_block(self) -> Block:
        open_tok = self._advance()  # consume LBRACE
        markups = self._parse_markups()
        if self._at(TokenType.RBRACE):
            close_tok = self._advance()
            outer_span = open_tok.span.join(close_tok.span)
        else:
            outer_span = open_tok.span.join(self._tokens[self._pos - 1].span)
        return Block(tuple(markups), outer_span)

    def _parse_symbol(self) -> Symbol | ParseError:
        tokens = [self._advance()]  # consume &
        if self._at_punct("#") and self._touching():
            tokens.append(self._advance())
        if not (self._at(TokenType.IDENT, TokenType.NUMBER) and self._touching()):
            return self._fail("expected character reference name after '&'", span_tokens(tokens))
        tokens.append(self._advance())
        if not (self._at_punct(";") and self._touching()):
            return self._fail("expected ';' to close character reference", span_tokens(tokens))
        tokens.append(self._advance())
        return Symbol(tuple(tokens))

    # ------------------------------------------------------------------
    # Control flow
    # ------------------------------------------------------------------

    def _parse_control(self) -> Markup:
        at = self._advance()  # consume @
        if not self._at(TokenType.IDENT):
            return self._fail("expected keyword after '@'", at.span)

        kw = self._peek()
        if kw.value in ("if", "for", "while"):
            return self._parse_special(at)
        if kw.value == "let":
            return self._parse_let(at)
        if kw.value == "match":
            return self._parse_match(at)
        if kw.value == "partial":
            return self._parse_passthrough(at, Patrial)
        if kw.value == "build":
            return self._parse_passthrough(at, Builder)

        self._advance()
        if kw.value == "else":
            return self._fail("'@else' without a preceding '@if'", at.span.join(kw.span))
        return self._fail(f"unknown keyword '@{kw.value}'", at.span.join(kw.span))

    def _parse_head(self) -> list[Token]:
        head: list[Token] = []
        while not self._at(TokenType.LBRACE, TokenType.RBRACE, TokenType.EOF):
            head.extend(self._take_tree())
        return head

    def _parse_segment(self, at: Token, head: list[Token]) -> SpecialSegment:
        if self._at(TokenType.LBRACE):
            body = self._parse_block()
        else:
            body = self._error_block(
                f"expected '{{' after '@{head[0].value}' head",
                at.span.join(span_tokens(head)),
            )
        return SpecialSegment(at.span, tuple(head), body)

    def _parse_special(self, at: Token) -> Special:
        kw = self._advance()
        head = [kw, *self._parse_head()]
        segments = [self._parse_segment(at, head)]

        if kw.value != "if":
            return Special(tuple(segments))

        while self._at_punct("@") and self._at_keyword("else", offset=1):
            else_at = self._advance()
            head = [self._advance()]
            is_final = not self._at_keyword("if")
            if not is_final:
                head.append(self._advance())
                head.extend(self._parse_head())
            segments.append(self._parse_segment(else_at, head))
            if is_final:
                break

        return Special(tuple(segments))

    def _parse_let(self, at: Token) -> Let | ParseError:
        tokens = [self._advance()]  # consume let
        # '@' begins the next construct
        tokens.extend(self._take_until_punct("=", ";", "@"))
        if not self._at_punct("="):
            if self._at_punct(";"):
                tokens.append(self._advance())
            return self._fail("expected '=' in '@let' binding", at.span.join(span_tokens(tokens)))
        tokens.append(self._advance())
        tokens.extend(self._take_until_punct(";", "@"))
        if not self._at_punct(";"):
            return self._fail(
                "expected ';' to end '@let' binding", at.span.join(span_tokens(tokens))
            )
        tokens.append(self._advance())
        return Let(at.span, tuple(tokens))

    def _parse_passthrough(self, at: Token, node: type[Patrial] | type[Builder]) -> Markup:
        kw = self._advance()
        body = self._take_until_punct(";", "@", stop=(TokenType.LBRACE,))
        if not body:
            if self._at_punct(";"):
                self._advance()
            return self._fail(f"expected expression after '@{kw.value}'", at.span.join(kw.span))
        if not self._at_punct(";"):
            return self._fail(
                f"expected ';' after '@{kw.value}' expression", at.span.join(span_tokens(body))
            )
        self._advance()
        return node(tuple(body))

    def _parse_match(self, at: Token) -> Match | ParseError:
        kw = self._advance()
        head = [kw, *self._parse_head()]
        if not self._at(TokenType.LBRACE):
            return self._fail(
                "expected '{' after '@match' head", at.span.join(span_tokens(head))
            )

        open_tok = self._advance()
        arms: list[MatchArm] = []
        while not self._at(TokenType.RBRACE, TokenType.EOF):
            arms.append(self._parse_match_arm())
        if self._at(TokenType.RBRACE):
            arms_span = open_tok.span.join(self._advance().span)
        else:
            arms_span = open_tok.span.join(self._tokens[self._pos - 1].span)
        return Match(at.span, tuple(head), tuple(arms), arms_span)

    def _parse_match_arm(self) -> MatchArm:
        pattern: list[Token] = []
        while not self._at(TokenType.RBRACE, TokenType.EOF) and not self._at_fat_arrow():
            pattern.extend(self._take_tree())

        if not self._at_fat_arrow():
            body = self._error_block("expected '=>' after match pattern", span_tokens(pattern))
            return MatchArm(tuple(pattern), body)

        arrow = span_tokens([self._advance(), self._advance()])
        if self._at(TokenType.LBRACE):
            body = self._parse_block()
        elif self._at(TokenType.RBRACE, TokenType.EOF):
            body = self._error_block("expected match arm body after '=>'", arrow)
        else:
            markup = self._parse_markup()
            body = Block((markup,), markup.span)

        if not pattern:
            err = self._fail("expected pattern before '=>'", arrow)
            body = Block((err, *body.markups), arrow.join(body.span))

        if self._at_punct(","):
            self._advance()
        return MatchArm(tuple(pattern), body)

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def _parse_name(self) -> TokenRun:
        """IDENT followed by any ``-piece`` or ``:piece`` written directly after it."""
        tokens = [self._advance()]
        while (
            self._at_punct("-", ":")
            and self._touching()
            and self._peek(1).type in (TokenType.IDENT, TokenType.NUMBER)
            and _touching(self._peek(), self._peek(1))
        ):
            tokens.append(self._advance())
            tokens.append(self._advance())
        return tuple(tokens)

    def _parse_element(self) -> Element:
        name = self._parse_name()

        attrs: list[Attr | ParseError] = []
        while not self._at_end_of_attrs():
            attrs.append(self._parse_attr())

        body: Void | Block | ParseError
        if self._at_punct(";"):
            body = Void(self._advance().span)
        elif self._at(TokenType.LBRACE):
            body = self._parse_block()
        else:
            body = self._fail(
                f"expected ';' or '{{' after element '{name_to_string(name)}'",
                self._peek().span,
            )
        return Element(name, tuple(attrs), body)

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def _parse_attr(self) -> Attr | ParseError:
        if self._at_punct("."):
            dot = self._advance()
            name = self._parse_class_name(dot)
            if isinstance(name, ParseError):
                return name
            toggler = None
            if self._at(TokenType.LBRACKET):
                toggler = self._parse_toggler()
                if isinstance(toggler, ParseError):
                    return toggler
            return ClassAttr(dot.span, name, toggler)

        if self._at_punct("#"):
            hash_tok = self._advance()
            name = self._parse_class_name(hash_tok)
            if isinstance(name, ParseError):
                return name
            if self._at(TokenType.LBRACKET) and self._touching():
                _, cond_span = self._take_group()
                return self._fail("toggler is not supported on an id", cond_span)
            return IdAttr(hash_tok.span, name)

        if self._at_punct("@"):
            return self._parse_event_attr()

        if self._at_punct(":") and self._peek(1).type == TokenType.IDENT:
            self._advance()  # consume :
            name = self._parse_name()
            attr_type = self._parse_attr_type()
            if isinstance(attr_type, ParseError):
                return attr_type
            return ValueAttr(name, attr_type)

        if self._at(TokenType.IDENT):
            name = self._parse_name()
            attr_type = self._parse_attr_type()
            if isinstance(attr_type, ParseError):
                return attr_type
            return NamedAttr(name, attr_type)

        return self._parse_bad_attr()

    def _parse_bad_attr(self) -> ParseError:
        tokens = self._take_tree()
        # glue adjacent punctuation so e.g. '=>' is reported as one fragment
        while (
            self._at(TokenType.PUNCT)
            and not self._at_punct(";", ".", "#", "@", ":")
            and self._touching()
        ):
            tokens.extend(self._take_tree())
        return self._fail(
            f"expected attribute, found '{name_to_string(tokens)}'", span_tokens(tokens)
        )

    def _parse_class_name(self, marker: Token) -> Markup:
        if self._at(TokenType.STRING):
            tok = self._advance()
            return Literal(tok.value, tok.span)
        if self._at(TokenType.LPAREN):
            expr, outer_span = self._take_group()
            return Splice(expr, outer_span)
        if self._at(TokenType.IDENT):
            return Symbol(self._parse_name())
        kind = "class" if marker.raw == "." else "id"
        span = marker.span
        # take the stray token along unless it ends the attributes or starts the next one
        if not self._at_end_of_attrs() and not self._at_punct(".", "#", "@", ":"):
            span = span.join(span_tokens(self._take_tree()))
        return self._fail(f"expected {kind} name after '{marker.raw}'", span)

    def _parse_event_attr(self) -> EventAttr | ParseError:
        at = self._advance()  # consume @
        if not self._at(TokenType.IDENT):
            return self._fail("expected event name after '@'", at.span)
        name = self._parse_name()
        if not self._at(TokenType.LPAREN):
            return self._fail(
                f"expected '(' with handler type after '@{name_to_string(name)}'",
                at.span.join(span_tokens(name)),
            )
        ty, outer_span = self._take_group()
        if not ty:
            return self._fail("expected handler type inside '()'", outer_span)
        return EventAttr(name, ty)

    def _parse_toggler(self) -> Toggler | ParseError:
        cond, cond_span = self._take_group()
        if not cond:
            return self._fail("expected condition inside '[]'", cond_span)
        return Toggler(cond, cond_span)

    def _parse_attr_type(self) -> AttrType | ParseError:
        if self._at(TokenType.LBRACKET):
            toggler = self._parse_toggler()
            if isinstance(toggler, ParseError):
                return toggler
            return AttrEmpty(toggler)

        if not self._at_punct("=") or self._at_fat_arrow():
            return AttrEmpty()

        eq = self._advance()

        if self._at(TokenType.LBRACKET):
            toggler = self._parse_toggler()
            if isinstance(toggler, ParseError):
                return toggler
            return AttrOptional(toggler)

        if self._at_punct("@") and self._peek(1).type == TokenType.LPAREN:
            self._advance()  # consume @
            ty, outer_span = self._take_group()
            if not ty:
                return self._fail("expected handler type inside '()'", outer_span)
            return AttrEvent(ty)

        if self._at(TokenType.STRING, TokenType.NUMBER):
            tok = self._advance()
            return AttrNormal(Literal(tok.value, tok.span))

        if self._at(TokenType.LPAREN):
            expr, outer_span = self._take_group()
            return AttrNormal(Splice(expr, outer_span))

        if self._at(TokenType.LBRACE):
            return AttrNormal(self._parse_block())

        if self._at_end_of_attrs():
            return self._fail("expected attribute value after '='", eq.span)

        tokens = self._take_tree()
        return self._fail(
            f"expected attribute value, found '{name_to_string(tokens)}'", span_tokens(tokens)
        )


def _touching(a: Token, b: Token) -> bool:
    return a.span.end.offset == b.span.start.offset


def parse(source: str, filename: str = "input.tt") -> tuple[Template, list[Diagnostic]]:
    """Convenience function: parse source text, returning the tree and its diagnostics."""
    tokens = tokenize(source, filename)
    parser = Parser(tokens, source, filename)
    template = parser.parse()
    return template, parser.diagnostics
