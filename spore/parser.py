"""Builds Spore syntax trees from source text."""

from __future__ import annotations

import base64
import binascii
import re
import string
from collections import deque
from dataclasses import dataclass, replace
from typing import Callable, TextIO

from . import ast
from .lexer import BASE64_ALPHABET, Lexer
from .tokens import Span, Token, TokenType

_STD_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/"
_FROM_CUSTOM = str.maketrans(BASE64_ALPHABET, _STD_ALPHABET)
_REF_SIZE = 32
_STRING_ESCAPES = {"n": "\n", "r": "\r"}
_STRING_ESCAPE_RE = re.compile(r"\\([nr])")


class ParseError(Exception):
    """Raised when the tokens do not form a valid syntax tree."""


@dataclass(frozen=True)
class SpanTree:
    """The region a node covers, with the regions of its children."""

    bound: Span
    children: tuple[SpanTree, ...] = ()


_EMPTY = SpanTree(Span(0, 0))


def combine_spans(*spans: SpanTree) -> SpanTree:
    """Join spans into one that covers the first through the last."""
    if not spans:
        raise ValueError("combine_spans needs at least one span")
    return SpanTree(Span(spans[0].bound.begin, spans[-1].bound.end), tuple(spans))


def _parse_int_text(text: str) -> int:
    sign = 1
    body = text
    if body[:1] in "+-" and body:
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if not body:
        raise ValueError("empty number")
    prefix = body[:2].lower()
    if prefix in ("0x", "0o", "0b"):
        value = int(body, 0)
    elif len(body) > 1 and body[0] == "0":
        # a bare leading zero selects octal
        value = int(body, 8)
    else:
        if not body[0].isdigit():
            raise ValueError(f"invalid number {text!r}")
        value = int(body, 10)
    return sign * value


class Parser:
    """Reads syntax tree nodes one at a time from Spore source.

    Lexical errors surface as LexError; structural errors as ParseError.
    """

    def __init__(self, source: str | TextIO) -> None:
        self._lexer = Lexer(source)
        self._pending: deque[Token] = deque()
        self._leaves: dict[TokenType, Callable[[Token], ast.Node]] = {
            TokenType.INT: self._int,
            TokenType.STRING: self._string,
            TokenType.SYMBOL: lambda tok: ast.Symbol(tok.text),
            TokenType.PRIMITIVE: lambda tok: ast.Op(tok.text[1:]),
            TokenType.REF: self._ref,
            TokenType.PARAM: self._param,
            TokenType.COMMENT_ONE_LINE: lambda tok: ast.Comment(tok.text[2:]),
        }

    def parse_ast(self) -> tuple[SpanTree, ast.Node | None]:
        """Parse the next node, or a ``key: value`` row; None at the end of input."""
        span, node = self._parse_one()
        if node is None:
            return _EMPTY, None
        self._fill()
        if self._pending[0].type != TokenType.COLON:
            return span, node
        self._pending.popleft()
        value_span, value = self._parse_one()
        if value is None:
            raise ParseError(f"missing value after {node}:")
        return combine_spans(span, value_span), ast.Row(node, value)

    def parse_sexpr(self) -> tuple[SpanTree, ast.SExpr]:
        """Parse a parenthesised expression."""
        span, nodes = self._parse_compound(TokenType.LPAREN, TokenType.RPAREN, False)
        return span, ast.SExpr(nodes)

    def parse_symbol(self) -> str:
        """Read a single symbol token and return its text."""
        tok = self._next()
        if tok.type != TokenType.SYMBOL:
            raise ParseError(f"cannot parse symbol from non-symbol token {tok}")
        return tok.text

    # token buffer

    def _fill(self) -> None:
        if not self._pending:
            self._pending.append(self._lexer.next())

    def _next(self) -> Token:
        self._fill()
        return self._pending.popleft()

    def _back(self, tok: Token) -> None:
        self._pending.appendleft(tok)

    # node kinds

    def _parse_one(self) -> tuple[SpanTree, ast.Node | None]:
        tok = self._next()
        ty = tok.type
        if ty == TokenType.EOF:
            return _EMPTY, None
        leaf = self._leaves.get(ty)
        if leaf is not None:
            return SpanTree(tok.span), leaf(tok)
        if ty == TokenType.LPAREN:
            self._back(tok)
            return self.parse_sexpr()
        if ty == TokenType.LBRACKET:
            self._back(tok)
            span, nodes = self._parse_compound(TokenType.LBRACKET, TokenType.RBRACKET, True)
            return span, ast.Array(nodes)
        if ty == TokenType.LBRACE:
            self._back(tok)
            return self._parse_tuple_or_table()
        if ty == TokenType.SQUOTE:
            span, node = self.parse_ast()
            if node is None:
                raise ParseError("nothing to quote")
            bound = Span(span.bound.begin - 1, span.bound.end)
            return replace(span, bound=bound), ast.Quote(node)
        if ty == TokenType.COLON:
            return self._parse_one()
        raise ParseError(f"unexpected token {tok}")

    def _parse_compound(
        self, begin: TokenType, end: TokenType, allow_commas: bool
    ) -> tuple[SpanTree, list[ast.Node]]:
        tok = self._next()
        if tok.type != begin:
            raise ParseError(f"expected {begin.name}, got {tok}")
        start = tok.span.begin
        stop = tok.span.end
        children: list[SpanTree] = []
        nodes: list[ast.Node] = []
        while True:
            tok = self._next()
            if tok.type in (TokenType.EOF, end):
                stop = tok.span.end
                break
            if allow_commas and tok.type == TokenType.COMMA:
                continue
            self._back(tok)
            span, node = self.parse_ast()
            if node is None:
                stop = span.bound.end
                break
            children.append(span)
            nodes.append(node)
        return SpanTree(Span(start, stop), tuple(children)), nodes

    def _parse_tuple_or_table(self) -> tuple[SpanTree, ast.Node]:
        span, nodes = self._parse_compound(TokenType.LBRACE, TokenType.RBRACE, True)
        rows = [node for node in nodes if isinstance(node, ast.Row)]
        if not rows:
            return span, ast.Tuple(nodes)
        if len(rows) == len(nodes):
            return span, ast.Table(rows)
        raise ParseError("table contains non-rows / tuple contains rows")

    def _int(self, tok: Token) -> ast.Int:
        try:
            return ast.Int(_parse_int_text(tok.text))
        except ValueError as err:
            raise ParseError(f"cannot parse number {tok}: {err}") from err

    def _string(self, tok: Token) -> ast.String:
        body = tok.text[1:-1]
        return ast.String(_STRING_ESCAPE_RE.sub(lambda m: _STRING_ESCAPES[m.group(1)], body))

    def _ref(self, tok: Token) -> ast.Ref:
        encoded = tok.text[1:].translate(_FROM_CUSTOM)
        encoded += "=" * (-len(encoded) % 4)
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as err:
            raise ParseError(f"invalid ref {tok}: {err}") from err
        if len(data) > _REF_SIZE:
            raise ParseError(f"ref {tok} is longer than {_REF_SIZE} bytes")
        return ast.Ref(data.ljust(_REF_SIZE, b"\0"))

    def _param(self, tok: Token) -> ast.Param:
        digits = tok.text[1:]
        if not digits or not all("0" <= ch <= "9" for ch in digits):
            raise ParseError(f"invalid param {tok}")
        try:
            return ast.Param(int(digits))
        except ValueError as err:
            raise ParseError(f"invalid param {tok}: {err}") from err


def read_all(parser: Parser) -> tuple[SpanTree, list[ast.Node]]:
    """Parse every remaining node, returning a root span and the nodes."""
    children: list[SpanTree] = []
    nodes: list[ast.Node] = []
    while True:
        span, node = parser.parse_ast()
        if node is None:
            break
        children.append(span)
        nodes.append(node)
    return SpanTree(Span(0, 0), tuple(children)), nodes


def parse(text: str | TextIO) -> list[ast.Node]:
    """Parse every top-level node in text."""
    return read_all(Parser(text))[1]