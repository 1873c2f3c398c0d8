"""Token kinds, spans and tokens produced by the lexer."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TokenType(enum.IntEnum):
    """The kinds of token the lexer can emit."""

    ILLEGAL = 0
    EOF = 1
    SYMBOL = 2
    INT = 3
    CHAR = 4
    STRING = 5
    REF = 6
    PARAM = 7
    PRIMITIVE = 8
    LPAREN = 9
    RPAREN = 10
    LBRACKET = 11
    RBRACKET = 12
    LBRACE = 13
    RBRACE = 14
    COLON = 15
    COMMA = 16
    NEWLINE = 17
    COMMENT_ONE_LINE = 18
    COMMENT_BEGIN = 19
    COMMENT_END = 20
    SQUOTE = 21


@dataclass(frozen=True)
class Span:
    """A half-open region [begin, end) of the input, in characters."""

    begin: int
    end: int


_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}


def _quote(text: str) -> str:
    parts = []
    for ch in text:
        if ch in _ESCAPES:
            parts.append(_ESCAPES[ch])
        elif ch.isprintable():
            parts.append(ch)
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            parts.append(f"\\x{ord(ch):02x}")
        elif ord(ch) < 0x10000:
            parts.append(f"\\u{ord(ch):04x}")
        else:
            parts.append(f"\\U{ord(ch):08x}")
    return '"' + "".join(parts) + '"'


@dataclass(frozen=True)
class Token:
    """A lexical token: its kind, its text and where it was found."""

    type: TokenType
    text: str
    span: Span

    def slice(self, src):
        """Return the part of src that the token covers."""
        return src[self.span.begin : self.span.end]

    def is_eof(self) -> bool:
        return self.type == TokenType.EOF

    def __str__(self) -> str:
        if self.type == TokenType.EOF:
            return "EOF"
        return _quote(self.text)


_FIXED_TEXT = {
    TokenType.LPAREN: "(",
    TokenType.RPAREN: ")",
    TokenType.LBRACKET: "[",
    TokenType.RBRACKET: "]",
    TokenType.LBRACE: "{",
    TokenType.RBRACE: "}",
}


def make_token(ty: TokenType, begin: int) -> Token:
    """Build a token of a fixed-text kind starting at begin."""
    text = _FIXED_TEXT.get(ty, "")
    return Token(ty, text, Span(begin, begin + len(text)))