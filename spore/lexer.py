"""Splits Spore source text into tokens. Positions count characters."""

from __future__ import annotations

import unicodedata
from collections.abc import Iterator
from typing import TextIO

from .tokens import Span, Token, TokenType

BASE64_ALPHABET = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"

_EOF = ""
_MAX_RUNE = 0x10FFFF

_PUNCTUATION = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "'": TokenType.SQUOTE,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
}


class LexError(Exception):
    """Raised when the input cannot be split into tokens."""


def _is_space(ch: str) -> bool:
    if not ch:
        return False
    if ch in "\t\n\v\f\r \x85\xa0":
        return True
    return ord(ch) > 0xFF and unicodedata.category(ch) in ("Zs", "Zl", "Zp")


def _is_ascii_letter(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def _is_letter(ch: str) -> bool:
    if not ch:
        return False
    return (
        _is_ascii_letter(ch)
        or ch == "_"
        or (ord(ch) >= 0x80 and unicodedata.category(ch).startswith("L"))
    )


def _is_digit(ch: str) -> bool:
    if not ch:
        return False
    return "0" <= ch <= "9" or (ord(ch) >= 0x80 and unicodedata.category(ch) == "Nd")


def _is_alnum(ch: str) -> bool:
    return _is_letter(ch) or _is_digit(ch)


def _is_symbol(ch: str) -> bool:
    return _is_alnum(ch) or (bool(ch) and ch in "<>./?!")


def _digit_val(ch: str) -> int:
    if ch and "0" <= ch <= "9":
        return ord(ch) - ord("0")
    if ch and "a" <= ch.lower() <= "f" and ch.isascii():
        return ord(ch.lower()) - ord("a") + 10
    return 16


def _describe(ch: str) -> str:
    return f"U+{ord(ch):04X} {ch!r}"


class Lexer:
    """Produces tokens one at a time from Spore source text.

    Once an error has been raised, every later call raises it again.
    After the input is used up, EOF tokens are returned indefinitely.
    """

    def __init__(self, source: str | TextIO) -> None:
        self._text = source.read() if hasattr(source, "read") else str(source)
        self._pos = 0
        self._start = 0
        self._error: LexError | None = None
        self._tokens = self._run()

    def next(self) -> Token:
        """Return the next token, raising LexError on malformed input."""
        if self._error is not None:
            raise self._error
        try:
            return next(self._tokens)
        except LexError as err:
            self._error = err
            raise

    def __iter__(self) -> Iterator[Token]:
        """Yield tokens up to, but not including, the first EOF."""
        while True:
            tok = self.next()
            if tok.is_eof():
                return
            yield tok

    # reading primitives

    def _read(self) -> str:
        ch = self._text[self._pos] if self._pos < len(self._text) else _EOF
        self._pos += 1
        return ch

    def _back(self) -> None:
        self._pos -= 1

    def _peek(self) -> str:
        ch = self._read()
        self._back()
        return ch

    def _accept(self, valid: str) -> bool:
        ch = self._read()
        if ch and ch in valid:
            return True
        self._back()
        return False

    def _accept_run(self, valid: str) -> None:
        while self._accept(valid):
            pass

    def _accum(self, pred) -> None:
        while True:
            ch = self._read()
            if not ch or not pred(ch):
                self._back()
                return

    def _ignore(self) -> None:
        self._start += 1

    def _emit(self, ty: TokenType) -> Token:
        text = self._text[self._start : self._pos]
        tok = Token(ty, text, Span(self._start, self._pos))
        self._start = self._pos
        return tok

    def _emit_eof(self) -> Token:
        tok = Token(TokenType.EOF, "\ufffd", Span(self._start, self._start + 1))
        self._start += 1
        return tok

    # states

    def _run(self) -> Iterator[Token]:
        while True:
            ch = self._read()
            if not ch:
                break
            if _is_space(ch):
                self._back()
                self._skip_whitespace()
                continue
            punct = _PUNCTUATION.get(ch)
            if punct is not None:
                yield self._emit(punct)
            elif ch in "+-" or _is_digit(ch):
                self._back()
                yield self._lex_int()
            elif ch == '"':
                self._back()
                yield self._lex_string()
            elif ch == "@":
                self._back()
                yield self._lex_ref()
            elif ch == ";":
                if not self._accept(";"):
                    yield self._emit(TokenType.ILLEGAL)
                    break
                yield self._lex_comment()
            elif ch == "%":
                self._back()
                yield self._lex_param()
            elif ch == "!":
                yield self._lex_prim()
            elif _is_alnum(ch):
                self._back()
                yield self._lex_symbol()
            else:
                yield self._emit(TokenType.ILLEGAL)
                break
        while True:
            yield self._emit_eof()

    def _skip_whitespace(self) -> None:
        while True:
            ch = self._read()
            if _is_space(ch):
                self._ignore()
            else:
                self._back()
                return

    def _check_terminated(self, allowed: str) -> None:
        ch = self._peek()
        if ch and not _is_space(ch) and ch not in allowed:
            raise LexError(f"improperly terminated symbol {ch!r}")

    def _lex_symbol(self) -> Token:
        self._accum(_is_symbol)
        self._check_terminated(")]}:,")
        return self._emit(TokenType.SYMBOL)

    def _lex_int(self) -> Token:
        self._accept("+-")
        digits = "0123456789"
        if self._accept("0"):
            if self._accept("x"):
                digits = "0123456789abcdefABCDEF"
            elif self._accept("o"):
                digits = "01234567"
        digits += "_"
        self._accept_run(digits)
        if self._accept("eE"):
            self._accept("+-")
            self._accept_run(digits)
        if self._pos == self._start:
            raise LexError(f"malformed number {self._peek()!r}")
        return self._emit(TokenType.INT)

    def _lex_string(self) -> Token:
        self._accept('"')
        while True:
            ch = self._read()
            if ch == "\n" or not ch:
                raise LexError("string literal not terminated")
            if ch == '"':
                break
            if ch == "\\":
                self._scan_escape('"')
        return self._emit(TokenType.STRING)

    def _scan_escape(self, quote: str) -> None:
        ch = self._read()
        if ch and (ch in "abfnrtv\\" or ch == quote):
            return
        if ch == "x":
            count, base, maximum = 2, 16, 255
        elif ch == "u":
            count, base, maximum = 4, 16, _MAX_RUNE
        elif ch == "U":
            count, base, maximum = 8, 16, _MAX_RUNE
        else:
            if not ch:
                raise LexError("escape sequence not terminated")
            raise LexError("unknown escape sequence")

        ch = self._read()
        value = 0
        for _ in range(count):
            digit = _digit_val(ch)
            if digit >= base:
                if not ch:
                    raise LexError("escape sequence not terminated")
                raise LexError(f"illegal character {_describe(ch)} in escape sequence")
            value = value * base + digit
            ch = self._read()

        if value > maximum or 0xD800 <= value < 0xE000:
            raise LexError("escape sequence is invalid Unicode code point")

    def _lex_ref(self) -> Token:
        self._accept("@")
        self._accept_run(BASE64_ALPHABET)
        self._check_terminated(")")
        return self._emit(TokenType.REF)

    def _lex_comment(self) -> Token:
        self._accum(lambda c: c != "\n")
        return self._emit(TokenType.COMMENT_ONE_LINE)

    def _lex_param(self) -> Token:
        self._accept("%")
        self._accept_run("0123456789abcdef")
        return self._emit(TokenType.PARAM)

    def _lex_prim(self) -> Token:
        if self._accept("!"):
            raise LexError("primitive must start with a single '!'")
        self._accum(_is_symbol)
        self._check_terminated(")]}")
        return self._emit(TokenType.PRIMITIVE)


def tokenize(text: str) -> list[Token]:
    """Return all tokens of text, excluding the final EOF."""
    return list(Lexer(text))