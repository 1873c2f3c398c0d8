import io

import pytest

from spore.lexer import LexError, Lexer, tokenize
from spore.tokens import Span, Token, TokenType, make_token


def mk_int(x, pos):
    text = str(x)
    return Token(TokenType.INT, text, Span(pos, pos + len(text)))


def mk_str(quoted, pos):
    return Token(TokenType.STRING, quoted, Span(pos, pos + len(quoted)))


def mk_ref(x, pos):
    return Token(TokenType.REF, "@" + x, Span(pos, pos + len(x) + 1))


def mk_prim(x, pos):
    return Token(TokenType.PRIMITIVE, "!" + x, Span(pos, pos + len(x) + 1))


def mk_sym(x, pos):
    return Token(TokenType.SYMBOL, x, Span(pos, pos + len(x)))


def mk_col(x, pos):
    text = ";;" + x
    return Token(TokenType.COMMENT_ONE_LINE, text, Span(pos, pos + len(text)))


CASES = [
    ("", []),
    ("()", [make_token(TokenType.LPAREN, 0), make_token(TokenType.RPAREN, 1)]),
    ("(   )", [make_token(TokenType.LPAREN, 0), make_token(TokenType.RPAREN, 4)]),
    (
        "(( ) ) ",
        [
            make_token(TokenType.LPAREN, 0),
            make_token(TokenType.LPAREN, 1),
            make_token(TokenType.RPAREN, 3),
            make_token(TokenType.RPAREN, 5),
        ],
    ),
    ("1234", [mk_int(1234, 0)]),
    ("1 2 3 4", [mk_int(1, 0), mk_int(2, 2), mk_int(3, 4), mk_int(4, 6)]),
    ("0xff", [Token(TokenType.INT, "0xff", Span(0, 4))]),
    ("0o755", [Token(TokenType.INT, "0o755", Span(0, 5))]),
    ('"hello world"', [mk_str('"hello world"', 0)]),
    ('"hello\\n"', [mk_str('"hello\\n"', 0)]),
    ("@abcd-_012345_ABCD", [mk_ref("abcd-_012345_ABCD", 0)]),
    ("abc123", [mk_sym("abc123", 0)]),
    (
        '(symbol 117 "abc" )',
        [
            make_token(TokenType.LPAREN, 0),
            mk_sym("symbol", 1),
            mk_int(117, 8),
            mk_str('"abc"', 12),
            make_token(TokenType.RPAREN, 18),
        ],
    ),
    (
        "1234 ;; this is a comment\n ()",
        [
            mk_int(1234, 0),
            mk_col(" this is a comment", 5),
            make_token(TokenType.LPAREN, 27),
            make_token(TokenType.RPAREN, 28),
        ],
    ),
    ("!hello", [mk_prim("hello", 0)]),
]


@pytest.mark.parametrize("text, expected", CASES)
def test_lex(text, expected):
    lexer = Lexer(text)
    actual = []
    for _ in expected:
        tok = lexer.next()
        assert not tok.is_eof()
        actual.append(tok)
    assert lexer.next().is_eof()
    assert actual == expected


@pytest.mark.parametrize("text, expected", CASES)
def test_tokenize_matches_cases(text, expected):
    assert tokenize(text) == expected


def test_eof_repeats_and_advances():
    lexer = Lexer("()")
    lexer.next()
    lexer.next()
    first = lexer.next()
    second = lexer.next()
    assert first.is_eof() and second.is_eof()
    assert first.span.begin == len("()")
    assert second.span.begin == first.span.end


def test_reads_from_stream():
    assert tokenize(io.StringIO("(a)")) == tokenize("(a)")
    assert [t.type for t in Lexer(io.StringIO("x"))] == [TokenType.SYMBOL]


def test_punctuation_and_quote():
    types = [t.type for t in tokenize("{a: 1, b} 'x")]
    assert types == [
        TokenType.LBRACE,
        TokenType.SYMBOL,
        TokenType.COLON,
        TokenType.INT,
        TokenType.COMMA,
        TokenType.SYMBOL,
        TokenType.RBRACE,
        TokenType.SQUOTE,
        TokenType.SYMBOL,
    ]


def test_signed_exponent_number_is_one_token():
    toks = tokenize("-12e+3")
    assert len(toks) == 1
    assert toks[0].type == TokenType.INT
    assert toks[0].text == "-12e+3"


def test_param_token():
    toks = tokenize("%13")
    assert [(t.type, t.text) for t in toks] == [(TokenType.PARAM, "%13")]


def test_simple_escape_kept_raw():
    text = '"a\\tb"'
    toks = tokenize(text)
    assert len(toks) == 1
    assert toks[0].text == text


def test_unterminated_string_error_persists():
    lexer = Lexer('"abc')
    with pytest.raises(LexError, match="not terminated"):
        lexer.next()
    with pytest.raises(LexError, match="not terminated"):
        lexer.next()


def test_string_broken_by_newline():
    with pytest.raises(LexError, match="string literal not terminated"):
        tokenize('"ab\ncd"')


def test_unknown_escape():
    with pytest.raises(LexError, match="unknown escape sequence"):
        tokenize('"a\\qb"')


def test_illegal_escape_digit():
    with pytest.raises(LexError, match="illegal character"):
        tokenize('"\\xg1"')


def test_surrogate_escape_rejected():
    with pytest.raises(LexError, match="invalid Unicode code point"):
        tokenize('"\\ud800x"')


def test_improperly_terminated_symbol():
    with pytest.raises(LexError, match="improperly terminated"):
        tokenize("abc(")


def test_improperly_terminated_primitive():
    with pytest.raises(LexError, match="improperly terminated"):
        tokenize("!abc:")


def test_double_bang_rejected():
    with pytest.raises(LexError):
        tokenize("!!x")


def test_illegal_character_then_eof():
    lexer = Lexer("# rest")
    tok = lexer.next()
    assert tok.type == TokenType.ILLEGAL
    assert tok.text == "#"
    assert lexer.next().is_eof()


def test_single_semicolon_is_illegal():
    lexer = Lexer("; x")
    tok = lexer.next()
    assert tok.type == TokenType.ILLEGAL
    assert tok.text == ";"
    assert lexer.next().is_eof()


def test_token_spans_slice_back_to_text():
    text = '(def x [1 2]) ;; c\n{k: "v"}'
    for tok in tokenize(text):
        assert tok.slice(text) == tok.text