import io

import pytest

from spore import ast
from spore.lexer import LexError
from spore.parser import ParseError, Parser, SpanTree, combine_spans, parse, read_all
from spore.tokens import Span


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1234", ast.Int(1234)),
        ("+1234", ast.Int(1234)),
        ('"hello world\\n"', ast.String("hello world\n")),
        ("(a b c)", ast.SExpr([ast.Symbol("a"), ast.Symbol("b"), ast.Symbol("c")])),
        ("'(a)", ast.Quote(ast.SExpr([ast.Symbol("a")]))),
        ("[]", ast.Array()),
        ("[1 2 3 4]", ast.Array([ast.Int(1), ast.Int(2), ast.Int(3), ast.Int(4)])),
        ('{"abc" 123}', ast.Tuple([ast.String("abc"), ast.Int(123)])),
        (";; this is a comment", ast.Comment(" this is a comment")),
        ("%0", ast.Param(0)),
        ("%13", ast.Param(13)),
        ("{ k : v }", ast.Table([ast.Row(ast.Symbol("k"), ast.Symbol("v"))])),
    ],
)
def test_parse_ast_cases(text, expected):
    span, node = Parser(text).parse_ast()
    assert node == expected
    assert span.bound == Span(0, len(text))


@pytest.mark.parametrize(
    "text, value",
    [("0xff", 255), ("0o755", 493), ("010", 8), ("1_000", 1000), ("-5", -5), ("0", 0)],
)
def test_integer_forms(text, value):
    _, node = Parser(text).parse_ast()
    assert node == ast.Int(value)


def test_carriage_return_escape():
    _, node = Parser('"a\\rb"').parse_ast()
    assert node == ast.String("a\rb")


def test_primitive():
    _, node = Parser("!concat").parse_ast()
    assert node == ast.Op("concat")


def test_top_level_row():
    span, node = Parser("a: b").parse_ast()
    assert node == ast.Row(ast.Symbol("a"), ast.Symbol("b"))
    assert span.bound == Span(0, 4)
    assert [c.bound for c in span.children] == [Span(0, 1), Span(3, 4)]


def test_nested_spans_and_commas():
    span, node = Parser("(a [1, 2])").parse_ast()
    assert node == ast.SExpr([ast.Symbol("a"), ast.Array([ast.Int(1), ast.Int(2)])])
    assert span.bound == Span(0, 10)
    assert [c.bound for c in span.children] == [Span(1, 2), Span(3, 9)]
    assert [c.bound for c in span.children[1].children] == [Span(4, 5), Span(7, 8)]


def test_unterminated_sexpr_ends_at_eof():
    _, node = Parser("(a").parse_ast()
    assert node == ast.SExpr([ast.Symbol("a")])


def test_end_of_input_returns_none():
    span, node = Parser("   ").parse_ast()
    assert node is None
    assert span == SpanTree(Span(0, 0))


def test_ref_of_zero_bytes():
    _, node = Parser("@" + "-" * 43).parse_ast()
    assert node == ast.Ref(bytes(32))


def test_ref_too_long():
    with pytest.raises(ParseError):
        Parser("@" + "-" * 44).parse_ast()


@pytest.mark.parametrize("text", ["1e5", "-", "%a", "%", ")", "{a: 1 2}", "a:"])
def test_parse_errors(text):
    with pytest.raises(ParseError):
        Parser(text).parse_ast()


def test_lex_errors_propagate():
    with pytest.raises(LexError):
        Parser('"abc').parse_ast()


def test_parse_sexpr():
    span, node = Parser("(a b)").parse_sexpr()
    assert node == ast.SExpr([ast.Symbol("a"), ast.Symbol("b")])
    assert span.bound == Span(0, 5)


def test_parse_sexpr_requires_paren():
    with pytest.raises(ParseError):
        Parser("[a]").parse_sexpr()


def test_parse_symbol():
    assert Parser("abc def").parse_symbol() == "abc"
    with pytest.raises(ParseError):
        Parser("123").parse_symbol()


def test_read_all():
    root, nodes = read_all(Parser("a (b c)\n;; hi"))
    assert nodes == [
        ast.Symbol("a"),
        ast.SExpr([ast.Symbol("b"), ast.Symbol("c")]),
        ast.Comment(" hi"),
    ]
    assert [c.bound for c in root.children] == [Span(0, 1), Span(2, 7), Span(8, 13)]


def test_parse_from_stream():
    assert parse(io.StringIO("x 1")) == [ast.Symbol("x"), ast.Int(1)]


def test_combine_spans():
    a = SpanTree(Span(2, 4))
    b = SpanTree(Span(6, 9))
    combined = combine_spans(a, b)
    assert combined.bound == Span(2, 9)
    assert combined.children == (a, b)


def test_combine_spans_requires_input():
    with pytest.raises(ValueError):
        combine_spans()