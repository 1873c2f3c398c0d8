"""Syntax-level macros and helpers that rewrite Spore syntax trees."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence

from . import ast

DEF_PRIM = ast.Op("def")
SCOPE_PRIM = ast.Op("scope")

# type codes used when crafting types
_TC_BIT = 1
_TC_ARRAY = 2
_TC_REF = 4
_TC_SUM = 5
_TC_PRODUCT = 6
_TC_LIST = 7
_TC_LAZY = 8
_TC_LAMBDA = 9
_TC_PORT = 11
_TC_DISTINCT = 12
_TC_ANY_VALUE = 15

# primitive operation names, grouped by the first code of each section;
# None marks a code that has no usable name
_OP_SECTIONS: dict[int, list[str | None]] = {
    0x00: [
        "Unknown", "Pass", "Equal", "Craft", "Uncraft", "Root",
        "Encode", "Decode", "TypeOf", "SizeOf", "MaxSize",
    ],
    0x10: ["ZERO"] + [None] * 14 + ["ONE"],
    0x20: [
        "ArrayEmpty", "ArrayUnit", "ProductEmpty", "ProductUnit", "Concat",
        "MakeSum", "Which", "Field", "Slot", "Section", "Gather", "Slice",
    ],
    0x30: [
        "Let", "Lazy", "Lambda", "Fractal", "Eval", "Apply",
        "Mux", "Branch", "Try", "Panic",
    ],
    0x40: ["Post", "Load"],
    0x50: ["Input", "Output", "Interact"],
    0x70: [
        None, "AnyTypeFrom", "AnyTypeTo", "AnyTypeElemType",
        "AnyValueFrom", "AnyValueTo", "AnyValueElemType",
    ],
    0x80: ["Self", "LiteralKind", "LiteralAnyType", "LiteralAnyValue"],
    0x88: [
        "LiteralB0", "LiteralB2", "LiteralB4", "LiteralB8", "LiteralB16",
        "LiteralB32", "LiteralB64", "LiteralB128", "LiteralB256",
    ],
    0xC0: ["Param0"],
    0xFF: ["ParamN"],
}


class MacroError(ValueError):
    """Raised when a macro is given arguments it cannot expand."""


def _spelling(name: str) -> str:
    if all(ch.isupper() for ch in name):
        return name
    return name[:1].lower() + name[1:]


def primitives() -> dict[ast.Op, int]:
    """Return every primitive operation keyed by its spelling in source."""
    ops: dict[ast.Op, int] = {}
    for base, names in sorted(_OP_SECTIONS.items()):
        for offset, name in enumerate(names):
            if name is not None:
                ops[ast.Op(_spelling(name))] = base + offset
    return ops


# builders

def make_zeros(n: int) -> ast.Array:
    """An array literal of n zero bits."""
    return ast.Array(ast.Int(0) for _ in range(n))


def fixed_bit_array(value: int, length: int) -> ast.Node:
    """A bit array of the given length holding value, padded with high zeros."""
    padding = length - abs(value).bit_length()
    if padding == 0:
        return ast.Int(value)
    if padding == length:
        return make_zeros(padding)
    return ast.SExpr([ast.Op("concat"), ast.Int(value), make_zeros(padding)])


def define(sym: ast.Symbol, val: ast.Node) -> ast.Node:
    """``(!def sym val)``."""
    return ast.SExpr([DEF_PRIM, sym, val])


def let(bindings: Mapping[ast.Symbol, ast.Node], body: ast.Node) -> ast.Node:
    """``(let ((sym val) ...) body)``."""
    pairs = ast.SExpr(ast.SExpr([sym, val]) for sym, val in bindings.items())
    return ast.SExpr([ast.Symbol("let"), pairs, body])


def let_one(key: ast.Symbol, value: ast.Node, body: ast.Node) -> ast.Node:
    """Bind one symbol to value for the evaluation of body."""
    return ast.SExpr([
        ast.Op("let"),
        value,
        ast.SExpr([SCOPE_PRIM, define(key, ast.Param(0)), body]),
    ])


def lambda_(params: ast.Table, out_type: ast.Node, *body: ast.Node) -> ast.Node:
    """``(lambda params out_type body...)``."""
    return ast.SExpr([ast.Symbol("lambda"), params, out_type, *body])


def field(x: ast.Node, i: int) -> ast.Node:
    """``(!field x i)``."""
    return ast.SExpr([ast.Op("field"), x, ast.Int(i)])


def type_of(x: ast.Node) -> ast.Node:
    """``(!typeOf x)``."""
    return ast.SExpr([ast.Op("typeOf"), x])


def defc(sym: ast.Symbol, val: ast.Node) -> ast.Node:
    """``(defc sym val)``."""
    return ast.SExpr([ast.Symbol("defc"), sym, val])


def _comptime(e: ast.Node) -> ast.Node:
    return ast.SExpr([ast.Op("comptime"), e])


def _any_type_from(x: ast.Node) -> ast.Node:
    return ast.SExpr([ast.Op("anyTypeFrom"), x])


def _any_value_from(x: ast.Node) -> ast.Node:
    return ast.SExpr([ast.Op("anyValueFrom"), x])


def _wrap_in_any_type(xs: Sequence[ast.Node]) -> ast.SExpr:
    return ast.SExpr(_any_type_from(x) for x in xs)


def _mk_type(code: int, *args: ast.Node) -> ast.Node:
    return ast.SExpr([
        ast.Op("craft"),
        ast.SExpr([ast.Op("kind"), ast.Int(code)]),
        ast.Tuple(args),
    ])


def _expect_count(name: str, e: Sequence[ast.Node], n: int) -> None:
    if len(e) != n:
        raise MacroError(f"{name} takes {n} args. HAVE: {ast.SExpr(e)}")


def _first_int(name: str, e: Sequence[ast.Node]) -> ast.Int:
    if not e or not isinstance(e[0], ast.Int):
        raise MacroError(f"{name} requires an ast.Int")
    return e[0]


# macros: each takes the arguments of a call and returns a new node

def make_b8(e: Sequence[ast.Node]) -> ast.Node:
    return fixed_bit_array(_first_int("b8", e).value, 8)


def make_b32(e: Sequence[ast.Node]) -> ast.Node:
    return fixed_bit_array(_first_int("b32", e).value, 32)


def make_distinct(e: Sequence[ast.Node]) -> ast.Node:
    _expect_count("distinct", e, 2)
    return ast.SExpr([ast.Op("craft"), e[0], e[1]])


def make_bit_type(e: Sequence[ast.Node]) -> ast.Node:
    return _mk_type(_TC_BIT)


def make_array_type(e: Sequence[ast.Node]) -> ast.Node:
    _expect_count("Array", e, 2)
    length = e[1]
    if isinstance(length, ast.Int):
        length = fixed_bit_array(length.value, 32)
    return _mk_type(_TC_ARRAY, _any_type_from(e[0]), length)


def make_list_type(e: Sequence[ast.Node]) -> ast.Node:
    _expect_count("List", e, 1)
    return _mk_type(_TC_LIST, *_wrap_in_any_type(e))


def make_ref_type(e: Sequence[ast.Node]) -> ast.Node:
    _expect_count("Ref", e, 1)
    return _mk_type(_TC_REF, *_wrap_in_any_type(e))


def _composite_type(code: int, e: Sequence[ast.Node]) -> ast.Node:
    wrapped = _wrap_in_any_type(e)
    return ast.SExpr([
        ast.Op("craft"),
        ast.SExpr([ast.Op("kind"), ast.Int(code), ast.Int(len(wrapped))]),
        ast.Array(wrapped),
    ])


def make_sum_type(e: Sequence[ast.Node]) -> ast.Node:
    return _composite_type(_TC_SUM, e)


def make_product_type(e: Sequence[ast.Node]) -> ast.Node:
    return _composite_type(_TC_PRODUCT, e)


def make_lazy_type(e: Sequence[ast.Node]) -> ast.Node:
    _expect_count("Lazy", e, 1)
    return _mk_type(_TC_LAZY, *_wrap_in_any_type(e))


def make_lambda_type(e: Sequence[ast.Node]) -> ast.Node:
    _expect_count("Lambda", e, 2)
    return _mk_type(_TC_LAMBDA, *_wrap_in_any_type(e))


def make_fractal_type(e: Sequence[ast.Node]) -> ast.Node:
    _expect_count("Fractal", e, 1)
    return ast.SExpr([ast.Op("fractal"), e[0]])


def make_distinct_type(e: Sequence[ast.Node]) -> ast.Node:
    _expect_count("Distinct", e, 2)
    return _mk_type(_TC_DISTINCT, _any_type_from(e[0]), _any_value_from(e[1]))


def make_port_type(e: Sequence[ast.Node]) -> ast.Node:
    _expect_count("Port", e, 4)
    return _mk_type(_TC_PORT, *_wrap_in_any_type(e))


def any_type_type(e: Sequence[ast.Node]) -> ast.Node:
    return ast.SExpr([
        ast.Op("craft"),
        ast.SExpr([ast.Op("kind"), ast.Int(13)]),
        ast.Tuple(),
    ])


def any_value_type(e: Sequence[ast.Node]) -> ast.Node:
    return ast.SExpr([
        ast.Op("craft"),
        ast.SExpr([ast.Op("kind"), ast.Int(_TC_ANY_VALUE)]),
        ast.Tuple(),
    ])


def let_macro(e: Sequence[ast.Node]) -> ast.Node:
    """Expand ``(let {k: v ...} body)`` into nested single bindings."""
    if len(e) != 2:
        raise MacroError("let requires 2 arguments")
    bindings, body = e
    if not isinstance(bindings, ast.Table):
        raise MacroError(f"first argument to let must be a Table. HAVE: {bindings}")
    for row in reversed(bindings):
        if not isinstance(row.key, ast.Symbol):
            raise MacroError(f"let binding names must be symbols. HAVE: {row.key}")
        body = let_one(row.key, row.value, body)
    return body


def lambda_macro(e: Sequence[ast.Node]) -> ast.Node:
    """Expand ``(lambda in out body...)`` into the lambda primitive."""
    if len(e) < 3:
        raise MacroError("lambda requires 3 arguments")
    params = e[0]
    inner: dict[ast.Symbol, ast.Node] = {}
    if isinstance(params, ast.Table):
        in_types = []
        for i, row in enumerate(params):
            if not isinstance(row.key, ast.Symbol):
                raise MacroError(f"expected symbol in lambda arg {row.key}")
            if row.key in inner:
                raise MacroError(f"arg {row.key} is defined twice")
            in_types.append(row.value)
            inner[row.key] = field(ast.Param(0), i)
        in_type: ast.Node = ast.SExpr([ast.Symbol("Product"), *in_types])
    elif isinstance(params, ast.SExpr):
        # without a Table, the first node is the whole input type
        in_type = params[0] if params else ast.SExpr([ast.Symbol("Product")])
    elif isinstance(params, ast.Tuple) and not params:
        in_type = ast.SExpr([ast.Symbol("Product")])
    else:
        raise MacroError(f"lambda input cannot be {type(params).__name__} {params}")
    body = ast.SExpr([
        SCOPE_PRIM,
        *(define(sym, val) for sym, val in inner.items()),
        *e[2:],
    ])
    return ast.SExpr([ast.Op("lambda"), in_type, e[1], body])


def def_macro(e: Sequence[ast.Node]) -> ast.Node:
    return ast.SExpr([DEF_PRIM, *e])


def defc_macro(e: Sequence[ast.Node]) -> ast.Node:
    if len(e) != 2:
        raise MacroError("defc requires 2 arguments")
    return ast.SExpr([ast.Op("def"), e[0], _comptime(e[1])])


def defl_macro(e: Sequence[ast.Node]) -> ast.Node:
    if len(e) < 4:
        raise MacroError("defl requires 4 arguments")
    name = e[0]
    if not isinstance(name, ast.Symbol):
        raise MacroError(f"first argument to defl must be symbol. HAVE {name}")
    return defc(name, lambda_macro(tuple(e[1:])))


def defm_macro(e: Sequence[ast.Node]) -> ast.Node:
    if not e or not isinstance(e[0], ast.Symbol):
        raise MacroError(f"defm arg0 must be symbol. HAVE: {e[0] if e else None}")
    return define(e[0], ast.SExpr([ast.Op("macro"), *e[1:]]))


def pub_macro(e: Sequence[ast.Node]) -> ast.Node:
    return ast.SExpr([ast.Op("pub"), *e])


def if_macro(e: Sequence[ast.Node]) -> ast.Node:
    """``(if test then else)`` becomes ``(!branch test else then)``."""
    _expect_count("if", e, 3)
    return ast.SExpr([ast.Op("branch"), e[0], e[2], e[1]])


def eq_macro(e: Sequence[ast.Node]) -> ast.Node:
    _expect_count("eq?", e, 2)
    return ast.SExpr([ast.Op("equal"), e[0], e[1]])


def self_macro(e: Sequence[ast.Node]) -> ast.Node:
    return ast.SExpr([ast.Op("self")])


def do_macro(e: Sequence[ast.Node]) -> ast.Node:
    return ast.SExpr([ast.Op("do"), *e])


_MACROS: dict[str, Callable[[Sequence[ast.Node]], ast.Node]] = {
    "b8": make_b8,
    "b32": make_b32,
    "distinct": make_distinct,
    "Bit": make_bit_type,
    "Array": make_array_type,
    "Ref": make_ref_type,
    "Sum": make_sum_type,
    "Product": make_product_type,
    "List": make_list_type,
    "Lazy": make_lazy_type,
    "Lambda": make_lambda_type,
    "Fractal": make_fractal_type,
    "Distinct": make_distinct_type,
    "Port": make_port_type,
    "AnyType": any_type_type,
    "AnyValue": any_value_type,
    "lambda": lambda_macro,
    "let": let_macro,
    "if": if_macro,
    "eq?": eq_macro,
    "def": def_macro,
    "defl": defl_macro,
    "defc": defc_macro,
    "defm": defm_macro,
    "pub": pub_macro,
    "self": self_macro,
    "do": do_macro,
}


def expand_macro(symbol: ast.Symbol | str, args: Sequence[ast.Node]) -> ast.Node:
    """Expand the macro named by symbol over args."""
    name = symbol.name if isinstance(symbol, ast.Symbol) else symbol
    macro = _MACROS.get(name)
    if macro is None:
        raise MacroError(f"no macro named {name}")
    return macro(tuple(args))