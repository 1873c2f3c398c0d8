# spore

Front end for the Spore language, a small s-expression language. The package
reads source text into tokens and syntax trees, prints trees back out, and
expands the built-in macros into primitive operations. It has no dependencies
outside the standard library.

## Install

    pip install .

To run the tests:

    pip install ".[test]"
    pytest

## The language

- `(op arg ...)` is an s-expression.
- `[a b c]` is an array.
- `{a b c}` is a tuple, and `{k: v, k2: v2}` is a table.
- `!name` is a primitive operation.
- `%0`, `%1`, ... are parameters.
- `'x` quotes a node.
- `;;` starts a comment that runs to the end of the line.
- `@...` is a 32 byte reference written in base64 (alphabet `-0-9A-Z_a-z`).
- Integers may carry a sign and may be written in hex (`0xff`) or octal
  (`0o755`); a number with a bare leading zero is read as octal.

## Modules

- `spore.ast`: the syntax tree nodes (`SExpr`, `Array`, `Tuple`, `Table`,
  `Row`, `Int`, `String`, `Symbol`, `Ref`, `Op`, `Param`, `Quote`, `Comment`),
  plus `map_node()` and `equal()`. Sequence nodes are immutable and only
  compare equal to nodes of the same kind.
- `spore.tokens`: `TokenType`, `Span` and `Token`, and `make_token()`.
- `spore.lexer`: `Lexer`, `tokenize()` and `LexError`. Positions count
  characters.
- `spore.parser`: `Parser`, `read_all()`, `parse()`, `combine_spans()`,
  `SpanTree` and `ParseError`.
- `spore.printer`: `Printer` and `print_string()`.
- `spore.macros`: the macro functions, `expand_macro()`, `primitives()`,
  builders such as `define()`, `let_one()`, `lambda_()`, `field()`,
  `fixed_bit_array()`, and `MacroError`.
- `spore.source`: `SourceFile`, `ImportStmt`, `is_import_statement()`,
  `as_import_stmt()` and `CompileError`.

## Usage

Turning text into tokens:

```python
from spore.lexer import tokenize

for tok in tokenize('(symbol 117 "abc")'):
    print(tok.type, tok.text, tok.span)
```

Parsing and printing:

```python
from spore.parser import parse
from spore.printer import print_string

nodes = parse("(def x (b8 3)) {k: v}")
for node in nodes:
    print(print_string(node))
```

For finer control, create a `spore.parser.Parser` and call `parse_ast()`
repeatedly, or pass it to `read_all()`. Both also return a `SpanTree`, which
records where each node sits in the source. `parse_ast()` returns `None` as
the node once the input is used up. Lexical errors raise `LexError`;
malformed structure raises `ParseError`.

Expanding macros:

```python
from spore import ast
from spore.macros import expand_macro

node = expand_macro(ast.Symbol("if"), ast.SExpr([ast.Symbol("c"), ast.Symbol("a"), ast.Symbol("b")]))
print(node)  # (!branch c b a)
```

Macros given the wrong arguments raise `MacroError`. Expansion is one step:
the result may itself contain macro calls such as `Product` or `let`.

`spore.macros.primitives()` maps each primitive operation, as an `ast.Op`
spelled the way it is written in source (for example `!arrayEmpty`, `!ZERO`),
to its opcode.

For files that hold several statements, `spore.source.SourceFile` keeps the
parsed nodes and their spans. Its `find()` method returns the span at a
location path, and `scan_imports()` collects the `(import ...)` statements,
raising `ValueError` if an import follows any other statement. A
`CompileError` carries a source file and a location and names that place in
its message.

## What it does not do

The package stops at syntax. It does not evaluate expressions, compile them
to values, build packages from directories, or run programs, and it has no
command-line tool. Macros that need evaluation (such as `!comptime` or
user-defined `!macro` forms) are left in the tree as primitive operations for
a later stage to handle.