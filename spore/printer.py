"""Renders Spore syntax trees as source text."""

from __future__ import annotations

import base64
import io
import string
from collections.abc import Iterator
from typing import TextIO

from . import ast
from .lexer import BASE64_ALPHABET

_STD_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/"
_TO_CUSTOM = str.maketrans(_STD_ALPHABET, BASE64_ALPHABET)

_BRACKETS = {
    ast.SExpr: ("(", ")"),
    ast.Array: ("[", "]"),
    ast.Tuple: ("{", "}"),
}


class Printer:
    """Writes syntax tree nodes as text."""

    def print(self, out: TextIO, x: ast.Node) -> None:
        """Write the text of x to out."""
        for piece in self._render(x):
            out.write(piece)

    def print_string(self, x: ast.Node) -> str:
        """Return the text of x."""
        buf = io.StringIO()
        self.print(buf, x)
        return buf.getvalue()

    def _render(self, node: ast.Node) -> Iterator[str]:
        brackets = _BRACKETS.get(type(node))
        if brackets is not None:
            yield brackets[0]
            for i, child in enumerate(node):
                if i:
                    yield " "
                yield from self._render(child)
            yield brackets[1]
        elif isinstance(node, ast.Table):
            yield "{"
            for row in node:
                yield from self._render(row.key)
                yield ": "
                yield from self._render(row.value)
                yield ",\n"
            yield "}"
        elif isinstance(node, ast.Quote):
            yield "'"
            yield from self._render(node.x)
        elif isinstance(node, ast.Symbol):
            yield node.name
        elif isinstance(node, ast.Int):
            yield str(node.value)
        elif isinstance(node, (ast.String, ast.Param, ast.Op)):
            yield str(node)
        elif isinstance(node, ast.Ref):
            yield base64.b64encode(node.data).decode("ascii").translate(_TO_CUSTOM)
        else:
            raise TypeError(f"cannot print {node!r}")


def print_string(x: ast.Node) -> str:
    """Return the text of x using a default printer."""
    return Printer().print_string(x)