"""Source files, import statements and located compile errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from . import ast
from .parser import SpanTree

Loc = tuple[int, ...]


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _path_base(p: str) -> str:
    if not p:
        return "."
    p = p.rstrip("/")
    if not p:
        return "/"
    return p.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class ImportStmt:
    """``(import "target")`` or ``(import alias "target")``."""

    alias: ast.Symbol
    target: str

    def __str__(self) -> str:
        return f"(import {self.alias} {_quote(self.target)})"


@dataclass
class SourceFile:
    """A parsed source file together with its span tree."""

    filename: str
    source: bytes = b""
    nodes: list[ast.Node] = field(default_factory=list)
    span: SpanTree = field(default_factory=lambda: SpanTree(ast_span_zero()))
    newlines: list[int] = field(default_factory=list)

    def find(self, loc: Sequence[int]) -> SpanTree:
        """Return the span at the given location path."""
        span = self.span
        for i in loc:
            span = span.children[i]
        return span

    def scan_imports(self, start: int = 0) -> tuple[list[ImportStmt], int]:
        """Collect the import statements from start on.

        Returns the imports and the number of nodes in the file; raises
        ValueError if an import follows any other statement.
        """
        imports: list[ImportStmt] = []
        other_found = False
        for node in self.nodes[start:]:
            if isinstance(node, ast.Comment):
                continue
            if not is_import_statement(node):
                other_found = True
                continue
            if other_found:
                raise ValueError("import statements must be before all other statements")
            imports.append(as_import_stmt(node))
        return imports, len(self.nodes)


def ast_span_zero():
    from .tokens import Span

    return Span(0, 0)


def is_import_statement(x: ast.Node) -> bool:
    """Report whether x is an SExpr starting with the symbol ``import``."""
    return isinstance(x, ast.SExpr) and x.has_prefix(ast.Symbol("import"))


def as_import_stmt(x: ast.Node) -> ImportStmt:
    """Read an import statement; raises ValueError if it is malformed."""
    if not is_import_statement(x):
        raise ValueError(f"not an import statement: {x}")
    if len(x) == 2:
        target = x[1]
        if not isinstance(target, ast.String):
            raise ValueError(f"import statement target must be string. HAVE: {x}")
        return ImportStmt(ast.Symbol(_path_base(target.value)), target.value)
    if len(x) == 3:
        alias, target = x[1], x[2]
        if not isinstance(alias, ast.Symbol):
            raise ValueError(f"import statement prefix symbol must be symbol. HAVE: {x}")
        if not isinstance(target, ast.String):
            raise ValueError(f"import statement target must be string. HAVE: {x}")
        return ImportStmt(alias, target.value)
    raise ValueError(f"import statement must have length 2 or 3.  HAVE: {x}")


class CompileError(Exception):
    """An error tied to a location in a source file."""

    def __init__(self, source: SourceFile | None, loc: Sequence[int], cause: BaseException | str):
        super().__init__(cause)
        self.source = source
        self.loc: Loc = tuple(loc)
        self.cause = cause

    def __str__(self) -> str:
        if self.source is None:
            return str(self.cause)
        bound = self.source.find(self.loc).bound
        return f"{_quote(self.source.filename)}:{{{bound.begin} {bound.end}}}: {self.cause}"