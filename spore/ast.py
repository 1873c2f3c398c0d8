"""Syntax tree nodes for Spore source."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable


class Node:
    """Base class of every syntax tree node."""

    __slots__ = ()


class _Sequence(tuple, Node):
    """An immutable sequence of nodes that only equals sequences of its own kind."""

    __slots__ = ()
    _open = "("
    _close = ")"

    def __new__(cls, items: Iterable[Node] = ()):
        return super().__new__(cls, items)

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and tuple.__eq__(self, other)

    def __ne__(self, other: object) -> bool:
        return not self.__eq__(other)

    def __hash__(self) -> int:
        return hash((type(self).__name__, tuple(self)))

    def __getitem__(self, index):
        item = tuple.__getitem__(self, index)
        if isinstance(index, slice):
            return type(self)(item)
        return item

    def __add__(self, other: Iterable[Node]):
        return type(self)(tuple(self) + tuple(other))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self)!r})"

    def __str__(self) -> str:
        return self._open + " ".join(str(x) for x in self) + self._close


class SExpr(_Sequence):
    """A parenthesised expression: ``(op arg ...)``."""

    __slots__ = ()

    def has_prefix(self, *prefix: Node) -> bool:
        """Report whether the expression starts with the given nodes."""
        if len(self) < len(prefix):
            return False
        return all(a == b for a, b in zip(self, prefix))


class Array(_Sequence):
    """A bracketed array literal: ``[a b c]``."""

    __slots__ = ()
    _open = "["
    _close = "]"


class Tuple(_Sequence):
    """A braced tuple literal: ``{a b c}``."""

    __slots__ = ()
    _open = "{"
    _close = "}"


class Table(_Sequence):
    """A braced table of rows: ``{k: v, ...}``."""

    __slots__ = ()
    _open = "["
    _close = "]"


@dataclass(frozen=True)
class Row(Node):
    """A single ``key: value`` entry of a table."""

    key: Node
    value: Node

    def __str__(self) -> str:
        return f"{{{self.key} {self.value}}}"


@dataclass(frozen=True)
class Int(Node):
    """An arbitrary precision integer literal."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"Int requires an int, got {type(self.value).__name__}")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class String(Node):
    """A string literal."""

    value: str

    def __str__(self) -> str:
        return '"' + self.value + '"'


@dataclass(frozen=True)
class Symbol(Node):
    """A bare identifier."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Ref(Node):
    """A 32 byte content reference."""

    data: bytes

    def __post_init__(self) -> None:
        data = bytes(self.data)
        if len(data) != 32:
            raise ValueError(f"Ref requires 32 bytes, got {len(data)}")
        object.__setattr__(self, "data", data)


@dataclass(frozen=True)
class Op(Node):
    """A primitive operation, written ``!name``."""

    name: str

    def __str__(self) -> str:
        return "!" + self.name


@dataclass(frozen=True)
class Param(Node):
    """A positional parameter reference, written ``%n``."""

    index: int

    def __post_init__(self) -> None:
        if isinstance(self.index, bool) or not isinstance(self.index, int):
            raise TypeError("Param index must be an int")
        if not 0 <= self.index < 1 << 32:
            raise ValueError(f"Param index {self.index} out of range")

    def __str__(self) -> str:
        return f"%{self.index}"


@dataclass(frozen=True)
class Quote(Node):
    """A quoted node, written ``'x``."""

    x: Node

    def __str__(self) -> str:
        return f"'{self.x}"


@dataclass(frozen=True)
class Comment(Node):
    """A one line comment; the text excludes the leading ``;;``."""

    text: str

    def __str__(self) -> str:
        return f";;{self.text}\n"


def map_node(x: Node, fn: Callable[[Node], Node]) -> Node:
    """Apply fn to every non-SExpr node, rebuilding SExprs around the results."""
    if isinstance(x, SExpr):
        return SExpr(map_node(child, fn) for child in x)
    return fn(x)


def equal(a: Node | None, b: Node | None) -> bool:
    """Deep structural equality of two nodes, kinds included."""
    return a == b