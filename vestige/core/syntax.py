"""Language-neutral syntax model consumed by the rules.

Frontends lower their host AST into these nodes. Nodes compare by identity,
so an ``Ident`` can key the definition and use maps of a ``DefUseIndex``.

The helpers at the bottom (``iter_child_nodes``, ``walk``, ``NodeVisitor``)
follow the shape of their counterparts in the standard ``ast`` module.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field, fields

from vestige.core.models import Position


@dataclass(eq=False)
class Node:
    """Base class for all syntax nodes."""

    pos: Position | None = field(default=None, kw_only=True)


@dataclass(eq=False)
class Ident(Node):
    """An identifier occurrence."""

    name: str

    def __repr__(self) -> str:
        return f"Ident({self.name!r})"


@dataclass(eq=False)
class Field(Node):
    """A named member or parameter; embedded when it has no names."""

    names: list[Ident] = field(default_factory=list)
    type: Node | None = None
    value: Node | None = None

    @property
    def is_embedded(self) -> bool:
        return not self.names


@dataclass(eq=False)
class FieldList(Node):
    fields: list[Field] = field(default_factory=list)


@dataclass(eq=False)
class FuncType(Node):
    """A function signature."""

    params: FieldList | None = None
    results: FieldList | None = None
    type_params: FieldList | None = None


@dataclass(eq=False)
class Block(Node):
    stmts: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class FuncLit(Node):
    """An anonymous function (closure, lambda)."""

    type: FuncType
    body: Block | None = None


@dataclass(eq=False)
class FuncDecl(Node):
    """A named function, or a method when ``recv`` is set."""

    name: Ident
    type: FuncType
    recv: FieldList | None = None
    body: Block | None = None
    decorators: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class InterfaceType(Node):
    """A structural contract: method signatures and declared members."""

    methods: FieldList | None = None


@dataclass(eq=False)
class StructType(Node):
    fields: FieldList = field(default_factory=FieldList)


@dataclass(eq=False)
class TypeSpec(Node):
    """A type declaration."""

    name: Ident
    type: Node | None = None
    body: Block | None = None
    decorators: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class ValueSpec(Node):
    """A variable or constant declaration."""

    names: list[Ident] = field(default_factory=list)
    type: Node | None = None
    values: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class ImportSpec(Node):
    names: list[Ident] = field(default_factory=list)
    module: str = ""


@dataclass(eq=False)
class Selector(Node):
    """``value.sel``"""

    value: Node
    sel: Ident


@dataclass(eq=False)
class Composite(Node):
    """Any other construct, kept only for the children it holds."""

    label: str
    children: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class SourceFile(Node):
    """Root of one source file."""

    name: Ident
    decls: list[Node] = field(default_factory=list)
    entry: bool = False


def iter_child_nodes(node: Node) -> Iterator[Node]:
    """Yield the direct children of a node, in field order."""
    for f in fields(node):
        if f.name == "pos":
            continue
        value = getattr(node, f.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, Node):
                    yield item


def walk(node: Node) -> Iterator[Node]:
    """Yield the node and all its descendants, breadth first."""
    todo: deque[Node] = deque([node])
    while todo:
        current = todo.popleft()
        todo.extend(iter_child_nodes(current))
        yield current


def identifiers(node: Node) -> Iterator[Ident]:
    """Yield every identifier under (and including) a node."""
    for current in walk(node):
        if isinstance(current, Ident):
            yield current


class NodeVisitor:
    """Dispatches to ``visit_<ClassName>``, falling back to ``generic_visit``."""

    def visit(self, node: Node) -> None:
        method = getattr(self, f"visit_{type(node).__name__}", self.generic_visit)
        method(node)

    def generic_visit(self, node: Node) -> None:
        for child in iter_child_nodes(node):
            self.visit(child)
