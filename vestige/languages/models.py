"""Data models for language frontend results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from vestige.core.program import Symbol
from vestige.core.syntax import Ident, SourceFile


class ScopeKind(Enum):
    """Kinds of lexical scopes."""

    MODULE = "module"
    CLASS = "class"
    FUNCTION = "function"
    COMPREHENSION = "comprehension"


@dataclass(eq=False)
class Scope:
    """Names bound in one lexical scope."""

    kind: ScopeKind
    parent: Scope | None = None
    symbols: dict[str, Symbol] = field(default_factory=dict)
    instance_attributes: dict[str, Symbol] = field(default_factory=dict)
    global_names: set[str] = field(default_factory=set)
    nonlocal_names: set[str] = field(default_factory=set)

    def redirects(self, name: str) -> bool:
        """True if bindings of ``name`` here belong to another scope."""
        return name in self.global_names or name in self.nonlocal_names


@dataclass
class PendingLoad:
    """A name reference, resolved once every binding is known."""

    ident: Ident
    scope: Scope


@dataclass
class PendingImport:
    """``from module import name``, resolved against the package's own modules."""

    ident: Ident
    module: str
    name: str


@dataclass
class ParseResult:
    """Result of parsing and lowering a file."""

    file: Path
    module_name: str
    source: str
    syntax: SourceFile
    scope: Scope
    defs: list[tuple[Ident, Symbol | None]] = field(default_factory=list)
    loads: list[PendingLoad] = field(default_factory=list)
    attribute_loads: list[Ident] = field(default_factory=list)
    imports: list[PendingImport] = field(default_factory=list)
    attributes: list[Symbol] = field(default_factory=list)
