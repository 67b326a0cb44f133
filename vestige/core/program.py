"""Program model: symbols, definition-use index, files and packages."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from vestige.core.models import Position
from vestige.core.syntax import Ident, Node, SourceFile

logger = logging.getLogger(__name__)

TypeChecker = Callable[["Package"], "DefUseIndex"]


@dataclass(eq=False)
class Symbol:
    """A named program entity, identified by its declaration site."""

    name: str
    decl: Node | None = None
    exported: bool = False
    kind: str | None = None
    pos: Position | None = None

    def __repr__(self) -> str:
        return f"Symbol({self.name!r}, kind={self.kind!r}, exported={self.exported})"


@dataclass
class DefUseIndex:
    """Identifier-to-symbol resolution for one package.

    ``defs`` maps every declaring identifier to the symbol it introduces
    (``None`` when the checker could not bind it); ``uses`` maps every
    referencing identifier to the symbol it denotes.
    """

    defs: dict[Ident, Symbol | None] = field(default_factory=dict)
    uses: dict[Ident, Symbol] = field(default_factory=dict)

    def used_symbols(self) -> set[Symbol]:
        return set(self.uses.values())


class File:
    """A source file belonging to a package."""

    def __init__(self, name: str, package: Package, syntax: SourceFile) -> None:
        self.name = name
        self.package = package
        self.syntax = syntax

    @property
    def is_main(self) -> bool:
        return self.syntax.entry

    def __repr__(self) -> str:
        return f"File({self.name!r})"


class Package:
    """A set of files linted together, with their shared definition-use index."""

    def __init__(
        self,
        name: str,
        index: DefUseIndex | None = None,
        checker: TypeChecker | None = None,
    ) -> None:
        self.name = name
        self.files: dict[str, File] = {}
        self.index = index
        self._checker = checker
        self._lock = threading.Lock()

    def add_file(self, name: str, syntax: SourceFile) -> File:
        file = File(name, self, syntax)
        self.files[name] = file
        return file

    def type_check(self) -> DefUseIndex:
        """Build the definition-use index, once.

        Later (and concurrent) callers get the cached index. Errors raised by
        the checker propagate and leave the package unchecked.
        """
        with self._lock:
            if self.index is not None:
                return self.index
            if self._checker is None:
                self.index = DefUseIndex()
                return self.index
            logger.debug("Type checking package %s", self.name)
            self.index = self._checker(self)
            return self.index

    def is_main(self) -> bool:
        """True if this package holds the program's entry point."""
        return any(f.is_main for f in self.files.values())

    def __iter__(self) -> Iterator[File]:
        return iter(self.files.values())

    def __repr__(self) -> str:
        return f"Package({self.name!r}, files={len(self.files)})"
