"""The unused-symbol rule: report declarations that are never referenced."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from vestige.core.models import Failure, FailurePosition, Position
from vestige.core.syntax import Field, FuncDecl, ImportSpec, TypeSpec
from vestige.rules.exclusions import ExclusionScanner, ExclusionSet, ExclusionStore

if TYPE_CHECKING:
    from vestige.core.models import Arguments
    from vestige.core.program import File, Package, Symbol
    from vestige.core.rule import FailureSink

logger = logging.getLogger(__name__)

BLANK = "_"
INIT_FUNC = "init"
MAIN_FUNC = "main"

# label used when neither the declaration nor the index says what a symbol is
FALLBACK_KIND = "value"


class UnusedSymbolRule:
    """Reports unexported symbols with no use site in their package.

    The file hook only feeds the exclusion scanner; the package hook judges
    liveness and then drops the package's exclusion set.
    """

    name = "unused-symbol"

    def __init__(self) -> None:
        self._exclusions = ExclusionStore()

    def apply_to_file(self, file: File, arguments: Arguments) -> list[Failure]:
        try:
            ExclusionScanner(self._exclusions.for_package(file.package)).scan(file.syntax)
        except Exception:
            # the package hook will not run, so it cannot release the set
            self._exclusions.release(file.package)
            raise
        return []

    def apply_to_package(self, package: Package, arguments: Arguments, failures: FailureSink) -> None:
        exclusions = self._exclusions.for_package(package)
        try:
            for failure in unused_symbols(package, exclusions):
                failures(failure)
        finally:
            self._exclusions.release(package)


def unused_symbols(package: Package, exclusions: ExclusionSet) -> Iterator[Failure]:
    """Yield one failure per dead symbol of a type-checked package."""
    index = package.index
    if index is None:
        return

    used = index.used_symbols()
    is_main = package.is_main()
    for ident, symbol in index.defs.items():
        if symbol is None:
            continue
        if ident.name == INIT_FUNC or (ident.name == MAIN_FUNC and is_main):
            continue
        if symbol.exported or ident.name == BLANK:
            continue
        if ident in exclusions or symbol in used:
            continue

        kind = declaration_kind(symbol)
        logger.debug("Unused %s %s in package %s", kind, symbol.name, package.name)
        yield Failure(
            confidence=1.0,
            failure=f"unused {kind} {symbol.name}",
            position=FailurePosition(start=ident.pos or Position(package.name, 0)),
            rule_name=UnusedSymbolRule.name,
            category="unused",
        )


def declaration_kind(symbol: Symbol) -> str:
    """Best-effort label for the syntactic category of a declaration."""
    decl = symbol.decl
    if isinstance(decl, Field):
        return "field"
    if isinstance(decl, FuncDecl):
        return "method" if decl.recv is not None else "function"
    if isinstance(decl, TypeSpec):
        return "type"
    if isinstance(decl, ImportSpec):
        return "import"
    # value declarations cannot tell a constant from a variable
    return symbol.kind or FALLBACK_KIND
