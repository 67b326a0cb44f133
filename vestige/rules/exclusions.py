"""Exclusion sets: declaration identifiers that must never be reported.

An identifier is excluded when it sits in a contract position rather than
being a free binding:

- the type of an embedded field (it doubles as the field's access path),
- anything inside an interface's method list,
- parameter, receiver and result names of functions, methods and closures.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from typing import TYPE_CHECKING

from vestige.core.exceptions import DuplicateExclusionError
from vestige.core.syntax import (
    Field,
    FuncDecl,
    FuncLit,
    FuncType,
    Ident,
    InterfaceType,
    Node,
    NodeVisitor,
    identifiers,
)

if TYPE_CHECKING:
    from vestige.core.program import Package


class ExclusionSet:
    """Identifiers of one package exempt from liveness checks."""

    def __init__(self) -> None:
        self._ids: set[Ident] = set()
        self._lock = threading.Lock()

    def add(self, ident: Ident) -> None:
        """Exclude an identifier; excluding it twice is a scanner bug."""
        with self._lock:
            if ident in self._ids:
                raise DuplicateExclusionError(f"symbol defined twice {ident.name}")
            self._ids.add(ident)

    def __contains__(self, ident: object) -> bool:
        with self._lock:
            return ident in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def __iter__(self) -> Iterator[Ident]:
        with self._lock:
            return iter(list(self._ids))


class ExclusionStore:
    """Exclusion sets keyed by package, each living for one package pass."""

    def __init__(self) -> None:
        self._sets: dict[Package, ExclusionSet] = {}
        self._lock = threading.Lock()

    def for_package(self, package: Package) -> ExclusionSet:
        """Get (or create) the exclusion set of a package."""
        with self._lock:
            exclusions = self._sets.get(package)
            if exclusions is None:
                exclusions = ExclusionSet()
                self._sets[package] = exclusions
            return exclusions

    def release(self, package: Package) -> ExclusionSet:
        """Detach and return the exclusion set of a package."""
        with self._lock:
            exclusions = self._sets.pop(package, None)
        return exclusions if exclusions is not None else ExclusionSet()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sets)


class ExclusionScanner(NodeVisitor):
    """Walks a syntax tree once, adding contract-position identifiers to a set.

    Once a subtree is classified as a signature, every identifier under it is
    excluded and the subtree is not visited again; the rest of the tree
    (function bodies included) is still walked.
    """

    def __init__(self, exclusions: ExclusionSet) -> None:
        self._exclusions = exclusions

    def scan(self, node: Node) -> ExclusionSet:
        self.visit(node)
        return self._exclusions

    def visit_Field(self, node: Field) -> None:
        if node.is_embedded:
            if node.type is not None:
                self._exclude_all(node.type)
            return
        self.generic_visit(node)

    def visit_InterfaceType(self, node: InterfaceType) -> None:
        if node.methods is not None:
            self._exclude_all(node.methods)

    def visit_FuncLit(self, node: FuncLit) -> None:
        self._exclude_signature(node.type)
        if node.body is not None:
            self.visit(node.body)

    def visit_FuncType(self, node: FuncType) -> None:
        self._exclude_signature(node)

    def visit_FuncDecl(self, node: FuncDecl) -> None:
        if node.recv is not None:
            self._exclude_all(node.recv)
        self._exclude_signature(node.type)
        for decorator in node.decorators:
            self.visit(decorator)
        if node.body is not None:
            self.visit(node.body)

    def _exclude_signature(self, signature: FuncType) -> None:
        for part in (signature.type_params, signature.params, signature.results):
            if part is not None:
                self._exclude_all(part)

    def _exclude_all(self, node: Node) -> None:
        for ident in identifiers(node):
            self._exclusions.add(ident)
