"""Unit tests for the unused-symbol rule."""

import pytest

from vestige.core.exceptions import DuplicateExclusionError
from vestige.core.models import Failure, Position
from vestige.core.program import DefUseIndex, Package, Symbol
from vestige.core.syntax import (
    Field,
    FieldList,
    FuncDecl,
    FuncType,
    Ident,
    ImportSpec,
    SourceFile,
    TypeSpec,
    ValueSpec,
)
from vestige.rules.exclusions import ExclusionSet
from vestige.rules.unused_symbol import UnusedSymbolRule, declaration_kind, unused_symbols

FILENAME = "pkg2/log.py"


def make_func(name: str, *params: str, line: int = 1) -> FuncDecl:
    """Create a function declaration with the given parameter names."""
    fields = [Field(names=[Ident(p, pos=Position(FILENAME, line, 10))]) for p in params]
    return FuncDecl(
        name=Ident(name, pos=Position(FILENAME, line, 5)),
        type=FuncType(params=FieldList(fields)),
    )


def define(index: DefUseIndex, ident: Ident, decl=None, exported: bool = False, kind=None) -> Symbol:
    """Record ``ident`` as the declaration of a new symbol."""
    symbol = Symbol(ident.name, decl=decl, exported=exported, kind=kind, pos=ident.pos)
    index.defs[ident] = symbol
    return symbol


def make_package(decls: list, index: DefUseIndex, entry: bool = False) -> Package:
    package = Package("pkg2", index=index)
    package.add_file(FILENAME, SourceFile(Ident("pkg2"), decls=decls, entry=entry))
    return package


def run_rule(rule: UnusedSymbolRule, package: Package) -> list[Failure]:
    """Run both hooks of a rule the way the linter does."""
    failures = []
    for file in package:
        failures.extend(rule.apply_to_file(file, []))
    rule.apply_to_package(package, [], failures.append)
    return failures


@pytest.fixture
def parse_status_package() -> Package:
    """An exported entry function plus an unexported helper nothing calls."""
    entry = make_func("EntryFromLogLine", "line", line=3)
    helper = make_func("parseStatus", "elements", line=10)

    index = DefUseIndex()
    define(index, entry.name, entry, exported=True)
    define(index, helper.name, helper)
    for decl in (entry, helper):
        for field in decl.type.params.fields:
            define(index, field.names[0], field)
    return make_package([entry, helper], index)


class TestUnusedSymbolRule:
    """Tests for the rule's two hooks."""

    def test_reports_unused_helper(self, parse_status_package: Package) -> None:
        """Only the helper is reported; parameters are excluded."""
        failures = run_rule(UnusedSymbolRule(), parse_status_package)

        assert len(failures) == 1
        failure = failures[0]
        assert failure.failure == "unused function parseStatus"
        assert failure.confidence == 1.0
        assert failure.rule_name == "unused-symbol"
        assert failure.position.start == Position(FILENAME, 10, 5)

    def test_file_hook_reports_nothing(self, parse_status_package: Package) -> None:
        rule = UnusedSymbolRule()
        for file in parse_status_package:
            assert rule.apply_to_file(file, []) == []

    def test_exclusions_discarded_after_package(self, parse_status_package: Package) -> None:
        """The rule instance keeps no per-package state between passes."""
        rule = UnusedSymbolRule()

        first = run_rule(rule, parse_status_package)
        second = run_rule(rule, parse_status_package)

        assert len(rule._exclusions) == 0
        assert [f.failure for f in first] == [f.failure for f in second]

    def test_exclusions_released_when_scan_fails(self) -> None:
        """A scanner error in the file hook leaves no exclusion set behind."""
        param = Field(names=[Ident("line", pos=Position(FILENAME, 1, 10))])
        broken = FuncDecl(name=Ident("parse"), type=FuncType(params=FieldList([param, param])))
        package = make_package([broken], DefUseIndex())
        rule = UnusedSymbolRule()

        with pytest.raises(DuplicateExclusionError, match="line"):
            run_rule(rule, package)

        assert len(rule._exclusions) == 0

    def test_parameters_reported_without_exclusions(self, parse_status_package: Package) -> None:
        """Without the file pre-pass, parameters would be flagged too."""
        failures = list(unused_symbols(parse_status_package, ExclusionSet()))

        messages = {f.failure for f in failures}
        assert "unused field elements" in messages
        assert "unused function parseStatus" in messages


class TestLiveness:
    """Tests for the liveness decision."""

    def test_used_symbol_not_reported(self) -> None:
        helper = make_func("parseStatus")
        index = DefUseIndex()
        symbol = define(index, helper.name, helper)
        index.uses[Ident("parseStatus")] = symbol

        assert list(unused_symbols(make_package([helper], index), ExclusionSet())) == []

    def test_exported_symbol_not_reported(self) -> None:
        index = DefUseIndex()
        define(index, Ident("Public"), exported=True)

        assert list(unused_symbols(make_package([], index), ExclusionSet())) == []

    def test_unresolved_declaration_skipped(self) -> None:
        index = DefUseIndex()
        index.defs[Ident("pkg2")] = None

        assert list(unused_symbols(make_package([], index), ExclusionSet())) == []

    def test_blank_identifier_skipped(self) -> None:
        index = DefUseIndex()
        define(index, Ident("_"))

        assert list(unused_symbols(make_package([], index), ExclusionSet())) == []

    def test_init_never_reported(self) -> None:
        index = DefUseIndex()
        define(index, Ident("init"), make_func("init"))

        assert list(unused_symbols(make_package([], index), ExclusionSet())) == []

    def test_main_skipped_only_in_entry_package(self) -> None:
        """``main`` is an entry point only where the program starts."""
        index = DefUseIndex()
        define(index, Ident("main"), make_func("main"))

        in_entry = list(unused_symbols(make_package([], index, entry=True), ExclusionSet()))
        elsewhere = list(unused_symbols(make_package([], index, entry=False), ExclusionSet()))

        assert in_entry == []
        assert [f.failure for f in elsewhere] == ["unused function main"]

    def test_excluded_identifier_skipped(self) -> None:
        index = DefUseIndex()
        ident = Ident("path")
        define(index, ident)
        exclusions = ExclusionSet()
        exclusions.add(ident)

        assert list(unused_symbols(make_package([], index), exclusions)) == []

    def test_dangling_use_does_not_break_liveness(self) -> None:
        """A use of an undeclared symbol is ignored; other symbols are judged normally."""
        index = DefUseIndex()
        define(index, Ident("orphan"))
        index.uses[Ident("ghost")] = Symbol("ghost")

        failures = list(unused_symbols(make_package([], index), ExclusionSet()))

        assert [f.failure for f in failures] == ["unused value orphan"]

    def test_unchecked_package_reports_nothing(self) -> None:
        package = Package("pkg2")

        assert list(unused_symbols(package, ExclusionSet())) == []


class TestDeclarationKind:
    """Tests for the kind label in failure messages."""

    @pytest.mark.parametrize(
        ("decl", "kind", "expected"),
        [
            (Field(names=[Ident("x")]), None, "field"),
            (FuncDecl(name=Ident("f"), type=FuncType()), None, "function"),
            (FuncDecl(name=Ident("m"), type=FuncType(), recv=FieldList([Field()])), None, "method"),
            (TypeSpec(name=Ident("T")), None, "type"),
            (ImportSpec(module="os"), None, "import"),
            (ValueSpec(), "variable", "variable"),
            (ValueSpec(), None, "value"),
            (None, "field", "field"),
            (None, None, "value"),
        ],
    )
    def test_kind(self, decl, kind, expected) -> None:
        assert declaration_kind(Symbol("x", decl=decl, kind=kind)) == expected
