"""Python frontend: load packages, lower ``ast`` trees and resolve names.

Loading is two-pass, like indexing a call graph:

1. Each file is parsed and lowered into the syntax model. Every binding
   becomes a ``Symbol`` in its lexical scope; every name load, attribute load
   and ``from ... import`` is recorded for later.
2. Type checking a package compiles each file, then resolves the recorded
   references against the finished scopes into a ``DefUseIndex``.
"""

from __future__ import annotations

import ast
import fnmatch
import logging
import tokenize
from collections import defaultdict
from collections.abc import Sequence
from functools import partial
from pathlib import Path

from vestige.core.exceptions import LoadError, ParseError, TypeCheckError
from vestige.core.models import Position
from vestige.core.program import DefUseIndex, Package, Symbol
from vestige.core.syntax import (
    Block,
    Composite,
    Field,
    FieldList,
    FuncDecl,
    FuncLit,
    FuncType,
    Ident,
    ImportSpec,
    InterfaceType,
    Node,
    Selector,
    SourceFile,
    StructType,
    TypeSpec,
    ValueSpec,
)
from vestige.languages.models import (
    ParseResult,
    PendingImport,
    PendingLoad,
    Scope,
    ScopeKind,
)

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDES = [
    "__pycache__",
    "*.egg-info",
    "node_modules",
    "build",
    "dist",
    "venv",
    ".venv",
]

GENERATED_PREFIX = "# Code generated "
GENERATED_SUFFIX = " DO NOT EDIT."

_BUILTIN_DECORATORS = {"property", "staticmethod", "classmethod"}
_ATTRIBUTE_BUILTINS = {"getattr", "hasattr", "setattr", "delattr"}
_PROTOCOL_BASES = {"Protocol", "typing.Protocol", "typing_extensions.Protocol"}

# operator and context nodes carry no names
_SKIPPED = (ast.expr_context, ast.boolop, ast.operator, ast.unaryop, ast.cmpop)


def is_generated(source: str) -> bool:
    """Check for a ``# Code generated ... DO NOT EDIT.`` header line."""
    for line in source.splitlines():
        line = line.rstrip()
        if line.startswith(GENERATED_PREFIX) and line.endswith(GENERATED_SUFFIX):
            return True
    return False


def is_exported(name: str, scope: Scope) -> bool:
    """Module and class level names are public unless they start with ``_``."""
    if scope.kind not in (ScopeKind.MODULE, ScopeKind.CLASS):
        return False
    if name.startswith("__") and name.endswith("__") and len(name) > 4:
        return True
    return not name.startswith("_")


class PythonParser:
    """Parser for Python source files using the ast module."""

    def supports(self, file: Path) -> bool:
        """Check if this parser supports the given file."""
        return file.suffix == ".py"

    def parse(self, file: Path, module_name: str | None = None, source: str | None = None) -> ParseResult:
        """Parse a Python file and lower it into the syntax model."""
        if source is None:
            source = read_source(file)

        try:
            tree = ast.parse(source, filename=str(file))
        except (SyntaxError, ValueError) as e:
            raise ParseError(f"Syntax error in {file}: {e}") from e

        is_package = file.stem == "__init__"
        visitor = _PythonVisitor(file, module_name or module_name_for(file), is_package)
        syntax = visitor.visit(tree)

        return ParseResult(
            file=file,
            module_name=visitor.module_name,
            source=source,
            syntax=syntax,
            scope=visitor.module_scope,
            defs=visitor.defs,
            loads=visitor.loads,
            attribute_loads=visitor.attribute_loads,
            imports=visitor.imports,
            attributes=visitor.attributes,
        )


def read_source(file: Path) -> str:
    """Read a source file in the encoding its coding declaration names (UTF-8 by default)."""
    try:
        with tokenize.open(file) as f:
            return f.read()
    except (OSError, SyntaxError, UnicodeDecodeError) as e:
        raise ParseError(f"Cannot read {file}: {e}") from e


def module_name_for(file: Path) -> str:
    """Dotted module name of a file, walking up through ``__init__.py`` directories."""
    parts = [] if file.stem == "__init__" else [file.stem]
    directory = file.resolve().parent
    while (directory / "__init__.py").exists():
        parts.insert(0, directory.name)
        directory = directory.parent
    return ".".join(parts) or file.stem


class _PythonVisitor(ast.NodeVisitor):
    """Lowers a Python AST into syntax nodes, recording bindings and references."""

    def __init__(self, file: Path, module_name: str, is_package: bool = False) -> None:
        self.file = file
        self.module_name = module_name
        self.module_scope = Scope(ScopeKind.MODULE)

        self.defs: list[tuple[Ident, Symbol | None]] = []
        self.loads: list[PendingLoad] = []
        self.attribute_loads: list[Ident] = []
        self.imports: list[PendingImport] = []
        self.attributes: list[Symbol] = []

        self._filename = str(file)
        self._is_package = is_package
        self._entry = module_name.rsplit(".", 1)[-1] == "__main__"
        self._scopes: list[Scope] = [self.module_scope]
        # (class scope, receiver name) of the innermost method, if any
        self._receivers: list[tuple[Scope, str] | None] = [None]

    # -- helpers ---------------------------------------------------------

    @property
    def _scope(self) -> Scope:
        return self._scopes[-1]

    def _pos(self, node: ast.AST, offset: int = 0) -> Position:
        line = getattr(node, "lineno", 0)
        column = getattr(node, "col_offset", -1) + 1
        return Position(self._filename, line, column + offset if column else 0)

    def _attr_pos(self, node: ast.Attribute) -> Position:
        end_line = node.end_lineno or node.lineno
        end_column = node.end_col_offset or 0
        return Position(self._filename, end_line, max(end_column - len(node.attr), 0) + 1)

    def _push(self, kind: ScopeKind) -> Scope:
        scope = Scope(kind, parent=self._scope)
        self._scopes.append(scope)
        return scope

    def _pop(self) -> None:
        self._scopes.pop()

    def _declare(
        self,
        name: str,
        pos: Position,
        decl: Node | None,
        kind: str = "variable",
        scope: Scope | None = None,
    ) -> Ident:
        """Bind ``name``; only the first binding in a scope creates a symbol."""
        scope = scope or self._scope
        ident = Ident(name, pos=pos)
        if scope.redirects(name) or name in scope.symbols:
            return ident

        symbol = Symbol(name=name, decl=decl, exported=is_exported(name, scope), kind=kind, pos=pos)
        scope.symbols[name] = symbol
        self.defs.append((ident, symbol))
        if scope.kind in (ScopeKind.MODULE, ScopeKind.CLASS):
            self.attributes.append(symbol)
        return ident

    def _declare_member(self, class_scope: Scope, name: str, pos: Position) -> Ident:
        """Bind an instance attribute assigned through the receiver."""
        ident = Ident(name, pos=pos)
        if name in class_scope.symbols or name in class_scope.instance_attributes:
            return ident

        symbol = Symbol(name=name, exported=is_exported(name, class_scope), kind="field", pos=pos)
        class_scope.instance_attributes[name] = symbol
        self.defs.append((ident, symbol))
        self.attributes.append(symbol)
        return ident

    def _load(self, name: str, pos: Position, scope: Scope | None = None) -> Ident:
        ident = Ident(name, pos=pos)
        self.loads.append(PendingLoad(ident, scope or self._scope))
        return ident

    def _lower(self, node: ast.AST | None) -> Node | None:
        if node is None:
            return None
        return self.visit(node)

    def _lower_all(self, nodes: Sequence[ast.AST]) -> list[Node]:
        lowered = (self.visit(node) for node in nodes)
        return [node for node in lowered if node is not None]

    def _mark_decorated(
        self, node: ast.FunctionDef | ast.AsyncFunctionDef | ast.ClassDef, scope: Scope
    ) -> None:
        """A decorator other than the builtin descriptors uses the definition."""
        for decorator in node.decorator_list:
            if self._get_name_from_node(decorator) not in _BUILTIN_DECORATORS:
                self._load(node.name, self._pos(decorator), scope)
                return

    # -- structure -------------------------------------------------------

    def generic_visit(self, node: ast.AST) -> Node | None:
        if isinstance(node, _SKIPPED):
            return None
        children = self._lower_all(list(ast.iter_child_nodes(node)))
        return Composite(type(node).__name__, children, pos=self._pos(node))

    def visit_Module(self, node: ast.Module) -> SourceFile:
        name = Ident(self.module_name.rsplit(".", 1)[-1], pos=Position(self._filename, 1, 1))
        self.defs.append((name, None))
        decls = self._lower_all(node.body)
        return SourceFile(name, decls=decls, entry=self._entry, pos=Position(self._filename, 1, 1))

    def visit_If(self, node: ast.If) -> Node | None:
        if self._scope is self.module_scope and _is_main_guard(node.test):
            self._entry = True
        return self.generic_visit(node)

    # -- names -----------------------------------------------------------

    def visit_Name(self, node: ast.Name) -> Ident:
        if isinstance(node.ctx, ast.Store):
            return self._declare(node.id, self._pos(node), None)
        return self._load(node.id, self._pos(node))

    def visit_Global(self, node: ast.Global) -> Composite:
        self._scope.global_names.update(node.names)
        return Composite("Global", pos=self._pos(node))

    def visit_Nonlocal(self, node: ast.Nonlocal) -> Composite:
        self._scope.nonlocal_names.update(node.names)
        return Composite("Nonlocal", pos=self._pos(node))

    def visit_Attribute(self, node: ast.Attribute) -> Selector:
        if isinstance(node.ctx, ast.Store):
            return self._lower_attribute_store(node)
        value = self.visit(node.value)
        sel = Ident(node.attr, pos=self._attr_pos(node))
        self.attribute_loads.append(sel)
        return Selector(value, sel, pos=self._pos(node))

    def _lower_attribute_store(self, node: ast.Attribute) -> Selector:
        value = self.visit(node.value)
        pos = self._attr_pos(node)
        receiver = self._receivers[-1]
        if receiver is not None and isinstance(node.value, ast.Name) and node.value.id == receiver[1]:
            sel = self._declare_member(receiver[0], node.attr, pos)
        else:
            sel = Ident(node.attr, pos=pos)
        return Selector(value, sel, pos=self._pos(node))

    def visit_Call(self, node: ast.Call) -> Node | None:
        lowered = self.generic_visit(node)
        if isinstance(node.func, ast.Name) and node.func.id in _ATTRIBUTE_BUILTINS and len(node.args) >= 2:
            name = node.args[1]
            if isinstance(name, ast.Constant) and isinstance(name.value, str):
                self.attribute_loads.append(Ident(name.value, pos=self._pos(name)))
        return lowered

    # -- assignments -----------------------------------------------------

    def _lower_targets(self, targets: Sequence[ast.expr], decl: Node, names: list[Ident]) -> list[Node]:
        """Lower assignment targets: bound names go to ``names``, the rest is returned."""
        others: list[Node] = []
        for target in targets:
            if isinstance(target, ast.Name):
                names.append(self._declare(target.id, self._pos(target), decl))
            elif isinstance(target, (ast.Tuple, ast.List)):
                others.extend(self._lower_targets(target.elts, decl, names))
            elif isinstance(target, ast.Starred):
                others.extend(self._lower_targets([target.value], decl, names))
            else:
                others.extend(self._lower_all([target]))
        return others

    def _assignment(
        self,
        node: ast.stmt,
        targets: Sequence[ast.expr],
        value: Node | None,
        annotation: Node | None = None,
    ) -> Node:
        decl: Field | ValueSpec
        if self._scope.kind is ScopeKind.CLASS:
            decl = Field(type=annotation, value=value, pos=self._pos(node))
        else:
            values = [value] if value is not None else []
            decl = ValueSpec(type=annotation, values=values, pos=self._pos(node))

        others = self._lower_targets(targets, decl, decl.names)
        if not decl.names:
            children = [n for n in (annotation, value) if n is not None]
            return Composite(type(node).__name__, others + children, pos=decl.pos)
        if others:
            return Composite(type(node).__name__, [decl, *others], pos=decl.pos)
        return decl

    def visit_Assign(self, node: ast.Assign) -> Node:
        value = self.visit(node.value)
        if self._scope is self.module_scope:
            self._track_dunder_all(node.targets, node.value)
        return self._assignment(node, node.targets, value)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> Node:
        annotation = self.visit(node.annotation)
        value = self._lower(node.value)
        return self._assignment(node, [node.target], value, annotation)

    def visit_AugAssign(self, node: ast.AugAssign) -> Composite:
        """``x += 1`` reads ``x`` before rebinding it."""
        target = node.target
        if self._scope is self.module_scope:
            self._track_dunder_all([target], node.value)

        lowered: Node | None
        if isinstance(target, ast.Name):
            lowered = self._load(target.id, self._pos(target))
        elif isinstance(target, ast.Attribute):
            value = self.visit(target.value)
            sel = Ident(target.attr, pos=self._attr_pos(target))
            self.attribute_loads.append(sel)
            lowered = Selector(value, sel, pos=self._pos(target))
        else:
            lowered = self.visit(target)
        children = [n for n in (lowered, self.visit(node.value)) if n is not None]
        return Composite("AugAssign", children, pos=self._pos(node))

    def visit_NamedExpr(self, node: ast.NamedExpr) -> ValueSpec:
        """Walrus targets bind in the nearest enclosing non-comprehension scope."""
        value = self.visit(node.value)
        scope = self._scope
        while scope.kind is ScopeKind.COMPREHENSION and scope.parent is not None:
            scope = scope.parent
        spec = ValueSpec(values=[value], pos=self._pos(node))
        spec.names.append(self._declare(node.target.id, self._pos(node.target), spec, scope=scope))
        return spec

    def _track_dunder_all(self, targets: Sequence[ast.expr], value: ast.expr) -> None:
        """Names listed in ``__all__`` are used by the module's importers."""
        if not any(isinstance(t, ast.Name) and t.id == "__all__" for t in targets):
            return
        if not isinstance(value, (ast.List, ast.Tuple)):
            return
        for elt in value.elts:
            if isinstance(elt, ast.Constant) and isinstance(elt.value, str):
                self._load(elt.value, self._pos(elt), self.module_scope)

    # -- compound statements binding names -------------------------------

    def _bound_targets(self, target: ast.expr, pos_node: ast.AST) -> list[Node]:
        spec = ValueSpec(pos=self._pos(pos_node))
        others = self._lower_targets([target], spec, spec.names)
        return [spec, *others] if spec.names else others

    def visit_For(self, node: ast.For | ast.AsyncFor) -> Composite:
        children = self._lower_all([node.iter])
        children.extend(self._bound_targets(node.target, node.target))
        children.append(Block(self._lower_all(node.body)))
        if node.orelse:
            children.append(Block(self._lower_all(node.orelse)))
        return Composite(type(node).__name__, children, pos=self._pos(node))

    visit_AsyncFor = visit_For

    def visit_With(self, node: ast.With | ast.AsyncWith) -> Composite:
        children: list[Node] = []
        for item in node.items:
            children.extend(self._lower_all([item.context_expr]))
            if item.optional_vars is not None:
                children.extend(self._bound_targets(item.optional_vars, item.optional_vars))
        children.append(Block(self._lower_all(node.body)))
        return Composite(type(node).__name__, children, pos=self._pos(node))

    visit_AsyncWith = visit_With

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> Composite:
        children: list[Node] = []
        if node.type is not None:
            children.extend(self._lower_all([node.type]))
        if node.name:
            spec = ValueSpec(pos=self._pos(node))
            spec.names.append(self._declare(node.name, self._pos(node), spec))
            children.append(spec)
        children.append(Block(self._lower_all(node.body)))
        return Composite("ExceptHandler", children, pos=self._pos(node))

    def _match_capture(self, name: str | None, node: ast.pattern, children: list[Node]) -> Composite:
        if name:
            spec = ValueSpec(pos=self._pos(node))
            spec.names.append(self._declare(name, self._pos(node), spec))
            children.append(spec)
        return Composite(type(node).__name__, children, pos=self._pos(node))

    def visit_MatchAs(self, node: ast.MatchAs) -> Composite:
        children = self._lower_all([node.pattern]) if node.pattern is not None else []
        return self._match_capture(node.name, node, children)

    def visit_MatchStar(self, node: ast.MatchStar) -> Composite:
        return self._match_capture(node.name, node, [])

    def visit_MatchMapping(self, node: ast.MatchMapping) -> Composite:
        children = self._lower_all([*node.keys, *node.patterns])
        return self._match_capture(node.rest, node, children)

    # -- imports ---------------------------------------------------------

    def visit_Import(self, node: ast.Import) -> ImportSpec:
        """Handle: import foo, import foo.bar, import foo as f"""
        spec = ImportSpec(module=", ".join(alias.name for alias in node.names), pos=self._pos(node))
        for alias in node.names:
            local_name = alias.asname or alias.name.split(".")[0]
            spec.names.append(self._declare(local_name, self._pos(alias), spec, kind="import"))
        return spec

    def visit_ImportFrom(self, node: ast.ImportFrom) -> ImportSpec:
        """Handle: from foo import bar, from foo import bar as b, from foo import *"""
        module = node.module or ""

        if node.level > 0:
            module = self._resolve_relative_import(node.level, module)

        spec = ImportSpec(module=module, pos=self._pos(node))
        for alias in node.names:
            if alias.name == "*":
                continue
            local_name = alias.asname or alias.name
            pos = self._pos(alias)
            spec.names.append(self._declare(local_name, pos, spec, kind="import"))
            self.imports.append(PendingImport(Ident(alias.name, pos=pos), module, alias.name))
        return spec

    def _resolve_relative_import(self, level: int, module: str) -> str:
        """Resolve a relative import to an absolute module path."""
        parts = self.module_name.split(".") if self.module_name else []
        if not self._is_package:
            parts = parts[:-1]
        if level - 1 > len(parts):
            return module

        base_parts = parts[: len(parts) - (level - 1)]
        if module:
            return ".".join(base_parts + [module])
        return ".".join(base_parts)

    # -- functions -------------------------------------------------------

    def _lower_parameters(self, args: ast.arguments) -> list[tuple[ast.arg, Node | None, Node | None]]:
        """Lower annotations and defaults; they evaluate in the enclosing scope."""
        positional = [*args.posonlyargs, *args.args]
        defaults: list[ast.expr | None] = [None] * (len(positional) - len(args.defaults))
        defaults.extend(args.defaults)

        pairs: list[tuple[ast.arg, ast.expr | None]] = list(zip(positional, defaults))
        if args.vararg is not None:
            pairs.append((args.vararg, None))
        pairs.extend(zip(args.kwonlyargs, args.kw_defaults))
        if args.kwarg is not None:
            pairs.append((args.kwarg, None))

        return [(arg, self._lower(arg.annotation), self._lower(default)) for arg, default in pairs]

    def _parameter_fields(self, lowered: list[tuple[ast.arg, Node | None, Node | None]]) -> list[Field]:
        fields = []
        for arg, annotation, default in lowered:
            field = Field(type=annotation, value=default, pos=self._pos(arg))
            field.names.append(self._declare(arg.arg, self._pos(arg), field, kind="parameter"))
            fields.append(field)
        return fields

    def _type_parameters(self, node: ast.AST) -> FieldList | None:
        type_params = getattr(node, "type_params", None)
        if not type_params:
            return None
        fields = []
        for param in type_params:
            bound = self._lower(getattr(param, "bound", None))
            field = Field(type=bound, pos=self._pos(param))
            field.names.append(self._declare(param.name, self._pos(param), field, kind="type parameter"))
            fields.append(field)
        return FieldList(fields)

    def visit_FunctionDef(self, node: ast.FunctionDef) -> FuncDecl:
        """Handle function and method definitions."""
        return self._visit_function(node, "def ")

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> FuncDecl:
        """Handle async function definitions."""
        return self._visit_function(node, "async def ")

    def _visit_function(self, node: ast.FunctionDef | ast.AsyncFunctionDef, keyword: str) -> FuncDecl:
        """Common handler for sync and async functions."""
        parent = self._scope
        decorator_names = {self._get_name_from_node(d) for d in node.decorator_list}
        decorators = self._lower_all(node.decorator_list)
        parameters = self._lower_parameters(node.args)
        returns = self._lower(node.returns)

        decl = FuncDecl(name=Ident(node.name), type=FuncType(), decorators=decorators, pos=self._pos(node))
        decl.name = self._declare(node.name, self._pos(node, len(keyword)), decl, kind="function")
        self._mark_decorated(node, parent)

        has_receiver = (
            parent.kind is ScopeKind.CLASS
            and bool(node.args.posonlyargs or node.args.args)
            and "staticmethod" not in decorator_names
        )

        self._push(ScopeKind.FUNCTION)
        if has_receiver:
            self._receivers.append((parent, parameters[0][0].arg))
        else:
            self._receivers.append(self._receivers[-1])

        decl.type.type_params = self._type_parameters(node)
        fields = self._parameter_fields(parameters)
        if has_receiver:
            decl.recv = FieldList(fields[:1], pos=fields[0].pos)
            fields = fields[1:]
        decl.type.params = FieldList(fields)
        if returns is not None:
            decl.type.results = FieldList([Field(type=returns, pos=returns.pos)])
        decl.body = Block(self._lower_all(node.body))

        self._receivers.pop()
        self._pop()
        return decl

    def visit_Lambda(self, node: ast.Lambda) -> FuncLit:
        parameters = self._lower_parameters(node.args)
        self._push(ScopeKind.FUNCTION)
        self._receivers.append(self._receivers[-1])

        signature = FuncType(params=FieldList(self._parameter_fields(parameters)))
        body = Block(self._lower_all([node.body]))

        self._receivers.pop()
        self._pop()
        return FuncLit(type=signature, body=body, pos=self._pos(node))

    # -- comprehensions --------------------------------------------------

    def _visit_comprehension(
        self,
        node: ast.ListComp | ast.SetComp | ast.GeneratorExp | ast.DictComp,
        elements: Sequence[ast.expr],
    ) -> Composite:
        generators = node.generators
        # the outermost iterable is evaluated in the enclosing scope
        children = self._lower_all([generators[0].iter])
        self._push(ScopeKind.COMPREHENSION)
        for i, generator in enumerate(generators):
            if i:
                children.extend(self._lower_all([generator.iter]))
            children.extend(self._bound_targets(generator.target, generator.target))
            children.extend(self._lower_all(generator.ifs))
        children.extend(self._lower_all(elements))
        self._pop()
        return Composite(type(node).__name__, children, pos=self._pos(node))

    def visit_ListComp(self, node: ast.ListComp) -> Composite:
        return self._visit_comprehension(node, [node.elt])

    def visit_SetComp(self, node: ast.SetComp) -> Composite:
        return self._visit_comprehension(node, [node.elt])

    def visit_GeneratorExp(self, node: ast.GeneratorExp) -> Composite:
        return self._visit_comprehension(node, [node.elt])

    def visit_DictComp(self, node: ast.DictComp) -> Composite:
        return self._visit_comprehension(node, [node.key, node.value])

    # -- classes ---------------------------------------------------------

    def visit_ClassDef(self, node: ast.ClassDef) -> TypeSpec:
        """Handle class definitions and inheritance."""
        outer = self._scope
        decorators = self._lower_all(node.decorator_list)
        spec = TypeSpec(name=Ident(node.name), decorators=decorators, pos=self._pos(node))
        spec.name = self._declare(node.name, self._pos(node, len("class ")), spec, kind="type")
        self._mark_decorated(node, outer)

        # generic parameters live in their own scope, visible to the methods
        type_params = None
        if getattr(node, "type_params", None):
            self._push(ScopeKind.FUNCTION)
            type_params = self._type_parameters(node)

        bases = [Field(type=self.visit(base), pos=self._pos(base)) for base in node.bases]
        keywords = self._lower_all([keyword.value for keyword in node.keywords])

        self._push(ScopeKind.CLASS)
        self._receivers.append(None)
        members = self._lower_all(node.body)
        self._receivers.pop()
        self._pop()
        if type_params is not None:
            self._pop()

        extra: list[Node] = [*keywords]
        if type_params is not None:
            extra.append(FuncType(type_params=type_params, pos=type_params.pos))

        if any(self._get_name_from_node(base) in _PROTOCOL_BASES for base in node.bases):
            contract = [self._contract_member(m) for m in members if isinstance(m, (FuncDecl, Field))]
            rest = [m for m in members if not isinstance(m, (FuncDecl, Field))]
            spec.type = InterfaceType(methods=FieldList([*bases, *contract]), pos=spec.pos)
            spec.body = Block([*extra, *rest])
        else:
            spec.type = StructType(fields=FieldList(bases), pos=spec.pos)
            spec.body = Block([*extra, *members])
        return spec

    def _contract_member(self, member: FuncDecl | Field) -> Field:
        """A protocol method becomes a named field typed by its signature."""
        if isinstance(member, Field):
            return member
        params = list(member.recv.fields) if member.recv else []
        if member.type.params is not None:
            params.extend(member.type.params.fields)
        signature = FuncType(
            params=FieldList(params),
            results=member.type.results,
            type_params=member.type.type_params,
            pos=member.pos,
        )
        stmts = [*member.decorators, *(member.body.stmts if member.body else [])]
        return Field(names=[member.name], type=signature, value=Block(stmts), pos=member.pos)

    def visit_TypeAlias(self, node: ast.TypeAlias) -> TypeSpec:
        name = node.name
        spec = TypeSpec(name=Ident(name.id), pos=self._pos(node))
        spec.name = self._declare(name.id, self._pos(name), spec, kind="type")
        spec.type = self._lower(node.value)
        return spec

    def _get_name_from_node(self, node: ast.AST | None) -> str | None:
        """Extract a name string from various AST node types."""
        if node is None:
            return None

        if isinstance(node, ast.Name):
            return node.id
        elif isinstance(node, ast.Attribute):
            value_name = self._get_name_from_node(node.value)
            if value_name:
                return f"{value_name}.{node.attr}"
            return node.attr
        elif isinstance(node, ast.Call):
            return self._get_name_from_node(node.func)
        elif isinstance(node, ast.Subscript):
            return self._get_name_from_node(node.value)
        return None


def _is_main_guard(test: ast.expr) -> bool:
    """Match ``__name__ == "__main__"`` (either way round)."""
    if not isinstance(test, ast.Compare) or len(test.ops) != 1 or not isinstance(test.ops[0], ast.Eq):
        return False
    operands = [test.left, test.comparators[0]]
    has_name = any(isinstance(o, ast.Name) and o.id == "__name__" for o in operands)
    has_main = any(isinstance(o, ast.Constant) and o.value == "__main__" for o in operands)
    return has_name and has_main


def lookup(scope: Scope, name: str, module_scope: Scope) -> Symbol | None:
    """Resolve a name loaded in ``scope`` (LEGB, skipping enclosing class scopes)."""
    current: Scope | None = scope
    while current is not None:
        if current is scope or current.kind is not ScopeKind.CLASS:
            if name in current.global_names:
                return module_scope.symbols.get(name)
            if name in current.symbols:
                return current.symbols[name]
        current = current.parent
    return None


def build_index(results: Sequence[ParseResult]) -> DefUseIndex:
    """Resolve the references recorded while parsing one package."""
    index = DefUseIndex()
    modules = {result.module_name: result.scope for result in results}
    attributes: dict[str, list[Symbol]] = defaultdict(list)

    for result in results:
        index.defs.update(result.defs)
        for symbol in result.attributes:
            attributes[symbol.name].append(symbol)

    for result in results:
        for load in result.loads:
            symbol = lookup(load.scope, load.ident.name, result.scope)
            if symbol is not None:
                index.uses[load.ident] = symbol

        # receiver types are unknown: an attribute load uses every candidate
        for ident in result.attribute_loads:
            for i, symbol in enumerate(attributes.get(ident.name, [])):
                use = ident if i == 0 else Ident(ident.name, pos=ident.pos)
                index.uses[use] = symbol

        for imported in result.imports:
            scope = modules.get(imported.module)
            if scope is not None and imported.name in scope.symbols:
                index.uses[imported.ident] = scope.symbols[imported.name]

    return index


def check_package(package: Package, results: Sequence[ParseResult]) -> DefUseIndex:
    """Type checker for a Python package: compile every file, then resolve names."""
    for result in results:
        try:
            compile(result.source, str(result.file), "exec", dont_inherit=True)
        except SyntaxError as e:
            raise TypeCheckError(f"{result.file}:{e.lineno}: {e.msg}") from e
    index = build_index(results)
    logger.debug(
        "Resolved package %s: %d definitions, %d uses", package.name, len(index.defs), len(index.uses)
    )
    return index


class PythonLoader:
    """Discovers Python files and groups them into packages, one per directory."""

    def __init__(
        self,
        exclude_patterns: list[str] | None = None,
        ignore_generated_header: bool = False,
    ) -> None:
        self._parser = PythonParser()
        self._excludes = DEFAULT_EXCLUDES + (exclude_patterns or [])
        self._ignore_generated_header = ignore_generated_header

    def supports(self, file: Path) -> bool:
        return self._parser.supports(file)

    def load(self, paths: Sequence[Path]) -> list[Package]:
        """Load every Python file under ``paths``.

        Raises:
            LoadError: A path does not exist, or a file cannot be read or parsed.
        """
        groups: dict[Path, dict[Path, None]] = {}
        for path in paths:
            for file in self._discover(Path(path)):
                groups.setdefault(file.parent, {})[file] = None

        packages = []
        for directory, files in groups.items():
            results = [r for r in (self._parse(file) for file in files) if r is not None]
            if not results:
                continue

            package = Package(package_name_for(directory), checker=partial(check_package, results=results))
            for result in results:
                package.add_file(str(result.file), result.syntax)
            logger.debug("Loaded package %s (%d files)", package.name, len(results))
            packages.append(package)
        return packages

    def _discover(self, path: Path) -> list[Path]:
        if not path.exists():
            raise LoadError(f"No such file or directory: {path}")
        if path.is_file():
            if not self.supports(path):
                raise LoadError(f"Not a Python file: {path}")
            return [path]

        return sorted(
            file
            for file in path.rglob("*.py")
            if not self._should_exclude(str(file.relative_to(path)), self._excludes)
        )

    def _parse(self, file: Path) -> ParseResult | None:
        source = read_source(file)

        if not self._ignore_generated_header and is_generated(source):
            logger.debug("Skipping generated file %s", file)
            return None
        return self._parser.parse(file, source=source)

    def _should_exclude(self, path: str, patterns: list[str]) -> bool:
        """Check if a path matches any exclusion pattern.

        Excludes:
        - Any path component starting with '.' (hidden files/directories)
        - Any path component, or the whole relative path, matching a pattern
        """
        parts = Path(path).parts
        for part in parts:
            if part.startswith("."):
                return True
            for pattern in patterns:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return any(fnmatch.fnmatch(path, pattern) for pattern in patterns)


def package_name_for(directory: Path) -> str:
    """Dotted name of a package directory, or the directory itself outside a package."""
    parts = []
    current = directory.resolve()
    while (current / "__init__.py").exists():
        parts.insert(0, current.name)
        current = current.parent
    return ".".join(parts) if parts else str(directory)
