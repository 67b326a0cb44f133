"""
Core module: data models, exceptions, program model and the linter.

Models (models.py):
    - Failure: One reported defect with confidence and position
    - Position/FailurePosition: Source locations

Syntax (syntax.py):
    - Language-neutral nodes (Ident, Field, FuncDecl, InterfaceType, ...)
    - NodeVisitor, walk, iter_child_nodes

Program (program.py):
    - Symbol: A declared program entity, identified by its declaration site
    - DefUseIndex: Per-package identifier -> symbol resolution
    - Package/File: Units of linting

Exceptions (exceptions.py):
    - VestigeError: Base exception for all vestige errors
    - LoadError: A package could not be loaded (fatal)
    - ParseError: A source file could not be parsed (a LoadError)
    - TypeCheckError: A package failed to type-check (isolated)
    - ConfigError: Invalid configuration
    - DuplicateExclusionError: Exclusion scanner invariant violation

Linting (linter.py, rule.py):
    - Rule: Protocol implemented by every rule
    - Linter: Concurrent per-package driver returning a FailureStream
"""

from vestige.core.exceptions import (
    ConfigError,
    DuplicateExclusionError,
    LoadError,
    ParseError,
    TypeCheckError,
    VestigeError,
)
from vestige.core.linter import FailureStream, Linter
from vestige.core.models import Arguments, Failure, FailurePosition, Position
from vestige.core.program import DefUseIndex, File, Package, Symbol
from vestige.core.rule import FailureSink, Rule

__all__ = [
    # Models
    "Arguments",
    "Failure",
    "FailurePosition",
    "Position",
    # Program
    "DefUseIndex",
    "File",
    "Package",
    "Symbol",
    # Exceptions
    "VestigeError",
    "LoadError",
    "ParseError",
    "TypeCheckError",
    "ConfigError",
    "DuplicateExclusionError",
    # Linting
    "FailureSink",
    "FailureStream",
    "Linter",
    "Rule",
]
