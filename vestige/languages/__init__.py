"""
Language frontends: Turn source trees into lintable packages.

This module provides the layer between source files and the rules. A
frontend parses files, lowers them into the language-neutral syntax model
and supplies each package with a type checker that builds its
definition-use index.

Components:
    - ProgramLoader: Protocol defining the loader interface
    - PythonLoader: ast-based loader for Python packages
    - PythonParser: Parses and lowers a single Python file
    - ParseResult: Lowered syntax plus the recorded bindings and references

Adding a new language:
    1. Create a loader class implementing the ProgramLoader protocol
    2. Implement load() to return packages with a checker attached
    3. Implement supports() to check file extensions
"""

from vestige.languages.base import ProgramLoader
from vestige.languages.models import ParseResult, Scope, ScopeKind
from vestige.languages.python import PythonLoader, PythonParser

__all__ = [
    "ParseResult",
    "ProgramLoader",
    "PythonLoader",
    "PythonParser",
    "Scope",
    "ScopeKind",
]
