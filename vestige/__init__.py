"""
Vestige: Unused-symbol linting for Python codebases.

Vestige loads source files into packages, resolves every identifier to the
symbol it declares or references, and reports declarations nothing uses:
- Private functions, methods, classes and fields
- Local variables and imports
- Concurrent per-package linting with a single failure stream

Usage:
    from pathlib import Path

    from vestige.config import get_config
    from vestige.core import Linter
    from vestige.languages import PythonLoader
    from vestige.rules import get_linting_rules

    config = get_config(None)
    packages = PythonLoader().load([Path(".")])
    for failure in Linter().lint(packages, get_linting_rules(config), config):
        print(failure.position.start, failure.failure)
"""

__version__ = "0.1.0"
