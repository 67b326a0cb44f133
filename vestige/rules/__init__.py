"""
Lint rules.

Components:
    - UnusedSymbolRule: reports unexported declarations with no use site
    - ExclusionScanner: collects identifiers in contract positions
    - ExclusionStore/ExclusionSet: per-package exclusion bookkeeping

Adding a rule:
    1. Implement the Rule protocol (vestige.core.rule)
    2. Add an instance to ALL_RULES (and DEFAULT_RULES if it should run by default)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from vestige.core.exceptions import ConfigError
from vestige.rules.exclusions import ExclusionScanner, ExclusionSet, ExclusionStore
from vestige.rules.unused_symbol import UnusedSymbolRule, declaration_kind, unused_symbols

if TYPE_CHECKING:
    from vestige.config import Config
    from vestige.core.rule import Rule

DEFAULT_RULES: list[Rule] = [UnusedSymbolRule()]

ALL_RULES: list[Rule] = list(DEFAULT_RULES)


def get_rule(name: str) -> Rule:
    """Get a rule by name."""
    for rule in ALL_RULES:
        if rule.name == name:
            return rule
    raise ConfigError(f"cannot find rule: {name}")


def get_linting_rules(config: Config) -> list[Rule]:
    """Resolve the rules enabled by a configuration, in configuration order."""
    return [get_rule(name) for name in config.rules]


__all__ = [
    "ALL_RULES",
    "DEFAULT_RULES",
    "ExclusionScanner",
    "ExclusionSet",
    "ExclusionStore",
    "UnusedSymbolRule",
    "declaration_kind",
    "get_linting_rules",
    "get_rule",
    "unused_symbols",
]
