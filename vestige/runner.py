"""Run a complete lint: load, filter by confidence, collect."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from vestige.config import Config, Severity
from vestige.core.linter import Linter
from vestige.core.models import Failure
from vestige.languages import PythonLoader
from vestige.rules import get_linting_rules


def confidence_filter(config: Config) -> Callable[[Failure], bool]:
    """Drop failures below the confidence threshold of their rule."""

    def accept(failure: Failure) -> bool:
        return failure.confidence >= config.threshold_for(failure)

    return accept


def exit_code_for(failures: Sequence[Failure], config: Config) -> int:
    """errorCode if any failure is an error, warningCode if there are any failures."""
    if any(config.severity_of(f) is Severity.ERROR for f in failures):
        return config.error_code
    if failures:
        return config.warning_code
    return 0


def run_lint(paths: Sequence[Path], config: Config, exclude: Sequence[str] = ()) -> list[Failure]:
    """Load the packages under ``paths`` and collect every failure.

    Raises:
        LoadError: A path or file could not be loaded.
        ConfigError: The configuration names an unknown rule.
    """
    loader = PythonLoader(
        exclude_patterns=[*config.exclude, *exclude],
        ignore_generated_header=config.ignore_generated_header,
    )
    rules = get_linting_rules(config)
    packages = loader.load(paths)

    linter = Linter(filters=[confidence_filter(config)])
    with linter.lint(packages, rules, config) as stream:
        return list(stream)
