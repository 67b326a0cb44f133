"""
Formatters: Render lint failures for people and tools.

Components:
    - Formatter: Protocol (name + format(failures, config))
    - default/plain/unix: One line per failure
    - json/ndjson: Failure records with resolved severity
    - checkstyle: Checkstyle XML
    - stylish: Per-file rich tables with a summary line
"""

from __future__ import annotations

from vestige.core.exceptions import ConfigError
from vestige.formatters.base import Formatter, sort_failures
from vestige.formatters.structured import CheckstyleFormatter, JSONFormatter, NDJSONFormatter
from vestige.formatters.stylish import StylishFormatter
from vestige.formatters.text import DefaultFormatter, PlainFormatter, UnixFormatter

ALL_FORMATTERS: list[Formatter] = [
    StylishFormatter(),
    JSONFormatter(),
    NDJSONFormatter(),
    DefaultFormatter(),
    UnixFormatter(),
    CheckstyleFormatter(),
    PlainFormatter(),
]


def get_formatters() -> dict[str, Formatter]:
    return {formatter.name: formatter for formatter in ALL_FORMATTERS}


def get_formatter(name: str | None = None) -> Formatter:
    """Get a formatter by name; ``None`` selects the default one."""
    formatters = get_formatters()
    if not name:
        return formatters["default"]
    formatter = formatters.get(name)
    if formatter is None:
        raise ConfigError(f"unknown formatter {name}")
    return formatter


__all__ = [
    "ALL_FORMATTERS",
    "CheckstyleFormatter",
    "DefaultFormatter",
    "Formatter",
    "JSONFormatter",
    "NDJSONFormatter",
    "PlainFormatter",
    "StylishFormatter",
    "UnixFormatter",
    "get_formatter",
    "get_formatters",
    "sort_failures",
]
