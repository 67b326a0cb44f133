"""Vestige custom exceptions."""


class VestigeError(Exception):
    """Base exception for Vestige errors."""


class LoadError(VestigeError):
    """A package could not be loaded (unreadable or unparsable source)."""


class TypeCheckError(VestigeError):
    """A loaded package failed to type-check."""


class ConfigError(VestigeError):
    """The configuration could not be read or is invalid."""


class DuplicateExclusionError(VestigeError, AssertionError):
    """The same declaration identifier was excluded twice in one package."""


class ParseError(LoadError):
    """A source file could not be parsed."""
