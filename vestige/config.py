"""Configuration: TOML loading, defaults and normalization.

A configuration file looks like::

    confidence = 0.8
    severity = "warning"
    errorCode = 1
    warningCode = 0
    exclude = ["tests/*"]

    [rule.unused-symbol]
    severity = "error"
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from vestige.core.exceptions import ConfigError
from vestige.core.models import Arguments, Failure
from vestige.rules import DEFAULT_RULES

DEFAULT_CONFIDENCE = 0.8
DEFAULT_CONFIG_NAME = "vestige.toml"


class Severity(Enum):
    """How a failure affects the exit code."""

    WARNING = "warning"
    ERROR = "error"


@dataclass
class RuleConfig:
    """Per-rule settings."""

    arguments: Arguments = field(default_factory=list)
    severity: Severity | None = None
    confidence: float | None = None


@dataclass
class Config:
    """Settings for one lint run, read-only once the run starts."""

    confidence: float = 0.0
    severity: Severity = Severity.WARNING
    rules: dict[str, RuleConfig] = field(default_factory=dict)
    error_code: int = 1
    warning_code: int = 0
    ignore_generated_header: bool = False
    exclude: list[str] = field(default_factory=list)

    def rule(self, name: str) -> RuleConfig:
        """Get the settings of a rule (empty settings if it has none)."""
        return self.rules.get(name) or RuleConfig()

    def severity_of(self, failure: Failure) -> Severity:
        """Resolve the severity of a failure from its rule."""
        rule_config = self.rules.get(failure.rule_name)
        if rule_config is None:
            # failures not tied to a configured rule (type checking) are errors
            return Severity.ERROR
        return rule_config.severity or self.severity

    def threshold_for(self, failure: Failure) -> float:
        rule_config = self.rules.get(failure.rule_name)
        if rule_config is not None and rule_config.confidence is not None:
            return rule_config.confidence
        return self.confidence


def default_config(rule_names: list[str] | None = None) -> Config:
    """Build the configuration used when no file is given."""
    names = rule_names if rule_names is not None else [r.name for r in DEFAULT_RULES]
    return Config(
        confidence=0.0,
        severity=Severity.WARNING,
        rules={name: RuleConfig() for name in names},
    )


def normalize_config(config: Config) -> Config:
    """Fill in the defaults a configuration file may leave out."""
    if config.confidence == 0:
        config.confidence = DEFAULT_CONFIDENCE
    for rule_config in config.rules.values():
        if rule_config.severity is None:
            rule_config.severity = config.severity
    return config


def load_config(path: Path) -> Config:
    """Read a TOML configuration file."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read the config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Cannot parse the config file {path}: {e}") from e

    return config_from_dict(data)


def config_from_dict(data: dict[str, Any]) -> Config:
    """Build a Config from already decoded TOML data."""
    config = Config()
    if "confidence" in data:
        config.confidence = _parse_confidence(data["confidence"], "confidence")
    if "severity" in data:
        config.severity = _parse_severity(data["severity"], "severity")
    if "errorCode" in data:
        config.error_code = _parse_int(data["errorCode"], "errorCode")
    if "warningCode" in data:
        config.warning_code = _parse_int(data["warningCode"], "warningCode")
    config.ignore_generated_header = bool(data.get("ignoreGeneratedHeader", False))

    exclude = data.get("exclude", [])
    if not isinstance(exclude, list) or not all(isinstance(p, str) for p in exclude):
        raise ConfigError("exclude must be a list of glob patterns")
    config.exclude = list(exclude)

    rules = data.get("rule", {})
    if not isinstance(rules, dict):
        raise ConfigError("rule must be a table of rule settings")
    for name, raw in rules.items():
        if not isinstance(raw, dict):
            raise ConfigError(f"rule.{name} must be a table")
        config.rules[name] = _parse_rule(name, raw)

    return config


def get_config(path: Path | None) -> Config:
    """Load the configuration at ``path`` (or the defaults) and normalize it."""
    config = load_config(path) if path is not None else default_config()
    return normalize_config(config)


def find_default_config_path() -> Path | None:
    """Return ``~/vestige.toml`` if it exists."""
    try:
        candidate = Path.home() / DEFAULT_CONFIG_NAME
    except RuntimeError:
        return None
    return candidate if candidate.is_file() else None


def _parse_rule(name: str, raw: dict[str, Any]) -> RuleConfig:
    rule_config = RuleConfig()
    if "severity" in raw:
        rule_config.severity = _parse_severity(raw["severity"], f"rule.{name}.severity")
    if "confidence" in raw:
        rule_config.confidence = _parse_confidence(raw["confidence"], f"rule.{name}.confidence")
    arguments = raw.get("arguments", [])
    if not isinstance(arguments, list):
        arguments = [arguments]
    rule_config.arguments = arguments
    return rule_config


def _parse_severity(value: Any, key: str) -> Severity:
    try:
        return Severity(value)
    except ValueError:
        raise ConfigError(f"{key}: unknown severity {value!r} (expected warning or error)") from None


def _parse_confidence(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number")
    if not 0 <= value <= 1:
        raise ConfigError(f"{key} must be between 0 and 1, got {value}")
    return float(value)


def _parse_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key} must be an integer")
    return value
