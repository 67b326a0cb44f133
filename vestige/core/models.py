"""Data models for lint results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

Arguments = list[Any]


@dataclass(frozen=True, order=True)
class Position:
    """A location in a source file. Lines and columns are 1-based."""

    filename: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.filename}:{self.line}"


@dataclass(frozen=True)
class FailurePosition:
    """Start and (optional) end of the code a failure points at."""

    start: Position
    end: Position | None = None


@dataclass(frozen=True)
class Failure:
    """One reported defect."""

    confidence: float
    failure: str
    position: FailurePosition
    rule_name: str = ""
    category: str = ""

    @property
    def filename(self) -> str:
        return self.position.start.filename

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        start = self.position.start
        end = self.position.end
        return {
            "failure": self.failure,
            "rule_name": self.rule_name,
            "category": self.category,
            "confidence": self.confidence,
            "position": {
                "start": {"filename": start.filename, "line": start.line, "column": start.column},
                "end": (
                    {"filename": end.filename, "line": end.line, "column": end.column}
                    if end
                    else None
                ),
            },
        }
