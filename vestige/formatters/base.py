"""Protocol for failure formatters."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from vestige.config import Config
    from vestige.core.models import Failure


class Formatter(Protocol):
    """Renders the failures of a lint run."""

    @property
    def name(self) -> str: ...

    def format(self, failures: Iterable[Failure], config: Config) -> str:
        """Render failures, sorted by position."""
        ...


def sort_failures(failures: Iterable[Failure]) -> list[Failure]:
    """Order failures by file, line and column."""
    return sorted(failures, key=lambda f: (f.position.start, f.rule_name, f.failure))
