"""Protocol for language frontends."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from vestige.core.program import Package


class ProgramLoader(Protocol):
    """Protocol for program loaders."""

    def load(self, paths: Sequence[Path]) -> list[Package]:
        """Load the packages under the given paths, ready to type-check."""
        ...

    def supports(self, file: Path) -> bool:
        """Check if this loader supports the given file."""
        ...
