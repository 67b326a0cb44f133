"""Protocol for lint rules."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from vestige.core.models import Arguments, Failure
    from vestige.core.program import File, Package

FailureSink = Callable[["Failure"], None]


class Rule(Protocol):
    """Protocol for lint rules.

    The linter calls ``apply_to_file`` once per file of a package, then
    ``apply_to_package`` once for the package. A rule that only needs one of
    the two phases implements the other as a no-op.
    """

    @property
    def name(self) -> str:
        """Stable rule name, also its configuration key."""
        ...

    def apply_to_file(self, file: File, arguments: Arguments) -> list[Failure]:
        """Check a single file and return its failures."""
        ...

    def apply_to_package(self, package: Package, arguments: Arguments, failures: FailureSink) -> None:
        """Check a whole package, sending each failure to ``failures``."""
        ...
