"""Line-oriented formatters."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from vestige.formatters.base import sort_failures

if TYPE_CHECKING:
    from vestige.config import Config
    from vestige.core.models import Failure


class DefaultFormatter:
    """``file:line:col: message``"""

    name = "default"

    def format(self, failures: Iterable[Failure], config: Config) -> str:
        return "\n".join(f"{f.position.start}: {f.failure}" for f in sort_failures(failures))


class PlainFormatter:
    """``file:line:col: message (rule)``"""

    name = "plain"

    def format(self, failures: Iterable[Failure], config: Config) -> str:
        return "\n".join(
            f"{f.position.start}: {f.failure} ({f.rule_name})" for f in sort_failures(failures)
        )


class UnixFormatter:
    """``file:line:col: [rule] message``, as compilers print it."""

    name = "unix"

    def format(self, failures: Iterable[Failure], config: Config) -> str:
        return "\n".join(
            f"{f.position.start}: [{f.rule_name}] {f.failure}" for f in sort_failures(failures)
        )
