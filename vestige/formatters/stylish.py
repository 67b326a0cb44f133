"""Human-friendly formatter: one rich table per file plus a summary."""

from __future__ import annotations

import io
from collections.abc import Iterable
from itertools import groupby
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from vestige.config import Severity
from vestige.formatters.base import sort_failures

if TYPE_CHECKING:
    from vestige.config import Config
    from vestige.core.models import Failure

_WIDTH = 120


class StylishFormatter:
    name = "stylish"

    def format(self, failures: Iterable[Failure], config: Config) -> str:
        buffer = io.StringIO()
        console = Console(file=buffer, width=_WIDTH, no_color=True, highlight=False)

        errors = warnings = 0
        for filename, group in groupby(sort_failures(failures), key=lambda f: f.filename):
            table = Table(title=filename, title_justify="left", show_header=False, box=None)
            table.add_column("Position", style="dim", no_wrap=True)
            table.add_column("Severity")
            table.add_column("Message")
            table.add_column("Rule", style="cyan", no_wrap=True)
            for failure in group:
                severity = config.severity_of(failure)
                if severity is Severity.ERROR:
                    errors += 1
                else:
                    warnings += 1
                start = failure.position.start
                table.add_row(
                    f"({start.line}, {start.column})", severity.value, failure.failure, failure.rule_name
                )
            console.print(table)
            console.print()

        total = errors + warnings
        if total:
            noun = "problem" if total == 1 else "problems"
            console.print(f"✖ {total} {noun} ({errors} errors) ({warnings} warnings)")
        return buffer.getvalue().rstrip("\n")
