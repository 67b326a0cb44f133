"""Machine-readable formatters: JSON, NDJSON and Checkstyle XML."""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from collections.abc import Iterable
from itertools import groupby
from typing import TYPE_CHECKING, Any

from vestige.formatters.base import sort_failures

if TYPE_CHECKING:
    from vestige.config import Config
    from vestige.core.models import Failure

CHECKSTYLE_VERSION = "5.0"


def failure_record(failure: Failure, config: Config) -> dict[str, Any]:
    """A failure as a JSON object, with its resolved severity."""
    record = failure.to_dict()
    record["severity"] = config.severity_of(failure).value
    return record


class JSONFormatter:
    """All failures as one JSON array."""

    name = "json"

    def format(self, failures: Iterable[Failure], config: Config) -> str:
        return json.dumps([failure_record(f, config) for f in sort_failures(failures)])


class NDJSONFormatter:
    """One JSON object per line."""

    name = "ndjson"

    def format(self, failures: Iterable[Failure], config: Config) -> str:
        return "\n".join(json.dumps(failure_record(f, config)) for f in sort_failures(failures))


class CheckstyleFormatter:
    """Checkstyle XML, grouped by file."""

    name = "checkstyle"

    def format(self, failures: Iterable[Failure], config: Config) -> str:
        root = ET.Element("checkstyle", version=CHECKSTYLE_VERSION)
        for filename, group in groupby(sort_failures(failures), key=lambda f: f.filename):
            file_element = ET.SubElement(root, "file", name=filename)
            for failure in group:
                start = failure.position.start
                ET.SubElement(
                    file_element,
                    "error",
                    line=str(start.line),
                    column=str(start.column),
                    severity=config.severity_of(failure).value,
                    message=failure.failure,
                    source=failure.rule_name,
                )
        ET.indent(root)
        body = ET.tostring(root, encoding="unicode")
        return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}'
