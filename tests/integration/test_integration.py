"""Integration tests: load real Python code, lint it, render the results."""

import asyncio
import json
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from vestige.cli import app
from vestige.config import get_config
from vestige.core.linter import TYPECHECK_RULE_NAME
from vestige.languages import PythonLoader
from vestige.mcp.server import _handle_lint, _handle_rules, call_tool
from vestige.runner import run_lint

runner = CliRunner()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td)


ORDERS = """\
import os
import sys as _sys


class OrderStatus:
    PENDING = "pending"
    SHIPPED = "shipped"


class Order:
    def __init__(self, order_id):
        self.order_id = order_id
        self.status = OrderStatus.PENDING
        self._cache = {}

    def can_ship(self):
        return self.status == OrderStatus.PENDING

    def _unused_helper(self, value):
        return value * 2


def _format(order):
    return f"Order {order.order_id}"


def describe(order):
    return _format(order) + os.sep


def _dead(count):
    total = count + 1
    return count


def create_order(order_id):
    return Order(order_id)
"""


@pytest.fixture
def sample_python_file(temp_dir: Path) -> Path:
    """Create a sample Python file with a handful of dead symbols."""
    file_path = temp_dir / "orders.py"
    file_path.write_text(ORDERS)
    return file_path


def lint_source(temp_dir: Path, code: str, name: str = "module.py", **config_values) -> list[str]:
    """Lint a single file and return the failure messages."""
    file_path = temp_dir / name
    file_path.write_text(code)
    config = get_config(None)
    for key, value in config_values.items():
        setattr(config, key, value)
    return sorted(f.failure for f in run_lint([file_path], config))


class TestLintFile:
    """Tests for linting a whole module."""

    def test_reports_dead_symbols(self, sample_python_file: Path) -> None:
        failures = run_lint([sample_python_file], get_config(None))

        assert {f.failure for f in failures} == {
            "unused import _sys",
            "unused field _cache",
            "unused method _unused_helper",
            "unused function _dead",
            "unused variable total",
        }
        assert all(f.rule_name == "unused-symbol" for f in failures)

    def test_failure_position(self, sample_python_file: Path) -> None:
        """Failures point at the declared name."""
        failures = run_lint([sample_python_file], get_config(None))

        dead = next(f for f in failures if f.failure == "unused function _dead")
        line = ORDERS.splitlines().index("def _dead(count):") + 1
        assert dead.position.start.filename == str(sample_python_file)
        assert dead.position.start.line == line
        assert dead.position.start.column == 5

    def test_coding_declaration(self, temp_dir: Path) -> None:
        """A latin-1 module is linted alongside UTF-8 ones."""
        (temp_dir / "ok.py").write_text("def _dead():\n    pass\n")
        (temp_dir / "latin.py").write_bytes(b"# -*- coding: latin-1 -*-\n_greeting = \"caf\xe9\"\n")

        failures = run_lint([temp_dir], get_config(None))

        assert sorted(f.failure for f in failures) == ["unused function _dead", "unused variable _greeting"]

    def test_directory_is_one_package(self, temp_dir: Path) -> None:
        (temp_dir / "a.py").write_text("def _helper():\n    return 1\n")
        (temp_dir / "b.py").write_text("def _other():\n    return 2\n")

        packages = PythonLoader().load([temp_dir])

        assert len(packages) == 1
        assert len(packages[0].files) == 2

    def test_default_excludes(self, temp_dir: Path) -> None:
        (temp_dir / "main.py").write_text("x = 1\n")
        for excluded in ["__pycache__", ".venv", "build"]:
            (temp_dir / excluded).mkdir()
            (temp_dir / excluded / "junk.py").write_text("_junk = 1\n")

        packages = PythonLoader().load([temp_dir])

        assert [list(p.files) for p in packages] == [[str(temp_dir / "main.py")]]


class TestNameResolution:
    """Tests for the scoping rules behind liveness."""

    def test_protocol_methods_are_contracts(self, temp_dir: Path) -> None:
        code = """\
from typing import Protocol


class _Sys(Protocol):
    def _exists(self, path: str) -> bool: ...

    def _remove(self, path: str) -> None: ...


def run(fs: _Sys) -> None:
    pass
"""
        assert lint_source(temp_dir, code) == []

    def test_cross_module_import(self, temp_dir: Path) -> None:
        """``from ._impl import _helper`` uses the helper in its own module."""
        package = temp_dir / "pkg"
        package.mkdir()
        (package / "__init__.py").write_text(
            "from ._impl import _helper\n\n\ndef run():\n    return _helper()\n"
        )
        (package / "_impl.py").write_text(
            "def _helper():\n    return 1\n\n\ndef _unused():\n    return 2\n"
        )

        failures = run_lint([package], get_config(None))

        assert [f.failure for f in failures] == ["unused function _unused"]

    def test_dunder_all_counts_as_use(self, temp_dir: Path) -> None:
        code = '__all__ = ["_exported_helper"]\n\n\ndef _exported_helper():\n    pass\n'
        assert lint_source(temp_dir, code) == []

    def test_decorated_function_is_used(self, temp_dir: Path) -> None:
        code = "import functools\n\n\n@functools.lru_cache\ndef _cached():\n    return 1\n"
        assert lint_source(temp_dir, code) == []

    def test_builtin_decorator_is_not_a_use(self, temp_dir: Path) -> None:
        code = """\
class Box:
    @property
    def _size(self):
        return 1

    @staticmethod
    def _make():
        return Box()
"""
        assert lint_source(temp_dir, code) == ["unused function _make", "unused method _size"]

    def test_getattr_string_is_a_use(self, temp_dir: Path) -> None:
        code = """\
class _Plugin:
    def _dynamic(self):
        return 1


def call():
    return getattr(_Plugin(), "_dynamic")()
"""
        assert lint_source(temp_dir, code) == []

    def test_nonlocal_and_global(self, temp_dir: Path) -> None:
        code = """\
_state = None


def counter():
    count = 0

    def increment():
        nonlocal count
        count += 1
        return count

    return increment


def reset():
    global _state
    _state = 1


def get():
    return _state
"""
        assert lint_source(temp_dir, code) == []

    def test_class_scope_not_visible_in_methods(self, temp_dir: Path) -> None:
        """A bare name in a method does not see the class body."""
        code = """\
class Limits:
    _limit = 10

    def check(self, value):
        return value < _limit
"""
        assert lint_source(temp_dir, code) == ["unused field _limit"]

    def test_comprehension_variable(self, temp_dir: Path) -> None:
        code = "def squares(items):\n    return [x * x for x in items]\n"
        assert lint_source(temp_dir, code) == []

    def test_walrus_binds_in_function(self, temp_dir: Path) -> None:
        code = """\
def first_long(items):
    if any(len(match := item) > 3 for item in items):
        return match
    return None
"""
        assert lint_source(temp_dir, code) == []

    def test_main_guard_marks_entry_module(self, temp_dir: Path) -> None:
        code = 'def _run():\n    pass\n\n\nif __name__ == "__main__":\n    _run()\n'
        file_path = temp_dir / "script.py"
        file_path.write_text(code)

        packages = PythonLoader().load([file_path])

        assert packages[0].is_main()
        assert lint_source(temp_dir, code, name="script.py") == []


class TestGeneratedFiles:
    """Tests for generated-code detection."""

    CODE = "# Code generated by protoc. DO NOT EDIT.\n_x = 1\n"

    def test_generated_file_skipped(self, temp_dir: Path) -> None:
        assert lint_source(temp_dir, self.CODE) == []

    def test_header_ignored_on_request(self, temp_dir: Path) -> None:
        messages = lint_source(temp_dir, self.CODE, ignore_generated_header=True)

        assert messages == ["unused variable _x"]


class TestTypeCheckFailure:
    def test_broken_package_reported_once(self, temp_dir: Path) -> None:
        broken = temp_dir / "broken"
        broken.mkdir()
        (broken / "mod.py").write_text("def _unused():\n    pass\n\n\nreturn 42\n")
        healthy = temp_dir / "healthy"
        healthy.mkdir()
        (healthy / "ok.py").write_text("def _dead():\n    pass\n")

        failures = run_lint([temp_dir], get_config(None))

        typecheck = [f for f in failures if f.rule_name == TYPECHECK_RULE_NAME]
        assert len(typecheck) == 1
        assert "'return' outside function" in typecheck[0].failure
        assert typecheck[0].filename == str(broken / "mod.py")
        assert [f.failure for f in failures if f.rule_name != TYPECHECK_RULE_NAME] == [
            "unused function _dead"
        ]


class TestCLI:
    """Tests for the command line interface."""

    def test_lint_json(self, sample_python_file: Path) -> None:
        result = runner.invoke(app, ["lint", str(sample_python_file), "--formatter", "json"])

        assert result.exit_code == 0
        records = json.loads(result.stdout)
        assert len(records) == 5
        assert {r["severity"] for r in records} == {"warning"}

    def test_lint_default_formatter(self, sample_python_file: Path) -> None:
        result = runner.invoke(app, ["lint", str(sample_python_file)])

        assert result.exit_code == 0
        assert f"{sample_python_file}:" in result.stdout
        assert "unused function _dead" in result.stdout

    def test_error_severity_sets_exit_code(self, temp_dir: Path, sample_python_file: Path) -> None:
        config_path = temp_dir / "vestige.toml"
        config_path.write_text('severity = "error"\nerrorCode = 3\n\n[rule.unused-symbol]\n')

        result = runner.invoke(app, ["lint", str(sample_python_file), "-c", str(config_path)])

        assert result.exit_code == 3

    def test_exclude_option(self, temp_dir: Path, sample_python_file: Path) -> None:
        result = runner.invoke(app, ["lint", str(temp_dir), "--exclude", "orders.py"])

        assert result.exit_code == 0
        assert "unused" not in result.stdout

    def test_invalid_config(self, temp_dir: Path, sample_python_file: Path) -> None:
        config_path = temp_dir / "vestige.toml"
        config_path.write_text('severity = "fatal"\n')

        result = runner.invoke(app, ["lint", str(sample_python_file), "-c", str(config_path)])

        assert result.exit_code == 1
        assert "Error" in result.output
        assert "fatal" in result.output

    def test_unknown_formatter(self, sample_python_file: Path) -> None:
        result = runner.invoke(app, ["lint", str(sample_python_file), "-f", "xml"])

        assert result.exit_code == 1
        assert "unknown formatter" in result.output

    def test_rules_command(self) -> None:
        result = runner.invoke(app, ["rules"])

        assert result.exit_code == 0
        assert "unused-symbol" in result.stdout
        assert "(default)" in result.stdout

    def test_formatters_command(self) -> None:
        result = runner.invoke(app, ["formatters"])

        assert result.exit_code == 0
        for name in ["default", "json", "checkstyle", "stylish"]:
            assert name in result.stdout


class TestMCPHandlers:
    """Tests for the MCP tool handlers."""

    def test_rules(self) -> None:
        assert _handle_rules() == {"rules": [{"name": "unused-symbol", "default": True}]}

    def test_lint(self, sample_python_file: Path) -> None:
        result = _handle_lint(str(sample_python_file), None)

        assert result["count"] == 5
        assert result["exit_code"] == 0
        assert result["failures"][0]["failure"] == "unused import _sys"

    def test_lint_through_tool_call(self, sample_python_file: Path) -> None:
        """The lint runs off the event loop, which stays free for other calls."""

        async def lint_and_list_rules():
            return await asyncio.gather(
                call_tool("vestige_lint", {"path": str(sample_python_file)}),
                call_tool("vestige_rules", {}),
            )

        lint, rules = asyncio.run(lint_and_list_rules())

        assert json.loads(lint[0].text)["count"] == 5
        assert json.loads(rules[0].text)["rules"][0]["name"] == "unused-symbol"

    def test_lint_error_is_returned(self, temp_dir: Path) -> None:
        contents = asyncio.run(call_tool("vestige_lint", {"path": str(temp_dir / "missing")}))

        assert "No such file or directory" in json.loads(contents[0].text)["error"]

    def test_unknown_tool(self) -> None:
        contents = asyncio.run(call_tool("nope", {}))

        assert json.loads(contents[0].text) == {"error": "Unknown tool: nope"}
