"""MCP server implementation for Vestige."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from vestige.config import find_default_config_path, get_config
from vestige.core.exceptions import VestigeError
from vestige.formatters import sort_failures
from vestige.formatters.structured import failure_record
from vestige.rules import ALL_RULES, DEFAULT_RULES
from vestige.runner import exit_code_for, run_lint

logger = logging.getLogger(__name__)

server = Server("vestige")


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="vestige_lint",
            description=(
                "Find unused symbols (private functions, methods, classes, fields, "
                "variables and imports) in a Python file or directory. "
                "Returns failures with positions and severities."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {
                        "type": "string",
                        "description": "File or directory to lint (default: current directory)",
                        "default": ".",
                    },
                    "config": {
                        "type": "string",
                        "description": "Path to a vestige TOML configuration file (optional)",
                    },
                },
            },
        ),
        Tool(
            name="vestige_rules",
            description="List the lint rules vestige can run.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
    ]


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        if name == "vestige_lint":
            result = await asyncio.to_thread(
                _handle_lint, arguments.get("path", "."), arguments.get("config")
            )
        elif name == "vestige_rules":
            result = _handle_rules()
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except VestigeError as e:
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]
    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]


def _handle_lint(path: str, config_path: str | None) -> dict[str, Any]:
    """Handle vestige_lint tool."""
    config = get_config(Path(config_path) if config_path else find_default_config_path())
    failures = run_lint([Path(path)], config)
    return {
        "failures": [failure_record(f, config) for f in sort_failures(failures)],
        "count": len(failures),
        "exit_code": exit_code_for(failures, config),
    }


def _handle_rules() -> dict[str, Any]:
    """Handle vestige_rules tool."""
    defaults = {rule.name for rule in DEFAULT_RULES}
    return {
        "rules": [{"name": rule.name, "default": rule.name in defaults} for rule in ALL_RULES],
    }


async def serve() -> None:
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
