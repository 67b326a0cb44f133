"""
MCP server for Vestige.

Exposes unused-symbol linting to LLMs via the Model Context Protocol.

Tools:
    - vestige_lint: Lint a file or directory, returning failures as JSON
    - vestige_rules: List the available rules

Usage:
    Install: pip install vestige
    Run: mcp-server-vestige
"""

import asyncio

from vestige.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    asyncio.run(_serve())


__all__ = ["serve"]
