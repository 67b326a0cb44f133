"""CLI entry point for Vestige."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn

from vestige.config import find_default_config_path, get_config
from vestige.core import VestigeError
from vestige.formatters import get_formatter, get_formatters
from vestige.rules import ALL_RULES, DEFAULT_RULES
from vestige.runner import exit_code_for, run_lint

app = typer.Typer(
    name="vestige",
    help="Find unused symbols in Python codebases.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def lint(
    paths: Annotated[
        list[Path] | None, typer.Argument(help="Files or directories to lint (default: .)")
    ] = None,
    config_path: Annotated[
        Path | None, typer.Option("--config", "-c", help="TOML configuration file")
    ] = None,
    formatter_name: Annotated[
        str | None, typer.Option("--formatter", "-f", help="Output formatter (e.g. stylish)")
    ] = None,
    exclude: Annotated[
        list[str] | None, typer.Option("--exclude", "-e", help="Patterns to exclude")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
) -> None:
    """Report unused symbols."""
    configure_logging(verbose)

    try:
        config = get_config(config_path or find_default_config_path())
        formatter = get_formatter(formatter_name)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=err_console,
            transient=True,
        ) as progress:
            progress.add_task("Linting", total=None)
            failures = run_lint(paths or [Path(".")], config, exclude or [])
    except VestigeError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e

    output = formatter.format(failures, config)
    if output:
        print(output)

    code = exit_code_for(failures, config)
    if code:
        raise typer.Exit(code)


@app.command()
def rules() -> None:
    """List the available rules."""
    defaults = {rule.name for rule in DEFAULT_RULES}
    for rule in ALL_RULES:
        marker = " [dim](default)[/]" if rule.name in defaults else ""
        console.print(f"[cyan]{rule.name}[/cyan]{marker}")


@app.command()
def formatters() -> None:
    """List the available output formatters."""
    for name in get_formatters():
        console.print(f"[cyan]{name}[/cyan]")


if __name__ == "__main__":
    app()
