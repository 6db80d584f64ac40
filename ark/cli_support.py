"""Shared utilities for Ark CLI modules."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ark.config.loader import ConfigLoader
from ark.config.validator import ConfigValidationError
from ark.docker.models import BatchItemResult
from ark.docker.orchestrator import DockerOrchestrator

# Default config search paths (ordered by proximity to current run)
CONFIG_PATHS = [
    "./ark.yml",
    str(Path.home() / ".ark" / "ark.yml"),
    "/etc/ark/ark.yml",
]


def find_config(config_path: Optional[str] = None) -> str:
    """Locate the active Ark configuration file."""
    if config_path:
        return config_path

    if env_config := os.environ.get("ARK_CONFIG"):
        return env_config

    for path in CONFIG_PATHS:
        if Path(path).exists():
            return path

    return "ark.yml"


def get_orchestrator(config_path: Optional[str], console: Console) -> DockerOrchestrator:
    """Load settings once and build the orchestrator from them.

    Raises:
        typer.Exit: If the configuration is invalid
    """
    loader = ConfigLoader(find_config(config_path))
    try:
        settings = loader.load_settings(missing_ok=config_path is None)
    except (ConfigValidationError, FileNotFoundError) as e:
        handle_cli_error(e, console)
    return DockerOrchestrator(settings)


def confirm_action(message: str, yes_flag: bool = False) -> bool:
    """Prompt user for confirmation unless --yes.

    Args:
        message: Confirmation message to display
        yes_flag: Skip prompt if True (from --yes flag)

    Returns:
        True if confirmed, False otherwise
    """
    if yes_flag:
        return True
    return typer.confirm(message)


def parse_selection(raw: str, count: int) -> List[int]:
    """Parse "1,3-4" style selections into zero-based indexes.

    Raises:
        typer.BadParameter: On malformed or out-of-range entries
    """
    if raw.strip().lower() in ("all", "*"):
        return list(range(count))

    indexes: List[int] = []
    for part in raw.replace(" ", "").split(","):
        if not part:
            continue
        try:
            if "-" in part:
                low, high = (int(p) for p in part.split("-", 1))
                values = range(low, high + 1)
            else:
                values = [int(part)]
        except ValueError:
            raise typer.BadParameter(f"Invalid selection: {part}")
        for value in values:
            if value < 1 or value > count:
                raise typer.BadParameter(f"Selection {value} is out of range 1-{count}")
            if value - 1 not in indexes:
                indexes.append(value - 1)
    return indexes


def print_batch_results(console: Console, results: Iterable[BatchItemResult], title: str) -> bool:
    """Render per-item batch results.

    Returns:
        True when every item succeeded
    """
    results = list(results)
    table = Table(title=title, show_header=True)
    table.add_column("Target", style="cyan")
    table.add_column("Result")
    table.add_column("Detail", style="dim")
    for item in results:
        status = "[green]ok[/green]" if item.ok else "[red]failed[/red]"
        table.add_row(item.id[:40], status, item.message)
    console.print(table)
    return all(item.ok for item in results)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {e}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    """Print success message with consistent formatting."""
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    """Print error message with consistent formatting."""
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    """Print warning message with consistent formatting."""
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    """Print info message with consistent formatting."""
    console.print(f"[cyan]{prefix}[/cyan] {message}")
