#!/usr/bin/env python3
"""Ark CLI - Keep your local Docker containers running."""
from typing import Optional

import typer
from rich.console import Console

from ark.cli_container_commands import register_container_commands
from ark.cli_docker_commands import register_docker_commands
from ark.core.logger import get_logger, set_console_level, setup_file_logging

app = typer.Typer(
    name="ark",
    help="""Ark - Local Docker container lifecycle

One YAML file lists the containers you always want running.

Quick start:
  ark status            # Is Docker installed and running?
  ark daemon start      # Launch Docker if needed
  ark start             # Start every configured container and wait
  ark stop              # Stop them again

More commands: ark --help
""",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Write logs to this file (default: ~/.ark/logs/ark.log)."),
) -> None:
    setup_file_logging(log_file=log_file, verbose=verbose)
    set_console_level(verbose)


# Attach modular subcommands
register_docker_commands(app, console)
register_container_commands(app, console)

if __name__ == "__main__":
    app()
