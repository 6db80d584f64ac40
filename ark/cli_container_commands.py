"""Batch container CLI commands (start, stop, rm)."""
from __future__ import annotations

from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ark.cli_support import (
    confirm_action,
    get_orchestrator,
    handle_cli_error,
    parse_selection,
    print_batch_results,
    print_warning,
)
from ark.docker.models import ContainerSummary, DaemonState, DaemonUnavailableError
from ark.docker.orchestrator import DockerOrchestrator

ContainerTyper = typer.Typer(help="Start, stop and remove arbitrary containers", add_completion=False)

CONFIG_OPTION_HELP = "Explicit Ark config (default: ./ark.yml, ~/.ark/ark.yml, /etc/ark/ark.yml)."


def _select_containers(
    console: Console,
    orchestrator: DockerOrchestrator,
    running_only: bool,
    verb: str,
) -> List[str]:
    """Show a numbered table of containers and return the chosen ids."""
    state = orchestrator.ensure_running()
    if state is not DaemonState.OK:
        handle_cli_error(DaemonUnavailableError(state), console)

    summaries: List[ContainerSummary] = orchestrator.list_summaries(running_only=running_only)

    if not summaries:
        print_warning(console, "No running containers" if running_only else "No containers found")
        return []

    table = Table(title=f"Containers to {verb}", show_header=True)
    table.add_column("#", style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Image")
    table.add_column("Status")
    for index, summary in enumerate(summaries, 1):
        table.add_row(str(index), summary.short_id, summary.display_name, summary.image, summary.status)
    console.print(table)

    raw = typer.prompt(f"Containers to {verb} (e.g. 1,3-4 or all)")
    return [summaries[i].id for i in parse_selection(raw, len(summaries))]


def _run_batch(console: Console, orchestrator: DockerOrchestrator, action, ids: List[str], title: str) -> None:
    try:
        results = action(ids)
    except DaemonUnavailableError as exc:
        handle_cli_error(exc, console)

    if not print_batch_results(console, results, title):
        raise typer.Exit(1)


def register_container_commands(root: typer.Typer, console: Console) -> None:
    """Attach batch container commands to the main CLI."""

    @ContainerTyper.command("start")
    def start_command(
        ids: Optional[List[str]] = typer.Argument(None, help="Container ids or names (interactive when omitted)."),
        config: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    ) -> None:
        """Start the given containers."""
        with get_orchestrator(config, console) as orchestrator:
            targets = list(ids or []) or _select_containers(console, orchestrator, False, "start")
            if not targets:
                return
            _run_batch(console, orchestrator, orchestrator.start_containers, targets, "Start")

    @ContainerTyper.command("stop")
    def stop_command(
        ids: Optional[List[str]] = typer.Argument(None, help="Container ids or names (interactive when omitted)."),
        config: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    ) -> None:
        """Stop the given containers."""
        with get_orchestrator(config, console) as orchestrator:
            targets = list(ids or []) or _select_containers(console, orchestrator, True, "stop")
            if not targets:
                return
            _run_batch(console, orchestrator, orchestrator.stop_containers, targets, "Stop")

    @ContainerTyper.command("rm")
    def remove_command(
        ids: Optional[List[str]] = typer.Argument(None, help="Container ids or names (interactive when omitted)."),
        yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
        config: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    ) -> None:
        """Stop (if running) and remove the given containers."""
        with get_orchestrator(config, console) as orchestrator:
            targets = list(ids or []) or _select_containers(console, orchestrator, False, "remove")
            if not targets:
                return
            if not confirm_action(f"Remove {len(targets)} container(s)?", yes):
                console.print("[yellow]Cancelled[/yellow]")
                raise typer.Exit(0)
            _run_batch(console, orchestrator, orchestrator.remove_containers, targets, "Remove")

    root.add_typer(ContainerTyper, name="containers")
