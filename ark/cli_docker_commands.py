"""Reconciliation, daemon and compose pull commands."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ark.cli_support import (
    get_orchestrator,
    handle_cli_error,
    parse_selection,
    print_batch_results,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from ark.core.config import get_config
from ark.core.lock import LockError, check_lock_status
from ark.docker.models import ArkError, DaemonState, DaemonUnavailableError

DaemonTyper = typer.Typer(help="Inspect and launch the Docker daemon", add_completion=False)

CONFIG_OPTION_HELP = "Explicit Ark config (default: ./ark.yml, ~/.ark/ark.yml, /etc/ark/ark.yml)."


def register_docker_commands(root: typer.Typer, console: Console) -> None:
    """Attach reconciliation and daemon commands to the main CLI."""

    @root.command("start")
    def start_command(
        config: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    ) -> None:
        """Start every configured container and wait until all are running."""
        with get_orchestrator(config, console) as orchestrator:
            names = ", ".join(orchestrator.settings.containers) or "none"
            console.print(f"[dim]Reconciling configured containers: {names}[/dim]")
            try:
                result = orchestrator.start()
            except LockError as exc:
                handle_cli_error(exc, console, exit_code=2)
            except ArkError as exc:
                handle_cli_error(exc, console)

        if result.failed:
            print_warning(console, f"{len(result.failed)} start command(s) failed")
        print_success(console, f"Containers started ({len(result.issued)} start command(s) issued)")

    @root.command("stop")
    def stop_command(
        config: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    ) -> None:
        """Stop every configured container."""
        with get_orchestrator(config, console) as orchestrator:
            try:
                result = orchestrator.stop()
            except LockError as exc:
                handle_cli_error(exc, console, exit_code=2)
            except ArkError as exc:
                handle_cli_error(exc, console)

        if result.failed:
            print_warning(console, f"{len(result.failed)} stop command(s) failed")
        print_success(console, f"Containers stopped ({len(result.issued)} stop command(s) issued)")

    @root.command("status")
    def status_command(
        config: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    ) -> None:
        """Show whether Docker is installed and its daemon running."""
        with get_orchestrator(config, console) as orchestrator:
            status = orchestrator.status()
            lock_file = orchestrator.settings.lock_file

        table = Table(title="Docker", show_header=True)
        table.add_column("Installed")
        table.add_column("Running")
        table.add_row(_yes_no(status.installed), _yes_no(status.running))
        console.print(table)

        if lock_file is not None:
            holder = check_lock_status(lock_file)
            if holder:
                print_warning(
                    console,
                    f"Reconciliation in progress (PID {holder['pid']} since {holder['time']})",
                )

    @root.command("ps")
    def ps_command(
        all_containers: bool = typer.Option(False, "--all", "-a", help="Include stopped containers."),
        config: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    ) -> None:
        """List containers."""
        with get_orchestrator(config, console) as orchestrator:
            result = orchestrator.ps(all_containers=all_containers)

        if not result.success:
            print_error(console, result.output or result.error or "docker ps failed")
            raise typer.Exit(1)
        console.print(result.output.rstrip(), markup=False, highlight=False)

    @root.command("pull")
    def pull_command(
        compose_file: Path = typer.Argument(..., help="Path to docker-compose.yml"),
        service: Optional[List[str]] = typer.Option(None, "--service", "-s", help="Service to pull (repeatable)."),
        yes: bool = typer.Option(False, "--yes", "-y", help="Pull every service without prompting."),
        config: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    ) -> None:
        """Pull images for services declared in a compose file."""
        if not compose_file.exists():
            print_error(console, f"File does not exist: {compose_file}")
            raise typer.Exit(1)

        with get_orchestrator(config, console) as orchestrator:
            services = orchestrator.parse_services(str(compose_file))
            if not services:
                print_error(console, f"No services found in {compose_file}")
                raise typer.Exit(1)

            if service:
                unknown = sorted(set(service) - {s.name for s in services})
                if unknown:
                    print_error(console, f"Unknown service(s): {', '.join(unknown)}")
                    raise typer.Exit(2)
                selected = [s for s in services if s.name in service]
            elif yes:
                selected = services
            else:
                table = Table(title=f"Services in {compose_file.name}", show_header=True)
                table.add_column("#", style="dim")
                table.add_column("Service", style="cyan")
                table.add_column("Image")
                for index, item in enumerate(services, 1):
                    table.add_row(str(index), item.name, item.image or "No image specified")
                console.print(table)
                raw = typer.prompt("Services to pull (e.g. 1,3-4 or all)", default="all")
                selected = [services[i] for i in parse_selection(raw, len(services))]

            for item in selected:
                if not item.image:
                    print_info(console, f"Skipping {item.name}: no image specified")

            try:
                results = orchestrator.pull_services(selected)
            except DaemonUnavailableError as exc:
                handle_cli_error(exc, console)

        if not results:
            print_warning(console, "Nothing to pull")
            return
        if not print_batch_results(console, results, "Pull"):
            raise typer.Exit(1)

    @DaemonTyper.command("start")
    def daemon_start_command(
        wait: bool = typer.Option(False, "--wait", "-w", help="Wait until the daemon answers."),
        timeout: Optional[int] = typer.Option(None, "--timeout", help="Seconds to wait with --wait."),
        config: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    ) -> None:
        """Launch the Docker daemon if it is installed but not running."""
        with get_orchestrator(config, console) as orchestrator:
            state = orchestrator.ensure_running()

            if state is DaemonState.OK:
                print_success(console, "Docker daemon is running")
                return
            if state.is_error:
                handle_cli_error(DaemonUnavailableError(state), console)

            print_info(console, "Docker daemon is starting")
            if not wait:
                return

            limit = timeout if timeout is not None else get_config().daemon_wait_timeout
            if orchestrator.daemon.wait_until_running(limit):
                print_success(console, "Docker daemon is running")
            else:
                print_error(console, f"Docker daemon not running after {limit}s")
                raise typer.Exit(1)

    root.add_typer(DaemonTyper, name="daemon")


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"
