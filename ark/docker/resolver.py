"""Resolve configured container names to their live runtime state."""
import json
from typing import Any, Dict, List, Optional, Sequence

from ark.core.executor import CommandError, CommandExecutor, CommandResult
from ark.core.logger import get_logger
from ark.docker.daemon import DOCKER_BINARY, DaemonChecker
from ark.docker.models import ContainerRecord, ContainerSummary, DaemonState

logger = get_logger(__name__)

PS_TABLE_FORMAT = "table {{.ID}}\t{{.Names}}\t{{.Status}}\t{{.Ports}}"


def _entry_names(entry: Dict[str, Any]) -> List[str]:
    """Names of a listing entry, each with its leading slash."""
    names = entry.get('Names')
    if names is None:
        names = [entry['Name']] if entry.get('Name') else []
    elif isinstance(names, str):
        names = [n for n in names.split(',') if n]
    return [n if n.startswith('/') else f"/{n}" for n in names]


class ContainerStateResolver:
    """Maps container names to live runtime attributes by querying the daemon."""

    def __init__(
        self,
        containers: Sequence[str] = (),
        daemon: Optional[DaemonChecker] = None,
        executor: Optional[CommandExecutor] = None,
    ):
        self.executor = executor or CommandExecutor()
        self.daemon = daemon or DaemonChecker(executor=self.executor)
        self.containers = tuple(containers)

    def list_runtime_containers(self) -> List[Dict[str, Any]]:
        """Return the full live listing as Engine-API shaped objects.

        Raises:
            CommandError: If a docker command fails
            ValueError: If docker returned something that is not JSON
        """
        ids_result = self.executor.execute(
            [DOCKER_BINARY, 'ps', '--all', '--quiet', '--no-trunc']
        ).raise_for_status()

        ids = [line.strip() for line in ids_result.output.splitlines() if line.strip()]
        if not ids:
            return []

        inspect_result = self.executor.execute([DOCKER_BINARY, 'inspect', *ids])
        if not inspect_result.success and not inspect_result.output.strip():
            # A container removed between ps and inspect fails the whole call
            raise CommandError(inspect_result)

        data = json.loads(inspect_result.output or "[]")
        if not isinstance(data, list):
            raise ValueError("docker inspect did not return a list")
        return data

    def get_container_data(self, name: str, field: str) -> List[ContainerRecord]:
        """Resolve one container name to records carrying the requested field.

        An empty list means "unknown" when the daemon is unavailable, and
        "absent" otherwise. Never raises.
        """
        state = self.daemon.ensure_running()
        if state is not DaemonState.OK:
            logger.warning(f"Docker is not running, cannot get data for {name}")
            return []

        target = f"/{name}"
        try:
            entries = self.list_runtime_containers()
            records = []
            for entry in entries:
                names = _entry_names(entry)
                if target not in names:
                    continue
                records.append(ContainerRecord(
                    id=entry.get('Id', ''),
                    name=names[0] if names else '',
                    state=entry.get(field),
                ))
            return records
        except (CommandError, ValueError, OSError) as e:
            logger.error(f"Error getting data for container {name}: {e}")
            return []

    def get_containers_data(self, field: str) -> List[ContainerRecord]:
        """Resolve every configured container, flattened in registry order."""
        if not isinstance(field, str) or not field.strip():
            logger.warning("Invalid field for get_containers_data: must be a non-empty string")
            return []

        if not self.containers:
            logger.warning("No containers configured or accessible")
            return []

        records: List[ContainerRecord] = []
        for name in self.containers:
            records.extend(self.get_container_data(name, field))
        return records

    def list_summaries(self, running_only: bool = False) -> List[ContainerSummary]:
        """List every container for interactive selection.

        Args:
            running_only: Keep only containers whose state is running
        """
        if self.daemon.ensure_running() is not DaemonState.OK:
            return []

        result = self.executor.execute(
            [DOCKER_BINARY, 'ps', '--all', '--no-trunc', '--format', '{{json .}}']
        )
        if not result.success:
            logger.error(f"Failed to list containers: {result.error}")
            return []

        summaries = []
        for line in result.output.splitlines():
            if not line.strip():
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                logger.debug(f"Skipping unparsable docker ps line: {line}")
                continue
            summary = ContainerSummary(
                id=data.get('ID', ''),
                names=tuple(_entry_names(data)),
                status=data.get('Status', ''),
                image=data.get('Image', ''),
                state=data.get('State', ''),
            )
            if running_only and not summary.running:
                continue
            summaries.append(summary)
        return summaries

    def ps(self, all_containers: bool = False) -> CommandResult:
        """Tabular container listing, as shown by ``ark ps``."""
        command = [DOCKER_BINARY, 'ps']
        if all_containers:
            command.append('--all')
        command.extend(['--format', PS_TABLE_FORMAT])

        if self.daemon.ensure_running() is not DaemonState.OK:
            return CommandResult.failed(
                command,
                output="Docker is not running",
                error="Docker daemon not available",
            )

        return self.executor.execute(command)
