"""High-level Docker orchestration (wires daemon, resolver, pollers and engines)."""
from typing import List, Optional

from ark.config.loader import DockerSettings
from ark.core.executor import CommandExecutor, CommandResult
from ark.core.lock import ReconcileLock
from ark.core.logger import get_logger
from ark.docker.batch import BatchCoordinator
from ark.docker.compose import ComposeManifestParser
from ark.docker.daemon import DaemonChecker
from ark.docker.models import (
    BatchItemResult,
    ComposeService,
    ContainerSummary,
    DaemonState,
    DaemonStatus,
    ReconcileResult,
)
from ark.docker.poller import ReadinessPoller
from ark.docker.reconciler import ReconciliationEngine
from ark.docker.resolver import ContainerStateResolver

logger = get_logger(__name__)


class DockerOrchestrator:
    """Facade over every Docker subsystem, built from explicit settings."""

    def __init__(self, settings: DockerSettings, executor: Optional[CommandExecutor] = None):
        self.settings = settings
        self.executor = executor or CommandExecutor()
        self.daemon = DaemonChecker(executor=self.executor, launch_command=settings.launch_command)
        self.resolver = ContainerStateResolver(
            containers=settings.containers,
            daemon=self.daemon,
            executor=self.executor,
        )
        self.poller = ReadinessPoller(
            self.resolver,
            interval=settings.poll_interval,
            timeout=settings.readiness_timeout,
        )
        self.engine = ReconciliationEngine(
            containers=settings.containers,
            daemon=self.daemon,
            resolver=self.resolver,
            poller=self.poller,
            executor=self.executor,
            lock=ReconcileLock(settings.lock_file) if settings.lock_file else None,
        )
        self.batch = BatchCoordinator(self.daemon, executor=self.executor)
        self.compose = ComposeManifestParser(executor=self.executor)

    # ==================== Delegation Methods ====================

    def status(self) -> DaemonStatus:
        return self.daemon.status()

    def ensure_running(self) -> DaemonState:
        return self.daemon.ensure_running()

    def start(self) -> ReconcileResult:
        return self.engine.start()

    def stop(self) -> ReconcileResult:
        return self.engine.stop()

    def ps(self, all_containers: bool = False) -> CommandResult:
        return self.resolver.ps(all_containers=all_containers)

    def list_summaries(self, running_only: bool = False) -> List[ContainerSummary]:
        return self.resolver.list_summaries(running_only=running_only)

    def start_containers(self, ids: List[str]) -> List[BatchItemResult]:
        return self.batch.start_containers(ids)

    def stop_containers(self, ids: List[str]) -> List[BatchItemResult]:
        return self.batch.stop_containers(ids)

    def remove_containers(self, ids: List[str]) -> List[BatchItemResult]:
        return self.batch.remove_containers(ids)

    def parse_services(self, path: str) -> List[ComposeService]:
        return self.compose.parse_services(path)

    def pull_services(self, services: List[ComposeService]) -> List[BatchItemResult]:
        """Pull the images of the given compose services (services without one are skipped)."""
        return self.batch.pull_images(service.image for service in services)

    def close(self) -> None:
        self.poller.shutdown()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
