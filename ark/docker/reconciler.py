"""Reconcile configured containers against their live state."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Optional, Sequence

from ark.core.executor import CommandExecutor
from ark.core.lock import LockError, ReconcileLock
from ark.core.logger import get_logger
from ark.docker.daemon import DOCKER_BINARY, DaemonChecker
from ark.docker.models import (
    ContainersNotReadyError,
    DaemonState,
    DaemonUnavailableError,
    ReadinessOutcome,
    ReconcileAction,
    ReconcileResult,
    classify_readiness,
)
from ark.docker.poller import ReadinessPoller
from ark.docker.resolver import ContainerStateResolver

logger = get_logger(__name__)


class ReconciliationEngine:
    """Brings every configured container into (or out of) the running state.

    Commands for different containers are issued one after another in registry
    order. Only one start/stop call runs at a time: calls in this process are
    serialized with a thread lock, calls from other processes with the optional
    file lock.
    """

    def __init__(
        self,
        containers: Sequence[str],
        daemon: DaemonChecker,
        resolver: ContainerStateResolver,
        poller: ReadinessPoller,
        executor: Optional[CommandExecutor] = None,
        lock: Optional[ReconcileLock] = None,
    ):
        self.containers = tuple(containers)
        self.daemon = daemon
        self.resolver = resolver
        self.poller = poller
        self.executor = executor or resolver.executor
        self.lock = lock
        self._inflight = threading.Lock()

    @contextmanager
    def _single_flight(self):
        if not self._inflight.acquire(blocking=False):
            raise LockError("Another reconciliation is already running in this process")
        try:
            if self.lock is None:
                yield
            else:
                with self.lock:
                    yield
        finally:
            self._inflight.release()

    def _require_daemon(self) -> None:
        state = self.daemon.ensure_running()
        if state is not DaemonState.OK:
            raise DaemonUnavailableError(state)

    def _lost_daemon_state(self) -> DaemonState:
        if not self.daemon.status().installed:
            return DaemonState.NOT_INSTALLED
        return DaemonState.STARTING

    def start(self) -> ReconcileResult:
        """Start every configured container that is not running and wait for all.

        Raises:
            DaemonUnavailableError: Daemon missing, failed to start, or still starting
            ContainersNotReadyError: Some containers never reported running
            LockError: Another reconciliation holds the lock
        """
        with self._single_flight():
            self._require_daemon()

            result = ReconcileResult(
                action=ReconcileAction.CONTAINERS_STARTED,
                containers=list(self.containers),
            )

            records = self.resolver.get_containers_data("State")
            pending = [r for r in records if classify_readiness(r) is not ReadinessOutcome.STARTED]

            for record in pending:
                logger.info(f"Starting container {record.name.lstrip('/')}")
                outcome = self.executor.execute([DOCKER_BINARY, 'start', record.id])
                if outcome.success:
                    result.issued.append(record.id)
                else:
                    logger.error(f"Failed to start container {record.name.lstrip('/')}: {outcome.error}")
                    result.failed.append(record.id)

            handles = []
            unchecked = {}
            for name in self.containers:
                handle = self.poller.check_running(name)
                if handle is None:
                    # Daemon stopped answering after the start commands
                    unchecked[name] = DaemonUnavailableError(self._lost_daemon_state())
                    continue
                handles.append(handle)

            failures = {
                name: outcome
                for name, outcome in self.poller.wait_all(handles).items()
                if isinstance(outcome, Exception)
            }
            failures.update(unchecked)
            if failures:
                for error in failures.values():
                    logger.error(str(error))
                raise ContainersNotReadyError(failures)

            logger.info(f"All {len(self.containers)} configured containers are running")
            return result

    def stop(self) -> ReconcileResult:
        """Issue a stop for every configured container, running or not.

        Raises:
            DaemonUnavailableError: Daemon missing, failed to start, or still starting
            LockError: Another reconciliation holds the lock
        """
        with self._single_flight():
            self._require_daemon()

            result = ReconcileResult(
                action=ReconcileAction.CONTAINERS_STOPPED,
                containers=list(self.containers),
            )

            for record in self.resolver.get_containers_data("Id"):
                logger.info(f"Stopping container {record.name.lstrip('/')}")
                outcome = self.executor.execute([DOCKER_BINARY, 'stop', record.id])
                if outcome.success:
                    result.issued.append(record.id)
                else:
                    logger.error(f"Failed to stop container {record.name.lstrip('/')}: {outcome.error}")
                    result.failed.append(record.id)

            return result
