"""Readiness polling for configured containers.

Each poller runs on its own worker thread and repeatedly resolves one
container until it reports running. Pollers carry a deadline and a
cancellation event; cancellation is checked between iterations.
"""
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Union

from ark.core.config import get_config
from ark.core.logger import get_logger
from ark.docker.models import (
    DaemonState,
    PollCancelledError,
    ReadinessOutcome,
    ReadinessTimeoutError,
    classify_readiness,
)
from ark.docker.resolver import ContainerStateResolver

logger = get_logger(__name__)


class PollerHandle:
    """Handle to one running readiness poller."""

    def __init__(self, name: str, future: Future, cancel_event: threading.Event):
        self.name = name
        self._future = future
        self._cancel_event = cancel_event

    def cancel(self) -> None:
        """Ask the poller to stop at its next iteration."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> ReadinessOutcome:
        """Block until the poller finishes.

        Raises:
            ReadinessTimeoutError: The container missed its deadline
            PollCancelledError: The poller was cancelled
        """
        return self._future.result(timeout=timeout)


class ReadinessPoller:
    """Spawns pollers that wait for containers to report running."""

    def __init__(
        self,
        resolver: ContainerStateResolver,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        max_workers: Optional[int] = None,
    ):
        config = get_config()
        self.resolver = resolver
        self.interval = interval if interval is not None else config.poll_interval
        self.timeout = timeout if timeout is not None else config.readiness_timeout
        workers = max_workers or max(len(resolver.containers), 1)
        self._pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ark-poller")

    def check_running(self, name: str, timeout: Optional[float] = None) -> Optional[PollerHandle]:
        """Start polling ``name`` until it runs.

        Returns:
            A handle, or None when the daemon is unavailable and no poller was started
        """
        if self.resolver.daemon.ensure_running() is not DaemonState.OK:
            logger.warning(f"Docker is not available, skipping check for {name}")
            return None

        deadline = timeout if timeout is not None else self.timeout
        cancel_event = threading.Event()
        future = self._pool.submit(self._poll, name, deadline, cancel_event)
        return PollerHandle(name, future, cancel_event)

    def _poll(self, name: str, timeout: float, cancel_event: threading.Event) -> ReadinessOutcome:
        target = f"/{name}"
        deadline = time.monotonic() + timeout
        outcome = ReadinessOutcome.NOT_AVAILABLE

        while not cancel_event.is_set():
            records = self.resolver.get_container_data(name, "State")
            found = next((r for r in records if r.name == target), None)
            outcome = classify_readiness(found)

            if outcome is ReadinessOutcome.STARTED:
                logger.debug(f"Container {name} is running")
                return outcome

            if time.monotonic() >= deadline:
                raise ReadinessTimeoutError(name, timeout, outcome)

            # Returns early when cancelled
            cancel_event.wait(self.interval)

        raise PollCancelledError(name)

    def wait_all(self, handles: Iterable[PollerHandle]) -> Dict[str, Union[ReadinessOutcome, Exception]]:
        """Wait for every handle; errors are returned per name, not raised.

        On KeyboardInterrupt every remaining poller is cancelled before re-raising.
        """
        handles: List[PollerHandle] = list(handles)
        results: Dict[str, Union[ReadinessOutcome, Exception]] = {}
        try:
            for handle in handles:
                try:
                    results[handle.name] = handle.result()
                except (ReadinessTimeoutError, PollCancelledError) as e:
                    results[handle.name] = e
        except KeyboardInterrupt:
            for handle in handles:
                handle.cancel()
            raise
        return results

    def shutdown(self) -> None:
        """Stop accepting pollers and wait for running ones to finish."""
        self._pool.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False
