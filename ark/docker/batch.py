"""Best-effort batch operations over caller-selected containers."""
from typing import Iterable, List, Optional

from ark.core.executor import CommandExecutor
from ark.core.logger import get_logger
from ark.docker.daemon import DOCKER_BINARY, DaemonChecker
from ark.docker.models import (
    BatchItemResult,
    BatchOutcome,
    DaemonState,
    DaemonUnavailableError,
)

logger = get_logger(__name__)


class BatchCoordinator:
    """Applies one daemon command to each identifier independently.

    A failure on one identifier never stops the rest; every call returns one
    BatchItemResult per input, in input order.
    """

    def __init__(self, daemon: DaemonChecker, executor: Optional[CommandExecutor] = None):
        self.daemon = daemon
        self.executor = executor or daemon.executor

    def _require_daemon(self) -> None:
        state = self.daemon.ensure_running()
        if state is not DaemonState.OK:
            raise DaemonUnavailableError(state)

    def _apply(self, action: str, item: str, past: str, verb: Optional[str] = None) -> BatchItemResult:
        result = self.executor.execute([DOCKER_BINARY, action, item])
        if result.success:
            logger.info(f"{past} container: {item}")
            return BatchItemResult(id=item, action=action, outcome=BatchOutcome.OK)

        message = result.error or f"exit code {result.exit_code}"
        logger.error(f"Failed to {verb or action} container {item}: {message}")
        return BatchItemResult(id=item, action=action, outcome=BatchOutcome.FAILED, message=message)

    def start_containers(self, ids: Iterable[str]) -> List[BatchItemResult]:
        self._require_daemon()
        return [self._apply('start', item, "Started") for item in ids]

    def stop_containers(self, ids: Iterable[str]) -> List[BatchItemResult]:
        self._require_daemon()
        return [self._apply('stop', item, "Stopped") for item in ids]

    def remove_containers(self, ids: Iterable[str]) -> List[BatchItemResult]:
        """Stop then remove each container.

        A failed stop is expected for containers that were not running and does
        not prevent the removal.
        """
        self._require_daemon()

        results = []
        for item in ids:
            stop = self.executor.execute([DOCKER_BINARY, 'stop', item])
            if stop.success:
                logger.info(f"Stopped container before removal: {item}")
            else:
                logger.info(f"Container wasn't running: {item}")

            results.append(self._apply('rm', item, "Removed", verb="remove"))
        return results

    def pull_images(self, images: Iterable[Optional[str]]) -> List[BatchItemResult]:
        """Pull each image; empty entries (services without an image) are skipped."""
        self._require_daemon()

        results = []
        for image in images:
            if not image:
                continue
            logger.info(f"Pulling image: {image}")
            result = self.executor.execute([DOCKER_BINARY, 'pull', image])
            if result.success:
                logger.info(f"Successfully pulled {image}")
                results.append(BatchItemResult(id=image, action='pull', outcome=BatchOutcome.OK))
            else:
                message = result.error or f"exit code {result.exit_code}"
                logger.error(f"Failed to pull {image}: {message}")
                results.append(BatchItemResult(
                    id=image, action='pull', outcome=BatchOutcome.FAILED, message=message
                ))
        return results
