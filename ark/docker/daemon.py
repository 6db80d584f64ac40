"""Docker daemon availability checks."""
import shutil
import time
from typing import Optional, Sequence

from ark.config.loader import default_launch_command
from ark.core.executor import CommandExecutor
from ark.core.logger import get_logger
from ark.docker.models import DaemonState, DaemonStatus

logger = get_logger(__name__)

DOCKER_BINARY = "docker"


class DaemonChecker:
    """Determines whether Docker is installed and its daemon reachable.

    ``ensure_running`` reads like a query but may launch the daemon. Calling it
    again while the daemon is still booting issues the launch command again,
    which is harmless but wasteful.
    """

    def __init__(
        self,
        executor: Optional[CommandExecutor] = None,
        launch_command: Optional[Sequence[str]] = None,
        binary: str = DOCKER_BINARY,
    ):
        self.executor = executor or CommandExecutor()
        self.launch_command = list(launch_command) if launch_command else default_launch_command()
        self.binary = binary

    def status(self) -> DaemonStatus:
        """Query the daemon state. Never cached."""
        if shutil.which(self.binary) is None:
            return DaemonStatus(installed=False, running=False)

        result = self.executor.execute([self.binary, 'ps', '--quiet'])
        return DaemonStatus(installed=True, running=result.success)

    def ensure_running(self) -> DaemonState:
        """Make sure the daemon is up, launching it when installed but stopped.

        Returns:
            DaemonState.OK when already running; STARTING once the launch command
            succeeded (the daemon may not answer yet); NOT_INSTALLED or
            START_FAILED otherwise.
        """
        status = self.status()

        if status.running:
            return DaemonState.OK

        if not status.installed:
            logger.error("Docker is not installed")
            return DaemonState.NOT_INSTALLED

        logger.info("Starting Docker...")
        result = self.executor.execute(self.launch_command)
        if result.success:
            return DaemonState.STARTING

        logger.error(f"Failed to start Docker daemon: {result.error or result.exit_code}")
        return DaemonState.START_FAILED

    def wait_until_running(self, timeout: float, interval: float = 1.0) -> bool:
        """Poll status() until the daemon answers or the timeout elapses."""
        deadline = time.monotonic() + timeout
        while True:
            if self.status().running:
                return True
            if time.monotonic() >= deadline:
                logger.warning(f"Docker daemon not reachable after {timeout:g}s")
                return False
            time.sleep(interval)
