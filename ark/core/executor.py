"""External command execution.

Every docker interaction in Ark goes through ``CommandExecutor.execute`` so the
daemon checker, resolver, engines and parsers share one contract: a command
line goes in, a ``CommandResult`` comes out, and nothing raises.
"""
import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ark.core.config import get_config
from ark.core.logger import get_logger

logger = get_logger(__name__)

# Exit codes used when the process never produced one
EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124
EXIT_OS_ERROR = 1


class CommandError(Exception):
    """Raised when a command result is required to be successful."""

    def __init__(self, result: "CommandResult"):
        self.result = result
        detail = result.error or result.output or f"exit code {result.exit_code}"
        super().__init__(f"Command failed: {result.command_line}: {detail.strip()}")


@dataclass
class CommandResult:
    """Outcome of one external command."""
    command: List[str]
    output: str = ""
    exit_code: int = 0
    success: bool = True
    error: Optional[str] = None
    duration: int = 0  # milliseconds

    @property
    def command_line(self) -> str:
        return shlex.join(self.command)

    def raise_for_status(self) -> "CommandResult":
        """Return self, or raise CommandError when the command failed."""
        if not self.success:
            raise CommandError(self)
        return self

    @classmethod
    def failed(cls, command: Sequence[str], output: str, error: str,
               exit_code: int = 1) -> "CommandResult":
        """Build a failed result for a command that was never run."""
        return cls(
            command=list(command),
            output=output,
            exit_code=exit_code,
            success=False,
            error=error,
        )


class CommandExecutor:
    """Runs external commands and captures their outcome."""

    def __init__(self, timeout: Optional[int] = None):
        self.timeout = timeout if timeout is not None else get_config().command_timeout

    def execute(
        self,
        command: Sequence[str],
        silent: bool = True,
        sudo: bool = False,
        cwd: Optional[Union[str, Path]] = None,
        timeout: Optional[int] = None,
    ) -> CommandResult:
        """Run a command and return its result.

        Args:
            command: Command and arguments
            silent: Capture output instead of streaming it to the terminal
            sudo: Run with elevated privileges
            cwd: Working directory for the command
            timeout: Seconds before the command is killed (executor default if None)

        Returns:
            CommandResult; failures are reported in the result, never raised
        """
        cmd = list(command)
        if sudo:
            cmd = ['sudo'] + cmd

        effective_timeout = timeout if timeout is not None else self.timeout
        logger.debug(f"Executing: {shlex.join(cmd)}")
        started = time.monotonic()

        try:
            completed = subprocess.run(
                cmd,
                capture_output=silent,
                text=True,
                errors="replace",
                cwd=str(cwd) if cwd else None,
                timeout=effective_timeout,
                check=False,
            )
        except FileNotFoundError as e:
            return self._failure(cmd, started, EXIT_NOT_FOUND, f"Command not found: {e}")
        except subprocess.TimeoutExpired:
            return self._failure(
                cmd, started, EXIT_TIMEOUT, f"Command timed out after {effective_timeout}s"
            )
        except OSError as e:
            return self._failure(cmd, started, EXIT_OS_ERROR, str(e))

        duration = int((time.monotonic() - started) * 1000)
        success = completed.returncode == 0
        stderr = (completed.stderr or "").strip() if silent else ""

        result = CommandResult(
            command=cmd,
            output=(completed.stdout or "") if silent else "",
            exit_code=completed.returncode,
            success=success,
            error=(stderr or None) if not success else None,
            duration=duration,
        )

        if not success:
            logger.debug(f"Command exited with code {completed.returncode}: {shlex.join(cmd)}")

        return result

    def _failure(self, cmd: List[str], started: float, exit_code: int, message: str) -> CommandResult:
        logger.debug(f"{shlex.join(cmd)}: {message}")
        return CommandResult(
            command=cmd,
            output="",
            exit_code=exit_code,
            success=False,
            error=message,
            duration=int((time.monotonic() - started) * 1000),
        )
