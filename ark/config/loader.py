"""YAML configuration loader for the configured container registry."""
import platform
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ark.config.validator import ConfigValidationError, DockerSettingsValidator
from ark.core.config import ArkConfig, get_config
from ark.core.logger import get_logger

logger = get_logger(__name__)

# Platform-specific commands that bring the Docker daemon up
LAUNCH_COMMANDS = {
    'Darwin': ['open', '-a', 'Docker'],
    'Linux': ['systemctl', 'start', 'docker'],
    'Windows': ['cmd', '/c', 'start', '', r'C:\Program Files\Docker\Docker\Docker Desktop.exe'],
}


def default_launch_command(system: Optional[str] = None) -> List[str]:
    """Return the daemon launch command for the given (or current) platform."""
    system = system or platform.system()
    return list(LAUNCH_COMMANDS.get(system, LAUNCH_COMMANDS['Linux']))


@dataclass(frozen=True)
class DockerSettings:
    """Read-only docker settings, supplied once at startup.

    Attributes:
        containers: Configured container names, in registry order
        launch_command: Command that launches the daemon on this platform
        readiness_timeout: Seconds each readiness poller may wait
        poll_interval: Seconds between readiness checks
        lock_file: Reconcile lock path (None disables inter-process locking)
    """
    containers: Tuple[str, ...] = ()
    launch_command: Tuple[str, ...] = field(default_factory=lambda: tuple(default_launch_command()))
    readiness_timeout: float = 120.0
    poll_interval: float = 0.1
    lock_file: Optional[Path] = None

    @classmethod
    def from_dict(cls, section: Optional[Dict[str, Any]], runtime: Optional[ArkConfig] = None) -> "DockerSettings":
        """Build settings from a validated ``docker`` section, env defaults underneath."""
        runtime = runtime or get_config()
        section = section or {}

        launch = section.get('launch_command')
        if isinstance(launch, str):
            launch = shlex.split(launch)

        lock_file = section.get('lock_file')

        return cls(
            containers=tuple(section.get('containers') or ()),
            launch_command=tuple(launch) if launch else tuple(default_launch_command()),
            readiness_timeout=float(section.get('readiness_timeout', runtime.readiness_timeout)),
            poll_interval=float(section.get('poll_interval', runtime.poll_interval)),
            lock_file=Path(lock_file).expanduser() if lock_file else None,
        )


class ConfigLoader:
    """Loads ark.yml and produces DockerSettings."""

    def __init__(self, config_path: str = "ark.yml"):
        self.config_path = Path(config_path).expanduser()
        self.raw_config: Optional[Dict[str, Any]] = None
        self.validator = DockerSettingsValidator()

    def load(self) -> Dict[str, Any]:
        """Load YAML configuration from file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path) as f:
            try:
                self.raw_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigValidationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(self.raw_config, dict):
            raise ConfigValidationError(f"{self.config_path} must contain a mapping at the top level")

        self.validator.validate(self.raw_config.get('docker') or {})
        return self.raw_config

    def load_settings(self, missing_ok: bool = True) -> DockerSettings:
        """Load and return the docker settings.

        Args:
            missing_ok: Return an empty registry when the file does not exist

        Raises:
            ConfigValidationError: If the file is invalid
            FileNotFoundError: If the file is missing and missing_ok is False
        """
        try:
            config = self.load()
        except FileNotFoundError:
            if not missing_ok:
                raise
            logger.warning(f"No config at {self.config_path}, no containers are configured")
            return DockerSettings.from_dict({})

        return DockerSettings.from_dict(config.get('docker') or {})
