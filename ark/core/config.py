"""Ark runtime configuration and settings."""
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ArkConfig:
    """Runtime tunables for Ark operations.

    Attributes:
        command_timeout: Timeout in seconds for a single docker command (default: 60)
        readiness_timeout: Seconds a readiness poller waits for "running" (default: 120)
        poll_interval: Seconds between readiness checks (default: 0.1)
        daemon_wait_timeout: Seconds `ark daemon start --wait` waits by default (default: 60)
    """

    command_timeout: int = 60
    readiness_timeout: float = 120.0
    poll_interval: float = 0.1
    daemon_wait_timeout: int = 60

    @classmethod
    def from_env(cls) -> "ArkConfig":
        """Create config from environment variables.

        Environment variables:
            ARK_COMMAND_TIMEOUT: Docker command timeout in seconds
            ARK_READINESS_TIMEOUT: Readiness poller deadline in seconds
            ARK_POLL_INTERVAL: Readiness poll interval in seconds
            ARK_DAEMON_WAIT_TIMEOUT: Daemon startup wait in seconds

        Returns:
            ArkConfig instance with values from environment or defaults
        """
        return cls(
            command_timeout=int(
                os.getenv("ARK_COMMAND_TIMEOUT", cls.command_timeout)
            ),
            readiness_timeout=float(
                os.getenv("ARK_READINESS_TIMEOUT", cls.readiness_timeout)
            ),
            poll_interval=float(
                os.getenv("ARK_POLL_INTERVAL", cls.poll_interval)
            ),
            daemon_wait_timeout=int(
                os.getenv("ARK_DAEMON_WAIT_TIMEOUT", cls.daemon_wait_timeout)
            ),
        )


# Global config instance (can be overridden)
_config: Optional[ArkConfig] = None


def get_config() -> ArkConfig:
    """Get the global Ark configuration.

    Returns:
        ArkConfig instance (creates from environment if not set)
    """
    global _config
    if _config is None:
        _config = ArkConfig.from_env()
    return _config


def set_config(config: Optional[ArkConfig]):
    """Set the global Ark configuration.

    Args:
        config: ArkConfig instance to use globally, or None to re-read the environment
    """
    global _config
    _config = config
