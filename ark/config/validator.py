"""Configuration validation logic."""
import re
from typing import Any, Dict, List

from ark.core.logger import get_logger

logger = get_logger(__name__)

# Docker accepts [a-zA-Z0-9][a-zA-Z0-9_.-]* for container names
CONTAINER_NAME_RE = re.compile(r'^[a-zA-Z0-9][a-zA-Z0-9_.-]*$')

KNOWN_DOCKER_KEYS = {
    'containers',
    'launch_command',
    'readiness_timeout',
    'poll_interval',
    'lock_file',
}


class ConfigValidationError(Exception):
    """Raised when the Ark configuration is invalid."""
    pass


class DockerSettingsValidator:
    """Validates the ``docker`` section of ark.yml."""

    def validate(self, section: Dict[str, Any]) -> None:
        """Validate the docker section.

        Raises:
            ConfigValidationError: If validation fails
        """
        errors: List[str] = []

        if not isinstance(section, dict):
            raise ConfigValidationError("'docker' section must be a mapping")

        for key in sorted(set(section) - KNOWN_DOCKER_KEYS):
            logger.warning(f"Unknown key in docker section ignored: {key}")

        errors.extend(self._validate_containers(section.get('containers', [])))
        errors.extend(self._validate_launch_command(section.get('launch_command')))

        for key in ('readiness_timeout', 'poll_interval'):
            value = section.get(key)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                errors.append(f"'{key}' must be a positive number, got {value!r}")

        if errors:
            error_msg = "Configuration validation failed:\n  " + "\n  ".join(errors)
            raise ConfigValidationError(error_msg)

    def _validate_containers(self, containers: Any) -> List[str]:
        if containers is None:
            return []
        if not isinstance(containers, list):
            return ["'containers' must be a list of container names"]

        errors = []
        seen = set()
        for name in containers:
            if not isinstance(name, str) or not name.strip():
                errors.append(f"Invalid container name {name!r}: must be a non-empty string")
                continue
            if not CONTAINER_NAME_RE.match(name):
                errors.append(
                    f"Invalid container name '{name}': use letters, digits, '_', '.' or '-'"
                )
                continue
            if name in seen:
                errors.append(f"Duplicate container name '{name}'")
            seen.add(name)
        return errors

    def _validate_launch_command(self, command: Any) -> List[str]:
        if command is None:
            return []
        if isinstance(command, str):
            return [] if command.strip() else ["'launch_command' must not be empty"]
        if isinstance(command, list) and command and all(isinstance(p, str) for p in command):
            return []
        return ["'launch_command' must be a string or a non-empty list of strings"]
