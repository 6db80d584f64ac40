"""Configuration management."""
from ark.config.loader import ConfigLoader, DockerSettings, default_launch_command
from ark.config.validator import ConfigValidationError

__all__ = ['ConfigLoader', 'ConfigValidationError', 'DockerSettings', 'default_launch_command']
