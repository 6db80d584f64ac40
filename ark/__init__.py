"""Ark - local Docker container lifecycle orchestrator."""

__version__ = "1.0.0"
