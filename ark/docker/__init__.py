"""Local Docker container lifecycle orchestration.

This package separates the concerns of container orchestration:
- DaemonChecker: Is Docker installed and reachable, launch it if not
- ContainerStateResolver: Map configured names to live container state
- ReadinessPoller: Wait for containers to report running
- ReconciliationEngine: Start/stop every configured container
- BatchCoordinator: Start/stop/remove/pull a caller-selected list
- ComposeManifestParser: Services and images declared in a compose file
- DockerOrchestrator: High-level facade wiring all of the above
"""
from .batch import BatchCoordinator
from .compose import ComposeManifestParser
from .daemon import DaemonChecker
from .orchestrator import DockerOrchestrator
from .poller import PollerHandle, ReadinessPoller
from .reconciler import ReconciliationEngine
from .resolver import ContainerStateResolver

__all__ = [
    'BatchCoordinator',
    'ComposeManifestParser',
    'ContainerStateResolver',
    'DaemonChecker',
    'DockerOrchestrator',
    'PollerHandle',
    'ReadinessPoller',
    'ReconciliationEngine',
]
