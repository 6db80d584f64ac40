"""Docker orchestration data model.

All values here are snapshots derived from a live daemon query; nothing is
persisted between invocations.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

RUNNING_STATUS = "running"


class DaemonState(Enum):
    """Result of asking the daemon checker to make the daemon available."""
    OK = "ok"
    STARTING = "starting"
    NOT_INSTALLED = "not_installed"
    START_FAILED = "start_failed"

    @property
    def is_error(self) -> bool:
        return self in (DaemonState.NOT_INSTALLED, DaemonState.START_FAILED)


@dataclass(frozen=True)
class DaemonStatus:
    """Whether the runtime binary exists and its daemon answers."""
    installed: bool
    running: bool

    def __post_init__(self):
        if self.running and not self.installed:
            raise ValueError("A daemon cannot be running when it is not installed")


@dataclass(frozen=True)
class ContainerRecord:
    """One live container projected onto a single requested field."""
    id: str
    name: str
    state: Any = None


class ReadinessOutcome(Enum):
    NOT_AVAILABLE = "not_available"
    NOT_STARTED = "not_started"
    STARTED = "started"


def is_running_state(state: Any) -> bool:
    """Return True when a runtime state value reports the running status.

    Accepts the structured state object of ``docker inspect`` (``{"Status": ...}``)
    as well as the bare state string of ``docker ps``.
    """
    if isinstance(state, dict):
        state = state.get("Status")
    return isinstance(state, str) and state.strip().lower() == RUNNING_STATUS


def classify_readiness(record: Optional[ContainerRecord]) -> ReadinessOutcome:
    """Classify a resolved record; None means it was absent from the listing."""
    if record is None:
        return ReadinessOutcome.NOT_AVAILABLE
    if is_running_state(record.state):
        return ReadinessOutcome.STARTED
    return ReadinessOutcome.NOT_STARTED


@dataclass(frozen=True)
class ComposeService:
    """A service declared in a compose manifest."""
    name: str
    image: Optional[str] = None
    # Build contexts are not resolved to images
    build: None = None


@dataclass(frozen=True)
class ContainerSummary:
    """Row shown when selecting containers interactively."""
    id: str
    names: Tuple[str, ...]
    status: str
    image: str
    state: str = ""

    @property
    def display_name(self) -> str:
        return self.names[0].lstrip("/") if self.names else "unknown"

    @property
    def short_id(self) -> str:
        return self.id[:12]

    @property
    def running(self) -> bool:
        return is_running_state(self.state)


class BatchOutcome(Enum):
    OK = "ok"
    FAILED = "failed"


@dataclass(frozen=True)
class BatchItemResult:
    """Per-item outcome of a batch operation."""
    id: str
    action: str
    outcome: BatchOutcome
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is BatchOutcome.OK


class ReconcileAction(Enum):
    CONTAINERS_STARTED = "containers_started"
    CONTAINERS_STOPPED = "containers_stopped"


@dataclass
class ReconcileResult:
    """What a reconciliation call did."""
    action: ReconcileAction
    containers: List[str] = field(default_factory=list)
    # Identifiers a start/stop command was issued for
    issued: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class ArkError(Exception):
    """Base class for orchestration errors."""


class DaemonUnavailableError(ArkError):
    """The daemon was not available; carries the checker's state unchanged."""

    MESSAGES = {
        DaemonState.NOT_INSTALLED: "Docker is not installed",
        DaemonState.START_FAILED: "Docker daemon failed to start",
        DaemonState.STARTING: "Docker daemon is starting, try again shortly",
    }

    def __init__(self, state: DaemonState):
        self.state = state
        super().__init__(self.MESSAGES.get(state, f"Docker daemon unavailable ({state.value})"))


class ReadinessTimeoutError(ArkError):
    """A container did not report running before its deadline."""

    def __init__(self, name: str, timeout: float, last_outcome: ReadinessOutcome):
        self.name = name
        self.timeout = timeout
        self.last_outcome = last_outcome
        super().__init__(
            f"Container {name} not running after {timeout:g}s (last state: {last_outcome.value})"
        )


class PollCancelledError(ArkError):
    """A readiness poller was cancelled before the container was running."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Readiness check for {name} was cancelled")


class ContainersNotReadyError(ArkError):
    """One or more configured containers failed to converge after start."""

    def __init__(self, failures: dict):
        self.failures = failures
        names = ", ".join(sorted(failures))
        super().__init__(f"Containers did not reach running state: {names}")
