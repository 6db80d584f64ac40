"""Shared test fixtures for Ark tests."""
import json
import shutil
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from ark.config.loader import DockerSettings
from ark.core.config import set_config
from ark.core.executor import CommandResult


class FakeExecutor:
    """Scripted stand-in for CommandExecutor that records every command.

    Responses are matched on a command prefix; the most recently registered
    match wins. Unmatched commands succeed with empty output.
    """

    def __init__(self):
        self.commands: List[List[str]] = []
        self.cwds: List[Optional[str]] = []
        self._responses: List[Tuple[Tuple[str, ...], Callable[[List[str]], CommandResult]]] = []

    def on(self, *prefix, output="", success=True, error=None, exit_code=None, handler=None):
        if handler is None:
            def handler(cmd):
                return CommandResult(
                    command=cmd,
                    output=output,
                    exit_code=exit_code if exit_code is not None else (0 if success else 1),
                    success=success,
                    error=error,
                )
        self._responses.insert(0, (tuple(prefix), handler))

    def execute(self, command, silent=True, sudo=False, cwd=None, timeout=None):
        cmd = list(command)
        if sudo:
            cmd = ['sudo'] + cmd
        self.commands.append(cmd)
        self.cwds.append(str(cwd) if cwd else None)
        for prefix, handler in self._responses:
            if tuple(cmd[:len(prefix)]) == prefix:
                return handler(cmd)
        return CommandResult(command=cmd)

    def issued(self, *prefix) -> List[List[str]]:
        return [c for c in self.commands if tuple(c[:len(prefix)]) == prefix]


class FakeDocker:
    """In-memory container runtime answering the docker commands Ark issues."""

    def __init__(self, executor: FakeExecutor):
        self.containers: Dict[str, dict] = {}
        self.fail_start = set()
        executor.on('docker', 'ps', '--all', '--quiet', handler=self._ps_ids)
        executor.on('docker', 'ps', '--all', '--no-trunc', '--format', handler=self._ps_json)
        executor.on('docker', 'inspect', handler=self._inspect)
        executor.on('docker', 'start', handler=self._start)
        executor.on('docker', 'stop', handler=self._stop)
        executor.on('docker', 'rm', handler=self._rm)

    def add(self, name: str, status: str = "exited", image: str = "busybox:latest") -> str:
        container_id = f"{name}-{len(self.containers):04d}".ljust(64, "0")
        self.containers[container_id] = {
            "Id": container_id,
            "Name": f"/{name}",
            "State": {"Status": status, "Running": status == "running"},
            "Config": {"Image": image},
        }
        return container_id

    def status_of(self, name: str) -> Optional[str]:
        for data in self.containers.values():
            if data["Name"] == f"/{name}":
                return data["State"]["Status"]
        return None

    def _find(self, ref: str) -> Optional[dict]:
        for container_id, data in self.containers.items():
            if container_id.startswith(ref) or data["Name"] == f"/{ref}":
                return data
        return None

    def _set_status(self, data: dict, status: str) -> None:
        data["State"] = {"Status": status, "Running": status == "running"}

    def _ps_ids(self, cmd):
        return CommandResult(command=cmd, output="".join(f"{cid}\n" for cid in self.containers))

    def _ps_json(self, cmd):
        lines = []
        for data in self.containers.values():
            status = data["State"]["Status"]
            lines.append(json.dumps({
                "ID": data["Id"],
                "Names": data["Name"].lstrip("/"),
                "Image": data["Config"]["Image"],
                "State": status,
                "Status": "Up 2 minutes" if status == "running" else "Exited (0) 1 hour ago",
            }))
        return CommandResult(command=cmd, output="\n".join(lines) + "\n")

    def _inspect(self, cmd):
        found = [self._find(ref) for ref in cmd[2:]]
        return CommandResult(command=cmd, output=json.dumps([d for d in found if d]))

    def _missing(self, cmd, ref):
        return CommandResult(
            command=cmd, exit_code=1, success=False,
            error=f"Error response from daemon: No such container: {ref}",
        )

    def _start(self, cmd):
        ref = cmd[2]
        data = self._find(ref)
        if data is None:
            return self._missing(cmd, ref)
        if data["Name"].lstrip("/") in self.fail_start:
            return CommandResult(command=cmd, exit_code=1, success=False, error="port is already allocated")
        self._set_status(data, "running")
        return CommandResult(command=cmd, output=f"{ref}\n")

    def _stop(self, cmd):
        ref = cmd[2]
        data = self._find(ref)
        if data is None:
            return self._missing(cmd, ref)
        self._set_status(data, "exited")
        return CommandResult(command=cmd, output=f"{ref}\n")

    def _rm(self, cmd):
        ref = cmd[2]
        data = self._find(ref)
        if data is None:
            return self._missing(cmd, ref)
        if data["State"]["Status"] == "running":
            return CommandResult(
                command=cmd, exit_code=1, success=False,
                error="cannot remove a running container",
            )
        del self.containers[data["Id"]]
        return CommandResult(command=cmd, output=f"{ref}\n")


@pytest.fixture(autouse=True)
def reset_config():
    """Re-read runtime tunables from the environment for every test."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def docker(executor, binaries):
    """A running fake daemon with no containers."""
    return FakeDocker(executor)


@pytest.fixture
def binaries(monkeypatch):
    """Binaries visible on the search path; tests add or remove names."""
    available = {"docker"}

    def fake_which(name, *args, **kwargs):
        return f"/usr/bin/{name}" if name in available else None

    monkeypatch.setattr(shutil, "which", fake_which)
    return available


@pytest.fixture
def daemon_down(executor, binaries):
    """Docker installed but the daemon does not answer."""
    executor.on('docker', 'ps', '--quiet', success=False,
                error="Cannot connect to the Docker daemon")
    return executor


@pytest.fixture
def settings():
    return DockerSettings(
        containers=("postgres", "redis"),
        launch_command=("systemctl", "start", "docker"),
        readiness_timeout=2.0,
        poll_interval=0.01,
    )
