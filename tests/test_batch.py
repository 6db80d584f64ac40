"""Tests for batch container operations."""
import pytest

from ark.docker.batch import BatchCoordinator
from ark.docker.daemon import DaemonChecker
from ark.docker.models import BatchOutcome, DaemonState, DaemonUnavailableError


@pytest.fixture
def batch(executor):
    daemon = DaemonChecker(executor=executor, launch_command=["systemctl", "start", "docker"])
    return BatchCoordinator(daemon, executor=executor)


class TestStartStop:
    """Test start and stop batches."""

    def test_start_containers(self, batch, executor, docker):
        web = docker.add("web", "exited")
        db = docker.add("db", "exited")

        results = batch.start_containers([web, db])

        assert [r.id for r in results] == [web, db]
        assert all(r.ok for r in results)
        assert docker.status_of("web") == "running"
        assert docker.status_of("db") == "running"

    def test_failure_does_not_abort(self, batch, executor, docker):
        web = docker.add("web", "exited")
        db = docker.add("db", "exited")

        results = batch.start_containers([web, "missing", db])

        assert [r.outcome for r in results] == [BatchOutcome.OK, BatchOutcome.FAILED, BatchOutcome.OK]
        assert "No such container" in results[1].message
        assert executor.issued("docker", "start")[-1] == ["docker", "start", db]

    def test_stop_containers(self, batch, docker):
        web = docker.add("web", "running")

        results = batch.stop_containers([web])

        assert results[0].ok
        assert results[0].action == "stop"
        assert docker.status_of("web") == "exited"

    def test_empty_batch(self, batch, executor, docker):
        assert batch.stop_containers([]) == []
        assert executor.issued("docker", "stop") == []

    def test_daemon_unavailable(self, batch, executor, binaries):
        binaries.clear()

        with pytest.raises(DaemonUnavailableError) as exc_info:
            batch.start_containers(["web"])

        assert exc_info.value.state is DaemonState.NOT_INSTALLED
        assert executor.commands == []


class TestRemove:
    """Test stop-then-remove batches."""

    def test_stops_before_removing(self, batch, executor, docker):
        web = docker.add("web", "running")

        results = batch.remove_containers([web])

        assert results[0].ok
        assert results[0].action == "rm"
        commands = executor.issued("docker", "stop") + executor.issued("docker", "rm")
        assert commands == [["docker", "stop", web], ["docker", "rm", web]]
        assert executor.commands.index(["docker", "stop", web]) < executor.commands.index(["docker", "rm", web])
        assert docker.containers == {}

    def test_already_stopped_container_is_removed(self, batch, executor, docker):
        web = docker.add("web", "exited")
        executor.on("docker", "stop", success=False, error="container is not running")

        results = batch.remove_containers([web])

        assert results[0].ok
        assert docker.containers == {}

    def test_failed_remove_is_reported(self, batch, executor, docker):
        results = batch.remove_containers(["missing"])

        assert results[0].outcome is BatchOutcome.FAILED
        assert len(executor.issued("docker", "rm")) == 1


class TestPullImages:
    """Test image pulls."""

    def test_pull_skips_services_without_image(self, batch, executor, docker):
        results = batch.pull_images(["nginx:latest", None, ""])

        assert [r.id for r in results] == ["nginx:latest"]
        assert executor.issued("docker", "pull") == [["docker", "pull", "nginx:latest"]]

    def test_pull_failure(self, batch, executor, docker):
        executor.on("docker", "pull", "private/app:1", success=False, error="pull access denied")

        results = batch.pull_images(["nginx:latest", "private/app:1"])

        assert results[0].ok
        assert results[1].outcome is BatchOutcome.FAILED
        assert results[1].message == "pull access denied"
