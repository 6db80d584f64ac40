"""Tests for CLI support utilities."""
from unittest.mock import patch

import pytest
import typer
from rich.console import Console

from ark.cli_support import (
    confirm_action,
    find_config,
    get_orchestrator,
    parse_selection,
    print_batch_results,
    print_error,
    print_success,
)
from ark.docker.models import BatchItemResult, BatchOutcome
from ark.docker.orchestrator import DockerOrchestrator


@pytest.fixture
def console():
    return Console(record=True, width=120)


class TestFindConfig:
    """Test config file discovery."""

    def test_explicit_path(self):
        assert find_config("/custom/ark.yml") == "/custom/ark.yml"

    def test_env_variable(self, monkeypatch):
        monkeypatch.setenv("ARK_CONFIG", "/env/ark.yml")
        assert find_config() == "/env/ark.yml"

    def test_fallback_to_default(self, monkeypatch):
        monkeypatch.delenv("ARK_CONFIG", raising=False)
        with patch("ark.cli_support.Path.exists", return_value=False):
            assert find_config() == "ark.yml"


class TestGetOrchestrator:
    """Test building the orchestrator from a config file."""

    def test_valid_config(self, tmp_path, console):
        path = tmp_path / "ark.yml"
        path.write_text("docker:\n  containers: [postgres, redis]\n  poll_interval: 0.5\n")

        with get_orchestrator(str(path), console) as orchestrator:
            assert isinstance(orchestrator, DockerOrchestrator)
            assert orchestrator.settings.containers == ("postgres", "redis")
            assert orchestrator.poller.interval == 0.5

    def test_invalid_config_exits(self, tmp_path, console):
        path = tmp_path / "ark.yml"
        path.write_text("docker:\n  containers: ['bad name']\n")

        with pytest.raises(typer.Exit) as exc_info:
            get_orchestrator(str(path), console)

        assert exc_info.value.exit_code == 1
        assert "Invalid container name" in console.export_text()

    def test_explicit_missing_config_exits(self, tmp_path, console):
        with pytest.raises(typer.Exit):
            get_orchestrator(str(tmp_path / "missing.yml"), console)

    def test_no_config_found(self, tmp_path, console, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("ARK_CONFIG", raising=False)
        with patch("ark.cli_support.Path.exists", return_value=False):
            with get_orchestrator(None, console) as orchestrator:
                assert orchestrator.settings.containers == ()


class TestParseSelection:
    """Test interactive selection parsing."""

    def test_single_and_ranges(self):
        assert parse_selection("1,3-4", 5) == [0, 2, 3]

    def test_all(self):
        assert parse_selection("all", 3) == [0, 1, 2]
        assert parse_selection("*", 2) == [0, 1]

    def test_duplicates_collapsed(self):
        assert parse_selection("2, 2,1-2", 3) == [1, 0]

    @pytest.mark.parametrize("raw", ["0", "4", "x", "1-b"])
    def test_invalid(self, raw):
        with pytest.raises(typer.BadParameter):
            parse_selection(raw, 3)


class TestConfirmAction:
    """Test confirmation prompts."""

    def test_yes_flag_skips_prompt(self):
        assert confirm_action("Remove?", yes_flag=True) is True

    def test_prompt(self):
        with patch("ark.cli_support.typer.confirm", return_value=False) as confirm:
            assert confirm_action("Remove?") is False
            confirm.assert_called_once_with("Remove?")


class TestOutput:
    """Test output helpers."""

    def test_batch_results(self, console):
        results = [
            BatchItemResult(id="abc", action="stop", outcome=BatchOutcome.OK),
            BatchItemResult(id="def", action="stop", outcome=BatchOutcome.FAILED, message="No such container"),
        ]

        assert print_batch_results(console, results, "Stop") is False
        text = console.export_text()
        assert "abc" in text
        assert "No such container" in text

    def test_all_ok(self, console):
        results = [BatchItemResult(id="abc", action="start", outcome=BatchOutcome.OK)]

        assert print_batch_results(console, results, "Start") is True

    def test_messages(self, console):
        print_success(console, "done")
        print_error(console, "broken")

        text = console.export_text()
        assert "✓ done" in text
        assert "✗ broken" in text
