"""Tests for the command-line interface."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest
from typer.testing import CliRunner

from prtrigger import __version__
from prtrigger.cli import ExitCode, app

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

runner = CliRunner()


@pytest.fixture
def config_path(write_config: Callable[..., Path], sample_config: dict[str, Any]) -> Path:
    """Write the sample configuration and return its path."""
    return write_config(sample_config)


@pytest.fixture
def write_payload(temp_dir: Path) -> Callable[..., Path]:
    """Factory fixture writing a webhook payload to disk."""

    def _write(payload: Any, filename: str = "payload.json") -> Path:
        path = temp_dir / filename
        path.write_text(json.dumps(payload))
        return path

    return _write


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestValidate:
    """Tests for the validate command."""

    def test_valid(self, config_path: Path) -> None:
        result = runner.invoke(app, ["validate", "--config", str(config_path)])

        assert result.exit_code == ExitCode.SUCCESS
        assert "Configuration is valid" in result.output
        assert "Owners: 1" in result.output
        assert "Jobs: 3" in result.output

    def test_verbose_lists_jobs(self, config_path: Path) -> None:
        result = runner.invoke(app, ["validate", "--config", str(config_path), "-v"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "PR-42: comment, label" in result.output
        assert "main: no triggers" in result.output

    def test_invalid(self, write_config: Callable[..., Path]) -> None:
        path = write_config({"version": 1, "owners": [{"name": "x", "sources": []}]})

        result = runner.invoke(app, ["validate", "--config", str(path)])

        assert result.exit_code == ExitCode.CONFIG_ERROR

    def test_missing_file(self, temp_dir: Path) -> None:
        result = runner.invoke(app, ["validate", "--config", str(temp_dir / "nope.yaml")])

        assert result.exit_code == ExitCode.CONFIG_ERROR


class TestDispatch:
    """Tests for the dispatch command."""

    def test_dry_run_comment(
        self,
        config_path: Path,
        write_payload: Callable[..., Path],
        comment_payload: dict[str, Any],
    ) -> None:
        result = runner.invoke(
            app,
            ["dispatch", "issue_comment", str(write_payload(comment_payload)), "-c", str(config_path), "--dry-run"],
        )

        assert result.exit_code == ExitCode.SUCCESS
        assert "Would build hello-world/PR-42" in result.output

    def test_unauthorized_review_is_skipped(
        self,
        config_path: Path,
        write_payload: Callable[..., Path],
        review_payload: dict[str, Any],
    ) -> None:
        result = runner.invoke(
            app,
            ["dispatch", "pull_request_review", str(write_payload(review_payload)), "-c", str(config_path), "--dry-run"],
        )

        assert result.exit_code == ExitCode.SUCCESS
        assert "Skipped hello-world/PR-7: unauthorized" in result.output
        assert "No builds triggered" in result.output

    def test_unknown_event_is_ignored(
        self,
        config_path: Path,
        write_payload: Callable[..., Path],
        comment_payload: dict[str, Any],
    ) -> None:
        result = runner.invoke(
            app,
            ["dispatch", "push", str(write_payload(comment_payload)), "-c", str(config_path), "--dry-run"],
        )

        assert result.exit_code == ExitCode.SUCCESS
        assert "Ignored push delivery" in result.output

    def test_malformed_repository_url_aborts(
        self,
        config_path: Path,
        write_payload: Callable[..., Path],
        comment_payload: dict[str, Any],
    ) -> None:
        comment_payload["repository"]["html_url"] = "not a url"

        result = runner.invoke(
            app,
            ["dispatch", "issue_comment", str(write_payload(comment_payload)), "-c", str(config_path), "--dry-run"],
        )

        assert result.exit_code == ExitCode.SUCCESS
        assert "Dispatch aborted: malformed_repository_url" in result.output

    def test_schedules_into_queue(
        self,
        config_path: Path,
        temp_dir: Path,
        write_payload: Callable[..., Path],
        label_payload: dict[str, Any],
    ) -> None:
        state_dir = temp_dir / "state"
        result = runner.invoke(
            app,
            [
                "dispatch",
                "pull_request",
                str(write_payload(label_payload)),
                "-c",
                str(config_path),
                "--state-dir",
                str(state_dir),
                "--delivery-id",
                "abc-123",
            ],
        )

        assert result.exit_code == ExitCode.SUCCESS
        assert "Scheduled hello-world/PR-42" in result.output

        result = runner.invoke(app, ["queue", "--state-dir", str(state_dir)])

        assert result.exit_code == ExitCode.SUCCESS
        assert "Builds (1)" in result.output
        assert 'GitHub pull request label "ci:full" by writer' in result.output
        assert "Delivery: abc-123" in result.output

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
    def test_bad_payload(self, config_path: Path, temp_dir: Path, content: str) -> None:
        path = temp_dir / "payload.json"
        path.write_text(content)

        result = runner.invoke(app, ["dispatch", "issue_comment", str(path), "-c", str(config_path), "--dry-run"])

        assert result.exit_code == ExitCode.INPUT_ERROR

    def test_missing_payload(self, config_path: Path, temp_dir: Path) -> None:
        result = runner.invoke(
            app,
            ["dispatch", "issue_comment", str(temp_dir / "missing.json"), "-c", str(config_path), "--dry-run"],
        )

        assert result.exit_code == ExitCode.INPUT_ERROR


class TestMatch:
    """Tests for the match command."""

    def test_lists_tracking_job(self, config_path: Path) -> None:
        result = runner.invoke(app, ["match", "https://github.com/Octocat/Hello-World", "42", "-c", str(config_path)])

        assert result.exit_code == ExitCode.SUCCESS
        assert "hello-world/PR-42 (comment, label)" in result.output

    def test_no_job(self, config_path: Path) -> None:
        result = runner.invoke(app, ["match", "https://github.com/octocat/hello-world", "99", "-c", str(config_path)])

        assert result.exit_code == ExitCode.SUCCESS
        assert "No job tracks PR #99 of octocat/hello-world" in result.output

    def test_malformed_url(self, config_path: Path) -> None:
        result = runner.invoke(app, ["match", "octocat", "1", "-c", str(config_path)])

        assert result.exit_code == ExitCode.INPUT_ERROR


class TestQueue:
    def test_no_database(self, temp_dir: Path) -> None:
        result = runner.invoke(app, ["queue", "--state-dir", str(temp_dir)])

        assert result.exit_code == ExitCode.SUCCESS
        assert "No build queue found" in result.output

    def test_reads_configured_state_directory(
        self,
        monkeypatch: pytest.MonkeyPatch,
        temp_dir: Path,
        write_config: Callable[..., Path],
        write_payload: Callable[..., Path],
        sample_config: dict[str, Any],
        label_payload: dict[str, Any],
    ) -> None:
        state_dir = temp_dir / "configured-state"
        sample_config["state"] = {"directory": str(state_dir)}
        config_path = write_config(sample_config)
        runner.invoke(app, ["dispatch", "pull_request", str(write_payload(label_payload)), "-c", str(config_path)])
        monkeypatch.setenv("PRTRIGGER_CONFIG", str(config_path))

        result = runner.invoke(app, ["queue"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "Builds (1)" in result.output
        assert "hello-world/PR-42" in result.output

    def test_missing_explicit_config(self, temp_dir: Path) -> None:
        result = runner.invoke(app, ["queue", "--config", str(temp_dir / "nope.yaml")])

        assert result.exit_code == ExitCode.CONFIG_ERROR
