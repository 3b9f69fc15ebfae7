"""Tests for the CLI interface."""

from __future__ import annotations

import httpx
import pytest
from click.testing import CliRunner

import cli as cli_module
from cli import cli
from client import HttpClient
from tests.conftest import MAIN_BRANCH_ID, make_branch

DEBATE_ID = "22222222-2222-4222-8222-222222222222"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "test_config.yaml"
    path.write_text(
        "api:\n  base_url: http://test\n  timeout: 5\n"
        "stream:\n  max_retries: 2\n"
    )
    return path


def _serve(monkeypatch, routes: dict[str, httpx.Response]) -> None:
    """Point the CLI's HTTP client at canned responses keyed by path."""

    def handler(request: httpx.Request) -> httpx.Response:
        return routes.get(request.url.path, httpx.Response(404))

    monkeypatch.setattr(
        cli_module,
        "_http_client",
        lambda cfg: HttpClient("http://test", transport=httpx.MockTransport(handler)),
    )


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Debate Session Viewer" in result.output

    def test_run_help(self, runner):
        result = runner.invoke(cli, ["run", "--help"])
        assert result.exit_code == 0
        assert "--question" in result.output
        assert "--fork-mode" in result.output

    def test_run_rejects_invalid_config(self, runner, config_path):
        result = runner.invoke(
            cli,
            ["--config", str(config_path), "run", "--question", "short", "--participants", "a"],
        )
        assert result.exit_code == 2
        assert "Validation Error" in result.output

    def test_missing_config_uses_defaults(self, runner, tmp_path):
        result = runner.invoke(
            cli,
            [
                "--config",
                str(tmp_path / "absent.yaml"),
                "run",
                "--question",
                "short",
                "--participants",
                "a,b",
            ],
        )
        assert "Config not found" in result.output
        assert result.exit_code == 2

    def test_status(self, runner, config_path, monkeypatch):
        _serve(
            monkeypatch,
            {
                f"/api/debates/{DEBATE_ID}": httpx.Response(
                    200,
                    json={
                        "debateId": DEBATE_ID,
                        "status": "paused",
                        "question": "Is remote work better?",
                        "currentRound": 2,
                        "totalRounds": 4,
                        "turns": [],
                        "createdAt": "2024-05-01T12:00:00Z",
                        "updatedAt": "2024-05-01T12:00:00Z",
                    },
                )
            },
        )
        result = runner.invoke(cli, ["--config", str(config_path), "status", "--debate-id", DEBATE_ID])
        assert result.exit_code == 0
        assert "paused" in result.output
        assert "2/4" in result.output

    def test_status_not_found(self, runner, config_path, monkeypatch):
        _serve(monkeypatch, {})
        result = runner.invoke(cli, ["--config", str(config_path), "status", "--debate-id", DEBATE_ID])
        assert result.exit_code == 1
        assert "Not Found Error" in result.output

    def test_branches_tree(self, runner, config_path, monkeypatch):
        root = make_branch(MAIN_BRANCH_ID, name="main")
        child = make_branch(parent=root, name="what-if")
        _serve(
            monkeypatch,
            {
                f"/api/debates/{DEBATE_ID}/branches": httpx.Response(
                    200, json=[root.to_wire(), child.to_wire()]
                )
            },
        )
        result = runner.invoke(cli, ["--config", str(config_path), "branches", "--debate-id", DEBATE_ID])
        assert result.exit_code == 0
        assert "- main [save]" in result.output
        assert "  - what-if [save]" in result.output

    def test_branches_reports_inconsistency(self, runner, config_path, monkeypatch):
        orphan = make_branch(parent=make_branch(), name="orphan")
        _serve(
            monkeypatch,
            {f"/api/debates/{DEBATE_ID}/branches": httpx.Response(200, json=[orphan.to_wire()])},
        )
        result = runner.invoke(cli, ["--config", str(config_path), "branches", "--debate-id", DEBATE_ID])
        assert result.exit_code == 1
        assert "missing parent" in result.output

    def test_no_branches(self, runner, config_path, monkeypatch):
        _serve(monkeypatch, {f"/api/debates/{DEBATE_ID}/branches": httpx.Response(200, json=[])})
        result = runner.invoke(cli, ["--config", str(config_path), "branches", "--debate-id", DEBATE_ID])
        assert result.exit_code == 0
        assert "No branches found" in result.output
