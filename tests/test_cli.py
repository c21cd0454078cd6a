"""Tests for the command line interface."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import FakeResponse, FakeSession
from release_exporter.cli import app

runner = CliRunner()

EXAMPLE = "https://charts.example.com"
INDEX = """entries:
  redis:
  - version: 17.0.0
    created: 2024-03-01T10:00:00Z
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for name in ("CONFIG_PATH", "METRICS_PORT", "METRICS_PATH", "CHECK_INTERVAL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "exporter"
    directory.mkdir()
    (directory / "config.yaml").write_text("server:\n  port: 9100\n  metrics_path: /metrics\n  check_interval: 1m\n")
    (directory / "repos_and_charts.yaml").write_text(
        f"repositories:\n  - url: {EXAMPLE}\n    charts: [redis, nginx]\n"
    )
    return directory


def fake_network(monkeypatch: pytest.MonkeyPatch, routes: dict) -> FakeSession:
    session = FakeSession(routes)
    monkeypatch.setattr("release_exporter.index_client.requests.Session", lambda: session)
    return session


def test_validate(config_dir: Path):
    result = runner.invoke(app, ["validate", str(config_dir)])

    assert result.exit_code == 0
    assert "Tracking 2 charts in 1 repositories" in result.output
    assert ":9100/metrics" in result.output


def test_validate_uses_config_path(config_dir: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CONFIG_PATH", str(config_dir))

    result = runner.invoke(app, ["validate", "/does/not/exist"])

    assert result.exit_code == 0


def test_validate_bad_interval(config_dir: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CHECK_INTERVAL", "whenever")

    result = runner.invoke(app, ["validate", str(config_dir)])

    assert result.exit_code == 1
    assert "Configuration error" in result.output


def test_validate_bad_watchlist(config_dir: Path):
    (config_dir / "repos_and_charts.yaml").write_text("repositories: nope\n")

    result = runner.invoke(app, ["validate", str(config_dir)])

    assert result.exit_code == 1
    assert "Configuration error" in result.output


def test_check_reports_failures(config_dir: Path, monkeypatch: pytest.MonkeyPatch):
    session = fake_network(monkeypatch, {f"{EXAMPLE}/index.yaml": INDEX})

    result = runner.invoke(app, ["check", str(config_dir)])

    assert result.exit_code == 1
    assert "redis: 17.0.0 (01-03-2024)" in result.output
    assert "chart nginx not found" in result.output
    assert "1 resolved, 1 failed" in result.output
    assert session.calls == [f"{EXAMPLE}/index.yaml"]


def test_check_success(config_dir: Path, monkeypatch: pytest.MonkeyPatch):
    (config_dir / "repos_and_charts.yaml").write_text(f"repositories:\n  - url: {EXAMPLE}\n    charts: [redis]\n")
    fake_network(monkeypatch, {f"{EXAMPLE}/index.yaml": INDEX})

    result = runner.invoke(app, ["check", str(config_dir)])

    assert result.exit_code == 0
    assert "1 resolved, 0 failed" in result.output


def test_check_repository_down(config_dir: Path, monkeypatch: pytest.MonkeyPatch):
    fake_network(monkeypatch, {f"{EXAMPLE}/index.yaml": FakeResponse(500)})

    result = runner.invoke(app, ["check", str(config_dir)])

    assert result.exit_code == 1
    assert "status code 500" in result.output
    assert "0 resolved, 2 failed" in result.output


def test_serve_refuses_bad_config(tmp_path: Path):
    result = runner.invoke(app, ["serve", str(tmp_path / "missing")])

    assert result.exit_code == 1
    assert "Configuration error" in result.output


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "helm-release-exporter v" in result.output
