"""Tests for command orchestration in the main module."""

import json
import sys
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from release_dashboard.config import Config
from release_dashboard.errors import AuthenticationError, ConfigurationError
from release_dashboard.main import main
from release_dashboard.models import FetchResult, IngestionReport
from release_dashboard.records import build_record
from release_dashboard.store import CsvReleaseStore


@pytest.fixture(autouse=True)
def _no_dotenv():
    with patch("release_dashboard.main.load_dotenv"), patch("release_dashboard.main.setup_logging"):
        yield


def _config(tmp_path: Path, repositories=("a/b",)) -> Config:
    return Config(repositories=tuple(repositories), github_token="secret", data_path=tmp_path)


def test_main_ingest_success_wires_components(tmp_path, capsys):
    """Verify the ingest command builds the client, store and ingestor and returns 0."""
    config = _config(tmp_path)
    ingestor = Mock()
    ingestor.run.return_value = IngestionReport(
        results=[FetchResult("a/b")], total_records=3, written=True
    )

    with patch("release_dashboard.main.load_config", return_value=config) as load_config_mock, patch(
        "release_dashboard.main.GitHubClient"
    ) as client_ctor_mock, patch(
        "release_dashboard.main.Ingestor", return_value=ingestor
    ) as ingestor_ctor_mock:
        exit_code = main(["ingest"])

    assert exit_code == 0
    load_config_mock.assert_called_once_with(require_token=True)
    client_ctor_mock.assert_called_once_with("secret")
    kwargs = ingestor_ctor_mock.call_args.kwargs
    assert kwargs["client"] is client_ctor_mock.return_value
    assert kwargs["store"].path == config.releases_file
    assert kwargs["repositories"] == ("a/b",)
    assert "Fetched 3 releases from 1 repositories." in capsys.readouterr().out


def test_main_ingest_write_failure_returns_storage_exit_code(tmp_path, capsys):
    """Verify a failed table write maps to the storage exit code."""
    ingestor = Mock()
    ingestor.run.return_value = IngestionReport(
        results=[FetchResult("a/b", error="timeout")], written=False, write_error="disk full"
    )

    with patch("release_dashboard.main.load_config", return_value=_config(tmp_path)), patch(
        "release_dashboard.main.GitHubClient"
    ), patch("release_dashboard.main.Ingestor", return_value=ingestor):
        exit_code = main(["ingest"])

    assert exit_code == 5
    captured = capsys.readouterr()
    assert "failed: a/b" in captured.out
    assert "disk full" in captured.err


def test_main_query_prints_payload_without_token(tmp_path, capsys):
    """Verify the query command reads the persisted table and prints JSON."""
    config = Config(repositories=(), github_token="", data_path=tmp_path)
    CsvReleaseStore(config.releases_file).write(
        [build_record("a/b", {"tag_name": "v1", "published_at": "2024-01-15T00:00:00Z"})]
    )

    with patch("release_dashboard.main.load_config", return_value=config) as load_config_mock:
        exit_code = main(["query", "--repository", "all"])

    assert exit_code == 0
    load_config_mock.assert_called_once_with(require_token=False)
    payload = json.loads(capsys.readouterr().out)
    assert payload["statistics"]["totalReleases"] == 1
    assert payload["monthlyData"] == [{"month": "2024-01", "a/b": 1}]


def test_main_query_invalid_date_returns_configuration_exit_code(tmp_path):
    """Verify a malformed query date is reported as a usage error."""
    with patch("release_dashboard.main.load_config", return_value=_config(tmp_path)):
        exit_code = main(["query", "--start-date", "soon"])

    assert exit_code == 2


def test_main_serve_runs_uvicorn_with_configured_host_and_port(tmp_path):
    """Verify serve builds the app and hands it to uvicorn."""
    config = _config(tmp_path)

    with patch("release_dashboard.main.load_config", return_value=config), patch(
        "release_dashboard.main.create_app", return_value="APP"
    ) as create_app_mock, patch("release_dashboard.main.uvicorn.run") as run_mock:
        exit_code = main(["serve"])

    assert exit_code == 0
    create_app_mock.assert_called_once_with(config)
    run_mock.assert_called_once_with("APP", host="localhost", port=8000, log_level="info")


def test_main_missing_token_returns_auth_error():
    """Verify missing credentials return the authentication exit code."""
    with patch(
        "release_dashboard.main.load_config",
        side_effect=AuthenticationError("Missing required GitHub token."),
    ):
        exit_code = main(["ingest"])

    assert exit_code == 3


def test_main_configuration_error_returns_configuration_exit_code():
    """Verify invalid settings return the configuration exit code."""
    with patch("release_dashboard.main.load_config", side_effect=ConfigurationError("bad interval")):
        exit_code = main(["serve"])

    assert exit_code == 2


def test_main_ingest_all_repositories_failed_returns_api_exit_code(tmp_path, capsys):
    """Verify an ingest run where every repository failed to fetch returns the API exit code."""
    ingestor = Mock()
    ingestor.run.return_value = IngestionReport(
        results=[FetchResult("a/b", error="502"), FetchResult("c/d", error="timeout")],
        written=True,
    )

    with patch(
        "release_dashboard.main.load_config", return_value=_config(tmp_path, ("a/b", "c/d"))
    ), patch("release_dashboard.main.GitHubClient"), patch(
        "release_dashboard.main.Ingestor", return_value=ingestor
    ):
        exit_code = main(["ingest"])

    assert exit_code == 4
    assert "every repository failed" in capsys.readouterr().err


def test_main_ingest_partial_failure_still_succeeds(tmp_path, capsys):
    """Verify one failing repository out of several does not fail the command."""
    ingestor = Mock()
    ingestor.run.return_value = IngestionReport(
        results=[FetchResult("a/b", error="502"), FetchResult("c/d")],
        total_records=2,
        written=True,
    )

    with patch(
        "release_dashboard.main.load_config", return_value=_config(tmp_path, ("a/b", "c/d"))
    ), patch("release_dashboard.main.GitHubClient"), patch(
        "release_dashboard.main.Ingestor", return_value=ingestor
    ):
        exit_code = main(["ingest"])

    assert exit_code == 0
    assert "failed: a/b" in capsys.readouterr().out


def test_main_unexpected_error_returns_generic_exit_code():
    """Verify unexpected exceptions are mapped to the generic non-zero exit code."""
    with patch("release_dashboard.main.parse_args", side_effect=RuntimeError("boom")):
        exit_code = main(["serve"])

    assert exit_code == 1
