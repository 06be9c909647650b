"""Tests for CLI commands and helper functions."""

import os
from unittest.mock import MagicMock, patch

import pytest
import requests
from click.testing import CliRunner

from mail_sink.cli import build_config, main
from mail_sink.config import CredentialPair

RECORD = {
    "id": "abc123",
    "date": "2024-01-15T10:30:00Z",
    "from": {"name": "app@example.com", "addresses": ["app@example.com"]},
    "to": [{"name": "", "addresses": ["user@example.com"]}],
    "subject": "Welcome",
    "text": "Hi",
    "attachments": [],
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.setattr("mail_sink.cli.configure_logging", lambda level=None: None)
    for name in [key for key in os.environ if key.startswith("MAILSINK_")]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def response(json_data=None):
    resp = MagicMock()
    resp.json.return_value = json_data
    resp.raise_for_status.return_value = None
    return resp


class TestBuildConfig:

    def test_overrides_replace_loaded_values(self):
        config = build_config(None, smtp_port=2525, smtp_credentials="u:p", whitelist="a@x.com")
        assert config.smtp_port == 2525
        assert config.smtp_credentials == (CredentialPair("u", "p"),)
        assert config.whitelist == frozenset({"a@x.com"})

    def test_none_overrides_are_ignored(self):
        config = build_config(None, smtp_port=None, include_headers=None)
        assert config.smtp_port == 1025
        assert config.include_headers is True


class TestServe:

    def test_serve_runs_uvicorn(self):
        runner = CliRunner()
        with patch("mail_sink.cli.uvicorn.run") as run:
            result = runner.invoke(main, ["serve", "--http-port", "8025", "--smtp-port", "2525"])
        assert result.exit_code == 0, result.output
        run.assert_called_once()
        _, kwargs = run.call_args
        assert kwargs == {"host": "0.0.0.0", "port": 8025}

    def test_invalid_credentials_abort_startup(self):
        runner = CliRunner()
        with patch("mail_sink.cli.uvicorn.run") as run:
            result = runner.invoke(main, ["serve", "--smtp-auth", "broken"])
        assert result.exit_code == 1
        run.assert_not_called()

    def test_missing_config_file_aborts_startup(self, tmp_path):
        runner = CliRunner()
        with patch("mail_sink.cli.uvicorn.run") as run:
            result = runner.invoke(main, ["serve", "--config", str(tmp_path / "nope.ini")])
        assert result.exit_code == 1
        run.assert_not_called()


class TestEmails:

    def test_list_renders_table(self):
        runner = CliRunner()
        with patch("mail_sink.client.requests.get", return_value=response([RECORD])) as get:
            result = runner.invoke(main, ["emails", "--url", "http://sink:1080", "list", "--to", "user@example.com"])
        assert result.exit_code == 0, result.output
        assert "Welcome" in result.output
        args, kwargs = get.call_args
        assert args[0] == "http://sink:1080/api/emails"
        assert kwargs["params"] == {"to": "user@example.com"}

    def test_list_json(self):
        runner = CliRunner()
        with patch("mail_sink.client.requests.get", return_value=response([RECORD])):
            result = runner.invoke(main, ["emails", "list", "--json"])
        assert result.exit_code == 0, result.output
        assert '"abc123"' in result.output

    def test_list_empty(self):
        runner = CliRunner()
        with patch("mail_sink.client.requests.get", return_value=response([])):
            result = runner.invoke(main, ["emails", "list"])
        assert result.exit_code == 0
        assert "No messages captured" in result.output

    def test_list_connection_error(self):
        runner = CliRunner()
        with patch("mail_sink.client.requests.get", side_effect=requests.ConnectionError("refused")):
            result = runner.invoke(main, ["emails", "list"])
        assert result.exit_code == 1

    def test_clear_uses_basic_auth(self):
        runner = CliRunner()
        with patch("mail_sink.client.requests.delete", return_value=response()) as delete:
            result = runner.invoke(main, ["emails", "--user", "admin", "--password", "pw", "clear"])
        assert result.exit_code == 0, result.output
        assert "Messages cleared" in result.output
        assert delete.call_args.kwargs["auth"] == ("admin", "pw")
