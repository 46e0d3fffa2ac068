"""Tests for the extdash command line."""

import json
import runpy
import signal
import sys
from pathlib import Path

import pytest

import cli.main as cli_main
import core.config as config
from cli.main import app
from core.clock import CancellationToken
from core.domain.errors import OperationCancelled, ValidationFailed
from core.domain.models import StoreKind, Verb
from core.services.workflow import WorkflowResult


class FakeOrchestrator:
    """Replaces the real orchestrator; records the last request."""

    last = None
    error = None

    def __init__(self, *args, **kwargs):
        pass

    def run(self, verb, request):
        FakeOrchestrator.last = (verb, request)
        if FakeOrchestrator.error is not None:
            raise FakeOrchestrator.error
        return WorkflowResult(store=request.store, verb=verb, payload={"id": request.app_id, "ok": True})


@pytest.fixture
def fake_orchestrator(monkeypatch):
    FakeOrchestrator.last = None
    FakeOrchestrator.error = None
    monkeypatch.setattr(cli_main, "WorkflowOrchestrator", FakeOrchestrator)
    return FakeOrchestrator


@pytest.fixture
def no_credentials(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for key in (
        "CHROME_CLIENT_ID",
        "CHROME_CLIENT_SECRET",
        "CHROME_REFRESH_TOKEN",
        "EDGE_CLIENT_ID",
        "EDGE_CLIENT_SECRET",
        "EDGE_ACCESS_TOKEN_URL",
        "FIREFOX_CLIENT_ID",
        "FIREFOX_CLIENT_SECRET",
    ):
        monkeypatch.setenv(key, "")
    return monkeypatch


class TestBasics:
    def test_help_lists_verbs(self, cli_runner):
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for verb in ("status", "insert", "update", "publish", "sign", "doctor"):
            assert verb in result.output

    def test_version(self, cli_runner):
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "extdash 0.1.0" in result.output

    def test_unknown_store_is_usage_error(self, cli_runner, fake_orchestrator):
        result = cli_runner.invoke(app, ["status", "opera", "--app", "x"])
        assert result.exit_code == 2
        assert fake_orchestrator.last is None


class TestVerbs:
    def test_success_prints_json(self, cli_runner, fake_orchestrator):
        result = cli_runner.invoke(app, ["status", "chrome", "--app", "test_app_id"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"id": "test_app_id", "ok": True}
        verb, request = fake_orchestrator.last
        assert verb is Verb.STATUS
        assert request.store is StoreKind.CHROME

    def test_options_reach_request(self, cli_runner, fake_orchestrator, tmp_path):
        archive = tmp_path / "ext.xpi"
        source = tmp_path / "src.zip"

        result = cli_runner.invoke(app, ["update", "firefox", "-a", "addon@x", "-f", str(archive), "-s", str(source)])

        assert result.exit_code == 0, result.output
        verb, request = fake_orchestrator.last
        assert verb is Verb.UPDATE
        assert request.app_id == "addon@x"
        assert request.archive_path == archive
        assert request.source_path == source

    def test_store_error_exits_1(self, cli_runner, fake_orchestrator):
        fake_orchestrator.error = ValidationFailed("update failed", payload={"status": "Failed"})

        result = cli_runner.invoke(app, ["update", "edge", "--app", "x", "--file", "ext.zip"])

        assert result.exit_code == 1
        assert "update failed" in result.output

    def test_unsupported_pair_exits_1(self, cli_runner, no_credentials):
        result = cli_runner.invoke(app, ["sign", "chrome", "--file", "ext.zip"])

        assert result.exit_code == 1
        assert "does not support sign" in result.output

    def test_missing_credentials_exit_1(self, cli_runner, no_credentials):
        result = cli_runner.invoke(app, ["status", "chrome", "--app", "x"])

        assert result.exit_code == 1
        assert "CHROME_CLIENT_ID" in result.output


class TestDoctor:
    def test_run_reports_missing_credentials(self, cli_runner, no_credentials):
        no_credentials.setenv("FIREFOX_CLIENT_ID", "issuer")
        no_credentials.setenv("FIREFOX_CLIENT_SECRET", "secret")

        result = cli_runner.invoke(app, ["doctor", "run"])

        assert result.exit_code == 0, result.output
        assert "MISSING" in result.output
        assert "OK" in result.output

    def test_setup_writes_user_env(self, cli_runner, monkeypatch, tmp_path):
        monkeypatch.setattr(config, "get_user_config_dir", lambda: tmp_path / "extdash")

        result = cli_runner.invoke(app, ["doctor", "setup", "firefox"], input="issuer\nsecret\n")

        assert result.exit_code == 0, result.output
        content = (tmp_path / "extdash" / ".env").read_text(encoding="utf-8")
        assert "FIREFOX_CLIENT_ID=issuer" in content
        assert "FIREFOX_CLIENT_SECRET=secret" in content


class TestInvalidSettings:
    def test_bad_app_setting_shows_panel(self, cli_runner, no_credentials):
        no_credentials.setenv("EXTDASH_HTTP_TIMEOUT_SECONDS", "abc")

        result = cli_runner.invoke(app, ["status", "chrome", "--app", "x"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "ConfigurationError" in result.output
        assert "http_timeout_seconds" in result.output

    def test_bad_store_setting_shows_panel(self, cli_runner, no_credentials):
        no_credentials.setenv("EDGE_RETRY_TIMEOUT_SECONDS", "soon")

        result = cli_runner.invoke(app, ["update", "edge", "--app", "x", "--file", "ext.zip"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "retry_timeout_seconds" in result.output

    def test_doctor_reports_bad_setting(self, cli_runner, no_credentials):
        no_credentials.setenv("FIREFOX_POLL_INTERVAL_SECONDS", "-1")

        result = cli_runner.invoke(app, ["doctor", "run"])

        assert result.exit_code == 1
        assert "poll_interval_seconds" in result.output


class TestCancellation:
    def test_orchestrator_receives_token(self, cli_runner, fake_orchestrator, monkeypatch):
        seen = {}

        class Capturing(FakeOrchestrator):
            def __init__(self, *args, **kwargs):
                seen.update(kwargs)

        monkeypatch.setattr(cli_main, "WorkflowOrchestrator", Capturing)

        result = cli_runner.invoke(app, ["publish", "chrome", "--app", "x"])

        assert result.exit_code == 0, result.output
        assert isinstance(seen["cancel"], CancellationToken)

    def test_first_interrupt_cancels_second_raises(self):
        original = signal.getsignal(signal.SIGINT)

        with cli_main._cancel_on_sigint() as token:
            handler = signal.getsignal(signal.SIGINT)
            handler(signal.SIGINT, None)

            assert token.cancelled
            assert signal.getsignal(signal.SIGINT) is signal.default_int_handler

        assert signal.getsignal(signal.SIGINT) is original

    def test_cancelled_run_exits_1(self, cli_runner, fake_orchestrator):
        fake_orchestrator.error = OperationCancelled("edge upload cancelled")

        result = cli_runner.invoke(app, ["update", "edge", "--app", "x", "--file", "ext.zip"])

        assert result.exit_code == 1
        assert "edge upload cancelled" in result.output


def test_development_entry_point(monkeypatch, capsys):
    root_main = Path(__file__).resolve().parents[1] / "main.py"
    namespace = runpy.run_path(str(root_main), run_name="extdash_dev")
    monkeypatch.setattr(sys, "argv", ["extdash", "--version"])

    with pytest.raises(SystemExit) as info:
        namespace["main"]()

    assert info.value.code == 0
    assert "extdash 0.1.0" in capsys.readouterr().out
