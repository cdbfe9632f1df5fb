"""Tests for the tli command line."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
import typer
import yaml
from typer.testing import CliRunner

from tli.cli import app
from tli.config import load_config, save_config
from tli.history import HistoryStore
from tli.models.history import HistoryRecord

runner = CliRunner()


@pytest.fixture
def home_env(tli_home, monkeypatch):
    """Point HOME at the temporary home and clear TLI_CONF."""
    monkeypatch.setenv("HOME", str(tli_home))
    monkeypatch.delenv("TLI_CONF", raising=False)
    return tli_home


@pytest.fixture
def configured_home(home_env, tli_config):
    save_config(tli_config, home_env / ".tli_config")
    return home_env


def test_log_without_history(home_env):
    result = runner.invoke(app, ["log"])

    assert result.exit_code == 0
    assert "try store something first" in " ".join(result.output.split())


def test_log_prints_newest_first(home_env):
    store = HistoryStore(home_env / ".tli_history")
    start = datetime(2026, 1, 11, 12, 0, tzinfo=timezone.utc)
    for i in range(3):
        store.append(HistoryRecord(time=start + timedelta(minutes=i), title=f"Note {i}", body=f"body {i}"))

    result = runner.invoke(app, ["log", "2"])

    assert result.exit_code == 0
    documents = [d for d in yaml.safe_load_all(result.output) if d]
    assert [d["title"] for d in documents] == ["Note 2", "Note 1"]


def test_log_zero_prints_all(home_env):
    store = HistoryStore(home_env / ".tli_history")
    for i in range(3):
        store.append(HistoryRecord(time=datetime.now(timezone.utc), title=f"Note {i}", body=""))

    result = runner.invoke(app, ["log", "0"])

    assert result.exit_code == 0
    assert len([d for d in yaml.safe_load_all(result.output) if d]) == 3


def test_log_table(home_env):
    HistoryStore(home_env / ".tli_history").append(
        HistoryRecord(time=datetime.now(timezone.utc), title="Groceries", body="milk")
    )

    result = runner.invoke(app, ["log", "--table"])

    assert result.exit_code == 0
    assert "Groceries" in result.output


def test_log_rejects_non_number(home_env):
    result = runner.invoke(app, ["log", "many"])

    assert result.exit_code != 0


def test_log_corrupt_history_fails(home_env):
    path = home_env / ".tli_history"
    path.write_text("---\ntime: [unclosed\n---\ntitle: x\ntime: '2026-01-11T12:00:00Z'\n")

    result = runner.invoke(app, ["log"])

    assert result.exit_code == 1
    assert "corrupted" in result.output


@patch("tli.cli.SmtpTransport")
def test_todo_records_and_sends(mock_transport_cls, configured_home):
    """Test that todo saves the note then sends it."""
    result = runner.invoke(app, ["todo", "Buy", "groceries"], input="milk\neggs\n\n")

    assert result.exit_code == 0, result.output
    assert "DONE!" in result.output

    records = HistoryStore(configured_home / ".tli_history").read_all()
    assert [(r.title, r.body) for r in records] == [("Buy groceries", "milk\neggs")]

    send = mock_transport_cls.return_value.send
    assert send.call_count == 1
    envelope = send.call_args.args[0]
    assert envelope.body == "milk\neggs"
    assert envelope.to_address == "add-to-things-abc@things.email"


@patch("tli.cli.SmtpTransport")
def test_todo_canceled_by_end_of_input(mock_transport_cls, configured_home):
    result = runner.invoke(app, ["todo", "Groceries"], input="milk\n")

    assert result.exit_code == 0
    assert "TODO is canceled." in result.output
    assert not (configured_home / ".tli_history").exists()
    mock_transport_cls.return_value.send.assert_not_called()


@patch("tli.cli.SmtpTransport")
def test_todo_reports_failed_delivery(mock_transport_cls, configured_home):
    mock_transport_cls.return_value.send.side_effect = OSError("connection refused")

    result = runner.invoke(app, ["todo", "Groceries"], input="milk\n\n")

    assert result.exit_code == 0
    assert "could not send" in result.output
    assert "DONE!" in result.output
    assert mock_transport_cls.return_value.send.call_count == 5
    assert len(HistoryStore(configured_home / ".tli_history").read_all()) == 1


def test_todo_without_config_fails(home_env):
    result = runner.invoke(app, ["todo", "Groceries"], input="milk\n\n")

    assert result.exit_code == 1
    assert "tli init" in result.output


def test_todo_requires_title(configured_home):
    result = runner.invoke(app, ["todo"])

    assert result.exit_code != 0


@pytest.mark.parametrize("title", ["", "   "])
@patch("tli.cli.SmtpTransport")
def test_todo_rejects_blank_title(mock_transport_cls, configured_home, title):
    result = runner.invoke(app, ["todo", title], input="milk\n\n")

    assert result.exit_code == 1
    assert "title must not be empty" in result.output
    assert not (configured_home / ".tli_history").exists()
    mock_transport_cls.assert_not_called()


def test_init_writes_config(home_env):
    answers = "\n".join(
        [
            "smtp.example.com",
            "465",
            "Ada Lovelace",
            "ada@example.com",
            "ada",
            "secret",
            "add-to-things-abc@things.email",
        ]
    )

    result = runner.invoke(app, ["init"], input=answers + "\n")

    assert result.exit_code == 0, result.output
    config = load_config(home_env / ".tli_config")
    assert config.smtp_port == 465
    assert config.password == "secret"


def test_init_honors_tli_conf(home_env, tmp_path, monkeypatch):
    target = tmp_path / "elsewhere" / "tli.yaml"
    monkeypatch.setenv("TLI_CONF", str(target))
    answers = "smtp.example.com\n587\nAda\nada@example.com\nada\nsecret\nadd@things.email\n"

    result = runner.invoke(app, ["init"], input=answers)

    assert result.exit_code == 0, result.output
    assert load_config(target).avatar == "Ada"


def test_init_canceled(home_env):
    with patch("tli.cli.typer.prompt", side_effect=typer.Abort()):
        result = runner.invoke(app, ["init"])

    assert result.exit_code == 0
    assert "init was canceled." in result.output
    assert not (home_env / ".tli_config").exists()


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "tli v" in result.output
