import json
import logging

import pytest
from typer.testing import CliRunner

from taskboard.api.cli import app
from taskboard.logging_setup import LOG_FORMAT, setup_logging

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("TASKBOARD_STORE", "TASKBOARD_DATA_DIR", "TASKBOARD_DB_URL", "TASKBOARD_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TASKBOARD_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("COLUMNS", "200")
    monkeypatch.chdir(tmp_path)
    yield
    # handlery z setup_logging wskazują na strumienie CliRunnera, które są już zamknięte
    root = logging.getLogger()
    for h in list(root.handlers):
        if getattr(h, "_taskboard_handler", False):
            root.removeHandler(h)
            h.close()


def test_demo_runs_in_memory():
    result = runner.invoke(app, ["--store", "memory", "demo"])

    assert result.exit_code == 0, result.output
    assert "Demo zakończone" in result.output
    assert "Statystyki" in result.output
    assert "Po terminie: 1" in result.output


def test_tasks_persist_in_json_store(tmp_path):
    data = tmp_path / "data"

    added = runner.invoke(app, ["--store", "json", "--data", str(data), "add", "Kup mleko", "-p", "high", "-t", "home"])
    listed = runner.invoke(app, ["--store", "json", "--data", str(data), "list", "--filter", "priority", "--value", "high"])

    assert added.exit_code == 0, added.output
    assert "Dodano zadanie" in added.output
    assert listed.exit_code == 0, listed.output
    assert "Kup mleko" in listed.output

    rows = json.loads((data / "tasks.json").read_text(encoding="utf-8"))
    users = json.loads((data / "users.json").read_text(encoding="utf-8"))
    assert rows[0]["userId"] == users[0]["id"]

    task_id = rows[0]["id"]
    done = runner.invoke(app, ["--store", "json", "--data", str(data), "done", task_id[:8]])
    assert done.exit_code == 0, done.output
    rows = json.loads((data / "tasks.json").read_text(encoding="utf-8"))
    assert rows[0]["completed"] is True


def test_domain_error_is_printed_and_exits_nonzero():
    result = runner.invoke(app, ["--store", "memory", "done", "missing"])

    assert result.exit_code == 1
    assert "nie istnieje" in result.output


def test_unknown_user_is_rejected(tmp_path):
    result = runner.invoke(app, ["--store", "json", "--data", str(tmp_path), "--user", "ghost", "list"])

    assert result.exit_code == 1
    assert "ghost" in result.output


def test_user_add_and_switch_user(tmp_path):
    base = ["--store", "sql", "--db-url", f"sqlite:///{tmp_path / 'tb.db'}"]

    added = runner.invoke(app, [*base, "user-add", "bob", "bob@example.com", "--name", "Bob"])
    stats = runner.invoke(app, [*base, "--user", "bob", "stats"])
    users = runner.invoke(app, [*base, "users"])

    assert added.exit_code == 0, added.output
    assert stats.exit_code == 0, stats.output
    assert "Statystyki" in stats.output
    assert "bob@example.com" in users.output


def test_setup_logging_is_idempotent(tmp_path):
    log_file = tmp_path / "logs" / "app.log"

    setup_logging("INFO", log_file)
    setup_logging("INFO", log_file)
    logging.getLogger("taskboard.test").info("hello")

    ours = [h for h in logging.getLogger().handlers if getattr(h, "_taskboard_handler", False)]
    assert len(ours) == 2
    assert "hello" in log_file.read_text(encoding="utf-8")
    assert LOG_FORMAT.startswith("%(asctime)s")
