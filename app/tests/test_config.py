"""Tests for env-based sync settings and the sync CLI."""

import os
import sys
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pydantic import ValidationError

from config import DEFAULT_COLUMN_ORDER, DEFAULT_TERMINAL_STATES, SyncSettings


def test_settings_from_env(monkeypatch, tmp_path):
    template = tmp_path / "template.md"
    template.write_text("### {{TASK_TITLE}}\n", encoding="utf-8")

    monkeypatch.setenv("JIRA_BASE_URL", "acme.atlassian.net")
    monkeypatch.setenv("JIRA_USERNAMES", '"alice",\n"bob"')
    monkeypatch.setenv("JIRA_EMAIL", "me@example.com")
    monkeypatch.setenv("JIRA_API_TOKEN", "token")
    monkeypatch.setenv("OBSIDIAN_TARGET_FOLDER", "Work/Jira")
    monkeypatch.setenv("NOTE_TEMPLATE_PATH", str(template))
    monkeypatch.setenv("JIRA_COLUMN_ORDER", "To Do, In Progress")
    monkeypatch.setenv("TASK_FILTER_EXCLUDED_STATES", "Blocked")
    monkeypatch.setenv("TASK_FILTER_ASSIGNEE_SUBSTRING", "Venet")

    settings = SyncSettings.from_env()

    assert settings.base_url == "acme.atlassian.net"
    assert settings.usernames == '"alice",\n"bob"'
    assert settings.target_folder == "Work/Jira"
    assert settings.note_template == "### {{TASK_TITLE}}\n"
    assert settings.column_order == ["To Do", "In Progress"]
    assert settings.excluded_states == ["Blocked"]
    assert settings.excluded_assignee_substring == "Venet"


def test_settings_defaults(monkeypatch):
    for name in [
        "JIRA_TERMINAL_STATES",
        "JIRA_COLUMN_ORDER",
        "TASK_FILTER_EXCLUDED_STATES",
        "NOTE_TEMPLATE_PATH",
        "NOTE_NAME_PATTERN",
        "JIRA_MAX_RESULTS",
    ]:
        monkeypatch.delenv(name, raising=False)

    settings = SyncSettings.from_env()

    assert settings.terminal_states == DEFAULT_TERMINAL_STATES
    assert settings.column_order == DEFAULT_COLUMN_ORDER
    assert settings.excluded_states == ["PM Evaluation", "Ready for Engineering"]
    assert settings.note_template is None
    assert settings.note_name == "{{TASK_ID}}"
    assert settings.max_results == 1000


# --- CLI ---

def _result(success):
    return {
        "success": success,
        "error": None if success else "boom",
        "issues_fetched": 0,
        "tasks_active": 0,
        "notes_created": 0,
        "notes_updated": 0,
        "notes_unchanged": 0,
        "notes_moved": 0,
        "columns": [],
        "board_path": None,
        "finished_at": None,
    }


def test_cli_exits_non_zero_on_failure(capsys):
    from scripts.jira import sync_jira_to_obsidian as cli

    with patch.object(cli, "run_jira_sync", return_value=_result(False)), \
            patch.object(sys, "argv", ["sync_jira_to_obsidian", "--vault-backend", "local"]):
        with pytest.raises(SystemExit) as exc_info:
            cli.main()

    assert exc_info.value.code == 1
    assert "Error: boom" in capsys.readouterr().out


def test_cli_passes_vault_options(capsys):
    from scripts.jira import sync_jira_to_obsidian as cli

    with patch.object(cli, "run_jira_sync", return_value=_result(True)) as mock_run, \
            patch.object(sys, "argv", ["sync_jira_to_obsidian", "--vault-backend", "local", "--local-vault", "/tmp/vault"]):
        cli.main()

    mock_run.assert_called_once_with(vault_backend="local", local_vault_path="/tmp/vault")
    assert "No errors!" in capsys.readouterr().out


# --- Note name pattern ---

def test_note_name_without_task_id_is_rejected():
    with pytest.raises(ValidationError):
        SyncSettings(note_name="{{TASK_TITLE}}")


def test_note_name_with_task_id_is_accepted():
    settings = SyncSettings(note_name="{{ TASK_ID }} {{TASK_TITLE}}")
    assert settings.note_name == "{{ TASK_ID }} {{TASK_TITLE}}"
