"""Sync open Jira issues into Obsidian task notes and a Kanban board.

One run:
1. Fetch open issues assigned to the configured usernames
2. Map them to Tasks and drop excluded ones
3. Create or update one note per task
4. Move each note to its canonical path
5. Regenerate the Kanban board

Every failure is caught and reported in the returned SyncResult. Notes
written before a failure stay written. Runs take no lock on the vault
folder, so overlapping runs against the same folder are not supported.
"""

import logging
from datetime import datetime
from typing import TypedDict

from config import (
    DROPBOX_OBSIDIAN_VAULT_PATH,
    LOCAL_VAULT_PATH,
    SYSTEM_TZ,
    VAULT_BACKEND,
    SyncSettings,
)
from services.jira.client import build_auth_headers, build_jql, parse_usernames, search_issues
from services.jira.task_mapper import map_issues
from services.obsidian.kanban_board import render_board
from services.obsidian.task_notes import (
    NOTE_CREATED,
    NOTE_UPDATED,
    move_to_canonical,
    upsert_task_note,
)
from services.obsidian.vault import Vault, join_path, open_vault
from services.tasks.columns import sequence_columns
from services.tasks.filters import filter_active_tasks

logger = logging.getLogger(__name__)

COMPLETED_FOLDER = "Completed"


class SyncResult(TypedDict):
    """Result of a Jira sync run."""

    success: bool
    error: str | None
    issues_fetched: int
    tasks_active: int
    notes_created: int
    notes_updated: int
    notes_unchanged: int
    notes_moved: int
    columns: list[str]
    board_path: str | None
    finished_at: str | None


def _empty_result() -> SyncResult:
    return SyncResult(
        success=False,
        error=None,
        issues_fetched=0,
        tasks_active=0,
        notes_created=0,
        notes_updated=0,
        notes_unchanged=0,
        notes_moved=0,
        columns=[],
        board_path=None,
        finished_at=None,
    )


def _check_credentials(settings: SyncSettings) -> None:
    missing = [
        name
        for name, value in (
            ("JIRA_BASE_URL", settings.base_url),
            ("JIRA_EMAIL", settings.email),
            ("JIRA_API_TOKEN", settings.api_token),
        )
        if not value
    ]
    if missing:
        raise EnvironmentError(f"Missing Jira settings: {', '.join(missing)}")


def fetch_issues(settings: SyncSettings, usernames: list[str]) -> list[dict]:
    """Fetch open issues for the usernames. No usernames means no issues."""
    if not usernames:
        logger.warning("No Jira usernames configured, skipping issue search")
        return []

    headers = build_auth_headers(settings.email, settings.api_token)
    jql = build_jql(usernames, settings.terminal_states)
    issues = search_issues(
        settings.base_url,
        headers,
        jql,
        max_results=settings.max_results,
        timeout=settings.timeout,
    )
    logger.info(f"Found {len(issues)} issue(s) in Jira")
    return issues


def sync_jira_tasks(settings: SyncSettings, vault: Vault) -> SyncResult:
    """Run one sync. Never raises; check ``result["success"]``."""
    result = _empty_result()

    try:
        _check_credentials(settings)
        usernames = parse_usernames(settings.usernames)
        logger.info(f"Syncing Jira issues for: {usernames}")

        target_folder = join_path(settings.target_folder)
        vault.ensure_folder(target_folder)
        vault.ensure_folder(join_path(target_folder, COMPLETED_FOLDER))

        issues = fetch_issues(settings, usernames)
        result["issues_fetched"] = len(issues)

        tasks = map_issues(issues, settings.base_url, settings.sprint_field)
        active_tasks = filter_active_tasks(
            tasks,
            settings.excluded_states,
            settings.excluded_assignee_substring,
            settings.gated_state,
        )
        result["tasks_active"] = len(active_tasks)
        logger.info(f"{len(active_tasks)} active task(s) after filtering")

        # Create or update task notes
        notes = vault.list_notes(target_folder)
        for task in active_tasks:
            action, note_path = upsert_task_note(
                vault,
                target_folder,
                task,
                settings.note_template,
                settings.note_name,
                settings.note_write_mode,
                notes,
            )
            if action == NOTE_CREATED:
                result["notes_created"] += 1
                notes.append(note_path)
            elif action == NOTE_UPDATED:
                result["notes_updated"] += 1
            else:
                result["notes_unchanged"] += 1

        # Move task notes to their canonical names
        notes = vault.list_notes(target_folder)
        for task in active_tasks:
            if move_to_canonical(vault, target_folder, task, settings.note_name, notes):
                result["notes_moved"] += 1
                notes = vault.list_notes(target_folder)

        # Kanban board
        columns = sequence_columns(active_tasks, settings.column_order)
        result["columns"] = columns
        result["board_path"] = render_board(
            vault,
            target_folder,
            active_tasks,
            columns,
            settings.board_id,
            settings.note_name,
        )

        result["success"] = True
    except Exception as e:
        logger.error(f"Jira sync failed: {e}")
        result["error"] = str(e)

    result["finished_at"] = datetime.now(SYSTEM_TZ).isoformat()
    return result


def run_jira_sync(
    vault_backend: str | None = None,
    local_vault_path: str | None = None,
) -> SyncResult:
    """Sync using settings from the environment. Used by the scheduler, API and CLI."""
    try:
        settings = SyncSettings.from_env()
        vault = open_vault(
            vault_backend or VAULT_BACKEND,
            local_path=local_vault_path or LOCAL_VAULT_PATH,
            dropbox_path=DROPBOX_OBSIDIAN_VAULT_PATH,
        )
    except Exception as e:
        logger.error(f"Failed to set up Jira sync: {e}")
        result = _empty_result()
        result["error"] = str(e)
        result["finished_at"] = datetime.now(SYSTEM_TZ).isoformat()
        return result

    result = sync_jira_tasks(settings, vault)
    logger.info(
        "Jira sync complete: success=%s, active=%d, created=%d, updated=%d, moved=%d",
        result["success"], result["tasks_active"], result["notes_created"],
        result["notes_updated"], result["notes_moved"],
    )
    return result
