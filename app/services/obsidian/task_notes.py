"""Create, locate and move task notes in the vault.

A note belongs to a task when its file name contains the task id as a
whole token, so "PROJ-1 Fix login.md" belongs to PROJ-1 but
"PROJ-10.md" does not. This keeps repeated syncs from duplicating notes
even after the naming pattern or the task title changes.
"""

import logging
import posixpath
import re

from services.jira.task_mapper import Task
from services.obsidian.note_templates import (
    WRITE_MODE_MERGE,
    build_note_content,
    render_note_name,
)
from services.obsidian.vault import NOTE_EXTENSION, Vault, join_path

logger = logging.getLogger(__name__)

NOTE_CREATED = "created"
NOTE_UPDATED = "updated"
NOTE_UNCHANGED = "unchanged"


def _task_id_pattern(task_id: str) -> re.Pattern:
    return re.compile(rf"(?<![\w-]){re.escape(task_id)}(?![\w])", re.IGNORECASE)


def note_matches_task_id(note_path: str, task_id: str) -> bool:
    stem = posixpath.basename(note_path)
    if stem.endswith(NOTE_EXTENSION):
        stem = stem[: -len(NOTE_EXTENSION)]
    return bool(_task_id_pattern(task_id).search(stem))


def find_note_by_task_id(
    vault: Vault,
    folder: str,
    task_id: str,
    notes: list[str] | None = None,
    preferred_path: str | None = None,
) -> str | None:
    """Find the note for a task anywhere under ``folder``.

    ``notes`` may be passed to reuse one folder listing for many lookups.
    ``preferred_path`` wins when it is one of the matches, then notes
    directly in ``folder`` win over notes in subfolders.
    """
    if notes is None:
        notes = vault.list_notes(folder)

    matches = [path for path in notes if note_matches_task_id(path, task_id)]
    if not matches:
        return None

    matches.sort(key=lambda path: (path != preferred_path, path.count("/"), path))
    if len(matches) > 1:
        logger.warning(f"Multiple notes found for {task_id}, using {matches[0]}: {matches[1:]}")
    return matches[0]


def canonical_note_path(folder: str, task: Task, name_pattern: str) -> str:
    """The path a task's note should live at."""
    return join_path(folder, f"{render_note_name(name_pattern, task)}{NOTE_EXTENSION}")


def upsert_task_note(
    vault: Vault,
    folder: str,
    task: Task,
    template: str | None,
    name_pattern: str,
    write_mode: str = WRITE_MODE_MERGE,
    notes: list[str] | None = None,
) -> tuple[str, str]:
    """Create or update the note for a task.

    Existing notes are updated where they are; new notes are created at
    the canonical path.

    Returns:
        (action, note_path) where action is created, updated or unchanged
    """
    target_path = canonical_note_path(folder, task, name_pattern)
    note_path = find_note_by_task_id(vault, folder, task.id, notes, target_path) or target_path

    existing = vault.read_note(note_path)
    content = build_note_content(task, existing, template, write_mode)

    if existing is None:
        vault.write_note(note_path, content)
        logger.debug(f"Created note: {note_path}")
        return NOTE_CREATED, note_path

    if existing == content:
        return NOTE_UNCHANGED, note_path

    vault.write_note(note_path, content)
    logger.debug(f"Updated note: {note_path}")
    return NOTE_UPDATED, note_path


def move_to_canonical(
    vault: Vault,
    folder: str,
    task: Task,
    name_pattern: str,
    notes: list[str] | None = None,
) -> bool:
    """Move a task's note to its canonical path.

    Returns True if the note was moved, False if it was already in place
    or could not be found.
    """
    target_path = canonical_note_path(folder, task, name_pattern)
    note_path = find_note_by_task_id(vault, folder, task.id, notes, target_path)
    if note_path is None:
        logger.warning(f"No note found for {task.id} in {folder}")
        return False

    if note_path == target_path:
        return False

    vault.move_note(note_path, target_path)
    return True
