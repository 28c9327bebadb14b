"""Render the task board as an Obsidian Kanban plugin note."""

import logging

from services.jira.task_mapper import Task
from services.obsidian.note_templates import render_note_name
from services.obsidian.vault import NOTE_EXTENSION, Vault, join_path

logger = logging.getLogger(__name__)

KANBAN_FRONTMATTER = "---\n\nkanban-plugin: basic\n\n---"
KANBAN_SETTINGS = '%% kanban:settings\n```\n{"kanban-plugin":"basic"}\n```\n%%'


def board_path(folder: str, board_id: str) -> str:
    return join_path(folder, f"{board_id}_Board{NOTE_EXTENSION}")


def generate_board_markdown(tasks: list[Task], columns: list[str], name_pattern: str) -> str:
    """Generate Kanban markdown with one lane per column.

    Cards link to the task notes and keep the order of ``tasks``.
    Tasks whose state is not in ``columns`` are left off the board.
    """
    sections = [KANBAN_FRONTMATTER, ""]

    for column in columns:
        sections.append(f"## {column}")
        sections.append("")
        for task in tasks:
            if task.state == column:
                sections.append(f"- [ ] [[{render_note_name(name_pattern, task)}]]")
        sections.append("")
        sections.append("")

    sections.append("")
    sections.append(KANBAN_SETTINGS)
    return "\n".join(sections)


def render_board(
    vault: Vault,
    folder: str,
    tasks: list[Task],
    columns: list[str],
    board_id: str,
    name_pattern: str,
) -> str:
    """Write the board note and return its path."""
    path = board_path(folder, board_id)
    content = generate_board_markdown(tasks, columns, name_pattern)

    if vault.read_note(path) == content:
        logger.debug(f"Board unchanged: {path}")
        return path

    vault.write_note(path, content)
    logger.info(f"Wrote Kanban board with {len(columns)} column(s): {path}")
    return path
