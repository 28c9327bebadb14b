"""Decide which mapped tasks are active on the board."""

from services.jira.task_mapper import Task


def is_excluded(
    task: Task,
    excluded_states: list[str],
    excluded_assignee_substring: str,
    gated_state: str = "Backlog",
) -> bool:
    """Return True when a task should be left off the board.

    The assignee substring only gates ``gated_state``; every state in
    ``excluded_states`` is excluded whoever the assignee is. An empty
    substring disables the gated rule.
    """
    gated = (
        bool(excluded_assignee_substring)
        and excluded_assignee_substring in task.assigned_to
        and task.state == gated_state
    )
    return gated or task.state in excluded_states


def filter_active_tasks(
    tasks: list[Task],
    excluded_states: list[str],
    excluded_assignee_substring: str,
    gated_state: str = "Backlog",
) -> list[Task]:
    """Drop excluded tasks, keeping the input order."""
    return [
        task
        for task in tasks
        if not is_excluded(task, excluded_states, excluded_assignee_substring, gated_state)
    ]
