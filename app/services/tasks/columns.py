"""Derive Kanban board columns from the active tasks."""

from services.jira.task_mapper import Task


def sequence_columns(tasks: list[Task], priority_order: list[str]) -> list[str]:
    """Return the distinct task states in board order.

    States listed in ``priority_order`` come first, in that order. Other
    states follow in the order they were first seen (sorted() is stable).
    """
    states = list(dict.fromkeys(task.state for task in tasks))
    rank: dict[str, int] = {}
    for index, state in enumerate(priority_order):
        rank.setdefault(state, index)
    unranked = len(priority_order)
    return sorted(states, key=lambda state: rank.get(state, unranked))
