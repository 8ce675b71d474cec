"""Small helpers shared by the commands and the interface."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from listly.models import Task, TodoList


def success(msg: str) -> None:
    """Print a message reporting a successful operation."""
    print(msg)


def list_lists(lists: Iterable[str], tab: str) -> str:
    """Render names as an indented bullet list without a trailing newline."""
    return "".join(f"{tab}- {name}\n" for name in lists).rstrip("\n")


def split_by_completion(todo_list: TodoList) -> tuple[list[Task], list[Task]]:
    """Return (completed, pending) tasks, each in list order."""
    completed: list[Task] = []
    pending: list[Task] = []
    for task_id in todo_list.task_ids:
        task = todo_list.tasks.get(task_id)
        if task is None:
            continue
        (completed if task.done else pending).append(task)
    return completed, pending