"""Tasks and todo lists, with the counters that summarise them."""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from listly.utils import split_by_completion

_MAX_ID_ATTEMPTS = 100


class ListlyError(Exception):
    """Raised when an operation on lists or the store cannot be carried out."""


@dataclass
class Task:
    """A single item of a todo list."""

    id: int
    description: str
    done: bool = False


@dataclass
class ListInfo:
    """Summary of a list: its name and task counts."""

    name: str
    num_done: int = 0
    num_pending: int = 0
    num_tasks: int = 0


class TodoList:
    """An ordered collection of tasks, keyed by their ids."""

    def __init__(self, name: str) -> None:
        self.info = ListInfo(name=name)
        self.task_ids: list[int] = []
        self.tasks: dict[int, Task] = {}
        self.used_ids: set[int] = set()

    def _generate_task_id(self) -> int:
        for _ in range(_MAX_ID_ATTEMPTS + 1):
            candidate = random.getrandbits(63)
            if candidate not in self.used_ids:
                self.used_ids.add(candidate)
                return candidate
        raise ListlyError(
            "failed to generate unique task id - make sure that they are "
            "being deleted from used ids correctly"
        )

    def _count(self, task: Task) -> None:
        self.info.num_tasks += 1
        if task.done:
            self.info.num_done += 1
        else:
            self.info.num_pending += 1

    def new_task(self, description: str, done: bool) -> Task:
        """Make a task with a fresh id without adding it to the list."""
        return Task(id=self._generate_task_id(), description=description, done=done)

    def add_task(self, task: Task) -> None:
        """Append a task to the end of the list."""
        if task.id in self.tasks:
            raise ListlyError(f"task with id {task.id} already exists")
        self.tasks[task.id] = task
        self.task_ids.append(task.id)
        self._count(task)

    def insert(self, task: Task, index: int) -> None:
        """Insert a task at the given position in the list order."""
        if index < 0 or index > len(self.task_ids):
            raise ListlyError(f"invalid index {index}")
        if task.id in self.tasks:
            raise ListlyError(f"task with id {task.id} already exists")
        self.tasks[task.id] = task
        self.task_ids.insert(index, task.id)
        self._count(task)

    def add_new_task(self, description: str, done: bool) -> int:
        """Create and append a task; return its id."""
        task = self.new_task(description, done)
        self.add_task(task)
        return task.id

    def insert_new_task(self, description: str, index: int) -> int:
        """Create a pending task at the given position; return its id."""
        task = self.new_task(description, False)
        self.insert(task, index)
        return task.id

    def remove_task(self, task_id: int) -> None:
        """Remove the task with the given id."""
        task = self.tasks.pop(task_id, None)
        if task is None:
            raise ListlyError(
                f"tried removing non-existent task id {task_id} from list {self.info.name}"
            )
        self.used_ids.discard(task_id)
        if task_id in self.task_ids:
            self.task_ids.remove(task_id)
        self.info.num_tasks -= 1
        if task.done:
            self.info.num_done -= 1
        else:
            self.info.num_pending -= 1

    def edit_task_description(self, task_id: int, new_description: str) -> None:
        """Replace the description of the task with the given id."""
        task = self.tasks.get(task_id)
        if task is None:
            raise ListlyError(
                f"tried editing non-existent task id {task_id} in list {self.info.name}"
            )
        task.description = new_description

    def toggle_completion(self, task_id: int) -> None:
        """Flip the done flag of the task with the given id."""
        task = self.tasks.get(task_id)
        if task is None:
            raise ListlyError(
                f"tried toggling non-existent task id {task_id} in list {self.info.name}"
            )
        task.done = not task.done
        if task.done:
            self.info.num_done += 1
            self.info.num_pending -= 1
        else:
            self.info.num_done -= 1
            self.info.num_pending += 1

    def __str__(self) -> str:
        name = self.info.name
        if not self.tasks:
            return f"No tasks found in list '{name}'\n"
        completed, pending = split_by_completion(self)
        lines = [name, "=" * max(10, len(name))]
        lines.extend(f"   [ ] {task.description}" for task in pending)
        lines.extend(f"   [x] {task.description}" for task in completed)
        return "\n".join(lines) + "\n"