"""Editor state shared by the interface modes, and the pieces they render."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from listly.models import Task, TodoList
from listly.utils import split_by_completion

if TYPE_CHECKING:
    from listly.db import Database

_ANSI = re.compile(r"\x1b\[[0-9;]*m")
_EMPTY_LIST_LINE = '\n No tasks in this list. Press "n" to add one.\n\n'
_HELP_SEPARATOR = "    "


class Mode(str, Enum):
    """The editing mode the interface is in."""

    NORMAL = "normal"
    INSERT = "insert"
    VISUAL = "visual"


@dataclass(frozen=True)
class KeyBinding:
    """Keys that trigger one action, with an optional help entry."""

    keys: tuple[str, ...]
    help_key: str = ""
    help_desc: str = ""

    def matches(self, key: str) -> bool:
        """Tell whether the pressed key belongs to this binding."""
        return key in self.keys


@dataclass
class TextInput:
    """A single-line text field with a cursor."""

    prompt: str = "> "
    placeholder: str = ""
    char_limit: int = 0
    width: int = 0
    value: str = ""
    position: int = 0

    def _fits(self, length: int) -> bool:
        return self.char_limit <= 0 or length <= self.char_limit

    def set_value(self, value: str) -> None:
        """Replace the text, truncated to the limit, with the cursor at its end."""
        if self.char_limit > 0:
            value = value[: self.char_limit]
        self.value = value
        self.position = len(value)

    def reset(self) -> None:
        """Clear the text."""
        self.value = ""
        self.position = 0

    def handle_key(self, key: str) -> None:
        """Apply a key press to the text and cursor."""
        value = self.value
        pos = max(0, min(self.position, len(value)))
        if key in ("backspace", "ctrl+h"):
            if pos > 0:
                value = value[: pos - 1] + value[pos:]
                pos -= 1
        elif key in ("delete", "ctrl+d"):
            value = value[:pos] + value[pos + 1 :]
        elif key in ("left", "ctrl+b"):
            pos = max(0, pos - 1)
        elif key in ("right", "ctrl+f"):
            pos = min(len(value), pos + 1)
        elif key in ("home", "ctrl+a"):
            pos = 0
        elif key in ("end", "ctrl+e"):
            pos = len(value)
        elif key == "ctrl+u":
            value = value[pos:]
            pos = 0
        elif key == "ctrl+k":
            value = value[:pos]
        elif len(key) == 1 and key.isprintable() and self._fits(len(value) + 1):
            value = value[:pos] + key + value[pos:]
            pos += 1
        self.value = value
        self.position = pos

    def view(self) -> str:
        """Render the prompt followed by the visible part of the text."""
        if not self.value and self.placeholder:
            return self.prompt + self.placeholder
        text = self.value
        if self.width > 0 and len(text) > self.width:
            start = max(0, min(self.position, len(text)) - self.width)
            text = text[start : start + self.width]
        return self.prompt + text


def _task_input() -> TextInput:
    return TextInput(
        prompt="    > [ ] ",
        placeholder="Task Description",
        char_limit=156,
        width=40,
    )


@dataclass
class Model:
    """Everything the editor knows about the list being edited."""

    todo_list: TodoList
    db: Optional[Database] = None
    text_input: TextInput = field(default_factory=_task_input)
    cursor_row: int = 0
    sel_start: int = -1
    copy_buff: list[Task] = field(default_factory=list)
    dirty: bool = False
    edit_task_id: int = -1
    location: int = 0
    confirmation_active: bool = False
    confirmation_message: str = ""
    mode: Mode = Mode.NORMAL
    width: int = 0
    height: int = 0
    y_offset: int = 0
    content: str = ""


def new_model(db: Database, list_name: str) -> Model:
    """Load the named list from the store into a fresh editor state."""
    return Model(todo_list=db.get_list(list_name), db=db)


def ordered_tasks(model: Model) -> list[Task]:
    """Return the tasks in display order: pending first, then completed."""
    completed, pending = split_by_completion(model.todo_list)
    return pending + completed


def task_id_at(model: Model, display_index: int) -> int:
    """Return the id of the task shown at the given display row."""
    tasks = ordered_tasks(model)
    if not 0 <= display_index < len(tasks):
        raise IndexError(f"no task at display row {display_index}")
    return tasks[display_index].id


def task_index_at(model: Model, display_index: int) -> int:
    """Return the position in the list order of the task at a display row."""
    task_id = task_id_at(model, display_index)
    try:
        return model.todo_list.task_ids.index(task_id)
    except ValueError:
        return -1


def _task_line(task: Task, selected: bool) -> str:
    mark = "x" if task.done else " "
    lead = "    > " if selected else "      "
    return f"{lead}[{mark}] {task.description}\n"


def build_lines(model: Model, include_cursor: bool) -> list[str]:
    """Render the list as lines, optionally marking the cursor row."""
    if model.todo_list.info.num_tasks == 0:
        return [_EMPTY_LIST_LINE]
    completed, pending = split_by_completion(model.todo_list)
    lines = ["\n  Todo:\n\n"]
    for row, task in enumerate(pending):
        lines.append(_task_line(task, include_cursor and row == model.cursor_row))
    if completed:
        lines.append("\n  Complete:\n\n")
        for row, task in enumerate(completed, start=len(pending)):
            lines.append(_task_line(task, include_cursor and row == model.cursor_row))
    return lines


def _display_width(text: str) -> int:
    width = 0
    for char in _ANSI.sub("", text):
        if unicodedata.combining(char):
            continue
        width += 2 if unicodedata.east_asian_width(char) in ("W", "F") else 1
    return width


def _join_horizontal(blocks: Sequence[Sequence[str]], center: bool = False) -> list[str]:
    height = max((len(block) for block in blocks), default=0)
    padded: list[list[str]] = []
    for block in blocks:
        lines = list(block)
        missing = height - len(lines)
        if center:
            below = (missing + 1) // 2
            above = missing - below
        else:
            above, below = 0, missing
        lines = [""] * above + lines + [""] * below
        width = max((_display_width(line) for line in lines), default=0)
        padded.append([line + " " * (width - _display_width(line)) for line in lines])
    return ["".join(parts) for parts in zip(*padded)]


def _join_vertical_center(lines: Sequence[str]) -> list[str]:
    width = max((_display_width(line) for line in lines), default=0)
    out = []
    for line in lines:
        gap = width - _display_width(line)
        left = (gap + 1) // 2
        out.append(" " * left + line + " " * (gap - left))
    return out


def full_help_view(columns: Sequence[Sequence[KeyBinding]]) -> str:
    """Render columns of key bindings as a help table."""
    rendered: list[list[str]] = []
    for column in columns:
        shown = [binding for binding in column if binding.help_key]
        if not shown:
            continue
        parts: list[list[str]] = []
        if rendered:
            parts.append([_HELP_SEPARATOR])
        parts.append([binding.help_key for binding in shown])
        parts.append([" "])
        parts.append([binding.help_desc for binding in shown])
        rendered.append(_join_horizontal(parts))
    return "\n".join(_join_horizontal(rendered))


def _title_box(text: str) -> list[str]:
    bar = "─" * _display_width(text)
    return [f"╭{bar}╮", f"│{text}├", f"╰{bar}╯"]


def make_header(model: Model) -> str:
    """Render the boxed list name followed by a rule across the width."""
    name = model.todo_list.info.name
    if model.dirty:
        name += " (*)"
    title = _title_box(name)
    title_width = max(_display_width(line) for line in title)
    rule = "─" * max(0, model.width - title_width)
    return "\n".join(_join_horizontal([title, [rule]], center=True)) + "\n"


def make_footer(model: Model, help_text: str) -> str:
    """Render a rule across the width above the centred help text."""
    rule = "─" * max(0, model.width)
    return "\n".join(_join_vertical_center([rule, *help_text.split("\n")]))