"""Visual mode: selecting a range of tasks to cut, copy or toggle."""

from __future__ import annotations

from dataclasses import replace

from listly.models import Task
from listly.tui.state import KeyBinding, Mode, Model, build_lines, ordered_tasks

UP = KeyBinding(("up", "k"), "↑/k", "up")
UP_FIVE = KeyBinding(("K",), "K", "up 5")
DOWN = KeyBinding(("down", "j"), "↓/j", "down")
DOWN_FIVE = KeyBinding(("J",), "J", "down 5")
NORMAL_MODE = KeyBinding(("esc", "v"), "esc/v", "normal mode")
QUIT_NO_WARNING = KeyBinding(("ctrl+c",))
DELETE = KeyBinding(("d", "x"), "d/x", "cut")
YANK = KeyBinding(("y",), "y", "yank")
TOGGLE_COMPLETION = KeyBinding((" ",), "space", "mark done/not done")
JUMP_UP = KeyBinding(("{",), "{", "jump up")
JUMP_DOWN = KeyBinding(("}",), "}", "jump down")

SHORT_HELP = [UP, DOWN, NORMAL_MODE, QUIT_NO_WARNING, DELETE, YANK]
FULL_HELP = [
    [UP, YANK],
    [DOWN, NORMAL_MODE],
    [DELETE, QUIT_NO_WARNING],
    [JUMP_UP, JUMP_DOWN],
]

_HIGHLIGHT_ON = "\x1b[1;38;2;255;255;255;48;2;95;162;255m"
_HIGHLIGHT_OFF = "\x1b[0m"


def _highlight(text: str) -> str:
    return f"{_HIGHLIGHT_ON}{text}{_HIGHLIGHT_OFF}"


def _selection(model: Model) -> tuple[int, int]:
    return min(model.sel_start, model.cursor_row), max(model.sel_start, model.cursor_row)


def _jump_up(model: Model) -> int:
    last_pending = model.todo_list.info.num_pending - 1
    row = model.cursor_row
    if row == last_pending + 1:
        return last_pending
    if row > last_pending + 1:
        return last_pending + 1
    return 0


def _jump_down(model: Model) -> int:
    last_pending = model.todo_list.info.num_pending - 1
    row = model.cursor_row
    if row < last_pending:
        return last_pending
    if row == last_pending:
        return last_pending + 1
    return len(model.todo_list.task_ids) - 1


def _delete_selection(model: Model) -> None:
    model.copy_buff = copy_selection(model)
    start, end = _selection(model)
    for task in ordered_tasks(model)[start : end + 1]:
        model.todo_list.remove_task(task.id)
    visual_to_normal(model)
    model.cursor_row = min(model.todo_list.info.num_tasks - 1, model.cursor_row)


def _toggle_selection(model: Model) -> None:
    info = model.todo_list.info
    start, end = _selection(model)
    for task in ordered_tasks(model)[start : end + 1]:
        task.done = not task.done
        if task.done:
            info.num_done += 1
            info.num_pending -= 1
        else:
            info.num_done -= 1
            info.num_pending += 1
        model.cursor_row -= 1
    model.cursor_row = max(0, model.cursor_row)
    visual_to_normal(model)


def handle_visual_input(model: Model, key: str) -> bool:
    """Apply a key press in visual mode; return True if the editor should quit."""
    size = len(model.todo_list.tasks)
    if UP.matches(key):
        if model.cursor_row > 0:
            model.cursor_row -= 1
    elif DOWN.matches(key):
        if model.cursor_row < size - 1:
            model.cursor_row += 1
    elif UP_FIVE.matches(key):
        model.cursor_row = model.cursor_row - 4 if model.cursor_row > 4 else 0
    elif DOWN_FIVE.matches(key):
        model.cursor_row = model.cursor_row + 4 if model.cursor_row < size - 6 else size - 1
    elif NORMAL_MODE.matches(key):
        visual_to_normal(model)
    elif QUIT_NO_WARNING.matches(key):
        return True
    elif DELETE.matches(key):
        _delete_selection(model)
    elif YANK.matches(key):
        model.copy_buff = copy_selection(model)
        visual_to_normal(model)
    elif TOGGLE_COMPLETION.matches(key):
        _toggle_selection(model)
    elif JUMP_UP.matches(key):
        model.cursor_row = _jump_up(model)
    elif JUMP_DOWN.matches(key):
        model.cursor_row = _jump_down(model)
    return False


def render_visual_view(model: Model) -> str:
    """Render the list with the selected rows highlighted."""
    lines = build_lines(model, True)
    num_pending = model.todo_list.info.num_pending
    separator = num_pending + 1
    start, end = _selection(model)
    idx = start + 1
    for _ in range(end - start + 1):
        if idx == separator:
            idx += 1
        trimmed = lines[idx][4:].rstrip(" \t\n")
        lines[idx] = "    " + _highlight(trimmed) + "\n"
        idx += 1
    return "".join(lines) + f"idx {idx} | num pending {num_pending}"


def copy_selection(model: Model) -> list[Task]:
    """Return copies of the selected tasks in display order."""
    start, end = _selection(model)
    return [
        replace(model.todo_list.tasks[task.id])
        for task in ordered_tasks(model)[start : end + 1]
    ]


def visual_to_normal(model: Model) -> None:
    """Leave visual mode and drop the selection."""
    model.sel_start = -1
    model.mode = Mode.NORMAL