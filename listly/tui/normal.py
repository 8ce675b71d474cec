"""Normal mode: moving around the list and acting on single tasks."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from typing import Optional

from listly.models import ListlyError
from listly.tui.state import (
    KeyBinding,
    Mode,
    Model,
    build_lines,
    task_id_at,
    task_index_at,
)

UP = KeyBinding(("up", "k"), "↑/k", "up")
DOWN = KeyBinding(("down", "j"), "↓/j", "down")
UP_FIVE = KeyBinding(("K",), "K", "up 5")
DOWN_FIVE = KeyBinding(("J",), "J", "down 5")
QUIT_WITH_WARNING = KeyBinding(("q",), "q", "quit")
QUIT_NO_WARNING = KeyBinding(("ctrl+c",))
NEW_TASK = KeyBinding(("n",), "n", "new task")
NEW_BEFORE = KeyBinding(("O",), "O", "new task before")
NEW_AFTER = KeyBinding(("o",), "o", "new task after")
EDIT_TASK = KeyBinding(("i",), "i", "edit task")
CLEAR_AND_EDIT = KeyBinding(("x",), "x", "clear and edit")
DELETE_TASK = KeyBinding(("d",), "d", "cut task")
TOGGLE_COMPLETION = KeyBinding((" ",), "space", "mark done/not done")
ENABLE_VISUAL_MODE = KeyBinding(("v",), "v", "visual mode")
YANK = KeyBinding(("y",), "y", "yank")
PASTE_AFTER = KeyBinding(("p",), "p", "paste")
PASTE_BEFORE = KeyBinding(("P",), "P", "paste before")
WRITE = KeyBinding(("w",), "w", "write")
JUMP_UP = KeyBinding(("{",), "{", "jump up")
JUMP_DOWN = KeyBinding(("}",), "}", "jump down")

SHORT_HELP = [
    UP, DOWN, QUIT_WITH_WARNING, QUIT_NO_WARNING,
    NEW_TASK, EDIT_TASK, DELETE_TASK, TOGGLE_COMPLETION, ENABLE_VISUAL_MODE,
    YANK, PASTE_AFTER, PASTE_BEFORE, WRITE, JUMP_UP, JUMP_DOWN, NEW_BEFORE, NEW_AFTER,
]
FULL_HELP = [
    [UP, DOWN, QUIT_WITH_WARNING],
    [WRITE, NEW_TASK, EDIT_TASK],
    [CLEAR_AND_EDIT, DELETE_TASK, YANK],
    [ENABLE_VISUAL_MODE, PASTE_AFTER, PASTE_BEFORE],
    [JUMP_UP, JUMP_DOWN, TOGGLE_COMPLETION],
    [NEW_BEFORE, NEW_AFTER],
]

CONFIRM_QUIT = KeyBinding(("ctrl+c",))
CONFIRM_NO = KeyBinding(("n", "esc"))
CONFIRM_YES = KeyBinding(("y", "enter"))

UNSAVED_CHANGES_MESSAGE = (
    "You have unsaved changes. Are you sure you want to quit? "
    "(y/enter = yes, n = no)"
)


def _start_insert(model: Model, location: int, task_id: int = -1) -> None:
    model.edit_task_id = task_id
    model.location = location
    model.mode = Mode.INSERT


def _up(model: Model) -> None:
    if model.cursor_row > 0:
        model.cursor_row -= 1


def _down(model: Model) -> None:
    if model.cursor_row < len(model.todo_list.tasks) - 1:
        model.cursor_row += 1


def _up_five(model: Model) -> None:
    model.cursor_row = model.cursor_row - 4 if model.cursor_row > 4 else 0


def _down_five(model: Model) -> None:
    size = len(model.todo_list.tasks)
    model.cursor_row = model.cursor_row + 4 if model.cursor_row < size - 6 else size - 1


def _quit_with_warning(model: Model) -> bool:
    if model.dirty:
        model.confirmation_active = True
        model.confirmation_message = UNSAVED_CHANGES_MESSAGE
        return False
    return True


def _quit_no_warning(model: Model) -> bool:
    return True


def _new_task(model: Model) -> None:
    _start_insert(model, model.todo_list.info.num_pending)


def _new_before(model: Model) -> None:
    pending = model.todo_list.info.num_pending
    _start_insert(model, pending if model.cursor_row >= pending else model.cursor_row)


def _new_after(model: Model) -> None:
    pending = model.todo_list.info.num_pending
    _start_insert(model, pending if model.cursor_row >= pending else model.cursor_row + 1)


def _edit_task(model: Model) -> None:
    todo = model.todo_list
    if todo.info.num_tasks < 1:
        _start_insert(model, todo.info.num_pending)
        return
    task_id = task_id_at(model, model.cursor_row)
    model.text_input.set_value(todo.tasks[task_id].description)
    _start_insert(model, model.cursor_row, task_id)


def _clear_and_edit(model: Model) -> None:
    todo = model.todo_list
    if todo.info.num_tasks < 1:
        _start_insert(model, todo.info.num_pending)
        return
    model.edit_task_id = task_id_at(model, model.cursor_row)
    model.mode = Mode.INSERT


def _delete_task(model: Model) -> None:
    todo = model.todo_list
    if not todo.tasks:
        return
    task_id = task_id_at(model, model.cursor_row)
    model.copy_buff = [replace(todo.tasks[task_id])]
    todo.remove_task(task_id)
    model.dirty = True
    model.cursor_row = max(0, min(model.cursor_row, todo.info.num_tasks - 1))


def _toggle_completion(model: Model) -> None:
    todo = model.todo_list
    info = todo.info
    if info.num_tasks < 1:
        return
    task_id = task_id_at(model, model.cursor_row)
    todo.toggle_completion(task_id)
    model.dirty = True
    if todo.tasks[task_id].done:
        # keep the cursor on the last pending task
        model.cursor_row = max(0, min(model.cursor_row, info.num_pending - 1))
    elif model.cursor_row < info.num_pending and info.num_done > 0:
        # keep the cursor on the first completed task
        model.cursor_row += 1


def _enable_visual_mode(model: Model) -> None:
    if model.todo_list.info.num_tasks > 0:
        model.sel_start = model.cursor_row
        model.mode = Mode.VISUAL


def _yank(model: Model) -> None:
    todo = model.todo_list
    if todo.info.num_tasks > 0:
        model.copy_buff = [replace(todo.tasks[task_id_at(model, model.cursor_row)])]


def _write(model: Model) -> None:
    if model.db is None:
        raise ListlyError("no database to write the list to")
    model.db.save_list(model.todo_list)
    model.dirty = False


def _jump_up(model: Model) -> None:
    last_pending = model.todo_list.info.num_pending - 1
    row = model.cursor_row
    if row == last_pending + 1:
        model.cursor_row = last_pending
    elif row > last_pending + 1:
        model.cursor_row = last_pending + 1
    else:
        model.cursor_row = 0


def _jump_down(model: Model) -> None:
    last_pending = model.todo_list.info.num_pending - 1
    row = model.cursor_row
    if row < last_pending:
        model.cursor_row = last_pending
    elif row == last_pending:
        model.cursor_row = last_pending + 1
    else:
        model.cursor_row = len(model.todo_list.task_ids) - 1


_ACTIONS: list[tuple[KeyBinding, Callable[[Model], Optional[bool]]]] = [
    (UP, _up),
    (DOWN, _down),
    (UP_FIVE, _up_five),
    (DOWN_FIVE, _down_five),
    (QUIT_WITH_WARNING, _quit_with_warning),
    (QUIT_NO_WARNING, _quit_no_warning),
    (NEW_TASK, _new_task),
    (NEW_BEFORE, _new_before),
    (NEW_AFTER, _new_after),
    (EDIT_TASK, _edit_task),
    (CLEAR_AND_EDIT, _clear_and_edit),
    (DELETE_TASK, _delete_task),
    (TOGGLE_COMPLETION, _toggle_completion),
    (ENABLE_VISUAL_MODE, _enable_visual_mode),
    (YANK, _yank),
    (PASTE_AFTER, lambda model: paste_tasks(model, False)),
    (PASTE_BEFORE, lambda model: paste_tasks(model, True)),
    (WRITE, _write),
    (JUMP_UP, _jump_up),
    (JUMP_DOWN, _jump_down),
]


def _handle_confirmation(model: Model, key: str) -> bool:
    if CONFIRM_QUIT.matches(key):
        return True
    if CONFIRM_NO.matches(key):
        model.confirmation_active = False
        model.confirmation_message = ""
        return False
    return CONFIRM_YES.matches(key)


def handle_normal_input(model: Model, key: str) -> bool:
    """Apply a key press in normal mode; return True if the editor should quit."""
    if model.confirmation_active:
        return _handle_confirmation(model, key)
    for binding, action in _ACTIONS:
        if binding.matches(key):
            return bool(action(model))
    return False


def render_normal_view(model: Model) -> str:
    """Render the list with the cursor row marked."""
    return "".join(build_lines(model, True))


def paste_tasks(model: Model, before: bool) -> None:
    """Insert copies of the copied tasks next to the cursor row."""
    if not model.copy_buff:
        return
    todo = model.todo_list
    new_tasks = [todo.new_task(task.description, task.done) for task in model.copy_buff]

    task_index = 0
    if todo.info.num_tasks - 1 > 0:
        task_index = task_index_at(model, min(model.cursor_row, todo.info.num_pending))
    for offset, task in enumerate(new_tasks):
        if before:
            position = task_index + offset
        else:
            position = min(task_index + offset + 1, len(todo.task_ids))
        todo.insert(task, position)

    if before:
        model.cursor_row -= len(new_tasks) - 1
    else:
        model.cursor_row += len(new_tasks)
    model.dirty = True