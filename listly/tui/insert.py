"""Insert mode: typing a new task or editing an existing one."""

from __future__ import annotations

from listly.models import ListlyError
from listly.tui.state import KeyBinding, Mode, Model, build_lines, task_index_at

DISCARD = KeyBinding(("esc",), "esc", "discard changes")
QUIT_NO_WARNING = KeyBinding(("ctrl+c",))
SAVE = KeyBinding(("enter",), "enter", "save")

SHORT_HELP = [DISCARD, SAVE]
FULL_HELP = [[DISCARD], [SAVE]]


def handle_insert_input(model: Model, key: str) -> bool:
    """Apply a key press in insert mode; return True if the editor should quit."""
    if DISCARD.matches(key):
        insert_to_normal(model)
    elif QUIT_NO_WARNING.matches(key):
        return True
    elif SAVE.matches(key):
        if not model.text_input.value:
            insert_to_normal(model)
        else:
            keep_changes(model)
    model.text_input.handle_key(key)
    return False


def render_insert_view(model: Model) -> str:
    """Render the list with the text field in place of, or between, tasks."""
    lines = build_lines(model, False)
    idx = min(model.location, model.todo_list.info.num_pending) + 1
    field = model.text_input.view() + "\n"
    skip = idx if model.edit_task_id == -1 else idx + 1
    return "".join(lines[:idx] + [field] + lines[skip:])


def insert_to_normal(model: Model) -> None:
    """Leave insert mode, discarding the text being typed."""
    model.text_input.reset()
    model.mode = Mode.NORMAL
    model.edit_task_id = -1


def keep_changes(model: Model) -> None:
    """Store the typed text as a new task or as the edited description."""
    todo = model.todo_list
    location = model.location
    if model.edit_task_id == -1:
        if not todo.task_ids:
            task_index = 0
        elif location > 0:
            task_index = task_index_at(model, location - 1) + 1
        else:
            task_index = task_index_at(model, location)
        try:
            todo.insert_new_task(model.text_input.value, task_index)
        except ListlyError:
            return
        model.cursor_row = location
    else:
        todo.edit_task_description(model.edit_task_id, model.text_input.value)
    model.dirty = True
    insert_to_normal(model)