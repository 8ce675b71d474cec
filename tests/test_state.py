import pytest

from listly.db import init_db
from listly.models import ListlyError, TodoList
from listly.tui.state import (
    KeyBinding,
    Mode,
    Model,
    TextInput,
    build_lines,
    full_help_view,
    make_footer,
    make_header,
    new_model,
    ordered_tasks,
    task_id_at,
    task_index_at,
)


def make_model(pending=("a", "b"), done=()):
    todo = TodoList("work")
    for description in done:
        todo.add_new_task(description, True)
    for description in pending:
        todo.add_new_task(description, False)
    return Model(todo_list=todo)


def test_ordered_tasks_pending_first():
    model = make_model(pending=("a",), done=("x",))
    assert [t.description for t in ordered_tasks(model)] == ["a", "x"]


def test_task_id_and_index_at():
    model = make_model(pending=("a",), done=("x",))
    first_id = task_id_at(model, 0)
    assert model.todo_list.tasks[first_id].description == "a"
    assert model.todo_list.task_ids[task_index_at(model, 0)] == first_id
    assert task_index_at(model, 1) == model.todo_list.task_ids.index(task_id_at(model, 1))


def test_task_id_at_out_of_range():
    model = make_model()
    with pytest.raises(IndexError):
        task_id_at(model, len(model.todo_list.tasks))
    with pytest.raises(IndexError):
        task_id_at(model, -1)


def test_build_lines_empty_list():
    model = make_model(pending=())
    assert build_lines(model, True) == ['\n No tasks in this list. Press "n" to add one.\n\n']


def test_build_lines_marks_cursor():
    model = make_model(pending=("a", "b"), done=("c",))
    model.cursor_row = 1
    assert build_lines(model, True) == [
        "\n  Todo:\n\n",
        "      [ ] a\n",
        "    > [ ] b\n",
        "\n  Complete:\n\n",
        "      [x] c\n",
    ]


def test_build_lines_without_cursor():
    model = make_model(pending=("a", "b"), done=("c",))
    assert all(">" not in line for line in build_lines(model, False))


def test_text_input_editing():
    field = TextInput()
    for char in "hi":
        field.handle_key(char)
    assert field.value == "hi"
    field.handle_key("backspace")
    assert field.value == "h"
    field.handle_key("left")
    field.handle_key("x")
    assert field.value == "xh"
    field.handle_key("end")
    field.handle_key(" ")
    assert field.value == "xh "


def test_text_input_char_limit():
    field = TextInput(char_limit=3)
    for char in "abcd":
        field.handle_key(char)
    assert field.value == "abc"
    field.set_value("abcdef")
    assert field.value == "abc"
    assert field.position == len(field.value)


def test_text_input_reset_and_placeholder():
    field = TextInput(prompt="> ", placeholder="Task Description")
    field.set_value("something")
    assert field.view() == "> something"
    field.reset()
    assert field.value == ""
    assert field.view() == "> Task Description"


def test_text_input_ignores_control_keys():
    field = TextInput()
    field.set_value("abc")
    field.handle_key("enter")
    field.handle_key("esc")
    assert field.value == "abc"


def test_key_binding_matches():
    binding = KeyBinding(("up", "k"), "↑/k", "up")
    assert binding.matches("k")
    assert binding.matches("up")
    assert not binding.matches("j")


def test_full_help_view_single():
    assert full_help_view([[KeyBinding(("q",), "q", "quit")]]) == "q quit"


def test_full_help_view_skips_hidden_bindings():
    assert full_help_view([[KeyBinding(("ctrl+c",))]]) == ""


def test_full_help_view_columns_are_aligned():
    columns = [
        [KeyBinding(("k",), "↑/k", "up"), KeyBinding(("j",), "↓/j", "down")],
        [KeyBinding(("w",), "w", "write")],
    ]
    lines = full_help_view(columns).split("\n")
    assert len(lines) == len(columns[0])
    assert len({len(line) for line in lines}) == 1
    assert "write" in lines[0]


def test_make_header_layout():
    model = make_model()
    model.width = 30
    header = make_header(model)
    lines = header.split("\n")
    assert lines[-1] == ""
    assert lines[1].startswith("│work├")
    assert all(len(line) == model.width for line in lines[:-1])


def test_make_header_marks_dirty():
    model = make_model()
    model.dirty = True
    assert "work (*)" in make_header(model)


def test_make_footer_rule():
    model = make_model()
    model.width = 20
    footer = make_footer(model, "q quit")
    assert footer.split("\n")[0] == "─" * model.width
    assert "q quit" in footer


def test_new_model_loads_list(tmp_path):
    db = init_db(tmp_path)
    todo = TodoList("work")
    todo.add_new_task("a", False)
    db.save_list(todo)
    model = new_model(db, "work")
    assert model.mode is Mode.NORMAL
    assert model.sel_start == -1
    assert model.edit_task_id == -1
    assert model.text_input.prompt == "    > [ ] "
    assert model.text_input.char_limit == 156
    assert [t.description for t in ordered_tasks(model)] == ["a"]
    db.close()


def test_new_model_missing_list(tmp_path):
    db = init_db(tmp_path)
    with pytest.raises(ListlyError):
        new_model(db, "missing")
    db.close()