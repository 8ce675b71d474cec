import json

import pytest
import yaml

from listly.models import ListlyError, TodoList
from listly.transfer import data_to_file, file_to_data


def _sample():
    groceries = TodoList("Groceries")
    groceries.add_new_task("milk", False)
    groceries.add_new_task("eggs", True)
    chores = TodoList("Chores")
    return [groceries, chores]


def _summary(lists):
    return [
        (
            todo.info.name,
            [(todo.tasks[i].description, todo.tasks[i].done) for i in todo.task_ids],
        )
        for todo in lists
    ]


@pytest.mark.parametrize("ext", [".json", ".yaml"])
def test_round_trip(ext):
    lists = _sample()
    restored = file_to_data(data_to_file(lists, ext), ext)
    assert _summary(restored) == _summary(lists)


@pytest.mark.parametrize("ext", [".json", ".yaml"])
def test_round_trip_counts(ext):
    restored = file_to_data(data_to_file(_sample(), ext), ext)
    info = restored[0].info
    assert (info.num_tasks, info.num_done, info.num_pending) == (2, 1, 1)


def test_json_structure():
    data = json.loads(data_to_file(_sample(), ".json"))
    assert data == [
        {
            "title": "Groceries",
            "tasks": [
                {"description": "milk", "done": False},
                {"description": "eggs", "done": True},
            ],
        },
        {"title": "Chores", "tasks": None},
    ]


def test_json_exact_output_for_empty_list():
    assert data_to_file([TodoList("A")], ".json") == (
        b'[\n  {\n    "title": "A",\n    "tasks": null\n  }\n]'
    )


def test_json_escapes_html_characters():
    todo = TodoList("a<b")
    out = data_to_file([todo], ".json")
    assert b"\\u003c" in out
    assert json.loads(out)[0]["title"] == "a<b"


def test_json_keeps_task_order_after_insert():
    todo = TodoList("L")
    todo.add_new_task("first", False)
    todo.add_new_task("third", False)
    todo.insert_new_task("second", 1)
    data = json.loads(data_to_file([todo], ".json"))
    assert [t["description"] for t in data[0]["tasks"]] == ["first", "second", "third"]


def test_yaml_output_is_loadable():
    data = yaml.safe_load(data_to_file(_sample(), ".yaml"))
    assert data[0]["title"] == "Groceries"
    assert data[0]["tasks"][1] == {"description": "eggs", "done": True}


def test_export_unsupported_extension():
    with pytest.raises(ListlyError, match='unsupported file format: ".txt"'):
        data_to_file(_sample(), ".txt")


def test_import_unsupported_extension():
    with pytest.raises(ListlyError, match="Supported formats are JSON and YAML"):
        file_to_data(b"[]", ".yml")


def test_json_case_insensitive_fields():
    lists = file_to_data('[{"Title": "A", "TASKS": [{"Description": "x", "DONE": true}]}]', ".json")
    assert _summary(lists) == [("A", [("x", True)])]


def test_json_null_document_gives_no_lists():
    assert file_to_data(b"null", ".json") == []


def test_json_trailing_data_ignored():
    lists = file_to_data(b'[{"title": "A"}] trailing', ".json")
    assert _summary(lists) == [("A", [])]


def test_json_unknown_field_rejected():
    with pytest.raises(ListlyError, match="unknown field"):
        file_to_data(b'[{"title": "A", "color": "red"}]', ".json")


def test_json_unknown_task_field_rejected():
    with pytest.raises(ListlyError, match="unknown field"):
        file_to_data(b'[{"title": "A", "tasks": [{"priority": 1}]}]', ".json")


def test_json_wrong_type_rejected():
    with pytest.raises(ListlyError):
        file_to_data(b'[{"title": "A", "tasks": [{"description": 5}]}]', ".json")


def test_json_top_level_object_rejected():
    with pytest.raises(ListlyError):
        file_to_data(b'{"title": "A"}', ".json")


def test_json_invalid_rejected():
    with pytest.raises(ListlyError):
        file_to_data(b"[{", ".json")


def test_json_empty_rejected():
    with pytest.raises(ListlyError):
        file_to_data(b"  ", ".json")


def test_yaml_scalars_become_strings():
    content = "- title: 2024\n  tasks:\n    - description: 42\n      done: yes\n"
    lists = file_to_data(content, ".yaml")
    assert _summary(lists) == [("2024", [("42", True)])]


def test_yaml_missing_fields_take_zero_values():
    lists = file_to_data("- title: A\n  tasks:\n    - description: x\n", ".yaml")
    assert _summary(lists) == [("A", [("x", False)])]


def test_yaml_unknown_field_rejected():
    with pytest.raises(ListlyError, match="field color not found"):
        file_to_data("- title: A\n  color: red\n", ".yaml")


def test_yaml_duplicate_key_rejected():
    with pytest.raises(ListlyError, match="already defined"):
        file_to_data("- title: A\n  title: B\n", ".yaml")


def test_yaml_bad_bool_rejected():
    with pytest.raises(ListlyError):
        file_to_data("- title: A\n  tasks:\n    - done: maybe\n", ".yaml")


def test_yaml_empty_document_rejected():
    with pytest.raises(ListlyError):
        file_to_data(b"", ".yaml")