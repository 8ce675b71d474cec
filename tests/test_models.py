from unittest.mock import patch

import pytest

from listly.models import ListInfo, ListlyError, Task, TodoList


def test_new_list():
    todo = TodoList("testlist")
    assert todo.info.name == "testlist"
    assert (todo.info.num_done, todo.info.num_pending, todo.info.num_tasks) == (0, 0, 0)
    assert todo.tasks == {}
    assert todo.task_ids == []


def test_add_new_task():
    todo = TodoList("test")
    task_id = todo.add_new_task("task 1", False)
    assert len(todo.tasks) == 1
    task = todo.tasks[task_id]
    assert task.description == "task 1"
    assert task.done is False
    assert todo.info == ListInfo("test", num_done=0, num_pending=1, num_tasks=1)

    todo.add_new_task("task 2", True)
    assert todo.info == ListInfo("test", num_done=1, num_pending=1, num_tasks=2)


def test_task_ids_follow_insertion_order():
    todo = TodoList("list1")
    for i in range(5):
        todo.add_new_task(f"task{i + 1}", i % 2 == 0)
        task = todo.tasks[todo.task_ids[i]]
        assert task.description == f"task{i + 1}"
        assert task.done == (i % 2 == 0)
        assert task.id == todo.task_ids[i]


def test_insert():
    todo = TodoList("test")
    for i in range(5):
        todo.add_new_task(f"task {i + 1}", False)
    inserted = todo.new_task("inserted task", True)
    todo.insert(inserted, 2)
    assert len(todo.tasks) == 6
    assert todo.info == ListInfo("test", num_done=1, num_pending=5, num_tasks=6)
    assert todo.tasks[todo.task_ids[2]].description == "inserted task"


@pytest.mark.parametrize("index", [-1, 1])
def test_insert_rejects_out_of_range_index(index):
    todo = TodoList("test")
    task = todo.new_task("x", False)
    with pytest.raises(ListlyError, match="invalid index"):
        todo.insert(task, index)
    assert todo.info.num_tasks == 0


def test_add_task_rejects_duplicate_id():
    todo = TodoList("test")
    task_id = todo.add_new_task("a", False)
    with pytest.raises(ListlyError, match="already exists"):
        todo.add_task(Task(id=task_id, description="b", done=False))
    assert todo.info.num_tasks == 1


def test_insert_new_task_is_pending():
    todo = TodoList("test")
    todo.add_new_task("a", True)
    task_id = todo.insert_new_task("b", 0)
    assert todo.task_ids[0] == task_id
    assert todo.tasks[task_id].done is False
    assert todo.info.num_pending == 1


def test_remove_task():
    todo = TodoList("test")
    task_id = todo.add_new_task("task 1", False)
    todo.add_new_task("task 2", True)

    with pytest.raises(ListlyError):
        todo.remove_task(task_id + 999)

    todo.remove_task(task_id)
    assert len(todo.tasks) == 1
    assert todo.info.num_tasks == 1
    assert todo.info.num_done == 1
    assert todo.info.num_pending == 0
    assert task_id not in todo.task_ids


def test_edit_task_description():
    todo = TodoList("test")
    task_id = todo.add_new_task("task 1", False)
    todo.edit_task_description(task_id, "new desc")
    assert todo.tasks[task_id].description == "new desc"
    with pytest.raises(ListlyError):
        todo.edit_task_description(task_id + 999, "fail")


def test_toggle_completion():
    todo = TodoList("test")
    task_id = todo.add_new_task("task 1", False)

    todo.toggle_completion(task_id)
    assert todo.tasks[task_id].done is True
    assert (todo.info.num_done, todo.info.num_pending) == (1, 0)

    todo.toggle_completion(task_id)
    assert todo.tasks[task_id].done is False
    assert (todo.info.num_done, todo.info.num_pending) == (0, 1)

    with pytest.raises(ListlyError):
        todo.toggle_completion(task_id + 999)


def test_used_ids_update():
    todo = TodoList("test")
    task_id = todo.add_new_task("task1", False)
    assert task_id in todo.used_ids
    todo.remove_task(task_id)
    assert task_id not in todo.used_ids


def test_remove_task_not_found():
    with pytest.raises(ListlyError):
        TodoList("test").remove_task(999)


def test_edit_task_description_not_found():
    with pytest.raises(ListlyError):
        TodoList("test").edit_task_description(123, "doesn't exist")


def test_toggle_completion_not_found():
    with pytest.raises(ListlyError):
        TodoList("test").toggle_completion(123)


def test_list_info_tracking():
    todo = TodoList("tracktest")
    id1 = todo.add_new_task("t1", False)
    todo.add_new_task("t2", False)
    id3 = todo.add_new_task("t3", True)
    assert (todo.info.num_tasks, todo.info.num_done, todo.info.num_pending) == (3, 1, 2)

    todo.toggle_completion(id1)
    assert (todo.info.num_done, todo.info.num_pending) == (2, 1)

    todo.remove_task(id3)
    assert (todo.info.num_tasks, todo.info.num_done, todo.info.num_pending) == (2, 1, 1)

    todo.toggle_completion(id1)
    assert (todo.info.num_done, todo.info.num_pending) == (0, 2)


def test_id_generation_gives_up_after_repeated_collisions():
    todo = TodoList("test")
    todo.used_ids.add(5)
    with patch("random.getrandbits", return_value=5):
        with pytest.raises(ListlyError, match="unique task id"):
            todo.new_task("x", False)


def test_generated_ids_are_non_negative_and_unique():
    todo = TodoList("test")
    ids = [todo.add_new_task(str(i), False) for i in range(50)]
    assert len(set(ids)) == 50
    assert all(i >= 0 for i in ids)


def test_str_empty_list():
    assert str(TodoList("groceries")) == "No tasks found in list 'groceries'\n"


def test_str_lists_pending_before_completed():
    todo = TodoList("chores")
    todo.add_new_task("wash", True)
    todo.add_new_task("sweep", False)
    expected = "chores\n" + "=" * 10 + "\n   [ ] sweep\n   [x] wash\n"
    assert str(todo) == expected


def test_str_underline_matches_long_name():
    name = "a-very-long-list-name"
    todo = TodoList(name)
    todo.add_new_task("one", False)
    assert str(todo).splitlines()[1] == "=" * len(name)