# listly

listly keeps any number of named todo lists in a single local file. It
gives you a Python API to create, change, clean and rename lists, a
full-screen terminal editor with Vim-style keys for one list at a time,
and JSON/YAML import and export.

## Installation

```
pip install .
```

Running the test suite needs the `test` extra:

```
pip install ".[test]"
pytest
```

## Lists and tasks

`listly.models.TodoList` holds ordered tasks (`listly.models.Task`) and a
summary (`listly.models.ListInfo`) with the numbers of done, pending and
total tasks, which every change keeps up to date.

```python
from listly.models import TodoList

groceries = TodoList("Groceries")
milk = groceries.add_new_task("milk", False)
groceries.add_new_task("bread", True)
groceries.insert_new_task("eggs", 0)
groceries.toggle_completion(milk)
groceries.edit_task_description(milk, "oat milk")
print(groceries)
```

Printing a list shows its name, a rule, the pending tasks as `[ ]` and
then the completed tasks as `[x]`. Operations on a task id that does not
exist, or an insert at an index out of range, raise
`listly.models.ListlyError`.

## Storage

`listly.db.init_db(directory)` creates the directory if needed and opens
the store file `listly.db` inside it. `listly.db.with_default_db()` does
the same for a `listly` directory in your user configuration directory
and closes it when the block ends.

```python
from listly.db import init_db

with init_db("/tmp/listly-demo") as db:
    db.save_list(groceries)
    db.set_current_list_name("Groceries")
    print(db.get_info())                 # name -> ListInfo for every list
    print(db.get_list("Groceries"))
    db.rename_list("Groceries", "Shopping")  # the current list follows
    removed = db.clean_current_list()    # drop completed tasks, returns how many
    db.delete_lists(["Shopping"])
```

Other methods: `list_exists`, `get_current_list_name`, `clean_lists`,
`clean_all_lists`, `delete_all_lists`, and `set_api_key` /
`get_api_key` for keeping a key in the store's settings. Each change is
written to disk when it succeeds; a change that raises leaves the file as
it was.

## Import and export

`listly.transfer.data_to_file(lists, ext)` turns lists into the bytes of
a JSON (`".json"`) or YAML (`".yaml"`) document, and
`listly.transfer.file_to_data(content, ext)` reads such a document back
into `TodoList` objects. Any other extension raises `ListlyError`, as do
unknown fields and values of the wrong type.

```yaml
- title: Groceries
  tasks:
    - description: milk
      done: false
    - description: bread
      done: true
```

## Terminal editor

```python
from listly.db import init_db
from listly.tui.app import run
from listly.tui.state import new_model

with init_db("/tmp/listly-demo") as db:
    run(new_model(db, "Groceries"))
```

`run` needs an interactive POSIX terminal and raises `ListlyError`
otherwise. Pending tasks are shown first, then completed ones.

Normal mode:

| Key | Action |
| --- | --- |
| `j` / `k`, arrows | move down / up |
| `J` / `K` | move down / up by four tasks |
| `{` / `}` | jump between the pending and completed sections |
| `n` | new task at the end of the pending tasks |
| `o` / `O` | new task after / before the cursor |
| `i` | edit the task under the cursor |
| `x` | clear and rewrite the task under the cursor |
| `d` | cut the task |
| `y` | yank the task |
| `p` / `P` | paste after / before |
| space | mark done / not done |
| `v` | visual mode |
| `w` | save the list to the store |
| `q` | quit (asks first when there are unsaved changes) |
| `ctrl+c` | quit without asking |

Insert mode: `enter` keeps the text, `esc` discards it.

Visual mode: move to extend the selection, then `y` to yank, `d` or `x`
to cut, space to toggle completion, `esc` or `v` to go back.

## What is not included

- There is no `listly` command: the package is used from Python, as
  shown above.
- There is no drafting of lists from a text description by a language
  model; the stored API key is only kept, not used.