"""Persistent storage of todo lists in a file-backed store of nested buckets."""

from __future__ import annotations

import os
import struct
import sys
import tempfile
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union

from listly.encoding import (
    bool_to_bytes,
    btoi,
    bytes_to_bool,
    bytes_to_ints,
    ints_to_bytes,
    itob,
)
from listly.models import ListInfo, ListlyError, Task, TodoList

# Layout of the store:
#   currentList: {name}
#   config:      {api_key}
#   lists:       {<list name>: {info: {name, numDone, numPending, numTasks},
#                               data: {taskIds, tasks: {<id>: {id, description, done}}}}}

_MAGIC = b"LISTLY\x00\x01"
_VALUE_TAG = 0
_BUCKET_TAG = 1
_LEN = struct.Struct(">I")

CURRENT_LIST = b"currentList"
LISTS = b"lists"
CONFIG = b"config"
DB_FILE_NAME = "listly.db"

_LISTS_MISSING_INIT = "lists bucket not found - likely issue with database initialization"
_LISTS_MISSING = "lists bucket not found"

Name = Union[str, bytes]


def _key(name: Name) -> bytes:
    return name.encode("utf-8") if isinstance(name, str) else bytes(name)


def _text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


class Bucket:
    """A handle on a bucket: byte keys mapping to values or nested buckets."""

    def __init__(self, node: dict, writable: bool) -> None:
        self._node = node
        self._writable = writable

    def _check_writable(self) -> None:
        if not self._writable:
            raise ListlyError("tx not writable")

    def bucket(self, name: Name) -> Optional[Bucket]:
        """Return the nested bucket with this name, or None."""
        child = self._node.get(_key(name))
        return Bucket(child, self._writable) if isinstance(child, dict) else None

    def create_bucket(self, name: Name) -> Bucket:
        """Create a nested bucket; it must not exist yet."""
        self._check_writable()
        key = _key(name)
        if not key:
            raise ListlyError("bucket name required")
        existing = self._node.get(key)
        if isinstance(existing, dict):
            raise ListlyError("bucket already exists")
        if existing is not None:
            raise ListlyError("incompatible value")
        child: dict = {}
        self._node[key] = child
        return Bucket(child, True)

    def create_bucket_if_not_exists(self, name: Name) -> Bucket:
        """Return the nested bucket with this name, creating it if needed."""
        self._check_writable()
        key = _key(name)
        if not key:
            raise ListlyError("bucket name required")
        existing = self._node.get(key)
        if isinstance(existing, dict):
            return Bucket(existing, True)
        if existing is not None:
            raise ListlyError("incompatible value")
        child: dict = {}
        self._node[key] = child
        return Bucket(child, True)

    def delete_bucket(self, name: Name) -> None:
        """Remove a nested bucket and everything in it."""
        self._check_writable()
        key = _key(name)
        existing = self._node.get(key)
        if existing is None:
            raise ListlyError("bucket not found")
        if not isinstance(existing, dict):
            raise ListlyError("incompatible value")
        del self._node[key]

    def get(self, key: Name) -> Optional[bytes]:
        """Return the value at key, or None if absent or a nested bucket."""
        value = self._node.get(_key(key))
        return value if isinstance(value, bytes) else None

    def put(self, key: Name, value: Union[bytes, str]) -> None:
        """Store a value under key."""
        self._check_writable()
        k = _key(key)
        if not k:
            raise ListlyError("key required")
        if isinstance(self._node.get(k), dict):
            raise ListlyError("incompatible value")
        self._node[k] = _key(value)

    def items(self) -> Iterator[tuple[bytes, Optional[bytes]]]:
        """Yield (key, value) in key order; value is None for nested buckets."""
        for key in sorted(self._node):
            if key not in self._node:
                continue
            value = self._node[key]
            yield key, (None if isinstance(value, dict) else value)


class Transaction:
    """A view of the top-level buckets, read-only or writable."""

    def __init__(self, root: dict, writable: bool) -> None:
        self._root = Bucket(root, writable)
        self.writable = writable

    def bucket(self, name: Name) -> Optional[Bucket]:
        """Return the top-level bucket with this name, or None."""
        return self._root.bucket(name)


def _copy_node(node: dict) -> dict:
    return {k: _copy_node(v) if isinstance(v, dict) else v for k, v in node.items()}


def _encode_node(node: dict, out: bytearray) -> None:
    out += _LEN.pack(len(node))
    for key in sorted(node):
        value = node[key]
        out += _LEN.pack(len(key))
        out += key
        if isinstance(value, dict):
            out.append(_BUCKET_TAG)
            _encode_node(value, out)
        else:
            out.append(_VALUE_TAG)
            out += _LEN.pack(len(value))
            out += value


def _take(data: bytes, offset: int, size: int) -> tuple[bytes, int]:
    end = offset + size
    if end > len(data):
        raise ListlyError("database file is corrupt")
    return data[offset:end], end


def _decode_node(data: bytes, offset: int) -> tuple[dict, int]:
    raw, offset = _take(data, offset, _LEN.size)
    (count,) = _LEN.unpack(raw)
    node: dict = {}
    for _ in range(count):
        raw, offset = _take(data, offset, _LEN.size)
        key, offset = _take(data, offset, _LEN.unpack(raw)[0])
        tag, offset = _take(data, offset, 1)
        if tag[0] == _BUCKET_TAG:
            value, offset = _decode_node(data, offset)
        elif tag[0] == _VALUE_TAG:
            raw, offset = _take(data, offset, _LEN.size)
            value, offset = _take(data, offset, _LEN.unpack(raw)[0])
        else:
            raise ListlyError("database file is corrupt")
        node[key] = value
    return node, offset


def _load(path: Path) -> dict:
    if not path.exists():
        return {}
    data = path.read_bytes()
    if not data:
        return {}
    if not data.startswith(_MAGIC):
        raise ListlyError(f"invalid database file {path}")
    node, offset = _decode_node(data, len(_MAGIC))
    if offset != len(data):
        raise ListlyError("database file is corrupt")
    return node


def _write_file(path: Path, node: dict) -> None:
    out = bytearray(_MAGIC)
    _encode_node(node, out)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".listly-")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(out)
        os.chmod(tmp_name, 0o700)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def _require(bucket: Optional[Bucket], message: str) -> Bucket:
    if bucket is None:
        raise ListlyError(message)
    return bucket


def _tally(name: str, tasks: Iterable[Task]) -> ListInfo:
    info = ListInfo(name=name)
    for task in tasks:
        info.num_tasks += 1
        if task.done:
            info.num_done += 1
        else:
            info.num_pending += 1
    return info


def _save_task(bucket: Bucket, task: Task) -> None:
    task_bucket = bucket.create_bucket_if_not_exists(itob(task.id))
    task_bucket.put("id", itob(task.id))
    task_bucket.put("description", task.description.encode("utf-8"))
    task_bucket.put("done", bool_to_bytes(task.done))


def _get_task(bucket: Bucket) -> Task:
    description = bucket.get("description")
    if description is None:
        raise ListlyError("description not found")
    done = bucket.get("done")
    if done is None:
        raise ListlyError("done not found")
    task_id = bucket.get("id")
    if task_id is None:
        raise ListlyError("id not found")
    return Task(id=btoi(task_id), description=_text(description), done=bytes_to_bool(done))


def _save_info(bucket: Bucket, info: ListInfo) -> None:
    if not info.name:
        raise ListlyError("name is required")
    bucket.put("name", info.name.encode("utf-8"))
    bucket.put("numDone", itob(info.num_done))
    bucket.put("numPending", itob(info.num_pending))
    bucket.put("numTasks", itob(info.num_tasks))


def _get_info(bucket: Bucket) -> ListInfo:
    name = bucket.get("name")
    if not name:
        raise ListlyError("name not found")
    fields = {}
    for key in ("numDone", "numPending", "numTasks"):
        raw = bucket.get(key)
        if raw is None:
            raise ListlyError(f"{key} not found")
        fields[key] = btoi(raw)
    return ListInfo(
        name=_text(name),
        num_done=fields["numDone"],
        num_pending=fields["numPending"],
        num_tasks=fields["numTasks"],
    )


def _save_data(bucket: Bucket, todo_list: TodoList) -> None:
    bucket.put("taskIds", ints_to_bytes(todo_list.task_ids))
    tasks_bucket = bucket.create_bucket_if_not_exists("tasks")
    for task in todo_list.tasks.values():
        _save_task(tasks_bucket, task)


def _get_data(bucket: Bucket) -> tuple[list[int], dict[int, Task]]:
    raw_ids = bucket.get("taskIds")
    if raw_ids is None:
        raise ListlyError("taskIds not found")
    tasks_bucket = _require(bucket.bucket("tasks"), "tasks bucket not found")
    task_ids = bytes_to_ints(raw_ids)
    tasks: dict[int, Task] = {}
    for task_id in task_ids:
        task_bucket = _require(tasks_bucket.bucket(itob(task_id)), f"task bucket {task_id} not found")
        tasks[task_id] = _get_task(task_bucket)
    return task_ids, tasks


def _open_list(root: Bucket, name: str, create: bool) -> tuple[Bucket, Bucket]:
    def child(parent: Bucket, field: str) -> Bucket:
        if create:
            return parent.create_bucket_if_not_exists(field)
        return _require(parent.bucket(field), f"bucket {field} not found")

    list_bucket = child(root, name)
    return child(list_bucket, "info"), child(list_bucket, "data")


def _copy_bucket(src: Bucket, dst: Bucket) -> None:
    for key, value in src.items():
        if value is None:
            sub_src = _require(src.bucket(key), f"sub-bucket {_text(key)} not found")
            _copy_bucket(sub_src, dst.create_bucket(key))
        else:
            dst.put(key, value)


def _get_curr_list_name(tx: Transaction) -> str:
    current = tx.bucket(CURRENT_LIST)
    if current is None:
        return ""
    name = current.get("name")
    return "" if name is None else _text(name)


def _set_curr_list_name(tx: Transaction, name: str) -> None:
    current = _require(
        tx.bucket(CURRENT_LIST),
        "currentList bucket not found - likely issue with database initialization",
    )
    current.put("name", name.encode("utf-8"))


def _clean_list(bucket: Bucket) -> int:
    data_bucket = _require(bucket.bucket("data"), "data bucket not found")
    tasks_bucket = _require(data_bucket.bucket("tasks"), "tasks bucket not found")
    removed = 0
    remaining: list[int] = []
    for key, value in list(tasks_bucket.items()):
        if value is not None:
            continue
        task_bucket = _require(tasks_bucket.bucket(key), f"task bucket {_text(key)} not found")
        try:
            task = _get_task(task_bucket)
        except ListlyError:
            continue
        if task.done:
            removed += 1
            tasks_bucket.delete_bucket(key)
        else:
            remaining.append(btoi(key))
    data_bucket.put("taskIds", ints_to_bytes(remaining))

    info_bucket = _require(bucket.bucket("info"), "info bucket not found")
    info = _get_info(info_bucket)
    info.num_tasks -= removed
    info.num_done = 0
    _save_info(info_bucket, info)
    return removed


class Database:
    """Todo lists, the current list name and settings, kept in one file."""

    def __init__(self, path: Path, root: dict) -> None:
        self.path = path
        self._root = root
        self._closed = False

    def _ensure_open(self) -> None:
        if self._closed:
            raise ListlyError("database not open")

    @contextmanager
    def view(self) -> Iterator[Transaction]:
        """Open a read-only transaction."""
        self._ensure_open()
        yield Transaction(self._root, writable=False)

    @contextmanager
    def update(self) -> Iterator[Transaction]:
        """Open a writable transaction, committed only if the block succeeds."""
        self._ensure_open()
        working = _copy_node(self._root)
        yield Transaction(working, writable=True)
        _write_file(self.path, working)
        self._root = working

    def get_info(self) -> dict[str, ListInfo]:
        """Return the summary of every stored list, keyed by name."""
        all_info: dict[str, ListInfo] = {}
        with self.view() as tx:
            lists = _require(tx.bucket(LISTS), _LISTS_MISSING_INIT)
            for key, value in lists.items():
                if value is not None:
                    continue
                list_bucket = _require(
                    lists.bucket(key), f"sub-bucket {_text(key)} not found in lists bucket"
                )
                info_bucket = _require(
                    list_bucket.bucket("info"),
                    f"info bucket not found in list bucket {_text(key)}",
                )
                info = _get_info(info_bucket)
                all_info[info.name] = info
        return all_info

    def get_list(self, name: str) -> TodoList:
        """Load the list with the given name."""
        with self.view() as tx:
            lists = _require(tx.bucket(LISTS), _LISTS_MISSING_INIT)
            try:
                _, data_bucket = _open_list(lists, name, create=False)
            except ListlyError as err:
                raise ListlyError(f"failed to open list {name}: {err}") from err
            try:
                task_ids, tasks = _get_data(data_bucket)
            except ListlyError as err:
                raise ListlyError(f"failed to get data for list {name}: {err}") from err
        todo_list = TodoList(name)
        todo_list.task_ids = task_ids
        todo_list.tasks = tasks
        todo_list.used_ids = set(task_ids)
        todo_list.info = _tally(name, tasks.values())
        return todo_list

    def get_current_list_name(self) -> str:
        """Return the name of the active list, or "" if none is set."""
        with self.view() as tx:
            return _get_curr_list_name(tx)

    def set_current_list_name(self, name: str) -> None:
        """Make the named list the active one."""
        with self.update() as tx:
            if not name:
                raise ListlyError("cannot have empty name")
            _set_curr_list_name(tx, name)

    def save_list(self, todo_list: TodoList) -> None:
        """Store the list, creating it if needed."""
        with self.update() as tx:
            lists = _require(tx.bucket(LISTS), _LISTS_MISSING_INIT)
            info_bucket, data_bucket = _open_list(lists, todo_list.info.name, create=True)
            _save_info(info_bucket, _tally(todo_list.info.name, todo_list.tasks.values()))
            _save_data(data_bucket, todo_list)

    def rename_list(self, old_name: str, new_name: str) -> None:
        """Move a list to a new name, following it as the current list."""
        with self.update() as tx:
            lists = _require(tx.bucket(LISTS), _LISTS_MISSING)
            old_bucket = _require(lists.bucket(old_name), f"old list {old_name} not found")
            try:
                new_bucket = lists.create_bucket(new_name)
            except ListlyError as err:
                raise ListlyError(
                    f"could not create new bucket {new_name} due to the following error\n\t {err}"
                ) from err
            try:
                _copy_bucket(old_bucket, new_bucket)
            except ListlyError as err:
                raise ListlyError(
                    f"could not copy bucket {old_name} to {new_name} "
                    f"due to the following error\n\t {err}"
                ) from err
            lists.delete_bucket(old_name)

            list_bucket = _require(lists.bucket(new_name), f"list bucket {new_name} not found")
            info_bucket = _require(
                list_bucket.bucket("info"), f"info bucket not found for list {new_name}"
            )
            info = _get_info(info_bucket)
            info.name = new_name
            _save_info(info_bucket, info)

            if _get_curr_list_name(tx) == old_name:
                _set_curr_list_name(tx, new_name)

    def delete_lists(self, names: Iterable[str]) -> None:
        """Remove the named lists; names that do not exist are ignored."""
        with self.update() as tx:
            lists = _require(tx.bucket(LISTS), _LISTS_MISSING)
            current = _get_curr_list_name(tx)
            for name in names:
                if name == current:
                    _set_curr_list_name(tx, "")
                try:
                    lists.delete_bucket(name)
                except ListlyError:
                    pass

    def delete_all_lists(self) -> None:
        """Remove every list and clear the current list."""
        with self.update() as tx:
            lists = _require(tx.bucket(LISTS), _LISTS_MISSING)
            _set_curr_list_name(tx, "")
            for key, _ in list(lists.items()):
                lists.delete_bucket(key)

    def clean_lists(self, names: Iterable[str]) -> int:
        """Remove completed tasks from the named lists; return how many."""
        total = 0
        with self.update() as tx:
            lists = _require(tx.bucket(LISTS), _LISTS_MISSING)
            for name in names:
                list_bucket = lists.bucket(name)
                if list_bucket is not None:
                    total += _clean_list(list_bucket)
        return total

    def clean_all_lists(self) -> int:
        """Remove completed tasks from every list; return how many."""
        total = 0
        with self.update() as tx:
            lists = _require(tx.bucket(LISTS), _LISTS_MISSING)
            for key, _ in list(lists.items()):
                list_bucket = lists.bucket(key)
                if list_bucket is not None:
                    total += _clean_list(list_bucket)
        return total

    def clean_current_list(self) -> int:
        """Remove completed tasks from the current list; return how many."""
        with self.update() as tx:
            name = _get_curr_list_name(tx)
            lists = _require(tx.bucket(LISTS), _LISTS_MISSING)
            list_bucket = lists.bucket(name)
            return 0 if list_bucket is None else _clean_list(list_bucket)

    def list_exists(self, name: str) -> bool:
        """Tell whether a list with this name is stored."""
        return name in self.get_info()

    def set_api_key(self, api_key: str) -> None:
        """Store the API key; an empty key clears it."""
        with self.update() as tx:
            config = _require(tx.bucket(CONFIG), "config bucket not found")
            config.put("api_key", api_key.encode("utf-8"))

    def get_api_key(self) -> str:
        """Return the stored API key, or "" if none."""
        with self.view() as tx:
            config = _require(tx.bucket(CONFIG), "config bucket not found")
            value = config.get("api_key")
            return "" if value is None else _text(value)

    def close(self) -> None:
        """Close the database; later operations raise."""
        self._closed = True

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def init_db(path: Union[str, os.PathLike]) -> Database:
    """Open (creating if needed) the database kept in the given directory."""
    directory = Path(path)
    directory.mkdir(mode=0o700, parents=True, exist_ok=True)
    db_path = directory / DB_FILE_NAME
    db = Database(db_path, _load(db_path))
    with db.update() as tx:
        for name in (CURRENT_LIST, LISTS, CONFIG):
            tx._root.create_bucket_if_not_exists(name)
    return db


def default_db_dir() -> Path:
    """Return the directory for the database in the user's config directory."""
    if sys.platform == "win32":
        base = os.environ.get("APPDATA")
        if not base:
            raise ListlyError("%AppData% is not defined")
        config = Path(base)
    elif sys.platform == "darwin":
        home = os.environ.get("HOME")
        if not home:
            raise ListlyError("$HOME is not defined")
        config = Path(home) / "Library" / "Application Support"
    else:
        xdg = os.environ.get("XDG_CONFIG_HOME")
        if xdg:
            if not os.path.isabs(xdg):
                raise ListlyError("path in $XDG_CONFIG_HOME is relative")
            config = Path(xdg)
        else:
            home = os.environ.get("HOME")
            if not home:
                raise ListlyError("neither $XDG_CONFIG_HOME nor $HOME are defined")
            config = Path(home) / ".config"
    return config / "listly"


def init_default_db() -> Database:
    """Open the database in the user's config directory."""
    return init_db(default_db_dir())


@contextmanager
def with_default_db() -> Iterator[Database]:
    """Open the default database for the duration of a block."""
    try:
        db = init_default_db()
    except (OSError, ListlyError) as err:
        raise ListlyError(
            f"could not initialize database due to the following error\n\t {err}"
        ) from err
    try:
        yield db
    finally:
        db.close()