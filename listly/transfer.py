"""Reading and writing todo lists as JSON or YAML documents."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any, Optional, Union

import yaml
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from listly.models import ListlyError, TodoList

_LIST_FIELDS = ("title", "tasks")
_TASK_FIELDS = ("description", "done")
_YAML_NULL = "tag:yaml.org,2002:null"
_YAML_BOOL = "tag:yaml.org,2002:bool"
_YAML_TRUE = {"yes", "true", "on", "y"}
_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}

Content = Union[bytes, str]
_Dto = tuple[str, list[tuple[str, bool]]]


def _unsupported(ext: str) -> ListlyError:
    return ListlyError(
        f'unsupported file format: "{ext}". Supported formats are JSON and YAML'
    )


def _text(content: Content) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def _ordered_tasks(todo_list: TodoList) -> list[dict[str, Any]]:
    ids = [task_id for task_id in todo_list.task_ids if task_id in todo_list.tasks]
    seen = set(ids)
    ids.extend(task_id for task_id in todo_list.tasks if task_id not in seen)
    return [
        {"description": todo_list.tasks[i].description, "done": todo_list.tasks[i].done}
        for i in ids
    ]


def _dump_json(dtos: list[dict[str, Any]]) -> bytes:
    for dto in dtos:
        if not dto["tasks"]:
            dto["tasks"] = None
    text = json.dumps(dtos, indent=2, ensure_ascii=False)
    for char, escape in _JSON_ESCAPES.items():
        text = text.replace(char, escape)
    return text.encode("utf-8")


def _dump_yaml(dtos: list[dict[str, Any]]) -> bytes:
    text = yaml.safe_dump(
        dtos, sort_keys=False, allow_unicode=True, default_flow_style=False
    )
    return text.encode("utf-8")


def data_to_file(lists: Iterable[TodoList], ext: str) -> bytes:
    """Serialise lists as a JSON or YAML document chosen by file extension."""
    dtos = [
        {"title": todo_list.info.name, "tasks": _ordered_tasks(todo_list)}
        for todo_list in lists
    ]
    if ext == ".json":
        return _dump_json(dtos)
    if ext == ".yaml":
        return _dump_yaml(dtos)
    raise _unsupported(ext)


# ----------------------------------------------------------------- JSON input


def _json_kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "null"


def _json_type_error(value: Any, target: str) -> ListlyError:
    return ListlyError(f"json: cannot decode {_json_kind(value)} into {target}")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid character {name!r} looking for beginning of value")


def _json_fields(obj: dict, fields: tuple[str, ...]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in obj.items():
        name = next((f for f in fields if f == key), None)
        if name is None:
            name = next((f for f in fields if f.casefold() == key.casefold()), None)
        if name is None:
            raise ListlyError(f'json: unknown field "{key}"')
        out[name] = value
    return out


def _json_string(value: Any, target: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _json_type_error(value, target)
    return value


def _json_task(value: Any) -> tuple[str, bool]:
    if value is None:
        return "", False
    if not isinstance(value, dict):
        raise _json_type_error(value, "task")
    fields = _json_fields(value, _TASK_FIELDS)
    description = _json_string(fields.get("description"), "task.description")
    done = fields.get("done")
    if done is None:
        done = False
    elif not isinstance(done, bool):
        raise _json_type_error(done, "task.done")
    return description, done


def _json_list(value: Any) -> _Dto:
    if value is None:
        return "", []
    if not isinstance(value, dict):
        raise _json_type_error(value, "list")
    fields = _json_fields(value, _LIST_FIELDS)
    title = _json_string(fields.get("title"), "list.title")
    tasks = fields.get("tasks")
    if tasks is None:
        return title, []
    if not isinstance(tasks, list):
        raise _json_type_error(tasks, "list.tasks")
    return title, [_json_task(task) for task in tasks]


def _parse_json(text: str) -> list[_Dto]:
    stripped = text.lstrip(" \t\r\n")
    if not stripped:
        raise ListlyError("EOF")
    decoder = json.JSONDecoder(parse_constant=_reject_constant)
    try:
        value, _ = decoder.raw_decode(stripped)
    except ValueError as err:
        raise ListlyError(f"invalid JSON: {err}") from err
    if value is None:
        return []
    if not isinstance(value, list):
        raise _json_type_error(value, "array of lists")
    return [_json_list(item) for item in value]


# ----------------------------------------------------------------- YAML input


def _is_null(node: Node) -> bool:
    return isinstance(node, ScalarNode) and node.tag == _YAML_NULL


def _yaml_type_error(node: Node, target: str) -> ListlyError:
    line = node.start_mark.line + 1
    shown = node.value if isinstance(node, ScalarNode) else node.id
    return ListlyError(f"line {line}: cannot decode {shown!r} into {target}")


def _yaml_fields(node: MappingNode, fields: tuple[str, ...], type_name: str) -> dict[str, Node]:
    out: dict[str, Node] = {}
    for key_node, value_node in node.value:
        key = key_node.value if isinstance(key_node, ScalarNode) else None
        line = key_node.start_mark.line + 1
        if key not in fields:
            raise ListlyError(f"line {line}: field {key} not found in type {type_name}")
        if key in out:
            raise ListlyError(f"line {line}: mapping key {key!r} already defined")
        out[key] = value_node
    return out


def _yaml_string(node: Optional[Node], target: str) -> str:
    if node is None or _is_null(node):
        return ""
    if not isinstance(node, ScalarNode):
        raise _yaml_type_error(node, target)
    return node.value


def _yaml_bool(node: Optional[Node], target: str) -> bool:
    if node is None or _is_null(node):
        return False
    if not isinstance(node, ScalarNode) or node.tag != _YAML_BOOL:
        raise _yaml_type_error(node, target)
    return node.value.lower() in _YAML_TRUE


def _yaml_task(node: Node) -> tuple[str, bool]:
    if _is_null(node):
        return "", False
    if not isinstance(node, MappingNode):
        raise _yaml_type_error(node, "task")
    fields = _yaml_fields(node, _TASK_FIELDS, "task")
    return (
        _yaml_string(fields.get("description"), "task.description"),
        _yaml_bool(fields.get("done"), "task.done"),
    )


def _yaml_list(node: Node) -> _Dto:
    if _is_null(node):
        return "", []
    if not isinstance(node, MappingNode):
        raise _yaml_type_error(node, "list")
    fields = _yaml_fields(node, _LIST_FIELDS, "list")
    title = _yaml_string(fields.get("title"), "list.title")
    tasks = fields.get("tasks")
    if tasks is None or _is_null(tasks):
        return title, []
    if not isinstance(tasks, SequenceNode):
        raise _yaml_type_error(tasks, "list.tasks")
    return title, [_yaml_task(task) for task in tasks.value]


def _parse_yaml(text: str) -> list[_Dto]:
    try:
        root = next(yaml.compose_all(text, Loader=yaml.SafeLoader), None)
    except yaml.YAMLError as err:
        raise ListlyError(f"invalid YAML: {err}") from err
    if root is None:
        raise ListlyError("EOF")
    if _is_null(root):
        return []
    if not isinstance(root, SequenceNode):
        raise _yaml_type_error(root, "array of lists")
    return [_yaml_list(item) for item in root.value]


def file_to_data(content: Content, ext: str) -> list[TodoList]:
    """Parse a JSON or YAML document, chosen by file extension, into lists."""
    if ext == ".json":
        dtos = _parse_json(_text(content))
    elif ext == ".yaml":
        dtos = _parse_yaml(_text(content))
    else:
        raise _unsupported(ext)

    lists = []
    for title, tasks in dtos:
        todo_list = TodoList(title)
        for description, done in tasks:
            todo_list.add_new_task(description, done)
        lists.append(todo_list)
    return lists