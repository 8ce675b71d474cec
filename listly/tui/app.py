"""The interactive editor: event handling, screen layout and the terminal loop."""

from __future__ import annotations

import os
import shutil
import sys
from dataclasses import dataclass
from typing import Union

from listly.models import ListlyError
from listly.tui import insert, normal, visual
from listly.tui.state import Mode, Model, full_help_view, make_footer, make_header

_CSI_FINAL = {"A": "up", "B": "down", "C": "right", "D": "left", "H": "home", "F": "end"}
_CSI_TILDE = {
    "1": "home",
    "7": "home",
    "4": "end",
    "8": "end",
    "3": "delete",
    "2": "insert",
    "5": "pgup",
    "6": "pgdown",
}


@dataclass(frozen=True)
class Resize:
    """The terminal has taken a new size."""

    width: int
    height: int


Event = Union[Resize, str]


def _height(text: str) -> int:
    return text.count("\n") + 1


def _help_for(mode: Mode) -> str:
    columns = {
        Mode.NORMAL: normal.FULL_HELP,
        Mode.INSERT: insert.FULL_HELP,
        Mode.VISUAL: visual.FULL_HELP,
    }[mode]
    return full_help_view(columns)


def _render_content(model: Model) -> str:
    if model.mode is Mode.INSERT:
        return insert.render_insert_view(model)
    if model.mode is Mode.VISUAL:
        return visual.render_visual_view(model)
    return normal.render_normal_view(model)


def _set_content(model: Model, content: str) -> None:
    model.content = content
    line_count = len(content.split("\n"))
    if model.y_offset > line_count - 1:
        model.y_offset = max(0, line_count - model.height)


def _viewport_view(model: Model) -> str:
    lines = model.content.split("\n") if model.content else []
    top = max(0, model.y_offset)
    bottom = min(len(lines), max(top, model.y_offset + model.height))
    visible = lines[top:bottom]
    if model.height > 0:
        visible += [""] * (model.height - len(visible))
    return "\n".join(visible)


def ensure_cursor_visible(model: Model) -> None:
    """Scroll the view so the cursor row stays on screen."""
    top = model.y_offset
    bottom = top + model.height - 1
    if model.cursor_row < top:
        model.y_offset = model.cursor_row - 1
    elif model.cursor_row > bottom - 8:
        model.y_offset = model.cursor_row - model.height + 9


def update(model: Model, event: Event) -> bool:
    """Apply a resize or key press; return True if the editor should quit."""
    quit_requested = False
    if isinstance(event, Resize):
        header = make_header(model)
        footer = make_footer(model, full_help_view(normal.FULL_HELP))
        model.width = event.width
        model.height = event.height - (_height(header) + _height(footer))
    elif model.mode is Mode.NORMAL:
        quit_requested = normal.handle_normal_input(model, event)
    elif model.mode is Mode.INSERT:
        quit_requested = insert.handle_insert_input(model, event)
    elif model.mode is Mode.VISUAL:
        quit_requested = visual.handle_visual_input(model, event)

    ensure_cursor_visible(model)
    _set_content(model, _render_content(model) + "\nEOF")
    return quit_requested


def view(model: Model) -> str:
    """Render the whole screen."""
    if model.confirmation_active:
        return "\n" + model.confirmation_message
    body = make_header(model) + _viewport_view(model) + "\n\n"
    return body + make_footer(model, _help_for(model.mode))


def _decode_keys(data: str) -> list[str]:
    keys: list[str] = []
    i = 0
    while i < len(data):
        char = data[i]
        if char == "\x1b":
            if i + 1 >= len(data):
                keys.append("esc")
                i += 1
                continue
            follower = data[i + 1]
            if follower in "[O":
                j = i + 2
                while j < len(data) and not "@" <= data[j] <= "~":
                    j += 1
                if j >= len(data):
                    keys.append("esc")
                    i += 1
                    continue
                params = data[i + 2 : j]
                final = data[j]
                if final == "~":
                    name = _CSI_TILDE.get(params.split(";")[0])
                else:
                    name = _CSI_FINAL.get(final)
                if name:
                    keys.append(name)
                i = j + 1
            else:
                keys.append("alt+" + follower)
                i += 2
            continue
        if char in "\r\n":
            keys.append("enter")
        elif char in "\x7f\x08":
            keys.append("backspace")
        elif char == "\t":
            keys.append("tab")
        elif char == "\x00":
            keys.append("ctrl+@")
        elif ord(char) < 32:
            keys.append("ctrl+" + chr(ord(char) + 96))
        else:
            keys.append(char)
        i += 1
    return keys


def _draw(model: Model) -> None:
    screen = view(model).replace("\n", "\r\n")
    sys.stdout.write("\x1b[H\x1b[2J" + screen)
    sys.stdout.flush()


def run(model: Model) -> None:
    """Run the editor in the terminal until the user quits."""
    if not sys.stdin.isatty():
        raise ListlyError("the interactive editor needs a terminal")
    try:
        import termios
        import tty
    except ImportError as err:
        raise ListlyError("the interactive editor needs a POSIX terminal") from err

    fd = sys.stdin.fileno()
    saved = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        sys.stdout.write("\x1b[?1049h\x1b[?25l")
        size = shutil.get_terminal_size()
        update(model, Resize(size.columns, size.lines))
        _draw(model)
        while True:
            data = os.read(fd, 1024).decode("utf-8", errors="ignore")
            if not data:
                return
            current = shutil.get_terminal_size()
            if current != size:
                size = current
                update(model, Resize(size.columns, size.lines))
            for key in _decode_keys(data):
                if update(model, key):
                    return
            _draw(model)
    finally:
        sys.stdout.write("\x1b[?25h\x1b[?1049l")
        sys.stdout.flush()
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)