"""Scaffolding of new command modules."""

from __future__ import annotations

import os
import re
from collections.abc import Iterator
from pathlib import Path, PurePath, PurePosixPath

import jinja2

CMD_FILE_SUFFIX = ".py"
MOD_FILENAME = "__init__.py"

_CMD_TEMPLATE = '''from dataclasses import dataclass


@dataclass
class {{ name_c }}Cmd:
    """The {{ name_c }} command."""

    def run(self) -> None:
        """Run the command."""
'''

_MOD_TEMPLATE = '''import enum

from . import {{ name }}


class {{ group }}Cmd(enum.Enum):
{% if c_attrs %}    # command({{ c_attrs }})
{% endif %}    {{ name_v }} = {{ name }}.{{ name_c }}Cmd
'''

_ENV = jinja2.Environment(keep_trailing_newline=True, undefined=jinja2.StrictUndefined, autoescape=False)
_SEPARATOR = re.compile(r"[\W_]+")
_BOUNDARY = re.compile(r"(?<=[a-z])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def _words(text: str) -> Iterator[str]:
    for chunk in _SEPARATOR.split(text):
        yield from (word for word in _BOUNDARY.split(chunk) if word)


def pascal_case(text: str) -> str:
    """Join the words of *text* with each word capitalised."""
    return "".join(word[:1].upper() + word[1:].lower() for word in _words(text))


def make_path(path: str | PurePath) -> Path:
    """The file path for command *path*: its components with dashes removed."""
    return Path(*(part.replace("-", "") for part in PurePosixPath(path).parts))


def make_name(path: str | PurePath) -> str:
    """The class name stem for command *path*."""
    return pascal_case(str(path))


def render_cmd(name_c: str) -> str:
    """Source of a command module."""
    return _ENV.from_string(_CMD_TEMPLATE).render(name_c=name_c)


def render_mod(group: str, name: str, name_v: str, name_c: str, c_attrs: str = "") -> str:
    """Source of a command group module."""
    return _ENV.from_string(_MOD_TEMPLATE).render(
        group=group, name=name, name_v=name_v, name_c=name_c, c_attrs=c_attrs
    )


def _create_cmd(base: Path, command: PurePosixPath) -> Path:
    filepath = base / make_path(command).with_suffix(CMD_FILE_SUFFIX)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    filepath.write_text(render_cmd(make_name(command)), encoding="utf-8")
    return filepath


def _create_mods(base: Path, command: PurePosixPath) -> Iterator[Path]:
    parts = command.parts
    for level in range(len(parts), 0, -1):
        current = PurePosixPath(*parts[:level])
        previous = PurePosixPath(*parts[: level - 1])
        filepath = make_path(current)
        parent = base / filepath.parent
        parent.mkdir(parents=True, exist_ok=True)
        mod_file = parent / MOD_FILENAME
        if mod_file.is_file():
            continue
        name = filepath.stem
        name_p = current.stem
        attrs = []
        if level != len(parts):
            attrs.append("subcommand")
        if "-" in name_p:
            attrs.append(f'name = "{name}"')
        mod_file.write_text(
            render_mod(
                group=make_name(previous),
                name=name,
                name_v=pascal_case(name_p),
                name_c=make_name(current),
                c_attrs=", ".join(attrs),
            ),
            encoding="utf-8",
        )
        yield mod_file


def create_command(path: str, commands_dir: str | os.PathLike[str] | None = None) -> list[Path]:
    """Create the module for command *path* (slash separated) and any missing group modules.

    Returns the files written.
    """
    base = Path(commands_dir) if commands_dir is not None else Path.cwd() / "src" / "commands"
    if not base.is_dir():
        raise FileNotFoundError(f"can't find the commands directory: {base}")
    command = PurePosixPath(path)
    if not command.parts:
        raise ValueError("command path is empty")
    written = [_create_cmd(base, command)]
    written.extend(_create_mods(base, command))
    return written