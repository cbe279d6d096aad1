"""Project configuration for shell CLI projects."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from icli import tag

log = logging.getLogger(__name__)

CONFIG_FILE_NAMES = (".shinc.toml", "shinc.toml")


class ShincConfigError(ValueError):
    """The project configuration is malformed."""


def _get(data: dict[str, Any], key: str, kind: type, section: str, required: bool = False) -> Any:
    value = data.get(key)
    if value is None:
        if required:
            raise ShincConfigError(f"missing field `{key}` in {section}")
        return None
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ShincConfigError(f"invalid type for `{key}` in {section}: expected {kind.__name__}")
    return value


def _section(data: Any, section: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ShincConfigError(f"invalid type for {section}: expected table")
    return data


@dataclass
class ProjectMeta:
    author: str | None = None
    dotenv: str | None = None
    require_tools: list[str] | None = None
    man_section: int | None = None
    inherit_flag_options: bool | None = None
    combine_shorts: bool | None = None
    symbol: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectMeta:
        data = _section(data, "project.meta")
        section = "project.meta"
        tools = _get(data, "require-tools", list, section)
        if tools is not None and not all(isinstance(t, str) for t in tools):
            raise ShincConfigError("invalid type for `require-tools` in project.meta: expected strings")
        man_section = _get(data, "man-section", int, section)
        if man_section is not None and not 0 <= man_section <= 255:
            raise ShincConfigError(f"`man-section` out of range: {man_section}")
        return cls(
            author=_get(data, "author", str, section),
            dotenv=_get(data, "dotenv", str, section),
            require_tools=tools,
            man_section=man_section,
            inherit_flag_options=_get(data, "inherit-flag-options", bool, section),
            combine_shorts=_get(data, "combine-shorts", bool, section),
            symbol=_get(data, "symbol", str, section),
        )

    def to_argc_tags(self) -> list[str]:
        tags = []
        if self.author is not None:
            tags.append(tag.meta_author(self.author))
        if self.dotenv is not None:
            tags.append(tag.meta_dotenv(self.dotenv))
        if self.require_tools is not None:
            tags.append(tag.meta_require_tools(self.require_tools))
        if self.man_section is not None:
            tags.append(tag.meta_man_section(self.man_section))
        if self.inherit_flag_options:
            tags.append(tag.meta_inherit_flag_options())
        if self.combine_shorts:
            tags.append(tag.meta_combine_shorts())
        if self.symbol is not None:
            tags.append(tag.meta_symbol(self.symbol))
        return tags


@dataclass
class Project:
    name: str
    version: str
    description: str | None = None
    meta: ProjectMeta | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        data = _section(data, "project")
        meta = data.get("meta")
        return cls(
            name=_get(data, "name", str, "project", required=True),
            version=_get(data, "version", str, "project", required=True),
            description=_get(data, "description", str, "project"),
            meta=ProjectMeta.from_dict(meta) if meta is not None else None,
        )

    def to_argc_tags(self) -> list[str]:
        """Tags for the description and version, followed by nothing else."""
        return [
            tag.describe((self.description or "").strip()),
            tag.meta_version(self.version),
        ]


@dataclass
class ShincConfig:
    project: Project
    cli: str | None = field(default=None)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShincConfig:
        data = _section(data, "config")
        if "project" not in data:
            raise ShincConfigError("missing field `project`")
        project = Project.from_dict(data["project"])
        cli = data.get("cli")
        cli_name = None
        if cli is not None:
            cli_name = _get(_section(cli, "cli"), "name", str, "cli")
        return cls(project=project, cli=cli_name)

    def cli_name(self) -> str:
        """The script name: ``cli.name`` when set, else the project name."""
        return self.cli if self.cli is not None else self.project.name


def find_config_file(path: str | os.PathLike[str]) -> Path | None:
    """Return the absolute path of the first config file found in *path*."""
    for name in CONFIG_FILE_NAMES:
        candidate = Path(path) / name
        if candidate.exists():
            return Path(os.path.abspath(candidate))
    return None


def load_config(path: str | os.PathLike[str]) -> ShincConfig:
    """Find and parse the project configuration in directory *path*."""
    cfg_file = find_config_file(path)
    if cfg_file is None:
        raise FileNotFoundError("can't find shinc config file")
    log.info("use config file: %s", cfg_file)
    with open(cfg_file, "rb") as handle:
        try:
            data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ShincConfigError(f"{cfg_file}: {exc}") from exc
    return ShincConfig.from_dict(data)