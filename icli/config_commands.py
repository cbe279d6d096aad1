"""Commands that manage the local and global configuration files."""

from __future__ import annotations

import json
import os
import shutil
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import tomli_w
import yaml

from icli.config import DEFAULT_CONFIG, Config

FORMATS = ("toml", "json", "yaml")


def generate_config(path: str | os.PathLike[str], force: bool = False) -> Path | None:
    """Write the default configuration to *path*; return it, or ``None`` if left alone.

    An existing file is kept unless *force* is set, in which case it is first
    copied to a ``.bak`` sibling.
    """
    cf = Path(path)
    if not (force or not cf.exists()):
        print(f"config file already exists: {cf}")
        return None
    if cf.exists():
        backup = cf.with_suffix(".bak")
        shutil.copyfile(cf, backup)
        print(f"backup config file: {cf} => {backup}")
    cf.parent.mkdir(parents=True, exist_ok=True)
    cf.write_text(DEFAULT_CONFIG, encoding="utf-8")
    return cf


def list_configs(
    files: Iterable[str | os.PathLike[str]], exists: bool = False, with_content: bool = False
) -> Iterator[str]:
    """Yield the output lines that list *files*, numbered, optionally with their content."""
    index = 0
    for f in map(Path, files):
        present = f.exists()
        if not exists or present:
            index += 1
            yield f"{index}: {f}"
        if with_content and present:
            yield f.read_text(encoding="utf-8").strip() + "\n"


def _drop_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_none(v) for v in value]
    return value


def render_config(config: Config, fmt: str = "toml") -> str:
    """Render *config* as ``toml``, ``json`` or ``yaml``."""
    data = config.to_dict()
    match fmt:
        case "json":
            return json.dumps(data, indent=2, ensure_ascii=False)
        case "yaml":
            return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
        case "toml":
            return tomli_w.dumps(_drop_none(data))
    raise ValueError(f"unknown output format: {fmt!r}")