"""Small filesystem helpers."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path
from typing import TextIO

StrPath = str | os.PathLike[str]


def _iter_lines(handle: TextIO) -> Iterator[str]:
    with handle:
        for line in handle:
            if line.endswith("\n"):
                line = line[:-1]
                if line.endswith("\r"):
                    line = line[:-1]
            yield line


def read_lines(path: StrPath) -> Iterator[str]:
    """Open *path* now and return an iterator over its lines without line endings."""
    handle = open(Path(path), encoding="utf-8", newline="\n")
    return _iter_lines(handle)


def set_executable(path: StrPath) -> None:
    """Mark *path* as executable (mode 0o755) on POSIX systems; no-op elsewhere."""
    if os.name == "posix":
        os.chmod(path, 0o755)