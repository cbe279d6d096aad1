"""Directory layout of a shell CLI project."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

MAIN_FILENAME = "main.sh"


@dataclass(frozen=True)
class ShincEnv:
    base_dir: Path
    src_dir: Path
    target_dir: Path

    @classmethod
    def create(cls, base_dir: str | os.PathLike[str] | None = None) -> ShincEnv:
        """Lay out the project at *base_dir* (default: the current directory)."""
        base = Path(base_dir) if base_dir is not None else Path.cwd()
        target_dir = base / "target"
        target_dir.mkdir(parents=True, exist_ok=True)
        return cls(base_dir=base, src_dir=base / "src", target_dir=target_dir)

    def target_file(self, path: str | os.PathLike[str]) -> Path:
        return self.target_dir / path

    def target_main(self) -> Path:
        return self.target_file(MAIN_FILENAME)

    def src_file(self, path: str | os.PathLike[str]) -> Path:
        return self.src_dir / path

    def src_main(self) -> Path:
        return self.src_file(MAIN_FILENAME)