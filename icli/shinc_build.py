"""Build a shell CLI project into a single argc-driven script."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterator
from pathlib import Path

from icli.fsutil import read_lines, set_executable
from icli.shinc_config import ShincConfig, load_config
from icli.shinc_env import ShincEnv

log = logging.getLogger(__name__)

INCLUDE_PATTERN = re.compile(r'include\s+"(?P<filename>.+)"')
SHEBANG_PREFIX = "#!"
ARGC_HOOK = 'eval "$(argc --argc-eval "$0" "$@")"'


def _ensure_path(path: Path) -> Path:
    try:
        return path.resolve(strict=True)
    except OSError as exc:
        raise FileNotFoundError(f"file not found: {path}") from exc


def _project_info(config: ShincConfig) -> list[str]:
    lines = config.project.to_argc_tags()
    if config.project.meta is not None:
        lines.extend(config.project.meta.to_argc_tags())
    return lines


def generate_script_lines(env: ShincEnv, config: ShincConfig) -> Iterator[str]:
    """Yield the lines of the generated main script, includes expanded."""
    src_main = _ensure_path(env.src_main())
    log.info("parse src file: %s", src_main)
    for line in read_lines(src_main):
        if line.startswith(SHEBANG_PREFIX):
            yield line
            yield ""
            yield from _project_info(config)
        elif match := INCLUDE_PATTERN.fullmatch(line):
            filepath = _ensure_path(env.src_file(match["filename"]))
            log.info("write include file: %s", filepath)
            yield f"#{line}"
            yield from read_lines(filepath)
        else:
            yield line
    yield ""
    yield ARGC_HOOK


def build(base_dir: str | os.PathLike[str] | None = None) -> Path:
    """Generate ``target/main.sh`` and the executable CLI script; return the script path."""
    env = ShincEnv.create(base_dir)
    config = load_config(env.base_dir)
    target_main = env.target_main()
    with open(target_main, "w", encoding="utf-8", newline="\n") as target:
        for line in generate_script_lines(env, config):
            target.write(line + "\n")
    log.info("generate cli script: %s", target_main)

    source = target_main.read_text(encoding="utf-8")
    cli_file = env.target_file(config.cli_name())
    try:
        cli_file.write_text(source, encoding="utf-8", newline="\n")
    except OSError as exc:
        raise OSError(f"failed to write script to '{cli_file}'") from exc
    log.info("build cli script: %s", cli_file)
    try:
        set_executable(cli_file)
    except OSError as exc:
        raise OSError(f"failed to set execute permission to '{cli_file}'") from exc
    return cli_file