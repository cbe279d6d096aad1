import stat

import pytest

from icli.fsutil import read_lines, set_executable


def test_read_lines_strips_line_endings(tmp_path):
    path = tmp_path / "data.txt"
    path.write_bytes(b"alpha\nbeta\r\ngamma")
    assert list(read_lines(path)) == ["alpha", "beta", "gamma"]


def test_read_lines_keeps_blank_lines(tmp_path):
    path = tmp_path / "data.txt"
    path.write_text("one\n\ntwo\n", encoding="utf-8")
    assert list(read_lines(path)) == ["one", "", "two"]


def test_read_lines_empty_file(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("", encoding="utf-8")
    assert list(read_lines(path)) == []


def test_read_lines_missing_file_raises_immediately(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_lines(tmp_path / "missing.txt")


def test_set_executable_sets_mode(tmp_path):
    path = tmp_path / "script.sh"
    path.write_text("#!/bin/sh\n", encoding="utf-8")
    path.chmod(0o600)
    set_executable(path)
    assert stat.S_IMODE(path.stat().st_mode) == 0o755