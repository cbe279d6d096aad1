"""Formatting of argc comment tags."""

from __future__ import annotations

from collections.abc import Iterable


def format_tag(key: str, name: str, value: str) -> str:
    """Render ``# @key name value``, leaving out the empty parts."""
    parts = [part for part in (key, name, value) if part]
    return "# @" + " ".join(parts)


def format_meta(name: str, value: str) -> str:
    """Render a ``# @meta`` tag."""
    return format_tag("meta", name, value)


def describe(description: str) -> str:
    """Render a ``# @describe`` tag."""
    return format_tag("describe", "", description)


def meta_version(version: str) -> str:
    return format_meta("version", version)


def meta_author(author: str) -> str:
    return format_meta("author", author)


def meta_dotenv(dotenv: str) -> str:
    return format_meta("dotenv", dotenv)


def meta_require_tools(require_tools: Iterable[str]) -> str:
    return format_meta("require-tools", ",".join(require_tools))


def meta_man_section(man_section: int) -> str:
    return format_meta("man-section", str(man_section))


def meta_inherit_flag_options() -> str:
    return format_meta("inherit-flag-options", "")


def meta_combine_shorts() -> str:
    return format_meta("combine-shorts", "")


def meta_symbol(symbol: str) -> str:
    return format_meta("symbol", symbol)