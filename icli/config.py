"""Application configuration: defaults, config file lookup and typed access."""

from __future__ import annotations

import enum
import os
import tomllib
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import tomli_w

PROJECT_ID = "icli"
PROJECT_DOT_ID = "." + PROJECT_ID
CONFIG_FILENAME = "config.toml"
TEMPLATES_DIRNAME = "templates"

_U32_MAX = 2**32 - 1

StrPath = str | os.PathLike[str]


class ConfigError(ValueError):
    """The configuration is malformed."""


class ClashAppName(enum.Enum):
    CLASHX = "ClashX"
    CLASH_VERGE = "Clash.Verge"

    def __str__(self) -> str:
        return self.value


def expand_path(value: str) -> Path | None:
    """Turn a configured path into a ``Path``, expanding a leading ``~``; empty means unset."""
    if not value:
        return None
    return Path(os.path.expanduser(value))


def config_dir() -> Path:
    """The per-user configuration directory."""
    return Path(os.path.expanduser(f"~/.config/{PROJECT_ID}"))


def _local_file(path: StrPath) -> Path:
    return Path.cwd() / PROJECT_DOT_ID / path


def _user_file(path: StrPath) -> Path:
    return config_dir() / path


def local_config_file() -> Path:
    """The configuration file of the current directory."""
    return _local_file(CONFIG_FILENAME)


def user_config_file() -> Path:
    """The configuration file of the current user."""
    return _user_file(CONFIG_FILENAME)


def locate_config_files() -> list[Path]:
    """Candidate configuration files, highest priority first."""
    return [local_config_file(), user_config_file()]


def locate_template_files(path: StrPath) -> list[Path]:
    """Candidate locations of template *path*, highest priority first."""
    suffix = Path(TEMPLATES_DIRNAME) / path
    return [_local_file(suffix), _user_file(suffix)]


def merge_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new dict with *override* merged recursively over *base*."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_dicts(current, value)
        else:
            merged[key] = value
    return merged


def _table(data: Mapping[str, Any], key: str, section: str, required: bool = True) -> Mapping[str, Any]:
    if key not in data:
        if required:
            raise ConfigError(f"missing field `{key}` in {section}")
        return {}
    value = data[key]
    if not isinstance(value, Mapping):
        raise ConfigError(f"invalid type for `{key}` in {section}: expected table")
    return value


def _scalar(data: Mapping[str, Any], key: str, kind: type, default: Any, section: str) -> Any:
    value = data.get(key, default)
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ConfigError(f"invalid type for `{key}` in {section}: expected {kind.__name__}")
    return value


def _text(data: Mapping[str, Any], key: str, section: str) -> str:
    return _scalar(data, key, str, "", section)


def _u32(data: Mapping[str, Any], key: str, section: str) -> int:
    value = _scalar(data, key, int, 0, section)
    if not 0 <= value <= _U32_MAX:
        raise ConfigError(f"`{key}` in {section} out of range: {value}")
    return value


def _config_dir_of(data: Mapping[str, Any], section: str) -> Path | None:
    return expand_path(_text(data, "config_dir", section))


def _path_text(path: Path | None) -> str | None:
    return None if path is None else str(path)


@dataclass
class Proxy:
    http: str = ""
    https: str = ""
    all: str = ""


@dataclass
class ClashProxyProvider:
    primary: bool = False
    name: str = ""
    url: str = ""
    interval: int = 0


@dataclass
class ClashApp:
    clashx_config_dir: Path | None = None
    clash_verge_config_dir: Path | None = None


@dataclass
class Clash:
    user_agent: str = ""
    providers: list[ClashProxyProvider] = field(default_factory=list)
    app: ClashApp = field(default_factory=ClashApp)


@dataclass
class QuantumultXServer:
    tag: str = ""
    url: str = ""
    img_url: str = ""
    interval: int = 0


@dataclass
class QuantumultXMitm:
    passphrase: str = ""
    p12: str = ""


@dataclass
class QuantumultX:
    server: QuantumultXServer = field(default_factory=QuantumultXServer)
    mitm: QuantumultXMitm = field(default_factory=QuantumultXMitm)


def _parse_proxy(data: Mapping[str, Any]) -> Proxy:
    return Proxy(
        http=_text(data, "http", "proxy"),
        https=_text(data, "https", "proxy"),
        all=_text(data, "all", "proxy"),
    )


def _parse_provider(data: Any) -> ClashProxyProvider:
    section = "clash.proxy.providers"
    if not isinstance(data, Mapping):
        raise ConfigError(f"invalid type in {section}: expected table")
    return ClashProxyProvider(
        primary=_scalar(data, "primary", bool, False, section),
        name=_text(data, "name", section),
        url=_text(data, "url", section),
        interval=_u32(data, "interval", section),
    )


def _parse_clash(data: Mapping[str, Any]) -> Clash:
    proxy = _table(data, "proxy", "clash")
    if "providers" not in proxy:
        raise ConfigError("missing field `providers` in clash.proxy")
    providers = proxy["providers"]
    if not isinstance(providers, list):
        raise ConfigError("invalid type for `providers` in clash.proxy: expected array")
    app = _table(data, "app", "clash")
    return Clash(
        user_agent=_text(data, "user_agent", "clash"),
        providers=[_parse_provider(item) for item in providers],
        app=ClashApp(
            clashx_config_dir=_config_dir_of(_table(app, "clashx", "clash.app", False), "clash.app.clashx"),
            clash_verge_config_dir=_config_dir_of(
                _table(app, "clash_verge", "clash.app", False), "clash.app.clash_verge"
            ),
        ),
    )


def _parse_mitm(data: Mapping[str, Any]) -> QuantumultXMitm:
    section = "quantumultx.mitm"
    values = {f.name: _text(data, f.name, section) for f in fields(QuantumultXMitm)}
    return QuantumultXMitm(**values)


def _parse_quantumultx(data: Mapping[str, Any]) -> QuantumultX:
    remote = _table(data, "remote", "quantumultx")
    server = _table(remote, "server", "quantumultx.remote")
    mitm = _table(data, "mitm", "quantumultx")
    server_section = "quantumultx.remote.server"
    return QuantumultX(
        server=QuantumultXServer(
            tag=_text(server, "tag", server_section),
            url=_text(server, "url", server_section),
            img_url=_text(server, "img_url", server_section),
            interval=_u32(server, "interval", server_section),
        ),
        mitm=_parse_mitm(mitm),
    )


@dataclass
class Config:
    proxy: Proxy = field(default_factory=Proxy)
    clash: Clash = field(default_factory=Clash)
    quantumultx: QuantumultX = field(default_factory=QuantumultX)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Config:
        """Build a configuration from parsed document data."""
        if not isinstance(data, Mapping):
            raise ConfigError("invalid configuration: expected table")
        return cls(
            proxy=_parse_proxy(_table(data, "proxy", "config")),
            clash=_parse_clash(_table(data, "clash", "config")),
            quantumultx=_parse_quantumultx(_table(data, "quantumultx", "config")),
        )

    def to_dict(self) -> dict[str, Any]:
        """The configuration as plain data; unset paths are ``None``."""
        server = self.quantumultx.server
        return {
            "proxy": {"http": self.proxy.http, "https": self.proxy.https, "all": self.proxy.all},
            "clash": {
                "user_agent": self.clash.user_agent,
                "proxy": {
                    "providers": [
                        {"primary": p.primary, "name": p.name, "url": p.url, "interval": p.interval}
                        for p in self.clash.providers
                    ]
                },
                "app": {
                    "clashx": {"config_dir": _path_text(self.clash.app.clashx_config_dir)},
                    "clash_verge": {"config_dir": _path_text(self.clash.app.clash_verge_config_dir)},
                },
            },
            "quantumultx": {
                "remote": {
                    "server": {
                        "tag": server.tag,
                        "url": server.url,
                        "img_url": server.img_url,
                        "interval": server.interval,
                    }
                },
                "mitm": asdict(self.quantumultx.mitm),
            },
        }

    def primary_proxy_provider(self) -> ClashProxyProvider | None:
        """The first clash proxy provider marked primary."""
        return next((p for p in self.clash.providers if p.primary), None)

    def clash_app_config_dir(self, name: ClashAppName) -> Path | None:
        """The configuration directory set for clash app *name*."""
        match name:
            case ClashAppName.CLASHX:
                return self.clash.app.clashx_config_dir
            case ClashAppName.CLASH_VERGE:
                return self.clash.app.clash_verge_config_dir
        return None


def _drop_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_none(v) for v in value]
    return value


DEFAULT_CONFIG = tomli_w.dumps(_drop_none(Config().to_dict()))


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path}: {exc}") from exc


def load_config(files: Iterable[StrPath] | None = None) -> Config:
    """Load the defaults overlaid with the existing *files*, listed highest priority first.

    Without *files* the locations from :func:`locate_config_files` are used.
    """
    paths = locate_config_files() if files is None else [Path(f) for f in files]
    data: dict[str, Any] = tomllib.loads(DEFAULT_CONFIG)
    for path in reversed(paths):
        if path.exists():
            data = merge_dicts(data, _read_toml(path))
    return Config.from_dict(data)