"""Generation of configuration files for VPN client apps."""

from __future__ import annotations

import abc
import dataclasses
import enum
import json
import logging
import os
import re
from collections.abc import Iterable, Mapping, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jinja2
import requests
import yaml

from icli.config import (
    ClashAppName,
    ClashProxyProvider,
    Config,
    load_config,
    locate_template_files,
)

log = logging.getLogger(__name__)

CLASH_PROVIDER_PROFILE_TEMPLATE = "vpn/clash/profile.provider.yaml"
QUANTUMULTX_CONF = "QuantumultX.conf"
QUANTUMULTX_TEMPLATE = "vpn/quantumultx/QuantumultX.conf"

REMOTE_UNNEEDED_KEYS = ("proxies", "proxy-groups", "rules")
LOCAL_UNNEEDED_KEYS = ("proxy-providers-ref",)

_IP_ASN_PATTERN = re.compile(r"^\s+-\s+IP-ASN,.+", re.MULTILINE | re.DOTALL)


class VpnError(RuntimeError):
    """A VPN configuration could not be produced."""


class VpnApp(enum.Enum):
    """Supported VPN client apps."""

    CLASHX = "clashx"
    CLASH_VERGE = "clash.verge"
    QUANTUMULTX = "quantumultx"

    def __str__(self) -> str:
        return self.value


def remove_keys(block: MutableMapping[str, Any], keys: Iterable[str]) -> None:
    """Remove *keys* from *block* in place, keeping the order of what remains."""
    for key in keys:
        block.pop(key, None)


def strip_ip_asn(text: str) -> str:
    """Drop everything from the first ``- IP-ASN,`` rule line onwards."""
    return _IP_ASN_PATTERN.sub("", text)


def _expand(value: str) -> Path:
    return Path(os.path.expanduser(value))


def _first_existing(paths: Iterable[Path]) -> Path | None:
    return next((p for p in paths if p.exists()), None)


def _render_file(path: Path, context: Mapping[str, Any]) -> str:
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined, keep_trailing_newline=True, autoescape=False
    )
    return env.from_string(path.read_text(encoding="utf-8")).render(**context)


@dataclass
class MakeConfigOptions:
    """Options of the make-config command."""

    app: VpnApp
    template: str | None = None
    download_rules: bool = False
    output_dir: str = "./output"

    def template_path(self) -> Path | None:
        """The template given on the command line, ``~`` expanded."""
        return None if self.template is None else _expand(self.template)

    def output_path(self) -> Path:
        """The output directory, ``~`` expanded."""
        return _expand(self.output_dir)


@dataclass
class ClashProfile:
    name: str
    path: Path


@dataclass
class ClashRuleProviderItem:
    type: str = ""
    behavior: str = ""
    path: str = ""
    url: str = ""
    interval: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ClashRuleProviderItem:
        if not isinstance(data, Mapping):
            raise VpnError("invalid rule provider: expected mapping")
        return cls(
            type=str(data.get("type", data.get("type_", ""))),
            behavior=str(data.get("behavior", "")),
            path=str(data.get("path", "")),
            url=str(data.get("url", "")),
            interval=int(data.get("interval", 0)),
        )


@dataclass
class _ProfileItem:
    uid: str = ""
    type: str = ""
    name: str | None = None
    file: str = ""
    desc: str = ""


@dataclass
class Profiles:
    """The profile index kept by Clash Verge."""

    current: str = ""
    items: list[_ProfileItem] = field(default_factory=list)

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> Profiles:
        """Read a ``profiles.yaml`` file; a missing file holds no ``items`` and is an error."""
        file = Path(path)
        data: Any = {}
        if file.exists():
            data = yaml.safe_load(file.read_text(encoding="utf-8")) or {}
        if not isinstance(data, Mapping):
            raise VpnError(f"profiles deserialize error: {file}: expected mapping")
        if "items" not in data:
            raise VpnError(f"profiles deserialize error: missing field `items` in {file}")
        items = data["items"] or []
        if not isinstance(items, list) or not all(isinstance(i, Mapping) for i in items):
            raise VpnError(f"profiles deserialize error: invalid `items` in {file}")
        return cls(
            current=str(data.get("current") or ""),
            items=[
                _ProfileItem(
                    uid=str(item.get("uid") or ""),
                    type=str(item.get("type", item.get("type_")) or ""),
                    name=None if item.get("name") is None else str(item["name"]),
                    file=str(item.get("file") or ""),
                    desc=str(item.get("desc") or ""),
                )
                for item in items
            ],
        )

    def filename_by_name(self, name: str) -> str | None:
        """The file of the first profile called *name*."""
        return next((item.file for item in self.items if item.name == name), None)


class ClashGenerator(abc.ABC):
    """Builds a clash profile from the primary proxy provider and a local template."""

    app_name: ClashAppName

    def __init__(self, options: MakeConfigOptions, config: Config) -> None:
        self.options = options
        self.config = config

    def template(self) -> Path | None:
        """The template file: the one given in the options, else the first one found."""
        given = self.options.template_path()
        if given is not None:
            return given
        return _first_existing(locate_template_files(CLASH_PROVIDER_PROFILE_TEMPLATE))

    def _client(self) -> requests.Session:
        session = requests.Session()
        user_agent = self.config.clash.user_agent
        if user_agent:
            session.headers["User-Agent"] = user_agent
        all_proxy = self.config.proxy.all
        if all_proxy:
            session.proxies.update({"http": all_proxy, "https": all_proxy})
        return session

    def app_config_dir(self) -> Path:
        path = self.config.clash_app_config_dir(self.app_name)
        if path is None:
            raise VpnError("clash app config directory is not set")
        return path

    def primary_proxy(self) -> ClashProxyProvider:
        primary = self.config.primary_proxy_provider()
        if primary is None:
            raise VpnError("clash primary proxy provider not found")
        return primary

    def profile_name(self, primary: ClashProxyProvider) -> str:
        return f"{primary.name}X"

    @abc.abstractmethod
    def profile(self, primary: ClashProxyProvider) -> ClashProfile:
        """Name and location of the profile this app reads."""

    def remote_profile(self, primary: ClashProxyProvider) -> dict[str, Any]:
        """The provider's profile without its proxies, proxy groups and rules."""
        with self._client() as session:
            response = session.get(primary.url)
        block = yaml.safe_load(response.text)
        if not isinstance(block, dict):
            raise VpnError(f"remote profile is not a mapping: {primary.url}")
        remove_keys(block, REMOTE_UNNEEDED_KEYS)
        return block

    def local_profile(self, primary: ClashProxyProvider) -> dict[str, Any]:
        """The rendered local template, downloading its rules when asked to."""
        path = self.template()
        if path is None:
            raise VpnError("could not find the config template file for clash")
        context = {
            "clash": self.config.to_dict()["clash"],
            "primary": dataclasses.asdict(primary),
        }
        block = yaml.safe_load(_render_file(path, context))
        if not isinstance(block, dict):
            raise VpnError(f"local profile is not a mapping: {path}")
        providers = block.get("rule-providers")
        if not isinstance(providers, Mapping):
            raise VpnError(f"missing `rule-providers` in {path}")
        items = {str(k): ClashRuleProviderItem.from_dict(v) for k, v in providers.items()}
        if self.options.download_rules:
            self.download_rules(items)
        remove_keys(block, LOCAL_UNNEEDED_KEYS)
        return block

    def download_rules(self, rule_providers: Mapping[str, ClashRuleProviderItem]) -> list[Path]:
        """Fetch every provider that has both a url and a path; return the files written."""
        cfg_dir = self.app_config_dir()
        print("starting download rules ...")
        written = []
        for item in rule_providers.values():
            if not item.url or not item.path:
                continue
            target = Path(os.path.abspath(cfg_dir / item.path))
            print(f"{item.url} ==> {item.path}")
            self.fetch_rule(item.url, target)
            written.append(target)
        return written

    def _download(self, url: str) -> bytes:
        with self._client() as session:
            return session.get(url).content

    def fetch_rule(self, url: str, filepath: str | os.PathLike[str]) -> None:
        target = Path(filepath)
        content = self._download(url)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    def make(self) -> Path:
        """Write the profile file and return its path."""
        primary = self.primary_proxy()
        profile = self.profile(primary)
        context = {
            "app": {"name": str(self.app_name)},
            "profile": {"name": profile.name, "path": str(profile.path)},
            "primary": dataclasses.asdict(primary),
        }
        log.info("clash context: %s", json.dumps(context))
        profile.path.parent.mkdir(parents=True, exist_ok=True)
        with open(profile.path, "w", encoding="utf-8") as handle:
            yaml.safe_dump(self.remote_profile(primary), handle, sort_keys=False, allow_unicode=True)
            yaml.safe_dump(self.local_profile(primary), handle, sort_keys=False, allow_unicode=True)
        return profile.path


class ClashXGenerator(ClashGenerator):
    app_name = ClashAppName.CLASHX

    def profile(self, primary: ClashProxyProvider) -> ClashProfile:
        name = self.profile_name(primary)
        return ClashProfile(name, (self.app_config_dir() / name).with_suffix(".yaml"))

    def fetch_rule(self, url: str, filepath: str | os.PathLike[str]) -> None:
        target = Path(filepath)
        text = strip_ip_asn(self._download(url).decode("utf-8"))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(text.encode("utf-8"))


class ClashVergeGenerator(ClashGenerator):
    app_name = ClashAppName.CLASH_VERGE

    def profile(self, primary: ClashProxyProvider) -> ClashProfile:
        name = self.profile_name(primary)
        cfg_dir = self.app_config_dir()
        filename = Profiles.load(cfg_dir / "profiles.yaml").filename_by_name(name)
        if filename is None:
            raise VpnError(f"profile filename not found: {name}")
        return ClashProfile(name, (cfg_dir / "profiles" / filename).with_suffix(".yaml"))


class QuantumultXGenerator:
    """Renders ``QuantumultX.conf`` from a template."""

    def __init__(self, options: MakeConfigOptions, config: Config) -> None:
        self.options = options
        self.config = config

    def template(self) -> Path | None:
        given = self.options.template_path()
        if given is not None:
            return given
        return _first_existing(locate_template_files(QUANTUMULTX_TEMPLATE))

    def make(self) -> Path:
        """Write the configuration file and return its path."""
        path = self.template()
        if path is None:
            raise VpnError("could not find the config template file for quantumultx")
        output_dir = self.options.output_path()
        output_dir.mkdir(parents=True, exist_ok=True)
        output = output_dir / QUANTUMULTX_CONF
        text = _render_file(path, {"quantumultx": self.config.to_dict()["quantumultx"]})
        output.write_text(text, encoding="utf-8")
        log.info("write %s ... done", output)
        return output


def make_config(options: MakeConfigOptions, config: Config | None = None) -> Path:
    """Generate the configuration for ``options.app``; return the file written."""
    cfg = load_config() if config is None else config
    match options.app:
        case VpnApp.CLASHX:
            return ClashXGenerator(options, cfg).make()
        case VpnApp.CLASH_VERGE:
            return ClashVergeGenerator(options, cfg).make()
        case VpnApp.QUANTUMULTX:
            return QuantumultXGenerator(options, cfg).make()
    raise VpnError(f"the client app is not yet supported: {options.app}")