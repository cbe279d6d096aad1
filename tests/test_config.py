import tomllib
from pathlib import Path

import pytest

from icli.config import (
    DEFAULT_CONFIG,
    ClashAppName,
    ClashProxyProvider,
    Config,
    ConfigError,
    config_dir,
    expand_path,
    load_config,
    local_config_file,
    locate_config_files,
    locate_template_files,
    merge_dicts,
    user_config_file,
)


def minimal():
    return {
        "proxy": {},
        "clash": {"proxy": {"providers": []}, "app": {}},
        "quantumultx": {"remote": {"server": {}}, "mitm": {}},
    }


@pytest.fixture
def home(tmp_path, monkeypatch):
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


def test_expand_path_empty_is_none():
    assert expand_path("") is None


def test_expand_path_tilde(home):
    assert expand_path("~/work") == home / "work"


def test_expand_path_plain():
    assert expand_path("/opt/data") == Path("/opt/data")


def test_config_dir_under_home(home):
    assert config_dir() == home / ".config" / "icli"


def test_config_file_locations(home, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert local_config_file() == tmp_path / ".icli" / "config.toml"
    assert user_config_file() == home / ".config" / "icli" / "config.toml"
    assert locate_config_files() == [local_config_file(), user_config_file()]


def test_locate_template_files(home, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert locate_template_files("vpn/a.conf") == [
        tmp_path / ".icli" / "templates" / "vpn" / "a.conf",
        home / ".config" / "icli" / "templates" / "vpn" / "a.conf",
    ]


def test_merge_dicts_is_recursive_and_pure():
    base = {"a": {"x": 1, "y": 2}, "b": [1]}
    override = {"a": {"y": 3}, "b": [2], "c": True}
    merged = merge_dicts(base, override)
    assert merged == {"a": {"x": 1, "y": 3}, "b": [2], "c": True}
    assert base == {"a": {"x": 1, "y": 2}, "b": [1]}


def test_default_config_parses_to_defaults():
    assert Config.from_dict(tomllib.loads(DEFAULT_CONFIG)) == Config()


def test_load_config_without_files_is_default():
    assert load_config([]) == Config()


def test_load_config_layers_files(tmp_path):
    local = tmp_path / "local.toml"
    user = tmp_path / "user.toml"
    local.write_text('[proxy]\nhttp = "http://local.example.com"\n')
    user.write_text('[proxy]\nhttp = "http://user.example.com"\nhttps = "https://user.example.com"\n')
    cfg = load_config([local, user, tmp_path / "missing.toml"])
    assert cfg.proxy.http == "http://local.example.com"
    assert cfg.proxy.https == "https://user.example.com"
    assert cfg.proxy.all == ""


def test_load_config_default_locations(home, tmp_path, monkeypatch):
    work = tmp_path / "work"
    (work / ".icli").mkdir(parents=True)
    monkeypatch.chdir(work)
    (work / ".icli" / "config.toml").write_text('[clash]\nuser_agent = "agent"\n')
    assert load_config().clash.user_agent == "agent"


def test_load_config_malformed(tmp_path):
    bad = tmp_path / "bad.toml"
    bad.write_text("proxy = [")
    with pytest.raises(ConfigError):
        load_config([bad])


def test_from_dict_missing_section():
    data = minimal()
    del data["proxy"]
    with pytest.raises(ConfigError):
        Config.from_dict(data)


def test_from_dict_missing_providers():
    data = minimal()
    data["clash"]["proxy"] = {}
    with pytest.raises(ConfigError):
        Config.from_dict(data)


def test_from_dict_wrong_type():
    data = minimal()
    data["proxy"]["http"] = 1
    with pytest.raises(ConfigError):
        Config.from_dict(data)


def test_from_dict_interval_out_of_range():
    data = minimal()
    data["clash"]["proxy"]["providers"] = [{"interval": -1}]
    with pytest.raises(ConfigError):
        Config.from_dict(data)


def test_primary_proxy_provider():
    data = minimal()
    data["clash"]["proxy"]["providers"] = [
        {"name": "a"},
        {"name": "b", "primary": True, "url": "https://b.example.com", "interval": 60},
        {"name": "c", "primary": True},
    ]
    cfg = Config.from_dict(data)
    assert cfg.primary_proxy_provider() == ClashProxyProvider(
        primary=True, name="b", url="https://b.example.com", interval=60
    )


def test_primary_proxy_provider_absent():
    assert Config.from_dict(minimal()).primary_proxy_provider() is None


def test_clash_app_config_dir(home):
    data = minimal()
    data["clash"]["app"] = {"clash_verge": {"config_dir": "~/verge"}, "clashx": {"config_dir": ""}}
    cfg = Config.from_dict(data)
    assert cfg.clash_app_config_dir(ClashAppName.CLASH_VERGE) == home / "verge"
    assert cfg.clash_app_config_dir(ClashAppName.CLASHX) is None


def test_clash_app_name_text():
    cfg = Config.from_dict(minimal())
    dirs_by_name = {str(name): cfg.clash_app_config_dir(name) for name in ClashAppName}
    assert dirs_by_name == {"ClashX": None, "Clash.Verge": None}


def test_to_dict_round_trip(tmp_path):
    data = minimal()
    data["proxy"] = {"http": "http://p.example.com", "all": "socks5://p.example.com"}
    data["clash"]["proxy"]["providers"] = [{"name": "main", "primary": True}]
    data["clash"]["app"] = {"clashx": {"config_dir": str(tmp_path)}}
    data["quantumultx"]["mitm"] = {"passphrase": "placeholder", "p12": "data"}
    cfg = Config.from_dict(data)
    assert Config.from_dict(cfg.to_dict()) == cfg
    assert cfg.to_dict()["clash"]["app"]["clashx"]["config_dir"] == str(tmp_path)