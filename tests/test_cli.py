import json
from pathlib import Path
from types import SimpleNamespace
import socket

import pytest
import yaml

from icli.cli import build_parser, main
from icli.config import DEFAULT_CONFIG, load_config
from icli.scaffold import make_name, render_cmd
from icli.shinc_build import ARGC_HOOK
from icli.vpn import VpnApp


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    return work


def test_no_command_prints_help(workdir, capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "usage:" in out
    assert "config" in out


def test_group_without_subcommand_is_usage_error(workdir):
    with pytest.raises(SystemExit) as exc:
        main(["config"])
    assert exc.value.code == 2


def test_unknown_command_is_usage_error(workdir):
    with pytest.raises(SystemExit) as exc:
        main(["nope"])
    assert exc.value.code == 2


def test_parser_counts_verbosity():
    args = build_parser().parse_args(["-vv", "-q", "ip", "ps1", "--no-name"])
    assert args.verbose == 2
    assert args.quiet == 1
    assert args.no_name is True


def test_parser_vpn_defaults():
    args = build_parser().parse_args(["vpn", "makeconfig", "--app", "clash.verge"])
    assert args.app is VpnApp.CLASH_VERGE
    assert args.output_dir == "./output"
    assert args.template is None
    assert args.download_rules is False


def test_config_generate_local(workdir):
    assert main(["config", "generate", "--local"]) == 0
    path = workdir / ".icli" / "config.toml"
    assert path.read_text(encoding="utf-8") == DEFAULT_CONFIG


def test_config_generate_keeps_existing(workdir, capsys):
    path = workdir / ".icli" / "config.toml"
    path.parent.mkdir()
    path.write_text("# mine\n", encoding="utf-8")
    assert main(["config", "generate", "--local"]) == 0
    assert path.read_text(encoding="utf-8") == "# mine\n"
    assert "config file already exists" in capsys.readouterr().out


def test_config_generate_force_backs_up(workdir):
    path = workdir / ".icli" / "config.toml"
    path.parent.mkdir()
    path.write_text("# mine\n", encoding="utf-8")
    assert main(["config", "generate", "--local", "--force"]) == 0
    assert path.with_suffix(".bak").read_text(encoding="utf-8") == "# mine\n"
    assert path.read_text(encoding="utf-8") == DEFAULT_CONFIG


def test_config_generate_user(workdir, tmp_path):
    assert main(["config", "generate"]) == 0
    path = tmp_path / "home" / ".config" / "icli" / "config.toml"
    assert path.read_text(encoding="utf-8") == DEFAULT_CONFIG


def test_config_list_exists(workdir, capsys):
    main(["config", "generate", "--local"])
    capsys.readouterr()
    assert main(["config", "list", "--exists"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == [f"1: {Path.cwd() / '.icli' / 'config.toml'}"]


def test_config_list_all(workdir, capsys):
    assert main(["config", "list"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("1: ")
    assert lines[1].startswith("2: ")


def test_config_show_json(workdir, capsys):
    assert main(["config", "show", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data == load_config().to_dict()


def test_config_show_yaml(workdir, capsys):
    assert main(["config", "show", "--yaml"]) == 0
    data = yaml.safe_load(capsys.readouterr().out)
    assert data == load_config().to_dict()


def test_config_show_reads_local_file(workdir, capsys):
    path = workdir / ".icli" / "config.toml"
    path.parent.mkdir()
    path.write_text('[proxy]\nall = "socks5://localhost:1080"\n', encoding="utf-8")
    assert main(["config", "show", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["proxy"]["all"] == "socks5://localhost:1080"


def test_ip_ps1(workdir, capsys, monkeypatch):
    addrs = {
        "lo": [SimpleNamespace(family=socket.AF_INET, address="127.0.0.1")],
        "eth0": [SimpleNamespace(family=socket.AF_INET, address="192.168.1.5")],
    }
    monkeypatch.setattr("icli.ip.psutil.net_if_addrs", lambda: addrs)
    assert main(["ip", "ps1"]) == 0
    assert capsys.readouterr().out == "eth0=192.168.1.5\n"
    assert main(["ip", "ps1", "--no-name"]) == 0
    assert capsys.readouterr().out == "192.168.1.5\n"


def test_new_creates_files(workdir):
    commands = workdir / "src" / "commands"
    commands.mkdir(parents=True)
    assert main(["new", "foo/bar-baz"]) == 0
    cmd_file = commands / "foo" / "barbaz.py"
    assert cmd_file.read_text(encoding="utf-8") == render_cmd(make_name("foo/bar-baz"))
    assert (commands / "foo" / "__init__.py").is_file()
    assert (commands / "__init__.py").is_file()


def test_new_without_commands_dir_fails(workdir, capsys):
    assert main(["new", "foo"]) == 1
    assert "can't find the commands directory" in capsys.readouterr().err


def test_shinc_build(workdir):
    (workdir / "shinc.toml").write_text(
        '[project]\nname = "demo"\nversion = "1.0.0"\n', encoding="utf-8"
    )
    src = workdir / "src"
    src.mkdir()
    (src / "main.sh").write_text("#!/usr/bin/env bash\necho hi\n", encoding="utf-8")
    assert main(["shinc", "build"]) == 0
    lines = (workdir / "target" / "demo").read_text(encoding="utf-8").splitlines()
    assert lines[0] == "#!/usr/bin/env bash"
    assert "# @meta version 1.0.0" in lines
    assert "echo hi" in lines
    assert lines[-1] == ARGC_HOOK


def test_shinc_build_without_config_fails(workdir, capsys):
    assert main(["shinc", "build"]) == 1
    assert "can't find shinc config file" in capsys.readouterr().err


def test_vpn_makeconfig_quantumultx(workdir):
    template = workdir / "qx.conf"
    template.write_text("interval={{ quantumultx.remote.server.interval }}", encoding="utf-8")
    out_dir = workdir / "out"
    code = main(
        [
            "vpn",
            "makeconfig",
            "--app",
            "quantumultx",
            "-t",
            str(template),
            "--output-dir",
            str(out_dir),
        ]
    )
    assert code == 0
    assert (out_dir / "QuantumultX.conf").read_text(encoding="utf-8") == "interval=0"


def test_vpn_makeconfig_missing_template_fails(workdir, capsys):
    code = main(["vpn", "makeconfig", "--app", "quantumultx", "--output-dir", str(workdir / "out")])
    assert code == 1
    assert "could not find the config template file for quantumultx" in capsys.readouterr().err


def test_vpn_makeconfig_rejects_unknown_app(workdir):
    with pytest.raises(SystemExit) as exc:
        main(["vpn", "makeconfig", "--app", "other"])
    assert exc.value.code == 2