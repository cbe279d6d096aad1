"""Command-line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from icli.config import load_config, local_config_file, locate_config_files, user_config_file
from icli.config_commands import generate_config, list_configs, render_config
from icli.ip import ps1
from icli.scaffold import create_command
from icli.shinc_build import build
from icli.vpn import MakeConfigOptions, VpnApp, make_config

PROG = "icli"

log = logging.getLogger(__name__)

_LOG_LEVELS = (
    logging.CRITICAL + 10,
    logging.ERROR,
    logging.WARNING,
    logging.INFO,
    logging.DEBUG,
    logging.NOTSET,
)

Handler = Callable[[argparse.Namespace], None]


def _version() -> str:
    try:
        return version(PROG)
    except PackageNotFoundError:
        return "0.0.0"


def _log_level(verbose: int, quiet: int) -> int:
    index = max(0, min(len(_LOG_LEVELS) - 1, 1 + verbose - quiet))
    return _LOG_LEVELS[index]


def _init_logging(verbose: int, quiet: int) -> None:
    level = _log_level(verbose, quiet)
    logging.basicConfig(level=level, format="[%(levelname)s %(name)s] %(message)s", force=True)
    log.debug("initialize logging system at log level: %s", logging.getLevelName(level))


def _config_generate(args: argparse.Namespace) -> None:
    path = local_config_file() if args.local else user_config_file()
    generate_config(path, force=args.force)


def _config_list(args: argparse.Namespace) -> None:
    for line in list_configs(locate_config_files(), exists=args.exists, with_content=args.with_content):
        print(line)


def _show_format(args: argparse.Namespace) -> str:
    if args.json:
        return "json"
    if args.yaml:
        return "yaml"
    return "toml"


def _config_show(args: argparse.Namespace) -> None:
    config = load_config()
    output = render_config(config, _show_format(args))
    print(output)


def _ip_ps1(args: argparse.Namespace) -> None:
    print(ps1(no_name=args.no_name))


def _shinc_build(args: argparse.Namespace) -> None:
    build(Path.cwd())


def _vpn_makeconfig(args: argparse.Namespace) -> None:
    options = MakeConfigOptions(
        app=args.app,
        template=args.template,
        download_rules=args.download_rules,
        output_dir=args.output_dir,
    )
    make_config(options)


def _new(args: argparse.Namespace) -> None:
    create_command(args.path)


def _group(subparsers: argparse._SubParsersAction, name: str, help_text: str) -> argparse._SubParsersAction:
    parser = subparsers.add_parser(name, help=help_text, description=help_text)
    return parser.add_subparsers(dest=f"{name}_command", metavar="COMMAND", required=True)


def _add_config(subparsers: argparse._SubParsersAction) -> None:
    group = _group(subparsers, "config", "Manage local and global configuration.")

    generate = group.add_parser("generate", help="Generate the configuration files.")
    generate.add_argument(
        "--force",
        action="store_true",
        help="Force overwrite even if the configuration file already exists.",
    )
    generate.add_argument(
        "--local", action="store_true", help="Generate configuration file in the current directory."
    )
    generate.set_defaults(handler=_config_generate)

    listing = group.add_parser("list", help="List the configuration files.")
    listing.add_argument("--exists", action="store_true", help="Only list the existing configuration files.")
    listing.add_argument(
        "--with-content", action="store_true", help="Print configuration files content."
    )
    listing.set_defaults(handler=_config_list)

    show = group.add_parser("show", help="Show the active configuration.")
    show.add_argument("--json", action="store_true", help="JSON output.")
    show.add_argument("--yaml", action="store_true", help="YAML output.")
    show.set_defaults(handler=_config_show)


def _add_ip(subparsers: argparse._SubParsersAction) -> None:
    group = _group(subparsers, "ip", "Ip utilities.")
    cmd = group.add_parser(
        "ps1", help="Print network interface and ip part of the terminal shell's `$PS1`."
    )
    cmd.add_argument("--no-name", action="store_true", help="Don't show the network interface name.")
    cmd.set_defaults(handler=_ip_ps1)


def _add_shinc(subparsers: argparse._SubParsersAction) -> None:
    group = _group(subparsers, "shinc", "Bash cli project manager using `argc`.")
    cmd = group.add_parser("build", help="Generate and build project shell script.")
    cmd.set_defaults(handler=_shinc_build)


def _add_vpn(subparsers: argparse._SubParsersAction) -> None:
    group = _group(subparsers, "vpn", "VPN utilities.")
    cmd = group.add_parser("makeconfig", help="Make config for VPN app.")
    cmd.add_argument(
        "--app",
        required=True,
        type=VpnApp,
        choices=list(VpnApp),
        metavar="{" + ",".join(app.value for app in VpnApp) + "}",
        help="VPN client app.",
    )
    cmd.add_argument(
        "-t", "--template", help="Path to the template file for generating config files."
    )
    cmd.add_argument(
        "--download-rules", action="store_true", help="Download clash provider rules to local."
    )
    cmd.add_argument(
        "--output-dir",
        metavar="DIR",
        default="./output",
        help="Write QuantumultX.conf to DIR.",
    )
    cmd.set_defaults(handler=_vpn_makeconfig)


def _add_new(subparsers: argparse._SubParsersAction) -> None:
    cmd = subparsers.add_parser("new", help="Create a new command and generate the layout files.")
    cmd.add_argument("path", help="Use slash to separate multi-level subcommands.")
    cmd.set_defaults(handler=_new)


def build_parser() -> argparse.ArgumentParser:
    """The argument parser with every command."""
    parser = argparse.ArgumentParser(prog=PROG)
    parser.add_argument("-V", "--version", action="version", version=f"{PROG} {_version()}")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase logging verbosity."
    )
    parser.add_argument(
        "-q", "--quiet", action="count", default=0, help="Decrease logging verbosity."
    )
    parser.set_defaults(handler=None)
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    _add_config(subparsers)
    _add_ip(subparsers)
    _add_shinc(subparsers)
    _add_vpn(subparsers)
    _add_new(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _init_logging(args.verbose, args.quiet)
    handler: Handler | None = args.handler
    if handler is None:
        parser.print_help()
        return 0
    try:
        handler(args)
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())