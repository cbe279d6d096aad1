# icli

A personal command-line toolbox. It bundles a few everyday helpers behind
the single `icli` command:

- **config**: create, list and show the layered TOML configuration.
- **shinc build**: assemble a shell CLI project made from `src/main.sh` plus
  `include "file"` directives into one argc-annotated script.
- **new**: scaffold a new command module and its parent group modules.
- **ip ps1**: print network interface addresses for use in a shell `$PS1`.
- **vpn makeconfig**: generate Clash (ClashX, Clash.Verge) and QuantumultX
  profiles from your configuration and templates.

## Installation

```console
pip install .
```

Python 3.11 or newer is required. For the tests, install the `test` extra:

```console
pip install ".[test]"
```

## Usage

```console
icli --help
icli --version
```

Global options: `-v`/`--verbose` raises the logging level (repeatable),
`-q`/`--quiet` lowers it. Run without a command, `icli` prints its help.
Errors are printed to standard error and the exit status is 1.

### Configuration

The configuration is built from the built-in defaults, then the user file
`~/.config/icli/config.toml`, then the local file `./.icli/config.toml`,
each merged over the previous one table by table; files that do not exist
are skipped.

```console
icli config generate           # write the default config to the user file
icli config generate --local   # write ./.icli/config.toml instead
icli config generate --force   # overwrite, copying the old file to a .bak first
icli config list               # number and print both config file locations
icli config list --exists --with-content
icli config show               # TOML (default)
icli config show --json
icli config show --yaml
```

Without `--force`, an existing file is left alone and a message says so.

The configuration holds:

- `[proxy]`: `http`, `https`, `all` (strings).
- `[clash]`: `user_agent`; `[[clash.proxy.providers]]` with `primary`,
  `name`, `url`, `interval`; and `[clash.app.clashx]` /
  `[clash.app.clash_verge]` with a `config_dir`. A leading `~` in
  `config_dir` is expanded; an empty value means unset.
- `[quantumultx]`: `[quantumultx.remote.server]` with `tag`, `url`,
  `img_url`, `interval`, and `[quantumultx.mitm]` with `passphrase`, `p12`.

Malformed values raise `icli.config.ConfigError`.

### Shell script projects

A shinc project has a `.shinc.toml` or `shinc.toml` file (looked up in that
order) in its root:

```toml
[project]
name = "mytool"
version = "0.1.0"
description = "Does useful things"

[project.meta]
author = "Someone <someone@example.com>"
dotenv = ".env"
require-tools = ["curl", "jq"]
man-section = 1
inherit-flag-options = true
combine-shorts = true
symbol = "+file"

[cli]
name = "mt"
```

Then, from the project directory:

```console
icli shinc build
```

This reads `src/main.sh` and writes `target/main.sh`:

- after a shebang line it inserts an empty line, a `# @describe` tag, a
  `# @meta version` tag and one `# @meta` tag for each `project.meta`
  entry that is set (the two flags only when `true`);
- each line of the form `include "name.sh"` is kept as a comment
  (`#include "name.sh"`) and followed by the contents of `src/name.sh`;
- the script ends with an empty line and
  `eval "$(argc --argc-eval "$0" "$@")"`.

The same text is then written to `target/<cli name>` (the `cli.name`, or
the project name when unset) and made executable on POSIX systems.
A missing source or include file raises `FileNotFoundError`.

### Scaffolding commands

```console
icli new config/show
icli new vpn/make-config
```

Run this from a directory that has `src/commands/`. Paths use slashes for
nested commands. The command becomes a Python module (dashes removed from
file names, e.g. `vpn/makeconfig.py`) holding a dataclass named
`<PascalCase>Cmd`, and every level that has no `__init__.py` yet gets one
holding an `enum.Enum` group class that refers to it. Existing
`__init__.py` files are left untouched.

### IP prompt segment

```console
icli ip ps1            # en0=192.168.1.10
icli ip ps1 --no-name  # 192.168.1.10
```

Interfaces without addresses, and interfaces with a loopback address, are
skipped; only IPv4 addresses are printed.

### VPN profiles

```console
icli vpn makeconfig --app clash.verge
icli vpn makeconfig --app clashx --download-rules
icli vpn makeconfig --app quantumultx --output-dir ./output
icli vpn makeconfig --app quantumultx -t ~/templates/QuantumultX.conf
```

Templates are Jinja2 files, looked up as
`./.icli/templates/vpn/clash/profile.provider.yaml` or
`./.icli/templates/vpn/quantumultx/QuantumultX.conf`, then under
`~/.config/icli/templates/`, unless `-t`/`--template` is given.

For Clash apps the primary proxy provider's URL is downloaded (using the
configured `user_agent` and the `all` proxy), its `proxies`,
`proxy-groups` and `rules` are dropped, and it is written to the profile
file followed by the rendered local template (without its
`proxy-providers-ref` key). The profile is `<config_dir>/<name>X.yaml` for
ClashX; for Clash.Verge its file name is looked up by name in
`<config_dir>/profiles.yaml` and the profile goes to
`<config_dir>/profiles/`. With `--download-rules`, every entry of the
template's `rule-providers` that has both a `url` and a `path` is
downloaded to `<config_dir>/<path>`; for ClashX everything from the first
`- IP-ASN,` line onwards is cut off.

QuantumultX renders its template with the `quantumultx` configuration into
`<output-dir>/QuantumultX.conf`.

## What it does not do

- There is no command that prints shell completion scripts.
- `shinc` has only `build`: it does not produce completion scripts or man
  pages, and it does not run argc itself; the built script is the
  assembled `target/main.sh`, which argc evaluates at run time.
- There is no Makefile help-target generator.

## Library use

The pieces are usable from Python too:

```python
from icli.tag import describe, meta_version
from icli.shinc_build import build
from icli.config import load_config
from icli.config_commands import render_config

print(describe("Does useful things"))   # "# @describe Does useful things"
print(meta_version("0.1.0"))            # "# @meta version 0.1.0"

script = build("path/to/project")        # returns the path of the built script
print(render_config(load_config(), "json"))
```