"""
config command handler for mdmctl.

Manages the server profiles stored in ~/.micromdm/servers.json:
- set: create or replace a named profile
- switch: select the active profile
- print: dump the raw config file
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable

import structlog

from mdmctl.core.config import (
    ConfigError,
    resolve_config_path,
    save_server_config,
    switch_server_config,
)

COMMANDS = ["config"]

USAGE = """
mdmctl config print
mdmctl config set -h
mdmctl config switch -h
"""

log = structlog.get_logger(__name__)

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _parse_bool(value: str) -> bool:
    """Parse a boolean flag value the way mdmctl always has (true/false/t/f/1/0)."""
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value {value!r}")


def usage() -> None:
    print(USAGE)


# String flags always consume the next argument, even one starting with "-".
_SET_VALUE_FLAGS = frozenset(
    {"-name", "--name", "-api-token", "--api-token", "-server-url", "--server-url"}
)
_SWITCH_VALUE_FLAGS = frozenset({"-name", "--name"})


def _attach_values(args: list[str], flags: frozenset[str]) -> list[str]:
    """Rewrite ``-flag value`` pairs as ``-flag=value`` for the given flags."""
    result = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in flags and i + 1 < len(args):
            result.append(f"{arg}={args[i + 1]}")
            i += 2
            continue
        result.append(arg)
        i += 1
    return result


# === Subcommands ===


def _set_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdmctl config set",
        usage="mdmctl config set [flags]",
    )
    parser.add_argument("-name", "--name", default="", help="name of the server")
    parser.add_argument(
        "-api-token",
        "--api-token",
        default="",
        help="api token to connect to micromdm server",
    )
    parser.add_argument(
        "-server-url",
        "--server-url",
        default="",
        help="server url of micromdm server",
    )
    parser.add_argument(
        "-skip-verify",
        "--skip-verify",
        nargs="?",
        const=True,
        default=False,
        type=_parse_bool,
        help="skip verification of server certificate (insecure)",
    )
    return parser


def _switch_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdmctl config switch",
        usage="mdmctl config switch [flags]",
    )
    parser.add_argument(
        "-name", "--name", default="", help="name of the server to switch to"
    )
    return parser


def set_cmd(args: list[str]) -> None:
    """Create or replace a server profile from command-line flags."""
    opts = _set_parser().parse_args(_attach_values(args, _SET_VALUE_FLAGS))
    save_server_config(
        resolve_config_path(),
        opts.name,
        api_token=opts.api_token,
        server_url=opts.server_url,
        skip_verify=opts.skip_verify,
    )


def switch_cmd(args: list[str]) -> None:
    """Select the active server profile."""
    opts = _switch_parser().parse_args(_attach_values(args, _SWITCH_VALUE_FLAGS))
    switch_server_config(resolve_config_path(), opts.name)


def print_config() -> None:
    """Write the raw config file to stdout. Exits the process on failure."""
    try:
        path = resolve_config_path()
        data = path.read_bytes()
    except (ConfigError, OSError) as e:
        log.critical("print_failed", error=str(e))
        sys.exit(1)
    # Raw bytes: the file need not be valid UTF-8.
    sys.stdout.flush()
    sys.stdout.buffer.write(data + b"\n")
    sys.stdout.buffer.flush()


SUBCOMMANDS: dict[str, Callable[[list[str]], None]] = {
    "set": set_cmd,
    "switch": switch_cmd,
}


# === Entry point ===


def run(args: list[str]) -> int:
    """Run ``mdmctl config <subcommand>``. Returns the exit status."""
    if not args:
        usage()
        return 1

    name = args[0].lower()
    if name == "print":
        print_config()
        return 0

    subcommand = SUBCOMMANDS.get(name)
    if subcommand is None:
        usage()
        return 1

    try:
        subcommand(args[1:])
    except (ConfigError, ValueError, OSError) as e:
        log.error("command_failed", command=f"config {name}", error=str(e))
        return 1
    return 0
