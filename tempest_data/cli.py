from __future__ import annotations

import argparse
import os
import sys
from dataclasses import fields
from typing import Any

from .collector import run_collector
from .config import Config, field_types, parse_bool
from .log import get_logger, setup_logging

PROG = "tempest-data"

logger = get_logger(__name__)

_SHORT_FLAGS = {
    "verbose": "-v",
    "logfile": "-o",
    "datafile": "-d",
    "statefile": "-s",
}

_HELP = {
    "bind_host": "address to listen on (default: all interfaces)",
    "port": "UDP port the station broadcasts to",
    "max_datagram_bytes": "largest datagram accepted",
    "datafile": "append tab-separated data to this file (default stdout)",
    "statefile": "atomically update this file with current state as JSON",
    "logfile": "write log messages to this file, '-' for stdout (default stderr)",
    "verbose": "log extra information",
    "datafile_fsync": "fsync the datafile after every row",
    "statefile_fsync": "fsync the snapshot before renaming it into place",
}


def _add_config_args(parser: argparse.ArgumentParser) -> None:
    resolved = field_types(Config)
    for field in fields(Config):
        name = field.name.replace("_", "-")
        flags = [f"--{name}"]
        if field.name in _SHORT_FLAGS:
            flags.insert(0, _SHORT_FLAGS[field.name])
        help_text = _HELP.get(field.name)
        base_type, _is_optional = resolved[field.name]
        if base_type is bool:
            group = parser.add_mutually_exclusive_group()
            group.add_argument(*flags, dest=field.name, action="store_true", help=help_text)
            group.add_argument(f"--no-{name}", dest=field.name, action="store_false")
            parser.set_defaults(**{field.name: None})
        else:
            parser.add_argument(*flags, dest=field.name, default=None, help=help_text)


def _cli_overrides(ns: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name, (base_type, _is_optional) in field_types(Config).items():
        value = getattr(ns, name, None)
        if value is None:
            continue
        if base_type is bool:
            overrides[name] = parse_bool(value)
        elif base_type is int:
            overrides[name] = int(value)
        elif base_type is float:
            overrides[name] = float(value)
        else:
            overrides[name] = value
    return overrides


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Collect Tempest weather station UDP broadcasts.",
    )
    _add_config_args(parser)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        overrides = _cli_overrides(args)
        config = Config.from_env_and_cli(overrides, os.environ).validate()
    except ValueError as exc:
        parser.error(str(exc))
    setup_logging(verbose=config.verbose, logfile=config.logfile)
    raw_args = sys.argv[1:] if argv is None else argv
    logger.info("%s starting up: %s %s", PROG, PROG, " ".join(raw_args))
    return run_collector(config)


if __name__ == "__main__":
    raise SystemExit(main())
