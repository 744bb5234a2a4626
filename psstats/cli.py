"""Command-line front end: ``ps-stats <options> [delay [count]]``."""

from __future__ import annotations

import argparse
import logging
import re
import sys
from typing import NoReturn, Sequence

from . import MY_NAME, __version__
from .config import SamplerConfig, load_config
from .connector import Connector, ConnectorError
from .resolver import ConflictingOptionsError, resolve_connection
from .sampler import VIEWS, Sampler

LOG = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class UsageError(ValueError):
    """Raised for command lines that cannot be acted upon."""


class ArgumentParseError(UsageError):
    """Raised when an argument value cannot be converted."""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise ArgumentParseError(message)


def usage() -> str:
    views = " ".join(sorted(VIEWS))
    return "\n".join(
        [
            f"{MY_NAME} - vmstat-like program to show MySQL activity by using information collected",
            "from performance_schema and sent to stdout.",
            "",
            f"Usage: {MY_NAME} <options> [delay [count]]",
            "",
            "Options:",
            "--debug                                  Enable debug logging",
            "--defaults-file=/path/to/defaults.file   Connect to MySQL using given defaults-file",
            "--help                                   Show this help message",
            "--host=<hostname>                        MySQL host to connect to",
            "--limit=<rows>                           Limit the number of lines of output (excluding headers)",
            "--password=<password>                    Password to use when connecting",
            "--port=<port>                            MySQL port to connect to",
            "--socket=<path>                          MySQL path of the socket to connect to",
            "--totals                                 Only send the totals to stdout",
            "--user=<user>                            User to connect with",
            "--version                                Show the version",
            "--view=<view>                            View to show (default: table_io_latency)",
            f"                                         Possible values: {views}",
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog=MY_NAME, add_help=False)
    parser.add_argument("--debug", action="store_true", default=None)
    parser.add_argument("--defaults-file", dest="defaults_file")
    parser.add_argument("--help", action="store_true")
    parser.add_argument("--host")
    parser.add_argument("--limit", type=int)
    parser.add_argument("--password")
    parser.add_argument("--port", type=int)
    parser.add_argument("--socket")
    parser.add_argument("--totals", action="store_true", default=None)
    parser.add_argument("--user")
    parser.add_argument("--version", action="store_true")
    parser.add_argument("--view")
    parser.add_argument("interval", nargs="*", default=[])
    return parser


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    return build_parser().parse_intermixed_args(list(argv))


def parse_interval(values: Sequence[str]) -> tuple[int | None, int | None]:
    """Return ``(delay, count)`` from the positional arguments."""

    if len(values) > 2:
        raise UsageError("Too many arguments")
    delay = _parse_int("delay", values[0]) if len(values) >= 1 else None
    count = _parse_int("count", values[1]) if len(values) >= 2 else None
    return delay, count


def build_config(args: argparse.Namespace, base: SamplerConfig | None = None) -> SamplerConfig:
    """Merge parsed arguments over the config file defaults."""

    config = base or SamplerConfig()
    delay, count = parse_interval(args.interval)
    overrides = {
        "delay": delay,
        "count": count,
        "limit": args.limit,
        "view": args.view,
        "totals": args.totals,
        "debug": args.debug,
    }
    config = config.with_overrides(**{key: value for key, value in overrides.items() if value is not None})
    connection = {
        "host": args.host,
        "port": args.port,
        "socket": args.socket,
        "user": args.user,
        "password": args.password,
        "defaults_file": args.defaults_file,
    }
    config = config.with_connection(**{key: value for key, value in connection.items() if value is not None})
    if config.limit < 0:
        raise ArgumentParseError(f"Unable to parse limit: {config.limit}")
    if config.connection.port < 0:
        raise ArgumentParseError(f"Unable to parse port: {config.connection.port}")
    if config.view not in VIEWS:
        raise UsageError(f"Unknown view '{config.view}'")
    return config


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the sampler; returns the process exit status."""

    try:
        args = parse_args(sys.argv[1:] if argv is None else argv)
        parse_interval(args.interval)
        if args.version:
            print(f"{MY_NAME} version {__version__}")
            return 0
        if args.help:
            print(usage())
            return 0
        config = build_config(args, load_config())
    except ArgumentParseError as exc:
        LOG.error("%s: %s", MY_NAME, exc)
        return 1
    except UsageError as exc:
        print(f"{MY_NAME}: {exc}")
        print(usage())
        return 1

    configure_logging(config.debug)
    LOG.debug("Starting %s", MY_NAME)

    try:
        spec = resolve_connection(config.connection)
    except ConflictingOptionsError as exc:
        print(f"{MY_NAME}: {exc}")
        return 1

    connector = Connector()
    try:
        connector.connect(spec)
        sampler = Sampler(connector.handle, config)
        try:
            sampler.run()
        finally:
            sampler.cleanup()
    except ConnectorError as exc:
        LOG.error("%s: %s", MY_NAME, exc)
        return 1
    finally:
        connector.close()

    LOG.debug("Terminating %s", MY_NAME)
    return 0


def _parse_int(name: str, value: str) -> int:
    if not _INTEGER.fullmatch(value):
        raise ArgumentParseError(f"Unable to parse {name}: {value!r}")
    number = int(value)
    if number < 0:
        raise ArgumentParseError(f"Unable to parse {name}: {value!r}")
    return number


if __name__ == "__main__":
    raise SystemExit(main())
