"""Interface for ``python -m edge_kv``."""

from __future__ import annotations

import asyncio
import logging
import sys
from argparse import ArgumentParser, ArgumentTypeError, Namespace
from typing import TYPE_CHECKING

from ._version import version
from .fetch import fetch_url, status, text
from .storage import Storage


if TYPE_CHECKING:
    from collections.abc import Sequence


__all__ = ["main"]


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as error:
        msg = f"invalid int value: {raw!r}"
        raise ArgumentTypeError(msg) from error
    if value < 1:
        msg = f"must be a positive integer, got {value}"
        raise ArgumentTypeError(msg)
    return value


def _build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="edge_kv")
    _ = parser.add_argument("-v", "--version", action="version", version=version)
    _ = parser.add_argument("--log-level", default="WARNING", help="logging level (default: WARNING)")
    commands = parser.add_subparsers(dest="command")

    _ = commands.add_parser("backend", help="print the backend selected for this environment")

    get_parser = commands.add_parser("get", help="print the value stored at KEY")
    _ = get_parser.add_argument("key")

    set_parser = commands.add_parser("set", help="store VALUE (UTF-8 text) at KEY")
    _ = set_parser.add_argument("key")
    _ = set_parser.add_argument("value")

    del_parser = commands.add_parser("del", help="delete KEY")
    _ = del_parser.add_argument("key")

    scan_parser = commands.add_parser("scan", help="list keys matching a glob pattern")
    _ = scan_parser.add_argument("--match", default="*")
    _ = scan_parser.add_argument("--count", type=_positive_int, default=100)

    fetch_parser = commands.add_parser("fetch", help="fetch URL and print status and body")
    _ = fetch_parser.add_argument("url")
    return parser


async def _run(args: Namespace) -> int:
    storage = Storage()
    try:
        if args.command == "backend":
            _ = await storage.backend()
            print(storage.selector.backend_name)
        elif args.command == "get":
            value = await storage.get(args.key)
            if value is None:
                return 1
            _ = sys.stdout.buffer.write(value + b"\n")
        elif args.command == "set":
            await storage.set(args.key, args.value.encode())
        elif args.command == "del":
            await storage.delete(args.key)
        elif args.command == "scan":
            for key in await storage.iter_keys(args.match, args.count):
                print(key)
        elif args.command == "fetch":
            response = await fetch_url(args.url)
            print(status(response))
            print(text(response))
    finally:
        await storage.close()
    return 0


def main(args: Sequence[str] | None = None) -> None:
    """Argument parser for the CLI."""
    parser = _build_parser()
    parsed = parser.parse_args(args)
    logging.basicConfig(level=parsed.log_level.upper(), format="%(asctime)s %(levelname)s [%(name)s]: %(message)s")
    if parsed.command is None:
        parser.print_help()
        return
    exit_code = asyncio.run(_run(parsed))
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
