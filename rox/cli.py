"""
Command line inspection of a RocksDB database.
"""

import argparse
import logging
import os
import sys
from itertools import islice

from rox.engine.database import Database
from rox.models.exceptions import RoxError
from rox.models.outcome import NOT_FOUND

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rox", description="Inspect a RocksDB database.")
    parser.add_argument("path", help="database directory")
    parser.add_argument(
        "--create", action="store_true", help="create the database if it is missing"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("count", help="print the approximate number of keys")

    get = commands.add_parser("get", help="print the value stored under KEY")
    get.add_argument("key")
    get.add_argument("--decode", action="store_true", help="unpickle the stored value")

    keys = commands.add_parser("keys", help="list keys in order")
    keys.add_argument("--limit", type=int, default=None)
    keys.add_argument("--reverse", action="store_true")
    keys.add_argument("--start", default=None, help="first key to list")

    put = commands.add_parser("put", help="store VALUE (utf-8 bytes) under KEY")
    put.add_argument("key")
    put.add_argument("value")

    delete = commands.add_parser("delete", help="remove KEY")
    delete.add_argument("key")

    return parser


def _show(value: object) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="backslashreplace")
    return repr(value)


def run(db: Database, args: argparse.Namespace) -> int:
    """Execute one parsed command against an open database."""
    if args.command == "count":
        print(db.count())
    elif args.command == "get":
        value = db.get(args.key, {"decode": args.decode})
        if value is NOT_FOUND:
            print(f"not found: {args.key}", file=sys.stderr)
            return 1
        print(_show(value))
    elif args.command == "keys":
        with db.stream_keys(reverse=args.reverse, start=args.start) as keys:
            for key in islice(keys, args.limit):
                print(_show(key))
    elif args.command == "put":
        db.put(args.key, args.value.encode("utf-8"))
    elif args.command == "delete":
        db.delete(args.key)
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    args = build_parser().parse_args(argv)

    try:
        with Database.open(args.path, {"create_if_missing": args.create}) as db:
            return run(db, args)
    except RoxError as e:
        logger.error(f"{args.command} failed: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
