#!/usr/bin/env python3
"""
keyreg CLI

Command-line interface for the key registry:
  keyreg mint    - Mint standalone keys
  keyreg assign  - Key (rename) a file and record its lineage
  keyreg lineage - Report the rename lineage of keys
  keyreg attr    - Set or show key attributes

Usage:
  keyreg [--config <file>] [--base-dir <dir>] [--name <name>] mint [-n <count>]
  keyreg assign <file> --prefix <prefix> [--ext <ext>] [--key <key>] [--move]
  keyreg lineage <query|ALL>
  keyreg attr set <key> <attribute> <value>
  keyreg attr get <key>
  keyreg attr find <attribute> <value>
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import RegistryConfig
from .errors import RegistryError, RegistrySaturated
from .service import AssignRequest, RegistryService


def load_config(args) -> RegistryConfig:
    """Config file (if any) with command-line overrides applied."""
    config = RegistryConfig.from_file(args.config) if args.config else RegistryConfig()
    return config.with_overrides(
        base_dir=args.base_dir,
        registry_name=args.name,
        max_keys_to_try=args.max_tries,
        match_policy=args.match,
    )


def cmd_mint(service: RegistryService, args) -> int:
    """Mint standalone keys."""
    keys = service.mint_simple_keys(args.count, length=args.length, comment=args.comment)
    for key in keys:
        print(key)
    return 0


def cmd_assign(service: RegistryService, args) -> int:
    """Key a file."""
    result = service.assign_key(AssignRequest(
        original_name=args.file,
        prefix=args.prefix,
        extension=args.ext,
        key=args.key,
        length=args.length,
        comment=args.comment,
        move=args.move,
    ))
    print(f"{result.key}\t{result.new_name}")
    if result.new_path:
        print(f"Moved {args.file} -> {result.new_path}")
    return 0


def cmd_lineage(service: RegistryService, args) -> int:
    """Print lineage for a query."""
    report = service.report_lineage(args.query)

    if report.wildcard:
        for edge in sorted(report.edges, key=lambda e: e.as_tuple()):
            print(f"{edge.new_key}\t{edge.old_key}")
        return 0

    if not report.chains and not report.errors:
        print(f"No keys match {args.query!r}")
        return 0

    for key, chain in report.chains.items():
        print(f"{key}: {' <- '.join(chain)}")
    for key, err in report.errors.items():
        print(f"error: {err.kind}: {err}", file=sys.stderr)
    if report.ok:
        return 0
    return next(iter(report.errors.values())).exit_code


def cmd_attr(service: RegistryService, args) -> int:
    """Set, show or search key attributes."""
    if args.attr_command == "set":
        service.set_attribute(args.key, args.attribute, args.value, comment=args.comment)
        return 0

    if args.attr_command == "find":
        for key in service.find_keys(args.attribute, args.value):
            print(key)
        return 0

    for attribute, value in sorted(service.get_attributes(args.key).items()):
        print(f"{attribute}\t{value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keyreg",
        description="keyreg - Short-key naming registry with rename lineage",
    )
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--base-dir", help="Directory holding the registry files")
    parser.add_argument("--name", help="Registry base filename (default: keys)")
    parser.add_argument("--max-tries", type=int, help="Collision budget per batch")
    parser.add_argument("--match", choices=["substring", "regex", "exact"],
                        help="How lineage queries match keys")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # mint command
    mint_parser = subparsers.add_parser("mint", help="Mint standalone keys")
    mint_parser.add_argument("-n", "--count", type=int, default=1,
                             help="Number of keys (default: 1)")
    mint_parser.add_argument("--length", type=int, help="Key length")
    mint_parser.add_argument("-c", "--comment", help="Comment for the operation log")

    # assign command
    assign_parser = subparsers.add_parser("assign", help="Key a file and record its lineage")
    assign_parser.add_argument("file", help="File being renamed")
    assign_parser.add_argument("--prefix", required=True, help="Prefix of the new name")
    assign_parser.add_argument("--ext", help="Extension of the new name")
    assign_parser.add_argument("--key", help="Reuse this key instead of minting one")
    assign_parser.add_argument("--length", type=int, help="Key length")
    assign_parser.add_argument("--move", action="store_true",
                               help="Rename the file on disk too")
    assign_parser.add_argument("-c", "--comment", help="Comment for the operation log")

    # lineage command
    lineage_parser = subparsers.add_parser("lineage", help="Report rename lineage")
    lineage_parser.add_argument("query", help="Key pattern, or ALL for every edge")

    # attr command
    attr_parser = subparsers.add_parser("attr", help="Key attributes")
    attr_sub = attr_parser.add_subparsers(dest="attr_command", required=True)
    attr_set = attr_sub.add_parser("set", help="Set an attribute")
    attr_set.add_argument("key")
    attr_set.add_argument("attribute")
    attr_set.add_argument("value")
    attr_set.add_argument("-c", "--comment", help="Comment for the operation log")
    attr_get = attr_sub.add_parser("get", help="Show attributes")
    attr_get.add_argument("key")
    attr_find = attr_sub.add_parser("find", help="List keys with an attribute value")
    attr_find.add_argument("attribute")
    attr_find.add_argument("value")

    return parser


COMMANDS = {
    "mint": cmd_mint,
    "assign": cmd_assign,
    "lineage": cmd_lineage,
    "attr": cmd_attr,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    try:
        service = RegistryService(load_config(args))
        return command(service, args)
    except RegistrySaturated as e:
        print(f"error: {e.kind}: {e}", file=sys.stderr)
        for key in e.minted:
            print(f"  minted before failure (not saved): {key}", file=sys.stderr)
        return e.exit_code
    except RegistryError as e:
        print(f"error: {e.kind}: {e}", file=sys.stderr)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
