"""Command-line interface for propstore.

Usage:
    python -m propstore list server.yaml
    python -m propstore list server.yaml --import overrides.properties --set port=9090
    python -m propstore get server.yaml port
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from propstore import __version__
from propstore.declarative import load_descriptor, load_logging_config, load_yaml_file
from propstore.errors import DescriptorError, LoadError, PropertiesSyntaxError
from propstore.logging import LoggingConfig, get_logger, setup_logging
from propstore.manager import PropertiesManager
from propstore.parser import parse_properties

log = get_logger("cli")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="propstore",
        description="Load, merge and inspect properties described by a YAML descriptor",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=None,
        help="Increase verbosity (can be repeated)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="Dump the loaded properties")
    list_parser.add_argument("descriptor", type=Path, help="Descriptor YAML file")
    list_parser.add_argument(
        "--import",
        dest="imports",
        action="append",
        type=Path,
        default=[],
        help="Properties file to import (repeatable; earlier files win)",
    )
    list_parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Set a property after loading (repeatable)",
    )

    get_parser = subparsers.add_parser("get", help="Print one property")
    get_parser.add_argument("descriptor", type=Path, help="Descriptor YAML file")
    get_parser.add_argument("key", help="Property name")

    return parser


def _read_import(path: Path) -> dict[str, str]:
    return parse_properties(path.read_bytes())


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point. Returns the process exit code."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        logging_config = load_logging_config(load_yaml_file(args.descriptor))
        if args.verbose is not None:
            logging_config = LoggingConfig(verbose=min(args.verbose, 4), file=logging_config.file)
        setup_logging(logging_config)

        descriptor = load_descriptor(args.descriptor)
        imports = [_read_import(p) for p in getattr(args, "imports", [])]
        manager = PropertiesManager(descriptor, *imports)
        manager.load()
        log.debug("Loaded %d properties for %s", len(manager), descriptor.name)
    except (OSError, DescriptorError, LoadError, PropertiesSyntaxError) as e:
        print(f"propstore: {e}", file=sys.stderr)
        return 2

    if args.command == "get":
        value = manager.get(args.key)
        if value is None:
            return 1
        print(value)
        return 0

    for override in args.overrides:
        key, sep, value = override.partition("=")
        if not sep:
            parser.error(f"--set expects KEY=VALUE, got: {override}")
        manager.set(key, value)

    manager.list(sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
