#!/usr/bin/env python3

"""Command line entry point: build profiles from debug information and query them."""

import argparse
import sys
from pathlib import Path
from typing import NoReturn

from .application.builders import create_profile_from_dwarf, create_profile_from_pdb
from .domain.models.errors import IsrError, TypeNotFoundError
from .domain.models.profile import Architecture, Profile, descriptors
from .domain.services.resolution import ProfileResolver
from .infrastructure.codec import json_codec
from .infrastructure.config import Config
from .infrastructure.logging import LoggerSetup, get_logger


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="isr",
        description="Build normalized kernel type/symbol profiles from PDB or DWARF "
        "debug information and query field offsets and symbol addresses",
        epilog="""
Examples:
  # Profile from a Windows kernel PDB
  isr pdb ntkrnlmp.pdb -o profiles/ntkrnlmp.json

  # Profile from a Linux kernel image and its System.map
  isr dwarf vmlinux System.map -o profiles/linux.json

  # Force the architecture instead of reading the ELF header
  isr dwarf vmlinux System.map --architecture Arm64

  # Queries
  isr query profiles/linux.json --symbol init_task
  isr query profiles/linux.json --field task_struct.pid
  isr query profiles/linux.json --size task_struct

  # Using .env file for configuration
  echo 'ISR_OUTPUT_PATH=profiles/out.json' > .env
  isr pdb ntkrnlmp.pdb
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output with debug logs",
    )
    common.add_argument(
        "--log-dir",
        type=Path,
        help="Directory for log files (default: ./logs)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    pdb_parser = subparsers.add_parser("pdb", parents=[common], help="Build a profile from a PDB file")
    pdb_parser.add_argument("pdb_file", type=Path, help="Path to the PDB file")
    pdb_parser.add_argument("-o", "--output", type=Path, help="Output profile path (default: profile.json)")

    dwarf_parser = subparsers.add_parser(
        "dwarf", parents=[common], help="Build a profile from an ELF image with DWARF info"
    )
    dwarf_parser.add_argument("kernel", type=Path, help="Kernel image with debug info (e.g. vmlinux)")
    dwarf_parser.add_argument("system_map", type=Path, help="Matching System.map")
    dwarf_parser.add_argument("-o", "--output", type=Path, help="Output profile path (default: profile.json)")
    dwarf_parser.add_argument(
        "--architecture",
        choices=[architecture.value for architecture in Architecture],
        help="Override the architecture detected from the ELF header",
    )

    query_parser = subparsers.add_parser("query", parents=[common], help="Query a saved profile")
    query_parser.add_argument("profile", type=Path, help="Profile written by the pdb or dwarf command")
    query = query_parser.add_mutually_exclusive_group(required=True)
    query.add_argument("--symbol", metavar="NAME", help="Print the address of a symbol")
    query.add_argument("--field", metavar="STRUCT.FIELD", help="Print the layout of a field")
    query.add_argument("--size", metavar="STRUCT", help="Print the size of a struct")

    return parser.parse_args(argv)


def run_query(profile: Profile, args: argparse.Namespace) -> str:
    """
    Answer one query against a profile.

    Raises:
        ProfileLookupError: If the symbol, struct or field does not exist
    """
    resolver = ProfileResolver(profile)

    if args.symbol:
        symbol = resolver.find_symbol_descriptor(args.symbol)
        return f"{symbol.name} = 0x{symbol.offset:x}"

    if args.field:
        type_name, _, field_name = args.field.partition(".")
        if not field_name:
            raise ValueError(f"expected STRUCT.FIELD, got {args.field!r}")
        descriptor = resolver.find_field_descriptor(type_name, field_name)
        text = f"{args.field}: offset=0x{descriptor.offset:x} size={descriptor.size}"
        if isinstance(descriptor, descriptors.Bitfield):
            text += f" bit_position={descriptor.bit_position} bit_length={descriptor.bit_length}"
        return text

    struct = resolver.find_struct(args.size)
    if struct is None:
        raise TypeNotFoundError(args.size)
    return f"{args.size}: {resolver.struct_size(struct)} bytes"


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = Config.from_args(
            output_path=getattr(args, "output", None),
            verbose=args.verbose,
            architecture=getattr(args, "architecture", None),
            log_dir=args.log_dir,
        )
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    LoggerSetup.initialize(config.log_dir, verbose=config.verbose)
    logger = get_logger(__name__)
    logger.debug(f"Command: {args.command}")

    try:
        if args.command == "query":
            print(run_query(json_codec.load(args.profile), args))
            sys.exit(0)

        if args.command == "pdb":
            profile = create_profile_from_pdb(args.pdb_file)
        else:
            profile = create_profile_from_dwarf(args.kernel, args.system_map, config.architecture)

        config.ensure_output_dir()
        json_codec.save(profile, config.output_path)
    except FileNotFoundError as e:
        logger.error(f"File not found: {e.filename}")
        sys.exit(1)
    except (IsrError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
