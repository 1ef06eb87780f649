#!/usr/bin/env python3

"""System.map parsing.

Each line reads ``<hex address> <kind> <name>``. Only data and text
symbols (kinds ``d D t T``) are kept. A malformed line means the input is
not a System.map, so it aborts the whole parse.
"""

import re
from collections.abc import Iterable

from .....infrastructure.logging import get_logger
from ....models.errors import InvalidSystemMapError

logger = get_logger(__name__)

KEPT_SYMBOL_KINDS = frozenset("dDtT")

# Bare hex digits, without a 0x prefix or digit separators
HEX_ADDRESS = re.compile(r"[0-9a-fA-F]+")


def parse_system_map(lines: str | Iterable[str]) -> dict[str, int]:
    """
    Parse System.map content into a name -> address table.

    Args:
        lines: Whole file content or an iterable of lines (e.g. an open file)

    Returns:
        Symbols in file order; a repeated name keeps its last address

    Raises:
        InvalidSystemMapError: On a line with missing fields or a non-hex address
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    symbols: dict[str, int] = {}
    skipped = 0

    for line_number, line in enumerate(lines, start=1):
        fields = line.split()
        if not fields:
            continue
        if len(fields) < 3:
            raise InvalidSystemMapError(line_number, line, "expected address, kind and name")

        address_text, kind, name = fields[0], fields[1], fields[2]
        if not HEX_ADDRESS.fullmatch(address_text):
            raise InvalidSystemMapError(line_number, line, "address is not hexadecimal")
        address = int(address_text, 16)

        if kind not in KEPT_SYMBOL_KINDS:
            skipped += 1
            continue
        symbols[name] = address

    logger.debug(f"System.map: {len(symbols)} symbols kept, {skipped} of other kinds skipped")
    return symbols
