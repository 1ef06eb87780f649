#!/usr/bin/env python3

"""Symbol table from PDB public symbols."""

from collections.abc import Iterable

from .....infrastructure.logging import get_logger
from .....infrastructure.pdb import AddressMap, PublicSymbol

logger = get_logger(__name__)


def parse_public_symbols(symbols: Iterable[PublicSymbol], address_map: AddressMap) -> dict[str, int]:
    """
    Map public symbol names to relative virtual addresses.

    Symbols whose name is not valid UTF-8 or whose address cannot be
    translated are dropped with a warning.

    Args:
        symbols: S_PUB32 records
        address_map: Section/OMAP translation of the same PDB

    Returns:
        name -> RVA, in record order
    """
    table: dict[str, int] = {}

    for symbol in symbols:
        if symbol.name is None:
            logger.warning(f"Skipping public symbol with undecodable name {symbol.raw_name!r}")
            continue

        rva = address_map.rva(symbol.segment, symbol.offset)
        if rva is None:
            logger.warning(
                f"Skipping public symbol {symbol.name}: "
                f"no address for {symbol.segment:04x}:{symbol.offset:08x}"
            )
            continue

        table[symbol.name] = rva

    logger.debug(f"Collected {len(table)} public symbols")
    return table
