#!/usr/bin/env python3

"""Read access to the parts of a PDB needed to build a profile."""

from collections.abc import Iterator
from typing import BinaryIO

from ...domain.models.errors import PdbFormatError
from ..logging import get_logger
from .c_pdb import DBI_STREAM, TPI_STREAM
from .dbi import AddressMap, DebugInformation, PublicSymbol, iter_public_symbols, parse_omap, parse_section_headers
from .msf import MsfFile
from .tpi import TypeInformation

logger = get_logger(__name__)


class PdbFile:
    """A PDB opened for profile extraction.

    Args:
        fh: Binary file handle positioned anywhere; it must stay open while
            the object is used.

    Raises:
        PdbFormatError: If the container, DBI or TPI stream is malformed.
    """

    def __init__(self, fh: BinaryIO):
        try:
            self.msf = MsfFile(fh)
            self.dbi = DebugInformation(self.msf.stream_data(DBI_STREAM))
            self.types = TypeInformation(self.msf.stream_data(TPI_STREAM))
        except EOFError as e:
            raise PdbFormatError(f"truncated PDB: {e}") from e

    @property
    def machine(self) -> int:
        """IMAGE_FILE_MACHINE_* value of the image the PDB describes."""
        return self.dbi.machine

    def public_symbols(self) -> Iterator[PublicSymbol]:
        try:
            data = self.msf.stream_data(self.dbi.symbol_record_stream)
        except EOFError as e:
            raise PdbFormatError(f"truncated symbol record stream: {e}") from e
        yield from iter_public_symbols(data)

    def address_map(self) -> AddressMap:
        streams = self.dbi.debug_streams
        if "section_header" not in streams:
            raise PdbFormatError("PDB has no section header stream")

        omap = None
        section_stream = streams["section_header"]
        try:
            if "omap_from_src" in streams and "section_header_orig" in streams:
                omap = sorted(parse_omap(self.msf.stream_data(streams["omap_from_src"])))
                section_stream = streams["section_header_orig"]
                logger.debug(f"Translating addresses through OMAP ({len(omap)} entries)")

            sections = parse_section_headers(self.msf.stream_data(section_stream))
        except EOFError as e:
            raise PdbFormatError(f"truncated section data: {e}") from e
        return AddressMap([section.virtual_address for section in sections], omap)
