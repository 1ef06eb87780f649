#!/usr/bin/env python3

"""DBI stream: machine type, public symbols and section address mapping."""

import io
from bisect import bisect_right
from collections.abc import Iterator
from dataclasses import dataclass

from ...domain.models.errors import PdbFormatError
from ..logging import get_logger
from .c_pdb import DBI_HEADER_SIZE, DEBUG_HEADER_STREAMS, NIL_STREAM, S_PUB32, c_pdb

logger = get_logger(__name__)

SECTION_HEADER_SIZE = 40
OMAP_ENTRY_SIZE = 8
# flags, offset and segment of an S_PUB32 record
PUBSYM32_SIZE = 10


@dataclass(frozen=True)
class PublicSymbol:
    """S_PUB32 record; ``name`` is None when it is not valid UTF-8."""

    name: str | None
    raw_name: bytes
    segment: int
    offset: int
    flags: int


class DebugInformation:
    """Parsed DBI header and optional debug header.

    Args:
        data: Whole DBI stream.

    Raises:
        PdbFormatError: If the stream is truncated.
    """

    def __init__(self, data: bytes):
        if len(data) < DBI_HEADER_SIZE:
            raise PdbFormatError(f"DBI stream too short ({len(data)} bytes)")

        self.header = c_pdb.DBI_HEADER(data)
        self.machine: int = self.header.machine
        self.symbol_record_stream: int = self.header.sym_record_stream

        substreams = (
            self.header.mod_info_size,
            self.header.section_contribution_size,
            self.header.section_map_size,
            self.header.source_info_size,
            self.header.type_server_map_size,
            self.header.ec_substream_size,
        )
        if any(size < 0 for size in substreams) or self.header.optional_dbg_header_size < 0:
            raise PdbFormatError("negative DBI substream size")

        offset = DBI_HEADER_SIZE + sum(substreams)
        debug_header = data[offset : offset + self.header.optional_dbg_header_size]
        indices = [c_pdb.uint16(debug_header[i : i + 2]) for i in range(0, len(debug_header) - 1, 2)]

        self.debug_streams: dict[str, int] = {}
        for name, index in zip(DEBUG_HEADER_STREAMS, indices):
            if index != NIL_STREAM:
                self.debug_streams[name] = index

        logger.debug(
            f"DBI stream: machine 0x{self.machine:x}, symbol records in stream "
            f"{self.symbol_record_stream}, debug streams {self.debug_streams}"
        )


def iter_public_symbols(data: bytes) -> Iterator[PublicSymbol]:
    """
    Iterate S_PUB32 records in a symbol record stream; other records are skipped.

    Raises:
        PdbFormatError: If a record extends past the stream
    """
    fh = io.BytesIO(data)
    offset = 0

    while offset + 4 <= len(data):
        fh.seek(offset)
        header = c_pdb.RECORD_HEADER(fh)
        record_end = offset + 2 + header.length
        if header.length < 2 or record_end > len(data):
            raise PdbFormatError(f"bad symbol record length {header.length} at offset 0x{offset:x}")

        if header.kind == S_PUB32:
            if header.length < 2 + PUBSYM32_SIZE:
                raise PdbFormatError(f"truncated S_PUB32 record at offset 0x{offset:x}")
            record = c_pdb.PUBSYM32(fh)
            name_start = fh.tell()
            name_end = data.find(b"\x00", name_start, record_end)
            raw_name = data[name_start : name_end if name_end != -1 else record_end]
            try:
                name = raw_name.decode("utf-8")
            except UnicodeDecodeError:
                name = None
            yield PublicSymbol(name, raw_name, record.segment, record.offset, record.flags)

        offset = record_end


def parse_section_headers(data: bytes) -> list:
    return [
        c_pdb.IMAGE_SECTION_HEADER(data[i : i + SECTION_HEADER_SIZE])
        for i in range(0, len(data) - SECTION_HEADER_SIZE + 1, SECTION_HEADER_SIZE)
    ]


def parse_omap(data: bytes) -> list[tuple[int, int]]:
    entries = []
    for i in range(0, len(data) - OMAP_ENTRY_SIZE + 1, OMAP_ENTRY_SIZE):
        entry = c_pdb.OMAP_ENTRY(data[i : i + OMAP_ENTRY_SIZE])
        entries.append((entry.source, entry.target))
    return entries


class AddressMap:
    """Translates (segment, offset) pairs into relative virtual addresses.

    Segments are 1-based indices into the section headers. When the image
    was rearranged after linking (OMAP), addresses are computed against the
    original section headers and then mapped through the OMAP table.

    Args:
        sections: Section virtual addresses, in section order.
        omap_from_src: Sorted (source RVA, target RVA) pairs, if any.
    """

    def __init__(self, sections: list[int], omap_from_src: list[tuple[int, int]] | None = None):
        self.sections = sections
        self.omap = omap_from_src or []
        self._omap_sources = [source for source, _ in self.omap]

    def rva(self, segment: int, offset: int) -> int | None:
        if segment < 1 or segment > len(self.sections):
            return None

        address = self.sections[segment - 1] + offset
        if not self.omap:
            return address

        position = bisect_right(self._omap_sources, address) - 1
        if position < 0:
            return None
        source, target = self.omap[position]
        if target == 0:
            return None
        return target + (address - source)
