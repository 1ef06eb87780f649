#!/usr/bin/env python3

"""MSF 7.00 container: the multi-stream file format underlying PDBs.

A PDB is a small file system. The superblock points at a block map, the
block map lists the blocks of the stream directory, and the directory
lists the size and blocks of every stream.
"""

import math
from typing import BinaryIO

from dissect.util.stream import AlignedStream

from ...domain.models.errors import PdbFormatError
from ..logging import get_logger
from .c_pdb import PDB7_SIGNATURE, c_pdb

logger = get_logger(__name__)

NIL_STREAM_SIZE = 0xFFFFFFFF


def pages(size: int, page_size: int) -> int:
    """Number of pages needed to hold ``size`` bytes."""
    return math.ceil(size / page_size)


class PageStream(AlignedStream):
    """A stream whose bytes are scattered over the container's pages.

    Args:
        fh: File handle of the PDB.
        pages: Page numbers holding the stream, in order.
        size: Stream size in bytes.
        page_size: MSF block size.
    """

    def __init__(self, fh: BinaryIO, pages: list[int], size: int, page_size: int):
        super().__init__(size=size)
        self.fh = fh
        self.pages = pages
        self.page_size = page_size

    def _read(self, offset: int, length: int) -> bytes:
        result = []

        while length > 0:
            page_index, page_offset = divmod(offset, self.page_size)
            if page_index >= len(self.pages):
                break

            chunk = min(length, self.page_size - page_offset)
            self.fh.seek(self.pages[page_index] * self.page_size + page_offset)
            result.append(self.fh.read(chunk))

            offset += chunk
            length -= chunk

        return b"".join(result)


class MsfFile:
    """Stream directory of an MSF 7.00 container.

    Args:
        fh: File handle of the PDB, opened in binary mode.

    Raises:
        PdbFormatError: If the file is not an MSF 7.00 container.
    """

    def __init__(self, fh: BinaryIO):
        self.fh = fh

        fh.seek(0)
        self.superblock = c_pdb.MSF_SUPERBLOCK(fh)
        if self.superblock.magic != PDB7_SIGNATURE:
            raise PdbFormatError("not an MSF 7.00 file (bad superblock magic)")

        self.page_size = self.superblock.block_size
        if self.page_size == 0 or self.page_size & (self.page_size - 1):
            raise PdbFormatError(f"invalid MSF block size: {self.page_size}")

        directory_size = self.superblock.num_directory_bytes
        fh.seek(self.superblock.block_map_addr * self.page_size)
        directory_pages = c_pdb.uint32[pages(directory_size, self.page_size)](fh)
        directory = PageStream(fh, directory_pages, directory_size, self.page_size)

        stream_count = c_pdb.uint32(directory)
        stream_sizes = c_pdb.uint32[stream_count](directory)

        self.streams: list[PageStream] = []
        for size in stream_sizes:
            if size == NIL_STREAM_SIZE:
                size = 0
            stream_pages = c_pdb.uint32[pages(size, self.page_size)](directory)
            self.streams.append(PageStream(fh, stream_pages, size, self.page_size))

        logger.debug(f"MSF container: {len(self.streams)} streams, block size {self.page_size}")

    def stream(self, index: int) -> PageStream:
        if index >= len(self.streams):
            raise PdbFormatError(f"stream {index} does not exist ({len(self.streams)} streams)")
        return self.streams[index]

    def stream_data(self, index: int) -> bytes:
        """Whole content of a stream."""
        stream = self.stream(index)
        stream.seek(0)
        return stream.read()
