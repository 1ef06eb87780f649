#!/usr/bin/env python3

"""Profile builds from Windows program databases."""

from pathlib import Path

from ...domain.models.profile import Architecture, Profile
from ...domain.services.parsing.pdb import PdbTypeParser, parse_public_symbols
from ...infrastructure.logging import ProgressTracker, get_logger, log_timing
from ...infrastructure.pdb import PdbFile
from .base_builder import ProfileBuilder

logger = get_logger(__name__)


class PdbProfileBuilder(ProfileBuilder):
    """Builds a profile from a PDB file.

    The architecture comes from the machine type recorded in the DBI
    stream, symbols from the public symbol records and types from the
    TPI stream.
    """

    def __init__(self, pdb_path: Path):
        super().__init__(pdb_path)
        self.pdb: PdbFile | None = None

    def _load(self) -> None:
        assert self.file_handle is not None
        self.pdb = PdbFile(self.file_handle)
        logger.info(f"PDB loaded from {self.path} ({len(self.pdb.types)} type records)")

    @log_timing
    def build(self) -> Profile:
        """
        Build the profile.

        Raises:
            PdbFormatError: If a stream is malformed
            UnsupportedArchitectureError: If the machine type is not supported
        """
        if self.pdb is None:
            raise RuntimeError("PdbProfileBuilder.build() called outside of a with block")

        progress = ProgressTracker(logger, entry_label="types")
        architecture = Architecture.from_pe_machine(self.pdb.machine)
        logger.info(f"Architecture: {architecture}")

        with progress.track_operation("public symbols"):
            symbols = parse_public_symbols(self.pdb.public_symbols(), self.pdb.address_map())

        with progress.track_operation("type records"):
            parser = PdbTypeParser(self.pdb.types, architecture, progress=progress)
            types = parser.parse()

        progress.report_summary()
        logger.info(
            f"Profile: {len(symbols)} symbols, {len(types.structs)} structs, {len(types.enums)} enums"
        )
        return Profile(architecture=architecture, symbols=symbols, types=types)


def create_profile_from_pdb(pdb_path: Path) -> Profile:
    with PdbProfileBuilder(pdb_path) as builder:
        return builder.build()
