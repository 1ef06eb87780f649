#!/usr/bin/env python3

"""Profile builds from ELF kernel images with DWARF info and a System.map."""

from pathlib import Path

from elftools.common.exceptions import DWARFError, ELFError
from elftools.construct.core import ConstructError
from elftools.dwarf.dwarfinfo import DWARFInfo
from elftools.elf.elffile import ELFFile

from ...domain.models.errors import DwarfFormatError
from ...domain.models.profile import Architecture, Profile
from ...domain.services.parsing.dwarf import DwarfTypeParser, parse_system_map
from ...infrastructure.elf_platform import PlatformDetector
from ...infrastructure.logging import ProgressTracker, get_logger, log_timing
from .base_builder import ProfileBuilder

logger = get_logger(__name__)

DEFAULT_ARCHITECTURE = Architecture.AMD64

# Truncated sections surface as errors of the construct library bundled with pyelftools
DECODE_ERRORS = (ELFError, DWARFError, ConstructError)


class DwarfProfileBuilder(ProfileBuilder):
    """Builds a profile from a kernel image and its System.map.

    Args:
        elf_path: Kernel image with DWARF sections (e.g. vmlinux)
        system_map_path: Matching System.map
        architecture: Override for the architecture detected from the ELF header
    """

    def __init__(
        self,
        elf_path: Path,
        system_map_path: Path,
        architecture: Architecture | str | None = None,
    ):
        super().__init__(elf_path)
        self.system_map_path = system_map_path
        self.architecture = Architecture.parse(architecture) if architecture is not None else None
        self.elf_file: ELFFile | None = None
        self.dwarf_info: DWARFInfo | None = None

    def _load(self) -> None:
        try:
            self.elf_file = ELFFile(self.file_handle)  # type: ignore[no-untyped-call]
            if not self.elf_file.has_dwarf_info():  # type: ignore[no-untyped-call]
                raise DwarfFormatError(f"No DWARF info found in {self.path}")
            self.dwarf_info = self.elf_file.get_dwarf_info()  # type: ignore[no-untyped-call]
        except DECODE_ERRORS as e:
            raise DwarfFormatError(f"Cannot read {self.path}: {e}") from e
        logger.info(f"DWARF info loaded from {self.path}")

    def resolve_architecture(self) -> Architecture:
        if self.architecture is not None:
            return self.architecture

        assert self.elf_file is not None
        detected = PlatformDetector.detect(self.elf_file)
        if detected is None:
            logger.warning(f"Falling back to {DEFAULT_ARCHITECTURE}")
            return DEFAULT_ARCHITECTURE
        return detected

    @log_timing
    def build(self) -> Profile:
        """
        Build the profile.

        Raises:
            InvalidSystemMapError: If the System.map is malformed
            DwarfFormatError: If the DWARF sections cannot be decoded
        """
        if self.dwarf_info is None:
            raise RuntimeError("DwarfProfileBuilder.build() called outside of a with block")

        progress = ProgressTracker(logger, entry_label="types")
        architecture = self.resolve_architecture()

        with progress.track_operation("System.map"):
            with open(self.system_map_path, encoding="utf-8", errors="replace") as f:
                symbols = parse_system_map(f)

        parser = DwarfTypeParser(self.dwarf_info, progress=progress)
        with progress.track_operation("compilation units"):
            try:
                for cu in self.dwarf_info.iter_CUs():
                    with progress.track_unit(cu):
                        parser.add_unit(cu)
            except DECODE_ERRORS as e:
                raise DwarfFormatError(f"Cannot decode DWARF info of {self.path}: {e}") from e

        progress.report_summary()
        logger.info(
            f"Profile: {len(symbols)} symbols, {len(parser.types.structs)} structs, "
            f"{len(parser.types.enums)} enums"
        )
        return Profile(architecture=architecture, symbols=symbols, types=parser.types)


def create_profile_from_dwarf(
    elf_path: Path,
    system_map_path: Path,
    architecture: Architecture | str | None = None,
) -> Profile:
    with DwarfProfileBuilder(elf_path, system_map_path, architecture) as builder:
        return builder.build()
