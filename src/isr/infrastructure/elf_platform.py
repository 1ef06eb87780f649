#!/usr/bin/env python3

"""Target architecture detection for ELF kernel images.

The architecture of a DWARF-derived profile comes from the ELF header's
machine field:

- EM_386 -> X86
- EM_X86_64 -> Amd64
- EM_ARM -> Arm
- EM_AARCH64 -> Arm64
"""

from elftools.common.exceptions import DWARFError, ELFError
from elftools.elf.elffile import ELFFile

from ..domain.models.errors import UnsupportedArchitectureError
from ..domain.models.profile import Architecture
from .logging import get_logger

logger = get_logger(__name__)


class PlatformDetector:
    """Detects the architecture an ELF image was built for."""

    @staticmethod
    def detect(elf: ELFFile) -> Architecture | None:
        """Architecture of an opened ELF image.

        Args:
            elf: ELFFile object

        Returns:
            Detected architecture, or None for unsupported machines
        """
        machine = elf.header["e_machine"]
        is_little_endian: bool = elf.little_endian
        dwarf_version = PlatformDetector._get_dwarf_version(elf)

        logger.debug(
            f"ELF characteristics: machine={machine}, "
            f"little_endian={is_little_endian}, "
            f"dwarf_version={dwarf_version}"
        )

        try:
            architecture = Architecture.from_elf_machine(machine)
        except UnsupportedArchitectureError:
            logger.warning(f"Unsupported ELF machine {machine}")
            return None

        logger.info(f"Detected {architecture} ELF image")
        return architecture

    @staticmethod
    def _get_dwarf_version(elf: ELFFile) -> int | None:
        """DWARF version of the first compilation unit, if the image has DWARF info."""
        try:
            if not elf.has_dwarf_info():  # type: ignore[no-untyped-call]
                return None

            dwarf_info = elf.get_dwarf_info()  # type: ignore[no-untyped-call]
            for cu in dwarf_info.iter_CUs():
                version: int = cu.header["version"]
                return version
        except (ELFError, DWARFError) as e:
            logger.debug(f"Could not read DWARF version: {e}")

        return None
