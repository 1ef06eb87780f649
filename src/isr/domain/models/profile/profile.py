#!/usr/bin/env python3

"""Profile model: architecture, symbol table and type collection."""

from dataclasses import dataclass, field
from enum import Enum

from ..errors import UnsupportedArchitectureError
from .types import TypeCollection


class Architecture(Enum):
    """Target architectures a profile can describe."""

    X86 = "X86"
    ARM = "Arm"
    AMD64 = "Amd64"
    ARM64 = "Arm64"

    def __str__(self) -> str:
        return self.value

    @property
    def pointer_size(self) -> int:
        return 8 if self in (Architecture.AMD64, Architecture.ARM64) else 4

    @classmethod
    def parse(cls, value: "Architecture | str") -> "Architecture":
        """Convert a tag such as ``"Amd64"`` into an ``Architecture``.

        Raises:
            UnsupportedArchitectureError: If the tag is not recognized
        """
        if isinstance(value, Architecture):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedArchitectureError(value) from None

    @classmethod
    def from_pe_machine(cls, machine: int) -> "Architecture":
        """Map an IMAGE_FILE_MACHINE_* value (as stored in a PDB's DBI stream)."""
        try:
            return _PE_MACHINES[machine]
        except KeyError:
            raise UnsupportedArchitectureError(f"PE machine 0x{machine:x}") from None

    @classmethod
    def from_elf_machine(cls, machine: str) -> "Architecture":
        """Map an ELF ``e_machine`` name as reported by pyelftools."""
        try:
            return _ELF_MACHINES[machine]
        except KeyError:
            raise UnsupportedArchitectureError(machine) from None


_PE_MACHINES = {
    0x014C: Architecture.X86,
    0x8664: Architecture.AMD64,
    0x01C0: Architecture.ARM,
    0x01C4: Architecture.ARM,
    0xAA64: Architecture.ARM64,
}

_ELF_MACHINES = {
    "EM_386": Architecture.X86,
    "EM_X86_64": Architecture.AMD64,
    "EM_ARM": Architecture.ARM,
    "EM_AARCH64": Architecture.ARM64,
}


@dataclass(frozen=True)
class Profile:
    """Normalized view of one kernel build.

    The architecture is validated on construction; a string tag is accepted
    and converted.
    """

    architecture: Architecture
    symbols: dict[str, int] = field(default_factory=dict)
    types: TypeCollection = field(default_factory=TypeCollection)

    def __post_init__(self) -> None:
        object.__setattr__(self, "architecture", Architecture.parse(self.architecture))
