#!/usr/bin/env python3

"""Profile builders for PDB and DWARF inputs."""

from .base_builder import ProfileBuilder
from .dwarf_profile_builder import DwarfProfileBuilder, create_profile_from_dwarf
from .pdb_profile_builder import PdbProfileBuilder, create_profile_from_pdb

__all__ = [
    "DwarfProfileBuilder",
    "PdbProfileBuilder",
    "ProfileBuilder",
    "create_profile_from_dwarf",
    "create_profile_from_pdb",
]
