#!/usr/bin/env python3

"""PDB (MSF 7.00) reader built on dissect.cstruct."""

from .dbi import AddressMap, PublicSymbol
from .pdb_file import PdbFile
from .tpi import TypeInformation, decode_record

__all__ = ["AddressMap", "PdbFile", "PublicSymbol", "TypeInformation", "decode_record"]
