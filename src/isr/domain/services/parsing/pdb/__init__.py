#!/usr/bin/env python3

"""PDB normalizer: type records and public symbols into profile data."""

from .primitives import primitive_kind
from .symbol_parser import parse_public_symbols
from .type_parser import PdbTypeParser, type_name

__all__ = ["PdbTypeParser", "parse_public_symbols", "primitive_kind", "type_name"]
