#!/usr/bin/env python3

"""DWARF normalizer: type DIEs and System.map into profile data."""

from .system_map import parse_system_map
from .type_parser import DwarfTypeParser
from .type_translator import DwarfTypeTranslator, base_kind

__all__ = ["DwarfTypeParser", "DwarfTypeTranslator", "base_kind", "parse_system_map"]
