#!/usr/bin/env python3

"""Typed accessors for pyelftools DIE attributes.

pyelftools exposes attribute values as raw Python objects whose meaning
depends on the attribute form: names are bytes, constants are ints, and
references are offsets. These helpers return ``None`` instead of guessing
when a value is not a plain constant.
"""

from functools import lru_cache
from typing import Any

from elftools.common.exceptions import ELFError
from elftools.dwarf.die import DIE
from elftools.dwarf.dwarf_expr import DWARFExprParser
from elftools.dwarf.dwarfinfo import DWARFInfo
from elftools.dwarf.structs import DWARFStructs

from .....infrastructure.logging import get_logger
from ..registration_policy import DeclarationSite
from .dwarf_constants import NON_CONSTANT_FORMS

logger = get_logger(__name__)

def udata(die: DIE, attribute: str) -> int | None:
    """Unsigned constant value of ``attribute``, or None if absent or not a constant."""
    attr = die.attributes.get(attribute)
    if attr is None or attr.form in NON_CONSTANT_FORMS:
        return None
    value = attr.value
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def flag(die: DIE, attribute: str) -> bool:
    attr = die.attributes.get(attribute)
    return attr is not None and bool(attr.value)


def _text(value: Any) -> str | None:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    return None


def die_name(die: DIE) -> str | None:
    attr = die.attributes.get("DW_AT_name")
    return _text(attr.value) if attr is not None else None


def type_name(die: DIE) -> str:
    """Declared name, or a synthetic one derived from the DIE's section offset."""
    name = die_name(die)
    return name if name is not None else f"__unnamed_{die.offset:x}"


def is_declaration(die: DIE) -> bool:
    return flag(die, "DW_AT_declaration")


@lru_cache(maxsize=None)
def _expression_parser(structs: DWARFStructs) -> DWARFExprParser:
    return DWARFExprParser(structs)


def data_member_location(die: DIE) -> int | None:
    """
    Byte offset from ``DW_AT_data_member_location``.

    DWARF 3 and later store a constant. DWARF 2 producers emit a location
    expression, normally ``DW_OP_plus_uconst <uleb128>``; pyelftools hands
    that over as a list of raw expression bytes, which are decoded with
    the expression parser of the DIE's compilation unit.
    """
    attr = die.attributes.get("DW_AT_data_member_location")
    if attr is None:
        return None

    value = attr.value
    if isinstance(value, int) and not isinstance(value, bool):
        return value

    if isinstance(value, (list, tuple, bytes)) and value:
        try:
            ops = _expression_parser(die.cu.structs).parse_expr(value)
        except (ELFError, KeyError) as e:
            # KeyError: opcode unknown to pyelftools
            logger.warning(f"Undecodable member location at DIE 0x{die.offset:x}: {e!r}")
            return None
        if len(ops) == 1 and ops[0].op_name == "DW_OP_plus_uconst":
            return ops[0].args[0]
        logger.warning(
            f"Unsupported member location expression at DIE 0x{die.offset:x}: "
            f"{', '.join(op.op_name for op in ops)}"
        )
        return None

    logger.warning(f"Unknown member location value at DIE 0x{die.offset:x}: {value!r}")
    return None


class DeclarationSiteResolver:
    """
    Resolves the (file, line, column) a DIE was declared at.

    File indices refer to the compilation unit's line program header; line
    programs are parsed once per unit and cached.
    """

    def __init__(self, dwarf_info: DWARFInfo):
        self.dwarf_info = dwarf_info
        self._line_programs: dict[int, Any] = {}

    def resolve(self, die: DIE) -> DeclarationSite | None:
        file_index = udata(die, "DW_AT_decl_file")
        line = udata(die, "DW_AT_decl_line")
        column = udata(die, "DW_AT_decl_column")
        if file_index is None or line is None or column is None:
            return None

        file_name = self.file_name(die, file_index)
        if file_name is None:
            return None
        return DeclarationSite(file_name, line, column)

    def file_name(self, die: DIE, file_index: int) -> str | None:
        program = self._line_program(die.cu)
        if program is None:
            return None

        header = program.header
        version = header["version"]
        entries = header["file_entry"]

        # DWARF 5 file indices are zero-based; earlier versions reserve 0
        position = file_index if version >= 5 else file_index - 1
        if position < 0 or position >= len(entries):
            logger.debug(f"DW_AT_decl_file {file_index} out of range at DIE 0x{die.offset:x}")
            return None

        entry = entries[position]
        name = _text(entry.name)
        if name is None:
            return None

        directory = self._directory(header, entry.dir_index, version)
        return f"{directory}/{name}" if directory else name

    def _directory(self, header: Any, dir_index: int, version: int) -> str | None:
        directories = header["include_directory"]
        position = dir_index if version >= 5 else dir_index - 1
        if position < 0 or position >= len(directories):
            return None
        directory = directories[position]
        return _text(getattr(directory, "DW_LNCT_path", directory))

    def _line_program(self, cu: Any) -> Any:
        key = cu.cu_offset
        if key not in self._line_programs:
            self._line_programs[key] = self.dwarf_info.line_program_for_CU(cu)
        return self._line_programs[key]
