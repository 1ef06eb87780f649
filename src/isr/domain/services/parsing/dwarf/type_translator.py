#!/usr/bin/env python3

"""Translation of DWARF type DIEs into profile types.

Named aggregates become references (``EnumRef``/``StructRef``) so that
translation never recurses into member lists. Typedefs and qualifiers are
transparent. Anything without a layout meaning degrades to ``void`` with an
error log.
"""

from elftools.dwarf.die import DIE

from .....infrastructure.logging import get_logger
from ....models.profile import (
    VOID,
    Array,
    Base,
    BaseKind,
    Bitfield,
    EnumRef,
    Function,
    Pointer,
    StructRef,
    Type,
)
from .die_attributes import data_member_location, type_name, udata
from .dwarf_constants import (
    AGGREGATE_TAGS,
    DW_ATE_BOOLEAN,
    DW_ATE_FLOAT,
    DW_ATE_SIGNED,
    DW_ATE_SIGNED_CHAR,
    DW_ATE_UNSIGNED,
    DW_ATE_UNSIGNED_CHAR,
    ENUMERATION_TAG,
    POINTER_TAGS,
    TRANSPARENT_TAGS,
)

logger = get_logger(__name__)

# Longest typedef/qualifier chain followed before giving up
MAX_CHAIN_DEPTH = 64


def base_kind(die: DIE) -> BaseKind:
    """
    Map a DW_TAG_base_type DIE to a ``BaseKind`` from its encoding and size.

    Args:
        die: Base type DIE

    Returns:
        Matching kind; VOID for zero or missing sizes and unsupported widths
    """
    size = udata(die, "DW_AT_byte_size")
    if size is None:
        logger.warning(f"Base type {type_name(die)} has no byte size, using void")
        return BaseKind.VOID
    if size == 0:
        return BaseKind.VOID

    encoding = udata(die, "DW_AT_encoding")
    if encoding == DW_ATE_BOOLEAN:
        kind = BaseKind.BOOL if size == 1 else None
    elif encoding in (DW_ATE_SIGNED, DW_ATE_SIGNED_CHAR):
        kind = BaseKind.signed(size)
    elif encoding in (DW_ATE_UNSIGNED, DW_ATE_UNSIGNED_CHAR):
        kind = BaseKind.unsigned(size)
    elif encoding == DW_ATE_FLOAT:
        kind = BaseKind.floating(size) if size != 1 else None
    else:
        # Missing or exotic encodings (UTF, complex, decimal) keep their width
        kind = BaseKind.unsigned(size)

    if kind is None:
        logger.error(
            f"Unsupported base type {type_name(die)} "
            f"(encoding {encoding}, {size} bytes), using void"
        )
        return BaseKind.VOID
    return kind


class DwarfTypeTranslator:
    """Translates type DIEs and member DIEs into profile types."""

    def __init__(self, little_endian: bool = True):
        self.little_endian = little_endian

    def referenced_type(self, die: DIE, depth: int = 0) -> Type:
        """Type named by ``DW_AT_type`` of ``die``; void when the attribute is absent."""
        if "DW_AT_type" not in die.attributes:
            return VOID
        return self.translate(die.get_DIE_from_attribute("DW_AT_type"), depth + 1)

    def translate(self, die: DIE, depth: int = 0) -> Type:
        """Translate a type DIE."""
        if depth > MAX_CHAIN_DEPTH:
            logger.error(f"Type chain deeper than {MAX_CHAIN_DEPTH} at DIE 0x{die.offset:x}, using void")
            return VOID

        tag = die.tag
        if tag == "DW_TAG_base_type":
            return Base(base_kind(die))
        if tag == ENUMERATION_TAG:
            return EnumRef(type_name(die))
        if tag in AGGREGATE_TAGS:
            return StructRef(type_name(die))
        if tag == "DW_TAG_array_type":
            return self._array(die, depth)
        if tag in POINTER_TAGS:
            return Pointer(self.referenced_type(die, depth))
        if tag == "DW_TAG_subroutine_type":
            return Function()
        if tag in TRANSPARENT_TAGS:
            return self.referenced_type(die, depth)

        logger.error(f"Unexpected type tag {tag} at DIE 0x{die.offset:x}, using void")
        return VOID

    def _array(self, die: DIE, depth: int) -> Array:
        element_type = self.referenced_type(die, depth)

        dims = []
        for child in die.iter_children():
            if child.tag != "DW_TAG_subrange_type":
                continue
            count = udata(child, "DW_AT_count")
            if count is None:
                upper_bound = udata(child, "DW_AT_upper_bound")
                count = upper_bound + 1 if upper_bound is not None else 0
            dims.append(count)

        # Only the outermost extent is counted; inner extents stay in dims
        total_count = dims[0] if dims else 0
        return Array(element_type, tuple(dims), total_count)

    def member_layout(self, member: DIE) -> tuple[int, Type]:
        """
        Offset and type of a DW_TAG_member.

        The offset comes from ``DW_AT_data_member_location``, else from
        ``DW_AT_data_bit_offset``, else 0. Members with ``DW_AT_bit_size``
        become bit-fields whose position is relative to the byte at the
        returned offset.
        """
        location = data_member_location(member)
        data_bit_offset = udata(member, "DW_AT_data_bit_offset")
        bit_size = udata(member, "DW_AT_bit_size")

        if bit_size is not None and data_bit_offset is None and "DW_AT_bit_offset" in member.attributes:
            legacy = self._legacy_bit_offset(member, location or 0, bit_size)
            if legacy is not None:
                offset, position = divmod(legacy, 8)
                underlying = self.referenced_type(member)
                return offset, Bitfield(underlying, bit_size, position)

        if location is not None:
            offset = location
        elif data_bit_offset is not None:
            offset = data_bit_offset // 8
        else:
            offset = 0

        if bit_size is None:
            return offset, self.referenced_type(member)

        position = data_bit_offset % 8 if data_bit_offset is not None else 0
        return offset, Bitfield(self.referenced_type(member), bit_size, position)

    def _legacy_bit_offset(self, member: DIE, location: int, bit_size: int) -> int | None:
        """
        Convert DWARF 2/3 ``DW_AT_bit_offset`` into a data bit offset.

        ``DW_AT_bit_offset`` counts from the most significant bit of the
        storage unit, so little-endian targets need the storage unit size.
        """
        bit_offset = udata(member, "DW_AT_bit_offset")
        if bit_offset is None:
            return None
        if not self.little_endian:
            return location * 8 + bit_offset

        storage_size = udata(member, "DW_AT_byte_size")
        if storage_size is None:
            storage_size = self._storage_size(member)
        if storage_size is None:
            logger.warning(f"Cannot place legacy bit-field at DIE 0x{member.offset:x}: unknown storage size")
            return None
        return location * 8 + storage_size * 8 - bit_offset - bit_size

    def _storage_size(self, member: DIE) -> int | None:
        die = member
        for _ in range(MAX_CHAIN_DEPTH):
            if "DW_AT_type" not in die.attributes:
                return None
            die = die.get_DIE_from_attribute("DW_AT_type")
            size = udata(die, "DW_AT_byte_size")
            if size is not None:
                return size
            if die.tag not in TRANSPARENT_TAGS:
                return None
        return None
