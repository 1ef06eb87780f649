#!/usr/bin/env python3

"""Built-in CodeView types encoded directly in type indices below 0x1000.

The low byte selects the type, bits 8-11 the indirection mode (0 for a
direct value, otherwise a pointer of some flavour).
"""

from .....infrastructure.logging import get_logger
from ....models.profile import BaseKind

logger = get_logger(__name__)

PRIMITIVE_KINDS = {
    0x00: BaseKind.VOID,  # T_NOTYPE
    0x03: BaseKind.VOID,  # T_VOID
    0x08: BaseKind.I32,  # T_HRESULT
    0x10: BaseKind.CHAR,  # T_CHAR
    0x20: BaseKind.CHAR,  # T_UCHAR
    0x70: BaseKind.CHAR,  # T_RCHAR
    0x7C: BaseKind.CHAR,  # T_CHAR8
    0x71: BaseKind.WCHAR,  # T_WCHAR
    0x7A: BaseKind.WCHAR,  # T_CHAR16
    0x7B: BaseKind.U32,  # T_CHAR32
    0x68: BaseKind.I8,  # T_INT1
    0x69: BaseKind.U8,  # T_UINT1
    0x11: BaseKind.I16,  # T_SHORT
    0x21: BaseKind.U16,  # T_USHORT
    0x72: BaseKind.I16,  # T_INT2
    0x73: BaseKind.U16,  # T_UINT2
    0x12: BaseKind.I32,  # T_LONG
    0x22: BaseKind.U32,  # T_ULONG
    0x74: BaseKind.I32,  # T_INT4
    0x75: BaseKind.U32,  # T_UINT4
    0x13: BaseKind.I64,  # T_QUAD
    0x23: BaseKind.U64,  # T_UQUAD
    0x76: BaseKind.I64,  # T_INT8
    0x77: BaseKind.U64,  # T_UINT8
    0x14: BaseKind.I128,  # T_OCT
    0x24: BaseKind.U128,  # T_UOCT
    0x78: BaseKind.I128,  # T_INT16
    0x79: BaseKind.U128,  # T_UINT16
    0x46: BaseKind.F16,  # T_REAL16
    0x40: BaseKind.F32,  # T_REAL32
    0x41: BaseKind.F64,  # T_REAL64
    0x43: BaseKind.F128,  # T_REAL128
    0x30: BaseKind.BOOL,  # T_BOOL08
    0x31: BaseKind.U16,  # T_BOOL16
    0x32: BaseKind.U32,  # T_BOOL32
    0x33: BaseKind.U64,  # T_BOOL64
}


def primitive_kind(kind: int) -> BaseKind:
    """Map the low byte of a primitive type index; unknown kinds become void."""
    base = PRIMITIVE_KINDS.get(kind)
    if base is None:
        logger.error(f"Unsupported primitive type 0x{kind:02x}, using void")
        return BaseKind.VOID
    return base
