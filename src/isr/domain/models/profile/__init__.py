#!/usr/bin/env python3

"""Profile data model."""

from .descriptors import FieldDescriptor, SymbolDescriptor, into_bitfield, into_field, into_offset
from .profile import Architecture, Profile
from .types import (
    VOID,
    Array,
    Base,
    BaseKind,
    Bitfield,
    EnumInfo,
    EnumRef,
    FieldInfo,
    Function,
    Pointer,
    StructInfo,
    StructKind,
    StructRef,
    Type,
    TypeCollection,
    Variant,
    VariantKind,
)

__all__ = [
    "VOID",
    "Architecture",
    "Array",
    "Base",
    "BaseKind",
    "Bitfield",
    "EnumInfo",
    "EnumRef",
    "FieldDescriptor",
    "FieldInfo",
    "Function",
    "Pointer",
    "Profile",
    "StructInfo",
    "StructKind",
    "StructRef",
    "SymbolDescriptor",
    "Type",
    "TypeCollection",
    "Variant",
    "VariantKind",
    "into_bitfield",
    "into_field",
    "into_offset",
]
