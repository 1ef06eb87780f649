#!/usr/bin/env python3

"""Canonical type model shared by the PDB and DWARF normalizers.

A ``Type`` is one of a closed set of frozen dataclasses. Aggregates are
referenced by name (``EnumRef``/``StructRef``) and looked up in the
profile's ``TypeCollection``; a reference with no matching definition is
valid and simply resolves to "not found".
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class BaseKind(Enum):
    """Primitive type kinds with a fixed byte size."""

    VOID = "void"
    BOOL = "bool"
    CHAR = "char"
    WCHAR = "wchar"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    F8 = "f8"
    F16 = "f16"
    F32 = "f32"
    F64 = "f64"
    F128 = "f128"

    @property
    def size(self) -> int:
        return _BASE_SIZES[self]

    @classmethod
    def signed(cls, size: int) -> "BaseKind | None":
        """Signed integer kind of the given byte size."""
        return _SIGNED_BY_SIZE.get(size)

    @classmethod
    def unsigned(cls, size: int) -> "BaseKind | None":
        """Unsigned integer kind of the given byte size."""
        return _UNSIGNED_BY_SIZE.get(size)

    @classmethod
    def floating(cls, size: int) -> "BaseKind | None":
        """Floating point kind of the given byte size."""
        return _FLOAT_BY_SIZE.get(size)


_BASE_SIZES = {
    BaseKind.VOID: 0,
    BaseKind.BOOL: 1,
    BaseKind.CHAR: 1,
    BaseKind.WCHAR: 2,
    BaseKind.I8: 1,
    BaseKind.I16: 2,
    BaseKind.I32: 4,
    BaseKind.I64: 8,
    BaseKind.I128: 16,
    BaseKind.U8: 1,
    BaseKind.U16: 2,
    BaseKind.U32: 4,
    BaseKind.U64: 8,
    BaseKind.U128: 16,
    BaseKind.F8: 1,
    BaseKind.F16: 2,
    BaseKind.F32: 4,
    BaseKind.F64: 8,
    BaseKind.F128: 16,
}

_SIGNED_BY_SIZE = {1: BaseKind.I8, 2: BaseKind.I16, 4: BaseKind.I32, 8: BaseKind.I64, 16: BaseKind.I128}
_UNSIGNED_BY_SIZE = {1: BaseKind.U8, 2: BaseKind.U16, 4: BaseKind.U32, 8: BaseKind.U64, 16: BaseKind.U128}
_FLOAT_BY_SIZE = {1: BaseKind.F8, 2: BaseKind.F16, 4: BaseKind.F32, 8: BaseKind.F64, 16: BaseKind.F128}


@dataclass(frozen=True)
class Base:
    kind: BaseKind


@dataclass(frozen=True)
class EnumRef:
    name: str


@dataclass(frozen=True)
class StructRef:
    name: str


@dataclass(frozen=True)
class Array:
    """Array of ``element_type``.

    ``dims`` holds one extent per dimension (0 when unknown) and
    ``total_count`` the flattened element count.
    """

    element_type: "Type"
    dims: tuple[int, ...]
    total_count: int


@dataclass(frozen=True)
class Pointer:
    pointee_type: "Type"


@dataclass(frozen=True)
class Bitfield:
    """Bit-field member; ``bit_position`` is relative to the byte at the field offset."""

    underlying_type: "Type"
    bit_length: int
    bit_position: int


@dataclass(frozen=True)
class Function:
    """Opaque function type, sized as a pointer."""


Type = Union[Base, EnumRef, StructRef, Array, Pointer, Bitfield, Function]

VOID = Base(BaseKind.VOID)


class VariantKind(Enum):
    """Width and signedness of an enumerator value."""

    U8 = ("u8", 8, False)
    U16 = ("u16", 16, False)
    U32 = ("u32", 32, False)
    U64 = ("u64", 64, False)
    U128 = ("u128", 128, False)
    I8 = ("i8", 8, True)
    I16 = ("i16", 16, True)
    I32 = ("i32", 32, True)
    I64 = ("i64", 64, True)
    I128 = ("i128", 128, True)

    def __init__(self, label: str, bits: int, is_signed: bool):
        self.label = label
        self.bits = bits
        self.is_signed = is_signed

    @property
    def minimum(self) -> int:
        return -(1 << (self.bits - 1)) if self.is_signed else 0

    @property
    def maximum(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.is_signed else (1 << self.bits) - 1

    def holds(self, value: int) -> bool:
        return self.minimum <= value <= self.maximum

    @classmethod
    def from_label(cls, label: str) -> "VariantKind":
        for kind in cls:
            if kind.label == label:
                return kind
        raise ValueError(f"unknown variant kind: {label!r}")


_UNSIGNED_VARIANTS = (VariantKind.U8, VariantKind.U16, VariantKind.U32, VariantKind.U64, VariantKind.U128)
_SIGNED_VARIANTS = (VariantKind.I8, VariantKind.I16, VariantKind.I32, VariantKind.I64, VariantKind.I128)


@dataclass(frozen=True)
class Variant:
    """Enumerator value that keeps the width and signedness it was declared with."""

    kind: VariantKind
    value: int

    def __post_init__(self) -> None:
        if not self.kind.holds(self.value):
            raise ValueError(f"{self.value} does not fit in {self.kind.label}")

    @classmethod
    def fit(cls, value: int) -> "Variant":
        """Smallest variant holding ``value``; unsigned for non-negative values."""
        candidates = _UNSIGNED_VARIANTS if value >= 0 else _SIGNED_VARIANTS
        for kind in candidates:
            if kind.holds(value):
                return cls(kind, value)
        raise ValueError(f"{value} does not fit in a 128-bit variant")

    def __int__(self) -> int:
        return self.value


@dataclass
class EnumInfo:
    subtype: Type
    fields: dict[str, Variant] = field(default_factory=dict)


class StructKind(Enum):
    STRUCT = "struct"
    CLASS = "class"
    UNION = "union"
    INTERFACE = "interface"


@dataclass(frozen=True)
class FieldInfo:
    offset: int
    type: Type


@dataclass
class StructInfo:
    """Aggregate definition; ``size`` is the declared size and is authoritative."""

    kind: StructKind
    size: int
    fields: dict[str, FieldInfo] = field(default_factory=dict)


@dataclass
class TypeCollection:
    """Enum and struct definitions, in independent namespaces."""

    enums: dict[str, EnumInfo] = field(default_factory=dict)
    structs: dict[str, StructInfo] = field(default_factory=dict)
