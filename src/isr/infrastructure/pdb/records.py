#!/usr/bin/env python3

"""Decoded CodeView type records.

Only the parts needed to lay out enums, structs, classes and unions are
kept. Records for leaves the decoder does not handle are represented by
``UnknownRecord``.
"""

from dataclasses import dataclass, field
from typing import Union

from .c_pdb import PROPERTY_FWDREF, LeafType


@dataclass(frozen=True)
class PrimitiveRecord:
    """Built-in type encoded directly in a type index below 0x1000."""

    index: int

    @property
    def kind(self) -> int:
        return self.index & 0xFF

    @property
    def mode(self) -> int:
        """Indirection mode; 0 is a direct value, anything else a pointer."""
        return (self.index >> 8) & 0x0F


@dataclass(frozen=True)
class ModifierRecord:
    underlying_type: int
    attributes: int


@dataclass(frozen=True)
class PointerRecord:
    underlying_type: int
    attributes: int

    @property
    def size(self) -> int:
        return (self.attributes >> 13) & 0x3F


@dataclass(frozen=True)
class ProcedureRecord:
    return_type: int
    parameter_count: int


@dataclass(frozen=True)
class MemberFunctionRecord:
    return_type: int
    class_type: int
    this_type: int
    parameter_count: int


@dataclass(frozen=True)
class BitfieldRecord:
    underlying_type: int
    length: int
    position: int


@dataclass(frozen=True)
class ArrayRecord:
    """Array whose ``byte_size`` covers all elements."""

    element_type: int
    index_type: int
    byte_size: int
    name: str


@dataclass(frozen=True)
class ClassRecord:
    """LF_CLASS, LF_STRUCTURE, LF_INTERFACE or LF_UNION."""

    leaf: LeafType
    count: int
    properties: int
    fields: int
    size: int
    name: str

    @property
    def is_forward_reference(self) -> bool:
        return bool(self.properties & PROPERTY_FWDREF)


@dataclass(frozen=True)
class EnumRecord:
    count: int
    properties: int
    underlying_type: int
    fields: int
    name: str

    @property
    def is_forward_reference(self) -> bool:
        return bool(self.properties & PROPERTY_FWDREF)


@dataclass(frozen=True)
class MemberRecord:
    attributes: int
    field_type: int
    offset: int
    name: str


@dataclass(frozen=True)
class EnumerateRecord:
    """Enumerator; ``label`` is the width of the numeric leaf (e.g. ``"i32"``)."""

    attributes: int
    value: int
    label: str
    name: str


@dataclass(frozen=True)
class OtherFieldRecord:
    """Field list entry without data layout (base classes, methods, nested types)."""

    leaf: LeafType
    name: str | None = None


FieldRecord = Union[MemberRecord, EnumerateRecord, OtherFieldRecord]


@dataclass(frozen=True)
class FieldListRecord:
    fields: tuple[FieldRecord, ...] = field(default_factory=tuple)
    continuation: int | None = None


@dataclass(frozen=True)
class UnknownRecord:
    leaf: int


TypeRecord = Union[
    PrimitiveRecord,
    ModifierRecord,
    PointerRecord,
    ProcedureRecord,
    MemberFunctionRecord,
    BitfieldRecord,
    ArrayRecord,
    ClassRecord,
    EnumRecord,
    FieldListRecord,
    UnknownRecord,
]
