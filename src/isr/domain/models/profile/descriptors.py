#!/usr/bin/env python3

"""Resolved field and symbol descriptors returned by profile queries."""

from dataclasses import dataclass
from typing import Union

from ..errors import ConversionError


@dataclass(frozen=True)
class Field:
    """Plain field: absolute byte offset and byte size."""

    offset: int
    size: int


@dataclass(frozen=True)
class Bitfield:
    """Bit-field: byte offset and storage size plus the bit range inside it."""

    offset: int
    size: int
    bit_position: int
    bit_length: int

    def value_from(self, raw: int) -> int:
        """Extract this bit-field from the integer read at ``offset``."""
        return (raw >> self.bit_position) & ((1 << self.bit_length) - 1)


FieldDescriptor = Union[Field, Bitfield]


@dataclass(frozen=True)
class SymbolDescriptor:
    name: str
    offset: int


def into_field(descriptor: FieldDescriptor) -> Field:
    if not isinstance(descriptor, Field):
        raise ConversionError(f"expected a plain field, got {descriptor}")
    return descriptor


def into_bitfield(descriptor: FieldDescriptor) -> Bitfield:
    if not isinstance(descriptor, Bitfield):
        raise ConversionError(f"expected a bitfield, got {descriptor}")
    return descriptor


def into_offset(descriptor: FieldDescriptor) -> int:
    """Byte offset of a plain field; bit-fields cannot be addressed by offset alone."""
    return into_field(descriptor).offset
