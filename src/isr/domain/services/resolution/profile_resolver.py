#!/usr/bin/env python3

"""Size, symbol and field queries over a built profile.

The resolver is stateless beyond the profile it wraps, so one instance can
be shared freely. Field lookup descends into nested struct members so that
members of anonymous unions and embedded structures are reachable by name
from the outer type.
"""

from dataclasses import replace

from ....infrastructure.logging import get_logger
from ...models.errors import FieldNotFoundError, SymbolNotFoundError, TypeNotFoundError
from ...models.profile import (
    Array,
    Base,
    BaseKind,
    Bitfield,
    EnumInfo,
    EnumRef,
    FieldInfo,
    Function,
    Pointer,
    Profile,
    StructInfo,
    StructRef,
    SymbolDescriptor,
    Type,
)
from ...models.profile import descriptors

logger = get_logger(__name__)


class ProfileResolver:
    """Answers layout and address queries against a single profile."""

    def __init__(self, profile: Profile):
        self.profile = profile

    def pointer_size(self) -> int:
        return self.profile.architecture.pointer_size

    def base_size(self, kind: BaseKind) -> int:
        return kind.size

    def enum_size(self, enum: EnumInfo) -> int | None:
        return self.type_size(enum.subtype)

    def struct_size(self, struct: StructInfo) -> int:
        return struct.size

    def type_size(self, type_: Type) -> int | None:
        """Byte size of a type, or None when a referenced definition is missing.

        Arrays report the size of one element and bit-fields the size of
        their storage type.
        """
        if isinstance(type_, Base):
            return self.base_size(type_.kind)
        if isinstance(type_, EnumRef):
            enum = self.find_enum(type_.name)
            return self.enum_size(enum) if enum is not None else None
        if isinstance(type_, StructRef):
            struct = self.find_struct(type_.name)
            return self.struct_size(struct) if struct is not None else None
        if isinstance(type_, Array):
            return self.type_size(type_.element_type)
        if isinstance(type_, Bitfield):
            return self.type_size(type_.underlying_type)
        if isinstance(type_, (Pointer, Function)):
            return self.pointer_size()
        raise TypeError(f"not a profile type: {type_!r}")

    def find_symbol(self, name: str) -> int | None:
        return self.profile.symbols.get(name)

    def find_enum(self, name: str) -> EnumInfo | None:
        return self.profile.types.enums.get(name)

    def find_struct(self, name: str) -> StructInfo | None:
        return self.profile.types.structs.get(name)

    def find_symbol_descriptor(self, name: str, *aliases: str) -> SymbolDescriptor:
        """Look up a symbol, trying each alias in order when ``name`` is absent.

        Raises:
            SymbolNotFoundError: If neither the name nor any alias exists
        """
        for candidate in (name, *aliases):
            offset = self.find_symbol(candidate)
            if offset is not None:
                return SymbolDescriptor(name=candidate, offset=offset)
        raise SymbolNotFoundError(name)

    def find_field_descriptor(self, type_name: str, field_name: str) -> descriptors.FieldDescriptor:
        """Locate ``field_name`` inside ``type_name``, searching nested structs.

        A direct field wins. Otherwise the struct's own fields are searched
        depth-first in declaration order, descending into struct-typed
        fields and adding their offsets. Structs already on the current
        search path are not entered again.

        Raises:
            TypeNotFoundError: If ``type_name`` is not a known struct
            FieldNotFoundError: If no matching field with a known size exists
        """
        struct = self.find_struct(type_name)
        if struct is None:
            raise TypeNotFoundError(type_name)

        descriptor = self._search(struct, field_name, (type_name,))
        if descriptor is None:
            raise FieldNotFoundError(type_name, field_name)
        return descriptor

    def find_field(self, type_name: str, field_name: str) -> descriptors.Field | None:
        """Plain field lookup; None when absent, ConversionError for bit-fields."""
        descriptor = self._find_optional(type_name, field_name)
        return descriptors.into_field(descriptor) if descriptor is not None else None

    def find_bitfield(self, type_name: str, field_name: str) -> descriptors.Bitfield | None:
        """Bit-field lookup; None when absent, ConversionError for plain fields."""
        descriptor = self._find_optional(type_name, field_name)
        return descriptors.into_bitfield(descriptor) if descriptor is not None else None

    def find_offset(self, type_name: str, field_name: str) -> int:
        return descriptors.into_offset(self.find_field_descriptor(type_name, field_name))

    def _find_optional(self, type_name: str, field_name: str) -> descriptors.FieldDescriptor | None:
        try:
            return self.find_field_descriptor(type_name, field_name)
        except (TypeNotFoundError, FieldNotFoundError):
            return None

    def _search(
        self, struct: StructInfo, field_name: str, path: tuple[str, ...]
    ) -> descriptors.FieldDescriptor | None:
        direct = struct.fields.get(field_name)
        if direct is not None:
            return self._describe(direct)

        for member in struct.fields.values():
            if not isinstance(member.type, StructRef):
                continue

            nested_name = member.type.name
            if nested_name in path:
                logger.debug(f"Not descending into {nested_name}: already on path {' -> '.join(path)}")
                continue

            nested = self.find_struct(nested_name)
            if nested is None:
                continue

            found = self._search(nested, field_name, path + (nested_name,))
            if found is not None:
                return replace(found, offset=found.offset + member.offset)

        return None

    def _describe(self, member: FieldInfo) -> descriptors.FieldDescriptor | None:
        size = self.type_size(member.type)
        if size is None:
            return None

        if isinstance(member.type, Bitfield):
            return descriptors.Bitfield(
                offset=member.offset,
                size=size,
                bit_position=member.type.bit_position,
                bit_length=member.type.bit_length,
            )
        return descriptors.Field(offset=member.offset, size=size)
