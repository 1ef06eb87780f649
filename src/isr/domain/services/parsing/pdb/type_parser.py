#!/usr/bin/env python3

"""Collection of enum and struct definitions from a PDB type stream.

Every concrete (non forward-declared) enum, class, struct, interface and
union becomes a definition. Member types are translated by type index;
aggregates are referenced by name, so translation never walks into another
type's field list.
"""

import math
from collections.abc import Iterable, Iterator
from typing import Protocol

from .....infrastructure.logging import ProgressTracker, get_logger
from .....infrastructure.pdb.c_pdb import LeafType
from .....infrastructure.pdb.records import (
    ArrayRecord,
    BitfieldRecord,
    ClassRecord,
    EnumerateRecord,
    EnumRecord,
    FieldListRecord,
    FieldRecord,
    MemberFunctionRecord,
    MemberRecord,
    ModifierRecord,
    PointerRecord,
    PrimitiveRecord,
    ProcedureRecord,
    TypeRecord,
)
from ....models.errors import PdbFormatError
from ....models.profile import (
    VOID,
    Architecture,
    Array,
    Base,
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
from ..registration_policy import RegistrationPolicy
from .primitives import primitive_kind

logger = get_logger(__name__)

ANONYMOUS_PREFIXES = ("<anonymous-", "<unnamed-", "__unnamed")

STRUCT_KINDS = {
    LeafType.LF_CLASS: StructKind.CLASS,
    LeafType.LF_STRUCTURE: StructKind.STRUCT,
    LeafType.LF_INTERFACE: StructKind.INTERFACE,
    LeafType.LF_UNION: StructKind.UNION,
}

# Longest modifier/pointer chain followed before giving up
MAX_CHAIN_DEPTH = 64


class TypeRecordSource(Protocol):
    """What the parser needs from a type stream (see ``TypeInformation``)."""

    def get(self, index: int) -> TypeRecord: ...

    def __iter__(self) -> Iterator[tuple[int, TypeRecord]]: ...


def type_name(name: str, index: int) -> str:
    """Declared name, or ``__anonymous_<hex index>`` for compiler-generated names."""
    if name.startswith(ANONYMOUS_PREFIXES):
        return f"__anonymous_{index:x}"
    return name


class PdbTypeParser:
    """Builds a ``TypeCollection`` from the records of one type stream.

    Args:
        records: Type stream, indexable by type index
        architecture: Target architecture, used for pointer-sized elements
        policy: Merge rule for name collisions
        progress: Optional progress tracker counting processed records
    """

    def __init__(
        self,
        records: TypeRecordSource,
        architecture: Architecture,
        policy: RegistrationPolicy | None = None,
        progress: ProgressTracker | None = None,
    ):
        self.records = records
        self.pointer_size = architecture.pointer_size
        self.policy = policy or RegistrationPolicy()
        self.progress = progress
        self.types = TypeCollection()
        self._udt_sizes: dict[str, int] = {}

    def parse(self) -> TypeCollection:
        """Collect every concrete enum and aggregate in the stream."""
        # Arrays of forward-referenced aggregates need the definition's size
        for _, record in self.records:
            if isinstance(record, ClassRecord) and not record.is_forward_reference:
                self._udt_sizes.setdefault(record.name, record.size)

        for index, record in self.records:
            if isinstance(record, ClassRecord) and not record.is_forward_reference:
                self.add_class(index, record)
            elif isinstance(record, EnumRecord) and not record.is_forward_reference:
                self.add_enum(index, record)
            else:
                continue

            if self.progress is not None:
                self.progress.count_entry()

        return self.types

    def add_class(self, index: int, record: ClassRecord) -> None:
        name = type_name(record.name, index)
        kind = STRUCT_KINDS[record.leaf]
        struct = StructInfo(kind=kind, size=record.size)

        for entry in self._field_list(record.fields, name):
            if not isinstance(entry, MemberRecord):
                logger.debug(f"{name}: skipping {getattr(entry, 'leaf', entry)!r} entry")
                continue

            member_name = entry.name
            if not member_name or member_name.startswith(ANONYMOUS_PREFIXES):
                member_name = f"__unnamed_field_{len(struct.fields):x}"

            offset = entry.offset
            member_type = self.translate(entry.field_type)
            if isinstance(member_type, Bitfield) and member_type.bit_position >= 8:
                # Positions count from the storage unit; rebase onto the containing byte
                offset += member_type.bit_position // 8
                member_type = Bitfield(
                    member_type.underlying_type,
                    member_type.bit_length,
                    member_type.bit_position % 8,
                )

            struct.fields[member_name] = FieldInfo(offset=offset, type=member_type)

        self.policy.register(self.types.structs, name, struct, kind.value)

    def add_enum(self, index: int, record: EnumRecord) -> None:
        name = type_name(record.name, index)
        enum = EnumInfo(subtype=self.translate(record.underlying_type))

        for entry in self._field_list(record.fields, name):
            if not isinstance(entry, EnumerateRecord):
                logger.warning(f"Enum {name}: unexpected {entry!r}")
                continue
            enum.fields[entry.name] = Variant(VariantKind.from_label(entry.label), entry.value)

        self.policy.register(self.types.enums, name, enum, "enum")

    def translate(self, index: int, depth: int = 0) -> Type:
        """Translate a type index into a profile type."""
        if depth > MAX_CHAIN_DEPTH:
            logger.error(f"Type chain deeper than {MAX_CHAIN_DEPTH} at 0x{index:x}, using void")
            return VOID

        record = self._record(index)
        if record is None:
            return VOID

        if isinstance(record, PrimitiveRecord):
            base = Base(primitive_kind(record.kind))
            return Pointer(base) if record.mode else base
        if isinstance(record, ClassRecord):
            return StructRef(type_name(record.name, index))
        if isinstance(record, EnumRecord):
            return EnumRef(type_name(record.name, index))
        if isinstance(record, ArrayRecord):
            return self._array(record, depth)
        if isinstance(record, PointerRecord):
            return Pointer(self.translate(record.underlying_type, depth + 1))
        if isinstance(record, BitfieldRecord):
            return Bitfield(self.translate(record.underlying_type, depth + 1), record.length, record.position)
        if isinstance(record, ModifierRecord):
            return self.translate(record.underlying_type, depth + 1)
        if isinstance(record, (ProcedureRecord, MemberFunctionRecord)):
            return Function()

        logger.error(f"Unsupported type record at 0x{index:x}: {record!r}, using void")
        return VOID

    def _array(self, record: ArrayRecord, depth: int) -> Array:
        """
        Flatten nested LF_ARRAY records into one multi-dimensional array.

        ``int[3][4]`` is an array of three ``int[4]``; it becomes
        ``Array(int, (3, 4), 12)``.
        """
        dims = []
        while True:
            element_index = record.element_type
            element_size = self.record_size(element_index)
            # LF_ARRAY stores the total byte size; the extent is derived from it
            dims.append(record.byte_size // element_size if element_size else 0)

            element = self._record(element_index)
            if not isinstance(element, ArrayRecord) or len(dims) > MAX_CHAIN_DEPTH:
                break
            record = element

        element_type = self.translate(element_index, depth + len(dims))
        return Array(element_type, tuple(dims), math.prod(dims))

    def record_size(self, index: int, depth: int = 0) -> int:
        """Byte size of the type at ``index``; 0 when it cannot be determined."""
        if depth > MAX_CHAIN_DEPTH:
            return 0

        record = self._record(index)
        if isinstance(record, PrimitiveRecord):
            return self.pointer_size if record.mode else primitive_kind(record.kind).size
        if isinstance(record, ClassRecord):
            if record.is_forward_reference:
                return self._udt_sizes.get(record.name, 0)
            return record.size
        if isinstance(record, ArrayRecord):
            return record.byte_size
        if isinstance(record, PointerRecord):
            return record.size or self.pointer_size
        if isinstance(record, (EnumRecord, ModifierRecord, BitfieldRecord)):
            return self.record_size(record.underlying_type, depth + 1)
        return 0

    def _record(self, index: int) -> TypeRecord | None:
        try:
            return self.records.get(index)
        except PdbFormatError as e:
            logger.error(f"Cannot read type 0x{index:x}: {e}")
            return None

    def _field_list(self, index: int, owner: str) -> Iterable[FieldRecord]:
        """Entries of a field list, following LF_INDEX continuations."""
        visited = set()
        while index and index not in visited:
            visited.add(index)
            record = self._record(index)
            if not isinstance(record, FieldListRecord):
                logger.warning(f"{owner}: type 0x{index:x} is not a field list")
                return
            yield from record.fields
            index = record.continuation
