#!/usr/bin/env python3

"""TPI stream: the type records of a PDB, addressed by type index."""

import io
from collections.abc import Iterator

from ...domain.models.errors import PdbFormatError
from ..logging import get_logger
from .c_pdb import (
    LF_NUMERIC,
    MPROP_INTRO,
    MPROP_PURE_INTRO,
    PROPERTY_HAS_UNIQUE_NAME,
    TI_MIN,
    LeafType,
    NumericLeaf,
    c_pdb,
)
from .records import (
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
    OtherFieldRecord,
    PointerRecord,
    PrimitiveRecord,
    ProcedureRecord,
    TypeRecord,
    UnknownRecord,
)

logger = get_logger(__name__)

# Numeric leaf -> (cstruct type name, variant label)
NUMERIC_LEAVES = {
    NumericLeaf.LF_CHAR: ("int8", "i8"),
    NumericLeaf.LF_SHORT: ("int16", "i16"),
    NumericLeaf.LF_USHORT: ("uint16", "u16"),
    NumericLeaf.LF_LONG: ("int32", "i32"),
    NumericLeaf.LF_ULONG: ("uint32", "u32"),
    NumericLeaf.LF_QUADWORD: ("int64", "i64"),
    NumericLeaf.LF_UQUADWORD: ("uint64", "u64"),
    NumericLeaf.LF_OCTWORD: ("int128", "i128"),
    NumericLeaf.LF_UOCTWORD: ("uint128", "u128"),
}

CLASS_LEAVES = frozenset({LeafType.LF_CLASS, LeafType.LF_STRUCTURE, LeafType.LF_INTERFACE})


class LeafReader:
    """Cursor over the payload of one type record.

    Args:
        data: Record bytes following the leaf kind.
    """

    def __init__(self, data: bytes):
        self.data = data
        self.fh = io.BytesIO(data)

    def remaining(self) -> int:
        return len(self.data) - self.fh.tell()

    def uint16(self) -> int:
        return c_pdb.uint16(self.fh)

    def numeric(self) -> tuple[int, str]:
        """Read a numeric leaf; return the value and its variant label."""
        leaf = self.uint16()
        if leaf < LF_NUMERIC:
            return leaf, "u16"

        try:
            type_name, label = NUMERIC_LEAVES[NumericLeaf(leaf)]
        except ValueError:
            raise PdbFormatError(f"unsupported numeric leaf 0x{leaf:04x}") from None
        return getattr(c_pdb, type_name)(self.fh), label

    def name(self) -> str:
        """Read a NUL-terminated name; names are decoded lossily as UTF-8."""
        start = self.fh.tell()
        end = self.data.find(b"\x00", start)
        if end == -1:
            end = len(self.data)
        self.fh.seek(min(end + 1, len(self.data)))
        return self.data[start:end].decode("utf-8", errors="replace")

    def skip_padding(self) -> None:
        """Skip LF_PAD bytes (0xF0-0xFF); the low nibble gives the distance to the next entry."""
        position = self.fh.tell()
        if position < len(self.data) and self.data[position] > 0xF0:
            self.fh.seek(position + (self.data[position] & 0x0F))


def decode_record(leaf: int, data: bytes) -> TypeRecord:
    """
    Decode one type record.

    Args:
        leaf: Leaf kind from the record header
        data: Record payload after the leaf kind

    Returns:
        Decoded record, ``UnknownRecord`` for unhandled leaves

    Raises:
        PdbFormatError: If the payload is truncated or malformed
    """
    reader = LeafReader(data)
    try:
        return _decode(leaf, reader)
    except EOFError as e:
        raise PdbFormatError(f"truncated record for leaf 0x{leaf:04x}") from e


def _decode(leaf: int, reader: LeafReader) -> TypeRecord:
    if leaf == LeafType.LF_MODIFIER:
        record = c_pdb.LF_MODIFIER_T(reader.fh)
        return ModifierRecord(record.type, record.attributes)

    if leaf == LeafType.LF_POINTER:
        record = c_pdb.LF_POINTER_T(reader.fh)
        return PointerRecord(record.utype, record.attributes)

    if leaf == LeafType.LF_PROCEDURE:
        record = c_pdb.LF_PROCEDURE_T(reader.fh)
        return ProcedureRecord(record.rvtype, record.parmcount)

    if leaf == LeafType.LF_MFUNCTION:
        record = c_pdb.LF_MFUNCTION_T(reader.fh)
        return MemberFunctionRecord(record.rvtype, record.classtype, record.thistype, record.parmcount)

    if leaf == LeafType.LF_BITFIELD:
        record = c_pdb.LF_BITFIELD_T(reader.fh)
        return BitfieldRecord(record.type, record.length, record.position)

    if leaf == LeafType.LF_ARRAY:
        record = c_pdb.LF_ARRAY_T(reader.fh)
        size, _ = reader.numeric()
        return ArrayRecord(record.elemtype, record.idxtype, size, reader.name())

    if leaf in CLASS_LEAVES:
        record = c_pdb.LF_CLASS_T(reader.fh)
        size, _ = reader.numeric()
        name = reader.name()
        if record.property & PROPERTY_HAS_UNIQUE_NAME:
            reader.name()
        return ClassRecord(LeafType(leaf), record.count, record.property, record.field, size, name)

    if leaf == LeafType.LF_UNION:
        record = c_pdb.LF_UNION_T(reader.fh)
        size, _ = reader.numeric()
        return ClassRecord(LeafType.LF_UNION, record.count, record.property, record.field, size, reader.name())

    if leaf == LeafType.LF_ENUM:
        record = c_pdb.LF_ENUM_T(reader.fh)
        return EnumRecord(record.count, record.property, record.utype, record.field, reader.name())

    if leaf == LeafType.LF_FIELDLIST:
        return _decode_field_list(reader)

    return UnknownRecord(leaf)


def _decode_field_list(reader: LeafReader) -> FieldListRecord:
    fields: list[FieldRecord] = []
    continuation = None

    while reader.remaining() >= 2:
        leaf = reader.uint16()

        if leaf == LeafType.LF_MEMBER:
            record = c_pdb.LF_MEMBER_T(reader.fh)
            offset, _ = reader.numeric()
            fields.append(MemberRecord(record.attributes, record.index, offset, reader.name()))

        elif leaf == LeafType.LF_ENUMERATE:
            record = c_pdb.LF_ENUMERATE_T(reader.fh)
            value, label = reader.numeric()
            fields.append(EnumerateRecord(record.attributes, value, label, reader.name()))

        elif leaf == LeafType.LF_INDEX:
            continuation = c_pdb.LF_INDEX_T(reader.fh).index

        elif leaf in (LeafType.LF_BCLASS, LeafType.LF_BINTERFACE):
            c_pdb.LF_MEMBER_T(reader.fh)
            reader.numeric()
            fields.append(OtherFieldRecord(LeafType(leaf)))

        elif leaf in (LeafType.LF_VBCLASS, LeafType.LF_IVBCLASS):
            c_pdb.LF_VBCLASS_T(reader.fh)
            reader.numeric()
            reader.numeric()
            fields.append(OtherFieldRecord(LeafType(leaf)))

        elif leaf == LeafType.LF_VFUNCTAB:
            c_pdb.LF_INDEX_T(reader.fh)
            fields.append(OtherFieldRecord(LeafType.LF_VFUNCTAB))

        elif leaf == LeafType.LF_VFUNCOFF:
            c_pdb.LF_VFUNCOFF_T(reader.fh)
            fields.append(OtherFieldRecord(LeafType.LF_VFUNCOFF))

        elif leaf == LeafType.LF_STMEMBER:
            c_pdb.LF_MEMBER_T(reader.fh)
            fields.append(OtherFieldRecord(LeafType.LF_STMEMBER, reader.name()))

        elif leaf == LeafType.LF_METHOD:
            c_pdb.LF_METHOD_T(reader.fh)
            fields.append(OtherFieldRecord(LeafType.LF_METHOD, reader.name()))

        elif leaf in (LeafType.LF_NESTTYPE, LeafType.LF_NESTTYPEEX):
            c_pdb.LF_INDEX_T(reader.fh)
            fields.append(OtherFieldRecord(LeafType(leaf), reader.name()))

        elif leaf == LeafType.LF_ONEMETHOD:
            record = c_pdb.LF_MEMBER_T(reader.fh)
            if (record.attributes >> 2) & 0x07 in (MPROP_INTRO, MPROP_PURE_INTRO):
                c_pdb.uint32(reader.fh)
            fields.append(OtherFieldRecord(LeafType.LF_ONEMETHOD, reader.name()))

        else:
            # Entry sizes are leaf specific, so nothing after this can be located
            logger.warning(f"Unknown field list entry 0x{leaf:04x}, dropping the rest of the list")
            break

        reader.skip_padding()

    return FieldListRecord(tuple(fields), continuation)


class TypeInformation:
    """Index of the records in a TPI stream.

    Records are split up front and decoded on first access.

    Args:
        data: Whole TPI stream.

    Raises:
        PdbFormatError: If the header or the record framing is inconsistent.
    """

    def __init__(self, data: bytes):
        try:
            self.header = c_pdb.TPI_HEADER(data)
        except EOFError as e:
            raise PdbFormatError("truncated TPI header") from e

        self.ti_min = self.header.ti_min
        self.ti_max = self.header.ti_max
        self._raw: list[tuple[int, bytes]] = []
        self._decoded: dict[int, TypeRecord] = {}

        offset = self.header.header_size
        end = offset + self.header.gprec_size
        if end > len(data):
            raise PdbFormatError(f"TPI records extend past the stream ({end} > {len(data)})")

        while offset + 4 <= end:
            header = c_pdb.RECORD_HEADER(data[offset : offset + 4])
            payload_end = offset + 2 + header.length
            if header.length < 2 or payload_end > end:
                raise PdbFormatError(f"bad type record length {header.length} at offset 0x{offset:x}")
            self._raw.append((header.kind, data[offset + 4 : payload_end]))
            offset = payload_end

        expected = self.ti_max - self.ti_min
        if len(self._raw) != expected:
            logger.warning(f"TPI header announces {expected} records, found {len(self._raw)}")
        logger.debug(f"TPI stream: {len(self._raw)} type records from 0x{self.ti_min:x}")

    def __len__(self) -> int:
        return len(self._raw)

    def __contains__(self, index: int) -> bool:
        return index < TI_MIN or self.ti_min <= index < self.ti_min + len(self._raw)

    def get(self, index: int) -> TypeRecord:
        """
        Decoded record for a type index.

        Raises:
            PdbFormatError: If the index is outside the stream or the record is malformed
        """
        if index < TI_MIN:
            return PrimitiveRecord(index)

        record = self._decoded.get(index)
        if record is None:
            position = index - self.ti_min
            if position < 0 or position >= len(self._raw):
                raise PdbFormatError(f"type index 0x{index:x} out of range")
            leaf, payload = self._raw[position]
            record = decode_record(leaf, payload)
            self._decoded[index] = record
        return record

    def __iter__(self) -> Iterator[tuple[int, TypeRecord]]:
        for position in range(len(self._raw)):
            index = self.ti_min + position
            yield index, self.get(index)
