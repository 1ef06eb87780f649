#!/usr/bin/env python3

"""Collection of enum and struct definitions from DWARF compilation units.

Only definitions at the top level of a unit are collected. Header types are
repeated in every unit that includes them, so each definition passes the
registration policy first: copies declared at an already-processed site are
skipped, and remaining name collisions are merged by field count.
"""

from elftools.dwarf.compileunit import CompileUnit
from elftools.dwarf.die import DIE
from elftools.dwarf.dwarfinfo import DWARFInfo

from .....infrastructure.logging import ProgressTracker, get_logger
from ....models.profile import (
    Base,
    BaseKind,
    EnumInfo,
    FieldInfo,
    StructInfo,
    StructKind,
    Type,
    TypeCollection,
    Variant,
    VariantKind,
)
from ..registration_policy import RegistrationPolicy
from .die_attributes import DeclarationSiteResolver, die_name, is_declaration, type_name, udata
from .dwarf_constants import AGGREGATE_TAGS, ENUMERATION_TAG, TOP_LEVEL_TAGS
from .type_translator import DwarfTypeTranslator

logger = get_logger(__name__)


class DwarfTypeParser:
    """Accumulates a ``TypeCollection`` across compilation units.

    Attributes:
        types: Definitions collected so far
        policy: Deduplication state shared across all units of one build
    """

    def __init__(
        self,
        dwarf_info: DWARFInfo,
        policy: RegistrationPolicy | None = None,
        progress: ProgressTracker | None = None,
    ):
        self.dwarf_info = dwarf_info
        self.policy = policy or RegistrationPolicy()
        self.progress = progress
        self.types = TypeCollection()
        self.sites = DeclarationSiteResolver(dwarf_info)
        self.translator = DwarfTypeTranslator(little_endian=dwarf_info.config.little_endian)

    def add_unit(self, cu: CompileUnit) -> None:
        """Collect every top-level enum, struct, class and union of one unit."""
        for die in cu.get_top_DIE().iter_children():
            if die.tag not in TOP_LEVEL_TAGS or is_declaration(die):
                continue

            name = type_name(die)
            if not self.policy.should_process(self.sites.resolve(die), name):
                if self.progress is not None:
                    self.progress.count_skipped()
                continue

            if self.progress is not None:
                self.progress.count_entry()

            if die.tag == ENUMERATION_TAG:
                self.add_enum(die)
            else:
                self.add_struct(die, AGGREGATE_TAGS[die.tag])

    def add_enum(self, die: DIE) -> None:
        name = type_name(die)
        enum = EnumInfo(subtype=self._enum_subtype(die, name))

        for child in die.iter_children():
            if child.tag != "DW_TAG_enumerator":
                logger.warning(f"Enum {name}: unexpected child {child.tag}")
                continue

            enumerator = die_name(child)
            if enumerator is None:
                enumerator = f"__unnamed_{len(enum.fields):x}"

            value = self._enumerator_value(child)
            if value is None:
                logger.warning(f"Enum {name}: enumerator {enumerator} has no constant value")
                continue
            enum.fields[enumerator] = value

        self.policy.register(self.types.enums, name, enum, "enum")

    def add_struct(self, die: DIE, kind: StructKind) -> None:
        name = type_name(die)
        size = udata(die, "DW_AT_byte_size")
        if size is None:
            logger.warning(f"Struct {name} has no byte size, using 0")
            size = 0

        struct = StructInfo(kind=kind, size=size)
        for child in die.iter_children():
            if child.tag != "DW_TAG_member":
                logger.debug(f"Struct {name}: skipping {child.tag}")
                continue

            member = die_name(child)
            if member is None:
                member = f"__unnamed_field_{len(struct.fields):x}"

            offset, member_type = self.translator.member_layout(child)
            # A repeated member name keeps the later member
            struct.fields[member] = FieldInfo(offset=offset, type=member_type)

        self.policy.register(self.types.structs, name, struct, kind.value)

    def _enum_subtype(self, die: DIE, name: str) -> Type:
        if "DW_AT_type" in die.attributes:
            return self.translator.referenced_type(die)

        size = udata(die, "DW_AT_byte_size")
        kind = BaseKind.unsigned(size) if size is not None else None
        logger.warning(f"Enum {name} has no underlying type, using {kind.value if kind else 'void'}")
        return Base(kind or BaseKind.VOID)

    def _enumerator_value(self, die: DIE) -> Variant | None:
        attr = die.attributes.get("DW_AT_const_value")
        if attr is None or isinstance(attr.value, bool) or not isinstance(attr.value, int):
            return None

        value = attr.value
        if value < 0:
            return Variant(VariantKind.I64, value)
        return Variant(VariantKind.U64, value)
