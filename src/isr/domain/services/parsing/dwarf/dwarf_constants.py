#!/usr/bin/env python3

"""DWARF tag groups and attribute constants used by the normalizer."""

from elftools.dwarf.enums import ENUM_DW_ATE

from ....models.profile import StructKind

# Aggregate definitions collected from the top level of each compilation unit
AGGREGATE_TAGS = {
    "DW_TAG_structure_type": StructKind.STRUCT,
    "DW_TAG_class_type": StructKind.CLASS,
    "DW_TAG_union_type": StructKind.UNION,
}
ENUMERATION_TAG = "DW_TAG_enumeration_type"
TOP_LEVEL_TAGS = frozenset({ENUMERATION_TAG, *AGGREGATE_TAGS})

# Wrappers that do not change layout; resolution continues with DW_AT_type
TRANSPARENT_TAGS = frozenset(
    {
        "DW_TAG_typedef",
        "DW_TAG_const_type",
        "DW_TAG_volatile_type",
        "DW_TAG_restrict_type",
        "DW_TAG_atomic_type",
    }
)

POINTER_TAGS = frozenset(
    {
        "DW_TAG_pointer_type",
        "DW_TAG_reference_type",
        "DW_TAG_rvalue_reference_type",
    }
)

# Base type encodings
DW_ATE_BOOLEAN = ENUM_DW_ATE["DW_ATE_boolean"]
DW_ATE_FLOAT = ENUM_DW_ATE["DW_ATE_float"]
DW_ATE_SIGNED = ENUM_DW_ATE["DW_ATE_signed"]
DW_ATE_SIGNED_CHAR = ENUM_DW_ATE["DW_ATE_signed_char"]
DW_ATE_UNSIGNED = ENUM_DW_ATE["DW_ATE_unsigned"]
DW_ATE_UNSIGNED_CHAR = ENUM_DW_ATE["DW_ATE_unsigned_char"]

# Attribute forms that hold a reference or expression rather than a constant
NON_CONSTANT_FORMS = frozenset(
    {
        "DW_FORM_ref1",
        "DW_FORM_ref2",
        "DW_FORM_ref4",
        "DW_FORM_ref8",
        "DW_FORM_ref_udata",
        "DW_FORM_ref_addr",
        "DW_FORM_ref_sig8",
        "DW_FORM_ref_sup4",
        "DW_FORM_ref_sup8",
        "DW_FORM_exprloc",
        "DW_FORM_block",
        "DW_FORM_block1",
        "DW_FORM_block2",
        "DW_FORM_block4",
        "DW_FORM_flag",
        "DW_FORM_flag_present",
    }
)
